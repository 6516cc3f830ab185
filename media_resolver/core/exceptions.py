"""Media resolver exception hierarchy."""


class MediaResolverError(Exception):
    """Base exception for all resolver errors."""


class ConfigurationError(MediaResolverError):
    """Invalid startup configuration."""


class ValidationError(MediaResolverError):
    """A required request parameter is missing or empty."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class CacheBackendError(MediaResolverError):
    """The cache backend failed. A missing key is never reported this way."""

    def __init__(self, backend: str, operation: str, key: str):
        self.backend = backend
        self.operation = operation
        self.key = key
        super().__init__(f"[{backend}] cache {operation} failed for {key!r}")


class SigningError(MediaResolverError):
    """The object store refused or failed to produce a presigned URL."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Failed to presign {key!r}: {message}")
