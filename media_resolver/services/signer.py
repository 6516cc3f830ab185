"""Presigned GET URLs for the configured bucket."""

from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from media_resolver.core.config import Settings
from media_resolver.core.exceptions import ConfigurationError, SigningError
from media_resolver.core.logging import get_logger, log_signing

logger = get_logger(__name__)


class URLSigner:
    """Produces time-limited GET URLs for objects in one bucket.

    The URL lifetime is ``settings.cache_expiry_seconds``, the same window the
    link cache uses, so a cached URL never outlives its signature.
    """

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self.bucket = settings.s3_bucket
        self.expires_in = settings.cache_expiry_seconds
        self.s3 = client or self._build_client(settings)

    @staticmethod
    def _build_client(settings: Settings):
        # Custom endpoints (MinIO, Garage, R2 ...) generally need path-style URLs.
        cfg = Config(
            signature_version="s3v4",
            region_name=settings.s3_region,
            s3={"addressing_style": "path"} if settings.s3_endpoint else {},
        )
        try:
            return boto3.client(
                "s3",
                endpoint_url=settings.s3_endpoint,
                aws_access_key_id=settings.aws_access_key,
                aws_secret_access_key=settings.aws_secret_key,
                config=cfg,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid S3 client configuration: {e}") from e

    @staticmethod
    def object_key(path: str) -> str:
        """Strip one leading separator to get the store key."""
        if path.startswith("/"):
            return path[1:]
        return path

    def sign(self, path: str) -> str:
        key = self.object_key(path)
        if not key:
            raise SigningError(key, "empty object key")

        try:
            url = self.s3.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=self.expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            log_signing(logger, self.bucket, key, self.expires_in, success=False, error=str(e))
            raise SigningError(key, str(e)) from e

        log_signing(logger, self.bucket, key, self.expires_in, success=True)
        return url
