"""SQLite-backed cache model for issued links.

Used when CACHE_DRIVER=sqlite; Redis deployments never create this table.
"""

from sqlmodel import SQLModel, Field


class CacheEntry(SQLModel, table=True):
    """Signed URL keyed by its cache key, with an absolute expiry.

    ``expiry`` is in epoch seconds and is never earlier than the expiry
    embedded in ``value``.
    """

    __tablename__ = "cache"

    key: str = Field(primary_key=True)
    value: str
    expiry: int = Field(index=True)
