"""Local store for imported mail archives.

This package contains the SQLite repository that keeps the folders, messages,
export manifest and attachment blobs of the most recent import.
"""

from .repository import MailStoreRepository, StoreStats

__all__ = ["MailStoreRepository", "StoreStats"]
