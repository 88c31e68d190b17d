"""Data models for Mail Archive Viewer.

This module contains Pydantic models for the documents found in an exported
mail archive and for the records kept in the local store.
"""

from mail_archive_viewer.models.folder import FolderRecord, TopSender
from mail_archive_viewer.models.manifest import DateRange, ExportManifest, ManifestFolder
from mail_archive_viewer.models.message import AttachmentRef, MessageRecord, parse_message_date

__all__ = [
    "AttachmentRef",
    "DateRange",
    "ExportManifest",
    "FolderRecord",
    "ManifestFolder",
    "MessageRecord",
    "TopSender",
    "parse_message_date",
]
