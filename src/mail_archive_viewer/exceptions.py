"""Custom exceptions for Mail Archive Viewer."""

from __future__ import annotations


class MailArchiveError(Exception):
    """Base exception for all Mail Archive Viewer errors."""


class ArchiveCorruptError(MailArchiveError):
    """Exception raised when the archive container cannot be opened."""


class ArchiveEntryError(MailArchiveError):
    """Exception raised when a single archive member cannot be extracted or decoded.

    Attributes:
        path: Archive entry path of the failing member.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot read archive entry {path!r}: {reason}")
        self.path = path
        self.reason = reason


class ImportParseError(MailArchiveError):
    """Exception raised when an archive document fails to decode.

    Attributes:
        folder: Folder alias whose document failed, if any.
        path: Archive entry path of the failing document, if known.
    """

    def __init__(self, message: str, *, folder: str | None = None, path: str | None = None) -> None:
        super().__init__(message)
        self.folder = folder
        self.path = path


class AttachmentReadError(MailArchiveError):
    """Exception raised when a single attachment blob cannot be extracted or stored."""

    def __init__(self, blob_id: str, reason: str) -> None:
        super().__init__(f"Attachment {blob_id!r} could not be imported: {reason}")
        self.blob_id = blob_id
        self.reason = reason


class StoreError(MailArchiveError):
    """Exception raised for local store related errors."""


class ConfigurationError(MailArchiveError):
    """Exception raised for configuration related errors."""


class ValidationError(MailArchiveError):
    """Exception raised for data validation errors."""
