"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import io
import json
import zipfile
from typing import Any, Callable

import pytest
import structlog


def make_archive(files: dict[str, Any], directories: tuple[str, ...] = ()) -> bytes:
    """Build a ZIP archive in memory.

    Values may be bytes, str, or anything JSON-serialisable.
    """

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for directory in directories:
            zf.writestr(directory.rstrip("/") + "/", b"")
        for name, content in files.items():
            if isinstance(content, bytes):
                data = content
            elif isinstance(content, str):
                data = content.encode("utf-8")
            else:
                data = json.dumps(content).encode("utf-8")
            zf.writestr(name, data)
    return buf.getvalue()


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any structlog configuration done by the CLI between tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def mock_settings(tmp_path):
    """Provide settings pointing at a temporary store."""
    from mail_archive_viewer.config import Settings

    return Settings(
        store_db_path=tmp_path / "store.sqlite3",
        attachment_workers=4,
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def store(tmp_path):
    """Provide an initialized, empty store."""
    from mail_archive_viewer.store import MailStoreRepository

    repo = MailStoreRepository(tmp_path / "store.sqlite3")
    repo.initialize()
    return repo


@pytest.fixture
def sample_messages() -> list[dict]:
    """Provide a messages document for an Inbox folder."""
    return [
        {
            "Id": "msg-1",
            "Subject": "Hello",
            "From": '"Alice Smith" <alice@example.com>',
            "To": "me@example.com",
            "Cc": "",
            "Bcc": "",
            "Date": "2024-03-01T09:30:00Z",
            "TextBody": "Just saying hi.",
            "HtmlBody": "<p>Just saying hi.</p>",
            "Attachments": [
                {
                    "Guid": "0b7c1d2e-guid-report",
                    "FileName": "report.pdf",
                    "MimeType": "application/pdf",
                    "Size": 2048,
                }
            ],
            "HasAttachments": True,
            "FileName": "msg-1.eml",
        },
        {
            "Id": "msg-2",
            "Subject": "Meeting",
            "From": "Bob <bob@example.com>",
            "To": "me@example.com",
            "Cc": "carol@example.com",
            "Bcc": None,
            "Date": "2024-03-02T14:00:00Z",
            "TextBody": "Can we move the meeting?",
            "HtmlBody": "",
            "Attachments": [],
            "HasAttachments": False,
            "FileName": "msg-2.eml",
        },
    ]


@pytest.fixture
def sample_folder_info() -> dict:
    """Provide a folder-info document for the Inbox folder."""
    return {
        "FolderName": "Inbox",
        "ExportDate": "2024-03-05T10:00:00Z",
        "EmailCount": 2,
        "AttachmentCount": 1,
        "DateRange": {"Earliest": "2024-03-01T09:30:00Z", "Latest": "2024-03-02T14:00:00Z"},
        "TopSenders": [{"Sender": "alice@example.com", "Count": 1}, {"Sender": "bob@example.com", "Count": 1}],
    }


@pytest.fixture
def sample_manifest() -> dict:
    """Provide an export manifest declaring Inbox and Sent Items."""
    return {
        "ExportDate": "2024-03-05T10:00:00Z",
        "TotalFolders": 2,
        "TotalEmails": 3,
        "TotalAttachments": 1,
        "Folders": [
            {
                "Name": "Inbox",
                "SafeName": "Inbox",
                "EmailCount": 2,
                "AttachmentCount": 1,
                "DateRange": {"Earliest": "2024-03-01T09:30:00Z", "Latest": "2024-03-02T14:00:00Z"},
            },
            {
                "Name": "Sent Items",
                "SafeName": "Sent_Items",
                "EmailCount": 1,
                "AttachmentCount": 0,
                "DateRange": {"Earliest": "2024-03-03T08:00:00Z", "Latest": "2024-03-03T08:00:00Z"},
            },
        ],
    }


@pytest.fixture
def sent_messages() -> list[dict]:
    """Provide a messages document for the Sent_Items folder."""
    return [
        {
            "Id": "msg-3",
            "Subject": "Re: Meeting",
            "From": "me@example.com",
            "To": "Bob <bob@example.com>",
            "Date": "2024-03-03T08:00:00Z",
            "TextBody": "Thursday works.",
            "Attachments": [],
        }
    ]


@pytest.fixture
def full_archive(sample_manifest, sample_messages, sample_folder_info, sent_messages) -> bytes:
    """Provide a complete export: manifest, two folders and one attachment."""
    return make_archive(
        {
            "export-index.json": sample_manifest,
            "Inbox/emails.json": sample_messages,
            "Inbox/folder-info.json": sample_folder_info,
            "Sent_Items/emails.json": sent_messages,
            "attachments/0b7c1d2e-guid-report": b"%PDF-1.4 fake report",
        },
        directories=("Inbox", "Sent_Items", "attachments"),
    )


@pytest.fixture
def crc_damaged_archive() -> bytes:
    """Provide an archive whose directory is intact but whose messages member fails its CRC."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_STORED) as zf:
        zf.writestr("Inbox/emails.json", b'[{"Id": "m1", "Subject": "hello"}]')
    return buf.getvalue().replace(b'"hello"', b'"jello"', 1)


@pytest.fixture
def archive_factory() -> Callable[..., bytes]:
    """Expose make_archive to tests."""
    return make_archive
