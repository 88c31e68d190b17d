"""Unit tests for the SQLite mail store."""

from __future__ import annotations

import sqlite3

import pytest

from mail_archive_viewer.exceptions import StoreError
from mail_archive_viewer.models import AttachmentRef, ExportManifest, FolderRecord, MessageRecord
from mail_archive_viewer.store import MailStoreRepository


def _message(message_id: str, folder_id: str = "Inbox", **kwargs) -> MessageRecord:
    return MessageRecord(id=message_id, folder_id=folder_id, **kwargs)


def test_initialize_is_idempotent(tmp_path) -> None:
    repo = MailStoreRepository(tmp_path / "nested" / "store.sqlite3")
    repo.initialize()
    repo.initialize()

    assert repo.overall_stats().messages == 0


def test_unsupported_schema_version(tmp_path) -> None:
    db_path = tmp_path / "store.sqlite3"
    MailStoreRepository(db_path).initialize()
    with sqlite3.connect(db_path) as conn:
        conn.execute("UPDATE _schema_meta SET value = '99' WHERE key = 'schema_version'")

    with pytest.raises(StoreError):
        MailStoreRepository(db_path).initialize()


def test_folder_round_trip(store) -> None:
    store.add_folder(FolderRecord(id="Inbox", folder_name="Inbox", email_count=2))
    store.add_folder(FolderRecord(id="Archive", folder_name="Archive"))

    assert [f.id for f in store.list_folders()] == ["Inbox", "Archive"]
    assert store.get_folder("Inbox").email_count == 2
    assert store.get_folder("Missing") is None


def test_messages_round_trip(store) -> None:
    store.add_folder(FolderRecord(id="Inbox"))
    attachment = AttachmentRef(guid="g1", file_name="a.pdf", mime_type="application/pdf", size=10)
    store.put_messages(
        [
            _message("m1", subject="First", sender="a@example.com", attachments=[attachment], date="2024-01-01"),
            _message("m2", subject="Second", text_body="body", html_body="<p>body</p>"),
        ]
    )

    messages = store.list_messages_by_folder("Inbox")
    assert [m.id for m in messages] == ["m1", "m2"]
    assert messages[0].attachments == [attachment]
    assert messages[0].has_attachments is True
    assert messages[1].html_body == "<p>body</p>"
    assert store.get_message("m2").subject == "Second"
    assert store.get_message("nope") is None
    assert store.count_messages("Inbox") == 2


def test_messages_newest_first(store) -> None:
    store.add_folder(FolderRecord(id="Inbox"))
    store.put_messages(
        [
            _message("old", date="2023-05-01T00:00:00Z"),
            _message("undated", date="sometime"),
            _message("new", date="2024-05-01T00:00:00Z"),
        ]
    )

    ordered = store.list_messages_by_folder("Inbox", newest_first=True)
    assert [m.id for m in ordered] == ["new", "old", "undated"]


def test_message_requires_existing_folder(store) -> None:
    with pytest.raises(sqlite3.IntegrityError):
        store.put_messages([_message("m1", folder_id="Ghost")])


def test_message_requires_folder_id(store) -> None:
    with pytest.raises(StoreError):
        store.put_messages([MessageRecord(id="m1")])


def test_set_read_flag(store) -> None:
    store.add_folder(FolderRecord(id="Inbox"))
    store.put_messages([_message("m1")])

    assert store.get_message("m1").is_read is False
    assert store.set_read_flag("m1") is True
    assert store.get_message("m1").is_read is True
    assert store.set_read_flag("m1", False) is True
    assert store.get_message("m1").is_read is False
    assert store.set_read_flag("missing") is False


def test_manifest_singleton(store) -> None:
    assert store.get_manifest() is None

    store.put_manifest(ExportManifest(export_date="2024-01-01", total_emails=3))
    store.put_manifest(ExportManifest(export_date="2024-02-01", total_emails=5))

    manifest = store.get_manifest()
    assert manifest.export_date == "2024-02-01"
    assert manifest.total_emails == 5
    assert store.overall_stats().has_manifest is True


def test_attachments(store) -> None:
    store.put_attachment("guid-1", b"\x00\x01binary")

    assert store.get_attachment("guid-1") == b"\x00\x01binary"
    assert store.has_attachment("guid-1") is True
    assert store.get_attachment("guid-2") is None
    assert store.has_attachment("guid-2") is False


def test_clear_all_empties_every_collection(store) -> None:
    store.put_manifest(ExportManifest())
    store.add_folder(FolderRecord(id="Inbox"))
    store.put_messages([_message("m1")])
    store.put_attachment("g", b"x")

    store.clear_all()
    store.clear_all()

    stats = store.overall_stats()
    assert (stats.folders, stats.messages, stats.attachments, stats.has_manifest) == (0, 0, 0, False)


def test_overall_stats(store) -> None:
    store.add_folder(FolderRecord(id="Inbox"))
    store.put_messages([_message("m1"), _message("m2"), _message("m3")])
    store.set_read_flag("m2")
    store.put_attachment("g1", b"1234")
    store.put_attachment("g2", b"56")

    stats = store.overall_stats()
    assert stats.folders == 1
    assert stats.messages == 3
    assert stats.unread_messages == 2
    assert stats.attachments == 2
    assert stats.attachment_bytes == 6
