"""SQLite-backed store for an imported mail archive.

The store holds four collections: folders, messages, the export manifest
(a singleton) and attachment blobs. An import always starts by clearing all
four, so the store reflects exactly one archive at a time.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import structlog

from mail_archive_viewer.exceptions import StoreError
from mail_archive_viewer.models import AttachmentRef, ExportManifest, FolderRecord, MessageRecord

logger = structlog.get_logger()


_SCHEMA_VERSION = 1

_MESSAGE_COLUMNS = """
    id,
    folder_id,
    subject,
    sender,
    recipient,
    cc,
    bcc,
    date_raw,
    date_ts,
    text_body,
    html_body,
    attachments_json,
    has_attachments,
    file_name,
    is_read
"""


@dataclass(frozen=True)
class StoreStats:
    """Collection sizes of the store."""

    folders: int
    messages: int
    unread_messages: int
    attachments: int
    attachment_bytes: int
    has_manifest: bool


class MailStoreRepository:
    """Repository for the folders, messages, manifest and attachments of one import."""

    def __init__(self, db_path: Path) -> None:
        """Create a repository.

        Args:
            db_path: Path to the SQLite database file.
        """

        self._db_path = db_path

    @property
    def db_path(self) -> Path:
        return self._db_path

    def initialize(self) -> None:
        """Create the store schema if needed."""

        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS _schema_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

            current_version = self._get_schema_version(conn)
            if current_version is None:
                self._create_schema_v1(conn)
                self._set_schema_version(conn, _SCHEMA_VERSION)
                conn.commit()
                logger.info("mail_store_schema_created", version=_SCHEMA_VERSION)
                return

            if current_version != _SCHEMA_VERSION:
                raise StoreError(
                    f"Unsupported schema version {current_version}; expected {_SCHEMA_VERSION}"
                )

    def clear_all(self) -> None:
        """Empty all four collections. Safe on an empty store."""

        with self._connect() as conn:
            conn.execute("DELETE FROM messages;")
            conn.execute("DELETE FROM folders;")
            conn.execute("DELETE FROM export_manifest;")
            conn.execute("DELETE FROM attachments;")
            conn.commit()
        logger.info("mail_store_cleared")

    # Manifest

    def put_manifest(self, manifest: ExportManifest) -> None:
        """Store ``manifest`` as the single manifest record."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO export_manifest(singleton, export_date, data_json)
                VALUES (1, ?, ?);
                """,
                (manifest.export_date, manifest.model_dump_json(by_alias=True)),
            )
            conn.commit()

    def get_manifest(self) -> ExportManifest | None:
        with self._connect() as conn:
            row = conn.execute("SELECT data_json FROM export_manifest WHERE singleton = 1;").fetchone()
        if row is None:
            return None
        return ExportManifest.model_validate_json(row["data_json"])

    # Folders

    def add_folder(self, folder: FolderRecord) -> None:
        """Insert a folder record.

        Raises:
            sqlite3.IntegrityError: If a folder with the same id already exists.
        """

        with self._connect() as conn:
            conn.execute(
                "INSERT INTO folders(id, folder_name, data_json) VALUES (?, ?, ?);",
                (folder.id, folder.folder_name, folder.model_dump_json(by_alias=True)),
            )
            conn.commit()

    def get_folder(self, folder_id: str) -> FolderRecord | None:
        with self._connect() as conn:
            row = conn.execute("SELECT data_json FROM folders WHERE id = ?;", (folder_id,)).fetchone()
        if row is None:
            return None
        return FolderRecord.model_validate_json(row["data_json"])

    def list_folders(self) -> list[FolderRecord]:
        """Return all folders in import order."""

        with self._connect() as conn:
            rows = conn.execute("SELECT data_json FROM folders ORDER BY rowid;").fetchall()
        return [FolderRecord.model_validate_json(row["data_json"]) for row in rows]

    # Messages

    def put_messages(self, messages: list[MessageRecord]) -> None:
        """Write a batch of messages in one transaction.

        Every message must carry a ``folder_id`` naming an existing folder.
        A message whose id is already stored replaces the earlier one.
        """

        if not messages:
            return

        for m in messages:
            if not m.folder_id:
                raise StoreError(f"Message {m.id!r} has no folder id")

        with self._connect() as conn:
            conn.executemany(
                f"""
                INSERT INTO messages ({_MESSAGE_COLUMNS})
                VALUES (
                    :id,
                    :folder_id,
                    :subject,
                    :sender,
                    :recipient,
                    :cc,
                    :bcc,
                    :date_raw,
                    :date_ts,
                    :text_body,
                    :html_body,
                    :attachments_json,
                    :has_attachments,
                    :file_name,
                    :is_read
                )
                ON CONFLICT(id) DO UPDATE SET
                    folder_id=excluded.folder_id,
                    subject=excluded.subject,
                    sender=excluded.sender,
                    recipient=excluded.recipient,
                    cc=excluded.cc,
                    bcc=excluded.bcc,
                    date_raw=excluded.date_raw,
                    date_ts=excluded.date_ts,
                    text_body=excluded.text_body,
                    html_body=excluded.html_body,
                    attachments_json=excluded.attachments_json,
                    has_attachments=excluded.has_attachments,
                    file_name=excluded.file_name,
                    is_read=excluded.is_read
                """,
                [self._message_to_row(m) for m in messages],
            )
            conn.commit()

    def list_messages_by_folder(self, folder_id: str, *, newest_first: bool = False) -> list[MessageRecord]:
        """Return the messages of one folder.

        Args:
            folder_id: Folder alias.
            newest_first: Order by date descending; undated messages go last.
                Otherwise messages come back in import order.
        """

        order = "date_ts IS NULL, date_ts DESC, rowid" if newest_first else "rowid"
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_MESSAGE_COLUMNS} FROM messages WHERE folder_id = ? ORDER BY {order};",
                (folder_id,),
            ).fetchall()
        return [self._row_to_message(row) for row in rows]

    def get_message(self, message_id: str) -> MessageRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_MESSAGE_COLUMNS} FROM messages WHERE id = ?;",
                (message_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_message(row)

    def set_read_flag(self, message_id: str, is_read: bool = True) -> bool:
        """Update the read flag of a message.

        Returns:
            True if a message with that id exists.
        """

        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE messages SET is_read = ? WHERE id = ?;",
                (1 if is_read else 0, message_id),
            )
            conn.commit()
            return cur.rowcount > 0

    def count_messages(self, folder_id: str | None = None) -> int:
        with self._connect() as conn:
            if folder_id is None:
                (total,) = conn.execute("SELECT COUNT(*) FROM messages;").fetchone()
            else:
                (total,) = conn.execute(
                    "SELECT COUNT(*) FROM messages WHERE folder_id = ?;",
                    (folder_id,),
                ).fetchone()
        return int(total or 0)

    # Attachments

    def put_attachment(self, blob_id: str, data: bytes) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO attachments(blob_id, size, data) VALUES (?, ?, ?);",
                (blob_id, len(data), sqlite3.Binary(data)),
            )
            conn.commit()

    def get_attachment(self, blob_id: str) -> bytes | None:
        with self._connect() as conn:
            row = conn.execute("SELECT data FROM attachments WHERE blob_id = ?;", (blob_id,)).fetchone()
        if row is None:
            return None
        return bytes(row["data"])

    def has_attachment(self, blob_id: str) -> bool:
        with self._connect() as conn:
            row = conn.execute("SELECT 1 FROM attachments WHERE blob_id = ?;", (blob_id,)).fetchone()
        return row is not None

    def overall_stats(self) -> StoreStats:
        """Compute collection sizes."""

        with self._connect() as conn:
            (folders,) = conn.execute("SELECT COUNT(*) FROM folders;").fetchone()
            total, read = conn.execute("SELECT COUNT(*), SUM(is_read) FROM messages;").fetchone()
            attachments, attachment_bytes = conn.execute(
                "SELECT COUNT(*), SUM(size) FROM attachments;"
            ).fetchone()
            (manifests,) = conn.execute("SELECT COUNT(*) FROM export_manifest;").fetchone()

        total = int(total or 0)
        return StoreStats(
            folders=int(folders or 0),
            messages=total,
            unread_messages=total - int(read or 0),
            attachments=int(attachments or 0),
            attachment_bytes=int(attachment_bytes or 0),
            has_manifest=bool(manifests),
        )

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path, timeout=30.0)
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys=ON;")
            yield conn
        finally:
            conn.close()

    def _get_schema_version(self, conn: sqlite3.Connection) -> int | None:
        row = conn.execute(
            "SELECT value FROM _schema_meta WHERE key = 'schema_version'"
        ).fetchone()
        if row is None:
            return None
        return int(row[0])

    def _set_schema_version(self, conn: sqlite3.Connection, version: int) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO _schema_meta(key, value) VALUES('schema_version', ?) ",
            (str(version),),
        )

    def _create_schema_v1(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS folders (
                rowid INTEGER PRIMARY KEY,
                id TEXT NOT NULL UNIQUE,
                folder_name TEXT,
                data_json TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_folders_folder_name
                ON folders(folder_name);

            CREATE TABLE IF NOT EXISTS messages (
                rowid INTEGER PRIMARY KEY,
                id TEXT NOT NULL UNIQUE,
                folder_id TEXT NOT NULL REFERENCES folders(id) ON DELETE CASCADE,
                subject TEXT NOT NULL,
                sender TEXT NOT NULL,
                recipient TEXT NOT NULL,
                cc TEXT NOT NULL,
                bcc TEXT NOT NULL,
                date_raw TEXT NOT NULL,
                date_ts REAL,
                text_body TEXT NOT NULL,
                html_body TEXT NOT NULL,
                attachments_json TEXT NOT NULL,
                has_attachments INTEGER NOT NULL,
                file_name TEXT NOT NULL,
                is_read INTEGER NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_messages_folder_id
                ON messages(folder_id);

            CREATE INDEX IF NOT EXISTS idx_messages_date_ts
                ON messages(date_ts);

            CREATE INDEX IF NOT EXISTS idx_messages_sender
                ON messages(sender);

            CREATE INDEX IF NOT EXISTS idx_messages_subject
                ON messages(subject);

            CREATE INDEX IF NOT EXISTS idx_messages_is_read
                ON messages(is_read);

            CREATE TABLE IF NOT EXISTS export_manifest (
                singleton INTEGER PRIMARY KEY CHECK (singleton = 1),
                export_date TEXT,
                data_json TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS attachments (
                blob_id TEXT PRIMARY KEY,
                size INTEGER NOT NULL,
                data BLOB NOT NULL
            );
            """
        )

    def _message_to_row(self, m: MessageRecord) -> dict[str, object]:
        parsed = m.parsed_date
        return {
            "id": m.id,
            "folder_id": m.folder_id,
            "subject": m.subject,
            "sender": m.sender,
            "recipient": m.recipient,
            "cc": m.cc,
            "bcc": m.bcc,
            "date_raw": m.date,
            "date_ts": parsed.timestamp() if parsed else None,
            "text_body": m.text_body,
            "html_body": m.html_body,
            "attachments_json": json.dumps([a.model_dump(by_alias=True) for a in m.attachments]),
            "has_attachments": 1 if m.has_attachments else 0,
            "file_name": m.file_name,
            "is_read": 1 if m.is_read else 0,
        }

    def _row_to_message(self, row: sqlite3.Row) -> MessageRecord:
        return MessageRecord(
            id=row["id"],
            folder_id=row["folder_id"],
            subject=row["subject"],
            sender=row["sender"],
            recipient=row["recipient"],
            cc=row["cc"],
            bcc=row["bcc"],
            date=row["date_raw"],
            text_body=row["text_body"],
            html_body=row["html_body"],
            attachments=[AttachmentRef.model_validate(a) for a in json.loads(row["attachments_json"])],
            has_attachments=bool(row["has_attachments"]),
            file_name=row["file_name"],
            is_read=bool(row["is_read"]),
        )
