"""Bulk import of a mail export into the local store.

The loader owns the store for the duration of an import:

1. clear every collection,
2. store the export manifest if the archive has one,
3. parse each folder's messages document once and count operations,
4. write each folder record followed by that folder's messages,
5. extract attachment blobs on a bounded worker pool.

There is no rollback. If a document fails to parse the import stops and the
store keeps whatever was written before the failure; the caller is expected to
retry, and a retry starts with a full clear.
"""

from __future__ import annotations

import sqlite3
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

import structlog

from mail_archive_viewer.archive import ArchiveReader, FolderSource, ManifestResolver
from mail_archive_viewer.archive.parsing import parse_folder_info, parse_messages, read_document
from mail_archive_viewer.archive.reader import ArchiveEntry, ArchiveSource
from mail_archive_viewer.config import Settings
from mail_archive_viewer.exceptions import AttachmentReadError, ImportParseError
from mail_archive_viewer.importer.progress import ProgressSink, ProgressTracker
from mail_archive_viewer.models import FolderRecord, MessageRecord
from mail_archive_viewer.store import MailStoreRepository
from mail_archive_viewer.utils import retry_on_failure

logger = structlog.get_logger()


@dataclass
class ImportSummary:
    """What an import wrote to the store."""

    folders: int = 0
    messages: int = 0
    attachments: int = 0
    failed_attachments: list[str] = field(default_factory=list)
    total_operations: int = 0
    manifest_found: bool = False
    used_scan: bool = False
    elapsed_seconds: float = 0.0


class BulkLoader:
    """Load an exported archive into a MailStoreRepository."""

    def __init__(
        self,
        store: MailStoreRepository,
        settings: Settings | None = None,
        resolver: ManifestResolver | None = None,
    ) -> None:
        """Initialize the loader.

        Args:
            store: Initialized store the import writes to.
            settings: Application settings. If None, uses default settings.
            resolver: Folder resolver. If None, one is built from settings.
        """
        from mail_archive_viewer.config import get_settings

        self.settings = settings or get_settings()
        self.store = store
        self.resolver = resolver or ManifestResolver(self.settings)

    def import_archive(self, source: ArchiveSource, on_progress: ProgressSink | None = None) -> ImportSummary:
        """Replace the store's contents with the archive's.

        Args:
            source: Archive bytes, path or seekable binary stream.
            on_progress: Optional sink receiving a report after every write.

        Returns:
            ImportSummary: Counts of what was imported.

        Raises:
            ArchiveCorruptError: If the archive cannot be opened. The store is
                left untouched.
            ImportParseError: If the manifest or a folder document is
                malformed. The store is left partially written.
        """

        started = time.perf_counter()
        reader = ArchiveReader(source)
        try:
            summary = self._run(reader, on_progress)
        finally:
            reader.close()

        summary.elapsed_seconds = time.perf_counter() - started
        stats = self.store.overall_stats()
        logger.info(
            "import_completed",
            folders=summary.folders,
            messages=summary.messages,
            attachments=summary.attachments,
            failed_attachments=len(summary.failed_attachments),
            elapsed_seconds=round(summary.elapsed_seconds, 3),
            stored_folders=stats.folders,
            stored_messages=stats.messages,
            stored_attachments=stats.attachments,
        )
        return summary

    def _run(self, reader: ArchiveReader, on_progress: ProgressSink | None) -> ImportSummary:
        self.store.clear_all()

        resolved = self.resolver.resolve(reader)
        summary = ImportSummary(manifest_found=resolved.manifest is not None, used_scan=resolved.used_scan)
        if resolved.manifest is not None:
            self.store.put_manifest(resolved.manifest)

        # Parse everything up front: the totals drive progress, and a broken
        # document stops the import before any folder is written.
        parsed: list[tuple[FolderSource, list[MessageRecord]]] = [
            (folder, self._parse_folder_messages(reader, folder)) for folder in resolved.folders
        ]
        blobs = list(reader.list_prefix(self.settings.attachments_dir))

        total = len(parsed) + sum(len(messages) for _, messages in parsed) + len(blobs)
        summary.total_operations = total
        logger.info(
            "import_planned",
            folders=len(parsed),
            messages=total - len(parsed) - len(blobs),
            attachments=len(blobs),
            total_operations=total,
        )

        tracker = ProgressTracker(total, on_progress)

        for folder, messages in parsed:
            self._write_folder(reader, folder, messages, tracker)
            summary.folders += 1
            summary.messages += len(messages)

        summary.attachments, summary.failed_attachments = self._write_attachments(reader, blobs, tracker)

        tracker.finish()
        return summary

    def _parse_folder_messages(self, reader: ArchiveReader, folder: FolderSource) -> list[MessageRecord]:
        path = self.resolver.messages_path(folder.prefix)
        if not reader.has(path):
            logger.info("messages_document_missing", folder=folder.alias, path=path)
            return []
        try:
            text = read_document(reader, path, what="messages document", folder=folder.alias)
            return parse_messages(text, folder.alias, path=path)
        except ImportParseError as exc:
            logger.error("messages_document_invalid", folder=folder.alias, path=path, error=str(exc))
            raise

    def _write_folder(
        self,
        reader: ArchiveReader,
        folder: FolderSource,
        messages: list[MessageRecord],
        tracker: ProgressTracker,
    ) -> None:
        info_path = self.resolver.folder_info_path(folder.prefix)
        if reader.has(info_path):
            text = read_document(reader, info_path, what="folder info", folder=folder.alias)
            record = parse_folder_info(text, folder.alias, path=info_path)
        else:
            record = FolderRecord(
                id=folder.alias,
                folder_name=folder.alias,
                email_count=len(messages),
                attachment_count=sum(len(m.attachments) for m in messages),
            )
            logger.info("folder_info_synthesized", folder=folder.alias)

        self.store.add_folder(record)
        tracker.advance()

        batch = [m.model_copy(update={"folder_id": folder.alias, "is_read": False}) for m in messages]
        self.store.put_messages(batch)
        tracker.advance(len(batch))

        logger.info("folder_imported", folder=folder.alias, messages=len(batch))

    def _write_attachments(
        self,
        reader: ArchiveReader,
        blobs: list[tuple[str, ArchiveEntry]],
        tracker: ProgressTracker,
    ) -> tuple[int, list[str]]:
        if not blobs:
            return 0, []

        logger.info(
            "attachment_import_started",
            attachments=len(blobs),
            workers=self.settings.attachment_workers,
        )

        stored = 0
        failed: list[str] = []
        with ThreadPoolExecutor(max_workers=self.settings.attachment_workers) as executor:
            futures = [
                executor.submit(self._write_attachment, reader, blob_id, entry) for blob_id, entry in blobs
            ]
            for future in as_completed(futures):
                try:
                    future.result()
                    stored += 1
                except AttachmentReadError as exc:
                    logger.warning("attachment_import_failed", blob_id=exc.blob_id, error=exc.reason)
                    failed.append(exc.blob_id)
                tracker.advance()

        return stored, sorted(failed)

    def _write_attachment(self, reader: ArchiveReader, blob_id: str, entry: ArchiveEntry) -> None:
        put = retry_on_failure(
            max_retries=self.settings.attachment_write_retries,
            delay=0.05,
            exceptions=(sqlite3.OperationalError,),
        )(self.store.put_attachment)

        try:
            data = reader.read_bytes(entry.path)
            put(blob_id, data)
        except Exception as exc:  # noqa: BLE001
            raise AttachmentReadError(blob_id, str(exc)) from exc
