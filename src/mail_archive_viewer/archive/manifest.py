"""Folder discovery for a mail export.

The export manifest is treated as a hint: folders it declares are kept only if
their messages document is actually present. When the manifest is missing or
none of its folders resolve, every messages document in the archive is found
by a full scan instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from mail_archive_viewer.archive.parsing import parse_manifest, read_document
from mail_archive_viewer.archive.reader import ArchiveReader
from mail_archive_viewer.config import Settings
from mail_archive_viewer.models import ExportManifest

logger = structlog.get_logger()


@dataclass(frozen=True)
class FolderSource:
    """A folder to import and the archive directory that holds it."""

    alias: str
    prefix: str


@dataclass
class ResolvedFolders:
    """Outcome of folder discovery."""

    folders: list[FolderSource] = field(default_factory=list)
    manifest: ExportManifest | None = None
    used_scan: bool = False

    @property
    def aliases(self) -> list[str]:
        return [f.alias for f in self.folders]


class ManifestResolver:
    """Work out which folders an archive contains."""

    def __init__(self, settings: Settings | None = None) -> None:
        from mail_archive_viewer.config import get_settings

        self.settings = settings or get_settings()

    def load_manifest(self, reader: ArchiveReader) -> ExportManifest | None:
        """Decode the manifest entry if the archive has one.

        Raises:
            ImportParseError: If the manifest is present but malformed.
        """

        path = self.settings.manifest_filename
        if not reader.has(path):
            logger.info("manifest_not_found", path=path)
            return None
        manifest = parse_manifest(read_document(reader, path, what="export manifest"), path=path)
        logger.info(
            "manifest_loaded",
            declared_folders=len(manifest.folders),
            total_emails=manifest.total_emails,
            total_attachments=manifest.total_attachments,
        )
        return manifest

    def resolve(self, reader: ArchiveReader) -> ResolvedFolders:
        """Resolve the ordered folder set of ``reader``.

        Args:
            reader: Open archive.

        Returns:
            ResolvedFolders: Folders in discovery order, plus the decoded
            manifest when the archive has one.

        Raises:
            ImportParseError: If the manifest is present but malformed.
        """

        manifest = self.load_manifest(reader)

        folders: list[FolderSource] = []
        if manifest is not None:
            folders = self._from_manifest(reader, manifest)

        used_scan = False
        if not folders:
            folders = self._scan(reader)
            used_scan = True

        logger.info(
            "folders_resolved",
            folder_count=len(folders),
            source="scan" if used_scan else "manifest",
            aliases=[f.alias for f in folders],
        )
        return ResolvedFolders(folders=folders, manifest=manifest, used_scan=used_scan)

    def messages_path(self, prefix: str) -> str:
        return f"{prefix}/{self.settings.messages_filename}"

    def folder_info_path(self, prefix: str) -> str:
        return f"{prefix}/{self.settings.folder_info_filename}"

    def _from_manifest(self, reader: ArchiveReader, manifest: ExportManifest) -> list[FolderSource]:
        seen: set[str] = set()
        folders: list[FolderSource] = []
        for declared in manifest.folders:
            alias: str | None = None
            for candidate in (declared.safe_name, declared.name):
                if candidate and reader.has(self.messages_path(candidate)):
                    alias = candidate
                    break

            if alias is None:
                logger.info(
                    "manifest_folder_skipped",
                    name=declared.name,
                    safe_name=declared.safe_name,
                    reason="messages_document_missing",
                )
                continue
            if alias in seen:
                continue
            seen.add(alias)
            folders.append(FolderSource(alias=alias, prefix=alias))
        return folders

    def _scan(self, reader: ArchiveReader) -> list[FolderSource]:
        reserved = self.settings.attachments_dir.strip("/")
        target = self.settings.messages_filename
        seen: set[str] = set()
        folders: list[FolderSource] = []
        for path, entry in reader.entries().items():
            if entry.is_dir:
                continue
            segments = path.split("/")
            if len(segments) < 2 or segments[-1] != target:
                continue
            alias = segments[0]
            if not alias or alias == reserved or alias in seen:
                continue
            seen.add(alias)
            folders.append(FolderSource(alias=alias, prefix=alias))
        return folders
