"""Read-only access to a ZIP mail export.

Entries are decompressed one at a time, on request. ``zipfile`` serialises
access to the underlying file object, so ``read_bytes`` may be called from
several threads at once.
"""

from __future__ import annotations

import io
import zipfile
import zlib
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Union

import structlog

from mail_archive_viewer.exceptions import ArchiveCorruptError, ArchiveEntryError

logger = structlog.get_logger()

ArchiveSource = Union[bytes, bytearray, str, Path, BinaryIO]


@dataclass(frozen=True)
class ArchiveEntry:
    """A single member of the archive."""

    path: str
    is_dir: bool
    size: int
    info: zipfile.ZipInfo


def normalize_entry_path(name: str) -> str | None:
    """Return the canonical form of an entry name, or None if it is unsafe."""

    norm = name.replace("\\", "/").lstrip("/")
    if not norm:
        return None
    if ".." in norm.split("/"):
        return None
    return norm


class ArchiveReader:
    """Named-entry lookup and per-entry extraction over a ZIP container."""

    def __init__(self, source: ArchiveSource) -> None:
        """Open the archive.

        Args:
            source: Raw archive bytes, a path to the archive, or a seekable
                binary stream.

        Raises:
            ArchiveCorruptError: If the central directory cannot be parsed.
        """

        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(bytes(source))

        try:
            self._zip = zipfile.ZipFile(source)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as exc:
            raise ArchiveCorruptError(f"Invalid zip: {exc}") from exc

        self._entries: dict[str, ArchiveEntry] = {}
        for info in self._zip.infolist():
            norm = normalize_entry_path(info.filename or "")
            if norm is None:
                logger.warning("archive_entry_skipped", name=info.filename, reason="unsafe_path")
                continue
            is_dir = info.is_dir()
            key = norm.rstrip("/") if is_dir else norm
            self._entries[key] = ArchiveEntry(
                path=key,
                is_dir=is_dir,
                size=int(info.file_size or 0),
                info=info,
            )

        logger.info("archive_opened", entry_count=len(self._entries))

    def __enter__(self) -> ArchiveReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._zip.close()

    def entries(self) -> dict[str, ArchiveEntry]:
        """Return every entry keyed by normalised path, in archive order."""

        return dict(self._entries)

    def has(self, path: str) -> bool:
        """Whether a file (not a directory) entry exists at ``path``."""

        entry = self._entries.get(path)
        return entry is not None and not entry.is_dir

    def read_bytes(self, path: str) -> bytes:
        """Decompress a single entry.

        Raises:
            KeyError: If no file entry exists at ``path``.
            ArchiveEntryError: If the member's data is damaged.
        """

        entry = self._entries.get(path)
        if entry is None or entry.is_dir:
            raise KeyError(path)
        try:
            return self._zip.read(entry.info)
        except (zipfile.BadZipFile, zlib.error, EOFError) as exc:
            logger.warning("archive_entry_unreadable", path=path, error=str(exc))
            raise ArchiveEntryError(path, str(exc)) from exc

    def read_text(self, path: str) -> str:
        """Decompress a single entry and decode it as UTF-8.

        Raises:
            ArchiveEntryError: If the member is damaged or is not valid UTF-8.
        """

        data = self.read_bytes(path)
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ArchiveEntryError(path, f"not valid UTF-8 ({exc.reason} at byte {exc.start})") from exc

    def list_prefix(self, prefix: str) -> Iterator[tuple[str, ArchiveEntry]]:
        """Yield ``(relative_path, entry)`` for file entries under ``prefix/``."""

        base = prefix.strip("/") + "/"
        for path, entry in self._entries.items():
            if entry.is_dir or not path.startswith(base):
                continue
            relative = path[len(base) :]
            if relative:
                yield relative, entry
