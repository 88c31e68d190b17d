"""Helpers for decoding archive documents into internal models.

Each document kind is validated once here; anything that is not valid JSON or
lacks a required field is rejected with ImportParseError so that downstream
code only ever sees complete records.
"""

from __future__ import annotations

import json
from typing import Any

import pydantic
from pydantic import TypeAdapter

from mail_archive_viewer.archive.reader import ArchiveReader
from mail_archive_viewer.exceptions import ArchiveEntryError, ImportParseError
from mail_archive_viewer.models import ExportManifest, FolderRecord, MessageRecord

_MESSAGES_ADAPTER = TypeAdapter(list[MessageRecord])


def read_document(reader: ArchiveReader, path: str, *, what: str, folder: str | None = None) -> str:
    """Read a JSON document's text from the archive.

    Raises:
        ImportParseError: If the entry is damaged or is not valid UTF-8.
    """

    try:
        return reader.read_text(path)
    except ArchiveEntryError as exc:
        where = f" for folder {folder!r}" if folder else ""
        raise ImportParseError(
            f"Cannot decode {what}{where}: {exc.reason}",
            folder=folder,
            path=path,
        ) from exc


def _load_json(text: str, *, what: str, folder: str | None, path: str | None) -> Any:
    try:
        return json.loads(text.strip())
    except json.JSONDecodeError as exc:
        where = f" for folder {folder!r}" if folder else ""
        raise ImportParseError(
            f"Invalid JSON in {what}{where}: {exc.msg} (line {exc.lineno}, column {exc.colno})",
            folder=folder,
            path=path,
        ) from exc


def _first_error(exc: pydantic.ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    err = errors[0]
    loc = ".".join(str(part) for part in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


def parse_manifest(text: str, *, path: str | None = None) -> ExportManifest:
    """Decode the export manifest.

    Args:
        text: Document text.
        path: Archive entry path, for error reporting.

    Returns:
        ExportManifest: The validated manifest.

    Raises:
        ImportParseError: If the document is not a valid manifest.
    """

    data = _load_json(text, what="export manifest", folder=None, path=path)
    if not isinstance(data, dict):
        raise ImportParseError("Export manifest must be a JSON object", path=path)
    try:
        return ExportManifest.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ImportParseError(
            f"Export manifest is missing required fields: {_first_error(exc)}",
            path=path,
        ) from exc


def parse_folder_info(text: str, folder: str, *, path: str | None = None) -> FolderRecord:
    """Decode a folder-info document and key it by the folder alias."""

    data = _load_json(text, what="folder info", folder=folder, path=path)
    if not isinstance(data, dict):
        raise ImportParseError(
            f"Folder info for folder {folder!r} must be a JSON object",
            folder=folder,
            path=path,
        )
    try:
        return FolderRecord.model_validate({**data, "id": folder})
    except pydantic.ValidationError as exc:
        raise ImportParseError(
            f"Folder info for folder {folder!r} is invalid: {_first_error(exc)}",
            folder=folder,
            path=path,
        ) from exc


def parse_messages(text: str, folder: str, *, path: str | None = None) -> list[MessageRecord]:
    """Decode a messages document.

    The returned records carry no folder reference yet; the loader attaches it.
    """

    data = _load_json(text, what="messages document", folder=folder, path=path)
    if not isinstance(data, list):
        raise ImportParseError(
            f"Messages document for folder {folder!r} must be a JSON array",
            folder=folder,
            path=path,
        )
    try:
        return _MESSAGES_ADAPTER.validate_python(data)
    except pydantic.ValidationError as exc:
        raise ImportParseError(
            f"Messages document for folder {folder!r} is invalid: {_first_error(exc)}",
            folder=folder,
            path=path,
        ) from exc
