"""Unit tests for archive document parsing helpers."""

from __future__ import annotations

import json

import pytest

from mail_archive_viewer.archive.parsing import parse_folder_info, parse_manifest, parse_messages
from mail_archive_viewer.exceptions import ImportParseError


def test_parse_messages(sample_messages) -> None:
    messages = parse_messages(json.dumps(sample_messages), "Inbox")

    assert [m.id for m in messages] == ["msg-1", "msg-2"]
    assert all(m.folder_id is None for m in messages)


def test_parse_messages_tolerates_surrounding_whitespace() -> None:
    assert parse_messages('\n  [{"Id": "m1"}]  \n', "Inbox")[0].id == "m1"


def test_parse_messages_invalid_json_names_folder() -> None:
    with pytest.raises(ImportParseError) as excinfo:
        parse_messages('[{"Id": "m1",', "Inbox", path="Inbox/emails.json")

    assert excinfo.value.folder == "Inbox"
    assert excinfo.value.path == "Inbox/emails.json"
    assert "Inbox" in str(excinfo.value)


def test_parse_messages_requires_array() -> None:
    with pytest.raises(ImportParseError):
        parse_messages('{"Id": "m1"}', "Inbox")


def test_parse_messages_missing_id() -> None:
    with pytest.raises(ImportParseError) as excinfo:
        parse_messages('[{"Subject": "no id"}]', "Inbox")

    assert excinfo.value.folder == "Inbox"


def test_parse_folder_info_sets_alias(sample_folder_info) -> None:
    folder = parse_folder_info(json.dumps({**sample_folder_info, "id": "ignored"}), "Inbox")

    assert folder.id == "Inbox"
    assert folder.folder_name == "Inbox"


def test_parse_folder_info_invalid() -> None:
    with pytest.raises(ImportParseError) as excinfo:
        parse_folder_info("not json", "Inbox")

    assert excinfo.value.folder == "Inbox"


def test_parse_manifest(sample_manifest) -> None:
    manifest = parse_manifest(json.dumps(sample_manifest))

    assert len(manifest.folders) == 2


def test_parse_manifest_invalid() -> None:
    with pytest.raises(ImportParseError):
        parse_manifest("[]")
    with pytest.raises(ImportParseError):
        parse_manifest("{")
