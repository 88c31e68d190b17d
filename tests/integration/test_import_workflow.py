"""Integration tests for the import-then-browse workflow."""

from __future__ import annotations

import pytest

from mail_archive_viewer.config import Settings
from mail_archive_viewer.importer import BulkLoader, ImportProgress
from mail_archive_viewer.query import QueryEngine
from mail_archive_viewer.store import MailStoreRepository


@pytest.mark.integration
class TestImportWorkflow:
    """End-to-end import of a realistic export followed by browsing."""

    def _export(self, archive_factory, folder_count: int, per_folder: int) -> bytes:
        folders = []
        files: dict[str, object] = {}
        for f in range(folder_count):
            name = f"Folder {f}"
            safe = f"Folder_{f}"
            folders.append({"Name": name, "SafeName": safe, "EmailCount": per_folder})
            messages = []
            for i in range(per_folder):
                guid = f"{f:02d}-{i:04d}"
                messages.append(
                    {
                        "Id": f"{safe}-{i}",
                        "Subject": f"Status update {i}",
                        "From": f"sender{i % 7}@example.com",
                        "To": "me@example.com",
                        "Date": f"2024-01-{(i % 28) + 1:02d}T12:00:00Z",
                        "TextBody": f"Body {i}",
                        "Attachments": [{"Guid": guid, "FileName": f"file{i}.txt", "Size": 5}] if i % 5 == 0 else [],
                    }
                )
                if i % 5 == 0:
                    files[f"attachments/{guid}"] = b"bytes"
            files[f"{safe}/emails.json"] = messages
            files[f"{safe}/folder-info.json"] = {"FolderName": name, "EmailCount": per_folder}
        files["export-index.json"] = {"TotalFolders": folder_count, "Folders": folders}
        return archive_factory(files)

    def test_import_and_browse(self, tmp_path, archive_factory) -> None:
        settings = Settings(store_db_path=tmp_path / "store.sqlite3", attachment_workers=4)
        store = MailStoreRepository(settings.store_db_path)
        store.initialize()
        raw = self._export(archive_factory, folder_count=3, per_folder=60)
        reports: list[ImportProgress] = []

        summary = BulkLoader(store, settings).import_archive(raw, on_progress=reports.append)

        assert summary.folders == 3
        assert summary.messages == 180
        assert summary.attachments == 36
        assert summary.total_operations == 3 + 180 + 36
        assert reports[-1].percent == 100.0
        assert [r.completed for r in reports] == sorted(r.completed for r in reports)

        assert [f.folder_name for f in store.list_folders()] == ["Folder 0", "Folder 1", "Folder 2"]

        engine = QueryEngine(store)
        results = engine.search("Folder_1", "from:sender3")
        assert results
        assert all("sender3" in m.sender for m in results)
        assert all(m.folder_id == "Folder_1" for m in results)

        with_files = engine.search("Folder_2", "attachments:file1")
        assert {m.id for m in with_files} == {"Folder_2-10", "Folder_2-15"}
        for m in with_files:
            assert store.get_attachment(m.attachments[0].guid) == b"bytes"
