from __future__ import annotations

"""Local document storage tests."""

import pytest

from src.storage.local import LocalDocumentStorage, StorageError


def test_save_list_and_resolve(tmp_path) -> None:
    storage = LocalDocumentStorage(tmp_path, public_base_url="http://files/")

    stored = storage.save("user-1", b"%PDF-1.7 data")

    assert stored.name == f"{stored.doc_id}.pdf"
    assert stored.size == len(b"%PDF-1.7 data")
    assert [doc.doc_id for doc in storage.list("user-1")] == [stored.doc_id]
    assert storage.list("someone-else") == []
    assert storage.open_path("user-1", stored.doc_id).read_bytes() == b"%PDF-1.7 data"
    assert storage.public_url(stored.doc_id) == f"http://files/documents/{stored.doc_id}/file"


def test_documents_are_scoped_per_user(tmp_path) -> None:
    storage = LocalDocumentStorage(tmp_path)
    stored = storage.save("user-1", b"%PDF")

    with pytest.raises(StorageError):
        storage.open_path("user-2", stored.doc_id)


def test_malformed_ids_and_user_paths_are_contained(tmp_path) -> None:
    storage = LocalDocumentStorage(tmp_path / "root")

    with pytest.raises(StorageError):
        storage.open_path("user-1", "../../etc/passwd")
    stored = storage.save("../escape", b"%PDF")
    assert storage.open_path("../escape", stored.doc_id).is_relative_to(tmp_path / "root")


def test_delete_removes_document(tmp_path) -> None:
    storage = LocalDocumentStorage(tmp_path)
    stored = storage.save("user-1", b"%PDF")

    storage.delete("user-1", stored.doc_id)

    assert storage.list("user-1") == []
    with pytest.raises(StorageError):
        storage.delete("user-1", stored.doc_id)
