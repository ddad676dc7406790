from __future__ import annotations

import sqlite3

import pytest

from src.metadata.transactions import TransactionStore, TransactionStoreError


def test_transaction_store_records_uploads(tmp_path) -> None:
    db_path = tmp_path / "transactions.db"
    store = TransactionStore(f"sqlite:///{db_path}")

    first = store.record_upload("user-1", "Alice", "report.pdf", "a" * 32)
    store.record_upload("user-2", "", "other.pdf", "b" * 32)

    conn = sqlite3.connect(db_path)
    try:
        row = conn.execute(
            "SELECT user_id, user_name, pdf_name, document_id FROM transactions WHERE id = ?",
            (first.id,),
        ).fetchone()
    finally:
        conn.close()
    assert row == ("user-1", "Alice", "report.pdf", "a" * 32)

    uploads = store.list_for_user("user-2")
    assert [item.pdf_name for item in uploads] == ["other.pdf"]
    assert uploads[0].user_name == "Unknown User"


def test_listing_wraps_database_errors(tmp_path) -> None:
    db_path = tmp_path / "transactions.db"
    store = TransactionStore(f"sqlite:///{db_path}")
    conn = sqlite3.connect(db_path)
    try:
        conn.execute("DROP TABLE transactions")
        conn.commit()
    finally:
        conn.close()

    with pytest.raises(TransactionStoreError):
        store.list_for_user("user-1")
