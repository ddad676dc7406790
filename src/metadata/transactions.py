from __future__ import annotations

"""Upload transaction log."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone


class TransactionStoreError(RuntimeError):
    """Raised when the transaction log cannot be written or read."""
    pass


@dataclass(frozen=True)
class UploadTransaction:
    """One recorded upload."""
    id: str
    user_id: str
    user_name: str
    pdf_name: str
    document_id: str
    upload_date: datetime


class TransactionStore:
    """Record uploads in a SQL database."""
    def __init__(self, connection_uri: str) -> None:
        """Initialize the store and ensure the table exists."""
        try:
            from sqlalchemy import Column, DateTime, MetaData, String, Table, create_engine
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise TransactionStoreError(
                "sqlalchemy is required to use the transaction store"
            ) from exc

        self._engine = create_engine(connection_uri)
        self._metadata = MetaData()
        self._table = Table(
            "transactions",
            self._metadata,
            Column("id", String(36), primary_key=True),
            Column("user_id", String(128), nullable=False, index=True),
            Column("user_name", String(255), nullable=False),
            Column("pdf_name", String(255), nullable=False),
            Column("document_id", String(64), nullable=False),
            Column("upload_date", DateTime(timezone=True), nullable=False),
        )
        self._metadata.create_all(self._engine)

    def record_upload(
        self,
        user_id: str,
        user_name: str,
        pdf_name: str,
        document_id: str,
    ) -> UploadTransaction:
        """Insert an upload row and return it."""
        transaction = UploadTransaction(
            id=str(uuid.uuid4()),
            user_id=user_id,
            user_name=user_name or "Unknown User",
            pdf_name=pdf_name,
            document_id=document_id,
            upload_date=datetime.now(timezone.utc),
        )
        try:
            with self._engine.begin() as conn:
                conn.execute(self._table.insert().values(**transaction.__dict__))
        except Exception as exc:
            raise TransactionStoreError(f"Failed to record upload: {exc}") from exc
        return transaction

    def list_for_user(self, user_id: str) -> list[UploadTransaction]:
        """Return a user's uploads, newest first."""
        query = (
            self._table.select()
            .where(self._table.c.user_id == user_id)
            .order_by(self._table.c.upload_date.desc())
        )
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(query).mappings().all()
        except Exception as exc:
            raise TransactionStoreError(f"Failed to list uploads: {exc}") from exc
        return [UploadTransaction(**dict(row)) for row in rows]
