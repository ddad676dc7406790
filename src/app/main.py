from __future__ import annotations

"""FastAPI application entrypoint for the PDF term viewer."""

import logging
import uuid
from pathlib import Path

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse

from src.app.dependencies import get_storage, get_summarizer, get_transaction_store
from src.app.metrics import metrics_middleware, metrics_response, record_scan
from src.app.schemas import (
    ContextSpan,
    DocumentListResponse,
    DocumentResponse,
    MatchResult,
    PageResponse,
    ScanRequest,
    ScanResponse,
    UserResponse,
)
from src.app.security import AuthContext, require_api_key
from src.app.settings import settings
from src.loaders.pdf import PDF_MAGIC, DocumentUnreadableError, open_pdf_bytes, open_pdf_file
from src.metadata.transactions import TransactionStore, TransactionStoreError
from src.scan.aggregate import format_results_for_copy, scan_document
from src.scan.highlights import locate, mark_terms
from src.scan.normalize import normalize_terms
from src.scan.types import SUMMARY_FAILED, MatchRecord, Summarizer
from src.storage.local import LocalDocumentStorage, StorageError, StoredDocument

logger = logging.getLogger(__name__)

app = FastAPI(title="PDF Term Viewer", version="0.1.0")

PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}


def _configure_logging() -> None:
    """Configure root logging using environment settings."""
    level_name = settings.log_level.strip().upper()
    level = getattr(logging, level_name, logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger.setLevel(level)


_configure_logging()


def _safe_error_message(exc: Exception) -> str:
    """Return a safe error type name for logs and responses."""
    return type(exc).__name__


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


async def _read_upload_bytes(upload: UploadFile, max_bytes: int | None) -> bytes:
    """Stream upload bytes with a hard size limit."""
    if not max_bytes or max_bytes <= 0:
        return await upload.read()
    buffer = bytearray()
    while True:
        chunk = await upload.read(65536)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise HTTPException(
                status_code=400,
                detail=f"File exceeds maximum size of {max_bytes} bytes",
            )
    return bytes(buffer)


def _is_pdf_upload(upload: UploadFile) -> bool:
    content_type = (upload.content_type or "").split(";", 1)[0].strip().lower()
    suffix = Path(upload.filename or "").suffix.lower()
    return content_type in PDF_CONTENT_TYPES or suffix == ".pdf"


def _resolve_document(storage: LocalDocumentStorage, auth: AuthContext, doc_id: str) -> Path:
    try:
        return storage.open_path(auth.user_id, doc_id)
    except StorageError as exc:
        raise HTTPException(status_code=404, detail="Document not found") from exc


def _discard_upload(
    storage: LocalDocumentStorage, auth: AuthContext, doc_id: str, request_id: str
) -> None:
    """Remove a stored upload whose transaction row could not be written."""
    try:
        storage.delete(auth.user_id, doc_id)
    except StorageError as exc:
        logger.error(
            "upload_cleanup_failed",
            extra={"request_id": request_id, "document_id": doc_id, "detail": str(exc)},
        )



def _document_response(
    storage: LocalDocumentStorage,
    document: StoredDocument,
    page_count: int | None = None,
    original_name: str | None = None,
) -> DocumentResponse:
    return DocumentResponse(
        document_id=document.doc_id,
        name=document.name,
        url=storage.public_url(document.doc_id),
        size=document.size,
        created_at=document.created_at,
        page_count=page_count,
        original_name=original_name,
    )


def _resolve_terms(request: ScanRequest | None) -> list[str]:
    """Pick explicit terms, then the ``|`` query, then the configured defaults."""
    if request is not None and request.terms is not None:
        return normalize_terms(request.terms)
    if request is not None and request.query is not None:
        return normalize_terms(request.query)
    return normalize_terms(settings.default_terms)


def _match_result(record: MatchRecord, terms: list[str]) -> MatchResult:
    return MatchResult(
        page=record.page,
        term=record.term,
        context=record.context,
        summary=record.summary or "",
        offset=record.offset,
        spans=[
            ContextSpan(text=span.text, highlighted=span.highlighted)
            for span in mark_terms(record.context, terms)
        ],
    )


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Attach or create a request ID for traceability."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    """Capture request metrics before returning the response."""
    return await metrics_middleware(request, call_next)


@app.get("/metrics")
async def metrics():
    """Expose Prometheus-style metrics."""
    return metrics_response()


@app.get("/health")
async def health() -> dict[str, str]:
    """Simple health probe for uptime checks."""
    return {"status": "ok"}


@app.get("/me", response_model=UserResponse)
async def me(auth: AuthContext = Depends(require_api_key)) -> UserResponse:
    """Return the profile attached to the caller's API key."""
    return UserResponse(user_id=auth.user_id, full_name=auth.full_name, group_name=auth.group_name)


@app.post("/documents", response_model=DocumentResponse)
async def upload_document(
    http_request: Request,
    file: UploadFile = File(...),
    auth: AuthContext = Depends(require_api_key),
    storage: LocalDocumentStorage = Depends(get_storage),
    store: TransactionStore | None = Depends(get_transaction_store),
) -> DocumentResponse:
    """Store an uploaded PDF and log the upload."""
    request_id = _request_id(http_request)
    filename = file.filename or "upload.pdf"
    if not _is_pdf_upload(file):
        raise HTTPException(status_code=400, detail="Please upload a PDF file")
    data = await _read_upload_bytes(file, settings.upload_max_bytes)
    if not data.startswith(PDF_MAGIC):
        raise HTTPException(status_code=400, detail="Please upload a PDF file")
    try:
        with open_pdf_bytes(data) as document:
            page_count = document.page_count
    except DocumentUnreadableError as exc:
        logger.error(
            "document_unreadable",
            extra={"request_id": request_id, "source_name": filename, "detail": str(exc)},
        )
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    try:
        stored = storage.save(auth.user_id, data)
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    if store:
        try:
            store.record_upload(
                user_id=auth.user_id,
                user_name=auth.full_name,
                pdf_name=filename,
                document_id=stored.doc_id,
            )
        except TransactionStoreError as exc:
            logger.error(
                "transaction_record_failed",
                extra={
                    "request_id": request_id,
                    "document_id": stored.doc_id,
                    "detail": _safe_error_message(exc),
                },
            )
            _discard_upload(storage, auth, stored.doc_id, request_id)
            raise HTTPException(status_code=500, detail="Failed to record upload") from exc

    logger.info(
        "document_uploaded",
        extra={
            "request_id": request_id,
            "document_id": stored.doc_id,
            "page_count": page_count,
            "size": stored.size,
        },
    )
    return _document_response(storage, stored, page_count=page_count, original_name=filename)


@app.get("/documents", response_model=DocumentListResponse)
async def list_documents(
    http_request: Request,
    auth: AuthContext = Depends(require_api_key),
    storage: LocalDocumentStorage = Depends(get_storage),
    store: TransactionStore | None = Depends(get_transaction_store),
) -> DocumentListResponse:
    """List the caller's uploaded documents."""
    names: dict[str, str] = {}
    if store:
        try:
            uploads = store.list_for_user(auth.user_id)
        except TransactionStoreError as exc:
            logger.error(
                "transaction_list_failed",
                extra={
                    "request_id": _request_id(http_request),
                    "detail": _safe_error_message(exc),
                },
            )
            raise HTTPException(status_code=500, detail="Failed to list uploads") from exc
        names = {item.document_id: item.pdf_name for item in uploads}
    return DocumentListResponse(
        documents=[
            _document_response(storage, document, original_name=names.get(document.doc_id))
            for document in storage.list(auth.user_id)
        ]
    )



@app.get("/documents/{doc_id}/file")
async def document_file(
    doc_id: str,
    auth: AuthContext = Depends(require_api_key),
    storage: LocalDocumentStorage = Depends(get_storage),
) -> FileResponse:
    """Serve the stored PDF."""
    path = _resolve_document(storage, auth, doc_id)
    return FileResponse(path=path, media_type="application/pdf", filename=path.name)


@app.post("/documents/{doc_id}/scan", response_model=ScanResponse)
async def scan(
    doc_id: str,
    http_request: Request,
    request: ScanRequest | None = None,
    auth: AuthContext = Depends(require_api_key),
    storage: LocalDocumentStorage = Depends(get_storage),
    summarizer: Summarizer = Depends(get_summarizer),
) -> ScanResponse:
    """Scan a stored document for terms and summarize every match."""
    request_id = _request_id(http_request)
    path = _resolve_document(storage, auth, doc_id)
    terms = _resolve_terms(request)
    try:
        with open_pdf_file(path) as document:
            page_count = document.page_count
            results = await scan_document(
                document,
                terms,
                summarizer,
                concurrency=settings.summary_concurrency,
                timeout=settings.summary_timeout,
            )
    except DocumentUnreadableError as exc:
        record_scan("failed")
        logger.error(
            "document_unreadable",
            extra={"request_id": request_id, "document_id": doc_id, "detail": str(exc)},
        )
        raise HTTPException(
            status_code=422,
            detail="Error while searching PDF, please try again later.",
        ) from exc

    failures = sum(1 for record in results if record.summary == SUMMARY_FAILED)
    record_scan("completed", [record.term for record in results], failures)
    logger.info(
        "document_scanned",
        extra={
            "request_id": request_id,
            "document_id": doc_id,
            "terms": terms,
            "matches": len(results),
            "summary_failures": failures,
        },
    )
    return ScanResponse(
        document_id=doc_id,
        terms=terms,
        page_count=page_count,
        results=[_match_result(record, terms) for record in results],
        copy_text=format_results_for_copy(results),
        request_id=request_id,
    )


@app.get("/documents/{doc_id}/pages/{page}", response_model=PageResponse)
async def get_page(
    doc_id: str,
    page: int,
    term: str | None = None,
    auth: AuthContext = Depends(require_api_key),
    storage: LocalDocumentStorage = Depends(get_storage),
) -> PageResponse:
    """Return a page's fragments and the highlight indices for a term."""
    path = _resolve_document(storage, auth, doc_id)
    try:
        with open_pdf_file(path) as document:
            page_count = document.page_count
            if page < 1 or page > page_count:
                raise HTTPException(status_code=404, detail="Page not found")
            page_text = await document.read_page(page)
    except DocumentUnreadableError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    normalized = normalize_terms([term]) if term else []
    selected = normalized[0] if normalized else None
    paragraph: set[int] = set()
    hits: set[int] = set()
    if selected:
        paragraph, hits = locate(page_text.fragments, selected)
    return PageResponse(
        document_id=doc_id,
        page=page,
        page_count=page_count,
        fragments=list(page_text.fragments),
        term=selected,
        paragraph_indices=sorted(paragraph),
        term_indices=sorted(hits),
    )
