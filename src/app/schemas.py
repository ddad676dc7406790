from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    user_id: str
    full_name: str
    group_name: str


class DocumentResponse(BaseModel):
    document_id: str
    name: str
    url: str
    size: int
    created_at: datetime
    page_count: int | None = None
    original_name: str | None = None


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse]


class ScanRequest(BaseModel):
    terms: list[str] | None = None
    query: str | None = Field(default=None, description="Terms joined with '|'.")


class ContextSpan(BaseModel):
    text: str
    highlighted: bool = False


class MatchResult(BaseModel):
    page: int
    term: str
    context: str
    summary: str
    offset: int
    spans: list[ContextSpan] = Field(default_factory=list)


class ScanResponse(BaseModel):
    document_id: str
    terms: list[str]
    page_count: int
    results: list[MatchResult]
    copy_text: str
    request_id: str


class PageResponse(BaseModel):
    document_id: str
    page: int
    page_count: int
    fragments: list[str]
    term: str | None = None
    paragraph_indices: list[int] = Field(default_factory=list)
    term_indices: list[int] = Field(default_factory=list)
