"""
BookBrief Backend — Book Schemas
==================================

What:  Upload input, book representations and the upload result.

Upload input arrives as multipart form fields, not JSON, so the route
collects the fields and builds BookCreate explicitly before the workflow
runs; anything that fails here never creates a row.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.summary import SummaryResponse


class BookCreate(BaseModel):
    """Validated book metadata handed to BookIngestionWorkflow.ingest()."""
    title: str = Field(min_length=1, max_length=500)
    author: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None, max_length=20_000)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @field_validator("author", "description")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class BookResponse(BaseModel):
    id: int
    title: str
    author: Optional[str] = None
    description: Optional[str] = None
    status: str = Field(description="uploaded, processing, completed or failed")
    has_document: bool = Field(description="Whether a PDF is attached")
    page_count: Optional[int] = None
    owner_id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookWithSummaryResponse(BookResponse):
    """List/detail representation: the book plus its summary, if any."""
    summary: Optional[SummaryResponse] = None


class BookUploadResponse(BaseModel):
    """
    Returned by POST /books/upload with HTTP 201, even when extraction
    failed. In that case book.status is 'failed', summary holds the fallback
    text and degraded is true.
    """
    message: str
    book: BookResponse
    summary: Optional[SummaryResponse] = None
    degraded: bool = Field(
        default=False,
        description="True when the summary is a fallback rather than a full summary",
    )


class BookListResponse(BaseModel):
    books: List[BookWithSummaryResponse]
