"""
BookBrief Backend — Summary Schemas
=====================================
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class SummaryResponse(BaseModel):
    id: int
    book_id: int
    content: str
    highlights: str
    created_by_id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SummaryBookInfo(BaseModel):
    id: int
    title: str
    author: Optional[str] = None
    description: Optional[str] = None
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class SummaryWithBookResponse(SummaryResponse):
    """GET /summaries and GET /summaries/{id}: the summary and which book it belongs to."""
    book: SummaryBookInfo


class SummaryUpdate(BaseModel):
    """
    PUT /books/{id}/summary body.

    highlights is optional; whether a supplied value is stored verbatim or
    recomputed from content is controlled by HONOR_CLIENT_HIGHLIGHTS.
    """
    content: str = Field(min_length=1)
    highlights: Optional[str] = Field(default=None, max_length=2_000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Summary content is required")
        return v
