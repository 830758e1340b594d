"""
BookBrief Backend — Note Schemas
==================================
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator

from app.schemas.auth import UserBrief


class NoteWrite(BaseModel):
    """Body for creating and updating a note. Content is trimmed; blank is rejected."""
    content: str = Field(max_length=20_000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Note content is required")
        return v


class NoteResponse(BaseModel):
    id: int
    content: str
    summary_id: int
    user_id: int
    created_at: datetime
    updated_at: datetime
    user: UserBrief = Field(description="The note's author")


class NoteMutationResponse(BaseModel):
    note: NoteResponse
    message: str


class NoteListResponse(BaseModel):
    notes: List[NoteResponse] = Field(description="Newest first")
