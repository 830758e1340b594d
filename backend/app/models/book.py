"""
BookBrief Backend — Book Model
================================

What:  ORM model for the `books` table, one row per uploaded book.
Why:   The book row is the anchor of the ingestion pipeline: its `status`
       column is the state machine the workflows drive.

Status State Machine:
    uploaded    ← created without a PDF, or after its summary was deleted
    processing  → completed | failed      (ingestion / regeneration)
    completed   → processing              (regenerate)
    failed      → processing              (regenerate)

    Only BookIngestionWorkflow and SummaryLifecycleManager change `status`.

Table Design Rationale:
    - pdf_path: relative path under STORAGE_ROOT (the opaque document handle)
    - page_count: filled in by text extraction, NULL until then
    - updated_at: bumped on every status change; the startup recovery sweep
      uses it to find books stuck in 'processing' after a crash
    - No ORM relationships: async sessions cannot lazy-load, so services
      query summaries and notes explicitly
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models._columns import created_at_column, updated_at_column


class BookStatus(str, enum.Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Book(Base):
    """
    A book owned by exactly one user.

    Query Patterns:
        - List my books: WHERE owner_id = :uid ORDER BY created_at DESC
          → idx_books_owner_created
        - Get one of my books: WHERE id = :id AND owner_id = :uid
        - Recovery sweep: WHERE status = 'processing' AND updated_at < :cutoff
    """

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Format: YYYY/MM/DD/<uuid>.pdf, relative to STORAGE_ROOT
    pdf_path: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Relative path from storage root to the uploaded PDF",
    )

    page_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Why VARCHAR (not a DB enum): adding a state later needs no ALTER TYPE
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BookStatus.UPLOADED.value,
        server_default=text("'uploaded'"),
        comment="Ingestion state: uploaded, processing, completed, failed",
    )

    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = created_at_column("When the book was uploaded (UTC)")
    updated_at: Mapped[datetime] = updated_at_column("Last status or metadata change (UTC)")

    __table_args__ = (
        Index("idx_books_owner_created", "owner_id", "created_at"),
        Index("idx_books_status_updated", "status", "updated_at"),
    )

    @property
    def has_document(self) -> bool:
        return bool(self.pdf_path)

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', status='{self.status}')>"
