"""
BookBrief Backend — Book Ingestion Workflow
=============================================

What:  Orchestrates upload → extract → summarize → highlight → persist, and
       owns the Book status transitions of that pipeline.
Why:   The upload must always leave a usable record behind: once a PDF was
       accepted, a book row AND a summary (real or fallback) exist.
How:   Composes PdfTextExtractor, SummarizationService and the highlight
       function; talks to the database through the request's AsyncSession.
Who:   Book routes (ingest/list/get/delete), SummaryLifecycleManager
       (run_pipeline for regeneration), app lifespan (recovery sweep).

Orchestration Flow (POST /books/upload):
    ┌──────────┐   ┌──────────┐   ┌───────────┐   ┌───────────┐   ┌──────────┐
    │  Book    │──▶│ Extract  │──▶│ Summarize │──▶│ Highlight │──▶│ Summary  │
    │ (commit) │   │ (thread) │   │ (provider)│   │  (pure)   │   │ (commit) │
    └──────────┘   └────┬─────┘   └───────────┘   └───────────┘   └──────────┘
                        │ ExtractionError
                        ▼
                  fallback summary, status = failed (commit), still 201

Transactions:
    Each status transition is its own short commit, so no transaction or
    row lock is held while the PDF is parsed or the provider is called.
    If an unexpected error escapes after the book row was committed, the
    book is marked 'failed' before re-raising. A crash in the middle is
    repaired by recover_stalled_books() at the next startup.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import ExtractionError, NotFoundError
from app.models import Book, BookStatus, Note, Summary
from app.models._columns import utcnow
from app.schemas.book import BookCreate
from app.services.file_service import FileService, file_service
from app.services.highlights import extract_highlight
from app.services.summarization_service import (
    SummarizationService,
    SummaryResult,
    summarization_service,
)
from app.services.text_extraction import PdfTextExtractor, text_extractor

logger = logging.getLogger(__name__)

FALLBACK_NOTICE = (
    "Automatic summary unavailable: the text of this PDF could not be extracted."
)


@dataclass
class IngestionResult:
    book: Book
    summary: Optional[Summary]
    degraded: bool = False


@dataclass(frozen=True)
class PipelineOutput:
    """Everything extract → summarize → highlight produced for one PDF."""
    content: str
    highlights: str
    page_count: int
    result: SummaryResult


def build_fallback_content(book: Book) -> str:
    """Fixed template: failure notice + description, or title/author."""
    if book.description:
        details = book.description
    elif book.author:
        details = f"{book.title} by {book.author}"
    else:
        details = book.title
    return f"{FALLBACK_NOTICE} {details}"


class BookIngestionWorkflow:
    """
    Book ingestion and book-level CRUD.

    Dependencies are injected so tests can swap the extractor and the
    summarizer; the module singleton wires in the real ones.
    """

    def __init__(
        self,
        extractor: PdfTextExtractor,
        summarizer: SummarizationService,
        files: FileService,
        highlight_max_length: int = 180,
    ):
        self.extractor = extractor
        self.summarizer = summarizer
        self.files = files
        self.highlight_max_length = highlight_max_length

    # ── Ingestion ─────────────────────────────────────────────────────────

    async def ingest(
        self,
        db: AsyncSession,
        owner_id: int,
        metadata: BookCreate,
        document_ref: Optional[str] = None,
    ) -> IngestionResult:
        """
        Create a book and, when a PDF was supplied, its summary.

        Steps:
            1. Persist Book ('processing' with a PDF, else 'uploaded')
            2. No PDF → done, no summary
            3. Extract text; ExtractionError → step 6
            4. Summarize (never fails; may be degraded)
            5. Highlight, persist Summary, status 'completed'
            6. Fallback Summary, status 'failed'

        Args:
            document_ref: relative storage path returned by FileService, or None.

        Raises:
            Only unexpected errors (database, storage). Extraction and
            provider failures are absorbed into the result.
        """
        initial_status = BookStatus.PROCESSING if document_ref else BookStatus.UPLOADED
        book = Book(
            title=metadata.title,
            author=metadata.author,
            description=metadata.description,
            pdf_path=document_ref,
            status=initial_status.value,
            owner_id=owner_id,
        )
        db.add(book)
        await db.commit()
        logger.info("Book %s created for user %s (status=%s)", book.id, owner_id, book.status)

        if not document_ref:
            return IngestionResult(book=book, summary=None)

        book_id = book.id
        try:
            return await self._summarize_new_book(db, book, owner_id)
        except Exception:
            logger.error("Ingestion of book %s aborted unexpectedly", book_id, exc_info=True)
            await self.mark_failed(db, book_id)
            raise

    async def _summarize_new_book(
        self, db: AsyncSession, book: Book, owner_id: int
    ) -> IngestionResult:
        try:
            output = await self.run_pipeline(book.pdf_path)
        except ExtractionError as e:
            logger.warning(
                "Extraction failed for book %s, storing fallback summary: %s",
                book.id,
                e.message,
            )
            content = build_fallback_content(book)
            summary = Summary(
                content=content,
                highlights=extract_highlight(content, self.highlight_max_length),
                book_id=book.id,
                created_by_id=owner_id,
            )
            db.add(summary)
            book.status = BookStatus.FAILED.value
            await db.commit()
            return IngestionResult(book=book, summary=summary, degraded=True)

        summary = Summary(
            content=output.content,
            highlights=output.highlights,
            book_id=book.id,
            created_by_id=owner_id,
        )
        db.add(summary)
        book.status = BookStatus.COMPLETED.value
        book.page_count = output.page_count
        await db.commit()

        if output.result.degraded:
            logger.warning(
                "Book %s completed with a degraded summary: %s",
                book.id,
                output.result.reason,
            )
        else:
            logger.info("Book %s completed (summary %s)", book.id, summary.id)
        return IngestionResult(book=book, summary=summary, degraded=output.result.degraded)

    async def run_pipeline(self, document_ref: str) -> PipelineOutput:
        """
        extract → summarize → highlight for a stored PDF. No database access.

        Raises:
            ExtractionError (incl. EmptyDocumentError / InvalidFormatError).
        """
        document = await self.extractor.extract(self.files.resolve(document_ref))
        result = await self.summarizer.summarize(document.text)
        return PipelineOutput(
            content=result.text,
            highlights=extract_highlight(result.text, self.highlight_max_length),
            page_count=document.page_count,
            result=result,
        )

    async def mark_failed(self, db: AsyncSession, book_id: int) -> None:
        """
        Compensating action after an unexpected error: discard the pending
        work and record the book as failed in a fresh transaction.
        """
        try:
            await db.rollback()
            await db.execute(
                update(Book)
                .where(Book.id == book_id)
                .values(status=BookStatus.FAILED.value, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        except Exception:
            logger.error("Could not mark book %s as failed", book_id, exc_info=True)

    async def recover_stalled_books(
        self, db: AsyncSession, older_than_minutes: Optional[int] = None
    ) -> int:
        """
        Mark books stuck in 'processing' as 'failed'.

        Ingestion is request-scoped, so a book still 'processing' long after
        its last update belongs to a request that died with its worker.
        Failed books can be regenerated by their owners.

        Returns:
            Number of books recovered.
        """
        minutes = (
            settings.stale_processing_minutes if older_than_minutes is None else older_than_minutes
        )
        cutoff = utcnow() - timedelta(minutes=minutes)
        result = await db.execute(
            update(Book)
            .where(Book.status == BookStatus.PROCESSING.value, Book.updated_at < cutoff)
            .values(status=BookStatus.FAILED.value, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        recovered = result.rowcount or 0
        if recovered:
            logger.warning("Marked %d stalled book(s) as failed", recovered)
        return recovered

    # ── Book CRUD ─────────────────────────────────────────────────────────

    async def list_books(
        self, db: AsyncSession, owner_id: int
    ) -> List[Tuple[Book, Optional[Summary]]]:
        """The caller's books, newest first, each with its summary (or None)."""
        result = await db.execute(
            select(Book, Summary)
            .outerjoin(Summary, Summary.book_id == Book.id)
            .where(Book.owner_id == owner_id)
            .order_by(Book.created_at.desc(), Book.id.desc())
        )
        return [(book, summary) for book, summary in result.all()]

    async def get_book(self, db: AsyncSession, owner_id: int, book_id: int) -> Book:
        """
        Raises:
            NotFoundError when the book does not exist OR is not the caller's.
        """
        result = await db.execute(
            select(Book).where(Book.id == book_id, Book.owner_id == owner_id)
        )
        book = result.scalar_one_or_none()
        if book is None:
            raise NotFoundError(resource="book", resource_id=book_id)
        return book

    async def get_book_with_summary(
        self, db: AsyncSession, owner_id: int, book_id: int
    ) -> Tuple[Book, Optional[Summary]]:
        book = await self.get_book(db, owner_id, book_id)
        result = await db.execute(select(Summary).where(Summary.book_id == book.id))
        return book, result.scalar_one_or_none()

    async def delete_book(self, db: AsyncSession, owner_id: int, book_id: int) -> Optional[str]:
        """
        Delete a book together with its summary and the summary's notes.

        Returns:
            Absolute path of the stored PDF (for the caller to clean up after
            the response), or None when the book had no PDF.
        """
        book = await self.get_book(db, owner_id, book_id)
        pdf_path = self.files.resolve(book.pdf_path) if book.pdf_path else None

        summary_ids = select(Summary.id).where(Summary.book_id == book.id)
        await db.execute(delete(Note).where(Note.summary_id.in_(summary_ids)))
        await db.execute(delete(Summary).where(Summary.book_id == book.id))
        await db.delete(book)
        await db.commit()

        logger.info("Deleted book %s for user %s", book_id, owner_id)
        return pdf_path


book_workflow = BookIngestionWorkflow(
    extractor=text_extractor,
    summarizer=summarization_service,
    files=file_service,
    highlight_max_length=settings.highlight_max_length,
)
