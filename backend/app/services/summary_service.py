"""
BookBrief Backend — Summary Lifecycle
=======================================

What:  Read, edit, delete and regenerate the summary of a book; list the
       caller's summaries across books.
Why:   Summaries outlive the upload request: users correct them by hand,
       delete them, or ask for a fresh one once a provider is available.
How:   Ownership is enforced through the book (404 for foreign books).
       Regeneration reuses BookIngestionWorkflow.run_pipeline() and, unlike
       upload, surfaces failures to the caller.

Status side effects:
    delete      → book.status = 'uploaded'
    regenerate  → 'processing' (commit) → 'completed' | 'failed'
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    ExtractionError,
    NoDocumentError,
    NotFoundError,
    SummarizationError,
)
from app.models import Book, BookStatus, Note, Summary
from app.services.book_service import BookIngestionWorkflow, book_workflow
from app.services.highlights import extract_highlight

logger = logging.getLogger(__name__)


class SummaryLifecycleManager:
    def __init__(
        self,
        workflow: BookIngestionWorkflow,
        honor_client_highlights: bool = True,
    ):
        self.workflow = workflow
        self.honor_client_highlights = honor_client_highlights

    async def _find_for_book(self, db: AsyncSession, book_id: int) -> Optional[Summary]:
        result = await db.execute(select(Summary).where(Summary.book_id == book_id))
        return result.scalar_one_or_none()

    async def get_for_book(self, db: AsyncSession, owner_id: int, book_id: int) -> Summary:
        """
        Raises:
            NotFoundError: book missing/foreign, or the book has no summary.
        """
        book = await self.workflow.get_book(db, owner_id, book_id)
        summary = await self._find_for_book(db, book.id)
        if summary is None:
            raise NotFoundError(resource="summary", context={"book_id": book_id})
        return summary

    async def update(
        self,
        db: AsyncSession,
        owner_id: int,
        book_id: int,
        content: str,
        highlights: Optional[str] = None,
    ) -> Summary:
        """
        Replace the summary text.

        Client highlights are stored verbatim when honor_client_highlights is
        set; otherwise (or when none are given) they are recomputed.
        """
        summary = await self.get_for_book(db, owner_id, book_id)
        summary.content = content
        if highlights is not None and self.honor_client_highlights:
            summary.highlights = highlights
        else:
            summary.highlights = extract_highlight(
                content, self.workflow.highlight_max_length
            )
        await db.commit()
        logger.info("Summary %s of book %s edited by user %s", summary.id, book_id, owner_id)
        return summary

    async def delete(self, db: AsyncSession, owner_id: int, book_id: int) -> None:
        """Remove the summary and its notes; the book falls back to 'uploaded'."""
        book = await self.workflow.get_book(db, owner_id, book_id)
        summary = await self._find_for_book(db, book.id)
        if summary is None:
            raise NotFoundError(resource="summary", context={"book_id": book_id})

        await db.execute(delete(Note).where(Note.summary_id == summary.id))
        await db.delete(summary)
        book.status = BookStatus.UPLOADED.value
        await db.commit()
        logger.info("Summary of book %s deleted by user %s", book_id, owner_id)

    async def regenerate(self, db: AsyncSession, owner_id: int, book_id: int) -> Summary:
        """
        Re-run extract → summarize → highlight and upsert the summary.

        Raises:
            NotFoundError:      book missing or foreign
            NoDocumentError:    book has no PDF (status unchanged)
            ExtractionError:    PDF unreadable (status → 'failed')
            SummarizationError: provider could not produce a summary
                                (status → 'failed')
        """
        book = await self.workflow.get_book(db, owner_id, book_id)
        if not book.pdf_path:
            raise NoDocumentError(book_id=book.id)

        book.status = BookStatus.PROCESSING.value
        await db.commit()

        try:
            output = await self.workflow.run_pipeline(book.pdf_path)
            if output.result.degraded:
                raise SummarizationError(
                    context={"book_id": book_id, "reason": output.result.reason}
                )

            summary = await self._find_for_book(db, book_id)
            if summary is None:
                summary = Summary(book_id=book_id, created_by_id=owner_id)
                db.add(summary)
            summary.content = output.content
            summary.highlights = output.highlights
            book.status = BookStatus.COMPLETED.value
            book.page_count = output.page_count
            await db.commit()
        except (ExtractionError, SummarizationError) as e:
            logger.warning("Regeneration of book %s failed: %s", book_id, e.message)
            book.status = BookStatus.FAILED.value
            await db.commit()
            raise
        except Exception:
            # Includes a failed final commit (e.g. a concurrent regenerate won the book_id race)
            logger.error("Regeneration of book %s aborted unexpectedly", book_id, exc_info=True)
            await self.workflow.mark_failed(db, book_id)
            raise

        logger.info("Summary of book %s regenerated (summary %s)", book_id, summary.id)
        return summary

    async def list_summaries(
        self, db: AsyncSession, user_id: int
    ) -> List[Tuple[Summary, Book]]:
        """All summaries of the caller's books, newest first."""
        result = await db.execute(
            select(Summary, Book)
            .join(Book, Book.id == Summary.book_id)
            .where(Book.owner_id == user_id)
            .order_by(Summary.created_at.desc(), Summary.id.desc())
        )
        return [(summary, book) for summary, book in result.all()]

    async def get_summary(
        self, db: AsyncSession, user_id: int, summary_id: int
    ) -> Tuple[Summary, Book]:
        result = await db.execute(
            select(Summary, Book)
            .join(Book, Book.id == Summary.book_id)
            .where(Summary.id == summary_id, Book.owner_id == user_id)
        )
        row = result.first()
        if row is None:
            raise NotFoundError(resource="summary", resource_id=summary_id)
        return row[0], row[1]


summary_manager = SummaryLifecycleManager(
    workflow=book_workflow,
    honor_client_highlights=settings.honor_client_highlights,
)
