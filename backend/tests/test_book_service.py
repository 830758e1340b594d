"""
BookBrief Backend — Book Ingestion Workflow Tests
===================================================

Real SQLite session, real SummarizationService, mocked extractor/provider.

What we test:
    ✅ No PDF → 'uploaded', no summary
    ✅ Extraction + summary → 'completed', bounded highlight, page count
    ✅ Provider failure → still 'completed', degraded
    ✅ Extraction failure → 'failed' + fallback summary
    ✅ Unexpected error → book marked 'failed', error re-raised
    ✅ Stalled 'processing' books recovered at startup
    ✅ Listing / lookup scoped to the owner; delete removes summary + notes
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select

from app.exceptions import EmptyDocumentError, LLMServiceError, NotFoundError
from app.models import Book, BookStatus, Note, Summary
from app.models._columns import utcnow
from app.schemas.book import BookCreate
from app.services.book_service import FALLBACK_NOTICE, BookIngestionWorkflow
from app.services.file_service import FileService
from app.services.summarization_service import SummarizationService
from app.services.text_extraction import ExtractedDocument

BOOK_TEXT = "It was a bright cold day in April. " * 40
DOC_REF = "2026/10/19/book.pdf"


@pytest.fixture
def extractor():
    extractor = MagicMock()
    extractor.extract = AsyncMock(
        return_value=ExtractedDocument(text=BOOK_TEXT, page_count=12)
    )
    return extractor


@pytest.fixture
def workflow(extractor, fake_provider, temp_storage):
    return BookIngestionWorkflow(
        extractor=extractor,
        summarizer=SummarizationService(provider=fake_provider),
        files=FileService(storage_root=temp_storage),
        highlight_max_length=180,
    )


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def _status(db, book_id: int) -> str:
    return (await db.execute(select(Book.status).where(Book.id == book_id))).scalar_one()


class TestIngest:
    @pytest.mark.asyncio
    async def test_without_document_book_is_uploaded(self, workflow, db_session, user, extractor):
        result = await workflow.ingest(db_session, user.id, BookCreate(title="Notes"))

        assert result.book.status == BookStatus.UPLOADED.value
        assert result.book.has_document is False
        assert result.summary is None
        assert result.degraded is False
        assert await _count(db_session, Summary) == 0
        extractor.extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_successful_ingestion_completes(self, workflow, db_session, user, fake_provider):
        fake_provider.generate_summary.return_value = "A novel about surveillance. " * 20

        result = await workflow.ingest(
            db_session, user.id, BookCreate(title="1984", author="George Orwell"), DOC_REF
        )

        assert result.book.status == BookStatus.COMPLETED.value
        assert result.book.page_count == 12
        assert result.degraded is False
        assert result.summary.book_id == result.book.id
        assert result.summary.created_by_id == user.id
        assert result.summary.content.startswith("A novel about surveillance.")
        assert 0 < len(result.summary.highlights) <= 183
        assert await _status(db_session, result.book.id) == "completed"

    @pytest.mark.asyncio
    async def test_extractor_receives_absolute_path(self, workflow, db_session, user, extractor, temp_storage):
        await workflow.ingest(db_session, user.id, BookCreate(title="Path"), DOC_REF)

        called_with = extractor.extract.call_args.args[0]
        assert called_with.endswith(DOC_REF)
        assert called_with.startswith(str(FileService(storage_root=temp_storage).storage_root))

    @pytest.mark.asyncio
    async def test_provider_failure_is_degraded_but_completed(self, workflow, db_session, user, fake_provider):
        fake_provider.generate_summary.side_effect = LLMServiceError("provider down")

        result = await workflow.ingest(db_session, user.id, BookCreate(title="Down"), DOC_REF)

        assert result.book.status == BookStatus.COMPLETED.value
        assert result.degraded is True
        assert result.summary.content.startswith("It was a bright cold day in April.")

    @pytest.mark.asyncio
    async def test_extraction_failure_stores_fallback(self, workflow, db_session, user, extractor):
        extractor.extract.side_effect = EmptyDocumentError()

        result = await workflow.ingest(
            db_session,
            user.id,
            BookCreate(title="Scanned", description="A photographed manuscript."),
            DOC_REF,
        )

        assert result.book.status == BookStatus.FAILED.value
        assert result.degraded is True
        assert result.summary.content == f"{FALLBACK_NOTICE} A photographed manuscript."
        assert result.summary.highlights
        assert await _count(db_session, Summary) == 1
        assert await _status(db_session, result.book.id) == "failed"

    @pytest.mark.asyncio
    async def test_fallback_without_description_uses_title_and_author(self, workflow, db_session, user, extractor):
        extractor.extract.side_effect = EmptyDocumentError()

        result = await workflow.ingest(
            db_session, user.id, BookCreate(title="Dune", author="Frank Herbert"), DOC_REF
        )

        assert result.summary.content.endswith("Dune by Frank Herbert")

    @pytest.mark.asyncio
    async def test_unexpected_error_marks_book_failed(self, workflow, db_session, user, extractor):
        extractor.extract.side_effect = RuntimeError("disk on fire")

        with pytest.raises(RuntimeError):
            await workflow.ingest(db_session, user.id, BookCreate(title="Crash"), DOC_REF)

        book_id = (await db_session.execute(select(Book.id))).scalar_one()
        assert await _status(db_session, book_id) == "failed"
        assert await _count(db_session, Summary) == 0


class TestRecovery:
    @pytest.mark.asyncio
    async def test_only_old_processing_books_are_failed(self, workflow, db_session, user):
        old = utcnow() - timedelta(hours=2)
        stalled = Book(title="Stalled", status="processing", owner_id=user.id, updated_at=old)
        fresh = Book(title="Fresh", status="processing", owner_id=user.id)
        done = Book(title="Done", status="completed", owner_id=user.id, updated_at=old)
        db_session.add_all([stalled, fresh, done])
        await db_session.commit()

        recovered = await workflow.recover_stalled_books(db_session, older_than_minutes=30)

        assert recovered == 1
        assert await _status(db_session, stalled.id) == "failed"
        assert await _status(db_session, fresh.id) == "processing"
        assert await _status(db_session, done.id) == "completed"

    @pytest.mark.asyncio
    async def test_zero_minutes_fails_every_processing_book(self, workflow, db_session, user):
        fresh = Book(title="Fresh", status="processing", owner_id=user.id)
        db_session.add(fresh)
        await db_session.commit()

        recovered = await workflow.recover_stalled_books(db_session, older_than_minutes=0)

        assert recovered == 1
        assert await _status(db_session, fresh.id) == "failed"


class TestBookQueries:
    @pytest.mark.asyncio
    async def test_list_is_scoped_and_newest_first(self, workflow, db_session, user, other_user):
        await workflow.ingest(db_session, user.id, BookCreate(title="First"))
        await workflow.ingest(db_session, user.id, BookCreate(title="Second"), DOC_REF)
        await workflow.ingest(db_session, other_user.id, BookCreate(title="Not mine"))

        rows = await workflow.list_books(db_session, user.id)

        assert [book.title for book, _ in rows] == ["Second", "First"]
        assert rows[0][1] is not None  # summarized
        assert rows[1][1] is None

    @pytest.mark.asyncio
    async def test_other_users_book_is_not_found(self, workflow, db_session, user, other_user):
        result = await workflow.ingest(db_session, other_user.id, BookCreate(title="Private"))

        with pytest.raises(NotFoundError):
            await workflow.get_book(db_session, user.id, result.book.id)

    @pytest.mark.asyncio
    async def test_delete_removes_summary_and_notes(self, workflow, db_session, user):
        result = await workflow.ingest(db_session, user.id, BookCreate(title="Gone"), DOC_REF)
        db_session.add(Note(content="remember this", summary_id=result.summary.id, user_id=user.id))
        await db_session.commit()

        pdf_path = await workflow.delete_book(db_session, user.id, result.book.id)

        assert pdf_path.endswith(DOC_REF)
        assert await _count(db_session, Book) == 0
        assert await _count(db_session, Summary) == 0
        assert await _count(db_session, Note) == 0

    @pytest.mark.asyncio
    async def test_delete_without_document_returns_none(self, workflow, db_session, user):
        result = await workflow.ingest(db_session, user.id, BookCreate(title="Paper only"))
        assert await workflow.delete_book(db_session, user.id, result.book.id) is None
