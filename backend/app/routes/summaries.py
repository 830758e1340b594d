"""
BookBrief Backend — Summary Routes
====================================

Per-book summary lifecycle:
    GET    /books/{id}/summary
    PUT    /books/{id}/summary
    DELETE /books/{id}/summary              → book.status = 'uploaded'
    POST   /books/{id}/summary/regenerate   → 500 with error code on failure

Cross-book lookups:
    GET    /summaries
    GET    /summaries/{id}
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models import Book, Summary, User
from app.schemas.common import ErrorResponse
from app.schemas.summary import (
    SummaryBookInfo,
    SummaryResponse,
    SummaryUpdate,
    SummaryWithBookResponse,
)
from app.services.summary_service import summary_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Summaries"])

NOT_FOUND = {404: {"description": "Book or summary not found", "model": ErrorResponse}}


def _with_book(summary: Summary, book: Book) -> SummaryWithBookResponse:
    return SummaryWithBookResponse(
        **SummaryResponse.model_validate(summary).model_dump(),
        book=SummaryBookInfo.model_validate(book),
    )


@router.get(
    "/books/{book_id}/summary",
    response_model=SummaryResponse,
    responses=NOT_FOUND,
    summary="Get the summary of a book",
)
async def get_book_summary(
    book_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SummaryResponse:
    summary = await summary_manager.get_for_book(db, current_user.id, book_id)
    return SummaryResponse.model_validate(summary)


@router.put(
    "/books/{book_id}/summary",
    response_model=SummaryResponse,
    responses={400: {"description": "Empty content", "model": ErrorResponse}, **NOT_FOUND},
    summary="Edit the summary of a book",
)
async def update_book_summary(
    book_id: int,
    body: SummaryUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SummaryResponse:
    summary = await summary_manager.update(
        db, current_user.id, book_id, content=body.content, highlights=body.highlights
    )
    return SummaryResponse.model_validate(summary)


@router.delete(
    "/books/{book_id}/summary",
    status_code=204,
    responses=NOT_FOUND,
    summary="Delete the summary of a book and its notes",
)
async def delete_book_summary(
    book_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await summary_manager.delete(db, current_user.id, book_id)
    return Response(status_code=204)


@router.post(
    "/books/{book_id}/summary/regenerate",
    response_model=SummaryResponse,
    responses={
        **NOT_FOUND,
        500: {
            "description": "no_document, extraction_failed or summarization_failed",
            "model": ErrorResponse,
        },
    },
    summary="Re-run extraction and summarization for a book",
)
async def regenerate_book_summary(
    book_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SummaryResponse:
    summary = await summary_manager.regenerate(db, current_user.id, book_id)
    return SummaryResponse.model_validate(summary)


@router.get(
    "/summaries",
    response_model=List[SummaryWithBookResponse],
    summary="All summaries of the caller's books, newest first",
)
async def list_summaries(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[SummaryWithBookResponse]:
    rows = await summary_manager.list_summaries(db, current_user.id)
    return [_with_book(summary, book) for summary, book in rows]


@router.get(
    "/summaries/{summary_id}",
    response_model=SummaryWithBookResponse,
    responses=NOT_FOUND,
    summary="Get one summary with its book",
)
async def get_summary(
    summary_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SummaryWithBookResponse:
    summary, book = await summary_manager.get_summary(db, current_user.id, summary_id)
    return _with_book(summary, book)
