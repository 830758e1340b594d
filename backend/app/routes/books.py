"""
BookBrief Backend — Book Routes
=================================

What:  Upload, list, read and delete books.
How:   Thin handlers: collect multipart fields, validate them into
       BookCreate, store the PDF through FileService, hand over to
       BookIngestionWorkflow, shape the response.

Request Flow (POST /books/upload):
    1. multipart/form-data: title, author?, description?, pdf?
    2. Metadata validated (400 before anything is written)
    3. PDF validated (extension, content type, size) and stored
    4. Workflow ingests; extraction/provider problems still give 201
    5. Unexpected failure → stored PDF removed, error propagates (500)
"""

import logging
from typing import Optional

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    Response,
    UploadFile,
)
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.exceptions import ValidationError
from app.models import Book, Summary, User
from app.schemas.book import (
    BookCreate,
    BookListResponse,
    BookResponse,
    BookUploadResponse,
    BookWithSummaryResponse,
)
from app.schemas.common import ErrorResponse
from app.schemas.summary import SummaryResponse
from app.services.book_service import book_workflow
from app.services.file_service import file_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["Books"])


def _book_with_summary(book: Book, summary: Optional[Summary]) -> BookWithSummaryResponse:
    return BookWithSummaryResponse(
        **BookResponse.model_validate(book).model_dump(),
        summary=SummaryResponse.model_validate(summary) if summary else None,
    )


def _build_metadata(
    title: Optional[str], author: Optional[str], description: Optional[str]
) -> BookCreate:
    try:
        return BookCreate(title=title or "", author=author, description=description)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else None
        raise ValidationError(
            message=first["msg"].removeprefix("Value error, "),
            field=field,
        )


@router.post(
    "/upload",
    status_code=201,
    response_model=BookUploadResponse,
    responses={
        201: {"description": "Book created (summary may be a fallback)", "model": BookUploadResponse},
        400: {"description": "Missing title, non-PDF or oversized file", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
    },
    summary="Upload a book, optionally with its PDF",
    description=(
        "Creates a book. When a PDF is attached its text is extracted and "
        "summarized. Unreadable PDFs still create the book: its status is "
        "'failed' and the summary is a fallback built from the metadata."
    ),
)
async def upload_book(
    title: Optional[str] = Form(default=None, description="Book title (required)"),
    author: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    pdf: Optional[UploadFile] = File(default=None, description="The book as a PDF"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BookUploadResponse:
    metadata = _build_metadata(title, author, description)

    absolute_path: Optional[str] = None
    document_ref: Optional[str] = None
    if pdf is not None and pdf.filename:
        try:
            content = await pdf.read()
            logger.info(
                "Received PDF upload: filename=%s, size=%d bytes",
                pdf.filename,
                len(content),
            )
            absolute_path, document_ref = await file_service.validate_and_store(
                filename=pdf.filename,
                content=content,
                content_type=pdf.content_type,
                content_length=pdf.size,
            )
        finally:
            await pdf.close()

    try:
        result = await book_workflow.ingest(db, current_user.id, metadata, document_ref)
    except Exception:
        if absolute_path:
            await file_service.cleanup_file(absolute_path)
        raise

    if result.summary is None:
        message = "Book created without a PDF"
    elif result.degraded:
        message = "Book created with a fallback summary"
    else:
        message = "Book uploaded and summarized"

    return BookUploadResponse(
        message=message,
        book=BookResponse.model_validate(result.book),
        summary=SummaryResponse.model_validate(result.summary) if result.summary else None,
        degraded=result.degraded,
    )


@router.get(
    "",
    response_model=BookListResponse,
    summary="List the caller's books, newest first",
)
async def list_books(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BookListResponse:
    rows = await book_workflow.list_books(db, current_user.id)
    return BookListResponse(books=[_book_with_summary(book, summary) for book, summary in rows])


@router.get(
    "/{book_id}",
    response_model=BookWithSummaryResponse,
    responses={404: {"description": "Book not found", "model": ErrorResponse}},
    summary="Get one book with its summary",
)
async def get_book(
    book_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BookWithSummaryResponse:
    book, summary = await book_workflow.get_book_with_summary(db, current_user.id, book_id)
    return _book_with_summary(book, summary)


@router.delete(
    "/{book_id}",
    status_code=204,
    responses={404: {"description": "Book not found", "model": ErrorResponse}},
    summary="Delete a book, its summary and notes",
)
async def delete_book(
    book_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    pdf_path = await book_workflow.delete_book(db, current_user.id, book_id)
    if pdf_path:
        # file removal should not delay the response
        background_tasks.add_task(file_service.cleanup_file, pdf_path)
    return Response(status_code=204)
