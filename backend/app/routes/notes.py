"""
BookBrief Backend — Note Routes
=================================

What:  Reader notes attached to a summary.
How:   Delegates to NoteService, which scopes every query by the caller.

    POST   /summaries/{id}/notes   → 201
    GET    /summaries/{id}/notes   → 200, newest first
    PUT    /notes/{id}             → 200 (author only)
    DELETE /notes/{id}             → 204 (author only)
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models import User
from app.schemas.common import ErrorResponse
from app.schemas.note import NoteListResponse, NoteMutationResponse, NoteWrite
from app.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])


@router.post(
    "/summaries/{summary_id}/notes",
    status_code=201,
    response_model=NoteMutationResponse,
    responses={
        400: {"description": "Empty note", "model": ErrorResponse},
        404: {"description": "Summary not found", "model": ErrorResponse},
    },
    summary="Add a note to a summary",
)
async def add_note(
    summary_id: int,
    body: NoteWrite,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteMutationResponse:
    note = await note_service.add_note(db, current_user, summary_id, body.content)
    return NoteMutationResponse(note=note, message="Note added")


@router.get(
    "/summaries/{summary_id}/notes",
    response_model=NoteListResponse,
    responses={404: {"description": "Summary not found", "model": ErrorResponse}},
    summary="List the notes on a summary",
)
async def list_notes(
    summary_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    return await note_service.list_notes(db, current_user.id, summary_id)


@router.put(
    "/notes/{note_id}",
    response_model=NoteMutationResponse,
    responses={
        400: {"description": "Empty note", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Edit one of your notes",
)
async def update_note(
    note_id: int,
    body: NoteWrite,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteMutationResponse:
    note = await note_service.update_note(db, current_user, note_id, body.content)
    return NoteMutationResponse(note=note, message="Note updated")


@router.delete(
    "/notes/{note_id}",
    status_code=204,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Delete one of your notes",
)
async def delete_note(
    note_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await note_service.delete_note(db, current_user, note_id)
    return Response(status_code=204)
