"""
BookBrief Backend — Note Service
==================================

What:  Create, list, edit and delete the reader's notes on a summary.
Why:   Notes are the only user-authored content besides summary edits;
       they must stay private to the owner of the summarized book.
How:   Every query is scoped by the caller: notes are attached only to
       summaries of books the caller owns, and edited/deleted only by
       their author. Anything else is a NotFoundError (404).
Who:   Called by routes/notes.py.

Listing order:
    created_at DESC, then id DESC so notes created within the same clock
    tick still come back in a stable order.
"""

import logging
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError
from app.models import Book, Note, Summary, User
from app.schemas.auth import UserBrief
from app.schemas.note import NoteListResponse, NoteResponse

logger = logging.getLogger(__name__)


def _to_response(note: Note, author: User) -> NoteResponse:
    return NoteResponse(
        id=note.id,
        content=note.content,
        summary_id=note.summary_id,
        user_id=note.user_id,
        created_at=note.created_at,
        updated_at=note.updated_at,
        user=UserBrief.model_validate(author),
    )


class NoteService:
    """
    Stateless: receives the session and the authenticated user per call.

    Error Handling Strategy:
        NotFoundError propagates untouched; SQLAlchemy failures are logged
        and wrapped in DatabaseError so SQL never reaches the client.
    """

    async def _get_accessible_summary(
        self, db: AsyncSession, user_id: int, summary_id: int
    ) -> Summary:
        result = await db.execute(
            select(Summary)
            .join(Book, Book.id == Summary.book_id)
            .where(Summary.id == summary_id, Book.owner_id == user_id)
        )
        summary = result.scalar_one_or_none()
        if summary is None:
            raise NotFoundError(resource="summary", resource_id=summary_id)
        return summary

    async def _get_own_note(self, db: AsyncSession, user_id: int, note_id: int) -> Note:
        result = await db.execute(
            select(Note).where(Note.id == note_id, Note.user_id == user_id)
        )
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError(resource="note", resource_id=note_id)
        return note

    async def add_note(
        self, db: AsyncSession, user: User, summary_id: int, content: str
    ) -> NoteResponse:
        """
        Attach a note to a summary of one of the caller's books.

        Raises:
            NotFoundError: summary missing or belongs to another user's book
            DatabaseError: insert failed
        """
        summary = await self._get_accessible_summary(db, user.id, summary_id)
        try:
            note = Note(content=content, summary_id=summary.id, user_id=user.id)
            db.add(note)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error adding note to summary %s: %s", summary_id, e)
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"summary_id": summary_id},
            )
        logger.info("Note %s added to summary %s by user %s", note.id, summary_id, user.id)
        return _to_response(note, user)

    async def list_notes(
        self, db: AsyncSession, user_id: int, summary_id: int
    ) -> NoteListResponse:
        """
        Notes on a summary with their authors, newest first.

        Query plan:
            SELECT notes.*, users.* FROM notes JOIN users ON users.id = notes.user_id
            WHERE notes.summary_id = :id ORDER BY created_at DESC, id DESC
            → idx_notes_summary_created
        """
        await self._get_accessible_summary(db, user_id, summary_id)
        try:
            result = await db.execute(
                select(Note, User)
                .join(User, User.id == Note.user_id)
                .where(Note.summary_id == summary_id)
                .order_by(Note.created_at.desc(), Note.id.desc())
            )
            rows: List[Tuple[Note, User]] = list(result.all())
        except SQLAlchemyError as e:
            logger.error("Database error listing notes of summary %s: %s", summary_id, e)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"summary_id": summary_id},
            )
        return NoteListResponse(notes=[_to_response(note, author) for note, author in rows])

    async def update_note(
        self, db: AsyncSession, user: User, note_id: int, content: str
    ) -> NoteResponse:
        """Only the author can edit; anyone else gets NotFoundError."""
        note = await self._get_own_note(db, user.id, note_id)
        note.content = content
        await db.commit()
        logger.info("Note %s edited by user %s", note_id, user.id)
        return _to_response(note, user)

    async def delete_note(self, db: AsyncSession, user: User, note_id: int) -> None:
        note = await self._get_own_note(db, user.id, note_id)
        await db.delete(note)
        await db.commit()
        logger.info("Note %s deleted by user %s", note_id, user.id)


note_service = NoteService()
