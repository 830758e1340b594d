"""
BookBrief Backend — Note Model
================================

What:  A user-authored note attached to a summary.

Access rules (enforced in NoteService, not here):
    - read: anyone who owns the book the summary belongs to
    - update/delete: only the note's author (user_id)

Index on (summary_id, created_at) serves the only list query:
"notes for this summary, newest first".
"""

from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models._columns import created_at_column, updated_at_column


class Note(Base):
    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    summary_id: Mapped[int] = mapped_column(
        ForeignKey("summaries.id", ondelete="CASCADE"),
        nullable=False,
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = created_at_column("When the note was written (UTC)")
    updated_at: Mapped[datetime] = updated_at_column("Last edit (UTC)")

    __table_args__ = (
        Index("idx_notes_summary_created", "summary_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, summary_id={self.summary_id}, user_id={self.user_id})>"
