"""
BookBrief Backend — Summary Model
===================================

What:  The (single) summary of a book plus its short highlight.
Why:   Separate from `books` so it can be deleted and regenerated
       independently while the book row stays.

Constraint:
    At most one summary per book, enforced by the UNIQUE constraint on
    book_id, which is also what regeneration upserts against.
"""

from datetime import datetime

from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models._columns import created_at_column, updated_at_column


class Summary(Base):
    __tablename__ = "summaries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Bounded by HIGHLIGHT_MAX_LENGTH (+ ellipsis) when computed by the server
    highlights: Mapped[str] = mapped_column(Text, nullable=False, default="")

    book_id: Mapped[int] = mapped_column(
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    created_by_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = created_at_column("When the summary was first created (UTC)")
    updated_at: Mapped[datetime] = updated_at_column("Last edit or regeneration (UTC)")

    def __repr__(self) -> str:
        return f"<Summary(id={self.id}, book_id={self.book_id})>"
