"""
BookBrief Backend — User Model
================================

What:  Account that owns books and authors notes.
Why:   Every book/summary/note query is scoped by a user id; this table is
       where those ids come from.

The password is never stored: only the passlib hash (see app.security).
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models._columns import created_at_column


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Unique index doubles as the login lookup path
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Login identifier, stored lower-cased",
    )

    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="passlib hash of the user's password",
    )

    created_at: Mapped[datetime] = created_at_column("When the account was created (UTC)")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
