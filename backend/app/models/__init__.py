"""
BookBrief Backend — ORM Models
================================

Importing this package registers every table with Base.metadata, which
Alembic autogenerate and the test fixtures rely on.
"""

from app.models.user import User
from app.models.book import Book, BookStatus
from app.models.summary import Summary
from app.models.note import Note

__all__ = ["User", "Book", "BookStatus", "Summary", "Note"]
