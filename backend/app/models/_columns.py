"""Column helpers shared by every model."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, text
from sqlalchemy.orm import mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def created_at_column(comment: str):
    # TIMESTAMP WITH TIME ZONE, values always UTC
    return mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment=comment,
    )


def updated_at_column(comment: str):
    return mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment=comment,
    )
