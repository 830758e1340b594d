"""Create users, books, summaries and notes

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

Tables are created parent-first (users → books → summaries → notes) and
dropped in reverse. Column rationale lives in app/models/.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, comment: str) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
        comment=comment,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False, comment="Login identifier, stored lower-cased"),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False, comment="passlib hash of the user's password"),
        _timestamp("created_at", "When the account was created (UTC)"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "books",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("author", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "pdf_path",
            sa.String(255),
            nullable=True,
            comment="Relative path from storage root to the uploaded PDF",
        ),
        sa.Column("page_count", sa.Integer(), nullable=True),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'uploaded'"),
            comment="Ingestion state: uploaded, processing, completed, failed",
        ),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        _timestamp("created_at", "When the book was uploaded (UTC)"),
        _timestamp("updated_at", "Last status or metadata change (UTC)"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    # GET /books: WHERE owner_id = ? ORDER BY created_at DESC
    op.create_index("idx_books_owner_created", "books", ["owner_id", "created_at"])
    # Startup recovery sweep: WHERE status = 'processing' AND updated_at < ?
    op.create_index("idx_books_status_updated", "books", ["status", "updated_at"])

    op.create_table(
        "summaries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("highlights", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("book_id", sa.Integer(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        _timestamp("created_at", "When the summary was first created (UTC)"),
        _timestamp("updated_at", "Last edit or regeneration (UTC)"),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    # One summary per book
    op.create_index("ix_summaries_book_id", "summaries", ["book_id"], unique=True)
    op.create_index("ix_summaries_created_by_id", "summaries", ["created_by_id"])

    op.create_table(
        "notes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("summary_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        _timestamp("created_at", "When the note was written (UTC)"),
        _timestamp("updated_at", "Last edit (UTC)"),
        sa.ForeignKeyConstraint(["summary_id"], ["summaries.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_notes_summary_created", "notes", ["summary_id", "created_at"])
    op.create_index("ix_notes_user_id", "notes", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_notes_user_id", table_name="notes")
    op.drop_index("idx_notes_summary_created", table_name="notes")
    op.drop_table("notes")

    op.drop_index("ix_summaries_created_by_id", table_name="summaries")
    op.drop_index("ix_summaries_book_id", table_name="summaries")
    op.drop_table("summaries")

    op.drop_index("idx_books_status_updated", table_name="books")
    op.drop_index("idx_books_owner_created", table_name="books")
    op.drop_table("books")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
