"""Initial GrantIQ schema.

Revision ID: 001
Revises:
Create Date: 2025-01-15
"""
from typing import Sequence, Union
from alembic import op
from sqlalchemy import inspect
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

application_status = postgresql.ENUM("draft", "complete", name="applicationstatus", create_type=False)
attachment_status = postgresql.ENUM("pending", "uploaded", name="attachmentstatus", create_type=False)
version_source = postgresql.ENUM("user", "ai-generated", "ai-modified", name="versionsource", create_type=False)


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _application_fk() -> sa.Column:
    return sa.Column(
        "application_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    """Create all tables (idempotent)."""
    if table_exists("users"):
        return

    bind = op.get_bind()
    application_status.create(bind, checkfirst=True)
    attachment_status.create(bind, checkfirst=True)
    version_source.create(bind, checkfirst=True)

    op.create_table(
        "users",
        _id_column(),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        _created_at(),
    )

    op.create_table(
        "applications",
        _id_column(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("mechanism", sa.String(50), nullable=False),
        sa.Column("status", application_status, nullable=False, server_default="draft"),
        _created_at(),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_applications_user_id", "applications", ["user_id"])

    op.create_table(
        "sections",
        _id_column(),
        _application_fk(),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("page_limit", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("page_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("required_headings", sa.JSON(), nullable=True),
        sa.Column("is_valid", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("architecture", sa.JSON(), nullable=True),
        sa.Column("dependency_map", sa.JSON(), nullable=True),
        sa.Column("score", sa.JSON(), nullable=True),
        sa.Column("risk", sa.JSON(), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_sections_application_id", "sections", ["application_id"])

    op.create_table(
        "section_versions",
        _id_column(),
        sa.Column(
            "section_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("sections.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("source", version_source, nullable=False, server_default="user"),
        sa.Column("change_description", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_section_versions_section_id", "section_versions", ["section_id"])

    op.create_table(
        "attachments",
        _id_column(),
        _application_fk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("file_url", sa.Text(), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("status", attachment_status, nullable=False, server_default="pending"),
        _created_at(),
    )
    op.create_index("ix_attachments_application_id", "attachments", ["application_id"])

    op.create_table(
        "validation_results",
        _id_column(),
        _application_fk(),
        sa.Column("errors", sa.JSON(), nullable=False),
        sa.Column("warnings", sa.JSON(), nullable=False),
        sa.Column("is_valid", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )

    op.create_table(
        "budget_items",
        _id_column(),
        _application_fk(),
        sa.Column("fiscal_year", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("justification", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_budget_items_application_id", "budget_items", ["application_id"])

    op.create_table(
        "reference_entries",
        _id_column(),
        _application_fk(),
        sa.Column("reference_text", sa.Text(), nullable=False),
        sa.Column("pmid", sa.String(20), nullable=True),
        sa.Column("doi", sa.Text(), nullable=True),
        sa.Column("verification_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("verification_result", sa.JSON(), nullable=True),
        sa.Column("verified_at", sa.TIMESTAMP(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_reference_entries_application_id", "reference_entries", ["application_id"])


def downgrade() -> None:
    op.drop_index("ix_reference_entries_application_id", table_name="reference_entries")
    op.drop_table("reference_entries")
    op.drop_index("ix_budget_items_application_id", table_name="budget_items")
    op.drop_table("budget_items")
    op.drop_table("validation_results")
    op.drop_index("ix_attachments_application_id", table_name="attachments")
    op.drop_table("attachments")
    op.drop_index("ix_section_versions_section_id", table_name="section_versions")
    op.drop_table("section_versions")
    op.drop_index("ix_sections_application_id", table_name="sections")
    op.drop_table("sections")
    op.drop_index("ix_applications_user_id", table_name="applications")
    op.drop_table("applications")
    op.drop_table("users")

    bind = op.get_bind()
    version_source.drop(bind, checkfirst=True)
    attachment_status.drop(bind, checkfirst=True)
    application_status.drop(bind, checkfirst=True)
