"""Initial offline form schema.

Revision ID: 001_offline_forms_initial
Revises:
Create Date: 2026-10-17

"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001_offline_forms_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(bind, name: str) -> bool:
    return sa.inspect(bind).has_table(name)


def _has_index(bind, table_name: str, index_name: str) -> bool:
    indexes = sa.inspect(bind).get_indexes(table_name)
    return any(idx.get("name") == index_name for idx in indexes)


def _ensure_index(bind, table_name: str, column: str) -> None:
    name = f"ix_{table_name}_{column}"
    if _has_table(bind, table_name) and not _has_index(bind, table_name, name):
        op.create_index(name, table_name, [column], unique=False)


def upgrade() -> None:
    bind = op.get_bind()

    if not _has_table(bind, "offline_form"):
        op.create_table(
            "offline_form",
            sa.Column("remote_id", sa.String(length=100), nullable=True),
            sa.Column("reference_number", sa.String(length=100), nullable=True),
            sa.Column("payload", sa.Text(), nullable=True),
            sa.Column("form_type", sa.String(length=100), nullable=False),
            sa.Column("form_category", sa.String(length=100), nullable=True),
            sa.Column("sync_flag", sa.Boolean(), nullable=False),
            sa.Column("sync_status", sa.String(length=20), nullable=False),
            sa.Column("status", sa.String(length=30), nullable=False),
            sa.Column("created_by", sa.String(length=100), nullable=True),
            sa.Column("created_on", sa.DateTime(timezone=True), nullable=False),
            sa.Column("last_modified_by", sa.String(length=100), nullable=True),
            sa.Column("last_modified_on", sa.DateTime(timezone=True), nullable=True),
            sa.Column("synced_on", sa.DateTime(timezone=True), nullable=True),
            sa.Column("sync_attempted_on", sa.DateTime(timezone=True), nullable=True),
            sa.Column("deleted_by", sa.String(length=100), nullable=True),
            sa.Column("deleted_on", sa.DateTime(timezone=True), nullable=True),
            sa.Column("customer_name", sa.String(length=255), nullable=True),
            sa.Column("customer_id", sa.String(length=100), nullable=True),
            sa.Column("branch", sa.String(length=100), nullable=True),
            sa.Column("date_of_birth", sa.String(length=30), nullable=True),
            sa.Column("country_of_origin", sa.String(length=100), nullable=True),
            sa.Column("id_type", sa.String(length=50), nullable=True),
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
    for column in ("form_type", "status", "created_on", "customer_id"):
        _ensure_index(bind, "offline_form", column)

    if not _has_table(bind, "form_history"):
        op.create_table(
            "form_history",
            sa.Column("form_id", sa.Uuid(), nullable=False),
            sa.Column("created_on", sa.DateTime(timezone=True), nullable=False),
            sa.Column("remark", sa.Text(), nullable=True),
            sa.Column("error_message", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("category_code", sa.String(length=30), nullable=True),
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.ForeignKeyConstraint(["form_id"], ["offline_form.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
    for column in ("form_id", "created_on"):
        _ensure_index(bind, "form_history", column)


def downgrade() -> None:
    bind = op.get_bind()
    if _has_table(bind, "form_history"):
        op.drop_table("form_history")
    if _has_table(bind, "offline_form"):
        op.drop_table("offline_form")
