"""Initial schema: versions, containers, passages.

Revision ID: 001
Revises:
Create Date: 2025-02-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "versions",
        sa.Column("code", sa.String(16), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("language", sa.String(32), server_default=""),
    )
    op.create_table(
        "containers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("version_code", sa.String(16), sa.ForeignKey("versions.code", ondelete="CASCADE"), nullable=False),
        sa.Column("code", sa.String(16), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sort_order", sa.Integer, nullable=False),
        sa.Column("sub_units", sa.Integer, server_default="0"),
        sa.UniqueConstraint("version_code", "code", name="uq_containers_version_code"),
    )
    op.create_table(
        "passages",
        sa.Column("passage_id", sa.String(64), primary_key=True),
        sa.Column("version_code", sa.String(16), sa.ForeignKey("versions.code", ondelete="CASCADE"), nullable=False),
        sa.Column("container_code", sa.String(16), nullable=False),
        sa.Column("container_name", sa.String(255), nullable=False),
        sa.Column("container_order", sa.Integer, nullable=False),
        sa.Column("sub_unit", sa.Integer, nullable=False),
        sa.Column("unit", sa.Integer, nullable=False),
        sa.Column("text", sa.Text, nullable=False),
    )
    op.create_index("ix_passages_version_code", "passages", ["version_code"])
    op.create_index("ix_passages_container_code", "passages", ["container_code"])


def downgrade() -> None:
    op.drop_index("ix_passages_container_code", table_name="passages")
    op.drop_index("ix_passages_version_code", table_name="passages")
    op.drop_table("passages")
    op.drop_table("containers")
    op.drop_table("versions")
