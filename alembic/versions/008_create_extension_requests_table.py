"""create extension requests table

Revision ID: 008
Revises: 007
Create Date: 2025-01-27 18:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "extension_requests",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("contract_id", sa.Integer(), nullable=False),
        sa.Column("requested_by_party_id", sa.Integer(), nullable=False),
        sa.Column("current_end_date", sa.Date(), nullable=False),
        sa.Column("requested_end_date", sa.Date(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("decision_note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("decided_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["contract_id"], ["contracts.id"]),
        sa.ForeignKeyConstraint(["requested_by_party_id"], ["contract_parties.id"]),
        sa.CheckConstraint(
            "requested_end_date > current_end_date",
            name="ck_extension_requests_later_end_date",
        ),
        sa.CheckConstraint(
            "status IN ('PENDING', 'ACCEPTED', 'DECLINED')",
            name="ck_extension_requests_status",
        ),
    )
    op.create_index("ix_extension_requests_id", "extension_requests", ["id"], unique=False)
    op.create_index(
        "ix_extension_requests_contract_id",
        "extension_requests",
        ["contract_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_extension_requests_contract_id", table_name="extension_requests")
    op.drop_index("ix_extension_requests_id", table_name="extension_requests")
    op.drop_table("extension_requests")
