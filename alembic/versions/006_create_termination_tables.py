"""create termination requests and consents tables

Revision ID: 006
Revises: 005
Create Date: 2025-01-26 19:30:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "termination_requests",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("contract_id", sa.Integer(), nullable=False),
        sa.Column("initiator_party_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("previous_status", sa.String(32), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["contract_id"], ["contracts.id"]),
        sa.ForeignKeyConstraint(["initiator_party_id"], ["contract_parties.id"]),
        sa.CheckConstraint(
            "type IN ('EARLY_TERMINATE', 'NORMAL_EXPIRE')",
            name="ck_termination_requests_type",
        ),
        sa.CheckConstraint(
            "status IN ('SIGNING', 'APPROVED', 'REJECTED', 'COMPLETED')",
            name="ck_termination_requests_status",
        ),
    )
    op.create_index("ix_termination_requests_id", "termination_requests", ["id"], unique=False)
    op.create_index(
        "ix_termination_requests_contract_id",
        "termination_requests",
        ["contract_id"],
        unique=False,
    )

    op.create_table(
        "termination_consents",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("termination_request_id", sa.Integer(), nullable=False),
        sa.Column("party_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("method", sa.String(16), nullable=True),
        sa.Column("signed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["termination_request_id"], ["termination_requests.id"]),
        sa.ForeignKeyConstraint(["party_id"], ["contract_parties.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        # One consent per party per request
        sa.UniqueConstraint(
            "termination_request_id",
            "party_id",
            name="uq_termination_consents_request_party",
        ),
        sa.CheckConstraint(
            "status IN ('PENDING', 'SIGNED')", name="ck_termination_consents_status"
        ),
    )
    op.create_index("ix_termination_consents_id", "termination_consents", ["id"], unique=False)
    op.create_index(
        "ix_termination_consents_termination_request_id",
        "termination_consents",
        ["termination_request_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        "ix_termination_consents_termination_request_id", table_name="termination_consents"
    )
    op.drop_index("ix_termination_consents_id", table_name="termination_consents")
    op.drop_table("termination_consents")
    op.drop_index("ix_termination_requests_contract_id", table_name="termination_requests")
    op.drop_index("ix_termination_requests_id", table_name="termination_requests")
    op.drop_table("termination_requests")
