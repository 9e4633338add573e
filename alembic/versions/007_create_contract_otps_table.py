"""create contract otps table

Revision ID: 007
Revises: 006
Create Date: 2025-01-26 21:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "contract_otps",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("contract_id", sa.Integer(), nullable=False),
        sa.Column("party_id", sa.Integer(), nullable=False),
        sa.Column("purpose", sa.String(16), nullable=False),
        sa.Column("termination_request_id", sa.Integer(), nullable=True),
        sa.Column("code_hash", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("consumed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["contract_id"], ["contracts.id"]),
        sa.ForeignKeyConstraint(["party_id"], ["contract_parties.id"]),
        sa.ForeignKeyConstraint(["termination_request_id"], ["termination_requests.id"]),
        sa.CheckConstraint(
            "purpose IN ('SIGN', 'TERMINATION')", name="ck_contract_otps_purpose"
        ),
    )
    op.create_index("ix_contract_otps_id", "contract_otps", ["id"], unique=False)
    op.create_index(
        "ix_contract_otps_contract_id", "contract_otps", ["contract_id"], unique=False
    )
    op.create_index("ix_contract_otps_party_id", "contract_otps", ["party_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_contract_otps_party_id", table_name="contract_otps")
    op.drop_index("ix_contract_otps_contract_id", table_name="contract_otps")
    op.drop_index("ix_contract_otps_id", table_name="contract_otps")
    op.drop_table("contract_otps")
