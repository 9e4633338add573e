"""create contracts table

Revision ID: 004
Revises: 003
Create Date: 2025-01-24 23:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "contracts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("unit_id", sa.Integer(), nullable=False),
        sa.Column("landlord_id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("pending_end_date", sa.Date(), nullable=True),
        sa.Column("deposit_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("fee_detail", sa.Text(), nullable=True),
        sa.Column("template_code", sa.String(64), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["unit_id"], ["units.id"]),
        sa.ForeignKeyConstraint(["landlord_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["tenant_id"], ["users.id"]),
        # CHECK constraint: the term must be positive; the minimum term is a configurable policy
        sa.CheckConstraint("end_date > start_date", name="ck_contracts_end_after_start"),
        sa.CheckConstraint("deposit_amount >= 0", name="ck_contracts_deposit_non_negative"),
        sa.CheckConstraint(
            "status IN ('DRAFT', 'SENT', 'SIGNED', 'ACTIVE', 'TERMINATION_PENDING', 'CANCELLED', 'EXPIRED')",
            name="ck_contracts_status",
        ),
    )
    op.create_index("ix_contracts_id", "contracts", ["id"], unique=False)
    op.create_index("ix_contracts_unit_id", "contracts", ["unit_id"], unique=False)
    op.create_index("ix_contracts_landlord_id", "contracts", ["landlord_id"], unique=False)
    op.create_index("ix_contracts_tenant_id", "contracts", ["tenant_id"], unique=False)
    op.create_index("ix_contracts_status", "contracts", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_contracts_status", table_name="contracts")
    op.drop_index("ix_contracts_tenant_id", table_name="contracts")
    op.drop_index("ix_contracts_landlord_id", table_name="contracts")
    op.drop_index("ix_contracts_unit_id", table_name="contracts")
    op.drop_index("ix_contracts_id", table_name="contracts")
    op.drop_table("contracts")
