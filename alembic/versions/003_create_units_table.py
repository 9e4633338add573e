"""create units table

Revision ID: 003
Revises: 002
Create Date: 2025-01-23 21:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "units",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("landlord_id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("property_name", sa.String(255), nullable=False),
        sa.Column("address_line", sa.String(512), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["landlord_id"], ["users.id"]),
        # A landlord cannot register the same unit code twice in one property
        sa.UniqueConstraint(
            "landlord_id", "property_name", "code", name="uq_units_landlord_property_code"
        ),
    )
    op.create_index("ix_units_id", "units", ["id"], unique=False)
    op.create_index("ix_units_landlord_id", "units", ["landlord_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_units_landlord_id", table_name="units")
    op.drop_index("ix_units_id", table_name="units")
    op.drop_table("units")
