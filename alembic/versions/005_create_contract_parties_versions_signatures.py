"""create contract parties, versions and signatures tables

Revision ID: 005
Revises: 004
Create Date: 2025-01-25 20:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "contract_parties",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("contract_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["contract_id"], ["contracts.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        # Exactly one LANDLORD and one TENANT per contract
        sa.UniqueConstraint("contract_id", "role", name="uq_contract_parties_contract_role"),
    )
    op.create_index("ix_contract_parties_id", "contract_parties", ["id"], unique=False)
    op.create_index(
        "ix_contract_parties_contract_id", "contract_parties", ["contract_id"], unique=False
    )

    op.create_table(
        "contract_versions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("contract_id", sa.Integer(), nullable=False),
        sa.Column("version_no", sa.Integer(), nullable=False),
        sa.Column("template_code", sa.String(64), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["contract_id"], ["contracts.id"]),
        sa.UniqueConstraint(
            "contract_id", "version_no", name="uq_contract_versions_contract_version"
        ),
        sa.CheckConstraint("version_no >= 1", name="ck_contract_versions_version_positive"),
    )
    op.create_index("ix_contract_versions_id", "contract_versions", ["id"], unique=False)
    op.create_index(
        "ix_contract_versions_contract_id", "contract_versions", ["contract_id"], unique=False
    )

    op.create_table(
        "contract_signatures",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("contract_id", sa.Integer(), nullable=False),
        sa.Column("party_id", sa.Integer(), nullable=False),
        sa.Column("signed_at", sa.DateTime(), nullable=False),
        sa.Column("signature_data", sa.String(128), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["contract_id"], ["contracts.id"]),
        sa.ForeignKeyConstraint(["party_id"], ["contract_parties.id"]),
        # At most one signature per party
        sa.UniqueConstraint(
            "contract_id", "party_id", name="uq_contract_signatures_contract_party"
        ),
    )
    op.create_index("ix_contract_signatures_id", "contract_signatures", ["id"], unique=False)
    op.create_index(
        "ix_contract_signatures_contract_id",
        "contract_signatures",
        ["contract_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_contract_signatures_contract_id", table_name="contract_signatures")
    op.drop_index("ix_contract_signatures_id", table_name="contract_signatures")
    op.drop_table("contract_signatures")
    op.drop_index("ix_contract_versions_contract_id", table_name="contract_versions")
    op.drop_index("ix_contract_versions_id", table_name="contract_versions")
    op.drop_table("contract_versions")
    op.drop_index("ix_contract_parties_contract_id", table_name="contract_parties")
    op.drop_index("ix_contract_parties_id", table_name="contract_parties")
    op.drop_table("contract_parties")
