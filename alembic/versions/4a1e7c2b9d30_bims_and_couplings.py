"""bims, power sources and couplings

Revision ID: 4a1e7c2b9d30
Revises:
Create Date: 2026-10-18 10:00:00.000000
"""
from alembic import op
import sqlalchemy as sa


revision = "4a1e7c2b9d30"
down_revision = None
branch_labels = None
depends_on = None

BigIntId = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "bims",
        sa.Column("id", BigIntId, primary_key=True, autoincrement=True),
        sa.Column("company", sa.Text(), nullable=False),
        sa.Column("veh_number", sa.Text(), nullable=False),
        sa.Column("type_code", sa.Text(), nullable=False),
        sa.Column("veh_class", sa.String(255), nullable=False),
        sa.Column("in_service_since", sa.Text(), nullable=True),
        sa.Column("out_of_service_since", sa.Text(), nullable=True),
        sa.Column("manufacturer", sa.Text(), nullable=True),
        sa.Column("depot", sa.Text(), nullable=True),
        sa.Column("other_data", sa.JSON(), nullable=False),
    )
    op.create_index("ix_bims_company_veh_number", "bims", ["company", "veh_number"])

    op.create_table(
        "bim_power_sources",
        sa.Column(
            "bim_id",
            BigIntId,
            sa.ForeignKey("bims.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("power_source", sa.String(255), primary_key=True),
    )

    op.create_table(
        "couplings",
        sa.Column("id", BigIntId, primary_key=True, autoincrement=True),
    )

    op.create_table(
        "coupling_bims",
        sa.Column(
            "coupling_id",
            BigIntId,
            sa.ForeignKey("couplings.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("position", sa.Integer(), primary_key=True),
        sa.Column(
            "bim_id",
            BigIntId,
            sa.ForeignKey("bims.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    op.create_index("ix_coupling_bims_bim_id", "coupling_bims", ["bim_id"])


def downgrade() -> None:
    op.drop_index("ix_coupling_bims_bim_id", table_name="coupling_bims")
    op.drop_table("coupling_bims")
    op.drop_table("couplings")
    op.drop_table("bim_power_sources")
    op.drop_index("ix_bims_company_veh_number", table_name="bims")
    op.drop_table("bims")
