"""create_city_tables

Revision ID: 3f2a9c1d7b10
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create cities and points_of_interest tables."""
    op.create_table(
        "cities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=200), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_cities")),
    )
    op.create_index(op.f("ix_cities_name"), "cities", ["name"], unique=False)

    op.create_table(
        "points_of_interest",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=200), nullable=True),
        sa.Column("city_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["city_id"],
            ["cities.id"],
            name=op.f("fk_points_of_interest_city_id_cities"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_points_of_interest")),
    )
    op.create_index(
        op.f("ix_points_of_interest_city_id"), "points_of_interest", ["city_id"], unique=False
    )


def downgrade() -> None:
    """Drop points_of_interest and cities tables."""
    op.drop_index(op.f("ix_points_of_interest_city_id"), table_name="points_of_interest")
    op.drop_table("points_of_interest")
    op.drop_index(op.f("ix_cities_name"), table_name="cities")
    op.drop_table("cities")
