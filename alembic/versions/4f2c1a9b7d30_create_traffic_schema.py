"""create traffic schema

Revision ID: 4f2c1a9b7d30
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4f2c1a9b7d30"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

vehicle_class = sa.Enum("car", "bus", "tram", "troleibus", "person", name="vehicleclass")
vehicle_kind = sa.Enum("car", "bus", "tram", "troleibus", name="vehiclekind")
station_kind = sa.Enum("BUS", "TRAM", "TROLEIBUS", name="stationkind")
signal_color = sa.Enum("RED", "YELLOW", "GREEN", name="signalcolor")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            onupdate=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("username", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "intersections",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("name", sa.String(255), nullable=False, index=True),
        sa.Column("sector", sa.Integer(), nullable=True),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lng", sa.Float(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "semaphores",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("street", sa.String(255), nullable=True),
        sa.Column("sense", sa.String(50), nullable=True),
        sa.Column(
            "intersection_id",
            sa.Integer(),
            sa.ForeignKey("intersections.id"),
            nullable=False,
            index=True,
        ),
        *_timestamps(),
    )

    op.create_table(
        "color_changes",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column(
            "semaphore_id", sa.Integer(), sa.ForeignKey("semaphores.id"), nullable=False, index=True
        ),
        sa.Column("color", signal_color, nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, index=True),
    )

    op.create_table(
        "stations",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("kind", station_kind, nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sense", sa.String(50), nullable=True),
        sa.Column(
            "intersection_id",
            sa.Integer(),
            sa.ForeignKey("intersections.id"),
            nullable=False,
            index=True,
        ),
        *_timestamps(),
    )

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("kind", vehicle_kind, nullable=False, index=True),
        sa.Column("reg_nr", sa.String(50), nullable=True),
        sa.Column("line", sa.String(50), nullable=True),
        sa.Column("color", sa.String(50), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "stop_events",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column(
            "vehicle_id", sa.Integer(), sa.ForeignKey("vehicles.id"), nullable=False, index=True
        ),
        sa.Column(
            "station_id", sa.Integer(), sa.ForeignKey("stations.id"), nullable=False, index=True
        ),
        sa.Column("stopped_minutes", sa.Integer(), nullable=False),
        sa.Column("expected_arrival", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("actual_arrival", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "crossings",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("vehicle_class", vehicle_class, nullable=False, index=True),
        sa.Column(
            "semaphore_id", sa.Integer(), sa.ForeignKey("semaphores.id"), nullable=False, index=True
        ),
        sa.Column("vehicle_id", sa.Integer(), sa.ForeignKey("vehicles.id"), nullable=True),
        sa.Column("speed", sa.Float(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, index=True),
    )

    # Latest-color lookups and violation checks scan by semaphore, newest first
    op.create_index(
        "ix_color_changes_semaphore_timestamp",
        "color_changes",
        ["semaphore_id", "timestamp"],
    )


def downgrade() -> None:
    op.drop_index("ix_color_changes_semaphore_timestamp", table_name="color_changes")
    op.drop_table("crossings")
    op.drop_table("stop_events")
    op.drop_table("vehicles")
    op.drop_table("stations")
    op.drop_table("color_changes")
    op.drop_table("semaphores")
    op.drop_table("intersections")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (vehicle_class, vehicle_kind, station_kind, signal_color):
        enum.drop(bind, checkfirst=True)
