"""profiles, owners, bookings, driver_locations, trucks

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 08:00:00
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

role = sa.Enum("CUSTOMER", "DRIVER", "OWNER", name="role")
booking_status = sa.Enum("PENDING", "ACCEPTED", "COMPLETED", name="bookingstatus")


def upgrade():
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(255)),
        sa.Column("full_name", sa.String(200)),
        sa.Column("role", role, nullable=False),
        sa.Column("phone", sa.String(50)),
        sa.Column("driving_license", sa.String(15)),
        sa.Column("vehicle_number", sa.String(20)),
        sa.Column("vehicle_capacity", sa.Numeric(10, 2)),
        sa.Column("company_name", sa.String(200)),
        sa.Column("gst_number", sa.String(20)),
        sa.Column("truck_count", sa.Integer),
        sa.Column("company_address", sa.String(500)),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_profiles_role", "profiles", ["role"])

    op.create_table(
        "owners",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("owner_name", sa.String(200)),
        sa.Column("company_name", sa.String(200)),
        sa.Column("gst_number", sa.String(20)),
        sa.Column("total_trucks", sa.Integer),
        sa.Column("company_address", sa.String(500)),
        sa.Column("phone", sa.String(50)),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("customer_id", sa.String(64), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("driver_id", sa.String(64), sa.ForeignKey("profiles.id")),
        sa.Column("from_city", sa.String(120), nullable=False),
        sa.Column("to_city", sa.String(120), nullable=False),
        sa.Column("load_description", sa.String(500), nullable=False),
        sa.Column("status", booking_status, nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint(
            "(driver_id IS NULL) = (status = 'PENDING')",
            name="ck_bookings_driver_matches_status",
        ),
    )
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"])
    op.create_index("ix_bookings_driver_id", "bookings", ["driver_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_created_at", "bookings", ["created_at"])

    op.create_table(
        "driver_locations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("driver_id", sa.String(64), nullable=False),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_driver_locations_driver_id", "driver_locations", ["driver_id"], unique=True)
    op.create_index("ix_driver_locations_updated_at", "driver_locations", ["updated_at"])

    op.create_table(
        "trucks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("truck_number", sa.String(20), nullable=False),
        sa.Column("model", sa.String(120)),
        sa.Column("capacity", sa.Numeric(10, 2)),
        sa.Column("status", sa.String(30), nullable=False, server_default="available"),
        sa.Column("driver_id", sa.String(64)),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_trucks_owner_id", "trucks", ["owner_id"])

    op.create_table(
        "truck_earnings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("truck_id", sa.Integer, sa.ForeignKey("trucks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_truck_earnings_truck_id", "truck_earnings", ["truck_id"])


def downgrade():
    op.drop_table("truck_earnings")
    op.drop_table("trucks")
    op.drop_table("driver_locations")
    op.drop_table("bookings")
    op.drop_table("owners")
    op.drop_table("profiles")
    booking_status.drop(op.get_bind(), checkfirst=True)
    role.drop(op.get_bind(), checkfirst=True)
