"""Create users and requests tables.

Revision ID: 0001
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

user_role = postgresql.ENUM("trucker", "provider", name="user_role")
service_type = postgresql.ENUM(
    "towing", "repair", "mechanic", "tire_repair", "truck_wash", "hose_repair",
    name="service_type",
)
request_status = postgresql.ENUM(
    "pending", "accepted", "in_progress", "completed", "cancelled",
    name="request_status",
)
urgency_level = postgresql.ENUM("low", "medium", "high", name="urgency_level")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="trucker"),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("location", sa.Text(), nullable=True, server_default=""),
        sa.Column("services", postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column("service_radius", sa.Integer(), nullable=True),
        sa.Column("push_token", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_push_token", "users", ["push_token"], unique=False)

    op.create_table(
        "requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("trucker_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("provider_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("location", sa.Text(), nullable=False),
        sa.Column("coordinates", postgresql.JSONB(), nullable=False),
        sa.Column("service_type", service_type, nullable=False),
        sa.Column("status", request_status, nullable=False, server_default="pending"),
        sa.Column("urgency", urgency_level, nullable=False, server_default="medium"),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("estimated_cost", sa.Numeric(10, 2), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_requests_trucker_id", "requests", ["trucker_id"], unique=False)


def downgrade():
    op.drop_index("ix_requests_trucker_id", table_name="requests")
    op.drop_table("requests")
    op.drop_index("ix_users_push_token", table_name="users")
    op.drop_table("users")
    for enum_type in (urgency_level, request_status, service_type, user_role):
        enum_type.drop(op.get_bind(), checkfirst=True)
