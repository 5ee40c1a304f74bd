"""create audit logs and retention policy tables

Revision ID: create_audit_logs
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic
revision = "create_audit_logs"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        # Target of the mutation
        sa.Column("table_name", sa.String(100), nullable=False),
        sa.Column("record_id", sa.Text(), nullable=False),
        sa.Column("operation", sa.String(10), nullable=False),
        # Actor snapshot (no foreign key, history outlives the user)
        sa.Column("actor_id", sa.Text(), nullable=True),
        sa.Column("actor_email", sa.Text(), nullable=True),
        sa.Column("actor_role", sa.Text(), nullable=True),
        # Change data
        sa.Column("old_values", JSONB, nullable=True),
        sa.Column("new_values", JSONB, nullable=True),
        sa.Column("changed_fields", JSONB, nullable=True),
        # Request context
        sa.Column("ip_address", sa.Text(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("request_id", sa.Text(), nullable=True),
        sa.Column("session_id", sa.Text(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("source", sa.String(20), nullable=False, server_default="web"),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "operation IN ('INSERT', 'UPDATE', 'DELETE')", name="audit_logs_operation_check"
        ),
        sa.CheckConstraint(
            "source IN ('web', 'api', 'system', 'migration')", name="audit_logs_source_check"
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("audit_logs_table_name_idx", "audit_logs", ["table_name"])
    op.create_index("audit_logs_record_id_idx", "audit_logs", ["record_id"])
    op.create_index("audit_logs_actor_id_idx", "audit_logs", ["actor_id"])
    op.create_index("audit_logs_operation_idx", "audit_logs", ["operation"])
    op.create_index("audit_logs_created_at_idx", "audit_logs", ["created_at"])
    op.create_index("audit_logs_table_record_idx", "audit_logs", ["table_name", "record_id"])
    op.create_index("audit_logs_actor_time_idx", "audit_logs", ["actor_id", "created_at"])

    op.create_table(
        "audit_retention_policies",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("table_name", sa.String(100), nullable=False),
        sa.Column("retention_days", sa.Integer(), nullable=False, server_default="365"),
        sa.Column(
            "archive_before_delete", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_cleanup_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("table_name"),
    )
    op.create_index(
        "audit_retention_policies_active_idx", "audit_retention_policies", ["is_active"]
    )


def downgrade() -> None:
    op.drop_index("audit_retention_policies_active_idx", table_name="audit_retention_policies")
    op.drop_table("audit_retention_policies")

    op.drop_index("audit_logs_actor_time_idx", table_name="audit_logs")
    op.drop_index("audit_logs_table_record_idx", table_name="audit_logs")
    op.drop_index("audit_logs_created_at_idx", table_name="audit_logs")
    op.drop_index("audit_logs_operation_idx", table_name="audit_logs")
    op.drop_index("audit_logs_actor_id_idx", table_name="audit_logs")
    op.drop_index("audit_logs_record_id_idx", table_name="audit_logs")
    op.drop_index("audit_logs_table_name_idx", table_name="audit_logs")
    op.drop_table("audit_logs")
