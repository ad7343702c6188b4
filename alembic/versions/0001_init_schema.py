"""Initial schema: users, platforms, workflows, tasks, activities and payments"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_init_schema"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(12, 2)

_ENUMS = {
    "user_role": ("user", "admin"),
    "platform_status": ("connected", "error", "disconnected"),
    "platform_health": ("healthy", "warning", "error"),
    "workflow_status": ("active", "inactive", "error"),
    "task_status": ("pending", "completed", "failed"),
    "withdrawal_payment_method": ("paypal", "bank", "stripe"),
    "withdrawal_status": ("pending", "processing", "completed", "failed"),
    "payment_method_type": ("paypal", "bank", "stripe"),
    "transaction_type": ("commission", "fee", "withdrawal"),
    "transaction_status": ("pending", "processing", "complete", "failed"),
}


def _enum(name: str) -> sa.Enum:
    return sa.Enum(*_ENUMS[name], name=name)


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.Text(), nullable=False, unique=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("role", _enum("user_role"), nullable=False, server_default="user"),
        sa.Column("balance", MONEY, nullable=False, server_default="0"),
        sa.Column("pending_balance", MONEY, nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )

    op.create_table(
        "platforms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("api_key", sa.Text(), nullable=True),
        sa.Column("api_secret", sa.Text(), nullable=True),
        sa.Column("status", _enum("platform_status"), nullable=False, server_default="disconnected"),
        sa.Column("health_status", _enum("platform_health"), nullable=False, server_default="healthy"),
        sa.Column("last_synced", sa.DateTime(timezone=True), nullable=True),
        sa.Column("settings", sa.JSON(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("uq_platforms_name_lower", "platforms", [sa.text("lower(name)")], unique=True)

    op.create_table(
        "workflows",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("platform_id", sa.Integer(), sa.ForeignKey("platforms.id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", _enum("workflow_status"), nullable=False, server_default="inactive"),
        sa.Column("steps", sa.JSON(), nullable=False),
        sa.Column("last_run", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_run", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revenue", MONEY, nullable=False, server_default="0"),
        sa.Column("runs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("successes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("failures", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("successes + failures <= runs", name="ck_workflows_stats_within_runs"),
        sa.CheckConstraint("successes >= 0 AND failures >= 0", name="ck_workflows_stats_non_negative"),
    )
    op.create_index("idx_workflows_platform", "workflows", ["platform_id"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("workflow_id", sa.Integer(), sa.ForeignKey("workflows.id", ondelete="SET NULL"), nullable=True),
        sa.Column("platform_id", sa.Integer(), sa.ForeignKey("platforms.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.Text(), nullable=True),
        sa.Column("status", _enum("task_status"), nullable=False, server_default="pending"),
        sa.Column("result", sa.JSON(), nullable=True),
        sa.Column("revenue", MONEY, nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_tasks_workflow", "tasks", ["workflow_id"])
    op.create_index("idx_tasks_platform", "tasks", ["platform_id"])
    op.create_index("idx_tasks_status", "tasks", ["status"])

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("workflow_id", sa.Integer(), sa.ForeignKey("workflows.id", ondelete="SET NULL"), nullable=True),
        sa.Column("platform_id", sa.Integer(), sa.ForeignKey("platforms.id", ondelete="SET NULL"), nullable=True),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True),
        sa.Column("data", sa.JSON(), nullable=True),
        _timestamp("timestamp"),
    )
    op.create_index("idx_activities_timestamp", "activities", ["timestamp"])

    op.create_table(
        "platform_earnings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("platform_id", sa.Integer(), sa.ForeignKey("platforms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", MONEY, nullable=False, server_default="0"),
        sa.Column("commissions", MONEY, nullable=False, server_default="0"),
        sa.Column("period", sa.Text(), nullable=False, server_default="all_time"),
        _timestamp("date"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_platform_earnings_user_platform", "platform_earnings", ["user_id", "platform_id"])

    op.create_table(
        "withdrawals",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("platform_fee", MONEY, nullable=False, server_default="0"),
        sa.Column("net_amount", MONEY, nullable=False),
        sa.Column("payment_method", _enum("withdrawal_payment_method"), nullable=False),
        sa.Column("account_details", sa.Text(), nullable=True),
        sa.Column("status", _enum("withdrawal_status"), nullable=False, server_default="pending"),
        sa.Column("transaction_id", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _timestamp("requested_at"),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_withdrawals_user_requested", "withdrawals", ["user_id", "requested_at"])

    op.create_table(
        "payment_methods",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", _enum("payment_method_type"), nullable=False),
        sa.Column("account_name", sa.Text(), nullable=False),
        sa.Column("account_details", sa.Text(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", _enum("transaction_type"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("status", _enum("transaction_status"), nullable=False, server_default="pending"),
        sa.Column(
            "withdrawal_id", sa.Integer(), sa.ForeignKey("withdrawals.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("description", sa.Text(), nullable=True),
        _timestamp("created_at"),
    )
    op.create_index("idx_transactions_user_type", "transactions", ["user_id", "type", "status"])


def downgrade() -> None:
    op.drop_index("idx_transactions_user_type", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("payment_methods")
    op.drop_index("idx_withdrawals_user_requested", table_name="withdrawals")
    op.drop_table("withdrawals")
    op.drop_index("idx_platform_earnings_user_platform", table_name="platform_earnings")
    op.drop_table("platform_earnings")
    op.drop_index("idx_activities_timestamp", table_name="activities")
    op.drop_table("activities")
    op.drop_index("idx_tasks_status", table_name="tasks")
    op.drop_index("idx_tasks_platform", table_name="tasks")
    op.drop_index("idx_tasks_workflow", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("idx_workflows_platform", table_name="workflows")
    op.drop_table("workflows")
    op.drop_index("uq_platforms_name_lower", table_name="platforms")
    op.drop_table("platforms")
    op.drop_table("users")

    bind = op.get_bind()
    for name in _ENUMS:
        _enum(name).drop(bind, checkfirst=True)
