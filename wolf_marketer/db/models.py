from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from wolf_marketer.db.base import Base
from wolf_marketer.db.enums import (
    PaymentMethodTypeEnum,
    PlatformHealthEnum,
    PlatformStatusEnum,
    TaskStatusEnum,
    TransactionStatusEnum,
    TransactionTypeEnum,
    UserRoleEnum,
    WithdrawalStatusEnum,
    WorkflowStatusEnum,
)

MONEY = Numeric(12, 2)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    role: Mapped[UserRoleEnum] = mapped_column(
        Enum(UserRoleEnum, name="user_role"), nullable=False, default=UserRoleEnum.user
    )
    balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))
    pending_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class Platform(Base):
    __tablename__ = "platforms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    api_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    api_secret: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[PlatformStatusEnum] = mapped_column(
        Enum(PlatformStatusEnum, name="platform_status"),
        nullable=False,
        default=PlatformStatusEnum.disconnected,
    )
    health_status: Mapped[PlatformHealthEnum] = mapped_column(
        Enum(PlatformHealthEnum, name="platform_health"),
        nullable=False,
        default=PlatformHealthEnum.healthy,
    )
    last_synced: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


sa.Index("uq_platforms_name_lower", func.lower(Platform.name), unique=True)


class Workflow(Base):
    __tablename__ = "workflows"
    __table_args__ = (
        CheckConstraint("successes + failures <= runs", name="ck_workflows_stats_within_runs"),
        CheckConstraint("successes >= 0 AND failures >= 0", name="ck_workflows_stats_non_negative"),
        sa.Index("idx_workflows_platform", "platform_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    platform_id: Mapped[int] = mapped_column(ForeignKey("platforms.id"), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[WorkflowStatusEnum] = mapped_column(
        Enum(WorkflowStatusEnum, name="workflow_status"),
        nullable=False,
        default=WorkflowStatusEnum.inactive,
    )
    steps: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    last_run: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    next_run: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    revenue: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))
    runs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    successes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failures: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def success_rate(self) -> float:
        if not self.runs:
            return 0.0
        return round(self.successes / self.runs * 100, 2)


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        sa.Index("idx_tasks_workflow", "workflow_id"),
        sa.Index("idx_tasks_platform", "platform_id"),
        sa.Index("idx_tasks_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    workflow_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("workflows.id", ondelete="SET NULL"), nullable=True
    )
    platform_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("platforms.id", ondelete="SET NULL"), nullable=True
    )
    action: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[TaskStatusEnum] = mapped_column(
        Enum(TaskStatusEnum, name="task_status"), nullable=False, default=TaskStatusEnum.pending
    )
    result: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    revenue: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class Activity(Base):
    __tablename__ = "activities"
    __table_args__ = (sa.Index("idx_activities_timestamp", "timestamp"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    workflow_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("workflows.id", ondelete="SET NULL"), nullable=True
    )
    platform_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("platforms.id", ondelete="SET NULL"), nullable=True
    )
    task_id: Mapped[Optional[int]] = mapped_column(ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class PlatformEarning(Base):
    __tablename__ = "platform_earnings"
    __table_args__ = (sa.Index("idx_platform_earnings_user_platform", "user_id", "platform_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    platform_id: Mapped[int] = mapped_column(ForeignKey("platforms.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))
    commissions: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))
    period: Mapped[str] = mapped_column(Text, nullable=False, default="all_time")
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class Withdrawal(Base):
    __tablename__ = "withdrawals"
    __table_args__ = (sa.Index("idx_withdrawals_user_requested", "user_id", "requested_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    platform_fee: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0.00"))
    net_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    payment_method: Mapped[PaymentMethodTypeEnum] = mapped_column(
        Enum(PaymentMethodTypeEnum, name="withdrawal_payment_method"), nullable=False
    )
    account_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[WithdrawalStatusEnum] = mapped_column(
        Enum(WithdrawalStatusEnum, name="withdrawal_status"),
        nullable=False,
        default=WithdrawalStatusEnum.pending,
    )
    transaction_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class PaymentMethod(Base):
    __tablename__ = "payment_methods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[PaymentMethodTypeEnum] = mapped_column(
        Enum(PaymentMethodTypeEnum, name="payment_method_type"), nullable=False
    )
    account_name: Mapped[str] = mapped_column(Text, nullable=False)
    account_details: Mapped[str] = mapped_column(Text, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (sa.Index("idx_transactions_user_type", "user_id", "type", "status"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[TransactionTypeEnum] = mapped_column(
        Enum(TransactionTypeEnum, name="transaction_type"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    status: Mapped[TransactionStatusEnum] = mapped_column(
        Enum(TransactionStatusEnum, name="transaction_status"),
        nullable=False,
        default=TransactionStatusEnum.pending,
    )
    withdrawal_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("withdrawals.id", ondelete="SET NULL"), nullable=True
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
