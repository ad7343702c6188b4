from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Protocol

from wolf_marketer.db.enums import TaskStatusEnum, TransactionStatusEnum, TransactionTypeEnum
from wolf_marketer.db.models import (
    Activity,
    PaymentMethod,
    Platform,
    PlatformEarning,
    Task,
    Transaction,
    User,
    Withdrawal,
    Workflow,
)


class Storage(Protocol):
    """Persistence contract shared by the database and in-memory backends.

    ``get_*`` and ``update_*`` return ``None`` for unknown ids and ``delete_*``
    returns ``False``; absence is never an exception. The storage layer does not
    write activities on its own.
    """

    # users
    def list_users(self) -> list[User]:
        ...

    def get_user(self, user_id: int) -> Optional[User]:
        ...

    def get_user_by_username(self, username: str) -> Optional[User]:
        ...

    def create_user(self, **fields: Any) -> User:
        ...

    def update_user(self, user_id: int, **fields: Any) -> Optional[User]:
        ...

    def adjust_user_balance(self, user_id: int, delta: Decimal) -> Optional[User]:
        ...

    # platforms
    def list_platforms(self) -> list[Platform]:
        ...

    def get_platform(self, platform_id: int) -> Optional[Platform]:
        ...

    def get_platform_by_name(self, name: str) -> Optional[Platform]:
        ...

    def create_platform(self, **fields: Any) -> Platform:
        ...

    def update_platform(self, platform_id: int, **fields: Any) -> Optional[Platform]:
        ...

    def delete_platform(self, platform_id: int) -> bool:
        ...

    # workflows
    def list_workflows(self, platform_id: Optional[int] = None) -> list[Workflow]:
        ...

    def get_workflow(self, workflow_id: int) -> Optional[Workflow]:
        ...

    def create_workflow(self, **fields: Any) -> Workflow:
        ...

    def update_workflow(
        self, workflow_id: int, expected_version: Optional[int] = None, **fields: Any
    ) -> Optional[Workflow]:
        ...

    def record_workflow_outcome(
        self, workflow_id: int, *, succeeded: bool, revenue: Decimal, ran_at: datetime
    ) -> Optional[Workflow]:
        ...

    def delete_workflow(self, workflow_id: int) -> bool:
        ...

    # tasks
    def list_tasks(
        self,
        workflow_id: Optional[int] = None,
        platform_id: Optional[int] = None,
        status: Optional[TaskStatusEnum] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[Task]:
        ...

    def get_task(self, task_id: int) -> Optional[Task]:
        ...

    def create_task(self, **fields: Any) -> Task:
        ...

    def update_task(self, task_id: int, **fields: Any) -> Optional[Task]:
        ...

    def delete_task(self, task_id: int) -> bool:
        ...

    # activities
    def list_activities(
        self,
        limit: Optional[int] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[Activity]:
        ...

    def create_activity(self, **fields: Any) -> Activity:
        ...

    # earnings
    def list_platform_earnings(
        self,
        user_id: Optional[int] = None,
        platform_id: Optional[int] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[PlatformEarning]:
        ...

    def record_platform_earning(
        self,
        *,
        user_id: int,
        platform_id: int,
        amount: Decimal,
        commissions: Decimal,
        period: str,
        date: datetime,
    ) -> PlatformEarning:
        ...

    # payments
    def list_withdrawals(self, user_id: Optional[int] = None, since: Optional[datetime] = None) -> list[Withdrawal]:
        ...

    def get_withdrawal(self, withdrawal_id: int) -> Optional[Withdrawal]:
        ...

    def create_withdrawal(self, **fields: Any) -> Withdrawal:
        ...

    def open_withdrawal(
        self,
        *,
        user_id: int,
        amount: Decimal,
        daily_limit: Decimal,
        day_start: datetime,
        description: str,
        **fields: Any,
    ) -> Optional[Withdrawal]:
        """Check balance and daily limit, debit, and record the withdrawal atomically.

        Raises ``InsufficientBalanceError`` or ``DailyLimitExceededError`` and
        leaves nothing written when a check fails. Returns ``None`` for unknown
        users. A pending ``withdrawal`` transaction is recorded with it.
        """
        ...

    def update_withdrawal(self, withdrawal_id: int, **fields: Any) -> Optional[Withdrawal]:
        ...

    def list_payment_methods(self, user_id: int) -> list[PaymentMethod]:
        ...

    def get_payment_method(self, payment_method_id: int) -> Optional[PaymentMethod]:
        ...

    def create_payment_method(self, **fields: Any) -> PaymentMethod:
        ...

    def update_payment_method(self, payment_method_id: int, **fields: Any) -> Optional[PaymentMethod]:
        ...

    def delete_payment_method(self, payment_method_id: int) -> bool:
        ...

    def list_transactions(
        self,
        user_id: int,
        type: Optional[TransactionTypeEnum] = None,
        status: Optional[TransactionStatusEnum] = None,
    ) -> list[Transaction]:
        ...

    def create_transaction(self, **fields: Any) -> Transaction:
        ...

    def sum_transactions(
        self,
        user_id: int,
        type: TransactionTypeEnum,
        status: Optional[TransactionStatusEnum] = None,
    ) -> Decimal:
        ...
