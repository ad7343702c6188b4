from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from wolf_marketer.db.enums import TaskStatusEnum, TransactionStatusEnum, TransactionTypeEnum
from wolf_marketer.db.repositories import (
    ActivitiesRepository,
    PaymentMethodsRepository,
    PlatformEarningsRepository,
    PlatformsRepository,
    TasksRepository,
    TransactionsRepository,
    UsersRepository,
    WithdrawalsRepository,
    WorkflowsRepository,
)


class DatabaseStorage:
    """Storage backed by the SQLAlchemy repositories over one request session."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.users = UsersRepository(session)
        self.platforms = PlatformsRepository(session)
        self.workflows = WorkflowsRepository(session)
        self.tasks = TasksRepository(session)
        self.activities = ActivitiesRepository(session)
        self.earnings = PlatformEarningsRepository(session)
        self.withdrawals = WithdrawalsRepository(session)
        self.payment_methods = PaymentMethodsRepository(session)
        self.transactions = TransactionsRepository(session)

    def list_users(self):
        return self.users.list()

    def get_user(self, user_id: int):
        return self.users.get(user_id)

    def get_user_by_username(self, username: str):
        return self.users.get_by_username(username)

    def create_user(self, **fields: Any):
        return self.users.create(**fields)

    def update_user(self, user_id: int, **fields: Any):
        return self.users.update(user_id, **fields)

    def adjust_user_balance(self, user_id: int, delta: Decimal):
        return self.users.adjust_balance(user_id, delta)

    def list_platforms(self):
        return self.platforms.list()

    def get_platform(self, platform_id: int):
        return self.platforms.get(platform_id)

    def get_platform_by_name(self, name: str):
        return self.platforms.get_by_name(name)

    def create_platform(self, **fields: Any):
        return self.platforms.create(**fields)

    def update_platform(self, platform_id: int, **fields: Any):
        return self.platforms.update(platform_id, **fields)

    def delete_platform(self, platform_id: int) -> bool:
        return self.platforms.delete(platform_id)

    def list_workflows(self, platform_id: Optional[int] = None):
        return self.workflows.list(platform_id=platform_id)

    def get_workflow(self, workflow_id: int):
        return self.workflows.get(workflow_id)

    def create_workflow(self, **fields: Any):
        return self.workflows.create(**fields)

    def update_workflow(self, workflow_id: int, expected_version: Optional[int] = None, **fields: Any):
        return self.workflows.update(workflow_id, expected_version=expected_version, **fields)

    def record_workflow_outcome(self, workflow_id: int, *, succeeded: bool, revenue: Decimal, ran_at: datetime):
        return self.workflows.record_outcome(workflow_id, succeeded=succeeded, revenue=revenue, ran_at=ran_at)

    def delete_workflow(self, workflow_id: int) -> bool:
        return self.workflows.delete(workflow_id)

    def list_tasks(
        self,
        workflow_id: Optional[int] = None,
        platform_id: Optional[int] = None,
        status: Optional[TaskStatusEnum] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ):
        return self.tasks.list(
            workflow_id=workflow_id, platform_id=platform_id, status=status, since=since, until=until
        )

    def get_task(self, task_id: int):
        return self.tasks.get(task_id)

    def create_task(self, **fields: Any):
        return self.tasks.create(**fields)

    def update_task(self, task_id: int, **fields: Any):
        return self.tasks.update(task_id, **fields)

    def delete_task(self, task_id: int) -> bool:
        return self.tasks.delete(task_id)

    def list_activities(
        self,
        limit: Optional[int] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ):
        return self.activities.list(limit=limit, since=since, until=until)

    def create_activity(self, **fields: Any):
        return self.activities.create(**fields)

    def list_platform_earnings(
        self,
        user_id: Optional[int] = None,
        platform_id: Optional[int] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ):
        return self.earnings.list(user_id=user_id, platform_id=platform_id, since=since, until=until)

    def record_platform_earning(self, **fields: Any):
        return self.earnings.record(**fields)

    def list_withdrawals(self, user_id: Optional[int] = None, since: Optional[datetime] = None):
        return self.withdrawals.list(user_id=user_id, since=since)

    def get_withdrawal(self, withdrawal_id: int):
        return self.withdrawals.get(withdrawal_id)

    def create_withdrawal(self, **fields: Any):
        return self.withdrawals.create(**fields)

    def open_withdrawal(
        self,
        *,
        user_id: int,
        amount: Decimal,
        daily_limit: Decimal,
        day_start: datetime,
        description: str,
        **fields: Any,
    ):
        return self.withdrawals.open(
            user_id=user_id,
            amount=amount,
            daily_limit=daily_limit,
            day_start=day_start,
            description=description,
            **fields,
        )

    def update_withdrawal(self, withdrawal_id: int, **fields: Any):
        return self.withdrawals.update(withdrawal_id, **fields)

    def list_payment_methods(self, user_id: int):
        return self.payment_methods.list(user_id)

    def get_payment_method(self, payment_method_id: int):
        return self.payment_methods.get(payment_method_id)

    def create_payment_method(self, **fields: Any):
        return self.payment_methods.create(**fields)

    def update_payment_method(self, payment_method_id: int, **fields: Any):
        return self.payment_methods.update(payment_method_id, **fields)

    def delete_payment_method(self, payment_method_id: int) -> bool:
        return self.payment_methods.delete(payment_method_id)

    def list_transactions(
        self,
        user_id: int,
        type: Optional[TransactionTypeEnum] = None,
        status: Optional[TransactionStatusEnum] = None,
    ):
        return self.transactions.list(user_id, type=type, status=status)

    def create_transaction(self, **fields: Any):
        return self.transactions.create(**fields)

    def sum_transactions(
        self,
        user_id: int,
        type: TransactionTypeEnum,
        status: Optional[TransactionStatusEnum] = None,
    ) -> Decimal:
        return self.transactions.sum_amount(user_id, type, status=status)
