from __future__ import annotations

import threading
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, TypeVar

from wolf_marketer.db.base import Base
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
    utcnow,
)
from wolf_marketer.db.repositories.withdrawals import transaction_status_for
from wolf_marketer.services.errors import StaleRecordError
from wolf_marketer.services.money import ZERO, to_decimal
from wolf_marketer.storage.lifecycle import ensure_task_transition, ensure_withdrawal_allowed, withdrawn_total

ModelT = TypeVar("ModelT", bound=Base)


def _apply_column_defaults(record: Base) -> None:
    # Transient instances never flush, so client-side column defaults are applied here.
    for column in record.__table__.columns:
        if column.primary_key or column.default is None:
            continue
        if getattr(record, column.key) is not None:
            continue
        default = column.default
        value = default.arg(None) if default.is_callable else default.arg
        setattr(record, column.key, value)


def _in_window(value: Optional[datetime], since: Optional[datetime], until: Optional[datetime]) -> bool:
    if value is None:
        return False
    if since is not None and value < since:
        return False
    if until is not None and value > until:
        return False
    return True


class MemStorage:
    """Process-local storage holding transient model instances.

    All mutations run under one lock, which makes rollup increments and the
    task transition guard atomic. Starts empty; use ``seed_demo_data`` for
    fixtures.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._rows: dict[type, dict[int, Any]] = {}
        self._next_ids: dict[type, int] = {}

    def _table(self, model: type[ModelT]) -> dict[int, ModelT]:
        return self._rows.setdefault(model, {})

    def _insert(self, model: type[ModelT], fields: dict[str, Any]) -> ModelT:
        with self._lock:
            record = model(**fields)
            _apply_column_defaults(record)
            record_id = self._next_ids.get(model, 0) + 1
            self._next_ids[model] = record_id
            record.id = record_id
            self._table(model)[record_id] = record
            return record

    def _merge(self, model: type[ModelT], record_id: int, fields: dict[str, Any]) -> Optional[ModelT]:
        with self._lock:
            record = self._table(model).get(record_id)
            if record is None:
                return None
            for key, value in fields.items():
                setattr(record, key, value)
            if hasattr(record, "updated_at"):
                record.updated_at = utcnow()
            return record

    def _remove(self, model: type, record_id: int) -> bool:
        with self._lock:
            return self._table(model).pop(record_id, None) is not None

    def _all(self, model: type[ModelT]) -> list[ModelT]:
        with self._lock:
            return sorted(self._table(model).values(), key=lambda record: record.id)

    # users
    def list_users(self) -> list[User]:
        return self._all(User)

    def get_user(self, user_id: int) -> Optional[User]:
        return self._table(User).get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return next((user for user in self._all(User) if user.username == username), None)

    def create_user(self, **fields: Any) -> User:
        return self._insert(User, fields)

    def update_user(self, user_id: int, **fields: Any) -> Optional[User]:
        return self._merge(User, user_id, fields)

    def adjust_user_balance(self, user_id: int, delta: Decimal) -> Optional[User]:
        with self._lock:
            user = self.get_user(user_id)
            if user is None:
                return None
            return self._merge(User, user_id, {"balance": to_decimal(user.balance) + delta})

    # platforms
    def list_platforms(self) -> list[Platform]:
        return self._all(Platform)

    def get_platform(self, platform_id: int) -> Optional[Platform]:
        return self._table(Platform).get(platform_id)

    def get_platform_by_name(self, name: str) -> Optional[Platform]:
        wanted = name.strip().lower()
        return next((platform for platform in self._all(Platform) if platform.name.lower() == wanted), None)

    def create_platform(self, **fields: Any) -> Platform:
        return self._insert(Platform, fields)

    def update_platform(self, platform_id: int, **fields: Any) -> Optional[Platform]:
        return self._merge(Platform, platform_id, fields)

    def delete_platform(self, platform_id: int) -> bool:
        return self._remove(Platform, platform_id)

    # workflows
    def list_workflows(self, platform_id: Optional[int] = None) -> list[Workflow]:
        workflows = self._all(Workflow)
        if platform_id is not None:
            workflows = [workflow for workflow in workflows if workflow.platform_id == platform_id]
        return workflows

    def get_workflow(self, workflow_id: int) -> Optional[Workflow]:
        return self._table(Workflow).get(workflow_id)

    def create_workflow(self, **fields: Any) -> Workflow:
        return self._insert(Workflow, fields)

    def update_workflow(
        self, workflow_id: int, expected_version: Optional[int] = None, **fields: Any
    ) -> Optional[Workflow]:
        with self._lock:
            workflow = self.get_workflow(workflow_id)
            if workflow is None:
                return None
            if expected_version is not None and workflow.version != expected_version:
                raise StaleRecordError(
                    f"Workflow {workflow_id} was modified concurrently "
                    f"(expected version {expected_version}, found {workflow.version})"
                )
            return self._merge(Workflow, workflow_id, {**fields, "version": workflow.version + 1})

    def record_workflow_outcome(
        self, workflow_id: int, *, succeeded: bool, revenue: Decimal, ran_at: datetime
    ) -> Optional[Workflow]:
        with self._lock:
            workflow = self.get_workflow(workflow_id)
            if workflow is None:
                return None
            changes: dict[str, Any] = {
                "runs": workflow.runs + 1,
                "revenue": to_decimal(workflow.revenue) + revenue,
                "last_run": ran_at,
                "version": workflow.version + 1,
            }
            if succeeded:
                changes["successes"] = workflow.successes + 1
            else:
                changes["failures"] = workflow.failures + 1
            return self._merge(Workflow, workflow_id, changes)

    def delete_workflow(self, workflow_id: int) -> bool:
        return self._remove(Workflow, workflow_id)

    # tasks
    def list_tasks(
        self,
        workflow_id: Optional[int] = None,
        platform_id: Optional[int] = None,
        status: Optional[TaskStatusEnum] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[Task]:
        tasks = self._all(Task)
        if workflow_id is not None:
            tasks = [task for task in tasks if task.workflow_id == workflow_id]
        if platform_id is not None:
            tasks = [task for task in tasks if task.platform_id == platform_id]
        if status is not None:
            tasks = [task for task in tasks if task.status == status]
        if since is not None or until is not None:
            tasks = [task for task in tasks if _in_window(task.created_at, since, until)]
        return sorted(tasks, key=lambda task: (task.created_at, task.id), reverse=True)

    def get_task(self, task_id: int) -> Optional[Task]:
        return self._table(Task).get(task_id)

    def create_task(self, **fields: Any) -> Task:
        fields.pop("status", None)
        return self._insert(Task, {**fields, "status": TaskStatusEnum.pending})

    def update_task(self, task_id: int, **fields: Any) -> Optional[Task]:
        with self._lock:
            task = self.get_task(task_id)
            if task is None:
                return None
            if "status" in fields:
                fields["status"] = ensure_task_transition(task.status, fields["status"])
            return self._merge(Task, task_id, fields)

    def delete_task(self, task_id: int) -> bool:
        return self._remove(Task, task_id)

    # activities
    def list_activities(
        self,
        limit: Optional[int] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[Activity]:
        activities = self._all(Activity)
        if since is not None or until is not None:
            activities = [activity for activity in activities if _in_window(activity.timestamp, since, until)]
        activities.sort(key=lambda activity: (activity.timestamp, activity.id), reverse=True)
        if limit is not None:
            activities = activities[:limit]
        return activities

    def create_activity(self, **fields: Any) -> Activity:
        fields.pop("timestamp", None)
        return self._insert(Activity, {**fields, "timestamp": utcnow()})

    # earnings
    def list_platform_earnings(
        self,
        user_id: Optional[int] = None,
        platform_id: Optional[int] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[PlatformEarning]:
        earnings = self._all(PlatformEarning)
        if user_id is not None:
            earnings = [earning for earning in earnings if earning.user_id == user_id]
        if platform_id is not None:
            earnings = [earning for earning in earnings if earning.platform_id == platform_id]
        if since is not None or until is not None:
            earnings = [earning for earning in earnings if _in_window(earning.date, since, until)]
        return sorted(earnings, key=lambda earning: (earning.date, earning.id))

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
        with self._lock:
            for earning in self._table(PlatformEarning).values():
                if (
                    earning.user_id == user_id
                    and earning.platform_id == platform_id
                    and earning.period == period
                    and earning.date == date
                ):
                    return self._merge(
                        PlatformEarning,
                        earning.id,
                        {
                            "amount": to_decimal(earning.amount) + amount,
                            "commissions": to_decimal(earning.commissions) + commissions,
                        },
                    )
            return self._insert(
                PlatformEarning,
                {
                    "user_id": user_id,
                    "platform_id": platform_id,
                    "amount": amount,
                    "commissions": commissions,
                    "period": period,
                    "date": date,
                },
            )

    # payments
    def list_withdrawals(self, user_id: Optional[int] = None, since: Optional[datetime] = None) -> list[Withdrawal]:
        withdrawals = self._all(Withdrawal)
        if user_id is not None:
            withdrawals = [withdrawal for withdrawal in withdrawals if withdrawal.user_id == user_id]
        if since is not None:
            withdrawals = [withdrawal for withdrawal in withdrawals if withdrawal.requested_at >= since]
        return sorted(withdrawals, key=lambda withdrawal: (withdrawal.requested_at, withdrawal.id), reverse=True)

    def get_withdrawal(self, withdrawal_id: int) -> Optional[Withdrawal]:
        return self._table(Withdrawal).get(withdrawal_id)

    def create_withdrawal(self, **fields: Any) -> Withdrawal:
        return self._insert(Withdrawal, fields)

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
        with self._lock:
            user = self.get_user(user_id)
            if user is None:
                return None
            daily_total = withdrawn_total(self.list_withdrawals(user_id=user_id, since=day_start))
            ensure_withdrawal_allowed(to_decimal(user.balance), daily_total, amount, daily_limit)
            self._merge(User, user_id, {"balance": to_decimal(user.balance) - amount})
            withdrawal = self._insert(Withdrawal, {"user_id": user_id, "amount": amount, **fields})
            self._insert(
                Transaction,
                {
                    "user_id": user_id,
                    "type": TransactionTypeEnum.withdrawal,
                    "amount": amount,
                    "status": transaction_status_for(withdrawal.status),
                    "withdrawal_id": withdrawal.id,
                    "description": description,
                },
            )
            return withdrawal

    def update_withdrawal(self, withdrawal_id: int, **fields: Any) -> Optional[Withdrawal]:
        with self._lock:
            withdrawal = self._merge(Withdrawal, withdrawal_id, fields)
            if withdrawal is not None and "status" in fields:
                status = transaction_status_for(fields["status"])
                for transaction in self._table(Transaction).values():
                    if transaction.withdrawal_id == withdrawal_id:
                        transaction.status = status
            return withdrawal

    def list_payment_methods(self, user_id: int) -> list[PaymentMethod]:
        return [method for method in self._all(PaymentMethod) if method.user_id == user_id]

    def get_payment_method(self, payment_method_id: int) -> Optional[PaymentMethod]:
        return self._table(PaymentMethod).get(payment_method_id)

    def _clear_defaults(self, user_id: int, method_type: Any, exclude_id: Optional[int] = None) -> None:
        for method in self._table(PaymentMethod).values():
            if method.user_id == user_id and method.type == method_type and method.id != exclude_id:
                method.is_default = False

    def create_payment_method(self, **fields: Any) -> PaymentMethod:
        with self._lock:
            if fields.get("is_default"):
                self._clear_defaults(fields["user_id"], fields["type"])
            return self._insert(PaymentMethod, fields)

    def update_payment_method(self, payment_method_id: int, **fields: Any) -> Optional[PaymentMethod]:
        with self._lock:
            method = self.get_payment_method(payment_method_id)
            if method is None:
                return None
            if fields.get("is_default"):
                self._clear_defaults(method.user_id, fields.get("type", method.type), exclude_id=method.id)
            return self._merge(PaymentMethod, payment_method_id, fields)

    def delete_payment_method(self, payment_method_id: int) -> bool:
        return self._remove(PaymentMethod, payment_method_id)

    def list_transactions(
        self,
        user_id: int,
        type: Optional[TransactionTypeEnum] = None,
        status: Optional[TransactionStatusEnum] = None,
    ) -> list[Transaction]:
        transactions = [transaction for transaction in self._all(Transaction) if transaction.user_id == user_id]
        if type is not None:
            transactions = [transaction for transaction in transactions if transaction.type == type]
        if status is not None:
            transactions = [transaction for transaction in transactions if transaction.status == status]
        return sorted(transactions, key=lambda transaction: (transaction.created_at, transaction.id), reverse=True)

    def create_transaction(self, **fields: Any) -> Transaction:
        return self._insert(Transaction, fields)

    def sum_transactions(
        self,
        user_id: int,
        type: TransactionTypeEnum,
        status: Optional[TransactionStatusEnum] = None,
    ) -> Decimal:
        total = ZERO
        for transaction in self.list_transactions(user_id, type=type, status=status):
            total += to_decimal(transaction.amount)
        return total
