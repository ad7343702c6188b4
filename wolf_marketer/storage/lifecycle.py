from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable

from wolf_marketer.db.enums import TaskStatusEnum, WithdrawalStatusEnum
from wolf_marketer.db.models import Withdrawal
from wolf_marketer.services.errors import (
    DailyLimitExceededError,
    InsufficientBalanceError,
    InvalidTaskTransitionError,
)
from wolf_marketer.services.money import ZERO, format_money, to_decimal

TERMINAL_TASK_STATUSES = frozenset({TaskStatusEnum.completed, TaskStatusEnum.failed})


def coerce_task_status(value: Any) -> TaskStatusEnum:
    try:
        return TaskStatusEnum(value)
    except ValueError as exc:
        raise InvalidTaskTransitionError(f"Unknown task status: {value}") from exc


def ensure_task_transition(current: Any, target: Any) -> TaskStatusEnum:
    """Validate a task status write and return the normalized target.

    Tasks only move ``pending -> completed`` or ``pending -> failed``. Once a
    task is terminal its status can no longer be written, not even to the same
    value, so an outcome is never applied twice.
    """
    current_status = coerce_task_status(current)
    target_status = coerce_task_status(target)
    if current_status in TERMINAL_TASK_STATUSES:
        raise InvalidTaskTransitionError(
            f"Task is already {current_status.value}; cannot change status to {target_status.value}"
        )
    return target_status


def withdrawn_total(withdrawals: Iterable[Withdrawal]) -> Decimal:
    """Sum of withdrawal amounts that still count against the daily limit."""
    total = ZERO
    for withdrawal in withdrawals:
        if withdrawal.status == WithdrawalStatusEnum.failed:
            continue
        total += to_decimal(withdrawal.amount)
    return total


def ensure_withdrawal_allowed(balance: Decimal, daily_total: Decimal, amount: Decimal, daily_limit: Decimal) -> None:
    if to_decimal(balance) < amount:
        raise InsufficientBalanceError("Insufficient balance for withdrawal")
    if daily_total + amount > daily_limit:
        raise DailyLimitExceededError(
            f"Daily withdrawal limit of ${format_money(daily_limit)} exceeded",
            context={
                "dailyLimit": float(daily_limit),
                "dailyTotal": float(daily_total),
                "remaining": float(max(daily_limit - daily_total, ZERO)),
            },
        )
