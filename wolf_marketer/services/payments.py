from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from wolf_marketer.config import settings
from wolf_marketer.db.enums import (
    ActivityTypeEnum,
    PaymentMethodTypeEnum,
    TransactionStatusEnum,
    TransactionTypeEnum,
    WithdrawalStatusEnum,
)
from wolf_marketer.db.models import PaymentMethod, User, Withdrawal
from wolf_marketer.services.errors import BusinessRuleError, DailyLimitExceededError, ForbiddenError, NotFoundError
from wolf_marketer.services.money import ZERO, format_money, quantize_money, to_decimal
from wolf_marketer.storage.interface import Storage
from wolf_marketer.storage.lifecycle import withdrawn_total

logger = logging.getLogger(__name__)


def get_user_or_404(storage: Storage, user_id: int) -> User:
    user = storage.get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def _start_of_day(now: datetime) -> datetime:
    return now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


def daily_withdrawal_total(storage: Storage, user_id: int, now: datetime) -> Decimal:
    return withdrawn_total(storage.list_withdrawals(user_id=user_id, since=_start_of_day(now)))


def request_withdrawal(
    storage: Storage,
    *,
    user_id: int,
    amount: Any,
    payment_method: PaymentMethodTypeEnum,
    account_details: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Withdrawal:
    now = now or datetime.now(timezone.utc)
    amount = quantize_money(amount)
    minimum = quantize_money(settings.WITHDRAWAL_MINIMUM)
    if amount < minimum:
        raise BusinessRuleError(f"Minimum withdrawal amount is ${format_money(minimum)}")

    get_user_or_404(storage, user_id)
    method = PaymentMethodTypeEnum(payment_method)
    fee = quantize_money(amount * to_decimal(settings.WITHDRAWAL_FEE_RATE))
    try:
        withdrawal = storage.open_withdrawal(
            user_id=user_id,
            amount=amount,
            daily_limit=quantize_money(settings.WITHDRAWAL_DAILY_LIMIT),
            day_start=_start_of_day(now),
            description=f"Withdrawal via {method.value}",
            platform_fee=fee,
            net_amount=amount - fee,
            payment_method=method,
            account_details=account_details or "",
            status=WithdrawalStatusEnum.pending,
            requested_at=now,
        )
    except DailyLimitExceededError as exc:
        logger.info(
            "payments.daily_limit_exceeded",
            extra={"user_id": user_id, "amount": format_money(amount), **exc.context},
        )
        raise
    if withdrawal is None:
        raise NotFoundError("User not found")

    storage.create_activity(
        type=ActivityTypeEnum.payment.value,
        title="Withdrawal Request",
        description=f"Requested withdrawal of ${format_money(amount)} via {withdrawal.payment_method.value}",
        data={"withdrawalId": withdrawal.id, "amount": format_money(amount)},
    )
    logger.info(
        "payments.withdrawal_requested",
        extra={"user_id": user_id, "withdrawal_id": withdrawal.id, "amount": format_money(amount)},
    )
    return withdrawal


def list_withdrawals(storage: Storage, user_id: int) -> list[Withdrawal]:
    get_user_or_404(storage, user_id)
    return storage.list_withdrawals(user_id=user_id)


def cancel_withdrawal(storage: Storage, *, user_id: int, withdrawal_id: int) -> Withdrawal:
    withdrawal = storage.get_withdrawal(withdrawal_id)
    if not withdrawal:
        raise NotFoundError("Withdrawal not found")
    if withdrawal.user_id != user_id:
        raise ForbiddenError("Not authorized to cancel this withdrawal")
    if withdrawal.status != WithdrawalStatusEnum.pending:
        raise BusinessRuleError(f"Cannot cancel withdrawal with status: {withdrawal.status.value}")

    amount = to_decimal(withdrawal.amount)
    storage.adjust_user_balance(user_id, amount)
    updated = storage.update_withdrawal(
        withdrawal_id,
        status=WithdrawalStatusEnum.failed,
        notes="Cancelled by user",
        processed_at=datetime.now(timezone.utc),
    )
    storage.create_activity(
        type=ActivityTypeEnum.payment.value,
        title="Withdrawal Cancelled",
        description=f"Cancelled withdrawal of ${format_money(amount)}",
        data={"withdrawalId": withdrawal_id},
    )
    logger.info("payments.withdrawal_cancelled", extra={"user_id": user_id, "withdrawal_id": withdrawal_id})
    return updated


def get_financials(storage: Storage, user_id: int) -> dict[str, Any]:
    user = get_user_or_404(storage, user_id)
    earnings = storage.list_platform_earnings(user_id=user_id)
    platform_names = {platform.id: platform.name for platform in storage.list_platforms()}

    by_platform: dict[str, Decimal] = defaultdict(lambda: ZERO)
    total_earnings = ZERO
    for earning in earnings:
        amount = to_decimal(earning.amount)
        by_platform[platform_names.get(earning.platform_id, "Unknown Platform")] += amount
        total_earnings += amount

    breakdown = [
        {
            "platform": name,
            "amount": format_money(amount),
            "percentage": int((amount / total_earnings * 100).to_integral_value()) if total_earnings else 0,
        }
        for name, amount in sorted(by_platform.items(), key=lambda item: item[1], reverse=True)
    ]
    commissions = storage.sum_transactions(
        user_id, TransactionTypeEnum.commission, status=TransactionStatusEnum.complete
    )
    fees = storage.sum_transactions(user_id, TransactionTypeEnum.fee)
    return {
        "balance": format_money(user.balance),
        "pendingEarnings": format_money(user.pending_balance),
        "totalEarnings": format_money(total_earnings),
        "totalCommissions": format_money(commissions),
        "platformFees": format_money(fees),
        "earningsBreakdown": breakdown,
    }


def _get_owned_payment_method(storage: Storage, user_id: int, payment_method_id: int) -> PaymentMethod:
    method = storage.get_payment_method(payment_method_id)
    if not method:
        raise NotFoundError("Payment method not found")
    if method.user_id != user_id:
        raise ForbiddenError("Not authorized to modify this payment method")
    return method


def list_payment_methods(storage: Storage, user_id: int) -> list[PaymentMethod]:
    get_user_or_404(storage, user_id)
    return storage.list_payment_methods(user_id)


def create_payment_method(storage: Storage, *, user_id: int, **fields: Any) -> PaymentMethod:
    get_user_or_404(storage, user_id)
    method = storage.create_payment_method(user_id=user_id, **fields)
    logger.info("payments.method_created", extra={"user_id": user_id, "payment_method_id": method.id})
    return method


def update_payment_method(storage: Storage, *, user_id: int, payment_method_id: int, **fields: Any) -> PaymentMethod:
    _get_owned_payment_method(storage, user_id, payment_method_id)
    updated = storage.update_payment_method(payment_method_id, **fields)
    if not updated:
        raise NotFoundError("Payment method not found")
    return updated


def delete_payment_method(storage: Storage, *, user_id: int, payment_method_id: int) -> None:
    _get_owned_payment_method(storage, user_id, payment_method_id)
    if not storage.delete_payment_method(payment_method_id):
        raise NotFoundError("Payment method not found")
