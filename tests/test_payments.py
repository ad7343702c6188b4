import threading
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from wolf_marketer.db.enums import (
    PaymentMethodTypeEnum,
    TransactionStatusEnum,
    TransactionTypeEnum,
    WithdrawalStatusEnum,
)
from wolf_marketer.db.repositories import withdrawals as withdrawals_repository
from wolf_marketer.services import payments as payment_service
from wolf_marketer.services.errors import (
    BusinessRuleError,
    DailyLimitExceededError,
    ForbiddenError,
    InsufficientBalanceError,
    NotFoundError,
)
from wolf_marketer.storage.database import DatabaseStorage
from wolf_marketer.storage.memory import MemStorage

NOW = datetime(2024, 5, 10, 15, 0, tzinfo=timezone.utc)


@pytest.fixture()
def user(storage):
    return storage.create_user(username="demo", email="demo@example.com", balance=Decimal("1000.00"))


def _past_withdrawal(storage, user, amount, requested_at, status=WithdrawalStatusEnum.pending):
    amount = Decimal(amount)
    return storage.create_withdrawal(
        user_id=user.id,
        amount=amount,
        platform_fee=amount * Decimal("0.20"),
        net_amount=amount * Decimal("0.80"),
        payment_method=PaymentMethodTypeEnum.paypal,
        status=status,
        requested_at=requested_at,
    )


def test_request_withdrawal_takes_fee_and_debits_balance(storage, user):
    withdrawal = payment_service.request_withdrawal(
        storage, user_id=user.id, amount="100", payment_method="paypal", account_details="me@example.com", now=NOW
    )

    assert withdrawal.amount == Decimal("100.00")
    assert withdrawal.platform_fee == Decimal("20.00")
    assert withdrawal.net_amount == Decimal("80.00")
    assert withdrawal.status == WithdrawalStatusEnum.pending
    assert storage.get_user(user.id).balance == Decimal("900.00")

    [transaction] = storage.list_transactions(user.id, type=TransactionTypeEnum.withdrawal)
    assert transaction.status == TransactionStatusEnum.pending
    assert transaction.withdrawal_id == withdrawal.id
    latest = storage.list_activities(limit=1)[0]
    assert latest.type == "payment"
    assert latest.title == "Withdrawal Request"


def test_daily_limit_reports_remaining_and_keeps_balance(storage, user):
    _past_withdrawal(storage, user, "300.00", NOW.replace(hour=9))
    _past_withdrawal(storage, user, "180.00", NOW.replace(hour=11))

    with pytest.raises(BusinessRuleError) as excinfo:
        payment_service.request_withdrawal(storage, user_id=user.id, amount="50", payment_method="paypal", now=NOW)

    assert excinfo.value.context == {"dailyLimit": 500.0, "dailyTotal": 480.0, "remaining": 20.0}
    assert storage.get_user(user.id).balance == Decimal("1000.00")
    assert len(storage.list_withdrawals(user_id=user.id)) == 2


def test_daily_limit_ignores_yesterday_and_failed_withdrawals(storage, user):
    _past_withdrawal(storage, user, "400.00", NOW - timedelta(days=1))
    _past_withdrawal(storage, user, "450.00", NOW.replace(hour=8), status=WithdrawalStatusEnum.failed)

    assert payment_service.daily_withdrawal_total(storage, user.id, NOW) == Decimal("0")
    withdrawal = payment_service.request_withdrawal(
        storage, user_id=user.id, amount="500", payment_method="bank", now=NOW
    )
    assert withdrawal.amount == Decimal("500.00")


def test_withdrawal_minimum_and_balance_checks(storage, user):
    with pytest.raises(BusinessRuleError) as excinfo:
        payment_service.request_withdrawal(storage, user_id=user.id, amount="49.99", payment_method="paypal", now=NOW)
    assert "Minimum withdrawal amount is $50.00" in str(excinfo.value)

    poor = storage.create_user(username="poor", email="poor@example.com", balance=Decimal("60.00"))
    with pytest.raises(BusinessRuleError) as excinfo:
        payment_service.request_withdrawal(storage, user_id=poor.id, amount="75", payment_method="paypal", now=NOW)
    assert str(excinfo.value) == "Insufficient balance for withdrawal"

    with pytest.raises(NotFoundError):
        payment_service.request_withdrawal(storage, user_id=404, amount="75", payment_method="paypal", now=NOW)


def test_cancel_withdrawal_refunds_balance(storage, user):
    withdrawal = payment_service.request_withdrawal(
        storage, user_id=user.id, amount="120", payment_method="stripe", now=NOW
    )

    cancelled = payment_service.cancel_withdrawal(storage, user_id=user.id, withdrawal_id=withdrawal.id)

    assert cancelled.status == WithdrawalStatusEnum.failed
    assert cancelled.notes == "Cancelled by user"
    assert cancelled.processed_at is not None
    assert storage.get_user(user.id).balance == Decimal("1000.00")
    [transaction] = storage.list_transactions(user.id, type=TransactionTypeEnum.withdrawal)
    assert transaction.status == TransactionStatusEnum.failed

    with pytest.raises(BusinessRuleError):
        payment_service.cancel_withdrawal(storage, user_id=user.id, withdrawal_id=withdrawal.id)


def test_cancel_withdrawal_checks_owner(storage, user):
    other = storage.create_user(username="other", email="other@example.com")
    withdrawal = payment_service.request_withdrawal(
        storage, user_id=user.id, amount="60", payment_method="paypal", now=NOW
    )

    with pytest.raises(ForbiddenError):
        payment_service.cancel_withdrawal(storage, user_id=other.id, withdrawal_id=withdrawal.id)
    with pytest.raises(NotFoundError):
        payment_service.cancel_withdrawal(storage, user_id=user.id, withdrawal_id=404)


def test_financials_breakdown(storage, user):
    clickbank = storage.create_platform(name="Clickbank", type="affiliate")
    fiverr = storage.create_platform(name="Fiverr", type="freelance")
    for platform, amount in ((clickbank, "75.00"), (fiverr, "25.00")):
        storage.record_platform_earning(
            user_id=user.id,
            platform_id=platform.id,
            amount=Decimal(amount),
            commissions=Decimal("0"),
            period="daily",
            date=NOW,
        )
    storage.create_transaction(
        user_id=user.id,
        type=TransactionTypeEnum.commission,
        amount=Decimal("30.00"),
        status=TransactionStatusEnum.complete,
    )
    storage.create_transaction(user_id=user.id, type=TransactionTypeEnum.commission, amount=Decimal("99.00"))
    storage.create_transaction(user_id=user.id, type=TransactionTypeEnum.fee, amount=Decimal("4.00"))

    financials = payment_service.get_financials(storage, user.id)

    assert financials["balance"] == "1000.00"
    assert financials["totalEarnings"] == "100.00"
    assert financials["totalCommissions"] == "30.00"
    assert financials["platformFees"] == "4.00"
    assert financials["earningsBreakdown"] == [
        {"platform": "Clickbank", "amount": "75.00", "percentage": 75},
        {"platform": "Fiverr", "amount": "25.00", "percentage": 25},
    ]


def test_payment_method_ownership(storage, user):
    other = storage.create_user(username="other", email="other@example.com")
    method = payment_service.create_payment_method(
        storage,
        user_id=user.id,
        type=PaymentMethodTypeEnum.paypal,
        account_name="Main",
        account_details="me@example.com",
        is_default=True,
    )

    with pytest.raises(ForbiddenError):
        payment_service.update_payment_method(storage, user_id=other.id, payment_method_id=method.id, account_name="x")
    with pytest.raises(ForbiddenError):
        payment_service.delete_payment_method(storage, user_id=other.id, payment_method_id=method.id)

    updated = payment_service.update_payment_method(
        storage, user_id=user.id, payment_method_id=method.id, account_name="Primary"
    )
    assert updated.account_name == "Primary"
    payment_service.delete_payment_method(storage, user_id=user.id, payment_method_id=method.id)
    assert payment_service.list_payment_methods(storage, user.id) == []
    with pytest.raises(NotFoundError):
        payment_service.delete_payment_method(storage, user_id=user.id, payment_method_id=method.id)


class _SlowWithdrawalStorage(MemStorage):
    """Widens the gap between reading today's withdrawals and writing the debit."""

    def list_withdrawals(self, user_id=None, since=None):
        rows = super().list_withdrawals(user_id=user_id, since=since)
        time.sleep(0.05)
        return rows


@pytest.mark.parametrize(
    ("balance", "expected_error", "expected_balance"),
    [
        ("400.00", InsufficientBalanceError, Decimal("100.00")),
        ("1000.00", DailyLimitExceededError, Decimal("700.00")),
    ],
)
def test_concurrent_withdrawals_are_serialized(balance, expected_error, expected_balance):
    storage = _SlowWithdrawalStorage()
    user = storage.create_user(username="demo", email="demo@example.com", balance=Decimal(balance))
    barrier = threading.Barrier(2)
    errors = []

    def withdraw():
        barrier.wait()
        try:
            payment_service.request_withdrawal(storage, user_id=user.id, amount="300", payment_method="paypal", now=NOW)
        except BusinessRuleError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=withdraw) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert [type(error) for error in errors] == [expected_error]
    assert storage.get_user(user.id).balance == expected_balance
    assert len(storage.list_withdrawals(user_id=user.id)) == 1
    assert len(storage.list_transactions(user.id, type=TransactionTypeEnum.withdrawal)) == 1


def test_database_debit_is_conditional_on_balance(db_session, monkeypatch):
    storage = DatabaseStorage(db_session)
    user = storage.create_user(username="poor", email="poor@example.com", balance=Decimal("60.00"))
    # A check that read a balance which has since been spent elsewhere.
    monkeypatch.setattr(withdrawals_repository, "ensure_withdrawal_allowed", lambda *args: None)

    with pytest.raises(InsufficientBalanceError):
        payment_service.request_withdrawal(storage, user_id=user.id, amount="75", payment_method="paypal", now=NOW)

    assert storage.get_user(user.id).balance == Decimal("60.00")
    assert storage.list_withdrawals(user_id=user.id) == []
    assert storage.list_transactions(user.id) == []
