from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from wolf_marketer.db.enums import TransactionStatusEnum, TransactionTypeEnum, WithdrawalStatusEnum
from wolf_marketer.db.models import Transaction, User, Withdrawal, utcnow
from wolf_marketer.services.errors import InsufficientBalanceError
from wolf_marketer.storage.lifecycle import ensure_withdrawal_allowed, withdrawn_total

_TRANSACTION_STATUS_FOR_WITHDRAWAL = {
    WithdrawalStatusEnum.pending: TransactionStatusEnum.pending,
    WithdrawalStatusEnum.processing: TransactionStatusEnum.processing,
    WithdrawalStatusEnum.completed: TransactionStatusEnum.complete,
    WithdrawalStatusEnum.failed: TransactionStatusEnum.failed,
}


def transaction_status_for(status: WithdrawalStatusEnum) -> TransactionStatusEnum:
    return _TRANSACTION_STATUS_FOR_WITHDRAWAL[WithdrawalStatusEnum(status)]


class WithdrawalsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, user_id: Optional[int] = None, since: Optional[datetime] = None) -> List[Withdrawal]:
        stmt = select(Withdrawal)
        if user_id is not None:
            stmt = stmt.where(Withdrawal.user_id == user_id)
        if since is not None:
            stmt = stmt.where(Withdrawal.requested_at >= since)
        return list(self.session.scalars(stmt.order_by(Withdrawal.requested_at.desc(), Withdrawal.id.desc())).all())

    def get(self, withdrawal_id: int) -> Optional[Withdrawal]:
        return self.session.get(Withdrawal, withdrawal_id)

    def create(self, **fields) -> Withdrawal:
        withdrawal = Withdrawal(**fields)
        self.session.add(withdrawal)
        self.session.commit()
        self.session.refresh(withdrawal)
        return withdrawal

    def open(
        self,
        *,
        user_id: int,
        amount: Decimal,
        daily_limit: Decimal,
        day_start: datetime,
        description: str,
        **fields,
    ) -> Optional[Withdrawal]:
        """Debit the user and record the withdrawal with its ledger row in one commit.

        The user row is locked before the daily total is read, and the debit is
        conditional on the balance, so concurrent requests cannot overdraw.
        """
        try:
            stmt = select(User).where(User.id == user_id).with_for_update().execution_options(populate_existing=True)
            user = self.session.scalars(stmt).first()
            if user is None:
                self.session.rollback()
                return None
            daily_total = withdrawn_total(self.list(user_id, since=day_start))
            ensure_withdrawal_allowed(user.balance, daily_total, amount, daily_limit)

            debited = self.session.execute(
                update(User)
                .where(User.id == user_id, User.balance >= amount)
                .values(balance=User.balance - amount, updated_at=utcnow())
                .returning(User.id)
            ).scalar_one_or_none()
            if debited is None:
                raise InsufficientBalanceError("Insufficient balance for withdrawal")

            withdrawal = Withdrawal(user_id=user_id, amount=amount, **fields)
            self.session.add(withdrawal)
            self.session.flush()
            self.session.add(
                Transaction(
                    user_id=user_id,
                    type=TransactionTypeEnum.withdrawal,
                    amount=amount,
                    status=transaction_status_for(withdrawal.status),
                    withdrawal_id=withdrawal.id,
                    description=description,
                )
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(withdrawal)
        return withdrawal

    def update(self, withdrawal_id: int, **fields) -> Optional[Withdrawal]:
        withdrawal = self.get(withdrawal_id)
        if not withdrawal:
            return None
        for key, value in fields.items():
            setattr(withdrawal, key, value)
        if "status" in fields:
            self.session.execute(
                update(Transaction)
                .where(Transaction.withdrawal_id == withdrawal_id)
                .values(status=transaction_status_for(fields["status"]))
            )
        self.session.commit()
        self.session.refresh(withdrawal)
        return withdrawal
