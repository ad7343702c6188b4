from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from wolf_marketer.db.enums import TransactionStatusEnum, TransactionTypeEnum
from wolf_marketer.db.models import Transaction


class TransactionsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(
        self,
        user_id: int,
        type: Optional[TransactionTypeEnum] = None,
        status: Optional[TransactionStatusEnum] = None,
    ) -> List[Transaction]:
        stmt = select(Transaction).where(Transaction.user_id == user_id)
        if type is not None:
            stmt = stmt.where(Transaction.type == type)
        if status is not None:
            stmt = stmt.where(Transaction.status == status)
        return list(self.session.scalars(stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())).all())

    def create(self, **fields) -> Transaction:
        transaction = Transaction(**fields)
        self.session.add(transaction)
        self.session.commit()
        self.session.refresh(transaction)
        return transaction

    def sum_amount(
        self,
        user_id: int,
        type: TransactionTypeEnum,
        status: Optional[TransactionStatusEnum] = None,
    ) -> Decimal:
        stmt = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.user_id == user_id, Transaction.type == type
        )
        if status is not None:
            stmt = stmt.where(Transaction.status == status)
        total = self.session.execute(stmt).scalar_one()
        return Decimal(str(total))
