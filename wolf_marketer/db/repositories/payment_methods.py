from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from wolf_marketer.db.models import PaymentMethod, utcnow


class PaymentMethodsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, user_id: int) -> List[PaymentMethod]:
        stmt = select(PaymentMethod).where(PaymentMethod.user_id == user_id)
        return list(self.session.scalars(stmt.order_by(PaymentMethod.id)).all())

    def get(self, payment_method_id: int) -> Optional[PaymentMethod]:
        return self.session.get(PaymentMethod, payment_method_id)

    def _clear_defaults(self, user_id: int, method_type, exclude_id: Optional[int] = None) -> None:
        stmt = update(PaymentMethod).where(
            PaymentMethod.user_id == user_id,
            PaymentMethod.type == method_type,
            PaymentMethod.is_default.is_(True),
        )
        if exclude_id is not None:
            stmt = stmt.where(PaymentMethod.id != exclude_id)
        self.session.execute(stmt.values(is_default=False, updated_at=utcnow()))

    def create(self, **fields) -> PaymentMethod:
        if fields.get("is_default"):
            self._clear_defaults(fields["user_id"], fields["type"])
        method = PaymentMethod(**fields)
        self.session.add(method)
        self.session.commit()
        self.session.refresh(method)
        return method

    def update(self, payment_method_id: int, **fields) -> Optional[PaymentMethod]:
        method = self.get(payment_method_id)
        if not method:
            return None
        if fields.get("is_default"):
            self._clear_defaults(method.user_id, fields.get("type", method.type), exclude_id=method.id)
        for key, value in fields.items():
            setattr(method, key, value)
        method.updated_at = utcnow()
        self.session.commit()
        self.session.refresh(method)
        return method

    def delete(self, payment_method_id: int) -> bool:
        method = self.get(payment_method_id)
        if not method:
            return False
        self.session.delete(method)
        self.session.commit()
        return True
