from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from wolf_marketer.db.models import User, utcnow


class UsersRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self) -> List[User]:
        return list(self.session.scalars(select(User).order_by(User.id)).all())

    def get(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return self.session.scalars(select(User).where(User.username == username)).first()

    def create(self, **fields) -> User:
        user = User(**fields)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def update(self, user_id: int, **fields) -> Optional[User]:
        user = self.get(user_id)
        if not user:
            return None
        for key, value in fields.items():
            setattr(user, key, value)
        self.session.commit()
        self.session.refresh(user)
        return user

    def adjust_balance(self, user_id: int, delta: Decimal) -> Optional[User]:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(balance=User.balance + delta, updated_at=utcnow())
            .returning(User)
        )
        user = self.session.execute(stmt).scalar_one_or_none()
        if user:
            self.session.commit()
            self.session.refresh(user)
        return user
