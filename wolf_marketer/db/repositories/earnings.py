from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from wolf_marketer.db.models import PlatformEarning, utcnow


class PlatformEarningsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(
        self,
        user_id: Optional[int] = None,
        platform_id: Optional[int] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[PlatformEarning]:
        stmt = select(PlatformEarning)
        if user_id is not None:
            stmt = stmt.where(PlatformEarning.user_id == user_id)
        if platform_id is not None:
            stmt = stmt.where(PlatformEarning.platform_id == platform_id)
        if since is not None:
            stmt = stmt.where(PlatformEarning.date >= since)
        if until is not None:
            stmt = stmt.where(PlatformEarning.date <= until)
        return list(self.session.scalars(stmt.order_by(PlatformEarning.date, PlatformEarning.id)).all())

    def record(
        self,
        *,
        user_id: int,
        platform_id: int,
        amount: Decimal,
        commissions: Decimal,
        period: str,
        date: datetime,
    ) -> PlatformEarning:
        stmt = select(PlatformEarning).where(
            PlatformEarning.user_id == user_id,
            PlatformEarning.platform_id == platform_id,
            PlatformEarning.period == period,
            PlatformEarning.date == date,
        )
        earning = self.session.scalars(stmt).first()
        if earning:
            earning.amount = earning.amount + amount
            earning.commissions = earning.commissions + commissions
            earning.updated_at = utcnow()
        else:
            earning = PlatformEarning(
                user_id=user_id,
                platform_id=platform_id,
                amount=amount,
                commissions=commissions,
                period=period,
                date=date,
            )
            self.session.add(earning)
        self.session.commit()
        self.session.refresh(earning)
        return earning
