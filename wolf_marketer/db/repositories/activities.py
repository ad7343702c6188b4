from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from wolf_marketer.db.models import Activity, utcnow


class ActivitiesRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(
        self,
        limit: Optional[int] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[Activity]:
        stmt = select(Activity)
        if since is not None:
            stmt = stmt.where(Activity.timestamp >= since)
        if until is not None:
            stmt = stmt.where(Activity.timestamp <= until)
        stmt = stmt.order_by(Activity.timestamp.desc(), Activity.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.scalars(stmt).all())

    def create(self, **fields) -> Activity:
        fields.pop("timestamp", None)
        activity = Activity(timestamp=utcnow(), **fields)
        self.session.add(activity)
        self.session.commit()
        self.session.refresh(activity)
        return activity
