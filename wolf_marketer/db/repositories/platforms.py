from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from wolf_marketer.db.models import Platform


class PlatformsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self) -> List[Platform]:
        return list(self.session.scalars(select(Platform).order_by(Platform.id)).all())

    def get(self, platform_id: int) -> Optional[Platform]:
        return self.session.get(Platform, platform_id)

    def get_by_name(self, name: str) -> Optional[Platform]:
        stmt = select(Platform).where(func.lower(Platform.name) == name.strip().lower())
        return self.session.scalars(stmt).first()

    def create(self, **fields) -> Platform:
        platform = Platform(**fields)
        self.session.add(platform)
        self.session.commit()
        self.session.refresh(platform)
        return platform

    def update(self, platform_id: int, **fields) -> Optional[Platform]:
        platform = self.get(platform_id)
        if not platform:
            return None
        for key, value in fields.items():
            setattr(platform, key, value)
        self.session.commit()
        self.session.refresh(platform)
        return platform

    def delete(self, platform_id: int) -> bool:
        platform = self.get(platform_id)
        if not platform:
            return False
        self.session.delete(platform)
        self.session.commit()
        return True
