from __future__ import annotations

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from wolf_marketer.config import settings
from wolf_marketer.db.deps import get_session
from wolf_marketer.storage.database import DatabaseStorage
from wolf_marketer.storage.interface import Storage
from wolf_marketer.storage.memory import MemStorage


@lru_cache(maxsize=1)
def get_memory_storage() -> MemStorage:
    return MemStorage()


def get_storage(session: Session = Depends(get_session)) -> Storage:
    if settings.STORAGE_BACKEND == "memory":
        return get_memory_storage()
    return DatabaseStorage(session)
