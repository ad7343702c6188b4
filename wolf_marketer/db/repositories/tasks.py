from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from wolf_marketer.db.enums import TaskStatusEnum
from wolf_marketer.db.models import Task, utcnow
from wolf_marketer.services.errors import InvalidTaskTransitionError
from wolf_marketer.storage.lifecycle import ensure_task_transition


class TasksRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(
        self,
        workflow_id: Optional[int] = None,
        platform_id: Optional[int] = None,
        status: Optional[TaskStatusEnum] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[Task]:
        stmt = select(Task)
        if workflow_id is not None:
            stmt = stmt.where(Task.workflow_id == workflow_id)
        if platform_id is not None:
            stmt = stmt.where(Task.platform_id == platform_id)
        if status is not None:
            stmt = stmt.where(Task.status == status)
        if since is not None:
            stmt = stmt.where(Task.created_at >= since)
        if until is not None:
            stmt = stmt.where(Task.created_at <= until)
        return list(self.session.scalars(stmt.order_by(Task.created_at.desc(), Task.id.desc())).all())

    def get(self, task_id: int) -> Optional[Task]:
        return self.session.get(Task, task_id)

    def create(self, **fields) -> Task:
        fields.pop("status", None)
        task = Task(status=TaskStatusEnum.pending, **fields)
        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)
        return task

    def update(self, task_id: int, **fields) -> Optional[Task]:
        task = self.get(task_id)
        if not task:
            return None
        if "status" not in fields:
            for key, value in fields.items():
                setattr(task, key, value)
            task.updated_at = utcnow()
            self.session.commit()
            self.session.refresh(task)
            return task

        current = task.status
        fields["status"] = ensure_task_transition(current, fields["status"])
        # Conditional on the status we validated against so two writers cannot both finish a task.
        stmt = (
            update(Task)
            .where(Task.id == task_id, Task.status == current)
            .values(**fields, updated_at=utcnow())
            .returning(Task)
        )
        updated = self.session.execute(stmt).scalar_one_or_none()
        if updated is None:
            self.session.rollback()
            raise InvalidTaskTransitionError(f"Task {task_id} changed status concurrently")
        self.session.commit()
        self.session.refresh(updated)
        return updated

    def delete(self, task_id: int) -> bool:
        task = self.get(task_id)
        if not task:
            return False
        self.session.delete(task)
        self.session.commit()
        return True
