from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from wolf_marketer.db.models import Workflow, utcnow
from wolf_marketer.services.errors import StaleRecordError


class WorkflowsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, platform_id: Optional[int] = None) -> List[Workflow]:
        stmt = select(Workflow)
        if platform_id is not None:
            stmt = stmt.where(Workflow.platform_id == platform_id)
        return list(self.session.scalars(stmt.order_by(Workflow.id)).all())

    def get(self, workflow_id: int) -> Optional[Workflow]:
        return self.session.get(Workflow, workflow_id)

    def create(self, **fields) -> Workflow:
        workflow = Workflow(**fields)
        self.session.add(workflow)
        self.session.commit()
        self.session.refresh(workflow)
        return workflow

    def update(self, workflow_id: int, expected_version: Optional[int] = None, **fields) -> Optional[Workflow]:
        if expected_version is None:
            workflow = self.get(workflow_id)
            if not workflow:
                return None
            for key, value in fields.items():
                setattr(workflow, key, value)
            workflow.version = workflow.version + 1
            workflow.updated_at = utcnow()
            self.session.commit()
            self.session.refresh(workflow)
            return workflow

        stmt = (
            update(Workflow)
            .where(Workflow.id == workflow_id, Workflow.version == expected_version)
            .values(**fields, version=Workflow.version + 1, updated_at=utcnow())
            .returning(Workflow)
        )
        workflow = self.session.execute(stmt).scalar_one_or_none()
        if workflow:
            self.session.commit()
            self.session.refresh(workflow)
            return workflow
        self.session.rollback()
        current = self.get(workflow_id)
        if current is None:
            return None
        raise StaleRecordError(
            f"Workflow {workflow_id} was modified concurrently "
            f"(expected version {expected_version}, found {current.version})"
        )

    def record_outcome(
        self, workflow_id: int, *, succeeded: bool, revenue: Decimal, ran_at: datetime
    ) -> Optional[Workflow]:
        values = {
            "runs": Workflow.runs + 1,
            "revenue": Workflow.revenue + revenue,
            "last_run": ran_at,
            "version": Workflow.version + 1,
            "updated_at": utcnow(),
        }
        if succeeded:
            values["successes"] = Workflow.successes + 1
        else:
            values["failures"] = Workflow.failures + 1
        stmt = update(Workflow).where(Workflow.id == workflow_id).values(**values).returning(Workflow)
        workflow = self.session.execute(stmt).scalar_one_or_none()
        if workflow:
            self.session.commit()
            self.session.refresh(workflow)
        return workflow

    def delete(self, workflow_id: int) -> bool:
        workflow = self.get(workflow_id)
        if not workflow:
            return False
        self.session.delete(workflow)
        self.session.commit()
        return True
