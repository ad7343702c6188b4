from decimal import Decimal

import pytest
from pydantic import ValidationError

from wolf_marketer.schemas.opportunities import OpportunityMatchRequest
from wolf_marketer.schemas.payments import WithdrawalCreateRequest
from wolf_marketer.schemas.tasks import TaskOutcomeRequest
from wolf_marketer.schemas.workflows import WorkflowCreateRequest, WorkflowStats


def test_workflow_stats_must_fit_within_runs():
    assert WorkflowStats(runs=30, successes=28, failures=2).runs == 30

    with pytest.raises(ValidationError):
        WorkflowStats(runs=3, successes=3, failures=1)
    with pytest.raises(ValidationError):
        WorkflowStats(runs=3, successes=-1, failures=0)


def test_workflow_create_defaults():
    payload = WorkflowCreateRequest(platformId=1, name="CB Scanner")

    assert payload.steps == []
    assert payload.stats is None
    with pytest.raises(ValidationError):
        WorkflowCreateRequest(platformId=1, name="")
    with pytest.raises(ValidationError):
        WorkflowCreateRequest(platformId=1, name="CB", steps=[{"type": "teleport"}])


def test_task_outcome_only_accepts_terminal_status():
    assert TaskOutcomeRequest(status="completed", revenue="12.5").revenue == Decimal("12.5")

    with pytest.raises(ValidationError):
        TaskOutcomeRequest(status="pending")
    with pytest.raises(ValidationError):
        TaskOutcomeRequest(status="failed", revenue="-3")


def test_withdrawal_amount_must_be_positive():
    with pytest.raises(ValidationError):
        WithdrawalCreateRequest(userId=1, amount="0", paymentMethod="paypal")
    with pytest.raises(ValidationError):
        WithdrawalCreateRequest(userId=1, amount="10", paymentMethod="cheque")


def test_match_count_bounds():
    assert OpportunityMatchRequest(userProfile={}).matchCount == 5

    with pytest.raises(ValidationError):
        OpportunityMatchRequest(userProfile={}, matchCount=0)
    with pytest.raises(ValidationError):
        OpportunityMatchRequest(userProfile={}, matchCount=51)
