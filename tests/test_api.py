from datetime import datetime, timedelta, timezone
from decimal import Decimal

from fastapi.testclient import TestClient

from wolf_marketer.main import app
from wolf_marketer.storage.database import DatabaseStorage
from wolf_marketer.storage.deps import get_storage


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _connect(client, name="Clickbank", **payload):
    resp = client.post("/platforms", json={"name": name, "type": "affiliate", **payload})
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(api_client):
    resp = api_client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_create_workflow_flow(api_client):
    platform = _connect(api_client, apiKey="cb_key")
    assert platform["id"] == 1
    assert platform["hasCredentials"] is True
    assert "apiKey" not in platform

    before = datetime.now(timezone.utc)
    resp = api_client.post("/workflows", json={"platformId": platform["id"], "name": "CB Scanner"})
    assert resp.status_code == 201, resp.text
    workflow = resp.json()

    assert workflow["id"] == 1
    assert workflow["status"] == "inactive"
    assert workflow["stats"] == {"runs": 0, "successes": 0, "failures": 0}
    assert workflow["revenue"] == "0.00"
    next_run = _parse_ts(workflow["nextRun"])
    assert before + timedelta(minutes=14) < next_run < before + timedelta(minutes=16)

    titles = [activity["title"] for activity in api_client.get("/activities").json()]
    assert titles[0] == "Workflow created: CB Scanner"
    assert "Platform connected: Clickbank" in titles


def test_duplicate_platform_name_conflicts(api_client):
    _connect(api_client, name="Amazon Associates")

    resp = api_client.post("/platforms", json={"name": "amazon associates", "type": "affiliate"})

    assert resp.status_code == 409
    assert "already exists" in resp.json()["detail"]


def test_validation_errors_are_400_with_message(api_client):
    resp = api_client.post("/platforms", json={"type": "affiliate"})

    assert resp.status_code == 400
    assert "name" in resp.json()["detail"]


def test_inconsistent_stats_rejected(api_client):
    platform = _connect(api_client)

    resp = api_client.post(
        "/workflows",
        json={"platformId": platform["id"], "name": "Bad", "stats": {"runs": 1, "successes": 1, "failures": 1}},
    )

    assert resp.status_code == 400


def test_workflow_for_unknown_platform_is_400(api_client):
    resp = api_client.post("/workflows", json={"platformId": 42, "name": "Orphan"})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Platform 42 does not exist"


def test_missing_resources_are_404(api_client):
    assert api_client.get("/platforms/9").status_code == 404
    assert api_client.delete("/platforms/9").status_code == 404
    assert api_client.get("/workflows/9").json() == {"detail": "Workflow not found"}
    assert api_client.get("/tasks/9").status_code == 404


def test_delete_platform_with_workflows_conflicts(api_client):
    platform = _connect(api_client)
    workflow = api_client.post("/workflows", json={"platformId": platform["id"], "name": "CB Scanner"}).json()

    assert api_client.delete(f"/platforms/{platform['id']}").status_code == 409
    assert api_client.delete(f"/workflows/{workflow['id']}").status_code == 204
    assert api_client.delete(f"/platforms/{platform['id']}").status_code == 204
    assert api_client.get("/platforms").json() == []


def test_task_outcome_flow(api_client):
    platform = _connect(api_client)
    workflow = api_client.post("/workflows", json={"platformId": platform["id"], "name": "CB Scanner"}).json()
    task = api_client.post("/tasks", json={"workflowId": workflow["id"], "action": "scan"}).json()
    assert task["status"] == "pending"
    assert task["platformId"] == platform["id"]

    resp = api_client.post(f"/tasks/{task['id']}/outcome", json={"status": "completed", "revenue": "19.99"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "completed"
    assert resp.json()["revenue"] == "19.99"

    again = api_client.post(f"/tasks/{task['id']}/outcome", json={"status": "failed"})
    assert again.status_code == 400

    rolled_up = api_client.get(f"/workflows/{workflow['id']}").json()
    assert rolled_up["stats"] == {"runs": 1, "successes": 1, "failures": 0}
    assert rolled_up["revenue"] == "19.99"
    assert rolled_up["successRate"] == 100.0

    completed = api_client.get("/tasks", params={"workflowId": workflow["id"], "status": "completed"}).json()
    assert [item["id"] for item in completed] == [task["id"]]


def test_workflow_patch_with_stale_version_conflicts(api_client):
    platform = _connect(api_client)
    workflow = api_client.post("/workflows", json={"platformId": platform["id"], "name": "CB Scanner"}).json()

    first = api_client.patch(f"/workflows/{workflow['id']}", json={"status": "active", "expectedVersion": 1})
    assert first.status_code == 200
    assert first.json()["version"] == 2

    stale = api_client.patch(f"/workflows/{workflow['id']}", json={"status": "inactive", "expectedVersion": 1})
    assert stale.status_code == 409
    assert api_client.get(f"/workflows/{workflow['id']}").json()["status"] == "active"


def test_activities_limit(api_client):
    for index in range(12):
        assert api_client.post("/activities", json={"type": "system", "title": f"Event {index}"}).status_code == 201

    assert len(api_client.get("/activities").json()) == 10
    limited = api_client.get("/activities", params={"limit": 3}).json()
    assert [item["title"] for item in limited] == ["Event 11", "Event 10", "Event 9"]
    assert api_client.get("/activities", params={"limit": 0}).status_code == 400


def test_connection_test_and_sync(api_client, fake_connector):
    platform = _connect(api_client, name="Upwork", apiKey="uw_key")

    fake_connector.ok = False
    failed = api_client.post(f"/platforms/{platform['id']}/test-connection").json()
    assert failed["success"] is False
    assert failed["platform"]["status"] == "error"

    sync = api_client.post(f"/platforms/{platform['id']}/sync")
    assert sync.status_code == 400

    fake_connector.ok = True
    passed = api_client.post(f"/platforms/{platform['id']}/test-connection").json()
    assert passed["success"] is True
    assert passed["platform"]["status"] == "connected"
    assert passed["platform"]["healthStatus"] == "healthy"
    assert api_client.post(f"/platforms/{platform['id']}/sync").status_code == 200
    assert fake_connector.calls == ["Upwork", "Upwork", "Upwork"]


def test_platform_status_only_set_by_connection_test(api_client, fake_connector):
    created = _connect(api_client, name="Upwork", status="connected", healthStatus="warning")
    assert created["status"] == "disconnected"
    assert created["healthStatus"] == "healthy"
    assert created["hasCredentials"] is False

    patched = api_client.patch(f"/platforms/{created['id']}", json={"status": "connected"})
    assert patched.status_code == 200
    assert patched.json()["status"] == "disconnected"

    api_client.patch(f"/platforms/{created['id']}", json={"apiKey": "uw_key"})
    assert api_client.post(f"/platforms/{created['id']}/test-connection").json()["platform"]["status"] == "connected"

    renamed = api_client.patch(f"/platforms/{created['id']}", json={"name": "Upwork Pro"}).json()
    assert renamed["status"] == "connected"

    rotated = api_client.patch(f"/platforms/{created['id']}", json={"apiKey": "uw_key_2"}).json()
    assert rotated["status"] == "disconnected"
    assert api_client.post(f"/platforms/{created['id']}/sync").status_code == 400

    assert api_client.post(f"/platforms/{created['id']}/test-connection").json()["platform"]["status"] == "connected"
    removed = api_client.patch(f"/platforms/{created['id']}", json={"apiKey": None}).json()
    assert removed["status"] == "disconnected"
    assert removed["hasCredentials"] is False


def test_withdrawal_daily_limit_response(api_client, memory_storage):
    user = memory_storage.create_user(username="demo", email="demo@example.com", balance=Decimal("1000.00"))

    first = api_client.post(
        "/payments/withdrawals", json={"userId": user.id, "amount": "480.00", "paymentMethod": "paypal"}
    )
    assert first.status_code == 201, first.text
    assert first.json()["netAmount"] == "384.00"

    resp = api_client.post("/payments/withdrawals", json={"userId": user.id, "amount": "50", "paymentMethod": "paypal"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["remaining"] == 20.0
    assert body["dailyLimit"] == 500.0
    assert "Daily withdrawal limit" in body["detail"]
    financials = api_client.get("/payments/financials", params={"userId": user.id}).json()
    assert financials["balance"] == "520.00"


def test_cancel_withdrawal_endpoint(api_client, memory_storage):
    user = memory_storage.create_user(username="demo", email="demo@example.com", balance=Decimal("200.00"))
    other = memory_storage.create_user(username="other", email="other@example.com")
    withdrawal = api_client.post(
        "/payments/withdrawals", json={"userId": user.id, "amount": "100", "paymentMethod": "bank"}
    ).json()

    forbidden = api_client.post(f"/payments/withdrawals/{withdrawal['id']}/cancel", json={"userId": other.id})
    assert forbidden.status_code == 403

    resp = api_client.post(f"/payments/withdrawals/{withdrawal['id']}/cancel", json={"userId": user.id})
    assert resp.status_code == 200
    assert resp.json()["status"] == "failed"
    assert resp.json()["notes"] == "Cancelled by user"
    listed = api_client.get("/payments/withdrawals", params={"userId": user.id}).json()
    assert [item["status"] for item in listed] == ["failed"]


def test_payment_methods_endpoints(api_client, memory_storage):
    user = memory_storage.create_user(username="demo", email="demo@example.com")
    payload = {"userId": user.id, "type": "paypal", "accountDetails": "me@example.com", "isDefault": True}
    first = api_client.post("/payments/methods", json={**payload, "accountName": "Main"}).json()
    second = api_client.post("/payments/methods", json={**payload, "accountName": "Alt"}).json()

    methods = api_client.get("/payments/methods", params={"userId": user.id}).json()
    assert {item["id"]: item["isDefault"] for item in methods} == {first["id"]: False, second["id"]: True}

    patched = api_client.patch(f"/payments/methods/{first['id']}", json={"userId": user.id, "isDefault": True})
    assert patched.json()["isDefault"] is True
    assert api_client.delete(f"/payments/methods/{second['id']}", params={"userId": user.id}).status_code == 204


def test_reports_endpoints(api_client, memory_storage):
    user = memory_storage.create_user(username="demo", email="demo@example.com")
    platform = _connect(api_client)

    window = api_client.get("/reports/date-range", params={"period": "today"}).json()
    assert _parse_ts(window["startDate"]) <= _parse_ts(window["endDate"])
    assert window["period"] == "today"
    assert api_client.get("/reports/date-range").json()["period"] == "last30days"

    rows = api_client.get(f"/reports/users/{user.id}/earnings/platforms").json()
    assert rows == [
        {
            "platformId": platform["id"],
            "platformName": "Clickbank",
            "earnings": "0.00",
            "commissions": "0.00",
            "tasks": 0,
            "successRate": 0,
        }
    ]
    periods = api_client.get(
        f"/reports/users/{user.id}/earnings/periods", params={"timeframe": "monthly", "periodCount": 2}
    ).json()
    assert len(periods) == 2

    assert api_client.get("/reports/users/404/earnings/platforms").json() == {"detail": "User not found"}
    assert (
        api_client.get(f"/reports/users/{user.id}/earnings/periods", params={"timeframe": "hourly"}).status_code
        == 400
    )
    assert api_client.get("/reports/platforms/404").status_code == 404
    assert api_client.get(f"/reports/platforms/{platform['id']}").json()["workflowCount"] == 0
    assert api_client.get("/reports/system").json()["platforms"]["total"] == 1
    assert api_client.get("/reports/admin/users").json()[0]["username"] == "demo"
    assert api_client.get("/reports/admin/platform-earnings").json()["summary"]["totalPlatforms"] == 1


def test_opportunity_match_endpoint(api_client):
    resp = api_client.post(
        "/opportunities/match",
        json={
            "userProfile": {"skills": ["copywriting"]},
            "candidates": [
                {"id": "a", "platform": "Fiverr", "title": "Logo design"},
                {"id": "b", "platform": "Upwork", "title": "Copywriting for a SaaS landing page"},
            ],
            "matchCount": 1,
        },
    )

    assert resp.status_code == 200
    assert [item["id"] for item in resp.json()] == ["b"]
    assert resp.json()[0]["matchScore"] == 50


def test_api_on_database_storage(db_session):
    app.dependency_overrides[get_storage] = lambda: DatabaseStorage(db_session)
    try:
        with TestClient(app) as client:
            platform = _connect(client, apiKey="cb_key")
            assert client.post("/platforms", json={"name": "CLICKBANK", "type": "affiliate"}).status_code == 409

            workflow = client.post(
                "/workflows",
                json={"platformId": platform["id"], "name": "CB Scanner", "steps": [{"type": "trigger"}]},
            ).json()
            assert workflow["steps"] == [{"type": "trigger", "config": {}}]

            task = client.post("/tasks", json={"workflowId": workflow["id"]}).json()
            done = client.post(f"/tasks/{task['id']}/outcome", json={"status": "failed"})
            assert done.status_code == 200
            assert client.post(f"/tasks/{task['id']}/outcome", json={"status": "completed"}).status_code == 400

            rolled_up = client.get(f"/workflows/{workflow['id']}").json()
            assert rolled_up["stats"] == {"runs": 1, "successes": 0, "failures": 1}
            assert client.get("/activities", params={"limit": 1}).json()[0]["title"] == "Task failed: CB Scanner"
    finally:
        app.dependency_overrides.clear()


def test_startup_leaves_no_database_file(override_dependencies, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    with TestClient(app) as client:
        assert client.get("/health").status_code == 200

    assert list(tmp_path.iterdir()) == []
