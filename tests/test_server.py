"""HTTP layer tests through TestClient with dependency overrides.

The SDK services are backed by the in-memory MockRepository; no database
or lifespan is involved.
"""

import json
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from wset_server.app import create_app
from wset_server.config import ServerSettings
from wset_server.dependencies import (
    get_dashboard,
    get_db,
    get_processor,
    get_repository,
    get_workflow_logger,
)
from wset_server.routes.webhooks import compute_signature

from helpers.mock_store import MockLogRow
from helpers.orders import order_payload

SECRET = "whsec-test"
ADMIN_KEY = "admin-test-key"


def _build_client(mock_repo, mock_db, processor, dashboard, workflow_logger, settings):
    app = create_app(settings)

    async def override_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_repository] = lambda: mock_repo
    app.dependency_overrides[get_processor] = lambda: processor
    app.dependency_overrides[get_dashboard] = lambda: dashboard
    app.dependency_overrides[get_workflow_logger] = lambda: workflow_logger
    return TestClient(app)


@pytest.fixture
def client(mock_repo, mock_db, processor, dashboard, workflow_logger):
    settings = ServerSettings(webhook_secret=SECRET, admin_api_key=ADMIN_KEY)
    return _build_client(mock_repo, mock_db, processor, dashboard, workflow_logger, settings)


def _post_webhook(client, payload, *, signature=None, secret=SECRET):
    body = json.dumps(payload).encode()
    headers = {"Content-Type": "application/json"}
    if signature is None and secret is not None:
        signature = compute_signature(secret, body)
    if signature:
        headers["X-Squarespace-Signature"] = signature
    return client.post("/api/v1/webhooks/squarespace", content=body, headers=headers)


def _future_exam(days: int = 90) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


# =====================================================================
# Webhook
# =====================================================================


class TestWebhook:

    def test_status_document(self, client):
        resp = client.get("/api/v1/webhooks/squarespace")
        assert resp.status_code == 200
        assert resp.json()["status"] == "active"

    def test_processes_wset_order(self, client, mock_repo):
        payload = {"topic": "order.create", "data": order_payload(exam_date=_future_exam())}
        resp = _post_webhook(client, payload)

        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["success"] is True
        assert len(mock_repo.workflows) == 1
        assert body["workflow_state_id"] == str(next(iter(mock_repo.workflows)))

    def test_replayed_delivery_is_idempotent(self, client, mock_repo):
        payload = {"topic": "order.update", "data": order_payload(exam_date=_future_exam())}
        first = _post_webhook(client, payload)
        second = _post_webhook(client, payload)

        assert first.status_code == second.status_code == 200
        assert second.json()["warnings"] == ["Order was already processed"]
        assert len(mock_repo.workflows) == 1

    def test_missing_signature(self, client):
        payload = {"topic": "order.create", "data": order_payload()}
        resp = _post_webhook(client, payload, secret=None)
        assert resp.status_code == 401

    def test_wrong_signature(self, client, mock_repo):
        payload = {"topic": "order.create", "data": order_payload(exam_date=_future_exam())}
        resp = _post_webhook(client, payload, signature=compute_signature("other", b"{}"))
        assert resp.status_code == 401
        assert mock_repo.workflows == {}

    def test_header_only_check_without_secret(
        self, mock_repo, mock_db, processor, dashboard, workflow_logger,
    ):
        """With no secret configured any non-empty signature header passes."""
        client = _build_client(
            mock_repo, mock_db, processor, dashboard, workflow_logger, ServerSettings(),
        )
        payload = {"topic": "order.create", "data": order_payload(exam_date=_future_exam())}
        resp = _post_webhook(client, payload, signature="unchecked")
        assert resp.status_code == 200, resp.text

    def test_other_topics_ignored(self, client, mock_repo):
        resp = _post_webhook(client, {"topic": "inventory.update", "data": {"id": "x"}})
        assert resp.status_code == 200
        assert resp.json() == {"message": "Webhook received but not processed"}
        assert mock_repo.workflows == {}

    def test_missing_order_id(self, client):
        resp = _post_webhook(client, {"topic": "order.create", "data": {"orderNumber": "1"}})
        assert resp.status_code == 400

    def test_non_wset_order_skipped(self, client, mock_repo):
        data = order_payload(product_names=("Gift card",))
        resp = _post_webhook(client, {"topic": "order.create", "data": data})
        assert resp.status_code == 200
        assert resp.json() == {"message": "Non-WSET order ignored"}
        assert mock_repo.workflows == {}

    def test_invalid_json(self, client):
        body = b"not json"
        resp = client.post(
            "/api/v1/webhooks/squarespace",
            content=body,
            headers={"X-Squarespace-Signature": compute_signature(SECRET, body)},
        )
        assert resp.status_code == 400

    def test_malformed_order(self, client):
        data = order_payload()
        del data["customerEmail"]
        resp = _post_webhook(client, {"topic": "order.create", "data": data})
        assert resp.status_code == 400

    def test_processing_failure_is_500(self, client, mock_repo):
        past_exam = (date.today() + timedelta(days=1)).isoformat()
        data = order_payload(exam_date=past_exam)
        resp = _post_webhook(client, {"topic": "order.create", "data": data})

        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"].startswith("WSET deadline violation")
        assert mock_repo.workflows == {}


# =====================================================================
# Workflow queries
# =====================================================================


class TestWorkflowQueries:

    def test_dashboard(self, client, mock_repo):
        mock_repo.add_workflow(exam_date=date(2026, 3, 18))
        resp = client.get("/api/v1/workflows/dashboard", params={"as_of": "2026-03-02"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["error"] is None
        assert body["statistics"]["urgent_deadlines"] == 1
        assert len(body["deadline_summary"]["urgent"]) == 1

    def test_get_workflow(self, client, mock_repo):
        workflow = mock_repo.add_workflow(exam_date=date(2026, 4, 30), source_order_id="o-7")
        resp = client.get(f"/api/v1/workflows/{workflow.id}")
        assert resp.status_code == 200
        assert resp.json()["source_order_id"] == "o-7"
        assert resp.json()["candidate"]["name"] == "Sam Taylor"

    def test_unknown_workflow_is_404(self, client):
        resp = client.get("/api/v1/workflows/00000000-0000-0000-0000-000000000000")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Resource not found"}

    def test_by_status(self, client, mock_repo):
        mock_repo.add_workflow(exam_date=date(2026, 4, 30), status="submitted")
        mock_repo.add_workflow(exam_date=date(2026, 4, 30))
        resp = client.get("/api/v1/workflows/status/submitted")
        assert resp.status_code == 200
        assert [w["status"] for w in resp.json()] == ["submitted"]

    def test_unknown_status_is_400(self, client):
        resp = client.get("/api/v1/workflows/status/archived")
        assert resp.status_code == 400

    def test_review_queue(self, client, mock_repo):
        flagged = mock_repo.add_workflow(exam_date=date(2026, 4, 30), requires_review=True)
        mock_repo.add_workflow(exam_date=date(2026, 4, 30))
        resp = client.get("/api/v1/workflows/review")
        assert [w["id"] for w in resp.json()] == [str(flagged.id)]

    def test_statistics_rejects_inverted_range(self, client):
        resp = client.get(
            "/api/v1/workflows/statistics",
            params={"start": "2026-03-31T00:00:00Z", "end": "2026-03-01T00:00:00Z"},
        )
        assert resp.status_code == 400

    def test_logs_and_activity(self, client, mock_repo):
        workflow = mock_repo.add_workflow(exam_date=date(2026, 4, 30))
        mock_repo.logs.append(MockLogRow(
            workflow_state_id=workflow.id, action="order_received", workflow_state=workflow,
        ))

        logs = client.get(f"/api/v1/workflows/{workflow.id}/logs").json()
        assert [e["action"] for e in logs] == ["order_received"]
        activity = client.get("/api/v1/workflows/activity").json()
        assert activity[0]["source_order_id"] == workflow.source_order_id

    def test_page_limit_is_capped(self, client):
        resp = client.get("/api/v1/workflows/activity", params={"limit": 10_000})
        assert resp.status_code == 422


# =====================================================================
# Deadline check
# =====================================================================


class TestDeadlineCheck:

    def test_level_1_late_path(self, client):
        resp = client.get(
            "/api/v1/deadlines/check",
            params={
                "exam_date": "2026-03-30",
                "exam_type": "PDF",
                "level": 1,
                "as_of": "2026-03-20",
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["can_submit_today"] is True
        assert body["next_submission_date"] == "2026-03-26"
        assert body["validation"]["can_submit_late"] is True

    def test_rejects_unknown_modality(self, client):
        resp = client.get(
            "/api/v1/deadlines/check",
            params={"exam_date": "2026-03-30", "exam_type": "ZOOM", "level": 2},
        )
        assert resp.status_code == 422


# =====================================================================
# Admin
# =====================================================================


class TestAdmin:

    def _headers(self, key=ADMIN_KEY):
        return {"X-Admin-Key": key}

    def test_missing_key(self, client):
        resp = client.post("/api/v1/admin/orders/o-1/reprocess")
        assert resp.status_code == 401

    def test_wrong_key(self, client):
        resp = client.post("/api/v1/admin/orders/o-1/reprocess", headers=self._headers("nope"))
        assert resp.status_code == 403

    def test_disabled_without_configured_key(
        self, mock_repo, mock_db, processor, dashboard, workflow_logger,
    ):
        client = _build_client(
            mock_repo, mock_db, processor, dashboard, workflow_logger, ServerSettings(),
        )
        resp = client.post("/api/v1/admin/orders/o-1/reprocess", headers=self._headers())
        assert resp.status_code == 403

    def test_reprocess_unknown_order(self, client):
        resp = client.post("/api/v1/admin/orders/o-1/reprocess", headers=self._headers())
        assert resp.status_code == 404

    def test_reprocess_healthy_order_conflicts(self, client, mock_repo):
        mock_repo.add_workflow(exam_date=date(2026, 4, 30), source_order_id="o-1")
        resp = client.post("/api/v1/admin/orders/o-1/reprocess", headers=self._headers())
        assert resp.status_code == 409

    def test_reprocess_failed_order(self, client, mock_repo):
        workflow = mock_repo.add_workflow(
            exam_date=date(2026, 4, 30), source_order_id="o-1", status="error", error_count=1,
        )
        resp = client.post(
            "/api/v1/admin/orders/o-1/reprocess",
            headers=self._headers(),
            json={"performed_by": "ops@example.com"},
        )
        assert resp.status_code == 200, resp.text
        assert workflow.status == "processing"
        assert mock_repo.logs[-1].performed_by == "ops@example.com"

    def test_update_workflow(self, client, mock_repo):
        workflow = mock_repo.add_workflow(exam_date=date(2026, 4, 30))
        resp = client.patch(
            f"/api/v1/admin/workflows/{workflow.id}",
            headers=self._headers(),
            json={
                "status": "submitted",
                "step": "wset_submitted",
                "step_completed": True,
                "action": "wset_submitted",
                "details": {"portal_ref": "EB-1182"},
                "performed_by": "jo@example.com",
            },
        )
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"success": True, "error": None}
        assert workflow.status == "submitted"
        assert workflow.step_wset_submitted is True
        log = mock_repo.logs[-1]
        assert log.action == "wset_submitted"
        assert log.details == {"portal_ref": "EB-1182"}
        assert log.automated is False

    def test_update_cannot_reopen_completed_workflow(self, client, mock_repo):
        workflow = mock_repo.add_workflow(exam_date=date(2026, 4, 30), status="completed")
        resp = client.patch(
            f"/api/v1/admin/workflows/{workflow.id}",
            headers=self._headers(),
            json={"status": "received"},
        )
        assert resp.status_code == 409
        assert resp.json()["success"] is False
        assert workflow.status == "completed"

    def test_update_cannot_clear_review_with_errors(self, client, mock_repo):
        workflow = mock_repo.add_workflow(
            exam_date=date(2026, 4, 30), error_count=1, requires_review=True,
        )
        resp = client.patch(
            f"/api/v1/admin/workflows/{workflow.id}",
            headers=self._headers(),
            json={"requires_review": False},
        )
        assert resp.status_code == 409
        assert workflow.requires_review is True

    def test_reprocess_completed_order_conflicts(self, client, mock_repo):
        workflow = mock_repo.add_workflow(
            exam_date=date(2026, 4, 30), source_order_id="o-1", status="completed", error_count=1,
        )
        resp = client.post("/api/v1/admin/orders/o-1/reprocess", headers=self._headers())
        assert resp.status_code == 409
        assert workflow.status == "completed"

    def test_update_unknown_workflow(self, client):
        resp = client.patch(
            "/api/v1/admin/workflows/00000000-0000-0000-0000-000000000000",
            headers=self._headers(),
            json={"status": "submitted"},
        )
        assert resp.status_code == 404

    def test_update_step_requires_completion_flag(self, client, mock_repo):
        workflow = mock_repo.add_workflow(exam_date=date(2026, 4, 30))
        resp = client.patch(
            f"/api/v1/admin/workflows/{workflow.id}",
            headers=self._headers(),
            json={"step": "wset_submitted"},
        )
        assert resp.status_code == 422

    def test_update_rejects_unknown_action(self, client, mock_repo):
        workflow = mock_repo.add_workflow(exam_date=date(2026, 4, 30))
        resp = client.patch(
            f"/api/v1/admin/workflows/{workflow.id}",
            headers=self._headers(),
            json={"action": "squarespace_order_received"},
        )
        assert resp.status_code == 422
