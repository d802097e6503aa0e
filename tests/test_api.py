"""
Tests for the FastAPI endpoints.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from aion.main import app
from aion.storage.memory import run_storage, workflow_storage


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def client():
    asyncio.run(workflow_storage.clear())
    asyncio.run(run_storage.clear())
    with TestClient(app) as test_client:
        yield test_client


def echo_workflow():
    return {
        "name": "echo",
        "description": "Trigger node feeding the log action",
        "nodes": [
            {"id": "in", "label": "Input", "config": {"triggerData": {"topic": "release"}}},
            {"id": "echo", "config": {
                "integrationId": "logic",
                "actionId": "log",
                "data": {"about": "{{Input.text}}", "from": "{{trigger.user}}"},
            }},
        ],
        "edges": [{"sourceNodeId": "in", "targetNodeId": "echo"}],
    }


def failing_workflow():
    return {
        "name": "broken",
        "nodes": [
            {"id": "first", "config": {"data": {"ok": True}}},
            {"id": "ask", "config": {"integrationId": "openai", "actionId": "chat", "data": {"userPrompt": "hi"}}},
        ],
        "edges": [{"source": "first", "target": "ask"}],
    }


def create(client, payload) -> str:
    response = client.post("/workflows", json=payload)
    assert response.status_code == 201
    return response.json()["workflow_id"]


# ============================================================
# Root Endpoints
# ============================================================

class TestRootEndpoints:
    """Tests for root endpoints."""

    def test_root(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert "name" in data
        assert "version" in data
        assert "endpoints" in data

    def test_health(self, client):
        """Test health endpoint."""
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["integrations_count"] == 10


# ============================================================
# Integration Endpoints
# ============================================================

class TestIntegrationEndpoints:
    """Tests for integration discovery."""

    def test_list_integrations(self, client):
        """Test listing every integration."""
        response = client.get("/integrations")
        assert response.status_code == 200

        data = response.json()
        ids = [i["id"] for i in data["integrations"]]
        assert data["total"] == len(ids)
        assert "logic" in ids
        assert "telegram" in ids

    def test_filter_by_category(self, client):
        """Test the category filter."""
        response = client.get("/integrations", params={"category": "ai"})
        assert response.status_code == 200

        categories = {i["category"] for i in response.json()["integrations"]}
        assert categories == {"ai"}

    def test_get_integration(self, client):
        """Test getting one integration with its actions."""
        response = client.get("/integrations/google_sheets")
        assert response.status_code == 200

        data = response.json()
        assert data["auth_provider"] == "google"
        assert {a["id"] for a in data["actions"]} == {"append_row", "read_range"}

    def test_get_unknown_integration(self, client):
        response = client.get("/integrations/nope")
        assert response.status_code == 404


# ============================================================
# Workflow Endpoints
# ============================================================

class TestWorkflowEndpoints:
    """Tests for workflow storage endpoints."""

    def test_create_and_get(self, client):
        """Test storing and reading back a workflow."""
        response = client.post("/workflows", json=echo_workflow())
        assert response.status_code == 201

        data = response.json()
        assert data["node_count"] == 2
        assert data["edge_count"] == 1

        response = client.get(f"/workflows/{data['workflow_id']}")
        assert response.status_code == 200
        stored = response.json()
        assert stored["name"] == "echo"
        assert stored["edges"][0]["sourceNodeId"] == "in"
        assert stored["nodes"][1]["config"]["integrationId"] == "logic"

    def test_list_workflows(self, client):
        create(client, echo_workflow())
        create(client, failing_workflow())

        response = client.get("/workflows")
        assert response.status_code == 200
        assert response.json()["total"] == 2

    def test_delete_workflow(self, client):
        workflow_id = create(client, echo_workflow())

        assert client.delete(f"/workflows/{workflow_id}").status_code == 204
        assert client.get(f"/workflows/{workflow_id}").status_code == 404
        assert client.delete(f"/workflows/{workflow_id}").status_code == 404

    def test_duplicate_node_ids_rejected(self, client):
        payload = echo_workflow()
        payload["nodes"][1]["id"] = "in"

        response = client.post("/workflows", json=payload)
        assert response.status_code == 400

    def test_invalid_payload(self, client):
        """Test that malformed nodes fail validation."""
        response = client.post("/workflows", json={"name": "bad", "nodes": [{"label": "no id"}]})
        assert response.status_code == 422

    def test_execution_order_preview(self, client):
        """Test the order preview, including cycle reporting."""
        payload = {
            "name": "cycle",
            "nodes": [{"id": "b"}, {"id": "a"}, {"id": "c"}],
            "edges": [
                {"source": "a", "target": "b"},
                {"source": "b", "target": "c"},
                {"source": "c", "target": "b"},
            ],
        }
        workflow_id = create(client, payload)

        response = client.get(f"/workflows/{workflow_id}/order")
        assert response.status_code == 200

        data = response.json()
        assert sorted(data["order"]) == ["a", "b", "c"]
        assert data["order"].index("a") < data["order"].index("b")
        assert data["has_cycles"] is True
        assert len(data["cycle_edges"]) == 1


# ============================================================
# Execution Endpoints
# ============================================================

class TestRunEndpoints:
    """Tests for manual runs and run records."""

    def test_run_workflow(self, client):
        """Test a successful synchronous run."""
        workflow_id = create(client, echo_workflow())

        response = client.post(f"/workflows/{workflow_id}/run", json={"trigger": {"user": "ada"}})
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "success"
        assert data["order"] == ["in", "echo"]
        assert data["outputs"]["echo"] == {"about": "release", "from": "ada"}
        assert [entry["status"] for entry in data["logs"]] == ["running", "success", "running", "success"]

    def test_run_without_body(self, client):
        workflow_id = create(client, echo_workflow())

        response = client.post(f"/workflows/{workflow_id}/run")
        assert response.status_code == 200
        assert response.json()["outputs"]["echo"]["from"] == "{{trigger.user}}"

    def test_failed_run(self, client):
        """Test that a failing node is reported in the result."""
        workflow_id = create(client, failing_workflow())

        response = client.post(f"/workflows/{workflow_id}/run")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "failed"
        assert data["error"] == "OpenAI API Key is required"
        assert data["outputs"] == {"first": {"ok": True}}
        assert data["logs"][-1]["status"] == "failed"

        record = client.get(f"/runs/{data['run_id']}").json()
        assert record["status"] == "failed"
        assert record["error"] == "OpenAI API Key is required"
        assert record["duration_ms"] is not None

    def test_run_unknown_workflow(self, client):
        response = client.post("/workflows/missing/run")
        assert response.status_code == 404

    def test_list_runs(self, client):
        workflow_id = create(client, echo_workflow())
        client.post(f"/workflows/{workflow_id}/run")
        client.post(f"/workflows/{workflow_id}/run")

        response = client.get("/runs", params={"workflow_id": workflow_id})
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert all(run["status"] == "success" for run in data["runs"])

    def test_get_unknown_run(self, client):
        assert client.get("/runs/missing").status_code == 404


# ============================================================
# Webhook Endpoints
# ============================================================

class TestWebhookEndpoints:
    """Tests for webhook triggers."""

    def test_generic_webhook(self, client):
        """Test that a webhook starts a background run."""
        workflow_id = create(client, echo_workflow())

        response = client.post(f"/webhooks/{workflow_id}/in", json={"user": "hook"})
        assert response.status_code == 202

        run_id = response.json()["run_id"]
        record = client.get(f"/runs/{run_id}").json()
        assert record["trigger_node_id"] == "in"
        assert record["status"] == "success"
        assert record["output"]["echo"]["from"] == "hook"
        assert len(record["logs"]) == 4

    def test_webhook_without_body(self, client):
        workflow_id = create(client, echo_workflow())

        response = client.post(f"/webhooks/{workflow_id}/in")
        assert response.status_code == 202

    def test_webhook_unknown_node(self, client):
        workflow_id = create(client, echo_workflow())

        response = client.post(f"/webhooks/{workflow_id}/ghost", json={})
        assert response.status_code == 404

    def test_webhook_unknown_workflow(self, client):
        response = client.post("/webhooks/missing/in", json={})
        assert response.status_code == 404

    def test_webhook_get(self, client):
        response = client.get("/webhooks/any/node")
        assert response.status_code == 200
        assert "active" in response.json()["message"]


class TestTelegramWebhook:
    """Tests for the Telegram trigger."""

    def update(self, text="What is AION?", is_bot=False):
        return {
            "update_id": 1001,
            "message": {
                "message_id": 5,
                "text": text,
                "chat": {"id": 777},
                "from": {"id": 9, "first_name": "Ada", "is_bot": is_bot},
            },
        }

    def workflow(self):
        return {
            "name": "telegram",
            "nodes": [
                {"id": "reply", "config": {
                    "integrationId": "logic",
                    "actionId": "log",
                    "data": {"chat": "{{trigger.chat_id}}", "text": "{{trigger.text}}", "user": "{{trigger.username}}"},
                }},
            ],
            "edges": [],
        }

    def test_runs_workflow(self, client):
        """Test that a text message runs the workflow synchronously."""
        workflow_id = create(client, self.workflow())

        response = client.post(f"/webhooks/telegram/{workflow_id}", json=self.update())
        assert response.status_code == 200

        data = response.json()
        assert data["ok"] is True
        record = client.get(f"/runs/{data['run_id']}").json()
        assert record["output"]["reply"] == {"chat": 777, "text": "What is AION?", "user": "Ada"}
        assert record["trigger"]["update_id"] == 1001

    def test_ignores_bots(self, client):
        workflow_id = create(client, self.workflow())

        response = client.post(f"/webhooks/telegram/{workflow_id}", json=self.update(is_bot=True))
        assert response.status_code == 200
        assert response.json()["reason"] == "Bot message ignored"
        assert client.get("/runs").json()["total"] == 0

    def test_ignores_updates_without_text(self, client):
        workflow_id = create(client, self.workflow())

        response = client.post(f"/webhooks/telegram/{workflow_id}", json={"update_id": 1, "edited_message": {}})
        assert response.status_code == 200
        assert response.json()["reason"] == "No text message found"

    def test_ignores_malformed_message(self, client):
        """Test that non-object message fields are acknowledged, not crashed on."""
        workflow_id = create(client, self.workflow())

        response = client.post(f"/webhooks/telegram/{workflow_id}", json={"update_id": 2, "message": "hi"})
        assert response.status_code == 200
        assert response.json()["reason"] == "No text message found"

        update = self.update()
        update["message"]["from"] = "someone"
        update["message"]["chat"] = 777
        response = client.post(f"/webhooks/telegram/{workflow_id}", json=update)
        assert response.status_code == 200
        record = client.get(f"/runs/{response.json()['run_id']}").json()
        assert record["trigger"]["chat_id"] is None
        assert record["trigger"]["username"] is None

    def test_failed_run_returns_500(self, client):
        workflow_id = create(client, failing_workflow())

        response = client.post(f"/webhooks/telegram/{workflow_id}", json=self.update())
        assert response.status_code == 500
        assert response.json()["error"] == "OpenAI API Key is required"

    def test_unknown_workflow(self, client):
        response = client.post("/webhooks/telegram/missing", json=self.update())
        assert response.status_code == 404


# ============================================================
# Async Tests
# ============================================================

@pytest.mark.asyncio
async def test_async_health():
    """Test health endpoint with async client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/health")
        assert response.status_code == 200


@pytest.mark.asyncio
async def test_async_run():
    """Test a manual run with async client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.post("/workflows", json=echo_workflow())
        workflow_id = response.json()["workflow_id"]

        response = await ac.post(f"/workflows/{workflow_id}/run", json={"trigger": {"user": "async"}})
        assert response.status_code == 200
        assert response.json()["outputs"]["echo"]["from"] == "async"
