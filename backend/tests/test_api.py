"""Integration tests for the simulation HTTP API."""

import json

import pytest

from app.config import Settings
from app.dependencies import get_app_settings

from conftest import connect, make_workflow

DEMO_ORDER = [
    "Trigger",
    "Process Data",
    "API Request",
    "Merge Results",
    "Send Notification",
    "AI Processing",
]


@pytest.mark.integration
class TestSimulations:

    async def test_empty_request_runs_demo(self, client):
        resp = await client.post("/api/v1/simulations/", json={})
        assert resp.status_code == 200
        data = resp.json()
        assert data["workflow_name"] == "Demo Workflow"
        assert data["execution_order"] == DEMO_ORDER
        assert data["status"] == "completed"
        assert data["summary"]["nodes_completed"] == 6
        assert len(data["results"]) == 6

    async def test_run_linear_workflow(self, client, linear_doc):
        resp = await client.post("/api/v1/simulations/", json={"workflow": linear_doc, "seed": 3})
        assert resp.status_code == 200
        data = resp.json()
        assert data["execution_order"] == ["Webhook", "Fetch", "Notify"]
        assert data["nodes"]["Fetch"]["category"] == "http_request"
        assert data["nodes"]["Fetch"]["item_count"] == 3
        assert data["final_output"]["platform"] == "slack"

    async def test_workflow_as_json_string(self, client, linear_doc):
        resp = await client.post("/api/v1/simulations/", json={"workflow": json.dumps(linear_doc)})
        assert resp.status_code == 200
        assert resp.json()["workflow_name"] == "Linear"

    async def test_same_seed_same_output(self, client, linear_doc):
        body = {"workflow": linear_doc, "seed": 11}
        first = (await client.post("/api/v1/simulations/", json=body)).json()
        second = (await client.post("/api/v1/simulations/", json=body)).json()
        assert first["nodes"]["Fetch"]["output"] == second["nodes"]["Fetch"]["output"]
        assert first["run_id"] != second["run_id"]

    async def test_input_data(self, client, linear_doc):
        items = [{"name": "Ada", "email": "ada@example.com"}]
        resp = await client.post(
            "/api/v1/simulations/", json={"workflow": linear_doc, "input_data": items}
        )
        data = resp.json()
        assert data["nodes"]["Webhook"]["output"]["body"]["data"] == items
        assert any("Using custom input data: 1 item(s)" in line for line in data["logs"])

    async def test_malformed_json_string(self, client):
        resp = await client.post("/api/v1/simulations/", json={"workflow": "{not json"})
        assert resp.status_code == 422
        data = resp.json()
        assert data["error_code"] == "malformed-json"
        assert "request_id" in data

    async def test_missing_nodes_without_demo_fallback(self, client):
        resp = await client.post(
            "/api/v1/simulations/", json={"workflow": {"name": "x"}, "demo_fallback": False}
        )
        assert resp.status_code == 422
        assert resp.json()["error_code"] == "missing-nodes"

    async def test_node_limit(self, app, client):
        app.dependency_overrides[get_app_settings] = lambda: Settings(SIMULATION_MAX_NODES=2)
        try:
            doc = make_workflow([("A", "function"), ("B", "function"), ("C", "function")])
            resp = await client.post("/api/v1/simulations/", json={"workflow": doc})
        finally:
            app.dependency_overrides.clear()
        assert resp.status_code == 413
        assert "limit is 2" in resp.json()["detail"]


@pytest.mark.integration
class TestOrderAndValidate:

    async def test_order(self, client):
        doc = make_workflow(
            [("A", "manualTrigger"), ("B", "function"), ("C", "function")],
            {"A": connect("B"), "B": connect("C"), "C": connect("B")},
        )
        resp = await client.post("/api/v1/simulations/order", json={"workflow": doc})
        assert resp.status_code == 200
        data = resp.json()
        assert data["execution_order"] == ["A", "B", "C"]
        assert data["node_count"] == 3
        assert len(data["cycles"]) == 1

    async def test_order_requires_nodes(self, client):
        resp = await client.post("/api/v1/simulations/order", json={"workflow": {}})
        assert resp.status_code == 422

    async def test_validate(self, client):
        doc = make_workflow([("A", "function"), ("B", "function")])
        resp = await client.post("/api/v1/simulations/validate", json={"workflow": doc})
        assert resp.status_code == 200
        data = resp.json()
        assert data["is_valid"] is True
        assert "No trigger node found" in data["warnings"]

    async def test_validate_reports_parse_errors(self, client):
        resp = await client.post("/api/v1/simulations/validate", json={"workflow": "]["})
        assert resp.status_code == 200
        assert resp.json()["is_valid"] is False

    async def test_demo(self, client):
        resp = await client.get("/api/v1/simulations/demo")
        assert resp.status_code == 200
        assert [n["name"] for n in resp.json()["nodes"]][0] == "Trigger"


@pytest.mark.integration
class TestNodeCategories:

    async def test_list(self, client):
        resp = await client.get("/api/v1/node-categories/")
        assert resp.status_code == 200
        categories = [entry["category"] for entry in resp.json()]
        assert categories[0] == "trigger"
        assert "generic" not in categories[:-1]

    async def test_classify(self, client):
        resp = await client.post(
            "/api/v1/node-categories/classify",
            json={"node_types": ["n8n-nodes-base.httpRequest", "@n8n/n8n-nodes-langchain.openAi", "foo"]},
        )
        assert resp.status_code == 200
        results = resp.json()["results"]
        assert [r["category"] for r in results] == ["http_request", "ai", "generic"]
        assert results[0]["short_type"] == "Http Request"

    async def test_classify_requires_types(self, client):
        resp = await client.post("/api/v1/node-categories/classify", json={"node_types": []})
        assert resp.status_code == 422

    async def test_get_category(self, client):
        resp = await client.get("/api/v1/node-categories/http_request")
        assert resp.status_code == 200
        assert resp.json()["keywords"] == ["http"]

    async def test_unknown_category(self, client):
        resp = await client.get("/api/v1/node-categories/teleport")
        assert resp.status_code == 404
        assert "teleport" in resp.json()["detail"]
