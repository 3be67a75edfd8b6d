"""Shared pytest fixtures for the workflow simulator test suite.

Provides:
- FastAPI app and test clients (httpx.AsyncClient, TestClient for WebSockets)
- Sample workflow documents
- Deterministic driver (fixed seed, fixed clock, no delay)
"""

import os
import random
from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings BEFORE any app imports
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("SIMULATION_MIN_DELAY_MS", "0")
os.environ.setdefault("SIMULATION_MAX_DELAY_MS", "0")

from simulator.driver import DelayPolicy, SimulationDriver  # noqa: E402
from simulator.graph import demo_workflow  # noqa: E402
from simulator.synthesizer.base import SynthesisContext  # noqa: E402

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


def connect(*targets: str) -> dict:
    """Build a single-port ``main`` connection entry."""
    return {"main": [[{"node": target, "type": "main", "index": 0} for target in targets]]}


def make_workflow(nodes, connections=None, name="Test Workflow") -> dict:
    """Build a workflow document from (name, type[, parameters]) tuples."""
    return {
        "name": name,
        "nodes": [
            {"name": n[0], "type": n[1], "parameters": n[2] if len(n) > 2 else {}}
            for n in nodes
        ],
        "connections": connections or {},
    }


# ---------------------------------------------------------------------------
# Workflow fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def demo_doc() -> dict:
    return demo_workflow()


@pytest.fixture
def linear_doc() -> dict:
    """Webhook -> HTTP Request -> Slack."""
    return make_workflow(
        [
            ("Webhook", "n8n-nodes-base.webhook"),
            ("Fetch", "n8n-nodes-base.httpRequest", {"url": "https://api.example.com/items"}),
            ("Notify", "n8n-nodes-base.slack", {"channel": "#ops"}),
        ],
        {"Webhook": connect("Fetch"), "Fetch": connect("Notify")},
        name="Linear",
    )


@pytest.fixture
def context() -> SynthesisContext:
    return SynthesisContext(rng=random.Random(7), clock=fixed_clock)


# ---------------------------------------------------------------------------
# Driver fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def driver() -> SimulationDriver:
    """Instant, seeded driver with a frozen clock."""
    return SimulationDriver(delay=DelayPolicy.none(), seed=42, clock=fixed_clock)


class RecordingObserver:
    """Collects every observer callback in call order."""

    def __init__(self):
        self.events = []

    def on_node_start(self, name):
        self.events.append(("start", name))

    def on_node_complete(self, name, result):
        self.events.append(("complete", name, result))

    def on_log(self, line):
        self.events.append(("log", line))

    def on_status_change(self, name, status):
        self.events.append(("status", name, status))

    def of(self, kind):
        return [event for event in self.events if event[0] == kind]

    def as_observer(self):
        from simulator.driver import SimulationObserver

        return SimulationObserver(
            on_node_start=self.on_node_start,
            on_node_complete=self.on_node_complete,
            on_log=self.on_log,
            on_status_change=self.on_status_change,
        )


@pytest.fixture
def recorder() -> RecordingObserver:
    return RecordingObserver()


# ---------------------------------------------------------------------------
# App / HTTP client fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def app():
    """Create a FastAPI app instance."""
    from app.main import create_app

    return create_app()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac


@pytest.fixture
def ws_client(app):
    """Synchronous client for WebSocket tests."""
    from fastapi.testclient import TestClient

    with TestClient(app) as tc:
        yield tc
