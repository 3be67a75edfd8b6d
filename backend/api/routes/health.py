"""Health check endpoints.

Provides:
- Liveness probe (/health/)
- Readiness check: generator coverage plus a one-node smoke run (/health/ready)
- Detailed status (/health/status)
"""

import logging
import platform
import sys
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException, status

from app.config import get_settings
from core.constants import RunStatus
from simulator.classifier import NodeCategory
from simulator.driver import DelayPolicy, SimulationDriver
from simulator.synthesizer.registry import get_generator_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

_started = time.monotonic()
_started_at = datetime.now(timezone.utc).isoformat()

SMOKE_WORKFLOW = {
    "name": "Readiness probe",
    "nodes": [{"name": "Start", "type": "n8n-nodes-base.manualTrigger"}],
}


@router.get("", include_in_schema=False)
@router.get("/", response_model=dict[str, Any])
async def root() -> dict[str, Any]:
    """Liveness probe: the process is up."""
    settings = get_settings()
    return {"app": settings.APP_NAME, "version": settings.APP_VERSION, "status": "ok"}


@router.get("/ready", response_model=dict[str, Any])
async def readiness() -> dict[str, Any]:
    """
    Every node category has a generator and a trivial workflow simulates.
    Returns 503 otherwise.
    """
    checks: dict[str, str] = {}

    registered = set(get_generator_registry().available_categories)
    missing = sorted(c.value for c in NodeCategory if c.value not in registered)
    checks["generators"] = "ok" if not missing else f"missing: {', '.join(missing)}"

    try:
        run = await SimulationDriver(delay=DelayPolicy.none(), seed=0).run(SMOKE_WORKFLOW)
        checks["simulation"] = "ok" if run.status == RunStatus.COMPLETED else run.status.value
    except Exception as e:
        logger.error(f"Readiness smoke run failed: {e}")
        checks["simulation"] = "failed"

    if any(value != "ok" for value in checks.values()):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "unavailable", "checks": checks},
        )
    return {"status": "ready", "checks": checks}


@router.get("/status", response_model=dict[str, Any])
async def service_status() -> dict[str, Any]:
    """Uptime, runtime versions and the active simulation settings."""
    settings = get_settings()
    uptime = time.monotonic() - _started
    hours, remainder = divmod(int(uptime), 3600)
    minutes, seconds = divmod(remainder, 60)
    low, high = settings.delay_window

    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "started_at": _started_at,
        "uptime": f"{hours}h {minutes}m {seconds}s",
        "uptime_seconds": round(uptime, 1),
        "python_version": sys.version.split()[0],
        "platform": platform.platform(),
        "simulation": {
            "min_delay_ms": low,
            "max_delay_ms": high,
            "seeded": settings.SIMULATION_SEED is not None,
            "max_nodes": settings.SIMULATION_MAX_NODES,
            "generators": get_generator_registry().available_categories,
        },
    }
