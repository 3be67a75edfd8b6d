"""Simulation API routes.

Runs workflow simulations synchronously over HTTP and exposes the
ordering and validation steps on their own. Streaming runs live on the
/ws/simulations WebSocket.
"""

import logging

from fastapi import APIRouter, Depends

from app.config import Settings
from app.dependencies import build_driver, get_app_settings, load_workflow
from api.schemas.simulation import (
    ExecutionOrderResponse,
    SimulationRequest,
    SimulationResponse,
    ValidationResponse,
    WorkflowPayload,
)
from simulator.graph import demo_workflow
from simulator.sequencer import find_cycles, order
from simulator.validation import validate_workflow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=SimulationResponse, summary="Run a workflow simulation")
async def run_simulation(
    request: SimulationRequest,
    settings: Settings = Depends(get_app_settings),
):
    """Simulate a workflow and return the final run snapshot.

    Runs instantly unless ``animate`` is set, in which case every node
    waits the configured delay. Synthesis failures are reported in the
    snapshot (status ``error``), not as an HTTP error.
    """
    graph = load_workflow(request.workflow, settings, demo_fallback=request.demo_fallback)
    driver = build_driver(animate=request.animate, seed=request.seed, settings=settings)
    run = await driver.run(graph, input_data=request.input_data)
    logger.info(
        f"Simulation {run.run_id} of '{run.workflow_name}' finished: {run.status.value}"
    )
    return run.to_dict()


@router.post("/order", response_model=ExecutionOrderResponse, summary="Compute execution order")
async def execution_order(
    payload: WorkflowPayload,
    settings: Settings = Depends(get_app_settings),
):
    """Parse a workflow and return the order its nodes would run in."""
    graph = load_workflow(payload.workflow, settings)
    return {
        "workflow_name": graph.name,
        "execution_order": order(graph),
        "node_count": len(graph.nodes),
        "cycles": find_cycles(graph),
    }


@router.post("/validate", response_model=ValidationResponse, summary="Validate a workflow")
async def validate(payload: WorkflowPayload):
    """Static checks: parse errors, missing trigger, dangling connections, cycles."""
    return validate_workflow(payload.workflow).to_dict()


@router.get("/demo", summary="Get the demo workflow")
async def get_demo_workflow():
    """The workflow simulated when a document has no nodes."""
    return demo_workflow()
