"""FastAPI dependency and request helper functions."""

from typing import Any, Optional

from app.config import Settings, get_settings
from core.exceptions import WorkflowTooLargeError
from simulator.driver import SimulationDriver, create_simulation_driver
from simulator.graph import WorkflowGraph, parse, parse_or_demo


def get_app_settings() -> Settings:
    """Settings dependency (overridable in tests)."""
    return get_settings()


def load_workflow(raw: Any, settings: Settings, demo_fallback: bool = False) -> WorkflowGraph:
    """
    Parse a submitted workflow and enforce the node limit.

    Raises:
        ParseError: If the document is not a usable workflow
        WorkflowTooLargeError: If it exceeds SIMULATION_MAX_NODES
    """
    graph = parse_or_demo(raw) if demo_fallback else parse(raw)
    if len(graph.nodes) > settings.SIMULATION_MAX_NODES:
        raise WorkflowTooLargeError(len(graph.nodes), settings.SIMULATION_MAX_NODES)
    return graph


def build_driver(
    animate: bool = False,
    seed: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> SimulationDriver:
    """
    Create a driver for a single request.

    Each request gets its own driver so concurrent HTTP simulations never
    share run state. An explicit seed overrides SIMULATION_SEED.
    """
    settings = settings or get_settings()
    if seed is not None:
        settings = settings.model_copy(update={"SIMULATION_SEED": seed})
    return create_simulation_driver(animate=animate, settings=settings)
