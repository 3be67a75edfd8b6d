"""Custom exceptions for the workflow simulator."""

from typing import Optional


class SimulatorException(Exception):
    """Base exception for the workflow simulator."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code.

        Args:
            message: Exception message
            status_code: HTTP status code
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(SimulatorException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize NotFoundError with 404 status code."""
        super().__init__(message, 404)


class ParseError(SimulatorException):
    """Workflow document could not be turned into a graph.

    ``code`` is one of ``malformed-json``, ``missing-nodes``,
    ``invalid-nodes`` or ``invalid-connections``.
    """

    def __init__(self, code: str, detail: Optional[str] = None):
        """Initialize ParseError with 422 status code."""
        self.code = code
        self.detail = detail
        message = code if not detail else f"{code}: {detail}"
        super().__init__(message, 422)


class NodeSynthesisError(SimulatorException):
    """A per-node output generator failed."""

    def __init__(self, node_name: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        """Initialize NodeSynthesisError for the given node."""
        self.node_name = node_name
        self.cause = cause
        if message is None:
            message = f"Synthesis failed for node '{node_name}': {cause}" if cause else (
                f"Synthesis failed for node '{node_name}'"
            )
        super().__init__(message, 500)


class InvalidTransitionError(SimulatorException):
    """Node state machine was asked for a transition it does not allow."""

    def __init__(self, node_name: str, current: str, target: str):
        """Initialize InvalidTransitionError with 409 status code."""
        self.node_name = node_name
        self.current = current
        self.target = target
        super().__init__(
            f"Node '{node_name}' cannot move from {current} to {target}", 409
        )


class SimulationInProgressError(SimulatorException):
    """A driver was asked to start a run while another is in flight."""

    def __init__(self, message: str = "A simulation is already running on this driver"):
        """Initialize SimulationInProgressError with 409 status code."""
        super().__init__(message, 409)


class WorkflowTooLargeError(SimulatorException):
    """Workflow has more nodes than SIMULATION_MAX_NODES allows."""

    def __init__(self, node_count: int, limit: int):
        """Initialize WorkflowTooLargeError with 413 status code."""
        self.node_count = node_count
        self.limit = limit
        super().__init__(f"Workflow has {node_count} nodes; the limit is {limit}", 413)
