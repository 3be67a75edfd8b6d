"""Constants and enums for the workflow simulator."""

from enum import Enum


class NodeStatus(str, Enum):
    """Lifecycle of a single node within one simulation run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (NodeStatus.COMPLETED, NodeStatus.ERROR)


class RunStatus(str, Enum):
    """Aggregate status of a simulation run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"


# Allowed node transitions; terminal states have no outgoing edges.
NODE_TRANSITIONS: dict[NodeStatus, frozenset[NodeStatus]] = {
    NodeStatus.PENDING: frozenset({NodeStatus.RUNNING}),
    NodeStatus.RUNNING: frozenset({NodeStatus.COMPLETED, NodeStatus.ERROR}),
    NodeStatus.COMPLETED: frozenset(),
    NodeStatus.ERROR: frozenset(),
}

# Only the first output port of "main" is traversed.
MAIN_CONNECTION = "main"

# Default animation pacing, matching the marketplace preview modal.
DEFAULT_MIN_DELAY_MS = 500
DEFAULT_MAX_DELAY_MS = 1500

LOG_RULE = "═" * 50
