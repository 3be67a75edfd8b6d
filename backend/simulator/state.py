"""Execution state for one simulation run.

A RunState is created fresh for each run and owns one NodeExecutionState
per declared node. Node status follows a fixed state machine:

    pending -> running -> completed | error

Terminal states never transition again; any other move raises
InvalidTransitionError. Only the driver mutates these objects; observers
receive them read-only.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.constants import NODE_TRANSITIONS, NodeStatus, RunStatus
from core.exceptions import InvalidTransitionError
from simulator.classifier import NodeCategory


@dataclass
class ExecutionResult:
    """Record of one executed node, kept in run order."""

    node_name: str
    node_type: str
    category: NodeCategory
    status: NodeStatus
    input_data: Any = None
    output: Any = None
    item_count: int = 0
    elapsed_ms: int = 0
    logs: List[str] = field(default_factory=list)
    error: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "node_name": self.node_name,
            "node_type": self.node_type,
            "category": self.category.value,
            "status": self.status.value,
            "input_data": self.input_data,
            "output": self.output,
            "item_count": self.item_count,
            "elapsed_ms": self.elapsed_ms,
            "logs": list(self.logs),
            "error": self.error,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }


@dataclass
class NodeExecutionState:
    """Lifecycle and payload of a single node within one run."""

    name: str
    node_type: str = ""
    category: NodeCategory = NodeCategory.GENERIC
    status: NodeStatus = NodeStatus.PENDING
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    elapsed_ms: int = 0
    output: Any = None
    item_count: int = 0
    logs: List[str] = field(default_factory=list)
    error: Optional[str] = None
    input_data: Any = None

    def can_transition(self, target: NodeStatus) -> bool:
        return target in NODE_TRANSITIONS[self.status]

    def transition(self, target: NodeStatus) -> None:
        """Move to ``target`` or raise InvalidTransitionError."""
        target = NodeStatus(target)
        if not self.can_transition(target):
            raise InvalidTransitionError(self.name, self.status.value, target.value)
        self.status = target

    def start(self, at: datetime, input_data: Any = None) -> None:
        self.transition(NodeStatus.RUNNING)
        self.started_at = at.isoformat()
        self.input_data = input_data

    def complete(
        self,
        output: Any,
        item_count: int,
        elapsed_ms: int,
        at: datetime,
        logs: Optional[List[str]] = None,
    ) -> None:
        self.transition(NodeStatus.COMPLETED)
        self.output = output
        self.item_count = max(int(item_count), 0)
        self.elapsed_ms = elapsed_ms
        self.completed_at = at.isoformat()
        self.logs.extend(logs or [])

    def fail(self, error: str, elapsed_ms: int, at: datetime) -> None:
        self.transition(NodeStatus.ERROR)
        self.error = error
        self.elapsed_ms = elapsed_ms
        self.completed_at = at.isoformat()

    def to_result(self) -> ExecutionResult:
        return ExecutionResult(
            node_name=self.name,
            node_type=self.node_type,
            category=self.category,
            status=self.status,
            input_data=self.input_data,
            output=self.output,
            item_count=self.item_count,
            elapsed_ms=self.elapsed_ms,
            logs=list(self.logs),
            error=self.error,
            started_at=self.started_at,
            completed_at=self.completed_at,
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "node_type": self.node_type,
            "category": self.category.value,
            "status": self.status.value,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "elapsed_ms": self.elapsed_ms,
            "output": self.output,
            "item_count": self.item_count,
            "logs": list(self.logs),
            "error": self.error,
            "input_data": self.input_data,
        }


@dataclass
class RunState:
    """Aggregate state of one simulation run."""

    run_id: str
    workflow_name: str = "Untitled Workflow"
    status: RunStatus = RunStatus.IDLE
    current_node: Optional[str] = None
    nodes: Dict[str, NodeExecutionState] = field(default_factory=dict)
    execution_order: List[str] = field(default_factory=list)
    total_time_ms: int = 0
    final_output: Any = None
    logs: List[str] = field(default_factory=list)
    results: List[ExecutionResult] = field(default_factory=list)
    error: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    def node(self, name: str) -> NodeExecutionState:
        return self.nodes[name]

    def add_log(self, line: str, at: datetime) -> str:
        """Append a timestamped line to the shared log stream and return it."""
        entry = f"[{at.strftime('%H:%M:%S')}] {line}"
        self.logs.append(entry)
        return entry

    def count(self, status: NodeStatus) -> int:
        return sum(1 for state in self.nodes.values() if state.status == status)

    @property
    def completed_count(self) -> int:
        return self.count(NodeStatus.COMPLETED)

    @property
    def is_finished(self) -> bool:
        return self.status in (RunStatus.COMPLETED, RunStatus.ERROR, RunStatus.CANCELLED)

    def to_dict(self) -> dict:
        """JSON-serializable snapshot of the run."""
        return {
            "run_id": self.run_id,
            "workflow_name": self.workflow_name,
            "status": self.status.value,
            "current_node": self.current_node,
            "execution_order": list(self.execution_order),
            "nodes": {name: state.to_dict() for name, state in self.nodes.items()},
            "total_time_ms": self.total_time_ms,
            "final_output": self.final_output,
            "logs": list(self.logs),
            "results": [result.to_dict() for result in self.results],
            "error": self.error,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "summary": {
                "nodes_total": len(self.nodes),
                "nodes_completed": self.completed_count,
                "nodes_failed": self.count(NodeStatus.ERROR),
                "nodes_pending": self.count(NodeStatus.PENDING),
            },
        }
