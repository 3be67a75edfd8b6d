"""Simulation, ordering and validation schemas."""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional


class WorkflowPayload(BaseModel):
    """A workflow document submitted for ordering or validation."""

    workflow: Any = Field(description="n8n workflow JSON, as an object or a JSON string")


class SimulationRequest(BaseModel):
    """Request to simulate a workflow."""

    workflow: Optional[Any] = Field(
        default=None,
        description="n8n workflow JSON (object or string). Omitted runs the demo workflow",
    )
    input_data: Optional[Any] = Field(
        default=None,
        description="Items handed to the first node (list of objects or an object)",
    )
    animate: bool = Field(
        default=False,
        description="Apply the configured per-node delay instead of running instantly",
    )
    seed: Optional[int] = Field(
        default=None,
        description="Random seed for reproducible payloads (overrides SIMULATION_SEED)",
    )
    demo_fallback: bool = Field(
        default=True,
        description="Run the demo workflow when the document has no nodes",
    )


class WebSocketRunMessage(SimulationRequest):
    """``{"type": "run", ...}`` message on the simulation WebSocket."""

    type: Literal["run"] = "run"
    animate: Optional[bool] = Field(
        default=None,
        description="Apply the per-node delay; unset uses SIMULATION_WS_ANIMATE",
    )


class NodeStateResponse(BaseModel):
    """State of one node at the end of a run."""

    name: str = Field(description="Node name")
    node_type: str = Field(description="Raw node type string")
    category: str = Field(description="Classified node category")
    status: str = Field(description="Node status (pending, running, completed, error)")
    started_at: Optional[str] = Field(default=None, description="When the node started")
    completed_at: Optional[str] = Field(default=None, description="When the node finished")
    elapsed_ms: int = Field(default=0, description="Node duration in milliseconds")
    output: Any = Field(default=None, description="Synthesized output payload")
    item_count: int = Field(default=0, ge=0, description="Number of items in the output")
    logs: List[str] = Field(default_factory=list, description="Node log lines")
    error: Optional[str] = Field(default=None, description="Error message if the node failed")
    input_data: Any = Field(default=None, description="Upstream output the node received")


class ExecutionResultResponse(BaseModel):
    """Per-node execution record, in run order."""

    node_name: str
    node_type: str
    category: str
    status: str
    input_data: Any = None
    output: Any = None
    item_count: int = 0
    elapsed_ms: int = 0
    logs: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None


class RunSummary(BaseModel):
    nodes_total: int
    nodes_completed: int
    nodes_failed: int
    nodes_pending: int


class SimulationResponse(BaseModel):
    """Snapshot of a finished simulation run."""

    run_id: str = Field(description="Run ID")
    workflow_name: str = Field(description="Workflow name")
    status: str = Field(description="Run status (completed, error, cancelled)")
    current_node: Optional[str] = Field(default=None, description="Node running when the snapshot was taken")
    execution_order: List[str] = Field(description="Node names in execution order")
    nodes: Dict[str, NodeStateResponse] = Field(description="Node states by name")
    total_time_ms: int = Field(description="Run duration in milliseconds")
    final_output: Any = Field(default=None, description="Output of the last node reached")
    logs: List[str] = Field(description="Timestamped run log")
    results: List[ExecutionResultResponse] = Field(description="Per-node execution records")
    error: Optional[str] = Field(default=None, description="Error message if the run failed")
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    summary: RunSummary


class ExecutionOrderResponse(BaseModel):
    """Execution order computed for a workflow."""

    workflow_name: str = Field(description="Workflow name")
    execution_order: List[str] = Field(description="Node names in execution order")
    node_count: int = Field(description="Number of declared nodes")
    cycles: List[List[str]] = Field(
        default_factory=list, description="Cycles along first output ports (each runs once)"
    )


class ValidationResponse(BaseModel):
    """Static validation report for a workflow."""

    is_valid: bool = Field(description="False when the workflow cannot be simulated")
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    node_count: int = 0
    node_types: List[str] = Field(default_factory=list)
    categories: Dict[str, int] = Field(default_factory=dict)
    has_trigger: bool = False
    has_webhook: bool = False
    connection_count: int = 0
    execution_order: List[str] = Field(default_factory=list)


class ClassifyRequest(BaseModel):
    """Node type strings to classify."""

    node_types: List[str] = Field(min_length=1, description="Raw node type strings")


class ClassifyResult(BaseModel):
    node_type: str = Field(description="Raw node type string")
    category: str = Field(description="Classified node category")
    short_type: str = Field(description="Readable node type name")


class ClassifyResponse(BaseModel):
    results: List[ClassifyResult]


class NodeCategoryInfo(BaseModel):
    category: str = Field(description="Category identifier")
    keywords: List[str] = Field(description="Substrings that select this category")
    description: str = Field(description="What nodes of this category do")
    priority: int = Field(description="Position in the matching order (0 = first)")
