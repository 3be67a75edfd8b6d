"""Static workflow checks run before a simulation.

Errors make a workflow unrunnable (it cannot be parsed or has no nodes).
Warnings flag things the simulator tolerates but a user probably did not
intend: dangling connections, cycles that will only run once around,
shadowed duplicate names and so on.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List

import structlog

from core.exceptions import ParseError
from simulator.classifier import NodeCategory, classify
from simulator.graph import parse
from simulator.sequencer import find_cycles, order

logger = structlog.get_logger(__name__)


@dataclass
class ValidationReport:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    node_count: int = 0
    node_types: List[str] = field(default_factory=list)
    categories: Dict[str, int] = field(default_factory=dict)
    has_trigger: bool = False
    has_webhook: bool = False
    connection_count: int = 0
    execution_order: List[str] = field(default_factory=list)

    def error(self, message: str) -> None:
        self.errors.append(message)
        self.is_valid = False

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "node_count": self.node_count,
            "node_types": list(self.node_types),
            "categories": dict(self.categories),
            "has_trigger": self.has_trigger,
            "has_webhook": self.has_webhook,
            "connection_count": self.connection_count,
            "execution_order": list(self.execution_order),
        }


def validate_workflow(raw: Any) -> ValidationReport:
    """Check a workflow document and describe what a simulation would do."""
    report = ValidationReport()

    try:
        graph = parse(raw)
    except ParseError as e:
        report.error(f"Invalid workflow: {e.message}")
        return report

    report.node_count = len(graph.nodes)
    if not graph.nodes:
        report.error("Workflow has no nodes")
        return report

    for position, node in enumerate(graph.nodes, start=1):
        if not node.name.strip():
            report.warnings.append(f"Node #{position} has no name")
        if not node.type:
            report.warnings.append(f"Node '{node.name or position}' has no type")
        category = classify(node.type)
        if category == NodeCategory.HTTP_REQUEST and not node.parameters.get("url"):
            report.warnings.append(f"HTTP node '{node.name}' has no URL configured")

    report.node_types = sorted({node.type for node in graph.nodes if node.type})
    categories = Counter(classify(node.type).value for node in graph.nodes)
    report.categories = dict(sorted(categories.items()))
    report.has_trigger = categories.get(NodeCategory.TRIGGER.value, 0) > 0
    report.has_webhook = any("webhook" in node.type.lower() for node in graph.nodes)
    report.connection_count = graph.connection_count

    if report.node_count > 1 and report.connection_count == 0:
        report.warnings.append("Multiple nodes but no connections")
    if not report.has_trigger:
        report.warnings.append("No trigger node found")

    duplicates = sorted(name for name, count in Counter(graph.node_names).items() if count > 1)
    for name in duplicates:
        report.warnings.append(f"Duplicate node name '{name}': only the last definition is used")

    for source, target in graph.dangling_targets():
        report.warnings.append(f"Connection from '{source}' targets unknown node '{target}'")

    for source in graph.connections:
        if not graph.has_node(source):
            report.warnings.append(f"Connections declared for unknown node '{source}'")
        elif any(graph.ports(source)[1:]):
            report.warnings.append(
                f"Node '{source}' has multiple output ports; only the first is followed"
            )

    for cycle in find_cycles(graph):
        path = " → ".join(cycle + cycle[:1])
        report.warnings.append(f"Cycle detected ({path}); each node runs once")

    report.execution_order = order(graph)
    logger.debug(
        "Workflow validated",
        nodes=report.node_count,
        errors=len(report.errors),
        warnings=len(report.warnings),
    )
    return report
