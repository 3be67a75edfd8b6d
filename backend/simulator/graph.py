"""Workflow graph model for n8n workflow JSON parsed into a directed graph.

The document shape mirrors the n8n export format:

{
    "name": "Lead intake",
    "nodes": [
        {"name": "Webhook", "type": "n8n-nodes-base.webhook", "parameters": {...}},
        {"name": "Notify", "type": "n8n-nodes-base.slack", "parameters": {...}}
    ],
    "connections": {
        "Webhook": {"main": [[{"node": "Notify", "type": "main", "index": 0}]]}
    }
}

Node names are the join key used by connections. Unknown fields on the
workflow, nodes and connections are preserved as pydantic extras.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

from core.constants import MAIN_CONNECTION
from core.exceptions import ParseError


class Connection(BaseModel):
    """Edge target. Example: {"node": "HTTP Request", "type": "main", "index": 0}"""

    model_config = ConfigDict(extra="allow")

    node: str = Field(..., description="Target node name")
    type: str = Field(MAIN_CONNECTION, description="Connection type")
    index: int = Field(0, description="Target input index")


class NodeConnections(BaseModel):
    """Output ports of one source node: {"main": [[Connection, ...], ...]}."""

    model_config = ConfigDict(extra="allow")

    main: List[List[Connection]] = Field(default_factory=list)

    @field_validator("main", mode="before")
    @classmethod
    def _drop_null_ports(cls, value: Any) -> Any:
        # n8n writes `null` for unconnected output ports
        if value is None:
            return []
        if isinstance(value, list):
            return [port if port is not None else [] for port in value]
        return value


class WorkflowNode(BaseModel):
    """A node in a workflow (n8n node format)."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Node name (unique within workflow)")
    type: str = Field("", description="Node type, e.g. 'n8n-nodes-base.httpRequest'")
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def _none_type(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("parameters", mode="before")
    @classmethod
    def _none_parameters(cls, value: Any) -> Any:
        return {} if value is None else value


class WorkflowGraph(BaseModel):
    """Complete workflow: ordered nodes plus the keyed connection map."""

    model_config = ConfigDict(extra="allow")

    name: str = Field("Untitled Workflow", description="Workflow name")
    nodes: List[WorkflowNode] = Field(default_factory=list)
    connections: Dict[str, NodeConnections] = Field(default_factory=dict)

    _index: Dict[str, WorkflowNode] = PrivateAttr(default_factory=dict)

    @field_validator("connections", mode="before")
    @classmethod
    def _none_connections(cls, value: Any) -> Any:
        return {} if value is None else value

    def model_post_init(self, __context: Any) -> None:
        # Later duplicates shadow earlier ones
        self._index = {node.name: node for node in self.nodes}

    @property
    def node_names(self) -> List[str]:
        """Node names in declaration order (duplicates included)."""
        return [node.name for node in self.nodes]

    def get_node(self, name: str) -> Optional[WorkflowNode]:
        """Get node by name."""
        return self._index.get(name)

    def has_node(self, name: str) -> bool:
        return name in self._index

    def ports(self, name: str) -> List[List[Connection]]:
        """All main output ports of a node."""
        outputs = self.connections.get(name)
        return outputs.main if outputs else []

    def successors(self, name: str) -> List[str]:
        """Targets of the first main output port, in declared order."""
        ports = self.ports(name)
        if not ports:
            return []
        return [conn.node for conn in ports[0]]

    def incoming_names(self) -> set[str]:
        """Every name that appears as a target on any main port."""
        targets: set[str] = set()
        for outputs in self.connections.values():
            for port in outputs.main:
                for conn in port:
                    targets.add(conn.node)
        return targets

    def upstream_of(self, name: str) -> List[str]:
        """Sources with an edge into ``name`` on any port, in connection order."""
        upstream = []
        for source, outputs in self.connections.items():
            if any(conn.node == name for port in outputs.main for conn in port):
                upstream.append(source)
        return upstream

    def dangling_targets(self) -> List[tuple[str, str]]:
        """(source, target) pairs whose target is not a declared node."""
        dangling = []
        for source, outputs in self.connections.items():
            for port in outputs.main:
                for conn in port:
                    if conn.node not in self._index:
                        dangling.append((source, conn.node))
        return dangling

    @property
    def connection_count(self) -> int:
        return sum(len(port) for outputs in self.connections.values() for port in outputs.main)


def _load(raw: Any) -> Any:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError("malformed-json", str(e)) from e
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ParseError("malformed-json", str(e)) from e
    return raw


def parse(raw: Any) -> WorkflowGraph:
    """Parse a workflow document (JSON text or mapping) into a WorkflowGraph.

    Raises:
        ParseError: ``malformed-json`` if text cannot be decoded,
            ``missing-nodes`` if there is no list-valued ``nodes`` field,
            ``invalid-nodes`` / ``invalid-connections`` if entries do not
            fit the n8n shape.
    """
    if isinstance(raw, WorkflowGraph):
        return raw

    data = _load(raw)
    if not isinstance(data, Mapping) or not isinstance(data.get("nodes"), list):
        raise ParseError("missing-nodes", "workflow must contain a 'nodes' array")

    try:
        return WorkflowGraph.model_validate(dict(data))
    except ValidationError as e:
        first = e.errors()[0]
        field = first["loc"][0] if first.get("loc") else "nodes"
        code = "invalid-connections" if field == "connections" else "invalid-nodes"
        raise ParseError(code, first.get("msg")) from e


# Shown when a template ships without a usable preview graph.
DEMO_WORKFLOW: Dict[str, Any] = {
    "name": "Demo Workflow",
    "nodes": [
        {"name": "Trigger", "type": "n8n-nodes-base.manualTrigger", "position": [0, 0]},
        {"name": "Process Data", "type": "n8n-nodes-base.function", "position": [250, 0]},
        {"name": "API Request", "type": "n8n-nodes-base.httpRequest", "position": [500, -50]},
        {"name": "AI Processing", "type": "n8n-nodes-base.openAi", "position": [500, 50]},
        {"name": "Merge Results", "type": "n8n-nodes-base.merge", "position": [750, 0]},
        {"name": "Send Notification", "type": "n8n-nodes-base.slack", "position": [1000, 0]},
    ],
    "connections": {
        "Trigger": {"main": [[{"node": "Process Data", "type": "main", "index": 0}]]},
        "Process Data": {
            "main": [[
                {"node": "API Request", "type": "main", "index": 0},
                {"node": "AI Processing", "type": "main", "index": 0},
            ]]
        },
        "API Request": {"main": [[{"node": "Merge Results", "type": "main", "index": 0}]]},
        "AI Processing": {"main": [[{"node": "Merge Results", "type": "main", "index": 0}]]},
        "Merge Results": {"main": [[{"node": "Send Notification", "type": "main", "index": 0}]]},
    },
}


def demo_workflow() -> Dict[str, Any]:
    """A fresh copy of the demo workflow document."""
    return copy.deepcopy(DEMO_WORKFLOW)


def parse_or_demo(raw: Any) -> WorkflowGraph:
    """Parse ``raw``, falling back to the demo workflow when it has no nodes.

    Malformed JSON and invalid entries still raise ParseError.
    """
    if raw is None or (isinstance(raw, (str, bytes)) and not raw.strip()):
        return parse(demo_workflow())
    try:
        graph = parse(raw)
    except ParseError as e:
        if e.code != "missing-nodes":
            raise
        return parse(demo_workflow())
    if not graph.nodes:
        return parse(demo_workflow())
    return graph
