"""
Base generator interface for all mock output generators.

Every node category has a generator that inherits from BaseGenerator and
implements generate(). Generators never touch the network or storage:
all randomness and time come from the SynthesisContext so a fixed seed and
a fixed clock reproduce the same payload.
"""

import copy
import random
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import structlog

from core.exceptions import NodeSynthesisError
from simulator.classifier import NodeCategory

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]

# Keys under which upstream payloads carry their item lists
ITEM_KEYS = ("items", "data", "initialData", "trueItems", "rawResponse")

_ID_ALPHABET = string.ascii_lowercase + string.digits


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def count_items(output: Any) -> int:
    """Cardinality of a payload: N for a list, 1 for an object, 0 for nothing."""
    if output is None:
        return 0
    if isinstance(output, (list, tuple)):
        return len(output)
    return 1


def input_items(upstream_output: Any) -> List[Dict[str, Any]]:
    """Extract the item list carried by an upstream payload.

    Lists are taken as-is, objects are searched for a non-empty item list
    (also inside a trigger ``body``), and any other object is one item.
    Returned items are deep copies, so generators may mutate them.
    """
    if upstream_output is None:
        return []
    if isinstance(upstream_output, list):
        return [copy.deepcopy(item) for item in upstream_output if isinstance(item, dict)]
    if isinstance(upstream_output, dict):
        for key in ITEM_KEYS:
            value = upstream_output.get(key)
            if isinstance(value, list) and value:
                return [copy.deepcopy(item) for item in value if isinstance(item, dict)]
        body = upstream_output.get("body")
        if isinstance(body, dict):
            return input_items(body)
        return [copy.deepcopy(upstream_output)]
    return []


@dataclass
class SynthesisContext:
    """Per-node inputs that are not part of the node itself.

    Holds the injected random source and clock, the raw node type (for
    generators that label their output by platform), the outputs produced
    earlier in the run, and the log lines the generator emits.
    """

    rng: random.Random = field(default_factory=random.Random)
    clock: Clock = utc_now
    node_type: str = ""
    previous_outputs: Dict[str, Any] = field(default_factory=dict)
    logs: List[str] = field(default_factory=list)

    def log(self, line: str) -> None:
        self.logs.append(line)

    def now(self) -> datetime:
        return self.clock()

    def iso_now(self) -> str:
        return self.clock().isoformat()

    def random_id(self, length: int = 8, prefix: str = "") -> str:
        return prefix + "".join(self.rng.choice(_ID_ALPHABET) for _ in range(length))

    def choice(self, options):
        return self.rng.choice(options)

    def randint(self, low: int, high: int) -> int:
        return self.rng.randint(low, high)


@dataclass
class SynthesisResult:
    """Standardized result from a generator."""

    output: Any
    logs: List[str] = field(default_factory=list)
    item_count: int = 0

    def __post_init__(self):
        self.item_count = count_items(self.output)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output": self.output,
            "item_count": self.item_count,
            "logs": list(self.logs),
        }


def preview(data: Any, max_length: int = 80) -> str:
    """Compact one-line rendering of a payload for log lines."""
    import json

    text = json.dumps(data, default=str, ensure_ascii=False)
    return text if len(text) <= max_length else text[:max_length] + "..."


class BaseGenerator(ABC):
    """
    Abstract base class for all mock output generators.

    Subclasses must implement:
    - generate(node_name, parameters, upstream_output, context) -> output
    - category (class property)
    - display_name (class property)
    """

    category: NodeCategory = NodeCategory.GENERIC
    display_name: str = "Base Generator"
    description: str = "Abstract base generator"
    icon: str = "⚙️"

    @abstractmethod
    def generate(
        self,
        node_name: str,
        parameters: Dict[str, Any],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> Any:
        """
        Build the mock output payload for one node.

        Args:
            node_name: Name of the node being simulated
            parameters: The node's declared parameters (read-only)
            upstream_output: Output of the upstream node, or None
            context: Randomness, clock and log sink for this call

        Returns:
            JSON-serializable payload (list of items or a single object)
        """

    def run(
        self,
        node_name: str,
        parameters: Optional[Dict[str, Any]],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> SynthesisResult:
        """
        Run the generator and wrap any failure in NodeSynthesisError.

        This is the entry point called by the synthesizer.
        """
        try:
            output = self.generate(node_name, dict(parameters or {}), upstream_output, context)
        except NodeSynthesisError:
            raise
        except Exception as e:
            logger.warning(
                "Generator failed",
                category=self.category.value,
                node=node_name,
                error=str(e),
            )
            raise NodeSynthesisError(node_name, cause=e) from e

        return SynthesisResult(output=output, logs=list(context.logs))

    @classmethod
    def describe(cls) -> Dict[str, Any]:
        return {
            "category": cls.category.value,
            "display_name": cls.display_name,
            "description": cls.description,
            "icon": cls.icon,
        }
