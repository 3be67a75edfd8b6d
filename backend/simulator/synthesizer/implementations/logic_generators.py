"""Code, conditional and fallback generators."""

import copy
from typing import Any, Dict, List

from simulator.classifier import NodeCategory
from simulator.synthesizer.base import BaseGenerator, SynthesisContext, input_items
from simulator.synthesizer.expressions import matches

# Probability that an item passes a condition-less IF node
DEFAULT_PASS_RATE = 0.7


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class CodeGenerator(BaseGenerator):
    """Stands in for a Code/Function node.

    The node's script is never executed. Instead each input item gets the
    computed fields a typical pricing script would add.
    """

    category = NodeCategory.CODE
    display_name = "Code"
    description = "Custom JavaScript/Python code over the input items"
    icon = "💻"

    def generate(
        self,
        node_name: str,
        parameters: Dict[str, Any],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> List[Dict[str, Any]]:
        items = input_items(upstream_output)
        mode = parameters.get("mode") or "runOnceForAllItems"
        context.log(f"💻 [{node_name}] Code Node")
        context.log(f'   ├─ mode = "{mode}"')
        context.log(f"   └─ inputItems = {len(items)}")

        if not items:
            context.log("✅ No input items; emitted processed marker")
            return [{"_processed": True, "nodeName": node_name, "_timestamp": context.iso_now()}]

        transformed = []
        for index, item in enumerate(items):
            result = dict(item)
            price = item.get("price")
            if _is_number(price):
                quantity = item.get("quantity")
                quantity = quantity if _is_number(quantity) and quantity else 1
                result["totalValue"] = round(price * quantity, 2)
                result["formattedPrice"] = f"${price:.2f}"
            if _is_number(item.get("value")):
                result["formattedValue"] = f"${item['value']:,}"
            result["_processed"] = True
            result["_index"] = index
            result["_processedBy"] = list(item.get("_processedBy") or []) + [node_name]
            transformed.append(result)

        context.log("   ├─ Adding computed fields: totalValue, formattedPrice, _processed")
        context.log(f"✅ Transformed {len(transformed)} item(s)")
        return transformed


class ConditionalGenerator(BaseGenerator):
    category = NodeCategory.CONDITIONAL
    display_name = "Condition"
    description = "IF / Switch / Filter routing"
    icon = "🔀"

    def generate(
        self,
        node_name: str,
        parameters: Dict[str, Any],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> List[Dict[str, Any]]:
        items = input_items(upstream_output)
        now = context.now()
        passed, failed = [], []

        for item in items:
            result = matches(item, parameters, now)
            if result is None:
                result = (
                    item.get("status") == "active"
                    or item.get("_classification") == "high-priority"
                    or context.rng.random() < DEFAULT_PASS_RATE
                )
            (passed if result else failed).append(item)

        context.log(f"🔀 [{node_name}] Evaluated {len(items)} item(s)")
        context.log(f"   ├─ true branch: {len(passed)}")
        context.log(f"   └─ false branch: {len(failed)}")
        return passed


class GenericGenerator(BaseGenerator):
    category = NodeCategory.GENERIC
    display_name = "Generic"
    description = "Any other node; echoes its input"
    icon = "⚙️"

    def generate(
        self,
        node_name: str,
        parameters: Dict[str, Any],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> Dict[str, Any]:
        context.log(f"⚙️ Initializing {node_name}...")
        context.log("✅ Node executed successfully")
        return {
            "nodeType": context.node_type,
            "nodeName": node_name,
            "processedInput": copy.deepcopy(upstream_output),
            "result": "success",
            "timestamp": context.iso_now(),
        }


# Export for generator registry
LOGIC_GENERATORS = {
    NodeCategory.CODE: CodeGenerator,
    NodeCategory.CONDITIONAL: ConditionalGenerator,
    NodeCategory.GENERIC: GenericGenerator,
}
