"""Trigger generator.

Emits the request envelope a webhook or manual trigger would hand to the
rest of the workflow. The body carries the caller's input items when the
run was started with some, otherwise three sample user records.
"""

from typing import Any, Dict

from simulator.classifier import NodeCategory
from simulator.synthesizer.base import BaseGenerator, SynthesisContext, input_items
from simulator.synthesizer.sample_data import generate_records


class TriggerGenerator(BaseGenerator):
    category = NodeCategory.TRIGGER
    display_name = "Trigger"
    description = "Webhook, manual, schedule and other start nodes"
    icon = "⚡"

    def generate(
        self,
        node_name: str,
        parameters: Dict[str, Any],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> Dict[str, Any]:
        items = input_items(upstream_output)
        source = "webhook" if "webhook" in context.node_type.lower() else "manual"
        method = str(parameters.get("httpMethod") or "POST").upper()

        context.log(f"⚡ [{node_name}] Trigger fired ({source})")
        if items:
            context.log(f"   📌 Using {len(items)} provided input item(s)")
        else:
            items = generate_records("users", 3, context.rng, context.now())
            context.log(f"   📌 Generated {len(items)} sample user record(s)")
        if parameters.get("path"):
            context.log(f"   📌 Path: /{str(parameters['path']).lstrip('/')}")

        return {
            "body": {
                "user_id": context.random_id(8, prefix="usr_"),
                "action": parameters.get("action") or "workflow_triggered",
                "timestamp": context.iso_now(),
                "data": items,
            },
            "headers": {
                "content-type": "application/json",
                "user-agent": "n8n-webhook/1.0",
            },
            "executionId": context.random_id(12, prefix="exec_"),
            "httpMethod": method,
            "source": source,
        }


# Export for generator registry
TRIGGER_GENERATORS = {
    NodeCategory.TRIGGER: TriggerGenerator,
}
