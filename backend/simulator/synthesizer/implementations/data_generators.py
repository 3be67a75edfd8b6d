"""Data-shaping generators: database rows, merges and field transforms.

All three operate on item lists. Database nodes pass upstream items
through (or read sample rows), Merge concatenates every output produced
so far in the run, and Set/Transform applies the node's field
assignments with n8n expression substitution.
"""

from typing import Any, Dict, List, Tuple

from simulator.classifier import NodeCategory
from simulator.synthesizer.base import BaseGenerator, SynthesisContext, input_items, preview
from simulator.synthesizer.expressions import resolve
from simulator.synthesizer.sample_data import generate_records

DEFAULT_ROW_LIMIT = 4


def _int_param(value: Any, default: int) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return default


def field_assignments(parameters: Dict[str, Any]) -> List[Tuple[str, Any]]:
    """Normalize the Set node's field parameters into (name, value) pairs.

    Handles a plain ``{field: value}`` mapping, the v1 ``values`` groups
    (``{"string": [{"name", "value"}], ...}``) and the v3
    ``assignments.assignments`` list.
    """
    mappings = parameters.get("values") or parameters.get("fields") or parameters.get("assignments") or {}

    if isinstance(mappings, dict) and isinstance(mappings.get("assignments"), list):
        mappings = mappings["assignments"]

    if isinstance(mappings, list):
        return [
            (str(entry["name"]), entry.get("value"))
            for entry in mappings
            if isinstance(entry, dict) and entry.get("name")
        ]

    if not isinstance(mappings, dict):
        return []

    grouped = mappings and all(
        isinstance(group, list) and all(isinstance(e, dict) and "name" in e for e in group)
        for group in mappings.values()
    )
    if grouped:
        return [
            (str(entry["name"]), entry.get("value"))
            for group in mappings.values()
            for entry in group
        ]
    return [(str(key), value) for key, value in mappings.items()]


class DatabaseGenerator(BaseGenerator):
    category = NodeCategory.DATABASE
    display_name = "Database"
    description = "Simulated rows from a spreadsheet, Airtable, Notion or SQL store"
    icon = "📊"

    def generate(
        self,
        node_name: str,
        parameters: Dict[str, Any],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> List[Dict[str, Any]]:
        operation = str(parameters.get("operation") or "read")
        table = (
            parameters.get("sheetName")
            or parameters.get("table")
            or parameters.get("tableId")
            or "Sheet1"
        )
        context.log(f"📊 [{node_name}] Database Node")
        context.log(f"   📌 Operation: {operation}")
        context.log(f"   📌 Table: {table}")

        rows = input_items(upstream_output)
        if rows:
            context.log(f"📝 {operation.upper()} {len(rows)} row(s) to {table}")
        else:
            limit = _int_param(parameters.get("limit"), DEFAULT_ROW_LIMIT)
            rows = generate_records("users", limit, context.rng, context.now())
            context.log(f"📥 Read {len(rows)} row(s) from {table}")
        context.log(f"✅ {len(rows)} row(s) synced")
        return rows


class MergeGenerator(BaseGenerator):
    category = NodeCategory.MERGE
    display_name = "Merge"
    description = "Concatenates the items of every output produced so far"
    icon = "🔗"

    def generate(
        self,
        node_name: str,
        parameters: Dict[str, Any],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> List[Dict[str, Any]]:
        context.log(f"🔗 [{node_name}] Collecting data from input branches...")
        merged: List[Dict[str, Any]] = []
        for output in context.previous_outputs.values():
            merged.extend(input_items(output))

        context.log(f"📊 Found {len(context.previous_outputs)} input source(s)")
        context.log(f"🔄 Merging {len(merged)} total item(s) (mode: {parameters.get('mode') or 'append'})")
        if not merged:
            merged = [{"merged": True, "source": "multiple"}]
        return merged


class TransformGenerator(BaseGenerator):
    category = NodeCategory.TRANSFORM
    display_name = "Set / Transform"
    description = "Applies field assignments with n8n expression substitution"
    icon = "📝"

    def generate(
        self,
        node_name: str,
        parameters: Dict[str, Any],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> List[Dict[str, Any]]:
        assignments = field_assignments(parameters)
        options = parameters.get("options") or {}
        keep_only_set = bool(options.get("keepOnlySet")) if isinstance(options, dict) else False
        now = context.now()

        # A Set node with nothing upstream still builds one item from its fields
        items = input_items(upstream_output) or [{}]

        context.log(f"📝 [{node_name}] Set/Transform Node")
        context.log(f"   📌 Fields to set: {preview(dict(assignments))}")
        context.log(f"📥 Processing {len(items)} item(s)...")

        transformed = []
        for index, item in enumerate(items):
            new_item = {} if keep_only_set else dict(item)
            for name, value in assignments:
                new_item[name] = resolve(value, item, now)
            new_item["_transformedAt"] = now.isoformat()
            new_item["_index"] = index
            transformed.append(new_item)

        context.log(f"🔄 Applied {len(assignments)} field transformation(s)")
        return transformed


# Export for generator registry
DATA_GENERATORS = {
    NodeCategory.DATABASE: DatabaseGenerator,
    NodeCategory.MERGE: MergeGenerator,
    NodeCategory.TRANSFORM: TransformGenerator,
}
