"""AI / LLM generator.

Scores every input item with a deterministic priority heuristic, gathers
simple statistics over numeric and status fields, and reports token usage
estimated from the size of the serialized items.
"""

import json
from typing import Any, Dict, List

from simulator.classifier import NodeCategory
from simulator.synthesizer.base import BaseGenerator, SynthesisContext, input_items
from simulator.synthesizer.sample_data import generate_records

DEFAULT_MODEL = "gpt-4o-mini"
CHARS_PER_TOKEN = 4


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def priority_score(item: Dict[str, Any]) -> int:
    """Priority score in [50, 100] derived from well-known item fields."""
    score = 50
    status = item.get("status")
    if status == "active":
        score += 20
    elif status == "pending":
        score += 10
    if _is_number(item.get("price")) and item["price"] > 100:
        score += 15
    if _is_number(item.get("score")) and item["score"] > 70:
        score += 15
    if _is_number(item.get("value")) and item["value"] > 10000:
        score += 20
    if item.get("stage") in ("qualified", "proposal"):
        score += 15
    return min(score, 100)


def classify_priority(score: int) -> str:
    if score >= 80:
        return "high-priority"
    if score >= 60:
        return "medium-priority"
    return "low-priority"


def sentiment(item: Dict[str, Any]) -> str:
    status = item.get("status")
    if status == "active":
        return "positive"
    if status == "pending":
        return "neutral"
    return "needs-attention"


def estimate_tokens(payload: Any) -> int:
    return len(json.dumps(payload, separators=(",", ":"), default=str)) // CHARS_PER_TOKEN


def field_statistics(items: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Per-field sum/avg/min/max for numeric fields and a status histogram."""
    numeric: Dict[str, List[float]] = {}
    status_counts: Dict[str, int] = {}
    for item in items:
        for key, value in item.items():
            if _is_number(value):
                numeric.setdefault(key, []).append(value)
            elif key == "status" and isinstance(value, str):
                status_counts[value] = status_counts.get(value, 0) + 1

    numeric_stats = {
        key: {
            "sum": round(sum(values), 2),
            "avg": round(sum(values) / len(values), 2),
            "min": min(values),
            "max": max(values),
        }
        for key, values in numeric.items()
    }
    return {"numericStats": numeric_stats, "statusCounts": status_counts}


class AIGenerator(BaseGenerator):
    category = NodeCategory.AI
    display_name = "AI / LLM"
    description = "Simulated language-model analysis of the input items"
    icon = "🤖"

    def generate(
        self,
        node_name: str,
        parameters: Dict[str, Any],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> Dict[str, Any]:
        model = parameters.get("model") or DEFAULT_MODEL
        if isinstance(model, dict):
            # n8n resource locator: {"__rl": true, "value": "gpt-4o", "mode": "list"}
            model = model.get("value") or DEFAULT_MODEL
        operation = parameters.get("operation") or parameters.get("resource") or "analyze"

        items = input_items(upstream_output)
        if not items:
            items = generate_records("leads", 3, context.rng, context.now())

        context.log(f"🤖 [{node_name}] AI Node")
        context.log(f"   📌 Model: {model}")
        context.log(f"   📌 Operation: {operation}")
        context.log(f"   ├─ Analyzing {len(items)} item(s)...")

        analyzed_at = context.iso_now()
        enriched = []
        for item in items:
            score = priority_score(item)
            result = dict(item)
            result["_aiScore"] = score
            result["_classification"] = classify_priority(score)
            result["_sentiment"] = sentiment(item)
            result["_analyzedAt"] = analyzed_at
            result["_processedBy"] = list(item.get("_processedBy") or []) + [node_name]
            enriched.append(result)

        stats = field_statistics(items)
        high = sum(1 for i in enriched if i["_classification"] == "high-priority")
        medium = sum(1 for i in enriched if i["_classification"] == "medium-priority")
        low = len(enriched) - high - medium

        insights = [f"Total items: {len(enriched)}"]
        insights.extend(
            f"{key}: avg={value['avg']}, sum={value['sum']}"
            for key, value in stats["numericStats"].items()
        )
        insights.append(f"Priority: {high} high, {medium} medium, {low} low")

        recommendations = []
        if high:
            recommendations.append(f"Focus on {high} high-priority items first")
        if "price" in stats["numericStats"]:
            recommendations.append(f"Total value: ${stats['numericStats']['price']['sum']}")
        if "value" in stats["numericStats"]:
            recommendations.append(f"Total pipeline value: ${stats['numericStats']['value']['sum']}")

        prompt_tokens = estimate_tokens(items)
        completion_tokens = estimate_tokens(enriched)
        summary = f"Analyzed {len(items)} records with AI classification"

        context.log(f"   └─ Priority: {high} high, {medium} medium, {low} low")
        context.log(
            f"📈 Token usage: {prompt_tokens} prompt + {completion_tokens} completion"
            f" = {prompt_tokens + completion_tokens} total"
        )

        return {
            "model": model,
            "operation": operation,
            "response": summary,
            "usage": {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
            "analysis": {
                "summary": summary,
                "insights": insights,
                "numericStats": stats["numericStats"],
                "statusCounts": stats["statusCounts"],
                "recommendations": recommendations,
            },
            "items": enriched,
        }


# Export for generator registry
AI_GENERATORS = {
    NodeCategory.AI: AIGenerator,
}
