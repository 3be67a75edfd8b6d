"""
n8n expression and condition helpers.

Supports the subset of n8n's expression language that simulated payloads
need: ``{{ $json.path.to.field }}``, ``{{ $now }}`` and ``{{ $today }}``,
optionally written in n8n's ``={{ ... }}`` form.
"""

import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

EXPRESSION_PATTERN = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}")

_MISSING = object()


def lookup(item: Dict[str, Any], path: str) -> Any:
    """Resolve a dotted path against an item. Returns None when absent."""
    value = _walk(item, path)
    return None if value is _MISSING else value


def _walk(item: Any, path: str) -> Any:
    current = item
    for part in path.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return _MISSING
    return current


def _evaluate(expression: str, item: Dict[str, Any], now: datetime) -> Any:
    if expression.startswith("$json."):
        # Missing fields are undefined, not unknown expressions
        return lookup(item, expression[len("$json."):])
    if expression == "$json":
        return item
    if expression == "$now":
        return now.isoformat()
    if expression == "$today":
        return now.date().isoformat()
    return _MISSING


def resolve(template: Any, item: Dict[str, Any], now: datetime) -> Any:
    """Substitute ``{{ }}`` expressions in ``template`` using ``item``.

    A template that is exactly one expression yields the raw value, so
    numbers stay numbers. A missing ``$json`` field resolves to None (empty
    inside longer text); unrecognized expressions are left verbatim.
    """
    if not isinstance(template, str):
        return template

    text = template[1:] if template.startswith("=") and "{{" in template else template
    whole = EXPRESSION_PATTERN.fullmatch(text.strip())
    if whole:
        value = _evaluate(whole.group(1), item, now)
        return text if value is _MISSING else value

    def replace(match: re.Match) -> str:
        value = _evaluate(match.group(1), item, now)
        if value is _MISSING:
            return match.group(0)
        return "" if value is None else str(value)

    return EXPRESSION_PATTERN.sub(replace, text)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return None


def _loose_equals(left: Any, right: Any) -> bool:
    if left == right:
        return True
    left_num, right_num = _as_number(left), _as_number(right)
    if left_num is not None and right_num is not None:
        return left_num == right_num
    if left is None or right is None:
        return False
    return str(left) == str(right)


def _greater(left: Any, right: Any) -> bool:
    left_num, right_num = _as_number(left), _as_number(right)
    return left_num is not None and right_num is not None and left_num > right_num


def _less(left: Any, right: Any) -> bool:
    left_num, right_num = _as_number(left), _as_number(right)
    return left_num is not None and right_num is not None and left_num < right_num


def _is_empty(value: Any, _: Any = None) -> bool:
    return value is None or value == "" or value == [] or value == {}


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "equals": _loose_equals,
    "notEquals": lambda left, right: not _loose_equals(left, right),
    "contains": lambda left, right: str(right) in str(left if left is not None else ""),
    "greaterThan": _greater,
    "lessThan": _less,
    "isEmpty": _is_empty,
    "isNotEmpty": lambda left, right: not _is_empty(left),
}

# n8n v2 spells some operators differently
OPERATOR_ALIASES = {
    "equal": "equals",
    "notEqual": "notEquals",
    "gt": "greaterThan",
    "larger": "greaterThan",
    "lt": "lessThan",
    "smaller": "lessThan",
    "empty": "isEmpty",
    "notEmpty": "isNotEmpty",
}


def evaluate_condition(item: Dict[str, Any], condition: Dict[str, Any], now: datetime) -> bool:
    """Evaluate one n8n condition entry against an item."""
    operator = condition.get("operator") or "equals"
    if isinstance(operator, dict):
        operator = operator.get("operation") or "equals"
    operator = OPERATOR_ALIASES.get(operator, operator)
    compare = OPERATORS.get(operator)
    if compare is None:
        return False

    left = condition.get("leftValue")
    if left is None or left == "":
        left = condition.get("field")
    if isinstance(left, str) and "{{" in left:
        field_value = resolve(left, item, now)
    elif isinstance(left, str):
        field_value = lookup(item, left)
    else:
        field_value = left

    right = condition.get("rightValue", condition.get("value"))
    right = resolve(right, item, now)
    return compare(field_value, right)


def condition_list(parameters: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Flatten the ``conditions`` parameter into a list of condition entries.

    Accepts the v2 shape ``{"conditions": [...], "combinator": "and"}`` and
    the v1 shape ``{"string": [...], "number": [...]}``.
    """
    conditions = parameters.get("conditions")
    if isinstance(conditions, list):
        return [c for c in conditions if isinstance(c, dict)]
    if not isinstance(conditions, dict):
        return []
    if isinstance(conditions.get("conditions"), list):
        return [c for c in conditions["conditions"] if isinstance(c, dict)]

    entries = []
    for group in ("string", "number", "boolean", "dateTime"):
        for entry in conditions.get(group) or []:
            if isinstance(entry, dict):
                entries.append({
                    "leftValue": entry.get("value1"),
                    "operator": entry.get("operation", "equals"),
                    "rightValue": entry.get("value2"),
                })
    return entries


def combinator(parameters: Dict[str, Any]) -> str:
    conditions = parameters.get("conditions")
    value = None
    if isinstance(conditions, dict):
        value = conditions.get("combinator")
    value = value or parameters.get("combineOperation") or parameters.get("combinator") or "and"
    return "or" if str(value).lower() in ("or", "any") else "and"


def matches(item: Dict[str, Any], parameters: Dict[str, Any], now: datetime) -> Optional[bool]:
    """Whether ``item`` passes the node's conditions; None if it has none."""
    entries = condition_list(parameters)
    if not entries:
        return None
    results = (evaluate_condition(item, entry, now) for entry in entries)
    return any(results) if combinator(parameters) == "or" else all(results)
