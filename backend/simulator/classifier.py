"""Node type classifier.

Maps a free-text node type (``n8n-nodes-base.httpRequest``,
``@n8n/n8n-nodes-langchain.agent``, ...) to a semantic category through an
ordered rule table. Matching is a case-insensitive substring test and the
first matching rule wins, so table order decides overlaps such as a type
containing both "ai" and "code".
"""

import re
from enum import Enum
from typing import NamedTuple, Optional


class NodeCategory(str, Enum):
    """Semantic grouping of node types."""

    TRIGGER = "trigger"
    HTTP_REQUEST = "http_request"
    EMAIL = "email"
    DATABASE = "database"
    MESSAGING = "messaging"
    AI = "ai"
    CODE = "code"
    CONDITIONAL = "conditional"
    MERGE = "merge"
    TRANSFORM = "transform"
    GENERIC = "generic"


class ClassificationRule(NamedTuple):
    category: NodeCategory
    keywords: tuple[str, ...]
    description: str


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(NodeCategory.TRIGGER, ("trigger", "webhook", "manual", "start"),
                       "Starts a workflow and emits the request envelope"),
    ClassificationRule(NodeCategory.HTTP_REQUEST, ("http",),
                       "Calls an external HTTP API"),
    ClassificationRule(NodeCategory.EMAIL, ("gmail", "email", "mail"),
                       "Sends or reads email"),
    ClassificationRule(NodeCategory.DATABASE, ("sheets", "airtable", "notion", "database"),
                       "Reads or writes rows in a spreadsheet or database"),
    ClassificationRule(NodeCategory.MESSAGING, ("slack", "telegram", "discord", "whatsapp"),
                       "Posts a chat message"),
    ClassificationRule(NodeCategory.AI, ("openai", "ai", "gpt", "claude", "langchain"),
                       "Runs a language model over the input items"),
    ClassificationRule(NodeCategory.CODE, ("code", "function", "javascript"),
                       "Runs custom code over the input items"),
    ClassificationRule(NodeCategory.CONDITIONAL, ("if", "switch", "condition", "filter"),
                       "Routes or filters items by condition"),
    ClassificationRule(NodeCategory.MERGE, ("merge", "join"),
                       "Combines items from several branches"),
    ClassificationRule(NodeCategory.TRANSFORM, ("set", "transform", "edit"),
                       "Sets or rewrites item fields"),
)

GENERIC_DESCRIPTION = "Any other node; echoes its input"


def classify(node_type: str) -> NodeCategory:
    """Classify a node type string. Total: unknown or empty types are GENERIC."""
    rule = matching_rule(node_type)
    return rule.category if rule else NodeCategory.GENERIC


def matching_rule(node_type: str) -> Optional[ClassificationRule]:
    """The rule that decided ``classify(node_type)``, or None for GENERIC."""
    lowered = (node_type or "").lower()
    for rule in CLASSIFICATION_RULES:
        if any(keyword in lowered for keyword in rule.keywords):
            return rule
    return None


def short_type(node_type: str) -> str:
    """Readable name: ``n8n-nodes-base.httpRequest`` -> ``Http Request``."""
    name = (node_type or "").split(".")[-1] or node_type or ""
    spaced = re.sub(r"([A-Z])", r" \1", name).strip()
    return spaced[:1].upper() + spaced[1:]


def describe_categories() -> list[dict]:
    """Category table for API consumers, in matching order."""
    table = [
        {
            "category": rule.category.value,
            "keywords": list(rule.keywords),
            "description": rule.description,
            "priority": position,
        }
        for position, rule in enumerate(CLASSIFICATION_RULES)
    ]
    table.append({
        "category": NodeCategory.GENERIC.value,
        "keywords": [],
        "description": GENERIC_DESCRIPTION,
        "priority": len(CLASSIFICATION_RULES),
    })
    return table
