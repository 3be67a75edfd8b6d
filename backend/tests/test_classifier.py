"""Tests for node type classification."""

import pytest

from simulator.classifier import (
    CLASSIFICATION_RULES,
    NodeCategory,
    classify,
    describe_categories,
    short_type,
)


@pytest.mark.unit
class TestClassify:

    @pytest.mark.parametrize(
        "node_type, expected",
        [
            ("n8n-nodes-base.webhook", NodeCategory.TRIGGER),
            ("n8n-nodes-base.manualTrigger", NodeCategory.TRIGGER),
            ("n8n-nodes-base.scheduleTrigger", NodeCategory.TRIGGER),
            ("n8n-nodes-base.httpRequest", NodeCategory.HTTP_REQUEST),
            ("n8n-nodes-base.gmail", NodeCategory.EMAIL),
            ("n8n-nodes-base.emailSend", NodeCategory.EMAIL),
            ("n8n-nodes-base.googleSheets", NodeCategory.DATABASE),
            ("n8n-nodes-base.airtable", NodeCategory.DATABASE),
            ("n8n-nodes-base.slack", NodeCategory.MESSAGING),
            ("n8n-nodes-base.telegram", NodeCategory.MESSAGING),
            ("n8n-nodes-base.openAi", NodeCategory.AI),
            ("@n8n/n8n-nodes-langchain.lmChatAnthropic", NodeCategory.AI),
            ("n8n-nodes-base.code", NodeCategory.CODE),
            ("n8n-nodes-base.function", NodeCategory.CODE),
            ("n8n-nodes-base.if", NodeCategory.CONDITIONAL),
            ("n8n-nodes-base.switch", NodeCategory.CONDITIONAL),
            ("n8n-nodes-base.merge", NodeCategory.MERGE),
            ("n8n-nodes-base.set", NodeCategory.TRANSFORM),
            ("n8n-nodes-base.noOp", NodeCategory.GENERIC),
            ("", NodeCategory.GENERIC),
        ],
    )
    def test_rule_table(self, node_type, expected):
        assert classify(node_type) == expected

    def test_case_insensitive(self):
        assert classify("N8N-NODES-BASE.SLACK") == NodeCategory.MESSAGING

    def test_first_match_wins(self):
        # "mail" (EMAIL) is checked before "ai" (AI)
        assert classify("n8n-nodes-base.mailchimp") == NodeCategory.EMAIL
        # "trigger" beats "gmail"
        assert classify("n8n-nodes-base.gmailTrigger") == NodeCategory.TRIGGER

    def test_none_is_generic(self):
        assert classify(None) == NodeCategory.GENERIC

    def test_deterministic(self):
        assert {classify("n8n-nodes-base.merge") for _ in range(10)} == {NodeCategory.MERGE}

    def test_category_is_str_enum(self):
        assert classify("n8n-nodes-base.code") == "code"


@pytest.mark.unit
class TestHelpers:

    @pytest.mark.parametrize(
        "node_type, expected",
        [
            ("n8n-nodes-base.httpRequest", "Http Request"),
            ("n8n-nodes-base.manualTrigger", "Manual Trigger"),
            ("slack", "Slack"),
            ("", ""),
        ],
    )
    def test_short_type(self, node_type, expected):
        assert short_type(node_type) == expected

    def test_describe_categories_matches_rule_order(self):
        table = describe_categories()
        assert [row["category"] for row in table[:-1]] == [r.category.value for r in CLASSIFICATION_RULES]
        assert table[-1]["category"] == "generic"
        assert [row["priority"] for row in table] == list(range(len(table)))
