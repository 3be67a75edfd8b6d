"""Email and chat messaging generators."""

from typing import Any, Dict

from simulator.classifier import NodeCategory
from simulator.synthesizer.base import BaseGenerator, SynthesisContext, input_items

PLATFORMS = ("slack", "telegram", "discord", "whatsapp")

DEFAULT_CHANNELS = {
    "slack": "#automation-alerts",
    "telegram": "workflow-bot",
    "discord": "#general",
    "whatsapp": "+10000000000",
}


def _snippet(text: Any, length: int = 50) -> str:
    text = str(text)
    return text if len(text) <= length else text[:length] + "..."


class EmailGenerator(BaseGenerator):
    category = NodeCategory.EMAIL
    display_name = "Email"
    description = "Simulated email delivery (Gmail, SMTP, ...)"
    icon = "📧"

    def generate(
        self,
        node_name: str,
        parameters: Dict[str, Any],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> Dict[str, Any]:
        to = (
            parameters.get("sendTo")
            or parameters.get("to")
            or parameters.get("toEmail")
            or f"user_{context.random_id(6)}@company.com"
        )
        subject = (
            parameters.get("subject")
            or f"Workflow Update - {context.now().date().isoformat()}"
        )
        operation = parameters.get("operation") or "send"

        context.log(f"📧 [{node_name}] Email Node")
        context.log(f"   📌 Operation: {operation}")
        context.log(f"   📌 To: {to}")
        context.log(f"   📌 Subject: {subject}")
        body = parameters.get("message") or parameters.get("text")
        if body:
            context.log(f'   📌 Body: "{_snippet(body)}"')
        context.log(f"✅ Email delivered to {to}")

        return {
            "messageId": f"<{context.random_id(12)}@mail.workflow.io>",
            "to": to,
            "from": parameters.get("from") or "workflow@automation.io",
            "subject": subject,
            "status": "delivered",
            "sentAt": context.iso_now(),
        }


class MessagingGenerator(BaseGenerator):
    category = NodeCategory.MESSAGING
    display_name = "Messaging"
    description = "Simulated chat message (Slack, Telegram, Discord, WhatsApp)"
    icon = "💬"

    def generate(
        self,
        node_name: str,
        parameters: Dict[str, Any],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> Dict[str, Any]:
        lowered = context.node_type.lower()
        platform = next((name for name in PLATFORMS if name in lowered), "chat")
        channel = (
            parameters.get("channel")
            or parameters.get("channelId")
            or parameters.get("chatId")
            or DEFAULT_CHANNELS.get(platform, "#general")
        )
        text = parameters.get("text") or parameters.get("message")
        if not text:
            received = input_items(upstream_output)
            text = f"🤖 Processed {len(received)} items" if received else "🤖 Workflow update"

        context.log(f"💬 [{node_name}] {platform.capitalize()} Node")
        context.log(f"   📌 Channel: {channel}")
        context.log(f'   📌 Message: "{_snippet(text)}"')
        context.log(f"✅ Message posted to {channel}")

        return {
            "ok": True,
            "platform": platform,
            "channel": channel,
            "text": text,
            "messageId": f"{platform}_{context.random_id(10)}",
            "ts": f"{context.now().timestamp():.6f}",
        }


# Export for generator registry
COMMUNICATION_GENERATORS = {
    NodeCategory.EMAIL: EmailGenerator,
    NodeCategory.MESSAGING: MessagingGenerator,
}
