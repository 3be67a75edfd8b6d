"""HTTP Request generator.

Never performs the request: reports the configured method and URL and
returns a fixed-size page of sample product records.
"""

from typing import Any, Dict, List

from simulator.classifier import NodeCategory
from simulator.synthesizer.base import BaseGenerator, SynthesisContext
from simulator.synthesizer.sample_data import generate_records

RESPONSE_SIZE = 3
DEFAULT_URL = "https://api.example.com/data"


class HttpRequestGenerator(BaseGenerator):
    category = NodeCategory.HTTP_REQUEST
    display_name = "HTTP Request"
    description = "Simulated call to an external HTTP API"
    icon = "🌐"

    def generate(
        self,
        node_name: str,
        parameters: Dict[str, Any],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> List[Dict[str, Any]]:
        url = parameters.get("url") or DEFAULT_URL
        method = str(parameters.get("method") or parameters.get("requestMethod") or "GET").upper()

        context.log(f"🌐 [{node_name}] HTTP Request")
        context.log(f"   📌 {method} {url}")
        items = generate_records("products", RESPONSE_SIZE, context.rng, context.now())
        context.log(f"✅ 200 OK - {len(items)} item(s) received")
        return items


# Export for generator registry
HTTP_GENERATORS = {
    NodeCategory.HTTP_REQUEST: HttpRequestGenerator,
}
