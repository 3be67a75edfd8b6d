"""
Generator Registry: central registry of mock output generators.

Maps each NodeCategory to the BaseGenerator subclass that synthesizes its
payload. Categories without a registered generator fall back to GENERIC.
"""

from typing import Any, Dict, Optional, Type

from simulator.classifier import NodeCategory
from simulator.synthesizer.base import BaseGenerator, SynthesisContext, SynthesisResult
from simulator.synthesizer.implementations.ai_generator import AI_GENERATORS
from simulator.synthesizer.implementations.communication_generators import COMMUNICATION_GENERATORS
from simulator.synthesizer.implementations.data_generators import DATA_GENERATORS
from simulator.synthesizer.implementations.http_generator import HTTP_GENERATORS
from simulator.synthesizer.implementations.logic_generators import LOGIC_GENERATORS
from simulator.synthesizer.implementations.trigger_generator import TRIGGER_GENERATORS


class GeneratorRegistry:
    """Central registry for all generator implementations."""

    def __init__(self):
        self._generators: Dict[NodeCategory, Type[BaseGenerator]] = {}
        self._register_builtin_generators()

    def _register_builtin_generators(self):
        """Register all built-in generators."""
        for group in (
            TRIGGER_GENERATORS,
            HTTP_GENERATORS,
            COMMUNICATION_GENERATORS,
            DATA_GENERATORS,
            AI_GENERATORS,
            LOGIC_GENERATORS,
        ):
            for category, generator_class in group.items():
                self.register(category, generator_class)

    def register(self, category: NodeCategory, generator_class: Type[BaseGenerator]):
        """Register (or replace) the generator for a category."""
        self._generators[NodeCategory(category)] = generator_class

    def override(self, category: NodeCategory, generator_class: Type[BaseGenerator]) -> Type[BaseGenerator]:
        """Replace a generator and return the previous one so it can be restored."""
        previous = self._generators.get(NodeCategory(category))
        self.register(category, generator_class)
        return previous

    def get(self, category: NodeCategory) -> Optional[Type[BaseGenerator]]:
        """Get a generator class by category."""
        return self._generators.get(category)

    def create_instance(self, category: NodeCategory) -> BaseGenerator:
        """Create a generator for a category, falling back to the generic one."""
        generator_class = self.get(category) or self._generators[NodeCategory.GENERIC]
        return generator_class()

    def list_all(self) -> list:
        """List all registered generators with metadata."""
        return [cls.describe() for cls in self._generators.values()]

    @property
    def available_categories(self) -> list:
        return [category.value for category in self._generators]

    def synthesize(
        self,
        category: NodeCategory,
        node_name: str,
        parameters: Optional[Dict[str, Any]],
        upstream_output: Any,
        context: SynthesisContext,
    ) -> SynthesisResult:
        """Produce the mock output of one node.

        Raises:
            NodeSynthesisError: if the generator fails for any reason.
        """
        generator = self.create_instance(category)
        return generator.run(node_name, parameters, upstream_output, context)


# Singleton
_registry: Optional[GeneratorRegistry] = None


def get_generator_registry() -> GeneratorRegistry:
    """Get or create the singleton generator registry."""
    global _registry
    if _registry is None:
        _registry = GeneratorRegistry()
    return _registry


def synthesize(
    category: NodeCategory,
    node_name: str,
    parameters: Optional[Dict[str, Any]],
    upstream_output: Any,
    context: Optional[SynthesisContext] = None,
) -> SynthesisResult:
    """Synthesize with the default registry."""
    return get_generator_registry().synthesize(
        category, node_name, parameters, upstream_output, context or SynthesisContext()
    )
