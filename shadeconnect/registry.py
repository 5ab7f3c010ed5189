"""
Node-definition lookup.

The connection handler takes any object with get_shader_node_by_identifier();
production code wraps the Sdr registry, tests use NodeDefinitionRegistry.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from pxr import Sdr, UsdShade

# Shaders authored in this family target every renderer.
LEGACY_SOURCE_TYPE = "glslfx"


@dataclass(frozen=True)
class NodeDefinition:
    identifier: str
    source_type: str


class NodeDefinitionLookup(Protocol):
    def get_shader_node_by_identifier(self, identifier: str) -> Optional[NodeDefinition]:
        ...


class SdrNodeDefinitionRegistry:
    """Adapter over the process-wide Sdr registry."""

    def __init__(self, sdr_registry=None) -> None:
        self._sdr = sdr_registry

    def _registry(self):
        if self._sdr is None:
            self._sdr = Sdr.Registry()
        return self._sdr

    def get_shader_node_by_identifier(self, identifier: str) -> Optional[NodeDefinition]:
        if not identifier:
            return None
        node = self._registry().GetShaderNodeByIdentifier(identifier)
        if not node:
            return None
        return NodeDefinition(str(node.GetIdentifier()), str(node.GetSourceType()))


class NodeDefinitionRegistry:
    """In-memory identifier -> NodeDefinition map."""

    def __init__(self) -> None:
        self._definitions: Dict[str, NodeDefinition] = {}

    def register(self, identifier: str, source_type: str) -> NodeDefinition:
        if not identifier or not identifier.strip():
            raise ValueError("identifier must be non-empty")
        definition = NodeDefinition(identifier.strip(), source_type)
        self._definitions[definition.identifier] = definition
        return definition

    def get_shader_node_by_identifier(self, identifier: str) -> Optional[NodeDefinition]:
        if not identifier:
            return None
        return self._definitions.get(identifier)

    def identifiers(self) -> List[str]:
        return sorted(self._definitions)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._definitions


def render_context_for(definition: NodeDefinition) -> str:
    if definition.source_type == LEGACY_SOURCE_TYPE:
        return str(UsdShade.Tokens.universalRenderContext)
    return definition.source_type
