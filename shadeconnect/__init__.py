"""
ShadeConnect v1.0.0
===================
ARCHITECTURE
============
host command / MCP tool -> CommandHandler -> UsdConnectionHandler -> UsdShade.ConnectableAPI

CONNECTION MODEL: a connection is the destination attribute's authored list of
source paths. Nothing else is stored; every query re-reads the stage.
THREADING: none. Callers keep a single writer per stage.

═══════════════════════════════════════════════════════════════════════════════
RULES
═══════════════════════════════════════════════════════════════════════════════
  - Declarations are created with ConnectableAPI.CreateInput/CreateOutput, never
    Usd.Prim.CreateAttribute (that marks them custom).
  - Connecting a shader output to a Material surface/volume/displacement output
    goes to the terminal of the shader's render context. glslfx shaders use the
    universal render context.
  - Creating an existing connection or deleting a missing one returns False.
═══════════════════════════════════════════════════════════════════════════════
"""

from shadeconnect.attributes import (
    USD_RUN_TIME_ID,
    AttributeHandle,
    AttributeKind,
    SceneItem,
    UsdAttributeHandle,
    UsdSceneItem,
    as_usd_attribute,
    attribute_from_path,
    classify,
)
from shadeconnect.connections import AttributeInfo, Connection, UsdConnections, connection_exists
from shadeconnect.handler import MATERIAL_TERMINALS, UsdConnectionHandler
from shadeconnect.registry import (
    LEGACY_SOURCE_TYPE,
    NodeDefinition,
    NodeDefinitionRegistry,
    SdrNodeDefinitionRegistry,
    render_context_for,
)

__all__ = [
    "USD_RUN_TIME_ID",
    "AttributeHandle",
    "AttributeInfo",
    "AttributeKind",
    "Connection",
    "LEGACY_SOURCE_TYPE",
    "MATERIAL_TERMINALS",
    "NodeDefinition",
    "NodeDefinitionRegistry",
    "SceneItem",
    "SdrNodeDefinitionRegistry",
    "UsdAttributeHandle",
    "UsdConnectionHandler",
    "UsdConnections",
    "UsdSceneItem",
    "as_usd_attribute",
    "attribute_from_path",
    "classify",
    "connection_exists",
    "render_context_for",
]
