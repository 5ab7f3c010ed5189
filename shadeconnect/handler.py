"""
UsdConnectionHandler: create, delete and list shading connections.

Declarations are always made through UsdShade.ConnectableAPI. Going through
Usd.Prim.CreateAttribute() instead leaves them marked custom, not native.
"""
import logging

from pxr import UsdShade

from shadeconnect.attributes import AttributeKind, as_usd_attribute, classify
from shadeconnect.connections import UsdConnections, connection_exists
from shadeconnect.registry import SdrNodeDefinitionRegistry, render_context_for

logger = logging.getLogger("ShadeConnect")

MATERIAL_TERMINALS = (
    str(UsdShade.Tokens.surface),
    str(UsdShade.Tokens.volume),
    str(UsdShade.Tokens.displacement),
)


def _check_reuse(existing, base_name, value_type, prim):
    if existing and existing.GetTypeName() != value_type:
        logger.error(
            "Cannot reuse '%s' on node '%s': declared as '%s', requested '%s'.",
            base_name, prim.GetPath(), existing.GetTypeName(), value_type)
        return False
    return True


def _materialize_input(handle, base_name):
    api = UsdShade.ConnectableAPI(handle.usd_prim)
    value_type = handle.usd_attribute_type
    if not _check_reuse(api.GetInput(base_name), base_name, value_type, handle.usd_prim):
        return None
    return api.CreateInput(base_name, value_type)


def _materialize_output(handle, base_name):
    api = UsdShade.ConnectableAPI(handle.usd_prim)
    value_type = handle.usd_attribute_type
    if not _check_reuse(api.GetOutput(base_name), base_name, value_type, handle.usd_prim):
        return None
    return api.CreateOutput(base_name, value_type)


def _connect(dst, src):
    if not dst or not src:
        return False
    # A terminal resolved through a render context can differ from the handle.
    if connection_exists(src.GetAttr(), dst.GetAttr()):
        return False
    return bool(dst.ConnectToSource(src))


class UsdConnectionHandler:
    """Connection handler for the USD runtime.

    registry: anything with get_shader_node_by_identifier(); defaults to Sdr.
    """

    def __init__(self, registry=None):
        self._registry = registry if registry is not None else SdrNodeDefinitionRegistry()
        self._branches = {
            (AttributeKind.INPUT,  AttributeKind.INPUT):  self._input_to_input,
            (AttributeKind.INPUT,  AttributeKind.OUTPUT): self._input_to_output,
            (AttributeKind.OUTPUT, AttributeKind.INPUT):  self._output_to_input,
            (AttributeKind.OUTPUT, AttributeKind.OUTPUT): self._output_to_output,
        }

    @property
    def registry(self):
        return self._registry

    def source_connections(self, item):
        return UsdConnections(item)

    def connection_exists(self, src_attr, dst_attr):
        src = as_usd_attribute(src_attr)
        dst = as_usd_attribute(dst_attr)
        if not src or not dst:
            return False
        return connection_exists(src.usd_attribute, dst.usd_attribute)

    def create_connection(self, src_attr, dst_attr):
        src = as_usd_attribute(src_attr)
        dst = as_usd_attribute(dst_attr)
        if not src or not dst:
            return False
        if connection_exists(src.usd_attribute, dst.usd_attribute):
            logger.debug("Already connected: %s -> %s", src.path, dst.path)
            return False

        src_base, src_kind = classify(src.name)
        dst_base, dst_kind = classify(dst.name)
        branch = self._branches[(src_kind, dst_kind)]
        return branch(src, src_base, dst, dst_base)

    def delete_connection(self, src_attr, dst_attr):
        src = as_usd_attribute(src_attr)
        dst = as_usd_attribute(dst_attr)
        if not src or not dst:
            return False
        if not connection_exists(src.usd_attribute, dst.usd_attribute):
            logger.debug("Not connected: %s -> %s", src.path, dst.path)
            return False
        return bool(UsdShade.ConnectableAPI.DisconnectSource(
            dst.usd_attribute, src.usd_attribute))

    # ── Decision tree ───────────────────────────────────────────────────────

    def _input_to_input(self, src, src_base, dst, dst_base):
        src_input = _materialize_input(src, src_base)
        dst_input = _materialize_input(dst, dst_base)
        return _connect(dst_input, src_input)

    def _input_to_output(self, src, src_base, dst, dst_base):
        src_input = _materialize_input(src, src_base)
        dst_output = _materialize_output(dst, dst_base)
        return _connect(dst_output, src_input)

    def _output_to_input(self, src, src_base, dst, dst_base):
        src_output = _materialize_output(src, src_base)
        dst_input = _materialize_input(dst, dst_base)
        return _connect(dst_input, src_output)

    def _output_to_output(self, src, src_base, dst, dst_base):
        src_output = _materialize_output(src, src_base)
        material = UsdShade.Material(dst.usd_prim)
        if material and dst_base in MATERIAL_TERMINALS:
            dst_output = self._material_terminal(material, dst_base, src)
        else:
            dst_output = _materialize_output(dst, dst_base)
        return _connect(dst_output, src_output)

    def _material_terminal(self, material, terminal, src):
        """Create or reuse the terminal matching the source shader's render context."""
        id_attr = UsdShade.Shader(src.usd_prim).GetIdAttr()
        shader_id = (id_attr.Get() if id_attr else None) or ""
        definition = self._registry.get_shader_node_by_identifier(str(shader_id))
        if not definition:
            logger.error(
                "Could not find node definition '%s' for node '%s'.",
                shader_id, src.scene_item.path)
            return None

        render_context = render_context_for(definition)
        if terminal == UsdShade.Tokens.surface:
            return material.CreateSurfaceOutput(render_context)
        if terminal == UsdShade.Tokens.volume:
            return material.CreateVolumeOutput(render_context)
        return material.CreateDisplacementOutput(render_context)
