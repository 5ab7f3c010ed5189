"""
Host editing commands over one USD stage.

Every command takes and returns plain JSON-friendly values, so the same table
serves the MCP bridge and scripted callers. Addressing mistakes (no stage,
unknown prim, malformed path) raise ValueError; connection outcomes are
reported as {"success": bool}.
"""
import logging
import os

from pxr import Sdf, Usd, UsdShade

from shadeconnect.attributes import (
    AttributeKind, UsdSceneItem, attribute_from_path, classify,
)
from shadeconnect.handler import UsdConnectionHandler

logger = logging.getLogger("ShadeConnect")

PLUGIN_VERSION = (1, 0, 0)

# Value types accepted by name in commands.
_VALUE_TYPES = {
    "token":   Sdf.ValueTypeNames.Token,
    "float":   Sdf.ValueTypeNames.Float,
    "float2":  Sdf.ValueTypeNames.Float2,
    "float3":  Sdf.ValueTypeNames.Float3,
    "color3f": Sdf.ValueTypeNames.Color3f,
    "normal3f": Sdf.ValueTypeNames.Normal3f,
    "int":     Sdf.ValueTypeNames.Int,
    "bool":    Sdf.ValueTypeNames.Bool,
    "string":  Sdf.ValueTypeNames.String,
    "asset":   Sdf.ValueTypeNames.Asset,
}


def _value_type(name):
    if name is None:
        return None
    vt = _VALUE_TYPES.get(name.lower())
    if vt is None:
        raise ValueError("Unknown value type '{}'. Available: {}".format(
            name, sorted(_VALUE_TYPES)))
    return vt


def _connection_dict(conn):
    return {
        "src": "{}.{}".format(conn.src.path, conn.src.name),
        "dst": "{}.{}".format(conn.dst.path, conn.dst.name),
    }


class CommandHandler:

    def __init__(self, stage=None, registry=None):
        self._stage = stage
        self._connection_handler = UsdConnectionHandler(registry)
        self.HANDLERS = {
            # ── Stage ──
            "new_stage":             self.new_stage,
            "open_stage":            self.open_stage,
            "save_stage":            self.save_stage,
            "get_stage_info":        self.get_stage_info,
            # ── Nodes ──
            "define_material":       self.define_material,
            "define_shader":         self.define_shader,
            "get_node_info":         self.get_node_info,
            # ── Connection ──
            "connect_attributes":    self.connect_attributes,
            "disconnect_attributes": self.disconnect_attributes,
            "connection_exists":     self.connection_exists,
            "list_connections":      self.list_connections,
        }

    def dispatch(self, cmd_type, params=None):
        handler = self.HANDLERS.get(cmd_type)
        if not handler:
            raise ValueError("Unknown command: '{}'. Available: {}".format(
                cmd_type, sorted(self.HANDLERS.keys())))
        return handler(**(params or {}))

    # ── Helpers ─────────────────────────────────────────────────────────────

    @property
    def stage(self):
        return self._stage

    @property
    def connection_handler(self):
        return self._connection_handler

    def _require_stage(self):
        if self._stage is None:
            raise ValueError("No stage loaded. Use new_stage or open_stage first.")
        return self._stage

    def _find_prim(self, node_path):
        prim = self._require_stage().GetPrimAtPath(node_path)
        if not prim:
            raise ValueError("Node '{}' not found.".format(node_path))
        return prim

    def _attribute(self, path, value_type=None):
        return attribute_from_path(self._require_stage(), path, _value_type(value_type))

    # ── Stage commands ──────────────────────────────────────────────────────

    def new_stage(self):
        self._stage = Usd.Stage.CreateInMemory()
        return self.get_stage_info()

    def open_stage(self, file_path):
        if not os.path.isfile(file_path):
            raise ValueError("Stage file '{}' does not exist.".format(file_path))
        self._stage = Usd.Stage.Open(file_path)
        if self._stage is None:
            raise ValueError("Could not open stage '{}'.".format(file_path))
        logger.info("Opened stage %s", file_path)
        return self.get_stage_info()

    def save_stage(self, file_path=None):
        stage = self._require_stage()
        if file_path:
            directory = os.path.dirname(file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            stage.GetRootLayer().Export(file_path)
            return {"saved": file_path}
        layer = stage.GetRootLayer()
        if layer.anonymous:
            raise ValueError("Stage is in memory; pass file_path to save it.")
        layer.Save()
        return {"saved": layer.realPath}

    def get_stage_info(self):
        stage = self._require_stage()
        materials = []
        shaders = []
        for prim in stage.Traverse():
            if UsdShade.Material(prim):
                materials.append(str(prim.GetPath()))
            elif UsdShade.Shader(prim):
                shaders.append(str(prim.GetPath()))
        return {
            "root_layer": stage.GetRootLayer().identifier,
            "materials": materials,
            "shaders": shaders,
            "plugin_version": ".".join(map(str, PLUGIN_VERSION)),
        }

    # ── Node commands ───────────────────────────────────────────────────────

    def define_material(self, path):
        material = UsdShade.Material.Define(self._require_stage(), path)
        return {"node_path": str(material.GetPath()), "type": "Material"}

    def define_shader(self, path, shader_id):
        shader = UsdShade.Shader.Define(self._require_stage(), path)
        shader.CreateIdAttr(shader_id)
        return {"node_path": str(shader.GetPath()), "type": "Shader", "shader_id": shader_id}

    def get_node_info(self, node_path):
        prim = self._find_prim(node_path)
        inputs = []
        outputs = []
        for attr in prim.GetAuthoredAttributes():
            name = attr.GetName()
            if not (name.startswith("inputs:") or name.startswith("outputs:")):
                continue
            base_name, kind = classify(name)
            entry = {
                "name": name,
                "base_name": base_name,
                "type": str(attr.GetTypeName()),
                "custom": attr.IsCustom(),
            }
            (inputs if kind is AttributeKind.INPUT else outputs).append(entry)

        shader_id = None
        if UsdShade.Shader(prim):
            shader_id = UsdShade.Shader(prim).GetIdAttr().Get()
        return {
            "node_path": node_path,
            "type": prim.GetTypeName(),
            "is_material": bool(UsdShade.Material(prim)),
            "shader_id": shader_id,
            "inputs": inputs,
            "outputs": outputs,
        }

    # ── Connection commands ─────────────────────────────────────────────────

    def connect_attributes(self, src, dst, src_type=None, dst_type=None):
        ok = self._connection_handler.create_connection(
            self._attribute(src, src_type), self._attribute(dst, dst_type))
        return {"src": src, "dst": dst, "success": ok}

    def disconnect_attributes(self, src, dst):
        ok = self._connection_handler.delete_connection(
            self._attribute(src), self._attribute(dst))
        return {"src": src, "dst": dst, "success": ok}

    def connection_exists(self, src, dst):
        exists = self._connection_handler.connection_exists(
            self._attribute(src), self._attribute(dst))
        return {"src": src, "dst": dst, "connected": exists}

    def list_connections(self, node_path, attribute_name=None):
        item = UsdSceneItem(self._find_prim(node_path))
        conns = self._connection_handler.source_connections(item)
        if attribute_name:
            found = conns.connections(attribute_name)
        else:
            found = conns.all_connections()
        return {
            "node_path": node_path,
            "count": len(found),
            "connections": [_connection_dict(c) for c in found],
        }
