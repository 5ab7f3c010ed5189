"""
Attribute handles and runtime identity for USD shading attributes.

A handle names one property on one prim. The property does not have to be
authored yet: connecting is what materializes it through UsdShade.
"""
import enum
import logging

from pxr import Sdf, Usd, UsdShade

logger = logging.getLogger("ShadeConnect")

# ── Runtime identity ─────────────────────────────────────────────────────────
USD_RUN_TIME_ID = "USD"

INPUT_PREFIX  = "inputs:"
OUTPUT_PREFIX = "outputs:"


class AttributeKind(enum.Enum):
    INPUT  = "input"
    OUTPUT = "output"


def classify(name):
    """Split an attribute name into (base_name, AttributeKind).

    Anything that is not in the inputs: namespace classifies as an output,
    which is also the branch taken when connecting.
    """
    base_name, attr_type = UsdShade.Utils.GetBaseNameAndType(name)
    if attr_type == UsdShade.AttributeType.Input:
        return str(base_name), AttributeKind.INPUT
    return str(base_name), AttributeKind.OUTPUT


class SceneItem:
    """Addressable item owned by some runtime."""

    def __init__(self, path, run_time_id):
        self.path = str(path)
        self.run_time_id = run_time_id

    def __eq__(self, other):
        return (isinstance(other, SceneItem)
                and self.path == other.path
                and self.run_time_id == other.run_time_id)

    def __hash__(self):
        return hash((self.path, self.run_time_id))

    def __repr__(self):
        return "{}({!r}, {!r})".format(type(self).__name__, self.path, self.run_time_id)


class UsdSceneItem(SceneItem):
    def __init__(self, prim):
        super().__init__(prim.GetPath(), USD_RUN_TIME_ID)
        self.prim = prim


class AttributeHandle:
    """Generic attribute handle: a name on a scene item."""

    def __init__(self, scene_item, name, type_name=None):
        self.scene_item = scene_item
        self.name = name
        self.type_name = type_name

    def __repr__(self):
        return "{}({}.{})".format(type(self).__name__, self.scene_item.path, self.name)


class UsdAttributeHandle(AttributeHandle):
    """Attribute handle in the USD runtime.

    `value_type` is the type this handle declares. It defaults to the authored
    attribute's type, or token when nothing is authored yet.
    """

    def __init__(self, prim, name, value_type=None):
        if value_type is None:
            attr = prim.GetAttribute(name)
            value_type = attr.GetTypeName() if attr else Sdf.ValueTypeNames.Token
        super().__init__(UsdSceneItem(prim), name, str(value_type))
        self._prim = prim
        self._value_type = value_type

    @classmethod
    def from_attribute(cls, attr):
        return cls(attr.GetPrim(), attr.GetName(), attr.GetTypeName())

    @property
    def usd_prim(self):
        return self._prim

    @property
    def usd_attribute(self):
        return self._prim.GetAttribute(self.name)

    @property
    def usd_attribute_type(self):
        return self._value_type

    @property
    def path(self):
        return self._prim.GetPath().AppendProperty(self.name)


def attribute_from_path(stage, path, value_type=None):
    """Build a handle from a property path like '/Mat/Shader.outputs:surface'.

    Raises ValueError when the path is not a property path or its prim is missing.
    """
    sdf_path = Sdf.Path(path) if isinstance(path, str) else path
    if sdf_path.isEmpty or not sdf_path.IsPropertyPath():
        raise ValueError("'{}' is not an attribute path.".format(path))
    prim = stage.GetPrimAtPath(sdf_path.GetPrimPath())
    if not prim:
        raise ValueError("Node '{}' not found.".format(sdf_path.GetPrimPath()))
    return UsdAttributeHandle(prim, sdf_path.name, value_type)


def as_usd_attribute(attr):
    """Convert a generic handle to a UsdAttributeHandle, or None.

    Null and foreign-runtime handles are reported; nothing is raised.
    """
    if attr is None:
        logger.error("Invalid attribute.")
        return None

    if attr.scene_item.run_time_id != USD_RUN_TIME_ID:
        logger.error(
            "Invalid runtime identifier for the attribute '%s' in the node '%s'.",
            attr.name, attr.scene_item.path)
        return None

    if not isinstance(attr, UsdAttributeHandle):
        return None
    return attr
