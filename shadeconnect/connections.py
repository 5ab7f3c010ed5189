"""
Connection queries.

Connections are not stored anywhere but on the destination attribute, as its
authored list of source paths. Everything here re-reads that list on each call.
"""
from collections import namedtuple

from shadeconnect.attributes import UsdSceneItem

AttributeInfo = namedtuple("AttributeInfo", ["path", "name"])


class Connection(namedtuple("Connection", ["src", "dst"])):
    """Directed edge src -> dst, both AttributeInfo."""

    def __str__(self):
        return "{}.{} -> {}.{}".format(
            self.src.path, self.src.name, self.dst.path, self.dst.name)


def connection_exists(src_attr, dst_attr):
    """True if dst_attr lists src_attr among its authored sources."""
    if not dst_attr or not src_attr:
        return False
    src_path = src_attr.GetPath()
    for path in dst_attr.GetConnections():
        if path == src_path:
            return True
    return False


def _info_from_path(path):
    return AttributeInfo(str(path.GetPrimPath()), path.name)


class UsdConnections:
    """Source connections of one node, recomputed from the stage on every access."""

    def __init__(self, item):
        if not isinstance(item, UsdSceneItem):
            raise TypeError("UsdConnections needs a USD scene item, got {!r}".format(item))
        self._item = item

    @property
    def scene_item(self):
        return self._item

    def _attribute_connections(self, attr):
        dst = AttributeInfo(self._item.path, attr.GetName())
        return [Connection(_info_from_path(src), dst) for src in attr.GetConnections()]

    def all_connections(self):
        prim = self._item.prim
        if not prim:
            return []
        result = []
        for attr in prim.GetAttributes():
            if attr.HasAuthoredConnections():
                result.extend(self._attribute_connections(attr))
        return result

    def connections(self, attribute_name):
        """Ordered sources feeding one attribute of this node."""
        prim = self._item.prim
        if not prim:
            return []
        attr = prim.GetAttribute(attribute_name)
        if not attr:
            return []
        return self._attribute_connections(attr)

    def has_connection(self, attribute_name):
        return bool(self.connections(attribute_name))

    def __iter__(self):
        return iter(self.all_connections())

    def __len__(self):
        return len(self.all_connections())
