import pytest
from pxr import Sdf, Usd, UsdShade

from shadeconnect.handler import UsdConnectionHandler
from shadeconnect.registry import NodeDefinitionRegistry


@pytest.fixture
def stage():
    return Usd.Stage.CreateInMemory()


@pytest.fixture
def registry():
    reg = NodeDefinitionRegistry()
    reg.register("UsdPreviewSurface", "glslfx")
    reg.register("UsdUVTexture", "glslfx")
    reg.register("MyToolkitSurface", "mytoolkit")
    return reg


@pytest.fixture
def handler(registry):
    return UsdConnectionHandler(registry)


@pytest.fixture
def material(stage):
    return UsdShade.Material.Define(stage, "/Looks/Mat")


def _define_shader(stage, path, shader_id, outputs=(), inputs=()):
    """Define a shader with authored outputs/inputs given as (name, value type)."""
    shader = UsdShade.Shader.Define(stage, path)
    shader.CreateIdAttr(shader_id)
    for name, vt in outputs:
        shader.CreateOutput(name, vt)
    for name, vt in inputs:
        shader.CreateInput(name, vt)
    return shader


@pytest.fixture
def make_shader(stage):
    def make(path, shader_id, outputs=(), inputs=()):
        return _define_shader(stage, path, shader_id, outputs, inputs)
    return make


@pytest.fixture
def texture(stage, material):
    return _define_shader(stage, "/Looks/Mat/Tex", "UsdUVTexture",
                          outputs=[("rgb", Sdf.ValueTypeNames.Float3)],
                          inputs=[("st", Sdf.ValueTypeNames.Float2)])


@pytest.fixture
def surface(stage, material):
    return _define_shader(stage, "/Looks/Mat/Surface", "UsdPreviewSurface",
                          outputs=[("surface", Sdf.ValueTypeNames.Token)])
