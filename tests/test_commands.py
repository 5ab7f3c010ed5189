import pytest

from shadeconnect.commands import CommandHandler


@pytest.fixture
def commands(registry):
    cmds = CommandHandler(registry=registry)
    cmds.dispatch("new_stage")
    cmds.dispatch("define_material", {"path": "/Looks/Mat"})
    cmds.dispatch("define_shader", {"path": "/Looks/Mat/Surface", "shader_id": "UsdPreviewSurface"})
    cmds.dispatch("define_shader", {"path": "/Looks/Mat/Tex", "shader_id": "UsdUVTexture"})
    return cmds


def test_unknown_command():
    with pytest.raises(ValueError, match="Unknown command: 'explode'"):
        CommandHandler().dispatch("explode", {})


def test_commands_need_a_stage():
    with pytest.raises(ValueError, match="No stage loaded"):
        CommandHandler().dispatch("get_stage_info")


def test_stage_info(commands):
    info = commands.dispatch("get_stage_info")
    assert info["materials"] == ["/Looks/Mat"]
    assert info["shaders"] == ["/Looks/Mat/Surface", "/Looks/Mat/Tex"]


def test_connect_list_disconnect(commands):
    src = "/Looks/Mat/Tex.outputs:rgb"
    dst = "/Looks/Mat/Surface.inputs:diffuseColor"

    result = commands.dispatch("connect_attributes", {
        "src": src, "dst": dst, "src_type": "float3", "dst_type": "color3f"})
    assert result["success"] is True
    assert commands.dispatch("connection_exists", {"src": src, "dst": dst})["connected"] is True
    assert commands.dispatch("connect_attributes", {"src": src, "dst": dst})["success"] is False

    listed = commands.dispatch("list_connections", {"node_path": "/Looks/Mat/Surface"})
    assert listed["count"] == 1
    assert listed["connections"] == [{"src": src, "dst": dst}]

    info = commands.dispatch("get_node_info", {"node_path": "/Looks/Mat/Surface"})
    assert info["shader_id"] == "UsdPreviewSurface"
    assert info["inputs"] == [{
        "name": "inputs:diffuseColor",
        "base_name": "diffuseColor",
        "type": "color3f",
        "custom": False,
    }]
    tex = commands.dispatch("get_node_info", {"node_path": "/Looks/Mat/Tex"})
    assert [o["name"] for o in tex["outputs"]] == ["outputs:rgb"]

    assert commands.dispatch("disconnect_attributes", {"src": src, "dst": dst})["success"] is True
    assert commands.dispatch("disconnect_attributes", {"src": src, "dst": dst})["success"] is False
    assert commands.dispatch("list_connections", {"node_path": "/Looks/Mat/Surface"})["count"] == 0


def test_connect_material_surface(commands):
    result = commands.dispatch("connect_attributes", {
        "src": "/Looks/Mat/Surface.outputs:surface",
        "dst": "/Looks/Mat.outputs:surface",
    })
    assert result["success"] is True
    info = commands.dispatch("get_node_info", {"node_path": "/Looks/Mat"})
    assert info["is_material"] is True
    assert [o["name"] for o in info["outputs"]] == ["outputs:surface"]


def test_node_info_lists_only_authored_declarations(commands):
    info = commands.dispatch("get_node_info", {"node_path": "/Looks/Mat"})
    assert info["inputs"] == []
    assert info["outputs"] == []


def test_bad_addresses(commands):
    with pytest.raises(ValueError):
        commands.dispatch("connect_attributes", {"src": "/Looks/Missing.outputs:x",
                                                 "dst": "/Looks/Mat/Surface.inputs:y"})
    with pytest.raises(ValueError):
        commands.dispatch("get_node_info", {"node_path": "/Looks/Missing"})
    with pytest.raises(ValueError, match="Unknown value type"):
        commands.dispatch("connect_attributes", {"src": "/Looks/Mat/Tex.outputs:rgb",
                                                 "dst": "/Looks/Mat/Surface.inputs:y",
                                                 "dst_type": "quaternion"})


def test_save_and_reopen(commands, tmp_path):
    commands.dispatch("connect_attributes", {
        "src": "/Looks/Mat/Tex.outputs:rgb",
        "dst": "/Looks/Mat/Surface.inputs:diffuseColor",
        "src_type": "float3", "dst_type": "color3f"})
    with pytest.raises(ValueError, match="in memory"):
        commands.dispatch("save_stage")

    out = tmp_path / "looks" / "mat.usda"
    assert commands.dispatch("save_stage", {"file_path": str(out)}) == {"saved": str(out)}

    reopened = CommandHandler()
    info = reopened.dispatch("open_stage", {"file_path": str(out)})
    assert info["materials"] == ["/Looks/Mat"]
    listed = reopened.dispatch("list_connections", {
        "node_path": "/Looks/Mat/Surface", "attribute_name": "inputs:diffuseColor"})
    assert listed["count"] == 1


def test_open_missing_file(tmp_path):
    with pytest.raises(ValueError, match="does not exist"):
        CommandHandler().dispatch("open_stage", {"file_path": str(tmp_path / "nope.usda")})
