import asyncio
import json
import os

import pytest

from shadeconnect import bridge
from shadeconnect.commands import CommandHandler


@pytest.fixture
def fresh_handler(monkeypatch, registry):
    cmds = CommandHandler(registry=registry)
    monkeypatch.setattr(bridge, "_handler", cmds)
    return cmds


def _run(coro):
    return asyncio.run(coro)


def test_tools_are_registered():
    names = {tool.name for tool in _run(bridge.mcp.list_tools())}
    assert set(CommandHandler().HANDLERS) <= names


def test_error_is_returned_as_text(fresh_handler):
    assert _run(bridge.get_stage_info(None)).startswith("Error: No stage loaded")


def test_connect_through_tools(fresh_handler):
    _run(bridge.new_stage(None))
    _run(bridge.define_material(None, "/Looks/Mat"))
    _run(bridge.define_shader(None, "/Looks/Mat/Surface", "MyToolkitSurface"))

    result = json.loads(_run(bridge.connect_attributes(
        None, "/Looks/Mat/Surface.outputs:surface", "/Looks/Mat.outputs:surface")))
    assert result["success"] is True

    listed = json.loads(_run(bridge.list_connections(None, "/Looks/Mat")))
    assert listed["connections"] == [{
        "src": "/Looks/Mat/Surface.outputs:surface",
        "dst": "/Looks/Mat.outputs:mytoolkit:surface",
    }]


def test_unregistered_shader_reports_failure(fresh_handler):
    _run(bridge.new_stage(None))
    _run(bridge.define_material(None, "/Looks/Mat"))
    _run(bridge.define_shader(None, "/Looks/Mat/Surface", "Unknown"))

    result = json.loads(_run(bridge.connect_attributes(
        None, "/Looks/Mat/Surface.outputs:surface", "/Looks/Mat.outputs:surface")))
    assert result["success"] is False


def test_main_parses_arguments(monkeypatch, fresh_handler, tmp_path):
    stage_file = tmp_path / "look.usda"
    fresh_handler.dispatch("new_stage")
    fresh_handler.dispatch("save_stage", {"file_path": str(stage_file)})

    ran = []
    monkeypatch.setattr(bridge.mcp, "run", lambda: ran.append(True))
    bridge.main(["--stage", str(stage_file), "--log-level", "DEBUG"])

    assert ran == [True]
    assert os.path.samefile(fresh_handler.stage.GetRootLayer().realPath, stage_file)
