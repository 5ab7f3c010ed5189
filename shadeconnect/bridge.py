#!/usr/bin/env python
"""
bridge.py - ShadeConnect MCP bridge

Exposes the USD shading-connection commands as MCP tools over stdio.

Architecture: MCP client -> stdio -> this bridge -> CommandHandler -> USD stage

The stage lives in this process. Every tool runs on a worker thread under one
lock, so the stage only ever sees one writer at a time.

Usage:
    shadeconnect-bridge --stage path/to/look.usda
"""
import argparse
import asyncio
import json
import logging
import threading
from contextlib import asynccontextmanager
from typing import Optional

from mcp.server.fastmcp import FastMCP, Context

from shadeconnect.commands import PLUGIN_VERSION, CommandHandler

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logger = logging.getLogger("ShadeConnect.Bridge")

# ---------------------------------------------------------------------------
# Global state
# ---------------------------------------------------------------------------
_handler = CommandHandler()
_stage_lock = threading.Lock()
_version = ".".join(map(str, PLUGIN_VERSION))


def _run_locked(cmd_type: str, params: Optional[dict] = None) -> str:
    """Run one command and format its result for an MCP tool response."""
    with _stage_lock:
        try:
            result = _handler.dispatch(cmd_type, params or {})
        except ValueError as e:
            return f"Error: {e}"
        except Exception as e:
            logger.error(f"Unexpected error in {cmd_type}: {e}", exc_info=True)
            return f"Error: {e}"
    if result is None:
        result = {}
    return json.dumps(result, indent=2)


async def _async_run(cmd_type: str, params: Optional[dict] = None) -> str:
    return await asyncio.to_thread(_run_locked, cmd_type, params)


# ---------------------------------------------------------------------------
# FastMCP Server
# ---------------------------------------------------------------------------
@asynccontextmanager
async def _lifespan(app: FastMCP):
    logger.info(f"ShadeConnect MCP Bridge v{_version} starting")
    if _handler.stage is None:
        logger.info("No stage loaded yet. Call new_stage or open_stage first.")
    yield {}
    logger.info("ShadeConnect MCP bridge shutting down.")


mcp = FastMCP("ShadeConnect", lifespan=_lifespan)


# ======================================================================
# MCP TOOLS
# ======================================================================

@mcp.tool()
async def new_stage(ctx: Context) -> str:
    """Replace the current stage with a new, empty in-memory stage."""
    return await _async_run("new_stage")


@mcp.tool()
async def open_stage(ctx: Context, file_path: str) -> str:
    """Open a USD layer (.usda/.usdc/.usd) as the current stage."""
    return await _async_run("open_stage", {"file_path": file_path})


@mcp.tool()
async def save_stage(ctx: Context, file_path: Optional[str] = None) -> str:
    """
    Save the current stage.
    - file_path: export the root layer to this path. Required for in-memory stages.
    """
    return await _async_run("save_stage", {"file_path": file_path})


@mcp.tool()
async def get_stage_info(ctx: Context) -> str:
    """List the materials and shaders on the current stage."""
    return await _async_run("get_stage_info")


@mcp.tool()
async def define_material(ctx: Context, path: str) -> str:
    """Define a UsdShade Material prim at path (e.g. '/Looks/Mat')."""
    return await _async_run("define_material", {"path": path})


@mcp.tool()
async def define_shader(ctx: Context, path: str, shader_id: str) -> str:
    """
    Define a UsdShade Shader prim and author its info:id.
    - shader_id: node definition identifier, e.g. 'UsdPreviewSurface', 'ND_standard_surface_surfaceshader'
    """
    return await _async_run("define_shader", {"path": path, "shader_id": shader_id})


@mcp.tool()
async def get_node_info(ctx: Context, node_path: str) -> str:
    """
    Get the declared inputs and outputs of a node, with their types and
    whether each one is a custom (non-schema) attribute.
    """
    return await _async_run("get_node_info", {"node_path": node_path})


@mcp.tool()
async def connect_attributes(ctx: Context,
                             src: str,
                             dst: str,
                             src_type: Optional[str] = None,
                             dst_type: Optional[str] = None) -> str:
    """
    Connect src -> dst. Both are attribute paths like '/Looks/Mat/Tex.outputs:rgb'.
    Missing declarations are created as native inputs/outputs.

    Connecting a shader output to a Material's outputs:surface, outputs:volume
    or outputs:displacement creates the terminal for the shader's render
    context (e.g. outputs:mtlx:surface); glslfx shaders use the universal one.

    - src_type/dst_type: value type for a declaration that does not exist yet
      (token, float, float2, float3, color3f, normal3f, int, bool, string, asset)

    Returns success=false when the connection already exists or cannot be made.
    """
    return await _async_run("connect_attributes", {
        "src": src,
        "dst": dst,
        "src_type": src_type,
        "dst_type": dst_type,
    })


@mcp.tool()
async def disconnect_attributes(ctx: Context, src: str, dst: str) -> str:
    """
    Remove the src -> dst connection. The attributes themselves are kept.
    Returns success=false when there was no such connection.
    """
    return await _async_run("disconnect_attributes", {"src": src, "dst": dst})


@mcp.tool()
async def connection_exists(ctx: Context, src: str, dst: str) -> str:
    """Check whether dst has src among its authored sources."""
    return await _async_run("connection_exists", {"src": src, "dst": dst})


@mcp.tool()
async def list_connections(ctx: Context,
                           node_path: str,
                           attribute_name: Optional[str] = None) -> str:
    """
    List the connections feeding a node.
    - attribute_name: only the sources of this attribute (e.g. 'inputs:diffuseColor')
    """
    return await _async_run("list_connections", {
        "node_path": node_path,
        "attribute_name": attribute_name,
    })


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv=None):
    parser = argparse.ArgumentParser(description=f"ShadeConnect MCP Bridge v{_version}")
    parser.add_argument("--stage", default=None,
                        help="USD layer to open at startup (default: none)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="logging level (default: INFO)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level))

    if args.stage:
        _handler.open_stage(args.stage)

    logger.info(f"ShadeConnect MCP Bridge v{_version}")
    mcp.run()


if __name__ == "__main__":
    main()
