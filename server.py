"""Outpost Quarries MCP server.

Exposes tools to load a world (an offline scene or a live game server),
run the quarry placement pass, inspect landmarks and quarries, render a
placement map and tear everything down again.
"""

import json
import logging
import os
import tempfile
from typing import Optional

from mcp.server.fastmcp import FastMCP

from config import CONFIG_PATH, load_config
from models import landmark_to_dict
from outpost import LOG_FORMAT, shutdown, start
from rendering.placement_render import render_placement_map as _render_placement_map
from services.mesh_world import MeshWorld
from services.remote_world import GameServerConnection, RemoteWorld
from services.world import World
from state import OutpostState

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger("outpost-quarries")

RESULTS_DIR = os.environ.get("RESULTS_DIR", os.path.join(tempfile.gettempdir(), "outpost-quarries-results"))

# --- Globals ---
mcp = FastMCP("outpost-quarries")
_world: Optional[World] = None
_state = OutpostState()


def _reset(world: World):
    global _world, _state
    _world = world
    _state = OutpostState()


# ============================================================
# World Tools
# ============================================================

@mcp.tool()
def load_world(scene_json: str) -> str:
    """Load an offline scene (terrain, colliders, monuments) as the active world.

    Any previous world and its placement state are discarded.
    """
    try:
        scene = json.loads(scene_json)
    except json.JSONDecodeError as e:
        return json.dumps({"error": f"Invalid JSON: {e}"})
    try:
        world = MeshWorld.from_dict(scene)
    except ValueError as e:
        return json.dumps({"error": str(e)})

    _reset(world)
    return json.dumps({
        "status": "loaded",
        "colliders": len(world.colliders),
        "monuments": len(world.enumerate_landmark_like_objects()),
    })


@mcp.tool()
def connect_game_server(host: str = "", port: int = 0) -> str:
    """Use a live game server as the active world."""
    conn = GameServerConnection(host=host or None, port=port or None)
    if not conn.connect():
        return json.dumps({"error": f"Could not connect to game server at {conn.host}:{conn.port}"})
    _reset(RemoteWorld(conn))
    return json.dumps({"status": "connected", "host": conn.host, "port": conn.port})


# ============================================================
# Placement Tools
# ============================================================

@mcp.tool()
def run_placement(config_path: str = "") -> str:
    """Discover monuments and place quarries next to them.

    Reads maxQuarries/debug from the plugin config file.
    """
    if _world is None:
        return json.dumps({"error": "No world loaded"})
    try:
        cfg = load_config(config_path or CONFIG_PATH)
        summary = start(_world, cfg, _state)
    except (ValueError, RuntimeError, ConnectionError) as e:
        logger.error("Placement failed: %s", e, exc_info=True)
        return json.dumps({"error": str(e)})
    return json.dumps(summary)


@mcp.tool()
def list_landmarks() -> str:
    """List discovered landmarks in placement order."""
    return json.dumps([landmark_to_dict(lm) for lm in _state.landmarks.ordered()])


@mcp.tool()
def list_quarries() -> str:
    """List network ids of spawned quarries in spawn order."""
    return json.dumps({"quarries": _state.ledger.ids()})


@mcp.tool()
def render_placement_map(output_path: str = "") -> str:
    """Render a top-down PNG of landmarks, candidate rings and quarries."""
    if not isinstance(_world, MeshWorld):
        return json.dumps({"error": "Rendering needs an offline scene loaded with load_world"})
    output_path = output_path or os.path.join(RESULTS_DIR, "placement_map.png")
    path = _render_placement_map(_world, _state.landmarks, _state.ledger, output_path)
    return json.dumps({"status": "success", "path": path})


@mcp.tool()
def teardown() -> str:
    """Remove every spawned quarry and its sibling entities."""
    if _world is None:
        return json.dumps({"error": "No world loaded"})
    try:
        removed = shutdown(_world, _state)
    except (RuntimeError, ConnectionError) as e:
        logger.error("Teardown failed: %s", e, exc_info=True)
        return json.dumps({"error": str(e)})
    return json.dumps({"status": "success", "removed": removed})


# ============================================================
# Entry point
# ============================================================

def main():
    logger.info("Outpost quarries MCP server starting...")
    mcp.run()


if __name__ == "__main__":
    main()
