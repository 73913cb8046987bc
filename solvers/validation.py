"""Quarry location validation.

Three ray probes decide whether a candidate point is usable ground:
  - down (6 units): anything other than grass means road, foundation, rock
    or water under the quarry
  - up (6 units): an overhang or the inside of a structure
  - forward (15 units, world +Z): a wall or obstruction right next to it

The probes short-circuit in that order; a grass hit below accepts the point.
"""

import logging
from typing import Any, Dict

from models import Point3D, SurfaceClass
from services.world import World

logger = logging.getLogger("outpost-quarries.validation")

BLOCKING_LAYERS = ("Construction", "World", "Water", "Road")

DOWN = Point3D(0.0, -1.0, 0.0)
UP = Point3D(0.0, 1.0, 0.0)
FORWARD = Point3D(0.0, 0.0, 1.0)

DOWN_PROBE_DISTANCE = 6.0
UP_PROBE_DISTANCE = 6.0
FORWARD_PROBE_DISTANCE = 15.0


def check_location(world: World, point: Point3D) -> Dict[str, Any]:
    """Probe around ``point``.

    Returns:
        {"valid": bool, "issues": [...], "probe": "down"|"up"|"forward"|None,
         "hit": RayHit | None}
    """
    hit = world.raycast(point, DOWN, DOWN_PROBE_DISTANCE, BLOCKING_LAYERS)
    if hit is not None:
        if hit.surface != SurfaceClass.GRASS:
            issue = f"Found {hit.material} {hit.distance}f below this location"
            logger.debug(issue)
            return {"valid": False, "issues": [issue], "probe": "down", "hit": hit}
        return {"valid": True, "issues": [], "probe": "down", "hit": hit}

    hit = world.raycast(point, UP, UP_PROBE_DISTANCE, BLOCKING_LAYERS)
    if hit is not None:
        issue = f"Found {hit.material} {hit.distance}f above this location"
        logger.debug(issue)
        return {"valid": False, "issues": [issue], "probe": "up", "hit": hit}

    hit = world.raycast(point, FORWARD, FORWARD_PROBE_DISTANCE, BLOCKING_LAYERS)
    if hit is not None:
        issue = f"Found {hit.material} at {hit.distance}f next to this location"
        logger.debug(issue)
        return {"valid": False, "issues": [issue], "probe": "forward", "hit": hit}

    return {"valid": True, "issues": [], "probe": None, "hit": None}


def is_bad_location(world: World, point: Point3D) -> bool:
    return not check_location(world, point)["valid"]
