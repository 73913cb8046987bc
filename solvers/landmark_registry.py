"""Monument discovery and canonical naming.

Monuments are matched by a keyword in their prefab path, given a readable
name derived from the path ("Warehouse"), de-duplicated with a numeric suffix
("Warehouse0", "Warehouse1", ...) and sized for the placement ring.
"""

import logging
import posixpath
import re
from dataclasses import replace

from models import Landmark, Point3D
from services.world import World
from state import LandmarkTable

logger = logging.getLogger("outpost-quarries.landmark_registry")

DEFAULT_KEYWORD = "warehouse"

# Usable band in front of a monument, and the fallback for flat bounds.
FOOTPRINT_DEPTH = 20.0
DEGENERATE_FOOTPRINT_DEPTH = 50.0

_PREFAB_PATH_RE = re.compile(r"\w{6}/(.+/)(.+)\.(.+)")


def is_landmark(raw_name: str, keyword: str = DEFAULT_KEYWORD) -> bool:
    """Case-insensitive substring match on the object's name."""
    return keyword.lower() in (raw_name or "").lower()


def base_name(raw_name: str) -> str:
    """'assets/.../warehouse_1.prefab' -> 'Warehouse'."""
    match = _PREFAB_PATH_RE.search(raw_name)
    if match:
        stem = match.group(2)
    else:
        stem = posixpath.splitext(raw_name.rsplit("/", 1)[-1])[0]
    stem = stem.replace("_", " ")
    if stem.endswith(" 1"):
        stem = stem[:-2]
    return stem.title()


def unique_name(name: str, table: LandmarkTable) -> str:
    i = 0
    candidate = f"{name}{i}"
    while candidate in table:
        i += 1
        candidate = f"{name}{i}"
    return candidate


def compute_footprint(extents: Point3D) -> Point3D:
    """Half-extents with the depth axis replaced by the placement band."""
    depth = FOOTPRINT_DEPTH
    if extents.z < 1:
        depth = DEGENERATE_FOOTPRINT_DEPTH
    return Point3D(extents.x, extents.y, depth)


def discover_landmarks(
    world: World,
    table: LandmarkTable,
    keyword: str = DEFAULT_KEYWORD,
) -> LandmarkTable:
    """Register every monument matching ``keyword`` into ``table``."""
    for obj in world.enumerate_landmark_like_objects():
        if not is_landmark(obj.name, keyword):
            continue
        name = unique_name(base_name(obj.name), table)
        logger.debug("Found %s", name)
        logger.debug("Size: %s", obj.extents.z)
        table.add(
            Landmark(
                name=name,
                position=Point3D(obj.position.x, obj.position.y, obj.position.z),
                rotation=replace(obj.rotation),
                footprint=compute_footprint(obj.extents),
            )
        )
    return table
