"""Radial quarry placement around landmarks.

For each landmark, in table order, 16 points on a 30-unit ring are tried in
angle order. Each point is dropped onto the terrain and probed (see
validation.py); the first usable one gets a quarry and the solver moves on to
the next landmark.
"""

import logging
import math
from typing import Iterable, Iterator

from models import Landmark, PlacementCandidate, Point3D, quat_multiply, yaw_quaternion
from services.world import QUARRY_PREFAB, World
from solvers.validation import check_location
from state import SpawnLedger

logger = logging.getLogger("outpost-quarries.placement_solver")

PLACEMENT_RADIUS = 30.0
ANGLE_COUNT = 16
ANGLE_STEP = 2 * math.pi / ANGLE_COUNT
# Yaw added to the landmark's stored rotation on every spawn request there.
SPAWN_YAW_STEP = 90.0


def generate_candidates(
    world: World,
    landmark: Landmark,
    radius: float = PLACEMENT_RADIUS,
) -> Iterator[PlacementCandidate]:
    """Yield the ring of candidates for ``landmark``, snapped to the terrain.

    Terrain is sampled lazily, one candidate at a time.
    """
    for i in range(ANGLE_COUNT):
        angle = i * ANGLE_STEP
        point = Point3D(
            landmark.position.x + math.cos(angle) * radius,
            landmark.position.y + landmark.footprint.y,
            landmark.position.z + math.sin(angle) * radius,
        )
        point.y = world.height_at(point.x, point.z)
        yield PlacementCandidate(
            point=point,
            orientation_hint=quat_multiply(landmark.rotation, yaw_quaternion(SPAWN_YAW_STEP)),
            angle_index=i,
        )


def place_at_landmark(world: World, landmark: Landmark, ledger: SpawnLedger) -> bool:
    """Try the ring around one landmark; True once a quarry is spawned."""
    logger.debug("Attempting placement near %s at %s", landmark.name, landmark.position)
    for candidate in generate_candidates(world, landmark):
        logger.debug("Checking location %s size %s", candidate.point, PLACEMENT_RADIUS)
        if not check_location(world, candidate.point)["valid"]:
            continue

        logger.debug("Good choice, spawning quarry...")
        # The stored rotation accumulates across spawns at this landmark
        landmark.rotation = candidate.orientation_hint
        quarry = world.spawn(QUARRY_PREFAB, candidate.point, landmark.rotation)
        if quarry is None:
            logger.debug("Unable to spawn quarry at %s", candidate.point)
            continue

        world.enable_extraction(quarry, liquid=True, solid=True)
        ledger.record(quarry.net_id)
        logger.debug("Added quarry %s at angle %d", quarry.net_id, candidate.angle_index)
        return True

    logger.debug("No valid location near %s, 0 quarries placed", landmark.name)
    return False


def place_quarries(
    world: World,
    landmarks: Iterable[Landmark],
    ledger: SpawnLedger,
    max_count: int,
) -> int:
    """Place at most one quarry per landmark and return how many were spawned.

    The cap is checked before each landmark with ``spawned > max_count``, so up
    to ``max_count + 1`` quarries can be placed. A world error at one landmark
    is logged and the remaining landmarks are still tried.
    """
    spawned = 0
    for landmark in landmarks:
        if spawned > max_count:
            break
        try:
            placed = place_at_landmark(world, landmark, ledger)
        except (RuntimeError, ConnectionError) as e:
            logger.warning("Placement near %s failed: %s", landmark.name, e)
            continue
        if placed:
            spawned += 1
    logger.debug("Spawned %d quarries!", spawned)
    return spawned
