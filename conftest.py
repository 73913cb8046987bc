"""Shared fixtures: a scriptable in-memory World stub."""

import math
from typing import Callable, List, Optional, Sequence

import numpy as np
import pytest

from models import Point3D, Quaternion, RayHit, SurfaceClass, WorldObject
from services.world import MONUMENT_CATEGORY, QUARRY_CATEGORY, World

WAREHOUSE_PREFAB = "assets/bundled/prefabs/autospawn/monument/small/warehouse.prefab"

ROAD_HIT = RayHit(distance=0.5, material="Asphalt", surface=SurfaceClass.SOLID)
GRASS_HIT = RayHit(distance=0.5, material="Grass (Instance)", surface=SurfaceClass.GRASS)


class StubWorld(World):
    """World with pluggable terrain and probe answers that logs every query."""

    def __init__(
        self,
        monuments: Sequence[WorldObject] = (),
        height: Callable[[float, float], float] = lambda x, z: 0.0,
        probe: Callable[[Point3D, Point3D, float], Optional[RayHit]] = lambda o, d, m: None,
        spawn_failures: int = 0,
    ):
        self.monuments = list(monuments)
        self.height = height
        self.probe = probe
        self.spawn_failures = spawn_failures
        self.raycasts: List[tuple] = []
        self.spawned: List[WorldObject] = []
        self.live = {}
        self._next_id = 1000

    def enumerate_landmark_like_objects(self) -> List[WorldObject]:
        return list(self.monuments)

    def height_at(self, x, z):
        return self.height(x, z)

    def raycast(self, origin, direction, max_distance, layers):
        self.raycasts.append((round(origin.x, 6), round(origin.y, 6), round(origin.z, 6),
                              direction.x, direction.y, direction.z, max_distance, tuple(layers)))
        return self.probe(origin, direction, max_distance)

    def spawn(self, prefab, position, rotation):
        if self.spawn_failures > 0:
            self.spawn_failures -= 1
            return None
        obj = WorldObject(net_id=self._next_id, name="mining_quarry", category=QUARRY_CATEGORY,
                          position=position, rotation=rotation, prefab=prefab)
        self._next_id += 1
        self.spawned.append(obj)
        self.live[obj.net_id] = obj
        return obj

    def enable_extraction(self, obj, liquid, solid):
        obj.can_extract_liquid = liquid
        obj.can_extract_solid = solid

    def find_by_id(self, net_id):
        return self.live.get(net_id)

    def find_near(self, position, radius, category=None):
        return [
            o for o in self.live.values()
            if (category is None or o.category == category)
            and math.dist(o.position.as_array(), position.as_array()) <= radius
        ]

    def destroy(self, obj):
        self.live.pop(obj.net_id, None)


def make_monument(net_id: int, x: float, z: float, name: str = WAREHOUSE_PREFAB,
                  extents: Point3D = None) -> WorldObject:
    return WorldObject(
        net_id=net_id,
        name=name,
        category=MONUMENT_CATEGORY,
        position=Point3D(x, 0.0, z),
        rotation=Quaternion(),
        extents=extents or Point3D(15.0, 8.0, 12.0),
    )


def quat_close(q1: Quaternion, q2: Quaternion, atol: float = 1e-6) -> bool:
    """True when both quaternions describe the same rotation."""
    a = np.array([q1.w, q1.x, q1.y, q1.z])
    b = np.array([q2.w, q2.x, q2.y, q2.z])
    return bool(np.allclose(a, b, atol=atol) or np.allclose(a, -b, atol=atol))


@pytest.fixture
def warehouses():
    """Four warehouses spaced far enough apart that their rings never overlap."""
    return [make_monument(i + 1, x=i * 500.0, z=0.0) for i in range(4)]
