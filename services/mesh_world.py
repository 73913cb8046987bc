"""In-memory world backed by a heightmap, trimesh colliders and an rtree index.

Used to run placement offline (previewing a map, tests) without a live
game server. Scenes are plain dicts, usually loaded from JSON:

    {
      "terrain": {"origin": [x0, z0], "spacing": 4.0, "heights": [[...], ...]},
      "colliders": [
        {"name": "road_1", "layer": "Road", "material": "Asphalt",
         "center": [x, y, z], "size": [sx, sy, sz], "yaw": 0}
      ],
      "monuments": [
        {"name": "assets/bundled/prefabs/autospawn/monument/small/warehouse.prefab",
         "position": [x, y, z], "rotation": {"yaw": 90}, "extents": [hx, hy, hz]}
      ]
    }

``terrain`` may also be ``{"height": h}`` for flat ground.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import trimesh
from rtree import index as rtree_index
from scipy.interpolate import RegularGridInterpolator

from models import (
    Point3D,
    Quaternion,
    RayHit,
    WorldObject,
    dict_to_point3d,
    dict_to_quaternion,
    rotate_vector,
)
from services.world import (
    MONUMENT_CATEGORY,
    QUARRY_CATEGORY,
    QUARRY_PREFAB,
    World,
    classify_surface,
)

logger = logging.getLogger("outpost-quarries.mesh_world")

# Sibling entities the engine creates next to a quarry (local offsets).
DEFAULT_PREFABS: Dict[str, Dict] = {
    QUARRY_PREFAB: {
        "category": QUARRY_CATEGORY,
        "helpers": [
            ("mining_quarry_hopper", Point3D(0.0, 0.0, -4.0)),
            ("mining_quarry_fuel", Point3D(4.0, 0.0, 0.0)),
        ],
    },
}


class Heightmap:
    """Bilinear terrain height lookup over a regular x/z grid."""

    def __init__(self, heights, origin: Tuple[float, float] = (0.0, 0.0), spacing: float = 1.0):
        heights = np.asarray(heights, dtype=float)
        if heights.ndim != 2 or heights.shape[0] < 2 or heights.shape[1] < 2:
            raise ValueError("heightmap must be a 2D grid of at least 2x2 samples")
        if spacing <= 0:
            raise ValueError("heightmap spacing must be positive")
        self.heights = heights
        self.xs = origin[0] + spacing * np.arange(heights.shape[0])
        self.zs = origin[1] + spacing * np.arange(heights.shape[1])
        self._interp = RegularGridInterpolator((self.xs, self.zs), heights)

    @classmethod
    def flat(cls, height: float = 0.0, half_size: float = 1.0e5) -> "Heightmap":
        return cls(np.full((2, 2), height), origin=(-half_size, -half_size), spacing=2 * half_size)

    def __call__(self, x: float, z: float) -> float:
        # Clamp to the grid edge instead of extrapolating
        px = float(np.clip(x, self.xs[0], self.xs[-1]))
        pz = float(np.clip(z, self.zs[0], self.zs[-1]))
        return float(self._interp([[px, pz]])[0])


@dataclass
class Collider:
    """A static collision mesh on one physics layer."""
    name: str
    layer: str
    material: str
    mesh: trimesh.Trimesh


def box_collider(
    name: str,
    layer: str,
    material: str,
    center: Sequence[float],
    size: Sequence[float],
    yaw: float = 0.0,
) -> Collider:
    """Axis-aligned (optionally yawed) box collider."""
    transform = trimesh.transformations.rotation_matrix(math.radians(yaw), [0.0, 1.0, 0.0])
    transform[:3, 3] = np.asarray(center, dtype=float)
    mesh = trimesh.creation.box(extents=np.asarray(size, dtype=float), transform=transform)
    return Collider(name=name, layer=layer, material=material, mesh=mesh)


class MeshWorld(World):
    """World implementation held entirely in memory."""

    def __init__(
        self,
        terrain: Optional[Heightmap] = None,
        colliders: Optional[List[Collider]] = None,
        prefabs: Optional[Dict[str, Dict]] = None,
    ):
        self.terrain = terrain or Heightmap.flat()
        self.colliders: List[Collider] = list(colliders or [])
        self.prefabs = dict(DEFAULT_PREFABS if prefabs is None else prefabs)
        self._objects: Dict[int, WorldObject] = {}
        self._next_id = 1
        self._index = rtree_index.Index(properties=rtree_index.Property(dimension=3))

    # ------------------------------------------------------------------
    # Scene construction
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, scene: dict) -> "MeshWorld":
        """Build a world from a scene dict (see module docstring)."""
        if not isinstance(scene, dict):
            raise ValueError("Scene must be a JSON object")
        terrain_data = scene.get("terrain") or {"height": 0.0}
        try:
            if "heights" in terrain_data:
                terrain = Heightmap(
                    terrain_data["heights"],
                    origin=tuple(terrain_data.get("origin", (0.0, 0.0))),
                    spacing=float(terrain_data.get("spacing", 1.0)),
                )
            else:
                terrain = Heightmap.flat(float(terrain_data.get("height", 0.0)))

            colliders = [
                box_collider(
                    name=c.get("name", f"collider_{i}"),
                    layer=c["layer"],
                    material=c.get("material", ""),
                    center=c["center"],
                    size=c["size"],
                    yaw=float(c.get("yaw", 0.0)),
                )
                for i, c in enumerate(scene.get("colliders", []))
            ]
            world = cls(terrain=terrain, colliders=colliders)
            for m in scene.get("monuments", []):
                world.add_object(
                    name=m["name"],
                    category=m.get("category", MONUMENT_CATEGORY),
                    position=dict_to_point3d(m["position"]),
                    rotation=dict_to_quaternion(m.get("rotation")),
                    extents=dict_to_point3d(m.get("extents", [0.0, 0.0, 0.0])),
                )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed scene: {e!r}") from e

        logger.info(
            "Loaded scene with %d colliders and %d objects",
            len(world.colliders), len(world._objects),
        )
        return world

    def add_object(
        self,
        name: str,
        category: str,
        position: Point3D,
        rotation: Optional[Quaternion] = None,
        extents: Optional[Point3D] = None,
        prefab: str = "",
    ) -> WorldObject:
        obj = WorldObject(
            net_id=self._next_id,
            name=name,
            category=category,
            position=position,
            rotation=rotation or Quaternion(),
            extents=extents or Point3D(0.0, 0.0, 0.0),
            prefab=prefab,
        )
        self._next_id += 1
        self._objects[obj.net_id] = obj
        self._index.insert(obj.net_id, _point_bounds(position))
        return obj

    @property
    def objects(self) -> List[WorldObject]:
        return [self._objects[k] for k in sorted(self._objects)]

    # ------------------------------------------------------------------
    # World contract
    # ------------------------------------------------------------------

    def enumerate_landmark_like_objects(self) -> List[WorldObject]:
        return [o for o in self.objects if o.category == MONUMENT_CATEGORY]

    def height_at(self, x: float, z: float) -> float:
        return self.terrain(x, z)

    def raycast(
        self,
        origin: Point3D,
        direction: Point3D,
        max_distance: float,
        layers: Sequence[str],
    ) -> Optional[RayHit]:
        ray_origin = origin.as_array()
        ray_dir = direction.as_array()
        norm = np.linalg.norm(ray_dir)
        if norm == 0:
            return None
        ray_dir = ray_dir / norm

        best: Optional[RayHit] = None
        for collider in self.colliders:
            if collider.layer not in layers:
                continue
            locations, _, _ = collider.mesh.ray.intersects_location(
                ray_origins=ray_origin[np.newaxis, :],
                ray_directions=ray_dir[np.newaxis, :],
                multiple_hits=False,
            )
            if len(locations) == 0:
                continue
            distance = float(np.min(np.linalg.norm(locations - ray_origin, axis=1)))
            if distance > max_distance:
                continue
            if best is None or distance < best.distance:
                best = RayHit(
                    distance=distance,
                    material=collider.material,
                    surface=classify_surface(collider.material),
                )
        return best

    def spawn(self, prefab: str, position: Point3D, rotation: Quaternion) -> Optional[WorldObject]:
        prefab_info = self.prefabs.get(prefab)
        if prefab_info is None:
            logger.warning("Unknown prefab %s, nothing spawned", prefab)
            return None

        category = prefab_info.get("category", "")
        obj = self.add_object(
            name=prefab.rsplit("/", 1)[-1].split(".", 1)[0],
            category=category,
            position=position,
            rotation=rotation,
            prefab=prefab,
        )
        for helper_name, offset in prefab_info.get("helpers", []):
            local = rotate_vector(rotation, offset)
            self.add_object(
                name=helper_name,
                category=category,
                position=Point3D(position.x + local.x, position.y + local.y, position.z + local.z),
                rotation=rotation,
                prefab=prefab,
            )
        return obj

    def enable_extraction(self, obj: WorldObject, liquid: bool, solid: bool) -> None:
        obj.can_extract_liquid = liquid
        obj.can_extract_solid = solid

    def find_by_id(self, net_id: int) -> Optional[WorldObject]:
        return self._objects.get(net_id)

    def find_near(
        self, position: Point3D, radius: float, category: Optional[str] = None
    ) -> List[WorldObject]:
        center = position.as_array()
        bounds = tuple(center - radius) + tuple(center + radius)
        found = []
        for net_id in sorted(self._index.intersection(bounds)):
            obj = self._objects.get(net_id)
            if obj is None:
                continue
            if category is not None and obj.category != category:
                continue
            if np.linalg.norm(obj.position.as_array() - center) <= radius:
                found.append(obj)
        return found

    def destroy(self, obj: WorldObject) -> None:
        live = self._objects.pop(obj.net_id, None)
        if live is not None:
            self._index.delete(live.net_id, _point_bounds(live.position))


def _point_bounds(p: Point3D) -> Tuple[float, ...]:
    return (p.x, p.y, p.z, p.x, p.y, p.z)
