"""World collaborator contract.

The placement core only talks to the world through this interface: object
enumeration, terrain sampling, ray probes, spawning and lookup/destroy.
Concrete backends live in mesh_world.py (in-memory) and remote_world.py
(TCP bridge to a running game server).
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from models import Point3D, Quaternion, RayHit, SurfaceClass, WorldObject

MONUMENT_CATEGORY = "monument"
QUARRY_CATEGORY = "quarry"
QUARRY_PREFAB = "assets/prefabs/deployable/quarry/mining_quarry.prefab"


def classify_surface(material_name: Optional[str]) -> SurfaceClass:
    """Map an engine material name onto a SurfaceClass."""
    if not material_name:
        return SurfaceClass.UNKNOWN
    if "grass" in material_name.lower():
        return SurfaceClass.GRASS
    return SurfaceClass.SOLID


class World(ABC):
    """Synchronous world queries. None of these are retried by callers."""

    @abstractmethod
    def enumerate_landmark_like_objects(self) -> List[WorldObject]:
        """Every object in the monument category."""

    @abstractmethod
    def height_at(self, x: float, z: float) -> float:
        """Terrain height at a horizontal position."""

    @abstractmethod
    def raycast(
        self,
        origin: Point3D,
        direction: Point3D,
        max_distance: float,
        layers: Sequence[str],
    ) -> Optional[RayHit]:
        """Nearest hit on the given layers within max_distance, or None."""

    @abstractmethod
    def spawn(self, prefab: str, position: Point3D, rotation: Quaternion) -> Optional[WorldObject]:
        """Create an object; None when the engine refuses."""

    @abstractmethod
    def enable_extraction(self, obj: WorldObject, liquid: bool, solid: bool) -> None:
        ...

    @abstractmethod
    def find_by_id(self, net_id: int) -> Optional[WorldObject]:
        ...

    @abstractmethod
    def find_near(
        self, position: Point3D, radius: float, category: Optional[str] = None
    ) -> List[WorldObject]:
        ...

    @abstractmethod
    def destroy(self, obj: WorldObject) -> None:
        ...
