"""Data models for quarry placement around monuments.

Coordinates are Y-up (x/z horizontal) and quaternions are stored (w, x, y, z).
"""

import math
from dataclasses import asdict, dataclass, field
from enum import Enum

import numpy as np


@dataclass
class Point3D:
    """Represents a 3D coordinate point."""
    x: float
    y: float
    z: float

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)


@dataclass
class Quaternion:
    """Represents a rotation as a unit quaternion (w, x, y, z)."""
    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class SurfaceClass(Enum):
    """Surface categories a world collaborator maps its materials onto."""

    GRASS = "grass"
    SOLID = "solid"
    UNKNOWN = "unknown"


@dataclass
class Landmark:
    """A monument quarries are placed around.

    ``rotation`` is mutable: every spawn request at this landmark rotates it a
    further 90 degrees of yaw, and later placements start from the stored value.
    """
    name: str
    position: Point3D
    rotation: Quaternion
    footprint: Point3D


@dataclass
class PlacementCandidate:
    """A single trial position on a landmark's ring."""
    point: Point3D
    orientation_hint: Quaternion
    angle_index: int = 0


@dataclass
class SpawnedQuarry:
    """Opaque network id of a quarry this system spawned."""
    net_id: int


@dataclass
class RayHit:
    """Result of a single probe ray."""
    distance: float
    material: str
    surface: SurfaceClass = SurfaceClass.UNKNOWN


@dataclass
class WorldObject:
    """A live object in the world."""
    net_id: int
    name: str
    category: str
    position: Point3D
    rotation: Quaternion = field(default_factory=Quaternion)
    extents: Point3D = field(default_factory=lambda: Point3D(0.0, 0.0, 0.0))
    prefab: str = ""
    can_extract_liquid: bool = False
    can_extract_solid: bool = False


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def landmark_to_dict(landmark: Landmark) -> dict:
    """Convert a Landmark to a JSON-serializable dict."""
    return asdict(landmark)


def dict_to_point3d(d) -> Point3D:
    if isinstance(d, (list, tuple)):
        x, y, z = d
        return Point3D(x=float(x), y=float(y), z=float(z))
    return Point3D(x=d["x"], y=d.get("y", 0.0), z=d["z"])


def dict_to_quaternion(d) -> Quaternion:
    """Accept a quaternion dict/list or a ``{"yaw": degrees}`` shorthand."""
    if d is None:
        return Quaternion()
    if isinstance(d, (list, tuple)):
        w, x, y, z = d
        return Quaternion(w=float(w), x=float(x), y=float(y), z=float(z))
    if "yaw" in d:
        return yaw_quaternion(d["yaw"])
    return Quaternion(w=d.get("w", 1.0), x=d.get("x", 0.0), y=d.get("y", 0.0), z=d.get("z", 0.0))


# ---------------------------------------------------------------------------
# Quaternion utilities
# ---------------------------------------------------------------------------

def _as_array(q: Quaternion) -> np.ndarray:
    return np.array([q.w, q.x, q.y, q.z], dtype=float)


def _from_array(a: np.ndarray) -> Quaternion:
    return Quaternion(w=float(a[0]), x=float(a[1]), y=float(a[2]), z=float(a[3]))


def quat_multiply(q1: Quaternion, q2: Quaternion) -> Quaternion:
    """Hamilton product ``q1 * q2`` (apply q2 in q1's local frame)."""
    w1, x1, y1, z1 = _as_array(q1)
    w2, x2, y2, z2 = _as_array(q2)
    return _from_array(
        np.array(
            [
                w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
                w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
                w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
                w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
            ]
        )
    )


def yaw_quaternion(degrees: float) -> Quaternion:
    """Rotation of ``degrees`` about the world up (Y) axis."""
    half = math.radians(degrees) / 2
    return Quaternion(w=math.cos(half), x=0.0, y=math.sin(half), z=0.0)


def rotate_vector(q: Quaternion, v: Point3D) -> Point3D:
    """Rotate a vector by a unit quaternion."""
    qv = np.array([q.x, q.y, q.z])
    vec = v.as_array()
    t = 2.0 * np.cross(qv, vec)
    out = vec + q.w * t + np.cross(qv, t)
    return Point3D(float(out[0]), float(out[1]), float(out[2]))


def quat_yaw_degrees(q: Quaternion) -> float:
    """Heading of the rotated forward (+Z) axis, in degrees in [0, 360)."""
    fwd = rotate_vector(q, Point3D(0.0, 0.0, 1.0))
    return math.degrees(math.atan2(fwd.x, fwd.z)) % 360.0

