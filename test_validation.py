"""Three-ray probe tests, against both the stub and the mesh world."""

from conftest import GRASS_HIT, ROAD_HIT, StubWorld
from models import Point3D
from services.mesh_world import MeshWorld, box_collider
from solvers.validation import (
    BLOCKING_LAYERS,
    DOWN_PROBE_DISTANCE,
    FORWARD_PROBE_DISTANCE,
    check_location,
    is_bad_location,
)

POINT = Point3D(0.0, 0.5, 0.0)


def _only(direction_y=None, direction_z=None, hit=ROAD_HIT):
    def probe(origin, direction, max_distance):
        if direction_y is not None and direction.y == direction_y:
            return hit
        if direction_z is not None and direction.z == direction_z:
            return hit
        return None
    return probe


def test_road_below_rejected():
    result = check_location(StubWorld(probe=_only(direction_y=-1.0)), POINT)
    assert not result["valid"]
    assert result["probe"] == "down"
    assert "Asphalt" in result["issues"][0]


def test_grass_below_accepted_without_further_probes():
    world = StubWorld(probe=_only(direction_y=-1.0, hit=GRASS_HIT))
    assert check_location(world, POINT)["valid"]
    assert len(world.raycasts) == 1


def test_open_ground_accepted():
    world = StubWorld()
    result = check_location(world, POINT)
    assert result == {"valid": True, "issues": [], "probe": None, "hit": None}
    assert len(world.raycasts) == 3


def test_overhang_rejected():
    result = check_location(StubWorld(probe=_only(direction_y=1.0)), POINT)
    assert not result["valid"]
    assert result["probe"] == "up"


def test_wall_in_front_rejected():
    assert is_bad_location(StubWorld(probe=_only(direction_z=1.0)), POINT)


def test_probe_distances_and_layers():
    world = StubWorld()
    check_location(world, POINT)
    down, up, forward = world.raycasts
    assert down[3:6] == (0.0, -1.0, 0.0) and down[6] == DOWN_PROBE_DISTANCE
    assert up[3:6] == (0.0, 1.0, 0.0)
    assert forward[3:6] == (0.0, 0.0, 1.0) and forward[6] == FORWARD_PROBE_DISTANCE
    assert all(call[7] == BLOCKING_LAYERS for call in world.raycasts)


def test_mesh_world_road_below_rejected():
    world = MeshWorld(colliders=[
        box_collider("road", "Road", "Asphalt", center=[0, -0.5, 0], size=[10, 1, 10]),
    ])
    assert is_bad_location(world, POINT)


def test_mesh_world_grass_below_accepted():
    world = MeshWorld(colliders=[
        box_collider("field", "World", "Grass", center=[0, -0.5, 0], size=[10, 1, 10]),
    ])
    assert not is_bad_location(world, POINT)


def test_mesh_world_distant_road_ignored():
    world = MeshWorld(colliders=[
        box_collider("road", "Road", "Asphalt", center=[0, -20, 0], size=[10, 1, 10]),
    ])
    assert not is_bad_location(world, POINT)


def test_mesh_world_wall_ahead_rejected():
    world = MeshWorld(colliders=[
        box_collider("wall", "Construction", "Concrete", center=[0, 2, 10], size=[10, 4, 1]),
    ])
    result = check_location(world, POINT)
    assert result["probe"] == "forward"
    assert not result["valid"]
