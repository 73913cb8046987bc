"""Landmark table and spawn ledger tests."""

import pytest

from conftest import StubWorld
from models import Landmark, Point3D, Quaternion
from services.mesh_world import MeshWorld
from services.world import MONUMENT_CATEGORY, QUARRY_CATEGORY, QUARRY_PREFAB
from state import LandmarkTable, SpawnLedger


def _landmark(name):
    return Landmark(name=name, position=Point3D(0, 0, 0), rotation=Quaternion(),
                    footprint=Point3D(1, 1, 20))


class TestLandmarkTable:

    def test_ordered_by_name(self):
        table = LandmarkTable()
        for name in ("Warehouse1", "Airfield0", "Warehouse0"):
            table.add(_landmark(name))
        assert table.names() == ["Airfield0", "Warehouse0", "Warehouse1"]
        assert [lm.name for lm in table] == table.names()

    def test_duplicate_name_rejected(self):
        table = LandmarkTable()
        table.add(_landmark("Warehouse0"))
        with pytest.raises(KeyError):
            table.add(_landmark("Warehouse0"))

    def test_membership(self):
        table = LandmarkTable()
        table.add(_landmark("Warehouse0"))
        assert "Warehouse0" in table
        assert "Warehouse1" not in table
        assert table.get("Warehouse1") is None


class TestSpawnLedger:

    @pytest.fixture
    def world(self):
        world = MeshWorld()
        world.add_object("warehouse", MONUMENT_CATEGORY, Point3D(0, 0, 0))
        return world

    def _spawn(self, world, ledger, x):
        quarry = world.spawn(QUARRY_PREFAB, Point3D(x, 0, 0), Quaternion())
        ledger.record(quarry.net_id)
        return quarry

    def test_record_keeps_spawn_order(self):
        ledger = SpawnLedger()
        for net_id in (7, 3, 11):
            ledger.record(net_id)
        assert ledger.ids() == [7, 3, 11]
        assert [e.net_id for e in ledger] == [7, 3, 11]

    def test_teardown_removes_quarries_and_helpers(self, world):
        ledger = SpawnLedger()
        self._spawn(world, ledger, 200)
        self._spawn(world, ledger, 400)
        assert len(world.objects) == 1 + 2 * 3

        removed = ledger.teardown_all(world)

        assert removed == 6
        assert [o.category for o in world.objects] == [MONUMENT_CATEGORY]
        assert len(ledger) == 0

    def test_teardown_skips_missing(self, world):
        ledger = SpawnLedger()
        gone = self._spawn(world, ledger, 200)
        kept = self._spawn(world, ledger, 400)
        world.destroy(gone)

        removed = ledger.teardown_all(world)

        assert removed == 3
        assert world.find_by_id(kept.net_id) is None
        assert world.find_near(Point3D(400, 0, 0), 50, category=QUARRY_CATEGORY) == []
        # siblings of the externally removed quarry are not ours to sweep
        assert len(world.find_near(Point3D(200, 0, 0), 50, category=QUARRY_CATEGORY)) == 2
        assert world.find_near(Point3D(0, 0, 0), 1, category=MONUMENT_CATEGORY)

    def test_teardown_is_idempotent(self, world):
        ledger = SpawnLedger()
        self._spawn(world, ledger, 200)
        ledger.teardown_all(world)
        assert ledger.teardown_all(world) == 0
        assert SpawnLedger().teardown_all(world) == 0

    def test_teardown_leaves_unrelated_objects(self):
        world = StubWorld()
        ledger = SpawnLedger()
        quarry = world.spawn(QUARRY_PREFAB, Point3D(0, 0, 0), Quaternion())
        ledger.record(quarry.net_id)
        ledger.record(99999)
        assert ledger.teardown_all(world) == 1
        assert world.live == {}

    def test_teardown_continues_past_world_errors(self):
        class FlakyWorld(StubWorld):
            def destroy(self, obj):
                if obj.position.x == 0:
                    raise ConnectionError("bridge dropped")
                super().destroy(obj)

        world = FlakyWorld()
        ledger = SpawnLedger()
        for x in (0, 200):
            quarry = world.spawn(QUARRY_PREFAB, Point3D(x, 0, 0), Quaternion())
            ledger.record(quarry.net_id)

        assert ledger.teardown_all(world) == 1
        assert [o.position.x for o in world.live.values()] == [0]
        assert len(ledger) == 0
