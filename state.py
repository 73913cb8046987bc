"""Placement state: the landmark table and the spawn ledger.

Both are owned by whoever drives a placement run (see outpost.py) and passed
explicitly to the registry, the placement solver and teardown.
"""

import logging
from typing import Dict, Iterator, List, Optional

from models import Landmark, SpawnedQuarry
from services.world import QUARRY_CATEGORY, World

logger = logging.getLogger("outpost-quarries.state")

# Radius around a removed quarry swept for sibling entities.
HELPER_SWEEP_RADIUS = 50.0


class LandmarkTable:
    """Landmarks keyed by unique name, iterated in lexicographic name order."""

    def __init__(self):
        self._landmarks: Dict[str, Landmark] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._landmarks

    def __len__(self) -> int:
        return len(self._landmarks)

    def __iter__(self) -> Iterator[Landmark]:
        return iter(self.ordered())

    def add(self, landmark: Landmark):
        if landmark.name in self._landmarks:
            raise KeyError(f"Landmark {landmark.name} already registered")
        self._landmarks[landmark.name] = landmark

    def get(self, name: str) -> Optional[Landmark]:
        return self._landmarks.get(name)

    def names(self) -> List[str]:
        return sorted(self._landmarks)

    def ordered(self) -> List[Landmark]:
        return [self._landmarks[name] for name in self.names()]


class SpawnLedger:
    """Network ids of every quarry spawned, in spawn order."""

    def __init__(self):
        self._entries: List[SpawnedQuarry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SpawnedQuarry]:
        return iter(list(self._entries))

    def record(self, net_id: int):
        self._entries.append(SpawnedQuarry(net_id=net_id))

    def ids(self) -> List[int]:
        return [e.net_id for e in self._entries]

    def teardown_all(self, world: World) -> int:
        """Destroy every recorded quarry plus quarry siblings around it.

        Ids no longer present in the world are skipped, and a world error on
        one id is logged without stopping the others. The ledger is empty
        afterwards, so a second call does nothing. Returns the number of
        objects destroyed.
        """
        destroyed = 0
        for entry in self._entries:
            try:
                destroyed += self._teardown_one(world, entry.net_id)
            except (RuntimeError, ConnectionError) as e:
                logger.warning("Teardown of quarry %s failed: %s", entry.net_id, e)
        logger.debug("Teardown removed %d objects for %d quarries", destroyed, len(self._entries))
        self._entries.clear()
        return destroyed

    @staticmethod
    def _teardown_one(world: World, net_id: int) -> int:
        obj = world.find_by_id(net_id)
        if obj is None:
            logger.debug("Quarry %s already gone, skipping", net_id)
            return 0
        location = obj.position
        world.destroy(obj)
        destroyed = 1
        for helper in world.find_near(location, HELPER_SWEEP_RADIUS, category=QUARRY_CATEGORY):
            world.destroy(helper)
            destroyed += 1
        return destroyed


class OutpostState:
    """Everything one placement run owns."""

    def __init__(self):
        self.landmarks = LandmarkTable()
        self.ledger = SpawnLedger()
        self.torn_down = False
