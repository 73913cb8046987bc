"""Startup and shutdown lifecycle for quarry placement.

    state = OutpostState()
    summary = start(world, load_config(), state)   # discover + place
    ...
    shutdown(world, state)                          # terminal
"""

import logging

from config import QuarryConfig
from models import landmark_to_dict
from services.world import World
from solvers.landmark_registry import discover_landmarks
from solvers.placement_solver import place_quarries
from state import OutpostState

logger = logging.getLogger("outpost-quarries.outpost")

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def configure_logging(debug: bool):
    """Route diagnostic detail through the debug channel when enabled.

    When nothing upstream has configured logging, a stderr handler is attached
    to the project logger so the diagnostics are visible.
    """
    project_logger = logging.getLogger("outpost-quarries")
    project_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if not project_logger.hasHandlers():
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        project_logger.addHandler(handler)


def start(world: World, config: QuarryConfig, state: OutpostState) -> dict:
    """Discover landmarks and run the placement pass."""
    if state.torn_down:
        raise RuntimeError("Teardown already ran for this state; placement cannot restart")

    configure_logging(config.debug)
    # Discovery happens once per state; later runs reuse the same landmarks
    if not len(state.landmarks):
        discover_landmarks(world, state.landmarks, keyword=config.keyword)
    spawned = place_quarries(world, state.landmarks.ordered(), state.ledger, config.max_quarries)
    logger.info("Placed %d quarries around %d landmarks", spawned, len(state.landmarks))
    return {
        "landmarks": [landmark_to_dict(lm) for lm in state.landmarks.ordered()],
        "spawned": spawned,
        "quarries": state.ledger.ids(),
    }


def shutdown(world: World, state: OutpostState) -> int:
    """Remove every spawned quarry. Safe to call more than once."""
    state.torn_down = True
    removed = state.ledger.teardown_all(world)
    logger.info("Removed %d quarry objects", removed)
    return removed
