"""Top-down placement map using matplotlib.

Draws, in the x/z plane:
- Collider footprints colour-coded by physics layer
- Landmarks with their names and facing arrows
- Each landmark's candidate ring (green = usable, red = rejected)
- Spawned quarries
"""

import logging
import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.patches as patches
import numpy as np

from models import Point3D, rotate_vector
from services.mesh_world import MeshWorld
from solvers.placement_solver import PLACEMENT_RADIUS, generate_candidates
from solvers.validation import check_location
from state import LandmarkTable, SpawnLedger

logger = logging.getLogger("outpost-quarries.placement_render")

_LAYER_COLORS = {
    "Construction": "#9A6324",
    "World": "#808080",
    "Water": "#4363d8",
    "Road": "#000000",
}


def render_placement_map(
    world: MeshWorld,
    landmarks: LandmarkTable,
    ledger: SpawnLedger,
    output_path: str,
    dpi: int = 120,
) -> str:
    """Render the placement state as a PNG and return its path."""
    fig, ax = plt.subplots(1, 1, figsize=(10, 10))

    for collider in world.colliders:
        (x0, _, z0), (x1, _, z1) = collider.mesh.bounds
        ax.add_patch(patches.Rectangle(
            (x0, z0), x1 - x0, z1 - z0,
            facecolor=_LAYER_COLORS.get(collider.layer, "#a9a9a9"),
            edgecolor="none", alpha=0.35,
        ))

    for landmark in landmarks.ordered():
        _draw_landmark(ax, world, landmark)

    for net_id in ledger.ids():
        quarry = world.find_by_id(net_id)
        if quarry is None:
            continue
        ax.plot(quarry.position.x, quarry.position.z, marker="*", markersize=16,
                color="#f58231", markeredgecolor="black")

    ax.set_aspect("equal")
    ax.set_title(f"Quarry placement: {len(landmarks)} landmarks, {len(ledger)} quarries")
    ax.set_xlabel("X")
    ax.set_ylabel("Z")
    ax.grid(True, alpha=0.3)
    ax.autoscale()

    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    fig.savefig(output_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    logger.info("Placement map rendered to %s", output_path)
    return output_path


def _draw_landmark(ax, world: MeshWorld, landmark):
    cx, cz = landmark.position.x, landmark.position.z
    ax.add_patch(patches.Circle((cx, cz), PLACEMENT_RADIUS, fill=False,
                                linestyle="--", edgecolor="gray", linewidth=0.8))
    ax.plot(cx, cz, marker="s", markersize=10, color="#911eb4")
    ax.text(cx, cz + 3, landmark.name, ha="center", va="bottom", fontsize=8,
            bbox=dict(boxstyle="round,pad=0.2", facecolor="white", alpha=0.7))

    facing = rotate_vector(landmark.rotation, Point3D(0.0, 0.0, landmark.footprint.z / 2))
    ax.annotate("", xy=(cx + facing.x, cz + facing.z), xytext=(cx, cz),
                arrowprops=dict(arrowstyle="->", color="#ffe119", lw=2))

    points = []
    colors = []
    for candidate in generate_candidates(world, landmark):
        points.append((candidate.point.x, candidate.point.z))
        valid = check_location(world, candidate.point)["valid"]
        colors.append("#3cb44b" if valid else "#e6194b")
    pts = np.array(points)
    ax.scatter(pts[:, 0], pts[:, 1], c=colors, s=18, zorder=3)
