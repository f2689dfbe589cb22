"""Radial scatter of brainstorm notes around the viewport center."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np

from ..geometry import Vec
from ..records import COLORS
from .commands import CreateShape, LayoutOptions, LayoutPlan, jitter

logger = logging.getLogger(__name__)


def radial_points(
    count: int,
    center: Vec,
    rng: np.random.Generator,
    options: Optional[LayoutOptions] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return ``(points, radii, angles)`` for *count* evenly spaced items."""

    options = options or LayoutOptions()
    angles = np.arange(count) / max(count, 1) * 2 * math.pi
    radii = rng.uniform(options.radial_min_radius, options.radial_max_radius, size=count)
    points = np.column_stack(
        [center.x + radii * np.cos(angles), center.y + radii * np.sin(angles)]
    )
    return points, radii, angles


def radial_placement(
    ideas: Sequence[str],
    center: Vec,
    color: Optional[str] = None,
    options: Optional[LayoutOptions] = None,
    rng: Optional[np.random.Generator] = None,
) -> LayoutPlan:
    """Scatter one note per idea on a ring; each note is its own batch."""

    options = options or LayoutOptions()
    rng = rng if rng is not None else options.rng()
    if color not in COLORS:
        if color is not None:
            logger.warning("Unknown note color %r, using %s", color, options.default_note_color)
        color = options.default_note_color

    plan = LayoutPlan()
    count = len(ideas)
    if count == 0:
        return plan
    points, _, _ = radial_points(count, center, rng, options)
    rotations = jitter(rng, count, options.rotation_jitter)
    half = options.note_size / 2
    for i, idea in enumerate(ideas):
        px, py = float(points[i, 0]), float(points[i, 1])
        plan.anchors.append(Vec(px, py))
        plan.batches.append(
            [
                CreateShape(
                    type="note",
                    x=px - half,
                    y=py - half,
                    rotation=float(rotations[i]),
                    props={"text": idea, "color": color, "size": "m"},
                )
            ]
        )
    logger.info("Placed %d brainstorm note(s) in %s", count, color)
    return plan


__all__ = ["radial_points", "radial_placement"]
