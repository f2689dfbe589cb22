"""Staggered grid placement for moodboard images."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..geometry import Vec
from ..logging_utils import apply_debug_logging
from .commands import LayoutOptions, jitter

logger = logging.getLogger(__name__)


@dataclass
class GridCell:
    index: int
    prompt: str
    row: int
    col: int
    position: Vec
    rotation: float


def grid_columns(count: int) -> int:
    return 3 if count > 4 else 2


def grid_positions(count: int, center: Vec, options: Optional[LayoutOptions] = None) -> np.ndarray:
    """Return the top-left corner of each cell as a ``(count, 2)`` array.

    The block of ``cols`` image-wide cells is centered horizontally on
    ``center``; odd columns are pushed down by the stagger offset.
    """

    options = options or LayoutOptions()
    cols = grid_columns(count)
    idx = np.arange(count)
    rows, col_idx = np.divmod(idx, cols)
    block_width = (cols - 1) * options.grid_col_pitch + options.image_width
    origin_x = center.x - block_width / 2
    origin_y = center.y - options.grid_top_offset
    xs = origin_x + col_idx * options.grid_col_pitch
    ys = origin_y + rows * options.grid_row_pitch + (col_idx % 2) * options.grid_stagger
    return np.column_stack([xs, ys]).astype(float)


def grid_placement(
    prompts: Sequence[str],
    center: Vec,
    options: Optional[LayoutOptions] = None,
    rng: Optional[np.random.Generator] = None,
) -> List[GridCell]:
    options = options or LayoutOptions()
    rng = rng if rng is not None else options.rng()
    count = len(prompts)
    if count == 0:
        return []
    cols = grid_columns(count)
    positions = grid_positions(count, center, options)
    rotations = jitter(rng, count, options.rotation_jitter)
    cells = [
        GridCell(
            index=i,
            prompt=prompt,
            row=i // cols,
            col=i % cols,
            position=Vec(float(positions[i, 0]), float(positions[i, 1])),
            rotation=float(rotations[i]),
        )
        for i, prompt in enumerate(prompts)
    ]
    logger.info("Placed %d moodboard cell(s) on a %d-column grid", count, cols)
    return cells


apply_debug_logging(globals(), logger=logger)


__all__ = ["GridCell", "grid_columns", "grid_positions", "grid_placement"]
