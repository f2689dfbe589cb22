"""Creation commands emitted by the layout strategies."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import numpy as np

from ..geometry import Vec
from ..store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class LayoutOptions:
    """Spacing constants and randomness controls for the layout strategies."""

    random_seed: Optional[int] = None
    rotation_jitter: float = 0.05

    grid_col_pitch: float = 420.0
    grid_row_pitch: float = 350.0
    grid_stagger: float = 50.0
    grid_top_offset: float = 300.0
    image_width: float = 400.0

    radial_min_radius: float = 300.0
    radial_max_radius: float = 500.0
    note_size: float = 200.0
    default_note_color: str = "yellow"

    graph_col_pitch: float = 300.0
    graph_row_pitch: float = 200.0
    node_width: float = 200.0
    node_height: float = 100.0
    node_fill: str = "semi"

    def rng(self) -> np.random.Generator:
        return np.random.default_rng(self.random_seed)


def jitter(rng: np.random.Generator, count: int, limit: float) -> np.ndarray:
    """Return *count* rotations drawn uniformly from ``[-limit, limit)``."""

    return rng.uniform(-limit, limit, size=count)


@dataclass
class CreateShape:
    type: str
    x: float
    y: float
    rotation: float = 0.0
    props: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None

    def to_partial(self) -> Dict[str, Any]:
        partial: Dict[str, Any] = {
            "type": self.type,
            "x": float(self.x),
            "y": float(self.y),
            "rotation": float(self.rotation),
            "props": dict(self.props),
        }
        if self.id is not None:
            partial["id"] = self.id
        return partial


@dataclass
class CreateBinding:
    from_id: str
    to_id: str
    props: Dict[str, Any] = field(default_factory=dict)
    type: str = "arrow"
    id: Optional[str] = None

    def to_partial(self) -> Dict[str, Any]:
        partial: Dict[str, Any] = {
            "type": self.type,
            "fromId": self.from_id,
            "toId": self.to_id,
            "props": dict(self.props),
        }
        if self.id is not None:
            partial["id"] = self.id
        return partial


Command = Union[CreateShape, CreateBinding]


@dataclass
class LayoutPlan:
    """Ordered atomic batches plus the anchor point computed for each item."""

    batches: List[List[Command]] = field(default_factory=list)
    anchors: List[Vec] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    def shapes(self) -> List[CreateShape]:
        return [cmd for batch in self.batches for cmd in batch if isinstance(cmd, CreateShape)]

    def bindings(self) -> List[CreateBinding]:
        return [cmd for batch in self.batches for cmd in batch if isinstance(cmd, CreateBinding)]


def apply_plan(store: DocumentStore, plan: LayoutPlan) -> List[str]:
    """Submit each batch of *plan* as one atomic store transaction."""

    created: List[str] = []
    for batch in plan.batches:
        shapes = [cmd.to_partial() for cmd in batch if isinstance(cmd, CreateShape)]
        bindings = [cmd.to_partial() for cmd in batch if isinstance(cmd, CreateBinding)]
        with store.batch():
            if shapes:
                created.extend(store.create_shapes(shapes))
            if bindings:
                created.extend(store.create_bindings(bindings))
    logger.info("Applied layout plan: %d batch(es), %d record(s)", len(plan.batches), len(created))
    return created


__all__ = [
    "LayoutOptions",
    "jitter",
    "CreateShape",
    "CreateBinding",
    "Command",
    "LayoutPlan",
    "apply_plan",
]
