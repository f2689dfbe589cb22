"""Grid placement of diagram nodes with bound connector arrows."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..geometry import Vec
from ..logging_utils import apply_debug_logging
from ..records import COLORS
from ..store import new_binding_id, new_shape_id
from .commands import CreateBinding, CreateShape, LayoutOptions, LayoutPlan

logger = logging.getLogger(__name__)

NODE_COLORS: Dict[str, str] = {
    "decision": "orange",
    "start": "green",
    "end": "red",
}
DEFAULT_NODE_COLOR = "black"
CENTER_ANCHOR = {"x": 0.5, "y": 0.5}


@dataclass
class DiagramNode:
    id: str
    label: str
    type: Optional[str] = None


@dataclass
class DiagramEdge:
    source: str
    target: str
    label: Optional[str] = None


@dataclass
class GraphPlan(LayoutPlan):
    node_ids: Dict[str, str] = field(default_factory=dict)
    columns: int = 0


def node_color(node_type: Optional[str]) -> str:
    color = NODE_COLORS.get(node_type or "", DEFAULT_NODE_COLOR)
    return color if color in COLORS else DEFAULT_NODE_COLOR


def graph_columns(count: int) -> int:
    return max(1, math.ceil(math.sqrt(count)))


def graph_positions(count: int, center: Vec, options: Optional[LayoutOptions] = None) -> np.ndarray:
    """Row-major top-left node corners, the block centered on *center*."""

    options = options or LayoutOptions()
    cols = graph_columns(count)
    rows = math.ceil(count / cols)
    origin_x = center.x - cols * options.graph_col_pitch / 2
    origin_y = center.y - rows * options.graph_row_pitch / 2
    r, c = np.divmod(np.arange(count), cols)
    return np.column_stack(
        [origin_x + c * options.graph_col_pitch, origin_y + r * options.graph_row_pitch]
    ).astype(float)


def _terminal_binding(arrow_id: str, node_id: str, terminal: str) -> CreateBinding:
    return CreateBinding(
        from_id=arrow_id,
        to_id=node_id,
        id=new_binding_id(),
        props={
            "terminal": terminal,
            "normalizedAnchor": dict(CENTER_ANCHOR),
            "isExact": False,
            "isPrecise": True,
        },
    )


def graph_placement(
    nodes: Sequence[DiagramNode],
    edges: Sequence[DiagramEdge],
    center: Vec,
    options: Optional[LayoutOptions] = None,
) -> GraphPlan:
    """Lay nodes out on a square-ish grid and connect them with bound arrows.

    The first batch holds every node, the second every resolvable edge. Edges
    naming an unknown node are skipped.
    """

    options = options or LayoutOptions()
    plan = GraphPlan(columns=graph_columns(len(nodes)))
    if not nodes:
        return plan

    positions = graph_positions(len(nodes), center, options)
    centers: Dict[str, Vec] = {}
    node_batch: List = []
    for i, node in enumerate(nodes):
        shape_id = new_shape_id()
        plan.node_ids[node.id] = shape_id
        x, y = float(positions[i, 0]), float(positions[i, 1])
        centers[shape_id] = Vec(x + options.node_width / 2, y + options.node_height / 2)
        plan.anchors.append(Vec(x, y))
        node_batch.append(
            CreateShape(
                type="geo",
                id=shape_id,
                x=x,
                y=y,
                props={
                    "geo": "rectangle",
                    "text": node.label,
                    "w": options.node_width,
                    "h": options.node_height,
                    "color": node_color(node.type),
                    "fill": options.node_fill,
                },
            )
        )
    plan.batches.append(node_batch)

    edge_batch: List = []
    for edge in edges:
        from_id = plan.node_ids.get(edge.source)
        to_id = plan.node_ids.get(edge.target)
        if from_id is None or to_id is None:
            logger.info("Skipping edge %s -> %s with unknown endpoint", edge.source, edge.target)
            plan.skipped.append(f"{edge.source}->{edge.target}")
            continue
        start, end = centers[from_id], centers[to_id]
        arrow_id = new_shape_id()
        edge_batch.append(
            CreateShape(
                type="arrow",
                id=arrow_id,
                x=start.x,
                y=start.y,
                props={
                    "start": {"x": 0, "y": 0},
                    "end": {"x": end.x - start.x, "y": end.y - start.y},
                    "text": edge.label or "",
                    "arrowheadStart": "none",
                    "arrowheadEnd": "arrow",
                },
            )
        )
        edge_batch.append(_terminal_binding(arrow_id, from_id, "start"))
        edge_batch.append(_terminal_binding(arrow_id, to_id, "end"))
    if edge_batch:
        plan.batches.append(edge_batch)

    logger.info(
        "Placed diagram: %d node(s) in %d column(s), %d edge(s), %d skipped",
        len(nodes),
        plan.columns,
        len(edge_batch) // 3,
        len(plan.skipped),
    )
    return plan


def connected_pairs(plan: GraphPlan) -> List[tuple]:
    """Return ``(start_shape_id, end_shape_id)`` for each bound arrow in *plan*."""

    ends: Dict[str, Dict[str, str]] = {}
    for binding in plan.bindings():
        ends.setdefault(binding.from_id, {})[binding.props["terminal"]] = binding.to_id
    return [(pair["start"], pair["end"]) for pair in ends.values() if "start" in pair and "end" in pair]


apply_debug_logging(globals(), logger=logger, skip={"node_color", "graph_columns"})


__all__ = [
    "NODE_COLORS",
    "DiagramNode",
    "DiagramEdge",
    "GraphPlan",
    "node_color",
    "graph_columns",
    "graph_positions",
    "graph_placement",
    "connected_pairs",
]
