"""Placement strategies turning assistant output into canvas commands."""

from .commands import (
    Command,
    CreateBinding,
    CreateShape,
    LayoutOptions,
    LayoutPlan,
    apply_plan,
    jitter,
)
from .graph import (
    DiagramEdge,
    DiagramNode,
    GraphPlan,
    connected_pairs,
    graph_columns,
    graph_placement,
    graph_positions,
    node_color,
)
from .grid import GridCell, grid_columns, grid_placement, grid_positions
from .images import ImageDecodeError, ImageInfo, add_image, probe_image
from .radial import radial_placement, radial_points

__all__ = [
    "Command",
    "CreateBinding",
    "CreateShape",
    "LayoutOptions",
    "LayoutPlan",
    "apply_plan",
    "jitter",
    "DiagramEdge",
    "DiagramNode",
    "GraphPlan",
    "connected_pairs",
    "graph_columns",
    "graph_placement",
    "graph_positions",
    "node_color",
    "GridCell",
    "grid_columns",
    "grid_placement",
    "grid_positions",
    "ImageDecodeError",
    "ImageInfo",
    "add_image",
    "probe_image",
    "radial_placement",
    "radial_points",
]
