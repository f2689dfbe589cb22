"""Page-space geometry: boxes, shape bounds and camera transforms."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple

import numpy as np

from .records import Camera, is_number

logger = logging.getLogger(__name__)

# Intrinsic sizes the engine uses when a shape does not carry its own.
NOTE_SIZE = 200.0
TEXT_LINE_HEIGHT = 40.0
DEFAULT_SHAPE_SIZE = 100.0


@dataclass(frozen=True)
class Vec:
    x: float
    y: float

    def __add__(self, other: "Vec") -> "Vec":
        return Vec(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vec") -> "Vec":
        return Vec(self.x - other.x, self.y - other.y)

    def dist(self, other: "Vec") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Box:
    x: float
    y: float
    w: float
    h: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.w

    @property
    def max_y(self) -> float:
        return self.y + self.h

    @property
    def center(self) -> Vec:
        return Vec(self.x + self.w / 2, self.y + self.h / 2)

    def expand(self, margin: float) -> "Box":
        return Box(self.x - margin, self.y - margin, self.w + 2 * margin, self.h + 2 * margin)

    @classmethod
    def from_points(cls, points: np.ndarray) -> "Box":
        lo = points.min(axis=0)
        hi = points.max(axis=0)
        return cls(float(lo[0]), float(lo[1]), float(hi[0] - lo[0]), float(hi[1] - lo[1]))


def _num(value: Any, default: float) -> float:
    return float(value) if is_number(value) else default


def _local_size(shape: Mapping[str, Any]) -> Tuple[float, float, float, float]:
    """Return ``(min_x, min_y, max_x, max_y)`` of the shape in its own frame."""

    props = shape.get("props") or {}
    shape_type = shape.get("type")
    if shape_type == "note":
        size = NOTE_SIZE
        return 0.0, 0.0, size, size + _num(props.get("growY"), 0.0)
    if shape_type == "text":
        return 0.0, 0.0, _num(props.get("w"), 200.0), TEXT_LINE_HEIGHT
    if shape_type == "arrow":
        start = props.get("start") or {}
        end = props.get("end") or {}
        xs = (_num(start.get("x"), 0.0), _num(end.get("x"), 0.0))
        ys = (_num(start.get("y"), 0.0), _num(end.get("y"), 0.0))
        return min(xs), min(ys), max(xs), max(ys)
    w = _num(props.get("w"), DEFAULT_SHAPE_SIZE)
    h = _num(props.get("h"), DEFAULT_SHAPE_SIZE) + _num(props.get("growY"), 0.0)
    return 0.0, 0.0, w, h


def shape_corners(shape: Mapping[str, Any]) -> np.ndarray:
    """Return the four page-space corners of the shape, rotation applied."""

    x0, y0, x1, y1 = _local_size(shape)
    local = np.array([[x0, y0], [x1, y0], [x1, y1], [x0, y1]], dtype=float)
    theta = _num(shape.get("rotation"), 0.0)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    rotation = np.array([[cos_t, -sin_t], [sin_t, cos_t]])
    origin = np.array([_num(shape.get("x"), 0.0), _num(shape.get("y"), 0.0)])
    return local @ rotation.T + origin


def shape_bounds(shape: Mapping[str, Any]) -> Box:
    return Box.from_points(shape_corners(shape))


def union_bounds(shapes: Iterable[Mapping[str, Any]]) -> Optional[Box]:
    corners = [shape_corners(shape) for shape in shapes]
    if not corners:
        return None
    return Box.from_points(np.vstack(corners))


def screen_to_page(point: Vec, camera: Camera, viewport: Box) -> Vec:
    return Vec(
        (point.x - viewport.x) / camera.z - camera.x,
        (point.y - viewport.y) / camera.z - camera.y,
    )


def page_to_screen(point: Vec, camera: Camera, viewport: Box) -> Vec:
    return Vec(
        (point.x + camera.x) * camera.z + viewport.x,
        (point.y + camera.y) * camera.z + viewport.y,
    )


def fit_camera(
    bounds: Box,
    viewport: Box,
    *,
    min_zoom: float = 0.1,
    max_zoom: float = 8.0,
) -> Camera:
    """Return the camera that shows *bounds* centered in *viewport*."""

    if bounds.w <= 0 or bounds.h <= 0:
        zoom = 1.0
    else:
        zoom = min(viewport.w / bounds.w, viewport.h / bounds.h)
    zoom = float(np.clip(zoom, min_zoom, max_zoom))
    x = -bounds.x + (viewport.w / zoom - bounds.w) / 2
    y = -bounds.y + (viewport.h / zoom - bounds.h) / 2
    logger.debug("Fitted camera to %s -> (%.3f, %.3f, z=%.3f)", bounds, x, y, zoom)
    return Camera(x, y, zoom)


__all__ = [
    "NOTE_SIZE",
    "Vec",
    "Box",
    "shape_corners",
    "shape_bounds",
    "union_bounds",
    "screen_to_page",
    "page_to_screen",
    "fit_camera",
]
