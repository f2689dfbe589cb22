"""Wire-level record vocabulary shared by the normalizer, validator and store."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

Record = Dict[str, Any]
RecordMap = Dict[str, Record]

SHAPE = "shape"
ASSET = "asset"
BINDING = "binding"

RECORD_KINDS: FrozenSet[str] = frozenset({SHAPE, ASSET, BINDING})

SHAPE_ID_PREFIX = "shape:"
ASSET_ID_PREFIX = "asset:"
BINDING_ID_PREFIX = "binding:"

_ID_PREFIX_KINDS = (
    (SHAPE_ID_PREFIX, SHAPE),
    (ASSET_ID_PREFIX, ASSET),
    (BINDING_ID_PREFIX, BINDING),
)

COLORS: FrozenSet[str] = frozenset(
    {
        "black",
        "grey",
        "light-violet",
        "violet",
        "blue",
        "light-blue",
        "yellow",
        "orange",
        "green",
        "light-green",
        "red",
        "light-red",
        "white",
    }
)
SIZES: FrozenSet[str] = frozenset({"s", "m", "l", "xl"})
FONTS: FrozenSet[str] = frozenset({"draw", "sans", "serif", "mono"})
ALIGNS: FrozenSet[str] = frozenset(
    {"start", "middle", "end", "start-legacy", "middle-legacy", "end-legacy"}
)
VERTICAL_ALIGNS: FrozenSet[str] = frozenset({"start", "middle", "end"})
FILLS: FrozenSet[str] = frozenset({"none", "semi", "solid", "pattern", "fill"})
DASHES: FrozenSet[str] = frozenset({"draw", "solid", "dashed", "dotted"})
ARROWHEADS: FrozenSet[str] = frozenset(
    {"none", "arrow", "triangle", "square", "dot", "pipe", "diamond", "inverted", "bar"}
)
GEO_KINDS: FrozenSet[str] = frozenset(
    {
        "rectangle",
        "ellipse",
        "triangle",
        "diamond",
        "pentagon",
        "hexagon",
        "octagon",
        "star",
        "rhombus",
        "oval",
        "trapezoid",
        "cloud",
        "arrow-right",
        "arrow-left",
        "arrow-up",
        "arrow-down",
        "x-box",
        "check-box",
    }
)

# Shape types whose props carry the shared color/size styles.
STYLED_TYPES: FrozenSet[str] = frozenset({"text", "note", "geo", "arrow", "draw", "highlight"})
ALIGNED_TYPES: FrozenSet[str] = frozenset({"text", "note", "geo"})
FONT_TYPES: FrozenSet[str] = frozenset({"text", "note", "geo", "arrow"})
TEXT_TYPES: FrozenSet[str] = frozenset({"text", "note", "geo"})


@dataclass(frozen=True)
class Camera:
    """Viewport position in page space and zoom factor ``z``."""

    x: float = 0.0
    y: float = 0.0
    z: float = 1.0

    @classmethod
    def from_value(cls, value: Any) -> Optional["Camera"]:
        """Return a camera for a ``{x, y, z}`` mapping, ``None`` for anything else."""

        if isinstance(value, Camera):
            return value
        if not isinstance(value, Mapping):
            return None
        coords = []
        for key in ("x", "y", "z"):
            item = value.get(key)
            if not is_number(item):
                return None
            coords.append(float(item))
        if coords[2] <= 0:
            return None
        return cls(*coords)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


def is_number(value: Any) -> bool:
    """Return ``True`` for finite ints/floats (booleans excluded)."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def kind_of(record: Mapping[str, Any]) -> Optional[str]:
    kind = record.get("typeName")
    return kind if isinstance(kind, str) else None


def infer_kind(record_id: Any) -> Optional[str]:
    """Guess a record kind from its id prefix."""

    if not isinstance(record_id, str):
        return None
    for prefix, kind in _ID_PREFIX_KINDS:
        if record_id.startswith(prefix):
            return kind
    return None


def split_snapshot(snapshot: Any) -> Tuple[Dict[str, Any], Optional[Camera]]:
    """Return ``(records, camera)`` for either snapshot layout.

    The structured layout is ``{"store": {...}, "camera": {...}}``; older saves
    are a flat ``{id: record}`` mapping. JSON text is parsed first.
    """

    if isinstance(snapshot, (str, bytes, bytearray)):
        snapshot = json.loads(snapshot)
    if not isinstance(snapshot, Mapping):
        raise TypeError(f"snapshot must be a mapping, got {type(snapshot).__name__}")

    camera = Camera.from_value(snapshot.get("camera"))
    store = snapshot.get("store")
    if isinstance(store, Mapping):
        return dict(store), camera

    records = {
        key: value
        for key, value in snapshot.items()
        if key not in ("camera", "schema") and isinstance(value, Mapping)
    }
    return records, camera


def shape_records(records: Mapping[str, Record]) -> RecordMap:
    return {key: rec for key, rec in records.items() if kind_of(rec) == SHAPE}


__all__ = [
    "Record",
    "RecordMap",
    "SHAPE",
    "ASSET",
    "BINDING",
    "RECORD_KINDS",
    "SHAPE_ID_PREFIX",
    "ASSET_ID_PREFIX",
    "BINDING_ID_PREFIX",
    "COLORS",
    "SIZES",
    "FONTS",
    "ALIGNS",
    "VERTICAL_ALIGNS",
    "FILLS",
    "DASHES",
    "ARROWHEADS",
    "GEO_KINDS",
    "STYLED_TYPES",
    "ALIGNED_TYPES",
    "FONT_TYPES",
    "TEXT_TYPES",
    "Camera",
    "is_number",
    "kind_of",
    "infer_kind",
    "split_snapshot",
    "shape_records",
]
