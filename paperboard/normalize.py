"""Repair partial records into records the document store accepts.

Every rule only fills a field that is absent or unusable, so running the
normalizer over its own output changes nothing.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Tuple

from .config import get_board_config
from .indexing import index_after, is_valid_index, max_index
from .logging_utils import apply_debug_logging
from .validate import is_valid_record
from .records import (
    ALIGNS,
    ARROWHEADS,
    ASSET,
    BINDING,
    BINDING_ID_PREFIX,
    COLORS,
    DASHES,
    FILLS,
    FONTS,
    GEO_KINDS,
    SHAPE,
    SHAPE_ID_PREFIX,
    SIZES,
    STYLED_TYPES,
    ALIGNED_TYPES,
    FONT_TYPES,
    TEXT_TYPES,
    VERTICAL_ALIGNS,
    Record,
    RecordMap,
    infer_kind,
    is_number,
)

logger = logging.getLogger(__name__)

DEFAULT_SHAPE_TYPE = "geo"
DEFAULT_INDEX = "a1"
CONTAINER_TYPES: FrozenSet[str] = frozenset({"frame", "group"})

_KNOWN_SHAPE_TYPES: FrozenSet[str] = STYLED_TYPES | {"image", "frame", "line", "group", "embed", "bookmark", "video"}

Check = Callable[[Any], bool]


def _any_of(allowed: FrozenSet[str]) -> Check:
    return lambda value: value in allowed


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _is_positive(value: Any) -> bool:
    return is_number(value) and value > 0


def _is_unit(value: Any) -> bool:
    return is_number(value) and 0 <= value <= 1


def _is_record_id(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _is_asset_ref(value: Any) -> bool:
    return value is None or isinstance(value, str)


@dataclass(frozen=True)
class PropRule:
    types: FrozenSet[str]
    key: str
    default: Any
    check: Check


def _rule(types, key, default, check) -> PropRule:
    if isinstance(types, str):
        types = frozenset({types})
    return PropRule(frozenset(types), key, default, check)


PROP_RULES: Tuple[PropRule, ...] = (
    _rule(STYLED_TYPES, "color", "black", _any_of(COLORS)),
    _rule(STYLED_TYPES, "size", "m", _any_of(SIZES)),
    _rule(ALIGNED_TYPES, "align", "middle", _any_of(ALIGNS)),
    _rule(FONT_TYPES, "font", "draw", _any_of(FONTS)),
    _rule(TEXT_TYPES, "text", "", _is_str),
    _rule("text", "autoSize", True, _is_bool),
    _rule("text", "w", 200, _is_positive),
    _rule("note", "verticalAlign", "middle", _any_of(VERTICAL_ALIGNS)),
    _rule("note", "fontSizeAdjustment", 0, is_number),
    _rule("note", "growY", 0, is_number),
    _rule("note", "url", "", _is_str),
    _rule("geo", "geo", "rectangle", _any_of(GEO_KINDS)),
    _rule("geo", "w", 100, _is_positive),
    _rule("geo", "h", 100, _is_positive),
    _rule("geo", "fill", "none", _any_of(FILLS)),
    _rule("geo", "dash", "draw", _any_of(DASHES)),
    _rule("geo", "verticalAlign", "middle", _any_of(VERTICAL_ALIGNS)),
    _rule("geo", "labelColor", "black", _any_of(COLORS)),
    _rule("geo", "growY", 0, is_number),
    _rule("geo", "url", "", _is_str),
    _rule("arrow", "labelColor", "black", _any_of(COLORS)),
    _rule("arrow", "fill", "none", _any_of(FILLS)),
    _rule("arrow", "dash", "draw", _any_of(DASHES)),
    _rule("arrow", "arrowheadStart", "none", _any_of(ARROWHEADS)),
    _rule("arrow", "arrowheadEnd", "arrow", _any_of(ARROWHEADS)),
    _rule("arrow", "bend", 0, is_number),
    _rule("arrow", "text", "", _is_str),
    _rule("arrow", "labelPosition", 0.5, _is_unit),
    _rule("image", "w", 100, _is_positive),
    _rule("image", "h", 100, _is_positive),
    _rule("image", "assetId", None, _is_asset_ref),
    _rule("image", "url", "", _is_str),
    _rule("image", "playing", True, _is_bool),
    _rule("image", "crop", None, lambda value: value is None or isinstance(value, Mapping)),
    _rule(("draw", "highlight"), "segments", [], lambda value: isinstance(value, list)),
    _rule(("draw", "highlight"), "isComplete", False, _is_bool),
    _rule("draw", "isClosed", False, _is_bool),
    _rule("draw", "fill", "none", _any_of(FILLS)),
    _rule("draw", "dash", "draw", _any_of(DASHES)),
)

# Shape-level defaults; ``parentId`` and ``index`` are handled separately.
SHAPE_RULES: Tuple[Tuple[str, Any, Check], ...] = (
    ("x", 0, is_number),
    ("y", 0, is_number),
    ("rotation", 0, is_number),
    ("isLocked", False, _is_bool),
    ("opacity", 1, _is_unit),
    ("meta", {}, lambda value: isinstance(value, Mapping)),
)


def record_kind(record: Mapping[str, Any], record_id: Any = None) -> Optional[str]:
    """Return the kind of a possibly partial record, inferring it when absent."""

    kind = record.get("typeName")
    if isinstance(kind, str):
        return kind
    inferred = infer_kind(record.get("id", record_id))
    if inferred is not None:
        return inferred
    if record.get("type") in _KNOWN_SHAPE_TYPES:
        return SHAPE
    return None


def _normalize_terminal(value: Any) -> Dict[str, Any]:
    if not isinstance(value, Mapping):
        return {"x": 0, "y": 0}
    terminal = dict(value)
    for axis in ("x", "y"):
        if not is_number(terminal.get(axis)):
            terminal[axis] = 0
    return terminal


def _normalize_props(shape_type: str, props: Any) -> Dict[str, Any]:
    result = copy.deepcopy(dict(props)) if isinstance(props, Mapping) else {}
    for rule in PROP_RULES:
        if shape_type in rule.types and (rule.key not in result or not rule.check(result[rule.key])):
            result[rule.key] = copy.deepcopy(rule.default)
    if shape_type == "arrow":
        result["start"] = _normalize_terminal(result.get("start"))
        result["end"] = _normalize_terminal(result.get("end"))
    return result


def normalize_record(
    record: Mapping[str, Any],
    *,
    index: Optional[str] = None,
    root_page_id: Optional[str] = None,
    record_id: Optional[str] = None,
) -> Record:
    """Return a complete copy of *record*.

    Asset, binding and unknown records are returned as plain copies. ``index``
    is used when the shape has no valid stack index of its own.
    """

    result: Record = copy.deepcopy(dict(record))
    if not _is_record_id(result.get("id")) and _is_record_id(record_id):
        result["id"] = record_id

    kind = record_kind(result)
    if kind != SHAPE:
        return result
    result["typeName"] = SHAPE
    if not _is_record_id(result.get("id")):
        result["id"] = f"{SHAPE_ID_PREFIX}{uuid.uuid4().hex}"

    if not isinstance(result.get("type"), str) or not result["type"]:
        result["type"] = DEFAULT_SHAPE_TYPE

    for key, default, check in SHAPE_RULES:
        if not check(result.get(key)):
            result[key] = copy.deepcopy(default)

    parent = result.get("parentId")
    if not isinstance(parent, str) or not parent:
        result["parentId"] = root_page_id or get_board_config().root_page_id

    if not is_valid_index(result.get("index")):
        result["index"] = index if index is not None else DEFAULT_INDEX

    result["props"] = _normalize_props(result["type"], result.get("props"))
    return result


def _lift_embedded_bindings(arrow: Record, shape_ids, taken_ids) -> Dict[str, Record]:
    """Turn legacy ``{"type": "binding"}`` arrow terminals into binding records."""

    props = arrow.get("props")
    if not isinstance(props, Mapping):
        return {}
    lifted: Dict[str, Record] = {}
    arrow_id = str(arrow.get("id"))
    suffix = arrow_id.split(":", 1)[-1]
    for terminal in ("start", "end"):
        value = props.get(terminal)
        if not isinstance(value, Mapping) or value.get("type") != "binding":
            continue
        target = value.get("boundShapeId")
        props[terminal] = {"x": 0, "y": 0}
        if not isinstance(target, str) or target not in shape_ids:
            logger.debug("Dropping %s binding of %s to missing shape %r", terminal, arrow_id, target)
            continue
        base_id = f"{BINDING_ID_PREFIX}{suffix}-{terminal}"
        binding_id, serial = base_id, 1
        while binding_id in taken_ids or binding_id in lifted:
            serial += 1
            binding_id = f"{base_id}-{serial}"
        anchor = value.get("normalizedAnchor")
        if not isinstance(anchor, Mapping):
            anchor = {"x": 0.5, "y": 0.5}
        lifted[binding_id] = {
            "id": binding_id,
            "typeName": BINDING,
            "type": "arrow",
            "fromId": arrow_id,
            "toId": target,
            "props": {
                "terminal": terminal,
                "normalizedAnchor": dict(anchor),
                "isExact": bool(value.get("isExact", False)),
                "isPrecise": bool(value.get("isPrecise", False)),
            },
            "meta": {},
        }
    return lifted


def normalize_records(
    records: Mapping[str, Any],
    *,
    root_page_id: Optional[str] = None,
) -> RecordMap:
    """Normalize an ``id -> record`` mapping.

    Shapes without a usable stack index get fresh keys in iteration order, each
    above the previous one and above every valid key already in the batch.
    """

    root = root_page_id or get_board_config().root_page_id
    staged: RecordMap = {}
    for key, raw in records.items():
        if not isinstance(raw, Mapping):
            logger.debug("Skipping non-mapping record %r", key)
            continue
        record = copy.deepcopy(dict(raw))
        if not _is_record_id(record.get("id")):
            if not _is_record_id(key):
                logger.debug("Skipping record without a usable id: %r", key)
                continue
            record["id"] = key
        kind = record_kind(record)
        if kind not in (SHAPE, ASSET, BINDING):
            logger.debug("Skipping %r record %r", kind, key)
            continue
        record["typeName"] = kind
        staged[record["id"]] = record

    shape_ids = {rid for rid, rec in staged.items() if rec["typeName"] == SHAPE}
    container_ids = {rid for rid in shape_ids if staged[rid].get("type") in CONTAINER_TYPES}
    lifted: RecordMap = {}
    for record in staged.values():
        if record["typeName"] == SHAPE and record.get("type") == "arrow":
            lifted.update(_lift_embedded_bindings(record, shape_ids, set(staged) | set(lifted)))
    if lifted:
        logger.info("Lifted %d embedded arrow binding(s) into binding records", len(lifted))

    last_index = max_index(rec.get("index") for rec in staged.values() if rec["typeName"] == SHAPE)
    normalized: RecordMap = {}
    synthesized = 0
    for rid, record in staged.items():
        if record["typeName"] != SHAPE:
            if not is_valid_record(record):
                logger.warning("Dropping malformed %s record %r", record["typeName"], rid)
            elif record["typeName"] == BINDING and not (
                record["fromId"] in shape_ids and record["toId"] in shape_ids
            ):
                logger.debug("Dropping binding %s to a missing shape", rid)
            else:
                normalized[rid] = record
            continue
        index = None
        if not is_valid_index(record.get("index")):
            last_index = index_after(last_index)
            index = last_index
            synthesized += 1
        parent = record.get("parentId")
        if isinstance(parent, str) and parent and parent != root and (parent not in container_ids or parent == rid):
            logger.debug("Re-parenting %s from %r, not a container in this batch", rid, parent)
            record["parentId"] = root
        normalized[rid] = normalize_record(record, index=index, root_page_id=root)

    normalized.update(lifted)
    logger.info(
        "Normalized %d record(s) (%d shape(s), %d synthesized index key(s))",
        len(normalized),
        len(shape_ids),
        synthesized,
    )
    return normalized


apply_debug_logging(globals(), logger=logger, skip={"record_kind"})


__all__ = [
    "DEFAULT_SHAPE_TYPE",
    "DEFAULT_INDEX",
    "PROP_RULES",
    "SHAPE_RULES",
    "PropRule",
    "record_kind",
    "normalize_record",
    "normalize_records",
]
