from typing import Any, Iterable, Mapping

from .indexing import is_valid_index
from .records import (
    ALIGNS,
    ARROWHEADS,
    ASSET,
    BINDING,
    COLORS,
    DASHES,
    FILLS,
    FONTS,
    GEO_KINDS,
    SHAPE,
    SIZES,
    VERTICAL_ALIGNS,
    is_number,
)


class ValidationError(Exception):
    pass


def _where(record: Mapping[str, Any]) -> str:
    return f'[{record.get("id", "<no id>")}]'


def _require_str(record, container, key):
    value = container.get(key)
    if not isinstance(value, str) or not value:
        raise ValidationError(f'{_where(record)} {key} must be a non-empty string')


def _require_number(record, container, key, *, positive=False, lo=None, hi=None):
    value = container.get(key)
    if not is_number(value):
        raise ValidationError(f'{_where(record)} {key} must be a finite number (got {value!r})')
    if positive and value <= 0:
        raise ValidationError(f'{_where(record)} {key} must be positive')
    if lo is not None and value < lo or hi is not None and value > hi:
        raise ValidationError(f'{_where(record)} {key} must be within [{lo}, {hi}]')


def _require_bool(record, container, key):
    if not isinstance(container.get(key), bool):
        raise ValidationError(f'{_where(record)} {key} must be boolean')


def _require_token(record, props, key, allowed):
    value = props.get(key)
    if value not in allowed:
        raise ValidationError(f'{_where(record)} props.{key} must be one of {sorted(allowed)} (got {value!r})')


def _require_text(record, props, key='text'):
    if not isinstance(props.get(key), str):
        raise ValidationError(f'{_where(record)} props.{key} must be a string')


def _require_point(record, props, key):
    point = props.get(key)
    if not isinstance(point, Mapping) or not is_number(point.get('x')) or not is_number(point.get('y')):
        raise ValidationError(f'{_where(record)} props.{key} must be a point with numeric x and y')


def _validate_shape(record: Mapping[str, Any]) -> None:
    _require_str(record, record, 'type')
    _require_str(record, record, 'parentId')
    for key in ('x', 'y', 'rotation'):
        _require_number(record, record, key)
    _require_number(record, record, 'opacity', lo=0, hi=1)
    _require_bool(record, record, 'isLocked')
    if not is_valid_index(record.get('index')):
        raise ValidationError(f'{_where(record)} index must be a fractional index key')
    if not isinstance(record.get('meta'), Mapping):
        raise ValidationError(f'{_where(record)} meta must be a mapping')
    props = record.get('props')
    if not isinstance(props, Mapping):
        raise ValidationError(f'{_where(record)} props must be a mapping')

    t = record['type']
    if t in ('text', 'note', 'geo', 'arrow', 'draw', 'highlight'):
        _require_token(record, props, 'color', COLORS)
        _require_token(record, props, 'size', SIZES)
    if t in ('text', 'note', 'geo'):
        _require_token(record, props, 'align', ALIGNS)
        _require_text(record, props)
    if t in ('text', 'note', 'geo', 'arrow'):
        _require_token(record, props, 'font', FONTS)

    if t == 'text':
        _require_bool(record, props, 'autoSize')
        _require_number(record, props, 'w', positive=True)
    elif t == 'note':
        _require_token(record, props, 'verticalAlign', VERTICAL_ALIGNS)
        _require_number(record, props, 'fontSizeAdjustment')
        _require_number(record, props, 'growY')
        _require_text(record, props, 'url')
    elif t == 'geo':
        _require_token(record, props, 'geo', GEO_KINDS)
        _require_token(record, props, 'fill', FILLS)
        _require_token(record, props, 'dash', DASHES)
        _require_token(record, props, 'verticalAlign', VERTICAL_ALIGNS)
        _require_token(record, props, 'labelColor', COLORS)
        _require_number(record, props, 'w', positive=True)
        _require_number(record, props, 'h', positive=True)
        _require_number(record, props, 'growY')
        _require_text(record, props, 'url')
    elif t == 'arrow':
        _require_token(record, props, 'labelColor', COLORS)
        _require_token(record, props, 'fill', FILLS)
        _require_token(record, props, 'dash', DASHES)
        _require_token(record, props, 'arrowheadStart', ARROWHEADS)
        _require_token(record, props, 'arrowheadEnd', ARROWHEADS)
        _require_number(record, props, 'bend')
        _require_number(record, props, 'labelPosition', lo=0, hi=1)
        _require_text(record, props)
        _require_point(record, props, 'start')
        _require_point(record, props, 'end')
    elif t == 'image':
        _require_number(record, props, 'w', positive=True)
        _require_number(record, props, 'h', positive=True)
        asset_id = props.get('assetId')
        if asset_id is not None and not isinstance(asset_id, str):
            raise ValidationError(f'{_where(record)} props.assetId must be a string or null')
    elif t in ('draw', 'highlight'):
        if not isinstance(props.get('segments'), list):
            raise ValidationError(f'{_where(record)} props.segments must be a list')
        _require_bool(record, props, 'isComplete')


def _validate_asset(record: Mapping[str, Any]) -> None:
    _require_str(record, record, 'type')
    if not isinstance(record.get('props'), Mapping):
        raise ValidationError(f'{_where(record)} asset props must be a mapping')


def _validate_binding(record: Mapping[str, Any]) -> None:
    _require_str(record, record, 'type')
    _require_str(record, record, 'fromId')
    _require_str(record, record, 'toId')
    if not isinstance(record.get('props'), Mapping):
        raise ValidationError(f'{_where(record)} binding props must be a mapping')


def validate_record(record: Any) -> None:
    """Raise :class:`ValidationError` unless *record* is structurally valid."""

    if not isinstance(record, Mapping):
        raise ValidationError(f'record must be a mapping, got {type(record).__name__}')
    _require_str(record, record, 'id')
    kind = record.get('typeName')
    if kind == SHAPE:
        _validate_shape(record)
    elif kind == ASSET:
        _validate_asset(record)
    elif kind == BINDING:
        _validate_binding(record)
    else:
        raise ValidationError(f'{_where(record)} unknown typeName {kind!r}')


def is_valid_record(record: Any) -> bool:
    try:
        validate_record(record)
    except ValidationError:
        return False
    return True


def validate_records(records: Iterable[Any]) -> None:
    seen = set()
    for record in records:
        validate_record(record)
        if record['id'] in seen:
            raise ValidationError(f'{_where(record)} duplicate record id')
        seen.add(record['id'])
