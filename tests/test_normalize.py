import copy

import pytest

from paperboard.normalize import normalize_record, normalize_records
from paperboard.validate import is_valid_record


def _legacy_board():
    return {
        'shape:a': {'type': 'note', 'x': 10, 'y': 20, 'props': {'text': 'Site', 'color': 'blue'}},
        'shape:b': {'type': 'geo', 'index': 'a5', 'props': {'geo': 'ellipse', 'w': 120}},
        'shape:c': {'type': 'text', 'props': {'text': 'Title', 'size': 'huge'}},
        'shape:arrow': {
            'type': 'arrow',
            'props': {
                'start': {'type': 'binding', 'boundShapeId': 'shape:a', 'normalizedAnchor': {'x': 0.2, 'y': 0.8}},
                'end': {'type': 'binding', 'boundShapeId': 'shape:gone'},
            },
        },
        'instance': {'typeName': 'instance', 'id': 'instance'},
        'garbage': 42,
    }


@pytest.mark.parametrize('shape_type', ['text', 'note', 'geo', 'arrow'])
def test_empty_shape_becomes_valid_with_default_style(shape_type):
    record = normalize_record({'id': 'shape:x', 'type': shape_type})

    assert is_valid_record(record)
    assert record['props']['color'] == 'black'
    assert record['props']['size'] == 'm'
    assert record['parentId'] == 'page:page'
    assert record['index'] == 'a1'


def test_missing_type_defaults_to_geo():
    record = normalize_record({'id': 'shape:x', 'typeName': 'shape'})

    assert record['type'] == 'geo'
    assert record['props']['geo'] == 'rectangle'
    assert is_valid_record(record)


def test_invalid_values_are_replaced_and_valid_values_kept():
    record = normalize_record(
        {
            'id': 'shape:n',
            'type': 'note',
            'x': float('nan'),
            'opacity': 3,
            'props': {'color': 'purple', 'size': 'l', 'text': 7},
        }
    )

    assert record['x'] == 0
    assert record['opacity'] == 1
    assert record['props']['color'] == 'black'
    assert record['props']['size'] == 'l'
    assert record['props']['text'] == ''


def test_normalize_record_does_not_mutate_input():
    raw = {'id': 'shape:x', 'type': 'arrow', 'props': {'start': {'x': 'left'}}}
    before = copy.deepcopy(raw)

    normalize_record(raw)

    assert raw == before


def test_arrow_terminals_get_numeric_coordinates():
    record = normalize_record({'id': 'shape:x', 'type': 'arrow', 'props': {'start': {'x': 'left'}, 'end': None}})

    assert record['props']['start'] == {'x': 0, 'y': 0}
    assert record['props']['end'] == {'x': 0, 'y': 0}


def test_normalize_records_drops_unknown_and_non_mapping_entries():
    records = normalize_records(_legacy_board())

    assert 'instance' not in records
    assert 'garbage' not in records
    assert all(is_valid_record(record) for record in records.values())


def test_normalize_records_synthesizes_indices_above_existing_ones():
    records = normalize_records(_legacy_board())

    assert records['shape:b']['index'] == 'a5'
    synthesized = [records[key]['index'] for key in ('shape:a', 'shape:c', 'shape:arrow')]
    assert synthesized == ['a6', 'a7', 'a8']


def test_normalize_records_is_idempotent():
    once = normalize_records(_legacy_board())
    twice = normalize_records(once)

    assert twice == once


def test_embedded_arrow_bindings_are_lifted():
    records = normalize_records(_legacy_board())

    binding = records['binding:arrow-start']
    assert binding['typeName'] == 'binding'
    assert binding['fromId'] == 'shape:arrow'
    assert binding['toId'] == 'shape:a'
    assert binding['props']['terminal'] == 'start'
    assert binding['props']['normalizedAnchor'] == {'x': 0.2, 'y': 0.8}
    assert 'binding:arrow-end' not in records
    assert records['shape:arrow']['props']['start'] == {'x': 0, 'y': 0}
    assert records['shape:arrow']['props']['end'] == {'x': 0, 'y': 0}


def test_bindings_to_missing_shapes_are_dropped():
    records = normalize_records(
        {
            'shape:a': {'type': 'geo'},
            'binding:ok': {'type': 'arrow', 'fromId': 'shape:a', 'toId': 'shape:a', 'props': {}},
            'binding:dangling': {'type': 'arrow', 'fromId': 'shape:a', 'toId': 'shape:zzz', 'props': {}},
            'binding:broken': {'type': 'arrow', 'fromId': 'shape:a'},
        }
    )

    assert 'binding:ok' in records
    assert 'binding:dangling' not in records
    assert 'binding:broken' not in records


def test_malformed_assets_are_dropped():
    records = normalize_records(
        {
            'asset:good': {'type': 'image', 'props': {'src': 'data:image/png;base64,'}},
            'asset:bad': {'type': 'image', 'props': 'oops'},
        }
    )

    assert list(records) == ['asset:good']
    assert records['asset:good']['typeName'] == 'asset'


def test_shapes_inside_missing_containers_move_to_the_page():
    records = normalize_records(
        {
            'shape:frame': {'type': 'frame', 'props': {'w': 400, 'h': 300}},
            'shape:inside': {'type': 'note', 'parentId': 'shape:frame'},
            'shape:orphan': {'type': 'note', 'parentId': 'shape:deleted'},
        },
        root_page_id='page:main',
    )

    assert records['shape:frame']['parentId'] == 'page:main'
    assert records['shape:inside']['parentId'] == 'shape:frame'
    assert records['shape:orphan']['parentId'] == 'page:main'


def test_kind_is_inferred_from_id_prefix():
    records = normalize_records({'shape:x': {'props': {'text': 'hello'}}})

    assert records['shape:x']['typeName'] == 'shape'
    assert records['shape:x']['type'] == 'geo'
    assert records['shape:x']['props']['text'] == 'hello'


@pytest.mark.parametrize('bad_id', [['x'], 5, '', None])
def test_unusable_record_id_falls_back_to_mapping_key(bad_id):
    records = normalize_records(
        {
            'shape:a': {'id': bad_id, 'typeName': 'shape', 'type': 'geo'},
            'shape:b': {'type': 'note', 'props': {'text': 'Kept'}},
        }
    )

    assert set(records) == {'shape:a', 'shape:b'}
    assert records['shape:a']['id'] == 'shape:a'
    assert all(is_valid_record(record) for record in records.values())


def test_record_without_any_usable_id_is_dropped():
    records = normalize_records({'': {'id': 7, 'typeName': 'shape', 'type': 'geo'}, 'shape:b': {'type': 'note'}})

    assert list(records) == ['shape:b']


def test_normalize_record_repairs_shape_id():
    assert normalize_record({'id': 5, 'type': 'note'}, record_id='shape:n')['id'] == 'shape:n'

    record = normalize_record({'id': '', 'typeName': 'shape', 'type': 'note'})

    assert record['id'].startswith('shape:')
    assert is_valid_record(record)
    assert normalize_record(record) == record


def test_image_props_get_null_asset_and_crop():
    props = normalize_record({'id': 'shape:img', 'type': 'image'})['props']

    assert props['assetId'] is None
    assert props['crop'] is None
    kept = normalize_record({'id': 'shape:img', 'type': 'image', 'props': {'crop': {'topLeft': {'x': 0, 'y': 0}}}})
    assert kept['props']['crop'] == {'topLeft': {'x': 0, 'y': 0}}


def test_only_frames_and_groups_can_hold_shapes():
    records = normalize_records(
        {
            'shape:group': {'type': 'group'},
            'shape:note': {'type': 'note'},
            'shape:grouped': {'type': 'text', 'parentId': 'shape:group'},
            'shape:on-note': {'type': 'text', 'parentId': 'shape:note'},
            'shape:self': {'type': 'frame', 'parentId': 'shape:self'},
        },
        root_page_id='page:main',
    )

    assert records['shape:grouped']['parentId'] == 'shape:group'
    assert records['shape:on-note']['parentId'] == 'page:main'
    assert records['shape:self']['parentId'] == 'page:main'


def test_lifted_binding_gets_unique_id_when_taken():
    records = normalize_records(
        {
            'shape:a': {'type': 'geo'},
            'shape:arrow': {
                'type': 'arrow',
                'props': {'start': {'type': 'binding', 'boundShapeId': 'shape:a'}},
            },
            'binding:arrow-start': {
                'type': 'arrow',
                'fromId': 'shape:a',
                'toId': 'shape:a',
                'props': {'terminal': 'end'},
            },
        }
    )

    assert records['binding:arrow-start']['props']['terminal'] == 'end'
    lifted = records['binding:arrow-start-2']
    assert (lifted['fromId'], lifted['toId']) == ('shape:arrow', 'shape:a')
    assert lifted['props']['terminal'] == 'start'
