import pytest

from paperboard.geometry import Box, Vec
from paperboard.normalize import normalize_record
from paperboard.records import Camera
from paperboard.store import MemoryStore, viewport_page_center
from paperboard.validate import ValidationError


def test_create_shapes_fills_ids_indices_and_defaults():
    store = MemoryStore()

    first, second = store.create_shapes([{'type': 'note', 'props': {'text': 'a'}}, {'type': 'text'}])

    records = {rec['id']: rec for rec in store.shapes()}
    assert first.startswith('shape:') and second.startswith('shape:')
    assert records[first]['index'] < records[second]['index']
    assert records[first]['parentId'] == 'page:page'
    assert records[second]['props']['autoSize'] is True


def test_create_shapes_keeps_valid_index_and_continues_above_it():
    store = MemoryStore()
    store.create_shapes([{'id': 'shape:top', 'type': 'geo', 'index': 'b00'}])

    (later,) = store.create_shapes([{'type': 'geo'}])

    assert store.get_record('shape:top')['index'] == 'b00'
    assert store.get_record(later)['index'] > 'b00'


def test_put_is_atomic():
    store = MemoryStore()
    good = normalize_record({'id': 'shape:good', 'type': 'geo'})
    bad = dict(good, id='shape:bad', opacity='half')

    with pytest.raises(ValidationError):
        store.put([good, bad])

    assert len(store) == 0


def test_binding_endpoints_must_exist():
    store = MemoryStore()
    store.create_shapes([{'id': 'shape:a', 'type': 'geo'}])

    with pytest.raises(ValidationError) as exc:
        store.create_bindings([{'type': 'arrow', 'fromId': 'shape:a', 'toId': 'shape:nope', 'props': {}}])

    assert 'toId' in str(exc.value)
    assert store.bindings() == []


def test_batch_commits_once():
    store = MemoryStore()
    changes = []
    store.listen(changes.append)

    with store.batch():
        store.create_shapes([{'id': 'shape:a', 'type': 'geo'}])
        store.create_shapes([{'id': 'shape:b', 'type': 'geo'}])
        store.create_bindings(
            [{'id': 'binding:ab', 'type': 'arrow', 'fromId': 'shape:a', 'toId': 'shape:b', 'props': {}}]
        )
        assert changes == []

    assert len(changes) == 1
    assert set(changes[0].added) == {'shape:a', 'shape:b', 'binding:ab'}


def test_batch_discards_writes_on_error():
    store = MemoryStore()
    changes = []
    store.listen(changes.append)

    with pytest.raises(RuntimeError):
        with store.batch():
            store.create_shapes([{'type': 'geo'}])
            raise RuntimeError('boom')

    assert len(store) == 0
    assert changes == []


def test_nested_batches_commit_with_the_outer_one():
    store = MemoryStore()
    changes = []
    store.listen(changes.append)

    with store.batch():
        with store.batch():
            store.create_shapes([{'type': 'geo'}])
        assert changes == []
        store.create_shapes([{'type': 'note'}])

    assert len(changes) == 1
    assert len(changes[0].added) == 2


def test_listener_can_unsubscribe():
    store = MemoryStore()
    changes = []
    unsubscribe = store.listen(changes.append)
    store.create_shapes([{'type': 'geo'}])
    unsubscribe()
    store.create_shapes([{'type': 'geo'}])

    assert len(changes) == 1


def test_updates_are_reported_separately():
    store = MemoryStore()
    store.create_shapes([{'id': 'shape:a', 'type': 'geo'}])
    changes = []
    store.listen(changes.append)

    record = store.get_record('shape:a')
    record['x'] = 50
    store.put([record])

    assert list(changes[0].updated) == ['shape:a']
    assert not changes[0].added


def test_on_ready_waits_for_mark_ready():
    store = MemoryStore(ready=False)
    calls = []

    store.on_ready(lambda: calls.append('loaded'))
    assert calls == []

    store.mark_ready()
    store.mark_ready()
    assert calls == ['loaded']

    store.on_ready(lambda: calls.append('again'))
    assert calls == ['loaded', 'again']


def test_snapshot_contains_store_and_schema():
    store = MemoryStore()
    (shape_id,) = store.create_shapes([{'type': 'note'}])

    snapshot = store.get_snapshot()

    assert set(snapshot) == {'store', 'schema'}
    assert snapshot['store'][shape_id]['type'] == 'note'
    snapshot['store'][shape_id]['x'] = 999
    assert store.get_record(shape_id)['x'] == 0


def test_selection_ignores_unknown_ids():
    store = MemoryStore()
    (shape_id,) = store.create_shapes([{'type': 'note', 'props': {'text': 'x'}}])

    store.select([shape_id, 'shape:missing'])

    assert [rec['id'] for rec in store.get_selected_shapes()] == [shape_id]


def test_viewport_page_center_follows_camera():
    store = MemoryStore(viewport=Box(0, 0, 1000, 600))
    assert viewport_page_center(store) == Vec(500.0, 300.0)

    store.set_camera(Camera(-100, 50, 2))
    assert viewport_page_center(store) == Vec(350.0, 100.0)


def test_zoom_to_bounds_records_animation_time():
    store = MemoryStore(viewport=Box(0, 0, 800, 800))

    store.zoom_to_bounds(Box(0, 0, 400, 400), animation_ms=500)

    assert store.get_camera() == Camera(0.0, 0.0, 2.0)
    assert store.last_animation_ms == 500
