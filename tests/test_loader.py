import json

from paperboard.config import BoardConfig
from paperboard.geometry import Box
from paperboard.loader import load_snapshot, mount_snapshot
from paperboard.records import Camera
from paperboard.store import MemoryStore


def _store():
    return MemoryStore(viewport=Box(0, 0, 800, 600))


def _board(**extra):
    snapshot = {
        'store': {
            'shape:a': {'type': 'geo', 'x': 0, 'y': 0, 'props': {'w': 300, 'h': 200}},
            'shape:b': {'type': 'note', 'x': 400, 'y': 0, 'props': {'text': 'Idea'}},
        }
    }
    snapshot.update(extra)
    return snapshot


def test_saved_camera_is_restored_verbatim():
    store = _store()

    report = load_snapshot(_board(camera={'x': 12, 'y': -7, 'z': 0.75}), store)

    assert report.ok
    assert report.camera_restored and not report.fitted
    assert store.get_camera() == Camera(12.0, -7.0, 0.75)
    assert report.shapes == 2


def test_missing_camera_fits_content_with_padding():
    store = _store()

    report = load_snapshot(_board(), store, config=BoardConfig(fit_padding=50, fit_animation_ms=500))

    assert report.fitted
    assert store.last_animation_ms == 500
    # content spans 600x200, padded to 700x300
    assert report.camera.z == min(800 / 700, 600 / 300)


def test_legacy_flat_snapshot_loads():
    store = _store()
    legacy = {'shape:a': {'type': 'note'}, 'camera': {'x': 1, 'y': 2, 'z': 1}, 'schema': {'schemaVersion': 1}}

    report = load_snapshot(legacy, store)

    assert report.ok and report.shapes == 1
    assert store.get_camera() == Camera(1.0, 2.0, 1.0)


def test_json_text_snapshot_loads():
    store = _store()

    report = load_snapshot(json.dumps(_board()), store)

    assert report.ok
    assert len(store.shapes()) == 2


def test_invalid_camera_falls_back_to_fit():
    store = _store()

    report = load_snapshot(_board(camera={'x': 0, 'y': 0, 'z': 0}), store)

    assert report.fitted and not report.camera_restored


def test_empty_snapshot_leaves_camera_untouched():
    store = _store()
    store.set_camera(Camera(5, 5, 1))

    report = load_snapshot({'store': {}}, store)

    assert report.ok
    assert store.get_camera() == Camera(5, 5, 1)
    assert report.notes == ['no shapes, camera untouched']


def test_unreadable_snapshot_fails_safe():
    store = _store()

    report = load_snapshot('{not json', store)

    assert not report.ok
    assert report.error
    assert len(store) == 0


def test_store_rejection_fails_safe(monkeypatch):
    store = _store()

    def _reject(records):
        raise RuntimeError('engine refused the records')

    monkeypatch.setattr(store, 'put', _reject)

    report = load_snapshot(_board(), store)

    assert not report.ok
    assert 'refused' in report.error


def test_mount_waits_for_readiness_and_enables_grid():
    store = MemoryStore(ready=False)
    reports = []

    mount_snapshot(_board(), store, on_loaded=reports.append)
    assert reports == [] and len(store) == 0

    store.mark_ready()

    assert len(reports) == 1 and reports[0].ok
    assert store.instance_state == {'isGridMode': True}
    assert len(store.shapes()) == 2


def test_mount_without_snapshot_still_enables_grid():
    store = MemoryStore()
    reports = []

    mount_snapshot(None, store, on_loaded=reports.append)

    assert reports[0].notes == ['no snapshot']
    assert store.instance_state['isGridMode'] is True


def test_record_with_blank_id_does_not_sink_the_load():
    store = _store()
    snapshot = _board()
    snapshot['store']['shape:blank'] = {'id': '', 'typeName': 'shape', 'type': 'geo'}

    report = load_snapshot(snapshot, store)

    assert report.ok
    assert report.shapes == 3
    assert store.get_record('shape:blank')['id'] == 'shape:blank'
