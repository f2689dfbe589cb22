import pytest

from paperboard.persistence import JsonFileStorage, MemoryStorage, SqliteStorage, storage_from_url


def _backends(tmp_path):
    return [
        MemoryStorage(),
        JsonFileStorage(tmp_path / 'files'),
        SqliteStorage(str(tmp_path / 'board.db')),
    ]


def test_backends_share_get_set_remove_semantics(tmp_path):
    for storage in _backends(tmp_path):
        assert storage.get('saas_projects') is None

        storage.set('saas_projects', '[]')
        storage.set('saas_projects', '[{"id": "p"}]')
        assert storage.get('saas_projects') == '[{"id": "p"}]'

        storage.remove('saas_projects')
        storage.remove('saas_projects')
        assert storage.get('saas_projects') is None


def test_json_file_storage_uses_safe_file_names(tmp_path):
    storage = JsonFileStorage(tmp_path)

    storage.set('saas_project_data_../../etc', '{}')

    files = [path.name for path in tmp_path.iterdir()]
    assert files == ['saas_project_data_.._.._etc.json']
    assert storage.get('saas_project_data_../../etc') == '{}'


def test_json_file_storage_leaves_no_temporary_files(tmp_path):
    storage = JsonFileStorage(tmp_path)

    storage.set('saas_custom_template', '{"store": {}}')

    assert sorted(path.name for path in tmp_path.iterdir()) == ['saas_custom_template.json']


def test_sqlite_storage_persists_across_connections(tmp_path):
    path = str(tmp_path / 'board.db')
    first = SqliteStorage(path)
    first.set('k', 'v')
    first.close()

    assert SqliteStorage(path).get('k') == 'v'


def test_storage_from_url(tmp_path):
    assert isinstance(storage_from_url('memory://'), MemoryStorage)
    assert isinstance(storage_from_url(f'file://{tmp_path}/data'), JsonFileStorage)
    assert isinstance(storage_from_url(str(tmp_path / 'plain')), JsonFileStorage)
    assert isinstance(storage_from_url(f'sqlite://{tmp_path}/board.db'), SqliteStorage)
    assert (tmp_path / 'data').is_dir()
    assert (tmp_path / 'board.db').exists()

    with pytest.raises(ValueError):
        storage_from_url('redis://localhost')
