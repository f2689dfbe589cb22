from .storage import (
    JsonFileStorage,
    KeyValueStorage,
    MemoryStorage,
    SqliteStorage,
    StorageError,
    storage_from_url,
)
from .templates import TEMPLATE_CENTER, TemplateResolver, factory_template
from .projects import AutoSaver, Project, ProjectManager, now_ms

__all__ = [
    'JsonFileStorage',
    'KeyValueStorage',
    'MemoryStorage',
    'SqliteStorage',
    'StorageError',
    'storage_from_url',
    'TEMPLATE_CENTER',
    'TemplateResolver',
    'factory_template',
    'AutoSaver',
    'Project',
    'ProjectManager',
    'now_ms',
]
