"""Project index and per-project document blobs on top of a key-value storage."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..config import BoardConfig, get_board_config
from ..records import is_number
from ..store import DocumentStore
from .storage import KeyValueStorage
from .templates import TemplateResolver

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def _new_project_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Project:
    id: str
    name: str
    updated_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "updatedAt": self.updated_at}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Project":
        project_id = data.get("id")
        name = data.get("name")
        updated_at = data.get("updatedAt")
        if not isinstance(project_id, str) or not project_id:
            raise ValueError(f"project id must be a non-empty string, got {project_id!r}")
        if not isinstance(name, str):
            raise ValueError(f"project name must be a string, got {name!r}")
        return cls(id=project_id, name=name, updated_at=int(updated_at) if is_number(updated_at) else 0)


class ProjectManager:
    """Owns the project collection and the active project.

    In standalone mode the collection lives under ``<prefix>projects``. In
    embedded mode the host supplies a single transient project and the index
    is never written.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        config: Optional[BoardConfig] = None,
        templates: Optional[TemplateResolver] = None,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = _new_project_id,
    ) -> None:
        self.storage = storage
        self.config = config or get_board_config()
        self.templates = templates or TemplateResolver(storage, config=self.config)
        self._clock = clock
        self._id_factory = id_factory
        self.projects: List[Project] = []
        self.current: Optional[Project] = None
        self.embedded = False

    # -- keys ----------------------------------------------------------

    @property
    def index_key(self) -> str:
        return f"{self.config.key_prefix}projects"

    def data_key(self, project_id: str) -> str:
        return f"{self.config.key_prefix}project_data_{project_id}"

    # -- storage helpers -----------------------------------------------

    def _read_index(self) -> List[Project]:
        raw = self.storage.get(self.index_key)
        if raw is None:
            return []
        try:
            entries = json.loads(raw)
        except ValueError as exc:
            logger.error("Project index is not valid JSON: %s", exc)
            return []
        if not isinstance(entries, list):
            logger.error("Project index is not a list, ignoring it")
            return []
        projects = []
        for entry in entries:
            if not isinstance(entry, Mapping):
                continue
            try:
                projects.append(Project.from_dict(entry))
            except ValueError as exc:
                logger.warning("Skipping project index entry: %s", exc)
        return projects

    def _write_index(self) -> None:
        if self.embedded:
            return
        self.storage.set(self.index_key, json.dumps([project.to_dict() for project in self.projects]))

    def _write_data(self, project_id: str, data: Mapping[str, Any]) -> None:
        self.storage.set(self.data_key(project_id), json.dumps(dict(data)))

    def _seed(self, project_id: str, data: Optional[Mapping[str, Any]] = None) -> None:
        self._write_data(project_id, data if data is not None else self.templates.resolve_starting_template())

    def get_project(self, project_id: str) -> Optional[Project]:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None

    # -- lifecycle -----------------------------------------------------

    def initialize(
        self,
        project_id: Optional[str] = None,
        initial_data: Optional[Union[str, Mapping[str, Any]]] = None,
    ) -> Project:
        """Select the active project, creating the default one on first use."""

        if self.config.embedded and project_id:
            self.embedded = True
            project = Project(id=project_id, name=f"Project #{project_id}", updated_at=self._clock())
            if isinstance(initial_data, str):
                self.storage.set(self.data_key(project_id), initial_data)
            else:
                self._seed(project_id, initial_data)
            self.projects = [project]
            self.current = project
            logger.info("Opened embedded project %s", project_id)
            return project

        self.embedded = False
        self.projects = self._read_index()
        if self.projects:
            self.current = (self.get_project(project_id) if project_id else None) or self.projects[0]
            logger.info("Loaded %d project(s), active %s", len(self.projects), self.current.id)
            return self.current

        project = Project(
            id=self.config.default_project_id,
            name=self.config.default_project_name,
            updated_at=self._clock(),
        )
        self._seed(project.id)
        self.projects = [project]
        self.current = project
        self._write_index()
        logger.info("Created default project %s", project.id)
        return project

    def load_project_snapshot(self, project_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Stored blob of *project_id* (default: active project), ``None`` if absent or unreadable."""

        project_id = project_id or (self.current.id if self.current else None)
        if project_id is None:
            return None
        raw = self.storage.get(self.data_key(project_id))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError as exc:
            logger.error("Stored data of project %s is not valid JSON: %s", project_id, exc)
            return None
        if not isinstance(data, dict):
            logger.error("Stored data of project %s is not an object", project_id)
            return None
        return data

    def save_current_state(self, store: DocumentStore) -> bool:
        """Persist every record of *store* plus its camera under the active project."""

        if self.current is None:
            return False
        data = store.get_snapshot()
        data["camera"] = store.get_camera().to_dict()
        self._write_data(self.current.id, data)
        if not self.embedded:
            self.current.updated_at = self._clock()
            self._write_index()
        logger.debug("Saved project %s", self.current.id)
        return True

    def switch_project(self, project_id: str, store: Optional[DocumentStore] = None) -> Project:
        """Save the active project, then activate *project_id*.

        A failing save propagates and the active project stays unchanged.
        """

        target = self.get_project(project_id)
        if target is None:
            raise KeyError(f"unknown project {project_id!r}")
        if store is not None:
            self.save_current_state(store)
        self.current = target
        logger.info("Switched to project %s", project_id)
        return target

    def create_project(self, name: str, store: Optional[DocumentStore] = None) -> Project:
        name = (name or "").strip()
        if not name:
            raise ValueError("project name must not be empty")
        if store is not None:
            self.save_current_state(store)
        project = Project(id=self._id_factory(), name=name, updated_at=self._clock())
        self._seed(project.id)
        self.projects.append(project)
        self._write_index()
        self.current = project
        logger.info("Created project %s (%s)", project.id, name)
        return project

    def delete_project(self, project_id: str) -> Project:
        """Remove *project_id* and return the project that is active afterwards."""

        self.storage.remove(self.data_key(project_id))
        self.projects = [project for project in self.projects if project.id != project_id]
        if not self.projects:
            fallback = Project(id=self._id_factory(), name=self.config.fallback_project_name, updated_at=self._clock())
            self._seed(fallback.id)
            self.projects = [fallback]
            self.current = fallback
            logger.info("Deleted last project, created %s", fallback.id)
        elif self.current is None or self.current.id == project_id:
            self.current = self.projects[0]
        self._write_index()
        logger.info("Deleted project %s, active %s", project_id, self.current.id)
        return self.current

    def save_as_template(self, store: DocumentStore) -> None:
        snapshot = store.get_snapshot()
        self.templates.save_custom_template(
            {"store": snapshot["store"], "schema": snapshot.get("schema"), "camera": store.get_camera().to_dict()}
        )


class AutoSaver:
    """Calls *save* every *interval* seconds until stopped; no dirty tracking."""

    def __init__(self, save: Callable[[], Any], interval: float) -> None:
        if interval <= 0:
            raise ValueError("autosave interval must be positive")
        self._save = save
        self.interval = interval
        self._task: Optional["asyncio.Task[None]"] = None
        self.saves = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                result = self._save()
                if inspect.isawaitable(result):
                    await result
                self.saves += 1
            except Exception:
                logger.exception("Auto-save failed")

    def start(self) -> "asyncio.Task[None]":
        if not self.running:
            self._task = asyncio.ensure_future(self._run())
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


__all__ = ["Project", "now_ms", "ProjectManager", "AutoSaver"]
