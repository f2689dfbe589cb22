"""The open board: active project, its document store and its assistant."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Union

from .assistant import AssistantService, CanvasAssistant
from .layout import LayoutOptions
from .loader import LoadReport, mount_snapshot
from .persistence import AutoSaver, Project, ProjectManager
from .session import Session
from .store import DocumentStore, MemoryStore

logger = logging.getLogger(__name__)


class Workspace:
    """Keeps one store and one assistant session per active project.

    Opening another project closes the previous session first, so AI results
    still in flight for it are discarded.
    """

    def __init__(
        self,
        manager: ProjectManager,
        service: Optional[AssistantService] = None,
        *,
        store_factory: Optional[Callable[[], DocumentStore]] = None,
        options: Optional[LayoutOptions] = None,
        notify: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.manager = manager
        self.config = manager.config
        self.service = service
        self.options = options or LayoutOptions()
        self._notify = notify
        self._store_factory = store_factory or (lambda: MemoryStore(root_page_id=self.config.root_page_id))
        self.store: Optional[DocumentStore] = None
        self.session: Optional[Session] = None
        self.assistant: Optional[CanvasAssistant] = None
        self.last_report: Optional[LoadReport] = None
        self._autosaver: Optional[AutoSaver] = None

    @property
    def current(self) -> Optional[Project]:
        return self.manager.current

    def _on_loaded(self, report: LoadReport) -> None:
        self.last_report = report
        if not report.ok:
            logger.warning("Project %s opened empty: %s", self.current.id if self.current else None, report.error)

    def _activate(self) -> Project:
        project = self.manager.current
        if project is None:
            raise RuntimeError("no active project")
        if self.session is not None:
            self.session.close()
        self.session = Session(project.id)
        self.store = self._store_factory()
        self.last_report = None
        mount_snapshot(
            self.manager.load_project_snapshot(project.id),
            self.store,
            config=self.config,
            on_loaded=self._on_loaded,
        )
        if self.service is not None:
            self.assistant = CanvasAssistant(
                self.store,
                self.service,
                session=self.session,
                options=self.options,
                notify=self._notify,
            )
        logger.info("Opened project %s (%s)", project.id, project.name)
        return project

    def open(
        self,
        project_id: Optional[str] = None,
        initial_data: Optional[Union[str, Mapping[str, Any]]] = None,
    ) -> Project:
        self.manager.initialize(project_id, initial_data)
        return self._activate()

    def save(self) -> bool:
        if self.store is None:
            return False
        return self.manager.save_current_state(self.store)

    def switch_project(self, project_id: str) -> Project:
        self.manager.switch_project(project_id, self.store)
        return self._activate()

    def create_project(self, name: str) -> Project:
        self.manager.create_project(name, self.store)
        return self._activate()

    def delete_project(self, project_id: str) -> Project:
        previous = self.current
        project = self.manager.delete_project(project_id)
        if previous is None or previous.id == project_id or previous.id != project.id:
            return self._activate()
        return project

    def save_as_template(self) -> None:
        if self.store is None:
            raise RuntimeError("no open project")
        self.manager.save_as_template(self.store)

    def reset_template(self) -> None:
        self.manager.templates.reset_custom_template()

    def start_autosave(self) -> AutoSaver:
        """Start periodic saving; must be called with a running event loop."""

        if self._autosaver is None:
            self._autosaver = AutoSaver(self.save, self.config.autosave_interval)
        self._autosaver.start()
        return self._autosaver

    async def close(self) -> None:
        if self._autosaver is not None:
            await self._autosaver.stop()
            self._autosaver = None
        self.save()
        if self.session is not None:
            self.session.close()


__all__ = ["Workspace"]
