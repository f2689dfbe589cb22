"""Document store boundary and the in-process reference engine."""

from __future__ import annotations

import copy
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence

from .config import get_board_config
from .geometry import Box, Vec, fit_camera, screen_to_page, union_bounds
from .indexing import index_after, is_valid_index, max_index
from .normalize import normalize_record
from .records import (
    ASSET,
    BINDING,
    BINDING_ID_PREFIX,
    SHAPE,
    SHAPE_ID_PREFIX,
    Camera,
    Record,
)
from .validate import ValidationError, validate_record

logger = logging.getLogger(__name__)

SNAPSHOT_SCHEMA = {"schemaVersion": 2, "sequences": {}}


def new_shape_id() -> str:
    return f"{SHAPE_ID_PREFIX}{uuid.uuid4().hex}"


def new_binding_id() -> str:
    return f"{BINDING_ID_PREFIX}{uuid.uuid4().hex}"


@dataclass
class StoreChange:
    """Records written by one atomic commit."""

    added: Dict[str, Record] = field(default_factory=dict)
    updated: Dict[str, Record] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.added or self.updated)


Listener = Callable[[StoreChange], None]


class DocumentStore(Protocol):
    """Operations the core needs from the rendering engine."""

    def put(self, records: Sequence[Record]) -> None: ...

    def batch(self) -> Any: ...

    def create_shapes(self, shapes: Sequence[Mapping[str, Any]]) -> List[str]: ...

    def create_assets(self, assets: Sequence[Record]) -> None: ...

    def create_bindings(self, bindings: Sequence[Mapping[str, Any]]) -> List[str]: ...

    def get_record(self, record_id: str) -> Optional[Record]: ...

    def get_camera(self) -> Camera: ...

    def set_camera(self, camera: Camera) -> None: ...

    def zoom_to_bounds(self, bounds: Box, *, animation_ms: Optional[int] = None) -> None: ...

    def get_current_page_bounds(self) -> Optional[Box]: ...

    def get_viewport_screen_bounds(self) -> Box: ...

    def screen_to_page(self, point: Vec) -> Vec: ...

    def get_selected_shapes(self) -> List[Record]: ...

    def listen(self, listener: Listener) -> Callable[[], None]: ...

    def on_ready(self, callback: Callable[[], None]) -> None: ...

    def update_instance_state(self, **state: Any) -> None: ...

    def get_snapshot(self) -> Dict[str, Any]: ...


def viewport_page_center(store: DocumentStore) -> Vec:
    """Return the page-space point under the middle of the viewport."""

    return store.screen_to_page(store.get_viewport_screen_bounds().center)


class MemoryStore:
    """Validating in-memory document store.

    Every write is checked with :func:`validate_record`. Writes made inside
    :meth:`batch` are committed together and listeners see a single change.
    """

    def __init__(
        self,
        *,
        viewport: Box = Box(0.0, 0.0, 1280.0, 800.0),
        root_page_id: Optional[str] = None,
        ready: bool = True,
    ) -> None:
        config = get_board_config()
        self.root_page_id = root_page_id or config.root_page_id
        self._min_zoom = config.min_zoom
        self._max_zoom = config.max_zoom
        self._records: Dict[str, Record] = {}
        self._pending: Optional[Dict[str, Record]] = None
        self._depth = 0
        self._listeners: List[Listener] = []
        self._ready = ready
        self._ready_callbacks: List[Callable[[], None]] = []
        self._selection: List[str] = []
        self._camera = Camera()
        self._viewport = viewport
        self.instance_state: Dict[str, Any] = {}
        self.last_animation_ms: Optional[int] = None

    # -- readiness -----------------------------------------------------

    @property
    def is_ready(self) -> bool:
        return self._ready

    def on_ready(self, callback: Callable[[], None]) -> None:
        if self._ready:
            callback()
        else:
            self._ready_callbacks.append(callback)

    def mark_ready(self) -> None:
        """Signal that the engine finished mounting and run queued callbacks."""

        if self._ready:
            return
        self._ready = True
        callbacks, self._ready_callbacks = self._ready_callbacks, []
        logger.info("Store ready, running %d queued callback(s)", len(callbacks))
        for callback in callbacks:
            callback()

    # -- records -------------------------------------------------------

    def _lookup(self, record_id: str) -> Optional[Record]:
        if self._pending is not None and record_id in self._pending:
            return self._pending[record_id]
        return self._records.get(record_id)

    def get_record(self, record_id: str) -> Optional[Record]:
        record = self._lookup(record_id)
        return copy.deepcopy(record) if record is not None else None

    def get_asset(self, asset_id: Optional[str]) -> Optional[Record]:
        if not asset_id:
            return None
        record = self.get_record(asset_id)
        return record if record is not None and record.get("typeName") == ASSET else None

    def _all(self) -> Dict[str, Record]:
        merged = dict(self._records)
        if self._pending:
            merged.update(self._pending)
        return merged

    def _of_kind(self, kind: str) -> List[Record]:
        return [copy.deepcopy(rec) for rec in self._all().values() if rec.get("typeName") == kind]

    def shapes(self) -> List[Record]:
        return self._of_kind(SHAPE)

    def assets(self) -> List[Record]:
        return self._of_kind(ASSET)

    def bindings(self) -> List[Record]:
        return self._of_kind(BINDING)

    def __len__(self) -> int:
        return len(self._all())

    def put(self, records: Sequence[Record]) -> None:
        """Validate and write *records*; nothing is written if any is invalid."""

        staged: Dict[str, Record] = {}
        for record in records:
            validate_record(record)
            staged[record["id"]] = copy.deepcopy(dict(record))
        for record in staged.values():
            if record.get("typeName") == BINDING:
                for key in ("fromId", "toId"):
                    if record[key] not in staged and self._lookup(record[key]) is None:
                        raise ValidationError(f"[{record['id']}] {key} {record[key]!r} does not exist")
        if self._pending is not None:
            self._pending.update(staged)
            return
        self._commit(staged)

    def _commit(self, staged: Dict[str, Record]) -> None:
        if not staged:
            return
        change = StoreChange()
        for rid, record in staged.items():
            target = change.updated if rid in self._records else change.added
            target[rid] = record
        self._records.update(staged)
        logger.debug("Committed %d record(s)", len(staged))
        for listener in list(self._listeners):
            listener(change)

    @contextmanager
    def batch(self) -> Iterator["MemoryStore"]:
        """Group writes into one atomic commit; an exception discards them."""

        outer = self._depth == 0
        if outer:
            self._pending = {}
        self._depth += 1
        try:
            yield self
        except BaseException:
            if outer:
                self._pending = None
            raise
        finally:
            self._depth -= 1
        if outer:
            staged, self._pending = self._pending or {}, None
            self._commit(staged)

    def create_shapes(self, shapes: Sequence[Mapping[str, Any]]) -> List[str]:
        """Create shapes from partial descriptions, filling ids, order and defaults."""

        last = max_index(rec.get("index") for rec in self._all().values() if rec.get("typeName") == SHAPE)
        created: List[Record] = []
        for partial in shapes:
            record = dict(partial)
            record.setdefault("id", new_shape_id())
            record["typeName"] = SHAPE
            record.setdefault("parentId", self.root_page_id)
            if not is_valid_index(record.get("index")):
                last = index_after(last)
                record["index"] = last
            created.append(normalize_record(record, root_page_id=self.root_page_id))
        self.put(created)
        return [record["id"] for record in created]

    def create_assets(self, assets: Sequence[Record]) -> None:
        self.put([{**asset, "typeName": ASSET} for asset in assets])

    def create_bindings(self, bindings: Sequence[Mapping[str, Any]]) -> List[str]:
        created = []
        for partial in bindings:
            record = dict(partial)
            record.setdefault("id", new_binding_id())
            record["typeName"] = BINDING
            record.setdefault("meta", {})
            created.append(record)
        self.put(created)
        return [record["id"] for record in created]

    def get_snapshot(self) -> Dict[str, Any]:
        return {"store": copy.deepcopy(self._records), "schema": copy.deepcopy(SNAPSHOT_SCHEMA)}

    def listen(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- selection -----------------------------------------------------

    def select(self, ids: Iterable[str]) -> None:
        self._selection = [rid for rid in ids if rid in self._records]

    def get_selected_shapes(self) -> List[Record]:
        return [copy.deepcopy(self._records[rid]) for rid in self._selection if rid in self._records]

    # -- camera --------------------------------------------------------

    def get_camera(self) -> Camera:
        return self._camera

    def set_camera(self, camera: Camera) -> None:
        self._camera = camera

    def get_viewport_screen_bounds(self) -> Box:
        return self._viewport

    def screen_to_page(self, point: Vec) -> Vec:
        return screen_to_page(point, self._camera, self._viewport)

    def get_current_page_bounds(self) -> Optional[Box]:
        return union_bounds(rec for rec in self._all().values() if rec.get("typeName") == SHAPE)

    def zoom_to_bounds(self, bounds: Box, *, animation_ms: Optional[int] = None) -> None:
        self._camera = fit_camera(bounds, self._viewport, min_zoom=self._min_zoom, max_zoom=self._max_zoom)
        self.last_animation_ms = animation_ms

    def update_instance_state(self, **state: Any) -> None:
        self.instance_state.update(state)


__all__ = [
    "SNAPSHOT_SCHEMA",
    "DocumentStore",
    "MemoryStore",
    "StoreChange",
    "Listener",
    "new_shape_id",
    "new_binding_id",
    "viewport_page_center",
]
