"""Load document snapshots into a document store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from .config import BoardConfig, get_board_config
from .normalize import normalize_records
from .records import SHAPE, Camera, split_snapshot
from .store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class LoadReport:
    ok: bool
    shapes: int = 0
    assets: int = 0
    bindings: int = 0
    camera: Optional[Camera] = None
    camera_restored: bool = False
    fitted: bool = False
    error: Optional[str] = None
    notes: List[str] = field(default_factory=list)


def load_snapshot(
    snapshot: Any,
    store: DocumentStore,
    *,
    config: Optional[BoardConfig] = None,
) -> LoadReport:
    """Normalize *snapshot* and write it into *store* in one atomic put.

    Any failure is logged and reported; the store is left as it was.
    """

    config = config or get_board_config()
    try:
        raw_records, camera = split_snapshot(snapshot)
        records = normalize_records(raw_records, root_page_id=config.root_page_id)
        if records:
            store.put(list(records.values()))
    except Exception as exc:
        logger.exception("Failed to load snapshot content")
        return LoadReport(ok=False, error=str(exc))

    kinds = [record["typeName"] for record in records.values()]
    report = LoadReport(
        ok=True,
        shapes=kinds.count(SHAPE),
        assets=kinds.count("asset"),
        bindings=kinds.count("binding"),
    )
    logger.info(
        "Loaded snapshot: %d shape(s), %d asset(s), %d binding(s)",
        report.shapes,
        report.assets,
        report.bindings,
    )

    if camera is not None:
        store.set_camera(camera)
        report.camera_restored = True
    else:
        bounds = store.get_current_page_bounds()
        if bounds is not None:
            store.zoom_to_bounds(bounds.expand(config.fit_padding), animation_ms=config.fit_animation_ms)
            report.fitted = True
        else:
            report.notes.append("no shapes, camera untouched")
    report.camera = store.get_camera()
    return report


def mount_snapshot(
    snapshot: Any,
    store: DocumentStore,
    *,
    config: Optional[BoardConfig] = None,
    on_loaded: Optional[Callable[[LoadReport], None]] = None,
) -> None:
    """Load *snapshot* once *store* reports readiness, then enable grid mode."""

    def _load() -> None:
        if snapshot is not None:
            report = load_snapshot(snapshot, store, config=config)
        else:
            report = LoadReport(ok=True, notes=["no snapshot"])
        store.update_instance_state(isGridMode=True)
        if on_loaded is not None:
            on_loaded(report)

    store.on_ready(_load)


__all__ = ["LoadReport", "load_snapshot", "mount_snapshot"]
