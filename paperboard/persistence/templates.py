"""Starting content for new projects."""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, Mapping, Optional

from ..config import BoardConfig, get_board_config
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

TEMPLATE_CENTER = (600.0, 300.0)

_LANES = (
    ("note_1", -400.0, "blue", "01. INPUT\n\nSURVEY / LIDAR\n- Site Context\n- Point Cloud\n- As-Built Data"),
    ("note_2", 0.0, "yellow", "02. PROCESS\n\nAI & SKETCH\n- Concept Mixing\n- Moodboards\n- Iterations"),
    ("note_3", 400.0, "red", "03. OUTPUT\n\nPRODUCTION\n- ArchViz Renders\n- 3D Printing\n- Client VR"),
)


def _shape(name: str, shape_type: str, x: float, y: float, index: str, props: Dict[str, Any], root: str) -> Dict[str, Any]:
    return {
        "id": f"shape:{name}",
        "typeName": "shape",
        "type": shape_type,
        "parentId": root,
        "x": x,
        "y": y,
        "rotation": 0,
        "index": index,
        "isLocked": False,
        "opacity": 1,
        "props": props,
        "meta": {},
    }


def factory_template(root_page_id: Optional[str] = None) -> Dict[str, Any]:
    """The architect workflow board: title, legend, three lanes and two arrows."""

    root = root_page_id or get_board_config().root_page_id
    cx, cy = TEMPLATE_CENTER
    shapes = [
        _shape(
            "header", "text", cx - 180, cy - 250, "a1",
            {"text": "PaperBoard Charrette", "scale": 2, "font": "serif", "w": 800,
             "color": "black", "size": "xl", "align": "middle", "autoSize": True},
            root,
        ),
        _shape(
            "legend", "text", cx - 400, cy - 80, "a2",
            {"text": "Input  ->  Process  ->  Output", "scale": 0.8, "font": "sans", "w": 600,
             "color": "grey", "size": "s", "align": "start", "autoSize": True},
            root,
        ),
    ]
    for offset, (name, dx, color, text) in enumerate(_LANES):
        shapes.append(
            _shape(
                name, "note", cx + dx, cy, f"a{3 + offset}",
                {"text": text, "font": "draw", "color": color, "size": "m", "align": "middle",
                 "verticalAlign": "middle", "fontSizeAdjustment": 0, "growY": 0, "url": ""},
                root,
            )
        )
    for offset, x in enumerate((cx - 180, cx + 220)):
        shapes.append(
            _shape(
                f"arrow_{offset + 1}", "arrow", x, cy + 100, f"a{6 + offset}",
                {"start": {"x": 0, "y": 0}, "end": {"x": 160, "y": 0}, "arrowheadEnd": "arrow",
                 "arrowheadStart": "none", "color": "black", "size": "m", "font": "draw", "labelColor": "black",
                 "fill": "none", "dash": "draw", "bend": 0, "text": "", "labelPosition": 0.5},
                root,
            )
        )
    return {"store": {shape["id"]: shape for shape in shapes}}


class TemplateResolver:
    """Custom template from storage when it parses, the factory board otherwise."""

    def __init__(self, storage: KeyValueStorage, *, config: Optional[BoardConfig] = None) -> None:
        self._storage = storage
        self._config = config or get_board_config()

    @property
    def key(self) -> str:
        return f"{self._config.key_prefix}custom_template"

    def has_custom_template(self) -> bool:
        return self._storage.get(self.key) is not None

    def resolve_starting_template(self) -> Dict[str, Any]:
        raw = self._storage.get(self.key)
        if raw is not None:
            try:
                template = json.loads(raw)
            except ValueError as exc:
                logger.error("Error parsing custom template: %s", exc)
            else:
                if isinstance(template, dict):
                    return template
                logger.error("Custom template is not an object, using factory template")
        return factory_template(self._config.root_page_id)

    def save_custom_template(self, snapshot: Mapping[str, Any]) -> None:
        self._storage.set(self.key, json.dumps(copy.deepcopy(dict(snapshot))))
        logger.info("Saved custom template")

    def reset_custom_template(self) -> None:
        self._storage.remove(self.key)
        logger.info("Custom template removed, factory template restored")


__all__ = ["TEMPLATE_CENTER", "factory_template", "TemplateResolver"]
