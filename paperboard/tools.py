"""Assistant tool declarations and boundary validation of tool calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .layout.graph import DiagramEdge, DiagramNode

logger = logging.getLogger(__name__)

MOODBOARD = "generate_moodboard"
BRAINSTORM = "brainstorm_ideas"
DIAGRAM = "generate_diagram"

LAYOUT_STYLES = ("grid", "scattered")
NOTE_COLORS = ("yellow", "blue", "red", "green", "violet")
NODE_TYPES = ("start", "process", "decision", "end")

TOOL_DECLARATIONS: List[Dict[str, Any]] = [
    {
        "name": MOODBOARD,
        "description": (
            "Generates a set of AI images to form a visual moodboard based on a theme. "
            "Use this when the user asks for images, inspiration, visual references, or textures."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "image_descriptions": {
                    "type": "array",
                    "description": "A list of distinct, detailed image prompts to generate.",
                    "items": {"type": "string"},
                },
                "layout_style": {
                    "type": "string",
                    "description": "The preferred layout style.",
                    "enum": list(LAYOUT_STYLES),
                },
            },
            "required": ["image_descriptions"],
        },
    },
    {
        "name": BRAINSTORM,
        "description": (
            "Generates a list of short concepts or ideas to be placed as sticky notes on the canvas. "
            "Use this when the user asks for ideas, concepts, lists, or brainstorming."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "ideas": {
                    "type": "array",
                    "description": "A list of short, punchy text strings (max 15 words each).",
                    "items": {"type": "string"},
                },
                "color": {
                    "type": "string",
                    "description": "The color of the sticky notes.",
                    "enum": list(NOTE_COLORS),
                },
            },
            "required": ["ideas"],
        },
    },
    {
        "name": DIAGRAM,
        "description": (
            "Generates a structured node-and-edge diagram or flowchart. Use this when the user asks "
            "to map out a process, an organization, a hierarchy, or a relationship graph."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "nodes": {
                    "type": "array",
                    "description": "List of nodes (boxes) in the diagram.",
                    "items": {
                        "type": "object",
                        "properties": {
                            "id": {"type": "string", "description": 'Unique simple ID (e.g., "n1")'},
                            "label": {"type": "string", "description": "Text inside the node"},
                            "type": {"type": "string", "enum": list(NODE_TYPES)},
                        },
                        "required": ["id", "label"],
                    },
                },
                "edges": {
                    "type": "array",
                    "description": "List of connections between nodes.",
                    "items": {
                        "type": "object",
                        "properties": {
                            "from": {"type": "string", "description": "ID of the source node"},
                            "to": {"type": "string", "description": "ID of the target node"},
                            "label": {"type": "string", "description": "Optional label on the arrow"},
                        },
                        "required": ["from", "to"],
                    },
                },
            },
            "required": ["nodes", "edges"],
        },
    },
]

ASSISTANT_INSTRUCTION = (
    "You are 'L'ami Charrette AI'. You help architects and designers.\n"
    "Your capabilities:\n"
    "1. If asked for images/moodboards -> Use `generate_moodboard`.\n"
    "2. If asked for ideas, concepts, lists -> Use `brainstorm_ideas` (creates sticky notes).\n"
    "3. If asked for diagrams, flowcharts, hierarchies -> Use `generate_diagram`.\n"
    "4. Otherwise, answer helpfully in text.\n"
    "Be concise and professional."
)


class ToolCallError(ValueError):
    """Raised when a tool call payload cannot be dispatched."""

    def __init__(self, name: Any, message: str):
        super().__init__(f"{name}: {message}")
        self.name = name


@dataclass
class MoodboardCall:
    name: ClassVar[str] = MOODBOARD
    image_descriptions: List[str]
    layout_style: Optional[str] = None
    call_id: Optional[str] = None


@dataclass
class BrainstormCall:
    name: ClassVar[str] = BRAINSTORM
    ideas: List[str]
    color: Optional[str] = None
    call_id: Optional[str] = None


@dataclass
class DiagramCall:
    name: ClassVar[str] = DIAGRAM
    nodes: List[DiagramNode]
    edges: List[DiagramEdge] = field(default_factory=list)
    call_id: Optional[str] = None


ToolCall = Union[MoodboardCall, BrainstormCall, DiagramCall]


def _ident(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int)):
        text = str(value).strip()
        return text or None
    return None


def _strings(name: str, args: Mapping[str, Any], key: str) -> List[str]:
    values = args.get(key)
    if not isinstance(values, (list, tuple)):
        raise ToolCallError(name, f"{key} must be a list")
    cleaned = [item.strip() for item in values if isinstance(item, str) and item.strip()]
    if not cleaned:
        raise ToolCallError(name, f"{key} is empty")
    return cleaned


def _choice(name: str, args: Mapping[str, Any], key: str, allowed: Sequence[str]) -> Optional[str]:
    value = args.get(key)
    if value is None:
        return None
    if value not in allowed:
        logger.warning("%s: ignoring unsupported %s %r", name, key, value)
        return None
    return value


def _parse_nodes(args: Mapping[str, Any]) -> List[DiagramNode]:
    raw_nodes = args.get("nodes")
    if not isinstance(raw_nodes, (list, tuple)):
        raise ToolCallError(DIAGRAM, "nodes must be a list")
    nodes = []
    for raw in raw_nodes:
        if not isinstance(raw, Mapping):
            continue
        node_id = _ident(raw.get("id"))
        label = raw.get("label")
        if node_id is None or not isinstance(label, str):
            logger.warning("%s: dropping malformed node %r", DIAGRAM, raw)
            continue
        node_type = raw.get("type")
        nodes.append(DiagramNode(id=node_id, label=label, type=node_type if isinstance(node_type, str) else None))
    if not nodes:
        raise ToolCallError(DIAGRAM, "nodes is empty")
    return nodes


def _parse_edges(args: Mapping[str, Any]) -> List[DiagramEdge]:
    raw_edges = args.get("edges") or []
    if not isinstance(raw_edges, (list, tuple)):
        raise ToolCallError(DIAGRAM, "edges must be a list")
    edges = []
    for raw in raw_edges:
        if not isinstance(raw, Mapping):
            continue
        source, target = _ident(raw.get("from")), _ident(raw.get("to"))
        if source is None or target is None:
            logger.warning("%s: dropping malformed edge %r", DIAGRAM, raw)
            continue
        label = raw.get("label")
        edges.append(DiagramEdge(source=source, target=target, label=label if isinstance(label, str) else None))
    return edges


def parse_tool_call(raw: Mapping[str, Any]) -> ToolCall:
    """Validate ``{"name", "args", "id"}`` into its typed variant."""

    if not isinstance(raw, Mapping):
        raise ToolCallError(None, "tool call must be a mapping")
    name = raw.get("name")
    args = raw.get("args") or {}
    if not isinstance(args, Mapping):
        raise ToolCallError(name, "args must be a mapping")
    call_id = _ident(raw.get("id"))

    if name == MOODBOARD:
        return MoodboardCall(
            image_descriptions=_strings(name, args, "image_descriptions"),
            layout_style=_choice(name, args, "layout_style", LAYOUT_STYLES),
            call_id=call_id,
        )
    if name == BRAINSTORM:
        color = args.get("color")
        return BrainstormCall(
            ideas=_strings(name, args, "ideas"),
            color=color if isinstance(color, str) else None,
            call_id=call_id,
        )
    if name == DIAGRAM:
        return DiagramCall(nodes=_parse_nodes(args), edges=_parse_edges(args), call_id=call_id)
    raise ToolCallError(name, "unknown tool")


def parse_tool_calls(raws: Sequence[Mapping[str, Any]]) -> Tuple[List[ToolCall], List[ToolCallError]]:
    """Parse every call, collecting errors instead of stopping at the first one."""

    calls: List[ToolCall] = []
    errors: List[ToolCallError] = []
    for raw in raws or []:
        try:
            calls.append(parse_tool_call(raw))
        except ToolCallError as exc:
            logger.warning("Skipping tool call: %s", exc)
            errors.append(exc)
    return calls, errors


__all__ = [
    "MOODBOARD",
    "BRAINSTORM",
    "DIAGRAM",
    "TOOL_DECLARATIONS",
    "ASSISTANT_INSTRUCTION",
    "ToolCallError",
    "MoodboardCall",
    "BrainstormCall",
    "DiagramCall",
    "ToolCall",
    "parse_tool_call",
    "parse_tool_calls",
]
