"""Glue between the AI assistant service and the canvas.

The service itself is external; this module validates what it returns, turns
tool calls into layout plans and writes the results into the document store.
All service calls run on the active :class:`~paperboard.session.Session` so
results arriving after a project switch are dropped.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Protocol, Sequence

import numpy as np

from .geometry import Vec
from .layout import (
    LayoutOptions,
    add_image,
    apply_plan,
    graph_placement,
    grid_placement,
    radial_placement,
)
from .records import Record
from .session import Session, SessionCancelled
from .store import DocumentStore, viewport_page_center
from .tools import BrainstormCall, DiagramCall, MoodboardCall, ToolCall, parse_tool_calls

logger = logging.getLogger(__name__)

_GENERATE_PREFIX_RE = re.compile(r"^(/gen|generate)", re.IGNORECASE)

UPDATING_BOARD_TEXT = "🎨 Updating your board..."
CHAT_ERROR_TEXT = "Sorry, I encountered an error processing your request."
MIX_OFFSET = 50.0


class ElementType(str, Enum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    NOTE = "NOTE"


@dataclass
class CanvasElement:
    id: str
    type: ElementType
    content: str
    prompt: Optional[str] = None


@dataclass
class ChatMessage:
    role: str
    text: str
    image: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))


@dataclass
class ChatResponse:
    text: str
    tool_calls: List[Mapping[str, Any]] = field(default_factory=list)


@dataclass
class MixResult:
    type: ElementType
    content: str
    prompt_used: str


class AssistantService(Protocol):
    async def generate_image(self, prompt: str) -> str: ...

    async def send_message(
        self,
        history: Sequence[ChatMessage],
        message: str,
        image: Optional[str] = None,
        context: Optional[str] = None,
    ) -> ChatResponse: ...

    async def mix_elements(self, elements: Sequence[CanvasElement]) -> MixResult: ...


@dataclass
class ToolOutcome:
    name: str
    ok: bool
    created: List[str] = field(default_factory=list)
    error: Optional[str] = None


def selection_context(store: DocumentStore) -> str:
    """Join the texts of the selected shapes, one per line."""

    texts = []
    for shape in store.get_selected_shapes():
        props = shape.get("props") or {}
        text = props.get("text") or props.get("name") or ""
        if isinstance(text, str) and text:
            texts.append(text)
    return "\n".join(texts)


def canvas_elements(store: DocumentStore, shapes: Sequence[Record]) -> List[CanvasElement]:
    """Describe *shapes* for mixing; shapes without content are left out."""

    elements = []
    for shape in shapes:
        props = shape.get("props") or {}
        shape_type = shape.get("type")
        content = ""
        element_type = ElementType.TEXT
        if shape_type in ("text", "geo", "note"):
            content = props.get("text") or ""
            element_type = ElementType.NOTE if shape_type == "note" else ElementType.TEXT
        elif shape_type == "image":
            element_type = ElementType.IMAGE
            asset = store.get_record(props.get("assetId")) if props.get("assetId") else None
            if asset is not None:
                content = (asset.get("props") or {}).get("src") or ""
        if content:
            elements.append(CanvasElement(id=shape["id"], type=element_type, content=content))
    return elements


class CanvasAssistant:
    def __init__(
        self,
        store: DocumentStore,
        service: AssistantService,
        *,
        session: Optional[Session] = None,
        options: Optional[LayoutOptions] = None,
        notify: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.store = store
        self.service = service
        self.session = session or Session()
        self.options = options or LayoutOptions()
        self.rng: np.random.Generator = self.options.rng()
        self.history: List[ChatMessage] = []
        self._notify = notify

    def notify(self, message: str) -> None:
        if self._notify is not None:
            self._notify(message)
        else:
            logger.warning("%s", message)

    async def _call(self, awaitable, failure: str):
        """Run a service call on the session; ``None`` on failure or cancellation."""

        try:
            return await self.session.run(awaitable)
        except SessionCancelled:
            logger.info("Dropping result for closed session %s", self.session.project_id)
            return None
        except Exception as exc:
            logger.error("%s: %s", failure, exc)
            self.notify(failure)
            return None

    # -- chat ----------------------------------------------------------

    async def send_chat(self, text: str, image: Optional[str] = None) -> Optional[ChatResponse]:
        """Send a chat turn; text replies and tool calls are both applied."""

        if not text.strip() and not image:
            return None

        if _GENERATE_PREFIX_RE.match(text):
            self.history.append(ChatMessage(role="user", text=text))
            prompt = _GENERATE_PREFIX_RE.sub("", text, count=1).strip()
            await self.generate_image(prompt)
            return None

        previous = list(self.history)
        self.history.append(ChatMessage(role="user", text=text, image=image))
        context = selection_context(self.store) or None
        response = await self._call(
            self.service.send_message(previous, text, image, context), "Chat request failed."
        )
        if response is None:
            if not self.session.closed:
                self.history.append(ChatMessage(role="model", text=CHAT_ERROR_TEXT))
            return None

        self.history.append(ChatMessage(role="model", text=response.text))
        if response.tool_calls:
            self.history.append(ChatMessage(role="model", text=UPDATING_BOARD_TEXT))
            await self.run_tool_calls(response.tool_calls)
        return response

    # -- tool calls ----------------------------------------------------

    async def run_tool_calls(self, raw_calls: Sequence[Mapping[str, Any]]) -> List[ToolOutcome]:
        """Dispatch every well-formed call; malformed ones are reported and skipped."""

        calls, errors = parse_tool_calls(raw_calls)
        outcomes = [ToolOutcome(name=str(err.name), ok=False, error=str(err)) for err in errors]
        center = viewport_page_center(self.store)
        for call in calls:
            outcomes.append(await self._dispatch(call, center))
        return outcomes

    async def _dispatch(self, call: ToolCall, center: Vec) -> ToolOutcome:
        try:
            if isinstance(call, MoodboardCall):
                created = await self.generate_moodboard(call, center)
            elif isinstance(call, BrainstormCall):
                created = self.brainstorm(call, center)
            elif isinstance(call, DiagramCall):
                created = self.diagram(call, center)
            else:  # pragma: no cover - parse_tool_call only yields the variants above
                raise TypeError(f"unsupported call {call!r}")
        except SessionCancelled:
            return ToolOutcome(name=call.name, ok=False, error="session closed")
        return ToolOutcome(name=call.name, ok=True, created=created)

    async def generate_moodboard(self, call: MoodboardCall, center: Vec) -> List[str]:
        """Request every image at once; each one is placed as soon as it arrives."""

        cells = grid_placement(call.image_descriptions, center, self.options, self.rng)

        async def _one(cell) -> Optional[str]:
            data_url = await self._call(
                self.service.generate_image(cell.prompt), f"Image generation failed for {cell.prompt!r}."
            )
            if data_url is None or self.session.closed:
                return None
            return add_image(
                self.store,
                data_url,
                prompt=cell.prompt,
                position=cell.position,
                options=self.options,
                rotation=cell.rotation,
            )

        results = await asyncio.gather(*(_one(cell) for cell in cells))
        return [shape_id for shape_id in results if shape_id is not None]

    def brainstorm(self, call: BrainstormCall, center: Vec) -> List[str]:
        self.session.token.raise_if_cancelled()
        plan = radial_placement(call.ideas, center, call.color, self.options, self.rng)
        return apply_plan(self.store, plan)

    def diagram(self, call: DiagramCall, center: Vec) -> List[str]:
        self.session.token.raise_if_cancelled()
        plan = graph_placement(call.nodes, call.edges, center, self.options)
        return apply_plan(self.store, plan)

    # -- direct actions ------------------------------------------------

    async def generate_image(self, prompt: str) -> Optional[str]:
        """Generate one image and place it in the middle of the viewport."""

        data_url = await self._call(self.service.generate_image(prompt), "Image generation failed.")
        if data_url is None or self.session.closed:
            return None
        return add_image(self.store, data_url, prompt=prompt, options=self.options, rng=self.rng)

    async def mix_selection(self) -> Optional[str]:
        """Combine the selected shapes through the service and place the result."""

        shapes = self.store.get_selected_shapes()
        if not shapes:
            return None
        elements = canvas_elements(self.store, shapes)
        if not elements:
            self.notify("Select shapes with content.")
            return None

        result = await self._call(self.service.mix_elements(elements), "Mix failed.")
        if result is None or self.session.closed:
            return None

        if result.type == ElementType.IMAGE:
            return add_image(self.store, result.content, prompt=result.prompt_used, options=self.options, rng=self.rng)

        center = viewport_page_center(self.store)
        (shape_id,) = self.store.create_shapes(
            [
                {
                    "type": "note" if result.type == ElementType.NOTE else "text",
                    "x": center.x + MIX_OFFSET,
                    "y": center.y + MIX_OFFSET,
                    "props": {"text": result.content},
                }
            ]
        )
        return shape_id


__all__ = [
    "ElementType",
    "CanvasElement",
    "ChatMessage",
    "ChatResponse",
    "MixResult",
    "AssistantService",
    "ToolOutcome",
    "selection_context",
    "canvas_elements",
    "CanvasAssistant",
]
