"""
Editing session: turns pointer gestures into shape mutations.

One ``EditorSession`` owns everything that changes while a diagram is being
edited: the shape store, the undo history, the active diagram family and
tool, the highlighted shape, the pending connection source, and the state of
an in-progress drag. Gestures arrive already in canvas coordinates.

Every mutating operation pushes a history snapshot *before* it mutates, and
operations that turn out to be no-ops push nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from diagram_canvas.erd import (
    ErdEntity,
    ErdLayoutConfig,
    ErdRelationship,
    layout_erd,
    parse_erd_spec,
)
from diagram_canvas.geometry import (
    LabelConfig,
    TextMeasurer,
    connection_endpoints,
    fit_label,
    resolve_connectors,
)
from diagram_canvas.history import MAX_HISTORY, History
from diagram_canvas.hit_test import hit_test
from diagram_canvas.models import (
    DiagramFamily,
    Point,
    RenderModel,
    Shape,
    ShapeKind,
    ShapeStore,
)
from diagram_canvas.tools import (
    ARROW_FAMILIES,
    CONNECTOR,
    DRAG_BOX_TOOLS,
    DRAG_SEGMENT_TOOLS,
    INSTANT_TOOLS,
    SELECT,
    default_tool,
    tools_for,
)

logger = logging.getLogger("diagram-canvas.editor")

LabelPrompt = Callable[[str], Optional[str]]


@dataclass
class EditorConfig:
    """Tunables for an editing session."""
    history_capacity: int = MAX_HISTORY
    lifeline_length: float = 400
    min_segment_drag: float = 5  # shorter segment drags count as clicks
    label: LabelConfig = field(default_factory=LabelConfig)
    erd: ErdLayoutConfig = field(default_factory=ErdLayoutConfig)


@dataclass
class _Anchor:
    """Position fields of a shape captured when a drag starts."""
    x: Optional[float] = None
    y: Optional[float] = None
    x1: Optional[float] = None
    y1: Optional[float] = None
    x2: Optional[float] = None
    y2: Optional[float] = None

    @classmethod
    def of(cls, shape: Shape) -> _Anchor:
        return cls(shape.x, shape.y, shape.x1, shape.y1, shape.x2, shape.y2)

    @property
    def has_anchor(self) -> bool:
        return self.x is not None and self.y is not None

    @property
    def has_segment(self) -> bool:
        return None not in (self.x1, self.y1, self.x2, self.y2)


@dataclass
class _Drag:
    """An active select-tool drag."""
    origin: Point
    members: list[tuple[Shape, _Anchor]]
    grouped: bool


class EditorSession:
    """Single-threaded editing state for one canvas."""

    def __init__(
        self,
        family: DiagramFamily = DiagramFamily.ER,
        config: Optional[EditorConfig] = None,
        measure: Optional[TextMeasurer] = None,
        prompt: Optional[LabelPrompt] = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.measure = measure
        self.prompt = prompt
        self.store = ShapeStore()
        self.history = History(self.store, self.config.history_capacity)
        self._family = family
        self._tool = default_tool(family)
        self.highlighted_id: Optional[int] = None
        self._pending_source_id: Optional[int] = None
        self._drag: Optional[_Drag] = None
        self._draw_origin: Optional[Point] = None
        self._pointer: Optional[Point] = None

    # ----- read-only state -----

    @property
    def family(self) -> DiagramFamily:
        return self._family

    @property
    def tool(self) -> str:
        return self._tool

    @property
    def pending_source_id(self) -> Optional[int]:
        return self._pending_source_id

    @property
    def is_dragging(self) -> bool:
        return self._drag is not None

    @property
    def is_drawing(self) -> bool:
        return self._draw_origin is not None

    # ----- family / tool selection -----

    def set_family(self, family: DiagramFamily) -> None:
        """Switch diagram family; the tool falls back to the family default."""
        self._family = family
        self._tool = default_tool(family)
        self._reset_transient()

    def set_tool(self, tool: str) -> bool:
        """Activate *tool*. Tools not offered by the current family are rejected."""
        if tool not in tools_for(self._family):
            logger.warning("Tool '%s' is not available for %s diagrams", tool, self._family.value)
            return False
        self._tool = tool
        self._reset_transient()
        return True

    # ----- gestures -----

    def press(self, x: float, y: float, label: Optional[str] = None) -> None:
        tool = self._tool
        self._pointer = Point(x, y)

        if tool == SELECT:
            self._press_select(x, y)
        elif tool == CONNECTOR:
            self._press_connector(x, y)
        elif tool in INSTANT_TOOLS:
            self._place_instant(INSTANT_TOOLS[tool], x, y, label)
        elif tool in DRAG_BOX_TOOLS or tool in DRAG_SEGMENT_TOOLS:
            self._draw_origin = Point(x, y)

    def move(self, x: float, y: float) -> None:
        self._pointer = Point(x, y)
        drag = self._drag
        if drag is None:
            return
        dx = x - drag.origin.x
        dy = y - drag.origin.y
        for shape, start in drag.members:
            if drag.grouped:
                if start.has_anchor:
                    shape.x = start.x + dx
                    shape.y = start.y + dy
                if start.has_segment:
                    shape.x1 = start.x1 + dx
                    shape.y1 = start.y1 + dy
                    shape.x2 = start.x2 + dx
                    shape.y2 = start.y2 + dy
            elif (shape.is_box or shape.is_point) and start.has_anchor:
                shape.x = start.x + dx
                shape.y = start.y + dy

    def release(self, x: float, y: float) -> None:
        self._pointer = Point(x, y)
        if self._drag is not None:
            self._drag = None
            return
        origin = self._draw_origin
        if origin is None:
            return
        self._draw_origin = None
        self._create_from_drag(origin.x, origin.y, x, y)

    def leave(self) -> None:
        """Pointer left the canvas: drop any drag without creating anything."""
        self._drag = None
        self._draw_origin = None
        self._pointer = None

    def double_press(self, x: float, y: float, label: Optional[str] = None) -> bool:
        """Edit the label of the box shape under the point.

        Returns True if a label was applied.
        """
        shape = hit_test(self.store.shapes, x, y)
        if shape is None or not shape.is_box:
            return False
        text = self._request_label(label, shape.label or "")
        if not text:
            return False
        self.history.push()
        fit_label(shape, text, self.measure, self.config.label)
        return True

    def preview(self) -> Optional[Shape]:
        """Unstored shape the current drag-to-create gesture would produce."""
        origin = self._draw_origin
        pointer = self._pointer
        if origin is None or pointer is None:
            return None
        if self._tool in DRAG_BOX_TOOLS:
            return Shape.box(
                DRAG_BOX_TOOLS[self._tool],
                origin.x, origin.y, pointer.x - origin.x, pointer.y - origin.y,
            )
        if self._tool in DRAG_SEGMENT_TOOLS:
            return Shape.segment(
                DRAG_SEGMENT_TOOLS[self._tool], origin.x, origin.y, pointer.x, pointer.y,
            )
        return None

    # ----- commands -----

    def undo(self) -> bool:
        if not self.history.undo():
            return False
        self._reset_transient()
        return True

    def clear(self) -> bool:
        """Discard every shape. Ids keep counting from where they were."""
        if not self.store.shapes:
            return False
        self.history.push()
        self.store.clear()
        self._reset_transient()
        return True

    def generate_erd(
        self,
        entities: list[ErdEntity],
        relationships: list[ErdRelationship],
    ) -> bool:
        """Replace the whole diagram with an auto-laid-out ERD built from
        structured input. Nothing happens without at least one entity.
        """
        if not entities:
            logger.debug("ERD generation skipped: no entities")
            return False
        self._replace_with_erd(entities, relationships)
        return True

    def generate_erd_from_spec(self, text: str) -> bool:
        """Replace the whole diagram with the ERD described by *text*.

        Only blank text is refused; any other text replaces the canvas,
        even when it yields no entity.
        """
        if not text or not text.strip():
            return False
        model = parse_erd_spec(text)
        if not model.entities:
            logger.debug("ERD text yielded no entities; canvas cleared")
        self._replace_with_erd(model.entities, model.relationships)
        return True

    def render(self) -> RenderModel:
        """Bring bound connectors up to date and return what to paint."""
        resolve_connectors(self.store)
        return RenderModel(shapes=list(self.store.shapes), highlighted_id=self.highlighted_id)

    # ----- internals -----

    def _replace_with_erd(
        self,
        entities: list[ErdEntity],
        relationships: list[ErdRelationship],
    ) -> None:
        self.history.push()
        self.store.clear()
        self._reset_transient()
        layout_erd(
            self.store,
            entities,
            relationships,
            self.measure,
            self.config.erd,
            self.config.label,
        )

    def _reset_transient(self) -> None:
        self.highlighted_id = None
        self._pending_source_id = None
        self._drag = None
        self._draw_origin = None

    def _request_label(self, label: Optional[str], initial: str) -> Optional[str]:
        if label is None and self.prompt is not None:
            label = self.prompt(initial)
        return label or None

    def _press_select(self, x: float, y: float) -> None:
        target = hit_test(self.store.shapes, x, y)
        if target is None:
            self._drag = None
            self.highlighted_id = None
            return

        self.history.push()
        self.highlighted_id = target.id
        if target.group_id is not None:
            members = self.store.group_members(target.group_id)
            grouped = True
        else:
            members = [target]
            grouped = False
        self._drag = _Drag(
            origin=Point(x, y),
            members=[(s, _Anchor.of(s)) for s in members],
            grouped=grouped,
        )

    def _press_connector(self, x: float, y: float) -> None:
        target = hit_test(self.store.shapes, x, y)
        source = self.store.get(self._pending_source_id)

        if target is not None and source is None:
            self._pending_source_id = target.id
            self.highlighted_id = target.id
            return

        if target is not None and target.id != source.id:
            self.history.push()
            kind = ShapeKind.ARROW if self._family in ARROW_FAMILIES else ShapeKind.LINE
            start, end = connection_endpoints(source, target)
            self.store.add(Shape.segment(
                kind, start.x, start.y, end.x, end.y,
                from_id=source.id, to_id=target.id,
            ))

        self._pending_source_id = None
        self.highlighted_id = None

    def _place_instant(self, kind: ShapeKind, x: float, y: float, label: Optional[str]) -> None:
        if kind == ShapeKind.TEXT:
            text = self._request_label(label, "")
            if not text:
                return
            self.history.push()
            self.store.add(Shape.point(kind, x, y, text=text))
            return

        self.history.push()
        if kind == ShapeKind.LIFELINE:
            self.store.add(Shape.point(kind, x, y, length=self.config.lifeline_length))
        else:
            self.store.add(Shape.point(kind, x, y))

    def _create_from_drag(self, x1: float, y1: float, x2: float, y2: float) -> None:
        tool = self._tool

        if tool in DRAG_BOX_TOOLS:
            self.history.push()
            self.store.add(Shape.box(DRAG_BOX_TOOLS[tool], x1, y1, x2 - x1, y2 - y1))
            return

        if tool not in DRAG_SEGMENT_TOOLS:
            return
        limit = self.config.min_segment_drag
        if abs(x2 - x1) < limit and abs(y2 - y1) < limit:
            return

        source = hit_test(self.store.shapes, x1, y1)
        target = hit_test(self.store.shapes, x2, y2)
        self.history.push()
        segment = Shape.segment(DRAG_SEGMENT_TOOLS[tool], x1, y1, x2, y2)
        if source is not None and target is not None and source.id != target.id:
            segment.from_id = source.id
            segment.to_id = target.id
        self.store.add(segment)
