"""
Tool palettes per diagram family.

Describes which tools each diagram family offers and which shape kind each
creation tool produces. The editor dispatches gestures on these groupings.
"""

from __future__ import annotations

from dataclasses import dataclass

from diagram_canvas.models import DiagramFamily, ShapeKind


@dataclass(frozen=True)
class ToolSpec:
    id: str
    label: str


@dataclass(frozen=True)
class FamilySpec:
    family: DiagramFamily
    label: str
    tools: tuple[ToolSpec, ...]
    hint: str = ""

    @property
    def tool_ids(self) -> tuple[str, ...]:
        return tuple(t.id for t in self.tools)


SELECT = "select"
CONNECTOR = "connector"

# Tools that create a box from a press/release bounding box
DRAG_BOX_TOOLS: dict[str, ShapeKind] = {
    "entity": ShapeKind.RECT,
    "object": ShapeKind.RECT,
    "activity": ShapeKind.RECT,
    "boundary": ShapeKind.BOUNDARY,
    "class": ShapeKind.CLASS,
    "attribute": ShapeKind.OVAL,
    "usecase": ShapeKind.OVAL,
    "relationship": ShapeKind.DIAMOND,
    "decision": ShapeKind.DIAMOND,
}

# Tools that create a segment from press to release
DRAG_SEGMENT_TOOLS: dict[str, ShapeKind] = {
    "line": ShapeKind.LINE,
    "association": ShapeKind.LINE,
    "aggregation": ShapeKind.LINE,
    "message": ShapeKind.ARROW,
}

# Tools that place a shape at the press point
INSTANT_TOOLS: dict[str, ShapeKind] = {
    "actor": ShapeKind.ACTOR,
    "lifeline": ShapeKind.LIFELINE,
    "start": ShapeKind.START,
    "end": ShapeKind.END,
    "text": ShapeKind.TEXT,
}

# Families whose explicit connections are directed
ARROW_FAMILIES = frozenset({DiagramFamily.ACTIVITY, DiagramFamily.SEQUENCE})


def _t(tool_id: str, label: str) -> ToolSpec:
    return ToolSpec(tool_id, label)


FAMILIES: dict[DiagramFamily, FamilySpec] = {
    DiagramFamily.ER: FamilySpec(
        DiagramFamily.ER,
        "ER Diagram",
        (
            _t(SELECT, "Select / Move"),
            _t("entity", "Entity (Rectangle)"),
            _t("attribute", "Attribute (Oval)"),
            _t("relationship", "Relationship (Diamond)"),
            _t("line", "Line"),
            _t(CONNECTOR, "Connect Shapes"),
            _t("text", "Text"),
        ),
        "Use rectangles for entities, ovals for attributes, diamonds for "
        "relationships. Add cardinalities as text near lines.",
    ),
    DiagramFamily.USECASE: FamilySpec(
        DiagramFamily.USECASE,
        "Use Case",
        (
            _t(SELECT, "Select / Move"),
            _t("actor", "Actor"),
            _t("usecase", "Use Case (Oval)"),
            _t("boundary", "System Boundary"),
            _t("line", "Association Line"),
            _t(CONNECTOR, "Connect Shapes"),
            _t("text", "Text"),
        ),
        "Place actors outside the boundary, use ovals for use cases. "
        "Connect actors to use cases with simple lines.",
    ),
    DiagramFamily.CLASS: FamilySpec(
        DiagramFamily.CLASS,
        "Class",
        (
            _t(SELECT, "Select / Move"),
            _t("class", "Class Box"),
            _t("aggregation", "Aggregation Line"),
            _t("association", "Association Line"),
            _t(CONNECTOR, "Connect Shapes"),
            _t("text", "Text"),
        ),
        "Class boxes are split into name, attributes and methods "
        "compartments. Add multiplicities as text.",
    ),
    DiagramFamily.OBJECT: FamilySpec(
        DiagramFamily.OBJECT,
        "Object",
        (
            _t(SELECT, "Select / Move"),
            _t("object", "Object Box"),
            _t("line", "Link Line"),
            _t(CONNECTOR, "Connect Shapes"),
            _t("text", "Text"),
        ),
        "Use boxes with 'ClassName:ObjectName' and concrete values. "
        "Links between objects are plain lines.",
    ),
    DiagramFamily.SEQUENCE: FamilySpec(
        DiagramFamily.SEQUENCE,
        "Sequence",
        (
            _t(SELECT, "Select / Move"),
            _t("lifeline", "Lifeline"),
            _t("message", "Message Arrow"),
            _t(CONNECTOR, "Connect Shapes"),
            _t("text", "Text"),
        ),
        "Arrange lifelines horizontally. Messages run left to right, "
        "time flows top to bottom.",
    ),
    DiagramFamily.ACTIVITY: FamilySpec(
        DiagramFamily.ACTIVITY,
        "Activity",
        (
            _t(SELECT, "Select / Move"),
            _t("start", "Start Node"),
            _t("end", "End Node"),
            _t("activity", "Activity"),
            _t("decision", "Decision"),
            _t("line", "Flow Arrow"),
            _t(CONNECTOR, "Connect Shapes"),
            _t("text", "Text"),
        ),
        "Begin with a filled circle, then activities and decisions. "
        "End with a double circle.",
    ),
}


def tools_for(family: DiagramFamily) -> tuple[str, ...]:
    """Tool ids offered for *family*, in palette order."""
    return FAMILIES[family].tool_ids


def default_tool(family: DiagramFamily) -> str:
    return FAMILIES[family].tools[0].id
