"""
Core shape model for the diagram canvas.

Provides the typed shape record shared by every component (geometry,
hit-testing, drag handling, ERD layout) and the ordered store that owns
shapes and the id counter for one editing session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ShapeKind(Enum):
    RECT = "rect"
    OVAL = "oval"
    DIAMOND = "diamond"
    LINE = "line"
    ARROW = "arrow"
    ACTOR = "actor"
    BOUNDARY = "boundary"
    CLASS = "class"
    LIFELINE = "lifeline"
    START = "start"
    END = "end"
    DECISION = "decision"
    TEXT = "text"


class DiagramFamily(Enum):
    """Diagram families the editor offers a tool palette for."""
    ER = "er"
    USECASE = "usecase"
    CLASS = "class"
    OBJECT = "object"
    SEQUENCE = "sequence"
    ACTIVITY = "activity"


# Kinds positioned by (x, y, w, h)
BOX_KINDS = frozenset({
    ShapeKind.RECT,
    ShapeKind.BOUNDARY,
    ShapeKind.CLASS,
    ShapeKind.OVAL,
    ShapeKind.DIAMOND,
    ShapeKind.DECISION,
})

# Kinds positioned by an (x, y) anchor
POINT_KINDS = frozenset({
    ShapeKind.ACTOR,
    ShapeKind.LIFELINE,
    ShapeKind.START,
    ShapeKind.END,
    ShapeKind.TEXT,
})

# Kinds positioned by (x1, y1, x2, y2)
SEGMENT_KINDS = frozenset({ShapeKind.LINE, ShapeKind.ARROW})


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class Point:
    """A 2-D coordinate."""
    x: float
    y: float


@dataclass
class Bounds:
    """Axis-aligned bounding box."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def cx(self) -> float:
        return self.x + self.width / 2

    @property
    def cy(self) -> float:
        return self.y + self.height / 2

    def contains_point(self, px: float, py: float, margin: float = 0) -> bool:
        """Check if a point is inside this bounding box (edges included)."""
        return (
            self.x - margin <= px <= self.right + margin
            and self.y - margin <= py <= self.bottom + margin
        )


@dataclass
class Shape:
    """A single shape on the canvas.

    Which positional fields are set depends on ``kind``: box kinds use
    ``x, y, w, h``, point kinds use the ``x, y`` anchor (lifelines also
    carry ``length``) and segment kinds use ``x1, y1, x2, y2``.

    ``id`` is ``None`` only for preview shapes that are never stored.
    Connectors bound with ``from_id``/``to_id`` have derived endpoints
    that are recomputed from the referenced shapes on every render pass.
    """
    kind: ShapeKind
    id: Optional[int] = None
    x: Optional[float] = None
    y: Optional[float] = None
    w: Optional[float] = None
    h: Optional[float] = None
    x1: Optional[float] = None
    y1: Optional[float] = None
    x2: Optional[float] = None
    y2: Optional[float] = None
    length: Optional[float] = None
    label: Optional[str] = None
    text: Optional[str] = None
    is_pk: bool = False
    group_id: Optional[str] = None
    from_id: Optional[int] = None
    to_id: Optional[int] = None

    # ----- constructors -----

    @classmethod
    def box(
        cls,
        kind: ShapeKind,
        x: float,
        y: float,
        w: float,
        h: float,
        label: Optional[str] = None,
        **extra: Any,
    ) -> Shape:
        """Build a box shape, normalizing a negative extent."""
        return cls(
            kind=kind,
            x=min(x, x + w),
            y=min(y, y + h),
            w=abs(w),
            h=abs(h),
            label=label,
            **extra,
        )

    @classmethod
    def point(cls, kind: ShapeKind, x: float, y: float, **extra: Any) -> Shape:
        return cls(kind=kind, x=x, y=y, **extra)

    @classmethod
    def segment(
        cls,
        kind: ShapeKind,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        **extra: Any,
    ) -> Shape:
        return cls(kind=kind, x1=x1, y1=y1, x2=x2, y2=y2, **extra)

    # ----- classification -----

    @property
    def is_box(self) -> bool:
        return self.kind in BOX_KINDS

    @property
    def is_point(self) -> bool:
        return self.kind in POINT_KINDS

    @property
    def is_segment(self) -> bool:
        return self.kind in SEGMENT_KINDS

    @property
    def is_connector_bound(self) -> bool:
        """Whether endpoint coordinates are derived from two live shapes."""
        return self.is_segment and self.from_id is not None and self.to_id is not None

    @property
    def bounds(self) -> Optional[Bounds]:
        if not self.is_box:
            return None
        return Bounds(self.x, self.y, self.w, self.h)

    def to_dict(self) -> dict[str, Any]:
        """Render read model: kind plus every field that is set."""
        out: dict[str, Any] = {"id": self.id, "kind": self.kind.value}
        for name in ("x", "y", "w", "h", "x1", "y1", "x2", "y2", "length",
                     "label", "text", "group_id", "from_id", "to_id"):
            val = getattr(self, name)
            if val is not None:
                out[name] = val
        if self.is_pk:
            out["is_pk"] = True
        return out


@dataclass
class ShapeStore:
    """Ordered shape collection plus the id allocator.

    Creation order is paint order; hit-testing walks it backwards.
    ``clear()`` keeps the counter, so ids are never reused; only
    ``replace()`` (undo) moves it, back to a snapshotted value.
    """
    shapes: list[Shape] = field(default_factory=list)
    _next_id: int = field(default=1, repr=False)

    @property
    def next_id_value(self) -> int:
        """The id the next created shape will receive."""
        return self._next_id

    def next_id(self) -> int:
        """Allocate a fresh shape id."""
        sid = self._next_id
        self._next_id += 1
        return sid

    def add(self, shape: Shape) -> int:
        """Append *shape*, assigning an id if it has none. Returns the id."""
        if shape.id is None:
            shape.id = self.next_id()
        self.shapes.append(shape)
        return shape.id

    def get(self, shape_id: Optional[int]) -> Optional[Shape]:
        if shape_id is None:
            return None
        for shape in self.shapes:
            if shape.id == shape_id:
                return shape
        return None

    def index(self) -> dict[int, Shape]:
        """Map id -> shape for resolving weak references."""
        return {s.id: s for s in self.shapes if s.id is not None}

    def group_members(self, group_id: str) -> list[Shape]:
        return [s for s in self.shapes if s.group_id == group_id]

    def clear(self) -> None:
        self.shapes = []

    def replace(self, shapes: list[Shape], next_id: int) -> None:
        """Swap in a whole new shape list and counter (undo restore)."""
        self.shapes = list(shapes)
        self._next_id = next_id

    def __len__(self) -> int:
        return len(self.shapes)

    def __iter__(self) -> Iterator[Shape]:
        return iter(self.shapes)


@dataclass
class RenderModel:
    """What a render pass reads: shapes in paint order plus the highlight."""
    shapes: list[Shape]
    highlighted_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "highlighted_id": self.highlighted_id,
            "shapes": [s.to_dict() for s in self.shapes],
        }
