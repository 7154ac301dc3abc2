"""
Connector geometry for canvas shapes.

Pure functions computing where a shape sits and where a ray from its center
leaves its silhouette, so that connector endpoints land exactly on shape
borders:
- Axis-aligned boxes: parametric line/box intersection
- Diamonds: taxicab-normalized boundary
- Ovals: ellipse equation
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional

from diagram_canvas.models import Point, Shape, ShapeKind, ShapeStore


TextMeasurer = Callable[[str], float]

_RECT_LIKE = frozenset({ShapeKind.RECT, ShapeKind.BOUNDARY, ShapeKind.CLASS})
_DIAMOND_LIKE = frozenset({ShapeKind.DIAMOND, ShapeKind.DECISION})


# ---------------------------------------------------------------------------
# Centers and border points
# ---------------------------------------------------------------------------

def center(shape: Shape) -> Point:
    """Return the visual center of *shape*."""
    if shape.is_box:
        return Point(shape.x + shape.w / 2, shape.y + shape.h / 2)
    if shape.kind == ShapeKind.ACTOR:
        # Middle of the stick figure's body
        return Point(shape.x, shape.y + 30)
    if shape.kind == ShapeKind.LIFELINE:
        # Middle of the head box
        return Point(shape.x, shape.y + 15)
    if shape.kind in (ShapeKind.START, ShapeKind.END):
        return Point(shape.x, shape.y)
    if shape.kind == ShapeKind.TEXT:
        return Point(shape.x + 50, shape.y + 10)
    # Segment kinds
    return Point((shape.x1 + shape.x2) / 2, (shape.y1 + shape.y2) / 2)


def border_point(shape: Shape, toward: Point) -> Point:
    """Return where the ray from the center of *shape* toward *toward*
    exits the shape's silhouette.

    Shapes without a supported silhouette (point and segment kinds)
    return their center.
    """
    c = center(shape)
    dx = toward.x - c.x
    dy = toward.y - c.y
    if dx == 0 and dy == 0:
        return Point(c.x, c.y)

    if shape.kind in _RECT_LIKE:
        hw = shape.w / 2
        hh = shape.h / 2
        tx = hw / abs(dx) if dx else math.inf
        ty = hh / abs(dy) if dy else math.inf
        t = min(tx, ty)
        return Point(c.x + dx * t, c.y + dy * t)

    if shape.kind in _DIAMOND_LIKE:
        # |x - cx| / hw + |y - cy| / hh = 1
        hw = shape.w / 2
        hh = shape.h / 2
        denom = abs(dx) / (hw or 1) + abs(dy) / (hh or 1)
        if denom == 0:
            return Point(c.x, c.y)
        t = 1 / denom
        return Point(c.x + dx * t, c.y + dy * t)

    if shape.kind == ShapeKind.OVAL:
        rx = shape.w / 2
        ry = shape.h / 2
        denom = (dx * dx) / (rx * rx or 1) + (dy * dy) / (ry * ry or 1)
        if denom == 0:
            return Point(c.x, c.y)
        t = 1 / math.sqrt(denom)
        return Point(c.x + dx * t, c.y + dy * t)

    return Point(c.x, c.y)


def connection_endpoints(source: Shape, target: Shape) -> tuple[Point, Point]:
    """Return ``(start, end)`` of a connector drawn between two shapes."""
    start = border_point(source, center(target))
    end = border_point(target, center(source))
    return start, end


def resolve_connectors(store: ShapeStore) -> int:
    """Recompute endpoints of every connector bound to two live shapes.

    Connectors whose referenced shapes are missing keep their last
    coordinates. Returns the number of connectors updated.
    """
    by_id = store.index()
    count = 0
    for shape in store.shapes:
        if not shape.is_connector_bound:
            continue
        source = by_id.get(shape.from_id)
        target = by_id.get(shape.to_id)
        if source is None or target is None:
            continue
        start, end = connection_endpoints(source, target)
        shape.x1, shape.y1 = start.x, start.y
        shape.x2, shape.y2 = end.x, end.y
        count += 1
    return count


# ---------------------------------------------------------------------------
# Label sizing
# ---------------------------------------------------------------------------

@dataclass
class LabelConfig:
    """Padding rules used when a box is resized to fit its label."""
    padding_x: float = 24
    padding_y: float = 16
    min_height: float = 40
    min_class_height: float = 90  # room for the three class compartments
    char_width: float = 7.5       # average glyph width at 14px


def estimate_text_width(text: str, config: Optional[LabelConfig] = None) -> float:
    """Rough rendered width of *text* when no real text metrics are available."""
    cfg = config or LabelConfig()
    return len(text) * cfg.char_width


def fit_label(
    shape: Shape,
    text: str,
    measure: Optional[TextMeasurer] = None,
    config: Optional[LabelConfig] = None,
) -> Shape:
    """Set *text* as the label of a box shape and grow the box around its
    previous centroid so the label never overflows.
    """
    cfg = config or LabelConfig()
    width = measure(text) if measure else estimate_text_width(text, cfg)
    base_min = cfg.min_class_height if shape.kind == ShapeKind.CLASS else cfg.min_height
    target_w = width + cfg.padding_x * 2
    target_h = max(base_min, cfg.padding_y * 2)
    cx = shape.x + shape.w / 2
    cy = shape.y + shape.h / 2

    shape.w = target_w
    shape.h = target_h
    shape.x = cx - target_w / 2
    shape.y = cy - target_h / 2
    shape.label = text
    return shape
