"""Tests for centers, border points and connector endpoints."""

import pytest

from diagram_canvas.geometry import (
    LabelConfig,
    border_point,
    center,
    connection_endpoints,
    estimate_text_width,
    fit_label,
    resolve_connectors,
)
from diagram_canvas.models import Point, Shape, ShapeKind, ShapeStore


def _at(p: Point, x: float, y: float) -> bool:
    return p.x == pytest.approx(x) and p.y == pytest.approx(y)


def _rect(x: float, y: float, w: float, h: float, kind: ShapeKind = ShapeKind.RECT) -> Shape:
    return Shape.box(kind, x, y, w, h)


# ===================================================================
# center
# ===================================================================

class TestCenter:
    def test_box_centroid(self) -> None:
        assert center(_rect(0, 0, 100, 50)) == Point(50, 25)
        assert center(_rect(10, 10, 20, 20, ShapeKind.DIAMOND)) == Point(20, 20)

    def test_actor_body(self) -> None:
        assert center(Shape.point(ShapeKind.ACTOR, 10, 10)) == Point(10, 40)

    def test_lifeline_head(self) -> None:
        assert center(Shape.point(ShapeKind.LIFELINE, 10, 10, length=400)) == Point(10, 25)

    def test_start_end_anchor(self) -> None:
        assert center(Shape.point(ShapeKind.START, 7, 9)) == Point(7, 9)
        assert center(Shape.point(ShapeKind.END, 7, 9)) == Point(7, 9)

    def test_text_label_box(self) -> None:
        assert center(Shape.point(ShapeKind.TEXT, 0, 0, text="x")) == Point(50, 10)

    def test_segment_midpoint(self) -> None:
        assert center(Shape.segment(ShapeKind.LINE, 0, 0, 10, 20)) == Point(5, 10)


# ===================================================================
# border_point
# ===================================================================

class TestBorderPoint:
    def test_rect_horizontal_ray(self) -> None:
        assert _at(border_point(_rect(0, 0, 100, 50), Point(200, 25)), 100, 25)

    def test_rect_vertical_ray(self) -> None:
        assert _at(border_point(_rect(0, 0, 100, 50), Point(50, 200)), 50, 50)

    def test_rect_diagonal_hits_nearest_edge(self) -> None:
        # dx = dy = 100: the bottom edge is reached first
        assert border_point(_rect(0, 0, 100, 50), Point(150, 125)) == Point(75, 50)

    def test_boundary_and_class_use_box_silhouette(self) -> None:
        for kind in (ShapeKind.BOUNDARY, ShapeKind.CLASS):
            assert _at(border_point(_rect(0, 0, 100, 50, kind), Point(-100, 25)), 0, 25)

    def test_diamond_vertex(self) -> None:
        d = _rect(0, 0, 80, 40, ShapeKind.DIAMOND)
        assert _at(border_point(d, Point(140, 20)), 80, 20)

    def test_diamond_edge(self) -> None:
        d = _rect(0, 0, 80, 40, ShapeKind.DIAMOND)
        p = border_point(d, Point(80, 40))
        assert p == Point(60, 30)
        assert abs(p.x - 40) / 40 + abs(p.y - 20) / 20 == pytest.approx(1)

    def test_decision_uses_diamond_silhouette(self) -> None:
        d = _rect(0, 0, 80, 40, ShapeKind.DECISION)
        assert border_point(d, Point(80, 40)) == Point(60, 30)

    def test_oval_vertical_ray(self) -> None:
        o = _rect(0, 0, 100, 50, ShapeKind.OVAL)
        p = border_point(o, Point(50, 200))
        assert p.x == pytest.approx(50)
        assert p.y == pytest.approx(50)

    def test_oval_point_on_ellipse(self) -> None:
        o = _rect(0, 0, 100, 50, ShapeKind.OVAL)
        p = border_point(o, Point(170, 140))
        norm = ((p.x - 50) / 50) ** 2 + ((p.y - 25) / 25) ** 2
        assert norm == pytest.approx(1)

    def test_degenerate_toward_center(self) -> None:
        for s in (
            _rect(0, 0, 100, 50),
            _rect(0, 0, 100, 50, ShapeKind.OVAL),
            _rect(0, 0, 100, 50, ShapeKind.DIAMOND),
            Shape.point(ShapeKind.ACTOR, 5, 5),
        ):
            assert border_point(s, center(s)) == center(s)

    def test_point_kinds_fall_back_to_center(self) -> None:
        actor = Shape.point(ShapeKind.ACTOR, 0, 0)
        assert border_point(actor, Point(500, 500)) == Point(0, 30)


# ===================================================================
# connection_endpoints / resolve_connectors
# ===================================================================

def test_connection_endpoints_box_to_oval() -> None:
    box = _rect(0, 0, 100, 50)
    oval = _rect(300, 0, 100, 50, ShapeKind.OVAL)
    start, end = connection_endpoints(box, oval)

    assert _at(start, 100, 25)
    assert _at(end, 300, 25)
    c1, c2 = center(box), center(oval)
    assert c1.x < start.x < c2.x
    assert c1.x < end.x < c2.x


def test_connection_endpoints_diagonal_on_perimeters() -> None:
    box = _rect(0, 0, 100, 50)
    oval = _rect(300, 200, 120, 60, ShapeKind.OVAL)
    start, end = connection_endpoints(box, oval)

    on_vertical_edge = start.x == pytest.approx(100) and 0 <= start.y <= 50
    on_horizontal_edge = start.y == pytest.approx(50) and 0 <= start.x <= 100
    assert on_vertical_edge or on_horizontal_edge
    norm = ((end.x - 360) / 60) ** 2 + ((end.y - 230) / 30) ** 2
    assert norm == pytest.approx(1)
    assert 50 < start.x < end.x < 360
    assert 25 < start.y < end.y < 230


def test_resolve_connectors_follows_moved_shape() -> None:
    store = ShapeStore()
    a = _rect(0, 0, 100, 50)
    b = _rect(300, 0, 100, 50)
    store.add(a)
    store.add(b)
    line = Shape.segment(ShapeKind.LINE, 0, 0, 0, 0, from_id=a.id, to_id=b.id)
    store.add(line)

    assert resolve_connectors(store) == 1
    assert _at(Point(line.x1, line.y1), 100, 25)
    assert _at(Point(line.x2, line.y2), 300, 25)

    b.y = 200
    resolve_connectors(store)
    assert _at(Point(line.x2, line.y2), 312.5, 200)


def test_resolve_connectors_keeps_coordinates_of_dangling_connector() -> None:
    store = ShapeStore()
    a = _rect(0, 0, 100, 50)
    store.add(a)
    line = Shape.segment(ShapeKind.LINE, 1, 2, 3, 4, from_id=a.id, to_id=999)
    store.add(line)
    free = Shape.segment(ShapeKind.ARROW, 5, 6, 7, 8)
    store.add(free)

    assert resolve_connectors(store) == 0
    assert (line.x1, line.y1, line.x2, line.y2) == (1, 2, 3, 4)
    assert (free.x1, free.y1, free.x2, free.y2) == (5, 6, 7, 8)


# ===================================================================
# Label sizing
# ===================================================================

def test_fit_label_grows_from_center() -> None:
    s = _rect(100, 100, 20, 20)
    fit_label(s, "Customer", measure=lambda text: 100)
    assert s.label == "Customer"
    assert (s.w, s.h) == (148, 40)
    assert center(s) == Point(110, 110)


def test_fit_label_class_is_taller() -> None:
    s = _rect(0, 0, 200, 200, ShapeKind.CLASS)
    fit_label(s, "Order", measure=lambda text: 52)
    assert (s.w, s.h) == (100, 90)
    assert center(s) == Point(100, 100)


def test_fit_label_default_measure() -> None:
    s = _rect(0, 0, 10, 10)
    fit_label(s, "abcd")
    assert s.w == estimate_text_width("abcd") + 48
    assert estimate_text_width("abcd") == 30


def test_fit_label_custom_config() -> None:
    cfg = LabelConfig(padding_x=10, padding_y=30, min_height=20)
    s = _rect(0, 0, 10, 10)
    fit_label(s, "x", measure=lambda text: 5, config=cfg)
    assert (s.w, s.h) == (25, 60)
