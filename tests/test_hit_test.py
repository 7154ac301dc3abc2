"""Tests for picking shapes under a point."""

from diagram_canvas.hit_test import contains, hit_test
from diagram_canvas.models import Shape, ShapeKind


class TestContains:
    def test_box_kinds_inclusive_edges(self) -> None:
        for kind in (ShapeKind.RECT, ShapeKind.BOUNDARY, ShapeKind.CLASS,
                     ShapeKind.DIAMOND, ShapeKind.DECISION):
            s = Shape.box(kind, 10, 10, 100, 50)
            assert contains(s, 10, 10)
            assert contains(s, 110, 60)
            assert contains(s, 60, 35)
            assert not contains(s, 111, 35)
            assert not contains(s, 60, 9)

    def test_oval_uses_ellipse(self) -> None:
        s = Shape.box(ShapeKind.OVAL, 0, 0, 100, 50)
        assert contains(s, 50, 25)
        assert contains(s, 100, 25)
        # inside the bounding box but outside the ellipse
        assert not contains(s, 2, 2)

    def test_oval_with_zero_radii(self) -> None:
        s = Shape.box(ShapeKind.OVAL, 10, 10, 0, 0)
        assert contains(s, 10, 10)
        assert not contains(s, 12, 10)

    def test_actor_silhouette(self) -> None:
        s = Shape.point(ShapeKind.ACTOR, 100, 100)
        assert contains(s, 100, 80)
        assert contains(s, 100, 165)
        assert contains(s, 120, 170)
        assert not contains(s, 100, 175)
        assert not contains(s, 121, 100)

    def test_lifeline_head_only(self) -> None:
        s = Shape.point(ShapeKind.LIFELINE, 100, 100, length=400)
        assert contains(s, 100, 120)
        assert contains(s, 60, 100)
        # the dashed tail is not pickable
        assert not contains(s, 100, 200)
        assert not contains(s, 100, 99)

    def test_start_end_radius(self) -> None:
        for kind in (ShapeKind.START, ShapeKind.END):
            s = Shape.point(kind, 0, 0)
            assert contains(s, 12, 0)
            assert contains(s, 8, 8)
            assert not contains(s, 9, 9)

    def test_text_fixed_box(self) -> None:
        s = Shape.point(ShapeKind.TEXT, 0, 0, text="a very long label indeed")
        assert contains(s, 99, 19)
        assert not contains(s, 101, 5)
        assert not contains(s, 5, 21)

    def test_connectors_never_hit(self) -> None:
        for kind in (ShapeKind.LINE, ShapeKind.ARROW):
            s = Shape.segment(kind, 0, 0, 100, 100)
            assert not contains(s, 50, 50)
            assert not contains(s, 0, 0)


class TestHitTest:
    def test_topmost_wins(self) -> None:
        first = Shape.box(ShapeKind.RECT, 0, 0, 100, 100, id=1)
        second = Shape.box(ShapeKind.RECT, 50, 50, 100, 100, id=2)
        assert hit_test([first, second], 75, 75) is second
        assert hit_test([first, second], 10, 10) is first

    def test_empty_space(self) -> None:
        shapes = [Shape.box(ShapeKind.RECT, 0, 0, 10, 10, id=1)]
        assert hit_test(shapes, 500, 500) is None
        assert hit_test([], 0, 0) is None

    def test_line_over_shape_does_not_steal_hit(self) -> None:
        rect = Shape.box(ShapeKind.RECT, 0, 0, 100, 100, id=1)
        line = Shape.segment(ShapeKind.LINE, 0, 0, 100, 100, id=2)
        assert hit_test([rect, line], 50, 50) is rect

    def test_lifeline_tail_does_not_steal_hit(self) -> None:
        rect = Shape.box(ShapeKind.RECT, 80, 150, 40, 40, id=1)
        lifeline = Shape.point(ShapeKind.LIFELINE, 100, 100, length=400, id=2)
        assert hit_test([rect, lifeline], 100, 170) is rect
