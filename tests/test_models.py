"""Tests for the shape model and shape store."""

from diagram_canvas.models import (
    Bounds,
    RenderModel,
    Shape,
    ShapeKind,
    ShapeStore,
)


def test_box_normalizes_negative_extent() -> None:
    s = Shape.box(ShapeKind.RECT, 100, 80, -60, -30)
    assert (s.x, s.y, s.w, s.h) == (40, 50, 60, 30)


def test_box_positive_extent_unchanged() -> None:
    s = Shape.box(ShapeKind.OVAL, 10, 20, 30, 40, label="A")
    assert (s.x, s.y, s.w, s.h) == (10, 20, 30, 40)
    assert s.label == "A"


def test_kind_classification() -> None:
    assert Shape.box(ShapeKind.DECISION, 0, 0, 10, 10).is_box
    assert Shape.point(ShapeKind.ACTOR, 0, 0).is_point
    seg = Shape.segment(ShapeKind.ARROW, 0, 0, 10, 10)
    assert seg.is_segment
    assert not seg.is_connector_bound
    seg.from_id, seg.to_id = 1, 2
    assert seg.is_connector_bound


def test_bounds_only_for_boxes() -> None:
    assert Shape.box(ShapeKind.RECT, 0, 0, 10, 20).bounds == Bounds(0, 0, 10, 20)
    assert Shape.point(ShapeKind.START, 5, 5).bounds is None


def test_to_dict_omits_unset_fields() -> None:
    s = Shape.point(ShapeKind.TEXT, 1, 2, text="N")
    s.id = 7
    assert s.to_dict() == {"id": 7, "kind": "text", "x": 1, "y": 2, "text": "N"}


def test_to_dict_includes_pk_flag() -> None:
    s = Shape.box(ShapeKind.OVAL, 0, 0, 10, 10, is_pk=True)
    assert s.to_dict()["is_pk"] is True


def test_store_assigns_increasing_ids() -> None:
    store = ShapeStore()
    ids = [store.add(Shape.point(ShapeKind.START, i, 0)) for i in range(5)]
    assert ids == [1, 2, 3, 4, 5]
    assert store.next_id_value == 6


def test_store_ids_not_reused_after_clear() -> None:
    store = ShapeStore()
    store.add(Shape.point(ShapeKind.START, 0, 0))
    store.add(Shape.point(ShapeKind.END, 0, 0))
    store.clear()
    assert len(store) == 0
    assert store.add(Shape.point(ShapeKind.START, 0, 0)) == 3


def test_store_keeps_existing_id() -> None:
    store = ShapeStore()
    s = Shape.point(ShapeKind.START, 0, 0, id=42)
    assert store.add(s) == 42
    assert store.get(42) is s
    assert store.get(None) is None
    assert store.get(1) is None


def test_store_group_members_and_index() -> None:
    store = ShapeStore()
    a = Shape.box(ShapeKind.RECT, 0, 0, 10, 10, group_id="g")
    b = Shape.box(ShapeKind.OVAL, 20, 0, 10, 10, group_id="g")
    c = Shape.box(ShapeKind.RECT, 40, 0, 10, 10)
    for s in (a, b, c):
        store.add(s)
    assert store.group_members("g") == [a, b]
    assert store.index() == {1: a, 2: b, 3: c}
    assert list(store) == [a, b, c]


def test_bounds_geometry() -> None:
    b = Bounds(10, 20, 100, 50)
    assert (b.right, b.bottom, b.cx, b.cy) == (110, 70, 60, 45)
    assert b.contains_point(10, 20)
    assert b.contains_point(110, 70)
    assert not b.contains_point(111, 70)


def test_render_model_to_dict() -> None:
    s = Shape.point(ShapeKind.END, 3, 4, id=1)
    rm = RenderModel(shapes=[s], highlighted_id=1)
    d = rm.to_dict()
    assert d["highlighted_id"] == 1
    assert d["shapes"] == [{"id": 1, "kind": "end", "x": 3, "y": 4}]
