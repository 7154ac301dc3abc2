"""
Entity-relationship diagram generation.

Turns an entity/relationship description into a fully positioned diagram:
- A forgiving line-oriented parser for the ERD text format
- Grid placement of entities
- Radial placement of attribute ovals around their entity
- Relationship diamonds at the midpoint of the entities they join,
  with cardinality labels halfway along each spoke

Text format::

    Entity Student
    *id
    name
    Relationship Enrolls Student.N Course.M

Keywords are case-insensitive, blank lines are ignored, a leading ``*`` on
an attribute marks it as primary key. A ``Relationship`` line closes the
current entity; lines matching nothing are skipped.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Optional

from diagram_canvas.geometry import (
    LabelConfig,
    TextMeasurer,
    center,
    connection_endpoints,
    fit_label,
)
from diagram_canvas.models import Shape, ShapeKind, ShapeStore

logger = logging.getLogger("diagram-canvas.erd")

_IDENT = r"[A-Za-z_]\w*"
_CARD = r"[\w.*]+"
_ENTITY_RE = re.compile(rf"^Entity\s+({_IDENT})", re.IGNORECASE)
_RELATIONSHIP_RE = re.compile(
    rf"^Relationship\s+({_IDENT})\s+({_IDENT})\.({_CARD})\s+({_IDENT})\.({_CARD})",
    re.IGNORECASE,
)
_ATTRIBUTE_RE = re.compile(rf"^[-*]?\s*({_IDENT})")


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------

@dataclass
class ErdAttribute:
    name: str
    is_pk: bool = False


@dataclass
class ErdEntity:
    name: str
    attributes: list[ErdAttribute] = field(default_factory=list)


@dataclass
class ErdRelationship:
    """A named relationship; cardinalities are opaque strings ("1", "N", "0..1")."""
    name: str
    e1: str
    card1: str
    e2: str
    card2: str


@dataclass
class ErdModel:
    entities: list[ErdEntity] = field(default_factory=list)
    relationships: list[ErdRelationship] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_erd_spec(text: str) -> ErdModel:
    """Parse the ERD text format. Malformed lines are ignored."""
    model = ErdModel()
    current: Optional[ErdEntity] = None

    for line in text.splitlines():
        trimmed = line.strip()
        if not trimmed:
            continue

        m = _ENTITY_RE.match(trimmed)
        if m:
            current = ErdEntity(name=m.group(1))
            model.entities.append(current)
            continue

        m = _RELATIONSHIP_RE.match(trimmed)
        if m:
            model.relationships.append(ErdRelationship(
                name=m.group(1),
                e1=m.group(2),
                card1=m.group(3),
                e2=m.group(4),
                card2=m.group(5),
            ))
            current = None
            continue

        if current is None:
            continue
        m = _ATTRIBUTE_RE.match(trimmed)
        if not m:
            continue
        current.attributes.append(
            ErdAttribute(name=m.group(1), is_pk=trimmed.startswith("*"))
        )

    return model


def parse_attribute_list(raw: str) -> list[ErdAttribute]:
    """Parse a comma-separated attribute list such as ``"*id, name, email"``."""
    attrs: list[ErdAttribute] = []
    for part in raw.split(","):
        item = part.strip()
        if not item:
            continue
        is_pk = item.startswith("*")
        name = item[1:].strip() if is_pk else item
        if not name:
            continue
        attrs.append(ErdAttribute(name=name, is_pk=is_pk))
    return attrs


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

@dataclass
class ErdLayoutConfig:
    """Geometry constants for the automatic ERD layout."""
    margin_x: float = 140
    margin_y: float = 80
    column_width: float = 320
    row_gap: float = 140
    max_columns: int = 3
    # Attribute halo is wider than tall to reduce vertical collisions
    attr_radius_x: float = 150
    attr_radius_y: float = 90
    entity_width: float = 160
    entity_height: float = 40
    oval_width: float = 150
    oval_height: float = 40
    diamond_width: float = 80
    diamond_height: float = 50
    card_offset_x: float = 4
    card_offset_y: float = -4

    @property
    def row_height(self) -> float:
        return self.attr_radius_y * 2 + self.row_gap


def entity_group_id(name: str) -> str:
    return f"entity:{name}"


def grid_columns(entity_count: int, max_columns: int = 3) -> int:
    return min(max_columns, max(1, math.ceil(math.sqrt(entity_count or 1))))


def attribute_angle(index: int, count: int) -> float:
    """Angle of the *index*-th attribute oval, starting at the top."""
    if count == 1:
        return -math.pi / 2
    return -math.pi / 2 + index * (math.pi * 2) / count


def layout_erd(
    store: ShapeStore,
    entities: list[ErdEntity],
    relationships: list[ErdRelationship],
    measure: Optional[TextMeasurer] = None,
    config: Optional[ErdLayoutConfig] = None,
    label_config: Optional[LabelConfig] = None,
) -> list[Shape]:
    """Lay out entities, attributes and relationships and append them to
    *store*. Returns the created shapes in creation order.

    The caller is responsible for clearing the store first; ids come from
    the store's counter.
    """
    cfg = config or ErdLayoutConfig()
    created: list[Shape] = []
    columns = grid_columns(len(entities), cfg.max_columns)
    rect_by_name: dict[str, Shape] = {}

    def _add(shape: Shape) -> Shape:
        store.add(shape)
        created.append(shape)
        return shape

    def _connect(source: Shape, target: Shape, group_id: Optional[str]) -> Shape:
        start, end = connection_endpoints(source, target)
        return _add(Shape.segment(
            ShapeKind.LINE, start.x, start.y, end.x, end.y,
            group_id=group_id, from_id=source.id, to_id=target.id,
        ))

    # ----- entities and their attribute halos -----
    for index, entity in enumerate(entities):
        group_id = entity_group_id(entity.name)
        col = index % columns
        row = index // columns
        rect = Shape.box(
            ShapeKind.RECT,
            cfg.margin_x + col * cfg.column_width,
            cfg.margin_y + row * cfg.row_height,
            cfg.entity_width,
            cfg.entity_height,
            group_id=group_id,
        )
        fit_label(rect, entity.name, measure, label_config)
        _add(rect)
        rect_by_name[entity.name] = rect

        entity_center = center(rect)
        count = len(entity.attributes)
        for i, attr in enumerate(entity.attributes):
            angle = attribute_angle(i, count)
            cx = entity_center.x + math.cos(angle) * cfg.attr_radius_x
            cy = entity_center.y + math.sin(angle) * cfg.attr_radius_y
            oval = Shape.box(
                ShapeKind.OVAL,
                cx - cfg.oval_width / 2,
                cy - cfg.oval_height / 2,
                cfg.oval_width,
                cfg.oval_height,
                group_id=group_id,
                is_pk=attr.is_pk,
            )
            text = f"{attr.name} (PK)" if attr.is_pk else attr.name
            fit_label(oval, text, measure, label_config)
            _add(oval)
            _connect(rect, oval, group_id)

    # ----- relationships -----
    for rel in relationships:
        r1 = rect_by_name.get(rel.e1)
        r2 = rect_by_name.get(rel.e2)
        if r1 is None or r2 is None:
            logger.debug(
                "Skipping relationship '%s': unknown entity in %s/%s",
                rel.name, rel.e1, rel.e2,
            )
            continue

        p1 = center(r1)
        p2 = center(r2)
        mx = (p1.x + p2.x) / 2
        my = (p1.y + p2.y) / 2
        diamond = Shape.box(
            ShapeKind.DIAMOND,
            mx - cfg.diamond_width / 2,
            my - cfg.diamond_height / 2,
            cfg.diamond_width,
            cfg.diamond_height,
        )
        fit_label(diamond, rel.name, measure, label_config)
        _add(diamond)
        _connect(diamond, r1, None)
        _connect(diamond, r2, None)

        cd = center(diamond)
        for p, card in ((p1, rel.card1), (p2, rel.card2)):
            _add(Shape.point(
                ShapeKind.TEXT,
                (cd.x + p.x) / 2 + cfg.card_offset_x,
                (cd.y + p.y) / 2 + cfg.card_offset_y,
                text=card,
            ))

    return created
