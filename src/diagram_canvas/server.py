"""
Diagram Canvas MCP Server — drive an interactive diagram editor via Model
Context Protocol.

Exposes 4 tools that let a client place shapes with pointer gestures,
connect them, undo edits, and generate entity-relationship diagrams:

Tools:
  1. session  — lifecycle: create, list, delete, set_family, set_tool, undo, clear
  2. gesture  — pointer input: press, move, release, leave, double_press
  3. erd      — generation: from_spec (text format), from_model (entity/relationship lists)
  4. inspect  — read-only: shapes, hit_test, endpoints, info, preview
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any

from mcp.server.fastmcp import FastMCP

from diagram_canvas.editor import EditorSession
from diagram_canvas.erd import (
    ErdAttribute,
    ErdEntity,
    ErdRelationship,
    parse_attribute_list,
)
from diagram_canvas.geometry import center, connection_endpoints
from diagram_canvas.hit_test import hit_test
from diagram_canvas.tools import FAMILIES
from diagram_canvas.validation import (
    PK_KEYS,
    ValidationError,
    validate_action,
    validate_entity_dict,
    validate_family,
    validate_int,
    validate_list,
    validate_non_empty_string,
    validate_point,
    validate_relationship_dict,
    validate_string,
    _ERD_ACTIONS,
    _GESTURE_ACTIONS,
    _INSPECT_ACTIONS,
    _SESSION_ACTIONS,
)

# ---------------------------------------------------------------------------
# Logging — keep routine FastMCP INFO messages off stderr.
# ---------------------------------------------------------------------------
logging.getLogger("mcp.server").setLevel(logging.WARNING)
logger = logging.getLogger("diagram-canvas")

# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------
mcp = FastMCP(
    "diagram-canvas",
    instructions=(
        "MCP server for an interactive diagram canvas (ER, use case, class,\n"
        "object, sequence, activity diagrams).\n\n"
        "=== 4 TOOLS — use the 'action' parameter to pick the operation ===\n\n"
        "1. session(action, ...) — create, list, delete, set_family,\n"
        "   set_tool, undo, clear.\n"
        "2. gesture(action, ...) — press, move, release, leave,\n"
        "   double_press. Coordinates are canvas-local.\n"
        "3. erd(action, ...) — from_spec, from_model: replace the canvas\n"
        "   with an automatically laid-out ER diagram.\n"
        "4. inspect(action, ...) — shapes, hit_test, endpoints, info, preview.\n\n"
        "=== RULES ===\n"
        "- Pick a tool with session(action='set_tool') before gestures.\n"
        "- Drag-to-create tools need press then release; instant tools\n"
        "  (actor, lifeline, start, end, text) only need press.\n"
        "- The text tool and label edits need a non-empty 'label'.\n"
        "- Connector tool: press on the source shape, then on the target.\n"
        "- Every change can be undone with session(action='undo').\n"
        "- Read the resource canvas://tools for the tool palette per family.\n"
    ),
)

# In-memory session registry: name -> EditorSession
# Guarded by _sessions_lock for thread-safety.
_sessions: dict[str, EditorSession] = {}
_sessions_lock = threading.Lock()


# ===================================================================
# RESOURCES
# ===================================================================

@mcp.resource("canvas://tools")
def tool_catalog() -> str:
    """Return the tool palette of every diagram family."""
    lines: list[str] = []
    for spec in FAMILIES.values():
        lines.append(f"{spec.family.value} ({spec.label}):")
        for t in spec.tools:
            lines.append(f"  {t.id}: {t.label}")
        if spec.hint:
            lines.append(f"  hint: {spec.hint}")
    return "Available tools per diagram family:\n" + "\n".join(lines)


# ===================================================================
# TOOL 1: session — lifecycle
# ===================================================================

@mcp.tool()
def session(
    action: str,
    name: str = "",
    family: str = "er",
    tool: str = "",
) -> str:
    """Editing session lifecycle and commands.

    Actions:
      create     — Create a new empty canvas. Params: name, family.
      list       — List all sessions. No params needed.
      delete     — Drop a session. Params: name.
      set_family — Switch diagram family (tool resets to select). Params: name, family.
      set_tool   — Activate a tool of the current family. Params: name, tool.
      undo       — Undo the last change. Params: name.
      clear      — Remove every shape (undoable). Params: name.

    Args:
        action: One of the actions listed above.
        name: Session name.
        family: Diagram family — er, usecase, class, object, sequence, activity.
        tool: Tool id for set_tool (see resource canvas://tools).

    Returns:
        Result string or JSON depending on action.
    """
    try:
        action = validate_action(action, "session", _SESSION_ACTIONS)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "list":
        result: list[dict[str, Any]] = []
        for n, s in _sessions.items():
            result.append({
                "name": n,
                "family": s.family.value,
                "tool": s.tool,
                "shapes": len(s.store),
                "history": len(s.history),
            })
        return json.dumps(result, indent=2)

    try:
        name = validate_non_empty_string(name, "name")
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "create":
        try:
            fam = validate_family(family)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        with _sessions_lock:
            _sessions[name] = EditorSession(family=fam)
        logger.info("Session '%s' created (%s)", name, fam.value)
        return f"Session '{name}' created ({fam.value})."

    if action == "delete":
        with _sessions_lock:
            removed = _sessions.pop(name, None)
        if removed is None:
            return f"Error: session '{name}' not found."
        logger.info("Session '%s' deleted", name)
        return f"Session '{name}' deleted."

    s = _sessions.get(name)
    if not s:
        return f"Error: session '{name}' not found."

    if action == "set_family":
        try:
            fam = validate_family(family)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        s.set_family(fam)
        return json.dumps({"family": fam.value, "tool": s.tool})

    elif action == "set_tool":
        try:
            tool = validate_non_empty_string(tool, "tool")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        if not s.set_tool(tool):
            choices = ", ".join(FAMILIES[s.family].tool_ids)
            return f"Error: tool '{tool}' is not available for {s.family.value} diagrams. Use: {choices}."
        return json.dumps({"family": s.family.value, "tool": s.tool})

    elif action == "undo":
        restored = s.undo()
        return json.dumps({"undone": restored, "shapes": len(s.store)})

    elif action == "clear":
        cleared = s.clear()
        return json.dumps({"cleared": cleared, "shapes": len(s.store)})

    else:
        return f"Error: unknown session action '{action}'."


# ===================================================================
# TOOL 2: gesture — pointer input
# ===================================================================

@mcp.tool()
def gesture(
    action: str,
    session_name: str = "",
    x: float = 0,
    y: float = 0,
    label: str = "",
) -> str:
    """Feed one pointer gesture to the session's active tool.

    Actions:
      press        — Pointer down. Params: x, y, label (text tool only).
      move         — Pointer moved (drags the selected shape/group). Params: x, y.
      release      — Pointer up (finishes drag-to-create). Params: x, y.
      leave        — Pointer left the canvas; aborts any drag.
      double_press — Edit the label of the box shape under the point.
                     Params: x, y, label.

    Args:
        action: One of the actions listed above.
        session_name: Target session name.
        x: Canvas-local x coordinate.
        y: Canvas-local y coordinate.
        label: Label text for the text tool and double_press.

    Returns:
        JSON summary: shape count, highlighted id, pending connection source.
    """
    try:
        action = validate_action(action, "gesture", _GESTURE_ACTIONS)
        validate_non_empty_string(session_name, "session_name")
        px, py = validate_point(x, y)
        label = validate_string(label, "label")
    except ValidationError as exc:
        return f"Error: {exc.message}"
    s = _sessions.get(session_name)
    if not s:
        return f"Error: session '{session_name}' not found."

    result: dict[str, Any] = {}
    if action == "press":
        s.press(px, py, label or None)
    elif action == "move":
        s.move(px, py)
    elif action == "release":
        s.release(px, py)
    elif action == "leave":
        s.leave()
    elif action == "double_press":
        result["labeled"] = s.double_press(px, py, label or None)

    result.update({
        "tool": s.tool,
        "shapes": len(s.store),
        "highlighted_id": s.highlighted_id,
        "pending_source_id": s.pending_source_id,
        "dragging": s.is_dragging,
    })
    return json.dumps(result)


# ===================================================================
# TOOL 3: erd — automatic ER diagrams
# ===================================================================

@mcp.tool()
def erd(
    action: str,
    session_name: str = "",
    spec_text: str = "",
    entities: list[dict[str, Any]] | None = None,
    relationships: list[dict[str, Any]] | None = None,
) -> str:
    """Replace the canvas with an automatically laid-out ER diagram.

    Actions:
      from_spec  — Parse the ERD text format. Params: spec_text, e.g.
                   "Entity Student\\n*id\\nname\\nRelationship Enrolls Student.N Course.M".
                   Text without any entity clears the canvas.
      from_model — Use structured lists. Params: entities (list of
                   {name, attributes: [{name, is_pk?|isPk?}] or "*id, name"}),
                   relationships (list of {name, e1, card1, e2, card2}).

    Args:
        action: One of: from_spec, from_model.
        session_name: Target session name.
        spec_text: ERD text for from_spec.
        entities: Entity dicts for from_model.
        relationships: Relationship dicts for from_model.

    Returns:
        JSON summary of the generated shapes per kind.
    """
    try:
        action = validate_action(action, "erd", _ERD_ACTIONS)
        validate_non_empty_string(session_name, "session_name")
    except ValidationError as exc:
        return f"Error: {exc.message}"
    s = _sessions.get(session_name)
    if not s:
        return f"Error: session '{session_name}' not found."

    if action == "from_spec":
        try:
            validate_non_empty_string(spec_text, "spec_text")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        s.generate_erd_from_spec(spec_text)

    else:
        ents = entities or []
        rels = relationships or []
        try:
            validate_list(ents, "entities", min_length=1)
            validate_list(rels, "relationships")
            for i, e in enumerate(ents):
                validate_entity_dict(e, i)
            for i, r in enumerate(rels):
                validate_relationship_dict(r, i)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        if not s.generate_erd(
            [_entity_from_dict(e) for e in ents],
            [_relationship_from_dict(r) for r in rels],
        ):
            return "Error: no entities found; canvas left unchanged."

    return json.dumps({"generated": True, "kinds": _count_kinds(s)})


# ===================================================================
# TOOL 4: inspect — read-only
# ===================================================================

@mcp.tool()
def inspect(
    action: str,
    session_name: str = "",
    x: float = 0,
    y: float = 0,
    from_id: int = 0,
    to_id: int = 0,
) -> str:
    """Read-only inspection of a session.

    Actions:
      shapes    — Render model: all shapes in paint order plus the
                  highlighted id. Bound connectors are brought up to date.
      hit_test  — Top-most shape under a point. Params: x, y.
      endpoints — Border-to-border connector endpoints between two shapes.
                  Params: from_id, to_id.
      info      — Session summary (family, tool, counts per kind).
      preview   — Shape the in-progress drag-to-create gesture would produce.

    Args:
        action: One of: shapes, hit_test, endpoints, info, preview.
        session_name: Target session name.
        x: X coordinate for hit_test.
        y: Y coordinate for hit_test.
        from_id: Source shape id for endpoints.
        to_id: Target shape id for endpoints.

    Returns:
        JSON data.
    """
    try:
        action = validate_action(action, "inspect", _INSPECT_ACTIONS)
        validate_non_empty_string(session_name, "session_name")
    except ValidationError as exc:
        return f"Error: {exc.message}"
    s = _sessions.get(session_name)
    if not s:
        return f"Error: session '{session_name}' not found."

    if action == "shapes":
        return json.dumps(s.render().to_dict(), indent=2)

    elif action == "hit_test":
        try:
            px, py = validate_point(x, y)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        shape = hit_test(s.store.shapes, px, py)
        return json.dumps(shape.to_dict() if shape else None)

    elif action == "endpoints":
        try:
            validate_int(from_id, "from_id", min_val=1)
            validate_int(to_id, "to_id", min_val=1)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        source = s.store.get(from_id)
        target = s.store.get(to_id)
        if source is None or target is None:
            missing = from_id if source is None else to_id
            return f"Error: shape {missing} not found."
        start, end = connection_endpoints(source, target)
        c1, c2 = center(source), center(target)
        return json.dumps({
            "start": {"x": start.x, "y": start.y},
            "end": {"x": end.x, "y": end.y},
            "from_center": {"x": c1.x, "y": c1.y},
            "to_center": {"x": c2.x, "y": c2.y},
        })

    elif action == "info":
        return json.dumps({
            "family": s.family.value,
            "tool": s.tool,
            "shapes": len(s.store),
            "next_id": s.store.next_id_value,
            "history": len(s.history),
            "kinds": _count_kinds(s),
        }, indent=2)

    elif action == "preview":
        shape = s.preview()
        return json.dumps(shape.to_dict() if shape else None)

    else:
        return f"Error: unknown inspect action '{action}'."


# ===================================================================
# Internal helpers
# ===================================================================

def _entity_from_dict(e: dict[str, Any]) -> ErdEntity:
    attrs = e.get("attributes", [])
    if isinstance(attrs, str):
        parsed = parse_attribute_list(attrs)
    else:
        parsed = [
            ErdAttribute(name=a["name"].strip(), is_pk=_attribute_is_pk(a))
            for a in attrs
        ]
    return ErdEntity(name=e["name"].strip(), attributes=parsed)


def _attribute_is_pk(a: dict[str, Any]) -> bool:
    return any(a.get(key, False) for key in PK_KEYS)


def _relationship_from_dict(r: dict[str, Any]) -> ErdRelationship:
    return ErdRelationship(
        name=r["name"].strip(),
        e1=r["e1"].strip(),
        card1=r.get("card1", "1"),
        e2=r["e2"].strip(),
        card2=r.get("card2", "1"),
    )


def _count_kinds(s: EditorSession) -> dict[str, int]:
    counts: dict[str, int] = {}
    for shape in s.store:
        counts[shape.kind.value] = counts.get(shape.kind.value, 0) + 1
    return counts


# ===================================================================
# Entry point
# ===================================================================

def main() -> None:
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
