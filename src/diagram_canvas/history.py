"""
Bounded undo history for a shape store.

Every mutating operation pushes a full copy of the store (shapes and id
counter) before it mutates; undo pops the latest copy and swaps it back in.
"""

from __future__ import annotations

import dataclasses
from collections import deque
from dataclasses import dataclass

from diagram_canvas.models import Shape, ShapeStore


MAX_HISTORY = 50


@dataclass(frozen=True)
class HistorySnapshot:
    """Immutable copy of the editable state at one point in time."""
    shapes: tuple[Shape, ...]
    next_id: int


class History:
    """Snapshot stack bound to one store; the oldest entry is dropped
    once more than ``capacity`` snapshots are held.
    """

    def __init__(self, store: ShapeStore, capacity: int = MAX_HISTORY) -> None:
        self._store = store
        self._stack: deque[HistorySnapshot] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._stack.maxlen

    def snapshot(self) -> HistorySnapshot:
        return HistorySnapshot(
            shapes=tuple(dataclasses.replace(s) for s in self._store.shapes),
            next_id=self._store.next_id_value,
        )

    def push(self) -> None:
        self._stack.append(self.snapshot())

    def undo(self) -> bool:
        """Restore the latest snapshot. Returns False if there is none."""
        if not self._stack:
            return False
        prev = self._stack.pop()
        self._store.replace([dataclasses.replace(s) for s in prev.shapes], prev.next_id)
        return True

    def clear(self) -> None:
        self._stack.clear()

    def __len__(self) -> int:
        return len(self._stack)
