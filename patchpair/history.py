"""Stroke history with a movable cursor (linear undo/redo)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, NamedTuple, Optional, Tuple

from .logs import get_logger

logger = get_logger('history')

Point = Tuple[float, float]


@dataclass(frozen=True)
class Stroke:
    color: str
    path: Tuple[Point, ...]
    brush_width: float
    # Placement width the path was captured at (see rasterize.rasterize)
    units: Optional[float] = None


class HistoryState(NamedTuple):
    can_undo: bool
    can_redo: bool


class StrokeHistory:
    """Ordered strokes plus a cursor; strokes at positions <= idx are active.

    Committing while the cursor is below the top discards the redo branch.
    delete_color() edits the sequence directly and cannot be undone.
    """

    def __init__(self):
        self._strokes: List[Stroke] = []
        self._idx = -1
        self._pending = None  # (color, brush_width, units, [points])
        self._listeners: List[Callable[[HistoryState], None]] = []

    # ---- queries ----
    @property
    def idx(self):
        return self._idx

    @property
    def strokes(self):
        return tuple(self._strokes)

    def __len__(self):
        return len(self._strokes)

    @property
    def can_undo(self):
        return self._idx > -1

    @property
    def can_redo(self):
        return self._idx < len(self._strokes) - 1

    def state(self) -> HistoryState:
        return HistoryState(self.can_undo, self.can_redo)

    @property
    def in_progress(self):
        return self._pending is not None

    def pending_stroke(self) -> Optional[Stroke]:
        """The in-progress path as a Stroke (for live display), or None."""
        if self._pending is None:
            return None
        color, width, units, points = self._pending
        return Stroke(color, tuple(points), width, units)

    def active_strokes(self, color=None) -> List[Stroke]:
        active = self._strokes[:self._idx + 1]
        if color is None:
            return list(active)
        return [s for s in active if s.color == color]

    def active_colors(self) -> List[str]:
        """Colors with at least one active stroke, in order of first appearance."""
        seen = []
        for s in self._strokes[:self._idx + 1]:
            if s.color not in seen:
                seen.append(s.color)
        return seen

    # ---- observers ----
    def subscribe(self, callback):
        self._listeners.append(callback)
        return callback

    def unsubscribe(self, callback):
        try:
            self._listeners.remove(callback)
        except ValueError:
            pass

    def _notify(self):
        st = self.state()
        for cb in list(self._listeners):
            cb(st)

    # ---- in-progress stroke ----
    def begin_stroke(self, color, brush_width, start, units=None):
        if brush_width <= 0:
            raise ValueError(f"brush width must be positive, got {brush_width}")
        self._pending = (color, float(brush_width), units, [(float(start[0]), float(start[1]))])

    def extend_stroke(self, point):
        if self._pending is None:
            return
        self._pending[3].append((float(point[0]), float(point[1])))

    def cancel_stroke(self):
        self._pending = None

    def commit_stroke(self) -> Optional[Stroke]:
        """Append the in-progress path if it has at least one segment."""
        pending, self._pending = self._pending, None
        if pending is None:
            return None
        color, width, units, points = pending
        if len(points) < 2:
            return None
        stroke = Stroke(color, tuple(points), width, units)
        del self._strokes[self._idx + 1:]
        self._strokes.append(stroke)
        self._idx = len(self._strokes) - 1
        self._notify()
        return stroke

    # ---- cursor ----
    def undo(self):
        if self._idx <= -1:
            return False
        self._idx -= 1
        self._notify()
        return True

    def redo(self):
        if self._idx >= len(self._strokes) - 1:
            return False
        self._idx += 1
        self._notify()
        return True

    def clear(self):
        self._strokes = []
        self._idx = -1
        self._pending = None
        self._notify()

    def delete_color(self, color):
        """Drop every stroke of `color`, active or not. Returns the count removed."""
        before = len(self._strokes)
        self._strokes = [s for s in self._strokes if s.color != color]
        removed = before - len(self._strokes)
        self._idx = min(self._idx, len(self._strokes) - 1)
        if self._pending is not None and self._pending[0] == color:
            self._pending = None
        if removed:
            logger.info(f"Deleted {removed} stroke(s) of {color}; idx={self._idx}")
        self._notify()
        return removed
