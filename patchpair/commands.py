"""Narrow command interface between the correction panel and its canvases.

Both canvases share one undo/redo keystroke. It goes to the canvas painted
last; if that canvas cannot move, source is tried, then reference.
"""
from __future__ import annotations

from typing import Optional, Protocol

from .history import HistoryState

SOURCE = 'source'
REFERENCE = 'reference'


class CanvasCommands(Protocol):
    def load_image(self, data, bgr=None, mime=None) -> None: ...
    def reset(self) -> None: ...
    def undo(self) -> bool: ...
    def redo(self) -> bool: ...
    def history_state(self) -> HistoryState: ...


def _route(action, last_touched, source, reference):
    flag = 'can_undo' if action == 'undo' else 'can_redo'
    order = []
    if last_touched == SOURCE:
        order.append(source)
    elif last_touched == REFERENCE:
        order.append(reference)
    order.extend([source, reference])
    for canvas in order:
        if canvas is None:
            continue
        if getattr(canvas.history_state(), flag):
            getattr(canvas, action)()
            return canvas
    return None


def route_undo(last_touched, source, reference) -> Optional[CanvasCommands]:
    """Undo on the last-touched canvas, else either. Returns the canvas used."""
    return _route('undo', last_touched, source, reference)


def route_redo(last_touched, source, reference) -> Optional[CanvasCommands]:
    return _route('redo', last_touched, source, reference)


def combined_state(source, reference) -> HistoryState:
    states = [c.history_state() for c in (source, reference) if c is not None]
    return HistoryState(any(s.can_undo for s in states), any(s.can_redo for s in states))


def replace_source(source, reference, data, bgr=None, mime=None):
    """Swap in a new source image; both canvases start over so no stroke is left unpaired."""
    reference.reset()
    source.reset()
    source.load_image(data, bgr=bgr, mime=mime)
