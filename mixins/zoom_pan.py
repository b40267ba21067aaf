"""Zoom & pan event handling for the paint canvases.

OffsetZoomPan binds to a Tk canvas whose host keeps a view transform
(scale, offset) and redraws the image itself:

    - Middle mouse button drag pans (the left button paints).
    - Mouse wheel zooms toward the cursor; Ctrl+Wheel is left to the
      caller (brush size).
    - The scale change per wheel notch is additive (scale + delta * k),
      clamped to [min_scale, max_scale].

Usage:
    handler = OffsetZoomPan(
        widget=self.canvas,
        zoom=self.model.zoom,          # (pointer, delta) -> None
        pan=self.model.pan,            # (dx, dy) -> None
        redraw=self._refresh_display,
    )

You can call .detach() to remove bindings if needed.
"""
from __future__ import annotations

from typing import Callable, Tuple
import tkinter as tk

from patchpair.logs import get_logger

logger = get_logger('zoom')

WHEEL_NOTCH = 120  # Windows/macOS delta per notch; X11 Button-4/5 map to +/- this


class OffsetZoomPan:
    """Zoom/pan handler for an offset-based redraw model.

    debug: when True, logs event traces to the PatchPair.zoom logger.
    """
    _SEQUENCES = ('<MouseWheel>', '<Button-4>', '<Button-5>',
                  '<Button-2>', '<B2-Motion>', '<ButtonRelease-2>')

    def __init__(
        self,
        widget: tk.Widget,
        zoom: Callable[[Tuple[float, float], float], None],
        pan: Callable[[float, float], None],
        redraw: Callable[[], None],
        enabled: Callable[[], bool] = lambda: True,
        debug: bool = False,
    ):
        self.widget = widget
        self.zoom = zoom
        self.pan = pan
        self.redraw = redraw
        self.enabled = enabled
        self.debug = bool(debug)
        self._dragging = False
        self._last: Tuple[int, int] | None = None
        self._bind()

    @staticmethod
    def _is_ctrl(event) -> bool:
        return bool(getattr(event, 'state', 0) & 0x4)  # Control mask

    @staticmethod
    def wheel_delta(event) -> int:
        """Signed wheel delta, normalizing X11 Button-4/5 events."""
        try:
            delta = int(getattr(event, 'delta', 0))
        except (TypeError, ValueError):
            delta = 0
        if delta == 0:
            num = getattr(event, 'num', None)
            if num == 4:
                delta = WHEEL_NOTCH
            elif num == 5:
                delta = -WHEEL_NOTCH
        return delta

    def _log(self, line: str):
        if self.debug:
            logger.debug(line)

    def _bind(self):
        self.widget.bind('<MouseWheel>', self._on_wheel, add='+')
        self.widget.bind('<Button-4>', self._on_wheel, add='+')
        self.widget.bind('<Button-5>', self._on_wheel, add='+')
        self.widget.bind('<Button-2>', self._on_pan_start, add='+')
        self.widget.bind('<B2-Motion>', self._on_pan_move, add='+')
        self.widget.bind('<ButtonRelease-2>', self._on_pan_end, add='+')

    def detach(self):
        for seq in self._SEQUENCES:
            try:
                self.widget.unbind(seq)
            except tk.TclError:
                pass

    def _on_wheel(self, event):
        if self._is_ctrl(event) or not self.enabled():
            return
        delta = self.wheel_delta(event)
        if delta == 0:
            return
        pointer = (float(event.x), float(event.y))
        self.zoom(pointer, delta)
        self._log(f"[OffsetZoomPan] Wheel delta={delta} cursor={pointer}")
        self.redraw()
        return 'break'

    def _on_pan_start(self, event):
        if not self.enabled():
            return
        self._dragging = True
        self._last = (int(event.x), int(event.y))
        self._log(f"[OffsetZoomPan] Pan start at {self._last}")
        try:
            self.widget.configure(cursor='fleur')
        except tk.TclError:
            pass
        return 'break'

    def _on_pan_move(self, event):
        if not self._dragging or self._last is None:
            return
        x, y = int(event.x), int(event.y)
        dx = x - self._last[0]
        dy = y - self._last[1]
        self._last = (x, y)
        self.pan(dx, dy)
        self.redraw()
        self._log(f"[OffsetZoomPan] Pan move dx={dx} dy={dy}")
        return 'break'

    def _on_pan_end(self, event=None):
        self._dragging = False
        self._last = None
        try:
            self.widget.configure(cursor='')
        except tk.TclError:
            pass
        self._log("[OffsetZoomPan] Pan end")
        return 'break'

    @property
    def panning(self):
        return self._dragging


__all__ = ['OffsetZoomPan']
