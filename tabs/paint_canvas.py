"""
Paint canvas: one image with color-tagged freehand strokes.

Left-drag paints with the current color, middle-drag pans, wheel zooms at
the cursor, Ctrl+Wheel changes the brush size. All state lives in a
patchpair.CanvasModel; this frame only turns Tk events into model calls
and renders the model.
"""

import math
import tkinter as tk
from tkinter import ttk

import numpy as np

from mixins.zoom_pan import OffsetZoomPan
from patchpair.canvas_model import CanvasModel
from patchpair.config import DEFAULT_BRUSH_SIZE, MIN_BRUSH_SIZE, MAX_BRUSH_SIZE, OVERLAY_ALPHA
from patchpair.logs import get_logger
from patchpair.palette import color_to_bgr
from patchpair.ui_helpers import composite_strokes, resize_for_display, to_pil
from PIL import ImageTk

logger = get_logger('paint_canvas')

CANVAS_BG = '#111827'


class PaintCanvasFrame(ttk.Frame):
	"""Tk canvas over a CanvasModel; exposes reset/undo/redo for the panel."""
	def __init__(self, master=None, name='canvas', on_paint_start=None, on_history_change=None,
				 on_brush_change=None, placeholder='Load an image'):
		super().__init__(master)
		self.model = CanvasModel(name=name)
		self._on_paint_start = on_paint_start or (lambda: None)
		self._on_history_change = on_history_change or (lambda state: None)
		self._on_brush_change = on_brush_change or (lambda size: None)
		self._placeholder = placeholder

		self.color = None
		self.brush_size = DEFAULT_BRUSH_SIZE
		self._photo = None
		self._painting = False
		self._preview_id = None
		self._last_mouse_pos = None

		self.canvas = tk.Canvas(self, bg=CANVAS_BG, highlightthickness=0, cursor='crosshair')
		self.canvas.pack(fill='both', expand=True)

		self.canvas.bind('<Configure>', self._on_canvas_configure)
		self.canvas.bind('<Button-1>', self._on_paint_start_event)
		self.canvas.bind('<B1-Motion>', self._on_paint_move)
		self.canvas.bind('<ButtonRelease-1>', self._on_paint_end)
		self.canvas.bind('<Motion>', self._on_mouse_move, add='+')
		self.canvas.bind('<Leave>', self._on_mouse_leave)
		self.canvas.bind('<Control-MouseWheel>', self._on_ctrl_mouse_wheel)
		self.canvas.bind('<Control-Button-4>', self._on_ctrl_mouse_wheel)
		self.canvas.bind('<Control-Button-5>', self._on_ctrl_mouse_wheel)
		self._zoom_pan = OffsetZoomPan(
			widget=self.canvas,
			zoom=self.model.zoom,
			pan=self.model.pan,
			redraw=self._refresh_display,
			enabled=lambda: self.model.placement is not None,
		)
		self.model.history.subscribe(self._history_changed)

	# ---- public API ----
	def load_image(self, data, bgr=None, mime=None):
		self.model.load_image(data, bgr=bgr, mime=mime)
		self._sync_container()
		self._refresh_display()

	def set_color(self, color):
		self.color = color
		self._update_preview()

	def set_brush_size(self, size):
		self.brush_size = float(max(MIN_BRUSH_SIZE, min(MAX_BRUSH_SIZE, size)))
		self._update_preview()

	def reset(self):
		self._painting = False
		self.model.reset()
		self._sync_container()
		self._refresh_display()

	def undo(self):
		moved = self.model.undo()
		if moved: self._refresh_display()
		return moved

	def redo(self):
		moved = self.model.redo()
		if moved: self._refresh_display()
		return moved

	def history_state(self):
		return self.model.history_state()

	def delete_color(self, color):
		removed = self.model.delete_color(color)
		self._refresh_display()
		return removed

	def active_colors(self):
		return self.model.active_colors()

	# ---- events ----
	def _history_changed(self, state):
		try: self._on_history_change(state)
		except Exception: logger.exception("history listener failed")

	def _sync_container(self):
		cw = max(1, self.canvas.winfo_width()); ch = max(1, self.canvas.winfo_height())
		self.model.resize_container(cw, ch)

	def _on_canvas_configure(self, event=None):
		self._sync_container()
		self._refresh_display()

	def _on_paint_start_event(self, event):
		if self.model.placement is None or not self.color: return
		self._on_paint_start()
		self.model.begin_stroke(self.color, self.brush_size, (event.x, event.y))
		self._painting = True
		self._last_mouse_pos = (event.x, event.y)

	def _on_paint_move(self, event):
		self._last_mouse_pos = (event.x, event.y)
		if not self._painting:
			self._update_preview(); return
		self.model.extend_stroke((event.x, event.y))
		self._refresh_display()

	def _on_paint_end(self, event=None):
		if not self._painting: return
		self._painting = False
		# A click without drag is discarded by the history
		self.model.commit_stroke()
		self._refresh_display()

	def _on_mouse_move(self, event):
		self._last_mouse_pos = (event.x, event.y)
		self._update_preview()

	def _on_mouse_leave(self, event):
		self._last_mouse_pos = None
		if self._painting:
			self._on_paint_end()
		if self._preview_id is not None:
			self.canvas.delete(self._preview_id)
			self._preview_id = None

	def _on_ctrl_mouse_wheel(self, event):
		delta = OffsetZoomPan.wheel_delta(event)
		if delta == 0: return
		factor = 1.1 if delta > 0 else 0.9
		self.set_brush_size(self.brush_size * factor)
		try: self._on_brush_change(self.brush_size)
		except Exception: logger.exception("brush listener failed")
		return 'break'

	# ---- rendering ----
	def _visible_strokes(self):
		strokes = list(self.model.history.active_strokes())
		pending = self.model.history.pending_stroke() if self._painting else None
		if pending is not None:
			strokes.append(pending)
		return strokes

	def _refresh_display(self):
		self.canvas.delete('all'); self._preview_id = None; self._photo = None
		placement = self.model.placement
		if placement is None:
			cw = max(1, self.canvas.winfo_width()); ch = max(1, self.canvas.winfo_height())
			self.canvas.create_text(cw // 2, ch // 2, text=self._placeholder, fill='#9ca3af')
			return
		t = self.model.transform
		w, h = self.model.native_size
		cw, ch = self.model.container
		# Screen rectangle covered by the whole image
		x0 = placement.x * t.scale + t.offset_x; y0 = placement.y * t.scale + t.offset_y
		disp_w = placement.width * t.scale; disp_h = placement.height * t.scale
		vx0 = max(0, int(math.floor(x0))); vy0 = max(0, int(math.floor(y0)))
		vx1 = min(cw, int(math.ceil(x0 + disp_w))); vy1 = min(ch, int(math.ceil(y0 + disp_h)))
		if vx1 <= vx0 or vy1 <= vy0 or disp_w <= 0 or disp_h <= 0:
			return
		px_per_native = disp_w / float(w)
		ix0 = int(max(0, math.floor((vx0 - x0) / px_per_native)))
		iy0 = int(max(0, math.floor((vy0 - y0) / px_per_native)))
		ix1 = int(min(w, math.ceil((vx1 - x0) / px_per_native)))
		iy1 = int(min(h, math.ceil((vy1 - y0) / px_per_native)))
		if ix1 <= ix0 or iy1 <= iy0:
			return
		# Snap the drawn region to the native pixel grid
		sx0 = x0 + ix0 * px_per_native; sy0 = y0 + iy0 * px_per_native
		dst_w = max(1, int(round((ix1 - ix0) * px_per_native)))
		dst_h = max(1, int(round((iy1 - iy0) * px_per_native)))
		region = resize_for_display(self.model.image_bgr[iy0:iy1, ix0:ix1], size=(dst_w, dst_h))
		region = np.ascontiguousarray(region)

		overlay = []
		for s in self._visible_strokes():
			k = placement.width / s.units if s.units else 1.0
			pts = []
			for p in s.path:
				qx, qy = self.model.to_screen(p, s.units)
				pts.append((qx - sx0, qy - sy0))
			overlay.append((color_to_bgr(s.color), pts, s.brush_width * k * t.scale))
		if overlay:
			region = composite_strokes(region, overlay, alpha=OVERLAY_ALPHA)

		self._photo = ImageTk.PhotoImage(to_pil(region))
		self.canvas.create_image(int(round(sx0)), int(round(sy0)), anchor='nw', image=self._photo)
		self._update_preview()

	def _update_preview(self):
		if self._preview_id is not None:
			self.canvas.delete(self._preview_id)
			self._preview_id = None
		if self._last_mouse_pos is None or not self.color or self._zoom_pan.panning:
			return
		if self.model.placement is None:
			return
		x, y = self._last_mouse_pos
		r = max(1.0, self.brush_size / 2.0)
		self._preview_id = self.canvas.create_oval(x - r, y - r, x + r, y + r, outline=self.color, width=2)
