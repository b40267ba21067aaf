"""State behind one paint canvas: image, view transform, placement and strokes.

The Tk widget (tabs/paint_canvas.py) forwards pointer events here and asks
this object what to draw; everything in here runs without a display.
"""
from __future__ import annotations

from typing import NamedTuple, Optional, Tuple

from .config import BBOX_PADDING
from .errors import ValidationError
from .files import decode_image
from .history import Stroke, StrokeHistory, HistoryState
from .logs import get_logger
from .rasterize import rasterize, encode_png, extract_patch, union_masks, MaskRaster
from .transform import (IDENTITY, PlacementRect, ViewTransform, fit_rect,
                        screen_to_image, image_to_screen, zoom_at, pan)

logger = get_logger('canvas')


class CanvasSnapshot(NamedTuple):
    """Frozen view of one canvas as it was when a submission started.

    Reloading the image or painting afterwards does not reach it: loading
    replaces the image array rather than writing into it, and strokes are immutable.
    """
    name: str
    image_bytes: Optional[bytes]
    image_mime: Optional[str]
    image_bgr: object
    width: int
    height: int
    placement_width: Optional[float]
    strokes: Tuple[Stroke, ...]
    padding: int = BBOX_PADDING

    def snapshot(self):
        return self

    @property
    def has_image(self):
        return self.image_bgr is not None and bool(self.image_bytes)

    @property
    def native_size(self):
        return self.width, self.height

    def active_colors(self):
        seen = []
        for s in self.strokes:
            if s.color not in seen:
                seen.append(s.color)
        return seen

    def rasterize(self, color) -> Optional[MaskRaster]:
        if self.image_bgr is None:
            return None
        return rasterize(color, self.strokes, self.width, self.height, self.placement_width,
                         padding=self.padding)

    def mask_bbox(self, color):
        m = self.rasterize(color)
        return None if m is None else m.bbox

    def extract_patch(self, color):
        m = self.rasterize(color)
        if m is None or m.empty:
            return None
        return extract_patch(self.image_bgr, m.pixels)


class CanvasModel:
    def __init__(self, name='canvas', padding=BBOX_PADDING):
        self.name = name
        self.padding = padding
        self.history = StrokeHistory()
        self.transform: ViewTransform = IDENTITY
        self.placement: Optional[PlacementRect] = None
        self.container = (0, 0)
        self.image_bytes: Optional[bytes] = None
        self.image_mime: Optional[str] = None
        self.image_bgr = None

    # ---- image / container ----
    @property
    def has_image(self):
        return self.image_bgr is not None

    @property
    def native_size(self):
        if self.image_bgr is None:
            return 0, 0
        h, w = self.image_bgr.shape[:2]
        return int(w), int(h)

    def load_image(self, data: bytes, bgr=None, mime=None, keep_strokes=False):
        """Install a new image; the view resets to fit, strokes are cleared unless kept."""
        self.image_bgr = decode_image(data) if bgr is None else bgr
        self.image_bytes = data
        self.image_mime = mime
        self.transform = IDENTITY
        if not keep_strokes:
            self.history.clear()
        self._refit()
        w, h = self.native_size
        logger.info(f"[{self.name}] Loaded image {w}x{h}")

    def resize_container(self, width, height):
        self.container = (int(width), int(height))
        self._refit()

    def _refit(self):
        cw, ch = self.container
        if self.image_bgr is None or cw <= 0 or ch <= 0:
            self.placement = None
            return
        w, h = self.native_size
        self.placement = fit_rect(w, h, cw, ch)

    def _require_placement(self):
        if self.placement is None:
            raise ValidationError(f"{self.name}: no image placed")
        return self.placement

    # ---- view ----
    def to_image(self, screen_point):
        return screen_to_image(screen_point, self.transform, self._require_placement())

    def to_screen(self, image_point, units=None):
        """Screen position of an image-space point captured at placement width `units`."""
        placement = self._require_placement()
        x, y = image_point
        if units:
            k = placement.width / units
            x, y = x * k, y * k
        return image_to_screen((x, y), self.transform, placement)

    def zoom(self, pointer, delta):
        self.transform = zoom_at(self.transform, pointer, delta)

    def pan(self, dx, dy):
        self.transform = pan(self.transform, dx, dy)

    def reset_view(self):
        self.transform = IDENTITY
        self._refit()

    # ---- painting ----
    def begin_stroke(self, color, brush_size, screen_point):
        """Start a stroke; brush_size is in screen pixels at the current zoom."""
        placement = self._require_placement()
        width = float(brush_size) / self.transform.scale
        self.history.begin_stroke(color, width, self.to_image(screen_point), units=placement.width)

    def extend_stroke(self, screen_point):
        if not self.history.in_progress or self.placement is None:
            return
        self.history.extend_stroke(self.to_image(screen_point))

    def commit_stroke(self):
        return self.history.commit_stroke()

    def cancel_stroke(self):
        self.history.cancel_stroke()

    # ---- commands ----
    def undo(self):
        return self.history.undo()

    def redo(self):
        return self.history.redo()

    def history_state(self) -> HistoryState:
        return self.history.state()

    def reset(self):
        """Clear strokes and return the view to its fit-to-container default."""
        self.history.clear()
        self.reset_view()

    def delete_color(self, color):
        return self.history.delete_color(color)

    def active_colors(self):
        return self.history.active_colors()

    def snapshot(self) -> CanvasSnapshot:
        w, h = self.native_size
        placement_width = self.placement.width if self.placement is not None else None
        return CanvasSnapshot(self.name, self.image_bytes, self.image_mime, self.image_bgr, w, h,
                              placement_width, tuple(self.history.active_strokes()), self.padding)

    # ---- masks ----
    def rasterize(self, color) -> Optional[MaskRaster]:
        if self.image_bgr is None:
            return None
        placement = self._require_placement()
        w, h = self.native_size
        return rasterize(color, self.history.active_strokes(color), w, h, placement.width,
                         padding=self.padding)

    def mask_bbox(self, color):
        m = self.rasterize(color)
        return None if m is None else m.bbox

    def mask_png(self, color) -> Optional[bytes]:
        m = self.rasterize(color)
        if m is None or m.empty:
            return None
        return encode_png(m.pixels)

    def combined_mask_png(self, colors) -> Optional[bytes]:
        pixels = union_masks(self.rasterize(c) for c in colors)
        if pixels is None or not pixels.any():
            return None
        return encode_png(pixels)

    def export_all_masks(self):
        """{color: png bytes} for every active color."""
        out = {}
        for c in self.active_colors():
            png = self.mask_png(c)
            if png:
                out[c] = png
        return out

    def extract_patch(self, color):
        m = self.rasterize(color)
        if m is None or m.empty:
            return None
        return extract_patch(self.image_bgr, m.pixels)
