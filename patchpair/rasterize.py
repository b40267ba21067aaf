"""Per-color mask reconstruction from stroke history.

Masks are drawn at the image's native resolution, white (255) on black (0),
independent of the current zoom or container size. Drawing uses fixed-point
coordinates without anti-aliasing, so the same strokes always produce the
same bytes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Optional

import cv2
import numpy as np

from .config import BBOX_PADDING

# Sub-pixel precision for cv2 drawing calls (coordinates are multiplied by 2**SHIFT)
SHIFT = 4
_ONE = 1 << SHIFT


class BBox(NamedTuple):
    x: int
    y: int
    w: int
    h: int

    def as_dict(self):
        return {'x': int(self.x), 'y': int(self.y), 'w': int(self.w), 'h': int(self.h)}


@dataclass(frozen=True)
class MaskRaster:
    width: int
    height: int
    pixels: np.ndarray  # uint8, 0/255, shape (height, width)
    bbox: Optional[BBox]

    @property
    def empty(self):
        return self.bbox is None


def _fixed(x, y, s):
    return int(round(x * s * _ONE)), int(round(y * s * _ONE))


def _draw_stroke(canvas, stroke, render_scale):
    thickness = max(1, int(round(stroke.brush_width * render_scale)))
    radius = (thickness * _ONE) // 2
    pts = [_fixed(x, y, render_scale) for x, y in stroke.path]
    for p0, p1 in zip(pts[:-1], pts[1:]):
        cv2.line(canvas, p0, p1, 255, thickness, lineType=cv2.LINE_8, shift=SHIFT)
    # Round cap/join: a filled disc of the brush diameter at every vertex
    for p in pts:
        cv2.circle(canvas, p, radius, 255, -1, lineType=cv2.LINE_8, shift=SHIFT)


def mask_bbox(pixels, padding=BBOX_PADDING) -> Optional[BBox]:
    """Tight box around non-zero pixels, padded and clamped to the raster."""
    ys, xs = np.nonzero(pixels)
    if xs.size == 0:
        return None
    h, w = pixels.shape[:2]
    pad = max(0, int(padding))
    x0 = max(0, int(xs.min()) - pad)
    y0 = max(0, int(ys.min()) - pad)
    x1 = min(w, int(xs.max()) + 1 + pad)
    y1 = min(h, int(ys.max()) + 1 + pad)
    return BBox(x0, y0, x1 - x0, y1 - y0)


def draw_strokes(strokes, native_w, native_h, placement_width):
    """Union of the given strokes as a uint8 0/255 raster of native size."""
    canvas = np.zeros((int(native_h), int(native_w)), np.uint8)
    for s in strokes:
        units = s.units if s.units else placement_width
        if not units or units <= 0:
            raise ValueError("placement width must be positive")
        _draw_stroke(canvas, s, float(native_w) / float(units))
    return canvas


def rasterize(color, active_strokes, native_w, native_h, placement_width,
              padding=BBOX_PADDING) -> Optional[MaskRaster]:
    """Mask for one color from the active strokes; None if the color has none."""
    if native_w <= 0 or native_h <= 0:
        raise ValueError(f"invalid native size {native_w}x{native_h}")
    mine = [s for s in active_strokes if s.color == color]
    if not mine:
        return None
    pixels = draw_strokes(mine, native_w, native_h, placement_width)
    return MaskRaster(int(native_w), int(native_h), pixels, mask_bbox(pixels, padding))


def union_masks(rasters):
    """OR together several masks of equal size; None entries are ignored."""
    out = None
    for r in rasters:
        if r is None:
            continue
        out = r.pixels.copy() if out is None else cv2.bitwise_or(out, r.pixels)
    return out


def encode_png(pixels) -> bytes:
    """8-bit single-channel PNG of a 0/255 raster."""
    if pixels.dtype != np.uint8:
        pixels = pixels.astype(np.uint8)
    ok, buf = cv2.imencode('.png', pixels)
    if not ok:
        raise RuntimeError("cv2.imencode returned False")
    return buf.tobytes()


def extract_patch(image_bgr, pixels):
    """Source pixels under the mask as BGRA; alpha is 0 outside the mask."""
    img = image_bgr
    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    elif img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    if img.shape[:2] != pixels.shape[:2]:
        raise ValueError(f"mask {pixels.shape[1]}x{pixels.shape[0]} does not match image {img.shape[1]}x{img.shape[0]}")
    patch = cv2.cvtColor(img, cv2.COLOR_BGR2BGRA)
    patch[..., 3] = np.where(pixels > 0, 255, 0).astype(np.uint8)
    patch[pixels == 0, :3] = 0
    return patch
