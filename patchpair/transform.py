"""Screen <-> image coordinate mapping for a zoomable, pannable canvas.

The canvas draws the image inside a letterboxed placement rectangle, then
applies the view transform (translate by offset, scale by scale) on top:

    canvas_point = (screen_point - offset) / scale
    image_point  = canvas_point - placement.origin

Image-space units are placement pixels. Strokes remember the placement
width they were captured at, so a re-fit never moves existing strokes.
"""
from __future__ import annotations

from typing import NamedTuple, Tuple

from .config import MIN_SCALE, MAX_SCALE, WHEEL_ZOOM_K


class PlacementRect(NamedTuple):
    x: float
    y: float
    width: float
    height: float


class ViewTransform(NamedTuple):
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0


IDENTITY = ViewTransform()


def fit_rect(native_w, native_h, container_w, container_h) -> PlacementRect:
    """Letterbox-fit an image of native size into the container, centered."""
    if native_w <= 0 or native_h <= 0:
        raise ValueError(f"invalid image size {native_w}x{native_h}")
    if container_w <= 0 or container_h <= 0:
        raise ValueError(f"invalid container size {container_w}x{container_h}")
    image_aspect = float(native_w) / float(native_h)
    container_aspect = float(container_w) / float(container_h)
    if image_aspect > container_aspect:
        width = float(container_w)
        height = container_w / image_aspect
        return PlacementRect(0.0, (container_h - height) / 2.0, width, height)
    height = float(container_h)
    width = container_h * image_aspect
    return PlacementRect((container_w - width) / 2.0, 0.0, width, height)


def screen_to_canvas(point, transform: ViewTransform) -> Tuple[float, float]:
    sx, sy = point
    return (sx - transform.offset_x) / transform.scale, (sy - transform.offset_y) / transform.scale


def screen_to_image(point, transform: ViewTransform, placement: PlacementRect) -> Tuple[float, float]:
    cx, cy = screen_to_canvas(point, transform)
    return cx - placement.x, cy - placement.y


def image_to_screen(point, transform: ViewTransform, placement: PlacementRect) -> Tuple[float, float]:
    ix, iy = point
    return ((ix + placement.x) * transform.scale + transform.offset_x,
            (iy + placement.y) * transform.scale + transform.offset_y)


def clamp_scale(scale, min_scale=MIN_SCALE, max_scale=MAX_SCALE):
    return max(min_scale, min(max_scale, float(scale)))


def zoom_at(transform: ViewTransform, pointer, delta, k=WHEEL_ZOOM_K,
            min_scale=MIN_SCALE, max_scale=MAX_SCALE) -> ViewTransform:
    """Zoom by an additive wheel step, keeping the point under the pointer fixed.

    Positive delta zooms in. The scale is clamped to [min_scale, max_scale];
    when clamping leaves the scale unchanged the transform is returned as is.
    """
    if transform.scale <= 0:
        raise ValueError(f"scale must be positive, got {transform.scale}")
    new_scale = clamp_scale(transform.scale + delta * k, min_scale, max_scale)
    if abs(new_scale - transform.scale) < 1e-12:
        return transform
    px, py = pointer
    ratio = new_scale / transform.scale
    return ViewTransform(
        new_scale,
        px - (px - transform.offset_x) * ratio,
        py - (py - transform.offset_y) * ratio,
    )


def pan(transform: ViewTransform, dx, dy) -> ViewTransform:
    """Translate by a screen-space delta; the scale is unchanged."""
    return ViewTransform(transform.scale, transform.offset_x + dx, transform.offset_y + dy)
