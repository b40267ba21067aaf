import tkinter as tk
from tkinter import ttk
from PIL import Image, ImageTk
import cv2
import numpy as np


def to_photoimage_from_bgr_with_scale(bgr, scale=1.0, interpolation=Image.BILINEAR):
    """Convert a BGR/BGRA/gray numpy array to a Tk PhotoImage (optional scaling).

    Note: Avoids content caching to ensure immediate visual updates when the
    underlying numpy array contents change between calls.

    Args:
        bgr: BGR, BGRA or grayscale numpy array
        scale: Scale factor (default=1.0)
        interpolation: PIL interpolation mode (default=Image.BILINEAR)
    """
    if bgr is None:
        return ImageTk.PhotoImage(Image.new('RGB', (1, 1)))
    return ImageTk.PhotoImage(to_pil(resize_for_display(bgr, scale, interpolation)))


def resize_for_display(bgr, scale=1.0, interpolation=Image.BILINEAR, size=None):
    """Resize with OpenCV; `size` (w, h) wins over `scale` when given."""
    if size is None:
        scale = 1.0 if scale is None else float(scale)
        if scale == 1.0:
            return bgr
        size = (max(1, int(bgr.shape[1] * scale)), max(1, int(bgr.shape[0] * scale)))
    else:
        size = (max(1, int(size[0])), max(1, int(size[1])))
        scale = size[0] / float(max(1, bgr.shape[1]))

    # Large upscaling -> Nearest Neighbor (crisp pixels)
    # Downscaling -> Area (best quality)
    if scale >= 2.0:
        cv_interp = cv2.INTER_NEAREST
    elif scale < 1.0:
        cv_interp = cv2.INTER_AREA
    elif interpolation == Image.NEAREST:
        cv_interp = cv2.INTER_NEAREST
    elif interpolation == Image.BICUBIC:
        cv_interp = cv2.INTER_CUBIC
    else:
        cv_interp = cv2.INTER_LINEAR
    return cv2.resize(bgr, size, interpolation=cv_interp)


def to_pil(bgr):
    if bgr.ndim == 2:
        return Image.fromarray(bgr)
    if bgr.shape[2] == 4:
        return Image.fromarray(cv2.cvtColor(bgr, cv2.COLOR_BGRA2RGBA))
    return Image.fromarray(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))


def composite_strokes(base_bgr, strokes, alpha=0.5):
    """Blend screen-space strokes over a BGR region.

    strokes: iterable of (bgr_color, [(x, y), ...], thickness_px). Later
    strokes cover earlier ones; the union is blended once at `alpha`.
    """
    h, w = base_bgr.shape[:2]
    color_layer = np.zeros((h, w, 3), np.uint8)
    cover = np.zeros((h, w), np.uint8)
    for bgr, pts, thickness in strokes:
        if not pts:
            continue
        t = max(1, int(round(thickness)))
        ipts = [(int(round(x)), int(round(y))) for x, y in pts]
        for p0, p1 in zip(ipts[:-1], ipts[1:]):
            cv2.line(color_layer, p0, p1, bgr, t, lineType=cv2.LINE_AA)
            cv2.line(cover, p0, p1, 255, t, lineType=cv2.LINE_AA)
        for p in ipts:
            cv2.circle(color_layer, p, t // 2, bgr, -1, lineType=cv2.LINE_AA)
            cv2.circle(cover, p, t // 2, 255, -1, lineType=cv2.LINE_AA)
    a = (cover.astype(np.float32) / 255.0 * float(alpha))[..., None]
    out = base_bgr.astype(np.float32) * (1.0 - a) + color_layer.astype(np.float32) * a
    return np.clip(out, 0, 255).astype(np.uint8)


def make_slider_row(parent, label_text, var, frm, to, is_int=False, fmt=None, command=None):
    """Create a labeled slider with a live value label; returns the Scale widget."""
    if command is None:
        def command(_=None):
            return
    if fmt is None:
        fmt = "{}"
    row = ttk.Frame(parent)
    row.pack(fill='x', pady=4)
    ttk.Label(row, text=label_text).pack(side='left')
    val_var = tk.StringVar()

    def _update_val(*a):
        try:
            v = var.get()
            val_var.set(f"{int(round(v))}" if is_int else fmt.format(v))
        except Exception:
            val_var.set('')

    scale = ttk.Scale(row, from_=frm, to=to, variable=var, orient='horizontal', command=command)
    scale.pack(side='left', fill='x', expand=True, padx=8)
    ttk.Label(row, textvariable=val_var, width=6, anchor='e').pack(side='left', padx=(6, 0))
    _update_val()
    var.trace_add('write', lambda *a: _update_val())
    return scale


def attach_tooltip(widget, text):
    """Attach a hover tooltip to a widget."""
    tip = {'win': None}

    def show_tip(_e=None):
        if tip['win'] is not None:
            return
        try:
            x = widget.winfo_rootx() + widget.winfo_width() + 8
            y = widget.winfo_rooty() + int(widget.winfo_height() * 0.5)
        except Exception:
            x = y = 0
        win = tk.Toplevel(widget); tip['win'] = win
        try: win.wm_overrideredirect(True)
        except Exception: pass
        try: win.wm_geometry(f"+{x}+{y}")
        except Exception: pass
        frame = ttk.Frame(win, borderwidth=1, relief='solid'); frame.pack()
        ttk.Label(frame, text=text, justify='left', padding=6).pack()

    def hide_tip(_e=None):
        w = tip.get('win')
        if w is not None:
            try: w.destroy()
            except Exception: pass
            tip['win'] = None

    widget.bind('<Enter>', show_tip, add='+')
    widget.bind('<Leave>', hide_tip, add='+')


def make_help_icon(parent, tooltip_text, bg='#f0f0f0'):
    """Thin circle with a '?' that shows `tooltip_text` on hover."""
    c = tk.Canvas(parent, width=18, height=18, highlightthickness=0, bg=bg)
    c.create_oval(2, 2, 16, 16, outline='#666', width=1)
    c.create_text(9, 9, text='?', font=('Segoe UI', 9))
    c.pack(side='left', padx=(6, 0))
    attach_tooltip(c, tooltip_text)
    return c
