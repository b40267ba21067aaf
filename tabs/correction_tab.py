"""
Correction tab: paint matching colors on the source and reference images,
then send the paired regions to the worker.

- Left panel: images, palette, brush size, undo/redo/reset.
- Center: source (distorted) and reference (clean) canvases.
- Right panel: paired tasks with a method each, colors awaiting pairing,
  Generate, and the result preview.

Generate runs on a worker thread; results come back through after(0).
"""
from __future__ import annotations

import os
import threading
import tkinter as tk
from tkinter import ttk, filedialog, messagebox, colorchooser

from patchpair.commands import SOURCE, REFERENCE, route_undo, route_redo, combined_state, replace_source
from patchpair.config import DEFAULT_BRUSH_SIZE, MIN_BRUSH_SIZE, MAX_BRUSH_SIZE
from patchpair.errors import PatchPairError, DimensionMismatch
from patchpair.files import load_image, save_masks
from patchpair.logs import get_logger
from patchpair.palette import Palette, normalize_color
from patchpair.reconcile import reconcile, awaiting_pairing
from patchpair.submission import CorrectionSubmitter
from patchpair.ui_helpers import make_help_icon, make_slider_row, to_photoimage_from_bgr_with_scale
from tabs.paint_canvas import PaintCanvasFrame

logger = get_logger('correction_tab')

IMAGE_TYPES = [("Images", ("*.png", "*.jpg", "*.jpeg", "*.webp"))]
PREVIEW_SIZE = 220


class CorrectionTabFrame(ttk.Frame):
    def __init__(self, master, config, status_callback=None, on_history_update=None):
        super().__init__(master)
        self._status = status_callback or (lambda txt: None)
        self._on_history_update = on_history_update or (lambda state: None)
        self._submitter = CorrectionSubmitter(config.worker_url, timeout=config.timeout)

        self.palette = Palette()
        self.active_color = self.palette.hexes()[0]
        self._methods = {}  # color -> 'auto' | 'extract' | 'generate'
        self._last_painted = None
        self._in_flight = False
        self._job = 0  # bumped by reset; stale results are dropped
        self._result = None
        self._result_photo = None

        self._build_ui()
        self._bind_to_toplevel('<Control-z>', lambda e: self.undo())
        self._bind_to_toplevel('<Control-y>', lambda e: self.redo())
        self._bind_to_toplevel('<Control-Shift-Z>', lambda e: self.redo())
        self._select_color(self.active_color)
        self._refresh_tasks()

    # ---- layout ----
    def _build_ui(self):
        left = ttk.Frame(self)
        left.pack(side='left', fill='y', padx=8, pady=8)
        left.config(width=220)
        left.pack_propagate(False)

        title = ttk.Frame(left)
        title.pack(anchor='w', fill='x')
        ttk.Label(title, text='Correction', font=('Segoe UI', 10, 'bold')).pack(side='left')
        make_help_icon(title, (
            'Paint the same color on the distorted source and on the clean\n'
            'reference to link the two regions.\n'
            '\n'
            'Controls:\n'
            '- Left-click drag to paint\n'
            '- Middle-click drag to move the image\n'
            '- Mouse wheel to zoom\n'
            '- Ctrl + Mouse wheel to adjust brush size\n'
            '- Ctrl+Z / Ctrl+Y to undo / redo on the canvas painted last'
        ))

        self.open_source_btn = ttk.Button(left, text='Open Source…', command=self.open_source)
        self.open_source_btn.pack(fill='x', pady=(6, 2))
        self.open_reference_btn = ttk.Button(left, text='Open Reference…', command=self.open_reference)
        self.open_reference_btn.pack(fill='x', pady=2)
        ttk.Button(left, text='Export Masks…', command=self.export_masks).pack(fill='x', pady=2)
        ttk.Separator(left, orient='horizontal').pack(fill='x', pady=6)

        ttk.Label(left, text='Colors').pack(anchor='w')
        self.palette_frame = ttk.Frame(left)
        self.palette_frame.pack(fill='x')
        self.add_color_btn = ttk.Menubutton(left, text='+ Add color')
        self.add_color_btn.pack(anchor='w', pady=(4, 0))
        self.add_color_menu = tk.Menu(self.add_color_btn, tearoff=False)
        self.add_color_btn['menu'] = self.add_color_menu

        self.brush_var = tk.DoubleVar(value=DEFAULT_BRUSH_SIZE)
        make_slider_row(left, 'Brush', self.brush_var, MIN_BRUSH_SIZE, MAX_BRUSH_SIZE, is_int=True,
                        command=lambda *_: self._apply_brush_size())
        ttk.Separator(left, orient='horizontal').pack(fill='x', pady=6)

        row = ttk.Frame(left)
        row.pack(fill='x')
        self.undo_btn = ttk.Button(row, text='Undo', command=self.undo, state='disabled')
        self.undo_btn.pack(side='left', expand=True, fill='x')
        self.redo_btn = ttk.Button(row, text='Redo', command=self.redo, state='disabled')
        self.redo_btn.pack(side='left', expand=True, fill='x', padx=(4, 0))
        ttk.Button(left, text='Reset', command=self.reset).pack(fill='x', pady=(4, 0))

        center = ttk.Frame(self)
        center.pack(side='left', fill='both', expand=True, pady=8)
        src_group = ttk.LabelFrame(center, text='Source (distorted)')
        src_group.pack(side='left', fill='both', expand=True)
        self.source_canvas = PaintCanvasFrame(
            src_group, name=SOURCE,
            on_paint_start=lambda: self._mark_painted(SOURCE),
            on_history_change=lambda st: self._on_canvas_history(),
            on_brush_change=self._on_brush_changed,
            placeholder='Open a source image')
        self.source_canvas.pack(fill='both', expand=True)
        ref_group = ttk.LabelFrame(center, text='Reference (clean)')
        ref_group.pack(side='left', fill='both', expand=True, padx=(6, 0))
        self.reference_canvas = PaintCanvasFrame(
            ref_group, name=REFERENCE,
            on_paint_start=lambda: self._mark_painted(REFERENCE),
            on_history_change=lambda st: self._on_canvas_history(),
            on_brush_change=self._on_brush_changed,
            placeholder='Open a reference image')
        self.reference_canvas.pack(fill='both', expand=True)

        right = ttk.Frame(self)
        right.pack(side='right', fill='y', padx=8, pady=8)
        right.config(width=260)
        right.pack_propagate(False)
        ttk.Label(right, text='Tasks', font=('Segoe UI', 10, 'bold')).pack(anchor='w')
        self.tasks_frame = ttk.Frame(right)
        self.tasks_frame.pack(fill='x', pady=(2, 6))
        self.generate_btn = ttk.Button(right, text='Generate', command=self.generate)
        self.generate_btn.pack(fill='x')
        self.status = ttk.Label(right, text='Ready', wraplength=240)
        self.status.pack(fill='x', pady=6)
        ttk.Separator(right, orient='horizontal').pack(fill='x', pady=6)
        ttk.Label(right, text='Result').pack(anchor='w')
        self.result_canvas = tk.Canvas(right, width=PREVIEW_SIZE, height=PREVIEW_SIZE,
                                       bg='#111827', highlightthickness=0)
        self.result_canvas.pack(pady=4)
        self.result_size_lbl = ttk.Label(right, text='')
        self.result_size_lbl.pack(anchor='w')
        self.save_btn = ttk.Button(right, text='Save As…', command=self.save_result, state='disabled')
        self.save_btn.pack(fill='x', pady=(4, 0))

    def _bind_to_toplevel(self, sequence, func):
        try: self.winfo_toplevel().bind(sequence, func, add='+')
        except tk.TclError: self.bind(sequence, func)

    def set_status(self, text):
        try: self.status.config(text=text)
        except tk.TclError: pass
        self._status(text)

    # ---- images ----
    def _ask_image(self, title):
        path = filedialog.askopenfilename(parent=self.winfo_toplevel(), title=title, filetypes=IMAGE_TYPES)
        if not path:
            return None
        try:
            return path, load_image(path)
        except (PatchPairError, OSError) as e:
            messagebox.showerror('Open error', str(e))
            return None

    def open_source(self):
        if self._in_flight: return
        got = self._ask_image('Open source (distorted) image')
        if got is None: return
        path, (data, bgr, mime) = got
        replace_source(self.source_canvas, self.reference_canvas, data, bgr=bgr, mime=mime)
        self._clear_result()
        self.set_status(f"Source: {os.path.basename(path)} — {bgr.shape[1]}×{bgr.shape[0]}")

    def open_reference(self):
        if self._in_flight: return
        got = self._ask_image('Open reference (clean) image')
        if got is None: return
        path, (data, bgr, mime) = got
        self.reference_canvas.load_image(data, bgr=bgr, mime=mime)
        self.set_status(f"Reference: {os.path.basename(path)} — {bgr.shape[1]}×{bgr.shape[0]}")

    # ---- palette ----
    def _rebuild_palette(self):
        for child in self.palette_frame.winfo_children():
            child.destroy()
        for c in self.palette:
            row = ttk.Frame(self.palette_frame)
            row.pack(fill='x', pady=1)
            swatch = tk.Label(row, width=2, bg=c.hex, relief='sunken' if c.hex == self.active_color else 'raised')
            swatch.pack(side='left')
            swatch.bind('<Button-1>', lambda e, h=c.hex: self._select_color(h))
            name = ttk.Label(row, text=c.name)
            name.pack(side='left', padx=4)
            name.bind('<Button-1>', lambda e, h=c.hex: self._select_color(h))
            ttk.Button(row, text='×', width=2, command=lambda h=c.hex: self.delete_color(h)).pack(side='right')

        self.add_color_menu.delete(0, 'end')
        for h in self.palette.suggestions():
            self.add_color_menu.add_command(label=h, foreground=h, command=lambda h=h: self.add_color(h))
        self.add_color_menu.add_separator()
        self.add_color_menu.add_command(label='Custom…', command=self._pick_custom_color)

    def _select_color(self, color):
        self.active_color = color
        self.source_canvas.set_color(color)
        self.reference_canvas.set_color(color)
        self._rebuild_palette()

    def _pick_custom_color(self):
        _, hex_value = colorchooser.askcolor(parent=self.winfo_toplevel(), title='Add color')
        if hex_value:
            self.add_color(hex_value)

    def add_color(self, color):
        self.palette = self.palette.add(color)
        self._select_color(normalize_color(color))

    def delete_color(self, color):
        fallback = self.palette.fallback_after_remove(color)
        self.palette = self.palette.remove(color)
        self.source_canvas.delete_color(color)
        self.reference_canvas.delete_color(color)
        self._methods.pop(color, None)
        if self.active_color == color:
            self.active_color = fallback
        self._select_color(self.active_color)
        self._refresh_tasks()

    def _apply_brush_size(self):
        size = float(self.brush_var.get())
        self.source_canvas.set_brush_size(size)
        self.reference_canvas.set_brush_size(size)

    def _on_brush_changed(self, size):
        self.brush_var.set(size)
        self._apply_brush_size()

    # ---- history ----
    def _mark_painted(self, which):
        self._last_painted = which

    def _on_canvas_history(self):
        state = combined_state(self.source_canvas, self.reference_canvas)
        self.undo_btn.config(state='normal' if state.can_undo else 'disabled')
        self.redo_btn.config(state='normal' if state.can_redo else 'disabled')
        self._refresh_tasks()
        self._on_history_update(state)

    def undo(self):
        route_undo(self._last_painted, self.source_canvas, self.reference_canvas)

    def redo(self):
        route_redo(self._last_painted, self.source_canvas, self.reference_canvas)

    def reset(self):
        self._job += 1
        self.source_canvas.reset()
        self.reference_canvas.reset()
        self._clear_result()
        self.set_status('Reset')

    # ---- tasks ----
    def _refresh_tasks(self):
        for child in self.tasks_frame.winfo_children():
            child.destroy()
        src = self.source_canvas.active_colors()
        ref = self.reference_canvas.active_colors()
        paired = reconcile(src, ref)
        for color in paired:
            row = ttk.Frame(self.tasks_frame)
            row.pack(fill='x', pady=1)
            tk.Label(row, width=2, bg=color).pack(side='left')
            ttk.Label(row, text=self.palette.name_of(color)).pack(side='left', padx=4)
            var = tk.StringVar(value=self._methods.get(color, 'auto'))
            box = ttk.Combobox(row, textvariable=var, values=('auto', 'extract', 'generate'),
                               state='readonly', width=9)
            box.pack(side='right')
            box.bind('<<ComboboxSelected>>', lambda e, c=color, v=var: self._methods.__setitem__(c, v.get()))
        for color, side in awaiting_pairing(src, ref).items():
            other = 'reference' if side == SOURCE else 'source'
            row = ttk.Frame(self.tasks_frame)
            row.pack(fill='x', pady=1)
            tk.Label(row, width=2, bg=color).pack(side='left')
            ttk.Label(row, text=f"{self.palette.name_of(color)}: awaiting pairing on {other}",
                      foreground='#b45309').pack(side='left', padx=4)
        if not paired:
            ttk.Label(self.tasks_frame, text='Paint the same color on both images.',
                      foreground='#6b7280').pack(anchor='w')
        self._update_generate_state(bool(paired))

    def _update_generate_state(self, has_pairs=None):
        if has_pairs is None:
            has_pairs = bool(reconcile(self.source_canvas.active_colors(), self.reference_canvas.active_colors()))
        enabled = has_pairs and not self._in_flight
        self.generate_btn.config(state='normal' if enabled else 'disabled',
                                 text='Generating…' if self._in_flight else 'Generate')
        for btn in (self.open_source_btn, self.open_reference_btn):
            btn.config(state='disabled' if self._in_flight else 'normal')

    # ---- submission ----
    def generate(self):
        if self._in_flight:
            return
        self._in_flight = True
        self._update_generate_state()
        self._clear_result()
        self.set_status('Submitting…')
        methods = dict(self._methods)
        source = self.source_canvas.model.snapshot()
        reference = self.reference_canvas.model.snapshot()
        self._job += 1
        threading.Thread(target=self._generate_worker, args=(self._job, source, reference, methods),
                         daemon=True).start()

    def _generate_worker(self, job, source, reference, methods):
        try:
            result = self._submitter.submit(source, reference, methods)
        except PatchPairError as e:
            logger.error(f"Correction failed: {e}")
            self.after(0, lambda err=e: self._on_generate_failed(job, err))
        except Exception as e:
            logger.exception("Unexpected error during correction")
            self.after(0, lambda err=e: self._on_generate_failed(job, err))
        else:
            self.after(0, lambda: self._on_generate_done(job, result))

    def _on_generate_done(self, job, result):
        self._in_flight = False
        if job != self._job:
            logger.info("Dropping result of a submission made before reset")
            self._update_generate_state(); return
        self._result = result
        self._show_result(result.image, result.width, result.height, ok=True)
        self.save_btn.config(state='normal')
        self.set_status(f"Correction complete — {len(result.metadata['pairs'])} pair(s)")
        self._update_generate_state()

    def _on_generate_failed(self, job, err):
        self._in_flight = False
        if job != self._job:
            self._update_generate_state(); return
        if isinstance(err, DimensionMismatch):
            ew, eh = err.expected
            aw, ah = err.actual
            self.result_size_lbl.config(text=f"Output {aw}×{ah} (expected {ew}×{eh})", foreground='#dc2626')
        msg = str(err) or 'An unknown error occurred during correction.'
        self.set_status(msg)
        self._update_generate_state()
        messagebox.showerror('Correction failed', msg)

    def _show_result(self, image, w, h, ok):
        scale = min(PREVIEW_SIZE / float(w), PREVIEW_SIZE / float(h))
        self._result_photo = to_photoimage_from_bgr_with_scale(image, scale)
        self.result_canvas.delete('all')
        self.result_canvas.create_image(PREVIEW_SIZE // 2, PREVIEW_SIZE // 2, image=self._result_photo)
        self.result_size_lbl.config(text=f"Output {w}×{h}", foreground='#16a34a' if ok else '#dc2626')

    def _clear_result(self):
        self._result = None
        self._result_photo = None
        try:
            self.result_canvas.delete('all')
            self.result_size_lbl.config(text='')
            self.save_btn.config(state='disabled')
        except tk.TclError:
            pass

    def save_result(self):
        if self._result is None: return
        path = filedialog.asksaveasfilename(parent=self.winfo_toplevel(), title='Save corrected image',
                                            defaultextension='.png', initialfile='corrected.png',
                                            filetypes=[('PNG', '*.png')])
        if not path: return
        try:
            with open(path, 'wb') as f:
                f.write(self._result.blob)
            self.set_status(f"Saved: {os.path.basename(path)}")
        except OSError as e:
            messagebox.showerror('Save error', str(e))

    def export_masks(self):
        models = [c.model for c in (self.source_canvas, self.reference_canvas) if c.model.has_image]
        if not any(m.active_colors() for m in models):
            messagebox.showinfo('Export masks', 'Nothing painted yet.')
            return
        directory = filedialog.askdirectory(parent=self.winfo_toplevel(), title='Export masks to folder')
        if not directory: return
        try:
            written = save_masks(directory, models)
        except OSError as e:
            messagebox.showerror('Export error', str(e))
            return
        self.set_status(f"Exported {len(written)} mask file(s) to {os.path.basename(directory)}")
