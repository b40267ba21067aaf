"""Runtime configuration and shared constants.

The worker URL is injected from the environment by the desktop shell; the
core modules only ever receive it as an argument.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

# View
MIN_SCALE = 0.1
MAX_SCALE = 10.0
WHEEL_ZOOM_K = 0.001  # scale change per wheel delta unit

# Brush (screen pixels)
DEFAULT_BRUSH_SIZE = 30.0
MIN_BRUSH_SIZE = 5.0
MAX_BRUSH_SIZE = 100.0
OVERLAY_ALPHA = 0.5

# Mask export
BBOX_PADDING = 12

# Palette
INITIAL_COLORS = (
    ('Red', '#ef4444'),
    ('Blue', '#3b82f6'),
    ('Green', '#22c55e'),
    ('Yellow', '#eab308'),
)
MORE_COLORS = (
    '#9333ea', '#db2777', '#f97316', '#14b8a6',
    '#f43f5e', '#84cc16', '#6366f1', '#d946ef',
)

DEFAULT_WORKER_URL = 'http://localhost:8787'
DEFAULT_TIMEOUT = 120.0


@dataclass(frozen=True)
class AppConfig:
    worker_url: str = DEFAULT_WORKER_URL
    timeout: float = DEFAULT_TIMEOUT
    log_dir: str | None = None


def load_config(environ=None) -> AppConfig:
    """Read PATCHPAIR_* variables; unset or blank values keep the defaults."""
    env = os.environ if environ is None else environ
    worker_url = (env.get('PATCHPAIR_WORKER_URL') or '').strip() or DEFAULT_WORKER_URL
    raw_timeout = (env.get('PATCHPAIR_TIMEOUT') or '').strip()
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
    except ValueError:
        raise ValueError(f"PATCHPAIR_TIMEOUT must be a number, got {raw_timeout!r}")
    if timeout <= 0:
        raise ValueError("PATCHPAIR_TIMEOUT must be positive")
    log_dir = (env.get('PATCHPAIR_LOG_DIR') or '').strip() or None
    return AppConfig(worker_url=worker_url.rstrip('/'), timeout=timeout, log_dir=log_dir)
