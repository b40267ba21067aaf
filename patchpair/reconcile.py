"""Which colors form a complete correction task.

A color is paired when it has at least one active stroke on both the source
and the reference canvas. Colors active on one side only are not dropped
silently: awaiting_pairing() reports them so the UI can show them.
"""
from __future__ import annotations

from .errors import ValidationError


def _ordered_unique(items):
    out = []
    for c in items:
        if c not in out:
            out.append(c)
    return out


def reconcile(source_active, reference_active):
    """Intersection of both canvases' active colors, in first-appearance order."""
    src = _ordered_unique(source_active)
    ref = set(reference_active)
    return [c for c in src if c in ref]


def awaiting_pairing(source_active, reference_active):
    """{color: 'source' | 'reference'} for colors painted on one canvas only."""
    src = _ordered_unique(source_active)
    ref = _ordered_unique(reference_active)
    out = {}
    for c in src:
        if c not in ref:
            out[c] = 'source'
    for c in ref:
        if c not in src:
            out[c] = 'reference'
    return out


def require_pairs(paired):
    if not paired:
        raise ValidationError("no paired colors")
    return list(paired)
