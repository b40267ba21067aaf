"""patchpair: paired-color masking canvas and correction job assembly."""

from .canvas_model import CanvasModel, CanvasSnapshot
from .classify import classify_patch, resolve_method
from .errors import (PatchPairError, ValidationError, SubmissionInProgress, IncompleteMaskError,
                     NoValidPairs, ClassificationError, TransportError, DimensionMismatch)
from .history import Stroke, StrokeHistory, HistoryState
from .palette import Palette, normalize_color
from .rasterize import BBox, MaskRaster, rasterize, mask_bbox, encode_png
from .reconcile import reconcile, awaiting_pairing
from .submission import CorrectionSubmitter, CorrectionResult, build_metadata
from .transform import ViewTransform, PlacementRect, fit_rect, screen_to_image, zoom_at, pan

__all__ = [
    'CanvasModel', 'CanvasSnapshot',
    'classify_patch', 'resolve_method',
    'PatchPairError', 'ValidationError', 'SubmissionInProgress', 'IncompleteMaskError',
    'NoValidPairs', 'ClassificationError', 'TransportError', 'DimensionMismatch',
    'Stroke', 'StrokeHistory', 'HistoryState',
    'Palette', 'normalize_color',
    'BBox', 'MaskRaster', 'rasterize', 'mask_bbox', 'encode_png',
    'reconcile', 'awaiting_pairing',
    'CorrectionSubmitter', 'CorrectionResult', 'build_metadata',
    'ViewTransform', 'PlacementRect', 'fit_rect', 'screen_to_image', 'zoom_at', 'pan',
]
