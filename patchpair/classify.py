"""Heuristic routing of a masked patch to 'extract' or 'generate'.

Crisp text and flat logos should be copied geometrically ('extract');
textures and photographic content are re-synthesized ('generate').
"""
from __future__ import annotations

from typing import NamedTuple

import cv2
import numpy as np
import pytesseract
from PIL import Image

from .errors import ClassificationError
from .logs import get_logger

logger = get_logger('classify')

OCR_MIN_CONFIDENCE = 60.0
OCR_MIN_TEXT_LEN = 3
ALPHA_VISIBLE = 20
MIN_VISIBLE_PIXELS = 50
FLAT_COLOR_LIMIT = 32
FEW_COLOR_LIMIT = 128

METHODS = ('auto', 'extract', 'generate')


class Classification(NamedTuple):
    route: str  # 'extract' | 'generate'
    confidence: float


def _crop_to_alpha(patch_bgra):
    alpha = patch_bgra[..., 3]
    ys, xs = np.nonzero(alpha > ALPHA_VISIBLE)
    if xs.size == 0:
        return patch_bgra[:0, :0]
    return patch_bgra[ys.min():ys.max() + 1, xs.min():xs.max() + 1]


def ocr_confidence(patch_bgra):
    """Mean confidence (0..100) of confident OCR words, or None if no text is found.

    Raises whatever pytesseract raises (e.g. TesseractNotFoundError).
    """
    crop = _crop_to_alpha(patch_bgra)
    if crop.size == 0:
        return None
    # Transparent areas become white so they read as page background
    rgb = cv2.cvtColor(crop, cv2.COLOR_BGRA2RGB)
    rgb[crop[..., 3] <= ALPHA_VISIBLE] = 255
    data = pytesseract.image_to_data(Image.fromarray(rgb), lang='eng',
                                     output_type=pytesseract.Output.DICT)
    words = []
    text_parts = []
    for txt, conf in zip(data.get('text', []), data.get('conf', [])):
        txt = (txt or '').strip()
        try:
            conf = float(conf)
        except (TypeError, ValueError):
            continue
        if txt:
            text_parts.append(txt)
            if conf > OCR_MIN_CONFIDENCE:
                words.append(conf)
    text = ' '.join(text_parts)
    if len(text) < OCR_MIN_TEXT_LEN or not words:
        return None
    return sum(words) / len(words)


def color_count_route(patch_bgra) -> Classification:
    """Low unique-color count within the visible pixels suggests vector art."""
    if patch_bgra is None or patch_bgra.ndim != 3 or patch_bgra.shape[2] != 4:
        raise ClassificationError("patch must be a BGRA array")
    visible = patch_bgra[..., 3] > ALPHA_VISIBLE
    n_visible = int(np.count_nonzero(visible))
    if n_visible < MIN_VISIBLE_PIXELS:
        return Classification('generate', 0.6)
    px = patch_bgra[..., :3][visible].astype(np.uint32)
    packed = (px[:, 0] << 16) | (px[:, 1] << 8) | px[:, 2]
    n_colors = int(np.unique(packed).size)
    if 1 < n_colors <= FLAT_COLOR_LIMIT:
        return Classification('extract', 0.85)
    if 1 < n_colors <= FEW_COLOR_LIMIT:
        return Classification('extract', 0.6)
    return Classification('generate', 0.5)


def classify_patch(patch_bgra, use_ocr=True) -> Classification:
    """OCR first, then the color-count heuristic.

    An OCR failure is logged and skipped; a failure of the color heuristic
    raises ClassificationError.
    """
    if use_ocr:
        try:
            conf = ocr_confidence(patch_bgra)
        except Exception as e:
            logger.warning(f"OCR failed, falling back to color heuristic: {e}")
            conf = None
        if conf is not None and conf > OCR_MIN_CONFIDENCE:
            return Classification('extract', conf / 100.0)
    try:
        return color_count_route(patch_bgra)
    except ClassificationError:
        raise
    except Exception as e:
        raise ClassificationError(f"patch analysis failed: {e}") from e


def resolve_method(selected, patch_bgra, use_ocr=True) -> str:
    """Concrete method for a pair: explicit choices pass through, 'auto' is classified."""
    if selected not in METHODS:
        raise ValueError(f"unknown method {selected!r}")
    if selected != 'auto':
        return selected
    if patch_bgra is None:
        logger.warning("No patch to classify, defaulting to 'generate'")
        return 'generate'
    try:
        result = classify_patch(patch_bgra, use_ocr=use_ocr)
    except ClassificationError as e:
        logger.warning(f"Classification failed, defaulting to 'generate': {e}")
        return 'generate'
    logger.info(f"Auto-classified as {result.route} (confidence {result.confidence:.2f})")
    return result.route
