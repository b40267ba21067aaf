"""Assemble and send a correction job to the external worker.

Request layout (multipart/form-data POST to <worker_url>/process), in order:

    metadata            metadata.json            application/json
    source_image        source.png               original source bytes
    reference_image     reference.png            original reference bytes
    source_mask_<i>     source_mask_<hex>.png    one per pair, i = 0..n-1
    reference_mask_<i>  reference_mask_<hex>.png one per pair

<i> is the pair's position in metadata['pairs'] and <hex> its color token
without '#'. Masks are 8-bit single-channel PNGs, white on black, at the
source/reference native resolution.

The worker answers 200 with a PNG whose size must equal
metadata['width'] x metadata['height'].
"""
from __future__ import annotations

import io
import json
import threading
from contextlib import ExitStack
from typing import List, NamedTuple, Optional

import cv2
import numpy as np
import requests

from .classify import resolve_method
from .config import DEFAULT_TIMEOUT
from .errors import (ValidationError, SubmissionInProgress, NoValidPairs,
                     TransportError, DimensionMismatch)
from .logs import get_logger
from .palette import color_id
from .rasterize import BBox, encode_png
from .reconcile import reconcile, require_pairs

logger = get_logger('submission')


class PreparedPair(NamedTuple):
    color: str
    method: str
    source_bbox: Optional[BBox]
    reference_bbox: Optional[BBox]
    source_png: bytes
    reference_png: bytes


class CorrectionResult(NamedTuple):
    blob: bytes
    image: np.ndarray  # decoded BGR(A)
    width: int
    height: int
    metadata: dict


def mask_field_names(index, color):
    """((source_field, source_filename), (reference_field, reference_filename))."""
    cid = color_id(color)
    return ((f"source_mask_{index}", f"source_mask_{cid}.png"),
            (f"reference_mask_{index}", f"reference_mask_{cid}.png"))


def prepare_pairs(paired, source, reference, methods=None, use_ocr=True) -> List[PreparedPair]:
    """Rasterize both masks per paired color and resolve its method.

    Pairs whose mask comes out empty on either side are skipped; if none are
    left NoValidPairs is raised.
    """
    methods = methods or {}
    out = []
    for color in paired:
        src_mask = source.rasterize(color)
        ref_mask = reference.rasterize(color)
        if src_mask is None or ref_mask is None or src_mask.empty or ref_mask.empty:
            logger.warning(f"Skipping incomplete mask pair for color {color}")
            continue
        selected = methods.get(color, 'auto')
        patch = source.extract_patch(color) if selected == 'auto' else None
        method = resolve_method(selected, patch, use_ocr=use_ocr)
        out.append(PreparedPair(color, method, src_mask.bbox, ref_mask.bbox,
                                encode_png(src_mask.pixels), encode_png(ref_mask.pixels)))
    if not out:
        raise NoValidPairs()
    return out


def build_metadata(width, height, pairs, enforce_fixed_canvas=True, sequential=True):
    return {
        'width': int(width),
        'height': int(height),
        'enforceFixedCanvas': bool(enforce_fixed_canvas),
        'sequential': bool(sequential),
        'pairs': [
            {
                'colorId': p.color,
                'method': p.method,
                'sourceBBox': p.source_bbox.as_dict() if p.source_bbox else None,
                'referenceBBox': p.reference_bbox.as_dict() if p.reference_bbox else None,
            }
            for p in pairs
        ],
    }


def build_form(metadata, source_bytes, reference_bytes, pairs, stack: ExitStack,
               source_mime=None, reference_mime=None):
    """Ordered multipart parts for requests' `files=`; buffers are closed by `stack`."""
    def buf(data):
        return stack.enter_context(io.BytesIO(data))

    parts = [
        ('metadata', ('metadata.json', buf(json.dumps(metadata).encode('utf-8')), 'application/json')),
        ('source_image', ('source.png', buf(source_bytes), source_mime or 'application/octet-stream')),
        ('reference_image', ('reference.png', buf(reference_bytes), reference_mime or 'application/octet-stream')),
    ]
    for i, p in enumerate(pairs):
        (field, filename), _ = mask_field_names(i, p.color)
        parts.append((field, (filename, buf(p.source_png), 'image/png')))
    for i, p in enumerate(pairs):
        _, (field, filename) = mask_field_names(i, p.color)
        parts.append((field, (filename, buf(p.reference_png), 'image/png')))
    return parts


def error_message(response):
    """Server message from a failed response: JSON field, raw text, or status line."""
    text = ''
    try:
        text = response.text or ''
    except Exception:
        text = ''
    if text.strip():
        try:
            payload = json.loads(text)
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            for key in ('error', 'message', 'detail'):
                val = payload.get(key)
                if isinstance(val, str) and val.strip():
                    return val.strip()
                if isinstance(val, dict) and isinstance(val.get('message'), str):
                    return val['message'].strip()
        return text.strip()
    reason = getattr(response, 'reason', '') or ''
    return f"{response.status_code} {reason}".strip()


def process_url(worker_url):
    if not worker_url:
        raise ValidationError("Missing worker URL")
    return f"{worker_url.rstrip('/')}/process"


def post_process(worker_url, parts, session=None, timeout=DEFAULT_TIMEOUT) -> bytes:
    url = process_url(worker_url)
    poster = session if session is not None else requests
    logger.info(f"Calling worker: {url} fields={[name for name, _ in parts]}")
    try:
        response = poster.post(url, files=parts, timeout=timeout)
    except requests.RequestException as e:
        raise TransportError(f"Worker request failed: {e}") from e
    logger.info(f"Worker status: {response.status_code} {response.headers.get('content-type')}")
    if not (200 <= response.status_code < 300):
        msg = error_message(response)
        logger.error(f"Worker failed: {response.status_code} {msg}")
        raise TransportError(f"Worker {response.status_code}: {msg}",
                             status=response.status_code, body=response.content)
    return response.content


def decode_result(blob, width, height):
    """Decode the worker's image and check it matches the source size exactly."""
    img = None
    if blob:
        img = cv2.imdecode(np.frombuffer(blob, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise TransportError("Worker returned non-image response.", body=blob)
    h, w = img.shape[:2]
    if (w, h) != (int(width), int(height)):
        raise DimensionMismatch((width, height), (w, h), blob=blob)
    return img


class CorrectionSubmitter:
    """Runs one submission at a time against a worker URL."""

    def __init__(self, worker_url, timeout=DEFAULT_TIMEOUT, session=None, use_ocr=True):
        self.worker_url = worker_url
        self.timeout = timeout
        self.session = session
        self.use_ocr = use_ocr
        self._lock = threading.Lock()

    @property
    def busy(self):
        return self._lock.locked()

    def submit(self, source, reference, methods=None) -> CorrectionResult:
        """Validate, assemble, send and verify. Never modifies the canvases.

        `source` and `reference` are CanvasModels or CanvasSnapshots; each is
        snapshotted once up front, so one request carries one consistent state.
        """
        if not self._lock.acquire(blocking=False):
            raise SubmissionInProgress()
        try:
            return self._submit(source, reference, methods)
        finally:
            self._lock.release()

    def _submit(self, source, reference, methods):
        # Read only the snapshots from here on
        source = source.snapshot() if source is not None else None
        reference = reference.snapshot() if reference is not None else None
        if source is None or not source.has_image:
            raise ValidationError("Please upload a source image.")
        if reference is None or not reference.has_image:
            raise ValidationError("Please upload a reference image.")
        width, height = source.native_size
        if not width or not height:
            raise ValidationError("Could not determine source image dimensions.")

        paired = require_pairs(reconcile(source.active_colors(), reference.active_colors()))
        logger.info(f"Preparing {len(paired)} correction pair(s)")
        pairs = prepare_pairs(paired, source, reference, methods, use_ocr=self.use_ocr)
        metadata = build_metadata(width, height, pairs)
        logger.info(f"Submitting correction with metadata: {json.dumps(metadata)}")

        with ExitStack() as stack:
            parts = build_form(metadata, source.image_bytes, reference.image_bytes, pairs, stack,
                               source_mime=source.image_mime, reference_mime=reference.image_mime)
            blob = post_process(self.worker_url, parts, session=self.session, timeout=self.timeout)

        image = decode_result(blob, width, height)
        logger.info(f"Worker result {width}x{height}, {len(blob)} bytes")
        return CorrectionResult(blob, image, width, height, metadata)
