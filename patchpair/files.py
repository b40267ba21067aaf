"""Image file validation and loading."""
import os

import cv2
import numpy as np

from .errors import ValidationError
from .palette import color_id

ALLOWED_EXTENSIONS = {
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.webp': 'image/webp',
}
UNSUPPORTED_MESSAGE = "Unsupported file type. Please insert a PNG, JPEG, JPG, or WEBP file."


def mime_for(path):
    return ALLOWED_EXTENSIONS.get(os.path.splitext(str(path))[1].lower())


def validate_image_file(path):
    """Return the MIME type of an allowed image path, else raise ValidationError."""
    mime = mime_for(path)
    if mime is None:
        raise ValidationError(UNSUPPORTED_MESSAGE)
    return mime


def decode_image(data):
    """Decode encoded image bytes to a BGR uint8 array (alpha dropped, gray expanded)."""
    buf = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ValidationError("Failed to read the image")
    if img.dtype != np.uint8:
        img = cv2.normalize(img, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    elif img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    return img


def load_image(path):
    """Validate and read an image file. Returns (raw_bytes, bgr, mime)."""
    mime = validate_image_file(path)
    with open(path, 'rb') as f:
        data = f.read()
    return data, decode_image(data), mime


def save_masks(directory, canvases):
    """Write each canvas's masks as <name>_mask_<hex>.png plus a union <name>_masks.png.

    Returns the written paths in order.
    """
    os.makedirs(directory, exist_ok=True)
    written = []
    for canvas in canvases:
        masks = canvas.export_all_masks()
        for color, png in masks.items():
            written.append(_write(os.path.join(directory, f"{canvas.name}_mask_{color_id(color)}.png"), png))
        combined = canvas.combined_mask_png(list(masks))
        if combined:
            written.append(_write(os.path.join(directory, f"{canvas.name}_masks.png"), combined))
    return written


def _write(path, data):
    with open(path, 'wb') as f:
        f.write(data)
    return path
