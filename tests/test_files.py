import os

import cv2
import numpy as np
import pytest

from patchpair.errors import ValidationError
from patchpair.files import UNSUPPORTED_MESSAGE, decode_image, load_image, save_masks, validate_image_file

from conftest import BLUE, RED, make_canvas, paint, png_bytes


@pytest.mark.parametrize('name, mime', [
    ('a.png', 'image/png'), ('B.JPG', 'image/jpeg'), ('c.jpeg', 'image/jpeg'), ('d.webp', 'image/webp'),
])
def test_allowed_types(name, mime):
    assert validate_image_file(name) == mime


@pytest.mark.parametrize('name', ['a.gif', 'b.tiff', 'noext'])
def test_rejected_types(name):
    with pytest.raises(ValidationError, match='Unsupported file type'):
        validate_image_file(name)
    assert 'WEBP' in UNSUPPORTED_MESSAGE


def test_load_image_roundtrip(tmp_path):
    path = tmp_path / 'src.png'
    path.write_bytes(png_bytes(40, 30))
    data, bgr, mime = load_image(str(path))
    assert mime == 'image/png'
    assert data == path.read_bytes()
    assert bgr.shape == (30, 40, 3)


def test_decode_garbage_raises():
    with pytest.raises(ValidationError):
        decode_image(b'not an image')


def test_save_masks_writes_each_color_and_a_union(tmp_path):
    source = make_canvas('source')
    reference = make_canvas('reference')
    paint(source, RED, [(10, 10), (50, 50)])
    paint(source, BLUE, [(300, 300), (350, 350)])
    paint(reference, RED, [(100, 100), (150, 150)])
    written = save_masks(str(tmp_path / 'out'), [source, reference])
    names = [os.path.basename(p) for p in written]
    assert names == ['source_mask_ef4444.png', 'source_mask_3b82f6.png', 'source_masks.png',
                     'reference_mask_ef4444.png', 'reference_masks.png']
    union = cv2.imread(str(tmp_path / 'out' / 'source_masks.png'), cv2.IMREAD_GRAYSCALE)
    assert union.shape == (500, 500)
    assert union[30, 30] == 255 and union[325, 325] == 255


def test_save_masks_skips_unpainted_canvases(tmp_path):
    assert save_masks(str(tmp_path), [make_canvas('source')]) == []
