import numpy as np
import pytest
import pytesseract

from patchpair import classify
from patchpair.classify import classify_patch, color_count_route, resolve_method
from patchpair.errors import ClassificationError


def bgra(rgb_block, alpha=255):
    h, w = rgb_block.shape[:2]
    out = np.zeros((h, w, 4), np.uint8)
    out[..., :3] = rgb_block
    out[..., 3] = alpha
    return out


@pytest.fixture
def flat_patch():
    block = np.full((40, 40, 3), 255, np.uint8)
    block[:, :20] = (0, 0, 200)
    return bgra(block)


@pytest.fixture
def noisy_patch():
    rng = np.random.default_rng(0)
    return bgra(rng.integers(0, 256, (50, 50, 3), dtype=np.uint8))


@pytest.fixture
def no_tesseract(monkeypatch):
    def boom(*a, **k):
        raise pytesseract.TesseractNotFoundError()
    monkeypatch.setattr(classify.pytesseract, 'image_to_data', boom)


def test_few_colors_route_to_extract(flat_patch):
    assert color_count_route(flat_patch) == ('extract', 0.85)


def test_many_colors_route_to_generate(noisy_patch):
    assert color_count_route(noisy_patch).route == 'generate'


def test_tiny_patch_routes_to_generate():
    p = bgra(np.zeros((5, 5, 3), np.uint8))
    assert color_count_route(p) == ('generate', 0.6)


def test_single_color_routes_to_generate():
    p = bgra(np.full((20, 20, 3), 128, np.uint8))
    assert color_count_route(p).route == 'generate'


def test_bad_patch_raises_classification_error():
    with pytest.raises(ClassificationError):
        color_count_route(np.zeros((10, 10), np.uint8))


def test_ocr_failure_falls_back_to_color_heuristic(no_tesseract, flat_patch):
    assert classify_patch(flat_patch).route == 'extract'


def test_confident_text_routes_to_extract(monkeypatch, noisy_patch):
    monkeypatch.setattr(classify.pytesseract, 'image_to_data',
                        lambda *a, **k: {'text': ['', 'SALE', 'NOW'], 'conf': ['-1', '91', '89']})
    result = classify_patch(noisy_patch)
    assert result.route == 'extract'
    assert result.confidence == pytest.approx(0.90)


def test_unconfident_text_is_ignored(monkeypatch, noisy_patch):
    monkeypatch.setattr(classify.pytesseract, 'image_to_data',
                        lambda *a, **k: {'text': ['blur'], 'conf': ['30']})
    assert classify_patch(noisy_patch).route == 'generate'


def test_explicit_methods_pass_through(flat_patch):
    assert resolve_method('extract', None) == 'extract'
    assert resolve_method('generate', flat_patch) == 'generate'


def test_auto_without_patch_defaults_to_generate():
    assert resolve_method('auto', None) == 'generate'


def test_auto_classification_error_defaults_to_generate():
    assert resolve_method('auto', np.zeros((10, 10), np.uint8), use_ocr=False) == 'generate'


def test_auto_uses_classifier(flat_patch):
    assert resolve_method('auto', flat_patch, use_ocr=False) == 'extract'


def test_unknown_method_rejected():
    with pytest.raises(ValueError):
        resolve_method('copy', None)
