import cv2
import numpy as np
import pytest

from patchpair.canvas_model import CanvasModel

RED = '#ef4444'
BLUE = '#3b82f6'
GREEN = '#22c55e'


def png_bytes(w, h, value=200):
    img = np.full((h, w, 3), value, np.uint8)
    ok, buf = cv2.imencode('.png', img)
    assert ok
    return buf.tobytes()


def make_canvas(name='canvas', size=(500, 500), container=(500, 500)):
    m = CanvasModel(name=name)
    m.resize_container(*container)
    m.load_image(png_bytes(*size), mime='image/png')
    return m


def paint(model, color, points, brush=10):
    model.begin_stroke(color, brush, points[0])
    for p in points[1:]:
        model.extend_stroke(p)
    return model.commit_stroke()


@pytest.fixture
def source():
    return make_canvas('source')


@pytest.fixture
def reference():
    return make_canvas('reference')
