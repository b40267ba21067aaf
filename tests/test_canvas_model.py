import cv2
import numpy as np
import pytest

from patchpair.canvas_model import CanvasModel
from patchpair.errors import ValidationError
from patchpair.transform import IDENTITY

from conftest import BLUE, RED, make_canvas, paint


def test_load_fits_image_and_resets_view():
    m = make_canvas(size=(800, 400), container=(400, 400))
    assert m.native_size == (800, 400)
    assert m.placement == (0.0, 100.0, 400.0, 200.0)
    assert m.transform == IDENTITY


def test_stroke_width_is_brush_over_scale(source):
    source.zoom((0, 0), 1000)
    assert source.transform.scale == pytest.approx(2.0)
    stroke = paint(source, RED, [(200, 200), (400, 400)], brush=20)
    assert stroke.path == ((100.0, 100.0), (200.0, 200.0))
    assert stroke.brush_width == pytest.approx(10.0)
    assert stroke.units == 500.0


def test_painting_while_zoomed_matches_identity_view(source, reference):
    source.zoom((0, 0), 1000)
    paint(source, RED, [(200, 200), (400, 400)], brush=20)
    paint(reference, RED, [(100, 100), (200, 200)], brush=10)
    assert np.array_equal(source.rasterize(RED).pixels, reference.rasterize(RED).pixels)


def test_mask_survives_container_resize():
    m = make_canvas(size=(800, 400), container=(400, 400))
    paint(m, RED, [(50, 150), (300, 250)])
    before = m.rasterize(RED)
    m.resize_container(1000, 1000)
    after = m.rasterize(RED)
    assert np.array_equal(before.pixels, after.pixels)
    assert before.bbox == after.bbox


def test_mask_is_native_resolution():
    m = make_canvas(size=(800, 400), container=(400, 400))
    paint(m, RED, [(10, 110), (390, 290)])
    mask = m.rasterize(RED)
    assert mask.pixels.shape == (400, 800)
    assert set(np.unique(mask.pixels)) <= {0, 255}


def test_to_screen_follows_refit(source):
    stroke = paint(source, RED, [(100, 100), (200, 200)])
    assert source.to_screen(stroke.path[0], stroke.units) == (100.0, 100.0)
    source.resize_container(1000, 1000)
    assert source.to_screen(stroke.path[0], stroke.units) == (200.0, 200.0)


def test_pan_moves_image_under_pointer(source):
    source.pan(50, 0)
    assert source.to_image((150, 100)) == (100.0, 100.0)


def test_delete_color_keeps_other_strokes(source):
    paint(source, RED, [(10, 10), (50, 50)])
    paint(source, BLUE, [(60, 60), (90, 90)])
    paint(source, RED, [(100, 100), (150, 150)])
    source.undo()
    assert source.delete_color(RED) == 2
    assert source.history.idx == 0
    assert source.active_colors() == [BLUE]
    assert source.rasterize(RED) is None


def test_reset_clears_strokes_and_view(source):
    paint(source, RED, [(10, 10), (50, 50)])
    source.zoom((250, 250), 500)
    source.reset()
    assert len(source.history) == 0
    assert source.transform == IDENTITY
    assert source.history_state() == (False, False)


def test_new_image_clears_strokes(source):
    paint(source, RED, [(10, 10), (50, 50)])
    source.load_image(cv2.imencode('.png', np.zeros((20, 30, 3), np.uint8))[1].tobytes())
    assert source.active_colors() == []
    assert source.native_size == (30, 20)


def test_painting_without_image_is_rejected():
    m = CanvasModel('empty')
    m.resize_container(100, 100)
    assert m.rasterize(RED) is None
    with pytest.raises(ValidationError):
        m.begin_stroke(RED, 10, (5, 5))


def test_off_image_stroke_gives_empty_mask(source):
    paint(source, RED, [(-100, -100), (-60, -60)])
    mask = source.rasterize(RED)
    assert mask is not None and mask.empty
    assert source.mask_png(RED) is None
    assert source.export_all_masks() == {}


def test_export_and_combined_masks(source):
    paint(source, RED, [(10, 10), (50, 50)])
    paint(source, BLUE, [(300, 300), (350, 350)])
    exported = source.export_all_masks()
    assert list(exported) == [RED, BLUE]
    combined = cv2.imdecode(np.frombuffer(source.combined_mask_png([RED, BLUE]), np.uint8),
                            cv2.IMREAD_GRAYSCALE)
    assert combined[30, 30] == 255 and combined[325, 325] == 255
    assert combined[200, 200] == 0


def test_extract_patch_is_transparent_outside_mask(source):
    paint(source, RED, [(100, 100), (200, 100)])
    patch = source.extract_patch(RED)
    assert patch.shape == (500, 500, 4)
    assert patch[100, 150, 3] == 255
    assert patch[400, 400, 3] == 0


def test_snapshot_is_unaffected_by_later_edits(source):
    paint(source, RED, [(10, 10), (50, 50)])
    snap = source.snapshot()
    before = snap.rasterize(RED).pixels.copy()
    paint(source, BLUE, [(100, 100), (150, 150)])
    source.load_image(cv2.imencode('.png', np.zeros((20, 30, 3), np.uint8))[1].tobytes())
    assert snap.native_size == (500, 500)
    assert snap.active_colors() == [RED]
    assert np.array_equal(snap.rasterize(RED).pixels, before)
    assert snap.snapshot() is snap


def test_snapshot_of_empty_canvas_has_no_image():
    snap = CanvasModel('empty').snapshot()
    assert not snap.has_image
    assert snap.native_size == (0, 0)
    assert snap.rasterize(RED) is None
