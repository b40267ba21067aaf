import pytest

from patchpair.transform import (PlacementRect, ViewTransform, fit_rect, screen_to_canvas,
                                 screen_to_image, image_to_screen, zoom_at, pan)


def test_fit_rect_square_fills_container():
    assert fit_rect(500, 500, 500, 500) == PlacementRect(0.0, 0.0, 500.0, 500.0)


def test_fit_rect_wide_image_is_letterboxed_vertically():
    r = fit_rect(1000, 500, 400, 400)
    assert r == PlacementRect(0.0, 100.0, 400.0, 200.0)


def test_fit_rect_tall_image_is_pillarboxed():
    r = fit_rect(500, 1000, 400, 400)
    assert r == PlacementRect(100.0, 0.0, 200.0, 400.0)


@pytest.mark.parametrize('args', [(0, 10, 10, 10), (10, 10, 0, 10), (10, -1, 10, 10)])
def test_fit_rect_rejects_empty_sizes(args):
    with pytest.raises(ValueError):
        fit_rect(*args)


def test_screen_to_image_applies_offset_scale_then_placement():
    t = ViewTransform(2.0, 10.0, 20.0)
    placement = PlacementRect(5.0, 0.0, 100.0, 100.0)
    assert screen_to_image((150, 120), t, placement) == (65.0, 50.0)


def test_image_to_screen_is_inverse():
    t = ViewTransform(1.7, -33.0, 12.5)
    placement = PlacementRect(40.0, 0.0, 320.0, 400.0)
    sx, sy = image_to_screen((12.0, 99.0), t, placement)
    ix, iy = screen_to_image((sx, sy), t, placement)
    assert ix == pytest.approx(12.0)
    assert iy == pytest.approx(99.0)


def test_zoom_keeps_point_under_pointer_fixed():
    t = ViewTransform(1.0, 30.0, -10.0)
    pointer = (123.0, 77.0)
    before = screen_to_canvas(pointer, t)
    z = zoom_at(t, pointer, 500)
    assert z.scale == pytest.approx(1.5)
    after = screen_to_canvas(pointer, z)
    assert after[0] == pytest.approx(before[0])
    assert after[1] == pytest.approx(before[1])


def test_zoom_is_clamped_to_bounds():
    t = ViewTransform(9.9, 0.0, 0.0)
    assert zoom_at(t, (0, 0), 10000).scale == pytest.approx(10.0)
    t = ViewTransform(0.15, 0.0, 0.0)
    assert zoom_at(t, (0, 0), -10000).scale == pytest.approx(0.1)


def test_zoom_at_bound_returns_transform_unchanged():
    t = ViewTransform(10.0, 4.0, 5.0)
    assert zoom_at(t, (50, 50), 120) is t


def test_pan_translates_offset_only():
    assert pan(ViewTransform(2.0, 1.0, 1.0), 5, -3) == ViewTransform(2.0, 6.0, -2.0)
