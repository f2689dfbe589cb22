import math

import pytest

from paperboard.geometry import Box, Vec, fit_camera, page_to_screen, screen_to_page, shape_bounds, union_bounds
from paperboard.records import Camera


def test_geo_bounds_use_width_and_height():
    bounds = shape_bounds({'type': 'geo', 'x': 10, 'y': 20, 'props': {'w': 100, 'h': 50}})

    assert bounds == Box(10.0, 20.0, 100.0, 50.0)


def test_note_bounds_use_intrinsic_size_and_growth():
    bounds = shape_bounds({'type': 'note', 'x': 0, 'y': 0, 'props': {'growY': 40}})

    assert (bounds.w, bounds.h) == (200.0, 240.0)


def test_arrow_bounds_follow_terminals():
    bounds = shape_bounds(
        {'type': 'arrow', 'x': 100, 'y': 100, 'props': {'start': {'x': 0, 'y': 0}, 'end': {'x': -60, 'y': 30}}}
    )

    assert bounds == Box(40.0, 100.0, 60.0, 30.0)


def test_rotated_bounds_cover_all_corners():
    bounds = shape_bounds({'type': 'geo', 'x': 0, 'y': 0, 'rotation': math.pi / 2, 'props': {'w': 100, 'h': 50}})

    assert bounds.x == pytest.approx(-50.0)
    assert bounds.y == pytest.approx(0.0)
    assert bounds.w == pytest.approx(50.0)
    assert bounds.h == pytest.approx(100.0)


def test_union_bounds():
    shapes = [
        {'type': 'geo', 'x': 0, 'y': 0, 'props': {'w': 10, 'h': 10}},
        {'type': 'geo', 'x': 90, 'y': 40, 'props': {'w': 10, 'h': 10}},
    ]

    assert union_bounds(shapes) == Box(0.0, 0.0, 100.0, 50.0)
    assert union_bounds([]) is None


def test_screen_and_page_transforms_are_inverse():
    camera = Camera(10, -5, 2)
    viewport = Box(0, 0, 800, 600)

    page = screen_to_page(Vec(100, 50), camera, viewport)

    assert page == Vec(40.0, 30.0)
    assert page_to_screen(page, camera, viewport) == Vec(100.0, 50.0)


def test_fit_camera_centers_bounds_in_viewport():
    viewport = Box(0, 0, 800, 800)
    bounds = Box(0, 0, 400, 200)

    camera = fit_camera(bounds, viewport)

    assert camera == Camera(0.0, 100.0, 2.0)
    assert page_to_screen(bounds.center, camera, viewport) == viewport.center


def test_fit_camera_clamps_zoom():
    viewport = Box(0, 0, 800, 800)

    assert fit_camera(Box(0, 0, 1, 1), viewport, max_zoom=8).z == 8
    assert fit_camera(Box(0, 0, 100000, 100000), viewport, min_zoom=0.1).z == pytest.approx(0.1)
    assert fit_camera(Box(5, 5, 0, 0), viewport).z == 1.0


def test_box_expand_and_center():
    box = Box(0, 0, 100, 50).expand(50)

    assert box == Box(-50, -50, 200, 150)
    assert box.center == Vec(50.0, 25.0)
