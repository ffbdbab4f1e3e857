"""Tests for recentring and zooming regions."""

import numpy as np
import pytest

from mandelbrot_mpp import ComplexPlaneSampler, DEFAULT_REGION, Region, ZoomPlanner, compute_zoom_factors, recenter, select_zoom_center
from mandelbrot_mpp.navigation import boundary_map

SQUARE = Region(top=1.0, left=-1.0, bottom=-1.0, right=1.0)


def test_constant_zoom_factors():
    np.testing.assert_allclose(compute_zoom_factors(4, 0.5, final_zoom=None, easing="ease"), [0.5] * 4)
    assert compute_zoom_factors(0, 0.5, final_zoom=None, easing="ease").size == 0


@pytest.mark.parametrize("easing", ["linear", "ease"])
def test_final_zoom_is_reached(easing):
    factors = compute_zoom_factors(5, 0.8, final_zoom=1e-2, easing=easing)
    assert factors.shape == (5,)
    assert np.prod(factors) == pytest.approx(1e-2)


def test_linear_zoom_is_geometric():
    factors = compute_zoom_factors(3, 0.8, final_zoom=1e-2, easing="linear")
    np.testing.assert_allclose(factors, [1.0, 0.1, 0.1])


def test_single_frame_applies_final_zoom():
    np.testing.assert_allclose(compute_zoom_factors(1, 0.8, final_zoom=0.25, easing="ease"), [0.25])


def test_unknown_easing():
    with pytest.raises(ValueError):
        compute_zoom_factors(3, 0.8, final_zoom=0.1, easing="bounce")


def test_select_zoom_center_without_edges_returns_middle():
    assert select_zoom_center(np.zeros((5, 5), dtype=bool)) == (2, 2)


def test_select_zoom_center_prefers_nearest_edge():
    edges = np.zeros((5, 5), dtype=bool)
    edges[0, 0] = True
    edges[2, 3] = True
    assert select_zoom_center(edges) == (2, 3)

    edges = np.zeros((5, 5), dtype=bool)
    edges[0, 4] = True
    assert select_zoom_center(edges) == (0, 4)


def test_boundary_map_marks_membership_changes():
    assert not boundary_map(np.ones((3, 3), dtype=bool)).any()
    inside = np.array([[False, False], [True, False], [True, False]])
    assert boundary_map(inside).tolist() == [[False, False], [True, True], [False, True]]


def test_boundary_map_does_not_wrap_around():
    inside = np.array([[True, True, True], [False, False, False], [False, False, False]])
    edges = boundary_map(inside)
    assert not edges[0].any()
    assert edges[1].all()
    assert not edges[2].any()


def test_boundary_map_sees_horizontal_changes():
    inside = np.array([[False, True, True]] * 3)
    assert boundary_map(inside).tolist() == [[False, True, False]] * 3


def test_recenter_on_pixel():
    sampler = ComplexPlaneSampler(SQUARE, 3, 3)
    assert recenter(SQUARE, sampler, 0, 2) == Region(top=2.0, left=0.0, bottom=0.0, right=2.0)


def test_planner_enforces_aspect():
    locked = ZoomPlanner(lock_aspect=True, aspect=0.5)
    assert locked.enforce_aspect(SQUARE) == Region(top=0.5, left=-1.0, bottom=-0.5, right=1.0)
    assert ZoomPlanner(lock_aspect=False, aspect=0.5).enforce_aspect(SQUARE) == SQUARE


def test_planner_zooms_towards_the_boundary(renderer):
    planner = ZoomPlanner(lock_aspect=False, aspect=1.0)
    buffer = renderer.render(DEFAULT_REGION, 24, 16)
    region = planner.update_after_frame(buffer, 0.5)

    assert region.width == pytest.approx(DEFAULT_REGION.width * 0.5)
    assert region.height == pytest.approx(DEFAULT_REGION.height * 0.5)
    row, col = select_zoom_center(boundary_map(buffer.escape.inside))
    sampler = ComplexPlaneSampler(DEFAULT_REGION, 24, 16)
    assert region.center == pytest.approx(sampler.pixel_to_complex(row, col))
