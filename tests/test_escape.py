"""Tests for escape-time iteration."""

import numpy as np
import pytest

from mandelbrot_mpp import EscapeIterator, escape_count

KNOWN_COUNTS = [
    (0j, 100),
    (-2 + 0j, 100),  # orbit sits on the radius and never exceeds it
    (1 + 0j, 3),
    (3 + 0j, 1),
    (1j, 100),
    (-1 + 0j, 100),
    (0.5 + 0j, 5),
]


@pytest.mark.parametrize("c, expected", KNOWN_COUNTS)
def test_escape_count_reference(c, expected):
    assert escape_count(c, max_iterations=100) == expected


def test_iterator_matches_reference_counts():
    iterator = EscapeIterator(max_iterations=100)
    samples = np.array([[c for c, _ in KNOWN_COUNTS]])
    result = iterator.run(samples)
    assert result.iterations.tolist() == [[expected for _, expected in KNOWN_COUNTS]]


def test_inside_mask_and_smooth_values():
    iterator = EscapeIterator(max_iterations=50)
    result = iterator.run(np.array([[0j, 3 + 0j], [1 + 0j, -1 + 0j]]))

    assert result.shape == (2, 2)
    assert result.inside.tolist() == [[True, False], [False, True]]
    assert result.smooth[0, 0] == 50.0
    assert result.smooth[1, 1] == 50.0
    assert np.isfinite(result.smooth).all()
    # continuous value of an escaped point stays close to its integer count
    assert 1.0 < result.smooth[0, 1] < 2.5
    assert 3.0 < result.smooth[1, 0] < 4.5


def test_loop_stops_once_everything_escaped():
    iterator = EscapeIterator(max_iterations=1_000_000)
    result = iterator.run(np.array([[3 + 0j, -4 + 1j, 10j]]))
    assert result.iterations.tolist() == [[1, 1, 1]]
    assert not result.inside.any()


def test_escape_radius_is_configurable():
    assert escape_count(1 + 0j, max_iterations=100, escape_radius=10.0) == 4
    assert EscapeIterator(max_iterations=100, escape_radius=10.0).count(1 + 0j) == 4


def test_count_single_point():
    assert EscapeIterator(max_iterations=20).count(0.5 + 0j) == 5


@pytest.mark.parametrize("kwargs", [{"max_iterations": 0}, {"escape_radius": 0.0}, {"escape_radius": float("nan")}])
def test_iterator_rejects_invalid_parameters(kwargs):
    with pytest.raises(ValueError):
        EscapeIterator(**kwargs)
