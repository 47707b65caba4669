"""Tests for the float64 ring helpers."""

import numpy as np
import pytest

from svgeom.utils.geometry import (
    bbox,
    centroid,
    close_ring,
    remove_duplicate_consecutive,
    signed_area,
    to_array,
    winding_direction,
)

UNIT_SQUARE = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])


def test_to_array():
    assert to_array([]).shape == (0, 2)
    assert to_array([(1, 2), ("3", 4.5)]).tolist() == [[1.0, 2.0], [3.0, 4.5]]


def test_close_ring():
    closed = close_ring(UNIT_SQUARE)
    assert len(closed) == 5
    assert np.array_equal(closed[0], closed[-1])
    assert close_ring(closed) is closed


def test_remove_duplicate_consecutive():
    points = np.array([[0, 0], [0, 0], [1, 0], [1, 1], [1, 1], [0, 0]], dtype=float)
    assert remove_duplicate_consecutive(points).tolist() == [[0, 0], [1, 0], [1, 1]]


def test_signed_area_and_winding():
    assert signed_area(UNIT_SQUARE) == pytest.approx(1.0)
    assert signed_area(UNIT_SQUARE[::-1]) == pytest.approx(-1.0)
    assert winding_direction(UNIT_SQUARE) == 1
    assert winding_direction(UNIT_SQUARE[::-1]) == -1
    assert winding_direction(UNIT_SQUARE[:2]) == 0


def test_bbox():
    assert bbox(UNIT_SQUARE * 3 + 1) == (1.0, 1.0, 4.0, 4.0)
    assert bbox(np.empty((0, 2))) == (0.0, 0.0, 0.0, 0.0)


def test_centroid():
    triangle = np.array([[0.0, 0.0], [3.0, 0.0], [0.0, 3.0]])
    assert centroid(triangle) == pytest.approx((1.0, 1.0))
    line = np.array([[0.0, 0.0], [2.0, 2.0]])
    assert centroid(line) == pytest.approx((1.0, 1.0))
