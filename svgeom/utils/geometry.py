"""Leaf-node float geometry helpers on Nx2 arrays. No engine imports."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray


def to_array(points: Sequence[Sequence]) -> NDArray[np.float64]:
    """Nx2 float array from any sequence of (x, y) pairs (Decimal included)."""
    if len(points) == 0:
        return np.empty((0, 2))
    return np.array([(float(p[0]), float(p[1])) for p in points], dtype=np.float64)


def close_ring(points: NDArray[np.float64]) -> NDArray[np.float64]:
    if len(points) == 0 or np.array_equal(points[0], points[-1]):
        return points
    return np.vstack([points, points[:1]])


def remove_duplicate_consecutive(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Drop repeated neighbours, including a closing point equal to the first."""
    if len(points) < 2:
        return points
    keep = np.any(np.diff(points, axis=0) != 0, axis=1)
    out = points[np.concatenate([[True], keep])]
    if len(out) > 1 and np.array_equal(out[0], out[-1]):
        out = out[:-1]
    return out


def signed_area(points: NDArray[np.float64]) -> float:
    """Shoelace area of the closed ring. Positive = CCW in y-up axes."""
    if len(points) < 3:
        return 0.0
    ring = close_ring(points)
    x = ring[:, 0]
    y = ring[:, 1]
    return float(0.5 * np.sum(x[:-1] * y[1:] - x[1:] * y[:-1]))


def winding_direction(points: NDArray[np.float64]) -> int:
    """1 for CCW, -1 for CW, 0 if degenerate."""
    return int(np.sign(signed_area(points)))


def bbox(points: NDArray[np.float64]) -> tuple[float, float, float, float]:
    """(xmin, ymin, xmax, ymax); all zeros for no points."""
    if len(points) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    lo = points.min(axis=0)
    hi = points.max(axis=0)
    return (float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1]))


def centroid(points: NDArray[np.float64]) -> tuple[float, float]:
    """Area centroid of the ring; the vertex mean when the ring has no area."""
    if len(points) == 0:
        return (0.0, 0.0)
    area = signed_area(points)
    if abs(area) < 1e-12:
        mean = points.mean(axis=0)
        return (float(mean[0]), float(mean[1]))
    ring = close_ring(points)
    x0, y0 = ring[:-1, 0], ring[:-1, 1]
    x1, y1 = ring[1:, 0], ring[1:, 1]
    cross = x0 * y1 - x1 * y0
    return (float(np.sum((x0 + x1) * cross) / (6 * area)), float(np.sum((y0 + y1) * cross) / (6 * area)))
