"""2-D affine transform builders (3×3 homogeneous matrices).

Composition follows matrix multiplication: ``T @ R @ S`` applies S first.
"""

from __future__ import annotations

from svgeom.errors import DimensionMismatch, ProjectiveSingularity
from svgeom.geometry.primitives import Point
from svgeom.linalg.matrix import Matrix
from svgeom.numeric import ONE, ZERO, D, Number, cos, default_epsilon, sin, tan


def _affine(a, c, e, b, d, f) -> Matrix:
    return Matrix([[a, c, e], [b, d, f], [ZERO, ZERO, ONE]])


def identity() -> Matrix:
    return Matrix.identity(3)


def translation(tx: Number, ty: Number) -> Matrix:
    return _affine(ONE, ZERO, D(tx), ZERO, ONE, D(ty))


def scale(sx: Number, sy: Number | None = None) -> Matrix:
    sx = D(sx)
    sy = sx if sy is None else D(sy)
    return _affine(sx, ZERO, ZERO, ZERO, sy, ZERO)


def rotate(theta: Number) -> Matrix:
    """Counter-clockwise rotation by ``theta`` radians (clockwise on screen, y down)."""
    c = cos(theta)
    s = sin(theta)
    return _affine(c, -s, ZERO, s, c, ZERO)


def rotate_around_point(theta: Number, px: Number, py: Number) -> Matrix:
    px = D(px)
    py = D(py)
    return translation(px, py) @ rotate(theta) @ translation(-px, -py)


def skew(kx: Number, ky: Number) -> Matrix:
    """Shear by factors: x' = x + kx*y, y' = ky*x + y."""
    return _affine(ONE, D(kx), ZERO, D(ky), ONE, ZERO)


def skew_x(angle: Number) -> Matrix:
    return skew(tan(angle), ZERO)


def skew_y(angle: Number) -> Matrix:
    return skew(ZERO, tan(angle))


def stretch_along_axis(ux: Number, uy: Number, k: Number) -> Matrix:
    """Scale by ``k`` along the unit axis (ux, uy), identity across it."""
    ux = D(ux)
    uy = D(uy)
    factor = D(k) - ONE
    return _affine(
        ONE + factor * ux * ux,
        factor * ux * uy,
        ZERO,
        factor * uy * ux,
        ONE + factor * uy * uy,
        ZERO,
    )


def reflect_x() -> Matrix:
    """Mirror across the x axis (y -> -y)."""
    return scale(ONE, -ONE)


def reflect_y() -> Matrix:
    """Mirror across the y axis (x -> -x)."""
    return scale(-ONE, ONE)


def reflect_origin() -> Matrix:
    return scale(-ONE, -ONE)


def apply_transform(m: Matrix, x: Number, y: Number, epsilon: Number | None = None) -> Point:
    """Map (x, y) through ``m`` with perspective division by w."""
    if m.shape != (3, 3):
        raise DimensionMismatch(f"2-D transform must be 3x3, got {m.shape}")
    x = D(x)
    y = D(y)
    (a, b, c), (d, e, f), (g, h, i) = m.data
    rx = a * x + b * y + c
    ry = d * x + e * y + f
    rw = g * x + h * y + i
    if rw == ONE:
        return Point(rx, ry)
    eps = default_epsilon() if epsilon is None else D(epsilon)
    if abs(rw) < eps:
        raise ProjectiveSingularity(f"homogeneous w = {rw} is too close to zero")
    return Point(rx / rw, ry / rw)


def apply_to_points(m: Matrix, points: list[Point]) -> list[Point]:
    return [apply_transform(m, p.x, p.y) for p in points]
