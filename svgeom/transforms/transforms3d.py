"""3-D affine transform builders (4×4 homogeneous matrices)."""

from __future__ import annotations

from decimal import Decimal

from svgeom.errors import DimensionMismatch, ProjectiveSingularity
from svgeom.linalg.matrix import Matrix
from svgeom.linalg.vector import Vector
from svgeom.numeric import ONE, ZERO, D, Number, cos, default_epsilon, sin


def _linear(r0, r1, r2) -> Matrix:
    return Matrix(
        [
            [r0[0], r0[1], r0[2], ZERO],
            [r1[0], r1[1], r1[2], ZERO],
            [r2[0], r2[1], r2[2], ZERO],
            [ZERO, ZERO, ZERO, ONE],
        ]
    )


def identity() -> Matrix:
    return Matrix.identity(4)


def translation(tx: Number, ty: Number, tz: Number) -> Matrix:
    return Matrix(
        [
            [ONE, ZERO, ZERO, D(tx)],
            [ZERO, ONE, ZERO, D(ty)],
            [ZERO, ZERO, ONE, D(tz)],
            [ZERO, ZERO, ZERO, ONE],
        ]
    )


def scale(sx: Number, sy: Number | None = None, sz: Number | None = None) -> Matrix:
    sx = D(sx)
    sy = sx if sy is None else D(sy)
    sz = sx if sz is None else D(sz)
    return _linear((sx, ZERO, ZERO), (ZERO, sy, ZERO), (ZERO, ZERO, sz))


def rotate_x(theta: Number) -> Matrix:
    c, s = cos(theta), sin(theta)
    return _linear((ONE, ZERO, ZERO), (ZERO, c, -s), (ZERO, s, c))


def rotate_y(theta: Number) -> Matrix:
    c, s = cos(theta), sin(theta)
    return _linear((c, ZERO, s), (ZERO, ONE, ZERO), (-s, ZERO, c))


def rotate_z(theta: Number) -> Matrix:
    c, s = cos(theta), sin(theta)
    return _linear((c, -s, ZERO), (s, c, ZERO), (ZERO, ZERO, ONE))


def rotate_around_axis(ux: Number, uy: Number, uz: Number, theta: Number) -> Matrix:
    """Rodrigues rotation about an axis through the origin.

    The axis is normalized; a zero axis raises DivisionByZero.
    """
    x, y, z = Vector((ux, uy, uz)).normalize()
    c, s = cos(theta), sin(theta)
    t = ONE - c
    return _linear(
        (t * x * x + c, t * x * y - s * z, t * x * z + s * y),
        (t * x * y + s * z, t * y * y + c, t * y * z - s * x),
        (t * x * z - s * y, t * y * z + s * x, t * z * z + c),
    )


def rotate_around_point(
    ux: Number, uy: Number, uz: Number, theta: Number, px: Number, py: Number, pz: Number
) -> Matrix:
    px, py, pz = D(px), D(py), D(pz)
    return translation(px, py, pz) @ rotate_around_axis(ux, uy, uz, theta) @ translation(-px, -py, -pz)


def reflect_xy() -> Matrix:
    return scale(ONE, ONE, -ONE)


def reflect_xz() -> Matrix:
    return scale(ONE, -ONE, ONE)


def reflect_yz() -> Matrix:
    return scale(-ONE, ONE, ONE)


def reflect_origin() -> Matrix:
    return scale(-ONE, -ONE, -ONE)


def apply_transform(
    m: Matrix, x: Number, y: Number, z: Number, epsilon: Number | None = None
) -> tuple[Decimal, Decimal, Decimal]:
    if m.shape != (4, 4):
        raise DimensionMismatch(f"3-D transform must be 4x4, got {m.shape}")
    rx, ry, rz, rw = m.apply_to_vector(Vector((x, y, z, ONE)))
    if rw == ONE:
        return (rx, ry, rz)
    eps = default_epsilon() if epsilon is None else D(epsilon)
    if abs(rw) < eps:
        raise ProjectiveSingularity(f"homogeneous w = {rw} is too close to zero")
    return (rx / rw, ry / rw, rz / rw)
