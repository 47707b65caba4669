"""Closed-form Bezier and elliptical-arc evaluation in Decimal.

All functions are pure. Sampling helpers return the points after the start
point, ending exactly on the end point, so consecutive segments can be
concatenated without duplicates.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from svgeom.errors import InvalidArgument
from svgeom.geometry.primitives import Point
from svgeom.numeric import ONE, ZERO, D, Number, atan2, cos, pi, radians, sin


def quadratic_point(p0: Point, p1: Point, p2: Point, t: Number) -> Point:
    t = D(t)
    mt = ONE - t
    a = mt * mt
    b = 2 * mt * t
    c = t * t
    return Point(a * p0.x + b * p1.x + c * p2.x, a * p0.y + b * p1.y + c * p2.y)


def cubic_point(p0: Point, p1: Point, p2: Point, p3: Point, t: Number) -> Point:
    t = D(t)
    mt = ONE - t
    a = mt * mt * mt
    b = 3 * mt * mt * t
    c = 3 * mt * t * t
    d = t * t * t
    return Point(
        a * p0.x + b * p1.x + c * p2.x + d * p3.x,
        a * p0.y + b * p1.y + c * p2.y + d * p3.y,
    )


def _parameters(segments: int) -> list[Decimal]:
    if segments < 1:
        raise InvalidArgument(f"segments must be >= 1, got {segments}")
    n = Decimal(segments)
    return [Decimal(i) / n for i in range(1, segments + 1)]


def sample_quadratic(p0: Point, p1: Point, p2: Point, segments: int) -> list[Point]:
    points = [quadratic_point(p0, p1, p2, t) for t in _parameters(segments)]
    points[-1] = p2
    return points


def sample_cubic(p0: Point, p1: Point, p2: Point, p3: Point, segments: int) -> list[Point]:
    points = [cubic_point(p0, p1, p2, p3, t) for t in _parameters(segments)]
    points[-1] = p3
    return points


# -- elliptical arcs -------------------------------------------------------


@dataclass(frozen=True)
class ArcCenter:
    """Center parameterization of an SVG elliptical arc (angles in radians)."""

    cx: Decimal
    cy: Decimal
    rx: Decimal
    ry: Decimal
    phi: Decimal
    theta1: Decimal
    delta_theta: Decimal

    def point_at(self, theta: Decimal) -> Point:
        cos_phi, sin_phi = cos(self.phi), sin(self.phi)
        ct, st = cos(theta), sin(theta)
        return Point(
            self.cx + self.rx * cos_phi * ct - self.ry * sin_phi * st,
            self.cy + self.rx * sin_phi * ct + self.ry * cos_phi * st,
        )

    def tangent_angle_at(self, theta: Decimal) -> Decimal:
        """Direction of travel at ``theta``, following the sweep direction."""
        cos_phi, sin_phi = cos(self.phi), sin(self.phi)
        ct, st = cos(theta), sin(theta)
        dx = -self.rx * cos_phi * st - self.ry * sin_phi * ct
        dy = -self.rx * sin_phi * st + self.ry * cos_phi * ct
        if self.delta_theta < 0:
            dx, dy = -dx, -dy
        return atan2(dy, dx)


def arc_center_parameters(
    start: Point,
    rx: Number,
    ry: Number,
    x_axis_rotation: Number,
    large_arc: Number,
    sweep: Number,
    end: Point,
) -> ArcCenter | None:
    """Endpoint to center conversion (SVG implementation notes F.6.5).

    Returns None when the arc degenerates to a straight line: coincident
    endpoints or a zero radius. Radii too small to span the endpoints are
    scaled up by sqrt(lambda).
    """
    rx = abs(D(rx))
    ry = abs(D(ry))
    if rx.is_zero() or ry.is_zero() or start == end:
        return None
    phi = radians(x_axis_rotation)
    cos_phi, sin_phi = cos(phi), sin(phi)

    dx2 = (start.x - end.x) / 2
    dy2 = (start.y - end.y) / 2
    x1p = cos_phi * dx2 + sin_phi * dy2
    y1p = -sin_phi * dx2 + cos_phi * dy2

    lam = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
    if lam > 1:
        root = lam.sqrt()
        rx *= root
        ry *= root

    rx2, ry2 = rx * rx, ry * ry
    numerator = rx2 * ry2 - rx2 * y1p * y1p - ry2 * x1p * x1p
    denominator = rx2 * y1p * y1p + ry2 * x1p * x1p
    coef = (max(ZERO, numerator / denominator)).sqrt()
    if D(large_arc) == D(sweep):
        coef = -coef
    cxp = coef * rx * y1p / ry
    cyp = -coef * ry * x1p / rx

    cx = cos_phi * cxp - sin_phi * cyp + (start.x + end.x) / 2
    cy = sin_phi * cxp + cos_phi * cyp + (start.y + end.y) / 2

    theta1 = atan2((y1p - cyp) / ry, (x1p - cxp) / rx)
    theta2 = atan2((-y1p - cyp) / ry, (-x1p - cxp) / rx)
    delta = theta2 - theta1
    two_pi = 2 * pi()
    if D(sweep).is_zero() and delta > 0:
        delta -= two_pi
    elif not D(sweep).is_zero() and delta < 0:
        delta += two_pi
    return ArcCenter(cx, cy, rx, ry, phi, theta1, delta)


def sample_arc(start: Point, args: tuple[Decimal, ...], segments: int) -> list[Point]:
    """Sample an absolute arc given its 7 ``A`` arguments."""
    rx, ry, rotation, large_arc, sweep, x, y = args
    end = Point(x, y)
    arc = arc_center_parameters(start, rx, ry, rotation, large_arc, sweep, end)
    if arc is None:
        return [end]
    points = [arc.point_at(arc.theta1 + arc.delta_theta * t) for t in _parameters(segments)]
    points[-1] = end
    return points


def arc_tangent_angles(start: Point, args: tuple[Decimal, ...]) -> tuple[Decimal, Decimal] | None:
    """(start, end) tangent angles of an absolute arc, or None when it is a line."""
    rx, ry, rotation, large_arc, sweep, x, y = args
    arc = arc_center_parameters(start, rx, ry, rotation, large_arc, sweep, Point(x, y))
    if arc is None:
        return None
    return (
        arc.tangent_angle_at(arc.theta1),
        arc.tangent_angle_at(arc.theta1 + arc.delta_theta),
    )
