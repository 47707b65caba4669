"""Plain geometric records shared by the resolvers. No engine imports."""

from __future__ import annotations

from decimal import Decimal
from typing import NamedTuple

from svgeom.numeric import ZERO, D, Number


class Point(NamedTuple):
    x: Decimal
    y: Decimal

    @classmethod
    def of(cls, x: Number, y: Number) -> Point:
        return cls(D(x), D(y))

    def to_floats(self) -> tuple[float, float]:
        return (float(self.x), float(self.y))


class BBox(NamedTuple):
    """Axis-aligned rectangle: origin plus size."""

    x: Decimal
    y: Decimal
    width: Decimal
    height: Decimal

    @classmethod
    def of(cls, x: Number, y: Number, width: Number, height: Number) -> BBox:
        return cls(D(x), D(y), D(width), D(height))

    @classmethod
    def from_points(cls, points: list[Point]) -> BBox:
        if not points:
            return cls(ZERO, ZERO, ZERO, ZERO)
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        return cls(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))

    @property
    def max_x(self) -> Decimal:
        return self.x + self.width

    @property
    def max_y(self) -> Decimal:
        return self.y + self.height

    def corners(self) -> list[Point]:
        return [
            Point(self.x, self.y),
            Point(self.max_x, self.y),
            Point(self.max_x, self.max_y),
            Point(self.x, self.max_y),
        ]


class ViewBox(NamedTuple):
    x: Decimal
    y: Decimal
    width: Decimal
    height: Decimal

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0
