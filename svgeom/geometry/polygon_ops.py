"""Polygon boolean operations on top of shapely.

Inputs and outputs are Decimal point rings; the boolean step itself runs in
float64, like every other area computation in the package. Results are lists
of exterior rings without the closing duplicate point; disjoint pieces stay
separate and degenerate results are empty lists.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal

from shapely.geometry import GeometryCollection, MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient

from svgeom.geometry.primitives import BBox, Point
from svgeom.numeric import D
from svgeom.utils.geometry import centroid, remove_duplicate_consecutive, signed_area, to_array, winding_direction

logger = logging.getLogger(__name__)


def to_shapely(points: Sequence[Point]) -> Polygon | MultiPolygon | None:
    """Valid shapely geometry for a ring, or None when it has no area."""
    coords = remove_duplicate_consecutive(to_array(points))
    if len(coords) < 3:
        return None
    poly: Polygon | MultiPolygon = Polygon(coords)
    if not poly.is_valid:
        poly = poly.buffer(0)
    if poly.is_empty or poly.area <= 0:
        return None
    return poly


def _polygons_of(geometry: BaseGeometry) -> list[Polygon]:
    if isinstance(geometry, Polygon):
        return [geometry]
    if isinstance(geometry, (MultiPolygon, GeometryCollection)):
        out: list[Polygon] = []
        for part in geometry.geoms:
            out.extend(_polygons_of(part))
        return out
    return []


def to_rings(geometry: BaseGeometry | None) -> list[list[Point]]:
    """Exterior rings (counter-clockwise in y-up terms) of every polygonal piece."""
    if geometry is None or geometry.is_empty:
        return []
    rings = []
    for poly in _polygons_of(geometry):
        if poly.is_empty or poly.area <= 0:
            continue
        coords = list(orient(poly, sign=1.0).exterior.coords)[:-1]
        if len(coords) >= 3:
            rings.append([Point(D(x), D(y)) for x, y in coords])
    return rings


def polygon_intersection(subject: Sequence[Point], clip: Sequence[Point]) -> list[list[Point]]:
    a = to_shapely(subject)
    b = to_shapely(clip)
    if a is None or b is None:
        return []
    return to_rings(a.intersection(b))


def polygon_union(first: Sequence[Point], second: Sequence[Point]) -> list[list[Point]]:
    a = to_shapely(first)
    b = to_shapely(second)
    if a is None:
        return to_rings(b)
    if b is None:
        return to_rings(a)
    return to_rings(a.union(b))


def union_all_pairwise(polygons: Iterable[Sequence[Point]]) -> list[list[Point]]:
    """Fold union over the polygons; a degenerate step keeps the accumulator as it was."""
    accumulator: BaseGeometry | None = None
    for points in polygons:
        geometry = to_shapely(points)
        if geometry is None:
            logger.debug("Skipping degenerate polygon in union (%d points)", len(points))
            continue
        if accumulator is None:
            accumulator = geometry
            continue
        merged = accumulator.union(geometry)
        if merged.is_empty or not _polygons_of(merged):
            logger.debug("Union step produced no area; keeping previous result")
            continue
        accumulator = merged
    return to_rings(accumulator)


def polygon_area(points: Sequence[Point]) -> float:
    """Unsigned area."""
    return abs(signed_area(to_array(points)))


def polygon_bbox(points: Sequence[Point]) -> BBox:
    return BBox.from_points(list(points))


def total_area(polygons: Iterable[Sequence[Point]]) -> Decimal:
    return D(sum(polygon_area(p) for p in polygons))


def polygon_centroid(points: Sequence[Point]) -> Point:
    cx, cy = centroid(to_array(points))
    return Point(D(cx), D(cy))


def polygon_winding(points: Sequence[Point]) -> int:
    """1 when counter-clockwise in y-up axes, -1 when clockwise, 0 when flat."""
    return winding_direction(to_array(points))
