"""Pattern resolver: expand a <pattern> fill into concrete tile geometry.

A pattern child lands in user space through

    patternTransform · translate(tile position) · content transform · child transform

where the content transform maps viewBox (or objectBoundingBox content)
coordinates into one tile. Tiles are laid out on a grid anchored at the tile
origin and cover the target bounding box.
"""

from __future__ import annotations

import enum
import logging
import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from itertools import islice
from typing import NamedTuple

from svgeom.config import default_decimal_precision
from svgeom.errors import InvalidArgument, InvalidViewBox
from svgeom.geometry.polygon_ops import polygon_intersection, union_all_pairwise
from svgeom.geometry.primitives import BBox, Point, ViewBox
from svgeom.geometry.shapes import Shape, Style, StyledPolygon, iter_shape_polygons, parse_shapes
from svgeom.linalg.matrix import Matrix
from svgeom.numeric import ZERO, D, precision_scope
from svgeom.svg.element import ElementNode, get_href, parse_number, parse_view_box
from svgeom.svg.serializer import polygons_to_path_data
from svgeom.transforms.transform_parser import parse_transform
from svgeom.transforms.transforms2d import apply_to_points, identity, scale, translation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternConfig:
    # Samples per curve segment of pattern children
    samples: int = 20
    # Hard cap on tiles per call; later tiles are dropped
    max_tiles: int = 1000
    # Decimal places in emitted path data
    precision: int = 6
    decimal_precision: int = field(default_factory=default_decimal_precision)


class PatternUnits(str, enum.Enum):
    OBJECT_BOUNDING_BOX = "objectBoundingBox"
    USER_SPACE_ON_USE = "userSpaceOnUse"


@dataclass(frozen=True)
class PatternDefinition:
    id: str
    pattern_units: PatternUnits = PatternUnits.OBJECT_BOUNDING_BOX
    pattern_content_units: PatternUnits = PatternUnits.USER_SPACE_ON_USE
    # None when the attribute is absent
    pattern_transform: Matrix | None = None
    x: Decimal = ZERO
    y: Decimal = ZERO
    width: Decimal = ZERO
    height: Decimal = ZERO
    view_box: ViewBox | None = None
    preserve_aspect_ratio: str = "xMidYMid meet"
    # Parsed for reference only; inherited attributes are not merged
    href: str | None = None
    children: tuple[Shape, ...] = ()


class Tile(NamedTuple):
    x: Decimal
    y: Decimal
    width: Decimal
    height: Decimal


class TileCount(NamedTuple):
    columns: int
    rows: int
    total: int


# -- parsing -----------------------------------------------------------------


def _parse_length(value: str | None, default: int = 0) -> Decimal:
    """Number or percentage; ``25%`` becomes 0.25."""
    if value is not None and value.strip().endswith("%"):
        return D(value.strip()[:-1]) / 100
    return parse_number(value, default)


def _parse_units(value: str | None, default: PatternUnits, pattern_id: str) -> PatternUnits:
    if value is None or not value.strip():
        return default
    try:
        return PatternUnits(value.strip())
    except ValueError:
        logger.warning("Pattern %r: unknown units %r, using %s", pattern_id, value, default.value)
        return default


def parse_pattern_transform(value: str | None) -> Matrix | None:
    """``patternTransform`` as a matrix; None when the attribute is absent or blank."""
    if value is None or not value.strip():
        return None
    return parse_transform(value)


def parse_pattern_element(element: ElementNode) -> PatternDefinition:
    if element.tag_name != "pattern":
        raise InvalidArgument(f"expected <pattern>, got <{element.tag_name}>")
    pattern_id = element.get_attribute("id") or ""
    href = get_href(element)
    if href:
        logger.debug("Pattern %r references #%s; inherited attributes are not merged", pattern_id, href)

    return PatternDefinition(
        id=pattern_id,
        pattern_units=_parse_units(
            element.get_attribute("patternUnits"), PatternUnits.OBJECT_BOUNDING_BOX, pattern_id
        ),
        pattern_content_units=_parse_units(
            element.get_attribute("patternContentUnits"), PatternUnits.USER_SPACE_ON_USE, pattern_id
        ),
        pattern_transform=parse_pattern_transform(element.get_attribute("patternTransform")),
        x=_parse_length(element.get_attribute("x")),
        y=_parse_length(element.get_attribute("y")),
        width=_parse_length(element.get_attribute("width")),
        height=_parse_length(element.get_attribute("height")),
        view_box=parse_view_box(element.get_attribute("viewBox")),
        preserve_aspect_ratio=(element.get_attribute("preserveAspectRatio") or "xMidYMid meet").strip(),
        href=href,
        children=tuple(parse_shapes(element.children, f"pattern {pattern_id!r}")),
    )


# -- tiles -------------------------------------------------------------------


def get_pattern_tile(definition: PatternDefinition, bbox: BBox) -> Tile:
    """Tile rectangle in user space."""
    if definition.pattern_units is PatternUnits.OBJECT_BOUNDING_BOX:
        return Tile(
            bbox.x + definition.x * bbox.width,
            bbox.y + definition.y * bbox.height,
            definition.width * bbox.width,
            definition.height * bbox.height,
        )
    return Tile(definition.x, definition.y, definition.width, definition.height)


def get_pattern_content_transform(definition: PatternDefinition, tile: Tile, bbox: BBox) -> Matrix:
    """Map pattern content coordinates into a tile whose origin is (0, 0).

    A viewBox is fitted with a uniform ``meet`` scale and centred in the tile.
    objectBoundingBox content units then scale content by the target bbox.
    """
    m = identity()
    vb = definition.view_box
    if vb is not None:
        if vb.is_degenerate:
            raise InvalidViewBox(f"pattern {definition.id!r} has a zero-area viewBox")
        s = min(tile.width / vb.width, tile.height / vb.height)
        offset_x = (tile.width - vb.width * s) / 2
        offset_y = (tile.height - vb.height * s) / 2
        m = translation(offset_x - vb.x * s, offset_y - vb.y * s) @ scale(s)

    if definition.pattern_content_units is PatternUnits.OBJECT_BOUNDING_BOX:
        m = m @ translation(bbox.x, bbox.y) @ scale(bbox.width, bbox.height)
    return m


def _tile_grid(tile: Tile, cover: BBox) -> tuple[range, range]:
    """Column and row indices of the tiles overlapping ``cover``."""
    if tile.width <= 0 or tile.height <= 0:
        return range(0), range(0)
    columns = range(
        math.floor((cover.x - tile.x) / tile.width),
        math.ceil((cover.max_x - tile.x) / tile.width),
    )
    rows = range(
        math.floor((cover.y - tile.y) / tile.height),
        math.ceil((cover.max_y - tile.y) / tile.height),
    )
    return columns, rows


def iter_tile_positions(tile: Tile, cover: BBox) -> Iterator[Point]:
    """Origins of every tile overlapping ``cover``, column by column."""
    columns, rows = _tile_grid(tile, cover)
    for i in columns:
        for j in rows:
            yield Point(tile.x + tile.width * i, tile.y + tile.height * j)


def get_tile_positions(tile: Tile, cover: BBox, limit: int | None = None) -> list[Point]:
    """The first ``limit`` tile origins; all of them when ``limit`` is None."""
    return list(islice(iter_tile_positions(tile, cover), limit))


def get_pattern_tile_count(definition: PatternDefinition, bbox: BBox) -> TileCount:
    tile = get_pattern_tile(definition, bbox)
    if tile.width <= 0 or tile.height <= 0 or bbox.width <= 0 or bbox.height <= 0:
        return TileCount(0, 0, 0)
    columns = math.ceil(bbox.width / tile.width)
    rows = math.ceil(bbox.height / tile.height)
    return TileCount(columns, rows, columns * rows)


def get_pattern_content_bbox(definition: PatternDefinition, config: PatternConfig | None = None) -> BBox | None:
    """Bounding box of the children in content coordinates; None when there is no geometry."""
    config = config or PatternConfig()
    with precision_scope(config.decimal_precision):
        points = [
            p
            for polygon in iter_shape_polygons(definition.children, identity(), Style(), config.samples)
            for p in polygon.points
        ]
    if not points:
        return None
    return BBox.from_points(points)


# -- resolution ----------------------------------------------------------------


def _cover_box(definition: PatternDefinition, bbox: BBox) -> BBox:
    """Region to tile in pattern space: the target mapped back through patternTransform."""
    if definition.pattern_transform is None:
        return bbox
    inverse = definition.pattern_transform.inverse()
    return BBox.from_points(apply_to_points(inverse, bbox.corners()))


def resolve_pattern(
    definition: PatternDefinition,
    bbox: BBox,
    config: PatternConfig | None = None,
) -> list[StyledPolygon]:
    """Every child of every covering tile as a user-space polygon."""
    config = config or PatternConfig()
    result: list[StyledPolygon] = []
    with precision_scope(config.decimal_precision):
        tile = get_pattern_tile(definition, bbox)
        if tile.width <= 0 or tile.height <= 0:
            logger.debug("Pattern %r has an empty tile; nothing to resolve", definition.id)
            return result

        content = get_pattern_content_transform(definition, tile, bbox)
        cover = _cover_box(definition, bbox)
        columns, rows = _tile_grid(tile, cover)
        needed = len(columns) * len(rows)
        if needed > config.max_tiles:
            logger.debug("Pattern %r needs %d tiles; keeping the first %d", definition.id, needed, config.max_tiles)
        positions = get_tile_positions(tile, cover, max(config.max_tiles, 0))

        for position in positions:
            m = translation(position.x, position.y) @ content
            if definition.pattern_transform is not None:
                m = definition.pattern_transform @ m
            for polygon in iter_shape_polygons(definition.children, m, Style(), config.samples):
                if len(polygon.points) >= 3:
                    result.append(polygon)

    logger.info("Resolved pattern %r into %d polygons over %d tiles", definition.id, len(result), len(positions))
    return result


def apply_pattern(
    target_polygon: Sequence[Point],
    definition: PatternDefinition,
    bbox: BBox,
    config: PatternConfig | None = None,
) -> list[StyledPolygon]:
    """Pattern geometry clipped to the target. Disjoint fragments stay separate."""
    config = config or PatternConfig()
    result = []
    for polygon in resolve_pattern(definition, bbox, config):
        if not polygon.style.visible:
            continue
        for ring in polygon_intersection(target_polygon, polygon.points):
            if len(ring) >= 3:
                result.append(StyledPolygon(ring, polygon.style))
    return result


def pattern_to_clip_path(
    definition: PatternDefinition,
    bbox: BBox,
    config: PatternConfig | None = None,
) -> list[list[Point]]:
    """Union of all visible pattern polygons."""
    polygons = [p.points for p in resolve_pattern(definition, bbox, config) if p.style.visible]
    return union_all_pairwise(polygons)


def pattern_to_path_data(definition: PatternDefinition, bbox: BBox, config: PatternConfig | None = None) -> str:
    config = config or PatternConfig()
    return polygons_to_path_data([p.points for p in resolve_pattern(definition, bbox, config)], config.precision)
