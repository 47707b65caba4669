"""Tests for pattern tiling."""

import logging
from decimal import Decimal

import pytest

from svgeom.errors import InvalidArgument, InvalidViewBox
from svgeom.geometry.polygon_ops import polygon_area
from svgeom.geometry.primitives import BBox, Point, ViewBox
from svgeom.numeric import precision_scope
from svgeom.resolver.pattern_resolver import (
    PatternConfig,
    PatternDefinition,
    PatternUnits,
    Tile,
    TileCount,
    apply_pattern,
    get_pattern_content_bbox,
    get_pattern_content_transform,
    get_pattern_tile,
    get_pattern_tile_count,
    get_tile_positions,
    parse_pattern_element,
    parse_pattern_transform,
    pattern_to_clip_path,
    pattern_to_path_data,
    resolve_pattern,
)
from svgeom.svg.element import parse_svg_tree
from svgeom.transforms.transforms2d import apply_transform
from tests.conftest import CHECKER_PATTERN_SVG, element_by_id

PAGE = BBox.of(0, 0, 400, 300)


def pattern(pattern_id):
    return parse_pattern_element(element_by_id(CHECKER_PATTERN_SVG, pattern_id))


def test_object_bounding_box_tile():
    definition = pattern("checker")
    assert get_pattern_tile(definition, PAGE) == Tile(0, 0, 100, 75)
    assert get_pattern_tile_count(definition, PAGE) == TileCount(4, 4, 16)


def test_tile_offset_scales_with_bbox():
    definition = PatternDefinition(id="p", x=Decimal("0.1"), width=Decimal("0.5"), height=Decimal(1))
    assert get_pattern_tile(definition, BBox.of(10, 0, 200, 50)) == Tile(30, 0, 100, 50)


def test_user_space_tile_is_verbatim():
    assert get_pattern_tile(pattern("grid"), PAGE) == Tile(0, 0, 20, 20)


def test_percentages():
    definition = pattern("percent")
    assert (definition.width, definition.height) == (Decimal("0.5"), Decimal("0.25"))
    assert definition.href == "checker"
    assert get_pattern_tile_count(definition, PAGE) == TileCount(2, 4, 8)


def test_degenerate_tiles_yield_nothing():
    definition = PatternDefinition(id="p", width=Decimal(0), height=Decimal(1))
    assert get_pattern_tile_count(definition, PAGE) == TileCount(0, 0, 0)
    assert resolve_pattern(definition, PAGE) == []
    assert get_pattern_tile_count(pattern("checker"), BBox.of(0, 0, 0, 10)) == TileCount(0, 0, 0)


def test_tile_positions_cover_offset_box():
    positions = get_tile_positions(Tile(0, 0, 10, 10), BBox.of(-5, -5, 20, 10))
    assert positions == [Point.of(x, y) for x in (-10, 0, 10) for y in (-10, 0)]
    assert get_tile_positions(Tile(0, 0, 0, 10), PAGE) == []


def test_resolve_checker_covers_page():
    polygons = resolve_pattern(pattern("checker"), PAGE)
    assert len(polygons) == 16
    assert polygons[0].points == [Point.of(0, 0), Point.of(50, 0), Point.of(50, 25), Point.of(0, 25)]
    # Rows advance before columns
    assert polygons[1].points[0] == Point.of(0, 75)
    assert polygons[4].points[0] == Point.of(100, 0)


def test_tiles_cover_unaligned_bbox():
    polygons = resolve_pattern(pattern("grid"), BBox.of(5, 5, 30, 30))
    origins = {p.points[0] for p in polygons}
    assert Point.of(0, 0) in origins
    assert Point.of(30, 30) in origins
    assert len(polygons) == 8


def test_view_box_uses_uniform_meet_scale():
    definition = pattern("boxed")
    tile = get_pattern_tile(definition, PAGE)
    m = get_pattern_content_transform(definition, tile, PAGE)
    # 10x10 viewBox in a 20x10 tile: scale 1, centred horizontally
    assert apply_transform(m, 0, 0) == (5, 0)
    assert apply_transform(m, 10, 10) == (15, 10)
    polygons = resolve_pattern(definition, BBox.of(0, 0, 20, 10))
    assert polygons[0].points == [Point.of(5, 0), Point.of(15, 0), Point.of(15, 10), Point.of(5, 10)]


def test_degenerate_pattern_view_box():
    definition = PatternDefinition(
        id="p",
        pattern_units=PatternUnits.USER_SPACE_ON_USE,
        width=Decimal(10),
        height=Decimal(10),
        view_box=ViewBox(Decimal(0), Decimal(0), Decimal(10), Decimal(0)),
    )
    with pytest.raises(InvalidViewBox):
        resolve_pattern(definition, PAGE)


def test_object_bounding_box_content_units():
    definition = PatternDefinition(
        id="p",
        pattern_units=PatternUnits.USER_SPACE_ON_USE,
        pattern_content_units=PatternUnits.OBJECT_BOUNDING_BOX,
        width=Decimal(100),
        height=Decimal(100),
    )
    bbox = BBox.of(10, 20, 100, 100)
    m = get_pattern_content_transform(definition, get_pattern_tile(definition, bbox), bbox)
    assert apply_transform(m, "0.5", "0.5") == (60, 70)


def test_pattern_transform_rotates_tiles():
    definition = pattern("rotated")
    assert definition.pattern_transform is not None
    with precision_scope(50):
        polygons = resolve_pattern(definition, BBox.of(0, 0, 10, 10))
        assert len(polygons) == 4
        for polygon in polygons:
            assert polygon_area(polygon.points) == pytest.approx(25)
            # Rotated squares have no horizontal edge
            a, b = polygon.points[0], polygon.points[1]
            assert abs(a.y - b.y) > 1


def test_parse_pattern_transform():
    assert parse_pattern_transform(None) is None
    assert parse_pattern_transform("  ") is None
    assert parse_pattern_transform("translate(1 2)") is not None


def test_max_tiles_caps_output(caplog):
    with caplog.at_level(logging.DEBUG, logger="svgeom.resolver.pattern_resolver"):
        polygons = resolve_pattern(pattern("checker"), PAGE, PatternConfig(max_tiles=5))
    assert len(polygons) == 5
    assert "keeping the first 5" in caplog.text


def test_max_tiles_bounds_work_on_huge_grids():
    definition = PatternDefinition(
        id="fine",
        pattern_units=PatternUnits.USER_SPACE_ON_USE,
        width=Decimal(1),
        height=Decimal(1),
        children=pattern("grid").children,
    )
    # A million by a million tiles; only the first ten are ever built
    huge = BBox.of(0, 0, 1000000, 1000000)
    polygons = resolve_pattern(definition, huge, PatternConfig(max_tiles=10))
    assert len(polygons) == 20
    assert get_tile_positions(Tile(0, 0, 1, 1), huge, 3) == [Point.of(0, 0), Point.of(0, 1), Point.of(0, 2)]
    assert get_tile_positions(Tile(0, 0, 1, 1), huge, 0) == []


def test_apply_pattern_clips_to_target():
    target = BBox.of(0, 0, 60, 60).corners()
    fragments = apply_pattern(target, pattern("checker"), PAGE)
    assert len(fragments) == 1
    assert polygon_area(fragments[0].points) == pytest.approx(1250)

    whole = apply_pattern(PAGE.corners(), pattern("checker"), PAGE)
    assert len(whole) == 16
    assert sum(polygon_area(f.points) for f in whole) == pytest.approx(20000)


def test_invisible_children_are_not_applied():
    bbox = BBox.of(0, 0, 40, 40)
    assert len(resolve_pattern(pattern("grid"), bbox)) == 8
    fragments = apply_pattern(bbox.corners(), pattern("grid"), bbox)
    assert len(fragments) == 4
    assert all(f.fill == "blue" for f in fragments)


def test_pattern_to_clip_path():
    rings = pattern_to_clip_path(pattern("grid"), BBox.of(0, 0, 40, 40))
    assert len(rings) == 4
    assert sum(polygon_area(r) for r in rings) == pytest.approx(400)


def test_pattern_to_path_data():
    d = pattern_to_path_data(pattern("boxed"), BBox.of(0, 0, 20, 10), PatternConfig(precision=0))
    assert d == "M 5 0 L 15 0 L 15 10 L 5 10 Z"


def test_content_bbox():
    assert get_pattern_content_bbox(pattern("checker")) == BBox.of(0, 0, 50, 25)
    assert get_pattern_content_bbox(PatternDefinition(id="empty")) is None


def test_parse_pattern_element_units():
    definition = pattern("grid")
    assert definition.pattern_units is PatternUnits.USER_SPACE_ON_USE
    assert definition.pattern_content_units is PatternUnits.USER_SPACE_ON_USE
    assert len(definition.children) == 2
    odd = parse_pattern_element(parse_svg_tree('<pattern id="odd" patternUnits="pixels" width="1" height="1"/>'))
    assert odd.pattern_units is PatternUnits.OBJECT_BOUNDING_BOX
    with pytest.raises(InvalidArgument):
        parse_pattern_element(parse_svg_tree("<marker/>"))
