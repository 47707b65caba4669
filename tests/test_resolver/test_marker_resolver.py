"""Tests for marker placement."""

import logging
from decimal import Decimal

import pytest

from svgeom.errors import InvalidArgument, InvalidViewBox
from svgeom.geometry.primitives import Point, ViewBox
from svgeom.numeric import pi, precision_scope
from svgeom.resolver.marker_resolver import (
    MarkerConfig,
    MarkerDefinition,
    MarkerType,
    MarkerUnits,
    Orientation,
    OrientKind,
    Vertex,
    build_marker_defs,
    get_marker_transform,
    get_path_vertices,
    marker_to_polygons,
    markers_to_path_data,
    mid_tangent,
    parse_marker_element,
    resolve_markers,
)
from svgeom.svg.element import build_id_map, parse_svg_tree
from svgeom.transforms.transforms2d import apply_transform
from tests.conftest import ARROW_MARKER_SVG, element_by_id

TOL = Decimal("1e-30")


def near(point, x, y, tol=TOL):
    return abs(point.x - Decimal(x)) < tol and abs(point.y - Decimal(y)) < tol


def test_ref_point_lands_on_vertex_scaled_by_stroke_width():
    definition = MarkerDefinition(id="m", ref_x=Decimal(5), ref_y=Decimal(5))
    m = get_marker_transform(definition, Point.of(100, 200), 0, stroke_width=2)
    assert apply_transform(m, 5, 5) == (100, 200)
    assert apply_transform(m, 6, 5) == (102, 200)


def test_user_space_units_ignore_stroke_width():
    definition = MarkerDefinition(
        id="m", ref_x=Decimal(5), ref_y=Decimal(5), marker_units=MarkerUnits.USER_SPACE_ON_USE
    )
    m = get_marker_transform(definition, Point.of(100, 200), 0, stroke_width=4)
    assert apply_transform(m, 6, 5) == (101, 200)


@pytest.mark.parametrize("angle", ["0.3", "1.7", "-2.9"])
def test_ref_point_invariant_under_rotation_and_view_box(angle):
    definition = MarkerDefinition(
        id="m",
        marker_width=Decimal(6),
        marker_height=Decimal(4),
        ref_x=Decimal(7),
        ref_y=Decimal(3),
        view_box=ViewBox(Decimal(2), Decimal(1), Decimal(10), Decimal(5)),
    )
    with precision_scope(50):
        m = get_marker_transform(definition, Point.of(40, 60), Decimal(angle), stroke_width=3)
        assert near(apply_transform(m, 7, 3), 40, 60)


def test_view_box_scales_each_axis_independently():
    definition = MarkerDefinition(
        id="m",
        marker_width=Decimal(20),
        marker_height=Decimal(10),
        view_box=ViewBox(Decimal(0), Decimal(0), Decimal(10), Decimal(10)),
        marker_units=MarkerUnits.USER_SPACE_ON_USE,
    )
    m = get_marker_transform(definition, Point.of(0, 0), 0)
    assert apply_transform(m, 10, 10) == (20, 10)


def test_auto_start_reverse_flips_only_at_start():
    definition = MarkerDefinition(
        id="m", orient=Orientation(OrientKind.AUTO_START_REVERSE), marker_units=MarkerUnits.USER_SPACE_ON_USE
    )
    with precision_scope(50):
        start = get_marker_transform(definition, Point.of(0, 0), 0, is_start=True)
        assert near(apply_transform(start, 1, 0), -1, 0)
        end = get_marker_transform(definition, Point.of(0, 0), 0, is_start=False)
        assert apply_transform(end, 1, 0) == (1, 0)


def test_fixed_orientation_ignores_tangent():
    definition = MarkerDefinition(
        id="m", orient=Orientation.parse("90"), marker_units=MarkerUnits.USER_SPACE_ON_USE
    )
    with precision_scope(50):
        m = get_marker_transform(definition, Point.of(0, 0), Decimal("2.5"))
        assert near(apply_transform(m, 1, 0), 0, 1)


def test_degenerate_view_box_and_bad_stroke_width():
    definition = MarkerDefinition(id="m", view_box=ViewBox(Decimal(0), Decimal(0), Decimal(0), Decimal(10)))
    with pytest.raises(InvalidViewBox):
        get_marker_transform(definition, Point.of(0, 0), 0)
    with pytest.raises(InvalidArgument):
        get_marker_transform(MarkerDefinition(id="m"), Point.of(0, 0), 0, stroke_width=0)


@pytest.mark.parametrize(
    "value,kind,degrees",
    [
        (None, OrientKind.AUTO, 0),
        ("auto", OrientKind.AUTO, 0),
        ("auto-start-reverse", OrientKind.AUTO_START_REVERSE, 0),
        ("45", OrientKind.FIXED, 45),
        ("-30deg", OrientKind.FIXED, -30),
        ("100grad", OrientKind.FIXED, 90),
        ("0.25turn", OrientKind.FIXED, 90),
        ("sideways", OrientKind.AUTO, 0),
    ],
)
def test_orientation_parse(value, kind, degrees):
    orientation = Orientation.parse(value)
    assert orientation.kind is kind
    assert orientation.angle == degrees


def test_orientation_in_radians():
    with precision_scope(40):
        orientation = Orientation.parse("3.14159265358979323846264338327950288rad")
        assert abs(orientation.angle - 180) < Decimal("1e-30")


def test_parse_marker_element():
    definition = parse_marker_element(element_by_id(ARROW_MARKER_SVG, "arrow"))
    assert definition.marker_width == 20
    assert definition.ref_x == 10
    assert definition.orient.kind is OrientKind.AUTO_START_REVERSE
    assert definition.marker_units is MarkerUnits.USER_SPACE_ON_USE
    assert definition.view_box == ViewBox(Decimal(0), Decimal(0), Decimal(10), Decimal(10))
    assert [child.tag for child in definition.children] == ["path"]


def test_parse_marker_defaults_and_errors():
    definition = parse_marker_element(parse_svg_tree('<marker id="plain"/>'))
    assert (definition.marker_width, definition.marker_height) == (3, 3)
    assert definition.orient.kind is OrientKind.AUTO
    with pytest.raises(InvalidArgument):
        parse_marker_element(parse_svg_tree('<marker id="flat" markerWidth="0"/>'))
    with pytest.raises(InvalidArgument):
        parse_marker_element(parse_svg_tree("<rect/>"))


def test_build_marker_defs(marker_doc):
    assert set(build_marker_defs(marker_doc)) == {"dot", "arrow", "fixed"}


def test_path_vertices_and_tangents():
    with precision_scope(40):
        vertices = get_path_vertices("M 10 10 L 110 10 L 110 110 L 210 110")
        assert [v.position for v in vertices] == [(10, 10), (110, 10), (110, 110), (210, 110)]
        assert vertices[0].tangent_in == 0 and vertices[0].tangent_out == 0
        assert abs(vertices[1].tangent_out - pi() / 2) < TOL
        assert abs(vertices[2].tangent_in - pi() / 2) < TOL
        assert vertices[3].tangent_in == 0


def test_empty_path_has_no_vertices():
    assert get_path_vertices("") == []


def test_closed_path_tangents():
    with precision_scope(40):
        vertices = get_path_vertices("M 0 0 L 10 0 L 10 10 Z")
        assert len(vertices) == 3
        closing = -3 * pi() / 4
        assert abs(vertices[0].tangent_in - closing) < TOL
        assert abs(vertices[2].tangent_out - closing) < TOL


def test_curve_tangents_skip_coincident_controls():
    with precision_scope(40):
        vertices = get_path_vertices("M 0 0 C 0 0 10 10 10 0")
        assert abs(vertices[0].tangent_out - pi() / 4) < TOL
        assert abs(vertices[1].tangent_in + pi() / 2) < TOL


def test_mid_tangent_bisects_short_way_round():
    with precision_scope(40):
        corner = Vertex(Point.of(0, 0), tangent_in=Decimal(0), tangent_out=pi() / 2)
        assert abs(mid_tangent(corner) - pi() / 4) < TOL
        wrap = Vertex(Point.of(0, 0), tangent_in=3 * pi() / 4, tangent_out=-3 * pi() / 4)
        assert abs(abs(mid_tangent(wrap)) - pi()) < TOL


def test_resolve_markers_on_zigzag(marker_doc):
    path = element_by_id(ARROW_MARKER_SVG, "zigzag")
    instances = resolve_markers(path, build_marker_defs(marker_doc))
    assert [i.type for i in instances] == [MarkerType.START, MarkerType.MID, MarkerType.MID, MarkerType.END]
    assert [i.vertex_index for i in instances] == [0, 1, 2, 3]
    assert [i.definition.id for i in instances] == ["dot", "fixed", "fixed", "arrow"]

    start, end = instances[0], instances[-1]
    # stroke-width 2 doubles the 10x10 dot around its centre
    assert marker_to_polygons(start)[0].points == [Point.of(0, 0), Point.of(20, 0), Point.of(20, 20), Point.of(0, 20)]
    # The arrow tip (10,5) sits on the last vertex
    assert apply_transform(end.transform, 10, 5) == (210, 110)
    assert apply_transform(end.transform, 0, 0) == (190, 100)


def test_resolve_markers_accepts_raw_elements(marker_doc):
    path = element_by_id(ARROW_MARKER_SVG, "zigzag")
    parsed = resolve_markers(path, build_marker_defs(marker_doc))
    raw = resolve_markers(path, build_id_map(marker_doc))
    assert [i.transform for i in raw] == [i.transform for i in parsed]


def test_polyline_end_marker_follows_last_segment(marker_doc):
    with precision_scope(40):
        instances = resolve_markers(element_by_id(ARROW_MARKER_SVG, "poly"), build_marker_defs(marker_doc))
        assert len(instances) == 1
        assert instances[0].position == (50, 50)
        assert abs(instances[0].tangent_angle - pi() / 2) < TOL


def test_missing_marker_reference(marker_doc, caplog):
    with caplog.at_level(logging.WARNING):
        instances = resolve_markers(element_by_id(ARROW_MARKER_SVG, "broken"), build_marker_defs(marker_doc))
    assert instances == []
    assert "#missing not found" in caplog.text


def test_empty_and_unsupported_elements(marker_doc):
    defs = build_marker_defs(marker_doc)
    assert resolve_markers(parse_svg_tree('<path d="" marker-end="url(#dot)"/>'), defs) == []
    assert resolve_markers(parse_svg_tree('<rect width="5" height="5" marker-end="url(#dot)"/>'), defs) == []


def test_shorthand_marker_attribute(marker_doc):
    element = parse_svg_tree('<path d="M0 0 L10 0 L20 0" marker="url(#dot)"/>')
    instances = resolve_markers(element, build_marker_defs(marker_doc))
    assert [i.type for i in instances] == [MarkerType.START, MarkerType.MID, MarkerType.END]


def test_markers_to_path_data(marker_doc):
    instances = resolve_markers(element_by_id(ARROW_MARKER_SVG, "zigzag"), build_marker_defs(marker_doc))
    d = markers_to_path_data(instances[:1])
    assert d == "M 0.00 0.00 L 20.00 0.00 L 20.00 20.00 L 0.00 20.00 Z"
    assert markers_to_path_data(instances, MarkerConfig(precision=1)).count("Z") == 4
