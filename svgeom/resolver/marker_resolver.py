"""Marker resolver: place marker-start/-mid/-end content along a path.

Each marker instance gets one transform, composed outermost first:

    translate(position) · rotate(orient) · scale(strokeWidth) ·
    scale(markerWidth/vbWidth, markerHeight/vbHeight) · translate(-viewBox origin) ·
    translate(-(ref - viewBox origin))

so that (refX, refY), given in viewBox coordinates, lands exactly on the
vertex. ViewBox scaling here is per axis with no aspect-ratio clamp.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from svgeom.config import default_decimal_precision
from svgeom.errors import InvalidArgument, InvalidViewBox
from svgeom.geometry.primitives import Point, ViewBox
from svgeom.geometry.shapes import (
    Shape,
    Style,
    StyledPolygon,
    iter_shape_polygons,
    parse_shape,
    parse_shapes,
    shape_path_commands,
)
from svgeom.linalg.matrix import Matrix
from svgeom.numeric import ZERO, D, Number, atan2, pi, precision_scope, quantize, radians, wrap_angle
from svgeom.svg.element import ElementNode, iter_elements, parse_number, parse_url_reference, parse_view_box
from svgeom.svg.path_data import CommandType, PathCommand, normalize, parse_path, walk
from svgeom.svg.bezier import arc_tangent_angles
from svgeom.svg.serializer import polygons_to_path_data
from svgeom.transforms.transforms2d import rotate, scale, translation

logger = logging.getLogger(__name__)

_ANGLE_RE = re.compile(r"^([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)\s*(deg|rad|grad|turn)?$")
_MARKER_TAGS = ("path", "line", "polyline", "polygon")


@dataclass(frozen=True)
class MarkerConfig:
    """Output and sampling knobs for marker geometry."""

    # Decimal places in emitted coordinates
    precision: int = 2
    # Samples per curve segment; full circles/ellipses get 4x this
    curve_segments: int = 10
    decimal_precision: int = field(default_factory=default_decimal_precision)


class OrientKind(enum.Enum):
    AUTO = "auto"
    AUTO_START_REVERSE = "auto-start-reverse"
    FIXED = "fixed"


@dataclass(frozen=True)
class Orientation:
    kind: OrientKind = OrientKind.AUTO
    # Degrees, only meaningful for FIXED
    angle: Decimal = ZERO

    @classmethod
    def parse(cls, value: str | None) -> Orientation:
        if value is None or not value.strip():
            return cls()
        text = value.strip()
        if text == "auto":
            return cls(OrientKind.AUTO)
        if text == "auto-start-reverse":
            return cls(OrientKind.AUTO_START_REVERSE)
        match = _ANGLE_RE.match(text)
        if match is None:
            logger.warning("Invalid marker orient %r, using auto", value)
            return cls()
        number = D(match.group(1))
        unit = match.group(2) or "deg"
        if unit == "rad":
            number = number * 180 / pi()
        elif unit == "grad":
            number = number * Decimal("0.9")
        elif unit == "turn":
            number = number * 360
        return cls(OrientKind.FIXED, number)

    def rotation_for(self, tangent_angle: Decimal, is_start: bool) -> Decimal:
        """Rotation in radians for a vertex with the given tangent."""
        if self.kind is OrientKind.FIXED:
            return radians(self.angle)
        if self.kind is OrientKind.AUTO_START_REVERSE and is_start:
            return tangent_angle + pi()
        return tangent_angle


class MarkerUnits(str, enum.Enum):
    STROKE_WIDTH = "strokeWidth"
    USER_SPACE_ON_USE = "userSpaceOnUse"


class MarkerType(str, enum.Enum):
    START = "start"
    MID = "mid"
    END = "end"


@dataclass(frozen=True)
class MarkerDefinition:
    id: str
    marker_width: Decimal = Decimal(3)
    marker_height: Decimal = Decimal(3)
    ref_x: Decimal = ZERO
    ref_y: Decimal = ZERO
    orient: Orientation = field(default_factory=Orientation)
    marker_units: MarkerUnits = MarkerUnits.STROKE_WIDTH
    view_box: ViewBox | None = None
    children: tuple[Shape, ...] = ()


@dataclass
class Vertex:
    position: Point
    # Radians; direction of travel arriving at / leaving the vertex
    tangent_in: Decimal = ZERO
    tangent_out: Decimal = ZERO
    index: int = 0


@dataclass(frozen=True)
class MarkerInstance:
    definition: MarkerDefinition
    position: Point
    transform: Matrix
    type: MarkerType
    vertex_index: int
    tangent_angle: Decimal


# -- parsing -----------------------------------------------------------------


def parse_marker_element(element: ElementNode) -> MarkerDefinition:
    if element.tag_name != "marker":
        raise InvalidArgument(f"expected <marker>, got <{element.tag_name}>")
    marker_id = element.get_attribute("id") or ""
    width = parse_number(element.get_attribute("markerWidth"), 3)
    height = parse_number(element.get_attribute("markerHeight"), 3)
    if width <= 0 or height <= 0:
        raise InvalidArgument(f"marker {marker_id!r}: markerWidth/markerHeight must be positive")

    units_attr = (element.get_attribute("markerUnits") or MarkerUnits.STROKE_WIDTH.value).strip()
    try:
        units = MarkerUnits(units_attr)
    except ValueError:
        logger.warning("Marker %r: unknown markerUnits %r, using strokeWidth", marker_id, units_attr)
        units = MarkerUnits.STROKE_WIDTH

    return MarkerDefinition(
        id=marker_id,
        marker_width=width,
        marker_height=height,
        ref_x=parse_number(element.get_attribute("refX"), 0),
        ref_y=parse_number(element.get_attribute("refY"), 0),
        orient=Orientation.parse(element.get_attribute("orient")),
        marker_units=units,
        view_box=parse_view_box(element.get_attribute("viewBox")),
        children=tuple(parse_shapes(element.children, f"marker {marker_id!r}")),
    )


def build_marker_defs(root: ElementNode) -> dict[str, MarkerDefinition]:
    """Parse every ``<marker>`` with an id in the tree."""
    defs = {}
    for node in iter_elements(root):
        if node.tag_name == "marker" and node.get_attribute("id"):
            definition = parse_marker_element(node)
            defs[definition.id] = definition
    return defs


# -- transform -------------------------------------------------------------


def get_marker_transform(
    definition: MarkerDefinition,
    position: Point,
    tangent_angle: Number,
    stroke_width: Number = 1,
    is_start: bool = False,
) -> Matrix:
    sw = D(stroke_width)
    if sw <= 0:
        raise InvalidArgument(f"stroke width must be positive, got {sw}")

    m = translation(position.x, position.y)
    angle = definition.orient.rotation_for(D(tangent_angle), is_start)
    if not angle.is_zero():
        m = m @ rotate(angle)
    if definition.marker_units is MarkerUnits.STROKE_WIDTH and sw != 1:
        m = m @ scale(sw)

    vb = definition.view_box
    if vb is None:
        return m @ translation(-definition.ref_x, -definition.ref_y)
    if vb.is_degenerate:
        raise InvalidViewBox(f"marker {definition.id!r} has a zero-area viewBox")
    m = m @ scale(definition.marker_width / vb.width, definition.marker_height / vb.height)
    m = m @ translation(-vb.x, -vb.y)
    return m @ translation(-(definition.ref_x - vb.x), -(definition.ref_y - vb.y))


# -- vertices --------------------------------------------------------------


def _direction(frm: Point, to: Point) -> Decimal | None:
    if frm == to:
        return None
    return atan2(to.y - frm.y, to.x - frm.x)


def _first_direction(start: Point, candidates: Iterable[Point]) -> Decimal | None:
    for candidate in candidates:
        angle = _direction(start, candidate)
        if angle is not None:
            return angle
    return None


def _last_direction(end: Point, candidates: Iterable[Point]) -> Decimal | None:
    for candidate in candidates:
        angle = _direction(candidate, end)
        if angle is not None:
            return angle
    return None


def vertices_from_commands(commands: Iterable[PathCommand]) -> list[Vertex]:
    """Vertices with in/out tangents for every segment end point.

    A closepath adds no vertex; it sets the out-tangent of the last vertex and
    the in-tangent of the subpath's first vertex to the closing direction.
    """
    vertices: list[Vertex] = []
    subpath_first: int | None = None
    # Subpath starts whose in-tangent is still unknown
    open_start: set[int] = set()

    for cursor, command in walk(normalize(commands)):
        t = command.type
        a = command.args
        start = cursor.current

        if t is CommandType.MOVE_TO:
            subpath_first = len(vertices)
            open_start.add(subpath_first)
            vertices.append(Vertex(Point(a[0], a[1]), index=len(vertices)))
            continue

        if t is CommandType.CLOSE_PATH:
            if subpath_first is None or not vertices:
                continue
            end = cursor.subpath_start
            angle = _direction(start, end)
            if angle is None:
                angle = vertices[-1].tangent_out
            vertices[-1].tangent_out = angle
            vertices[subpath_first].tangent_in = angle
            open_start.discard(subpath_first)
            continue

        end = Point(a[-2], a[-1])
        previous = vertices[-1].tangent_out if vertices else ZERO
        if t is CommandType.CUBIC_TO:
            c1, c2 = Point(a[0], a[1]), Point(a[2], a[3])
            out_angle = _first_direction(start, (c1, c2, end))
            in_angle = _last_direction(end, (c2, c1, start))
        elif t is CommandType.QUAD_TO:
            c1 = Point(a[0], a[1])
            out_angle = _first_direction(start, (c1, end))
            in_angle = _last_direction(end, (c1, start))
        elif t is CommandType.ARC_TO:
            angles = arc_tangent_angles(start, a)
            if angles is None:
                out_angle = in_angle = _direction(start, end)
            else:
                out_angle, in_angle = angles
        else:
            out_angle = in_angle = _direction(start, end)

        if out_angle is None:
            out_angle = in_angle = previous
        elif in_angle is None:
            in_angle = out_angle

        if vertices:
            last = vertices[-1]
            last.tangent_out = out_angle
            if last.index in open_start:
                last.tangent_in = out_angle
        vertices.append(Vertex(end, in_angle, in_angle, len(vertices)))

    return vertices


def get_path_vertices(path_data: str | None) -> list[Vertex]:
    return vertices_from_commands(parse_path(path_data))


def mid_tangent(vertex: Vertex) -> Decimal:
    """Bisector of the in and out directions, taking the short way round."""
    return vertex.tangent_in + wrap_angle(vertex.tangent_out - vertex.tangent_in) / 2


# -- resolution ----------------------------------------------------------------


def _element_commands(element: ElementNode) -> list[PathCommand]:
    if element.tag_name == "path":
        return parse_path(element.get_attribute("d"))
    shape = parse_shape(element)
    return shape_path_commands(shape) if shape is not None else []


def _marker_reference(element: ElementNode, name: str) -> str | None:
    ref = parse_url_reference(element.get_attribute(name))
    if ref is None:
        ref = parse_url_reference(element.get_attribute("marker"))
    return ref


def _lookup(defs_by_id: Mapping[str, MarkerDefinition | ElementNode], marker_id: str | None) -> MarkerDefinition | None:
    if marker_id is None:
        return None
    definition = defs_by_id.get(marker_id)
    if definition is None:
        logger.warning("Marker reference #%s not found", marker_id)
        return None
    if isinstance(definition, MarkerDefinition):
        return definition
    return parse_marker_element(definition)


def resolve_markers(
    path_element: ElementNode,
    defs_by_id: Mapping[str, MarkerDefinition | ElementNode],
    config: MarkerConfig | None = None,
) -> list[MarkerInstance]:
    """Instantiate the element's marker-start/-mid/-end at its vertices.

    ``defs_by_id`` may hold parsed definitions or raw ``<marker>`` elements.
    Unknown references and empty paths produce no instances.
    """
    config = config or MarkerConfig()
    if path_element.tag_name not in _MARKER_TAGS:
        return []

    with precision_scope(config.decimal_precision):
        start_def = _lookup(defs_by_id, _marker_reference(path_element, "marker-start"))
        mid_def = _lookup(defs_by_id, _marker_reference(path_element, "marker-mid"))
        end_def = _lookup(defs_by_id, _marker_reference(path_element, "marker-end"))
        if start_def is None and mid_def is None and end_def is None:
            return []

        vertices = vertices_from_commands(_element_commands(path_element))
        if not vertices:
            return []
        stroke_width = parse_number(path_element.get_attribute("stroke-width"), 1)

        instances: list[MarkerInstance] = []

        def place(definition: MarkerDefinition, vertex: Vertex, kind: MarkerType, angle: Decimal) -> None:
            is_start = kind is MarkerType.START
            transform = get_marker_transform(definition, vertex.position, angle, stroke_width, is_start)
            instances.append(MarkerInstance(definition, vertex.position, transform, kind, vertex.index, angle))

        if start_def is not None:
            first = vertices[0]
            place(start_def, first, MarkerType.START, first.tangent_out if len(vertices) > 1 else first.tangent_in)
        if mid_def is not None:
            for vertex in vertices[1:-1]:
                place(mid_def, vertex, MarkerType.MID, mid_tangent(vertex))
        if end_def is not None:
            last = vertices[-1]
            place(end_def, last, MarkerType.END, last.tangent_in)

    logger.info("Resolved %d marker instances over %d vertices", len(instances), len(vertices))
    return instances


def marker_to_polygons(instance: MarkerInstance, config: MarkerConfig | None = None) -> list[StyledPolygon]:
    """Marker content sampled and mapped through the instance transform, rounded to ``precision``."""
    config = config or MarkerConfig()
    with precision_scope(config.decimal_precision):
        polygons = []
        for polygon in iter_shape_polygons(
            instance.definition.children, instance.transform, Style(), config.curve_segments
        ):
            rounded = [Point(quantize(p.x, config.precision), quantize(p.y, config.precision)) for p in polygon.points]
            polygons.append(StyledPolygon(rounded, polygon.style))
    return polygons


def markers_to_path_data(instances: Iterable[MarkerInstance], config: MarkerConfig | None = None) -> str:
    config = config or MarkerConfig()
    rings = [polygon.points for instance in instances for polygon in marker_to_polygons(instance, config)]
    return polygons_to_path_data(rings, config.precision)
