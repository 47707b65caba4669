"""Shape elements to polygons.

Every basic shape is first expressed as path commands (rect corners and
ellipses as arcs), then sampled through the same path walker, so curves are
approximated identically whatever element they came from.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from svgeom.errors import InvalidArgument
from svgeom.geometry.primitives import Point
from svgeom.linalg.matrix import Matrix
from svgeom.numeric import ONE, ZERO, D
from svgeom.svg.bezier import sample_arc, sample_cubic, sample_quadratic
from svgeom.svg.element import ElementNode, get_href, parse_number, parse_number_list
from svgeom.svg.path_data import CommandType, PathCommand, normalize, parse_path, walk
from svgeom.svg.serializer import polygons_to_path_data
from svgeom.transforms.transform_parser import parse_transform
from svgeom.transforms.transforms2d import apply_to_points, identity

logger = logging.getLogger(__name__)

STYLE_PROPERTIES = ("fill", "stroke", "stroke-width", "opacity")

_GEOMETRY_ATTRIBUTES: dict[str, tuple[str, ...]] = {
    "rect": ("x", "y", "width", "height", "rx", "ry"),
    "circle": ("cx", "cy", "r"),
    "ellipse": ("cx", "cy", "rx", "ry"),
    "line": ("x1", "y1", "x2", "y2"),
    "polyline": (),
    "polygon": (),
    "path": (),
    "g": (),
    "use": ("x", "y", "width", "height"),
}
SHAPE_TAGS = frozenset(_GEOMETRY_ATTRIBUTES)

_DECLARATION_RE = re.compile(r"\s*([\w-]+)\s*:\s*([^;]+)")


@dataclass(frozen=True)
class Style:
    fill: str = "black"
    stroke: str = "none"
    stroke_width: Decimal = ONE
    opacity: Decimal = ONE

    @property
    def visible(self) -> bool:
        return self.opacity > 0


@dataclass(frozen=True)
class StyledPolygon:
    points: list[Point]
    style: Style = field(default_factory=Style)

    @property
    def fill(self) -> str:
        return self.style.fill

    @property
    def stroke(self) -> str:
        return self.style.stroke

    @property
    def stroke_width(self) -> Decimal:
        return self.style.stroke_width

    @property
    def opacity(self) -> Decimal:
        return self.style.opacity


@dataclass(frozen=True)
class Shape:
    """A parsed child shape. Only attributes actually present are stored."""

    tag: str
    attributes: Mapping[str, Decimal] = field(default_factory=dict)
    d: str | None = None
    points: tuple[Point, ...] = ()
    transform: Matrix = field(default_factory=identity)
    style_overrides: Mapping[str, str] = field(default_factory=dict)
    children: tuple[Shape, ...] = ()
    href: str | None = None
    element_id: str | None = None

    def number(self, name: str, default: Decimal | int = 0) -> Decimal:
        value = self.attributes.get(name)
        return D(default) if value is None else value


def extract_style_attributes(element: ElementNode) -> dict[str, str]:
    """Presentation attributes plus inline ``style`` declarations for the style properties.

    Inline declarations win over attributes. No cascade beyond that.
    """
    overrides: dict[str, str] = {}
    for name in STYLE_PROPERTIES:
        value = element.get_attribute(name)
        if value is not None and value.strip():
            overrides[name] = value.strip()
    inline = element.get_attribute("style")
    if inline:
        for match in _DECLARATION_RE.finditer(inline):
            name, value = match.group(1), match.group(2).strip()
            if name in STYLE_PROPERTIES and value:
                overrides[name] = value
    return overrides


def merge_styles(parent: Style, overrides: Mapping[str, str]) -> Style:
    """Apply a child's explicit style values on top of the inherited style."""
    if not overrides:
        return parent
    return Style(
        fill=overrides.get("fill", parent.fill),
        stroke=overrides.get("stroke", parent.stroke),
        stroke_width=(
            parse_number(overrides["stroke-width"]) if "stroke-width" in overrides else parent.stroke_width
        ),
        opacity=parse_number(overrides["opacity"]) if "opacity" in overrides else parent.opacity,
    )


def parse_points(value: str | None) -> list[Point]:
    """``points`` attribute of polyline/polygon. An odd number of values is malformed."""
    numbers = parse_number_list(value)
    if len(numbers) % 2:
        raise InvalidArgument(f"points attribute has an odd number of values: {value!r}")
    return [Point(numbers[i], numbers[i + 1]) for i in range(0, len(numbers), 2)]


def parse_shape(element: ElementNode) -> Shape | None:
    """Parse a shape, group or use element; None for anything else."""
    tag = element.tag_name
    if tag not in SHAPE_TAGS:
        return None
    attributes = {}
    for name in _GEOMETRY_ATTRIBUTES[tag]:
        value = parse_number(element.get_attribute(name))
        if value is not None:
            attributes[name] = value

    children: list[Shape] = []
    if tag == "g":
        for child in element.children:
            parsed = parse_shape(child)
            if parsed is None:
                logger.debug("Skipping unsupported <%s> inside <g>", child.tag_name)
                continue
            children.append(parsed)

    return Shape(
        tag=tag,
        attributes=MappingProxyType(attributes),
        d=element.get_attribute("d") if tag == "path" else None,
        points=tuple(parse_points(element.get_attribute("points"))) if tag in ("polyline", "polygon") else (),
        transform=parse_transform(element.get_attribute("transform")),
        style_overrides=MappingProxyType(extract_style_attributes(element)),
        children=tuple(children),
        href=get_href(element) if tag == "use" else None,
        element_id=element.get_attribute("id"),
    )


def parse_shapes(elements: Iterable[ElementNode], owner: str) -> list[Shape]:
    shapes = []
    for child in elements:
        shape = parse_shape(child)
        if shape is None:
            logger.warning("Skipping unsupported <%s> child of %s", child.tag_name, owner)
            continue
        shapes.append(shape)
    return shapes


# -- shape -> path commands ------------------------------------------------


def _cmd(t: CommandType, *args) -> PathCommand:
    return PathCommand(t, tuple(args))


def _rect_commands(shape: Shape) -> list[PathCommand]:
    x, y = shape.number("x"), shape.number("y")
    w, h = shape.number("width"), shape.number("height")
    if w <= 0 or h <= 0:
        return []
    rx = shape.attributes.get("rx")
    ry = shape.attributes.get("ry")
    if rx is None and ry is None:
        rx = ry = ZERO
    elif rx is None:
        rx = ry
    elif ry is None:
        ry = rx
    rx = min(max(rx, ZERO), w / 2)
    ry = min(max(ry, ZERO), h / 2)

    M, H, V, A, Z = (
        CommandType.MOVE_TO,
        CommandType.HLINE_TO,
        CommandType.VLINE_TO,
        CommandType.ARC_TO,
        CommandType.CLOSE_PATH,
    )
    if rx.is_zero() or ry.is_zero():
        return [_cmd(M, x, y), _cmd(H, x + w), _cmd(V, y + h), _cmd(H, x), _cmd(Z)]
    return [
        _cmd(M, x + rx, y),
        _cmd(H, x + w - rx),
        _cmd(A, rx, ry, 0, 0, 1, x + w, y + ry),
        _cmd(V, y + h - ry),
        _cmd(A, rx, ry, 0, 0, 1, x + w - rx, y + h),
        _cmd(H, x + rx),
        _cmd(A, rx, ry, 0, 0, 1, x, y + h - ry),
        _cmd(V, y + ry),
        _cmd(A, rx, ry, 0, 0, 1, x + rx, y),
        _cmd(Z),
    ]


def _ellipse_commands(cx: Decimal, cy: Decimal, rx: Decimal, ry: Decimal) -> list[PathCommand]:
    if rx <= 0 or ry <= 0:
        return []
    A = CommandType.ARC_TO
    return [
        _cmd(CommandType.MOVE_TO, cx + rx, cy),
        _cmd(A, rx, ry, 0, 0, 1, cx, cy + ry),
        _cmd(A, rx, ry, 0, 0, 1, cx - rx, cy),
        _cmd(A, rx, ry, 0, 0, 1, cx, cy - ry),
        _cmd(A, rx, ry, 0, 0, 1, cx + rx, cy),
        _cmd(CommandType.CLOSE_PATH),
    ]


def _poly_commands(points: Iterable[Point], closed: bool) -> list[PathCommand]:
    commands = []
    for i, p in enumerate(points):
        commands.append(_cmd(CommandType.MOVE_TO if i == 0 else CommandType.LINE_TO, p.x, p.y))
    if closed and commands:
        commands.append(_cmd(CommandType.CLOSE_PATH))
    return commands


def shape_path_commands(shape: Shape) -> list[PathCommand]:
    """Absolute path commands equivalent to the shape, in its own coordinates."""
    tag = shape.tag
    if tag == "path":
        return parse_path(shape.d)
    if tag == "rect":
        return _rect_commands(shape)
    if tag == "circle":
        r = shape.number("r")
        return _ellipse_commands(shape.number("cx"), shape.number("cy"), r, r)
    if tag == "ellipse":
        return _ellipse_commands(shape.number("cx"), shape.number("cy"), shape.number("rx"), shape.number("ry"))
    if tag == "line":
        return _poly_commands(
            [Point(shape.number("x1"), shape.number("y1")), Point(shape.number("x2"), shape.number("y2"))],
            closed=False,
        )
    if tag in ("polyline", "polygon"):
        return _poly_commands(shape.points, closed=tag == "polygon")
    return []


# -- sampling ----------------------------------------------------------------


def remove_duplicate_consecutive(points: list[Point]) -> list[Point]:
    out: list[Point] = []
    for p in points:
        if not out or out[-1] != p:
            out.append(p)
    if len(out) > 1 and out[0] == out[-1]:
        out.pop()
    return out


def commands_to_rings(commands: Iterable[PathCommand], curve_segments: int) -> list[list[Point]]:
    """Sample path commands into one point ring per subpath."""
    rings: list[list[Point]] = []
    current: list[Point] = []
    for cursor, command in walk(normalize(commands)):
        t = command.type
        a = command.args
        if t is CommandType.MOVE_TO:
            if current:
                rings.append(current)
            current = [Point(a[0], a[1])]
            continue
        if t is CommandType.CLOSE_PATH:
            if current:
                rings.append(current)
            current = []
            continue
        if not current:
            current = [cursor.current]
        if t is CommandType.LINE_TO:
            current.append(Point(a[0], a[1]))
        elif t is CommandType.CUBIC_TO:
            current.extend(
                sample_cubic(cursor.current, Point(a[0], a[1]), Point(a[2], a[3]), Point(a[4], a[5]), curve_segments)
            )
        elif t is CommandType.QUAD_TO:
            current.extend(sample_quadratic(cursor.current, Point(a[0], a[1]), Point(a[2], a[3]), curve_segments))
        elif t is CommandType.ARC_TO:
            current.extend(sample_arc(cursor.current, a, curve_segments))
    if current:
        rings.append(current)
    return [ring for ring in (remove_duplicate_consecutive(r) for r in rings) if ring]


def shape_to_polygons(shape: Shape, transform: Matrix | None, curve_segments: int) -> list[list[Point]]:
    """Rings of a leaf shape mapped through ``transform`` composed with the shape's own transform.

    A full circle or ellipse yields ``4 * curve_segments`` points.
    """
    matrix = shape.transform if transform is None else transform @ shape.transform
    rings = commands_to_rings(shape_path_commands(shape), curve_segments)
    return [apply_to_points(matrix, ring) for ring in rings]


def iter_shape_polygons(
    shapes: Iterable[Shape],
    transform: Matrix,
    parent_style: Style,
    curve_segments: int,
) -> Iterator[StyledPolygon]:
    """Walk shapes (descending into groups) and yield styled rings in document order.

    ``use`` shapes are left to the use resolver and yield nothing here.
    """
    for shape in shapes:
        style = merge_styles(parent_style, shape.style_overrides)
        if shape.tag == "g":
            yield from iter_shape_polygons(shape.children, transform @ shape.transform, style, curve_segments)
            continue
        for ring in shape_to_polygons(shape, transform, curve_segments):
            yield StyledPolygon(ring, style)


def shape_to_path_data(
    shape: Shape,
    transform: Matrix | None = None,
    curve_segments: int = 10,
    precision: int = 6,
) -> str:
    """Sampled outline of a leaf shape as ``M ... L ... Z`` path data."""
    return polygons_to_path_data(shape_to_polygons(shape, transform, curve_segments), precision)
