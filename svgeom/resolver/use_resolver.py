"""Use/symbol resolver: expand <use> references into concrete geometry.

A resolved reference carries one transform,

    translate(x, y) · transform attribute · viewBox-to-viewport

with the viewBox term present only for symbols that declare a viewBox.
Nested <use> and <g> children become nested ResolvedUse nodes; leaves are
parsed shapes. Styles set on a <use> cascade to content that does not set
its own.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Union

from svgeom.config import default_decimal_precision
from svgeom.errors import InvalidArgument, InvalidViewBox
from svgeom.geometry.polygon_ops import polygon_intersection
from svgeom.geometry.primitives import BBox, Point, ViewBox
from svgeom.geometry.shapes import (
    Shape,
    Style,
    StyledPolygon,
    extract_style_attributes,
    iter_shape_polygons,
    merge_styles,
    parse_shape,
    parse_shapes,
)
from svgeom.linalg.matrix import Matrix
from svgeom.numeric import precision_scope
from svgeom.svg.element import ElementNode, get_href, iter_elements, parse_number, parse_view_box
from svgeom.svg.serializer import polygons_to_path_data
from svgeom.transforms.transform_parser import parse_transform
from svgeom.transforms.transforms2d import identity, scale, translation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UseConfig:
    # Samples per curve segment when flattening
    samples: int = 20
    # Deepest nesting of use-in-use before giving up
    max_depth: int = 10
    # Decimal places in emitted path data
    precision: int = 6
    decimal_precision: int = field(default_factory=default_decimal_precision)


@dataclass(frozen=True)
class UseData:
    href: str | None
    x: Decimal
    y: Decimal
    width: Decimal | None = None
    height: Decimal | None = None
    transform: str | None = None
    style: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SymbolDefinition:
    id: str
    view_box: ViewBox | None = None
    preserve_aspect_ratio: str = "xMidYMid meet"
    children: tuple[Shape, ...] = ()


@dataclass(frozen=True)
class ResolvedUse:
    """One expanded reference. Children are leaf shapes or further expansions."""

    target: str
    transform: Matrix
    children: tuple[ResolvedNode, ...] = ()
    inherited_style: Mapping[str, str] = field(default_factory=dict)


ResolvedNode = Union[Shape, ResolvedUse]


@dataclass(frozen=True)
class UseResolution:
    element: ElementNode
    use_data: UseData
    resolved: ResolvedUse


# -- parsing -----------------------------------------------------------------


def parse_use_element(element: ElementNode) -> UseData:
    if element.tag_name != "use":
        raise InvalidArgument(f"expected <use>, got <{element.tag_name}>")
    return UseData(
        href=get_href(element),
        x=parse_number(element.get_attribute("x"), 0),
        y=parse_number(element.get_attribute("y"), 0),
        width=parse_number(element.get_attribute("width")),
        height=parse_number(element.get_attribute("height")),
        transform=element.get_attribute("transform") or None,
        style=extract_style_attributes(element),
    )


def _symbol_viewport(element: ElementNode) -> tuple[ViewBox | None, str]:
    view_box = parse_view_box(element.get_attribute("viewBox"))
    return view_box, (element.get_attribute("preserveAspectRatio") or "xMidYMid meet").strip()


def parse_symbol_element(element: ElementNode) -> SymbolDefinition:
    if element.tag_name != "symbol":
        raise InvalidArgument(f"expected <symbol>, got <{element.tag_name}>")
    symbol_id = element.get_attribute("id") or ""
    view_box, preserve_aspect_ratio = _symbol_viewport(element)
    return SymbolDefinition(
        id=symbol_id,
        view_box=view_box,
        preserve_aspect_ratio=preserve_aspect_ratio,
        children=tuple(parse_shapes(element.children, f"symbol {symbol_id!r}")),
    )


def build_defs_map(root: ElementNode) -> dict[str, ElementNode]:
    """Every element with an id, in document order; later duplicates are ignored."""
    defs: dict[str, ElementNode] = {}
    for node in iter_elements(root):
        element_id = node.get_attribute("id")
        if element_id and element_id not in defs:
            defs[element_id] = node
    return defs


# -- viewBox -------------------------------------------------------------------


def calculate_viewbox_transform(
    view_box: ViewBox | None,
    width: Decimal | None,
    height: Decimal | None,
    preserve_aspect_ratio: str = "xMidYMid meet",
) -> Matrix:
    """Map ``view_box`` onto a ``width`` x ``height`` viewport at the origin."""
    if view_box is None or width is None or height is None or width <= 0 or height <= 0:
        return identity()
    if view_box.is_degenerate:
        raise InvalidViewBox(f"viewBox {tuple(view_box)} has zero area")

    parts = preserve_aspect_ratio.split()
    if parts and parts[0] == "defer":
        parts = parts[1:]
    align = parts[0] if parts else "xMidYMid"
    meet_or_slice = parts[1] if len(parts) > 1 else "meet"

    scale_x = width / view_box.width
    scale_y = height / view_box.height
    if align == "none":
        return translation(-view_box.x * scale_x, -view_box.y * scale_y) @ scale(scale_x, scale_y)

    s = max(scale_x, scale_y) if meet_or_slice == "slice" else min(scale_x, scale_y)
    tx = -view_box.x * s
    ty = -view_box.y * s
    extra_x = width - view_box.width * s
    extra_y = height - view_box.height * s
    if "xMid" in align:
        tx += extra_x / 2
    elif "xMax" in align:
        tx += extra_x
    if "YMid" in align:
        ty += extra_y / 2
    elif "YMax" in align:
        ty += extra_y
    return translation(tx, ty) @ scale(s)


# -- resolution ----------------------------------------------------------------


def _resolve_children(
    elements: Sequence[ElementNode],
    defs_map: Mapping[str, ElementNode],
    config: UseConfig,
    depth: int,
    visiting: frozenset[str],
) -> tuple[ResolvedNode, ...]:
    children: list[ResolvedNode] = []
    for element in elements:
        tag = element.tag_name
        if tag == "use":
            nested = _resolve(parse_use_element(element), defs_map, config, depth + 1, visiting)
            if nested is not None:
                children.append(nested)
        elif tag == "g":
            children.append(
                ResolvedUse(
                    target=element.get_attribute("id") or "",
                    transform=parse_transform(element.get_attribute("transform")),
                    children=_resolve_children(list(element.children), defs_map, config, depth, visiting),
                    inherited_style=extract_style_attributes(element),
                )
            )
        else:
            shape = parse_shape(element)
            if shape is None:
                logger.debug("Skipping unsupported <%s> in referenced content", tag)
                continue
            children.append(shape)
    return tuple(children)


def _resolve(
    use_data: UseData,
    defs_map: Mapping[str, ElementNode],
    config: UseConfig,
    depth: int,
    visiting: frozenset[str],
) -> ResolvedUse | None:
    href = use_data.href
    if not href:
        logger.warning("<use> without href skipped")
        return None
    if depth > config.max_depth:
        logger.warning("Use nesting deeper than %d at #%s; stopping", config.max_depth, href)
        return None
    if href in visiting:
        logger.warning("Circular use reference to #%s skipped", href)
        return None
    target = defs_map.get(href)
    if target is None:
        logger.warning("Use target #%s not found", href)
        return None

    transform = translation(use_data.x, use_data.y) @ parse_transform(use_data.transform)
    visiting = visiting | {href}

    if target.tag_name == "symbol":
        view_box, preserve_aspect_ratio = _symbol_viewport(target)
        if view_box is not None:
            width = view_box.width if use_data.width is None else use_data.width
            height = view_box.height if use_data.height is None else use_data.height
            transform = transform @ calculate_viewbox_transform(view_box, width, height, preserve_aspect_ratio)
        elements = list(target.children)
    else:
        elements = [target]

    return ResolvedUse(
        target=href,
        transform=transform,
        children=_resolve_children(elements, defs_map, config, depth, visiting),
        inherited_style=use_data.style,
    )


def resolve_use(
    use_data: UseData,
    defs_map: Mapping[str, ElementNode],
    config: UseConfig | None = None,
    depth: int = 0,
) -> ResolvedUse | None:
    """Expand one reference. Missing targets, cycles and runaway nesting give None."""
    config = config or UseConfig()
    with precision_scope(config.decimal_precision):
        return _resolve(use_data, defs_map, config, depth, frozenset())


def _flatten(
    node: ResolvedUse,
    parent_transform: Matrix,
    parent_style: Style,
    samples: int,
    out: list[StyledPolygon],
) -> None:
    transform = parent_transform @ node.transform
    style = merge_styles(parent_style, node.inherited_style)
    for child in node.children:
        if isinstance(child, ResolvedUse):
            _flatten(child, transform, style, samples, out)
            continue
        for polygon in iter_shape_polygons([child], transform, style, samples):
            if len(polygon.points) >= 3:
                out.append(polygon)


def flatten_resolved_use(resolved: ResolvedUse | None, config: UseConfig | None = None) -> list[StyledPolygon]:
    """User-space polygons of the whole expansion, in document order."""
    config = config or UseConfig()
    out: list[StyledPolygon] = []
    if resolved is None:
        return out
    with precision_scope(config.decimal_precision):
        _flatten(resolved, identity(), Style(), config.samples, out)
    return out


def get_resolved_bbox(resolved: ResolvedUse | None, config: UseConfig | None = None) -> BBox:
    """Bounding box of the flattened geometry; all zeros when there is none."""
    points = [p for polygon in flatten_resolved_use(resolved, config) for p in polygon.points]
    return BBox.from_points(points)


def clip_resolved_use(
    resolved: ResolvedUse | None,
    clip_polygon: Sequence[Point],
    config: UseConfig | None = None,
) -> list[StyledPolygon]:
    if len(clip_polygon) < 3:
        raise InvalidArgument(f"clip polygon needs at least 3 vertices, got {len(clip_polygon)}")
    result = []
    for polygon in flatten_resolved_use(resolved, config):
        for ring in polygon_intersection(polygon.points, clip_polygon):
            if len(ring) >= 3:
                result.append(StyledPolygon(ring, polygon.style))
    return result


def resolved_use_to_path_data(resolved: ResolvedUse | None, config: UseConfig | None = None) -> str:
    config = config or UseConfig()
    return polygons_to_path_data([p.points for p in flatten_resolved_use(resolved, config)], config.precision)


# -- whole documents -----------------------------------------------------------


def _use_references(element: ElementNode) -> list[str]:
    refs = []
    for node in iter_elements(element):
        if node.tag_name == "use":
            href = get_href(node)
            if href:
                refs.append(href)
    return refs


def has_circular_reference(start_id: str, defs_map: Mapping[str, ElementNode], max_depth: int = 100) -> bool:
    """True when following use references from ``start_id`` loops back or nests past ``max_depth``."""
    if not start_id:
        raise InvalidArgument("start id must be a non-empty string")
    if max_depth <= 0:
        raise InvalidArgument(f"max_depth must be positive, got {max_depth}")

    def visit(element_id: str, path: frozenset[str], depth: int) -> bool:
        if element_id in path or depth >= max_depth:
            return True
        element = defs_map.get(element_id)
        if element is None:
            return False
        path = path | {element_id}
        return any(visit(ref, path, depth + 1) for ref in _use_references(element))

    return visit(start_id, frozenset(), 0)


def resolve_all_uses(root: ElementNode, config: UseConfig | None = None) -> list[UseResolution]:
    """Resolve every <use> in the document, skipping circular ones."""
    config = config or UseConfig()
    defs_map = build_defs_map(root)
    resolutions = []
    skipped = 0
    for element in iter_elements(root):
        if element.tag_name != "use":
            continue
        use_data = parse_use_element(element)
        if not use_data.href:
            skipped += 1
            continue
        if has_circular_reference(use_data.href, defs_map):
            logger.warning("Circular use reference detected: #%s, skipping resolution", use_data.href)
            skipped += 1
            continue
        resolved = resolve_use(use_data, defs_map, config)
        if resolved is None:
            skipped += 1
            continue
        resolutions.append(UseResolution(element, use_data, resolved))

    logger.info("Resolved %d use elements (%d skipped)", len(resolutions), skipped)
    return resolutions
