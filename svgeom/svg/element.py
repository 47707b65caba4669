"""Element-tree interface consumed by the resolvers.

Resolvers only touch ``tag_name``, ``get_attribute`` and ``children``. Any
DOM binding that offers those three works; ``EtreeElement`` adapts the
standard library ElementTree for callers (and tests) that start from text.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Iterator
from decimal import Decimal
from typing import Protocol, runtime_checkable

from svgeom.errors import InvalidArgument
from svgeom.geometry.primitives import ViewBox
from svgeom.numeric import D

logger = logging.getLogger(__name__)

XLINK_NS = "http://www.w3.org/1999/xlink"

_NAMESPACE_RE = re.compile(r"^\{[^}]*\}")
_LIST_SPLIT_RE = re.compile(r"[\s,]+")
_URL_REF_RE = re.compile(r"url\(\s*['\"]?#([^)'\"]+)['\"]?\s*\)")


@runtime_checkable
class ElementNode(Protocol):
    @property
    def tag_name(self) -> str: ...

    def get_attribute(self, name: str) -> str | None: ...

    @property
    def children(self) -> Iterable[ElementNode]: ...


class EtreeElement:
    """ElementNode over ``xml.etree.ElementTree.Element``."""

    __slots__ = ("_element",)

    def __init__(self, element: ET.Element) -> None:
        self._element = element

    @property
    def tag_name(self) -> str:
        return _NAMESPACE_RE.sub("", self._element.tag) if isinstance(self._element.tag, str) else ""

    def get_attribute(self, name: str) -> str | None:
        if name.startswith("xlink:"):
            return self._element.get(f"{{{XLINK_NS}}}{name[6:]}")
        return self._element.get(name)

    @property
    def children(self) -> list[EtreeElement]:
        # Comments and processing instructions have non-string tags
        return [EtreeElement(child) for child in self._element if isinstance(child.tag, str)]

    def __repr__(self) -> str:
        element_id = self.get_attribute("id")
        return f"<EtreeElement {self.tag_name}{' #' + element_id if element_id else ''}>"


def parse_svg_tree(svg_text: str) -> EtreeElement:
    try:
        root = ET.fromstring(svg_text)
    except ET.ParseError as e:
        raise InvalidArgument(f"malformed SVG markup: {e}") from e
    return EtreeElement(root)


def iter_elements(root: ElementNode) -> Iterator[ElementNode]:
    """Depth-first, document order, root included."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(node.children)))


def build_id_map(root: ElementNode) -> dict[str, ElementNode]:
    """Map every ``id`` in the tree to its element; the first occurrence wins."""
    ids: dict[str, ElementNode] = {}
    for node in iter_elements(root):
        element_id = node.get_attribute("id")
        if element_id and element_id not in ids:
            ids[element_id] = node
        elif element_id:
            logger.debug("Duplicate id %r ignored", element_id)
    return ids


def get_href(element: ElementNode) -> str | None:
    """Target id of ``href``/``xlink:href`` (leading ``#`` removed)."""
    href = element.get_attribute("href") or element.get_attribute("xlink:href")
    if not href:
        return None
    return href[1:] if href.startswith("#") else href


def parse_url_reference(value: str | None) -> str | None:
    """Id inside ``url(#id)``, or None."""
    if not value:
        return None
    match = _URL_REF_RE.search(value)
    return match.group(1) if match else None


def parse_number(value: str | None, default: Decimal | int | str | None = None) -> Decimal | None:
    """Parse a numeric attribute, ignoring a trailing ``px`` unit.

    Missing or blank values give ``default``; anything else unparseable
    raises InvalidArgument.
    """
    if value is None or not value.strip():
        return None if default is None else D(default)
    text = value.strip()
    if text.endswith("px"):
        text = text[:-2]
    return D(text)


def parse_number_list(value: str | None) -> list[Decimal]:
    if value is None or not value.strip():
        return []
    return [D(part) for part in _LIST_SPLIT_RE.split(value.strip()) if part]


def parse_view_box(value: str | None) -> ViewBox | None:
    """Four numbers ``min-x min-y width height``; None when absent or malformed.

    Zero or negative sizes are returned as-is so callers can reject them.
    """
    if value is None or not value.strip():
        return None
    try:
        numbers = parse_number_list(value)
    except InvalidArgument:
        logger.warning("Ignoring malformed viewBox %r", value)
        return None
    if len(numbers) != 4:
        logger.warning("Ignoring viewBox %r: expected 4 numbers", value)
        return None
    return ViewBox(*numbers)
