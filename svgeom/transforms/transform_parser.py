"""SVG ``transform`` attribute parsing and serialization."""

from __future__ import annotations

import logging
import re

from svgeom.errors import DimensionMismatch, InvalidArgument
from svgeom.linalg.matrix import Matrix
from svgeom.numeric import ZERO, D, radians, to_fixed
from svgeom.transforms import transforms2d as t2d

logger = logging.getLogger(__name__)

_FUNCTION_RE = re.compile(r"([A-Za-z]+)\s*\(([^)]*)\)")
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_SEPARATORS_RE = re.compile(r"[\s,]*")

# function name -> allowed argument counts
_ARITY: dict[str, tuple[int, ...]] = {
    "matrix": (6,),
    "translate": (1, 2),
    "scale": (1, 2),
    "rotate": (1, 3),
    "skewX": (1,),
    "skewY": (1,),
}


def _parse_args(name: str, raw: str) -> list:
    values = _NUMBER_RE.findall(raw)
    leftover = _NUMBER_RE.sub(" ", raw)
    if leftover.strip(" \t\r\n,"):
        raise InvalidArgument(f"malformed arguments in {name}({raw})")
    if len(values) not in _ARITY[name]:
        raise InvalidArgument(f"{name}() takes {_ARITY[name]} arguments, got {len(values)}")
    return [D(v) for v in values]


def parse_transform_function(name: str, raw_args: str) -> Matrix:
    """Matrix for one transform function, e.g. ``("rotate", "45 10 10")``."""
    if name not in _ARITY:
        raise InvalidArgument(f"unknown transform function: {name}")
    args = _parse_args(name, raw_args)

    if name == "matrix":
        a, b, c, d, e, f = args
        return Matrix([[a, c, e], [b, d, f], [ZERO, ZERO, 1]])
    if name == "translate":
        return t2d.translation(args[0], args[1] if len(args) > 1 else ZERO)
    if name == "scale":
        return t2d.scale(args[0], args[1] if len(args) > 1 else None)
    if name == "rotate":
        theta = radians(args[0])
        if len(args) == 3:
            return t2d.rotate_around_point(theta, args[1], args[2])
        return t2d.rotate(theta)
    if name == "skewX":
        return t2d.skew_x(radians(args[0]))
    return t2d.skew_y(radians(args[0]))


def parse_transform(text: str | None) -> Matrix:
    """Compose a transform list left to right. Missing or blank text is the identity."""
    result = t2d.identity()
    if text is None or not text.strip():
        return result

    position = 0
    for match in _FUNCTION_RE.finditer(text):
        gap = text[position : match.start()]
        if _SEPARATORS_RE.fullmatch(gap) is None:
            raise InvalidArgument(f"unexpected text in transform: {gap.strip()!r}")
        result = result @ parse_transform_function(match.group(1), match.group(2))
        position = match.end()

    tail = text[position:]
    if position == 0 or _SEPARATORS_RE.fullmatch(tail) is None:
        raise InvalidArgument(f"malformed transform: {text!r}")
    return result


def to_svg_matrix(m: Matrix, precision: int = 6) -> str:
    """Serialize a 2-D affine matrix as ``matrix(a b c d e f)``."""
    if m.shape != (3, 3):
        raise DimensionMismatch(f"expected a 3x3 matrix, got {m.shape}")
    values = [m[0, 0], m[1, 0], m[0, 1], m[1, 1], m[0, 2], m[1, 2]]
    return "matrix(" + " ".join(to_fixed(v, precision) for v in values) + ")"
