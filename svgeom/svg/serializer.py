"""Path-data output: polygon paths and compact command serialization.

All output is fixed-point; no scientific notation ever appears.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from svgeom.geometry.primitives import Point
from svgeom.numeric import quantize, to_fixed
from svgeom.svg.path_data import CommandType, PathCommand

_IMPLICIT_AFTER_MOVE = {"M": "L", "m": "l"}


def format_number(value: Decimal, precision: int) -> str:
    return to_fixed(value, precision)


def points_to_path_data(points: Sequence[Point], precision: int = 6, close: bool = True) -> str:
    """``M x y L x y ... Z`` for one ring. Empty input gives an empty string."""
    if not points:
        return ""
    parts = []
    for i, p in enumerate(points):
        parts.append(f"{'M' if i == 0 else 'L'} {format_number(p.x, precision)} {format_number(p.y, precision)}")
    if close:
        parts.append("Z")
    return " ".join(parts)


def polygons_to_path_data(polygons: Iterable[Sequence[Point]], precision: int = 6) -> str:
    return " ".join(d for d in (points_to_path_data(p, precision) for p in polygons) if d)


def compact_number(value: Decimal, precision: int) -> str:
    """Shortest fixed-point text: ``0.500`` -> ``.5``, ``-0.25`` -> ``-.25``, ``3.0`` -> ``3``."""
    text = f"{quantize(value, precision):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text.startswith("0.") and len(text) > 2:
        text = text[1:]
    elif text.startswith("-0.") and len(text) > 3:
        text = "-" + text[2:]
    return text or "0"


def _needs_separator(previous: str | None, token: str) -> bool:
    if previous is None or previous[-1].isalpha():
        return False
    if token.startswith("-"):
        return False
    if token.startswith(".") and "." in previous:
        return False
    return True


def serialize_command(command: PathCommand, precision: int) -> str:
    """One command with its letter, numbers joined by the minimum separators."""
    return _serialize([command], precision, implicit_repeats=False)


def serialize_commands(commands: Iterable[PathCommand], precision: int = 3) -> str:
    """Minimal path data: repeated letters and the lineto after a moveto are implied.

    Arc letters are always written.
    """
    return _serialize(commands, precision, implicit_repeats=True)


def _serialize(commands: Iterable[PathCommand], precision: int, implicit_repeats: bool) -> str:
    out: list[str] = []
    previous_token: str | None = None
    repeat_letter: str | None = None
    for command in commands:
        letter = command.letter
        omit = (
            implicit_repeats
            and command.type is not CommandType.ARC_TO
            and command.type is not CommandType.CLOSE_PATH
            and letter == repeat_letter
        )
        if not omit:
            out.append(letter)
            previous_token = letter
        for arg in command.args:
            token = compact_number(arg, precision)
            if _needs_separator(previous_token, token):
                out.append(" ")
            out.append(token)
            previous_token = token
        repeat_letter = None if command.type is CommandType.CLOSE_PATH else _IMPLICIT_AFTER_MOVE.get(letter, letter)
    return "".join(out)
