"""Verified path-data rewrites.

Every rewrite proposes a shorter equivalent for one command and checks its
own work: exact coordinate comparison for line shorthands and relative or
absolute conversion, dense sampling of both curves for smooth-curve
conversion, and argument-count bookkeeping for run collapsing. Results carry
``verified`` so callers only apply rewrites that passed.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from svgeom.geometry.primitives import Point
from svgeom.numeric import INFINITY, ZERO, D, Number, hypot
from svgeom.svg.bezier import cubic_point, quadratic_point
from svgeom.svg.path_data import CommandType, PathCommand, end_point, iter_groups, reflect_point, walk
from svgeom.svg.serializer import serialize_command

EPSILON = Decimal("1e-40")
DEFAULT_TOLERANCE = Decimal("1e-10")
# Intervals used to compare two curves; both ends included, so 21 points
VERIFICATION_SAMPLES = 20

_NOT_COLLAPSIBLE = frozenset({CommandType.MOVE_TO, CommandType.CLOSE_PATH})


@dataclass(frozen=True)
class HorizontalLineResult:
    can_convert: bool
    end_x: Decimal
    verified: bool


@dataclass(frozen=True)
class VerticalLineResult:
    can_convert: bool
    end_y: Decimal
    verified: bool


@dataclass(frozen=True)
class SmoothCurveResult:
    can_convert: bool
    end: Point
    max_deviation: Decimal
    verified: bool
    # Second control point; None for quadratics
    control2: Point | None = None


@dataclass(frozen=True)
class ConversionResult:
    command: PathCommand
    verified: bool


@dataclass(frozen=True)
class ShorterFormResult:
    command: PathCommand
    is_shorter: bool
    saved_bytes: int
    verified: bool


@dataclass(frozen=True)
class CollapseResult:
    commands: list[PathCommand]
    collapse_count: int
    verified: bool


@dataclass(frozen=True)
class LineToZResult:
    can_convert: bool
    deviation: Decimal
    verified: bool


def distance(a: Point, b: Point) -> Decimal:
    return hypot(b.x - a.x, b.y - a.y)


def points_equal(a: Point, b: Point, tolerance: Number = EPSILON) -> bool:
    tol = D(tolerance)
    return abs(a.x - b.x) <= tol and abs(a.y - b.y) <= tol


# -- line shorthands -----------------------------------------------------------


def line_to_horizontal(
    x1: Number, y1: Number, x2: Number, y2: Number, tolerance: Number = EPSILON
) -> HorizontalLineResult:
    """``L`` to ``H`` when the line does not change y."""
    can_convert = abs(D(y2) - D(y1)) <= D(tolerance)
    return HorizontalLineResult(can_convert, D(x2), True)


def line_to_vertical(
    x1: Number, y1: Number, x2: Number, y2: Number, tolerance: Number = EPSILON
) -> VerticalLineResult:
    """``L`` to ``V`` when the line does not change x."""
    can_convert = abs(D(x2) - D(x1)) <= D(tolerance)
    return VerticalLineResult(can_convert, D(y2), True)


# -- smooth curves ---------------------------------------------------------------


def _max_sampled_deviation(curve, original: Sequence[Point], smooth: Sequence[Point]) -> Decimal:
    worst = ZERO
    for i in range(VERIFICATION_SAMPLES + 1):
        t = Decimal(i) / VERIFICATION_SAMPLES
        worst = max(worst, distance(curve(*original, t), curve(*smooth, t)))
    return worst


def curve_to_smooth(
    previous_control: Point | None,
    start: Point,
    control1: Point,
    control2: Point,
    end: Point,
    tolerance: Number = DEFAULT_TOLERANCE,
) -> SmoothCurveResult:
    """``C`` to ``S`` when the first control point is the reflection of the previous one.

    Without a previous cubic control point there is nothing to reflect, so the
    curve is reported as not convertible with an infinite deviation.
    """
    tol = D(tolerance)
    if previous_control is None:
        return SmoothCurveResult(False, end, INFINITY, True, control2)

    implied = reflect_point(previous_control, start)
    control_deviation = distance(control1, implied)
    if control_deviation > tol:
        return SmoothCurveResult(False, end, control_deviation, True, control2)

    sampled = _max_sampled_deviation(
        cubic_point, (start, control1, control2, end), (start, implied, control2, end)
    )
    return SmoothCurveResult(sampled <= tol, end, max(control_deviation, sampled), True, control2)


def quadratic_to_smooth(
    previous_control: Point | None,
    start: Point,
    control: Point,
    end: Point,
    tolerance: Number = DEFAULT_TOLERANCE,
) -> SmoothCurveResult:
    """``Q`` to ``T``; same rules as :func:`curve_to_smooth`."""
    tol = D(tolerance)
    if previous_control is None:
        return SmoothCurveResult(False, end, INFINITY, True)

    implied = reflect_point(previous_control, start)
    control_deviation = distance(control, implied)
    if control_deviation > tol:
        return SmoothCurveResult(False, end, control_deviation, True)

    sampled = _max_sampled_deviation(quadratic_point, (start, control, end), (start, implied, end))
    return SmoothCurveResult(sampled <= tol, end, max(control_deviation, sampled), True)


# -- relative / absolute -------------------------------------------------------


def _offset_group(
    command_type: CommandType, args: Sequence[Decimal], dx: Decimal, dy: Decimal
) -> tuple[Decimal, ...]:
    if command_type is CommandType.HLINE_TO:
        return (args[0] + dx,)
    if command_type is CommandType.VLINE_TO:
        return (args[0] + dy,)
    if command_type is CommandType.ARC_TO:
        return (*args[:5], args[5] + dx, args[6] + dy)
    return tuple(v + (dx if i % 2 == 0 else dy) for i, v in enumerate(args))


def _group_end(command_type: CommandType, absolute_args: Sequence[Decimal], pen: Point) -> Point:
    if command_type is CommandType.HLINE_TO:
        return Point(absolute_args[0], pen.y)
    if command_type is CommandType.VLINE_TO:
        return Point(pen.x, absolute_args[0])
    return Point(absolute_args[-2], absolute_args[-1])


def _relative_args(command: PathCommand, current: Point) -> tuple[Decimal, ...]:
    """Absolute args to relative; each group of a run is relative to the previous group's end."""
    out: list[Decimal] = []
    pen = current
    for group in command.groups():
        out.extend(_offset_group(command.type, group.args, -pen.x, -pen.y))
        pen = _group_end(command.type, group.args, pen)
    return tuple(out)


def _absolute_args(command: PathCommand, current: Point) -> tuple[Decimal, ...]:
    out: list[Decimal] = []
    pen = current
    for group in command.groups():
        absolute = _offset_group(command.type, group.args, pen.x, pen.y)
        out.extend(absolute)
        pen = _group_end(command.type, absolute, pen)
    return tuple(out)


def _same_args(a: Sequence[Decimal], b: Sequence[Decimal]) -> bool:
    return len(a) == len(b) and all(abs(x - y) <= EPSILON for x, y in zip(a, b))


def to_relative(command: PathCommand, current: Point) -> ConversionResult:
    """Relative form of ``command`` with the pen at ``current``.

    Arc radii, rotation and flags are copied unchanged; closepath only
    changes letter case.
    """
    if command.type is CommandType.CLOSE_PATH:
        return ConversionResult(PathCommand(CommandType.CLOSE_PATH, (), True), True)
    if command.relative:
        return ConversionResult(command, True)
    relative = PathCommand(command.type, _relative_args(command, current), True)
    round_trip = _absolute_args(relative, current)
    return ConversionResult(relative, _same_args(command.args, round_trip))


def to_absolute(command: PathCommand, current: Point) -> ConversionResult:
    if command.type is CommandType.CLOSE_PATH:
        return ConversionResult(PathCommand(CommandType.CLOSE_PATH, (), False), True)
    if not command.relative:
        return ConversionResult(command, True)
    absolute = PathCommand(command.type, _absolute_args(command, current), False)
    round_trip = _relative_args(absolute, current)
    return ConversionResult(absolute, _same_args(command.args, round_trip))


def choose_shorter_form(absolute: PathCommand, relative: PathCommand, precision: int = 6) -> ShorterFormResult:
    """Pick whichever form serializes shorter at ``precision``; ties keep the absolute form."""
    absolute_length = len(serialize_command(absolute, precision))
    relative_length = len(serialize_command(relative, precision))
    verified = len(absolute.args) == len(relative.args)
    if relative_length < absolute_length:
        return ShorterFormResult(relative, True, absolute_length - relative_length, verified)
    return ShorterFormResult(absolute, False, 0, verified)


# -- runs ------------------------------------------------------------------------


def collapse_repeated(commands: Sequence[PathCommand]) -> CollapseResult:
    """Merge consecutive commands with the same letter into one multi-group command.

    Movetos and closepaths are never merged.
    """
    result: list[PathCommand] = []
    collapse_count = 0
    for command in commands:
        previous = result[-1] if result else None
        if (
            previous is not None
            and command.type not in _NOT_COLLAPSIBLE
            and previous.type is command.type
            and previous.relative == command.relative
        ):
            result[-1] = PathCommand(previous.type, previous.args + command.args, previous.relative)
            collapse_count += 1
        else:
            result.append(command)

    original_args = sum(len(c.args) for c in commands)
    collapsed_args = sum(len(c.args) for c in result)
    return CollapseResult(result, collapse_count, original_args == collapsed_args)


def expand_collapsed(commands: Iterable[PathCommand]) -> list[PathCommand]:
    """Inverse of :func:`collapse_repeated`: one argument group per command."""
    return list(iter_groups(commands))


def line_to_z(last: Point, start: Point, tolerance: Number = EPSILON) -> LineToZResult:
    """A line ending on the subpath start is redundant before ``Z``."""
    deviation = distance(last, start)
    return LineToZResult(deviation <= D(tolerance), deviation, True)


# -- whole-path check --------------------------------------------------------------


def on_curve_points(commands: Iterable[PathCommand]) -> list[Point]:
    """Pen position after every argument group, with consecutive repeats dropped."""
    points: list[Point] = []
    for cursor, command in walk(commands):
        point = end_point(cursor, command)
        if not points or point != points[-1]:
            points.append(point)
    return points


def same_on_curve_points(
    first: Iterable[PathCommand], second: Iterable[PathCommand], tolerance: Number = EPSILON
) -> bool:
    """True when both paths pass through the same points in the same order.

    A line to the subpath start followed by ``Z`` and a bare ``Z`` compare
    equal, since both leave the pen on the start point.
    """
    a = on_curve_points(first)
    b = on_curve_points(second)
    return len(a) == len(b) and all(points_equal(p, q, tolerance) for p, q in zip(a, b))
