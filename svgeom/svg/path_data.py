"""Path-data parser and the cursor fold over parsed commands.

``parse_path`` turns the ``d`` mini-language into a list of ``PathCommand``.
Position tracking is a fold: ``advance(cursor, command)`` returns a new
immutable ``PathCursor`` and never mutates the old one. ``walk`` drives the
fold and pairs each command with the cursor it starts from.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from decimal import Decimal

from svgeom.errors import InvalidArgument
from svgeom.geometry.primitives import Point
from svgeom.numeric import ZERO, D

_COMMAND_LETTERS = frozenset("MmLlHhVvCcSsQqTtAaZz")
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_SEPARATORS = " \t\r\n\f,"


class CommandType(str, enum.Enum):
    MOVE_TO = "M"
    LINE_TO = "L"
    HLINE_TO = "H"
    VLINE_TO = "V"
    CUBIC_TO = "C"
    SMOOTH_CUBIC_TO = "S"
    QUAD_TO = "Q"
    SMOOTH_QUAD_TO = "T"
    ARC_TO = "A"
    CLOSE_PATH = "Z"

    @property
    def arity(self) -> int:
        return ARITY[self]


ARITY: dict[CommandType, int] = {
    CommandType.MOVE_TO: 2,
    CommandType.LINE_TO: 2,
    CommandType.HLINE_TO: 1,
    CommandType.VLINE_TO: 1,
    CommandType.CUBIC_TO: 6,
    CommandType.SMOOTH_CUBIC_TO: 4,
    CommandType.QUAD_TO: 4,
    CommandType.SMOOTH_QUAD_TO: 2,
    CommandType.ARC_TO: 7,
    CommandType.CLOSE_PATH: 0,
}

CUBIC_TYPES = frozenset({CommandType.CUBIC_TO, CommandType.SMOOTH_CUBIC_TO})
QUADRATIC_TYPES = frozenset({CommandType.QUAD_TO, CommandType.SMOOTH_QUAD_TO})


@dataclass(frozen=True)
class PathCommand:
    """One path command. ``args`` holds one argument group, or several after run collapsing."""

    type: CommandType
    args: tuple[Decimal, ...] = ()
    relative: bool = False

    def __post_init__(self) -> None:
        args = tuple(D(a) for a in self.args)
        object.__setattr__(self, "args", args)
        arity = self.type.arity
        if arity == 0:
            if args:
                raise InvalidArgument(f"{self.letter} takes no arguments")
        elif not args or len(args) % arity:
            raise InvalidArgument(
                f"{self.letter} expects a multiple of {arity} arguments, got {len(args)}"
            )

    @classmethod
    def from_letter(cls, letter: str, args: Iterable = ()) -> PathCommand:
        if letter not in _COMMAND_LETTERS:
            raise InvalidArgument(f"unknown path command: {letter!r}")
        return cls(CommandType(letter.upper()), tuple(args), letter.islower())

    @property
    def letter(self) -> str:
        return self.type.value.lower() if self.relative else self.type.value

    @property
    def group_count(self) -> int:
        arity = self.type.arity
        return len(self.args) // arity if arity else 1

    def groups(self) -> list[PathCommand]:
        """Split a collapsed run back into single-group commands."""
        arity = self.type.arity
        if arity == 0 or len(self.args) == arity:
            return [self]
        return [
            PathCommand(self.type, self.args[i : i + arity], self.relative)
            for i in range(0, len(self.args), arity)
        ]

    def __str__(self) -> str:
        return " ".join([self.letter, *(str(a) for a in self.args)])


@dataclass(frozen=True)
class PathCursor:
    """Pen state between commands."""

    current: Point = field(default_factory=lambda: Point(ZERO, ZERO))
    subpath_start: Point = field(default_factory=lambda: Point(ZERO, ZERO))
    # Last explicit or implied control point of the previous curve segment
    last_control: Point | None = None
    last_type: CommandType | None = None


# -- scanning ------------------------------------------------------------


class _Scanner:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def skip_separators(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in _SEPARATORS:
            self.pos += 1

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return self.text[self.pos]

    def read_number(self) -> Decimal:
        self.skip_separators()
        match = _NUMBER_RE.match(self.text, self.pos)
        if match is None:
            raise InvalidArgument(f"expected a number at position {self.pos} in path data")
        self.pos = match.end()
        return Decimal(match.group(0))

    def read_flag(self) -> Decimal:
        self.skip_separators()
        if self.at_end() or self.peek() not in "01":
            raise InvalidArgument(f"expected an arc flag (0 or 1) at position {self.pos}")
        flag = self.peek()
        self.pos += 1
        return Decimal(flag)

    def starts_number(self) -> bool:
        return _NUMBER_RE.match(self.text, self.pos) is not None


def _read_group(scanner: _Scanner, letter: str) -> PathCommand:
    command_type = CommandType(letter.upper())
    args: list[Decimal] = []
    for i in range(command_type.arity):
        if command_type is CommandType.ARC_TO and i in (3, 4):
            args.append(scanner.read_flag())
        else:
            args.append(scanner.read_number())
    return PathCommand(command_type, tuple(args), letter.islower())


def parse_path(d: str | None) -> list[PathCommand]:
    """Parse path data into commands, one argument group per command.

    Trailing argument groups repeat the previous letter; extra pairs after a
    moveto become lineto commands. Malformed data raises InvalidArgument.
    """
    commands: list[PathCommand] = []
    if not d:
        return commands

    scanner = _Scanner(d)
    repeat_letter: str | None = None
    while True:
        scanner.skip_separators()
        if scanner.at_end():
            break
        ch = scanner.peek()
        if ch in _COMMAND_LETTERS:
            scanner.pos += 1
            if not commands and ch not in "Mm":
                raise InvalidArgument("path data must begin with a moveto command")
            if ch in "Zz":
                commands.append(PathCommand(CommandType.CLOSE_PATH, (), ch == "z"))
                repeat_letter = None
                continue
            commands.append(_read_group(scanner, ch))
            repeat_letter = {"M": "L", "m": "l"}.get(ch, ch)
        elif repeat_letter is not None and scanner.starts_number():
            commands.append(_read_group(scanner, repeat_letter))
        else:
            raise InvalidArgument(f"unexpected {ch!r} at position {scanner.pos} in path data")
    return commands


# -- cursor fold -----------------------------------------------------------


def reflect_point(point: Point, center: Point) -> Point:
    return Point(2 * center.x - point.x, 2 * center.y - point.y)


def smooth_control(cursor: PathCursor, command_type: CommandType) -> Point:
    """Implied first control point of an S or T segment starting at ``cursor``."""
    family = CUBIC_TYPES if command_type is CommandType.SMOOTH_CUBIC_TO else QUADRATIC_TYPES
    if cursor.last_control is not None and cursor.last_type in family:
        return reflect_point(cursor.last_control, cursor.current)
    return cursor.current


def absolute_command(cursor: PathCursor, command: PathCommand) -> PathCommand:
    """Resolve a single-group command against the cursor; the type is unchanged."""
    if not command.relative:
        return command
    cx, cy = cursor.current
    t = command.type
    a = command.args
    if t is CommandType.CLOSE_PATH:
        args: tuple[Decimal, ...] = ()
    elif t is CommandType.HLINE_TO:
        args = (a[0] + cx,)
    elif t is CommandType.VLINE_TO:
        args = (a[0] + cy,)
    elif t is CommandType.ARC_TO:
        args = (a[0], a[1], a[2], a[3], a[4], a[5] + cx, a[6] + cy)
    else:
        args = tuple(v + (cx if i % 2 == 0 else cy) for i, v in enumerate(a))
    return PathCommand(t, args, False)


def end_point(cursor: PathCursor, command: PathCommand) -> Point:
    """Where an absolute single-group command leaves the pen."""
    t = command.type
    a = command.args
    if t is CommandType.CLOSE_PATH:
        return cursor.subpath_start
    if t is CommandType.HLINE_TO:
        return Point(a[0], cursor.current.y)
    if t is CommandType.VLINE_TO:
        return Point(cursor.current.x, a[0])
    return Point(a[-2], a[-1])


def advance(cursor: PathCursor, command: PathCommand) -> PathCursor:
    command = absolute_command(cursor, command)
    t = command.type
    a = command.args
    end = end_point(cursor, command)
    if t is CommandType.MOVE_TO:
        return PathCursor(end, end, None, t)
    if t is CommandType.CLOSE_PATH:
        return PathCursor(end, cursor.subpath_start, None, t)

    control: Point | None = None
    if t is CommandType.CUBIC_TO:
        control = Point(a[2], a[3])
    elif t in (CommandType.SMOOTH_CUBIC_TO, CommandType.QUAD_TO):
        control = Point(a[0], a[1])
    elif t is CommandType.SMOOTH_QUAD_TO:
        control = smooth_control(cursor, t)
    return PathCursor(end, cursor.subpath_start, control, t)


def iter_groups(commands: Iterable[PathCommand]) -> Iterator[PathCommand]:
    for command in commands:
        yield from command.groups()


def walk(commands: Iterable[PathCommand]) -> Iterator[tuple[PathCursor, PathCommand]]:
    """Yield (cursor before, absolute command) for every argument group."""
    cursor = PathCursor()
    for command in iter_groups(commands):
        absolute = absolute_command(cursor, command)
        yield cursor, absolute
        cursor = advance(cursor, absolute)


def absolutize(commands: Iterable[PathCommand]) -> list[PathCommand]:
    """Absolute coordinates, command types kept (H stays H, S stays S)."""
    return [absolute for _, absolute in walk(commands)]


def normalize(commands: Iterable[PathCommand]) -> list[PathCommand]:
    """Absolute commands restricted to M, L, C, Q, A and Z."""
    out: list[PathCommand] = []
    for cursor, command in walk(commands):
        t = command.type
        a = command.args
        if t in (CommandType.HLINE_TO, CommandType.VLINE_TO):
            end = end_point(cursor, command)
            out.append(PathCommand(CommandType.LINE_TO, (end.x, end.y)))
        elif t is CommandType.SMOOTH_CUBIC_TO:
            c1 = smooth_control(cursor, t)
            out.append(PathCommand(CommandType.CUBIC_TO, (c1.x, c1.y, *a)))
        elif t is CommandType.SMOOTH_QUAD_TO:
            c1 = smooth_control(cursor, t)
            out.append(PathCommand(CommandType.QUAD_TO, (c1.x, c1.y, *a)))
        else:
            out.append(command)
    return out
