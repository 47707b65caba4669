"""Tests for the verified path rewrites."""

from decimal import Decimal

import pytest

from svgeom.geometry.primitives import Point
from svgeom.numeric import INFINITY
from svgeom.optimizer.path_optimization import (
    choose_shorter_form,
    collapse_repeated,
    curve_to_smooth,
    distance,
    expand_collapsed,
    line_to_horizontal,
    line_to_vertical,
    line_to_z,
    on_curve_points,
    points_equal,
    quadratic_to_smooth,
    same_on_curve_points,
    to_absolute,
    to_relative,
)
from svgeom.svg.path_data import PathCommand, parse_path


def cmd(letter, *args):
    return PathCommand.from_letter(letter, args)


def test_line_to_horizontal():
    result = line_to_horizontal(0, 5, 10, 5)
    assert result.can_convert
    assert result.end_x == 10
    assert result.verified
    assert not line_to_horizontal(0, 5, 10, 6).can_convert


def test_line_to_vertical():
    result = line_to_vertical(3, 0, 3, -7)
    assert result.can_convert
    assert result.end_y == -7
    assert not line_to_vertical(3, 0, 4, -7).can_convert


def test_line_shorthand_tolerance():
    assert line_to_horizontal(0, 5, 10, Decimal("5.0001"), tolerance=Decimal("0.001")).can_convert
    assert not line_to_horizontal(0, 5, 10, Decimal("5.0001")).can_convert


def test_curve_to_smooth_without_previous_control():
    result = curve_to_smooth(None, Point(0, 0), Point(1, 1), Point(2, 1), Point(3, 0))
    assert not result.can_convert
    assert result.max_deviation == INFINITY
    assert result.control2 == (2, 1)


def test_curve_to_smooth_reflected_control():
    result = curve_to_smooth(Point(10, 10), Point(10, 0), Point(10, -10), Point(20, -10), Point(20, 0))
    assert result.can_convert
    assert result.verified
    assert result.max_deviation == 0
    assert result.end == (20, 0)


def test_curve_to_smooth_rejects_other_control():
    result = curve_to_smooth(Point(10, 10), Point(10, 0), Point(10, -9), Point(20, -10), Point(20, 0))
    assert not result.can_convert
    assert result.max_deviation == 1


def test_curve_to_smooth_within_tolerance():
    nudged = Point(10, Decimal("-10") + Decimal("1e-12"))
    result = curve_to_smooth(Point(10, 10), Point(10, 0), nudged, Point(20, -10), Point(20, 0))
    assert result.can_convert
    assert result.max_deviation <= Decimal("1e-10")


def test_quadratic_to_smooth():
    assert quadratic_to_smooth(Point(5, 10), Point(10, 0), Point(15, -10), Point(20, 0)).can_convert
    assert not quadratic_to_smooth(Point(5, 10), Point(10, 0), Point(15, -9), Point(20, 0)).can_convert
    missing = quadratic_to_smooth(None, Point(10, 0), Point(15, -10), Point(20, 0))
    assert not missing.can_convert
    assert missing.max_deviation == INFINITY
    assert missing.control2 is None


@pytest.mark.parametrize(
    "command",
    [
        cmd("M", 1, 2),
        cmd("L", 10, 20),
        cmd("L", 1, 2, 3, 4),
        cmd("H", 7),
        cmd("V", 9),
        cmd("C", 4, 5, 6, 7, 8, 9),
        cmd("S", 6, 7, 8, 9),
        cmd("Q", 4, 5, 8, 9),
        cmd("T", 8, 9),
        cmd("A", 5, 5, 30, 0, 1, 20, 20),
        cmd("A", 5, 5, 0, 1, 0, 10, 4, 2, 3, 0, 0, 1, 0, 0),
    ],
)
def test_relative_round_trip(command):
    current = Point(3, 4)
    relative = to_relative(command, current)
    assert relative.verified
    assert relative.command.relative
    back = to_absolute(relative.command, current)
    assert back.verified
    assert back.command == command


def test_relative_runs_chain_from_previous_group():
    result = to_relative(cmd("L", 1, 2, 3, 4), Point(0, 0))
    assert result.command.args == (1, 2, 2, 2)


def test_relative_hv_and_arc_args():
    current = Point(3, 4)
    assert to_relative(cmd("H", 7), current).command.args == (4,)
    assert to_relative(cmd("V", 9), current).command.args == (5,)
    arc = to_relative(cmd("A", 5, 6, 30, 0, 1, 20, 20), current).command
    assert arc.args == (5, 6, 30, 0, 1, 17, 16)


def test_close_path_only_changes_case():
    assert to_relative(cmd("Z"), Point(5, 5)).command == cmd("z")
    assert to_absolute(cmd("z"), Point(5, 5)).command == cmd("Z")


def test_already_in_requested_form_is_unchanged():
    line = cmd("l", 1, 1)
    assert to_relative(line, Point(9, 9)).command is line
    absolute = cmd("L", 1, 1)
    assert to_absolute(absolute, Point(9, 9)).command is absolute


def test_choose_shorter_form_prefers_relative():
    absolute = cmd("L", 100, 100)
    relative = to_relative(absolute, Point(99, 99)).command
    result = choose_shorter_form(absolute, relative, 3)
    assert result.is_shorter
    assert result.command is relative
    assert result.saved_bytes == 4
    assert result.verified


def test_choose_shorter_form_tie_keeps_absolute():
    absolute = cmd("L", 5, 5)
    result = choose_shorter_form(absolute, cmd("l", 5, 5), 3)
    assert not result.is_shorter
    assert result.command is absolute
    assert result.saved_bytes == 0


def test_collapse_repeated():
    commands = [
        cmd("M", 0, 0),
        cmd("L", 1, 1),
        cmd("L", 2, 0),
        cmd("l", 1, 1),
        cmd("Z"),
        cmd("M", 5, 5),
        cmd("M", 6, 6),
        cmd("A", 1, 1, 0, 0, 1, 7, 6),
        cmd("A", 1, 1, 0, 0, 1, 8, 6),
    ]
    result = collapse_repeated(commands)
    assert result.verified
    assert result.collapse_count == 2
    assert [c.letter for c in result.commands] == ["M", "L", "l", "Z", "M", "M", "A"]
    assert result.commands[1].args == (1, 1, 2, 0)
    assert result.commands[1].group_count == 2
    assert sum(len(c.args) for c in result.commands) == sum(len(c.args) for c in commands)
    assert expand_collapsed(result.commands) == commands


def test_collapse_empty():
    result = collapse_repeated([])
    assert result.commands == []
    assert result.collapse_count == 0
    assert result.verified


def test_line_to_z():
    assert line_to_z(Point(1, 1), Point(1, 1)).can_convert
    result = line_to_z(Point(3, 4), Point(0, 0))
    assert not result.can_convert
    assert result.deviation == 5


def test_point_helpers():
    assert distance(Point(0, 0), Point(3, 4)) == 5
    assert points_equal(Point(1, 1), Point(1, 1))
    assert not points_equal(Point(1, 1), Point(1, Decimal("1.001")))
    assert points_equal(Point(1, 1), Point(1, Decimal("1.001")), tolerance="0.01")


def test_integer_points_are_accepted():
    assert line_to_z(Point(0, 0), Point(0, 0)).deviation == 0
    assert distance(Point(1, 1), Point(4, 5)) == 5
    result = quadratic_to_smooth(Point(5, 10), Point(10, 0), Point(15, -10), Point(20, 0))
    assert result.max_deviation == 0


def test_on_curve_points():
    points = on_curve_points(parse_path("M0 0 h10 v10 L0 0 z"))
    assert points == [(0, 0), (10, 0), (10, 10), (0, 0)]


def test_same_on_curve_points():
    assert same_on_curve_points(parse_path("M0 0 L10 0 L10 10 L0 0 Z"), parse_path("M0 0 H10 V10 Z"))
    assert same_on_curve_points(parse_path("M5 5 l1 0 0 1"), parse_path("M5 5 L6 5 6 6"))
    assert not same_on_curve_points(parse_path("M0 0 L10 0"), parse_path("M0 0 L10 1"))
    assert not same_on_curve_points(parse_path("M0 0 L10 0"), parse_path("M0 0 L5 0 L10 0"))
    assert same_on_curve_points(parse_path("M0 0 L10 0"), parse_path("M0 0 L10 0.001"), tolerance="0.01")
