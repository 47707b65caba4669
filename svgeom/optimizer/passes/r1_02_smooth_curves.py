"""R1.02: Smooth curve shorthands (C -> S, Q -> T).

A curve is only rewritten when the reflected control point reproduces it
within ``tolerance`` at every verification sample.
"""

from __future__ import annotations

from svgeom.geometry.primitives import Point
from svgeom.optimizer.path_optimization import curve_to_smooth, quadratic_to_smooth
from svgeom.optimizer.pipeline import OptimizationContext
from svgeom.optimizer.registry import Stage, rewrite
from svgeom.svg.path_data import CUBIC_TYPES, QUADRATIC_TYPES, CommandType, PathCommand, walk


@rewrite(
    id="R1.02",
    stage=Stage.SHORTHAND,
    dependencies=["R1.01"],
    switch="smooth_curves",
    description="Replace curves whose first control point is implied with S/T",
)
def smooth_curves(ctx: OptimizationContext) -> None:
    tolerance = ctx.config.tolerance
    commands = []
    count = 0
    for cursor, command in walk(ctx.commands):
        a = command.args
        if command.type is CommandType.CUBIC_TO:
            previous = cursor.last_control if cursor.last_type in CUBIC_TYPES else None
            result = curve_to_smooth(
                previous, cursor.current, Point(a[0], a[1]), Point(a[2], a[3]), Point(a[4], a[5]), tolerance
            )
            if result.can_convert and result.verified:
                commands.append(PathCommand(CommandType.SMOOTH_CUBIC_TO, a[2:]))
                count += 1
                continue
        elif command.type is CommandType.QUAD_TO:
            previous = cursor.last_control if cursor.last_type in QUADRATIC_TYPES else None
            result = quadratic_to_smooth(previous, cursor.current, Point(a[0], a[1]), Point(a[2], a[3]), tolerance)
            if result.can_convert and result.verified:
                commands.append(PathCommand(CommandType.SMOOTH_QUAD_TO, a[2:]))
                count += 1
                continue
        commands.append(command)
    ctx.commands = commands
    ctx.record("R1.02", count)
