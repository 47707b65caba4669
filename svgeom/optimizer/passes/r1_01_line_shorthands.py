"""R1.01: Horizontal and vertical line shorthands (L -> H, L -> V)."""

from __future__ import annotations

from svgeom.optimizer.path_optimization import line_to_horizontal, line_to_vertical
from svgeom.optimizer.pipeline import OptimizationContext
from svgeom.optimizer.registry import Stage, rewrite
from svgeom.svg.path_data import CommandType, PathCommand, walk


@rewrite(
    id="R1.01",
    stage=Stage.SHORTHAND,
    dependencies=["R0.01", "R1.03"],
    switch="line_shorthands",
    description="Replace axis-aligned lines with H/V",
)
def line_shorthands(ctx: OptimizationContext) -> None:
    commands = []
    count = 0
    for cursor, command in walk(ctx.commands):
        if command.type is CommandType.LINE_TO:
            x0, y0 = cursor.current
            x1, y1 = command.args
            horizontal = line_to_horizontal(x0, y0, x1, y1)
            if horizontal.can_convert and horizontal.verified:
                commands.append(PathCommand(CommandType.HLINE_TO, (horizontal.end_x,)))
                count += 1
                continue
            vertical = line_to_vertical(x0, y0, x1, y1)
            if vertical.can_convert and vertical.verified:
                commands.append(PathCommand(CommandType.VLINE_TO, (vertical.end_y,)))
                count += 1
                continue
        commands.append(command)
    ctx.commands = commands
    ctx.record("R1.01", count)
