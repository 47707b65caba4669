"""R2.01: Relative or absolute, whichever serializes shorter."""

from __future__ import annotations

from svgeom.optimizer.path_optimization import choose_shorter_form, to_relative
from svgeom.optimizer.pipeline import OptimizationContext
from svgeom.optimizer.registry import Stage, rewrite
from svgeom.svg.path_data import walk


@rewrite(
    id="R2.01",
    stage=Stage.ENCODING,
    dependencies=["R1.01", "R1.02", "R1.03"],
    switch="utilize_relative",
    description="Use relative coordinates where they are shorter",
)
def shorter_form(ctx: OptimizationContext) -> None:
    precision = ctx.config.float_precision
    commands = []
    count = 0
    for cursor, command in walk(ctx.commands):
        relative = to_relative(command, cursor.current)
        if relative.verified:
            choice = choose_shorter_form(command, relative.command, precision)
            if choice.verified and choice.is_shorter:
                commands.append(choice.command)
                count += 1
                continue
        commands.append(command)
    ctx.commands = commands
    ctx.record("R2.01", count)
