"""R0.01: Absolute form at output precision.

Every later pass sees absolute, single-group commands whose coordinates are
already rounded to ``float_precision``. Relative offsets taken between
rounded absolute positions are exact, so rounding error never accumulates
along the path.
"""

from __future__ import annotations

from svgeom.numeric import quantize
from svgeom.optimizer.pipeline import OptimizationContext
from svgeom.optimizer.registry import Stage, rewrite
from svgeom.svg.path_data import PathCommand, absolutize


@rewrite(
    id="R0.01",
    stage=Stage.NORMALIZE,
    description="Resolve relative commands and round to output precision",
    verify=False,
)
def absolute_form(ctx: OptimizationContext) -> None:
    places = ctx.config.float_precision
    commands = [
        PathCommand(command.type, tuple(quantize(a, places) for a in command.args))
        for command in absolutize(ctx.commands)
    ]
    converted = sum(1 for c in ctx.commands if c.relative)
    ctx.commands = commands
    ctx.record("R0.01", converted)
