"""R1.03: Drop a final line that the following Z draws anyway."""

from __future__ import annotations

from svgeom.optimizer.path_optimization import line_to_z
from svgeom.optimizer.pipeline import OptimizationContext
from svgeom.optimizer.registry import Stage, rewrite
from svgeom.svg.path_data import CommandType, end_point, walk

_LINES = (CommandType.LINE_TO, CommandType.HLINE_TO, CommandType.VLINE_TO)


@rewrite(
    id="R1.03",
    stage=Stage.SHORTHAND,
    dependencies=["R0.01"],
    switch="convert_to_z",
    description="Remove lines that end on the subpath start before Z",
)
def close_path_lines(ctx: OptimizationContext) -> None:
    steps = list(walk(ctx.commands))
    drop: set[int] = set()
    for i in range(1, len(steps)):
        _, command = steps[i]
        cursor, previous = steps[i - 1]
        if command.type is not CommandType.CLOSE_PATH or previous.type not in _LINES:
            continue
        result = line_to_z(end_point(cursor, previous), cursor.subpath_start)
        if result.can_convert and result.verified:
            drop.add(i - 1)
    ctx.commands = [command for i, (_, command) in enumerate(steps) if i not in drop]
    ctx.record("R1.03", len(drop))
