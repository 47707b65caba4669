"""R2.02: Merge runs of the same command letter."""

from __future__ import annotations

from svgeom.optimizer.path_optimization import collapse_repeated
from svgeom.optimizer.pipeline import OptimizationContext
from svgeom.optimizer.registry import Stage, rewrite


@rewrite(
    id="R2.02",
    stage=Stage.ENCODING,
    dependencies=["R2.01"],
    switch="collapse_repeated",
    description="Collapse consecutive commands sharing a letter",
)
def collapse_runs(ctx: OptimizationContext) -> None:
    result = collapse_repeated(ctx.commands)
    if not result.verified:
        raise ValueError("collapsing changed the argument count")
    ctx.commands = result.commands
    ctx.record("R2.02", result.collapse_count)
