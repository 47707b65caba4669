"""Rewrite registry: optimizer passes declared by decorator and ordered by stage.

Usage:
    @rewrite(id="R1.01", stage=Stage.SHORTHAND, dependencies=["R0.01"], switch="line_shorthands")
    def line_shorthands(ctx: OptimizationContext) -> None:
        ctx.commands = [...]

A pass id encodes its stage, ``R<stage>.<nn>``, and a pass may only depend on
passes of its own or an earlier stage. Passes with ``verify`` set must leave
every on-curve point where it was; the pipeline rejects them otherwise.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Callable

from svgeom.optimizer.config import OptimizerConfig

if TYPE_CHECKING:
    from svgeom.optimizer.pipeline import OptimizationContext

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"R(\d)\.(\d{2})")
_SWITCHES = frozenset(f.name for f in fields(OptimizerConfig) if f.type in ("bool", bool))


class Stage(enum.IntEnum):
    # Absolute coordinates at output precision
    NORMALIZE = 0
    # Shorter command letters for the same geometry
    SHORTHAND = 1
    # Relative coordinates and implicit repeats
    ENCODING = 2


def _stage_of(rewrite_id: str) -> int | None:
    match = _ID_RE.fullmatch(rewrite_id)
    return int(match.group(1)) if match else None


@dataclass(frozen=True)
class RewriteSpec:
    id: str
    stage: Stage
    fn: Callable[["OptimizationContext"], None]
    dependencies: tuple[str, ...] = ()
    # OptimizerConfig flag that turns the pass off; None means it always runs
    switch: str | None = None
    verify: bool = True
    description: str = ""


class RewriteRegistry:
    """Optimizer passes by id."""

    def __init__(self) -> None:
        self._rewrites: dict[str, RewriteSpec] = {}

    def register(self, spec: RewriteSpec) -> None:
        if _stage_of(spec.id) != spec.stage:
            raise ValueError(f"Rewrite ID {spec.id!r} does not name stage {spec.stage.value} ({spec.stage.name})")
        if spec.id in self._rewrites:
            raise ValueError(f"Duplicate rewrite ID: {spec.id}")
        for dep in spec.dependencies:
            dep_stage = _stage_of(dep)
            if dep_stage is None or dep_stage > spec.stage:
                raise ValueError(
                    f"Rewrite {spec.id} can only depend on stage {spec.stage.value} or earlier, got {dep!r}"
                )
        if spec.switch is not None and spec.switch not in _SWITCHES:
            raise ValueError(f"Rewrite {spec.id}: unknown config switch {spec.switch!r}")
        self._rewrites[spec.id] = spec
        logger.debug("Registered rewrite %s (%s)", spec.id, spec.stage.name)

    def get(self, rewrite_id: str) -> RewriteSpec:
        return self._rewrites[rewrite_id]

    def all(self) -> list[RewriteSpec]:
        """Every pass by id, which is stage order."""
        return [self._rewrites[rid] for rid in sorted(self._rewrites)]

    def disabled_by(self, config: OptimizerConfig) -> set[str]:
        return {s.id for s in self._rewrites.values() if s.switch is not None and not getattr(config, s.switch)}

    def resolve_order(self, requested_ids: set[str] | None = None) -> list[RewriteSpec]:
        """Requested passes in run order, each after the dependencies it was requested with.

        A dependency that was not requested counts as satisfied; it is never
        pulled back in.
        """
        pool = self._rewrites
        if requested_ids is not None:
            pool = {k: v for k, v in pool.items() if k in requested_ids}

        ordered: list[RewriteSpec] = []
        placed: set[str] = set()
        entered: set[str] = set()

        def place(rid: str) -> None:
            if rid in placed:
                return
            if rid in entered:
                raise ValueError(f"Circular dependency detected among: {entered - placed}")
            entered.add(rid)
            for dep in sorted(pool[rid].dependencies):
                if dep in pool:
                    place(dep)
            placed.add(rid)
            ordered.append(pool[rid])

        for rid in sorted(pool):
            place(rid)
        return ordered


# Module-level singleton
_registry = RewriteRegistry()


def get_registry() -> RewriteRegistry:
    return _registry


def rewrite(
    *,
    id: str,
    stage: Stage,
    dependencies: list[str] | None = None,
    switch: str | None = None,
    verify: bool = True,
    description: str = "",
):
    """Decorator to register an optimizer pass."""

    def decorator(fn: Callable[["OptimizationContext"], None]):
        _registry.register(
            RewriteSpec(
                id=id,
                stage=stage,
                fn=fn,
                dependencies=tuple(dependencies or ()),
                switch=switch,
                verify=verify,
                description=description,
            )
        )
        return fn

    return decorator
