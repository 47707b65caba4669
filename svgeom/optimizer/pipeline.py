"""Optimizer orchestrator: runs rewrite passes in dependency order over one path."""

from __future__ import annotations

import importlib
import logging
import pkgutil
import time
from dataclasses import dataclass, field

from svgeom.numeric import precision_scope
from svgeom.optimizer.config import OptimizerConfig
from svgeom.optimizer.path_optimization import same_on_curve_points
from svgeom.optimizer.registry import RewriteRegistry, get_registry
from svgeom.svg.path_data import PathCommand, parse_path
from svgeom.svg.serializer import serialize_commands

logger = logging.getLogger(__name__)

PASSES_PACKAGE = "svgeom.optimizer.passes"


@dataclass
class OptimizationContext:
    """State flowing through the passes. Passes replace ``commands`` wholesale."""

    commands: list[PathCommand] = field(default_factory=list)
    config: OptimizerConfig = field(default_factory=OptimizerConfig)
    # Rewrites applied per pass ID
    rewrite_counts: dict[str, int] = field(default_factory=dict)
    completed_rewrites: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)

    def record(self, rewrite_id: str, count: int) -> None:
        self.rewrite_counts[rewrite_id] = self.rewrite_counts.get(rewrite_id, 0) + count


@dataclass(frozen=True)
class OptimizationResult:
    path_data: str
    original_bytes: int
    optimized_bytes: int
    rewrite_counts: dict[str, int]
    errors: dict[str, str]

    @property
    def saved_bytes(self) -> int:
        return self.original_bytes - self.optimized_bytes


def register_rewrites() -> None:
    """Import all pass modules so @rewrite decorators fire."""
    package = importlib.import_module(PASSES_PACKAGE)
    for _, module_name, _ in pkgutil.iter_modules(package.__path__):
        importlib.import_module(f"{PASSES_PACKAGE}.{module_name}")


class Pipeline:
    """Runs the registered passes enabled by the config."""

    def __init__(
        self,
        registry: RewriteRegistry | None = None,
        config: OptimizerConfig | None = None,
    ) -> None:
        self.registry = registry or get_registry()
        self.config = config or OptimizerConfig()

    def run(self, ctx: OptimizationContext) -> OptimizationContext:
        start = time.perf_counter()

        skip_ids = self._disabled_rewrites()
        requested = {s.id for s in self.registry.all()} - skip_ids
        ordered = self.registry.resolve_order(requested)

        logger.debug("Optimizer: %d passes queued (%d disabled)", len(ordered), len(skip_ids))

        for spec in ordered:
            t0 = time.perf_counter()
            before = ctx.commands
            try:
                spec.fn(ctx)
                if spec.verify and not same_on_curve_points(before, ctx.commands, ctx.config.tolerance):
                    raise ValueError("rewrite moved on-curve points")
                ctx.completed_rewrites.add(spec.id)
                elapsed = (time.perf_counter() - t0) * 1000
                logger.debug("  %s completed in %.1fms", spec.id, elapsed)
            except Exception as e:
                # Rejected passes leave the path as they found it
                ctx.commands = before
                ctx.rewrite_counts.pop(spec.id, None)
                ctx.errors[spec.id] = str(e)
                logger.warning("  %s FAILED: %s", spec.id, e)

        total = (time.perf_counter() - start) * 1000
        logger.info(
            "Optimizer complete: %d/%d passes in %.0fms",
            len(ctx.completed_rewrites),
            len(ordered),
            total,
        )
        return ctx

    def _disabled_rewrites(self) -> set[str]:
        return self.registry.disabled_by(self.config)


def create_pipeline(config: OptimizerConfig | None = None) -> Pipeline:
    """Pipeline over the global registry with every pass module loaded."""
    register_rewrites()
    return Pipeline(config=config)


def optimize_path_data(d: str, config: OptimizerConfig | None = None) -> OptimizationResult:
    """Rewrite path data into a shorter equivalent at ``config.float_precision``."""
    config = config or OptimizerConfig()
    pipeline = create_pipeline(config)
    with precision_scope(config.decimal_precision):
        ctx = OptimizationContext(commands=parse_path(d), config=config)
        pipeline.run(ctx)
        path_data = serialize_commands(ctx.commands, config.float_precision)

    return OptimizationResult(
        path_data=path_data,
        original_bytes=len(d),
        optimized_bytes=len(path_data),
        rewrite_counts=dict(ctx.rewrite_counts),
        errors=dict(ctx.errors),
    )
