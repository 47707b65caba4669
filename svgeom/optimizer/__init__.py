"""Verified path-data optimizer."""

from svgeom.optimizer.config import OptimizerConfig
from svgeom.optimizer.pipeline import OptimizationContext, OptimizationResult, Pipeline, optimize_path_data
from svgeom.optimizer.registry import Stage, get_registry, rewrite

__all__ = [
    "rewrite",
    "Stage",
    "get_registry",
    "OptimizerConfig",
    "OptimizationContext",
    "OptimizationResult",
    "Pipeline",
    "optimize_path_data",
]
