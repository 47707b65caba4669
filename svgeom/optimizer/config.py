"""Optimizer configuration: output precision and which rewrites run."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from svgeom.config import default_decimal_precision


@dataclass(frozen=True)
class OptimizerConfig:
    """Controls the path-data rewrite pipeline."""

    # Decimal places in the emitted path data
    float_precision: int = 3
    # Max curve deviation accepted by smooth-curve rewrites
    tolerance: Decimal = Decimal("1e-10")

    # Rewrite switches
    line_shorthands: bool = True  # L -> H / V
    smooth_curves: bool = True  # C -> S, Q -> T
    convert_to_z: bool = True  # drop a final line that Z draws anyway
    utilize_relative: bool = True  # per command, whichever form is shorter
    collapse_repeated: bool = True  # merge runs of the same letter

    decimal_precision: int = field(default_factory=default_decimal_precision)
