"""svgeom: arbitrary-precision SVG geometry engine."""

__version__ = "0.1.0"
