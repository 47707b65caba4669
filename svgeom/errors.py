"""Exception taxonomy.

Arithmetic and shape violations raise one of these at detection. Scale
extremes (too many tiles, degenerate tiles, unresolved references) are not
errors and never raise.
"""

from __future__ import annotations


class GeometryError(Exception):
    """Base class for every error raised by svgeom."""


class DimensionMismatch(GeometryError, ValueError):
    """Operands have incompatible shapes."""


class InvalidDimension(GeometryError, ValueError):
    """Operation is undefined for this dimension (e.g. cross product of 2-vectors)."""


class SingularMatrix(GeometryError, ArithmeticError):
    """Inverse or solve requested on a matrix whose determinant is below epsilon."""


class DivisionByZero(GeometryError, ZeroDivisionError):
    """Normalizing a zero vector or mapping through a zero-area box."""


class InvalidViewBox(DivisionByZero):
    """viewBox with zero or negative width/height."""


class InvalidArgument(GeometryError, ValueError):
    """Malformed input: path syntax, numeric attribute, missing required value."""


class ProjectiveSingularity(GeometryError, ArithmeticError):
    """Homogeneous w coordinate is too close to zero to divide by."""
