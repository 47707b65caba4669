"""Arbitrary-precision vectors and matrices."""

from svgeom.linalg.matrix import Matrix
from svgeom.linalg.vector import Vector

__all__ = ["Matrix", "Vector"]
