"""Fixed-length Decimal vectors with value semantics."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from decimal import Decimal

from svgeom.errors import DimensionMismatch, DivisionByZero, InvalidArgument, InvalidDimension
from svgeom.numeric import ONE, ZERO, D, Number, acos, default_epsilon


class Vector:
    """Immutable ordered tuple of Decimal components."""

    __slots__ = ("data",)

    def __init__(self, components: Iterable[Number]) -> None:
        data = tuple(D(c) for c in components)
        if not data:
            raise InvalidArgument("vector must have at least one component")
        object.__setattr__(self, "data", data)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("Vector is immutable")

    @classmethod
    def of(cls, *components: Number) -> Vector:
        return cls(components)

    @classmethod
    def zeros(cls, n: int) -> Vector:
        return cls([ZERO] * n)

    # -- container protocol --------------------------------------------

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self) -> Iterator[Decimal]:
        return iter(self.data)

    def __getitem__(self, index: int) -> Decimal:
        return self.data[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return self.data == other.data

    def __hash__(self) -> int:
        return hash(self.data)

    def __repr__(self) -> str:
        return f"Vector({', '.join(str(c) for c in self.data)})"

    @property
    def length(self) -> int:
        return len(self.data)

    # -- arithmetic ----------------------------------------------------

    def _check_same_length(self, other: Vector) -> None:
        if len(self) != len(other):
            raise DimensionMismatch(f"vector lengths differ: {len(self)} vs {len(other)}")

    def add(self, other: Vector) -> Vector:
        self._check_same_length(other)
        return Vector(a + b for a, b in zip(self.data, other.data))

    def sub(self, other: Vector) -> Vector:
        self._check_same_length(other)
        return Vector(a - b for a, b in zip(self.data, other.data))

    def scale(self, scalar: Number) -> Vector:
        k = D(scalar)
        return Vector(a * k for a in self.data)

    def negate(self) -> Vector:
        return Vector(-a for a in self.data)

    def __add__(self, other: Vector) -> Vector:
        return self.add(other)

    def __sub__(self, other: Vector) -> Vector:
        return self.sub(other)

    def __mul__(self, scalar: Number) -> Vector:
        return self.scale(scalar)

    __rmul__ = __mul__

    def __neg__(self) -> Vector:
        return self.negate()

    # -- products and metrics ------------------------------------------

    def dot(self, other: Vector) -> Decimal:
        self._check_same_length(other)
        return sum((a * b for a, b in zip(self.data, other.data)), ZERO)

    def cross(self, other: Vector) -> Vector:
        if len(self) != 3 or len(other) != 3:
            raise InvalidDimension("cross product is defined for 3-vectors only")
        a1, a2, a3 = self.data
        b1, b2, b3 = other.data
        return Vector((a2 * b3 - a3 * b2, a3 * b1 - a1 * b3, a1 * b2 - a2 * b1))

    def outer(self, other: Vector) -> list[list[Decimal]]:
        """Outer product as a row grid; wrap with ``Matrix.from_rows`` when needed."""
        return [[a * b for b in other.data] for a in self.data]

    def norm(self) -> Decimal:
        return self.dot(self).sqrt()

    def normalize(self, epsilon: Decimal | None = None) -> Vector:
        eps = default_epsilon() if epsilon is None else D(epsilon)
        n = self.norm()
        if n <= eps:
            raise DivisionByZero("cannot normalize a zero-length vector")
        return Vector(a / n for a in self.data)

    def angle_between(self, other: Vector) -> Decimal:
        """Angle in radians; the cosine is clamped to [-1, 1] before acos."""
        cosine = self.normalize().dot(other.normalize())
        cosine = max(-ONE, min(ONE, cosine))
        return acos(cosine)

    def project_onto(self, other: Vector, epsilon: Decimal | None = None) -> Vector:
        eps = default_epsilon() if epsilon is None else D(epsilon)
        denom = other.dot(other)
        if denom <= eps * eps:
            raise DivisionByZero("cannot project onto a zero-length vector")
        return other.scale(self.dot(other) / denom)

    def orthogonal(self) -> Vector:
        """A vector perpendicular to this one (2-D rotation or 3-D cross with least aligned axis)."""
        if len(self) == 2:
            return Vector((-self.data[1], self.data[0]))
        if len(self) == 3:
            magnitudes = [abs(c) for c in self.data]
            axis = [ZERO, ZERO, ZERO]
            axis[magnitudes.index(min(magnitudes))] = ONE
            return self.cross(Vector(axis))
        raise InvalidDimension("orthogonal() is defined for 2- and 3-vectors only")

    def is_orthogonal_to(self, other: Vector, tolerance: Number | None = None) -> bool:
        tol = default_epsilon() if tolerance is None else D(tolerance)
        return abs(self.dot(other)) <= tol

    def equals(self, other: Vector, tolerance: Number = 0) -> bool:
        tol = D(tolerance)
        if tol < 0:
            raise InvalidArgument("tolerance must be non-negative")
        if len(self) != len(other):
            return False
        return all(abs(a - b) <= tol for a, b in zip(self.data, other.data))

    def to_floats(self) -> list[float]:
        return [float(c) for c in self.data]
