"""Decimal matrices: arithmetic and the linear algebra the transform code needs.

Decompositions pivot on the largest remaining magnitude even though the
entries are exact decimals; subtracting close magnitudes still loses
relative precision at a fixed number of significant digits.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from svgeom.errors import DimensionMismatch, InvalidArgument, SingularMatrix
from svgeom.linalg.vector import Vector
from svgeom.numeric import ONE, ZERO, D, Number, ceil_log2, default_epsilon

# Matrix exponential
EXP_MAX_TERMS = 120
EXP_MAX_SCALING = 50


class Matrix:
    """Immutable r×c grid of Decimal values."""

    __slots__ = ("data", "rows", "cols")

    def __init__(self, grid: Iterable[Iterable[Number]]) -> None:
        data = tuple(tuple(D(v) for v in row) for row in grid)
        if not data or not data[0]:
            raise DimensionMismatch("matrix must have at least one row and one column")
        width = len(data[0])
        if any(len(row) != width for row in data):
            raise DimensionMismatch("all matrix rows must have the same length")
        object.__setattr__(self, "data", data)
        object.__setattr__(self, "rows", len(data))
        object.__setattr__(self, "cols", width)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("Matrix is immutable")

    # -- constructors --------------------------------------------------

    @classmethod
    def from_rows(cls, grid: Sequence[Sequence[Number]]) -> Matrix:
        return cls(grid)

    @classmethod
    def identity(cls, n: int) -> Matrix:
        return cls([[ONE if i == j else ZERO for j in range(n)] for i in range(n)])

    @classmethod
    def zeros(cls, rows: int, cols: int) -> Matrix:
        return cls([[ZERO] * cols for _ in range(rows)])

    @classmethod
    def column(cls, values: Iterable[Number]) -> Matrix:
        return cls([[v] for v in values])

    # -- access --------------------------------------------------------

    @property
    def shape(self) -> tuple[int, int]:
        return (self.rows, self.cols)

    def is_square(self) -> bool:
        return self.rows == self.cols

    def __getitem__(self, index: tuple[int, int]) -> Decimal:
        i, j = index
        return self.data[i][j]

    def row(self, i: int) -> Vector:
        return Vector(self.data[i])

    def col(self, j: int) -> Vector:
        return Vector(row[j] for row in self.data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.data == other.data

    def __hash__(self) -> int:
        return hash(self.data)

    def __repr__(self) -> str:
        body = "; ".join(" ".join(str(v) for v in row) for row in self.data)
        return f"Matrix([{body}])"

    def to_lists(self) -> list[list[Decimal]]:
        return [list(row) for row in self.data]

    def to_floats(self) -> list[list[float]]:
        return [[float(v) for v in row] for row in self.data]

    # -- arithmetic ----------------------------------------------------

    def _require_same_shape(self, other: Matrix) -> None:
        if self.shape != other.shape:
            raise DimensionMismatch(f"shape mismatch: {self.shape} vs {other.shape}")

    def _require_square(self, what: str) -> None:
        if not self.is_square():
            raise DimensionMismatch(f"{what} requires a square matrix, got {self.shape}")

    def add(self, other: Matrix) -> Matrix:
        self._require_same_shape(other)
        return Matrix([[a + b for a, b in zip(r1, r2)] for r1, r2 in zip(self.data, other.data)])

    def sub(self, other: Matrix) -> Matrix:
        self._require_same_shape(other)
        return Matrix([[a - b for a, b in zip(r1, r2)] for r1, r2 in zip(self.data, other.data)])

    def negate(self) -> Matrix:
        return Matrix([[-a for a in row] for row in self.data])

    def mul(self, other: Matrix | Vector | Number) -> Matrix | Vector:
        """Matrix product, matrix-vector product, or scalar multiple."""
        if isinstance(other, Matrix):
            if self.cols != other.rows:
                raise DimensionMismatch(f"cannot multiply {self.shape} by {other.shape}")
            columns = list(zip(*other.data))
            return Matrix(
                [[sum((a * b for a, b in zip(row, col)), ZERO) for col in columns] for row in self.data]
            )
        if isinstance(other, Vector):
            return self.apply_to_vector(other)
        k = D(other)
        return Matrix([[a * k for a in row] for row in self.data])

    def div(self, scalar: Number) -> Matrix:
        k = D(scalar)
        if k.is_zero():
            raise InvalidArgument("division of a matrix by zero")
        return Matrix([[a / k for a in row] for row in self.data])

    def apply_to_vector(self, v: Vector) -> Vector:
        if len(v) != self.cols:
            raise DimensionMismatch(f"cannot apply {self.shape} matrix to a {len(v)}-vector")
        return Vector(sum((a * b for a, b in zip(row, v)), ZERO) for row in self.data)

    def __add__(self, other: Matrix) -> Matrix:
        return self.add(other)

    def __sub__(self, other: Matrix) -> Matrix:
        return self.sub(other)

    def __neg__(self) -> Matrix:
        return self.negate()

    def __matmul__(self, other: Matrix | Vector) -> Matrix | Vector:
        if not isinstance(other, (Matrix, Vector)):
            return NotImplemented
        return self.mul(other)

    def __mul__(self, scalar: Number) -> Matrix:
        if isinstance(scalar, (Matrix, Vector)):
            return NotImplemented
        return self.mul(scalar)

    __rmul__ = __mul__

    def transpose(self) -> Matrix:
        return Matrix(zip(*self.data))

    def trace(self) -> Decimal:
        self._require_square("trace")
        return sum((self.data[i][i] for i in range(self.rows)), ZERO)

    def equals(self, other: Matrix, tolerance: Number = 0) -> bool:
        tol = D(tolerance)
        if tol < 0:
            raise InvalidArgument("tolerance must be non-negative")
        if self.shape != other.shape:
            return False
        return all(
            abs(a - b) <= tol for r1, r2 in zip(self.data, other.data) for a, b in zip(r1, r2)
        )

    def norm_inf(self) -> Decimal:
        """Maximum absolute row sum."""
        return max(sum((abs(a) for a in row), ZERO) for row in self.data)

    # -- decompositions ------------------------------------------------

    def lu(self) -> tuple[Matrix, Matrix, Matrix]:
        """LU with partial pivoting. Returns (L, U, P) with P·A = L·U.

        Raises SingularMatrix when a pivot column is entirely zero.
        """
        L, U, P, _ = self._lu_grids()
        return Matrix(L), Matrix(U), Matrix(P)

    def _lu_grids(self) -> tuple[list[list[Decimal]], list[list[Decimal]], list[list[Decimal]], int]:
        self._require_square("LU decomposition")
        n = self.rows
        U = [list(row) for row in self.data]
        L = [[ZERO] * n for _ in range(n)]
        P = [[ONE if i == j else ZERO for j in range(n)] for i in range(n)]
        swaps = 0

        for k in range(n):
            pivot_row = max(range(k, n), key=lambda i: abs(U[i][k]))
            if U[pivot_row][k].is_zero():
                raise SingularMatrix(f"zero pivot in column {k}")
            if pivot_row != k:
                U[k], U[pivot_row] = U[pivot_row], U[k]
                P[k], P[pivot_row] = P[pivot_row], P[k]
                L[k], L[pivot_row] = L[pivot_row], L[k]
                swaps += 1
            L[k][k] = ONE
            for i in range(k + 1, n):
                factor = U[i][k] / U[k][k]
                L[i][k] = factor
                for j in range(k, n):
                    U[i][j] -= factor * U[k][j]
        return L, U, P, swaps

    def determinant(self) -> Decimal:
        self._require_square("determinant")
        try:
            _, U, _, swaps = self._lu_grids()
        except SingularMatrix:
            return ZERO
        det = ONE
        for i in range(self.rows):
            det *= U[i][i]
        return -det if swaps % 2 else det

    def inverse(self, epsilon: Number | None = None) -> Matrix:
        """Gauss-Jordan inverse. Raises SingularMatrix when |det| < epsilon.

        ``epsilon`` defaults to ``default_epsilon()`` for the active precision.
        """
        self._require_square("inverse")
        eps = default_epsilon() if epsilon is None else D(epsilon)
        det = self.determinant()
        if abs(det) < eps:
            raise SingularMatrix(f"matrix is singular (|det| = {abs(det)} < {eps})")

        n = self.rows
        aug = [list(row) + [ONE if i == j else ZERO for j in range(n)] for i, row in enumerate(self.data)]
        for k in range(n):
            pivot_row = max(range(k, n), key=lambda i: abs(aug[i][k]))
            if abs(aug[pivot_row][k]) < eps:
                raise SingularMatrix(f"pivot below epsilon in column {k}")
            aug[k], aug[pivot_row] = aug[pivot_row], aug[k]
            pivot = aug[k][k]
            aug[k] = [v / pivot for v in aug[k]]
            for i in range(n):
                if i == k or aug[i][k].is_zero():
                    continue
                factor = aug[i][k]
                aug[i] = [a - factor * b for a, b in zip(aug[i], aug[k])]
        return Matrix([row[n:] for row in aug])

    def solve(self, b: Vector | Matrix | Sequence[Number], epsilon: Number | None = None) -> Vector:
        """Solve A·x = b by Gaussian elimination with partial pivoting."""
        self._require_square("solve")
        if isinstance(b, Matrix):
            if b.cols != 1:
                raise DimensionMismatch("right-hand side must be a column")
            rhs = [row[0] for row in b.data]
        else:
            rhs = [D(v) for v in b]
        n = self.rows
        if len(rhs) != n:
            raise DimensionMismatch(f"right-hand side has {len(rhs)} entries, expected {n}")
        eps = default_epsilon() if epsilon is None else D(epsilon)
        if abs(self.determinant()) < eps:
            raise SingularMatrix("cannot solve a singular system")

        aug = [list(row) + [rhs[i]] for i, row in enumerate(self.data)]
        for k in range(n):
            pivot_row = max(range(k, n), key=lambda i: abs(aug[i][k]))
            if abs(aug[pivot_row][k]) < eps:
                raise SingularMatrix(f"pivot below epsilon in column {k}")
            aug[k], aug[pivot_row] = aug[pivot_row], aug[k]
            for i in range(k + 1, n):
                factor = aug[i][k] / aug[k][k]
                if factor.is_zero():
                    continue
                aug[i] = [a - factor * b for a, b in zip(aug[i], aug[k])]

        x = [ZERO] * n
        for i in range(n - 1, -1, -1):
            acc = aug[i][n] - sum((aug[i][j] * x[j] for j in range(i + 1, n)), ZERO)
            x[i] = acc / aug[i][i]
        return Vector(x)

    def qr(self) -> tuple[Matrix, Matrix]:
        """Householder QR of an m×n matrix (m >= n). Returns (Q, R) with A = Q·R."""
        m, n = self.rows, self.cols
        if m < n:
            raise DimensionMismatch("QR requires rows >= cols")
        R = [list(row) for row in self.data]
        Qt = [[ONE if i == j else ZERO for j in range(m)] for i in range(m)]

        for k in range(min(m - 1, n)):
            x = [R[i][k] for i in range(k, m)]
            norm_x = sum((v * v for v in x), ZERO).sqrt()
            if norm_x.is_zero():
                continue
            alpha = -norm_x if x[0] >= 0 else norm_x
            v = list(x)
            v[0] -= alpha
            v_norm_sq = sum((c * c for c in v), ZERO)
            if v_norm_sq.is_zero():
                continue
            # Apply H = I - 2 v v^T / (v^T v) to R and accumulate into Q^T
            for target in (R, Qt):
                for j in range(len(target[0])):
                    s = sum((v[i] * target[k + i][j] for i in range(len(v))), ZERO)
                    factor = 2 * s / v_norm_sq
                    for i in range(len(v)):
                        target[k + i][j] -= factor * v[i]

        return Matrix(Qt).transpose(), Matrix(R)

    def exp(self, max_terms: int = EXP_MAX_TERMS, tolerance: Number | None = None) -> Matrix:
        """Matrix exponential by scaling and squaring.

        The matrix is scaled by 2^-s with s = ceil(log2(||A||_inf)) so its norm
        is at most 1, the Taylor series I + A + A^2/2! + ... is summed until the
        absolute entry sum of a term drops below ``tolerance`` (default
        ``default_epsilon()``) or ``max_terms`` terms have been added, and the
        result is squared s times. s above 50 raises InvalidArgument.
        """
        self._require_square("matrix exponential")
        if max_terms <= 0:
            raise InvalidArgument("max_terms must be positive")
        tol = default_epsilon() if tolerance is None else D(tolerance)
        if tol <= 0:
            raise InvalidArgument("tolerance must be positive")

        s = ceil_log2(self.norm_inf())
        if s > EXP_MAX_SCALING:
            raise InvalidArgument(f"matrix norm too large: needs {s} squarings (max {EXP_MAX_SCALING})")
        A = self.div(2**s) if s else self

        term = Matrix.identity(self.rows)
        result = term
        for k in range(1, max_terms):
            term = (term @ A).div(k)
            result = result + term
            if sum((abs(v) for row in term.data for v in row), ZERO) < tol:
                break

        for _ in range(s):
            result = result @ result
        return result
