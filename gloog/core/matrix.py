"""
Matrix module for square float32 matrices (Mat2, Mat3, Mat4).

Matrices are stored column-major, matching OpenGL uniform memory layout: the
backing array ``data`` has shape ``(N, N)`` and is indexed ``data[column, row]``,
so ``data.ravel()`` lists column 0, then column 1, and so on.

Indexing follows the storage: ``m[c]`` is column ``c`` as a vector, while
``m[r, c]`` is the element at row ``r`` and column ``c`` in the usual
mathematical sense.
"""

import logging

import jax
import jax.numpy as jnp
import numpy as np

from .config import DEFAULT_TOLERANCES, ToleranceConfig
from .errors import BufferLayoutError, SingularMatrixError
from .primitives import (
    FLOAT_DTYPE,
    Array,
    Array2x2,
    Array3x3,
    Array4x4,
    BoolScalar,
    FloatScalar,
    as_float_array,
    buffer_extent,
    check_index,
    is_scalar,
)
from .vector import Vec2, Vec3, Vec4, Vector, cross, dot

logger = logging.getLogger(__name__)

HIGHEST = jax.lax.Precision.HIGHEST


def _column_data(column, size: int) -> Array:
    data = column.data if isinstance(column, Vector) else as_float_array(column)
    if data.shape != (size,):
        raise ValueError(f"expected a column of {size} components, got shape {data.shape}")
    return data


class Matrix:
    """
    Base class for square matrices.

    Subclasses set ``size`` and ``column_type`` and are registered as JAX
    pytrees with a single leaf, the column-major array ``data``.
    """

    __slots__ = ("data",)
    __array_ufunc__ = None
    __hash__ = None

    size: int = 0
    column_type: type = Vector

    def __init__(self, *columns):
        n = self.size
        if not columns:
            self.data = jnp.zeros((n, n), dtype=FLOAT_DTYPE)
        elif len(columns) != n:
            raise ValueError(f"{type(self).__name__} requires {n} columns, got {len(columns)}")
        else:
            self.data = jnp.stack([_column_data(column, n) for column in columns])

    # Pytree protocol
    def tree_flatten(self):
        return (self.data,), None

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        matrix = object.__new__(cls)
        matrix.data = children[0]
        return matrix

    @classmethod
    def _wrap(cls, data: Array) -> "Matrix":
        return cls.tree_unflatten(None, (data,))

    # Alternate constructors
    @classmethod
    def zero(cls) -> "Matrix":
        """Return the zero matrix."""
        return cls()

    @classmethod
    def identity(cls) -> "Matrix":
        """Return the identity matrix."""
        return cls._wrap(jnp.eye(cls.size, dtype=FLOAT_DTYPE))

    @classmethod
    def from_cols(cls, *columns) -> "Matrix":
        """Build a matrix from N column vectors."""
        return cls(*columns)

    @classmethod
    def from_rows(cls, *rows) -> "Matrix":
        """Build a matrix from N row vectors."""
        return cls(*rows).transpose()

    @classmethod
    def from_flat(cls, buffer) -> "Matrix":
        """
        Build a matrix from N*N floats in column-major order.

        Raises
        ------
        BufferLayoutError
            If the buffer is not one-dimensional with N*N entries.
        """
        n = cls.size
        data = as_float_array(buffer)
        if data.shape != (n * n,):
            raise BufferLayoutError(cls.__name__, n * n, buffer_extent(data))
        return cls._wrap(data.reshape(n, n))

    @classmethod
    def from_row_major(cls, buffer) -> "Matrix":
        """Build a matrix from N*N floats written row by row, as in source literals."""
        return cls.from_flat(buffer).transpose()

    # Element access
    def __len__(self) -> int:
        return self.size

    def __iter__(self):
        return iter(self.cols())

    def _element(self, index: tuple) -> tuple[int, int]:
        if len(index) != 2:
            raise TypeError(f"matrix element access takes (row, column), got {len(index)} indices")
        row, col = index
        return check_index(row, self.size), check_index(col, self.size)

    def __getitem__(self, index):
        if isinstance(index, tuple):
            row, col = self._element(index)
            return self.data[col, row]
        return self.column_type._wrap(self.data[check_index(index, self.size)])

    def __setitem__(self, index, value) -> None:
        if isinstance(index, tuple):
            row, col = self._element(index)
            self.data = self.data.at[col, row].set(value)
        else:
            col = check_index(index, self.size)
            self.data = self.data.at[col].set(_column_data(value, self.size))

    def col(self, index: int) -> Vector:
        """Column ``index``; the native storage unit."""
        return self[index]

    def row(self, index: int) -> Vector:
        """Row ``index``, gathered from one component of each column."""
        return self.column_type._wrap(self.data[:, check_index(index, self.size)])

    def cols(self) -> list:
        return [self.col(i) for i in range(self.size)]

    def rows(self) -> list:
        return [self.row(i) for i in range(self.size)]

    def diagonal(self) -> Vector:
        return self.column_type._wrap(jnp.diagonal(self.data))

    def trace(self) -> FloatScalar:
        return jnp.trace(self.data)

    def copy(self) -> "Matrix":
        """Return an independent copy of this matrix."""
        return self._wrap(self.data)

    def to_flat(self) -> Array:
        """Return the N*N elements in column-major order."""
        return self.data.reshape(-1)

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        # NumPy sees the mathematical (row, column) layout.
        return np.asarray(self.data.T, dtype=dtype)

    def __repr__(self) -> str:
        name = type(self).__name__
        if isinstance(self.data, jax.core.Tracer):
            return f"{name}({self.data})"
        columns = ", ".join(
            "(" + ", ".join(repr(float(c)) for c in column) + ")" for column in np.asarray(self.data)
        )
        return f"{name}({columns})"

    # Arithmetic
    def __add__(self, other) -> "Matrix":
        if type(other) is not type(self):
            return NotImplemented
        return self._wrap(self.data + other.data)

    def __sub__(self, other) -> "Matrix":
        if type(other) is not type(self):
            return NotImplemented
        return self._wrap(self.data - other.data)

    def __neg__(self) -> "Matrix":
        return self._wrap(-self.data)

    def __pos__(self) -> "Matrix":
        return self.copy()

    def __mul__(self, other):
        if type(other) is type(self):
            return self.compose(other)
        if type(other) is self.column_type:
            return self.transform(other)
        if is_scalar(other):
            return self._wrap(self.data * other)
        return NotImplemented

    def __rmul__(self, other) -> "Matrix":
        if not is_scalar(other):
            return NotImplemented
        return self._wrap(self.data * other)

    def __matmul__(self, other):
        if type(other) is type(self):
            return self.compose(other)
        if type(other) is self.column_type:
            return self.transform(other)
        return NotImplemented

    def __truediv__(self, other) -> "Matrix":
        if not is_scalar(other):
            return NotImplemented
        return self._wrap(self.data / other)

    def compose(self, other: "Matrix") -> "Matrix":
        """
        Matrix product ``self * other``.

        ``result[i][j]`` is row ``i`` of ``self`` dotted with column ``j`` of
        ``other``; applying the result to a vector applies ``other`` first.
        """
        if type(other) is not type(self):
            raise TypeError(f"cannot compose {type(self).__name__} with {type(other).__name__}")
        # Storage holds the transpose, so (A B)^T = B^T A^T.
        return self._wrap(jnp.matmul(other.data, self.data, precision=HIGHEST))

    def transform(self, v: Vector) -> Vector:
        """Apply this matrix to a column vector of matching size."""
        if type(v) is not self.column_type:
            raise TypeError(f"{type(self).__name__} cannot transform {type(v).__name__}")
        return self.column_type._wrap(jnp.matmul(self.data.T, v.data, precision=HIGHEST))

    # Comparison
    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return bool(jnp.array_equal(self.data, other.data))

    def is_close(self, other: "Matrix", atol: float | None = None) -> bool:
        """Approximate elementwise equality with absolute tolerance ``atol``."""
        if type(other) is not type(self):
            raise TypeError(f"is_close requires two {type(self).__name__}, got {type(other).__name__}")
        atol = DEFAULT_TOLERANCES.approx_atol if atol is None else atol
        return bool(jnp.allclose(self.data, other.data, rtol=0.0, atol=atol))

    # Linear algebra
    def transpose(self) -> "Matrix":
        """Swap rows and columns."""
        return self._wrap(self.data.T)

    def determinant(self) -> FloatScalar:
        raise NotImplementedError

    def minor(self, row: int, col: int) -> FloatScalar:
        """Determinant of the submatrix left after removing ``row`` and ``col``."""
        n = self.size
        row, col = check_index(row, n), check_index(col, n)
        kept_cols = [c for c in range(n) if c != col]
        kept_rows = [r for r in range(n) if r != row]
        sub = self.data[jnp.ix_(jnp.array(kept_cols), jnp.array(kept_rows))]
        if n == 2:
            return sub[0, 0]
        return MATRIX_TYPES[n - 1]._wrap(sub).determinant()

    def cofactor(self, row: int, col: int) -> FloatScalar:
        """Signed minor ``(-1)^(row + col) * minor(row, col)``."""
        sign = -1.0 if (row + col) % 2 else 1.0
        return sign * self.minor(row, col)

    def adjugate(self) -> "Matrix":
        """Transpose of the cofactor matrix."""
        n = self.size
        # adj[r][c] = cofactor(c, r), and storage is indexed [column, row].
        data = jnp.array([[self.cofactor(i, j) for j in range(n)] for i in range(n)], dtype=FLOAT_DTYPE)
        return self._wrap(data)

    def is_invertible(self, tolerances: ToleranceConfig = DEFAULT_TOLERANCES) -> bool:
        """True if ``|det|`` exceeds ``tolerances.singular_determinant``."""
        return bool(self._nonsingular(self.determinant(), tolerances))

    @staticmethod
    def _nonsingular(det: FloatScalar, tolerances: ToleranceConfig) -> BoolScalar:
        return jnp.abs(det) > tolerances.singular_determinant

    def inverse(self, tolerances: ToleranceConfig = DEFAULT_TOLERANCES) -> "Matrix":
        """
        Checked inverse, ``adjugate / determinant``.

        Parameters
        ----------
        tolerances : ToleranceConfig
            ``singular_determinant`` is the largest |det| treated as zero.

        Returns
        -------
        Matrix
            The inverse matrix.

        Raises
        ------
        SingularMatrixError
            If ``|det| <= tolerances.singular_determinant`` (or det is NaN).

        Notes
        -----
        Requires concrete values; inside ``jax.jit`` use ``inverse_unchecked``.
        The threshold is absolute, so heavily scaled matrices (|det| shrinks
        as the scale to the power N) need a smaller ``singular_determinant``.
        """
        det = self.determinant()
        if not self._nonsingular(det, tolerances):
            logger.debug("Rejected inverse of singular %s with det=%s", type(self).__name__, det)
            raise SingularMatrixError(float(det), tolerances.singular_determinant)
        return self._wrap(self.adjugate().data / det)

    def inverse_unchecked(self) -> "Matrix":
        """
        Inverse without a singularity check.

        Trusts the caller to have verified invertibility; a singular matrix
        yields infinities or NaNs. Traceable under ``jax.jit``.
        """
        return self._wrap(self.adjugate().data / self.determinant())

    # Size conversions
    def _widen(self, diagonal) -> "Matrix":
        n = self.size
        data = jnp.zeros((n + 1, n + 1), dtype=FLOAT_DTYPE)
        data = data.at[:n, :n].set(self.data).at[n, n].set(diagonal)
        return MATRIX_TYPES[n + 1]._wrap(data)

    def _truncate(self) -> "Matrix":
        n = self.size - 1
        return MATRIX_TYPES[n]._wrap(self.data[:n, :n])


@jax.tree_util.register_pytree_node_class
class Mat2(Matrix):
    """2x2 matrix of float32, columns are Vec2."""

    __slots__ = ()
    size = 2
    data: Array2x2
    column_type = Vec2

    def determinant(self) -> FloatScalar:
        """``ad - bc``."""
        d = self.data
        return d[0, 0] * d[1, 1] - d[1, 0] * d[0, 1]

    def adjugate(self) -> "Mat2":
        d = self.data
        return Mat2._wrap(
            jnp.array(
                [
                    [d[1, 1], -d[0, 1]],
                    [-d[1, 0], d[0, 0]],
                ],
                dtype=FLOAT_DTYPE,
            )
        )

    def widen(self, diagonal=1.0) -> "Mat3":
        """Embed in the top-left of a Mat3; the new diagonal cell is ``diagonal``."""
        return self._widen(diagonal)


@jax.tree_util.register_pytree_node_class
class Mat3(Matrix):
    """3x3 matrix of float32, columns are Vec3."""

    __slots__ = ()
    size = 3
    data: Array3x3
    column_type = Vec3

    def determinant(self) -> FloatScalar:
        """Scalar triple product of the columns, ``(c0 x c1) . c2``."""
        c0, c1, c2 = self.cols()
        return dot(cross(c0, c1), c2)

    def adjugate(self) -> "Mat3":
        # The rows of the adjugate are c1 x c2, c2 x c0 and c0 x c1.
        c0, c1, c2 = self.cols()
        return Mat3.from_rows(cross(c1, c2), cross(c2, c0), cross(c0, c1))

    @classmethod
    def from_mat2(cls, m: Mat2, diagonal=1.0) -> "Mat3":
        return m.widen(diagonal)

    def widen(self, diagonal=1.0) -> "Mat4":
        """
        Embed in the top-left of a Mat4.

        The new row and column are zero except the corner, which is
        ``diagonal`` (1.0 promotes a rotation to an affine transform).
        """
        return self._widen(diagonal)

    def truncate(self) -> Mat2:
        """Keep the top-left 2x2 block."""
        return self._truncate()


@jax.tree_util.register_pytree_node_class
class Mat4(Matrix):
    """4x4 matrix of float32, columns are Vec4."""

    __slots__ = ()
    size = 4
    data: Array4x4
    column_type = Vec4

    def determinant(self) -> FloatScalar:
        """Cofactor expansion along the first row using 3x3 minors."""
        return sum(self.data[col, 0] * self.cofactor(0, col) for col in range(4))

    @classmethod
    def from_mat3(cls, m: Mat3, diagonal=1.0) -> "Mat4":
        return m.widen(diagonal)

    def truncate(self) -> Mat3:
        """Keep the top-left 3x3 block (drops translation and projection terms)."""
        return self._truncate()


MATRIX_TYPES = {2: Mat2, 3: Mat3, 4: Mat4}


def transpose(m: Matrix) -> Matrix:
    return m.transpose()


def determinant(m: Matrix) -> FloatScalar:
    return m.determinant()


def inverse(m: Matrix, tolerances: ToleranceConfig = DEFAULT_TOLERANCES) -> Matrix:
    """Checked inverse; raises SingularMatrixError for singular input."""
    return m.inverse(tolerances)
