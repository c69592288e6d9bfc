"""Exception types raised by vector and matrix operations."""


class GloogError(Exception):
    """Base class for all errors raised by gloog."""


class IndexOutOfBoundsError(GloogError, IndexError):
    """Positional access outside ``0 <= index < size``."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"index {index} out of bounds for dimension {size}")


class SingularMatrixError(GloogError, ArithmeticError):
    """Inversion requested on a matrix whose determinant is (near) zero."""

    def __init__(self, determinant: float, tolerance: float):
        self.determinant = determinant
        self.tolerance = tolerance
        super().__init__(
            f"matrix is singular: |det| = {abs(determinant):.3e} <= {tolerance:.3e}"
        )


class DegenerateVectorError(GloogError, ArithmeticError):
    """Normalization requested on a zero-length vector."""

    def __init__(self, length: float, tolerance: float):
        self.length = length
        self.tolerance = tolerance
        super().__init__(f"cannot normalize vector of length {length:.3e} <= {tolerance:.3e}")


class BufferLayoutError(GloogError, ValueError):
    """Flat buffer whose size or shape does not match the target type."""

    def __init__(self, type_name: str, expected: int, actual: int | tuple, unit: str = "floats"):
        self.type_name = type_name
        self.expected = expected
        self.actual = actual
        # A tuple is the shape of a buffer that is not one-dimensional.
        got = f"shape {actual}" if isinstance(actual, tuple) else actual
        super().__init__(f"{type_name} requires {expected} {unit}, got {got}")


class ParseVectorError(GloogError, ValueError):
    """Text that does not describe a vector of the requested size."""
