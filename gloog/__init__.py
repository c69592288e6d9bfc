"""Gloog - JAX-based vector and matrix types for OpenGL rendering."""

from gloog.core import quaternion
from gloog.core.config import DEFAULT_TOLERANCES, ToleranceConfig
from gloog.core.errors import (
    BufferLayoutError,
    DegenerateVectorError,
    GloogError,
    IndexOutOfBoundsError,
    ParseVectorError,
    SingularMatrixError,
)
from gloog.core.interop import from_bytes, from_flat, pack, to_bytes, to_flat, unpack
from gloog.core.matrix import Mat2, Mat3, Mat4, Matrix, determinant, inverse, transpose
from gloog.core.primitives import FLOAT_DTYPE
from gloog.core.transform import (
    look_at,
    normal_matrix,
    orthographic,
    perspective,
    rotation_axis_angle,
    rotation_x,
    rotation_y,
    rotation_z,
    scaling,
    transform_direction,
    transform_point,
    translation,
)
from gloog.core.vector import (
    Vec2,
    Vec3,
    Vec4,
    Vector,
    cross,
    dot,
    length,
    length_squared,
    normalize,
)


# Convenience functions
def position(x: float, y: float, z: float) -> Vec4:
    """Homogeneous position (w = 1)."""
    return Vec3(x, y, z).extend(1.0)


def direction(x: float, y: float, z: float) -> Vec4:
    """Homogeneous direction (w = 0); unaffected by translation."""
    return Vec3(x, y, z).extend(0.0)


__all__ = [
    # Configuration
    "DEFAULT_TOLERANCES",
    "FLOAT_DTYPE",
    "ToleranceConfig",
    # Errors
    "GloogError",
    "IndexOutOfBoundsError",
    "SingularMatrixError",
    "DegenerateVectorError",
    "BufferLayoutError",
    "ParseVectorError",
    # Vectors
    "Vector",
    "Vec2",
    "Vec3",
    "Vec4",
    "dot",
    "cross",
    "length",
    "length_squared",
    "normalize",
    # Matrices
    "Matrix",
    "Mat2",
    "Mat3",
    "Mat4",
    "transpose",
    "determinant",
    "inverse",
    # Interop
    "to_flat",
    "from_flat",
    "to_bytes",
    "from_bytes",
    "pack",
    "unpack",
    # Transforms
    "translation",
    "scaling",
    "rotation_x",
    "rotation_y",
    "rotation_z",
    "rotation_axis_angle",
    "look_at",
    "perspective",
    "orthographic",
    "normal_matrix",
    "transform_point",
    "transform_direction",
    "quaternion",
    # Convenience functions
    "position",
    "direction",
]
