"""
Interop module for handing vectors and matrices to a graphics API.

Every function here produces or consumes float32 data in column-major order,
the layout OpenGL expects for ``glUniform*fv`` and ``glUniformMatrix*fv`` with
``transpose=GL_FALSE``, and for tightly packed vertex attributes.
"""

from collections.abc import Sequence

import jax.numpy as jnp
import numpy as np

from .errors import BufferLayoutError
from .matrix import Matrix
from .primitives import Buffer, as_float_array, buffer_extent
from .vector import Vector

# Little-endian float32, the byte order of every platform OpenGL runs on
BYTE_DTYPE = np.dtype("<f4")

Value = Vector | Matrix


def flat_size(cls: type) -> int:
    """
    Number of floats in the flat layout of a vector or matrix type.

    Parameters
    ----------
    cls : type
        A Vector or Matrix subclass such as Vec3 or Mat4.

    Returns
    -------
    size : int
        N for vectors, N*N for matrices.
    """
    if issubclass(cls, Matrix):
        return cls.size * cls.size
    if issubclass(cls, Vector):
        return cls.size
    raise TypeError(f"expected a vector or matrix type, got {cls.__name__}")


def to_flat(value: Value) -> Buffer:
    """
    Flatten a vector or matrix to float32 in column-major order.

    Parameters
    ----------
    value : Vector or Matrix
        Value to flatten.

    Returns
    -------
    buffer : Buffer
        N (vector) or N*N (matrix) float32 values.
    """
    if not isinstance(value, (Vector, Matrix)):
        raise TypeError(f"expected a vector or matrix, got {type(value).__name__}")
    return value.to_flat()


def from_flat(cls: type, buffer) -> Value:
    """
    Rebuild a vector or matrix from its flat column-major layout.

    Parameters
    ----------
    cls : type
        Target type, e.g. Vec4 or Mat3.
    buffer : array-like
        Exactly ``flat_size(cls)`` floats.

    Returns
    -------
    value : Vector or Matrix
        Instance of ``cls``; ``from_flat(cls, to_flat(x)) == x`` for finite x.

    Raises
    ------
    BufferLayoutError
        If the buffer has the wrong number of floats.
    """
    flat_size(cls)
    return cls.from_flat(buffer)


def to_bytes(value: Value) -> bytes:
    """Raw little-endian float32 bytes, ready for a uniform or buffer upload."""
    return np.asarray(to_flat(value), dtype=BYTE_DTYPE).tobytes()


def from_bytes(cls: type, data: bytes) -> Value:
    """
    Rebuild a vector or matrix from raw float32 bytes.

    Raises
    ------
    BufferLayoutError
        If ``len(data)`` is not ``4 * flat_size(cls)``.
    """
    expected = flat_size(cls) * BYTE_DTYPE.itemsize
    if len(data) != expected:
        raise BufferLayoutError(cls.__name__, expected, len(data), unit="bytes")
    return cls.from_flat(np.frombuffer(data, dtype=BYTE_DTYPE))


def pack(values: Sequence[Value]) -> Buffer:
    """
    Concatenate same-typed values into one contiguous float32 buffer.

    Parameters
    ----------
    values : Sequence[Vector or Matrix]
        Values of a single type, e.g. the positions of a vertex buffer or an
        array of bone matrices.

    Returns
    -------
    buffer : Buffer
        ``len(values) * flat_size(type)`` floats, value after value.
    """
    if not values:
        raise ValueError("cannot pack an empty sequence")
    cls = type(values[0])
    flat_size(cls)
    for value in values:
        if type(value) is not cls:
            raise TypeError(f"cannot pack {type(value).__name__} together with {cls.__name__}")
    return jnp.concatenate([value.to_flat() for value in values])


def unpack(cls: type, buffer) -> list:
    """
    Split a packed buffer back into values of ``cls``.

    Raises
    ------
    BufferLayoutError
        If the buffer length is not a multiple of ``flat_size(cls)``.
    """
    stride = flat_size(cls)
    data = as_float_array(buffer)
    if data.ndim != 1 or data.shape[0] % stride:
        raise BufferLayoutError(cls.__name__, stride, buffer_extent(data), unit="floats per element")
    return [cls.from_flat(chunk) for chunk in data.reshape(-1, stride)]
