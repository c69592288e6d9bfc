"""
Primitives module for shared array aliases, numerical constants, and basic functions.
"""

import operator

import jax.numpy as jnp
from jaxtyping import Array, Bool, Float

from .errors import IndexOutOfBoundsError

# Project precision settings
FLOAT_DTYPE = jnp.float32
EPS = 1e-8

# Project type aliases
BoolScalar = Bool[Array, ""]
FloatScalar = Float[Array, ""]
Buffer = Float[Array, "K"]
Array2 = Float[Array, "2"]
Array3 = Float[Array, "3"]
Array4 = Float[Array, "4"]
Array2x2 = Float[Array, "2 2"]
Array3x3 = Float[Array, "3 3"]
Array4x4 = Float[Array, "4 4"]
Array = Array


def as_float_array(values) -> Array:
    """
    Convert array-like input to a float32 JAX array.

    Parameters
    ----------
    values : array-like
        Scalars, nested sequences, NumPy or JAX arrays.

    Returns
    -------
    array : Array
        Array of dtype FLOAT_DTYPE with the input's shape.
    """
    return jnp.asarray(values, dtype=FLOAT_DTYPE)


def is_scalar(value) -> bool:
    """Return True for Python numbers and zero-dimensional arrays."""
    if isinstance(value, (int, float)):
        return True
    return getattr(value, "ndim", None) == 0


def check_index(index, size: int) -> int:
    """
    Validate a positional index against a fixed dimension.

    Parameters
    ----------
    index : int
        Requested position.
    size : int
        Number of valid positions.

    Returns
    -------
    position : int
        The index as a plain Python int.

    Notes
    -----
    Negative indices are rejected rather than wrapped.
    """
    position = operator.index(index)
    if not 0 <= position < size:
        raise IndexOutOfBoundsError(position, size)
    return position


def buffer_extent(data: Array) -> int | tuple:
    """Element count of a flat buffer, or its full shape when it is not one-dimensional."""
    return data.size if data.ndim == 1 else tuple(data.shape)
