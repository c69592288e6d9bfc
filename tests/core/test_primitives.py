"""Tests for primitives module."""

import jax.numpy as jnp
import numpy as np
import pytest

from gloog.core.errors import GloogError, IndexOutOfBoundsError
from gloog.core.matrix import Mat2, Mat3, Mat4
from gloog.core.primitives import (
    FLOAT_DTYPE,
    Array2,
    Array2x2,
    Array3,
    Array3x3,
    Array4,
    Array4x4,
    as_float_array,
    buffer_extent,
    check_index,
    is_scalar,
)
from gloog.core.vector import Vec2, Vec3, Vec4


def test_as_float_array(jit_mode: str) -> None:
    """Test conversion of array-like input."""
    # Standard case 1 - Python lists become float32
    result_1 = as_float_array([1, 2, 3])
    assert result_1.dtype == FLOAT_DTYPE
    assert jnp.array_equal(result_1, jnp.array([1.0, 2.0, 3.0]))

    # Standard case 2 - float64 NumPy input is narrowed
    result_2 = as_float_array(np.array([[0.5, 1.5]], dtype=np.float64))
    assert result_2.dtype == FLOAT_DTYPE
    assert result_2.shape == (1, 2)

    # Edge case 1 - scalars keep zero dimensions
    assert as_float_array(2.0).shape == ()


def test_is_scalar(jit_mode: str) -> None:
    """Test scalar detection."""
    # Standard case 1 - Python numbers
    assert is_scalar(3)
    assert is_scalar(2.5)

    # Standard case 2 - zero-dimensional arrays
    assert is_scalar(jnp.array(1.0))
    assert is_scalar(np.float32(1.0))

    # Edge case 1 - arrays with elements are not scalars
    assert not is_scalar(jnp.array([1.0]))
    assert not is_scalar([1.0])

    # Edge case 2 - strings are not scalars
    assert not is_scalar("1.0")


def test_check_index(jit_mode: str) -> None:
    """Test positional index validation."""
    # Standard case 1 - every valid position is returned unchanged
    assert [check_index(i, 4) for i in range(4)] == [0, 1, 2, 3]

    # Standard case 2 - integer-like values are accepted
    assert check_index(np.int64(2), 3) == 2

    # Edge case 1 - one past the end
    with pytest.raises(IndexOutOfBoundsError) as exc_info:
        check_index(4, 4)
    assert exc_info.value.index == 4
    assert exc_info.value.size == 4

    # Edge case 2 - negative indices do not wrap
    with pytest.raises(IndexOutOfBoundsError):
        check_index(-1, 3)

    # Edge case 3 - error is catchable as a built-in IndexError
    with pytest.raises(IndexError):
        check_index(7, 2)
    assert issubclass(IndexOutOfBoundsError, GloogError)

    # Edge case 4 - non-integer indices
    with pytest.raises(TypeError):
        check_index(1.0, 3)


def test_buffer_extent(jit_mode: str) -> None:
    """Test buffer size reporting."""
    # Standard case 1 - flat buffers report their element count
    assert buffer_extent(jnp.zeros(7)) == 7

    # Edge case 1 - other ranks report their full shape
    assert buffer_extent(jnp.zeros((1, 3))) == (1, 3)
    assert buffer_extent(jnp.zeros(())) == ()


def test_shape_aliases(jit_mode: str) -> None:
    """Test the storage annotations on each value type."""
    # Standard case 1 - every type's storage matches its declared shape
    for cls, alias in (
        (Vec2, Array2),
        (Vec3, Array3),
        (Vec4, Array4),
        (Mat2, Array2x2),
        (Mat3, Array3x3),
        (Mat4, Array4x4),
    ):
        assert cls.__annotations__["data"] is alias
        assert isinstance(cls.zero().data, alias)

    # Edge case 1 - shapes of other sizes do not match
    assert not isinstance(Vec3().data, Array4)
    assert not isinstance(Mat3.identity().data, Array4x4)
