"""Tests for quaternion module."""

import jax
import jax.numpy as jnp

from gloog.core.matrix import Mat3
from gloog.core.primitives import FLOAT_DTYPE
from gloog.core.quaternion import (
    conjugate,
    from_axis_angle,
    identity,
    inverse,
    multiply,
    normalize,
    rotate_vector,
    slerp,
    to_rotation_matrix,
)
from gloog.core.transform import rotation_axis_angle
from gloog.core.vector import Vec3, Vec4

pi = jnp.array(jnp.pi, dtype=FLOAT_DTYPE)
ATOL = 1e-5


def quaternions_close(q1: Vec4, q2: Vec4, atol: float = ATOL) -> bool:
    """Check if two quaternions are equivalent rotations (q or -q)."""
    return q1.is_close(q2, atol=atol) or q1.is_close(-q2, atol=atol)


def test_multiply(jit_mode: str) -> None:
    """Test quaternion multiplication."""
    # Standard case 1 - identity is neutral on both sides
    q = Vec4(0.1, 0.2, 0.3, 0.9)
    assert multiply(identity(), q).is_close(q)
    assert multiply(q, identity()).is_close(q)

    # Standard case 2 - 90 degrees about x, then about y
    s = jnp.sqrt(0.5)
    qx = Vec4(s, 0.0, 0.0, s)
    qy = Vec4(0.0, s, 0.0, s)
    assert multiply(qx, qy).is_close(Vec4(0.5, 0.5, 0.5, 0.5))

    # Standard case 3 - basis units follow i * j = k
    i, j, k = Vec4.unit_x(), Vec4.unit_y(), Vec4.unit_z()
    assert multiply(i, j) == k
    assert multiply(j, i) == -k

    # Edge case 1 - product applies the right operand first
    v = Vec3(1.0, 2.0, 3.0)
    composed = rotate_vector(v, multiply(qx, qy))
    sequential = rotate_vector(rotate_vector(v, qy), qx)
    assert composed.is_close(sequential)

    # Test with vmap
    batch = jax.vmap(multiply, in_axes=(0, None))(
        Vec4._wrap(jnp.stack([qx.data, qy.data, identity().data])), identity()
    )
    assert batch.data.shape == (3, 4)
    assert jnp.allclose(batch.data[0], qx.data, atol=ATOL)


def test_conjugate(jit_mode: str) -> None:
    """Test quaternion conjugation."""
    # Standard case 1 - vector part negated
    assert conjugate(Vec4(1.0, 2.0, 3.0, 4.0)) == Vec4(-1.0, -2.0, -3.0, 4.0)

    # Standard case 2 - q * conj(q) is |q|^2 on the scalar part
    q = Vec4(1.0, 2.0, 3.0, 4.0)
    assert multiply(q, conjugate(q)).is_close(Vec4(0.0, 0.0, 0.0, 30.0))

    # Edge case 1 - identity is self-conjugate
    assert conjugate(identity()) == identity()


def test_normalize(jit_mode: str) -> None:
    """Test quaternion normalisation."""
    # Standard case 1 - arbitrary quaternion becomes unit length
    result = normalize(Vec4(1.0, 2.0, 3.0, 4.0))
    assert jnp.allclose(result.length(), 1.0, atol=ATOL)
    assert result.is_close(Vec4(1.0, 2.0, 3.0, 4.0) / jnp.sqrt(30.0))

    # Edge case 1 - zero quaternion becomes the identity rotation
    assert normalize(Vec4()) == identity()

    # Edge case 2 - tiny quaternion also becomes identity
    assert normalize(Vec4(1e-9, 0.0, 0.0, 0.0)) == identity()


def test_inverse(jit_mode: str) -> None:
    """Test quaternion inversion."""
    # Standard case 1 - q * q^-1 is identity for non-unit q
    q = Vec4(0.5, -1.0, 2.0, 3.0)
    assert multiply(q, inverse(q)).is_close(identity())
    assert multiply(inverse(q), q).is_close(identity())

    # Standard case 2 - unit inverse equals conjugate
    unit = normalize(q)
    assert inverse(unit).is_close(conjugate(unit))

    # Edge case 1 - degenerate quaternion inverts to identity
    assert inverse(Vec4()) == identity()


def test_rotate_vector(jit_mode: str) -> None:
    """Test rotating vectors by quaternions."""
    # Standard case 1 - identity leaves vectors unchanged
    v = Vec3(1.0, -2.0, 0.5)
    assert rotate_vector(v, identity()).is_close(v)

    # Standard case 2 - quarter turn about z maps x to y
    qz = from_axis_angle(Vec3.unit_z(), pi / 2)
    assert rotate_vector(Vec3.unit_x(), qz).is_close(Vec3.unit_y())

    # Standard case 3 - length is preserved
    q = normalize(Vec4(0.3, -0.4, 0.2, 0.8))
    assert jnp.allclose(rotate_vector(v, q).length(), v.length(), atol=ATOL)

    # Edge case 1 - rotation by q and -q is the same
    assert rotate_vector(v, q).is_close(rotate_vector(v, -q))

    # Test with jit
    assert jax.jit(rotate_vector)(v, q).is_close(rotate_vector(v, q))


def test_from_axis_angle(jit_mode: str) -> None:
    """Test axis-angle construction."""
    # Standard case 1 - half-angle encoding
    q = from_axis_angle(Vec3.unit_y(), pi / 3)
    assert q.is_close(Vec4(0.0, jnp.sin(pi / 6), 0.0, jnp.cos(pi / 6)))

    # Standard case 2 - axis is normalised
    assert from_axis_angle(Vec3(0.0, 5.0, 0.0), pi / 3).is_close(q)

    # Standard case 3 - full turn is -identity, the same rotation
    assert quaternions_close(from_axis_angle(Vec3.unit_x(), 2 * pi), identity())

    # Edge case 1 - degenerate axis falls back to x
    assert from_axis_angle(Vec3(), pi).is_close(Vec4(1.0, 0.0, 0.0, 0.0))

    # Edge case 2 - zero angle is identity
    assert from_axis_angle(Vec3(1.0, 2.0, 3.0), 0.0).is_close(identity())


def test_to_rotation_matrix(jit_mode: str) -> None:
    """Test conversion to rotation matrices."""
    axis = Vec3(1.0, 2.0, -1.0)
    angle = 0.8
    q = from_axis_angle(axis, angle)
    r = to_rotation_matrix(q)

    # Standard case 1 - matches the axis-angle matrix
    assert r.is_close(rotation_axis_angle(axis, angle))

    # Standard case 2 - matrix and quaternion rotate vectors the same way
    v = Vec3(0.3, -1.5, 2.0)
    assert (r * v).is_close(rotate_vector(v, q))

    # Standard case 3 - result is orthonormal
    assert (r * r.transpose()).is_close(Mat3.identity())
    assert jnp.allclose(r.determinant(), 1.0, atol=ATOL)

    # Edge case 1 - identity quaternion gives identity matrix
    assert to_rotation_matrix(identity()) == Mat3.identity()

    # Edge case 2 - q and -q give the same matrix
    assert to_rotation_matrix(-q).is_close(r)


def test_slerp(jit_mode: str) -> None:
    """Test spherical linear interpolation."""
    q1 = identity()
    q2 = from_axis_angle(Vec3.unit_z(), pi / 2)

    # Standard case 1 - endpoints
    assert slerp(q1, q2, 0.0).is_close(q1)
    assert slerp(q1, q2, 1.0).is_close(q2)

    # Standard case 2 - midpoint is half the rotation
    assert slerp(q1, q2, 0.5).is_close(from_axis_angle(Vec3.unit_z(), pi / 4))

    # Standard case 3 - result is unit length
    assert jnp.allclose(slerp(q1, q2, 0.3).length(), 1.0, atol=ATOL)

    # Edge case 1 - opposite hemisphere takes the short path
    assert quaternions_close(slerp(q1, -q2, 0.5), from_axis_angle(Vec3.unit_z(), pi / 4))

    # Edge case 2 - nearly identical inputs use the linear fallback
    q3 = from_axis_angle(Vec3.unit_z(), 1e-4)
    assert slerp(q1, q3, 0.5).is_close(from_axis_angle(Vec3.unit_z(), 5e-5))

    # Test with vmap over t
    ts = jnp.linspace(0.0, 1.0, 5)
    batch = jax.vmap(slerp, in_axes=(None, None, 0))(q1, q2, ts)
    assert batch.data.shape == (5, 4)
    assert jnp.allclose(jnp.linalg.norm(batch.data, axis=-1), 1.0, atol=ATOL)
