"""
Quaternion module for 3D rotations.

Quaternions are stored in a Vec4 as (x, y, z, w) with ``w`` the scalar part,
the same order GLSL shaders use. Hamilton product, right-handed rotations,
angles in radians.
https://blog.mbedded.ninja/mathematics/geometry/quaternions
"""

import jax
import jax.numpy as jnp

from .config import DEFAULT_TOLERANCES, ToleranceConfig
from .matrix import Mat3
from .primitives import FLOAT_DTYPE, FloatScalar
from .vector import Vec3, Vec4, cross, dot


def identity() -> Vec4:
    """The identity rotation (0, 0, 0, 1)."""
    return Vec4.unit_w()


def multiply(q1: Vec4, q2: Vec4) -> Vec4:
    """
    Multiply two quaternions (Hamilton product).

    Parameters
    ----------
    q1 : Vec4
        Left quaternion (x, y, z, w).
    q2 : Vec4
        Right quaternion (x, y, z, w).

    Returns
    -------
    Vec4
        The product q1 * q2, which applies q2 first, then q1.
    """
    x1, y1, z1, w1 = q1.data
    x2, y2, z2, w2 = q2.data
    return Vec4._wrap(
        jnp.array(
            [
                w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
                w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
                w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
                w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            ],
            dtype=FLOAT_DTYPE,
        )
    )


def conjugate(q: Vec4) -> Vec4:
    """Return the conjugate (-x, -y, -z, w)."""
    return Vec4(-q.truncate(), q.w)


def normalize(q: Vec4, tolerances: ToleranceConfig = DEFAULT_TOLERANCES) -> Vec4:
    """
    Normalise a quaternion to unit length.

    Notes
    -----
    Unlike ``Vec4.normalize``, a degenerate quaternion becomes the identity
    rotation rather than the zero vector, since zero is not a rotation.
    """
    magnitude = q.length()
    data = jax.lax.cond(
        magnitude > tolerances.degenerate_length,
        lambda: q.data / magnitude,
        lambda: identity().data,
    )
    return Vec4._wrap(data)


def inverse(q: Vec4, tolerances: ToleranceConfig = DEFAULT_TOLERANCES) -> Vec4:
    """Inverse quaternion, or identity if the input magnitude is near zero."""
    magnitude_sq = q.length_squared()
    data = jax.lax.cond(
        magnitude_sq > tolerances.degenerate_length,
        lambda: conjugate(q).data / magnitude_sq,
        lambda: identity().data,
    )
    return Vec4._wrap(data)


def rotate_vector(v: Vec3, q: Vec4) -> Vec3:
    """
    Rotate a vector by a unit quaternion.

    Uses ``v' = v + 2w (u x v) + 2 u x (u x v)`` with ``u`` the vector part,
    which equals ``q * v * conj(q)`` without the two full products.
    """
    u = q.truncate()
    uv = cross(u, v)
    return v + 2.0 * q.w * uv + 2.0 * cross(u, uv)


def from_axis_angle(
    axis: Vec3,
    angle: FloatScalar,
    tolerances: ToleranceConfig = DEFAULT_TOLERANCES,
) -> Vec4:
    """
    Create a quaternion from an axis and angle.

    Notes
    -----
    A near-zero axis defaults to the x-axis, giving a valid quaternion for
    the given angle.
    """
    magnitude = axis.length()
    unit_axis = jax.lax.cond(
        magnitude > tolerances.degenerate_length,
        lambda: axis.data / magnitude,
        lambda: Vec3.unit_x().data,
    )
    s, c = jnp.sin(0.5 * angle), jnp.cos(0.5 * angle)
    return Vec4(unit_axis * s, c)


def to_rotation_matrix(q: Vec4) -> Mat3:
    """Convert a unit quaternion to a 3x3 rotation matrix."""
    x, y, z, w = q.data
    return Mat3.from_row_major(
        jnp.array(
            [
                [1 - 2 * y * y - 2 * z * z, 2 * x * y - 2 * z * w, 2 * x * z + 2 * y * w],
                [2 * x * y + 2 * z * w, 1 - 2 * x * x - 2 * z * z, 2 * y * z - 2 * x * w],
                [2 * x * z - 2 * y * w, 2 * y * z + 2 * x * w, 1 - 2 * x * x - 2 * y * y],
            ],
            dtype=FLOAT_DTYPE,
        ).ravel()
    )


def slerp(q1: Vec4, q2: Vec4, t: FloatScalar, tolerances: ToleranceConfig = DEFAULT_TOLERANCES) -> Vec4:
    """
    Spherical linear interpolation between two unit quaternions.

    Notes
    -----
    If the dot product is negative, q2 is negated to take the shortest path.
    Nearly parallel inputs fall back to linear interpolation to avoid dividing
    by a near-zero sine.
    """
    cos_theta = dot(q1, q2)
    q2_data = jnp.where(cos_theta < 0.0, -q2.data, q2.data)
    cos_theta = jnp.abs(cos_theta)

    def linear_interp() -> jax.Array:
        return (1.0 - t) * q1.data + t * q2_data

    def spherical_interp() -> jax.Array:
        theta = jnp.arccos(jnp.clip(cos_theta, -1.0, 1.0))
        sin_theta = jnp.sin(theta)
        weight1 = jnp.sin((1.0 - t) * theta) / sin_theta
        weight2 = jnp.sin(t * theta) / sin_theta
        return weight1 * q1.data + weight2 * q2_data

    data = jax.lax.cond(
        cos_theta > 1.0 - tolerances.approx_atol,
        linear_interp,
        spherical_interp,
    )
    return normalize(Vec4._wrap(data), tolerances)
