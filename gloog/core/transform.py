"""
Transform module for building model, view and projection matrices.

Right-handed coordinates, column vectors (``v' = M * v``) and OpenGL clip space
with depth in [-1, 1]. All angles in radians.
"""

import jax
import jax.numpy as jnp

from .config import DEFAULT_TOLERANCES, ToleranceConfig
from .matrix import Mat3, Mat4
from .primitives import FLOAT_DTYPE, FloatScalar
from .vector import Vec3, Vec4, cross, dot


def translation(offset: Vec3) -> Mat4:
    """
    Translation matrix.

    Parameters
    ----------
    offset : Vec3
        Translation [x, y, z].

    Returns
    -------
    Mat4
        Identity with ``offset`` in the fourth column.
    """
    m = Mat4.identity()
    m[3] = offset.extend(1.0)
    return m


def scaling(factors: Vec3) -> Mat4:
    """Axis-aligned scale matrix with ``factors`` on the diagonal."""
    return Mat4._wrap(jnp.diag(factors.extend(1.0).data))


def rotation_x(angle: FloatScalar) -> Mat3:
    """Rotation about the x-axis."""
    c, s = jnp.cos(angle), jnp.sin(angle)
    return Mat3.from_row_major(
        jnp.array(
            [
                [1.0, 0.0, 0.0],
                [0.0, c, -s],
                [0.0, s, c],
            ],
            dtype=FLOAT_DTYPE,
        ).ravel()
    )


def rotation_y(angle: FloatScalar) -> Mat3:
    """Rotation about the y-axis."""
    c, s = jnp.cos(angle), jnp.sin(angle)
    return Mat3.from_row_major(
        jnp.array(
            [
                [c, 0.0, s],
                [0.0, 1.0, 0.0],
                [-s, 0.0, c],
            ],
            dtype=FLOAT_DTYPE,
        ).ravel()
    )


def rotation_z(angle: FloatScalar) -> Mat3:
    """Rotation about the z-axis."""
    c, s = jnp.cos(angle), jnp.sin(angle)
    return Mat3.from_row_major(
        jnp.array(
            [
                [c, -s, 0.0],
                [s, c, 0.0],
                [0.0, 0.0, 1.0],
            ],
            dtype=FLOAT_DTYPE,
        ).ravel()
    )


def rotation_axis_angle(
    axis: Vec3,
    angle: FloatScalar,
    tolerances: ToleranceConfig = DEFAULT_TOLERANCES,
) -> Mat3:
    """
    Rotation about an arbitrary axis (Rodrigues' formula).

    Parameters
    ----------
    axis : Vec3
        Rotation axis; need not be unit length.
    angle : FloatScalar
        Right-handed rotation angle.

    Returns
    -------
    Mat3
        Rotation matrix, or identity if the axis is degenerate.
    """
    magnitude = axis.length()

    def rotate() -> jax.Array:
        x, y, z = axis.data / magnitude
        c, s = jnp.cos(angle), jnp.sin(angle)
        t = 1.0 - c
        return jnp.array(
            [
                [t * x * x + c, t * x * y - s * z, t * x * z + s * y],
                [t * x * y + s * z, t * y * y + c, t * y * z - s * x],
                [t * x * z - s * y, t * y * z + s * x, t * z * z + c],
            ],
            dtype=FLOAT_DTYPE,
        )

    rows = jax.lax.cond(
        magnitude > tolerances.degenerate_length,
        rotate,
        lambda: jnp.eye(3, dtype=FLOAT_DTYPE),
    )
    return Mat3.from_row_major(rows.ravel())


def look_at(
    eye: Vec3,
    target: Vec3,
    up: Vec3,
    tolerances: ToleranceConfig = DEFAULT_TOLERANCES,
) -> Mat4:
    """
    View matrix placing the camera at ``eye`` looking towards ``target``.

    The camera looks down its local -z axis with ``up`` roughly along +y.
    When ``up`` is parallel to the viewing direction, world +z (or +x when
    looking along z) stands in for it so the result stays a rotation. The
    camera roll in that case is arbitrary; pass a better ``up`` to control it.
    """
    forward = (target - eye).normalize()
    side = cross(forward, up)
    alternate = jnp.where(jnp.abs(forward.z) < 0.9, Vec3.unit_z().data, Vec3.unit_x().data)
    side_data = jax.lax.cond(
        side.length() > tolerances.degenerate_length,
        lambda: side.data,
        lambda: cross(forward, Vec3._wrap(alternate)).data,
    )
    side = Vec3._wrap(side_data).normalize()
    true_up = cross(side, forward)
    return Mat4.from_rows(
        Vec4(side, -dot(side, eye)),
        Vec4(true_up, -dot(true_up, eye)),
        Vec4(-forward, dot(forward, eye)),
        Vec4.unit_w(),
    )


def perspective(fov_y: FloatScalar, aspect: FloatScalar, near: FloatScalar, far: FloatScalar) -> Mat4:
    """
    Perspective projection into OpenGL clip space.

    Parameters
    ----------
    fov_y : FloatScalar
        Vertical field of view [rad].
    aspect : FloatScalar
        Viewport width / height.
    near, far : FloatScalar
        Positive distances to the clipping planes.
    """
    f = 1.0 / jnp.tan(0.5 * fov_y)
    depth = near - far
    return Mat4.from_row_major(
        jnp.array(
            [
                [f / aspect, 0.0, 0.0, 0.0],
                [0.0, f, 0.0, 0.0],
                [0.0, 0.0, (far + near) / depth, 2.0 * far * near / depth],
                [0.0, 0.0, -1.0, 0.0],
            ],
            dtype=FLOAT_DTYPE,
        ).ravel()
    )


def orthographic(
    left: FloatScalar,
    right: FloatScalar,
    bottom: FloatScalar,
    top: FloatScalar,
    near: FloatScalar,
    far: FloatScalar,
) -> Mat4:
    """Orthographic projection mapping the given box onto the [-1, 1] cube."""
    width, height, depth = right - left, top - bottom, far - near
    return Mat4.from_row_major(
        jnp.array(
            [
                [2.0 / width, 0.0, 0.0, -(right + left) / width],
                [0.0, 2.0 / height, 0.0, -(top + bottom) / height],
                [0.0, 0.0, -2.0 / depth, -(far + near) / depth],
                [0.0, 0.0, 0.0, 1.0],
            ],
            dtype=FLOAT_DTYPE,
        ).ravel()
    )


def normal_matrix(model: Mat4, tolerances: ToleranceConfig = DEFAULT_TOLERANCES) -> Mat3:
    """
    Matrix for transforming surface normals: inverse-transpose of the upper 3x3.

    Raises
    ------
    SingularMatrixError
        If the upper 3x3 block of ``model`` is singular.
    """
    return model.truncate().inverse(tolerances).transpose()


def transform_point(m: Mat4, point: Vec3) -> Vec3:
    """Transform a position (w = 1), dividing by the resulting w."""
    result = m * point.extend(1.0)
    return result.truncate() / result.w


def transform_direction(m: Mat4, direction: Vec3) -> Vec3:
    """Transform a direction (w = 0); translation has no effect."""
    return (m * direction.extend(0.0)).truncate()
