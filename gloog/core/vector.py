"""
Vector module for fixed-size float32 vectors (Vec2, Vec3, Vec4).

Each vector wraps a single JAX array and is registered as a pytree, so vectors
can be passed through ``jax.jit`` and ``jax.vmap``. Arithmetic always returns
new vectors; component assignment (``v[0] = 1.0`` or ``v.x = 1.0``) replaces
the receiver's storage and touches nothing else.
"""

import logging
import re

import jax
import jax.numpy as jnp
import numpy as np

from .config import DEFAULT_TOLERANCES, ToleranceConfig
from .errors import BufferLayoutError, DegenerateVectorError, ParseVectorError
from .primitives import (
    FLOAT_DTYPE,
    Array,
    Array2,
    Array3,
    Array4,
    FloatScalar,
    as_float_array,
    buffer_extent,
    check_index,
    is_scalar,
)

logger = logging.getLogger(__name__)

AXES = "xyzw"
_SEPARATORS = re.compile(r"[\s,]+")


def _components(args: tuple, size: int) -> Array:
    """Gather constructor arguments into a flat array of ``size`` components."""
    if not args:
        return jnp.zeros(size, dtype=FLOAT_DTYPE)
    if len(args) == 1 and is_scalar(args[0]):
        return jnp.full(size, args[0], dtype=FLOAT_DTYPE)

    parts = [jnp.ravel(as_float_array(arg.data if isinstance(arg, Vector) else arg)) for arg in args]
    data = jnp.concatenate(parts)
    if data.shape[0] != size:
        raise ValueError(f"expected {size} components, got {data.shape[0]}")
    return data


def _axis(index: int) -> property:
    """Named accessor that reads and writes through positional indexing."""

    def fget(self) -> FloatScalar:
        return self[index]

    def fset(self, value) -> None:
        self[index] = value

    return property(fget, fset, doc=f"Component ``{AXES[index]}`` (position {index}).")


class Vector:
    """
    Base class for fixed-size vectors.

    Subclasses set ``size`` and are registered as JAX pytrees with a single
    leaf, the component array ``data`` of shape ``(size,)``.
    """

    __slots__ = ("data",)
    __array_ufunc__ = None
    __hash__ = None

    size: int = 0

    def __init__(self, *components):
        self.data = _components(components, self.size)

    # Pytree protocol
    def tree_flatten(self):
        return (self.data,), None

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        vector = object.__new__(cls)
        vector.data = children[0]
        return vector

    @classmethod
    def _wrap(cls, data: Array) -> "Vector":
        return cls.tree_unflatten(None, (data,))

    # Alternate constructors
    @classmethod
    def zero(cls) -> "Vector":
        """Return the zero vector."""
        return cls._wrap(jnp.zeros(cls.size, dtype=FLOAT_DTYPE))

    @classmethod
    def from_flat(cls, buffer) -> "Vector":
        """
        Build a vector from a flat buffer of exactly ``size`` floats.

        Raises
        ------
        BufferLayoutError
            If the buffer is not one-dimensional with ``size`` entries.
        """
        data = as_float_array(buffer)
        if data.shape != (cls.size,):
            raise BufferLayoutError(cls.__name__, cls.size, buffer_extent(data))
        return cls._wrap(data)

    @classmethod
    def parse(cls, text: str) -> "Vector":
        """
        Parse a vector from floats separated by commas and/or whitespace.

        ``"1, 2 3"``, ``"1 2 3"`` and ``" 1,2,3 "`` all parse to ``Vec3(1, 2, 3)``.

        Raises
        ------
        ParseVectorError
            On an invalid float or the wrong number of components.
        """
        stripped = text.strip()
        tokens = [token for token in _SEPARATORS.split(stripped) if token] if stripped else []
        if len(tokens) < cls.size:
            raise ParseVectorError(f"encountered {len(tokens)} of required {cls.size} vector components")
        if len(tokens) > cls.size:
            raise ParseVectorError(f"encountered more than the required {cls.size} vector components")

        values = []
        for position, token in enumerate(tokens):
            try:
                values.append(float(token))
            except ValueError:
                raise ParseVectorError(f"encountered invalid float {token!r} at component {position}") from None
        return cls._wrap(as_float_array(values))

    # Sequence protocol
    def __len__(self) -> int:
        return self.size

    def __iter__(self):
        return iter(self.data)

    def __getitem__(self, index) -> FloatScalar:
        return self.data[check_index(index, self.size)]

    def __setitem__(self, index, value) -> None:
        self.data = self.data.at[check_index(index, self.size)].set(value)

    def __getattr__(self, name: str) -> "Vector":
        # Only reached when normal lookup fails: read-only swizzles such as v.xy or v.zyx.
        axes = AXES[: self.size]
        if 2 <= len(name) <= 4 and all(c in axes for c in name):
            indices = jnp.array([axes.index(c) for c in name])
            return VECTOR_TYPES[len(name)]._wrap(self.data[indices])
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def copy(self) -> "Vector":
        """Return an independent copy of this vector."""
        return self._wrap(self.data)

    def to_flat(self) -> Array:
        """Return the ``size`` components as a flat float32 array."""
        return self.data

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        return np.asarray(self.data, dtype=dtype)

    def __repr__(self) -> str:
        name = type(self).__name__
        if isinstance(self.data, jax.core.Tracer):
            return f"{name}({self.data})"
        return f"{name}({', '.join(repr(float(c)) for c in np.asarray(self.data))})"

    # Arithmetic
    def _operand(self, other):
        if type(other) is type(self):
            return other.data
        if is_scalar(other):
            return other
        return None

    def __add__(self, other) -> "Vector":
        operand = self._operand(other)
        if operand is None:
            return NotImplemented
        return self._wrap(self.data + operand)

    __radd__ = __add__

    def __sub__(self, other) -> "Vector":
        operand = self._operand(other)
        if operand is None:
            return NotImplemented
        return self._wrap(self.data - operand)

    def __rsub__(self, other) -> "Vector":
        operand = self._operand(other)
        if operand is None:
            return NotImplemented
        return self._wrap(operand - self.data)

    def __mul__(self, other) -> "Vector":
        if not is_scalar(other):
            return NotImplemented
        return self._wrap(self.data * other)

    __rmul__ = __mul__

    def __truediv__(self, other) -> "Vector":
        if not is_scalar(other):
            return NotImplemented
        return self._wrap(self.data / other)

    def __rtruediv__(self, other) -> "Vector":
        if not is_scalar(other):
            return NotImplemented
        return self._wrap(other / self.data)

    def __neg__(self) -> "Vector":
        return self._wrap(-self.data)

    def __pos__(self) -> "Vector":
        return self.copy()

    # Comparison
    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return bool(jnp.array_equal(self.data, other.data))

    def is_close(self, other: "Vector", atol: float | None = None) -> bool:
        """
        Approximate componentwise equality.

        Parameters
        ----------
        other : Vector
            Vector of the same type.
        atol : float, optional
            Absolute tolerance; defaults to ``DEFAULT_TOLERANCES.approx_atol``.
        """
        _check_same_type(self, other, "is_close")
        atol = DEFAULT_TOLERANCES.approx_atol if atol is None else atol
        return bool(jnp.allclose(self.data, other.data, rtol=0.0, atol=atol))

    # Geometry
    def dot(self, other: "Vector") -> FloatScalar:
        """Dot product with a vector of the same size."""
        return dot(self, other)

    def length_squared(self) -> FloatScalar:
        """Squared Euclidean norm; avoids the square root when comparing lengths."""
        return jnp.dot(self.data, self.data)

    def length(self) -> FloatScalar:
        """Euclidean norm."""
        return jnp.sqrt(self.length_squared())

    magnitude = length

    def normalize(
        self,
        strict: bool = False,
        tolerances: ToleranceConfig = DEFAULT_TOLERANCES,
    ) -> "Vector":
        """
        Return a unit vector with the same direction.

        Parameters
        ----------
        strict : bool
            Raise instead of returning the zero vector for degenerate input.
        tolerances : ToleranceConfig
            ``degenerate_length`` is the zero-length threshold.

        Returns
        -------
        Vector
            ``self / self.length()``, or the zero vector if the length is at or
            below ``degenerate_length``.

        Raises
        ------
        DegenerateVectorError
            Only when ``strict`` is set and the vector is degenerate.
        """
        magnitude = self.length()
        threshold = tolerances.degenerate_length
        if strict and not magnitude > threshold:
            logger.debug("Rejected normalization of degenerate %r", self)
            raise DegenerateVectorError(float(magnitude), threshold)

        data = jax.lax.cond(
            magnitude > threshold,
            lambda: self.data / magnitude,
            lambda: jnp.zeros_like(self.data),
        )
        return self._wrap(data)

    def project(self, onto: "Vector", tolerances: ToleranceConfig = DEFAULT_TOLERANCES) -> "Vector":
        """
        Vector projection of this vector onto another.

        Projecting onto a degenerate vector gives the zero vector.
        """
        _check_same_type(self, onto, "project")
        denominator = onto.length_squared()
        data = jax.lax.cond(
            denominator > tolerances.degenerate_length**2,
            lambda: onto.data * (jnp.dot(self.data, onto.data) / denominator),
            lambda: jnp.zeros_like(self.data),
        )
        return self._wrap(data)

    def reject(self, from_: "Vector", tolerances: ToleranceConfig = DEFAULT_TOLERANCES) -> "Vector":
        """Vector rejection: the part of this vector perpendicular to ``from_``."""
        return self - self.project(from_, tolerances)

    def lerp(self, other: "Vector", t) -> "Vector":
        """Linear interpolation, ``t = 0`` gives self and ``t = 1`` gives other."""
        _check_same_type(self, other, "lerp")
        return self._wrap(self.data + (other.data - self.data) * t)


@jax.tree_util.register_pytree_node_class
class Vec2(Vector):
    """Two-component vector (x, y)."""

    __slots__ = ()
    size = 2
    data: Array2

    x = _axis(0)
    y = _axis(1)

    @classmethod
    def unit_x(cls) -> "Vec2":
        return cls(1.0, 0.0)

    @classmethod
    def unit_y(cls) -> "Vec2":
        return cls(0.0, 1.0)

    def extend(self, z) -> "Vec3":
        """Widen to a Vec3 with the caller-chosen ``z``."""
        return Vec3(self, z)


@jax.tree_util.register_pytree_node_class
class Vec3(Vector):
    """Three-component vector (x, y, z)."""

    __slots__ = ()
    size = 3
    data: Array3

    x = _axis(0)
    y = _axis(1)
    z = _axis(2)

    @classmethod
    def unit_x(cls) -> "Vec3":
        return cls(1.0, 0.0, 0.0)

    @classmethod
    def unit_y(cls) -> "Vec3":
        return cls(0.0, 1.0, 0.0)

    @classmethod
    def unit_z(cls) -> "Vec3":
        return cls(0.0, 0.0, 1.0)

    def cross(self, other: "Vec3") -> "Vec3":
        """Right-handed cross product, this vector on the left."""
        return cross(self, other)

    @staticmethod
    def triple(a: "Vec3", b: "Vec3", c: "Vec3") -> FloatScalar:
        """
        Scalar triple product ``(a x b) . c``.

        Equal to the signed volume of the parallelepiped spanned by the vectors.
        """
        return dot(cross(a, b), c)

    def extend(self, w) -> "Vec4":
        """
        Widen to a Vec4 with the caller-chosen ``w``.

        Use ``1.0`` for positions and ``0.0`` for directions.
        """
        return Vec4(self, w)

    def truncate(self) -> Vec2:
        """Drop ``z``."""
        return Vec2._wrap(self.data[:2])


@jax.tree_util.register_pytree_node_class
class Vec4(Vector):
    """Four-component vector (x, y, z, w)."""

    __slots__ = ()
    size = 4
    data: Array4

    x = _axis(0)
    y = _axis(1)
    z = _axis(2)
    w = _axis(3)

    @classmethod
    def unit_x(cls) -> "Vec4":
        return cls(1.0, 0.0, 0.0, 0.0)

    @classmethod
    def unit_y(cls) -> "Vec4":
        return cls(0.0, 1.0, 0.0, 0.0)

    @classmethod
    def unit_z(cls) -> "Vec4":
        return cls(0.0, 0.0, 1.0, 0.0)

    @classmethod
    def unit_w(cls) -> "Vec4":
        return cls(0.0, 0.0, 0.0, 1.0)

    def truncate(self) -> Vec3:
        """Drop the homogeneous coordinate ``w``."""
        return Vec3._wrap(self.data[:3])


VECTOR_TYPES = {2: Vec2, 3: Vec3, 4: Vec4}


def _check_same_type(a: Vector, b: Vector, operation: str) -> None:
    if not isinstance(a, Vector) or type(a) is not type(b):
        raise TypeError(
            f"{operation} requires two vectors of the same size, "
            f"got {type(a).__name__} and {type(b).__name__}"
        )


def dot(a: Vector, b: Vector) -> FloatScalar:
    """
    Dot product of two vectors of the same size.

    Parameters
    ----------
    a : Vector
        Left operand.
    b : Vector
        Right operand, same type as ``a``.

    Returns
    -------
    dot : FloatScalar
        Sum of componentwise products.
    """
    _check_same_type(a, b, "dot")
    return jnp.dot(a.data, b.data)


def cross(a: Vec3, b: Vec3) -> Vec3:
    """
    Right-handed cross product of two Vec3.

    Raises
    ------
    TypeError
        If either operand is not a Vec3.
    """
    if not (isinstance(a, Vec3) and isinstance(b, Vec3)):
        raise TypeError(f"cross is only defined for Vec3, got {type(a).__name__} and {type(b).__name__}")
    ax, ay, az = a.data
    bx, by, bz = b.data
    return Vec3._wrap(
        jnp.array(
            [
                ay * bz - az * by,
                az * bx - ax * bz,
                ax * by - ay * bx,
            ],
            dtype=FLOAT_DTYPE,
        )
    )


def length(v: Vector) -> FloatScalar:
    """Euclidean norm of a vector."""
    return v.length()


def length_squared(v: Vector) -> FloatScalar:
    """Squared Euclidean norm of a vector."""
    return v.length_squared()


def normalize(v: Vector, tolerances: ToleranceConfig = DEFAULT_TOLERANCES) -> Vector:
    """Unit vector in the direction of ``v``; the zero vector if ``v`` is degenerate."""
    return v.normalize(tolerances=tolerances)
