"""Configuration dataclass for numerical tolerances."""

from dataclasses import dataclass

import jax

from .primitives import EPS


@jax.tree_util.register_dataclass
@dataclass(frozen=True)
class ToleranceConfig:
    """Thresholds used by operations with a degenerate or near-singular case."""

    degenerate_length: float = EPS
    """Vectors at or below this length normalize to the zero vector."""

    singular_determinant: float = 1e-12
    """
    Matrices with |det| at or below this value are treated as singular.

    The test is absolute. Scaling an NxN matrix by ``s`` scales its
    determinant by ``s**N``, so a uniformly scaled identity ``s * I`` is
    refused once ``s**N <= singular_determinant`` even though it is perfectly
    conditioned (a Mat4 at ``s = 1e-4`` has ``det = 1e-16``). Callers working
    at such scales pass a config with a smaller threshold, e.g.
    ``ToleranceConfig(singular_determinant=0.0)`` to reject only exact zeros.
    """

    approx_atol: float = 1e-5
    """Default absolute tolerance for approximate equality checks."""


DEFAULT_TOLERANCES = ToleranceConfig()
