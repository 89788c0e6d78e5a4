"""
Data structures for rbf_wolfe.

All types are immutable NamedTuples.
"""

from typing import NamedTuple

from jax import Array

from .errors import LineSearchDivergence
from .kernels import Kernel


class FitConfig(NamedTuple):
    """Immutable interpolation weight configuration."""

    use_regularization: bool = False
    lam: float = 1e-3  # Ridge term added to the Gram diagonal
    poly_degree: int = 0  # Polynomial augmentation degree (0=none, 1=linear, 2=quadratic)
    max_condition: float | None = None  # Optional condition number limit (None = no limit)
    residual_tol: float = 1e-6  # Largest accepted relative residual of the solve


class InterpolatorState(NamedTuple):
    """
    Immutable fitted interpolator state.

    The kernel type is an enum rather than an array, so pass the state to
    jitted code by closing over it, e.g. jax.jit(lambda x: evaluate(state, x)).
    """

    points: Array  # Data points (n_dims, n_points)
    values: Array  # Target values (n_points,)
    weights: Array  # RBF weights (n_points,)
    kernel: Kernel  # Kernel used for the Gram matrix
    poly_coeffs: Array | None  # Polynomial coefficients (n_poly,) or None
    poly_degree: int  # Polynomial degree used (0=none)
    condition_number: float  # Condition number of the solved system


class LineSearchConfig(NamedTuple):
    """Immutable line search configuration."""

    c1: float = 1e-4  # Sufficient decrease constant
    c2: float = 0.9  # Curvature constant
    max_zoom_iters: int = 50
    max_bracket_iters: int = 100


class LineSearchResult(NamedTuple):
    """Outcome of a strong Wolfe line search."""

    alpha: float | None  # Accepted step length, None on failure
    success: bool
    phi: float | None  # f(x + alpha * p) at the accepted step
    dphi: float | None  # Directional derivative at the accepted step
    n_bracket_iters: int
    n_zoom_iters: int
    stage: str  # "bracket" or "zoom": where the search terminated
    message: str

    def unwrap(self) -> float:
        """Return the step length or raise LineSearchDivergence."""
        if not self.success:
            raise LineSearchDivergence(self)
        return self.alpha
