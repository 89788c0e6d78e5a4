"""
rbf_wolfe: RBF scattered-data interpolation and strong Wolfe line search.

A JAX-based implementation of two numerical building blocks:
- Radial basis function interpolation with pluggable kernels
- A line search satisfying the strong Wolfe conditions

Usage
-----
>>> import rbf_wolfe
>>> import jax.numpy as jnp
>>>
>>> # Interpolate scattered data
>>> interp = rbf_wolfe.RbfInterpolator(rbf_wolfe.gaussian_kernel(theta=2.0))
>>> interp.set_data(points, values)
>>> interp.calc_weights(use_regularization=True, lam=1e-6)
>>> value = interp.calc_value(jnp.array([0.5, 0.5]))
>>>
>>> # Step length for a quasi-Newton iteration
>>> f = lambda x: jnp.sum(x**2)
>>> alpha = rbf_wolfe.run_strong_wolfe_line_search(f, None, x, -x, 1.0, 4.0)
"""

import jax

# Enable float64 for numerical stability (Gram solves, condition numbers)
jax.config.update("jax_enable_x64", True)

from .core import evaluate, evaluate_single, fit, gradient
from .errors import LineSearchDivergence, PreconditionError, RbfWolfeError, SingularMatrixError
from .interpolator import RbfInterpolator
from .kernels import (
    Kernel,
    KernelType,
    gaussian_kernel,
    inverse_quadratic_kernel,
    linear_kernel,
    make_kernel,
    thin_plate_spline_kernel,
)
from .line_search import run_strong_wolfe_line_search, strong_wolfe_line_search
from .types import FitConfig, InterpolatorState, LineSearchConfig, LineSearchResult

try:
    from importlib.metadata import version

    __version__ = version("rbf_wolfe")
except Exception:
    __version__ = "unknown"

__all__ = [
    # Interpolation
    "RbfInterpolator",
    "fit",
    "evaluate",
    "evaluate_single",
    "gradient",
    # Kernels
    "Kernel",
    "KernelType",
    "make_kernel",
    "gaussian_kernel",
    "thin_plate_spline_kernel",
    "linear_kernel",
    "inverse_quadratic_kernel",
    # Line search
    "strong_wolfe_line_search",
    "run_strong_wolfe_line_search",
    # Types
    "FitConfig",
    "InterpolatorState",
    "LineSearchConfig",
    "LineSearchResult",
    # Errors
    "RbfWolfeError",
    "PreconditionError",
    "SingularMatrixError",
    "LineSearchDivergence",
]
