"""
Line search satisfying the strong Wolfe conditions.

Bracketing phase followed by a bisection zoom (Nocedal & Wright,
Algorithms 3.5 and 3.6). Intended as the step-length primitive inside
gradient-based optimizers such as quasi-Newton methods.
"""

import logging
from typing import Callable

import jax
import jax.numpy as jnp
from jax import Array

from .errors import PreconditionError
from .types import LineSearchConfig, LineSearchResult

logger = logging.getLogger(__name__)


def _validate_config(config: LineSearchConfig) -> None:
    if not 0.0 < config.c1 < config.c2 < 1.0:
        raise PreconditionError(f"Require 0 < c1 < c2 < 1, got c1={config.c1}, c2={config.c2}")
    if config.max_zoom_iters < 1 or config.max_bracket_iters < 1:
        raise PreconditionError(
            f"Iteration limits must be positive, got max_zoom_iters={config.max_zoom_iters}, "
            f"max_bracket_iters={config.max_bracket_iters}"
        )


def strong_wolfe_line_search(
    f: Callable[[Array], Array],
    grad_f: Callable[[Array], Array] | None,
    x,
    p,
    alpha_init: float,
    alpha_max: float,
    config: LineSearchConfig = LineSearchConfig(),
) -> LineSearchResult:
    """
    Find a step length satisfying the strong Wolfe conditions.

    With phi(alpha) = f(x + alpha * p), the returned alpha satisfies
        phi(alpha) <= phi(0) + c1 * alpha * phi'(0)
        |phi'(alpha)| <= -c2 * phi'(0)

    Parameters
    ----------
    f : callable
        Objective, maps shape (n,) to a scalar.
    grad_f : callable | None
        Gradient of f, maps shape (n,) to shape (n,).
        If None, derived with jax.grad (f must then be JAX-traceable).
    x : array_like
        Current point, shape (n,).
    p : array_like
        Descent direction, shape (n,). Must satisfy grad_f(x) @ p < 0.
    alpha_init : float
        First trial step, 0 < alpha_init <= alpha_max.
    alpha_max : float
        Upper bound the bracketing phase extrapolates toward.
    config : LineSearchConfig
        Wolfe constants and iteration limits.

    Returns
    -------
    LineSearchResult
        success=False when an iteration limit was exhausted; stage tells
        which phase gave up. Use result.unwrap() to raise instead.

    Raises
    ------
    PreconditionError
        On invalid constants or steps, mismatched shapes, or when p is not
        a descent direction.
    """
    _validate_config(config)
    if not 0.0 < alpha_init <= alpha_max:
        raise PreconditionError(f"Require 0 < alpha_init <= alpha_max, got {alpha_init}, {alpha_max}")

    x = jnp.asarray(x, dtype=float)
    p = jnp.asarray(p, dtype=float)
    if x.shape != p.shape:
        raise PreconditionError(f"Mismatch: x has shape {x.shape}, direction has shape {p.shape}")

    if grad_f is None:
        grad_f = jax.grad(f)

    c1 = config.c1
    c2 = config.c2

    def phi(alpha: float) -> float:
        return float(f(x + alpha * p))

    def phi_grad(alpha: float) -> float:
        return float(jnp.dot(jnp.asarray(grad_f(x + alpha * p)), p))

    phi_zero = phi(0.0)
    phi_grad_zero = phi_grad(0.0)

    if not phi_grad_zero < 0.0:
        raise PreconditionError(f"Direction is not a descent direction: phi'(0) = {phi_grad_zero:.3e}")

    def sufficient_decrease(alpha: float, phi_alpha: float) -> bool:
        return phi_alpha <= phi_zero + c1 * alpha * phi_grad_zero

    def curvature(phi_grad_alpha: float) -> bool:
        return abs(phi_grad_alpha) <= -c2 * phi_grad_zero

    def zoom(alpha_lo: float, phi_lo: float, alpha_hi: float, n_bracket: int) -> LineSearchResult:
        for j in range(config.max_zoom_iters):
            alpha_j = 0.5 * (alpha_lo + alpha_hi)
            phi_j = phi(alpha_j)
            logger.debug("zoom %d: bracket=[%.6e, %.6e] alpha=%.6e phi=%.6e", j, alpha_lo, alpha_hi, alpha_j, phi_j)

            if not sufficient_decrease(alpha_j, phi_j) or phi_j >= phi_lo:
                alpha_hi = alpha_j
                continue

            phi_grad_j = phi_grad(alpha_j)
            if curvature(phi_grad_j):
                return LineSearchResult(
                    alpha=alpha_j,
                    success=True,
                    phi=phi_j,
                    dphi=phi_grad_j,
                    n_bracket_iters=n_bracket,
                    n_zoom_iters=j + 1,
                    stage="zoom",
                    message="Strong Wolfe conditions satisfied",
                )

            if phi_grad_j * (alpha_hi - alpha_lo) >= 0.0:
                alpha_hi = alpha_lo
            alpha_lo = alpha_j
            phi_lo = phi_j

        logger.debug("Line search failed: zoom reached %d iterations", config.max_zoom_iters)
        return LineSearchResult(
            alpha=None,
            success=False,
            phi=None,
            dphi=None,
            n_bracket_iters=n_bracket,
            n_zoom_iters=config.max_zoom_iters,
            stage="zoom",
            message=f"zoom did not converge within {config.max_zoom_iters} iterations",
        )

    alpha_prev = 0.0
    phi_prev = phi_zero
    alpha = float(alpha_init)

    for i in range(config.max_bracket_iters):
        phi_alpha = phi(alpha)
        logger.debug("bracket %d: alpha=%.6e phi=%.6e", i, alpha, phi_alpha)

        if not sufficient_decrease(alpha, phi_alpha) or (i > 0 and phi_alpha >= phi_prev):
            return zoom(alpha_prev, phi_prev, alpha, i + 1)

        phi_grad_alpha = phi_grad(alpha)

        if curvature(phi_grad_alpha):
            return LineSearchResult(
                alpha=alpha,
                success=True,
                phi=phi_alpha,
                dphi=phi_grad_alpha,
                n_bracket_iters=i + 1,
                n_zoom_iters=0,
                stage="bracket",
                message="Strong Wolfe conditions satisfied",
            )

        if phi_grad_alpha >= 0.0:
            return zoom(alpha, phi_alpha, alpha_prev, i + 1)

        alpha_prev = alpha
        phi_prev = phi_alpha

        # Bisect toward alpha_max
        alpha = 0.5 * (alpha + alpha_max)

    logger.debug("Line search failed: bracketing reached %d iterations", config.max_bracket_iters)
    return LineSearchResult(
        alpha=None,
        success=False,
        phi=None,
        dphi=None,
        n_bracket_iters=config.max_bracket_iters,
        n_zoom_iters=0,
        stage="bracket",
        message=f"no bracket found within {config.max_bracket_iters} iterations",
    )


def run_strong_wolfe_line_search(
    f: Callable[[Array], Array],
    grad_f: Callable[[Array], Array] | None,
    x,
    p,
    alpha_init: float,
    alpha_max: float,
    c1: float = 1e-4,
    c2: float = 0.9,
) -> float:
    """
    Step length satisfying the strong Wolfe conditions.

    Convenience wrapper around strong_wolfe_line_search() returning a float.

    Raises
    ------
    LineSearchDivergence
        If no acceptable step was found. The exception carries the
        LineSearchResult.
    """
    config = LineSearchConfig(c1=c1, c2=c2)
    return strong_wolfe_line_search(f, grad_f, x, p, alpha_init, alpha_max, config).unwrap()
