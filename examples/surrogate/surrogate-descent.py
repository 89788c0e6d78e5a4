"""
Surrogate-Model Descent

Fits an RBF surrogate to scattered samples of the Branin function, then takes
steepest-descent steps on the surrogate with step lengths from the strong
Wolfe line search. The surrogate gradient comes from JAX autodiff.

Key concepts demonstrated:
    1. Thin-plate spline interpolation with a linear polynomial tail
    2. Falling back to ridge regularization on a singular Gram matrix
    3. Strong Wolfe line search on an autodiff gradient
"""

import time

import jax.numpy as jnp
import numpy as np

import rbf_wolfe
from rbf_wolfe import LineSearchConfig, RbfInterpolator, SingularMatrixError


# =============================================================================
# Test Function
# =============================================================================


def branin(x):
    """Branin function on [-5, 10] x [0, 15], three global minima of 0.397887."""
    a, b, c = 1.0, 5.1 / (4.0 * np.pi**2), 5.0 / np.pi
    r, s, t = 6.0, 10.0, 1.0 / (8.0 * np.pi)
    return a * (x[1] - b * x[0] ** 2 + c * x[0] - r) ** 2 + s * (1.0 - t) * jnp.cos(x[0]) + s


def sample_points(n_points, seed=0):
    rng = np.random.default_rng(seed)
    lower = np.array([-5.0, 0.0])
    upper = np.array([10.0, 15.0])
    return (lower[:, None] + (upper - lower)[:, None] * rng.random((2, n_points)))


# =============================================================================
# Main
# =============================================================================


if __name__ == "__main__":
    n_points = 60
    n_steps = 15

    points = sample_points(n_points)
    values = np.array([float(branin(points[:, i])) for i in range(n_points)])

    print("fitting the surrogate... ", end="")
    start = time.time()
    interp = RbfInterpolator(rbf_wolfe.thin_plate_spline_kernel(), poly_degree=1)
    interp.set_data(points, values)
    try:
        interp.calc_weights()
    except SingularMatrixError:
        interp.calc_weights(use_regularization=True, lam=1e-6)
    print("took {:3.3f} sec (cond={:.3e})".format(time.time() - start, interp.state.condition_number))

    # Surrogate accuracy on a held-out set
    test_points = sample_points(200, seed=1)
    pred = interp.calc_values(test_points)
    truth = jnp.array([branin(test_points[:, i]) for i in range(200)])
    rel_err = jnp.linalg.norm(pred - truth) / jnp.linalg.norm(truth)
    print("relative surrogate error on held-out points: {:.3e}".format(float(rel_err)))

    # Steepest descent on the surrogate
    config = LineSearchConfig(c1=1e-4, c2=0.5)
    x = jnp.array([2.0, 10.0])
    for k in range(n_steps):
        g = interp.calc_gradient(x)
        if jnp.linalg.norm(g) < 1e-6:
            break
        result = rbf_wolfe.strong_wolfe_line_search(
            interp.calc_value, interp.calc_gradient, x, -g, 1e-2, 1.0, config
        )
        if not result.success:
            print("step {}: {}".format(k, result.message))
            break
        x = x - result.alpha * g
        print(
            "step {:2d}: alpha={:.3e} surrogate={:.5f} branin={:.5f}".format(
                k, result.alpha, result.phi, float(branin(x))
            )
        )

    print("final point: ({:.4f}, {:.4f})".format(float(x[0]), float(x[1])))
