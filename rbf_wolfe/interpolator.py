"""
Stateful RBF interpolator built on the functional core.

Usage
-----
>>> interp = RbfInterpolator(gaussian_kernel(theta=2.0))
>>> interp.set_data(points, values)
>>> interp.calc_weights()
>>> interp.calc_value(x)

Not internally synchronized: concurrent calc_value() calls are safe once
weights exist, but set_data() and calc_weights() need external locking.
"""

from jax import Array

from . import core
from .errors import PreconditionError
from .kernels import Kernel, thin_plate_spline_kernel
from .types import FitConfig, InterpolatorState


class RbfInterpolator:
    """Scattered-data interpolator with a pluggable radial kernel."""

    def __init__(self, kernel: Kernel = thin_plate_spline_kernel(), poly_degree: int = 0):
        self.kernel = kernel
        self.poly_degree = poly_degree
        self._points: Array | None = None
        self._values: Array | None = None
        self._state: InterpolatorState | None = None

    def set_data(self, points, values) -> None:
        """
        Set data points and their values.

        Parameters
        ----------
        points : array_like
            Data points, shape (n_points,) or (n_dims, n_points).
            Each column is one point.
        values : array_like
            Target values, shape (n_points,).

        Notes
        -----
        The data is copied. Previously computed weights are discarded.
        """
        self._points, self._values = core.validate_data(points, values)
        self._state = None

    def calc_weights(
        self,
        use_regularization: bool = False,
        lam: float = 0.001,
        max_condition: float | None = None,
    ) -> None:
        """
        Calculate the interpolation weights.

        Must be called after set_data(). Raises SingularMatrixError if the
        Gram matrix cannot be solved; retrying with use_regularization=True
        usually helps.
        """
        if self._points is None:
            raise PreconditionError("set_data() must be called before calc_weights()")

        config = FitConfig(
            use_regularization=use_regularization,
            lam=lam,
            poly_degree=self.poly_degree,
            max_condition=max_condition,
        )
        self._state = core.fit(self._points, self._values, self.kernel, config)

    @property
    def state(self) -> InterpolatorState:
        """Fitted state; requires calc_weights()."""
        if self._state is None:
            raise PreconditionError("calc_weights() must be called before evaluating the interpolant")
        return self._state

    @property
    def weights(self) -> Array:
        return self.state.weights

    def calc_value(self, x) -> float:
        """Calculate the interpolated value at a single point x."""
        return float(core.evaluate_single(self.state, x))

    def calc_values(self, xs) -> Array:
        """Calculate interpolated values at points xs, shape (n_dims, n_query)."""
        return core.evaluate(self.state, xs)

    def calc_gradient(self, x) -> Array:
        """Calculate the gradient of the interpolant at a single point x."""
        return core.gradient(self.state, x)
