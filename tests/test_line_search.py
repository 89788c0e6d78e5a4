"""Tests for the strong Wolfe line search."""

import jax
import jax.numpy as jnp
import pytest

from rbf_wolfe.errors import LineSearchDivergence, PreconditionError
from rbf_wolfe.line_search import run_strong_wolfe_line_search, strong_wolfe_line_search
from rbf_wolfe.types import LineSearchConfig, LineSearchResult


def assert_strong_wolfe(f, grad_f, x, p, alpha, c1=1e-4, c2=0.9):
    """Check sufficient decrease and curvature at alpha."""
    phi_0 = float(f(x))
    dphi_0 = float(jnp.dot(grad_f(x), p))
    phi_a = float(f(x + alpha * p))
    dphi_a = float(jnp.dot(grad_f(x + alpha * p), p))

    assert phi_a <= phi_0 + c1 * alpha * dphi_0, "Sufficient decrease violated"
    assert abs(dphi_a) <= -c2 * dphi_0, "Curvature condition violated"


class TestQuadratic:
    """Convex quadratic f(x) = x.T A x."""

    @pytest.fixture
    def quadratic(self):
        A = jnp.array([[3.0, 0.5], [0.5, 1.0]])

        def f(x):
            return x @ A @ x

        def grad_f(x):
            return 2.0 * A @ x

        return f, grad_f

    @pytest.mark.parametrize("c2", [0.9, 0.5, 0.1])
    @pytest.mark.parametrize("alpha_init", [1e-3, 0.1, 1.0])
    def test_conditions_hold(self, quadratic, c2, alpha_init):
        f, grad_f = quadratic
        x = jnp.array([1.0, -2.0])
        p = -grad_f(x)

        config = LineSearchConfig(c2=c2)
        result = strong_wolfe_line_search(f, grad_f, x, p, alpha_init, 10.0, config)

        assert result.success, result.message
        assert_strong_wolfe(f, grad_f, x, p, result.alpha, c2=c2)
        assert result.phi == pytest.approx(float(f(x + result.alpha * p)))

    def test_zoom_from_overshoot(self, quadratic):
        """alpha_init = 1 overshoots (phi(1) > phi(0)); zoom returns the midpoint 0.5."""
        f, grad_f = quadratic
        x = jnp.array([1.0, -2.0])
        p = -grad_f(x)

        result = strong_wolfe_line_search(f, grad_f, x, p, 1.0, 10.0)

        assert result.stage == "zoom"
        assert result.alpha == pytest.approx(0.5)
        assert result.n_bracket_iters == 1
        assert result.n_zoom_iters == 1

    def test_objective_decreases(self, quadratic):
        """Repeated steepest-descent steps never increase the objective."""
        f, grad_f = quadratic
        x = jnp.array([1.0, -2.0])
        value = initial = float(f(x))

        for _ in range(10):
            p = -grad_f(x)
            alpha = run_strong_wolfe_line_search(f, grad_f, x, p, 1.0, 10.0)
            x = x + alpha * p
            new_value = float(f(x))
            assert new_value < value
            value = new_value

        assert value < 0.5 * initial


class TestShiftedParabola:
    """phi(alpha) = (alpha - 3)² from x = 0 along p = 1."""

    @staticmethod
    def f(x):
        return jnp.sum((x - 3.0) ** 2)

    @staticmethod
    def grad_f(x):
        return 2.0 * (x - 3.0)

    def test_first_step_accepted(self):
        """With c2=0.9, |phi'(1)| = 4 <= 5.4 so alpha_init is accepted."""
        result = strong_wolfe_line_search(self.f, self.grad_f, jnp.array([0.0]), jnp.array([1.0]), 1.0, 10.0)

        assert result.success
        assert result.alpha == 1.0
        assert result.stage == "bracket"
        assert result.n_zoom_iters == 0

    def test_bracket_then_zoom(self):
        """
        c2=0.1: alpha=1 fails curvature, alpha=5.5 has phi >= phi(1),
        zoom(1, 5.5) accepts the midpoint 3.25 (phi'=0.5 <= 0.6).
        """
        config = LineSearchConfig(c2=0.1)
        result = strong_wolfe_line_search(
            self.f, self.grad_f, jnp.array([0.0]), jnp.array([1.0]), 1.0, 10.0, config
        )

        assert result.success
        assert result.alpha == pytest.approx(3.25)
        assert result.n_bracket_iters == 2
        assert result.n_zoom_iters == 1
        assert result.dphi == pytest.approx(0.5)

    def test_autodiff_gradient(self):
        """grad_f=None derives the gradient with jax.grad."""
        config = LineSearchConfig(c2=0.1)
        result = strong_wolfe_line_search(self.f, None, jnp.array([0.0]), jnp.array([1.0]), 1.0, 10.0, config)
        assert result.alpha == pytest.approx(3.25)

    def test_run_wrapper(self):
        alpha = run_strong_wolfe_line_search(
            self.f, self.grad_f, jnp.array([0.0]), jnp.array([1.0]), 1.0, 10.0, c2=0.1
        )
        assert isinstance(alpha, float)
        assert alpha == pytest.approx(3.25)


class TestRosenbrock:
    """Non-convex smooth objective."""

    def test_conditions_hold(self):
        def f(x):
            return (1.0 - x[0]) ** 2 + 100.0 * (x[1] - x[0] ** 2) ** 2

        grad_f = jax.grad(f)
        x = jnp.array([-1.2, 1.0])
        p = -grad_f(x)

        result = strong_wolfe_line_search(f, grad_f, x, p, 1.0, 2.0)

        assert result.success, result.message
        assert result.alpha > 0.0
        assert float(f(x + result.alpha * p)) < float(f(x))
        assert_strong_wolfe(f, grad_f, x, p, result.alpha)


class TestFailure:
    """Divergence is reported, not looped on."""

    def test_bracket_exhausted(self):
        """Unbounded linear objective never brackets a minimizer."""

        def f(x):
            return -jnp.sum(x)

        config = LineSearchConfig(max_bracket_iters=10)
        result = strong_wolfe_line_search(f, None, jnp.array([0.0]), jnp.array([1.0]), 1.0, 2.0, config)

        assert not result.success
        assert result.alpha is None
        assert result.stage == "bracket"
        assert result.n_bracket_iters == 10

    def test_zoom_exhausted(self):
        """|phi'| = 1 everywhere on a kinked objective, so curvature never holds."""

        def f(x):
            return jnp.sum(-x + 2.0 * jnp.maximum(0.0, x - 1.0))

        def grad_f(x):
            return jnp.where(x > 1.0, 1.0, -1.0)

        result = strong_wolfe_line_search(f, grad_f, jnp.array([0.0]), jnp.array([1.0]), 0.5, 4.0)

        assert not result.success
        assert result.stage == "zoom"
        assert result.n_zoom_iters == 50

        with pytest.raises(LineSearchDivergence) as excinfo:
            result.unwrap()
        assert excinfo.value.result is result

    def test_run_wrapper_raises(self):
        def f(x):
            return jnp.sum(-x + 2.0 * jnp.maximum(0.0, x - 1.0))

        def grad_f(x):
            return jnp.where(x > 1.0, 1.0, -1.0)

        with pytest.raises(LineSearchDivergence, match="Failed to perform the line search"):
            run_strong_wolfe_line_search(f, grad_f, jnp.array([0.0]), jnp.array([1.0]), 0.5, 4.0)


class TestPreconditions:
    """Invalid inputs fail fast."""

    @staticmethod
    def f(x):
        return jnp.sum(x**2)

    def test_ascent_direction(self):
        x = jnp.array([1.0, 1.0])
        with pytest.raises(PreconditionError, match="not a descent direction"):
            strong_wolfe_line_search(self.f, None, x, x, 1.0, 2.0)

    def test_zero_direction(self):
        x = jnp.array([1.0, 1.0])
        with pytest.raises(PreconditionError, match="not a descent direction"):
            strong_wolfe_line_search(self.f, None, x, jnp.zeros(2), 1.0, 2.0)

    @pytest.mark.parametrize("c1,c2", [(0.5, 0.1), (0.0, 0.9), (1e-4, 1.0), (0.5, 0.5)])
    def test_invalid_constants(self, c1, c2):
        x = jnp.array([1.0, 1.0])
        with pytest.raises(PreconditionError, match="0 < c1 < c2 < 1"):
            run_strong_wolfe_line_search(self.f, None, x, -x, 1.0, 2.0, c1=c1, c2=c2)

    @pytest.mark.parametrize("alpha_init,alpha_max", [(0.0, 1.0), (-1.0, 1.0), (2.0, 1.0)])
    def test_invalid_steps(self, alpha_init, alpha_max):
        x = jnp.array([1.0, 1.0])
        with pytest.raises(PreconditionError, match="alpha_init"):
            strong_wolfe_line_search(self.f, None, x, -x, alpha_init, alpha_max)

    def test_shape_mismatch(self):
        with pytest.raises(PreconditionError, match="Mismatch"):
            strong_wolfe_line_search(self.f, None, jnp.ones(2), -jnp.ones(3), 1.0, 2.0)


class TestLineSearchResult:
    """Test result type."""

    def test_unwrap_success(self):
        result = LineSearchResult(
            alpha=0.5,
            success=True,
            phi=1.0,
            dphi=-0.1,
            n_bracket_iters=1,
            n_zoom_iters=0,
            stage="bracket",
            message="ok",
        )
        assert result.unwrap() == 0.5
