"""Tests for the stick-breaking simplex transform."""

import numpy as np
import pytest

import pytensor
import pytensor.tensor as tt

from sigfit import InvalidInput
from sigfit.simplex import (simplex_constrain, simplex_unconstrain,
                            stick_breaking_constrain,
                            stick_breaking_log_constrain)
from sigfit.utils import check_simplex


def test_zero_maps_to_uniform_point():
    np.testing.assert_allclose(simplex_constrain(np.zeros(3)),
                               np.full(4, 0.25), rtol=1e-12)


def test_single_coordinate_is_logistic():
    x = simplex_constrain([0.3])
    expected = 1.0 / (1.0 + np.exp(-0.3))
    np.testing.assert_allclose(x, [expected, 1.0 - expected],
                               rtol=1e-12)


def test_empty_vector_maps_to_one():
    """With one signature there are no degrees of freedom."""
    x, log_jacobian = simplex_constrain([], jacobian=True)
    np.testing.assert_array_equal(x, [1.0])
    assert log_jacobian == 0.0


@pytest.mark.parametrize("seed", range(5))
def test_constrained_points_are_simplices(seed):
    rng = np.random.default_rng(seed)
    for size in (1, 2, 5, 20):
        y = rng.normal(scale=5.0, size=size)
        x = simplex_constrain(y)
        assert x.shape == (size + 1,)
        assert np.all(x >= 0)
        assert x.sum() == pytest.approx(1.0, abs=1e-12)


@pytest.mark.parametrize("x", [
    [0.5, 0.5],
    [0.1, 0.2, 0.3, 0.4],
    [0.7, 0.05, 0.25],
    [0.01, 0.01, 0.01, 0.01, 0.96],
])
def test_round_trip(x):
    y = simplex_unconstrain(x)
    assert y.shape == (len(x) - 1,)
    np.testing.assert_allclose(simplex_constrain(y), x, rtol=1e-10)


def test_round_trip_from_unconstrained():
    rng = np.random.default_rng(1)
    y = rng.uniform(-3, 3, size=6)
    np.testing.assert_allclose(simplex_unconstrain(simplex_constrain(y)),
                               y, rtol=1e-9, atol=1e-12)


def test_log_jacobian_matches_finite_differences():
    """Log determinant of dx[:K-1]/dy computed numerically."""
    y = np.array([0.4, -1.2, 0.7])
    _, log_jacobian = simplex_constrain(y, jacobian=True)

    h = 1e-6
    n = y.size
    jac = np.empty((n, n))
    for j in range(n):
        step = np.zeros(n)
        step[j] = h
        diff = simplex_constrain(y + step) - simplex_constrain(y - step)
        jac[:, j] = diff[:n] / (2 * h)
    _, expected = np.linalg.slogdet(jac)

    assert log_jacobian == pytest.approx(expected, abs=1e-6)


def test_saturation_keeps_jacobian_finite():
    """Extreme coordinates saturate without producing nan or inf."""
    x, log_jacobian = simplex_constrain([1000.0, -1000.0, 0.0],
                                        jacobian=True)
    assert np.all(np.isfinite(x))
    assert np.all(x >= 0)
    assert x.sum() == pytest.approx(1.0, abs=1e-12)
    assert x[0] == pytest.approx(1.0)
    assert np.isfinite(log_jacobian)


def test_symbolic_transform_is_differentiable():
    y = tt.dvector("y")
    x, log_jacobian = stick_breaking_constrain(y)
    grad = pytensor.function([y], pytensor.grad(log_jacobian, y))
    g = grad(np.array([0.2, -0.5]))
    assert g.shape == (2,)
    assert np.all(np.isfinite(g))


def test_log_transform_stays_finite_when_entries_underflow():
    y = tt.dvector("y")
    log_x, log_jacobian = stick_breaking_log_constrain(y)
    fn = pytensor.function([y], [log_x, log_jacobian])

    log_x_mid, _ = fn(np.array([0.3, -1.2]))
    np.testing.assert_allclose(np.exp(log_x_mid),
                               simplex_constrain([0.3, -1.2]), rtol=1e-12)

    log_x_far, log_jacobian_far = fn(np.array([1000.0]))
    assert np.all(np.isfinite(log_x_far))
    assert log_x_far[1] < -900
    assert np.isfinite(log_jacobian_far)


@pytest.mark.parametrize("x, match", [
    ([0.5, 0.6], "sum"),
    ([1.2, -0.2], "negative"),
    ([0.5, np.nan, 0.5], "finite"),
    ([[0.5, 0.5]], "vector"),
    ([], "vector"),
    ([1.0, 0.0], "boundary"),
])
def test_unconstrain_rejects_invalid_points(x, match):
    with pytest.raises(InvalidInput, match=match):
        simplex_unconstrain(x)


def test_unconstrain_checks_size():
    with pytest.raises(InvalidInput, match="3 entries"):
        simplex_unconstrain([0.5, 0.5], size=3)


def test_unconstrain_tolerance():
    """Sums within the tolerance are accepted."""
    y = simplex_unconstrain([0.5, 0.5 + 1e-10])
    assert y.shape == (1,)
    with pytest.raises(InvalidInput):
        simplex_unconstrain([0.5, 0.5 + 1e-10], tol=1e-12)


def test_check_simplex():
    assert check_simplex([1.0])
    assert check_simplex([0.0, 1.0])
    assert not check_simplex([])
    assert not check_simplex([0.5, 0.4])
    assert not check_simplex([np.nan, 1.0])
