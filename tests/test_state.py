"""
Tests for Distribution State Initialization
"""

import logging
import numpy as np
import pytest
from cmaes_optimizer.bounds import Bounds
from cmaes_optimizer.state import (
    COVARIANCE_INITIALIZERS,
    MEAN_INITIALIZERS,
    DistributionState,
    initialize_state,
    resolve_mean,
)


@pytest.fixture
def rng():
    return np.random.default_rng(7)


class TestCovarianceSeed:
    """Test covariance initialization."""

    def test_identity(self, rng):
        bounds = Bounds.uniform(4, -3.0, 3.0)
        state = initialize_state(bounds, rng, mean="zero")
        np.testing.assert_array_equal(state.C, np.eye(4))

    def test_scaled_unit_bounds_is_identity(self, rng):
        """Scaled covariance with [0,1] bounds is exactly I."""
        bounds = Bounds.uniform(3, 0.0, 1.0)
        state = initialize_state(bounds, rng, mean="center", covariance="scaled")
        np.testing.assert_array_equal(state.C, np.eye(3))
        np.testing.assert_array_almost_equal(state.D, np.ones(3))

    def test_scaled_uses_squared_ranges(self, rng):
        """Diagonal entries are (max_i - min_i)^2."""
        bounds = Bounds(np.array([0.0, -1.0]), np.array([2.0, 3.0]))
        state = initialize_state(bounds, rng, mean="center", sigma=0.5, covariance="scaled")
        np.testing.assert_array_equal(state.C, np.diag([4.0, 16.0]))
        # sbd sbd^T = sigma^2 C
        np.testing.assert_array_almost_equal(state.sbd @ state.sbd.T, 0.25 * state.C)

    def test_scaled_requires_finite_bounds(self, rng):
        with pytest.raises(ValueError, match="finite"):
            initialize_state(Bounds.unbounded(2), rng, mean="zero", covariance="scaled")

    def test_unknown_covariance(self, rng):
        with pytest.raises(ValueError, match="Invalid covariance"):
            initialize_state(Bounds.uniform(2, 0, 1), rng, mean="zero", covariance="diagonal")

    def test_registries(self):
        assert set(COVARIANCE_INITIALIZERS) == {"identity", "scaled"}
        assert set(MEAN_INITIALIZERS) == {"zero", "center", "random"}


class TestMeanSeed:
    """Test mean initialization."""

    def test_zero(self, rng):
        mean = resolve_mean(Bounds.uniform(3, 1.0, 2.0), rng, "zero")
        np.testing.assert_array_equal(mean, np.zeros(3))

    def test_center(self, rng):
        bounds = Bounds(np.array([0.0, -4.0]), np.array([2.0, 0.0]))
        np.testing.assert_array_equal(resolve_mean(bounds, rng, "center"), [1.0, -2.0])

    def test_random_in_bounds(self, rng):
        bounds = Bounds(np.array([0.0, 10.0, -1.0]), np.array([1.0, 20.0, 1.0]))
        for _ in range(50):
            assert bounds.contains(resolve_mean(bounds, rng, "random"))

    def test_random_is_seeded(self):
        bounds = Bounds.uniform(4, -1.0, 1.0)
        a = resolve_mean(bounds, np.random.default_rng(1), "random")
        b = resolve_mean(bounds, np.random.default_rng(1), "random")
        np.testing.assert_array_equal(a, b)

    def test_explicit_vector(self, rng):
        mean = resolve_mean(Bounds.uniform(3, -5, 5), rng, values=[1.0, 2.0, 3.0])
        np.testing.assert_array_equal(mean, [1.0, 2.0, 3.0])

    def test_explicit_mapping(self, rng):
        mean = resolve_mean(Bounds.uniform(2, -5, 5), rng, values={1: -1.0, 0: 4.0})
        np.testing.assert_array_equal(mean, [4.0, -1.0])

    def test_mode_with_override_warns(self, rng, caplog):
        """Explicit entries override a mode, with a warning."""
        bounds = Bounds.uniform(3, 0.0, 2.0)
        with caplog.at_level(logging.WARNING):
            mean = resolve_mean(bounds, rng, "center", {2: 0.25})
        np.testing.assert_array_equal(mean, [1.0, 1.0, 0.25])
        assert any("overridden" in r.message for r in caplog.records)

    def test_incomplete_explicit_mean(self, rng):
        """Without a mode every entry must be given."""
        with pytest.raises(ValueError, match="missing"):
            resolve_mean(Bounds.uniform(3, 0, 1), rng, values={0: 0.5, 2: 0.5})

    def test_no_mean_at_all(self, rng):
        with pytest.raises(ValueError, match="No default mean"):
            resolve_mean(Bounds.uniform(3, 0, 1), rng)

    def test_unknown_mode(self, rng):
        with pytest.raises(ValueError, match="Unknown mean"):
            resolve_mean(Bounds.uniform(3, 0, 1), rng, "origin")

    def test_index_out_of_range(self, rng):
        with pytest.raises(ValueError):
            resolve_mean(Bounds.uniform(2, 0, 1), rng, "zero", {5: 1.0})

    def test_center_requires_finite_bounds(self, rng):
        with pytest.raises(ValueError):
            resolve_mean(Bounds.unbounded(2), rng, "center")


class TestInitialState:
    """Test the full initial state."""

    def test_paths_and_schedule(self, rng):
        state = initialize_state(Bounds.uniform(5, -1, 1), rng, sigma=0.3, mean="zero")
        np.testing.assert_array_equal(state.pc, np.zeros(5))
        np.testing.assert_array_equal(state.ps, np.zeros(5))
        assert state.last_eigen_gen == -1
        assert state.sigma == 0.3
        assert state.n == 5

    @pytest.mark.parametrize("sigma", [0.0, -1.0, float("nan")])
    def test_invalid_sigma(self, rng, sigma):
        with pytest.raises(ValueError, match="sigma"):
            initialize_state(Bounds.uniform(2, 0, 1), rng, sigma=sigma, mean="zero")

    def test_copy_is_independent(self, rng):
        state = initialize_state(Bounds.uniform(3, -1, 1), rng, mean="zero")
        snap = state.copy()
        state.mean[0] = 9.0
        state.C[0, 0] = 9.0
        state.ps[0] = 9.0
        state.sigma = 9.0
        assert snap.mean[0] == 0.0
        assert snap.C[0, 0] == 1.0
        assert snap.ps[0] == 0.0
        assert snap.sigma == 1.0

    def test_refresh_eigen(self):
        """A refresh symmetrizes C and rebuilds the cache."""
        state = DistributionState.from_covariance(np.zeros(2), 2.0, np.eye(2))
        state.C = np.array([[4.0, 0.0], [1e-3, 1.0]])
        state.refresh_eigen(generation=5)
        assert state.last_eigen_gen == 5
        np.testing.assert_array_equal(state.C, state.C.T)
        np.testing.assert_array_almost_equal(state.sbd @ state.sbd.T, 4.0 * state.C)
        np.testing.assert_array_almost_equal(state.invsqrtC @ state.C @ state.invsqrtC, np.eye(2))

    def test_refresh_failure(self):
        state = DistributionState.from_covariance(np.zeros(2), 1.0, np.eye(2))
        state.C = np.array([[1.0, 0.0], [0.0, -2.0]])
        with pytest.raises(np.linalg.LinAlgError):
            state.refresh_eigen(generation=0)

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            DistributionState.from_covariance(np.zeros(3), 1.0, np.eye(2))
