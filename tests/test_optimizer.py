"""
Tests for the CMA-ES Generation Loop
"""

import numpy as np
import pytest
from cmaes_optimizer import CMAES, Bounds, CMAESConfig, Candidate
from cmaes_optimizer.problems import PROBLEMS, ellipsoid, get_problem, rastrigin, rosenbrock, sphere


class TestOptimize:
    """Test end-to-end optimization."""

    def test_sphere(self):
        """Converges on the 5-D sphere."""
        bounds = Bounds.uniform(5, -5.0, 5.0)
        opt = CMAES(sphere, bounds, CMAESConfig(mean="random", sigma=1.0, seed=1))
        result = opt.optimize(400)
        assert result.f_best < 1e-6
        assert np.linalg.norm(result.x_best) < 1e-3
        assert result.final_sigma > 0.0
        assert bounds.contains(result.x_best)

    def test_target_stop(self):
        bounds = Bounds.uniform(3, -5.0, 5.0)
        opt = CMAES(sphere, bounds, CMAESConfig(mean="center", seed=2))
        result = opt.optimize(1000, target=1e-4)
        assert result.converged
        assert result.reason == "target"
        assert result.f_best <= 1e-4
        assert result.generations < 1000
        assert result.evaluations % opt.species.lambda_ == 0

    def test_generation_limit(self):
        bounds = Bounds.uniform(3, -5.0, 5.0)
        opt = CMAES(sphere, bounds, CMAESConfig(mean="random", seed=3))
        result = opt.optimize(5)
        assert not result.converged
        assert result.reason == "max_generations"
        assert result.generations == 5
        assert result.evaluations == 5 * opt.species.lambda_

    def test_trajectory_monotone(self):
        bounds = Bounds.uniform(4, -5.0, 5.0)
        opt = CMAES(rosenbrock, bounds, CMAESConfig(mean="zero", sigma=0.5, seed=4))
        result = opt.optimize(100)
        values = [f for _, f in result.trajectory]
        assert values == sorted(values, reverse=True)
        assert result.trajectory[-1][1] == result.f_best

    def test_initial_population_reconciled(self):
        bounds = Bounds.uniform(2, -5.0, 5.0)
        opt = CMAES(sphere, bounds, CMAESConfig(mean="zero", seed=5))
        host = [Candidate(np.full(2, 1.0)) for _ in range(20)]
        result = opt.optimize(1, initial_population=host)
        assert result.evaluations == opt.species.lambda_

    def test_setup_errors_before_evaluation(self):
        """Fatal configuration errors are raised before any evaluation."""
        calls = []

        def objective(x):
            calls.append(x)
            return 0.0

        with pytest.raises(ValueError):
            CMAES(objective, Bounds.uniform(2, 0, 1), CMAESConfig(mean="zero", lambda_=3, mu=4))
        assert calls == []

    def test_alternative_generator_large_sigma(self):
        """Large sigma relative to the bounds still makes progress."""
        bounds = Bounds.uniform(10, 0.0, 1.0)
        config = CMAESConfig(mean="center", sigma=100.0, alternative_generator=True,
                             alternative_generator_tries=5, seed=7)
        opt = CMAES(lambda x: sphere(x - 0.5), bounds, config)
        result = opt.optimize(20)
        assert result.generations == 20
        assert bounds.contains(result.x_best)


class TestProblems:
    """Test benchmark objectives."""

    def test_optima(self):
        assert sphere(np.zeros(4)) == 0.0
        assert ellipsoid(np.zeros(4)) == 0.0
        assert rastrigin(np.zeros(4)) == pytest.approx(0.0)
        assert rosenbrock(np.ones(4)) == 0.0

    def test_values(self):
        assert sphere(np.array([1.0, 2.0])) == 5.0
        assert ellipsoid(np.array([1.0, 1.0])) == pytest.approx(1.0 + 1e6)
        assert rosenbrock(np.array([0.0, 0.0])) == 1.0

    def test_registry(self):
        assert set(PROBLEMS) == {"sphere", "ellipsoid", "rastrigin", "rosenbrock"}
        objective, (lo, hi) = get_problem("sphere")
        assert objective is sphere
        assert lo < hi
        with pytest.raises(ValueError):
            get_problem("ackley")
