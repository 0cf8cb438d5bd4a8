"""
Tests for Population Reconciliation
"""

import numpy as np
import pytest
from cmaes_optimizer import Bounds, CMAESConfig, CMAESSpecies
from cmaes_optimizer.population import Candidate, reconcile_population


def counter_factory():
    made = []

    def new_candidate():
        cand = Candidate(np.full(2, float(len(made))))
        made.append(cand)
        return cand

    return new_candidate, made


class TestReconcile:
    """Test resizing to lambda."""

    def test_truncate(self):
        """Larger populations keep their first lambda members."""
        population = [Candidate(np.full(2, float(i))) for i in range(10)]
        new_candidate, made = counter_factory()
        result = reconcile_population(population, 4, new_candidate)
        assert len(result) == 4
        assert all(a is b for a, b in zip(result, population[:4]))
        assert made == []

    def test_pad(self):
        """Smaller populations are padded with fresh samples."""
        population = [Candidate(np.zeros(2), fitness=1.0)]
        new_candidate, made = counter_factory()
        result = reconcile_population(population, 5, new_candidate)
        assert len(result) == 5
        assert result[0] is population[0]
        assert len(made) == 4
        assert all(a is b for a, b in zip(result[1:], made))

    def test_exact(self):
        population = [Candidate(np.zeros(2)) for _ in range(3)]
        new_candidate, made = counter_factory()
        result = reconcile_population(population, 3, new_candidate)
        assert len(result) == 3
        assert all(a is b for a, b in zip(result, population))
        assert result is not population
        assert made == []

    def test_empty(self):
        new_candidate, made = counter_factory()
        assert len(reconcile_population([], 6, new_candidate)) == 6

    def test_invalid_lambda(self):
        with pytest.raises(ValueError):
            reconcile_population([], 0, lambda: Candidate(np.zeros(1)))


class TestSpeciesReconcile:
    """Test reconciliation through the species."""

    def test_pads_with_in_bounds_samples(self):
        bounds = Bounds.uniform(3, -1.0, 1.0)
        species = CMAESSpecies(bounds, CMAESConfig(mean="zero", sigma=0.3, seed=0))
        population = species.reconcile([])
        assert len(population) == species.lambda_ == 7
        for cand in population:
            assert bounds.contains(cand.x)
            assert not cand.evaluated

    def test_truncates_host_population(self):
        bounds = Bounds.uniform(3, -1.0, 1.0)
        species = CMAESSpecies(bounds, CMAESConfig(mean="zero", lambda_=3, seed=0))
        host = [Candidate(np.zeros(3)) for _ in range(8)]
        assert len(species.reconcile(host)) == 3


class TestCandidate:
    def test_copy(self):
        cand = Candidate([1.0, 2.0], fitness=3.0)
        other = cand.copy()
        other.x[0] = 9.0
        assert cand.x[0] == 1.0
        assert other.fitness == 3.0
        assert cand.x.dtype == np.float64
