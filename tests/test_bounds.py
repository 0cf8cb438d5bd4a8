"""
Tests for Search Space Bounds
"""

import numpy as np
import pytest
from cmaes_optimizer.bounds import Bounds


class TestBounds:
    """Test the bounds surface used by the sampler and the initializers."""

    def test_uniform(self):
        bounds = Bounds.uniform(3, -2.0, 4.0)
        assert bounds.n_vars == 3
        np.testing.assert_array_equal(bounds.widths, np.full(3, 6.0))
        np.testing.assert_array_equal(bounds.center, np.full(3, 1.0))
        assert bounds.is_finite

    def test_unbounded(self):
        bounds = Bounds.unbounded(2)
        assert not bounds.is_finite
        assert bounds.contains(np.array([1e300, -1e300]))
        with pytest.raises(ValueError, match="alternative-generator"):
            bounds.require_finite("alternative-generator")

    def test_violations_mask(self):
        bounds = Bounds(np.array([0.0, 0.0, 0.0]), np.array([1.0, 1.0, 1.0]))
        mask = bounds.violations(np.array([-0.1, 0.5, 1.0]))
        np.testing.assert_array_equal(mask, [True, False, False])
        assert not bounds.contains(np.array([-0.1, 0.5, 1.0]))

    @pytest.mark.parametrize("lower,upper", [
        ([1.0], [0.0]),
        ([], []),
        ([0.0, 0.0], [1.0]),
        ([np.nan], [1.0]),
    ])
    def test_invalid(self, lower, upper):
        with pytest.raises(ValueError):
            Bounds(np.array(lower), np.array(upper))

