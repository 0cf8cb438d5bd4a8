"""
CMA-ES Optimizer - Covariance Matrix Adaptation Evolution Strategy

Maintains a multivariate Gaussian search distribution over real vectors
and adapts its mean, global step size and full covariance matrix from
ranked fitness feedback.

Components:
- Strategy parameters derived from the dimensionality (with overrides)
- Distribution state with a cached eigendecomposition of C
- Bounded sampler with rejection and uniform-repair policies
- Once-per-generation distribution updater with soft termination
- Population reconciliation to exactly lambda candidates
"""

__version__ = "0.1.0"

from .bounds import Bounds
from .config import CMAESConfig
from .linalg import EigenSystem, decompose, symmetrize
from .params import StrategyParameters, derive_strategy_parameters
from .state import (
    DistributionState,
    initialize_state,
    MEAN_INITIALIZERS,
    COVARIANCE_INITIALIZERS,
)
from .population import Candidate, reconcile_population
from .sampler import Sampler, SamplingPolicy, spawn_streams
from .updater import UpdateResult, update_distribution
from .species import CMAESSpecies
from .optimizer import CMAES, CMAESResult

__all__ = [
    # Bounds and configuration
    "Bounds",
    "CMAESConfig",
    # Linear algebra
    "EigenSystem",
    "decompose",
    "symmetrize",
    # Strategy parameters
    "StrategyParameters",
    "derive_strategy_parameters",
    # Distribution
    "DistributionState",
    "initialize_state",
    "MEAN_INITIALIZERS",
    "COVARIANCE_INITIALIZERS",
    # Population
    "Candidate",
    "reconcile_population",
    # Sampling
    "Sampler",
    "SamplingPolicy",
    "spawn_streams",
    # Update
    "UpdateResult",
    "update_distribution",
    # Facade and host loop
    "CMAESSpecies",
    "CMAES",
    "CMAESResult",
]
