"""
CMA-ES Species

Ties together strategy parameters, the distribution state and the sampler
for one population. The host drives it:

    species = CMAESSpecies(bounds, config)
    population = species.reconcile(initial_population)
    ... evaluate ...
    result = species.update_distribution(population, generation)
    population = species.sample_population()
"""

from typing import Any, Callable, List, Optional, Sequence
import logging
import numpy as np

from .bounds import Bounds
from .config import CMAESConfig, DEFAULT_SIGMA
from .params import StrategyParameters, derive_strategy_parameters
from .population import Candidate, reconcile_population
from .sampler import Sampler
from .state import DistributionState, initialize_state
from .updater import UpdateResult, by_fitness, update_distribution

logger = logging.getLogger(__name__)


class CMAESSpecies:
    """
    Adaptive Gaussian search distribution over real vectors.

    Setup validates the whole configuration, so every fatal
    configuration error surfaces before the first sample is drawn.
    """

    def __init__(
        self,
        bounds: Bounds,
        config: Optional[CMAESConfig] = None,
        rng: Optional[np.random.Generator] = None
    ):
        self.bounds = bounds
        self.config = config or CMAESConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        cfg = self.config
        sigma = cfg.sigma
        if sigma is None:
            logger.info(f"CMA-ES sigma was not provided, defaulting to {DEFAULT_SIGMA}")
            sigma = DEFAULT_SIGMA

        self.params: StrategyParameters = derive_strategy_parameters(
            bounds.n_vars,
            lambda_=cfg.lambda_,
            mu=cfg.mu,
            weights=cfg.weights,
            cc=cfg.cc,
            cs=cfg.cs,
            c1=cfg.c1,
            cmu=cfg.cmu,
            damps=cfg.damps,
        )

        self.state: DistributionState = initialize_state(
            bounds,
            self.rng,
            sigma=sigma,
            mean=cfg.mean,
            mean_values=cfg.mean_values,
            covariance=cfg.covariance,
        )

        self.sampler = Sampler(
            self.state,
            bounds,
            self.rng,
            alternative_generator=cfg.alternative_generator,
            alternative_generator_tries=cfg.alternative_generator_tries,
            max_attempts=cfg.max_attempts,
        )

    @property
    def n(self) -> int:
        return self.params.n

    @property
    def lambda_(self) -> int:
        return self.params.lambda_

    def new_candidate(self, rng: Optional[np.random.Generator] = None) -> Candidate:
        """Sample one unevaluated candidate from the current distribution."""
        return Candidate(x=self.sampler.sample(rng))

    def sample_population(
        self,
        count: Optional[int] = None,
        seed: Optional[int] = None,
        workers: Optional[int] = None
    ) -> List[Candidate]:
        """
        Sample a generation of candidates.

        With `workers` set the draws run in a thread pool, each on its own
        spawned stream; otherwise they use the species' stream in order.
        """
        count = self.lambda_ if count is None else count
        if workers is None and seed is None:
            return [self.new_candidate() for _ in range(count)]
        return [Candidate(x=x) for x in self.sampler.sample_many(count, seed=seed, workers=workers)]

    def reconcile(self, population: Sequence[Candidate]) -> List[Candidate]:
        """Resize a host population to exactly lambda candidates."""
        return reconcile_population(population, self.lambda_, self.new_candidate)

    def update_distribution(
        self,
        candidates: Sequence[Candidate],
        generation: int,
        key: Callable[[Candidate], Any] = by_fitness
    ) -> UpdateResult:
        """Revise the distribution from one evaluated generation."""
        return update_distribution(
            self.params,
            self.state,
            candidates,
            generation,
            alternative_termination=self.config.alternative_termination,
            key=key,
        )

    def snapshot(self) -> DistributionState:
        """Value copy of the current distribution."""
        return self.state.copy()
