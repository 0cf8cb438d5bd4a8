"""
CMA-ES Generation Loop

A minimal host for CMAESSpecies: sample lambda candidates, evaluate them,
update the distribution, repeat. Stops on the species' soft stop, on
reaching a target fitness, or after a fixed number of generations.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple
import logging
import numpy as np

from .bounds import Bounds
from .config import CMAESConfig
from .population import Candidate
from .species import CMAESSpecies

logger = logging.getLogger(__name__)


@dataclass
class CMAESResult:
    """Result of a CMA-ES run."""
    x_best: Optional[np.ndarray]
    f_best: float
    evaluations: int
    generations: int
    trajectory: List[Tuple[int, float]]
    converged: bool
    reason: str
    final_sigma: float
    final_mean: np.ndarray


class CMAES:
    """
    Covariance Matrix Adaptation Evolution Strategy (minimization).
    """

    def __init__(
        self,
        objective: Callable[[np.ndarray], float],
        bounds: Bounds,
        config: Optional[CMAESConfig] = None,
        rng: Optional[np.random.Generator] = None
    ):
        self.objective = objective
        self.bounds = bounds
        self.species = CMAESSpecies(bounds, config, rng)

        # Tracking
        self.evaluations = 0
        self.best_x = None
        self.best_f = float('inf')
        self.trajectory = []

    def _evaluate(self, population: Sequence[Candidate]):
        for cand in population:
            cand.fitness = float(self.objective(cand.x))
            self.evaluations += 1

            if cand.fitness < self.best_f:
                self.best_f = cand.fitness
                self.best_x = cand.x.copy()
                self.trajectory.append((self.evaluations, self.best_f))

    def optimize(
        self,
        max_generations: int,
        target: Optional[float] = None,
        initial_population: Optional[Sequence[Candidate]] = None
    ) -> CMAESResult:
        """
        Run CMA-ES.

        Args:
            max_generations: Number of distribution updates allowed
            target: Stop once the best fitness is <= target
            initial_population: Host population, resized to lambda

        Returns:
            CMAESResult with best solution and trajectory
        """
        species = self.species
        population = species.reconcile(list(initial_population or []))

        converged = False
        reason = "max_generations"
        generation = 0

        while generation < max_generations:
            self._evaluate(population)

            if target is not None and self.best_f <= target:
                converged = True
                reason = "target"
                break

            update = species.update_distribution(population, generation)
            generation += 1

            if update.run_complete:
                converged = True
                reason = update.reason
                break

            population = species.sample_population()

        logger.info(f"CMA-ES finished after {generation} generations ({reason}): "
                    f"f_best={self.best_f:.6e}, evaluations={self.evaluations}")

        return CMAESResult(
            x_best=self.best_x,
            f_best=self.best_f,
            evaluations=self.evaluations,
            generations=generation,
            trajectory=self.trajectory.copy(),
            converged=converged,
            reason=reason,
            final_sigma=species.state.sigma,
            final_mean=species.state.mean.copy()
        )
