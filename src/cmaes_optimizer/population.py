"""
Candidates and Population Reconciliation

A candidate is a real vector plus a fitness assigned by the host.
Before the first generation the host-sized population is resized to
exactly lambda candidates.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence
import logging
import numpy as np

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Candidate:
    """A sampled vector and, once evaluated, its fitness."""
    x: np.ndarray
    fitness: Optional[float] = None

    def __post_init__(self):
        self.x = np.asarray(self.x, dtype=np.float64)

    @property
    def evaluated(self) -> bool:
        return self.fitness is not None

    def copy(self) -> 'Candidate':
        return Candidate(x=self.x.copy(), fitness=self.fitness)


def reconcile_population(
    population: Sequence[Candidate],
    lambda_: int,
    new_candidate: Callable[[], Candidate]
) -> List[Candidate]:
    """
    Resize a population to exactly lambda candidates.

    Keeps the first lambda candidates when there are too many and pads
    with freshly sampled ones when there are too few.

    Args:
        population: Host-provided population
        lambda_: Target size
        new_candidate: Draws one fresh candidate

    Returns:
        New list of length lambda_ (kept candidates are the same objects)
    """
    if lambda_ < 1:
        raise ValueError(f"lambda must be >= 1, got {lambda_}")

    size = len(population)
    if size > lambda_:
        logger.info(f"Truncating population from {size} to lambda={lambda_}")
        return list(population[:lambda_])

    result = list(population)
    if size < lambda_:
        logger.info(f"Padding population from {size} to lambda={lambda_}")
        while len(result) < lambda_:
            result.append(new_candidate())
    return result
