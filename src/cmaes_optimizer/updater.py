"""
Distribution Updater

Runs once per generation, after every candidate has a fitness and before
any sampling for the next generation:

    1. rank candidates, recombine the best mu into the new mean
    2. cumulate the evolution paths ps and pc (with Heaviside stall guard)
    3. rank-one + rank-mu covariance update
    4. cumulative step-size adaptation of sigma
    5. lazily refresh the eigendecomposition of C
    6. optionally signal completion when C becomes ill-conditioned
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence
import logging
import math
import numpy as np

from .params import StrategyParameters
from .population import Candidate
from .state import DistributionState

logger = logging.getLogger(__name__)

# Soft stop when max(D) > CONDITION_LIMIT * min(D)
CONDITION_LIMIT = 1e7

ILL_CONDITIONED_REASON = "CMAESSpecies: Stopped because matrix condition exceeded limit."


@dataclass
class UpdateResult:
    """Outcome of one distribution update."""
    generation: int
    sigma: float
    hsig: int
    eigen_refreshed: bool
    condition_ratio: float
    run_complete: bool = False
    reason: str = ""


def by_fitness(candidate: Candidate) -> Any:
    """Default ranking key: smaller fitness is better."""
    return candidate.fitness


def heaviside(ps: np.ndarray, cs: float, n: int, generation: int) -> int:
    """
    Stall guard for the rank-one path.

    Returns 0 when ||ps|| is abnormally long for this generation, which
    suppresses the pc update in early generations.
    """
    normalizer = 1.0 - (1.0 - cs) ** (2.0 * (generation + 1))
    if normalizer <= 0.0:
        # cs == 0: ps never leaves the origin
        return 1
    value = (float(ps @ ps) / normalizer) / n
    return 1 if value < 2.0 + 4.0 / (n + 1.0) else 0


def eigen_refresh_due(params: StrategyParameters, state: DistributionState, generation: int) -> bool:
    rate = params.c1 + params.cmu
    if rate <= 0.0:
        return state.last_eigen_gen < 0
    return (generation - state.last_eigen_gen) > 1.0 / (rate * params.n * 10.0)


def condition_exceeded(state: DistributionState, limit: float = CONDITION_LIMIT) -> bool:
    D = state.D
    return bool(np.max(D) > limit * np.min(D))


def update_distribution(
    params: StrategyParameters,
    state: DistributionState,
    candidates: Sequence[Candidate],
    generation: int,
    alternative_termination: bool = False,
    key: Callable[[Candidate], Any] = by_fitness
) -> UpdateResult:
    """
    Revise the distribution from one evaluated generation.

    Args:
        params: Strategy parameters
        state: Distribution, mutated in place
        candidates: Exactly lambda evaluated candidates (read only)
        generation: Zero-based generation counter
        alternative_termination: Signal completion on ill-conditioning
        key: Ranking key; ascending order means better first

    Returns:
        UpdateResult, with run_complete set on a soft stop

    Raises:
        ValueError: on a wrongly sized or unevaluated generation
        np.linalg.LinAlgError: if the covariance cannot be decomposed
    """
    n = params.n
    if len(candidates) != params.lambda_:
        raise ValueError(f"CMA-ES update needs exactly lambda={params.lambda_} candidates, got {len(candidates)}")
    for i, cand in enumerate(candidates):
        if not cand.evaluated:
            raise ValueError(f"Candidate {i} has no fitness")
        if cand.x.shape != (n,):
            raise ValueError(f"Candidate {i} has shape {cand.x.shape}, expected ({n},)")

    ranked = sorted(candidates, key=key)
    selected = np.array([c.x for c in ranked[:params.mu]])
    w = params.weights
    cs, cc, c1, cmu = params.cs, params.cc, params.c1, params.cmu

    # Recombination
    old_mean = state.mean
    sigma = state.sigma
    state.mean = w @ selected

    # Cumulation: evolution paths
    y = (state.mean - old_mean) / sigma
    state.ps = (1.0 - cs) * state.ps + math.sqrt(cs * (2.0 - cs) * params.mueff) * (state.invsqrtC @ y)

    hsig = heaviside(state.ps, cs, n, generation)
    state.pc = (1.0 - cc) * state.pc + hsig * math.sqrt(cc * (2.0 - cc) * params.mueff) * y

    # Covariance: rank-one and rank-mu
    artmp = (selected - old_mean) / sigma
    rank_one = np.outer(state.pc, state.pc) + (1.0 - hsig) * cc * (2.0 - cc) * state.C
    rank_mu = (artmp.T * w) @ artmp
    state.C = (1.0 - c1 - cmu) * state.C + c1 * rank_one + cmu * rank_mu

    # Step size
    state.sigma = sigma * math.exp((cs / params.damps) * (np.linalg.norm(state.ps) / params.chiN - 1.0))

    refreshed = False
    if eigen_refresh_due(params, state, generation):
        state.refresh_eigen(generation)
        refreshed = True
    else:
        state.rescale()

    result = UpdateResult(
        generation=generation,
        sigma=state.sigma,
        hsig=hsig,
        eigen_refreshed=refreshed,
        condition_ratio=state.eigen.condition_ratio
    )
    logger.debug(f"gen {generation}: sigma={state.sigma:.6e} hsig={hsig} "
                 f"condition={result.condition_ratio:.3e} refreshed={refreshed}")

    if alternative_termination and condition_exceeded(state):
        logger.info(ILL_CONDITIONED_REASON)
        result.run_complete = True
        result.reason = ILL_CONDITIONED_REASON

    return result
