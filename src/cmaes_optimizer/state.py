"""
Distribution State

The multivariate Gaussian search distribution N(mean, sigma^2 C) and the
evolution paths. C is the single source of truth; B, D and invsqrtC are
a cache recomputed from C by refresh_eigen(), and sbd = sigma * B * D is
rescaled by rescale() whenever sigma changes.

Mean and covariance seeds are chosen from explicit registries of named
initializers.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Sequence, Union
import logging
import numpy as np

from .bounds import Bounds
from .linalg import EigenSystem, decompose, symmetrize

logger = logging.getLogger(__name__)

MeanInitializer = Callable[[Bounds, np.random.Generator], np.ndarray]
CovarianceInitializer = Callable[[Bounds], np.ndarray]


def zero_mean(bounds: Bounds, rng: np.random.Generator) -> np.ndarray:
    return np.zeros(bounds.n_vars)


def center_mean(bounds: Bounds, rng: np.random.Generator) -> np.ndarray:
    bounds.require_finite("mean=center")
    return bounds.center


def random_mean(bounds: Bounds, rng: np.random.Generator) -> np.ndarray:
    bounds.require_finite("mean=random")
    return bounds.lower + rng.random(bounds.n_vars) * bounds.widths


def identity_covariance(bounds: Bounds) -> np.ndarray:
    return np.eye(bounds.n_vars)


def scaled_covariance(bounds: Bounds) -> np.ndarray:
    """Diagonal of squared gene ranges (max_i - min_i)^2."""
    bounds.require_finite("covariance=scaled")
    return np.diag(bounds.widths ** 2)


MEAN_INITIALIZERS: Dict[str, MeanInitializer] = {
    "zero": zero_mean,
    "center": center_mean,
    "random": random_mean,
}

COVARIANCE_INITIALIZERS: Dict[str, CovarianceInitializer] = {
    "identity": identity_covariance,
    "scaled": scaled_covariance,
}


@dataclass
class DistributionState:
    """
    Mutable CMA-ES distribution for one population.

    Attributes:
        mean: Distribution mean
        sigma: Global step size (> 0)
        C: Covariance matrix
        eigen: Decomposition of C from the last refresh
        sbd: sigma * B * D, the sampling transform
        pc: Evolution path for C
        ps: Conjugate evolution path for sigma
        last_eigen_gen: Generation of the last refresh (-1 = setup)
    """
    mean: np.ndarray
    sigma: float
    C: np.ndarray
    eigen: EigenSystem
    sbd: np.ndarray
    pc: np.ndarray
    ps: np.ndarray
    last_eigen_gen: int = -1

    @property
    def n(self) -> int:
        return len(self.mean)

    @property
    def B(self) -> np.ndarray:
        return self.eigen.B

    @property
    def D(self) -> np.ndarray:
        return self.eigen.D

    @property
    def invsqrtC(self) -> np.ndarray:
        return self.eigen.invsqrtC

    def rescale(self):
        """Recompute sbd after a change of sigma."""
        self.sbd = self.sigma * self.eigen.bd

    def refresh_eigen(self, generation: int):
        """
        Symmetrize C and recompute B, D, invsqrtC and sbd from it.

        Raises:
            np.linalg.LinAlgError: if C cannot be decomposed
        """
        self.C = symmetrize(self.C)
        self.eigen = decompose(self.C)
        self.last_eigen_gen = generation
        self.rescale()

    def copy(self) -> 'DistributionState':
        """Independent value copy of the whole state."""
        return DistributionState(
            mean=self.mean.copy(),
            sigma=self.sigma,
            C=self.C.copy(),
            eigen=self.eigen.copy(),
            sbd=self.sbd.copy(),
            pc=self.pc.copy(),
            ps=self.ps.copy(),
            last_eigen_gen=self.last_eigen_gen
        )

    @classmethod
    def from_covariance(cls, mean: np.ndarray, sigma: float, C: np.ndarray) -> 'DistributionState':
        """Build a state around an explicit mean and covariance, decomposing C once."""
        mean = np.asarray(mean, dtype=np.float64).copy()
        C = symmetrize(np.asarray(C, dtype=np.float64))
        if C.shape != (len(mean), len(mean)):
            raise ValueError(f"Covariance shape {C.shape} does not match mean length {len(mean)}")
        eigen = decompose(C)
        return cls(
            mean=mean,
            sigma=float(sigma),
            C=C,
            eigen=eigen,
            sbd=sigma * eigen.bd,
            pc=np.zeros(len(mean)),
            ps=np.zeros(len(mean)),
        )


def resolve_mean(
    bounds: Bounds,
    rng: np.random.Generator,
    mode: Optional[str] = None,
    values: Optional[Union[Sequence[float], Mapping[int, float]]] = None
) -> np.ndarray:
    """
    Compute the initial mean from a mode and/or explicit per-dimension values.

    Explicit values override the mode. Without a mode every dimension must
    be given explicitly.

    Raises:
        ValueError: on an unknown mode or an unresolved mean
    """
    n = bounds.n_vars

    if mode is not None:
        if mode not in MEAN_INITIALIZERS:
            raise ValueError(f"Unknown mean value specified: {mode} (expected one of {sorted(MEAN_INITIALIZERS)})")
        mean = np.asarray(MEAN_INITIALIZERS[mode](bounds, rng), dtype=np.float64).copy()
    else:
        mean = np.zeros(n)

    if values is None:
        if mode is None:
            raise ValueError("No default mean value specified and no explicit mean given")
        return mean

    if isinstance(values, Mapping):
        explicit = {int(i): float(v) for i, v in values.items()}
    else:
        explicit = {i: float(v) for i, v in enumerate(values)}

    out_of_range = sorted(i for i in explicit if not 0 <= i < n)
    if out_of_range:
        raise ValueError(f"CMA-ES mean indices {out_of_range} are outside 0..{n - 1}")

    if mode is None:
        missing = [i for i in range(n) if i not in explicit]
        if missing:
            raise ValueError(
                f"No default mean value was specified, but CMA-ES mean indices {missing} are missing"
            )
    elif explicit:
        logger.warning("A default mean value was specified, but certain mean values were overridden.")

    for i, v in explicit.items():
        mean[i] = v

    if not np.all(np.isfinite(mean)):
        raise ValueError("CMA-ES initial mean must be finite")
    return mean


def initialize_state(
    bounds: Bounds,
    rng: np.random.Generator,
    sigma: float = 1.0,
    mean: Optional[str] = None,
    mean_values: Optional[Union[Sequence[float], Mapping[int, float]]] = None,
    covariance: str = "identity"
) -> DistributionState:
    """
    Set up the initial distribution.

    Args:
        bounds: Search bounds (defines n)
        rng: Random stream (used by mean="random")
        sigma: Initial step size
        mean: Mean seed mode
        mean_values: Explicit mean entries
        covariance: Covariance seed mode

    Returns:
        DistributionState with pc = ps = 0 and last_eigen_gen = -1

    Raises:
        ValueError: on invalid sigma, mode strings or unresolved mean
        np.linalg.LinAlgError: if the initial covariance cannot be decomposed
    """
    if not sigma > 0.0 or not np.isfinite(sigma):
        raise ValueError(f"If CMA-ES sigma is provided, it must be > 0.0, got {sigma}")

    if covariance not in COVARIANCE_INITIALIZERS:
        raise ValueError(
            f"Invalid covariance initialization type {covariance} "
            f"(expected one of {sorted(COVARIANCE_INITIALIZERS)})"
        )
    C = COVARIANCE_INITIALIZERS[covariance](bounds)
    logger.info(f"Initial Covariance: <{', '.join(repr(float(v)) for v in np.diag(C))}>")

    x0 = resolve_mean(bounds, rng, mean, mean_values)
    logger.info(f"Initial Mean: <{', '.join(repr(float(v)) for v in x0)}>")

    return DistributionState.from_covariance(x0, sigma, C)
