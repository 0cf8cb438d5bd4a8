"""
Strategy Parameters

Derives the CMA-ES strategy parameters from the search dimensionality n,
honoring any values the user supplied explicitly:

    lambda = 4 + floor(3 ln n)
    mu     = floor(lambda / 2)
    w_i    = ln((lambda + 1) / (2 (i + 1))),  normalized to sum to 1
    mueff  = 1 / sum(w_i^2)
    cc     = (4 + mueff/n) / (n + 4 + 2 mueff/n)
    cs     = (mueff + 2) / (n + mueff + 5)
    c1     = 2 / ((n + 1.3)^2 + mueff)
    cmu    = min(1 - c1, 2 (mueff - 2 + 1/mueff) / ((n + 2)^2 + mueff))
    damps  = 1 + 2 max(0, sqrt((mueff - 1)/(n + 1)) - 1) + cs
    chiN   = sqrt(n) (1 - 1/(4n) + 1/(21 n^2))
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Union
import logging
import math
import numpy as np

logger = logging.getLogger(__name__)

DAMPS_MIN = 0.5
DAMPS_MAX = 2.0

# c1 + cmu == 1 is allowed; absorb the rounding of 1 - (1 - c1)
_RATE_TOLERANCE = 1e-12

WeightSpec = Union[Sequence[float], Mapping[int, float]]


@dataclass(frozen=True)
class StrategyParameters:
    """Immutable CMA-ES constants for one run."""
    n: int
    lambda_: int
    mu: int
    weights: np.ndarray
    mueff: float
    cc: float
    cs: float
    c1: float
    cmu: float
    damps: float
    chiN: float

    def summary(self) -> Dict[str, float]:
        return {
            "n": self.n,
            "lambda": self.lambda_,
            "mu": self.mu,
            "mueff": self.mueff,
            "cc": self.cc,
            "cs": self.cs,
            "c1": self.c1,
            "cmu": self.cmu,
            "damps": self.damps,
            "chiN": self.chiN,
        }


def default_lambda(n: int) -> int:
    return 4 + int(math.floor(3 * math.log(n)))


def default_weights(lambda_: int, mu: int) -> np.ndarray:
    """
    Log-linear recombination weights, normalized to sum to 1.

    When mu reaches (lambda + 1) / 2 the trailing log terms become
    non-positive; those weights are clamped to zero.
    """
    raw = np.log((lambda_ + 1.0) / (2.0 * np.arange(1, mu + 1)))
    clamped = int(np.sum(raw < 0.0))
    if clamped:
        logger.info(f"CMA-ES clamped {clamped} negative default weight(s) to 0 (mu={mu}, lambda={lambda_})")
    raw = np.maximum(raw, 0.0)
    if np.sum(raw) <= 0.0:
        # lambda == mu == 1: ln(1) == 0
        raw = np.ones(mu)
    return raw / np.sum(raw)


def _resolve_weights(weights: WeightSpec, mu: int) -> np.ndarray:
    """Turn user-supplied weights into a normalized vector of length mu."""
    if isinstance(weights, Mapping):
        indices = set(weights.keys())
        expected = set(range(mu))
        if indices != expected:
            missing = sorted(expected - indices)
            extra = sorted(indices - expected)
            raise ValueError(
                f"CMA-ES weights must be given for all of indices 0..{mu - 1} or not at all "
                f"(missing {missing}, unexpected {extra})"
            )
        values = np.array([float(weights[i]) for i in range(mu)])
    else:
        values = np.asarray(weights, dtype=np.float64)
        if values.ndim != 1 or len(values) != mu:
            raise ValueError(
                f"CMA-ES weights must be given for all {mu} selected candidates or not at all "
                f"(got {values.size})"
            )

    if not np.all(np.isfinite(values)):
        raise ValueError("CMA-ES weights must be finite numbers")
    if np.any(values < 0.0):
        raise ValueError(f"CMA-ES weights must be >= 0, got {values.tolist()}")
    total = np.sum(values)
    if total <= 0.0:
        raise ValueError("CMA-ES weights must have a positive sum")

    logger.warning("CMA-ES weights were specified explicitly; the default weight formula is not used")
    return values / total


def _check_int(name: str, value, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ValueError(f"If the CMA-ES {name} parameter is provided, it must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"If the CMA-ES {name} parameter is provided, it must be >= {minimum}, got {value}")
    return int(value)


def derive_strategy_parameters(
    n: int,
    lambda_: Optional[int] = None,
    mu: Optional[int] = None,
    weights: Optional[WeightSpec] = None,
    cc: Optional[float] = None,
    cs: Optional[float] = None,
    c1: Optional[float] = None,
    cmu: Optional[float] = None,
    damps: Optional[float] = None,
) -> StrategyParameters:
    """
    Compute every strategy parameter that was not supplied.

    Args:
        n: Search dimensionality
        lambda_: Candidates per generation
        mu: Number of candidates used for recombination
        weights: All mu recombination weights, as a sequence or {index: weight}
        cc, cs, c1, cmu, damps: Learning rates and step-size damping

    Returns:
        StrategyParameters

    Raises:
        ValueError: if a supplied value violates the parameter invariants
    """
    n = _check_int("dimension", n, 1)

    if lambda_ is None:
        lambda_ = default_lambda(n)
    else:
        lambda_ = _check_int("lambda", lambda_, 1)

    if mu is None:
        mu = lambda_ // 2
        if mu < 1:
            raise ValueError(f"CMA-ES lambda={lambda_} is too small to derive mu; supply mu explicitly")
    else:
        mu = _check_int("mu", mu, 1)

    if mu > lambda_:
        raise ValueError(f"CMA-ES mu must be <= lambda.  Presently mu={mu} and lambda={lambda_}")

    if weights is None:
        w = default_weights(lambda_, mu)
    else:
        w = _resolve_weights(weights, mu)
    w.flags.writeable = False

    mueff = 1.0 / float(np.sum(w ** 2))

    if cc is None:
        cc = (4.0 + mueff / n) / (n + 4.0 + 2.0 * mueff / n)
    elif not 0.0 <= cc <= 1.0:
        raise ValueError(f"If the CMA-ES cc parameter is provided, it must be in the range [0,1], got {cc}")

    if cs is None:
        cs = (mueff + 2.0) / (n + mueff + 5.0)
    elif not 0.0 <= cs <= 1.0:
        raise ValueError(f"If the CMA-ES cs parameter is provided, it must be in the range [0,1], got {cs}")

    if c1 is None:
        c1 = 2.0 / ((n + 1.3) ** 2 + mueff)
    elif not c1 >= 0.0:
        raise ValueError(f"If the CMA-ES c1 parameter is provided, it must be >= 0.0, got {c1}")

    if cmu is None:
        cmu = min(1.0 - c1, 2.0 * (mueff - 2.0 + 1.0 / mueff) / ((n + 2.0) ** 2 + mueff))
    elif not cmu >= 0.0:
        raise ValueError(f"If the CMA-ES cmu parameter is provided, it must be >= 0.0, got {cmu}")

    # A derived rate can still go negative when the other one was overridden
    if cmu < 0.0:
        raise ValueError(f"CMA-ES c1={c1} leaves a negative cmu={cmu}.  c1 must be <= 1 - cmu with cmu >= 0")
    if c1 < 0.0:
        raise ValueError(f"CMA-ES cmu={cmu} leaves a negative c1={c1}.  cmu must be <= 1 - c1 with c1 >= 0")

    if c1 > 1.0 - cmu + _RATE_TOLERANCE:
        raise ValueError(f"CMA-ES c1 must be <= 1 - cmu.  You are using c1={c1} and cmu={cmu}")
    if cmu > 1.0 - c1 + _RATE_TOLERANCE:
        raise ValueError(f"CMA-ES cmu must be <= 1 - c1.  You are using cmu={cmu} and c1={c1}")

    if damps is None:
        damps = 1.0 + 2.0 * max(0.0, math.sqrt((mueff - 1.0) / (n + 1.0)) - 1.0) + cs
    elif not damps > 0.0:
        raise ValueError(f"If the CMA-ES damps parameter is provided, it must be > 0.0, got {damps}")

    if damps > DAMPS_MAX or damps < DAMPS_MIN:
        logger.warning(f"CMA-ES damps ought to be close to 1.  You are using damps = {damps}")

    chiN = math.sqrt(n) * (1.0 - 1.0 / (4.0 * n) + 1.0 / (21.0 * n * n))

    params = StrategyParameters(
        n=n,
        lambda_=lambda_,
        mu=mu,
        weights=w,
        mueff=mueff,
        cc=float(cc),
        cs=float(cs),
        c1=float(c1),
        cmu=float(cmu),
        damps=float(damps),
        chiN=chiN,
    )

    logger.info(f"Weights: <{', '.join(repr(float(x)) for x in w)}>")
    for name, value in params.summary().items():
        logger.info(f"{name + ':':7} {value}")

    return params
