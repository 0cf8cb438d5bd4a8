"""
Search Space Bounds

Per-dimension inclusive bounds [min_i, max_i] supplied by the host.
Infinite bounds mark unbounded dimensions.
"""

from dataclasses import dataclass
import numpy as np


@dataclass
class Bounds:
    """
    Box domain for the search.

    Attributes:
        lower: Lower bound (min_i) for each dimension
        upper: Upper bound (max_i) for each dimension
    """
    lower: np.ndarray
    upper: np.ndarray

    def __post_init__(self):
        self.lower = np.asarray(self.lower, dtype=np.float64)
        self.upper = np.asarray(self.upper, dtype=np.float64)

        if self.lower.ndim != 1 or self.lower.shape != self.upper.shape:
            raise ValueError("Lower and upper bounds must be 1-D and have same length")

        if len(self.lower) == 0:
            raise ValueError("Bounds must cover at least one dimension")

        if np.any(np.isnan(self.lower)) or np.any(np.isnan(self.upper)):
            raise ValueError("Bounds must not contain NaN")

        if np.any(self.lower > self.upper):
            raise ValueError("Lower bounds must be <= upper bounds")

    @property
    def n_vars(self) -> int:
        return len(self.lower)

    @property
    def widths(self) -> np.ndarray:
        return self.upper - self.lower

    @property
    def center(self) -> np.ndarray:
        return (self.lower + self.upper) / 2.0

    @property
    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.lower)) and np.all(np.isfinite(self.upper)))

    def require_finite(self, purpose: str):
        """Raise if any bound is infinite; `purpose` names what needed them."""
        if not self.is_finite:
            raise ValueError(f"{purpose} requires finite bounds in every dimension")

    def contains(self, x: np.ndarray) -> bool:
        """Check if a point lies inside the (inclusive) bounds."""
        return bool(np.all(x >= self.lower) and np.all(x <= self.upper))

    def violations(self, x: np.ndarray) -> np.ndarray:
        """Boolean mask of the coordinates of x that fall outside the bounds."""
        return (x < self.lower) | (x > self.upper)

    @classmethod
    def uniform(cls, n: int, lower: float, upper: float) -> 'Bounds':
        """Same [lower, upper] interval in all n dimensions."""
        return cls(np.full(n, lower, dtype=np.float64), np.full(n, upper, dtype=np.float64))

    @classmethod
    def unbounded(cls, n: int) -> 'Bounds':
        return cls.uniform(n, -np.inf, np.inf)
