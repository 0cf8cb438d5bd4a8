"""
Candidate Sampler

Draws candidates x = mean + sigma * B * D * z with z ~ N(0, I), rejecting
whole vectors that leave the bounds. The retry loop is a circuit breaker:
after `tries` consecutive rejections the alternative generator (when
enabled) switches policy and repairs only the violating coordinates with
uniform draws inside their own bounds.

Acceptance probability shrinks exponentially with n when sigma is large
relative to the bounds, so the run-wide rejection count is instrumented.
"""

from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import List, Optional
import logging
import threading
import numpy as np

from .bounds import Bounds
from .state import DistributionState

logger = logging.getLogger(__name__)


class SamplingPolicy(Enum):
    """How an out-of-bounds draw is handled."""
    REJECT_WHOLE_VECTOR = "reject"
    CLAMP_VIOLATING_DIMENSIONS = "clamp"


SLOW_SAMPLING_WARNING = (
    "CMA-ES may be slow because many individuals are being generated which "
    "are outside the min/max gene bounds.  If an individual violates a single "
    "gene bound, it is rejected, so as the number of genes grows, the "
    "probability of this happening increases exponentially.  You can deal "
    "with this by decreasing sigma.  Alternatively you can set "
    "alternative-generator=true.  Finally, if this is happening during "
    "initialization, you might also set covariance=scaled."
)


def spawn_streams(seed: Optional[int], count: int) -> List[np.random.Generator]:
    """Independent random streams, one per concurrent sampler task."""
    return [np.random.default_rng(s) for s in np.random.SeedSequence(seed).spawn(count)]


class Sampler:
    """
    Draws candidate vectors from a DistributionState.

    The sampler only reads the state. The updater must not run while
    samples for the same generation are being drawn.
    """

    # Run-wide rejected attempts before the slow-sampling warning
    MAX_TRIES_BEFORE_WARNING = 100000

    def __init__(
        self,
        state: DistributionState,
        bounds: Bounds,
        rng: np.random.Generator,
        alternative_generator: bool = False,
        alternative_generator_tries: int = 100,
        max_attempts: Optional[int] = None
    ):
        """
        Args:
            state: Distribution to sample from
            bounds: Inclusive per-dimension bounds
            rng: Default random stream
            alternative_generator: Enable uniform repair after repeated rejection
            alternative_generator_tries: Rejections before the repair policy engages
            max_attempts: Optional hard cap on attempts per candidate
        """
        if bounds.n_vars != state.n:
            raise ValueError(f"Bounds cover {bounds.n_vars} dimensions but the distribution has {state.n}")
        if alternative_generator_tries < 1:
            raise ValueError("alternative-generator-tries must be >= 1")
        if alternative_generator:
            bounds.require_finite("alternative-generator")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self.state = state
        self.bounds = bounds
        self.rng = rng
        self.alternative_generator = alternative_generator
        self.alternative_generator_tries = alternative_generator_tries
        self.max_attempts = max_attempts

        self.total_rejections = 0
        self.repairs = 0
        # Attempts used by the most recently finished sample() call
        self.last_attempts = 0
        self._warned = False
        self._warned_switch = False
        self._lock = threading.Lock()

    def sample(self, rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """
        Draw one in-bounds candidate vector.

        Args:
            rng: Stream to draw from (defaults to the sampler's own)

        Returns:
            Candidate vector of length n

        Raises:
            RuntimeError: if max_attempts is set and exhausted
        """
        rng = self.rng if rng is None else rng
        state = self.state
        bounds = self.bounds
        n = state.n

        policy = SamplingPolicy.REJECT_WHOLE_VECTOR
        attempts = 0

        while True:
            attempts += 1
            z = rng.standard_normal(n)
            x = state.mean + state.sbd @ z

            bad = bounds.violations(x)
            if not bad.any():
                break

            if policy is SamplingPolicy.CLAMP_VIOLATING_DIMENSIONS:
                k = int(np.sum(bad))
                x[bad] = bounds.lower[bad] + rng.random(k) * bounds.widths[bad]
                with self._lock:
                    self.repairs += 1
                break

            self._record_rejection()

            if self.max_attempts is not None and attempts >= self.max_attempts:
                self._set_last_attempts(attempts)
                raise RuntimeError(
                    f"CMA-ES could not sample an in-bounds candidate in {attempts} attempts "
                    f"(sigma={state.sigma:.3e})"
                )

            if self.alternative_generator and attempts >= self.alternative_generator_tries:
                self._note_policy_switch(attempts)
                policy = SamplingPolicy.CLAMP_VIOLATING_DIMENSIONS

        self._set_last_attempts(attempts)
        return x

    def sample_many(
        self,
        count: int,
        seed: Optional[int] = None,
        workers: Optional[int] = None
    ) -> List[np.ndarray]:
        """
        Draw `count` candidates concurrently, one independent stream per candidate.

        Args:
            count: Number of candidates
            seed: Seed for the spawned streams (drawn from the sampler's stream if None)
            workers: Thread pool size

        Returns:
            List of candidate vectors, in stream order
        """
        if count <= 0:
            return []
        if seed is None:
            seed = int(self.rng.integers(0, 2 ** 63 - 1))
        streams = spawn_streams(seed, count)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(self.sample, streams))

    def _set_last_attempts(self, attempts: int):
        with self._lock:
            self.last_attempts = attempts

    def _note_policy_switch(self, attempts: int):
        with self._lock:
            first = not self._warned_switch
            self._warned_switch = True
        message = (f"CMA-ES rejected {attempts} consecutive out-of-bounds draws; "
                   f"repairing violating genes uniformly")
        if first:
            logger.warning(message)
        else:
            logger.debug(message)

    def _record_rejection(self):
        with self._lock:
            self.total_rejections += 1
            warn = self.total_rejections > self.MAX_TRIES_BEFORE_WARNING and not self._warned
            if warn:
                self._warned = True
        if warn:
            logger.warning(SLOW_SAMPLING_WARNING)
