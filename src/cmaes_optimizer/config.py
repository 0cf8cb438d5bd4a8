"""
CMA-ES Configuration

Dataclass holding every user-facing option. A None value means
"derive the default". Configurations can also be built from the flat,
hyphenated parameter names used in parameter files:

    sigma, mean, mean.<i>, lambda, mu, weight.<i>, cc, cs, c1, cmu,
    damps, covariance, alternative-termination, alternative-generator,
    alternative-generator-tries, max-attempts, seed
"""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Union
import json

DEFAULT_SIGMA = 1.0
DEFAULT_ALT_GENERATOR_TRIES = 100

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}

_FLOAT_KEYS = {"sigma": "sigma", "cc": "cc", "cs": "cs", "c1": "c1", "cmu": "cmu", "damps": "damps"}
_INT_KEYS = {"lambda": "lambda_", "mu": "mu", "alternative-generator-tries": "alternative_generator_tries",
             "max-attempts": "max_attempts", "seed": "seed"}
_BOOL_KEYS = {"alternative-termination": "alternative_termination",
              "alternative-generator": "alternative_generator"}


@dataclass
class CMAESConfig:
    """Configuration for CMAESSpecies."""
    # Initial step size (default 1.0)
    sigma: Optional[float] = None

    # Mean seed mode: "zero", "center" or "random"
    mean: Optional[str] = None

    # Explicit per-dimension mean, full list or {index: value}
    mean_values: Optional[Union[Sequence[float], Mapping[int, float]]] = None

    # Population size and selection
    lambda_: Optional[int] = None
    mu: Optional[int] = None
    weights: Optional[Union[Sequence[float], Mapping[int, float]]] = None

    # Learning rates
    cc: Optional[float] = None
    cs: Optional[float] = None
    c1: Optional[float] = None
    cmu: Optional[float] = None
    damps: Optional[float] = None

    # Covariance seed: "identity" or "scaled"
    covariance: str = "identity"

    # Stop when max(D) > 1e7 * min(D)
    alternative_termination: bool = False

    # Uniform repair of violating coordinates after too many rejections
    alternative_generator: bool = False
    alternative_generator_tries: int = DEFAULT_ALT_GENERATOR_TRIES

    # Hard cap on sampling attempts per candidate (None = unlimited)
    max_attempts: Optional[int] = None

    seed: Optional[int] = None

    def __post_init__(self):
        # A list passed as `mean` is an explicit vector
        if self.mean is not None and not isinstance(self.mean, str):
            if self.mean_values is not None:
                raise ValueError("Give the explicit mean either as `mean` or as `mean_values`, not both")
            self.mean_values = self.mean
            self.mean = None

        if isinstance(self.alternative_generator_tries, bool) or \
                not isinstance(self.alternative_generator_tries, int) or \
                self.alternative_generator_tries < 1:
            raise ValueError(
                f"If specified (the default is {DEFAULT_ALT_GENERATOR_TRIES}), "
                f"alternative-generator-tries must be an integer >= 1, got {self.alternative_generator_tries!r}"
            )
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError(f"If specified, max-attempts must be >= 1, got {self.max_attempts}")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("mean_values", "weights"):
            value = data[key]
            if isinstance(value, Mapping):
                data[key] = {str(k): float(v) for k, v in value.items()}
            elif value is not None:
                data[key] = [float(v) for v in value]
        return data

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> 'CMAESConfig':
        """
        Build a configuration from flat parameter names.

        Args:
            params: Mapping such as {"sigma": "0.5", "mean": "center",
                "weight.0": 0.7, "weight.1": 0.3, "alternative-generator": "true"}

        Returns:
            CMAESConfig

        Raises:
            ValueError: on unknown keys or values that cannot be parsed
        """
        kwargs: Dict[str, Any] = {}
        mean_values: Dict[int, float] = {}
        weights: Dict[int, float] = {}

        for key, value in params.items():
            key = str(key).strip()
            if key in _FLOAT_KEYS:
                kwargs[_FLOAT_KEYS[key]] = _parse_float(key, value)
            elif key in _INT_KEYS:
                kwargs[_INT_KEYS[key]] = _parse_int(key, value)
            elif key in _BOOL_KEYS:
                kwargs[_BOOL_KEYS[key]] = _parse_bool(key, value)
            elif key == "covariance":
                kwargs["covariance"] = str(value).strip()
            elif key == "mean":
                if isinstance(value, (list, tuple)):
                    kwargs["mean_values"] = [_parse_float(key, v) for v in value]
                else:
                    kwargs["mean"] = str(value).strip()
            elif key.startswith("mean."):
                mean_values[_parse_index(key)] = _parse_float(key, value)
            elif key.startswith("weight."):
                weights[_parse_index(key)] = _parse_float(key, value)
            else:
                raise ValueError(f"Unknown CMA-ES parameter: {key}")

        if mean_values:
            if "mean_values" in kwargs:
                raise ValueError("Explicit mean given both as a list and as mean.<i> entries")
            kwargs["mean_values"] = mean_values
        if weights:
            kwargs["weights"] = weights

        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'CMAESConfig':
        """Load flat parameters from a JSON object file."""
        return cls.from_params(load_params(path))


def load_params(path: Union[str, Path]) -> Dict[str, Any]:
    """Read the flat parameter mapping stored in a JSON file."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"CMA-ES configuration file {path} must contain a JSON object")
    return data


def _parse_index(key: str) -> int:
    suffix = key.split(".", 1)[1]
    try:
        index = int(suffix)
    except ValueError:
        raise ValueError(f"CMA-ES parameter {key} must end in an integer index") from None
    if index < 0:
        raise ValueError(f"CMA-ES parameter {key} has a negative index")
    return index


def _parse_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"CMA-ES parameter {key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"CMA-ES parameter {key} must be a number, got {value!r}") from None


def _parse_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"CMA-ES parameter {key} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"CMA-ES parameter {key} must be an integer, got {value!r}")
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValueError(f"CMA-ES parameter {key} must be an integer, got {value!r}") from None


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"CMA-ES parameter {key} must be true or false, got {value!r}")
