"""
Benchmark Objectives

Classic continuous test functions, all minimized at f* = 0:

- sphere:     sum(x_i^2)
- ellipsoid:  sum(10^(6 i/(n-1)) x_i^2)      (ill-conditioned)
- rastrigin:  10 n + sum(x_i^2 - 10 cos(2 pi x_i))
- rosenbrock: sum(100 (x_{i+1} - x_i^2)^2 + (1 - x_i)^2),  optimum at 1
"""

from typing import Callable, Dict, Tuple
import numpy as np


def sphere(x: np.ndarray) -> float:
    return float(np.sum(x ** 2))


def ellipsoid(x: np.ndarray) -> float:
    n = len(x)
    if n == 1:
        return float(x[0] ** 2)
    scales = 10.0 ** (6.0 * np.arange(n) / (n - 1))
    return float(np.sum(scales * x ** 2))


def rastrigin(x: np.ndarray) -> float:
    return float(10.0 * len(x) + np.sum(x ** 2 - 10.0 * np.cos(2.0 * np.pi * x)))


def rosenbrock(x: np.ndarray) -> float:
    return float(np.sum(100.0 * (x[1:] - x[:-1] ** 2) ** 2 + (1.0 - x[:-1]) ** 2))


# name -> (objective, default per-dimension bounds)
PROBLEMS: Dict[str, Tuple[Callable[[np.ndarray], float], Tuple[float, float]]] = {
    'sphere': (sphere, (-5.0, 5.0)),
    'ellipsoid': (ellipsoid, (-5.0, 5.0)),
    'rastrigin': (rastrigin, (-5.12, 5.12)),
    'rosenbrock': (rosenbrock, (-5.0, 10.0)),
}


def get_problem(name: str) -> Tuple[Callable[[np.ndarray], float], Tuple[float, float]]:
    if name not in PROBLEMS:
        raise ValueError(f"Unknown function '{name}'. Available: {list(PROBLEMS.keys())}")
    return PROBLEMS[name]
