"""
CMA-ES Command-Line Interface

Runs the optimizer on a benchmark function.
"""

import sys
import argparse
import json
import logging
import time
from typing import List, Optional

from . import __version__
from .bounds import Bounds
from .config import CMAESConfig, load_params
from .optimizer import CMAES
from .problems import PROBLEMS, get_problem


def build_config(args) -> CMAESConfig:
    """Merge a JSON config file with command-line overrides."""
    params = {}
    if args.config:
        params.update(load_params(args.config))
    if args.sigma is not None:
        params['sigma'] = args.sigma
    if args.mean is not None:
        params['mean'] = args.mean
    if args.covariance is not None:
        params['covariance'] = args.covariance
    if args.lambda_ is not None:
        params['lambda'] = args.lambda_
    if args.alternative_termination:
        params['alternative-termination'] = True
    if args.alternative_generator:
        params['alternative-generator'] = True
    if args.max_attempts is not None:
        params['max-attempts'] = args.max_attempts
    if not any(key == 'mean' or key.startswith('mean.') for key in params):
        params['mean'] = 'center'
    params['seed'] = args.seed
    return CMAESConfig.from_params(params)


def cmd_solve(args):
    """Minimize a benchmark function."""
    print("=" * 60)
    print("CMA-ES Optimizer")
    print("=" * 60)

    objective, (default_lower, default_upper) = get_problem(args.function)
    lower = default_lower if args.lower is None else args.lower
    upper = default_upper if args.upper is None else args.upper

    try:
        bounds = Bounds.uniform(args.dim, lower, upper)
        config = build_config(args)
        optimizer = CMAES(objective, bounds, config)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    print(f"\nFunction: {args.function}")
    print(f"Dimension: {args.dim}")
    print(f"Bounds: [{lower}, {upper}]")
    print(f"Max generations: {args.generations}")

    start = time.time()
    print(f"Lambda: {optimizer.species.lambda_}, mu: {optimizer.species.params.mu}")
    print("\nSolving...")
    try:
        result = optimizer.optimize(args.generations, target=args.target)
    except RuntimeError as e:
        print(f"Error: {e}")
        return 1
    elapsed = time.time() - start

    print("\n" + "-" * 60)
    print("RESULTS")
    print("-" * 60)
    print(f"Stop reason: {result.reason}")
    print(f"Time: {elapsed:.3f}s")
    print(f"Generations: {result.generations}")
    print(f"Evaluations: {result.evaluations}")
    print(f"Best fitness: {result.f_best:.6e}")
    print(f"Final sigma: {result.final_sigma:.6e}")
    if result.x_best is not None:
        x = result.x_best
        print(f"Solution: {x[:min(5, len(x))]}{'...' if len(x) > 5 else ''}")

    if args.output:
        output = {
            'function': args.function,
            'dimension': args.dim,
            'config': config.to_dict(),
            'reason': result.reason,
            'converged': result.converged,
            'generations': result.generations,
            'evaluations': result.evaluations,
            'f_best': result.f_best,
            'x_best': result.x_best.tolist() if result.x_best is not None else None,
            'final_sigma': result.final_sigma,
            'trajectory': result.trajectory,
            'time': elapsed,
        }
        with open(args.output, 'w') as f:
            json.dump(output, f, indent=2)
        print(f"\nResults saved to: {args.output}")

    return 0


def cmd_version(args):
    """Print version information."""
    print(f"cmaes-optimizer {__version__}")
    print("Covariance matrix adaptation evolution strategy")
    return 0


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='cmaes',
        description='CMA-ES - Covariance Matrix Adaptation Evolution Strategy'
    )
    parser.add_argument('--verbose', '-v', action='count', default=0,
                        help='Log strategy diagnostics (-v info, -vv debug)')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Solve command
    solve_parser = subparsers.add_parser('solve', help='Minimize a benchmark function')
    solve_parser.add_argument('function', choices=list(PROBLEMS.keys()),
                              help='Function to optimize')
    solve_parser.add_argument('--dim', '-d', type=int, default=5,
                              help='Dimension (default: 5)')
    solve_parser.add_argument('--generations', '-g', type=int, default=500,
                              help='Max generations (default: 500)')
    solve_parser.add_argument('--target', type=float, default=None,
                              help='Stop when best fitness <= target')
    solve_parser.add_argument('--seed', type=int, default=42,
                              help='Random seed (default: 42)')
    solve_parser.add_argument('--lower', type=float, default=None,
                              help='Lower bound (default: per function)')
    solve_parser.add_argument('--upper', type=float, default=None,
                              help='Upper bound (default: per function)')
    solve_parser.add_argument('--sigma', type=float, default=None,
                              help='Initial step size (default: 1.0)')
    solve_parser.add_argument('--mean', choices=['zero', 'center', 'random'], default=None,
                              help='Initial mean (default: center)')
    solve_parser.add_argument('--covariance', choices=['identity', 'scaled'], default=None,
                              help='Initial covariance (default: identity)')
    solve_parser.add_argument('--lambda', dest='lambda_', type=int, default=None,
                              help='Population size (default: 4 + floor(3 ln n))')
    solve_parser.add_argument('--alternative-termination', action='store_true',
                              help='Stop when the covariance becomes ill-conditioned')
    solve_parser.add_argument('--alternative-generator', action='store_true',
                              help='Repair out-of-bounds genes after repeated rejection')
    solve_parser.add_argument('--max-attempts', type=int, default=None,
                              help='Give up after this many sampling attempts per candidate')
    solve_parser.add_argument('--config', '-c', type=str,
                              help='JSON file of CMA-ES parameters')
    solve_parser.add_argument('--output', '-o', type=str,
                              help='Output JSON file')
    solve_parser.set_defaults(func=cmd_solve)

    # Version command
    ver_parser = subparsers.add_parser('version', help='Print version')
    ver_parser.set_defaults(func=cmd_version)

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
