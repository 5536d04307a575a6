#!/usr/bin/env python3
"""
Benchmark script for the Cutting Stock Problem.

Runs column generation on a few built-in instances and, optionally, the
naive assignment MILP on the same instances for comparison.

Usage:
    python benchmarks/cutting_stock.py
    python benchmarks/cutting_stock.py --pricing dp --compact --compact-time 30
"""

import argparse
import time

from opencp import configure_logging
from opencp.applications.cutting_stock import (
    CuttingStockInstance,
    example_instance,
    solve_compact_model,
    solve_cutting_stock,
)


def builtin_instances():
    """Named instances used by the benchmark."""
    return [
        CuttingStockInstance.from_arrays(10, [5, 3, 2], [4, 6, 5], name="tiny"),
        CuttingStockInstance.from_arrays(100, [45, 36, 31, 14], [10, 10, 10, 10], name="four_widths"),
        CuttingStockInstance.from_arrays(100, [45, 36, 31, 14], [97, 610, 395, 211], name="classic"),
        example_instance(),
    ]


def benchmark_instance(instance, pricing: str, seed: str, iteration_limit: int, verbose: bool = False):
    """Benchmark column generation on a single instance."""
    start = time.time()
    solution = solve_cutting_stock(
        instance,
        seed=seed,
        pricing_method=pricing,
        iteration_limit=iteration_limit,
        verbose=verbose,
    )
    elapsed = time.time() - start

    lb = solution.lower_bound or 0
    rolls = solution.best_integer_rolls
    gap = 100.0 * (rolls - lb) / lb if lb > 0 else None

    return {
        'name': instance.name,
        'n_types': instance.num_items,
        'capacity': instance.roll_width,
        'total_demand': instance.total_demand,
        'l2_lb': solution.lower_bound,
        'lp_obj': solution.lp_objective,
        'ip_obj': rolls,
        'status': solution.status.name,
        'gap': gap,
        'time': elapsed,
        'iterations': solution.iterations,
        'columns': solution.num_columns,
    }


def main():
    parser = argparse.ArgumentParser(description='Benchmark Cutting Stock column generation')
    parser.add_argument('--pricing', choices=['oracle', 'dp'], default='oracle',
                        help='Knapsack pricing method')
    parser.add_argument('--seed', choices=['trivial', 'ffd', 'both'], default='trivial',
                        help='Initial patterns')
    parser.add_argument('--iterations', type=int, default=200, help='Iteration limit (0 = none)')
    parser.add_argument('--compact', action='store_true', help='Also solve the compact MILP')
    parser.add_argument('--compact-time', type=float, default=60.0,
                        help='Time limit for the compact MILP (seconds)')
    parser.add_argument('--log-level', default=None, help='Logging level (default from config)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log every iteration')
    args = parser.parse_args()

    configure_logging(args.log_level)

    instances = builtin_instances()
    results = []

    print(f"\n{'='*100}")
    print(f"Column generation (pricing={args.pricing}, seed={args.seed})")
    print(f"{'='*100}")
    print(f"{'Instance':<15} {'n':>4} {'W':>6} {'L2':>5} {'LP':>10} {'IP':>6} {'Gap%':>6} "
          f"{'Status':>16} {'Time':>8} {'Iter':>5} {'Cols':>5}")
    print('-' * 100)

    for instance in instances:
        result = benchmark_instance(instance, args.pricing, args.seed, args.iterations, args.verbose)
        results.append(result)

        gap_str = f"{result['gap']:.1f}" if result['gap'] is not None else '-'
        print(f"{result['name']:<15} {result['n_types']:>4} {result['capacity']:>6g} "
              f"{result['l2_lb']:>5} {result['lp_obj']:>10.4f} {result['ip_obj']:>6} {gap_str:>6} "
              f"{result['status']:>16} {result['time']:>7.2f}s {result['iterations']:>5} "
              f"{result['columns']:>5}")

    if args.compact:
        print(f"\n{'='*100}")
        print(f"Compact assignment model (time limit {args.compact_time:g}s)")
        print(f"{'='*100}")
        print(f"{'Instance':<15} {'K':>5} {'Rolls':>6} {'Status':>16} {'MIP gap':>9} {'Time':>8}")
        print('-' * 100)

        for instance in instances:
            compact = solve_compact_model(instance, time_limit=args.compact_time)
            rolls_str = str(compact.num_rolls) if compact.has_solution else '-'
            gap_str = f"{compact.gap:.4f}" if compact.gap is not None else '-'
            print(f"{instance.name:<15} {compact.max_rolls:>5} {rolls_str:>6} "
                  f"{compact.status.name:>16} {gap_str:>9} {compact.solve_time:>7.2f}s")

    # Summary
    print(f"\n{'='*80}")
    print("Summary")
    print(f"{'='*80}")

    total_time = sum(r['time'] for r in results)
    at_l2 = sum(1 for r in results if r['ip_obj'] == r['l2_lb'])

    print(f"Total instances: {len(results)}")
    print(f"Total time: {total_time:.2f}s")
    print(f"Integer plans matching the L2 bound: {at_l2}/{len(results)}")


if __name__ == '__main__':
    main()
