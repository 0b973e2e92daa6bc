"""
TSP Benchmark Runner
--------------------
Runs the genetic algorithm several times on one city file with different
seeds and summarises the spread of the results (Best, Average, Std.
Deviation). Per-run results can be written to CSV.
"""

import argparse
import time
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from data_generator import load_problem
from genetic_algorithm import GAConfig, GeneticAlgorithmSolver, StopCriteria
from tsp_core import City, Metric, haversine


# ================================
# CONFIGURATION
# ================================
RUNS = 10
GENERATIONS = 500


def run_benchmark(
    cities: List[City],
    config: GAConfig,
    stop: StopCriteria,
    runs: int = RUNS,
    verbose: bool = False,
    metric: Metric = haversine,
) -> pd.DataFrame:
    """One row per run: seed, distance, generations, seconds."""
    rows = []
    for seed in tqdm(range(runs), desc="runs", disable=not verbose):
        run_config = GAConfig(
            population_size=config.population_size,
            mutation_rate=config.mutation_rate,
            elitism=config.elitism,
            random_seed=seed,
        )
        solver = GeneticAlgorithmSolver(cities, run_config, metric=metric)

        start = time.perf_counter()
        best, _ = solver.solve(stop)
        elapsed = time.perf_counter() - start

        rows.append({
            "seed": seed,
            "distance": best.distance,
            "generations": solver.generation,
            "seconds": elapsed,
        })
    return pd.DataFrame(rows, columns=["seed", "distance", "generations", "seconds"])


def summarize(results: pd.DataFrame) -> Dict[str, float]:
    distances = results["distance"].to_numpy()
    return {
        "best": float(np.min(distances)),
        "mean": float(np.mean(distances)),
        "std": float(np.std(distances)),
        "worst": float(np.max(distances)),
        "mean_seconds": float(np.mean(results["seconds"].to_numpy())),
    }


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Repeat GA runs on one city file and compare the results")
    parser.add_argument("file", type=Path)
    parser.add_argument("--runs", type=int, default=RUNS)
    parser.add_argument("--generations", type=int, default=GENERATIONS)
    parser.add_argument("--time-limit", type=float, default=None, help="Seconds per run")
    parser.add_argument("--population-size", type=int, default=GAConfig.population_size)
    parser.add_argument("--mutation-rate", type=float, default=GAConfig.mutation_rate,
                        help="Probability in [0, 1]")
    parser.add_argument("--elitism", type=int, default=GAConfig.elitism)
    parser.add_argument("--csv", type=Path, default=None, help="Write per-run results here")
    args = parser.parse_args(argv)

    problem = load_problem(args.file)
    cities = problem.route
    config = GAConfig(
        population_size=args.population_size,
        mutation_rate=args.mutation_rate,
        elitism=args.elitism,
    ).validate()
    stop = StopCriteria(time_limit=args.time_limit, generations=args.generations).validate()

    print("\n" + "*" * 30)
    print(f"Benchmark for {args.file} ({len(cities)} cities, {args.runs} runs)")
    print("*" * 30)

    results = run_benchmark(cities, config, stop, runs=args.runs, verbose=True, metric=problem.metric)
    print(results.to_string(index=False))

    summary = summarize(results)
    print(f"\nBest: {summary['best']:.2f}  Average: {summary['mean']:.2f}  "
          f"Std: {summary['std']:.2f}  Worst: {summary['worst']:.2f}  "
          f"Avg time: {summary['mean_seconds']:.2f}s")

    if args.csv:
        args.csv.parent.mkdir(parents=True, exist_ok=True)
        results.to_csv(args.csv, index=False)
        print(f"Results saved to {args.csv}")


if __name__ == "__main__":
    main()
