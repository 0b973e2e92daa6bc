"""
TSP Solver - Main Application
Solve one or more city files with the genetic algorithm and write the routes.
"""

import argparse
import logging
import re
import sys
import time
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from data_generator import load_problem
from genetic_algorithm import (
    DEFAULT_ELITISM,
    DEFAULT_MUTATION_RATE,
    DEFAULT_POPULATION_SIZE,
    GAConfig,
    GeneticAlgorithmSolver,
    InvalidConfigError,
    StopCriteria,
)
from route_export import WRITERS, route_cities
from tsp_core import Tour


logger = logging.getLogger(__name__)

DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600}


def parse_duration(text: str) -> float:
    """``10``, ``10s``, ``5m`` or ``1h`` to seconds."""
    match = re.fullmatch(r"\s*(\d+(?:\.\d+)?)\s*([smh]?)\s*", text.lower())
    if not match:
        raise argparse.ArgumentTypeError(f"invalid duration: {text!r} (use e.g. 30s, 5m, 1h)")
    return float(match.group(1)) * DURATION_UNITS[match.group(2)]


def parse_length(text: str) -> float:
    """``80`` or ``80km`` to kilometres."""
    match = re.fullmatch(r"\s*(\d+(?:\.\d+)?)\s*(km)?\s*", text.lower())
    if not match:
        raise argparse.ArgumentTypeError(f"invalid route length: {text!r} (use e.g. 80km)")
    return float(match.group(1))


def display(best: Tour, generation: int) -> str:
    return (
        f"Generation {generation}:\n"
        f"Best fitness = {best.fitness}\n"
        f"Best distance = {best.distance}\n"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find a short closed route through geographic points with a genetic algorithm",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Input files hold one "name, latitude, longitude" row per city (degrees),
or TSPLIB NODE_COORD_SECTION data for .tsp files. GEO instances are
measured in km along the earth surface, all other TSPLIB instances in
planar coordinate units.

Examples:
  # Stop after 10 minutes, write a GPX track
  python main.py cities.csv -t10m -o gpx

  # 5000 generations, population 60, 2% mutation, keep the best 6
  python main.py cities.csv -g5000 -p60 -m2 -e6 -v

  # Run until the route is shorter than 80 km (or Ctrl+C)
  python main.py cities.csv -l80km
        """
    )

    parser.add_argument('files', nargs='+', type=Path, help='City files to solve')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Show progress and every improvement')
    parser.add_argument('-g', '--generations', type=int, default=0,
                        help='Stop after this many generations (0 = no limit)')
    parser.add_argument('-p', '--population-size', type=int, default=DEFAULT_POPULATION_SIZE,
                        help=f'Population size (default: {DEFAULT_POPULATION_SIZE})')
    parser.add_argument('-m', '--mutation-rate', type=float, default=DEFAULT_MUTATION_RATE * 100,
                        help=f'Mutation rate in percent (default: {DEFAULT_MUTATION_RATE * 100:g})')
    parser.add_argument('-e', '--elitism', type=int, default=DEFAULT_ELITISM,
                        help=f'Best individuals kept each generation (default: {DEFAULT_ELITISM})')
    parser.add_argument('-o', '--format', choices=sorted(WRITERS), default='csv',
                        help='Output format (default: csv)')
    parser.add_argument('-t', '--time-limit', type=parse_duration, default=None,
                        help='Stop after this long, e.g. 30s, 10m, 1h')
    parser.add_argument('-l', '--length', type=parse_length, default=None,
                        help='Stop once the route is shorter than this, e.g. 80km')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--output-dir', type=Path, default=None,
                        help='Directory for the result files (default: next to the input)')
    parser.add_argument('--plot', action='store_true',
                        help='Plot the route and the convergence history')
    return parser


def stop_criteria(args) -> StopCriteria:
    # Zero means no limit.
    return StopCriteria(
        time_limit=args.time_limit or None,
        generations=args.generations or None,
        target_distance=args.length or None,
    ).validate()


def solve_file(path: Path, config: GAConfig, stop: StopCriteria, args) -> Path:
    """Solve one city file and write its route; returns the written path."""
    problem = load_problem(path)
    if args.format == "gpx" and problem.unit != "km":
        raise ValueError("GPX output needs geographic coordinates; use -o csv for planar instances")
    logger.info("loaded %d cities from %s", len(problem.cities), path)

    solver = GeneticAlgorithmSolver(problem.route, config, metric=problem.metric)
    solver.initialize()

    if args.verbose:
        print(display(solver.best_tour, 0))

    start = time.perf_counter()
    with tqdm(total=stop.generations, unit="gen", disable=not args.verbose, leave=False) as pbar:
        def progress(generation: int, best: Tour, improved: bool):
            pbar.update(1)
            pbar.set_postfix(distance=f"{best.distance:.1f}")
            if improved:
                tqdm.write(display(best, generation))

        best, _ = solver.solve(stop, callback=progress)
    elapsed = time.perf_counter() - start

    if args.verbose:
        print(f"Time: {elapsed:.0f} sec ({solver.generation} generations, stopped by {solver.stop_reason})")
        print(f"Average distance in last generation = {solver.population.get_average_distance():.1f}")

    written = WRITERS[args.format](path, problem.cities, best, args.output_dir, unit=problem.unit)
    print(f"{path.name}: {best.distance:.1f} {problem.unit or 'units'} -> {written}")

    if args.plot:
        from visualization import TSPVisualizer

        visualizer = TSPVisualizer()
        visualizer.plot_route(
            route_cities(best, problem.cities), best.distance, title=path.stem, unit=problem.unit
        )
        visualizer.plot_convergence(solver.best_distance_history, unit=problem.unit)

    return written


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the TSP solver application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    try:
        config = GAConfig(
            population_size=args.population_size,
            mutation_rate=args.mutation_rate / 100.0,
            elitism=args.elitism,
            random_seed=args.seed,
        ).validate()
        stop = stop_criteria(args)
    except InvalidConfigError as e:
        parser.error(str(e))

    failures = 0
    for path in args.files:
        try:
            solve_file(path, config, stop, args)
        except (OSError, ValueError) as e:
            failures += 1
            logger.error("failed to solve %s: %s", path, e)

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
