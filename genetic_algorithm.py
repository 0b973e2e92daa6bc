"""
Genetic Algorithm Solver with Time-Limit Support + Convergence Logging
Fitness-proportionate selection, ordered crossover, per-gene swap mutation
and elitist generational replacement.
"""

import enum
import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from tsp_core import City, Metric, Tour, haversine


logger = logging.getLogger(__name__)

# Defaults of the command-line front end.
DEFAULT_POPULATION_SIZE = 20
DEFAULT_MUTATION_RATE = 0.025
DEFAULT_ELITISM = 5

# Safety net for the rejection loop in Population.select().
MAX_SELECT_ATTEMPTS = 100_000


class InvalidConfigError(ValueError):
    """Raised when run parameters are outside their valid ranges."""


@dataclass
class GAConfig:
    population_size: int = DEFAULT_POPULATION_SIZE
    mutation_rate: float = DEFAULT_MUTATION_RATE
    elitism: int = DEFAULT_ELITISM
    random_seed: Optional[int] = None

    def validate(self) -> "GAConfig":
        if self.population_size <= 0:
            raise InvalidConfigError(
                f"population size must be positive, got {self.population_size}"
            )
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise InvalidConfigError(
                f"mutation rate must be within [0, 1], got {self.mutation_rate}"
            )
        if not 0 <= self.elitism <= self.population_size:
            raise InvalidConfigError(
                f"elitism must be within [0, {self.population_size}], got {self.elitism}"
            )
        return self


@dataclass
class StopCriteria:
    """Stop conditions polled once per generation. `None` disables a condition."""

    time_limit: Optional[float] = None
    generations: Optional[int] = None
    target_distance: Optional[float] = None
    should_stop: Optional[Callable[[], bool]] = None

    def validate(self) -> "StopCriteria":
        if self.time_limit is not None and self.time_limit < 0:
            raise InvalidConfigError(f"time limit must not be negative, got {self.time_limit}")
        if self.generations is not None and self.generations < 0:
            raise InvalidConfigError(f"generation budget must not be negative, got {self.generations}")
        if self.target_distance is not None and self.target_distance < 0:
            raise InvalidConfigError(
                f"target distance must not be negative, got {self.target_distance}"
            )
        return self


class Population:
    """Represents an immutable population of tour solutions."""

    def __init__(self, tours: Sequence[Tour]):
        self.tours: Tuple[Tour, ...] = tuple(tours)

    @classmethod
    def randomized(cls, base_tour: Tour, n: int) -> "Population":
        """Population of `n` independent shuffles of `base_tour`."""
        return cls([base_tour.shuffle() for _ in range(n)])

    @property
    def max_fitness(self) -> float:
        return max(tour.fitness for tour in self.tours)

    def find_best(self) -> Tour:
        """First tour whose fitness equals the population maximum."""
        max_fit = self.max_fitness
        return next(tour for tour in self.tours if tour.fitness == max_fit)

    def get_average_distance(self) -> float:
        return float(np.mean([tour.distance for tour in self.tours]))

    def select(self) -> Tour:
        """
        Roulette-wheel selection by rejection sampling.

        A uniformly drawn candidate is accepted with probability
        ``fitness / max_fitness``, so fitter tours are picked more often
        without building a cumulative distribution.
        """
        max_fit = self.max_fitness
        size = len(self.tours)
        for _ in range(MAX_SELECT_ATTEMPTS):
            candidate = self.tours[random.randrange(size)]
            # Also covers max_fit == inf, where the ratio would be nan.
            if candidate.fitness == max_fit:
                weight = 1.0
            else:
                weight = candidate.fitness / max_fit
            if random.random() < weight:
                return candidate.clone()

        logger.warning("selection gave up after %d draws; using the best tour", MAX_SELECT_ATTEMPTS)
        return self.find_best().clone()

    def elite(self, n: int) -> "Population":
        """
        Top `n` tours in non-increasing fitness order.

        Each extracted tour is removed from the working copy together with
        every tour equal to it, so the result is distinct whenever the
        population holds `n` distinct tours. Otherwise the fittest leftover
        copies fill the gap.
        """
        chosen: List[Tour] = []
        pool = list(self.tours)
        while pool and len(chosen) < n:
            best = max(pool, key=lambda t: t.fitness)
            chosen.append(best)
            pool = [t for t in pool if t != best]

        if len(chosen) < n:
            leftovers = list(self.tours)
            for tour in chosen:
                leftovers.remove(tour)
            leftovers.sort(key=lambda t: t.fitness, reverse=True)
            chosen.extend(leftovers[:n - len(chosen)])
            # Stable, so distinct picks stay ahead of equally fit copies.
            chosen.sort(key=lambda t: t.fitness, reverse=True)

        return Population(chosen)

    def gen_new_pop(self, n: int, mutation_rate: float) -> "Population":
        """Breed `n` children: select two parents, cross them, mutate once per gene."""
        children = []
        for _ in range(n):
            child = self.select().crossover(self.select())
            for _ in range(len(child)):
                child = child.mutate(mutation_rate)
            children.append(child)
        return Population(children)

    def evolve(self, config: GAConfig) -> "Population":
        """Next generation: the elite plus freshly bred children."""
        elite = self.elite(config.elitism)
        offspring = self.gen_new_pop(config.population_size - config.elitism, config.mutation_rate)
        return Population(elite.tours + offspring.tours)

    def __len__(self):
        return len(self.tours)

    def __iter__(self):
        return iter(self.tours)

    def __repr__(self):
        return f"Population(size={len(self.tours)}, max_fitness={self.max_fitness:.6g})"


class SolverState(enum.Enum):
    INIT = "init"
    RUNNING = "running"
    STOPPED = "stopped"


ProgressCallback = Callable[[int, Tour, bool], None]


class GeneticAlgorithmSolver:
    """
    Genetic Algorithm solver for TSP

    Drives a Population through successive generations until a stop
    condition fires:
    - time-limit execution
    - generation budget
    - target distance
    - external stop predicate or KeyboardInterrupt
    """

    def __init__(
        self,
        cities: Sequence[City],
        config: Optional[GAConfig] = None,
        metric: Metric = haversine,
    ):
        if len(cities) < 2:
            raise ValueError(f"at least two cities are required, got {len(cities)}")
        if len(set(cities)) != len(cities):
            raise ValueError("the route contains duplicate cities")

        self.cities = list(cities)
        self.config = (config or GAConfig()).validate()
        self.metric = metric

        # GA state
        self.state = SolverState.INIT
        self.population: Optional[Population] = None
        self.generation = 0
        self.best_tour: Optional[Tour] = None
        self.best_distance_history: List[float] = []
        self.stop_reason: Optional[str] = None

    # ---------------------------------------
    # Initialization
    # ---------------------------------------

    def initialize(self):
        if self.config.random_seed is not None:
            random.seed(self.config.random_seed)

        base = Tour(self.cities, metric=self.metric)
        self.population = Population.randomized(base, self.config.population_size)
        self.generation = 0
        self.best_tour = self.population.find_best()
        self.best_distance_history = [self.best_tour.distance]
        self.stop_reason = None
        self.state = SolverState.INIT

        logger.debug(
            "initialized %d tours over %d cities, best distance %.4f",
            self.config.population_size, len(self.cities), self.best_tour.distance,
        )

    # ---------------------------------------
    # Single generation evolution
    # ---------------------------------------

    def evolve_generation(self) -> bool:
        """Replace the population with the next generation; report improvement."""
        old_fitness = self.population.max_fitness
        population = self.population.evolve(self.config)
        best = population.find_best()

        self.population, self.best_tour = population, best
        self.generation += 1
        self.best_distance_history.append(best.distance)
        return best.fitness > old_fitness

    def _check_stop(self, stop: StopCriteria, elapsed: float) -> Optional[str]:
        if stop.time_limit is not None and elapsed >= stop.time_limit:
            return "time limit"
        if stop.generations is not None and self.generation >= stop.generations:
            return "generation budget"
        if stop.should_stop is not None and stop.should_stop():
            return "stop requested"
        if stop.target_distance is not None and self.best_tour.distance < stop.target_distance:
            return "target distance"
        return None

    # ---------------------------------------
    # TIME-LIMITED SOLVE FUNCTION
    # ---------------------------------------

    def solve(
        self,
        stop: Optional[StopCriteria] = None,
        callback: Optional[ProgressCallback] = None,
    ) -> Tuple[Tour, list]:
        """
        Returns:
            best_tour
            log = [(time, best_distance)]
        """
        stop = (stop or StopCriteria()).validate()
        if self.population is None:
            self.initialize()

        start = time.perf_counter()
        log = [(0.0, self.best_tour.distance)]
        self.state = SolverState.RUNNING

        try:
            while True:
                reason = self._check_stop(stop, time.perf_counter() - start)
                if reason is not None:
                    self.stop_reason = reason
                    break

                improved = self.evolve_generation()
                if improved:
                    log.append((time.perf_counter() - start, self.best_tour.distance))
                if callback is not None:
                    callback(self.generation, self.best_tour, improved)
        except KeyboardInterrupt:
            self.stop_reason = "interrupted"

        self.state = SolverState.STOPPED
        logger.info(
            "stopped after %d generations (%s), best distance %.4f",
            self.generation, self.stop_reason, self.best_tour.distance,
        )
        return self.best_tour, log
