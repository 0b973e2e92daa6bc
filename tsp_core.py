"""
TSP Solver - Core Module
Contains the fundamental data structures for representing the TSP problem:
cities, distance metrics and immutable tours with their genetic operators.
"""

import random
from dataclasses import dataclass
from typing import Callable, Iterable, List, Tuple

import numpy as np


# Sphere with twice the WGS-84 equatorial radius as diameter.
EARTH_DIAMETER_KM = 2.0 * 6378.1370


class TourInvariantError(ValueError):
    """Raised when an operator would break the permutation invariant of a tour."""


def haversine(a: "City", b: "City") -> float:
    """
    Great-circle distance in kilometres.

    `x` is read as latitude and `y` as longitude, both in radians.
    """
    h = 0.5 * (1.0 - np.cos(b.x - a.x) + np.cos(a.x) * np.cos(b.x) * (1.0 - np.cos(b.y - a.y)))
    h = min(1.0, max(0.0, float(h)))
    return EARTH_DIAMETER_KM * float(np.arcsin(np.sqrt(h)))


def euclidean(a: "City", b: "City") -> float:
    """Planar distance, used for synthetic data and tests."""
    dx = a.x - b.x
    dy = a.y - b.y
    return float(np.sqrt(dx * dx + dy * dy))


Metric = Callable[["City", "City"], float]


@dataclass(frozen=True)
class City:
    """Represents a named city with x, y coordinates."""

    name: str
    x: float
    y: float

    def distance_to(self, city: "City", metric: Metric = haversine) -> float:
        """Calculate the distance to another city (haversine by default)."""
        return metric(self, city)

    @staticmethod
    def random() -> "City":
        return City("", random.random(), random.random())

    def __repr__(self):
        return f"City({self.name!r}, {self.x:.4f}, {self.y:.4f})"


class Tour:
    """
    Represents a tour (solution) as an ordered sequence of cities.

    Tours are immutable values: `shuffle`, `crossover` and `mutate` all return
    a new Tour and leave the receiver untouched. A tour of fewer than two
    cities has distance 0.0 and infinite fitness.
    """

    __slots__ = ("cities", "metric", "_distance")

    def __init__(self, cities: Iterable[City] = (), metric: Metric = haversine):
        self.cities: Tuple[City, ...] = tuple(cities)
        self.metric = metric
        self._distance = None

    @classmethod
    def random(cls, n: int, metric: Metric = haversine) -> "Tour":
        """Build a tour of `n` random cities."""
        return cls([City.random() for _ in range(n)], metric=metric)

    @property
    def distance(self) -> float:
        """Total length of the closed route."""
        if self._distance is not None:
            return self._distance

        n = len(self.cities)
        distance = 0.0
        if n > 1:
            for i in range(n):
                distance += self.metric(self.cities[i], self.cities[(i + 1) % n])

        self._distance = distance
        return distance

    @property
    def fitness(self) -> float:
        """Inverse of the distance; higher is better."""
        distance = self.distance
        return 1.0 / distance if distance > 0 else float("inf")

    def _derive(self, cities: Iterable[City]) -> "Tour":
        return Tour(cities, metric=self.metric)

    def clone(self) -> "Tour":
        return self._derive(self.cities)

    def shuffle(self) -> "Tour":
        """Return a uniformly random permutation (Fisher-Yates)."""
        cities = list(self.cities)
        for n in range(len(cities) - 1, 0, -1):
            k = random.randint(0, n)
            cities[k], cities[n] = cities[n], cities[k]
        return self._derive(cities)

    def crossover(self, other: "Tour") -> "Tour":
        """
        Ordered crossover.

        A contiguous segment ``self[i..j]`` keeps its position; every other
        slot is filled with the remaining cities in the order they appear in
        `other`.

        Raises:
            TourInvariantError: if the child is not a permutation of the
                parents' cities (duplicate cities or mismatched parents).
        """
        n = len(self.cities)
        if len(other.cities) != n:
            raise TourInvariantError(
                f"cannot cross a tour of {n} cities with one of {len(other.cities)}"
            )
        if n < 2:
            return self.clone()

        i = random.randrange(n)
        j = random.randrange(i, n)
        segment = self.cities[i:j + 1]

        taken = set(segment)
        rest = [city for city in other.cities if city not in taken]

        child = rest[:i] + list(segment) + rest[i:]
        if len(child) != n:
            raise TourInvariantError(
                f"crossover produced {len(child)} cities instead of {n}; "
                "the route contains duplicate cities"
            )
        return self._derive(child)

    def mutate(self, rate: float) -> "Tour":
        """With probability `rate`, swap two uniformly chosen positions."""
        cities = list(self.cities)
        if cities and random.random() < rate:
            i = random.randrange(len(cities))
            j = random.randrange(len(cities))
            cities[i], cities[j] = cities[j], cities[i]
        return self._derive(cities)

    def index_order(self) -> List[int]:
        """Input positions of the cities, for routes whose names are indices."""
        return [int(city.name) for city in self.cities]

    def __len__(self):
        return len(self.cities)

    def __iter__(self):
        return iter(self.cities)

    def __getitem__(self, index):
        return self.cities[index]

    def __eq__(self, other):
        if not isinstance(other, Tour):
            return NotImplemented
        return self.cities == other.cities

    def __hash__(self):
        return hash(self.cities)

    def __repr__(self):
        return f"Tour(cities={len(self.cities)}, distance={self.distance:.2f})"
