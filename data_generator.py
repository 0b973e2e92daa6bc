import math
import os
import re
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from tsp_core import City, Metric, euclidean, haversine


@dataclass
class Problem:
    """
    Cities for output, the solver's route over them and how to measure it.

    GEO instances report decimal degrees in `cities`; everything else keeps
    the coordinates as written.
    """

    cities: List[City]
    route: List[City]
    metric: Metric
    unit: str


def load_csv_file(path) -> List[City]:
    """
    Load cities from a headerless ``name, latitude, longitude`` CSV file.

    Coordinates are returned as written (degrees); see `prepare_route`.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"City file not found: {path}")

    try:
        frame = pd.read_csv(
            path,
            header=None,
            names=["name", "x", "y"],
            usecols=[0, 1, 2],
            dtype={"name": str},
            skipinitialspace=True,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        raise ValueError(f"No cities found in: {path}")

    try:
        frame[["x", "y"]] = frame[["x", "y"]].astype(float)
    except ValueError as e:
        raise ValueError(f"Invalid coordinates in {path}: {e}") from e

    if frame[["x", "y"]].isna().any().any():
        raise ValueError(f"Missing coordinates in: {path}")
    if len(frame) == 0:
        raise ValueError(f"No cities found in: {path}")

    return [
        City(str(row.name).strip(), float(row.x), float(row.y))
        for row in frame.itertuples(index=False)
    ]


def load_tsp_file(path) -> List[City]:
    """
    Universal TSPLIB loader.
    Reads NODE_COORD_SECTION entries; each city is named by its node id.
    Handles:
        - lowercase/uppercase section names
        - blank lines
        - files that start coordinates without a section header
    """

    if not os.path.exists(path):
        raise FileNotFoundError(f"TSP file not found: {path}")

    with open(path, "r") as f:
        raw_lines = [l.strip() for l in f if l.strip()]

    lines_upper = [l.upper() for l in raw_lines]

    start_index = None
    for i, line in enumerate(lines_upper):
        if "NODE_COORD_SECTION" in line:
            start_index = i + 1
            break

    # Some TSPLIB files omit NODE_COORD_SECTION and start coordinates directly
    if start_index is None:
        for i, line in enumerate(raw_lines):
            if re.match(r"^\s*\d+\s+[-]?\d+(\.\d+)?\s+[-]?\d+(\.\d+)?", line):
                start_index = i
                break

    if start_index is None:
        raise ValueError(f"Could not find coordinate section in: {path}")

    cities = []
    for line in raw_lines[start_index:]:
        if line.upper().startswith("EOF"):
            break

        if not re.match(r"^\d+", line):
            continue

        parts = re.split(r"\s+", line)
        if len(parts) < 3:
            continue

        try:
            x = float(parts[1])
            y = float(parts[2])
        except ValueError:
            continue
        cities.append(City(parts[0], x, y))

    if len(cities) == 0:
        raise ValueError(f"No coordinates parsed in: {path}")

    return cities


def read_edge_weight_type(path) -> Optional[str]:
    """EDGE_WEIGHT_TYPE from a TSPLIB header, upper-cased, or None."""
    with open(path, "r") as f:
        for line in f:
            if "NODE_COORD_SECTION" in line.upper():
                break
            key, _, value = line.partition(":")
            if key.strip().upper() == "EDGE_WEIGHT_TYPE":
                return value.strip().upper()
    return None


def tsplib_geo_degrees(value: float) -> float:
    """TSPLIB GEO coordinates are DDD.MM (degrees and minutes); return decimal degrees."""
    degrees = int(value)
    minutes = value - degrees
    return degrees + 5.0 * minutes / 3.0


def is_tsplib(path) -> bool:
    return str(path).lower().endswith(".tsp")


def load_cities(path) -> List[City]:
    """Pick the reader from the file extension (``.tsp`` or CSV)."""
    if is_tsplib(path):
        return load_tsp_file(path)
    return load_csv_file(path)


def load_problem(path) -> Problem:
    """
    Load a city file and decide how its tours are measured.

    CSV files and TSPLIB ``GEO`` instances are geographic: haversine in km.
    Every other TSPLIB instance (EUC_2D, ATT, CEIL_2D, ...) is planar and
    keeps its coordinates as written.
    """
    cities = load_cities(path)
    if not is_tsplib(path):
        return Problem(cities, prepare_route(cities), haversine, "km")

    if read_edge_weight_type(path) == "GEO":
        degrees = [
            City(city.name, tsplib_geo_degrees(city.x), tsplib_geo_degrees(city.y))
            for city in cities
        ]
        return Problem(degrees, prepare_route(degrees), haversine, "km")

    return Problem(cities, prepare_route(cities, to_radians=False), euclidean, "")


def prepare_route(cities: List[City], to_radians: bool = True) -> List[City]:
    """
    Name each city by its index, so a solved tour can be mapped back to the
    input order, and convert degree coordinates to radians for haversine.
    """
    convert = math.radians if to_radians else float
    return [
        City(str(n), convert(city.x), convert(city.y))
        for n, city in enumerate(cities)
    ]


def generate_random_cities(n: int) -> List[City]:
    """Random cities in the unit square, named by index."""
    cities = []
    for i in range(n):
        city = City.random()
        cities.append(City(str(i), city.x, city.y))
    return cities
