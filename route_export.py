"""
TSP Solver - Route Export
Write a solved tour back out in terms of the original input cities.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional

import pandas as pd

from tsp_core import City, Tour


logger = logging.getLogger(__name__)

GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"


def rotate_to_origin(tour: Tour) -> List[int]:
    """Input indices of the tour, rotated so the route starts at index 0."""
    order = tour.index_order()
    if 0 not in order:
        return order
    start = order.index(0)
    return order[start:] + order[:start]


def route_cities(tour: Tour, cities: List[City]) -> List[City]:
    """Original cities in route order, starting from the first input city."""
    return [cities[n] for n in rotate_to_origin(tour)]


def output_path(
    task, tour: Tour, extension: str, output_dir: Optional[Path] = None, unit: str = "km"
) -> Path:
    """``<output_dir>/<task stem>-<distance><unit>.<extension>``."""
    task = Path(task)
    directory = Path(output_dir) if output_dir is not None else task.parent
    return directory / f"{task.stem}-{tour.distance:.1f}{unit}.{extension}"


def save_csv(
    task, cities: List[City], tour: Tour, output_dir: Optional[Path] = None, unit: str = "km"
) -> Path:
    """Write ``name,x,y`` rows of the route and return the file path."""
    path = output_path(task, tour, "csv", output_dir, unit)
    path.parent.mkdir(parents=True, exist_ok=True)

    frame = pd.DataFrame(
        [(city.name, city.x, city.y) for city in route_cities(tour, cities)],
        columns=["name", "x", "y"],
    )
    frame.to_csv(path, header=False, index=False, encoding="utf-8")
    logger.info("route saved to %s", path)
    return path


def build_gpx(cities: List[City], route: List[City], name: str) -> ET.Element:
    """GPX document: a waypoint per city and a closed track along the route."""
    root = ET.Element("gpx", {"version": "1.1", "creator": "tsp-ga", "xmlns": GPX_NAMESPACE})

    for city in cities:
        wpt = ET.SubElement(root, "wpt", {"lat": repr(city.x), "lon": repr(city.y)})
        ET.SubElement(wpt, "name").text = city.name

    trk = ET.SubElement(root, "trk")
    ET.SubElement(trk, "name").text = name
    segment = ET.SubElement(trk, "trkseg")
    for city in route + route[:1]:
        ET.SubElement(segment, "trkpt", {"lat": repr(city.x), "lon": repr(city.y)})

    return root


def save_gpx(
    task, cities: List[City], tour: Tour, output_dir: Optional[Path] = None, unit: str = "km"
) -> Path:
    """
    Write the route as a GPX track and return the file path.

    Raises:
        ValueError: for planar routes, which have no latitude or longitude.
    """
    if unit != "km":
        raise ValueError("GPX output needs geographic coordinates; use CSV for planar instances")
    path = output_path(task, tour, "gpx", output_dir, unit)
    path.parent.mkdir(parents=True, exist_ok=True)

    root = build_gpx(cities, route_cities(tour, cities), Path(task).stem)
    tree = ET.ElementTree(root)
    ET.indent(tree)
    tree.write(path, encoding="UTF-8", xml_declaration=True)
    logger.info("route saved to %s", path)
    return path


WRITERS = {
    "csv": save_csv,
    "gpx": save_gpx,
}
