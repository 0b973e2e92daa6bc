import xml.etree.ElementTree as ET

import pandas as pd
import pytest

from route_export import (
    GPX_NAMESPACE,
    output_path,
    rotate_to_origin,
    route_cities,
    save_csv,
    save_gpx,
)
from tsp_core import City, Tour, euclidean


@pytest.fixture
def cities():
    return [
        City("Alpha", 10.0, 20.0),
        City("Bravo", 11.0, 20.5),
        City("Charlie", 10.5, 21.0),
        City("Delta", 9.5, 20.5),
    ]


@pytest.fixture
def tour():
    route = [City(str(n), float(n), 0.0) for n in (2, 3, 0, 1)]
    return Tour(route, metric=euclidean)


def test_rotate_to_origin(tour):
    assert rotate_to_origin(tour) == [0, 1, 2, 3]


def test_route_cities(tour, cities):
    assert [city.name for city in route_cities(tour, cities)] == ["Alpha", "Bravo", "Charlie", "Delta"]


def test_output_path(tmp_path, tour):
    path = output_path(tmp_path / "trip.csv", tour, "gpx")
    assert path == tmp_path / f"trip-{tour.distance:.1f}km.gpx"
    assert output_path("trip.csv", tour, "csv", tmp_path / "out").parent == tmp_path / "out"


def test_save_csv(tmp_path, cities, tour):
    path = save_csv(tmp_path / "trip.csv", cities, tour, tmp_path / "out")
    assert path.exists()
    frame = pd.read_csv(path, header=None, names=["name", "x", "y"])
    assert list(frame["name"]) == ["Alpha", "Bravo", "Charlie", "Delta"]
    assert list(frame["x"]) == [10.0, 11.0, 10.5, 9.5]


def test_save_gpx(tmp_path, cities, tour):
    path = save_gpx(tmp_path / "trip.csv", cities, tour)
    assert path.suffix == ".gpx"

    root = ET.parse(path).getroot()
    ns = {"gpx": GPX_NAMESPACE}
    waypoints = root.findall("gpx:wpt", ns)
    assert [wpt.find("gpx:name", ns).text for wpt in waypoints] == [c.name for c in cities]

    points = root.findall("gpx:trk/gpx:trkseg/gpx:trkpt", ns)
    assert len(points) == len(cities) + 1
    assert points[0].attrib == points[-1].attrib
    assert float(points[1].attrib["lat"]) == 11.0
    assert root.find("gpx:trk/gpx:name", ns).text == "trip"


def test_output_path_without_unit(tmp_path, tour):
    path = output_path(tmp_path / "square4.tsp", tour, "csv", unit="")
    assert path == tmp_path / f"square4-{tour.distance:.1f}.csv"


def test_save_gpx_rejects_planar_route(tmp_path, cities, tour):
    with pytest.raises(ValueError):
        save_gpx(tmp_path / "square4.tsp", cities, tour, unit="")
    assert not list(tmp_path.glob("*.gpx"))
