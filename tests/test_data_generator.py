import math

import pytest

from data_generator import (
    generate_random_cities,
    load_cities,
    load_csv_file,
    load_problem,
    load_tsp_file,
    prepare_route,
    read_edge_weight_type,
    tsplib_geo_degrees,
)
from genetic_algorithm import GAConfig, GeneticAlgorithmSolver, StopCriteria
from tsp_core import City, euclidean, haversine


TSPLIB_SAMPLE = """NAME : sample4
COMMENT : four cities
TYPE : TSP
DIMENSION : 4
EDGE_WEIGHT_TYPE : EUC_2D
node_coord_section
1 0.0 0.0
2 0 10

3 10.5 10
4 10 0
EOF
"""


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "cities.csv"
    path.write_text(
        "Moscow, 55.7558, 37.6173\n"
        "Saint Petersburg, 59.9343, 30.3351\n"
        "Kazan, 55.7963, 49.1088\n",
        encoding="utf-8",
    )
    return path


def test_load_csv_file(csv_file):
    cities = load_csv_file(csv_file)
    assert [city.name for city in cities] == ["Moscow", "Saint Petersburg", "Kazan"]
    assert cities[0].x == pytest.approx(55.7558)
    assert cities[2].y == pytest.approx(49.1088)


def test_load_csv_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_csv_file(tmp_path / "missing.csv")


def test_load_csv_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("")
    with pytest.raises(ValueError):
        load_csv_file(path)


def test_load_csv_bad_coordinates(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("A, north, 37.6\nB, 1.0, 2.0\n")
    with pytest.raises(ValueError):
        load_csv_file(path)


def test_load_csv_missing_column(tmp_path):
    path = tmp_path / "short.csv"
    path.write_text("A, 1.0, 2.0\nB, 3.0\n")
    with pytest.raises(ValueError):
        load_csv_file(path)


def test_load_tsp_file(tmp_path):
    path = tmp_path / "sample4.tsp"
    path.write_text(TSPLIB_SAMPLE)
    cities = load_tsp_file(path)
    assert cities == [
        City("1", 0.0, 0.0),
        City("2", 0.0, 10.0),
        City("3", 10.5, 10.0),
        City("4", 10.0, 0.0),
    ]


def test_load_tsp_file_without_coordinates(tmp_path):
    path = tmp_path / "empty.tsp"
    path.write_text("NAME : nothing\nEOF\n")
    with pytest.raises(ValueError):
        load_tsp_file(path)


def test_load_cities_dispatches_on_extension(tmp_path, csv_file):
    tsp = tmp_path / "sample4.TSP"
    tsp.write_text(TSPLIB_SAMPLE)
    assert len(load_cities(tsp)) == 4
    assert len(load_cities(csv_file)) == 3


def test_prepare_route_converts_to_radians_and_renames(csv_file):
    cities = load_csv_file(csv_file)
    route = prepare_route(cities)
    assert [city.name for city in route] == ["0", "1", "2"]
    assert route[1].x == pytest.approx(math.radians(59.9343))
    assert route[1].y == pytest.approx(math.radians(30.3351))


def test_generate_random_cities():
    cities = generate_random_cities(25)
    assert [city.name for city in cities] == [str(i) for i in range(25)]
    assert all(0.0 <= city.x < 1.0 and 0.0 <= city.y < 1.0 for city in cities)


SQUARE_EUC_2D = """NAME : square4
TYPE : TSP
DIMENSION : 4
EDGE_WEIGHT_TYPE : EUC_2D
NODE_COORD_SECTION
1 0 0
2 10 10
3 0 10
4 10 0
EOF
"""

GEO_SAMPLE = """NAME : geo3
TYPE : TSP
DIMENSION : 3
EDGE_WEIGHT_TYPE: GEO
NODE_COORD_SECTION
1 55.45 37.37
2 59.56 30.20
3 55.47 49.07
EOF
"""


def test_read_edge_weight_type(tmp_path):
    euc = tmp_path / "square4.tsp"
    euc.write_text(SQUARE_EUC_2D)
    geo = tmp_path / "geo3.tsp"
    geo.write_text(GEO_SAMPLE)
    bare = tmp_path / "bare.tsp"
    bare.write_text("1 0 0\n2 1 1\n")

    assert read_edge_weight_type(euc) == "EUC_2D"
    assert read_edge_weight_type(geo) == "GEO"
    assert read_edge_weight_type(bare) is None


@pytest.mark.parametrize("value, degrees", [
    (10.30, 10.5),
    (55.45, 55.75),
    (-12.30, -12.5),
    (7.0, 7.0),
])
def test_tsplib_geo_degrees(value, degrees):
    assert tsplib_geo_degrees(value) == pytest.approx(degrees)


def test_prepare_route_keeps_planar_coordinates():
    route = prepare_route([City("a", 3.0, 4.0), City("b", 0.0, 0.0)], to_radians=False)
    assert route == [City("0", 3.0, 4.0), City("1", 0.0, 0.0)]


def test_load_problem_planar_tsplib(tmp_path):
    path = tmp_path / "square4.tsp"
    path.write_text(SQUARE_EUC_2D)
    problem = load_problem(path)
    assert problem.metric is euclidean
    assert problem.unit == ""
    assert problem.route[1] == City("1", 10.0, 10.0)
    assert [city.name for city in problem.cities] == ["1", "2", "3", "4"]


def test_load_problem_geo_tsplib(tmp_path):
    path = tmp_path / "geo3.tsp"
    path.write_text(GEO_SAMPLE)
    problem = load_problem(path)
    assert problem.metric is haversine
    assert problem.unit == "km"
    assert problem.cities[0].x == pytest.approx(55.75)
    assert problem.route[0].x == pytest.approx(math.radians(55.75))


def test_load_problem_csv_is_geographic(csv_file):
    problem = load_problem(csv_file)
    assert problem.metric is haversine
    assert problem.unit == "km"
    assert problem.cities == load_csv_file(csv_file)


def test_planar_tsplib_solves_to_planar_length(tmp_path):
    path = tmp_path / "square4.tsp"
    path.write_text(SQUARE_EUC_2D)
    problem = load_problem(path)

    config = GAConfig(population_size=30, elitism=3, random_seed=11)
    solver = GeneticAlgorithmSolver(problem.route, config, metric=problem.metric)
    best, _ = solver.solve(StopCriteria(generations=60))

    assert best.distance == pytest.approx(40.0)
