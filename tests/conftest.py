import random

import pytest

from tsp_core import City, Tour, euclidean


@pytest.fixture(autouse=True)
def seeded_random():
    random.seed(12345)
    yield


@pytest.fixture
def square_cities():
    return [
        City("0", 0.0, 0.0),
        City("1", 0.0, 1.0),
        City("2", 1.0, 1.0),
        City("3", 1.0, 0.0),
    ]


@pytest.fixture
def square_tour(square_cities):
    return Tour(square_cities, metric=euclidean)


@pytest.fixture
def planar_tour():
    cities = [City(str(i), float(i % 5), float(i // 5)) for i in range(15)]
    return Tour(cities, metric=euclidean)
