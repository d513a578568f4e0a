import copy

import pytest

from lux_crossfilter import CrossfilterController

CATS = [
    {'id': 1, 'name': 'Cecil', 'age': 4, 'colours': ['black', 'white', 'beige'], 'country': ['Russia'], 'cuteness': 11},
    {'id': 2, 'name': 'Boris', 'age': 9, 'colours': ['black', 'white'], 'country': ['Italy'], 'cuteness': 5},
    {'id': 3, 'name': 'Irina', 'age': 6, 'colours': ['ginger', 'beige'], 'country': ['Britain', 'Russia'], 'cuteness': 6},
    {'id': 4, 'name': 'Jimmy', 'age': 12, 'colours': ['black'], 'country': ['Iran'], 'cuteness': 3},
    {'id': 5, 'name': 'Masha', 'age': 4, 'colours': ['brown', 'black', 'beige'], 'country': ['Brazil'], 'cuteness': 14},
    {'id': 6, 'name': 'Gorge', 'age': 6, 'colours': ['blue', 'grey'], 'country': ['Iran'], 'cuteness': 7},
    {'id': 7, 'name': 'Milly', 'age': 7, 'colours': ['black', 'white', 'ginger'], 'country': ['Russia'], 'cuteness': 8},
    {'id': 8, 'name': 'Honey', 'age': 7, 'colours': ['white'], 'country': 'Spain', 'cuteness': 12},
    {'id': 9, 'name': 'Simon', 'age': 15, 'colours': ['black', 'white', 'grey'], 'country': ['Britain'], 'cuteness': 5},
    {'id': 10, 'name': 'Julia', 'age': 11, 'colours': ['black', 'grey', 'ginger'], 'country': ['Russia'], 'cuteness': 13},
]

CUTENESS_THRESHOLD = 9


def filter_map():
    return {
        'colour': {'property': 'colours', 'dimension': 'colour', 'method': 'in_array', 'boolean': 'or'},
        'country': {'property': 'country', 'dimension': 'country', 'method': 'in_array', 'boolean': 'and'},
        'minAge': {'property': 'age', 'dimension': 'age', 'method': 'range_min'},
        'maxAge': {'property': 'age', 'dimension': 'age', 'method': 'range_max'},
        'name': {'property': 'name', 'dimension': 'name', 'method': 'exact'},
        'partialName': {'property': 'name', 'dimension': 'nameRegexp', 'method': 'function'},
        'isCute': {'property': 'cuteness', 'dimension': 'cuteness', 'method': 'function'},
    }


def predicates():
    return {
        'isCute': lambda cuteness: cuteness > CUTENESS_THRESHOLD,
        'partialName': lambda name: name.lower().startswith('m'),
    }


@pytest.fixture
def cats():
    return copy.deepcopy(CATS)


@pytest.fixture
def controller(cats):
    return CrossfilterController(
        filter_map(),
        sort={'sort_property': 'name', 'is_ascending': True},
        predicates=predicates(),
        records=cats,
    )


def names(records):
    return [record['name'] for record in records]


def ids(records):
    return [record['id'] for record in records]
