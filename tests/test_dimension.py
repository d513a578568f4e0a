import math

import pytest

from lux_crossfilter import Crossfilter


@pytest.fixture
def rows():
    return [
        {'id': 1, 'k': 5, 'group': 'a'},
        {'id': 2, 'k': 5, 'group': 'b'},
        {'id': 3, 'k': 1, 'group': 'a'},
        {'id': 4, 'k': None, 'group': 'b'},
        {'id': 5, 'k': 9, 'group': 'a'},
    ]


@pytest.fixture
def cf(rows):
    return Crossfilter(rows)


def key_dim(cf):
    return cf.dimension(lambda r: r['k'], name='k')


def ids(records):
    return [r['id'] for r in records]


def test_unfiltered_top_and_bottom(cf):
    dim = key_dim(cf)
    assert ids(dim.top(math.inf)) == [5, 1, 2, 3, 4]
    assert ids(dim.bottom(math.inf)) == [4, 3, 1, 2, 5]


def test_ties_keep_insertion_order(cf):
    dim = key_dim(cf)
    assert ids(dim.top(3)) == [5, 1, 2]
    assert ids(dim.bottom(4)[2:]) == [1, 2]


def test_non_positive_count_is_empty(cf):
    dim = key_dim(cf)
    assert dim.top(0) == []
    assert dim.bottom(-1) == []


def test_filter_exact(cf):
    dim = key_dim(cf)
    dim.filter_exact(5)
    assert ids(dim.bottom(math.inf)) == [1, 2]
    assert cf.size() == 2


def test_filter_range_is_inclusive(cf):
    dim = key_dim(cf)
    dim.filter_range(1, 5)
    assert ids(dim.bottom(math.inf)) == [3, 1, 2]


def test_filter_range_unbounded_sides(cf):
    dim = key_dim(cf)
    dim.filter_range(None, 4)
    assert ids(dim.top(math.inf)) == [3]
    dim.filter_range(6, math.inf)
    assert ids(dim.top(math.inf)) == [5]
    dim.filter_range(-math.inf, math.inf)
    assert len(dim.top(math.inf)) == 5


def test_filter_function_replaces_previous_filter(cf):
    dim = key_dim(cf)
    dim.filter_exact(9)
    dim.filter_function(lambda k: k is None)
    assert ids(dim.top(math.inf)) == [4]


def test_filter_all(cf):
    dim = key_dim(cf)
    dim.filter_exact(1)
    assert dim.is_filtered
    dim.filter_all()
    assert not dim.is_filtered
    assert cf.size() == 5


def test_filter_dispatch(cf):
    dim = key_dim(cf)
    assert ids(dim.filter((5, 9)).bottom(math.inf)) == [1, 2, 5]
    assert ids(dim.filter(1).bottom(math.inf)) == [3]
    assert ids(dim.filter(lambda k: k == 9).bottom(math.inf)) == [5]
    assert len(dim.filter(None).bottom(math.inf)) == 5


def test_filters_cross_dimensions(cf):
    dim = key_dim(cf)
    group = cf.dimension(lambda r: r['group'], name='group')
    group.filter_exact('a')
    assert ids(dim.top(math.inf)) == [5, 1, 3]
    dim.filter_range(2, None)
    assert ids(group.bottom(math.inf)) == [1, 5]
    assert ids(cf.all_filtered()) == [1, 5]


def test_records_added_later_are_indexed_and_filtered(cf):
    dim = key_dim(cf)
    dim.filter_range(5, None)
    assert cf.add([{'id': 6, 'k': 7, 'group': 'c'}, {'id': 7, 'k': 2, 'group': 'c'}]) == 2
    assert ids(dim.top(math.inf)) == [5, 6, 1, 2]
    assert len(cf) == 7


def test_dimension_created_after_filtering_sees_existing_records(cf):
    key_dim(cf).filter_exact(5)
    group = cf.dimension(lambda r: r['group'])
    assert len(group) == 5
    assert ids(group.bottom(math.inf)) == [1, 2]


def test_keys_of_mixed_types_are_ordered_by_type():
    rows = [
        {'id': 1, 'k': 'b'},
        {'id': 2, 'k': 3},
        {'id': 3, 'k': ['a']},
        {'id': 4, 'k': None},
        {'id': 5, 'k': 1.5},
        {'id': 6, 'k': 'a'},
    ]
    dim = Crossfilter(rows).dimension(lambda r: r['k'])
    assert ids(dim.bottom(math.inf)) == [4, 5, 2, 3, 6, 1]
    dim.filter_exact('a')
    assert ids(dim.top(math.inf)) == [6]
