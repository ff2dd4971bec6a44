from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import select

from has_filters import FilterTypeMismatchError, InvalidFilterParam
from has_filters.filters.columns import ColumnTarget
from has_filters.filters.operators import Range
from tests.fixtures.models import Filterable


def integer_range(value) -> Range:
    return Range(select(Filterable), ColumnTarget.for_attribute(Filterable, "filterable_integer"), value)


@pytest.fixture()
def integers(create):
    Filterable.has_filters("filterable_integer", "filterable_date", "filterable_string")
    return {value: create(Filterable, filterable_integer=value) for value in (1, 3, 5, 7)}


def test_python_range(integers, fetch):
    assert fetch(Filterable.by("filterable_integer", {"within": range(2, 6)})) == [integers[3], integers[5]]


def test_list(integers, fetch):
    assert fetch(Filterable.by("filterable_integer", {"within": [3, 5]})) == [integers[3], integers[5]]


def test_unordered_list(integers, fetch):
    assert fetch(Filterable.by("filterable_integer", {"between": [7, 4, 5]})) == [integers[5], integers[7]]


def test_min_max_mapping(integers, fetch):
    assert fetch(Filterable.by("filterable_integer", {"within": {"min": "1", "max": "3"}})) == [
        integers[1],
        integers[3],
    ]


def test_inverted_includes_nulls(integers, create, fetch):
    nil = create(Filterable, filterable_integer=None)
    rows = Filterable.by("filterable_integer", {"within": [2, 6], "invert": True})

    assert fetch(rows) == [integers[1], integers[7], nil]


def test_dates(create, fetch):
    Filterable.has_filters("filterable_date")
    create(Filterable, filterable_date=date.today() - timedelta(days=5))
    recent = create(Filterable, filterable_date=date.today() - timedelta(days=1))

    window = [datetime.now() - timedelta(days=2), datetime.now() + timedelta(days=1)]
    assert fetch(Filterable.by("filterable_date", {"within": window})) == [recent]


def test_bounds():
    assert integer_range(range(1, 6)).bounds() == (1, 5)
    assert integer_range([9, "2", 4]).bounds() == (2, 9)
    assert integer_range((4,)).bounds() == (4, 4)


@pytest.mark.parametrize("param", ["what", 12, None, [], range(0), {"min": 1}, ["what", 1]])
def test_invalid_params(param):
    with pytest.raises(InvalidFilterParam):
        integer_range(param).bounds()


def test_rule_with_invalid_param(integers):
    with pytest.raises(InvalidFilterParam):
        Filterable.filter([{"column": "filterable_integer", "operator": "within", "param": "what"}])


def test_type_mismatch(integers):
    with pytest.raises(FilterTypeMismatchError):
        Filterable.by("filterable_string", {"within": ["a", "c"]})
