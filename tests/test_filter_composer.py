import pytest
from sqlalchemy import select

from has_filters import InvalidFilterError, UnfilterableAttrError, filter_query
from has_filters.schemas.rules import CompositeRule, LeafRule
from tests.fixtures.models import Filterable, FilterableFriend


@pytest.fixture()
def strings(create):
    Filterable.has_filters(
        "filterable_string",
        "filterable_integer",
        scopes=["with_custom_scope", "with_either_string", "with_integer_between"],
    )
    testing = create(Filterable, filterable_string="testing", filterable_integer=1)
    test = create(Filterable, filterable_string="test", filterable_integer=2)
    return testing, test


def leaf(column, operator, param, **extra):
    return {"column": column, "operator": operator, "param": param, **extra}


def test_no_rules_returns_base_query_unchanged(strings):
    base = select(Filterable).limit(3)
    assert Filterable.filter([], query=base) is base


def test_no_rules_defaults_to_unscoped_query(strings, fetch):
    assert len(fetch(Filterable.filter())) == 2


def test_exclusive_rules_narrow_each_other(strings, fetch):
    rules = [
        leaf("filterable_string", "is", "test"),
        leaf("filterable_string", "containing", "what"),
    ]

    assert fetch(Filterable.filter(rules)) == []


def test_exclusive_rules_keep_common_rows(strings, fetch):
    _, test = strings
    rules = [
        leaf("filterable_string", "containing", "test"),
        leaf("filterable_integer", "more_than", 2),
    ]

    assert fetch(Filterable.filter(rules)) == [test]


def test_inclusive_rules_union(strings, fetch):
    _, test = strings
    rules = [
        leaf("filterable_string", "is", "test"),
        leaf("filterable_string", "containing", "what"),
    ]

    assert fetch(Filterable.filter(rules, "inclusive")) == [test]


def test_conjunction_is_case_insensitive(strings, fetch):
    rules = [
        leaf("filterable_string", "is", "test"),
        leaf("filterable_string", "is", "testing"),
    ]

    assert len(fetch(Filterable.filter(rules, "INCLUSIVE"))) == 2


def test_unknown_conjunction(strings):
    with pytest.raises(InvalidFilterError):
        Filterable.filter([leaf("filterable_string", "is", "test")], "sometimes")


def test_inclusive_rules_respect_base_limit(strings, fetch):
    rules = [
        leaf("filterable_string", "is", "test"),
        leaf("filterable_string", "is", "testing"),
    ]

    assert len(fetch(Filterable.filter(rules, "inclusive", query=select(Filterable).limit(1)))) == 1


def test_inclusive_rules_respect_base_condition(strings, fetch):
    _, test = strings
    rules = [
        leaf("filterable_string", "is", "test"),
        leaf("filterable_string", "is", "testing"),
    ]
    base = select(Filterable).where(Filterable.filterable_string == "test")

    assert fetch(Filterable.filter(rules, "inclusive", query=base)) == [test]


def test_nested_rules(strings, fetch):
    testing, _ = strings
    rules = [
        {
            "conjunction": "inclusive",
            "rules": [
                leaf("filterable_string", "containing", "what"),
                leaf("filterable_string", "is", "testing"),
            ],
        },
        {
            "conjunction": "inclusive",
            "rules": [
                leaf("filterable_string", "is", "test"),
                leaf("filterable_string", "containing", "ing"),
            ],
        },
    ]

    assert fetch(Filterable.filter(rules)) == [testing]


def test_nested_inclusive_rules_under_limited_base(strings, fetch):
    testing, _ = strings
    rules = [
        {
            "conjunction": "inclusive",
            "rules": [
                leaf("filterable_string", "containing", "what"),
                leaf("filterable_string", "is", "testing"),
            ],
        },
        {
            "conjunction": "inclusive",
            "rules": [
                leaf("filterable_string", "is", "test"),
                leaf("filterable_string", "is", "test"),
                leaf("filterable_string", "containing", "ing"),
            ],
        },
    ]

    assert fetch(Filterable.filter(rules, query=select(Filterable).limit(1))) == [testing]


def test_nested_rules_default_to_exclusive(strings, fetch):
    rules = [
        {
            "rules": [
                leaf("filterable_string", "is", "test"),
                leaf("filterable_string", "is", "testing"),
            ],
        }
    ]

    assert fetch(Filterable.filter(rules)) == []


def test_empty_nested_rules_match_everything(strings, fetch):
    assert len(fetch(Filterable.filter([{"rules": [], "conjunction": "inclusive"}]))) == 2


def test_camel_case_keys(strings, fetch):
    _, test = strings
    rules = [{"column": "filterableString", "operator": "is", "param": "test"}]

    assert fetch(Filterable.filter(rules)) == [test]


def test_parsed_rules_are_accepted(strings, fetch):
    testing, _ = strings
    rules = [
        CompositeRule(
            conjunction="inclusive",
            rules=(
                LeafRule(column="filterable_string", operator="is", param="testing"),
                LeafRule(column="filterable_string", operator="is", param="nothing"),
            ),
        )
    ]

    assert fetch(Filterable.filter(rules)) == [testing]


def test_inverted_rule(strings, fetch):
    testing, _ = strings
    rules = [leaf("filterable_string", "is", "test", invert="true")]

    assert fetch(Filterable.filter(rules)) == [testing]


def test_blank_rule_is_identity(strings, fetch):
    assert len(fetch(Filterable.filter([{}]))) == 2
    assert len(fetch(Filterable.filter([{"column": None, "operator": "", "param": None}]))) == 2


@pytest.mark.parametrize("rules", ["wrong", {"column": "filterable_string"}, 12, None])
def test_rules_must_be_a_sequence(strings, rules):
    with pytest.raises(InvalidFilterError):
        Filterable.filter(rules)


@pytest.mark.parametrize("rule", ["wrong", 3, ["filterable_string", "is", "test"]])
def test_rules_must_be_mappings(strings, rule):
    with pytest.raises(InvalidFilterError):
        Filterable.filter([rule])


def test_rule_missing_keys(strings):
    with pytest.raises(InvalidFilterError):
        Filterable.filter([{"not": "real"}])


def test_unknown_operator(strings):
    with pytest.raises(InvalidFilterError):
        Filterable.filter([leaf("filterable_string", "bogus", "test")])


def test_unknown_column(strings):
    with pytest.raises(UnfilterableAttrError):
        Filterable.filter([leaf("name", "is", "test")])


def test_invalid_nested_rule_fails_whole_filter(strings):
    with pytest.raises(InvalidFilterError):
        Filterable.filter([leaf("filterable_string", "is", "test"), {"rules": [{"column": "filterable_string"}]}])


def test_nesting_depth_is_limited(strings):
    rules = [leaf("filterable_string", "is", "test")]
    for _ in range(4):
        rules = [{"rules": rules}]

    with pytest.raises(InvalidFilterError):
        filter_query(Filterable.filter_surface(), rules, max_depth=3)


def test_nesting_within_depth(strings, fetch):
    rules = [leaf("filterable_string", "is", "test")]
    for _ in range(3):
        rules = [{"rules": rules}]

    assert len(fetch(filter_query(Filterable.filter_surface(), rules, max_depth=3))) == 1


def test_scope_without_param(strings, fetch):
    assert len(fetch(Filterable.filter([{"column": "with_custom_scope"}]))) == 2


def test_scope_with_single_param(strings, fetch):
    rules = [{"column": "with_custom_scope", "operator": "is", "param": "anything"}]

    assert len(fetch(Filterable.filter(rules))) == 2


def test_scope_with_multiple_params(strings, fetch):
    rules = [{"column": "with_either_string", "param": ["test", "nothing"]}]

    assert [row.filterable_string for row in fetch(Filterable.filter(rules))] == ["test"]


def test_scope_with_keyword_params(strings, fetch):
    rules = [{"column": "withIntegerBetween", "param": {"low": 2, "high": 5}}]

    assert [row.filterable_string for row in fetch(Filterable.filter(rules))] == ["test"]


def test_scopes_compose_with_rules(strings, fetch):
    rules = [
        {"column": "with_either_string", "param": ["test", "testing"]},
        leaf("filterable_integer", "less_than", 1),
    ]

    assert [row.filterable_string for row in fetch(Filterable.filter(rules))] == ["testing"]


def test_scope_not_allowed_is_treated_as_column(strings):
    FilterableFriend.has_filters("friends_attr")

    with pytest.raises(UnfilterableAttrError):
        FilterableFriend.filter([{"column": "with_friends_attr", "operator": "is", "param": "x"}])


def test_amount_scenario(create, fetch):
    Filterable.has_filters("filterable_integer", "filterable_string")
    amounts = [(5, "small"), (50, "medium"), (500, "large"), (None, "unknown")]
    rows = [create(Filterable, filterable_integer=amount, filterable_string=name) for amount, name in amounts]

    rules = [
        {
            "conjunction": "inclusive",
            "rules": [
                leaf("filterable_integer", "more_than", 100),
                leaf("filterable_integer", "is", None),
            ],
        },
        leaf("filterable_string", "containing", "N", invert=False),
    ]

    assert fetch(Filterable.filter(rules)) == [rows[3]]
