import pytest

from app.models.apm import ENVIRONMENT_ALL, ENVIRONMENT_NOT_DEFINED
from app.utils.queries import environment_query, is_finite_number, kql_query, range_query, term_query


@pytest.mark.parametrize("value", [0, 1, -3, 2.5, 1e300])
def test_is_finite_number_accepts_finite_numbers(value):
    assert is_finite_number(value) is True


@pytest.mark.parametrize("value", [None, float("nan"), float("inf"), float("-inf"), "12", True, [1]])
def test_is_finite_number_rejects_everything_else(value):
    assert is_finite_number(value) is False


def test_term_query():
    assert term_query("faas.id", "fn-1") == [{"term": {"faas.id": "fn-1"}}]
    assert term_query("faas.id", None) == []
    assert term_query("faas.id", "") == []


def test_range_query():
    assert range_query(1000, 2000) == [
        {"range": {"@timestamp": {"gte": 1000, "lte": 2000, "format": "epoch_millis"}}}
    ]


def test_environment_query():
    assert environment_query(ENVIRONMENT_ALL) == []
    assert environment_query("") == []
    assert environment_query("staging") == [{"term": {"service.environment": "staging"}}]
    assert environment_query(ENVIRONMENT_NOT_DEFINED) == [
        {"bool": {"must_not": [{"exists": {"field": "service.environment"}}]}}
    ]


def test_kql_query():
    assert kql_query("") == []
    assert kql_query("   ") == []
    assert kql_query('transaction.name:"GET /"') == [{"query_string": {"query": 'transaction.name:"GET /"'}}]
