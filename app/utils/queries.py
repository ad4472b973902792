import math
from typing import Any, Dict, List, Optional

from app.models.apm import ENVIRONMENT_ALL, ENVIRONMENT_NOT_DEFINED
from app.models.es_fields import AT_TIMESTAMP, SERVICE_ENVIRONMENT

QueryClause = Dict[str, Any]


def is_finite_number(value: Any) -> bool:
    """True for int/float values that are neither NaN nor infinite. bools are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def term_query(field: str, value: Optional[Any]) -> List[QueryClause]:
    """
    Build a term filter list for a bool query.
    Returns an empty list when the value is missing so callers can splat it unconditionally.
    """
    if value is None or value == "":
        return []
    return [{"term": {field: value}}]


def range_query(start: int, end: int, field: str = AT_TIMESTAMP) -> List[QueryClause]:
    return [
        {
            "range": {
                field: {
                    "gte": start,
                    "lte": end,
                    "format": "epoch_millis",
                }
            }
        }
    ]


def environment_query(environment: Optional[str]) -> List[QueryClause]:
    if not environment or environment == ENVIRONMENT_ALL:
        return []

    if environment == ENVIRONMENT_NOT_DEFINED:
        return [{"bool": {"must_not": [{"exists": {"field": SERVICE_ENVIRONMENT}}]}}]

    return [{"term": {SERVICE_ENVIRONMENT: environment}}]


def kql_query(kuery: Optional[str]) -> List[QueryClause]:
    # Passed through as-is, the search engine rejects malformed expressions
    if not kuery or not kuery.strip():
        return []
    return [{"query_string": {"query": kuery}}]
