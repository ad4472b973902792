"""
This file contains shared fixtures for pytest to use accross all test files.
It handles the fake search client, request scopes and the API test client.
"""
import os

# Settings are read at import time
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-api-key")

import pytest
from typing import Dict, Generator
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from app.api import deps
from app.core.config import settings
from app.main import app
from app.models.apm import ApmDocumentType, RollupInterval
from app.schemas.metrics_chart import RequestScope
from app.utils.apm_event_client import ApmEventClient

START = 1_700_000_000_000
END = 1_700_003_600_000
SERVERLESS_ID = "arn:aws:lambda:us-east-1:123456789012:function:checkout"


@pytest.fixture
def scope() -> RequestScope:
    return RequestScope(
        environment="production",
        kuery="",
        service_name="checkout-lambda",
        start=START,
        end=END,
        serverless_id=SERVERLESS_ID,
        document_type=ApmDocumentType.TRANSACTION_METRIC,
        rollup_interval=RollupInterval.ONE_MINUTE,
        bucket_size_in_seconds=60,
    )


@pytest.fixture
def event_client() -> AsyncMock:
    """An ApmEventClient whose search() is an AsyncMock"""
    client = AsyncMock(spec=ApmEventClient)
    client.search.return_value = {}
    return client


@pytest.fixture
def client(event_client: AsyncMock) -> Generator[TestClient, None, None]:
    """
    Create a FastAPI TestClient that uses the fake search client.
    """
    app.dependency_overrides[deps.get_event_client] = lambda: event_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def api_key_headers() -> Dict[str, str]:
    return {"X-API-Key": settings.INTERNAL_API_KEY}


# Elasticsearch response builders

def _billed_duration_response(points, overall_value, total_hits=1):
    return {
        "hits": {"total": {"value": total_hits, "relation": "eq"}, "hits": []},
        "aggregations": {
            "billedDurationAvg": {"value": overall_value},
            "timeseriesData": {
                "buckets": [
                    {"key": x, "doc_count": 1, "billedDurationAvg": {"value": y}}
                    for x, y in points
                ]
            },
        },
    }


def _latency_response(points, overall_avg_duration):
    return {
        "hits": {"hits": []},
        "aggregations": {
            "overall_avg_duration": {"value": overall_avg_duration},
            "latencyTimeseries": {
                "buckets": [
                    {"key": x, "doc_count": 1, "latency": {"value": y}}
                    for x, y in points
                ]
            },
        },
    }


@pytest.fixture
def billed_duration_response():
    return _billed_duration_response


@pytest.fixture
def latency_response():
    return _latency_response
