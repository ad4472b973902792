import pytest
from unittest.mock import AsyncMock, MagicMock

from app.models.apm import ProcessorEvent
from app.utils.apm_event_client import ApmEventClient

INDICES = {
    ProcessorEvent.TRANSACTION: "traces-apm*,apm-*",
    ProcessorEvent.METRIC: "metrics-apm*, apm-*",
}


@pytest.fixture
def es_client() -> MagicMock:
    es_client = MagicMock()
    es_client.search = AsyncMock(return_value=MagicMock(body={"hits": {"hits": []}}))
    es_client.close = AsyncMock()
    return es_client


def test_get_index_for_single_event(es_client):
    client = ApmEventClient(es_client, indices=INDICES)

    assert client.get_index([ProcessorEvent.METRIC]) == "metrics-apm*,apm-*"
    assert client.get_index(["transaction"]) == "traces-apm*,apm-*"


def test_get_index_merges_patterns_without_duplicates(es_client):
    client = ApmEventClient(es_client, indices=INDICES)

    assert client.get_index([ProcessorEvent.TRANSACTION, ProcessorEvent.METRIC]) == "traces-apm*,apm-*,metrics-apm*"


def test_get_index_requires_events(es_client):
    client = ApmEventClient(es_client, indices=INDICES)

    with pytest.raises(ValueError):
        client.get_index([])


@pytest.mark.asyncio
async def test_search_sends_body(es_client):
    client = ApmEventClient(es_client, indices=INDICES)
    body = {"size": 0, "track_total_hits": 1, "query": {"match_all": {}}, "aggs": {}}

    result = await client.search("get_billed_duration", {"apm": {"events": [ProcessorEvent.METRIC]}, "body": body})

    assert result == {"hits": {"hits": []}}
    es_client.search.assert_awaited_once_with(
        index="metrics-apm*,apm-*",
        ignore_unavailable=True,
        size=0,
        track_total_hits=1,
        query={"match_all": {}},
        aggs={},
    )


@pytest.mark.asyncio
async def test_search_reraises_errors(es_client):
    es_client.search.side_effect = ConnectionError("connection refused")
    client = ApmEventClient(es_client, indices=INDICES)

    with pytest.raises(ConnectionError):
        await client.search("get_latency_charts", {"apm": {"events": ["transaction"]}, "body": {}})


@pytest.mark.asyncio
async def test_close(es_client):
    client = ApmEventClient(es_client, indices=INDICES)

    await client.close()

    es_client.close.assert_awaited_once()
