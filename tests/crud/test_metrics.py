"""
Test cases for the generic metrics chart pipeline
"""
import pytest
from unittest.mock import patch

from app.core.config import Settings
from app.crud.crud_metrics import SERIES_COLORS, crud_metrics
from app.models.apm import ProcessorEvent
from app.schemas.metrics_chart import ChartBase, SeriesMeta

AGGS = {"cpuAvg": {"avg": {"field": "system.cpu.total.norm.pct"}}}


@pytest.fixture
def config() -> Settings:
    return Settings(METRICS_INTERVAL=30)


@pytest.fixture
def chart_base() -> ChartBase:
    return ChartBase(
        title="CPU usage",
        key="cpu_usage_chart",
        type="linemark",
        y_unit="percent",
        description="Average CPU usage",
        series={
            "cpuAvg": SeriesMeta(title="System avg"),
            "cpuMax": SeriesMeta(title="System max", color="#000000"),
        },
    )


def test_search_params_filters(scope, config):
    params = crud_metrics.build_search_params(
        scope=scope,
        config=config,
        aggs=AGGS,
        additional_filters=[{"exists": {"field": "system.cpu.total.norm.pct"}}],
    )

    assert params["apm"]["events"] == [ProcessorEvent.METRIC]
    body = params["body"]
    assert body["size"] == 0
    assert body["query"]["bool"]["filter"] == [
        {"term": {"service.name": "checkout-lambda"}},
        {"range": {"@timestamp": {"gte": scope.start, "lte": scope.end, "format": "epoch_millis"}}},
        {"term": {"service.environment": "production"}},
        {"exists": {"field": "system.cpu.total.norm.pct"}},
    ]


def test_search_params_aggregations(scope, config):
    params = crud_metrics.build_search_params(scope=scope, config=config, aggs=AGGS)

    aggs = params["body"]["aggs"]
    assert aggs["cpuAvg"] == AGGS["cpuAvg"]
    assert aggs["timeseriesData"]["aggs"] == AGGS
    assert aggs["timeseriesData"]["date_histogram"] == {
        "field": "@timestamp",
        "fixed_interval": "60s",
        "min_doc_count": 0,
        "extended_bounds": {"min": scope.start, "max": scope.end},
    }


def test_search_params_interval_not_below_metrics_interval(scope, config):
    scope = scope.model_copy(update={"bucket_size_in_seconds": 10})

    params = crud_metrics.build_search_params(scope=scope, config=config, aggs=AGGS)

    assert params["body"]["aggs"]["timeseriesData"]["date_histogram"]["fixed_interval"] == "30s"


def test_search_params_kuery_passed_through(scope, config):
    scope = scope.model_copy(update={"kuery": "labels.team:payments", "environment": "ENVIRONMENT_ALL"})

    params = crud_metrics.build_search_params(scope=scope, config=config, aggs=AGGS)

    filters = params["body"]["query"]["bool"]["filter"]
    assert {"query_string": {"query": "labels.team:payments"}} in filters
    assert not any("service.environment" in str(f) for f in filters)


def test_transform_without_hits_returns_no_series(chart_base):
    response = {
        "hits": {"total": {"value": 0, "relation": "eq"}},
        "aggregations": {
            "cpuAvg": {"value": None},
            "timeseriesData": {"buckets": [{"key": 1000, "cpuAvg": {"value": None}}]},
        },
    }

    chart = crud_metrics.transform_data_to_metrics_chart(response, chart_base)

    assert chart.series == []
    assert chart.title == "CPU usage"
    assert chart.key == "cpu_usage_chart"
    assert chart.y_unit == "percent"
    assert chart.description == "Average CPU usage"


def test_transform_maps_buckets_to_series(chart_base):
    response = {
        "hits": {"total": {"value": 12, "relation": "eq"}},
        "aggregations": {
            "cpuAvg": {"value": 0.4},
            "cpuMax": {"value": None},
            "timeseriesData": {
                "buckets": [
                    {"key": 1000, "cpuAvg": {"value": 0.3}, "cpuMax": {"value": 0.9}},
                    {"key": 2000, "cpuAvg": {"value": None}, "cpuMax": {"value": None}},
                    {"key": 3000, "cpuAvg": {"value": 0.5}, "cpuMax": {"value": 0.7}},
                ]
            },
        },
    }

    chart = crud_metrics.transform_data_to_metrics_chart(response, chart_base)

    assert [s.key for s in chart.series] == ["cpuAvg", "cpuMax"]
    avg, maximum = chart.series
    assert avg.title == "System avg"
    assert avg.type == "linemark"
    assert avg.color == SERIES_COLORS[0]
    assert avg.overall_value == 0.4
    assert [(p.x, p.y) for p in avg.data] == [(1000, 0.3), (2000, None), (3000, 0.5)]
    assert maximum.color == "#000000"
    assert maximum.overall_value == 0
    assert [p.x for p in maximum.data] == [1000, 2000, 3000]


def test_transform_accepts_integer_total_and_missing_histogram(chart_base):
    response = {"hits": {"total": 3}, "aggregations": {"cpuAvg": {"value": 0.2}}}

    chart = crud_metrics.transform_data_to_metrics_chart(response, chart_base)

    assert chart.series[0].overall_value == 0.2
    assert chart.series[0].data == []


@pytest.mark.asyncio
async def test_fetch_and_transform_metrics(event_client, scope, config, chart_base):
    event_client.search.return_value = {
        "hits": {"total": {"value": 1, "relation": "eq"}},
        "aggregations": {
            "cpuAvg": {"value": 0.25},
            "timeseriesData": {"buckets": [{"key": 1000, "cpuAvg": {"value": 0.25}}]},
        },
    }

    chart = await crud_metrics.fetch_and_transform_metrics(
        event_client=event_client,
        scope=scope,
        config=config,
        chart_base=chart_base,
        aggs=AGGS,
        operation_name="get_cpu_usage",
    )

    event_client.search.assert_awaited_once()
    operation_name, params = event_client.search.call_args.args
    assert operation_name == "get_cpu_usage"
    assert params["body"]["aggs"]["cpuAvg"] == AGGS["cpuAvg"]
    assert chart.series[0].data[0].y == 0.25


@pytest.mark.asyncio
async def test_fetch_and_transform_metrics_logs_request(event_client, scope, config, chart_base):
    event_client.search.return_value = {"hits": {"total": {"value": 0, "relation": "eq"}}}

    with patch("app.crud.crud_metrics.logger") as mock_logger:
        await crud_metrics.fetch_and_transform_metrics(
            event_client=event_client,
            scope=scope,
            config=config,
            chart_base=chart_base,
            aggs=AGGS,
            operation_name="get_cpu_usage",
        )

    mock_logger.debug.assert_called_once()
    message = mock_logger.debug.call_args.args[0]
    assert "get_cpu_usage" in message
    assert "checkout-lambda" in message
