import asyncio
from typing import List
from app.core.config import Settings
from app.crud.crud_metrics import crud_metrics
from app.crud.crud_transaction_latency import crud_transaction_latency
from app.models.apm import LatencyAggregationType
from app.models.es_fields import FAAS_BILLED_DURATION, FAAS_ID, METRICSET_NAME
from app.schemas.metrics_chart import ChartBase, Coordinate, GenericMetricsChart, RequestScope, Series, SeriesMeta
from app.utils.apm_event_client import ApmEventClient
from app.utils.logger import get_logger
from app.utils.queries import is_finite_number, term_query

logger = get_logger("search.serverless_metrics")

BILLED_DURATION_AVG = "billedDurationAvg"
TRANSACTION_DURATION = "transaction_duration"

MICROSECONDS_PER_MILLISECOND = 1000


def build_latency_chart_base() -> ChartBase:
    return ChartBase(
        title="Lambda Duration",
        key="avg_duration",
        type="linemark",
        y_unit="time",
        description=(
            "Transaction duration is the time spent processing and responding to a request. "
            "Time a request spends queued counts towards the billed duration "
            "but not towards the transaction duration."
        ),
        series={BILLED_DURATION_AVG: SeriesMeta(title="Billed Duration")},
    )


def billed_duration_to_microseconds(series: Series) -> Series:
    """Billed duration is stored in ms, every other latency series is in microseconds."""
    data = [
        Coordinate(
            x=point.x,
            y=point.y * MICROSECONDS_PER_MILLISECOND if is_finite_number(point.y) else point.y,
        )
        for point in series.data
    ]
    return series.model_copy(
        update={
            "overall_value": series.overall_value * MICROSECONDS_PER_MILLISECOND,
            "data": data,
        }
    )


def merge_latency_chart(
    billed_duration_chart: GenericMetricsChart,
    serverless_duration_series: List[Series],
) -> GenericMetricsChart:
    """
    Combine the billed duration chart and the transaction duration series.

    The billed duration series (converted to microseconds) always comes first. The
    transaction duration series is only appended when it has at least one bucket.
    Neither input is modified.
    """
    series: List[Series] = []

    if billed_duration_chart.series:
        series.append(billed_duration_to_microseconds(billed_duration_chart.series[0]))

    if serverless_duration_series and serverless_duration_series[0].data:
        series.extend(serverless_duration_series)

    return billed_duration_chart.model_copy(update={"series": series})


class CRUDServerlessMetrics:

    async def get_billed_duration_chart(
        self, *, event_client: ApmEventClient, scope: RequestScope, config: Settings
    ) -> GenericMetricsChart:
        return await crud_metrics.fetch_and_transform_metrics(
            event_client=event_client,
            scope=scope,
            config=config,
            chart_base=build_latency_chart_base(),
            aggs={BILLED_DURATION_AVG: {"avg": {"field": FAAS_BILLED_DURATION}}},
            additional_filters=[
                {"exists": {"field": FAAS_BILLED_DURATION}},
                *term_query(FAAS_ID, scope.serverless_id),
                *term_query(METRICSET_NAME, "app"),
            ],
            operation_name="get_billed_duration",
        )

    async def get_serverless_latency_series(
        self, *, event_client: ApmEventClient, scope: RequestScope
    ) -> List[Series]:
        transaction_latency = await crud_transaction_latency.get_latency_timeseries(
            event_client=event_client,
            scope=scope,
            latency_aggregation_type=LatencyAggregationType.AVG,
        )
        overall_avg_duration = transaction_latency.overall_avg_duration

        return [
            Series(
                title="Transaction Duration",
                key=TRANSACTION_DURATION,
                type="linemark",
                overall_value=overall_avg_duration if is_finite_number(overall_avg_duration) else 0,
                data=transaction_latency.latency_timeseries,
            )
        ]

    async def get_serverless_function_latency_chart(
        self, *, event_client: ApmEventClient, scope: RequestScope, config: Settings
    ) -> GenericMetricsChart:
        # Both searches run concurrently, a failure in either fails the chart
        billed_duration_chart, serverless_duration_series = await asyncio.gather(
            self.get_billed_duration_chart(event_client=event_client, scope=scope, config=config),
            self.get_serverless_latency_series(event_client=event_client, scope=scope),
        )

        chart = merge_latency_chart(billed_duration_chart, serverless_duration_series)
        logger.debug(
            f"Serverless latency chart for {scope.service_name} "
            f"(faas.id={scope.serverless_id}): {len(chart.series)} series"
        )
        return chart


crud_serverless_metrics = CRUDServerlessMetrics()
