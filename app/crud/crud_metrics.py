from typing import Any, Dict, List, Optional
from app.core.config import Settings
from app.models.apm import ProcessorEvent
from app.models.es_fields import AT_TIMESTAMP, SERVICE_NAME
from app.schemas.metrics_chart import ChartBase, Coordinate, GenericMetricsChart, RequestScope, Series
from app.utils.apm_event_client import ApmEventClient
from app.utils.logger import get_logger
from app.utils.queries import environment_query, is_finite_number, kql_query, range_query, term_query

logger = get_logger("search.metrics")

# Color blind safe palette, assigned to series by position
SERIES_COLORS = [
    "#54B399", "#6092C0", "#D36086", "#9170B8", "#CA8EAE",
    "#D6BF57", "#B9A888", "#DA8B45", "#AA6556", "#E7664C",
]


class CRUDMetrics:

    def get_date_histogram_params(self, scope: RequestScope, config: Settings) -> Dict[str, Any]:
        # Agent metrics are reported every METRICS_INTERVAL seconds, smaller buckets would be sparse
        interval = max(scope.bucket_size_in_seconds, config.METRICS_INTERVAL)
        return {
            "field": AT_TIMESTAMP,
            "fixed_interval": f"{interval}s",
            "min_doc_count": 0,
            "extended_bounds": {"min": scope.start, "max": scope.end},
        }

    def build_search_params(
        self,
        *,
        scope: RequestScope,
        config: Settings,
        aggs: Dict[str, Any],
        additional_filters: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        return {
            "apm": {"events": [ProcessorEvent.METRIC]},
            "body": {
                "track_total_hits": 1,
                "size": 0,
                "query": {
                    "bool": {
                        "filter": [
                            *term_query(SERVICE_NAME, scope.service_name),
                            *range_query(scope.start, scope.end),
                            *environment_query(scope.environment),
                            *kql_query(scope.kuery),
                            *(additional_filters or []),
                        ]
                    }
                },
                "aggs": {
                    "timeseriesData": {
                        "date_histogram": self.get_date_histogram_params(scope, config),
                        "aggs": dict(aggs),
                    },
                    **aggs,
                },
            },
        }

    def _get_total_hits(self, response: Dict[str, Any]) -> int:
        total = (response.get("hits") or {}).get("total", 0)
        if isinstance(total, dict):
            return total.get("value", 0)
        return total or 0

    def transform_data_to_metrics_chart(
        self, response: Dict[str, Any], chart_base: ChartBase
    ) -> GenericMetricsChart:
        aggregations = response.get("aggregations") or {}
        buckets = (aggregations.get("timeseriesData") or {}).get("buckets", [])

        series: List[Series] = []
        if self._get_total_hits(response) > 0:
            for index, (series_key, series_meta) in enumerate(chart_base.series.items()):
                overall_value = (aggregations.get(series_key) or {}).get("value")
                data = []
                for bucket in buckets:
                    value = (bucket.get(series_key) or {}).get("value")
                    data.append(
                        Coordinate(x=bucket["key"], y=value if is_finite_number(value) else None)
                    )

                series.append(
                    Series(
                        title=series_meta.title,
                        key=series_key,
                        type=chart_base.type,
                        color=series_meta.color or SERIES_COLORS[index % len(SERIES_COLORS)],
                        overall_value=overall_value if is_finite_number(overall_value) else 0,
                        data=data,
                    )
                )

        return GenericMetricsChart(
            title=chart_base.title,
            key=chart_base.key,
            type=chart_base.type,
            y_unit=chart_base.y_unit,
            description=chart_base.description,
            series=series,
        )

    async def fetch_and_transform_metrics(
        self,
        *,
        event_client: ApmEventClient,
        scope: RequestScope,
        config: Settings,
        chart_base: ChartBase,
        aggs: Dict[str, Any],
        additional_filters: Optional[List[Dict[str, Any]]] = None,
        operation_name: str,
    ) -> GenericMetricsChart:
        """
        Run a metrics aggregation for a chart and map the result onto the chart's series.
        Each key of chart_base.series must name an aggregation in aggs.
        """
        params = self.build_search_params(
            scope=scope,
            config=config,
            aggs=aggs,
            additional_filters=additional_filters,
        )
        response = await event_client.search(operation_name, params)
        chart = self.transform_data_to_metrics_chart(response, chart_base)
        logger.debug(
            f"{operation_name} for {scope.service_name}: "
            f"{len(chart.series)} series, {self._get_total_hits(response)} hits"
        )
        return chart


crud_metrics = CRUDMetrics()
