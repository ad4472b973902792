from typing import Any, Dict, List, Optional
from app.models.apm import ApmDocumentType, LatencyAggregationType, ProcessorEvent, RollupInterval
from app.models.es_fields import (
    AT_TIMESTAMP,
    FAAS_ID,
    METRICSET_INTERVAL,
    METRICSET_NAME,
    PROCESSOR_EVENT,
    SERVICE_NAME,
    TRANSACTION_DURATION,
    TRANSACTION_DURATION_HISTOGRAM,
)
from app.schemas.metrics_chart import Coordinate, LatencyTimeseries, RequestScope
from app.utils.apm_event_client import ApmEventClient
from app.utils.logger import get_logger
from app.utils.queries import environment_query, is_finite_number, kql_query, range_query, term_query

logger = get_logger("search.transaction_latency")

PERCENTS = {
    LatencyAggregationType.P95: 95,
    LatencyAggregationType.P99: 99,
}


class CRUDTransactionLatency:

    # =============================================================================
    # DOCUMENT SOURCE
    # =============================================================================

    def _get_document_source(self, scope: RequestScope) -> Dict[str, Any]:
        """
        Returns the processor events, source filters and duration field for the
        requested transaction document type.
        """
        if scope.document_type == ApmDocumentType.TRANSACTION_EVENT:
            return {
                "events": [ProcessorEvent.TRANSACTION],
                "filters": term_query(PROCESSOR_EVENT, ProcessorEvent.TRANSACTION.value),
                "duration_field": TRANSACTION_DURATION,
            }

        metricset_name = (
            "service_transaction"
            if scope.document_type == ApmDocumentType.SERVICE_TRANSACTION_METRIC
            else "transaction"
        )
        filters = term_query(METRICSET_NAME, metricset_name)
        if scope.rollup_interval != RollupInterval.NONE:
            filters += term_query(METRICSET_INTERVAL, scope.rollup_interval.value)

        return {
            "events": [ProcessorEvent.METRIC],
            "filters": filters,
            "duration_field": TRANSACTION_DURATION_HISTOGRAM,
        }

    # =============================================================================
    # AGGREGATIONS
    # =============================================================================

    def _get_latency_aggregation(
        self, latency_aggregation_type: LatencyAggregationType, field: str
    ) -> Dict[str, Any]:
        if latency_aggregation_type == LatencyAggregationType.AVG:
            return {"avg": {"field": field}}
        return {
            "percentiles": {
                "field": field,
                "percents": [PERCENTS[latency_aggregation_type]],
            }
        }

    def _get_latency_value(
        self, aggregation: Optional[Dict[str, Any]], latency_aggregation_type: LatencyAggregationType
    ) -> Optional[float]:
        if not aggregation:
            return None

        if latency_aggregation_type == LatencyAggregationType.AVG:
            value = aggregation.get("value")
        else:
            percent = float(PERCENTS[latency_aggregation_type])
            value = (aggregation.get("values") or {}).get(str(percent))

        return value if is_finite_number(value) else None

    def build_search_params(
        self, scope: RequestScope, latency_aggregation_type: LatencyAggregationType
    ) -> Dict[str, Any]:
        source = self._get_document_source(scope)
        latency_aggregation = self._get_latency_aggregation(
            latency_aggregation_type, source["duration_field"]
        )

        return {
            "apm": {"events": source["events"]},
            "body": {
                "track_total_hits": False,
                "size": 0,
                "query": {
                    "bool": {
                        "filter": [
                            *term_query(SERVICE_NAME, scope.service_name),
                            *term_query(FAAS_ID, scope.serverless_id),
                            *range_query(scope.start, scope.end),
                            *environment_query(scope.environment),
                            *kql_query(scope.kuery),
                            *source["filters"],
                        ]
                    }
                },
                "aggs": {
                    "overall_avg_duration": latency_aggregation,
                    "latencyTimeseries": {
                        "date_histogram": {
                            "field": AT_TIMESTAMP,
                            "fixed_interval": f"{scope.bucket_size_in_seconds}s",
                            "min_doc_count": 0,
                            "extended_bounds": {"min": scope.start, "max": scope.end},
                        },
                        "aggs": {"latency": latency_aggregation},
                    },
                },
            },
        }

    async def get_latency_timeseries(
        self,
        *,
        event_client: ApmEventClient,
        scope: RequestScope,
        latency_aggregation_type: LatencyAggregationType = LatencyAggregationType.AVG,
    ) -> LatencyTimeseries:
        params = self.build_search_params(scope, latency_aggregation_type)
        response = await event_client.search("get_latency_charts", params)

        aggregations = response.get("aggregations") or {}
        buckets = (aggregations.get("latencyTimeseries") or {}).get("buckets", [])
        logger.debug(
            f"get_latency_charts for {scope.service_name} "
            f"({scope.document_type.value}, {latency_aggregation_type.value}): {len(buckets)} buckets"
        )

        latency_timeseries: List[Coordinate] = [
            Coordinate(
                x=bucket["key"],
                y=self._get_latency_value(bucket.get("latency"), latency_aggregation_type),
            )
            for bucket in buckets
        ]

        return LatencyTimeseries(
            overall_avg_duration=self._get_latency_value(
                aggregations.get("overall_avg_duration"), latency_aggregation_type
            ),
            latency_timeseries=latency_timeseries,
        )


crud_transaction_latency = CRUDTransactionLatency()
