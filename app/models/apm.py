import enum


class ProcessorEvent(str, enum.Enum):
    TRANSACTION = "transaction"
    METRIC = "metric"

class ApmDocumentType(str, enum.Enum):
    TRANSACTION_METRIC = "transactionMetric"
    SERVICE_TRANSACTION_METRIC = "serviceTransactionMetric"
    TRANSACTION_EVENT = "transactionEvent"

class RollupInterval(str, enum.Enum):
    ONE_MINUTE = "1m"
    TEN_MINUTES = "10m"
    SIXTY_MINUTES = "60m"
    NONE = "none"

# Pre-aggregated metric documents cannot be bucketed finer than their rollup interval
ROLLUP_INTERVAL_SECONDS = {
    RollupInterval.ONE_MINUTE: 60,
    RollupInterval.TEN_MINUTES: 600,
    RollupInterval.SIXTY_MINUTES: 3600,
    RollupInterval.NONE: 0,
}

class LatencyAggregationType(str, enum.Enum):
    AVG = "avg"
    P95 = "p95"
    P99 = "p99"


# Pseudo environments understood by environment_query
ENVIRONMENT_ALL = "ENVIRONMENT_ALL"
ENVIRONMENT_NOT_DEFINED = "ENVIRONMENT_NOT_DEFINED"
