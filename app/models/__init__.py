from app.models.apm import (
    ProcessorEvent,
    ApmDocumentType,
    RollupInterval,
    LatencyAggregationType,
    ENVIRONMENT_ALL,
    ENVIRONMENT_NOT_DEFINED,
)
