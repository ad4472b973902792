from app.schemas.metrics_chart import (
    Coordinate,
    SeriesMeta,
    ChartBase,
    Series,
    GenericMetricsChart,
    LatencyTimeseries,
    RequestScope,
)
