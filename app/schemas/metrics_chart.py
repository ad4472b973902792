from typing import Dict, List, Optional
from pydantic import BaseModel, Field, model_validator

from app.models.apm import ApmDocumentType, RollupInterval

# =============================================================================
# CHART SCHEMAS
# =============================================================================

class Coordinate(BaseModel):
    """A single bucket of a chart series. `y` is None when the bucket has no value."""
    x: int = Field(..., description="Bucket start as epoch milliseconds")
    y: Optional[float] = Field(None, description="Bucket value, None when absent")

    class Config:
        frozen = True

class SeriesMeta(BaseModel):
    title: str
    color: Optional[str] = None

    class Config:
        frozen = True

class ChartBase(BaseModel):
    """Static chart metadata, built once per request."""
    title: str
    key: str
    type: str
    y_unit: str = Field(..., alias="yUnit")
    description: Optional[str] = None
    series: Dict[str, SeriesMeta] = {}

    class Config:
        frozen = True
        populate_by_name = True

class Series(BaseModel):
    title: str
    key: str
    type: str
    color: Optional[str] = None
    overall_value: float = Field(..., alias="overallValue")
    data: List[Coordinate] = []

    class Config:
        frozen = True
        populate_by_name = True

class GenericMetricsChart(BaseModel):
    title: str
    key: str
    type: str
    y_unit: str = Field(..., alias="yUnit")
    description: Optional[str] = None
    series: List[Series] = []

    class Config:
        frozen = True
        populate_by_name = True

class LatencyTimeseries(BaseModel):
    overall_avg_duration: Optional[float] = Field(None, alias="overallAvgDuration")
    latency_timeseries: List[Coordinate] = Field([], alias="latencyTimeseries")

    class Config:
        frozen = True
        populate_by_name = True

# =============================================================================
# REQUEST SCOPE
# =============================================================================

class RequestScope(BaseModel):
    """Query-shaping parameters shared read-only by every fetch of a chart request."""
    environment: str
    kuery: str = ""
    service_name: str
    start: int = Field(..., description="Window start as epoch milliseconds")
    end: int = Field(..., description="Window end as epoch milliseconds")
    serverless_id: Optional[str] = None
    document_type: ApmDocumentType = ApmDocumentType.TRANSACTION_METRIC
    rollup_interval: RollupInterval = RollupInterval.ONE_MINUTE
    bucket_size_in_seconds: int = Field(..., gt=0)

    class Config:
        frozen = True

    @model_validator(mode="after")
    def validate_time_window(self) -> "RequestScope":
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self
