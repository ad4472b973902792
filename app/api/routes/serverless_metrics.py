from typing import Any, Optional
from datetime import datetime
from zoneinfo import ZoneInfo
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
from app.api import deps
from app.core.config import settings
from app.crud.crud_serverless_metrics import crud_serverless_metrics
from app.models.apm import ApmDocumentType, ENVIRONMENT_ALL, ROLLUP_INTERVAL_SECONDS, RollupInterval
from app.schemas.metrics_chart import GenericMetricsChart, RequestScope
from app.utils.apm_event_client import ApmEventClient
from app.utils.bucket_size import get_bucket_size
from app.utils.logger import get_logger

logger = get_logger("api.serverless_metrics")

router = APIRouter()


def _to_epoch_millis(value: datetime) -> int:
    # Naive datetimes are taken as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo("UTC"))
    return int(value.timestamp() * 1000)


@router.get(
    "/{service_name}/metrics/serverless/latency-chart",
    response_model=GenericMetricsChart,
)
async def get_serverless_latency_chart(
    *,
    service_name: str,
    start: datetime,
    end: datetime,
    environment: str = Query(ENVIRONMENT_ALL),
    kuery: str = Query(""),
    serverless_id: Optional[str] = Query(None, alias="serverlessId"),
    document_type: ApmDocumentType = Query(ApmDocumentType.TRANSACTION_METRIC, alias="documentType"),
    rollup_interval: RollupInterval = Query(RollupInterval.ONE_MINUTE, alias="rollupInterval"),
    bucket_size_in_seconds: Optional[int] = Query(None, alias="bucketSizeInSeconds", gt=0),
    event_client: ApmEventClient = Depends(deps.get_event_client),
    _: bool = Depends(deps.verify_api_key),
) -> Any:
    """
    Get the latency chart of a serverless function: billed duration and transaction
    duration, both in microseconds
    """
    start_ms = _to_epoch_millis(start)
    end_ms = _to_epoch_millis(end)

    if bucket_size_in_seconds is None:
        bucket_size_in_seconds = get_bucket_size(
            start_ms,
            end_ms,
            min_bucket_size=ROLLUP_INTERVAL_SECONDS[rollup_interval],
        )

    try:
        scope = RequestScope(
            environment=environment,
            kuery=kuery,
            service_name=service_name,
            start=start_ms,
            end=end_ms,
            serverless_id=serverless_id,
            document_type=document_type,
            rollup_interval=rollup_interval,
            bucket_size_in_seconds=bucket_size_in_seconds,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid chart request: {str(e)}")

    try:
        return await crud_serverless_metrics.get_serverless_function_latency_chart(
            event_client=event_client,
            scope=scope,
            config=settings,
        )
    except Exception as e:
        logger.error(f"Error fetching serverless latency chart for {service_name}: {str(e)}")
        raise HTTPException(
            status_code=502, detail=f"Error fetching serverless latency chart: {str(e)}"
        )
