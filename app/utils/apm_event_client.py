import time
from typing import Any, Dict, List, Optional
from elasticsearch import AsyncElasticsearch
from app.core.config import settings
from app.models.apm import ProcessorEvent
from app.utils.logger import get_logger

logger = get_logger("search")


class ApmEventClient:
    """
    Runs APM searches against Elasticsearch.

    Search params look like {"apm": {"events": [...]}, "body": {...}}. The processor
    events pick the index patterns and the body is sent as the search request.
    """

    def __init__(
        self,
        es_client: AsyncElasticsearch,
        indices: Optional[Dict[ProcessorEvent, str]] = None,
    ):
        self.es_client = es_client
        self.indices = indices or {
            ProcessorEvent.TRANSACTION: settings.APM_TRANSACTION_INDICES,
            ProcessorEvent.METRIC: settings.APM_METRIC_INDICES,
        }

    def get_index(self, events: List[Any]) -> str:
        if not events:
            raise ValueError("APM search params must name at least one processor event")

        patterns: List[str] = []
        for event in events:
            for pattern in self.indices[ProcessorEvent(event)].split(","):
                pattern = pattern.strip()
                if pattern and pattern not in patterns:
                    patterns.append(pattern)
        return ",".join(patterns)

    async def search(self, operation_name: str, params: Dict[str, Any]) -> Dict[str, Any]:
        index = self.get_index(params.get("apm", {}).get("events", []))
        body = params.get("body", {})

        logger.debug(f"Running search '{operation_name}' on {index}")
        start_time = time.perf_counter()
        try:
            response = await self.es_client.search(
                index=index,
                ignore_unavailable=True,
                **body,
            )
        except Exception as e:
            logger.error(f"Error executing search '{operation_name}' on {index}: {str(e)}")
            raise

        logger.debug(
            f"Search '{operation_name}' completed in {time.perf_counter() - start_time:.4f}s"
        )
        return response.body

    async def close(self) -> None:
        await self.es_client.close()


def create_event_client() -> ApmEventClient:
    es_kwargs: Dict[str, Any] = {
        "hosts": settings.ELASTICSEARCH_HOSTS,
        "request_timeout": settings.ELASTICSEARCH_REQUEST_TIMEOUT,
    }
    if settings.ELASTICSEARCH_API_KEY:
        es_kwargs["api_key"] = settings.ELASTICSEARCH_API_KEY
    elif settings.ELASTICSEARCH_USERNAME and settings.ELASTICSEARCH_PASSWORD:
        es_kwargs["basic_auth"] = (settings.ELASTICSEARCH_USERNAME, settings.ELASTICSEARCH_PASSWORD)

    return ApmEventClient(AsyncElasticsearch(**es_kwargs))
