import asyncio
import math
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from app.core.config import settings
from app.utils.logger import get_logger

logger = get_logger("search.throttling")


class SearchThrottlingMiddleware(BaseHTTPMiddleware):
    """
    Bounds the Elasticsearch load generated by chart requests.

    The budget is counted in searches. Every chart request fans out into
    `searches_per_request` concurrent searches, so at most
    max_concurrent_searches // searches_per_request chart requests run at once.
    A chart request that finds no free slot within the acquire timeout is answered
    with 429 and a Retry-After header. Paths outside `path_prefix` (health checks,
    docs) are never throttled.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_concurrent_searches: int | None = None,
        searches_per_request: int | None = None,
        acquire_timeout_seconds: float | None = None,
        path_prefix: str | None = None,
    ) -> None:
        super().__init__(app)
        self.max_concurrent_searches = max_concurrent_searches or settings.THROTTLE_MAX_CONCURRENT_SEARCHES
        self.searches_per_request = searches_per_request or settings.THROTTLE_SEARCHES_PER_REQUEST
        self.acquire_timeout = acquire_timeout_seconds or settings.THROTTLE_ACQUIRE_TIMEOUT_SECONDS
        self.path_prefix = path_prefix or f"{settings.API_V1_STR}/services/"

        # A single chart request must always fit
        self.max_concurrent_requests = max(self.max_concurrent_searches // self.searches_per_request, 1)
        self._slots = asyncio.Semaphore(self.max_concurrent_requests)
        self._in_flight = 0

    def _concurrency_headers(self) -> dict:
        return {
            "X-Concurrency-Limit": str(self.max_concurrent_requests),
            "X-Concurrency-In-Flight": str(self._in_flight),
        }

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self.acquire_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Search budget exhausted ({self._in_flight * self.searches_per_request}/"
                f"{self.max_concurrent_searches} searches in flight), rejecting {request.url.path}"
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Too many chart searches in flight, retry shortly"},
                headers={
                    "Retry-After": str(math.ceil(self.acquire_timeout)),
                    **self._concurrency_headers(),
                },
            )

        self._in_flight += 1
        try:
            response = await call_next(request)
            response.headers.update(self._concurrency_headers())
            return response
        finally:
            self._in_flight -= 1
            self._slots.release()
