from app.api.middleware.request_logger import RequestLoggingMiddleware
from app.api.middleware.throttling import SearchThrottlingMiddleware
