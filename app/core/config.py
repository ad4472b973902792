from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Serverless Metrics API"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # API Key for internal services
    INTERNAL_API_KEY: Optional[str] = None

    # Elasticsearch
    ELASTICSEARCH_HOSTS: List[str] = ["http://localhost:9200"]
    ELASTICSEARCH_API_KEY: Optional[str] = None
    ELASTICSEARCH_USERNAME: Optional[str] = None
    ELASTICSEARCH_PASSWORD: Optional[str] = None
    ELASTICSEARCH_REQUEST_TIMEOUT: int = 30

    # APM data streams
    APM_TRANSACTION_INDICES: str = "traces-apm*,apm-*"
    APM_METRIC_INDICES: str = "metrics-apm*,apm-*"

    # Charts
    METRICS_INTERVAL: int = 30  # seconds, agent metrics reporting interval
    BUCKET_TARGET_COUNT: int = 50

    # Throttling
    THROTTLE_MAX_CONCURRENT_SEARCHES: int = 100  # Elasticsearch searches in flight across chart requests
    THROTTLE_SEARCHES_PER_REQUEST: int = 2  # billed duration + transaction latency
    THROTTLE_ACQUIRE_TIMEOUT_SECONDS: float = 10

    # Logging
    LOG_LEVEL: str = "info"
    LOG_DIR: str = "./logs"
    LOG_TO_FILE: bool = False
    LOG_TIMEZONE: str = "UTC"


    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

settings = Settings()
