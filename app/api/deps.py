# Dependency injection for the API

from typing import Optional
from fastapi import HTTPException, Header, Request, status
from app.core.config import settings
from app.utils.apm_event_client import ApmEventClient


def verify_api_key(x_api_key: Optional[str] = Header(None)):
    """Verify API key for internal services"""
    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required",
            headers={"X-API-Key": "required"},
        )

    if not settings.INTERNAL_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal API key not configured"
        )

    if x_api_key != settings.INTERNAL_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"X-API-Key": "invalid"},
        )

    return True


def get_event_client(request: Request) -> ApmEventClient:
    event_client = getattr(request.app.state, "event_client", None)
    if event_client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Search client not initialized"
        )
    return event_client
