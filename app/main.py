from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api.routes import serverless_metrics_router
from app.core.config import settings
from app.api.middleware import SearchThrottlingMiddleware, RequestLoggingMiddleware
from app.utils.apm_event_client import create_event_client
from app.utils.logger import get_logger

# Initialize logger
logger = get_logger("app")

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API for serverless function latency charts built from APM data",
    version="0.1.0",
)

# Set up CORS
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(SearchThrottlingMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# Include API routes
app.include_router(
    serverless_metrics_router,
    prefix=f"{settings.API_V1_STR}/services",
    tags=["serverless-metrics"],
)

# Startup event
@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.PROJECT_NAME}")
    app.state.event_client = create_event_client()


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.PROJECT_NAME}")
    event_client = getattr(app.state, "event_client", None)
    if event_client is not None:
        await event_client.close()


@app.get("/")
def read_root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}"}


@app.get("/health")
def health_check():
    return {"status": "ok"}
