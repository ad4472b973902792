from app.api.routes.serverless_metrics import router as serverless_metrics_router
