from app.crud.crud_metrics import crud_metrics
from app.crud.crud_transaction_latency import crud_transaction_latency
from app.crud.crud_serverless_metrics import crud_serverless_metrics
