# Elasticsearch field names used by APM documents

AT_TIMESTAMP = "@timestamp"

SERVICE_NAME = "service.name"
SERVICE_ENVIRONMENT = "service.environment"

PROCESSOR_EVENT = "processor.event"
METRICSET_NAME = "metricset.name"
METRICSET_INTERVAL = "metricset.interval"

FAAS_ID = "faas.id"
FAAS_BILLED_DURATION = "faas.billed_duration"

TRANSACTION_DURATION = "transaction.duration.us"
TRANSACTION_DURATION_HISTOGRAM = "transaction.duration.histogram"
