"""
Logging, tracing and metrics for the dashboard sync service.

Importing this module installs the JSON log handler and defines the
service counters. Exporters are wired by setup_opentelemetry, which only
the FastAPI entry point calls; until then the tracer and counters are
OpenTelemetry no-op proxies.
"""
from fireguide_dashboard.app.config import settings
import logging
from opentelemetry import trace, metrics
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader, ConsoleMetricExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME as ResourceAttributesServiceName
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from pythonjsonlogger import jsonlogger

SERVICE_LOGGER_NAME = "fireguide_dashboard"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(module)s %(funcName)s %(lineno)d %(message)s"
LOG_FIELD_RENAMES = {"levelname": "level", "name": "logger_name", "asctime": "timestamp"}
METRIC_EXPORT_INTERVAL_MILLIS = 5000

logger = logging.getLogger(SERVICE_LOGGER_NAME)


def _has_json_handler(root_logger) -> bool:
    return any(isinstance(h.formatter, jsonlogger.JsonFormatter) for h in root_logger.handlers)


def setup_json_logging():
    """Replaces the root handlers with one JSON stream handler. Safe to call twice."""
    root_logger = logging.getLogger()
    if _has_json_handler(root_logger):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(jsonlogger.JsonFormatter(fmt=LOG_FORMAT, rename_fields=LOG_FIELD_RENAMES))
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    level = settings.LOG_LEVEL.upper()
    root_logger.setLevel(level)
    logger.setLevel(level)
    logger.info(f"Service logs are JSON at level {level}.")


def _tracer_provider(resource: Resource) -> TracerProvider:
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    endpoint = settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT
    if endpoint:
        logger.info(f"Spans are also exported over OTLP to {endpoint}.")
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True)))
    return provider


def _meter_provider(resource: Resource) -> MeterProvider:
    readers = [PeriodicExportingMetricReader(ConsoleMetricExporter(), export_interval_millis=METRIC_EXPORT_INTERVAL_MILLIS)]
    endpoint = settings.OTEL_EXPORTER_OTLP_METRICS_ENDPOINT
    if endpoint:
        logger.info(f"Metrics are also exported over OTLP to {endpoint}.")
        readers.append(PeriodicExportingMetricReader(
            OTLPMetricExporter(endpoint=endpoint, insecure=True),
            export_interval_millis=METRIC_EXPORT_INTERVAL_MILLIS,
        ))
    return MeterProvider(resource=resource, metric_readers=readers)


def setup_opentelemetry(service_name: str):
    """Installs the global tracer and meter providers; console exporters are always on."""
    resource = Resource(attributes={ResourceAttributesServiceName: service_name})
    trace.set_tracer_provider(_tracer_provider(resource))
    metrics.set_meter_provider(_meter_provider(resource))
    logger.info(f"Tracing and metrics enabled for {service_name}.")


setup_json_logging()

tracer = trace.get_tracer("fireguide_dashboard.tracer")
meter = metrics.get_meter("fireguide_dashboard.meter")


def _counter(name: str, description: str):
    return meter.create_counter(name=name, description=description, unit="1")


# Fan-out reads absorbed as empty slices, labelled by slice name.
slice_fetch_failures_counter = _counter(
    "fireguide_dashboard.fanout.slice.failures.total",
    "Counts sub-fetches of a fan-out load that failed and were absorbed as empty slices.",
)
evidence_uploads_counter = _counter(
    "fireguide_dashboard.evidence.uploads.total",
    "Counts evidence uploads, partitioned by requirement, encoding and outcome.",
)
notification_mutations_counter = _counter(
    "fireguide_dashboard.notifications.mutations.total",
    "Counts notification read/delete mutations, partitioned by action and outcome.",
)
