# Copyright 2026 gRPC authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tracing and logging pipelines built from a TelemetryConfiguration."""

import logging
import sys
import threading
from typing import Callable, Dict, List, Optional

from opentelemetry.exporter.otlp.proto.grpc import (
    _log_exporter as grpc_log_exporter,
)
from opentelemetry.exporter.otlp.proto.grpc import (
    trace_exporter as grpc_trace_exporter,
)
from opentelemetry.exporter.otlp.proto.http import (
    _log_exporter as http_log_exporter,
)
from opentelemetry.exporter.otlp.proto.http import (
    trace_exporter as http_trace_exporter,
)
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs import LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk._logs.export import ConsoleLogExporter
from opentelemetry.sdk._logs.export import LogExporter
from opentelemetry.sdk.resources import ProcessResourceDetector
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.resources import SERVICE_NAME
from opentelemetry.sdk.resources import SERVICE_VERSION
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.export import ConsoleSpanExporter
from opentelemetry.sdk.trace.export import SpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_OFF
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.sdk.trace.sampling import ParentBased
from opentelemetry.sdk.trace.sampling import Sampler
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.trace import Tracer

from cryptobroker_cli._configuration import TelemetryConfiguration

_LOGGER = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "cryptobroker-cli"
FALLBACK_SAMPLER = "always_on"
NO_EXPORTER = "none"
_TRACES_PATH = "/v1/traces"
_LOGS_PATH = "/v1/logs"


def _authorization_headers(
    config: TelemetryConfiguration,
) -> Optional[Dict[str, str]]:
    authorization = (config.otlp_authorization or "").strip()
    if not authorization:
        return None
    # gRPC metadata keys must be lower case.
    return {"authorization": authorization}


def _http_endpoint(config: TelemetryConfiguration, path: str) -> Optional[str]:
    if config.otlp_endpoint is None:
        return None
    return config.otlp_endpoint.rstrip("/") + path


def _console_span_exporter(config: TelemetryConfiguration) -> SpanExporter:
    return ConsoleSpanExporter(out=sys.stderr)


def _otlp_grpc_span_exporter(config: TelemetryConfiguration) -> SpanExporter:
    return grpc_trace_exporter.OTLPSpanExporter(
        endpoint=config.otlp_endpoint,
        headers=_authorization_headers(config),
    )


def _otlp_http_span_exporter(config: TelemetryConfiguration) -> SpanExporter:
    return http_trace_exporter.OTLPSpanExporter(
        endpoint=_http_endpoint(config, _TRACES_PATH),
        headers=_authorization_headers(config),
    )


def _console_log_exporter(config: TelemetryConfiguration) -> LogExporter:
    return ConsoleLogExporter(out=sys.stderr)


def _otlp_grpc_log_exporter(config: TelemetryConfiguration) -> LogExporter:
    return grpc_log_exporter.OTLPLogExporter(
        endpoint=config.otlp_endpoint,
        headers=_authorization_headers(config),
    )


def _otlp_http_log_exporter(config: TelemetryConfiguration) -> LogExporter:
    return http_log_exporter.OTLPLogExporter(
        endpoint=_http_endpoint(config, _LOGS_PATH),
        headers=_authorization_headers(config),
    )


# Maps an exporter name to a (description, builder) pair. The Python SDK has
# no OTLP/JSON exporter, so "otlphttp" and "otlpproto" both use OTLP/HTTP
# with protobuf payloads.
SPAN_EXPORTERS = {
    NO_EXPORTER: ("no", None),
    "console": ("console", _console_span_exporter),
    "otlpgrpc": ("grpc", _otlp_grpc_span_exporter),
    "otlphttp": ("http", _otlp_http_span_exporter),
    "otlpproto": ("protobuf", _otlp_http_span_exporter),
}

LOG_EXPORTERS = {
    NO_EXPORTER: ("no", None),
    "console": ("console", _console_log_exporter),
    "otlpgrpc": ("grpc", _otlp_grpc_log_exporter),
    "otlphttp": ("http", _otlp_http_log_exporter),
    "otlpproto": ("protobuf", _otlp_http_log_exporter),
}

SAMPLERS: Dict[str, Callable[[float], Sampler]] = {
    "always": lambda ratio: ALWAYS_ON,
    "always_on": lambda ratio: ALWAYS_ON,
    "never": lambda ratio: ALWAYS_OFF,
    "always_off": lambda ratio: ALWAYS_OFF,
    "traceidratio": TraceIdRatioBased,
    "ratio": TraceIdRatioBased,
    "parentbased_always_on": lambda ratio: ParentBased(root=ALWAYS_ON),
    "parentbased_always_off": lambda ratio: ParentBased(root=ALWAYS_OFF),
    "parentbased_traceidratio": lambda ratio: ParentBased(
        root=TraceIdRatioBased(ratio)
    ),
}


def _exporter_names(names: str) -> List[str]:
    return [name.strip() for name in names.split(",") if name.strip()]


def build_span_exporters(config: TelemetryConfiguration) -> List[SpanExporter]:
    """Builds one exporter per recognized name in config.traces_exporter.

    Unrecognized names are logged and skipped.
    """
    exporters = []
    for name in _exporter_names(config.traces_exporter):
        if name not in SPAN_EXPORTERS:
            _LOGGER.warning(
                '"%s" is not a valid exporter value. Skipping...', name
            )
            continue
        description, builder = SPAN_EXPORTERS[name]
        if builder is None:
            _LOGGER.info("Using no exporter.")
            continue
        exporters.append(builder(config))
        _LOGGER.info("Registered %s exporter.", description)
    return exporters


def build_log_exporters(config: TelemetryConfiguration) -> List[LogExporter]:
    """Builds one exporter per recognized name in config.logs_exporter.

    Unrecognized names are logged and treated like "none".
    """
    exporters = []
    for name in _exporter_names(config.logs_exporter):
        if name not in LOG_EXPORTERS:
            _LOGGER.warning(
                '"%s" is not a valid log exporter value. Skipping...', name
            )
            name = NO_EXPORTER
        description, builder = LOG_EXPORTERS[name]
        if builder is None:
            _LOGGER.info("Using no log exporter.")
            continue
        exporters.append(builder(config))
        _LOGGER.info("Registered %s log exporter.", description)
    return exporters


def build_sampler(config: TelemetryConfiguration) -> Sampler:
    name = config.traces_sampler
    if name not in SAMPLERS:
        _LOGGER.warning(
            "Unknown OTEL_TRACES_SAMPLER value '%s', using %s.",
            name,
            FALLBACK_SAMPLER,
        )
        name = FALLBACK_SAMPLER
    sampler = SAMPLERS[name](config.sampler_ratio)
    _LOGGER.info("%s sampler configured.", name)
    return sampler


def build_resource(config: TelemetryConfiguration) -> Resource:
    return ProcessResourceDetector().detect().merge(
        Resource.create(
            {
                SERVICE_NAME: config.service_name,
                SERVICE_VERSION: config.service_version,
            }
        )
    )


class Telemetry(object):
    """Owns the tracer and logger providers of one CLI run.

    Attributes:
      tracer_provider: The opentelemetry.sdk.trace.TracerProvider.
      logger_provider: The opentelemetry.sdk._logs.LoggerProvider.
      tracer: The Tracer used to create request spans.
    """

    tracer_provider: TracerProvider
    logger_provider: LoggerProvider
    tracer: Tracer

    def __init__(
        self,
        tracer_provider: TracerProvider,
        logger_provider: LoggerProvider,
        instrumentation_name: str = INSTRUMENTATION_NAME,
    ):
        self.tracer_provider = tracer_provider
        self.logger_provider = logger_provider
        self.tracer = tracer_provider.get_tracer(instrumentation_name)
        self._lock = threading.Lock()
        self._shut_down = False
        self._handler = None
        self._handler_logger = None

    def bridge_logging(self, logger: logging.Logger) -> None:
        """Forwards records of a stdlib logger to the logger provider."""
        with self._lock:
            if self._handler is not None:
                return
            self._handler = LoggingHandler(
                level=logging.NOTSET, logger_provider=self.logger_provider
            )
            self._handler_logger = logger
            logger.addHandler(self._handler)

    @property
    def is_shut_down(self) -> bool:
        with self._lock:
            return self._shut_down

    def shutdown(self) -> bool:
        """Flushes and shuts down both providers.

        Only the first call has an effect.

        Returns:
          True if this call performed the shutdown, False otherwise.
        """
        with self._lock:
            if self._shut_down:
                return False
            self._shut_down = True
            handler, self._handler = self._handler, None
            handler_logger, self._handler_logger = self._handler_logger, None
        if handler is not None:
            handler_logger.removeHandler(handler)
        self.tracer_provider.force_flush()
        self.tracer_provider.shutdown()
        self.logger_provider.force_flush()
        self.logger_provider.shutdown()
        return True


def init_tracer_provider(config: TelemetryConfiguration) -> TracerProvider:
    exporters = build_span_exporters(config)
    if not exporters:
        _LOGGER.warning(
            "No valid exporter was provided. Using default provider."
        )
        return TracerProvider(shutdown_on_exit=False)
    provider = TracerProvider(
        sampler=build_sampler(config),
        resource=build_resource(config),
        shutdown_on_exit=False,
    )
    for exporter in exporters:
        provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


def init_logger_provider(config: TelemetryConfiguration) -> LoggerProvider:
    provider = LoggerProvider(
        resource=build_resource(config), shutdown_on_exit=False
    )
    for exporter in build_log_exporters(config):
        provider.add_log_record_processor(BatchLogRecordProcessor(exporter))
    return provider


def init_telemetry(
    config: TelemetryConfiguration, logger: Optional[logging.Logger] = None
) -> Telemetry:
    """Builds the tracing and logging pipelines.

    Args:
      config: A TelemetryConfiguration.
      logger: If given, a stdlib logger whose records are exported through
        the logging pipeline.

    Returns:
      A Telemetry handle. The caller must call its shutdown method.
    """
    telemetry = Telemetry(
        init_tracer_provider(config),
        init_logger_provider(config),
        instrumentation_name=config.service_name,
    )
    if logger is not None:
        telemetry.bridge_logging(logger)
    return telemetry
