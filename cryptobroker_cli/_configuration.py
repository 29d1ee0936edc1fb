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
"""Environment driven configuration, read once at process start."""

import collections
import logging
import os
from typing import Mapping, Optional

SERVICE_NAME_KEY = "OTEL_SERVICE_NAME"
SERVICE_VERSION_KEY = "OTEL_SERVICE_VERSION"
TRACES_EXPORTER_KEY = "OTEL_TRACES_EXPORTER"
TRACES_SAMPLER_KEY = "OTEL_TRACES_SAMPLER"
TRACES_SAMPLER_ARG_KEY = "OTEL_TRACES_SAMPLER_ARG"
LOGS_EXPORTER_KEY = "OTEL_LOGS_EXPORTER"
OTLP_ENDPOINT_KEY = "OTEL_EXPORTER_OTLP_ENDPOINT"
OTLP_AUTHORIZATION_KEY = "OTEL_EXPORTER_OTLP_HEADERS_AUTHORIZATION"
BROKER_TARGET_KEY = "CRYPTO_BROKER_TARGET"
BROKER_READY_TIMEOUT_KEY = "CRYPTO_BROKER_READY_TIMEOUT"
LOG_LEVEL_KEY = "CRYPTO_BROKER_LOG_LEVEL"

DEFAULT_SERVICE_NAME = "unknown service name"
DEFAULT_SERVICE_VERSION = "unknown service version"
DEFAULT_TRACES_EXPORTER = "console"
DEFAULT_TRACES_SAMPLER = "always"
DEFAULT_SAMPLER_RATIO = 1.0
DEFAULT_LOGS_EXPORTER = "console"
DEFAULT_BROKER_TARGET = "unix:///tmp/cryptobroker.sock"
DEFAULT_READY_TIMEOUT_S = 30.0
DEFAULT_LOG_LEVEL = "INFO"


class TelemetryConfiguration(
    collections.namedtuple(
        "TelemetryConfiguration",
        (
            "service_name",
            "service_version",
            "traces_exporter",
            "traces_sampler",
            "sampler_ratio",
            "logs_exporter",
            "otlp_endpoint",
            "otlp_authorization",
        ),
    )
):
    """Settings for the tracing and logging pipelines.

    Attributes:
      service_name: Value of the service.name resource attribute.
      service_version: Value of the service.version resource attribute.
      traces_exporter: Comma-separated list of trace exporter names.
      traces_sampler: Name of the trace sampler.
      sampler_ratio: Ratio used by the ratio based samplers.
      logs_exporter: Comma-separated list of log exporter names.
      otlp_endpoint: The collector endpoint, or None to use the exporter's
        own default.
      otlp_authorization: Value of the authorization header sent to the
        collector. Empty means no header.
    """


class BrokerConfiguration(
    collections.namedtuple(
        "BrokerConfiguration", ("target", "ready_timeout", "log_level")
    )
):
    """Settings for the connection to the broker.

    Attributes:
      target: The gRPC target of the broker.
      ready_timeout: Seconds to wait for the channel to become ready.
      log_level: Name of the stdlib logging level used by the console.
    """


class Configuration(
    collections.namedtuple("Configuration", ("telemetry", "broker"))
):
    pass


def _get(environ: Mapping[str, str], key: str, default: str) -> str:
    value = environ.get(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def _parse_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got '{raw}'.") from None


def _parse_log_level(environ: Mapping[str, str]) -> str:
    level = _get(environ, LOG_LEVEL_KEY, DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"{LOG_LEVEL_KEY} is not a logging level: '{level}'.")
    return level


def telemetry_configuration(
    environ: Optional[Mapping[str, str]] = None,
) -> TelemetryConfiguration:
    if environ is None:
        environ = os.environ
    return TelemetryConfiguration(
        service_name=_get(environ, SERVICE_NAME_KEY, DEFAULT_SERVICE_NAME),
        service_version=_get(
            environ, SERVICE_VERSION_KEY, DEFAULT_SERVICE_VERSION
        ),
        traces_exporter=_get(
            environ, TRACES_EXPORTER_KEY, DEFAULT_TRACES_EXPORTER
        ),
        traces_sampler=_get(
            environ, TRACES_SAMPLER_KEY, DEFAULT_TRACES_SAMPLER
        ),
        sampler_ratio=_parse_float(
            environ, TRACES_SAMPLER_ARG_KEY, DEFAULT_SAMPLER_RATIO
        ),
        logs_exporter=_get(environ, LOGS_EXPORTER_KEY, DEFAULT_LOGS_EXPORTER),
        otlp_endpoint=environ.get(OTLP_ENDPOINT_KEY) or None,
        otlp_authorization=environ.get(OTLP_AUTHORIZATION_KEY, ""),
    )


def broker_configuration(
    environ: Optional[Mapping[str, str]] = None,
) -> BrokerConfiguration:
    if environ is None:
        environ = os.environ
    ready_timeout = _parse_float(
        environ, BROKER_READY_TIMEOUT_KEY, DEFAULT_READY_TIMEOUT_S
    )
    if ready_timeout <= 0:
        raise ValueError(
            f"{BROKER_READY_TIMEOUT_KEY} must be positive, got {ready_timeout}."
        )
    return BrokerConfiguration(
        target=_get(environ, BROKER_TARGET_KEY, DEFAULT_BROKER_TARGET),
        ready_timeout=ready_timeout,
        log_level=_parse_log_level(environ),
    )


def configuration_from_environ(
    environ: Optional[Mapping[str, str]] = None,
) -> Configuration:
    """Reads the whole configuration from the environment.

    Args:
      environ: The mapping to read from. Defaults to os.environ.

    Returns:
      A Configuration.

    Raises:
      ValueError: If a numeric or level setting cannot be parsed.
    """
    if environ is None:
        environ = os.environ
    return Configuration(
        telemetry=telemetry_configuration(environ),
        broker=broker_configuration(environ),
    )
