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
"""Issues one traced broker request per execution and prints the result."""

import contextlib
import json
import logging
import sys
import time
from typing import Any, Dict, Iterator, Optional, TextIO

from opentelemetry.trace import Span
from opentelemetry.trace import SpanKind
from opentelemetry.trace import Status
from opentelemetry.trace import StatusCode
from opentelemetry.trace import Tracer

from cryptobroker_cli import _parser
from cryptobroker_cli._client import BrokerClient
from cryptobroker_cli._records import CRL_DISTRIBUTION_POINTS
from cryptobroker_cli._records import BenchmarkRequest
from cryptobroker_cli._records import HashRequest
from cryptobroker_cli._records import SignOptions
from cryptobroker_cli._records import SignRequest
from cryptobroker_cli._records import new_metadata

_LOGGER = logging.getLogger(__name__)

BROKER_SERVICE = "cryptobroker.v1.CryptoBroker"
HEALTH_SERVICE = "grpc.health.v1.Health"

RPC_SYSTEM_ATTRIBUTE = "rpc.system"
RPC_SERVICE_ATTRIBUTE = "rpc.service"
RPC_METHOD_ATTRIBUTE = "rpc.method"
PROFILE_ATTRIBUTE = "cryptobroker.profile"
INPUT_SIZE_ATTRIBUTE = "cryptobroker.input.size"
OUTPUT_SIZE_ATTRIBUTE = "cryptobroker.output.size"
CSR_SIZE_ATTRIBUTE = "cryptobroker.csr.size"
CA_CERT_SIZE_ATTRIBUTE = "cryptobroker.ca_cert.size"
CA_KEY_SIZE_ATTRIBUTE = "cryptobroker.ca_key.size"
CERTIFICATE_SIZE_ATTRIBUTE = "cryptobroker.certificate.size"
BENCHMARK_SIZE_ATTRIBUTE = "cryptobroker.benchmark.size"
HEALTH_STATUS_ATTRIBUTE = "cryptobroker.health.status"


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _render(response) -> str:
    return json.dumps(response.to_json_dict(), indent=2)


class RequestExecutor(object):
    """Runs the command of an Invocation against a BrokerClient.

    Every execution issues exactly one remote call inside a client span.
    Failures are recorded on the span and re-raised unchanged.
    """

    def __init__(
        self,
        client: BrokerClient,
        tracer: Tracer,
        invocation: _parser.Invocation,
        output: Optional[TextIO] = None,
    ):
        self._client = client
        self._tracer = tracer
        self._invocation = invocation
        self._output = output
        self._commands = {
            _parser.HASH: self._hash,
            _parser.SIGN: self._sign,
            _parser.HEALTH: self._health,
            _parser.BENCHMARK: self._benchmark,
        }
        if invocation.command not in _parser.COMMANDS:
            raise ValueError(f"Unknown command '{invocation.command}'.")

    def _print(self, *args) -> None:
        print(*args, file=self._output or sys.stdout)

    @contextlib.contextmanager
    def _rpc_span(
        self, service: str, method: str, attributes: Dict[str, Any]
    ) -> Iterator[Span]:
        span_attributes = {
            RPC_SYSTEM_ATTRIBUTE: "grpc",
            RPC_SERVICE_ATTRIBUTE: service,
            RPC_METHOD_ATTRIBUTE: method,
        }
        span_attributes.update(attributes)
        with self._tracer.start_as_current_span(
            f"{service}/{method}",
            kind=SpanKind.CLIENT,
            attributes=span_attributes,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            try:
                yield span
            except Exception as exception:
                span.record_exception(exception)
                span.set_status(
                    Status(
                        StatusCode.ERROR,
                        f"{type(exception).__name__}: {exception}",
                    )
                )
                raise
            span.set_status(Status(StatusCode.OK))

    @staticmethod
    def _timed(label: str, call, *args):
        start = time.perf_counter_ns()
        try:
            return call(*args)
        finally:
            elapsed_us = (time.perf_counter_ns() - start) // 1000
            _LOGGER.info("%s took %d µs", label, elapsed_us)

    def execute(self):
        """Runs the invocation's command once.

        Returns:
          The response record of the remote call.

        Raises:
          Exception: Whatever the client or the file system raised.
        """
        return self._commands[self._invocation.command]()

    def _hash(self):
        invocation = self._invocation
        data = invocation.data.encode("utf-8")
        with self._rpc_span(
            BROKER_SERVICE,
            "Hash",
            {
                PROFILE_ATTRIBUTE: invocation.profile,
                INPUT_SIZE_ATTRIBUTE: len(data),
            },
        ) as span:
            request = HashRequest(
                profile=invocation.profile,
                input=data,
                metadata=new_metadata(span.get_span_context()),
            )
            _LOGGER.info(
                "Hashing '%s' using \"%s\" profile...",
                invocation.data,
                invocation.profile,
            )
            response = self._timed(
                "Data Hashing", self._client.hash_data, request
            )
            span.set_attribute(OUTPUT_SIZE_ATTRIBUTE, len(response.hash_value))
        if invocation.data_only:
            self._print(response.hash_value)
        else:
            self._print("Hashed response:\n" + _render(response))
        return response

    def _sign(self):
        invocation = self._invocation
        with self._rpc_span(
            BROKER_SERVICE, "Sign", {PROFILE_ATTRIBUTE: invocation.profile}
        ) as span:
            csr = _read_text(invocation.csr)
            ca_cert = _read_text(invocation.ca_cert)
            ca_private_key = _read_text(invocation.ca_key)
            span.set_attributes(
                {
                    CSR_SIZE_ATTRIBUTE: len(csr),
                    CA_CERT_SIZE_ATTRIBUTE: len(ca_cert),
                    CA_KEY_SIZE_ATTRIBUTE: len(ca_private_key),
                }
            )
            subject = invocation.subject or None
            if subject is not None:
                _LOGGER.info(
                    'Note: The CSR subject will be overwritten by "%s".',
                    subject,
                )
            request = SignRequest(
                profile=invocation.profile,
                csr=csr,
                ca_cert=ca_cert,
                ca_private_key=ca_private_key,
                subject=subject,
                crl_distribution_points=CRL_DISTRIBUTION_POINTS,
                metadata=new_metadata(span.get_span_context()),
            )
            _LOGGER.info(
                'Signing certificate using "%s" profile...', invocation.profile
            )
            response = self._timed(
                "Certificate Signing",
                self._client.sign_certificate,
                request,
                SignOptions(encoding=invocation.encoding),
            )
            span.set_attribute(
                CERTIFICATE_SIZE_ATTRIBUTE, len(response.signed_certificate)
            )
        self._print("Sign response:\n" + _render(response))
        return response

    def _health(self):
        with self._rpc_span(HEALTH_SERVICE, "Check", {}) as span:
            _LOGGER.info("Requesting server health status...")
            response = self._timed("Health Check", self._client.health_data)
            span.set_attribute(HEALTH_STATUS_ATTRIBUTE, response.status.name)
        self._print("HealthCheck response:\n" + _render(response))
        self._print("Status:", response.status.name)
        return response

    def _benchmark(self):
        with self._rpc_span(BROKER_SERVICE, "Benchmark", {}) as span:
            request = BenchmarkRequest(
                metadata=new_metadata(span.get_span_context())
            )
            _LOGGER.info("Running server-side benchmarks...")
            response = self._timed(
                "Benchmarking", self._client.benchmark_data, request
            )
            span.set_attribute(
                BENCHMARK_SIZE_ATTRIBUTE, len(response.benchmark_results)
            )
        self._print("Benchmark response:\n" + _render(response))
        return response
