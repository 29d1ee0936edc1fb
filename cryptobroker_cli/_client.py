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
"""The broker client interface and its gRPC implementation."""

import abc
import functools
import logging
from typing import Optional

import grpc
from grpc_health.v1 import health_pb2
from grpc_health.v1 import health_pb2_grpc

from cryptobroker_cli._records import BenchmarkRequest
from cryptobroker_cli._records import BenchmarkResponse
from cryptobroker_cli._records import CertEncoding
from cryptobroker_cli._records import HashRequest
from cryptobroker_cli._records import HashResponse
from cryptobroker_cli._records import HealthResponse
from cryptobroker_cli._records import RequestMetadata
from cryptobroker_cli._records import ServingStatus
from cryptobroker_cli._records import SignOptions
from cryptobroker_cli._records import SignRequest
from cryptobroker_cli._records import SignResponse

_LOGGER = logging.getLogger(__name__)

# Must be reachable from an entry on sys.path.
PROTO_PATH = "cryptobroker_cli/protos/cryptobroker.proto"
# The entry of overall health for the entire server.
OVERALL_HEALTH = ""


class BrokerClient(metaclass=abc.ABCMeta):
    """Abstract base class for clients of the CryptoBroker service."""

    @abc.abstractmethod
    def ready(self) -> None:
        """Blocks until the client is able to issue requests.

        Raises:
          Exception: If the broker did not become reachable.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def hash_data(self, request: HashRequest) -> HashResponse:
        """Hashes request.input with the algorithm of request.profile."""
        raise NotImplementedError()

    @abc.abstractmethod
    def sign_certificate(
        self, request: SignRequest, options: SignOptions
    ) -> SignResponse:
        """Signs the CSR of request with the given CA certificate and key.

        Args:
          request: A SignRequest.
          options: A SignOptions selecting the encoding of the returned
            certificate.

        Returns:
          A SignResponse whose certificate is encoded as options.encoding.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def health_data(self) -> HealthResponse:
        """Requests the serving status of the broker."""
        raise NotImplementedError()

    @abc.abstractmethod
    def benchmark_data(self, request: BenchmarkRequest) -> BenchmarkResponse:
        """Runs the broker's server-side benchmarks."""
        raise NotImplementedError()

    def close(self) -> None:
        """Releases the resources held by the client."""


@functools.lru_cache(maxsize=None)
def load_protos():
    """Returns the (protos, services) modules parsed from PROTO_PATH."""
    return grpc.protos_and_services(PROTO_PATH)


def pem_to_base64(pem: str) -> str:
    """Strips the armour lines and line breaks from a PEM block."""
    return "".join(
        line.strip()
        for line in pem.strip().splitlines()
        if line.strip() and not line.startswith("-----")
    )


def _metadata_to_message(protos, metadata: RequestMetadata):
    return protos.Metadata(
        id=metadata.id,
        created_at=metadata.created_at,
        trace_id=metadata.trace_id or "",
        span_id=metadata.span_id or "",
        trace_flags=metadata.trace_flags or "",
    )


def _metadata_from_message(message) -> Optional[RequestMetadata]:
    if not message.HasField("metadata"):
        return None
    metadata = message.metadata
    return RequestMetadata(
        id=metadata.id,
        created_at=metadata.created_at,
        trace_id=metadata.trace_id or None,
        span_id=metadata.span_id or None,
        trace_flags=metadata.trace_flags or None,
    )


class GrpcBrokerClient(BrokerClient):
    """Talks to the broker over a gRPC channel.

    The channel is created eagerly but connects lazily; call ready() to wait
    for the connection.
    """

    def __init__(
        self,
        target: str,
        ready_timeout: Optional[float] = None,
        channel: Optional[grpc.Channel] = None,
    ):
        self._target = target
        self._ready_timeout = ready_timeout
        if channel is None:
            _LOGGER.debug("Creating insecure channel to '%s'", target)
            channel = grpc.insecure_channel(target)
        self._channel = channel
        self._protos, services = load_protos()
        self._stub = services.CryptoBrokerStub(channel)
        self._health_stub = health_pb2_grpc.HealthStub(channel)

    def ready(self) -> None:
        _LOGGER.info("Waiting for the broker at '%s'...", self._target)
        grpc.channel_ready_future(self._channel).result(
            timeout=self._ready_timeout
        )
        _LOGGER.info("Connected to the broker at '%s'.", self._target)

    def hash_data(self, request: HashRequest) -> HashResponse:
        response = self._stub.Hash(
            self._protos.HashRequest(
                profile=request.profile,
                input=request.input,
                metadata=_metadata_to_message(self._protos, request.metadata),
            )
        )
        return HashResponse(
            hash_algorithm=response.hash_algorithm,
            hash_value=response.hash_value,
            metadata=_metadata_from_message(response),
        )

    def sign_certificate(
        self, request: SignRequest, options: SignOptions
    ) -> SignResponse:
        message = self._protos.SignRequest(
            profile=request.profile,
            csr=request.csr,
            ca_private_key=request.ca_private_key,
            ca_cert=request.ca_cert,
            crl_distribution_points=list(request.crl_distribution_points),
            metadata=_metadata_to_message(self._protos, request.metadata),
        )
        if request.subject:
            message.subject = request.subject
        response = self._stub.Sign(message)
        certificate = response.signed_certificate
        if options.encoding is CertEncoding.B64:
            certificate = pem_to_base64(certificate)
        return SignResponse(
            signed_certificate=certificate,
            metadata=_metadata_from_message(response),
        )

    def health_data(self) -> HealthResponse:
        response = self._health_stub.Check(
            health_pb2.HealthCheckRequest(service=OVERALL_HEALTH)
        )
        return HealthResponse(status=ServingStatus.from_code(response.status))

    def benchmark_data(self, request: BenchmarkRequest) -> BenchmarkResponse:
        response = self._stub.Benchmark(
            self._protos.BenchmarkRequest(
                metadata=_metadata_to_message(self._protos, request.metadata)
            )
        )
        return BenchmarkResponse(
            benchmark_results=response.benchmark_results,
            metadata=_metadata_from_message(response),
        )

    def close(self) -> None:
        self._channel.close()
