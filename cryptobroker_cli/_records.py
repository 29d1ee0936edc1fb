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
"""Request and response records exchanged with the broker client.

The records are independent of the transport's message classes. Each
response knows how to render itself as a dict with a fixed key order so
that printed output does not depend on the shape of generated messages.
"""

import collections
import datetime
import enum
from typing import Any, Dict, Optional
import uuid

CRL_DISTRIBUTION_POINTS = (
    "http://example.com/crls/list1.crl",
    "http://example.com/crls/list2.crl",
)


@enum.unique
class CertEncoding(enum.Enum):
    """Encoding of the signed certificate handed back to the caller."""

    PEM = "PEM"
    B64 = "B64"

    def __str__(self):
        return self.value


@enum.unique
class ServingStatus(enum.Enum):
    """Mirrors grpc.health.v1.HealthCheckResponse.ServingStatus."""

    UNKNOWN = 0
    SERVING = 1
    NOT_SERVING = 2
    SERVICE_UNKNOWN = 3

    @classmethod
    def from_code(cls, code: int) -> "ServingStatus":
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


class RequestMetadata(
    collections.namedtuple(
        "RequestMetadata",
        ("id", "created_at", "trace_id", "span_id", "trace_flags"),
    )
):
    """Correlation data attached to every broker request.

    Attributes:
      id: A random identifier, unique per request.
      created_at: Creation time of the request.
      trace_id: Hex trace id of the span the request was issued from, or None.
      span_id: Hex span id of the span the request was issued from, or None.
      trace_flags: Hex trace flags of that span, or None.
    """

    def to_json_dict(self) -> Dict[str, Any]:
        rendered = collections.OrderedDict()
        rendered["id"] = self.id
        rendered["createdAt"] = self.created_at
        if self.trace_id is not None:
            rendered["traceId"] = self.trace_id
            rendered["spanId"] = self.span_id
            rendered["traceFlags"] = self.trace_flags
        return rendered


def new_metadata(span_context=None) -> RequestMetadata:
    """Creates fresh metadata, copying ids from a valid span context."""
    trace_id = span_id = trace_flags = None
    if span_context is not None and span_context.is_valid:
        trace_id = format(span_context.trace_id, "032x")
        span_id = format(span_context.span_id, "016x")
        trace_flags = format(int(span_context.trace_flags), "02x")
    return RequestMetadata(
        id=str(uuid.uuid4()),
        created_at=datetime.datetime.now(datetime.timezone.utc).isoformat(),
        trace_id=trace_id,
        span_id=span_id,
        trace_flags=trace_flags,
    )


def _metadata_json(metadata: Optional[RequestMetadata]):
    if metadata is None:
        return None
    return metadata.to_json_dict()


HashRequest = collections.namedtuple(
    "HashRequest", ("profile", "input", "metadata")
)


class HashResponse(
    collections.namedtuple(
        "HashResponse", ("hash_algorithm", "hash_value", "metadata")
    )
):
    def to_json_dict(self) -> Dict[str, Any]:
        rendered = collections.OrderedDict()
        rendered["hashAlgorithm"] = self.hash_algorithm
        rendered["hashValue"] = self.hash_value
        rendered["metadata"] = _metadata_json(self.metadata)
        return rendered


class SignRequest(
    collections.namedtuple(
        "SignRequest",
        (
            "profile",
            "csr",
            "ca_cert",
            "ca_private_key",
            "subject",
            "crl_distribution_points",
            "metadata",
        ),
    )
):
    """A certificate signing request.

    Attributes:
      profile: The server side profile to sign with.
      csr: PEM text of the certificate signing request.
      ca_cert: PEM text of the issuing CA certificate.
      ca_private_key: PEM text of the issuing CA private key.
      subject: A subject that replaces the one in the CSR, or None to keep
        the CSR's subject.
      crl_distribution_points: URLs placed in the certificate's CRL
        distribution points extension.
      metadata: A RequestMetadata.
    """


SignOptions = collections.namedtuple("SignOptions", ("encoding",))


class SignResponse(
    collections.namedtuple("SignResponse", ("signed_certificate", "metadata"))
):
    def to_json_dict(self) -> Dict[str, Any]:
        rendered = collections.OrderedDict()
        rendered["signedCertificate"] = self.signed_certificate
        rendered["metadata"] = _metadata_json(self.metadata)
        return rendered


class HealthResponse(collections.namedtuple("HealthResponse", ("status",))):
    def to_json_dict(self) -> Dict[str, Any]:
        return collections.OrderedDict((("status", self.status.name),))


BenchmarkRequest = collections.namedtuple("BenchmarkRequest", ("metadata",))


class BenchmarkResponse(
    collections.namedtuple(
        "BenchmarkResponse", ("benchmark_results", "metadata")
    )
):
    def to_json_dict(self) -> Dict[str, Any]:
        rendered = collections.OrderedDict()
        rendered["benchmarkResults"] = self.benchmark_results
        rendered["metadata"] = _metadata_json(self.metadata)
        return rendered
