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
"""Command line client for the CryptoBroker service.

Hashes data, signs certificates, and queries health and benchmarks of a
CryptoBroker server over gRPC. Every request is traced with OpenTelemetry.
"""

from cryptobroker_cli._client import BrokerClient
from cryptobroker_cli._client import GrpcBrokerClient
from cryptobroker_cli._records import CertEncoding
from cryptobroker_cli._records import ServingStatus
from cryptobroker_cli.cli import main

__all__ = (
    "BrokerClient",
    "CertEncoding",
    "GrpcBrokerClient",
    "ServingStatus",
    "main",
)
