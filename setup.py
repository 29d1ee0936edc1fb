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
"""Setup module for the CryptoBroker command line client."""

import os

import setuptools

_PACKAGE_PATH = os.path.realpath(os.path.dirname(__file__))
_README_PATH = os.path.join(_PACKAGE_PATH, "README.rst")

# Ensure we're in the proper directory whether or not we're being used by pip.
os.chdir(os.path.dirname(os.path.abspath(__file__)))

# Break import-style to ensure we can actually find our local modules.
import cryptobroker_cli_version

CLASSIFIERS = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Programming Language :: Python",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3.9",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "License :: OSI Approved :: Apache Software License",
]

PACKAGE_DIRECTORIES = {
    "": ".",
}

PACKAGE_DATA = {
    "cryptobroker_cli.protos": ["*.proto"],
}

INSTALL_REQUIRES = (
    "grpcio>=1.62.0",
    # grpc.protos_and_services needs grpc_tools at runtime.
    "grpcio-tools>=1.62.0",
    "grpcio-health-checking>=1.62.0",
    "protobuf>=4.21.6",
    "opentelemetry-api>=1.27.0,<1.39",
    "opentelemetry-sdk>=1.27.0,<1.39",
    "opentelemetry-exporter-otlp-proto-grpc>=1.27.0,<1.39",
    "opentelemetry-exporter-otlp-proto-http>=1.27.0,<1.39",
)

EXTRAS_REQUIRE = {
    "test": ("pytest>=7.0",),
}

ENTRY_POINTS = {
    "console_scripts": [
        "cryptobroker-cli = cryptobroker_cli.cli:run",
    ],
}

setuptools.setup(
    name="cryptobroker-cli",
    version=cryptobroker_cli_version.VERSION,
    description="Command line client for the CryptoBroker service",
    long_description=open(_README_PATH, "r").read(),
    author="The gRPC Authors",
    author_email="grpc-io@googlegroups.com",
    license="Apache License 2.0",
    classifiers=CLASSIFIERS,
    package_dir=PACKAGE_DIRECTORIES,
    packages=setuptools.find_packages(".", include=("cryptobroker_cli*",)),
    package_data=PACKAGE_DATA,
    python_requires=">=3.9",
    install_requires=INSTALL_REQUIRES,
    extras_require=EXTRAS_REQUIRE,
    entry_points=ENTRY_POINTS,
)
