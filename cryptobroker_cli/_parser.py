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
"""Command line parsing for the CryptoBroker CLI."""

import argparse
import collections
from typing import Optional, Sequence

from cryptobroker_cli._records import CertEncoding

HASH = "hash"
SIGN = "sign"
HEALTH = "health"
BENCHMARK = "benchmark"
COMMANDS = (HASH, SIGN, HEALTH, BENCHMARK)

DEFAULT_PROFILE = "Default"
MIN_DELAY_MS = 1
MAX_DELAY_MS = 1000


class Invocation(
    collections.namedtuple(
        "Invocation",
        (
            "command",
            "profile",
            "delay",
            "data",
            "data_only",
            "csr",
            "ca_cert",
            "ca_key",
            "encoding",
            "subject",
        ),
    )
):
    """A validated command line.

    Attributes:
      command: One of COMMANDS.
      profile: The server side profile to use.
      delay: Milliseconds between repeated executions, or None to run once.
      data: The text to hash. Only set for the hash command.
      data_only: Whether to print only the hash value.
      csr: Path to the CSR file. Only set for the sign command.
      ca_cert: Path to the CA certificate file.
      ca_key: Path to the CA private key file.
      encoding: A CertEncoding for the signed certificate.
      subject: A subject overriding the one in the CSR, or None.
    """


def delay_arg(arg: str) -> int:
    try:
        delay = int(arg)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Could not parse '{arg}' as an integer."
        ) from None
    if not MIN_DELAY_MS <= delay <= MAX_DELAY_MS:
        raise argparse.ArgumentTypeError(
            "The delay value must be between 1ms and 1000ms."
        )
    return delay


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cryptobroker-cli",
        description="Send requests to a CryptoBroker server.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--profile", default=DEFAULT_PROFILE, help="Profile Selection"
    )
    parser.add_argument(
        "--loop",
        dest="delay",
        type=delay_arg,
        default=None,
        help="Loops the request with the specified delay (in ms).",
    )
    subparsers = parser.add_subparsers(
        help="Command Selection", dest="command"
    )
    subparsers.required = True

    hash_parser = subparsers.add_parser(
        HASH,
        help="create a hash",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    hash_parser.add_argument("data", help="The text to hash.")
    hash_parser.add_argument(
        "--data-only",
        dest="data_only",
        default=False,
        action="store_true",
        help="Print only the hash value.",
    )

    sign_parser = subparsers.add_parser(
        SIGN,
        help="sign a CSR",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sign_parser.add_argument(
        "--csr", required=True, help="Path to CSR file"
    )
    sign_parser.add_argument(
        "--caCert",
        dest="ca_cert",
        required=True,
        help="Path to CA certificate file",
    )
    sign_parser.add_argument(
        "--caKey",
        dest="ca_key",
        required=True,
        help="Path to CA private key file",
    )
    sign_parser.add_argument(
        "--encoding",
        type=CertEncoding,
        choices=list(CertEncoding),
        default=CertEncoding.PEM,
        help=(
            "Specifies which encoding should be used for the signed"
            " certificate"
        ),
    )
    sign_parser.add_argument(
        "--subject",
        default=None,
        help=(
            "Subject for the signing request (will overwrite the subject in"
            " the CSR)"
        ),
    )

    subparsers.add_parser(HEALTH, help="request server health status")
    subparsers.add_parser(BENCHMARK, help="request server-side benchmark")
    return parser


def parse_invocation(
    argv: Optional[Sequence[str]] = None,
    parser: Optional[argparse.ArgumentParser] = None,
) -> Invocation:
    """Parses a command line into an Invocation.

    Args:
      argv: The arguments without the program name. Defaults to sys.argv[1:].
      parser: The parser to use. Defaults to build_parser().

    Returns:
      An Invocation.

    Raises:
      SystemExit: If the command line is invalid. argparse prints the usage
        message before raising.
    """
    if parser is None:
        parser = build_parser()
    args = parser.parse_args(argv)
    return Invocation(
        command=args.command,
        profile=args.profile,
        delay=args.delay,
        data=getattr(args, "data", None),
        data_only=getattr(args, "data_only", False),
        csr=getattr(args, "csr", None),
        ca_cert=getattr(args, "ca_cert", None),
        ca_key=getattr(args, "ca_key", None),
        encoding=getattr(args, "encoding", CertEncoding.PEM),
        subject=getattr(args, "subject", None),
    )
