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
"""Entry point of the cryptobroker-cli command."""

import logging
import signal
import sys
import threading
from typing import Callable, Dict, Mapping, Optional, Sequence, TextIO

from cryptobroker_cli import _parser
from cryptobroker_cli._client import BrokerClient
from cryptobroker_cli._client import GrpcBrokerClient
from cryptobroker_cli._configuration import BrokerConfiguration
from cryptobroker_cli._configuration import configuration_from_environ
from cryptobroker_cli._executor import RequestExecutor
from cryptobroker_cli._loop import LoopDriver
from cryptobroker_cli._telemetry import init_telemetry

_LOGGER = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

LOG_FORMAT = "%(asctime)s: %(levelname)-8s %(message)s"
_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)

ClientFactory = Callable[[BrokerConfiguration], BrokerClient]


def grpc_client_factory(config: BrokerConfiguration) -> BrokerClient:
    return GrpcBrokerClient(config.target, ready_timeout=config.ready_timeout)


def _install_console_handler(
    logger: logging.Logger, level: str
) -> logging.Handler:
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    logger.addHandler(console_handler)
    logger.setLevel(level)
    return console_handler


def _handle_stop_signal(stop_event: threading.Event):
    def handler(signum, unused_frame):
        if stop_event.is_set():
            # A second signal interrupts whatever call is in flight.
            raise KeyboardInterrupt()
        _LOGGER.info("Received %s, exiting...", signal.Signals(signum).name)
        stop_event.set()

    return handler


def _ignore_signal_while_flushing(signum, unused_frame):
    _LOGGER.warning(
        "Received %s while flushing telemetry, ignoring.",
        signal.Signals(signum).name,
    )


def _install_signal_handlers(handler) -> Dict[int, object]:
    if threading.current_thread() is not threading.main_thread():
        _LOGGER.debug("Not on the main thread, signal handlers not installed.")
        return {}
    previous_handlers = {}
    for signum in _STOP_SIGNALS:
        previous_handlers[signum] = signal.signal(signum, handler)
    return previous_handlers


def _restore_signal_handlers(previous_handlers: Dict[int, object]) -> None:
    for signum, previous_handler in previous_handlers.items():
        signal.signal(signum, previous_handler)


def main(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    client_factory: Optional[ClientFactory] = None,
    stdout: Optional[TextIO] = None,
    stop_event: Optional[threading.Event] = None,
) -> int:
    """Runs the command line client.

    Args:
      argv: The arguments without the program name. Defaults to sys.argv[1:].
      environ: The environment to configure from. Defaults to os.environ.
      client_factory: Creates the BrokerClient from the broker
        configuration. Defaults to grpc_client_factory.
      stdout: Where responses are printed. Defaults to sys.stdout.
      stop_event: Event that ends a loop once set. SIGINT and SIGTERM set it.

    Returns:
      The process exit code.

    Raises:
      SystemExit: If the command line is invalid.
    """
    invocation = _parser.parse_invocation(argv)
    try:
        config = configuration_from_environ(environ)
    except ValueError as error:
        print(f"Error: {error}", file=sys.stderr)
        return EXIT_FAILURE
    if client_factory is None:
        client_factory = grpc_client_factory
    if stop_event is None:
        stop_event = threading.Event()

    root_logger = logging.getLogger()
    previous_level = root_logger.level
    console_handler = _install_console_handler(
        root_logger, config.broker.log_level
    )
    try:
        telemetry = init_telemetry(config.telemetry, logger=root_logger)
    except ValueError:
        _LOGGER.exception("Invalid telemetry configuration.")
        root_logger.removeHandler(console_handler)
        root_logger.setLevel(previous_level)
        return EXIT_FAILURE

    previous_handlers = _install_signal_handlers(
        _handle_stop_signal(stop_event)
    )
    client = None
    try:
        client = client_factory(config.broker)
        client.ready()
        executor = RequestExecutor(
            client, telemetry.tracer, invocation, output=stdout
        )
        LoopDriver(executor.execute, invocation.delay, stop_event).run()
        return EXIT_SUCCESS
    except KeyboardInterrupt:
        _LOGGER.warning("Interrupted.")
        return EXIT_FAILURE
    except Exception:  # pylint: disable=broad-except
        _LOGGER.exception("Error:")
        return EXIT_FAILURE
    finally:
        if previous_handlers:
            _install_signal_handlers(_ignore_signal_while_flushing)
        if client is not None:
            client.close()
        telemetry.shutdown()
        _restore_signal_handlers(previous_handlers)
        root_logger.removeHandler(console_handler)
        root_logger.setLevel(previous_level)


def run() -> None:
    sys.exit(main())
