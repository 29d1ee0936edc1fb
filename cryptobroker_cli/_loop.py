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

import logging
import threading
from typing import Callable, Optional

_LOGGER = logging.getLogger(__name__)


class LoopDriver(object):
    """Runs an execution once, or repeatedly with a fixed delay.

    The delay is spent waiting on stop_event, so setting the event ends the
    loop without waiting for the delay to elapse. An exception raised by an
    execution propagates and ends the loop.
    """

    def __init__(
        self,
        execute: Callable[[], object],
        delay_ms: Optional[int] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        self._execute = execute
        self._delay_ms = delay_ms
        self._stop_event = stop_event or threading.Event()

    @property
    def looping(self) -> bool:
        return self._delay_ms is not None

    def stop(self) -> None:
        self._stop_event.set()

    def run(self) -> int:
        """Returns the number of completed executions."""
        if self._stop_event.is_set():
            return 0
        self._execute()
        executions = 1
        if not self.looping:
            return executions
        delay_s = self._delay_ms / 1000.0
        while not self._stop_event.wait(delay_s):
            self._execute()
            executions += 1
        _LOGGER.info("Stopped after %d executions.", executions)
        return executions
