"""Windows service control.

Services are driven through the ``sc.exe`` service control tool. Any failure
of ``sc.exe`` itself (unknown service, service already in the requested state,
tool not available on this platform) is reported as a
:class:`ServiceOperationException`.


File: services.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

from __future__ import annotations

import logging
import re
import subprocess
import time
from typing import Protocol

from deployex.exceptions import ServiceOperationException, ServiceTimeoutException

logger = logging.getLogger(__name__)

RUNNING = "RUNNING"
STOPPED = "STOPPED"

START_TIMEOUT = 3

RX_STATE = re.compile(r"STATE\s*:\s*\d+\s+(\w+)")


class ServiceManager(Protocol):
    def start(self, name: str, timeout: float | None = START_TIMEOUT) -> None: ...

    def stop(self, name: str, timeout: float | None = None) -> None: ...


class WindowsServices:
    """Service manager backed by ``sc.exe``."""

    def __init__(self, poll_interval: float = 0.25):
        self.poll_interval = poll_interval

    def _sc(self, *args: str) -> str:
        try:
            completed = subprocess.run(
                ["sc", *args], capture_output=True, text=True, check=False
            )
        except OSError as e:
            raise ServiceOperationException(args[-1], str(e)) from e
        if completed.returncode != 0:
            raise ServiceOperationException(args[-1], completed.stdout.strip())
        return completed.stdout

    def state(self, name: str) -> str | None:
        match = RX_STATE.search(self._sc("query", name))
        return match.group(1) if match else None

    def wait_for(self, name: str, state: str, timeout: float | None) -> None:
        deadline = None if timeout is None else time.monotonic() + timeout
        while self.state(name) != state:
            if deadline is not None and time.monotonic() >= deadline:
                raise ServiceTimeoutException(name, state)
            time.sleep(self.poll_interval)

    def start(self, name: str, timeout: float | None = START_TIMEOUT) -> None:
        logger.debug("Starting service %s", name)
        self._sc("start", name)
        self.wait_for(name, RUNNING, timeout)

    def stop(self, name: str, timeout: float | None = None) -> None:
        logger.debug("Stopping service %s", name)
        self._sc("stop", name)
        self.wait_for(name, STOPPED, timeout)
