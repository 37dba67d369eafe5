# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/poller.py

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .errors import CancelledError, CommandExecutionError, ReadinessTimeoutError

log = logging.getLogger("dockprov")

DEFAULT_INTERVAL = 3.0
DEFAULT_TIMEOUT = 180.0


def wait_for(
    probe: Callable[[], bool],
    *,
    interval: float = DEFAULT_INTERVAL,
    timeout: float = DEFAULT_TIMEOUT,
    cancel: Optional[threading.Event] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Call *probe* until it returns True.

    interval: seconds between attempts
    timeout: ceiling on total elapsed seconds
    cancel: token; when set, the wait stops with CancelledError
    Returns the number of attempts made. A probe raising CommandExecutionError
    counts as not ready.
    """
    start = clock()
    attempt = 0
    while True:
        if cancel is not None and cancel.is_set():
            raise CancelledError("cancelled while waiting for readiness")

        attempt += 1
        try:
            if probe():
                return attempt
            log.warning("readiness probe not ready (attempt %d)", attempt)
        except CommandExecutionError as exc:
            log.warning("readiness probe failed (attempt %d): %s", attempt, exc)

        if clock() - start + interval > timeout:
            raise ReadinessTimeoutError(attempt, timeout)

        if cancel is not None:
            if cancel.wait(interval):
                raise CancelledError("cancelled while waiting for readiness")
        else:
            sleep(interval)
