# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/observers/interface.py

from __future__ import annotations
from typing import Protocol, runtime_checkable
from .events import BaseEvent


@runtime_checkable
class Observer(Protocol):
    """
    Receives every provisioning event. Called from worker threads when hosts
    run in parallel, so implementations that share state must lock.
    """

    def notify(self, event: BaseEvent) -> None: ...
