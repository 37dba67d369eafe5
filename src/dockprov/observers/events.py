# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events of one provisioning run
    host: str         # machine name being provisioned

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(host: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "host": host,
    }


# ---------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class HostDetected(BaseEvent):
    os_id: str
    version: str
    provisioner: str


# ---------------------------------------------------------------------
# Bootstrap lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ProvisionStarted(BaseEvent):
    provisioner: str
    steps: int

@dataclass(frozen=True)
class StepStarted(BaseEvent):
    index: int
    name: str

@dataclass(frozen=True)
class StepSucceeded(BaseEvent):
    index: int
    name: str
    duration_ms: int

@dataclass(frozen=True)
class StepFailed(BaseEvent):
    index: int
    name: str
    error: str

@dataclass(frozen=True)
class ProvisionSucceeded(BaseEvent):
    provisioner: str
    duration_ms: int

@dataclass(frozen=True)
class ProvisionFailed(BaseEvent):
    provisioner: str
    step: int
    error: str


# ---------------------------------------------------------------------
# Multi-host summary
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ProvisionSummary(BaseEvent):
    ok: int
    failed: int
