# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/runner.py

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from dockprov.observers.dispatcher import EventBus
from dockprov.observers.events import HostDetected, ProvisionSummary, new_ctx

from .driver import HostDriver
from .errors import ProvisionError, StepFailedError
from .options import AuthOptions, EngineOptions, ReadinessOptions, SwarmOptions
from .registry import ProvisionerRegistry, detect_provisioner

log = logging.getLogger("dockprov")


@dataclass
class HostResult:
    machine_name: str
    provisioner: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def failed_step(self) -> Optional[str]:
        if isinstance(self.error, StepFailedError):
            return f"{self.error.step_index} ({self.error.step_name})"
        return None


@dataclass
class ProvisionReport:
    results: List[HostResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    def summary(self) -> str:
        ok = sum(1 for r in self.results if r.ok)
        return f"OK={ok} FAILED={len(self.results) - ok}"


def provision_host(
    driver: HostDriver,
    registry: ProvisionerRegistry,
    *,
    engine: EngineOptions,
    auth: AuthOptions,
    swarm: SwarmOptions,
    readiness: Optional[ReadinessOptions] = None,
    cancel: Optional[threading.Event] = None,
    bus: Optional[EventBus] = None,
    run_id: Optional[str] = None,
    **orchestrator_kwargs,
) -> HostResult:
    """
    Detect, select and provision a single host. Provisioning errors are
    reported in the result rather than raised so sibling hosts keep going.
    """
    bus = bus or EventBus()
    result = HostResult(machine_name=driver.machine_name)
    try:
        provisioner = detect_provisioner(registry, driver, cancel=cancel, readiness=readiness)
    except ProvisionError as exc:
        log.error("[%s] detection failed: %s", driver.machine_name, exc)
        result.error = exc
        return result
    except Exception as exc:
        # anything else from the driver still belongs to this host only
        log.error("[%s] detection failed unexpectedly: %r", driver.machine_name, exc, exc_info=True)
        result.error = exc
        return result

    result.provisioner = provisioner.family
    info = provisioner.os_release
    bus.emit(
        HostDetected(
            **new_ctx(driver.machine_name, run_id),
            os_id=info.id,
            version=info.version,
            provisioner=provisioner.family,
        )
    )
    try:
        provisioner.provision(swarm, auth, engine, bus=bus, run_id=run_id, **orchestrator_kwargs)
    except StepFailedError as exc:
        result.error = exc
    finally:
        provisioner.close()
    return result


def provision_hosts(
    drivers: Sequence[HostDriver],
    registry: ProvisionerRegistry,
    *,
    max_workers: int = 4,
    bus: Optional[EventBus] = None,
    run_id: Optional[str] = None,
    cancel: Optional[threading.Event] = None,
    **kwargs,
) -> ProvisionReport:
    """
    Provision hosts concurrently, one orchestrator and one channel per host.
    The registry is shared read-only.
    """
    bus = bus or EventBus()
    report = ProvisionReport()
    if not drivers:
        return report

    pool = ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(drivers))))
    try:
        futures = [
            pool.submit(
                provision_host, d, registry, bus=bus, run_id=run_id, cancel=cancel, **kwargs
            )
            for d in drivers
        ]
        report.results = [f.result() for f in futures]
    except KeyboardInterrupt:
        # stop every run at its next command before waiting on the workers
        if cancel is not None:
            cancel.set()
        raise
    finally:
        pool.shutdown(wait=True)

    ok = sum(1 for r in report.results if r.ok)
    bus.emit(ProvisionSummary(**new_ctx("*", run_id), ok=ok, failed=len(report.results) - ok))
    log.info("provisioning finished: %s", report.summary())
    return report
