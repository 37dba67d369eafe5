# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/orchestrator.py

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from dockprov.observers.dispatcher import EventBus
from dockprov.observers.events import (
    ProvisionFailed,
    ProvisionStarted,
    ProvisionSucceeded,
    StepFailed,
    StepStarted,
    StepSucceeded,
    new_ctx,
)

from .auth import configure_auth as default_configure_auth
from .auth import resolve_remote_auth_options
from .engine_install import install_engine as default_install_engine
from .errors import CancelledError, StepFailedError
from .options import AuthOptions, SwarmOptions
from .pkgaction import PackageAction
from .poller import wait_for
from .swarm import configure_swarm as default_configure_swarm

if TYPE_CHECKING:
    from .base import Provisioner

log = logging.getLogger("dockprov")

InstallEngine = Callable[["Provisioner"], None]
ConfigureAuth = Callable[["Provisioner", AuthOptions], None]
ConfigureSwarm = Callable[["Provisioner", SwarmOptions], None]


class RunState(str, Enum):
    NOT_STARTED = "not-started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class Step:
    name: str
    action: Callable[[], None]


class BootstrapOrchestrator:
    """
    Drives one provisioner through the fixed bootstrap sequence.

    Steps run strictly in order; the first failure marks the run FAILED and
    raises StepFailedError carrying the 1-based step index and the original
    error. Nothing is rolled back: every step is safe to repeat, so recovery is
    a fresh run with a fresh provisioner.
    """

    def __init__(
        self,
        provisioner: "Provisioner",
        *,
        install_engine: InstallEngine = default_install_engine,
        configure_auth: ConfigureAuth = default_configure_auth,
        configure_swarm: ConfigureSwarm = default_configure_swarm,
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
    ):
        self.provisioner = provisioner
        self.install_engine = install_engine
        self.configure_auth = configure_auth
        self.configure_swarm = configure_swarm
        self.bus = bus or EventBus()
        self.run_id = run_id or str(uuid.uuid4())

        self.state = RunState.NOT_STARTED
        self.current_step: Optional[int] = None
        self.error: Optional[BaseException] = None

    # ------------------ steps ------------------

    def steps(self) -> List[Step]:
        p = self.provisioner
        return [
            Step("fix-sudoers", p.fix_sudoers),
            Step("set-hostname", lambda: p.set_hostname(p.driver.machine_name)),
            Step("update-packages", p.update_packages),
            Step("install-packages", self._install_packages),
            Step("configure-firewall", lambda: p.configure_firewall(p.engine_port())),
            Step("install-engine", lambda: self.install_engine(p)),
            Step("wait-for-engine", self._wait_for_engine),
            Step("make-options-dir", p.make_docker_options_dir),
            Step("resolve-auth", self._resolve_auth),
            Step("configure-auth", lambda: self.configure_auth(p, p.auth_options)),
            Step("configure-swarm", lambda: self.configure_swarm(p, p.swarm_options)),
        ]

    def _install_packages(self) -> None:
        for pkg in self.provisioner.packages:
            self.provisioner.package(pkg, PackageAction.INSTALL)

    def _wait_for_engine(self) -> None:
        p = self.provisioner
        wait_for(
            p.engine_responding,
            interval=p.readiness.interval,
            timeout=p.readiness.timeout,
            cancel=p.cancel,
        )

    def _resolve_auth(self) -> None:
        self.provisioner.auth_options = resolve_remote_auth_options(self.provisioner)

    # ------------------ run ------------------

    def _ctx(self) -> dict:
        return new_ctx(self.provisioner.driver.machine_name, self.run_id)

    def run(self) -> None:
        p = self.provisioner
        host = p.driver.machine_name
        steps = self.steps()

        self.state = RunState.RUNNING
        self.bus.emit(ProvisionStarted(**self._ctx(), provisioner=p.family, steps=len(steps)))
        log.info("[%s] provisioning with %s (%d steps)", host, p.family, len(steps))
        started = time.monotonic()

        for index, step in enumerate(steps, 1):
            self.current_step = index
            step_started = time.monotonic()
            try:
                if p.cancel is not None and p.cancel.is_set():
                    raise CancelledError(f"run cancelled before step {step.name}")
                log.info("[%s] step %d/%d: %s", host, index, len(steps), step.name)
                self.bus.emit(StepStarted(**self._ctx(), index=index, name=step.name))
                step.action()
            except Exception as exc:
                self.state = RunState.FAILED
                self.error = exc
                log.error("[%s] step %d (%s) failed: %s", host, index, step.name, exc)
                self.bus.emit(StepFailed(**self._ctx(), index=index, name=step.name, error=str(exc)))
                self.bus.emit(
                    ProvisionFailed(**self._ctx(), provisioner=p.family, step=index, error=str(exc))
                )
                raise StepFailedError(index, step.name, exc) from exc

            self.bus.emit(
                StepSucceeded(
                    **self._ctx(),
                    index=index,
                    name=step.name,
                    duration_ms=int((time.monotonic() - step_started) * 1000),
                )
            )

        self.state = RunState.SUCCEEDED
        log.info("[%s] provisioning complete", host)
        self.bus.emit(
            ProvisionSucceeded(
                **self._ctx(),
                provisioner=p.family,
                duration_ms=int((time.monotonic() - started) * 1000),
            )
        )
