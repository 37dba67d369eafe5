# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/base.py

from __future__ import annotations

import logging
import re
import shlex
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional
from urllib.parse import urlparse

from .channel import CommandChannel, CommandResult
from .driver import HostDriver
from .engine_config import DockerOptions, render_docker_options
from .errors import CancelledError, ChannelError, CommandExecutionError, ProvisionError
from .options import (
    AuthOptions,
    EngineOptions,
    ReadinessOptions,
    SwarmOptions,
)
from .orchestrator import BootstrapOrchestrator
from .os_release import OsRelease
from .pkgaction import PackageAction, ServiceAction

log = logging.getLogger("dockprov")

_HOSTNAME_CHARS = re.compile(r"[A-Za-z0-9][A-Za-z0-9.-]*")


class Provisioner(ABC):
    """
    A provisioning strategy bound to one OS family.

    Subclasses supply the family-specific command lines; the step order lives
    in BootstrapOrchestrator. One instance provisions one host once.
    """

    family: str = ""
    os_id: str = ""
    default_packages: List[str] = ["curl"]
    docker_options_template: str = ""
    docker_options_path: str = ""
    docker_options_dir: str = "/etc/docker"

    def __init__(
        self,
        driver: HostDriver,
        *,
        cancel: Optional[threading.Event] = None,
        readiness: Optional[ReadinessOptions] = None,
    ):
        self.driver = driver
        self.packages: List[str] = list(self.default_packages)
        self.os_release: Optional[OsRelease] = None
        self.engine_options = EngineOptions()
        self.auth_options = AuthOptions()
        self.swarm_options = SwarmOptions()
        self.cancel = cancel
        self.readiness = readiness or ReadinessOptions()
        self._channel: Optional[CommandChannel] = None

    # ------------------ channel ------------------

    @property
    def channel(self) -> CommandChannel:
        if self._channel is None:
            self._channel = self.driver.open_channel()
        return self._channel

    def attach_channel(self, channel: CommandChannel) -> None:
        self._channel = channel

    def close(self) -> None:
        if self._channel is not None:
            self._channel.close()
            self._channel = None

    def _check_cancelled(self, command: str) -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise CancelledError(f"run cancelled before: {command}")

    def ssh_command(self, command: str, *, pty: bool = False) -> CommandResult:
        """
        Run *command* on the host. Non-zero exit or transport failure raises
        CommandExecutionError; a set cancellation token raises CancelledError.
        """
        self._check_cancelled(command)
        log.debug("[%s] $ %s", self.driver.machine_name, command)
        try:
            result = self.channel.run(command, pty=pty)
        except ChannelError as exc:
            raise CommandExecutionError(command, exc) from exc

        # the command ran to completion but nobody wants the result anymore
        if self.cancel is not None and self.cancel.is_set():
            raise CancelledError(f"run cancelled during: {command}")

        if result.stdout.strip():
            log.debug("[%s][stdout]\n%s", self.driver.machine_name, result.stdout.rstrip())
        if not result.ok:
            raise CommandExecutionError(
                command,
                exit_status=result.exit_status,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        return result

    # ------------------ identity ------------------

    def set_os_release(self, info: OsRelease) -> None:
        self.os_release = info

    def compatible_with_host(self) -> bool:
        return self.os_release is not None and self.os_release.id == self.os_id

    def hostname(self) -> str:
        return self.ssh_command("hostname").stdout.strip()

    def set_hostname(self, hostname: str) -> None:
        # the name also lands unquoted inside the sed/grep bodies of hosts_entry_command
        if not _HOSTNAME_CHARS.fullmatch(hostname):
            raise ProvisionError(f"refusing to set invalid host name {hostname!r}")
        quoted = shlex.quote(hostname)
        self.ssh_command(f"sudo hostname {quoted} && echo {quoted} | sudo tee /etc/hostname")
        self.ssh_command(self.hosts_entry_command(hostname))

    @abstractmethod
    def hosts_entry_command(self, hostname: str) -> str:
        """Command that puts *hostname* on the loopback line of /etc/hosts, once."""

    # ------------------ translators ------------------

    @abstractmethod
    def package(self, name: str, action: PackageAction) -> None: ...

    @abstractmethod
    def service(self, name: str, action: ServiceAction) -> None: ...

    # ------------------ bootstrap hooks ------------------

    def fix_sudoers(self) -> None:
        """Nothing to fix unless the family ships a restrictive sudoers."""

    @abstractmethod
    def update_packages(self) -> None: ...

    def configure_firewall(self, port: int) -> None:
        """No firewall service by default."""

    def engine_responding(self) -> bool:
        try:
            self.ssh_command("sudo docker version")
        except CommandExecutionError as exc:
            log.warning("[%s] engine not responding yet: %s", self.driver.machine_name, exc)
            return False
        return True

    def make_docker_options_dir(self) -> None:
        self.ssh_command(f"sudo mkdir -p {self.get_docker_options_dir()}")

    # ------------------ engine configuration ------------------

    def get_docker_options_dir(self) -> str:
        return self.docker_options_dir

    def engine_port(self) -> int:
        # a driver URL without a port defers to the configured engine port
        return urlparse(self.driver.engine_url()).port or self.engine_options.port

    def generate_docker_options(
        self, port: int, auth_options: Optional[AuthOptions] = None
    ) -> DockerOptions:
        return render_docker_options(
            self.docker_options_template,
            self.docker_options_path,
            port=port,
            auth_options=auth_options or self.auth_options,
            engine_options=self.engine_options,
            driver_name=self.driver.driver_name,
        )

    # ------------------ entrypoint ------------------

    def provision(
        self,
        swarm_options: SwarmOptions,
        auth_options: AuthOptions,
        engine_options: EngineOptions,
        **orchestrator_kwargs,
    ) -> None:
        self.swarm_options = swarm_options
        self.auth_options = auth_options
        self.engine_options = engine_options
        BootstrapOrchestrator(self, **orchestrator_kwargs).run()


ProvisionerFactory = Callable[..., Provisioner]
