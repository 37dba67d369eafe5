# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/driver.py

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from .channel import CommandChannel, open_ssh_channel
from .options import DEFAULT_ENGINE_PORT


class HostDriver(Protocol):
    """
    What provisioning needs from the VM/cloud driver: the host's logical name,
    where the engine will listen, and a way to reach it.
    """

    machine_name: str
    driver_name: str

    def ip_address(self) -> Optional[str]: ...

    def engine_url(self) -> str: ...

    def open_channel(self) -> CommandChannel: ...


@dataclass
class SSHHostDriver:
    """
    Driver for a host that already exists (inventory entry). Lifecycle
    operations are someone else's job; this only knows how to SSH in.
    """

    machine_name: str
    address: str
    username: str
    port: int = 22
    password: Optional[str] = None
    pkey_path: Optional[Path] = None
    driver_name: str = "generic"
    engine_port: int = DEFAULT_ENGINE_PORT
    connect_timeout: float = 20.0
    command_timeout: Optional[float] = 600.0

    def ip_address(self) -> Optional[str]:
        return self.address

    def engine_url(self) -> str:
        return f"tcp://{self.address}:{self.engine_port}"

    def open_channel(self) -> CommandChannel:
        return open_ssh_channel(
            self.address,
            username=self.username,
            port=self.port,
            password=self.password,
            pkey_path=self.pkey_path,
            connect_timeout=self.connect_timeout,
            command_timeout=self.command_timeout,
        )
