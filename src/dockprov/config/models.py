# src/dockprov/config/models.py

import re
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from dockprov.provision.driver import SSHHostDriver
from dockprov.provision.options import (
    DEFAULT_ENGINE_PORT,
    AuthOptions,
    EngineOptions,
    ReadinessOptions,
    SwarmOptions,
)

# RFC 1123 host name: dot-separated labels of letters, digits and inner hyphens
_HOSTNAME_RE = re.compile(
    r"^(?=.{1,253}$)[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*$"
)


class HostSpec(BaseModel):
    """A server you will SSH into and turn into an engine node."""

    name: str                        # machine name; becomes the hostname
    address: str                     # IP or DNS to connect
    username: str = "root"
    port: int = 22
    password: Optional[str] = None
    pkey_path: Optional[Path] = None
    driver_name: str = "generic"     # rendered as the provider=<name> label
    engine_port: Optional[int] = None   # falls back to engine.port

    @field_validator("name")
    @classmethod
    def _valid_hostname(cls, v: str) -> str:
        # the name is written into shell commands, /etc/hostname and /etc/hosts
        if not _HOSTNAME_RE.fullmatch(v):
            raise ValueError(f"not a valid host name: {v!r}")
        return v

    def to_driver(
        self,
        *,
        command_timeout: Optional[float] = None,
        engine_port: int = DEFAULT_ENGINE_PORT,
    ) -> SSHHostDriver:
        return SSHHostDriver(
            machine_name=self.name,
            address=self.address,
            username=self.username,
            port=self.port,
            password=self.password,
            pkey_path=self.pkey_path.expanduser() if self.pkey_path else None,
            driver_name=self.driver_name,
            engine_port=self.engine_port or engine_port,
            command_timeout=command_timeout,
        )


class ProvisionConfig(BaseModel):
    hosts: List[HostSpec] = Field(default_factory=list)
    engine: EngineOptions = Field(default_factory=EngineOptions)
    auth: AuthOptions = Field(default_factory=AuthOptions)
    swarm: SwarmOptions = Field(default_factory=SwarmOptions)
    readiness: ReadinessOptions = Field(default_factory=ReadinessOptions)
    command_timeout: Optional[float] = 600.0   # per remote command, seconds
    max_workers: int = 4

    @model_validator(mode="after")
    def _unique_host_names(self):
        seen = set()
        for h in self.hosts:
            if h.name in seen:
                raise ValueError(f"duplicate host name: {h.name}")
            seen.add(h.name)
        return self

    # Helper method
    def by_name(self) -> dict:
        """Maps each host name to its HostSpec."""
        return {h.name: h for h in self.hosts}
