# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/options.py

from typing import List, Optional
from pydantic import BaseModel, Field

DEFAULT_ENGINE_PORT = 2376


class EngineOptions(BaseModel):
    """Options for the container engine daemon on the provisioned host."""

    storage_driver: str = "aufs"
    labels: List[str] = Field(default_factory=list)
    insecure_registry: List[str] = Field(default_factory=list)
    registry_mirror: List[str] = Field(default_factory=list)
    arbitrary_flags: List[str] = Field(default_factory=list)   # rendered as --<flag>
    env: List[str] = Field(default_factory=list)               # KEY=VALUE exports
    dns: List[str] = Field(default_factory=list)
    log_level: Optional[str] = None
    tls_verify: bool = True
    install_url: str = "https://get.docker.com"
    port: int = DEFAULT_ENGINE_PORT


class AuthOptions(BaseModel):
    # local material (already generated)
    store_path: Optional[str] = None
    ca_cert_path: Optional[str] = None
    server_cert_path: Optional[str] = None
    server_key_path: Optional[str] = None

    # where the material lives on the host
    ca_cert_remote_path: str = "/etc/docker/ca.pem"
    server_cert_remote_path: str = "/etc/docker/server.pem"
    server_key_remote_path: str = "/etc/docker/server-key.pem"

    server_cert_sans: List[str] = Field(default_factory=list)


class SwarmOptions(BaseModel):
    is_swarm: bool = False
    master: bool = False
    discovery: str = ""
    host: str = "tcp://0.0.0.0:3376"
    image: str = "swarm:latest"
    strategy: str = "spread"
    heartbeat: int = 10
    overcommit: float = 0.0
    arbitrary_flags: List[str] = Field(default_factory=list)


class ReadinessOptions(BaseModel):
    """Bounds for the engine readiness wait."""

    interval: float = 3.0
    timeout: float = 180.0
