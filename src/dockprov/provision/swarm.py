# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/swarm.py

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING, List
from urllib.parse import urlparse

from .errors import ProvisionError
from .options import SwarmOptions

if TYPE_CHECKING:
    from .base import Provisioner

log = logging.getLogger("dockprov")

MASTER_CONTAINER = "swarm-agent-master"
AGENT_CONTAINER = "swarm-agent"


def _run_once(name: str, run_args: str) -> str:
    return (
        f"if ! sudo docker inspect {name} >/dev/null 2>&1; then "
        f"sudo docker run -d --restart=always --name {name} {run_args}; fi"
    )


def master_args(swarm: SwarmOptions, docker_dir: str) -> List[str]:
    args = [
        "manage",
        "--tlsverify",
        f"--tlscacert={posixpath.join(docker_dir, 'ca.pem')}",
        f"--tlscert={posixpath.join(docker_dir, 'server.pem')}",
        f"--tlskey={posixpath.join(docker_dir, 'server-key.pem')}",
        f"-H {swarm.host}",
        f"--strategy {swarm.strategy}",
        f"--heartbeat {swarm.heartbeat}s",
    ]
    if swarm.overcommit:
        args.append(f"--overcommit {swarm.overcommit}")
    args.extend(f"--{flag}" for flag in swarm.arbitrary_flags)
    args.append(swarm.discovery)
    return args


def configure_swarm(provisioner: "Provisioner", swarm: SwarmOptions) -> None:
    if not swarm.is_swarm:
        log.debug("[%s] swarm not requested", provisioner.driver.machine_name)
        return
    if not swarm.discovery:
        raise ProvisionError("swarm requested but no discovery URL configured")

    ip = provisioner.driver.ip_address()
    if not ip:
        raise ProvisionError("swarm join needs the host IP but the driver reports none")

    docker_dir = provisioner.get_docker_options_dir()
    volume = f"-v {docker_dir}:{docker_dir}"

    provisioner.ssh_command(f"sudo docker pull {swarm.image}")

    if swarm.master:
        manage_port = urlparse(swarm.host).port
        if manage_port is None:
            raise ProvisionError(f"swarm host {swarm.host!r} has no port")
        provisioner.ssh_command(
            _run_once(
                MASTER_CONTAINER,
                f"-p {manage_port}:{manage_port} {volume} {swarm.image} "
                + " ".join(master_args(swarm, docker_dir)),
            )
        )

    provisioner.ssh_command(
        _run_once(
            AGENT_CONTAINER,
            f"{swarm.image} join --advertise {ip}:{provisioner.engine_port()} {swarm.discovery}",
        )
    )
