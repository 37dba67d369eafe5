# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/auth.py

from __future__ import annotations

import logging
import posixpath
import shlex
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .errors import ProvisionError
from .options import AuthOptions
from .pkgaction import ServiceAction

if TYPE_CHECKING:
    from .base import Provisioner

log = logging.getLogger("dockprov")


def resolve_remote_auth_options(provisioner: "Provisioner") -> AuthOptions:
    """
    Point the remote certificate paths into the family's options directory and
    make sure the host's address is among the server certificate SANs.
    """
    docker_dir = provisioner.get_docker_options_dir()
    auth = provisioner.auth_options

    sans = list(auth.server_cert_sans)
    ip = provisioner.driver.ip_address()
    if ip and ip not in sans:
        sans.append(ip)

    # posixpath: these are paths on the remote linux host
    return auth.model_copy(
        update={
            "ca_cert_remote_path": posixpath.join(docker_dir, "ca.pem"),
            "server_cert_remote_path": posixpath.join(docker_dir, "server.pem"),
            "server_key_remote_path": posixpath.join(docker_dir, "server-key.pem"),
            "server_cert_sans": sans,
        }
    )


def _local_material(explicit: Optional[str], store_path: Optional[str], filename: str) -> Path:
    if explicit:
        return Path(explicit)
    if store_path:
        return Path(store_path) / filename
    raise ProvisionError(f"no local path configured for {filename} (set it or store_path)")


def write_remote_file(provisioner: "Provisioner", content: str, remote_path: str) -> None:
    provisioner.ssh_command(
        f"printf '%s' {shlex.quote(content)} | sudo tee {remote_path} >/dev/null"
    )


def configure_auth(provisioner: "Provisioner", auth_options: AuthOptions) -> None:
    """
    Push the CA and server certificate/key to the host, write the daemon
    options that reference them, and bounce the engine.
    """
    material = [
        (_local_material(auth_options.ca_cert_path, auth_options.store_path, "ca.pem"),
         auth_options.ca_cert_remote_path),
        (_local_material(auth_options.server_cert_path, auth_options.store_path, "server.pem"),
         auth_options.server_cert_remote_path),
        (_local_material(auth_options.server_key_path, auth_options.store_path, "server-key.pem"),
         auth_options.server_key_remote_path),
    ]

    # read everything up front; a missing file must not leave the engine stopped
    contents = []
    for local, remote in material:
        try:
            contents.append((local, local.read_text(encoding="utf-8"), remote))
        except OSError as exc:
            raise ProvisionError(f"cannot read certificate material {local}: {exc}") from exc

    provisioner.service("docker", ServiceAction.STOP)

    for local, content, remote in contents:
        log.debug("[%s] copying %s -> %s", provisioner.driver.machine_name, local, remote)
        write_remote_file(provisioner, content, remote)

    options = provisioner.generate_docker_options(provisioner.engine_port(), auth_options)
    write_remote_file(provisioner, options.content, options.remote_path)

    provisioner.service("docker", ServiceAction.START)
