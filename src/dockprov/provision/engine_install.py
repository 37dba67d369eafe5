# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/engine_install.py

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .pkgaction import ServiceAction

if TYPE_CHECKING:
    from .base import Provisioner

log = logging.getLogger("dockprov")


def install_engine(provisioner: "Provisioner") -> None:
    """
    Install the engine with the upstream convenience script unless a docker
    binary is already on PATH, then make sure the service is enabled and
    (re)started through the family's own service translator.
    """
    url = provisioner.engine_options.install_url
    provisioner.ssh_command(f"if ! type docker; then curl -sSL {url} | sh -; fi")
    provisioner.service("docker", ServiceAction.ENABLE)
    provisioner.service("docker", ServiceAction.RESTART)
