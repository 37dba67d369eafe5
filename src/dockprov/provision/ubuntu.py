# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/ubuntu.py

from __future__ import annotations

from .engine_config import DEFAULT_FILE_TEMPLATE
from .base import Provisioner
from .errors import UnsupportedActionError
from .pkgaction import PackageAction, ServiceAction

_APT_VERBS = {
    PackageAction.INSTALL: "install",
    PackageAction.REMOVE: "remove",
}

_RC_VERBS = {ServiceAction.ENABLE, ServiceAction.DISABLE}


class UbuntuProvisioner(Provisioner):
    family = "Ubuntu"
    os_id = "ubuntu"
    docker_options_template = DEFAULT_FILE_TEMPLATE
    docker_options_path = "/etc/default/docker"
    docker_options_dir = "/etc/docker"

    def package(self, name: str, action: PackageAction) -> None:
        action = PackageAction(action)
        verb = _APT_VERBS.get(action)
        if verb is None:
            raise UnsupportedActionError(self.family, action)
        self.ssh_command(f"DEBIAN_FRONTEND=noninteractive sudo -E apt-get {verb} -y {name}")

    def service(self, name: str, action: ServiceAction) -> None:
        action = ServiceAction(action)
        if action in _RC_VERBS:
            self.ssh_command(f"sudo update-rc.d {name} {action.value}")
        else:
            self.ssh_command(f"sudo service {name} {action.value}")

    def hosts_entry_command(self, hostname: str) -> str:
        return (
            "if grep -xq '127.0.1.1.*' /etc/hosts; then "
            f"sudo sed -i 's/^127.0.1.1.*/127.0.1.1 {hostname}/g' /etc/hosts; "
            f"else echo '127.0.1.1 {hostname}' | sudo tee -a /etc/hosts; fi"
        )

    def update_packages(self) -> None:
        self.ssh_command("sudo apt-get update")
