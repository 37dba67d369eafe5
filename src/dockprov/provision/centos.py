# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/centos.py

from __future__ import annotations

import shlex

from .engine_config import SYSCONFIG_TEMPLATE
from .base import Provisioner
from .pkgaction import PackageAction, ServiceAction


FIREWALLD_SERVICE = "/etc/firewalld/services/docker.xml"
FIREWALLD_ZONE = "/etc/firewalld/zones/public.xml"
FIREWALLD_DEFAULT_ZONE = "/usr/lib/firewalld/zones/public.xml"


class CentosProvisioner(Provisioner):
    family = "Centos"
    os_id = "centos"
    docker_options_template = SYSCONFIG_TEMPLATE
    docker_options_path = "/etc/sysconfig/docker"
    docker_options_dir = "/etc/default/docker"

    def package(self, name: str, action: PackageAction) -> None:
        action = PackageAction(action)
        self.ssh_command(f"sudo -E yum -y {action.value} {name}")

    def service(self, name: str, action: ServiceAction) -> None:
        action = ServiceAction(action)
        self.ssh_command(f"sudo systemctl {action.value} {name}")

    def fix_sudoers(self) -> None:
        # requiretty breaks sudo over a non-interactive session; the edit needs
        # a pty itself. Already-commented lines no longer match.
        self.ssh_command(
            "sudo sed -i 's/^Defaults.*requiretty$/# commented out by dockprov\\n#Defaults    requiretty/g' /etc/sudoers",
            pty=True,
        )

    def hosts_entry_command(self, hostname: str) -> str:
        pattern = hostname.replace(".", "\\.")
        return (
            f"grep -qE '^127\\.0\\.0\\.1[[:space:]](.*[[:space:]])?{pattern}([[:space:]]|$)' /etc/hosts"
            f" || sudo sed -i '/^127\\.0\\.0\\.1/ s/$/ {hostname}/' /etc/hosts"
        )

    def update_packages(self) -> None:
        # stale metadata leaves the engine install broken
        self.ssh_command("sudo -E yum -y update")

    def configure_firewall(self, port: int) -> None:
        service_xml = (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            "<service>\n"
            "  <short>Docker Daemon</short>\n"
            f'  <port protocol="tcp" port="{port}"/>\n'
            "</service>\n"
        )
        self.ssh_command(
            f"printf '%s' {shlex.quote(service_xml)} | sudo tee {FIREWALLD_SERVICE} >/dev/null"
        )
        self.ssh_command(
            f"sudo test -f {FIREWALLD_ZONE} || sudo cp {FIREWALLD_DEFAULT_ZONE} {FIREWALLD_ZONE}"
        )
        self.ssh_command(
            f"sudo grep -q '<service name=\"docker\"/>' {FIREWALLD_ZONE}"
            f" || sudo sed -i 's|</zone>|  <service name=\"docker\"/>\\n</zone>|' {FIREWALLD_ZONE}"
        )
        self.service("firewalld", ServiceAction.RESTART)
