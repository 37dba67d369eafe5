# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/registry.py

from __future__ import annotations

import logging
from typing import Dict, List

from .base import Provisioner, ProvisionerFactory
from .centos import CentosProvisioner
from .driver import HostDriver
from .errors import NoCompatibleProvisionerError, UnknownProvisionerError
from .os_release import OsRelease, detect_os_release
from .ubuntu import UbuntuProvisioner

log = logging.getLogger("dockprov")


class ProvisionerRegistry:
    """
    Maps an OS family name to the factory building its strategy.

    Populate it once at start-up, then treat it as read-only; lookups from
    parallel runs need no locking after that. Re-registering a name replaces
    the factory (last writer wins) but keeps the name's original position in
    selection order.
    """

    def __init__(self):
        self._factories: Dict[str, ProvisionerFactory] = {}

    def register(self, name: str, factory: ProvisionerFactory) -> None:
        if name in self._factories:
            log.warning("Overriding existing provisioner registration for %s", name)
        self._factories[name] = factory
        log.debug("Registered provisioner %s", name)

    def lookup(self, name: str) -> ProvisionerFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise UnknownProvisionerError(f"no provisioner registered as '{name}'") from None

    def names(self) -> List[str]:
        return list(self._factories)

    def __contains__(self, name: str) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)


def build_default_registry() -> ProvisionerRegistry:
    registry = ProvisionerRegistry()
    registry.register("Centos", CentosProvisioner)
    registry.register("Ubuntu", UbuntuProvisioner)
    return registry


def select_provisioner(
    registry: ProvisionerRegistry,
    driver: HostDriver,
    os_release: OsRelease,
    **kwargs,
) -> Provisioner:
    """
    First registered strategy (in registration order) that claims the host.
    kwargs are passed through to the factory.
    """
    for name in registry.names():
        provisioner = registry.lookup(name)(driver, **kwargs)
        provisioner.set_os_release(os_release)
        if provisioner.compatible_with_host():
            log.info("[%s] using %s provisioner (os id %s)", driver.machine_name, name, os_release.id)
            return provisioner
    raise NoCompatibleProvisionerError(os_release.id)


def detect_provisioner(
    registry: ProvisionerRegistry,
    driver: HostDriver,
    **kwargs,
) -> Provisioner:
    """
    Read the host's os-release and select a strategy for it. The channel
    opened for detection is handed to the selected provisioner.
    """
    channel = driver.open_channel()
    try:
        info = detect_os_release(channel)
        provisioner = select_provisioner(registry, driver, info, **kwargs)
    except Exception:
        channel.close()
        raise
    provisioner.attach_channel(channel)
    return provisioner
