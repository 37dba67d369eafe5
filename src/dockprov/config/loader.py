# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/config/loader.py

import logging
import os
import yaml
from pathlib import Path
from .models import ProvisionConfig

log = logging.getLogger("dockprov")


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge secrets *override* into config *base* (mutates base).

    Secrets fill in or replace config values but never clear them: a null or
    empty-string secret leaves the config value as it is, so a blank
    placeholder such as `password: ""` in secrets.yaml cannot wipe a password
    set in the config. To remove a value, delete it from the config itself.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _find_secrets_file(config_path: Path) -> Path | None:
    """
    Locate secrets.yaml using this priority:

    1. DOCKPROV_SECRETS_FILE environment variable (explicit override)
    2. secrets.yaml in the same directory as the config
    """
    env = os.environ.get("DOCKPROV_SECRETS_FILE")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("DOCKPROV_SECRETS_FILE=%s does not exist, skipping", env)
        return None

    p = config_path.parent / "secrets.yaml"
    if p.is_file():
        return p

    return None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def load_config(path: str | Path) -> ProvisionConfig:
    """
    Load and validate a provisioning config.

    Host passwords and similar can live in a ``secrets.yaml`` mirroring the
    config's structure (found via ``DOCKPROV_SECRETS_FILE`` or next to the
    config); it is deep-merged before validation. ``${ENV_VAR}`` placeholders
    are expanded in both files. Note that ``hosts`` is a list, so a secrets
    file that sets it replaces the whole list.
    """
    path = Path(path)
    data = _load_yaml(path)

    secrets_path = _find_secrets_file(path)
    if secrets_path:
        log.debug("Merging secrets from %s", secrets_path)
        _deep_merge(data, _load_yaml(secrets_path))
    else:
        log.debug("No secrets.yaml found, proceeding without secrets merge")

    return ProvisionConfig.model_validate(data)
