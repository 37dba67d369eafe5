# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/os_release.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

from .channel import CommandChannel
from .errors import ChannelError, DetectionError

log = logging.getLogger("dockprov")

OS_RELEASE_COMMAND = "cat /etc/os-release"


@dataclass(frozen=True)
class OsRelease:
    id: str
    version: str = ""
    version_id: str = ""
    like: Tuple[str, ...] = ()
    name: str = ""
    pretty_name: str = ""


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_os_release(text: str) -> OsRelease:
    """
    Parse the KEY=value body of an os-release file.

    Blank lines and comments are skipped; any other line without '=' makes the
    whole document unparsable.
    """
    fields: Dict[str, str] = {}
    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep or not key.strip():
            raise DetectionError(f"unparsable os-release line {lineno}: {raw!r}")
        fields[key.strip()] = _unquote(value.strip())

    os_id = fields.get("ID", "").strip().lower()
    if not os_id:
        raise DetectionError("os-release data has no ID field")

    return OsRelease(
        id=os_id,
        version=fields.get("VERSION") or fields.get("VERSION_ID", ""),
        version_id=fields.get("VERSION_ID", ""),
        like=tuple(fields.get("ID_LIKE", "").lower().split()),
        name=fields.get("NAME", ""),
        pretty_name=fields.get("PRETTY_NAME", ""),
    )


def detect_os_release(channel: CommandChannel) -> OsRelease:
    try:
        result = channel.run(OS_RELEASE_COMMAND)
    except ChannelError as exc:
        raise DetectionError(f"could not read os-release: {exc}") from exc
    if not result.ok:
        raise DetectionError(
            f"'{OS_RELEASE_COMMAND}' exited {result.exit_status}: {result.stderr.strip()}"
        )

    info = parse_os_release(result.stdout)
    log.debug("detected os-release id=%s version=%s", info.id, info.version)
    return info
