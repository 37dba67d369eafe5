# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/channel.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

import paramiko

from .errors import ChannelError

log = logging.getLogger("dockprov")


@dataclass(frozen=True)
class CommandResult:
    stdout: str
    stderr: str
    exit_status: int

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


class CommandChannel(Protocol):
    """
    Synchronous remote execution primitive. Implementations only move bytes;
    callers assemble the full command line (sudo prefixes included).
    """

    def run(self, command: str, *, pty: bool = False) -> CommandResult:
        """Run *command* and return its output. Raise ChannelError on transport failure."""
        ...

    def close(self) -> None: ...


class SSHChannel:
    def __init__(self, client: paramiko.SSHClient, *, timeout: Optional[float] = None):
        self.client = client
        self.timeout = timeout

    def run(self, command: str, *, pty: bool = False) -> CommandResult:
        try:
            _, stdout, stderr = self.client.exec_command(command, timeout=self.timeout, get_pty=pty)
            out = stdout.read().decode("utf-8", errors="replace")
            err = stderr.read().decode("utf-8", errors="replace")
            rc = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as exc:
            raise ChannelError(f"ssh transport failed running {command!r}: {exc}") from exc
        return CommandResult(stdout=out, stderr=err, exit_status=rc)

    def close(self) -> None:
        self.client.close()


def _load_pkey(pkey_path: Path):
    for key_cls in (
        paramiko.Ed25519Key,
        paramiko.RSAKey,
        paramiko.ECDSAKey,
    ):
        try:
            return key_cls.from_private_key_file(str(pkey_path))
        except paramiko.SSHException:
            continue
        except OSError as exc:
            raise ChannelError(f"cannot read private key {pkey_path}: {exc}") from exc
    raise ChannelError(f"unsupported private key format for {pkey_path}")


def open_ssh_channel(
    address: str,
    *,
    username: str,
    port: int = 22,
    password: Optional[str] = None,
    pkey_path: Optional[Path] = None,
    connect_timeout: float = 20.0,
    command_timeout: Optional[float] = None,
) -> SSHChannel:
    pkey = _load_pkey(pkey_path) if pkey_path else None

    client = paramiko.SSHClient()
    client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    try:
        client.connect(
            hostname=address,
            port=port,
            username=username,
            password=password if not pkey else None,
            pkey=pkey,
            timeout=connect_timeout,
            allow_agent=pkey is None and password is None,
            look_for_keys=pkey is None and password is None,
        )
    except (paramiko.SSHException, OSError) as exc:
        client.close()
        raise ChannelError(f"failed to SSH into {address}:{port} as '{username}': {exc}") from exc

    log.debug("[ssh] connected to %s:%d as %s", address, port, username)
    return SSHChannel(client, timeout=command_timeout)
