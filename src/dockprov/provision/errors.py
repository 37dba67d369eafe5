# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/errors.py

from __future__ import annotations

from typing import Optional


class ProvisionError(RuntimeError):
    """Base class for provisioning failures."""


class DetectionError(ProvisionError):
    """Raised when the host OS cannot be identified."""


class UnknownProvisionerError(ProvisionError):
    """Raised when a registry lookup names no registered strategy."""


class NoCompatibleProvisionerError(ProvisionError):
    def __init__(self, os_id: str):
        super().__init__(f"no registered provisioner is compatible with os id '{os_id}'")
        self.os_id = os_id


class UnsupportedActionError(ProvisionError):
    def __init__(self, family: str, action: object):
        super().__init__(f"{family} provisioner does not support action '{action}'")
        self.family = family
        self.action = action


class ChannelError(ProvisionError):
    """Transport-level failure of the command channel (connect, timeout, closed)."""


class CommandExecutionError(ProvisionError):
    """
    A remote command returned non-zero or the channel failed while running it.
    """

    def __init__(
        self,
        command: str,
        cause: Optional[BaseException] = None,
        *,
        exit_status: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        if exit_status is not None:
            detail = f"exit status {exit_status}"
            if stderr.strip():
                detail += f": {stderr.strip()}"
        else:
            detail = str(cause) if cause else "unknown error"
        super().__init__(f"command failed ({detail}): {command}")
        self.command = command
        self.cause = cause
        self.exit_status = exit_status
        self.stdout = stdout
        self.stderr = stderr


class ReadinessTimeoutError(ProvisionError):
    def __init__(self, attempts: int, timeout: float):
        super().__init__(f"probe not ready after {attempts} attempts ({timeout:g}s)")
        self.attempts = attempts
        self.timeout = timeout


class CancelledError(ProvisionError):
    """Raised when a run is aborted by its cancellation token."""


class StepFailedError(ProvisionError):
    def __init__(self, step_index: int, step_name: str, cause: BaseException):
        super().__init__(f"step {step_index} ({step_name}) failed: {cause}")
        self.step_index = step_index
        self.step_name = step_name
        self.cause = cause
