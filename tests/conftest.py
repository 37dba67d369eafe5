from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytest

from dockprov.provision.channel import CommandResult

CENTOS_OS_RELEASE = """\
NAME="CentOS Linux"
VERSION="7 (Core)"
ID="centos"
ID_LIKE="rhel fedora"
VERSION_ID="7"
PRETTY_NAME="CentOS Linux 7 (Core)"
ANSI_COLOR="0;31"
HOME_URL="https://www.centos.org/"
"""

UBUNTU_OS_RELEASE = """\
NAME="Ubuntu"
VERSION="14.04.2 LTS, Trusty Tahr"
ID=ubuntu
ID_LIKE=debian
PRETTY_NAME="Ubuntu 14.04.2 LTS"
VERSION_ID="14.04"
"""


# ----------------- Fakes for the command channel / host driver -----------------

class FakeChannel:
    """
    Records every command. Responses are matched by substring, first match
    wins; a response can be a CommandResult, an (out, err, rc) tuple, an
    exception to raise, or a callable taking the command.
    """

    def __init__(self, responses: Optional[Dict[str, object]] = None):
        self.commands: List[str] = []
        self.pty_commands: List[str] = []
        self.responses: Dict[str, object] = dict(responses or {})
        self.closed = False

    def run(self, command: str, *, pty: bool = False) -> CommandResult:
        self.commands.append(command)
        if pty:
            self.pty_commands.append(command)
        for needle, resp in self.responses.items():
            if needle in command:
                if callable(resp) and not isinstance(resp, type):
                    resp = resp(command)
                if isinstance(resp, BaseException):
                    raise resp
                if isinstance(resp, tuple):
                    resp = CommandResult(*resp)
                return resp
        return CommandResult("", "", 0)

    def close(self) -> None:
        self.closed = True

    def index_of(self, needle: str) -> int:
        for i, cmd in enumerate(self.commands):
            if needle in cmd:
                return i
        raise AssertionError(f"no command containing {needle!r}: {self.commands}")

    def count(self, needle: str) -> int:
        return sum(1 for c in self.commands if needle in c)


@dataclass
class FakeDriver:
    channel: FakeChannel
    machine_name: str = "node-1"
    driver_name: str = "virtualbox"
    address: Optional[str] = "10.0.0.5"
    port: int = 2376
    opened: int = field(default=0)

    def ip_address(self) -> Optional[str]:
        return self.address

    def engine_url(self) -> str:
        return f"tcp://{self.address}:{self.port}"

    def open_channel(self) -> FakeChannel:
        self.opened += 1
        return self.channel


@pytest.fixture
def make_driver():
    def _make(os_release: Optional[str] = CENTOS_OS_RELEASE, responses=None, **kw) -> FakeDriver:
        resp = {}
        if os_release is not None:
            resp["cat /etc/os-release"] = (os_release, "", 0)
        resp.update(responses or {})
        return FakeDriver(channel=FakeChannel(resp), **kw)
    return _make


@pytest.fixture
def cert_store(tmp_path):
    """A local store with CA and server certificate material."""
    for name, body in (("ca.pem", "CA-CERT"), ("server.pem", "SERVER-CERT"), ("server-key.pem", "SERVER-KEY")):
        (tmp_path / name).write_text(body)
    return tmp_path
