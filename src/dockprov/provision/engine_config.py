# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dockprov/provision/engine_config.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from jinja2 import Environment, StrictUndefined

from .options import AuthOptions, EngineOptions

_env = Environment(autoescape=False, keep_trailing_newline=True, undefined=StrictUndefined)

# Shared body of the daemon flag block. One flag per line; repeated groups
# produce nothing when their list is empty.
_FLAGS_BLOCK = """\
-H tcp://0.0.0.0:{{ port }}
-H unix:///var/run/docker.sock
--storage-driver {{ engine.storage_driver }}
{% if engine.tls_verify %}--tlsverify
{% endif %}--tlscacert {{ auth.ca_cert_remote_path }}
--tlscert {{ auth.server_cert_remote_path }}
--tlskey {{ auth.server_key_remote_path }}
{% for label in engine.labels %}--label {{ label }}
{% endfor %}{% for registry in engine.insecure_registry %}--insecure-registry {{ registry }}
{% endfor %}{% for mirror in engine.registry_mirror %}--registry-mirror {{ mirror }}
{% endfor %}{% for server in engine.dns %}--dns {{ server }}
{% endfor %}{% if engine.log_level %}--log-level {{ engine.log_level }}
{% endif %}{% for flag in engine.arbitrary_flags %}--{{ flag }}
{% endfor %}"""

SYSCONFIG_TEMPLATE = "\nOPTIONS='\n" + _FLAGS_BLOCK + "\n'\n"

DEFAULT_FILE_TEMPLATE = (
    "\nDOCKER_OPTS='\n"
    + _FLAGS_BLOCK
    + "\n'\n"
    + """{% for item in engine.env %}export "{{ item | replace('"', '\\\\"') }}"
{% endfor %}"""
)


@dataclass(frozen=True)
class EngineConfigContext:
    port: int
    auth: AuthOptions
    engine: EngineOptions


@dataclass(frozen=True)
class DockerOptions:
    content: str
    remote_path: str


def with_provider_label(engine: EngineOptions, driver_name: str) -> EngineOptions:
    """Copy of *engine* with provider=<driver_name> appended to its labels."""
    return engine.model_copy(
        update={"labels": [*engine.labels, f"provider={driver_name}"]}, deep=True
    )


def render_docker_options(
    template: str,
    remote_path: str,
    *,
    port: int,
    auth_options: AuthOptions,
    engine_options: EngineOptions,
    driver_name: str,
) -> DockerOptions:
    ctx = EngineConfigContext(
        port=port,
        auth=auth_options,
        engine=with_provider_label(engine_options, driver_name),
    )
    content = _env.from_string(template).render(port=ctx.port, auth=ctx.auth, engine=ctx.engine)
    return DockerOptions(content=content, remote_path=remote_path)


@dataclass
class ParsedDockerOptions:
    hosts: List[str] = field(default_factory=list)
    storage_driver: str = ""
    tls: Dict[str, str] = field(default_factory=dict)
    labels: List[str] = field(default_factory=list)
    insecure_registry: List[str] = field(default_factory=list)
    registry_mirror: List[str] = field(default_factory=list)
    dns: List[str] = field(default_factory=list)
    log_level: str = ""
    arbitrary_flags: List[str] = field(default_factory=list)


_REPEATED = {
    "--label": "labels",
    "--insecure-registry": "insecure_registry",
    "--registry-mirror": "registry_mirror",
    "--dns": "dns",
}


def parse_docker_options(content: str) -> ParsedDockerOptions:
    """
    Recover the flag groups from rendered daemon options (the quoted block
    after OPTIONS= / DOCKER_OPTS=).
    """
    start = content.index("='") + 2
    end = content.index("'", start)
    parsed = ParsedDockerOptions()

    for line in content[start:end].splitlines():
        line = line.strip()
        if not line:
            continue
        flag, _, value = line.partition(" ")
        if flag == "-H":
            parsed.hosts.append(value)
        elif flag == "--storage-driver":
            parsed.storage_driver = value
        elif flag in ("--tlsverify", "--tlscacert", "--tlscert", "--tlskey"):
            parsed.tls[flag[2:]] = value
        elif flag == "--log-level":
            parsed.log_level = value
        elif flag in _REPEATED:
            getattr(parsed, _REPEATED[flag]).append(value)
        else:
            parsed.arbitrary_flags.append(line[2:])
    return parsed
