# src/dockprov/cli/app.py
from __future__ import annotations

import threading
from pathlib import Path
from typing import List, Optional

import typer

from dockprov.config.loader import load_config
from dockprov.config.models import HostSpec, ProvisionConfig
from dockprov.logging.log import init_logging
from dockprov.observers.dispatcher import EventBus
from dockprov.observers.jsonfile import JsonFileObserver
from dockprov.observers.logger import LoggerObserver
from dockprov.provision.auth import resolve_remote_auth_options
from dockprov.provision.errors import ProvisionError
from dockprov.provision.registry import build_default_registry, detect_provisioner
from dockprov.provision.runner import provision_hosts


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Turn fresh hosts into container-engine nodes")


def select_hosts(cfg: ProvisionConfig, names: Optional[List[str]]) -> List[HostSpec]:
    """
    Rules:
    - No --host → every host in the config
    - Otherwise → only the named hosts, in config order
    """
    if not names:
        return list(cfg.hosts)

    unknown = set(names) - set(cfg.by_name())
    if unknown:
        raise typer.BadParameter(
            f"Unknown hosts: {', '.join(sorted(unknown))}\n"
            f"Valid hosts: {', '.join(h.name for h in cfg.hosts)}"
        )
    return [h for h in cfg.hosts if h.name in names]


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def provision(
    config: Path = typer.Argument(..., help="Provisioning config YAML"),
    host: Optional[List[str]] = typer.Option(None, "--host", help="Only these hosts (repeatable)"),
    events_file: Optional[Path] = typer.Option(None, "--events-file", help="Append JSON events here"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir"),
    debug: bool = typer.Option(False, "--debug"),
):
    """Detect, select and provision every selected host."""
    cfg = load_config(config)
    hosts = select_hosts(cfg, host)

    logger, run_id, log_path = init_logging(base_dir=log_dir, verbose=debug)

    typer.echo("")
    typer.secho("Provisioning Started", bold=True)
    typer.echo(f"  Run ID   : {run_id}")
    typer.echo(f"  Logs     : {log_path}")
    typer.echo(f"  Hosts    : {', '.join(h.name for h in hosts)}")
    typer.echo("")

    observers = [LoggerObserver(logger)]
    if events_file:
        observers.append(JsonFileObserver(events_file))
    bus = EventBus(observers)

    cancel = threading.Event()
    drivers = [
        h.to_driver(command_timeout=cfg.command_timeout, engine_port=cfg.engine.port)
        for h in hosts
    ]
    try:
        report = provision_hosts(
            drivers,
            build_default_registry(),
            max_workers=cfg.max_workers,
            bus=bus,
            run_id=run_id,
            engine=cfg.engine,
            auth=cfg.auth,
            swarm=cfg.swarm,
            readiness=cfg.readiness,
            cancel=cancel,
        )
    except KeyboardInterrupt:
        cancel.set()
        typer.secho("Interrupted; in-flight commands were abandoned", fg=typer.colors.RED, err=True)
        raise typer.Exit(130)

    for r in report.results:
        if r.ok:
            typer.secho(f"  {r.machine_name}: OK ({r.provisioner})", fg=typer.colors.GREEN)
        else:
            step = f" at step {r.failed_step}" if r.failed_step else ""
            typer.secho(f"  {r.machine_name}: FAILED{step}: {r.error}", fg=typer.colors.RED)
    typer.echo(report.summary())

    if not report.ok:
        raise typer.Exit(1)


@app.command()
def detect(
    config: Path = typer.Argument(..., help="Provisioning config YAML"),
    host: Optional[List[str]] = typer.Option(None, "--host"),
):
    """Print each host's OS and the provisioner that would handle it."""
    cfg = load_config(config)
    registry = build_default_registry()
    failed = False

    for entry in select_hosts(cfg, host):
        try:
            provisioner = detect_provisioner(
                registry,
                entry.to_driver(command_timeout=cfg.command_timeout, engine_port=cfg.engine.port),
            )
        except ProvisionError as exc:
            typer.secho(f"{entry.name}: {exc}", fg=typer.colors.RED)
            failed = True
            continue
        try:
            info = provisioner.os_release
            typer.echo(f"{entry.name}: {info.id} {info.version} -> {provisioner.family}")
        finally:
            provisioner.close()

    if failed:
        raise typer.Exit(1)


@app.command()
def render(
    config: Path = typer.Argument(..., help="Provisioning config YAML"),
    host: str = typer.Option(..., "--host"),
    family: str = typer.Option(..., "--family", help="Registered provisioner name, e.g. Centos"),
):
    """Print the engine options file a host would receive, without connecting."""
    cfg = load_config(config)
    entry = select_hosts(cfg, [host])[0]

    try:
        factory = build_default_registry().lookup(family)
    except ProvisionError as exc:
        raise typer.BadParameter(str(exc))

    provisioner = factory(entry.to_driver(engine_port=cfg.engine.port))
    provisioner.engine_options = cfg.engine
    provisioner.auth_options = cfg.auth
    auth = resolve_remote_auth_options(provisioner)

    options = provisioner.generate_docker_options(provisioner.engine_port(), auth)
    typer.echo(f"# {options.remote_path}")
    typer.echo(options.content, nl=False)


if __name__ == "__main__":
    app()
