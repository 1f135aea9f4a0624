# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudbot/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pymysql
import typer

from cloudbot.config.loader import load_config
from cloudbot.config.models import PlatformConfig
from cloudbot.errors import RecordNotFoundError, ValidationError
from cloudbot.kube import manifests
from cloudbot.lifecycle.factory import build_orchestrator, build_store
from cloudbot.lifecycle.reconcile import DEFAULT_STALE_AFTER_SECONDS, reconcile_stale
from cloudbot.logging.log import init_logging
from cloudbot.observers.console import ConsoleObserver
from cloudbot.observers.dispatcher import EventBus
from cloudbot.observers.jsonfile import JsonFileObserver
from cloudbot.observers.logger import LoggerObserver
from cloudbot.store.mysql import MySQLStatusStore
from cloudbot.template.envfile import render_env_file
from cloudbot.workloads import naming
from cloudbot.workloads.models import BotRecord, BotStatus, CreateBotRequest, WorkloadDescriptor


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Cloud Bot Platform CLI")


class State:
    cfg: PlatformConfig
    verbose: bool = False


state = State()


@app.callback()
def main(
    config: Optional[Path] = typer.Option(None, "--config", help="Platform config YAML"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug output on the console"),
):
    """Provision, inspect and tear down tenant bots."""
    state.cfg = load_config(config)
    state.verbose = verbose


def _observers(logger, run_id: str) -> list:
    return [
        ConsoleObserver(),
        LoggerObserver(logger),
        JsonFileObserver(Path.home() / ".cloudbot/logs" / f"{run_id}.jsonl"),
    ]


def _echo_record(record: BotRecord) -> None:
    typer.echo(f"id={record.id} name={record.name} status={record.status.value}")
    if record.public_url:
        typer.echo(f"  url={record.public_url}")
    if record.internal_address:
        typer.echo(f"  internal={record.internal_address}")
    if record.cluster_reference:
        typer.echo(f"  deployment={record.cluster_reference}")
    if record.error_message:
        typer.echo(f"  error={record.error_message}")


def _descriptor(bot_id: int, name: str, token: str, capabilities: List[str]) -> WorkloadDescriptor:
    try:
        naming.ensure_safe_name(name)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return WorkloadDescriptor(
        id=bot_id,
        name=name,
        token=token,
        capabilities=tuple(capabilities),
        owner_id=0,
    )


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def create(
    owner: int = typer.Option(..., "--owner", help="Owner (user) id"),
    name: str = typer.Option(..., "--name"),
    token: str = typer.Option(..., "--token", help="Chat platform bot token"),
    capability: List[str] = typer.Option(..., "--capability", "-c", help="Enabled service, repeatable"),
):
    """Create a bot and provision it, waiting for the pipeline to finish."""
    logger, run_id, _ = init_logging(verbose=state.verbose)
    orchestrator = build_orchestrator(state.cfg, observers=_observers(logger, run_id))

    try:
        record = orchestrator.submit(
            CreateBotRequest(owner_id=owner, name=name, token=token, capabilities=capability)
        )
    except ValidationError as exc:
        orchestrator.shutdown()
        typer.echo(f"Rejected: {exc}", err=True)
        raise typer.Exit(code=2)

    final = orchestrator.wait(record.id)
    orchestrator.shutdown()
    _echo_record(final)
    if final.status != BotStatus.ACTIVE:
        raise typer.Exit(code=1)


@app.command()
def delete(
    bot_id: int = typer.Argument(..., help="Bot id"),
    owner: Optional[int] = typer.Option(None, "--owner", help="Only delete if owned by this user"),
):
    """Tear down a bot: cluster objects, working directory, record."""
    logger, run_id, _ = init_logging(verbose=state.verbose)
    orchestrator = build_orchestrator(state.cfg, observers=_observers(logger, run_id))
    try:
        report = orchestrator.delete(bot_id, owner_id=owner)
    except RecordNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    finally:
        orchestrator.shutdown()

    typer.echo(f"Bot {bot_id} deleted" + ("" if report.clean else " (cleanup incomplete)"))
    for err in report.errors:
        typer.echo(f"  {err}", err=True)


@app.command()
def status(bot_id: int = typer.Argument(..., help="Bot id")):
    """Show one bot record."""
    try:
        record = build_store(state.cfg).get(bot_id)
    except RecordNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    _echo_record(record)


@app.command("list")
def list_bots(owner: int = typer.Option(..., "--owner", help="Owner (user) id")):
    """List an owner's bots, newest first."""
    records = build_store(state.cfg).list_by_owner(owner)
    typer.echo(f"{len(records)}/{state.cfg.max_bots_per_owner} bots")
    for record in records:
        _echo_record(record)


@app.command()
def reconcile(
    stale_after: int = typer.Option(
        DEFAULT_STALE_AFTER_SECONDS, "--stale-after", help="Seconds a bot may stay in 'creating'"
    ),
):
    """Mark bots stuck in 'creating' (e.g. after a crash) as failed."""
    logger, run_id, _ = init_logging(verbose=state.verbose)
    fixed = reconcile_stale(
        build_store(state.cfg),
        stale_after_seconds=stale_after,
        bus=EventBus([LoggerObserver(logger)]),
        namespace=state.cfg.namespace,
    )
    typer.echo(f"{len(fixed)} stale bot(s) marked as error")


@app.command("init-db")
def init_db():
    """Create the bots table if it does not exist."""
    store = build_store(state.cfg)
    if not isinstance(store, MySQLStatusStore):
        typer.echo("No mysql settings configured", err=True)
        raise typer.Exit(code=1)
    try:
        store.ensure_schema()
    except pymysql.MySQLError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    typer.echo("bots table ready")


@app.command("render-env")
def render_env(
    name: str = typer.Option(..., "--name"),
    token: str = typer.Option(..., "--token"),
    capability: List[str] = typer.Option(..., "--capability", "-c"),
    bot_id: int = typer.Option(0, "--id"),
):
    """Print the environment file a bot would get."""
    cfg = state.cfg
    try:
        text = render_env_file(
            _descriptor(bot_id, name, token, capability),
            cfg.secrets,
            port=cfg.bot_port,
            weather_city=cfg.weather_city,
            platform_version=cfg.platform_version,
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(text, nl=False)


@app.command("render-manifest")
def render_manifest(
    name: str = typer.Option(..., "--name"),
    token: str = typer.Option(..., "--token"),
    capability: List[str] = typer.Option(..., "--capability", "-c"),
    bot_id: int = typer.Option(0, "--id"),
):
    """Print the Deployment + Service a bot would get."""
    descriptor = _descriptor(bot_id, name, token, capability)
    tag = naming.image_tag(descriptor.name, descriptor.id)
    typer.echo(manifests.to_yaml(manifests.build_objects(descriptor, tag, state.cfg)), nl=False)


if __name__ == "__main__":
    app()
