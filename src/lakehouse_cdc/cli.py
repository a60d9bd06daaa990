"""Lakehouse CDC CLI"""

from __future__ import annotations
import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table as RichTable

from .config import HarnessSettings
from .connect import KafkaConnectClient
from .connectors import DEFAULT_CONNECTORS, RawConnector
from .connectors.base import ConnectorDefinition
from .db import SourceDatabase
from .exceptions import PartialWarmupError
from .stores.cache import CacheStore
from .stores.iceberg import TrinoQueryClient
from .stores.search import SearchStore
from .warmup import PipelineWarmup, Sink

# Set up logging and console
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
console = Console()

app = typer.Typer(
    help="Lakehouse CDC CLI - Register connectors and check change propagation."
)

connectors_app = typer.Typer(help="Kafka Connect connector commands")
app.add_typer(connectors_app, name="connectors")


def default_url_for(name: str, settings: HarnessSettings) -> str:
    """Connect worker that hosts a known connector."""
    return {
        "postgres-source": settings.debezium_url,
        "elasticsearch-sink": settings.elasticsearch_sink_url,
        "iceberg-sink": settings.iceberg_sink_url,
        "redis-sink": settings.redis_sink_url,
    }.get(name, settings.debezium_url)


def resolve_connector(name: str, config_file: Optional[Path]) -> ConnectorDefinition:
    if config_file is not None:
        return RawConnector.from_payload(json.loads(config_file.read_text()))
    if name not in DEFAULT_CONNECTORS:
        known = ", ".join(sorted(DEFAULT_CONNECTORS))
        raise typer.BadParameter(f"unknown connector '{name}' (known: {known}); pass --file")
    return DEFAULT_CONNECTORS[name]


def _client(name: str, url: Optional[str]) -> KafkaConnectClient:
    return KafkaConnectClient(url or default_url_for(name, HarnessSettings.from_env()))


def _fail(e: Exception) -> None:
    console.print(f"❌ Error: {e}", style="red")
    raise typer.Exit(1)


@connectors_app.command("list")
def list_connectors(
    url: Optional[str] = typer.Option(None, help="Connect worker URL; default env DEBEZIUM_URL"),
):
    """List connectors registered on a Connect worker."""
    try:
        with _client("", url) as client:
            names = client.list_connectors()
    except Exception as e:
        _fail(e)
    for name in names:
        console.print(f"  - {name}")


@connectors_app.command()
def register(
    name: str = typer.Argument(..., help="Connector name"),
    url: Optional[str] = typer.Option(None, help="Connect worker URL"),
    config_file: Optional[Path] = typer.Option(
        None, "--file", exists=True, readable=True, help="JSON {name, config} document"),
    wait: bool = typer.Option(True, help="Wait for the connector to reach RUNNING"),
    timeout: float = typer.Option(60.0, help="Seconds to wait for RUNNING"),
):
    """Register a connector; an existing connector counts as success."""
    try:
        connector = resolve_connector(name, config_file)
        with _client(connector.name, url) as client:
            outcome = client.register_connector(connector)
            console.print(f"✓ {connector.name}: {outcome.value}")
            if wait:
                client.wait_for_running(connector.name, timeout)
                console.print(f"✓ {connector.name} is RUNNING")
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e)


@connectors_app.command()
def status(
    name: str = typer.Argument(..., help="Connector name"),
    url: Optional[str] = typer.Option(None, help="Connect worker URL"),
):
    """Show connector and task states."""
    try:
        with _client(name, url) as client:
            connector_status = client.get_connector_status(name)
    except Exception as e:
        _fail(e)

    rich_table = RichTable(title=f"Connector {name}")
    rich_table.add_column("Component", style="cyan")
    rich_table.add_column("State", style="green")
    rich_table.add_column("Worker", style="dim")
    rich_table.add_row("connector", connector_status.connector.state,
                       connector_status.connector.worker_id or "")
    for task in connector_status.tasks:
        rich_table.add_row(f"task {task.id}", task.state, task.worker_id or "")
    console.print(rich_table)

    if not connector_status.is_running:
        raise typer.Exit(1)


@connectors_app.command("wait")
def wait_running(
    name: str = typer.Argument(..., help="Connector name"),
    url: Optional[str] = typer.Option(None, help="Connect worker URL"),
    timeout: float = typer.Option(30.0, help="Seconds to wait"),
):
    """Block until a connector and all its tasks are RUNNING."""
    try:
        with _client(name, url) as client:
            client.wait_for_running(name, timeout)
    except Exception as e:
        _fail(e)
    console.print(f"✓ {name} is RUNNING")


@connectors_app.command()
def delete(
    name: str = typer.Argument(..., help="Connector name"),
    url: Optional[str] = typer.Option(None, help="Connect worker URL"),
):
    """Delete a connector."""
    try:
        with _client(name, url) as client:
            deleted = client.delete_connector(name)
    except Exception as e:
        _fail(e)
    console.print(f"✓ Deleted {name}" if deleted else f"{name} did not exist")


@app.command()
def warmup(
    sinks: List[Sink] = typer.Argument(None, help="Sinks to warm up (default: all)"),
    timeout: Optional[float] = typer.Option(None, help="Override the per-sink deadline"),
    sequential: bool = typer.Option(False, help="Warm up one sink at a time"),
    verbose: bool = typer.Option(False, help="Enable verbose logging"),
):
    """Insert a marker user and wait until it reaches each sink."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    sinks = sinks or list(Sink)
    pipeline = PipelineWarmup()
    failure = None
    try:
        if sequential:
            reports = [pipeline.warm_up(sink, timeout) for sink in sinks]
        else:
            reports = asyncio.run(pipeline.warm_up_all(sinks, timeout))
    except PartialWarmupError as e:
        reports, failure = e.reports, e
    except Exception as e:
        _fail(e)
    finally:
        pipeline.close()

    rich_table = RichTable(title="Pipeline warmup")
    rich_table.add_column("Sink", style="cyan")
    rich_table.add_column("Connector", style="green")
    rich_table.add_column("Marker", style="dim")
    rich_table.add_column("Attempts", justify="right", style="yellow")
    rich_table.add_column("Elapsed (s)", justify="right", style="blue")
    for report in reports:
        rich_table.add_row(
            report.sink.value,
            report.registration.value,
            report.user.email,
            str(report.result.attempt_count),
            f"{report.elapsed:.1f}",
        )
    console.print(rich_table)

    if failure is not None:
        for sink, error in failure.failures.items():
            console.print(f"❌ {sink}: {error}", style="red")
        raise typer.Exit(1)


def _connect_healthy(url: str) -> bool:
    with KafkaConnectClient(url) as client:
        return client.health_check()


def _search_healthy(node: str) -> bool:
    with SearchStore(node=node) as store:
        return store.health_status() in ("green", "yellow")


def _cache_healthy(url: str) -> bool:
    with CacheStore(url=url) as store:
        return store.health_check()


@app.command()
def health():
    """Check that every service of the stack answers."""
    settings = HarnessSettings.from_env()
    checks = {
        "postgres": lambda: SourceDatabase(settings.db).health_check(),
        "debezium": lambda: _connect_healthy(settings.debezium_url),
        "elasticsearch-sink": lambda: _connect_healthy(settings.elasticsearch_sink_url),
        "iceberg-sink": lambda: _connect_healthy(settings.iceberg_sink_url),
        "redis-sink": lambda: _connect_healthy(settings.redis_sink_url),
        "trino": lambda: TrinoQueryClient(settings.trino).health_check(),
        "elasticsearch": lambda: _search_healthy(settings.elasticsearch_url),
        "redis": lambda: _cache_healthy(settings.redis_url),
    }

    healthy = True
    for service, check in checks.items():
        ok = check()
        healthy = healthy and ok
        console.print(f"  {'✓' if ok else '❌'} {service}")

    if not healthy:
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    from . import __version__
    console.print(f"Lakehouse CDC v{__version__}")


if __name__ == "__main__":
    app()
