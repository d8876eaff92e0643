"""Typer CLI entrypoint for Endpoint Shuffle."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer
import uvicorn
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from .config import AppConfig, ConfigRepository
from .engine import ReconcileReport
from .errors import StagingError, StoreError
from .infra import SQLiteManager
from .logging_conf import available_logs, configure_logging, current_log_dir, tail_log
from .orchestrator import CycleResult, Orchestrator
from .scheduler import APSchedulerAdapter
from .web import create_app

app = typer.Typer(
    help="Endpoint Shuffle command line tool",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(name="config", help="Configuration commands", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Log viewing commands", no_args_is_help=True)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    config: AppConfig
    storage: SQLiteManager
    scheduler: APSchedulerAdapter
    orchestrator: Orchestrator


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose, log_dir=repository.locator.logs_dir)
    config = repository.load()
    storage = SQLiteManager()
    scheduler = APSchedulerAdapter()
    orchestrator = Orchestrator.from_repository(repository, storage, scheduler=scheduler)
    return AppState(
        repository=repository,
        config=config,
        storage=storage,
        scheduler=scheduler,
        orchestrator=orchestrator,
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _render_report(report: ReconcileReport) -> Table:
    table = Table(title="Reconciliation", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    for key, value in report.as_dict().items():
        table.add_row(key, str(value))
    return table


def _print_cycle(result: CycleResult) -> None:
    if result.scanned:
        console.print(f"Staged {result.scanned} endpoints.")
    if result.report is not None:
        console.print(_render_report(result.report))
    if result.status == "skipped":
        console.print("Reconciliation skipped: desired set is empty.", style="yellow")
    elif not result.ok:
        console.print(
            f"Cycle failed ({result.status}): {result.error}", style="red", markup=False
        )


app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging", is_flag=True),
) -> None:
    state = build_state(verbose)
    ctx.obj = state
    ctx.call_on_close(state.orchestrator.shutdown)


@app.command("serve", help="Sync from the staging file, start the scheduler and serve HTTP.")
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
    no_scheduler: bool = typer.Option(False, "--no-scheduler", help="Do not run periodic scans"),
) -> None:
    state = _get_state(ctx)
    server_cfg = state.config.server
    orchestrator = state.orchestrator
    _print_cycle(orchestrator.initial_sync())
    if state.config.schedule.enabled and not no_scheduler:
        orchestrator.start_schedule(state.config)
    template_path = server_cfg.resolved_template_path(state.repository.locator.data_dir)
    web_app = create_app(orchestrator.store, template_path=template_path)
    bind_host = host or server_cfg.host
    bind_port = port or server_cfg.port
    console.print(f"Server started at http://{bind_host}:{bind_port}", style="green")
    try:
        uvicorn.run(web_app, host=bind_host, port=bind_port, log_config=None)
    finally:
        orchestrator.shutdown()
        state.storage.close_all()


@app.command("scan", help="Run one scan now and reconcile the store.")
def scan(
    ctx: typer.Context,
    no_sync: bool = typer.Option(False, "--no-sync", help="Only stage the scan results"),
) -> None:
    state = _get_state(ctx)
    result = state.orchestrator.run_cycle(sync=not no_sync)
    _print_cycle(result)
    if result.status not in ("ok", "skipped"):
        raise typer.Exit(code=1)


@app.command("sync", help="Reconcile the store against the staging file.")
def sync(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    try:
        report = state.orchestrator.sync_from_staging()
    except (StagingError, StoreError) as exc:
        console.print(f"Sync failed: {exc}", style="red", markup=False)
        raise typer.Exit(code=1)
    console.print(_render_report(report))


@app.command("pick", help="Print one random endpoint.")
def pick(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    try:
        url = state.orchestrator.store.pick_random()
    except StoreError as exc:
        console.print(f"Store unavailable: {exc}", style="red", markup=False)
        raise typer.Exit(code=1)
    if url is None:
        console.print("No endpoints stored.", style="yellow")
        raise typer.Exit(code=1)
    console.print(url, markup=False, highlight=False)


@app.command("list", help="List stored endpoints.")
def list_endpoints(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    try:
        records = state.orchestrator.store.read_all()
    except StoreError as exc:
        console.print(f"Store unavailable: {exc}", style="red", markup=False)
        raise typer.Exit(code=1)
    table = Table(title=f"Endpoints · {len(records)} total", box=box.SIMPLE_HEAD)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("URL", style="cyan", overflow="fold")
    for record in records:
        table.add_row(str(record.id), record.url)
    console.print(table)


@config_app.command("show", help="Print the effective configuration.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    console.print(f"# {state.repository.locator.config_path()}", style="dim")
    console.print(
        yaml.safe_dump(state.config.model_dump(mode="json"), sort_keys=False), markup=False
    )


@log_app.command("list", help="List available log files.")
def log_list() -> None:
    logs = list(available_logs())
    if not logs:
        console.print("No log files yet.", style="yellow")
        return
    for path in logs:
        console.print(str(path))


@log_app.command("show", help="Show the tail of a log file.")
def log_show(
    name: str = typer.Argument("service", help="Log name without extension"),
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines"),
) -> None:
    path = current_log_dir() / f"{name}.log"
    content = tail_log(path, lines)
    if not content:
        console.print(f"{path} is empty or missing.", style="yellow")
        return
    console.print("".join(content), end="", markup=False, highlight=False)


def cli() -> None:
    app()


__all__ = ["AppState", "app", "build_state", "cli"]
