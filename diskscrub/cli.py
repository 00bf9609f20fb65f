#!/usr/bin/env python3
"""diskscrub CLI - type-aware disk sanitization."""
import json
import signal
import threading
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from diskscrub.cli_support import (
    confirm_action,
    find_config,
    handle_cli_error,
    print_error,
    print_success,
    print_warning,
)
from diskscrub.core.config import load_config
from diskscrub.core.engine import SanitizationEngine
from diskscrub.core.logger import get_logger, setup_file_logging
from diskscrub.models.errors import AggregateEraseError, ConfigError, NoDevicesDetected
from diskscrub.models.task import SanitizationReport

app = typer.Typer(
    name="diskscrub",
    help="""diskscrub - Permanently destroy data on storage devices

HDDs get a 3-pass overwrite, SATA SSDs an ATA secure erase,
NVMe drives a secure format.

Quick start:
  diskscrub list                    # Show detected devices
  diskscrub erase /dev/sdb          # Erase after confirmation
""",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


def _build_engine(config_path: Optional[str], **overrides) -> SanitizationEngine:
    config = load_config(find_config(config_path))
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        config = config.merged(overrides)
    return SanitizationEngine(config)


def _render_report(report: SanitizationReport) -> None:
    table = Table(title="Sanitization Report", show_header=True, header_style="bold cyan")
    table.add_column("Device", style="bold")
    table.add_column("Status")
    table.add_column("Detail")
    for outcome in report.outcomes:
        if outcome.succeeded:
            status = "[green]erased[/green]"
            detail = outcome.descriptor.model if outcome.descriptor else ""
        else:
            status = "[red]failed[/red]"
            detail = outcome.error.message if outcome.error else ""
        table.add_row(outcome.device_path, status, detail)
    console.print(table)


@app.command("list")
def list_devices(
    json_output: bool = typer.Option(False, "--json", help="Print descriptors as JSON"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tracebacks on error"),
) -> None:
    """Detect and classify attached storage devices."""
    try:
        engine = _build_engine(config_path)
        descriptors = engine.list_devices()
    except NoDevicesDetected as e:
        print_error(console, f"No devices detected: {e}")
        raise typer.Exit(1)
    except ConfigError as e:
        handle_cli_error(e, console, verbose)

    if json_output:
        console.print_json(json.dumps([d.to_dict() for d in descriptors]))
        return

    table = Table(title="Storage Devices", show_header=True, header_style="bold cyan")
    table.add_column("Device", style="bold")
    table.add_column("Model")
    table.add_column("Media", style="cyan")
    table.add_column("Transport", style="blue")
    table.add_column("Source")
    for d in descriptors:
        source = d.source.value
        if d.is_synthesized:
            source = f"[yellow]{source}[/yellow]"
        table.add_row(
            d.device_path, d.model, d.media_type.value.upper(), d.transport.value.upper(), source
        )
    console.print(table)


@app.command("erase")
def erase(
    devices: List[str] = typer.Argument(..., help="Device paths to erase (e.g. /dev/sdb)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Maximum concurrent devices"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Write a detailed log file"),
    audit_log: Optional[str] = typer.Option(None, "--audit-log", help="Audit trail file"),
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and tracebacks"),
) -> None:
    """Permanently erase the given devices."""
    if log_file or verbose:
        setup_file_logging(log_file=log_file, verbose=verbose)

    try:
        engine = _build_engine(config_path, max_workers=workers, audit_log=audit_log)
    except ConfigError as e:
        handle_cli_error(e, console, verbose)

    if engine.config.mock:
        print_warning(console, "Mock mode: no destructive command will be executed")

    message = f"Permanently destroy ALL data on {', '.join(devices)}?"
    if not confirm_action(message, yes_flag=yes, mock=engine.config.mock):
        print_warning(console, "Aborted; no device was touched")
        raise typer.Exit(1)

    install_handler = threading.current_thread() is threading.main_thread()
    previous_handler = None
    if install_handler:
        def _on_interrupt(signum, frame):
            print_warning(console, "Cancelling: in-flight commands will finish, no new steps start")
            engine.cancel()

        previous_handler = signal.signal(signal.SIGINT, _on_interrupt)

    try:
        report = engine.erase(devices)
        failed = False
    except AggregateEraseError as e:
        report = e.report
        failed = True
    finally:
        if install_handler:
            signal.signal(signal.SIGINT, previous_handler or signal.default_int_handler)

    if json_output:
        console.print_json(json.dumps(report.to_dict()))
    else:
        _render_report(report)

    if failed:
        for line in report.failure_messages:
            print_error(console, line)
        raise typer.Exit(1)

    print_success(console, f"{len(report.outcomes)} device(s) erased")


def main():
    app()


if __name__ == "__main__":
    main()
