"""
ktrace CLI.

Commands:
- dump: Decode a ktrace dump file and print one line per record
- stats: Record counts per type
- config: Configuration management
- version: Show version
"""

import json
import logging
from collections import Counter
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..config import KtraceConfig, load_config, generate_default_config
from ..display import format_decoded, format_record
from ..formats.byteorder import ByteOrder
from ..formats.reader import DecodeResult, KtraceReader

logger = logging.getLogger(__name__)


app = typer.Typer(
    name="ktrace",
    help="Decode BSD ktrace(2) dump files",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


class OutputFormat(str, Enum):
    text = "text"
    table = "table"
    json = "json"


def _setup_logging(level: str):
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load(
    config_path: Optional[Path],
    byte_order: Optional[ByteOrder] = None,
    word_size: Optional[int] = None,
    log_level: Optional[str] = None,
) -> KtraceConfig:
    """Load config, apply command-line overrides and validate."""
    try:
        cfg = load_config(config_path)
    except Exception as e:
        err_console.print(f"[red]Error loading config:[/] {e}")
        raise typer.Exit(1)

    if byte_order is not None:
        cfg.decode.byte_order = byte_order.value
    if word_size is not None:
        cfg.decode.word_size = word_size
    if log_level is not None:
        cfg.logging.level = log_level

    errors = cfg.validate()
    if errors:
        err_console.print("[red]Invalid configuration:[/]")
        for e in errors:
            err_console.print(f"  - {e}")
        raise typer.Exit(1)

    return cfg


def _decode(trace_file: Path, cfg: KtraceConfig) -> DecodeResult:
    try:
        return KtraceReader.read_path(trace_file, cfg.decode.options())
    except OSError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1)


def _print_text(result: DecodeResult, data_preview: int):
    console.print(f"Parsed {len(result)} records:", highlight=False)
    for decoded in result:
        console.print(
            format_decoded(decoded, data_preview),
            markup=False, highlight=False, emoji=False, soft_wrap=True,
        )


def _print_table(result: DecodeResult, data_preview: int):
    table = Table(title=f"{len(result)} records")
    table.add_column("#", justify="right")
    table.add_column("PID", justify="right")
    table.add_column("TID", justify="right")
    table.add_column("Command")
    table.add_column("Time")
    table.add_column("Type")
    table.add_column("Record")

    for i, decoded in enumerate(result):
        h = decoded.header
        if decoded.ok:
            body = escape(format_record(decoded.record, data_preview))
        else:
            body = f"[red]<error: {escape(str(decoded.error))}>[/]"
        table.add_row(
            str(i), str(h.pid), str(h.tid), escape(h.command), str(h.timestamp),
            h.record_type.label, body,
        )

    console.print(table)


def _result_dict(result: DecodeResult) -> dict:
    return {
        'count': len(result),
        'records': [d.to_dict() for d in result],
        'error': result.error.to_dict() if result.error else None,
    }


def _print_json(result: DecodeResult):
    console.print(json.dumps(_result_dict(result), indent=2), markup=False, highlight=False, emoji=False, soft_wrap=True)


# === DUMP COMMAND ===

@app.command()
def dump(
    trace_file: Path = typer.Argument(..., help="Binary ktrace dump file", exists=True, dir_okay=False),
    byte_order: Optional[ByteOrder] = typer.Option(None, "--byte-order", "-b", help="Byte order of the dump"),
    word_size: Optional[int] = typer.Option(None, "--word-size", "-w", help="Pointer width of the traced ABI (4 or 8)"),
    format: Optional[OutputFormat] = typer.Option(None, "-f", "--format"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write JSON output to file"),
    config_path: Optional[Path] = typer.Option(None, "-c", "--config"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR"),
):
    """
    Decode a ktrace dump and print each record.

    Exit codes: 0=clean end of stream, 1=stream stopped on an I/O or header error
    """
    cfg = _load(config_path, byte_order, word_size, log_level)
    _setup_logging(cfg.logging.level)
    logger.info(f"Decoding {trace_file} ({cfg.decode.byte_order}, {cfg.decode.word_size}-byte words)")

    result = _decode(trace_file, cfg)

    fmt = format.value if format else cfg.output.format
    if output:
        output.write_text(json.dumps(_result_dict(result), indent=2))
        err_console.print(f"[green]Written to:[/] {output}")
    elif fmt == OutputFormat.json.value:
        _print_json(result)
    elif fmt == OutputFormat.table.value:
        _print_table(result, cfg.output.data_preview_bytes)
    else:
        _print_text(result, cfg.output.data_preview_bytes)

    if not result.ok:
        err_console.print(f"Error: {result.error}", markup=False, highlight=False)
        raise typer.Exit(1)


# === STATS COMMAND ===

@app.command()
def stats(
    trace_file: Path = typer.Argument(..., help="Binary ktrace dump file", exists=True, dir_okay=False),
    byte_order: Optional[ByteOrder] = typer.Option(None, "--byte-order", "-b"),
    word_size: Optional[int] = typer.Option(None, "--word-size", "-w"),
    config_path: Optional[Path] = typer.Option(None, "-c", "--config"),
):
    """Count records per type and body decode errors."""
    cfg = _load(config_path, byte_order, word_size)

    _setup_logging("ERROR")
    result = _decode(trace_file, cfg)

    by_type = Counter(d.header.record_type.label for d in result)
    failed = Counter(d.header.record_type.label for d in result if not d.ok)
    pids = {d.header.pid for d in result}

    table = Table(title="Summary")
    table.add_column("Type")
    table.add_column("Records", justify="right")
    table.add_column("Errors", justify="right")
    for label, count in sorted(by_type.items()):
        table.add_row(label, f"{count:,}", str(failed.get(label, 0)))
    table.add_row("Total", f"{len(result):,}", str(result.body_errors), style="bold")
    console.print(table)
    console.print(f"Processes: {len(pids)}")

    if not result.ok:
        err_console.print(f"Error: {result.error}", markup=False, highlight=False)
        raise typer.Exit(1)


# === CONFIG COMMAND ===

@app.command("config")
def config_cmd(
    action: str = typer.Argument(..., help="Action: init|validate|dump"),
    path: Optional[Path] = typer.Argument(None, help="Config file path"),
):
    """Configuration management."""
    if action == "init":
        console.print(generate_default_config(), markup=False, highlight=False)

    elif action == "validate":
        if not path:
            console.print("[red]Path required for validate[/]")
            raise typer.Exit(1)
        try:
            cfg = KtraceConfig.load(path)
        except Exception as e:
            console.print(f"[red]Error:[/] {e}")
            raise typer.Exit(1)
        errors = cfg.validate()
        if errors:
            console.print("[red]Invalid configuration:[/]")
            for e in errors:
                console.print(f"  - {e}")
            raise typer.Exit(1)
        console.print(f"[green]Valid:[/] {path}")

    elif action == "dump":
        try:
            cfg = KtraceConfig.load(path) if path else load_config()
        except Exception as e:
            console.print(f"[red]Error:[/] {e}")
            raise typer.Exit(1)
        console.print(cfg.to_yaml(), markup=False, highlight=False)


    else:
        console.print(f"[red]Unknown action:[/] {action}")
        console.print("Valid actions: init, validate, dump")
        raise typer.Exit(1)


# === VERSION COMMAND ===

@app.command()
def version():
    """Show version information."""
    console.print(f"[bold blue]ktrace v{__version__}[/]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
