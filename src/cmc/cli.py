"""Typer CLI: ``cmc serve``, ``cmc check`` and ``cmc validate`` commands."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from cmc.config import ConfigError, load_config

if TYPE_CHECKING:
    from cmc.schemas.analysis import AnalysisResponse
    from cmc.schemas.config import AppConfig

# Load .env file from project root (if it exists)
load_dotenv()

app = typer.Typer(
    name="cmc",
    help="C++ Mistake Checker: review C++ code with a hosted language model.",
    no_args_is_help=True,
)
console = Console()

_CATEGORY_COLORS = {
    "syntax": "red",
    "logic": "dark_orange",
    "runtime": "magenta",
    "practice": "blue",
    "warning": "yellow",
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every HTTP request at INFO; noisy for users
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_or_exit(config: Path | None) -> AppConfig:
    try:
        return load_config(config)
    except Exception as exc:
        console.print(f"[red]Config validation failed:[/] {exc}")
        raise typer.Exit(code=1)


@app.command()
def validate(
    config: Path = typer.Option(..., "--config", "-c", help="Path to cmc-config.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Validate a configuration file without starting anything."""
    _setup_logging(verbose)
    cfg = _load_or_exit(config)

    console.print("[green]Config is valid![/]\n")
    console.print(f"  Model:        {cfg.model}")
    console.print(f"  Max tokens:   {cfg.max_tokens}")
    console.print(f"  Timeout:      {cfg.request_timeout or '(SDK default)'}")
    console.print(f"  Listen on:    {cfg.host}:{cfg.port}")
    console.print(f"  Session TTL:  {cfg.session_ttl_seconds}s")
    console.print(f"  Initial code: {'custom' if cfg.initial_code is not None else 'built-in sample'}")


@app.command()
def serve(
    config: Path = typer.Option(None, "--config", "-c", help="Path to cmc-config.yml"),
    host: str = typer.Option(None, "--host", help="Override the configured host."),
    port: int = typer.Option(None, "--port", "-p", help="Override the configured port."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Serve canned results (no API calls)."),
) -> None:
    """Start the web front end."""
    import uvicorn

    from cmc.web.app import create_app

    _setup_logging(verbose)
    cfg = _load_or_exit(config)

    try:
        web_app = create_app(cfg, dry_run=dry_run)
    except ConfigError as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=1)

    if dry_run:
        console.print("[yellow]DRY-RUN mode: no API calls will be made.[/]")
    bind_host = host or cfg.host
    bind_port = port or cfg.port
    console.print(f"[bold]Serving on[/] http://{bind_host}:{bind_port}")
    uvicorn.run(web_app, host=bind_host, port=bind_port, log_level="debug" if verbose else "info")


@app.command()
def check(
    source: Path = typer.Argument(..., help="C++ source file to analyze."),
    config: Path = typer.Option(None, "--config", "-c", help="Path to cmc-config.yml"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw report as JSON."),
    output: Path = typer.Option(None, "--output", "-o", help="Also write a Markdown report here."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use a canned report (no API calls)."),
) -> None:
    """Analyze a C++ file and print the report.

    Examples:

        cmc check main.cpp

        cmc check main.cpp --json > report.json

        cmc check main.cpp --output report.md
    """
    _setup_logging(verbose)
    cfg = _load_or_exit(config)

    if not source.exists():
        console.print(f"[red]File not found:[/] {source}")
        raise typer.Exit(code=1)

    if dry_run:
        console.print("[yellow]DRY-RUN mode: no API calls will be made.[/]\n")

    from cmc.analysis.service import build_analyzer
    from cmc.session import AnalysisSession

    try:
        analyzer = build_analyzer(cfg, dry_run=dry_run)
    except ConfigError as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=1)

    session = AnalysisSession(analyzer, initial_code=source.read_text())
    with console.status(f"Analyzing {source.name}…"):
        state = asyncio.run(session.run())

    if state.error or state.report is None:
        console.print(Panel(escape(state.error or "No report produced."), title="Error Analyzing Code", border_style="red"))
        raise typer.Exit(code=1)

    report = state.report
    if as_json:
        console.print_json(json.dumps(report.to_json_dict()))
    else:
        _print_report(report)

    if output:
        from cmc.output.markdown import render_markdown_report

        output.write_text(render_markdown_report(report, source_name=source.name))
        console.print(f"\n[green]Markdown report written to:[/] {output}")


def _print_report(report: AnalysisResponse) -> None:
    from cmc.output.view import category_label

    console.print(Panel(escape(report.overall_summary), title="Analysis Summary", border_style="blue"))

    if report.issues:
        table = Table(title=f"Detected Issues ({len(report.issues)})", show_lines=True)
        table.add_column("Type", no_wrap=True)
        table.add_column("Line", no_wrap=True)
        table.add_column("Issue")
        table.add_column("Suggested Fix")
        for issue in report.issues:
            color = _CATEGORY_COLORS.get(issue.type.value, "white")
            table.add_row(
                f"[{color}]{category_label(issue.type)}[/]",
                escape(issue.line),
                escape(issue.description),
                escape(issue.fix),
            )
        console.print(table)

    if report.best_practices:
        console.print("\n[bold]Best Practices & Tips[/]")
        for tip in report.best_practices:
            console.print(f"  • {escape(tip)}")
