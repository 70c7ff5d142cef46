"""
CLI entrypoint.

- doctor:  print effective settings and configuration (env & smoke check)
- run:     run the example flow on one or both engines, render a step table
- extract: run the extraction handler once and print its JSON envelope
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..core.errors import ConfigurationError
from ..core.logs import close_logging, configure_logging
from ..core.settings import ConfigManager, load_config, settings
from ..flows.example import (
    StepOutcome,
    flow_failed,
    run_playwright_example,
    run_selenium_example,
)
from ..handler.service import handle

app = typer.Typer(help="web-automator CLI")
console = Console()

ENGINES = ("selenium", "playwright", "both")


@app.callback()
def _main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_dir, console=console)


@app.command("doctor")
def doctor(
    config: Optional[Path] = typer.Option(None, "--config", help="Path to JSON configuration"),
) -> None:
    """Environment check: print key settings and the effective configuration."""
    console.print("[bold green]web-automator[/] environment")
    console.print(f"- config:   {config or settings.config_path}")
    console.print(f"- headless: {settings.headless}")
    console.print(f"- log:      {settings.log_level} -> {settings.log_dir}/")

    values = _load(config).as_flat_dict()
    if not values:
        return
    table = Table(title="configuration", show_header=True, header_style="bold")
    table.add_column("key")
    table.add_column("value")
    for key, value in sorted(values.items()):
        table.add_row(key, value)
    console.print(table)


def _load(config: Optional[Path]) -> ConfigManager:
    path = config or Path(settings.config_path)
    if config is None and not path.exists():
        console.print(f"[yellow]no config at {path}; using defaults[/]")
        return ConfigManager({})
    try:
        return load_config(path)
    except ConfigurationError as e:
        typer.secho(f"[config] {e}", fg=typer.colors.RED)
        raise typer.Exit(code=2)


def _render(engine: str, rows: list[StepOutcome]) -> None:
    table = Table(title=f"{engine} example", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("step")
    table.add_column("result")
    table.add_column("detail")
    for r in rows:
        if r.ok:
            result = "[green]OK[/]"
        elif r.required:
            result = "[red]FAIL[/]"
        else:
            result = "[yellow]WARN[/]"
        table.add_row(str(r.index), r.name, result, r.detail)
    console.print(table)


@app.command("run")
def run(
    engine: str = typer.Option("both", "--engine", help="selenium | playwright | both"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to JSON configuration"),
    url: Optional[str] = typer.Option(None, "--url", help="Target URL (default from config)"),
) -> None:
    """
    Run the example flow (start, navigate, read, screenshot, quit) and print a
    table per engine; returns non-zero if a required step failed.
    """
    engine = engine.strip().lower()
    if engine not in ENGINES:
        typer.secho(
            f"[run] unknown engine: {engine} (choose from {', '.join(ENGINES)})",
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=2)

    cfg = _load(config)
    failures = 0
    try:
        if engine in ("selenium", "both"):
            rows = run_selenium_example(cfg, url)
            _render("selenium", rows)
            failures += flow_failed(rows)
        if engine in ("playwright", "both"):
            rows = asyncio.run(run_playwright_example(cfg, url))
            _render("playwright", rows)
            failures += flow_failed(rows)
    finally:
        close_logging()

    if failures:
        raise typer.Exit(code=1)
    typer.secho("[run] completed successfully", fg=typer.colors.GREEN)


@app.command("extract")
def extract(
    url: str = typer.Argument(..., help="Page to extract from"),
    heading: bool = typer.Option(True, "--heading/--no-heading", help="Read the main heading"),
    heading_selector: str = typer.Option("h1", "--heading-selector", help="Heading selector"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to JSON configuration"),
) -> None:
    """Run the extraction handler once and print the response envelope."""
    cfg = _load(config)
    event = {"url": url, "extract": {"heading": heading, "headingSelector": heading_selector}}
    try:
        response = asyncio.run(handle(event, config=cfg))
    finally:
        close_logging()
    console.print_json(json.dumps(response.to_wire()))
    if response.status_code != 200:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
