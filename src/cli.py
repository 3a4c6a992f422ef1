"""CLI entry point for snapdiff."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress
from rich.table import Table

from src.errors import VisualDiffError
from src.models.config import FrameworkConfig, ViewportConfig
from src.models.run_result import RunSummary
from src.models.snapshot import ComparisonOutcome
from src.orchestrator import Orchestrator

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> FrameworkConfig:
    try:
        return FrameworkConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'snapdiff init' to create a default config.")
        sys.exit(1)


def _print_summary(summary: RunSummary) -> None:
    if not summary.new_images and not summary.diff_images:
        console.print("[green]No new or changed snapshots[/green]")
        return
    table = Table(title="Snapshot changes")
    table.add_column("Status", style="bold")
    table.add_column("Example")
    table.add_column("Viewport")
    table.add_column("Height", justify="right")
    for entry in summary.diff_images:
        table.add_row("[red]diff[/red]", entry.description, entry.viewport_name, str(entry.height))
    for entry in summary.new_images:
        table.add_row("[yellow]new[/yellow]", entry.description, entry.viewport_name, str(entry.height))
    console.print(table)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression snapshots for UI examples."""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default="snapdiff.json", help="Config file path")
def run(config: str) -> None:
    """Render every example, compare against baselines, write the summary."""
    cfg = _load_config(config)

    def on_viewport(viewport: ViewportConfig, count: int) -> None:
        console.print(f"\n{viewport.name} ({viewport.width}x{viewport.height}) ", end="")

    def on_outcome(outcome: ComparisonOutcome) -> None:
        console.print("×" if outcome.result == "diff" else "·", end="")

    orchestrator = Orchestrator(cfg, on_outcome=on_outcome, on_viewport=on_viewport)
    try:
        summary = orchestrator.run()
    except VisualDiffError as e:
        console.print(f"\n[red]{e}[/red]")
        sys.exit(1)

    console.print()
    _print_summary(summary)
    console.print(f"Summary written to [blue]{orchestrator.summary_path}[/blue]")


@cli.command()
@click.option("--config", "-c", default="snapdiff.json", help="Config file path")
def summary(config: str) -> None:
    """Show the new and changed snapshots from the last run."""
    cfg = _load_config(config)
    try:
        last = Orchestrator(cfg).load_summary()
    except FileNotFoundError as e:
        console.print(f"[yellow]{e}[/yellow]")
        sys.exit(1)
    except VisualDiffError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    _print_summary(last)


@cli.command()
@click.argument("description")
@click.option("--viewport", "-V", "viewport_name", default=None, help="Viewport name (default: first configured)")
@click.option("--output", "-o", default="aligned", help="Directory for the aligned images")
@click.option("--config", "-c", default="snapdiff.json", help="Config file path")
def align(description: str, viewport_name: str | None, output: str, config: str) -> None:
    """Write row-aligned previous/current images for a changed snapshot."""
    cfg = _load_config(config)
    viewport_name = viewport_name or cfg.default_viewport.name
    orchestrator = Orchestrator(cfg)

    with Progress(console=console, transient=True) as progress:
        task = progress.add_task(f"Aligning {description}", total=100)
        try:
            previous_out, current_out = orchestrator.align(
                description, viewport_name, Path(output),
                progress=lambda pct: progress.update(task, completed=pct),
            )
        except (FileNotFoundError, VisualDiffError) as e:
            progress.stop()
            console.print(f"[red]{e}[/red]")
            sys.exit(1)

    console.print(f"  previous: [blue]{previous_out}[/blue]")
    console.print(f"  current:  [blue]{current_out}[/blue]")


@cli.command()
@click.option("--target", "-t", prompt="Harness URL", default="http://localhost:4567", help="Base URL of the example harness")
def init(target: str) -> None:
    """Create a default configuration file."""
    config_path = Path("snapdiff.json")
    if config_path.exists():
        if not click.confirm("snapdiff.json already exists. Overwrite?"):
            return

    cfg = FrameworkConfig(target_url=target)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now customize this file and run:")
    console.print("  [blue]snapdiff run[/blue]")


if __name__ == "__main__":
    cli()
