"""CLI commands for blvdiff."""

import asyncio
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from blvdiff import __logo__, __version__

app = typer.Typer(
    name="blvdiff",
    help=f"{__logo__} blvdiff - Compare scripts against their recorded history",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} blvdiff v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    log_level: str = typer.Option(None, "--log-level", help="Log level (default: $LOG_LEVEL or INFO)"),
):
    """blvdiff - Compare scripts against their recorded history."""
    from blvdiff.logging_config import setup_logging

    setup_logging(log_level)


# ============================================================================
# Shared helpers
# ============================================================================


def _make_orchestrator():
    from blvdiff.config.loader import load_config
    from blvdiff.orchestrator import DiffOrchestrator
    from blvdiff.output import ConsoleSink

    config = load_config()
    return DiffOrchestrator(config, ConsoleSink(console)), config


def _exit_for(outcome) -> None:
    """Map a tool outcome to the process exit code."""
    from blvdiff.orchestrator import OutcomeStatus

    if outcome.status == OutcomeStatus.TOOL_FAILED:
        raise typer.Exit(1)
    if outcome.status == OutcomeStatus.TOOL_FINISHED and outcome.exit_code:
        raise typer.Exit(outcome.exit_code)


def _ask_mode(default_mode: str | None) -> str | None:
    """Prompt for a mode. An empty answer or Ctrl-C abandons the selection."""
    if default_mode:
        return default_mode
    try:
        answer = typer.prompt(
            "Mode [text-based/side-by-side]", default="", show_default=False
        )
    except typer.Abort:
        return None
    return answer or None


# ============================================================================
# Commands
# ============================================================================


@app.command()
def explain(path: Path = typer.Argument(..., help="Script to explain")):
    """Run blvflag's explanation for a script."""
    orchestrator, _ = _make_orchestrator()
    outcome = asyncio.run(orchestrator.explain(path))
    _exit_for(outcome)


@app.command()
def diff(
    path: Path = typer.Argument(..., help="Script to compare"),
    mode: str = typer.Option(None, "--mode", "-m", help="text-based or side-by-side"),
    current: Path = typer.Option(
        None, "--current", "-c", help="File holding the current text (default: PATH)"
    ),
):
    """Compare a script with its most recent recorded version."""
    from blvdiff.errors import ArtifactWriteError
    from blvdiff.orchestrator import DiffMode, OutcomeStatus

    orchestrator, config = _make_orchestrator()
    selected = DiffMode.parse(mode or _ask_mode(config.diff.default_mode))

    current_text = ""
    if selected == DiffMode.SIDE_BY_SIDE:
        current_text = _read_current(current or path)

    try:
        outcome = asyncio.run(orchestrator.diff(path, current_text, selected))
    except ArtifactWriteError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if outcome.status == OutcomeStatus.CANCELLED:
        console.print("[dim]Cancelled.[/dim]")
        return
    if outcome.status == OutcomeStatus.NOT_FOUND:
        return
    if outcome.status == OutcomeStatus.DISPATCHED:
        pair = outcome.pair
        console.print(f"[bold]{pair.title}[/bold]")
        console.print(f"  previous: [cyan]{pair.old_path}[/cyan]")
        console.print(f"  current:  [cyan]{pair.new_path}[/cyan]")
        if config.diff.viewer:
            _open_viewer(orchestrator, config.diff.viewer, pair)
        return
    _exit_for(outcome)


def _read_current(source: Path) -> str:
    """Read the current text with line endings untouched."""
    try:
        with open(source, encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Error: cannot read {source}: {e}[/red]")
        raise typer.Exit(1)


def _open_viewer(orchestrator, viewer: list[str], pair) -> None:
    from blvdiff.invoker import ToolEventKind

    binary, *args = viewer
    args = [*args, str(pair.old_path), str(pair.new_path)]
    event = asyncio.run(orchestrator.invoker.run(binary, args, orchestrator.sink))
    if event.kind == ToolEventKind.START_FAILED:
        raise typer.Exit(1)


@app.command()
def revert(path: Path = typer.Argument(..., help="Script to revert")):
    """Restore a script from its history via blvflag."""
    orchestrator, _ = _make_orchestrator()
    outcome = asyncio.run(orchestrator.revert(path))
    _exit_for(outcome)


@app.command()
def setup():
    """Store a credential with blvflag."""
    secret = typer.prompt("Secret", hide_input=True)
    if not secret.strip():
        console.print("[dim]Cancelled.[/dim]")
        return
    orchestrator, _ = _make_orchestrator()
    outcome = asyncio.run(orchestrator.setup(secret.strip()))
    _exit_for(outcome)


@app.command()
def history(path: Path = typer.Argument(..., help="Script whose snapshots to list")):
    """List recorded snapshots for a script, newest first."""
    from blvdiff.config.loader import load_config
    from blvdiff.history import HistoryStore, base_name_for, newest_first

    config = load_config()
    store = HistoryStore.from_config(config)
    base_name = base_name_for(path.name, config.history.script_suffix)
    candidates = newest_first(asyncio.run(store.list_candidates(base_name)))

    if not candidates:
        console.print(f"No script history found for {path.name}.")
        return

    table = Table(title=f"History for {path.name}")
    table.add_column("Partition", style="cyan")
    table.add_column("File")
    table.add_column("Modified", style="dim")
    for candidate in candidates:
        modified = datetime.fromtimestamp(candidate.mtime).strftime("%Y-%m-%d %H:%M:%S")
        table.add_row(candidate.partition, candidate.name, modified)
    console.print(table)


@app.command()
def onboard():
    """Write a default blvdiff configuration file."""
    from blvdiff.config.loader import get_config_path, save_config
    from blvdiff.config.schema import BlvdiffConfig

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    save_config(BlvdiffConfig(), config_path)
    console.print(f"[green]✓[/green] Created config at {config_path}")
    console.print(f"\n{__logo__} blvdiff is ready!")


if __name__ == "__main__":
    app()
