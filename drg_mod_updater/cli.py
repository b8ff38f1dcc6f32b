"""Command-line interface for drg-mod-updater."""

import locale
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import REGISTRY_ENVVAR, REGISTRY_URL, UpdaterConfig
from .errors import GameDirError, UpdaterError
from .paths import find_game_dir, resolve_mods_dir
from .progress import RichProgressSink
from .service import Aborted, ModUpdater

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _configure_collation() -> None:
    # Registry names are sorted with locale.strxfrm, which follows LC_COLLATE
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.debug("Keeping default collation: %s", e)


def _resolve_mods_dir(game_dir: Path | None) -> Path:
    if game_dir is None:
        game_dir = find_game_dir()
        if game_dir is None:
            raise GameDirError(
                "Could not find Deep Rock Galactic in your Steam libraries. "
                "Please provide the installation directory."
            )
        console.print(f"[dim]Found game at {game_dir}[/dim]")
    return resolve_mods_dir(game_dir)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.option(
    "--registry-url",
    envvar=REGISTRY_ENVVAR,
    default=REGISTRY_URL,
    show_default=True,
    help=f"Mod registry URL (or set {REGISTRY_ENVVAR} env var)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, registry_url: str) -> None:
    """Update Deep Rock Galactic mods from the community registry."""
    _configure_logging(verbose)
    _configure_collation()
    ctx.ensure_object(dict)
    ctx.obj["registry_url"] = registry_url


@main.command()
@click.argument("game_dir", required=False, type=click.Path(path_type=Path))
@click.option("--dry-run", is_flag=True, help="Show what would be updated without downloading")
@click.pass_context
def update(ctx: click.Context, game_dir: Path | None, dry_run: bool) -> None:
    """
    Download new versions of outdated mods.

    GAME_DIR: Deep Rock Galactic install directory (or its Paks directory).
    Detected from Steam when omitted.
    """
    try:
        mods_dir = _resolve_mods_dir(game_dir)
    except GameDirError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    config = UpdaterConfig(mods_dir=mods_dir, registry_url=ctx.obj["registry_url"])

    if dry_run:
        try:
            check = ModUpdater(config).check()
        except UpdaterError as e:
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)

        if not check.outdated:
            console.print("[green]Everything is up to date![/green]")
            return

        console.print(f"\n[bold]Mods to update:[/bold] {len(check.outdated)}")
        for entry in check.outdated:
            old_ver = check.installed.versions.get(entry.display_name, "?")
            console.print(f"  ~ {entry.display_name} ({old_ver} -> {entry.version})")
        console.print("\n[yellow]Dry run - no changes made.[/yellow]")
        return

    console.print(f"[bold]Mods directory:[/bold] {mods_dir}")
    with RichProgressSink(console=console) as sink:
        result = ModUpdater(config, on_progress=sink).run()

    if isinstance(result, Aborted):
        console.print(f"[red]Failed to get data:[/red] {result.reason}")
        sys.exit(1)

    if not result.outdated:
        console.print("[green]Everything is up to date![/green]")
    else:
        console.print(f"\n[bold]Updated {result.updated_count} of {len(result.outdated)} mods[/bold]")
        for entry in result.outdated:
            console.print(f"  ~ {entry.display_name} -> {entry.version}")

    if result.failures:
        err_console.print(f"\n[red]{len(result.failures)} downloads failed:[/red]")
        for outcome in result.failures:
            err_console.print(f"  - {outcome.task.filename}: {outcome.error}")

    console.print("[green]Finished updating mods[/green]")


@main.command()
@click.argument("game_dir", required=False, type=click.Path(path_type=Path))
@click.pass_context
def status(ctx: click.Context, game_dir: Path | None) -> None:
    """
    Show installed mods and whether the registry has a newer version.

    GAME_DIR: Deep Rock Galactic install directory (or its Paks directory).
    """
    try:
        mods_dir = _resolve_mods_dir(game_dir)
        config = UpdaterConfig(mods_dir=mods_dir, registry_url=ctx.obj["registry_url"])
        check = ModUpdater(config).check()
    except UpdaterError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    latest = {entry.display_name: entry.version for entry in check.matching}

    table = Table(title="Mod Status")
    table.add_column("Mod", style="cyan")
    table.add_column("Installed", style="green")
    table.add_column("Latest", style="blue")
    table.add_column("Status")

    for name, version in sorted(check.installed.versions.items()):
        if name not in latest:
            state = "[dim]Not in registry[/dim]"
        elif latest[name] != version:
            state = "[yellow]Update available[/yellow]"
        else:
            state = "[green]Up to date[/green]"
        table.add_row(name[:40], version, latest.get(name, "-"), state)

    console.print(table)
    console.print(f"[bold]Installed mods:[/bold] {len(check.installed)}")
    console.print(f"[bold]Updates available:[/bold] {len(check.outdated)}")
