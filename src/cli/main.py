# Copyright (c) 2025 Trae AI. All rights reserved.

import sys
import logging
import threading
import typer
from pathlib import Path
from typing import List, Optional
from rich.console import Console
from rich.table import Table
from ..core.config import Config
from ..core.errors import SyncConfigurationError
from ..core.session import CancellationToken
from ..infrastructure.db.database import Database
from ..infrastructure.db.repository import SqliteCatalogStore, LogRepository
from ..infrastructure.inspect.ffprobe import FfprobeInspector, check_executable
from ..services.notification_service import NotificationService
from ..services.sync_service import LibrarySyncService

app = typer.Typer(help="Media Library Sync - Keep a movie catalog in sync with your folders.")
console = Console()


def _load_config(config_path: str) -> Config:
    try:
        return Config.load(config_path)
    except Exception as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1)


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


@app.command("scan")
def scan(
    config_path: str = "config.yaml",
    datasource: Optional[List[Path]] = typer.Option(None, "--datasource", "-d", help="Only synchronize these roots."),
    no_inspect: bool = typer.Option(False, "--no-inspect", help="Skip the ffprobe inspection phase."),
    verbose: bool = False,
):
    """
    Synchronize the catalog with the datasources.
    """
    config = _load_config(config_path)
    _setup_logging(verbose or config.verbose)

    db = Database(Path(config.database_path))
    store = SqliteCatalogStore(db)
    notifier = NotificationService(LogRepository(db))

    inspector = None
    if config.inspect_media and not no_inspect:
        if check_executable(config.ffprobe_path):
            inspector = FfprobeInspector(config.ffprobe_path)
        else:
            console.print(f"[yellow]{config.ffprobe_path} not found, skipping media inspection.[/yellow]")

    service = LibrarySyncService(config, store, notifier, inspector=inspector)
    token = CancellationToken()
    outcome = {}

    def run():
        try:
            outcome["report"] = service.run(datasources=datasource or None, token=token)
        except SyncConfigurationError as e:
            outcome["error"] = e

    worker = threading.Thread(target=run)
    with console.status("[green]Synchronizing..."):
        worker.start()
        try:
            while worker.is_alive():
                worker.join(0.5)
        except KeyboardInterrupt:
            console.print("[yellow]Cancelling, waiting for running tasks...[/yellow]")
            token.cancel()
            worker.join()

    if "error" in outcome:
        console.print(f"[red]{outcome['error']}[/red]")
        raise typer.Exit(1)

    report = outcome["report"]
    table = Table(title="Synchronization Summary")
    table.add_column("Metric", style="magenta")
    table.add_column("Value", style="cyan")
    table.add_row("Datasources", ", ".join(str(d) for d in report.datasources))
    table.add_row("Titles added", str(report.titles_added))
    table.add_row("Titles updated", str(report.titles_updated))
    table.add_row("Titles removed", str(report.titles_removed))
    table.add_row("Files detached", str(report.files_detached))
    table.add_row("Files inspected", str(report.inspected_files))
    table.add_row("Directories (pre/post)", f"{report.pre_dir}/{report.post_dir}")
    table.add_row("Files visited", str(report.visited_files))
    console.print(table)

    if report.cancelled:
        console.print("[yellow]Synchronization was cancelled.[/yellow]")
        raise typer.Exit(130)


@app.command("titles")
def list_titles(config_path: str = "config.yaml", datasource: Optional[str] = None):
    """
    List all cataloged titles.
    """
    config = _load_config(config_path)
    store = SqliteCatalogStore(Database(Path(config.database_path)))
    rows = store.get_all(datasource)

    table = Table(title="Cataloged Titles")
    table.add_column("Title", style="magenta")
    table.add_column("Year", style="green")
    table.add_column("Path", style="yellow")

    for row in rows:
        table.add_row(row["title"] or "", str(row["year"] or ""), row["path"])

    console.print(table)
    console.print(f"\nFound [bold]{len(rows)}[/bold] titles.")


if __name__ == "__main__":
    app()
