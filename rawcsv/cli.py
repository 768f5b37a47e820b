"""Command line entry point: ``rawcsv load PATH``."""

import logging
from pathlib import Path
from typing import Optional

import typer

from rawcsv.config import Settings
from rawcsv.database import SQLiteStorage
from rawcsv.errors import DiscoveryError
from rawcsv.loader import RowLoader

EXIT_NOTHING_LOADED = 1
EXIT_FILES_FAILED = 3

app = typer.Typer(
    help="Create raw data tables from CSV files with annotated headers.",
    no_args_is_help=True,
)


@app.callback()
def main() -> None:
    """Create raw data tables from CSV files with annotated headers."""


def _configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise typer.BadParameter(
            f"Unknown log level '{level_name}'.", param_hint="--log-level"
        )
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def load(
    path: Path = typer.Argument(..., help="CSV file, or directory searched recursively for *.csv files."),
    prefix: Optional[str] = typer.Option(None, "--prefix", "-p", help="Table name prefix [default: _raw]."),
    limit: int = typer.Option(0, "--limit", "-l", min=0, help="Maximum data rows per file; 0 loads every row."),
    database: Optional[Path] = typer.Option(None, "--database", "-d", help="SQLite database file [default: rawcsv.sqlite]."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level [default: WARNING]."),
) -> None:
    """Load every CSV file under PATH into its own <prefix>_<name> table."""
    settings = Settings.from_env()
    _configure_logging(log_level or settings.log_level)

    with SQLiteStorage(database or settings.database) as storage:
        loader = RowLoader(storage)
        try:
            batch = loader.load_path(path, prefix=prefix or settings.prefix, limit=limit)
        except DiscoveryError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=EXIT_NOTHING_LOADED)

    if not batch.reports and not batch.failures:
        typer.echo(f"No CSV files found under {path}.", err=True)
        raise typer.Exit(code=EXIT_NOTHING_LOADED)

    for report in batch.reports:
        typer.echo(
            f"{report.source} -> {report.table_name}: "
            f"{report.rows_inserted} inserted, {report.rows_failed} failed"
        )
    for failed_path, message in batch.failures.items():
        typer.echo(f"{failed_path}: not loaded ({message})", err=True)

    typer.echo(
        f"{len(batch.reports)} file(s) loaded, {len(batch.failures)} skipped; "
        f"{batch.rows_inserted} rows inserted, {batch.rows_failed} failed."
    )
    if not batch.ok:
        raise typer.Exit(code=EXIT_FILES_FAILED)
