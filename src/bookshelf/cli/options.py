# ABOUTME: Shared Click options for BookShelf CLI commands.
# ABOUTME: Provides reusable decorators for common flags like --db and --config.

from pathlib import Path

import click

from bookshelf.config import DEFAULT_CONFIG_PATH
from bookshelf.db.connection import DEFAULT_DB_PATH

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Path to library database (default: {DEFAULT_DB_PATH})",
)

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help=f"Provider settings JSON file (default: {DEFAULT_CONFIG_PATH})",
)


def parse_row_list(value: str | None) -> list[int] | None:
    """Parse a comma-separated row index list such as ``0,2,5``; None means all rows."""
    if value is None:
        return None
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        raise click.BadParameter(f"expected comma-separated row numbers, got {value!r}") from exc
