# ABOUTME: The `bookshelf import` commands for CSV/Goodreads and Audible exports.
# ABOUTME: Shows the reconciliation preview, then commits the selected rows to the library DB.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from bookshelf.cli.options import db_option, parse_row_list
from bookshelf.db.catalog import LibraryCatalog
from bookshelf.db.connection import DEFAULT_DB_PATH, open_library
from bookshelf.importer.csv_parser import write_csv
from bookshelf.importer.errors import ImportRejectedError
from bookshelf.importer.models import AudiblePreview, CommitResult, CsvPreview
from bookshelf.importer.service import ImportService

console = Console()

PREVIEW_HEADERS = (
    "Row",
    "Title",
    "Author",
    "Author Match",
    "Series",
    "Book #",
    "ISBN",
    "ISBN13",
    "Status",
    "Duplicate Of",
)

file_argument = click.argument(
    "file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
rows_option = click.option(
    "--rows",
    default=None,
    help="Comma-separated row numbers to import (default: every non-duplicate row).",
)
dry_run_option = click.option(
    "--dry-run", is_flag=True, default=False, help="Show the preview without writing."
)
yes_option = click.option(
    "--yes", "-y", is_flag=True, default=False, help="Commit without asking for confirmation."
)


def _csv_table(preview: CsvPreview) -> Table:
    table = Table(title="Goodreads export" if preview.is_goodreads else "CSV import")
    table.add_column("Row", style="dim", width=4)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Series")
    table.add_column("Status")
    for book in preview.books:
        if book.is_duplicate:
            status = f"[yellow]duplicate of #{book.duplicate_book_id}[/yellow]"
        elif book.author_match:
            status = f"[green]author {book.author_match.confidence}%[/green]"
        else:
            status = "[cyan]new[/cyan]"
        series = f"{book.series} #{book.book_num:g}" if book.series and book.book_num else book.series
        table.add_row(str(book.row_index), book.title, book.author, series or "", status)
    return table


def _audible_table(preview: AudiblePreview) -> Table:
    table = Table(title="Audible listening history")
    table.add_column("Row", style="dim", width=4)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Listened")
    table.add_column("Status")
    for row in preview.books:
        status = (
            f"[yellow]duplicate of #{row.duplicate_book_id}[/yellow]"
            if row.is_duplicate
            else "[cyan]new[/cyan]"
        )
        table.add_row(str(row.row_index), row.title, row.author, row.listen_date or "", status)
    return table


def _write_preview(preview: CsvPreview, path: Path) -> None:
    rows = [
        (
            b.row_index,
            b.title,
            b.author,
            b.author_match.name if b.author_match else "",
            b.series,
            b.book_num,
            b.isbn,
            b.isbn13,
            b.status,
            b.duplicate_book_id,
        )
        for b in preview.books
    ]
    path.write_text(write_csv(PREVIEW_HEADERS, rows) + "\n", encoding="utf-8")


def _print_result(result: CommitResult) -> None:
    console.print(
        f"\n[bold]Import complete:[/bold] {result.imported} imported, {result.skipped} skipped"
    )
    for error in result.errors:
        console.print(f"  [red]Row {error.row}[/red] {error.title}: {error.error}")


@click.group("import")
def import_group() -> None:
    """Import books from CSV, Goodreads, or Audible exports."""


@import_group.command("csv")
@file_argument
@db_option
@rows_option
@click.option(
    "--create-missing/--no-create-missing",
    default=True,
    show_default=True,
    help="Create authors, series, and narrators that are not in the library yet.",
)
@dry_run_option
@yes_option
@click.option(
    "--preview-out",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write the annotated preview to this CSV file.",
)
def import_csv(
    file: Path,
    db_path: Path | None,
    rows: str | None,
    create_missing: bool,
    dry_run: bool,
    yes: bool,
    preview_out: Path | None,
) -> None:
    """Import a CSV or Goodreads library export."""
    selection = parse_row_list(rows)
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        service = ImportService(LibraryCatalog(conn))
        try:
            preview = service.preview_csv(file.read_text(encoding="utf-8-sig"))
        except ImportRejectedError as exc:
            raise click.ClickException(str(exc)) from exc

        console.print(_csv_table(preview))
        console.print(
            f"\n{preview.total_rows} row(s), {preview.duplicate_count} duplicate(s)"
        )
        if preview_out is not None:
            _write_preview(preview, preview_out)
            console.print(f"[dim]Preview written to {preview_out}[/dim]")
        if dry_run:
            console.print("[dim]Dry run: nothing imported.[/dim]")
            return

        if selection is None:
            selection = [b.row_index for b in preview.books if not b.is_duplicate]
        if not yes and not click.confirm(f"Import {len(selection)} row(s)?", default=True):
            console.print("[yellow]Import cancelled.[/yellow]")
            return

        try:
            result = service.commit_csv(preview.session_id, selection, create_missing=create_missing)
        except ImportRejectedError as exc:
            raise click.ClickException(str(exc)) from exc
        _print_result(result)
    finally:
        conn.close()


@import_group.command("audible")
@file_argument
@db_option
@rows_option
@dry_run_option
@yes_option
def import_audible(
    file: Path,
    db_path: Path | None,
    rows: str | None,
    dry_run: bool,
    yes: bool,
) -> None:
    """Import a saved Audible listening-history page."""
    selection = parse_row_list(rows)
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        service = ImportService(LibraryCatalog(conn))
        try:
            preview = service.preview_audible(file.read_text(encoding="utf-8"))
        except ImportRejectedError as exc:
            raise click.ClickException(str(exc)) from exc

        console.print(_audible_table(preview))
        console.print(
            f"\n{preview.total_books} book(s): {preview.new_books} new, "
            f"{preview.duplicates} duplicate(s)"
        )
        if dry_run:
            console.print("[dim]Dry run: nothing imported.[/dim]")
            return

        if selection is None:
            selection = [r.row_index for r in preview.books if not r.is_duplicate]
        if not yes and not click.confirm(f"Import {len(selection)} book(s)?", default=True):
            console.print("[yellow]Import cancelled.[/yellow]")
            return

        try:
            result = service.commit_audible(preview.session_id, selection)
        except ImportRejectedError as exc:
            raise click.ClickException(str(exc)) from exc
        _print_result(result)
    finally:
        conn.close()
