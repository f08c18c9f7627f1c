# ABOUTME: The `bookshelf metadata` command group for querying external metadata providers.
# ABOUTME: Searches, fetches details, picks a best match, and runs quick ISBN/name lookups.

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from bookshelf.cli.options import config_option
from bookshelf.config import ConfigError, load_provider_settings
from bookshelf.metadata.lookup import LookupFailure, lookup_by_isbn, search_by_name
from bookshelf.metadata.registry import MetadataProviderRegistry
from bookshelf.metadata.types import PROVIDER_NAMES, BookMetadataResult, MetadataSearchRequest

console = Console()


def _create_registry(config_path: Path | None) -> MetadataProviderRegistry:
    """Build the live provider registry from the settings file and environment."""
    try:
        settings = load_provider_settings(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    return MetadataProviderRegistry(settings=settings)


def _registry(ctx: click.Context) -> MetadataProviderRegistry:
    return ctx.obj["registry"]


def _echo_json(payload: object) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _results_table(results: list[BookMetadataResult]) -> Table:
    table = Table()
    table.add_column("Provider", style="dim")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Year", width=5)
    table.add_column("ISBN-13")
    for result in results:
        table.add_row(
            result.provider,
            result.provider_id or "",
            result.title or "[dim]untitled[/dim]",
            result.author or "[dim]unknown[/dim]",
            str(result.publish_year or ""),
            result.isbn13 or "",
        )
    return table


def _print_details(result: BookMetadataResult) -> None:
    console.print(f"[bold]{result.title or 'Untitled'}[/bold]")
    if result.subtitle:
        console.print(f"  [dim]{result.subtitle}[/dim]")
    rows = [
        ("Authors", ", ".join(result.authors)),
        ("Provider", f"{result.provider} ({result.provider_id})"),
        ("Publisher", result.publisher),
        ("Published", result.published_date or result.publish_year),
        ("ISBN-10", result.isbn10),
        ("ISBN-13", result.isbn13),
        ("ASIN", result.asin),
        ("Pages", result.page_count),
        ("Language", result.language),
        ("Series", f"{result.series_name} #{result.series_number}" if result.series_name else None),
        ("Genres", ", ".join(result.genres)),
        ("Rating", f"{result.rating} ({result.rating_count or 0} ratings)" if result.rating else None),
        ("Cover", result.cover_url),
    ]
    for label, value in rows:
        if value:
            console.print(f"  {label}: {value}")
    if result.description:
        console.print(f"\n{result.description}")


@click.group()
@config_option
@click.pass_context
def metadata(ctx: click.Context, config_path: Path | None) -> None:
    """Query external book metadata providers."""
    ctx.ensure_object(dict)
    ctx.obj["registry"] = _create_registry(config_path)


@metadata.command()
@click.option("--title", default=None, help="Book title.")
@click.option("--author", default=None, help="Author name.")
@click.option("--isbn", default=None, help="ISBN-10 or ISBN-13.")
@click.option(
    "--provider",
    "providers",
    multiple=True,
    type=click.Choice(PROVIDER_NAMES),
    help="Limit to these providers (repeatable). Default: all enabled.",
)
@click.option("--limit", default=10, show_default=True, help="Results per provider.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON.")
@click.pass_context
def search(
    ctx: click.Context,
    title: str | None,
    author: str | None,
    isbn: str | None,
    providers: tuple[str, ...],
    limit: int,
    as_json: bool,
) -> None:
    """Search enabled providers concurrently."""
    request = MetadataSearchRequest(title=title, author=author, isbn=isbn)
    if request.is_empty:
        raise click.UsageError("Give at least one of --title, --author, or --isbn.")

    grouped = asyncio.run(
        _registry(ctx).search_all(request, limit=limit, providers=providers or None)
    )

    if as_json:
        _echo_json({name: [r.to_dict() for r in results] for name, results in grouped.items()})
        return

    results = [r for batch in grouped.values() for r in batch]
    if not results:
        console.print("[yellow]No results found.[/yellow]")
        return
    console.print(_results_table(results))
    counts = ", ".join(f"{name}: {len(batch)}" for name, batch in grouped.items())
    console.print(f"\n[dim]{len(results)} result(s) ({counts})[/dim]")


@metadata.command()
@click.argument("provider", type=click.Choice(PROVIDER_NAMES))
@click.argument("provider_id")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON.")
@click.pass_context
def details(ctx: click.Context, provider: str, provider_id: str, as_json: bool) -> None:
    """Fetch full details for one provider record."""
    result = asyncio.run(_registry(ctx).fetch_details(provider, provider_id))
    if result is None:
        raise click.ClickException(f"No details found for {provider} id {provider_id}")
    if as_json:
        _echo_json(result.to_dict())
        return
    _print_details(result)


@metadata.command()
@click.option("--title", default=None, help="Book title.")
@click.option("--author", default=None, help="Author name.")
@click.option("--isbn", default=None, help="ISBN-10 or ISBN-13.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON.")
@click.pass_context
def best(
    ctx: click.Context,
    title: str | None,
    author: str | None,
    isbn: str | None,
    as_json: bool,
) -> None:
    """Score every provider's results and show the single best match."""
    request = MetadataSearchRequest(title=title, author=author, isbn=isbn)
    if request.is_empty:
        raise click.UsageError("Give at least one of --title, --author, or --isbn.")

    result = asyncio.run(_registry(ctx).find_best(request))
    if result is None:
        raise click.ClickException("No match found.")
    if as_json:
        _echo_json(result.to_dict())
        return
    _print_details(result)


@metadata.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON.")
@click.pass_context
def providers(ctx: click.Context, as_json: bool) -> None:
    """List providers with their configuration."""
    info = sorted(_registry(ctx).get_provider_info(), key=lambda p: p.priority)
    if as_json:
        _echo_json([p.to_dict() for p in info])
        return

    table = Table()
    table.add_column("Priority", width=8)
    table.add_column("Name", style="bold")
    table.add_column("Display name")
    table.add_column("Enabled")
    table.add_column("Auth")
    for p in info:
        if p.requires_auth:
            auth = "[green]key set[/green]" if p.has_api_key else "[red]key missing[/red]"
        else:
            auth = "[dim]none[/dim]"
        table.add_row(
            str(p.priority),
            p.name,
            p.display_name,
            "[green]yes[/green]" if p.enabled else "[dim]no[/dim]",
            auth,
        )
    console.print(table)


@metadata.command()
@click.argument("isbn")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON.")
@click.pass_context
def lookup(ctx: click.Context, isbn: str, as_json: bool) -> None:
    """Quick lookup of one ISBN on Google Books and Open Library."""
    outcome = asyncio.run(lookup_by_isbn(_registry(ctx), isbn))
    if isinstance(outcome, LookupFailure):
        raise click.ClickException(outcome.message)
    if as_json:
        _echo_json(outcome.to_dict())
        return
    _print_details(outcome)


@metadata.command()
@click.argument("query")
@click.option("--limit", default=10, show_default=True, help="Maximum results.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON.")
@click.pass_context
def find(ctx: click.Context, query: str, limit: int, as_json: bool) -> None:
    """Search books by name on Open Library and Google Books, English first."""
    outcome = asyncio.run(search_by_name(_registry(ctx), query, limit=limit))
    if isinstance(outcome, LookupFailure):
        raise click.ClickException(outcome.message)
    if as_json:
        _echo_json([r.to_dict() for r in outcome])
        return
    console.print(_results_table(outcome))
    console.print(f"\n[dim]{len(outcome)} result(s)[/dim]")
