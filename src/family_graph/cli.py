"""
Command-line interface for family-graph.

Loads a GEDCOM file into a FamilyDataStore and prints query results.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from family_graph import __version__
from family_graph.config import CONFIG_ENV_VAR, Settings, load_settings
from family_graph.core.gedcom import GedcomParseError
from family_graph.core.models import Event, Person
from family_graph.core.store import FamilyDataStore

console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_store(ctx: click.Context, file: str) -> FamilyDataStore:
    """Load FILE into a new store, exiting with a message on failure."""
    settings: Settings = ctx.obj["settings"]

    if not settings.accepts(file):
        allowed = ", ".join(settings.accepted_extensions)
        raise click.BadParameter(f"expected a file ending in {allowed}", param_hint="FILE")

    store = FamilyDataStore(settings)
    try:
        store.load_file(file)
    except GedcomParseError as e:
        console.print(f"[red]Error parsing file: {e}[/red]")
        sys.exit(1)
    return store


def _require_person(store: FamilyDataStore, person_id: str) -> Person:
    person = store.get_person(person_id)
    if person is None:
        console.print(f"[red]No person with id {person_id}[/red]")
        sys.exit(1)
    return person


def _event_text(event: Event | None) -> str:
    if event is None:
        return ""
    parts = [event.date.display() if event.date else (event.display_date or "")]
    if event.place:
        parts.append(event.place)
    return ", ".join(part for part in parts if part)


@click.group()
@click.version_option(version=__version__, prog_name="family-graph")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--config", "config_path", envvar=CONFIG_ENV_VAR,
              type=click.Path(dir_okay=False), help="YAML settings file")
@click.pass_context
def cli(ctx, verbose, config_path):
    """
    Family graph explorer.

    Parses GEDCOM 5.5 / 5.5.1 / 7.0 files and answers questions about
    ancestors, descendants and relationships.
    """
    ctx.ensure_object(dict)
    try:
        settings = load_settings(config_path)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e

    ctx.obj["settings"] = settings
    ctx.obj["verbose"] = verbose
    _configure_logging("DEBUG" if verbose else settings.log_level)


# =============================================================================
# File Commands
# =============================================================================

@cli.command("info")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def info(ctx, file: str):
    """Display GEDCOM file statistics."""
    store = _load_store(ctx, file)
    stats = store.get_statistics()

    table = Table(title=f"GEDCOM: {Path(file).name}")
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")

    table.add_row("Individuals", str(stats["individuals"]))
    table.add_row("Families", str(stats["families"]))
    table.add_row("Sources", str(stats["sources"]))
    table.add_row("Media", str(stats["media"]))

    console.print(table)

    if stats.get("version"):
        console.print(f"\nGEDCOM Version: {stats['version']}")


@cli.command("search")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("query")
@click.option("--limit", "-n", default=50, show_default=True, help="Maximum rows to show")
@click.pass_context
def search(ctx, file: str, query: str, limit: int):
    """Search people by full, given or surname."""
    store = _load_store(ctx, file)
    results = store.search_people(query)

    if not results:
        console.print("[yellow]No matches found[/yellow]")
        return

    table = Table(title=f"Matches in {Path(file).name}")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Birth")
    table.add_column("Death")

    for person in results[:limit]:
        table.add_row(person.id, person.name, _event_text(person.birth), _event_text(person.death))

    console.print(table)

    if len(results) > limit:
        console.print(f"\n[dim]Showing {limit} of {len(results)} matches[/dim]")


@cli.command("person")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("person_id")
@click.pass_context
def person(ctx, file: str, person_id: str):
    """Show one person with their immediate family."""
    store = _load_store(ctx, file)
    subject = _require_person(store, person_id)

    lines = [f"[bold]Sex:[/bold] {subject.sex.value}"]
    for label, event in (("Born", subject.birth), ("Baptised", subject.baptism),
                         ("Died", subject.death), ("Buried", subject.burial)):
        if event:
            lines.append(f"[bold]{label}:[/bold] {_event_text(event)}")
    if subject.occupation:
        lines.append(f"[bold]Occupation:[/bold] {subject.occupation}")

    lines.append("")
    lines.append("[bold]Parents:[/bold] " + (", ".join(p.name for p in store.get_parents(subject.id)) or "-"))
    spouses = [s.person.name for s in store.get_spouses(subject.id)]
    lines.append("[bold]Spouses:[/bold] " + (", ".join(spouses) or "-"))
    lines.append("[bold]Siblings:[/bold] " + (", ".join(p.name for p in store.get_siblings(subject.id)) or "-"))
    lines.append("[bold]Children:[/bold] " + (", ".join(p.name for p in store.get_children(subject.id)) or "-"))

    for note in subject.notes:
        lines.append("")
        lines.append(note)

    console.print(Panel("\n".join(lines), title=f"{subject.name} ({subject.id})"))


# =============================================================================
# Traversal Commands
# =============================================================================

def _print_generations(title: str, entries) -> None:
    if not entries:
        console.print("[yellow]None found[/yellow]")
        return

    table = Table(title=title)
    table.add_column("Gen", justify="right")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Born")

    for entry in entries:
        table.add_row(str(entry.generation), entry.person.id, entry.person.name,
                      _event_text(entry.person.birth))
    console.print(table)


@cli.command("ancestors")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("person_id")
@click.option("--generations", "-g", type=int, help="Maximum generations to walk")
@click.pass_context
def ancestors(ctx, file: str, person_id: str, generations: Optional[int]):
    """List the ancestors of a person."""
    store = _load_store(ctx, file)
    subject = _require_person(store, person_id)
    _print_generations(f"Ancestors of {subject.name}", store.get_ancestors(subject.id, generations))


@cli.command("descendants")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("person_id")
@click.option("--generations", "-g", type=int, help="Maximum generations to walk")
@click.pass_context
def descendants(ctx, file: str, person_id: str, generations: Optional[int]):
    """List the descendants of a person."""
    store = _load_store(ctx, file)
    subject = _require_person(store, person_id)
    _print_generations(f"Descendants of {subject.name}", store.get_descendants(subject.id, generations))


@cli.command("relationship")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("first_id")
@click.argument("second_id")
@click.pass_context
def relationship(ctx, file: str, first_id: str, second_id: str):
    """Describe how FIRST_ID is related to SECOND_ID."""
    store = _load_store(ctx, file)
    first = _require_person(store, first_id)
    second = _require_person(store, second_id)

    result = store.calculate_relationship(first.id, second.id)
    if not result.found:
        console.print(f"[yellow]{result.relationship}[/yellow]")
        return

    console.print(f"[bold]{first.name}[/bold] is [green]{result.relationship}[/green] "
                  f"of [bold]{second.name}[/bold]")
    if result.path:
        names = [first.name]
        for step in result.path:
            other = store.get_person(step.person_id)
            names.append(f"{other.name if other else step.person_id} ({step.relation})")
        console.print("[dim]" + " -> ".join(names) + "[/dim]")


@cli.command("timeline")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--all-events", is_flag=True, help="Include events other than births, deaths and marriages")
@click.pass_context
def timeline(ctx, file: str, all_events: bool):
    """Show dated births, deaths and marriages in order."""
    store = _load_store(ctx, file)
    events = store.get_timeline_events(include_other_events=all_events)

    if not events:
        console.print("[yellow]No dated events[/yellow]")
        return

    table = Table(title=f"Timeline: {Path(file).name}")
    table.add_column("Year", justify="right")
    table.add_column("Event")
    table.add_column("Date")
    table.add_column("Place")

    for event in events:
        table.add_row(str(event.year), event.title, event.display_date or "", event.place or "")
    console.print(table)


# =============================================================================
# Main Entry Point
# =============================================================================

def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
