"""CLI interface for brand-audit."""

import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import __version__
from .auditor import Auditor
from .compare import compare_audits
from .config import Settings, get_settings
from .errors import BrandAuditError, ComparisonContractError, StoreError
from .models import Audit, Priority
from .store import JsonFileAuditStore, audit_to_dict


console = Console()

MAX_WORKERS = 4


def setup_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    # Request lines from httpx are noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def score_color(score: float) -> str:
    """Get color for a score value."""
    if score >= 80:
        return "green"
    elif score >= 60:
        return "yellow"
    elif score >= 40:
        return "orange1"
    else:
        return "red"


def priority_style(priority: Priority) -> str:
    return {
        Priority.HIGH: "red",
        Priority.MEDIUM: "yellow",
        Priority.LOW: "green",
    }.get(priority, "white")


def print_score_bar(score: float, width: int = 20) -> Text:
    """Create a visual score bar."""
    filled = int((score / 100) * width)
    empty = width - filled
    color = score_color(score)

    bar = Text()
    bar.append("█" * filled, style=color)
    bar.append("░" * empty, style="dim")
    bar.append(f" {score}/100", style=f"bold {color}")
    return bar


def print_result(audit: Audit, verbose: bool = False) -> None:
    """Print an audit to the console."""
    meta = audit.metadata

    source = meta.get("scoring_method", "synthetic")
    if meta.get("provider"):
        source += f" via {meta['provider']} ({meta.get('model')})"
    if meta.get("score_cache_hit"):
        source += ", cached"
    header = f"[bold]{meta.get('final_url') or audit.url}[/bold]\n[dim]Scoring: {source}"
    if meta.get("fetch_time_ms") is not None:
        header += f" • Fetched in {meta['fetch_time_ms']}ms ({meta.get('acquisition_strategy')})"
    header += "[/dim]"
    if meta.get("fallback_reason"):
        header += f"\n[yellow]Fallback: {meta['fallback_reason']}[/yellow]"

    console.print()
    console.print(Panel(header, title=f"🔍 {audit.title}", border_style="blue"))

    console.print()
    console.print("  Brand Score: ", end="")
    console.print(print_score_bar(audit.overall_score, width=25))
    console.print(f"  [dim]Grade {meta.get('grade', '-')} • ID {audit.id}[/dim]")
    console.print()

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Section", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Priority")
    table.add_column("Difficulty")
    table.add_column("Issues", justify="right")

    for section in audit.sections:
        table.add_row(
            section.name,
            f"[{score_color(section.score)}]{section.score}[/]",
            f"{section.weight:.0%}",
            f"[{priority_style(section.priority)}]{section.priority.value}[/]",
            section.difficulty.value,
            str(section.issues),
        )

    console.print(table)

    if verbose:
        console.print("\n[bold]Section Details:[/bold]\n")
        for section in audit.sections:
            console.print(f"  [bold]{section.name}[/bold] [dim]{section.details}[/dim]")
            for sub in section.sub_scores:
                console.print(f"    • {sub.name}: [{score_color(sub.score)}]{sub.score}[/]")
        if meta.get("category"):
            console.print(
                f"\n  [dim]Category: {meta['category']} • Business type: {meta.get('business_type') or 'unknown'}[/dim]"
            )

    console.print(f"\n{audit.summary}\n")

    console.print("[dim]─" * 50 + "[/dim]")
    console.print(f"[dim]brand-audit v{__version__}[/dim]")
    console.print()


def print_comparison(audits: list[Audit]) -> None:
    result = compare_audits(audits)

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold", title="📈 Audit Comparison")
    table.add_column("Section", style="cyan")
    for audit in audits:
        table.add_column(audit.created_at.strftime("%Y-%m-%d %H:%M"), justify="right")

    def cells(scores, deltas):
        row = [f"[{score_color(scores[0])}]{scores[0]}[/]"]
        for score, delta in zip(scores[1:], deltas):
            style = {"increase": "green", "decrease": "red"}.get(delta.trend.value, "dim")
            row.append(f"[{score_color(score)}]{score}[/] [{style}]({delta.label})[/]")
        return row

    table.add_row(
        "[bold]Overall[/bold]",
        *cells([a.overall_score for a in audits], result.overall_trends[1:]),
    )
    for index, name in enumerate(result.section_names):
        table.add_row(name, *cells([a.sections[index].score for a in audits], result.section_deltas[index]))

    console.print()
    console.print(table)
    console.print()


def comparison_to_dict(audits: list[Audit]) -> dict:
    result = compare_audits(audits)

    def delta_dict(delta):
        if delta is None:
            return None
        return {
            "previous": delta.previous,
            "current": delta.current,
            "delta": delta.delta,
            "trend": delta.trend.value,
            "label": delta.label,
        }

    return {
        "audits": [{"id": a.id, "url": a.url, "created_at": a.created_at.isoformat(),
                    "overall_score": a.overall_score} for a in audits],
        "overall_trends": [delta_dict(d) for d in result.overall_trends],
        "sections": [
            {"name": name, "deltas": [delta_dict(d) for d in result.section_deltas[index]]}
            for index, name in enumerate(result.section_names)
        ],
    }


def build_auditor(settings: Settings, save: bool) -> Auditor:
    store = JsonFileAuditStore(settings.store_dir) if save else None
    return Auditor(settings, store=store)


def load_audit(store: JsonFileAuditStore, ref: str) -> Audit:
    """Load an audit by id from the store, or from a JSON file path."""
    if ref.endswith(".json") or Path(ref).is_file():
        return store.load_file(ref)
    audit = store.get(ref)
    if audit is None:
        raise click.ClickException(f"No stored audit with id {ref} in {store.directory}")
    return audit


@click.group(invoke_without_command=True)
@click.pass_context
@click.version_option(version=__version__)
def cli(ctx):
    """Brand Audit - score a website across ten brand criteria.

    \b
    Quick start:
        brand-audit scan example.com
        brand-audit compare <id> <id>

    \b
    Commands:
        scan     Audit one or more URLs
        compare  Show trends across stored audits
        show     Print a stored audit
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--synthetic", is_flag=True, help="Skip the external model and use heuristic scoring")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.option("--save/--no-save", default=True, help="Store audits for later comparison")
@click.option("-t", "--timeout", type=float, default=None, help="Per-request timeout in seconds")
@click.option("-v", "--verbose", is_flag=True, help="Show section details and debug logs")
def scan(urls: tuple[str, ...], synthetic: bool, json_output: bool, save: bool,
         timeout: Optional[float], verbose: bool):
    """Audit one or more URLs.

    \b
    Examples:
        brand-audit scan stripe.com
        brand-audit scan stripe.com linear.app --json
        brand-audit scan example.com --synthetic --no-save
    """
    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.log_level)
    if timeout is not None:
        settings = settings.model_copy(update={"fetch_timeout": timeout, "scorer_timeout": timeout})

    auditor = build_auditor(settings, save)
    results: list[Optional[Audit]] = []
    failed = False

    label = urls[0] if len(urls) == 1 else f"{len(urls)} sites"
    with console.status(f"[bold blue]Auditing {label}...[/bold blue]"):
        with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(urls))) as pool:
            futures = [pool.submit(auditor.run, url, synthetic) for url in urls]
            for url, future in zip(urls, futures):
                try:
                    results.append(future.result())
                except BrandAuditError as e:
                    failed = True
                    results.append(None)
                    click.echo(f"Error auditing {url}: {e}", err=True)

    audits = [a for a in results if a is not None]
    if json_output:
        payload = [audit_to_dict(a) for a in audits]
        click.echo(json.dumps(payload[0] if len(urls) == 1 and payload else payload, indent=2))
    else:
        for audit in audits:
            print_result(audit, verbose=verbose)
        if save and audits:
            console.print(f"[dim]Saved to {Path(settings.store_dir).absolute()}[/dim]")

    if failed:
        sys.exit(1)


@cli.command()
@click.argument("refs", nargs=-1, required=True)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def compare(refs: tuple[str, ...], json_output: bool):
    """Compare up to three stored audits, oldest first.

    Each REF is an audit id from the store or a path to an exported JSON file.
    """
    settings = get_settings()
    store = JsonFileAuditStore(settings.store_dir)
    try:
        audits = [load_audit(store, ref) for ref in refs]
        if json_output:
            click.echo(json.dumps(comparison_to_dict(audits), indent=2))
        else:
            print_comparison(audits)
    except (ComparisonContractError, StoreError) as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.argument("ref")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Show section details")
def show(ref: str, json_output: bool, verbose: bool):
    """Print a stored audit."""
    store = JsonFileAuditStore(get_settings().store_dir)
    try:
        audit = load_audit(store, ref)
    except StoreError as e:
        raise click.ClickException(str(e)) from e

    if json_output:
        click.echo(json.dumps(audit_to_dict(audit), indent=2))
    else:
        print_result(audit, verbose=verbose)


# Convenience: allow `brand-audit URL` as shortcut for `brand-audit scan URL`
def main():
    """Entry point that handles both `brand-audit URL` and `brand-audit scan URL`."""
    args = sys.argv[1:]

    if args and not args[0].startswith('-') and args[0] not in ['scan', 'compare', 'show', '--help', '--version']:
        if '.' in args[0] or args[0] == 'localhost':
            sys.argv.insert(1, 'scan')

    cli()


if __name__ == "__main__":
    main()
