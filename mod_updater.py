import argparse
import sys
from pathlib import Path

from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table, box

from modtiers import ResolverContext, UpdateEngine
from modtiers.engine import OutcomeStatus
from modtiers.exceptions import ConfigError, ModTiersError
from modtiers.modlist import load_records, save_records
from modtiers.report import generate_update_report
from modtiers.utils import console, setup_logging


STATUS_STYLE = {
    OutcomeStatus.UPDATED: "[green]+[/]",
    OutcomeStatus.UNCHANGED: "[dim]=[/]",
    OutcomeStatus.SKIPPED: "[yellow]~[/]",
    OutcomeStatus.UNRESOLVED: "[red]-[/]",
    OutcomeStatus.REJECTED: "[red]![/]",
    OutcomeStatus.ABORTED: "[yellow]x[/]",
}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve Current/Next/Latest versions for every mod in a modlist CSV.",
        epilog="""
Examples:
  %(prog)s --modlist modlist.csv
  %(prog)s --modlist modlist.csv --use-cached-responses --cache-root cache
  CURSEFORGE_API_KEY=... %(prog)s --modlist modlist.csv --workers 8
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--modlist', default='modlist.csv', help='CSV file to read and rewrite')
    parser.add_argument('--cache-root', help='Directory for cached API responses')
    parser.add_argument('--use-cached-responses', action='store_true', default=None,
                        help='Never touch the network; a cache miss fails that record')
    parser.add_argument('--workers', type=int, help='Concurrent resolutions')
    parser.add_argument('--max-retries', type=int, help='Retries for HTTP 429/5xx')
    parser.add_argument('--timeout', type=float, help='Per-request timeout in seconds')
    parser.add_argument('--report', default='mod_version_report.md', help='Markdown summary output')
    parser.add_argument('--dry-run', action='store_true', help='Do not rewrite the modlist')
    return parser.parse_args()


def main() -> int:
    setup_logging()
    args = parse_args()
    try:
        context = ResolverContext.from_env(
            cache_root=Path(args.cache_root) if args.cache_root else None,
            use_cached_responses=args.use_cached_responses,
            workers=args.workers,
            max_retries=args.max_retries,
            timeout=args.timeout,
        )
        records = load_records(Path(args.modlist))
        engine = UpdateEngine(context)
    except (ModTiersError, OSError) as e:
        console.print(f"[red]Cannot start: {e}[/]")
        return 2

    console.print(Panel.fit(
        f"[blue]{args.modlist}[/]\n"
        f"{len(records)} records, {context.workers} workers, "
        f"{'cached responses only' if context.use_cached_responses else 'live'}",
        title="[bold green]Mod Version Updater[/]"
    ))

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True
    ) as progress:
        task = progress.add_task("Resolving versions...", total=len(records))
        try:
            report = engine.update_all(records, on_outcome=lambda _: progress.advance(task))
        except ConfigError as e:
            console.print(f"[red]Run aborted: {e}[/]")
            return 2

    table = Table(box=box.ROUNDED)
    table.add_column("Status", justify="center")
    table.add_column("Mod", style="bold")
    table.add_column("Current")
    table.add_column("Next")
    table.add_column("Latest")
    table.add_column("Details", style="dim")
    for outcome in report.outcomes:
        record = outcome.record
        table.add_row(
            STATUS_STYLE[outcome.status],
            record.name or record.id,
            f"{record.current.version} ({record.current.game_version})",
            f"{record.next.version} ({record.next.game_version})",
            f"{record.latest.version} ({record.latest.game_version})",
            outcome.reason,
        )
    console.print(table)

    if not args.dry_run:
        save_records(Path(args.modlist), report.records)
        console.print(f"[dim]Updated {args.modlist}[/]")

    with open(args.report, 'w', encoding='utf-8') as f:
        f.write(generate_update_report(report))
    console.print(f"[dim]Detailed report saved to {args.report}[/]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
