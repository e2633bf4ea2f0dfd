from datetime import datetime
from typing import List, Optional

from .engine import BatchReport, OutcomeStatus


def generate_update_report(report: BatchReport, now: Optional[datetime] = None) -> str:
    lines: List[str] = []
    now = now or datetime.now()

    lines.append("# Mod Version Report")
    lines.append(f"Generated on: {now.strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append("")

    lines.append("## Summary")
    for status, count in report.counts().items():
        if count:
            lines.append(f"- {status.capitalize()}: {count}")
    lines.append(f"- Total: {len(report.outcomes)}")
    lines.append("")

    updates = report.updates_available
    if updates:
        lines.append("## Updates Available")
        for record in updates:
            line = f"- {record.name or record.id}: {record.current.version} -> {record.latest.version} ({record.latest.game_version})"
            if not record.next.is_unknown:
                line += f", next {record.next.game_version}: {record.next.version}"
            lines.append(line)
        lines.append("")

    if report.substitutions:
        lines.append("## Substituted Versions")
        for outcome in report.substitutions:
            lines.append(
                f"- {outcome.record.name or outcome.record.id}: requested {outcome.substituted_from}, using {outcome.record.current.version}"
            )
        lines.append("")

    failures = [
        o
        for o in report.outcomes
        if o.status in (OutcomeStatus.SKIPPED, OutcomeStatus.UNRESOLVED, OutcomeStatus.REJECTED)
    ]
    if failures:
        lines.append("## Problems")
        for outcome in failures:
            lines.append(f"- {outcome.record.name or outcome.record.id} [{outcome.status.value}]: {outcome.reason}")
        lines.append("")

    return "\n".join(lines)
