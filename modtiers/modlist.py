import csv
from pathlib import Path
from typing import Dict, List

from .dependencies import decode, encoded_views
from .models import ModRecord, Tier
from .utils import UNKNOWN

TIER_COLUMNS = {
    "current": ("CurrentVersion", "CurrentGameVersion", "CurrentVersionUrl"),
    "next": ("NextVersion", "NextGameVersion", "NextVersionUrl"),
    "latest": ("LatestVersion", "LatestGameVersion", "LatestVersionUrl"),
}
DEPENDENCY_COLUMNS = {
    "current_dependencies": "CurrentDependencies",
    "latest_dependencies": "LatestDependencies",
}
BASE_COLUMNS = ["Group", "Type", "ID", "Name", "Loader", "Host"]
COLUMNS = (
    BASE_COLUMNS
    + [c for triple in TIER_COLUMNS.values() for c in triple]
    + [
        f"{prefix}{suffix}"
        for prefix in DEPENDENCY_COLUMNS.values()
        for suffix in ("", "Required", "Optional")
    ]
)


def _tier(row: Dict[str, str], name: str) -> Tier:
    version, game_version, url = (row.get(c) or UNKNOWN for c in TIER_COLUMNS[name])
    return Tier(version, game_version, url)


def record_from_row(row: Dict[str, str]) -> ModRecord:
    extra = {k: v for k, v in row.items() if k not in COLUMNS and k is not None}
    return ModRecord(
        id=row.get("ID", ""),
        name=row.get("Name", ""),
        loader=row.get("Loader", ""),
        host=row.get("Host") or row.get("ApiSource", ""),
        group=row.get("Group", ""),
        type=row.get("Type") or "mod",
        current=_tier(row, "current"),
        next=_tier(row, "next"),
        latest=_tier(row, "latest"),
        current_dependencies=decode(row.get("CurrentDependencies")),
        latest_dependencies=decode(row.get("LatestDependencies")),
        extra=extra,
    )


def record_to_row(record: ModRecord) -> Dict[str, str]:
    row = dict(record.extra)
    row.update(
        {
            "Group": record.group,
            "Type": record.type,
            "ID": record.id,
            "Name": record.name,
            "Loader": record.loader,
            "Host": record.host,
        }
    )
    for name, (version_col, game_col, url_col) in TIER_COLUMNS.items():
        tier = getattr(record, name)
        row[version_col], row[game_col], row[url_col] = tier.version, tier.game_version, tier.version_url
    for attr, column in DEPENDENCY_COLUMNS.items():
        views = encoded_views(getattr(record, attr))
        row[column] = views["all"]
        row[f"{column}Required"] = views["required"]
        row[f"{column}Optional"] = views["optional"]
    return row


def load_records(path: Path) -> List[ModRecord]:
    with open(path, "r", encoding="utf-8", newline="") as f:
        return [record_from_row(row) for row in csv.DictReader(f)]


def save_records(path: Path, records: List[ModRecord]) -> None:
    rows = [record_to_row(r) for r in records]
    fieldnames = list(COLUMNS)
    for row in rows:
        fieldnames.extend(k for k in row if k not in fieldnames)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)
