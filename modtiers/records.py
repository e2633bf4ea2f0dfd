"""
Tier updates for ``ModRecord``.

A tier (version, game version, url) is always replaced as one value, and a
batch of tier updates is validated as a whole before anything is applied.
A rejected update raises ``InvariantViolationError`` and leaves the record
untouched.
"""

from dataclasses import replace
from typing import Dict, List, Optional

from .exceptions import InvariantViolationError
from .models import Dependency, ModRecord, Tier, TierName
from .utils import UNKNOWN, increment_patch, is_game_version, parse_minecraft_version, url_game_version_tokens


def tier_problems(name: TierName, tier: Tier) -> List[str]:
    problems = []
    fields = (tier.version, tier.game_version, tier.version_url)
    unknown = [value == UNKNOWN for value in fields]
    if any(unknown) and not all(unknown):
        problems.append(
            f"{name.value} tier mixes unknown and resolved fields: "
            + ", ".join(repr(value) for value in fields)
        )
    tokens = url_game_version_tokens(tier.version_url)
    if tokens and tier.game_version != UNKNOWN and tier.game_version not in tokens:
        problems.append(
            f"{name.value} url encodes game version {tokens[0]} but tier says {tier.game_version}"
        )
    return problems


def record_problems(record: ModRecord) -> List[str]:
    problems: List[str] = []
    for name in TierName:
        # Current is owned by the catalog; only tiers this engine writes are checked.
        if name is not TierName.CURRENT:
            problems.extend(tier_problems(name, record.tier(name)))

    current, nxt, latest = record.current, record.next, record.latest
    if not nxt.is_unknown:
        if not is_game_version(current.game_version):
            problems.append(f"next tier resolved but current game version {current.game_version!r} is not a release")
        elif nxt.game_version != increment_patch(current.game_version):
            problems.append(
                f"next game version {nxt.game_version} is not the successor of {current.game_version}"
            )
    if not nxt.is_unknown and not latest.is_unknown:
        if parse_minecraft_version(latest.game_version) < parse_minecraft_version(nxt.game_version):
            problems.append(f"latest game version {latest.game_version} is behind next {nxt.game_version}")
    return problems


def apply_tier_updates(
    record: ModRecord,
    updates: Dict[TierName, Tier],
    current_dependencies: Optional[List[Dependency]] = None,
    latest_dependencies: Optional[List[Dependency]] = None,
) -> ModRecord:
    """Return a copy of ``record`` with every update applied, or raise without applying any."""
    changes = {name.value: tier for name, tier in updates.items()}
    if current_dependencies is not None:
        changes["current_dependencies"] = list(current_dependencies)
    if latest_dependencies is not None:
        changes["latest_dependencies"] = list(latest_dependencies)
    candidate = replace(record, **changes)

    problems = []
    if TierName.CURRENT in updates:
        problems.extend(tier_problems(TierName.CURRENT, candidate.current))
    problems.extend(record_problems(candidate))
    if problems:
        raise InvariantViolationError(
            f"Rejected tier update for {record.id}: " + "; ".join(problems),
            context={"id": record.id, "problems": problems},
        )
    return candidate


def apply_tier_update(record: ModRecord, tier: TierName, value: Tier) -> ModRecord:
    return apply_tier_updates(record, {tier: value})
