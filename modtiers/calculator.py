import logging
from typing import Iterable, Optional, Tuple

from .exceptions import NotFoundError
from .models import ModRecord, Tier, VersionDescriptor
from .resolver import VersionResolver, pick_highest
from .utils import highest_game_version, increment_patch, is_game_version, parse_minecraft_version, release_version_key

logger = logging.getLogger(__name__)


def next_game_version(current_game_version: str) -> Optional[str]:
    if not is_game_version(current_game_version):
        return None
    return increment_patch(current_game_version)


def pick_latest(releases: Iterable[VersionDescriptor]) -> Optional[Tuple[VersionDescriptor, str]]:
    """Release whose highest game version is greatest; ties go to the higher version number.

    Returns the release and that game version, or None when no downloadable
    release names a release-shaped game version.
    """
    best = None
    best_key = None
    for release in releases:
        top = highest_game_version(release.game_versions)
        # A release without a downloadable file cannot fill a tier.
        if top is None or not release.download_url:
            continue
        key = (
            parse_minecraft_version(top),
            release_version_key(release.version_number),
            release.published_at,
            release.version_id,
        )
        if best_key is None or key > best_key:
            best, best_key = (release, top), key
    return best


class VersionCalculator:
    """Computes a record's Next and Latest tiers from upstream releases."""

    def __init__(self, resolver: VersionResolver) -> None:
        self.resolver = resolver

    def next_release(self, record: ModRecord) -> Optional[Tuple[VersionDescriptor, str]]:
        target = next_game_version(record.current.game_version)
        if target is None:
            logger.debug("%s: current game version %r is not a release token", record.id, record.current.game_version)
            return None
        try:
            releases = self.resolver.releases(record, target)
        except NotFoundError:
            logger.debug("%s: nothing released for %s yet", record.id, target)
            return None
        chosen = pick_highest(r for r in releases if target in r.game_versions and r.download_url)
        return (chosen, target) if chosen else None

    def latest_release(self, record: ModRecord) -> Optional[Tuple[VersionDescriptor, str]]:
        try:
            releases = self.resolver.releases(record)
        except NotFoundError:
            logger.debug("%s: no releases for loader %s", record.id, record.loader or "any")
            return None
        return pick_latest(releases)

    def compute_next(self, record: ModRecord) -> Tier:
        found = self.next_release(record)
        if found is None:
            return Tier.unknown()
        return Tier.from_descriptor(*found)

    def compute_latest(self, record: ModRecord) -> Tier:
        found = self.latest_release(record)
        if found is None:
            return Tier.unknown()
        return Tier.from_descriptor(*found)
