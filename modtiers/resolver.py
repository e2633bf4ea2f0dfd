import logging
from typing import Iterable, List, Optional

from .exceptions import ConfigError, ModTiersError, NotFoundError
from .models import ModRecord, ResolutionResult, VersionDescriptor
from .providers import ProviderKind, Registry
from .utils import UNKNOWN, is_game_version, release_version_key

logger = logging.getLogger(__name__)

LATEST = "latest"

SERVER_TYPES = {"server"}
LAUNCHER_TYPES = {"launcher", "installer"}


def _highest_key(descriptor: VersionDescriptor):
    return (release_version_key(descriptor.version_number), descriptor.published_at, descriptor.version_id)


def pick_highest(candidates: Iterable[VersionDescriptor]) -> Optional[VersionDescriptor]:
    """Highest version number; later publication, then larger id, break ties."""
    return max(candidates, key=_highest_key, default=None)


def choose_substitute(
    requested: str, candidates: Iterable[VersionDescriptor], loader: Optional[str]
) -> Optional[VersionDescriptor]:
    """Auto-correction policy for a requested version that does not exist upstream.

    Same loader first, then the highest version number. Remaining ties go to
    the later publication date, then the lexically larger version id, so the
    choice is stable across runs.
    """
    candidates = list(candidates)
    if not candidates:
        return None
    chosen = max(candidates, key=lambda d: (d.supports_loader(loader),) + _highest_key(d))
    logger.debug("Substituting %s for missing version %s", chosen.version_number, requested)
    return chosen


def _exact_match(
    requested: str, candidates: List[VersionDescriptor], loader: Optional[str]
) -> Optional[VersionDescriptor]:
    matches = [
        d
        for d in candidates
        if (d.version_number == requested or d.version_id == requested) and d.supports_loader(loader)
    ]
    return pick_highest(matches)


class VersionResolver:
    def __init__(self, registry: Registry) -> None:
        self.registry = registry

    def select_provider(
        self, mod_id: str, host: Optional[str] = None, record_type: Optional[str] = None
    ) -> ProviderKind:
        kind = ProviderKind.from_host(host)
        if kind is not None:
            return kind
        if host:
            logger.warning("Unknown host %r for %s; inferring provider", host, mod_id)
        kind_of_record = (record_type or "").strip().lower()
        if kind_of_record in SERVER_TYPES:
            return ProviderKind.MOJANG
        if kind_of_record in LAUNCHER_TYPES:
            return ProviderKind.FABRIC
        if str(mod_id).strip().isdigit():
            return ProviderKind.CURSEFORGE
        return ProviderKind.MODRINTH

    def provider_for(self, record: ModRecord):
        return self.registry[self.select_provider(record.id, record.host, record.type)]

    def releases(
        self, record: ModRecord, game_version: Optional[str] = None
    ) -> List[VersionDescriptor]:
        """Releases of ``record`` for its loader, optionally for one game version."""
        return self.provider_for(record).resolve(record.id, record.loader or None, game_version)

    def _candidate_pool(self, provider, mod_id: str, game_version: Optional[str]) -> List[VersionDescriptor]:
        if game_version:
            try:
                return provider.resolve(mod_id, None, game_version)
            except NotFoundError:
                logger.debug("No %s release of %s for %s; widening search", provider.kind.value, mod_id, game_version)
        return provider.list_versions(mod_id)

    def resolve(
        self,
        mod_id: str,
        requested_version: Optional[str],
        loader: Optional[str] = None,
        host: Optional[str] = None,
        game_version: Optional[str] = None,
        record_type: Optional[str] = None,
    ) -> ResolutionResult:
        provider = self.registry[self.select_provider(mod_id, host, record_type)]
        requested = (requested_version or LATEST).strip()
        try:
            if requested.lower() == LATEST:
                chosen = pick_highest(provider.resolve(mod_id, loader, game_version))
                substituted_from = None
            else:
                pool = self._candidate_pool(provider, mod_id, game_version)
                chosen = _exact_match(requested, pool, loader)
                substituted_from = None
                if chosen is None:
                    chosen = choose_substitute(requested, pool, loader)
                    substituted_from = requested
            if chosen is None:
                raise NotFoundError(f"{provider.kind.value} has no releases for {mod_id}", context={"id": mod_id})
        except ConfigError:
            raise
        except ModTiersError as exc:
            logger.debug("Resolution of %s failed: %s", mod_id, exc)
            return ResolutionResult(exists=False, error=exc)

        if substituted_from is not None:
            logger.info("%s: version %s not found upstream, using %s", mod_id, requested, chosen.version_number)
        return ResolutionResult(
            exists=True,
            version_number=chosen.version_number,
            download_url=chosen.download_url,
            dependencies=list(chosen.dependencies),
            substituted_from=substituted_from,
            descriptor=chosen,
        )

    def resolve_record(self, record: ModRecord) -> ResolutionResult:
        """Resolve the record's Current tier version."""
        game_version = record.current.game_version if is_game_version(record.current.game_version) else None
        requested = record.current.version if record.current.version not in ("", UNKNOWN) else LATEST
        return self.resolve(record.id, requested, record.loader or None, record.host, game_version, record.type)
