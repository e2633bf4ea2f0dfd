from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..cache import ResponseCache
from ..exceptions import NotFoundError, ParseError
from ..http import ResilientHttpClient
from ..models import ProjectInfo, VersionDescriptor


class ProviderKind(Enum):
    MODRINTH = "modrinth"
    CURSEFORGE = "curseforge"
    FABRIC = "fabric"
    MOJANG = "mojang"

    @classmethod
    def from_host(cls, host: Optional[str]) -> Optional["ProviderKind"]:
        """Map a record's Host/ApiSource value to a provider, None if blank or unknown."""
        if not host:
            return None
        return HOST_ALIASES.get(host.strip().lower())


HOST_ALIASES: Dict[str, ProviderKind] = {
    "modrinth": ProviderKind.MODRINTH,
    "modrinth.com": ProviderKind.MODRINTH,
    "api.modrinth.com": ProviderKind.MODRINTH,
    "curseforge": ProviderKind.CURSEFORGE,
    "curseforge.com": ProviderKind.CURSEFORGE,
    "www.curseforge.com": ProviderKind.CURSEFORGE,
    "api.curseforge.com": ProviderKind.CURSEFORGE,
    "fabric": ProviderKind.FABRIC,
    "fabricmc": ProviderKind.FABRIC,
    "meta.fabricmc.net": ProviderKind.FABRIC,
    "mojang": ProviderKind.MOJANG,
    "minecraft": ProviderKind.MOJANG,
    "piston-meta.mojang.com": ProviderKind.MOJANG,
}


class VersionProvider(ABC):
    """One upstream repository, normalized to ``VersionDescriptor``s.

    Outcomes: a non-empty list (found), ``NotFoundError`` (does not exist
    upstream) or a ``TransientError`` subclass (could not be read).
    """

    kind: ProviderKind

    def __init__(self, http: ResilientHttpClient, cache: ResponseCache) -> None:
        self.http = http
        self.cache = cache

    def _cached_json(self, mod_id: str, query_type: str, url: str, **kwargs) -> Any:
        return self.cache.fetch(
            self.kind.value, mod_id, query_type, lambda: self.http.get_json(url, **kwargs)
        )

    def _normalize(self, what: str, fn: Callable[[], Any]) -> Any:
        try:
            return fn()
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            raise ParseError(f"Unexpected {self.kind.value} payload for {what}: {exc!r}") from exc

    @abstractmethod
    def list_versions(self, mod_id: str) -> List[VersionDescriptor]:
        """Every release upstream knows for ``mod_id``."""

    @abstractmethod
    def project_info(self, mod_id: str) -> ProjectInfo:
        pass

    def resolve(
        self, mod_id: str, loader: Optional[str] = None, game_version: Optional[str] = None
    ) -> List[VersionDescriptor]:
        """Releases for ``loader`` (and ``game_version`` when given)."""
        matches = [
            d
            for d in self.list_versions(mod_id)
            if d.supports_loader(loader) and (game_version is None or game_version in d.game_versions)
        ]
        if not matches:
            raise NotFoundError(
                f"No {self.kind.value} release of {mod_id} for loader={loader or 'any'} "
                f"game_version={game_version or 'any'}",
                context={"id": mod_id, "loader": loader, "game_version": game_version},
            )
        return matches
