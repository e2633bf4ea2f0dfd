from typing import List, Optional

from ..exceptions import NotFoundError
from ..models import ProjectInfo, VersionDescriptor
from .base import ProviderKind, VersionProvider


class MojangServerProvider(VersionProvider):
    """Vanilla server jars from the piston-meta version manifest."""

    kind = ProviderKind.MOJANG

    def __init__(self, http, cache, manifest_url: str = "https://piston-meta.mojang.com/mc/game/version_manifest_v2.json") -> None:
        super().__init__(http, cache)
        self.manifest_url = manifest_url

    def project_info(self, mod_id: str) -> ProjectInfo:
        return ProjectInfo(project_id=mod_id, slug=mod_id, title="Minecraft Server", provider=self.kind.value)

    def _manifest(self) -> dict:
        return self._cached_json("manifest", "", self.manifest_url)

    def latest_release(self) -> str:
        manifest = self._manifest()
        return self._normalize("version manifest", lambda: manifest["latest"]["release"])

    def server_descriptor(self, game_version: str) -> VersionDescriptor:
        manifest = self._manifest()
        entries = self._normalize(
            "version manifest", lambda: {v["id"]: v for v in manifest["versions"]}
        )
        if game_version not in entries:
            raise NotFoundError(f"Unknown Minecraft version: {game_version}")
        entry = entries[game_version]
        url = self._normalize(f"version {game_version}", lambda: entry["url"])
        meta = self._cached_json(game_version, "version", url)
        server = self._normalize(
            f"version {game_version}", lambda: (meta.get("downloads") or {}).get("server")
        )
        if not server or not server.get("url"):
            raise NotFoundError(f"No server jar for Minecraft version: {game_version}")
        return VersionDescriptor(
            version_id=game_version,
            version_number=game_version,
            game_versions=frozenset([game_version]),
            download_url=server["url"],
            published_at=entry.get("releaseTime", ""),
        )

    def list_versions(self, mod_id: str) -> List[VersionDescriptor]:
        return [self.server_descriptor(self.latest_release())]

    def resolve(
        self, mod_id: str, loader: Optional[str] = None, game_version: Optional[str] = None
    ) -> List[VersionDescriptor]:
        return [self.server_descriptor(game_version or self.latest_release())]
