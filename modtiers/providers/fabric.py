from typing import List, Optional

from ..exceptions import NotFoundError
from ..models import ProjectInfo, VersionDescriptor
from .base import ProviderKind, VersionProvider

SERVER_LAUNCHER = "fabric-server-launcher"


class FabricLoaderProvider(VersionProvider):
    """Fabric loader versions per game version, served as server launcher jars."""

    kind = ProviderKind.FABRIC

    def __init__(self, http, cache, base_url: str = "https://meta.fabricmc.net") -> None:
        super().__init__(http, cache)
        self.base_url = base_url.rstrip("/")

    def project_info(self, mod_id: str) -> ProjectInfo:
        return ProjectInfo(project_id=mod_id, slug=mod_id, title="Fabric Loader", provider=self.kind.value)

    def latest_game_version(self) -> str:
        data = self._cached_json("game", "versions", f"{self.base_url}/v2/versions/game")

        def pick() -> Optional[str]:
            stable = [entry["version"] for entry in data if entry.get("stable")]
            return stable[0] if stable else None

        latest = self._normalize("game versions", pick)
        if latest is None:
            raise NotFoundError("Fabric meta lists no stable game version")
        return latest

    def installer_version(self) -> str:
        data = self._cached_json("installer", "versions", f"{self.base_url}/v2/versions/installer")

        def pick() -> Optional[str]:
            stable = [entry["version"] for entry in data if entry.get("stable")]
            if stable:
                return stable[0]
            return data[0]["version"] if data else None

        installer = self._normalize("installer versions", pick)
        if installer is None:
            raise NotFoundError("Fabric meta lists no installer version")
        return installer

    def loader_versions(self, game_version: str) -> List[VersionDescriptor]:
        data = self._cached_json(
            game_version, "loader", f"{self.base_url}/v2/versions/loader/{game_version}"
        )
        if not data:
            raise NotFoundError(f"Fabric has no loader for game version {game_version}")
        installer = self.installer_version()

        def build() -> List[VersionDescriptor]:
            entries = [entry["loader"] for entry in data]
            stable = [loader for loader in entries if loader.get("stable")]
            return [
                VersionDescriptor(
                    version_id=f"{game_version}-{loader['version']}",
                    version_number=loader["version"],
                    game_versions=frozenset([game_version]),
                    loaders=frozenset(["fabric"]),
                    download_url=(
                        f"{self.base_url}/v2/versions/loader/{game_version}/"
                        f"{loader['version']}/{installer}/server/jar"
                    ),
                )
                for loader in (stable or entries)
            ]

        return self._normalize(f"loaders for {game_version}", build)

    def list_versions(self, mod_id: str) -> List[VersionDescriptor]:
        return self.loader_versions(self.latest_game_version())

    def resolve(
        self, mod_id: str, loader: Optional[str] = None, game_version: Optional[str] = None
    ) -> List[VersionDescriptor]:
        return self.loader_versions(game_version or self.latest_game_version())
