import json
from typing import Iterable, List, Optional

from ..dependencies import from_upstream
from ..models import ProjectInfo, VersionDescriptor
from .base import ProviderKind, VersionProvider


def _primary_file_url(version: dict) -> str:
    files = version.get("files") or []
    for file in files:
        if file.get("primary", False):
            return file["url"]
    return files[0]["url"] if files else ""


def descriptor_from_modrinth(version: dict) -> VersionDescriptor:
    return VersionDescriptor(
        version_id=str(version["id"]),
        version_number=str(version["version_number"]),
        game_versions=frozenset(version.get("game_versions") or []),
        loaders=frozenset(loader.lower() for loader in version.get("loaders") or []),
        download_url=_primary_file_url(version),
        dependencies=from_upstream(version.get("dependencies")),
        published_at=version.get("date_published") or "",
    )


class ModrinthProvider(VersionProvider):
    kind = ProviderKind.MODRINTH

    def __init__(self, http, cache, base_url: str = "https://api.modrinth.com") -> None:
        super().__init__(http, cache)
        self.base_url = base_url.rstrip("/")

    def project_info(self, mod_id: str) -> ProjectInfo:
        data = self._cached_json(mod_id, "project", f"{self.base_url}/v2/project/{mod_id}")
        return self._normalize(
            f"project {mod_id}",
            lambda: ProjectInfo(
                project_id=str(data["id"]),
                slug=data.get("slug") or mod_id,
                title=data.get("title") or mod_id,
                provider=self.kind.value,
            ),
        )

    def list_versions(
        self,
        mod_id: str,
        loaders: Optional[Iterable[str]] = None,
        game_versions: Optional[Iterable[str]] = None,
    ) -> List[VersionDescriptor]:
        params = {}
        query_type = "versions"
        if loaders:
            loaders = sorted(loaders)
            params["loaders"] = json.dumps(loaders)
            query_type += "-" + "_".join(loaders)
        if game_versions:
            game_versions = sorted(game_versions)
            params["game_versions"] = json.dumps(game_versions)
            query_type += "-" + "_".join(game_versions)
        data = self._cached_json(
            mod_id, query_type, f"{self.base_url}/v2/project/{mod_id}/version", params=params or None
        )
        return self._normalize(
            f"versions of {mod_id}", lambda: [descriptor_from_modrinth(v) for v in data]
        )
