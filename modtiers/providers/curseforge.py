import logging
from typing import List, Optional

from ..dependencies import from_upstream
from ..exceptions import ProviderUnavailableError
from ..models import ProjectInfo, VersionDescriptor
from ..utils import is_game_version
from .base import ProviderKind, VersionProvider

logger = logging.getLogger(__name__)

PAGE_SIZE = 50
KNOWN_LOADERS = {"fabric", "forge", "neoforge", "quilt", "liteloader", "rift"}


def _edge_download_url(file_id: int, file_name: str) -> str:
    # Files with third-party distribution disabled report a null downloadUrl.
    return f"https://edge.forgecdn.net/files/{file_id // 1000}/{file_id % 1000}/{file_name}"


def descriptor_from_curseforge(file: dict) -> VersionDescriptor:
    tags = file.get("gameVersions") or []
    url = file.get("downloadUrl") or _edge_download_url(int(file["id"]), file["fileName"])
    return VersionDescriptor(
        version_id=str(file["id"]),
        version_number=file.get("displayName") or file["fileName"],
        game_versions=frozenset(tag for tag in tags if is_game_version(tag)),
        loaders=frozenset(tag.lower() for tag in tags if tag.lower() in KNOWN_LOADERS),
        download_url=url,
        dependencies=from_upstream(file.get("dependencies")),
        published_at=file.get("fileDate") or "",
    )


class CurseForgeProvider(VersionProvider):
    """Mods and files by numeric id. Needs an x-api-key."""

    kind = ProviderKind.CURSEFORGE

    def __init__(self, http, cache, api_key: Optional[str] = None, base_url: str = "https://api.curseforge.com") -> None:
        super().__init__(http, cache)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> dict:
        if not self.api_key:
            raise ProviderUnavailableError("CurseForge API key is not configured")
        return {"x-api-key": self.api_key}

    def _fetch(self, mod_id: str, query_type: str, path: str, params: Optional[dict] = None):
        # Only a live fetch needs the key; cached responses stay usable without it.
        headers = None
        if not self.cache.use_cached_responses and not self.cache.get(self.kind.value, mod_id, query_type)[1]:
            headers = self._headers()
        return self._cached_json(mod_id, query_type, f"{self.base_url}{path}", headers=headers, params=params)

    def project_info(self, mod_id: str) -> ProjectInfo:
        data = self._fetch(mod_id, "project", f"/v1/mods/{mod_id}")
        return self._normalize(
            f"mod {mod_id}",
            lambda: ProjectInfo(
                project_id=str(data["data"]["id"]),
                slug=data["data"].get("slug") or str(mod_id),
                title=data["data"].get("name") or str(mod_id),
                provider=self.kind.value,
            ),
        )

    def _all_files(self, mod_id: str) -> List[dict]:
        files: List[dict] = []
        index = 0
        while True:
            page = self._fetch(
                mod_id,
                f"files-{index}",
                f"/v1/mods/{mod_id}/files",
                params={"index": index, "pageSize": PAGE_SIZE},
            )
            batch = page["data"]
            files.extend(batch)
            total = page.get("pagination", {}).get("totalCount", len(files))
            index += len(batch)
            if not batch or index >= total:
                return files

    def list_versions(self, mod_id: str) -> List[VersionDescriptor]:
        files = self._normalize(f"files of {mod_id}", lambda: self._all_files(mod_id))
        logger.debug("CurseForge %s has %d files", mod_id, len(files))
        return self._normalize(
            f"files of {mod_id}", lambda: [descriptor_from_curseforge(f) for f in files]
        )
