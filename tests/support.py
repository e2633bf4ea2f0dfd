import json
import sys
from pathlib import Path

import requests

# Ensure the repository root is on the import path so that modtiers can be
# imported when tests are executed from within the tests directory.
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from modtiers.cache import ResponseCache
from modtiers.exceptions import NotFoundError
from modtiers.providers import (
    CurseForgeProvider,
    FabricLoaderProvider,
    ModrinthProvider,
    MojangServerProvider,
    ProviderKind,
)

MODRINTH = "https://api.modrinth.com"
CURSEFORGE = "https://api.curseforge.com"
FABRIC = "https://meta.fabricmc.net"
MANIFEST = "https://piston-meta.mojang.com/mc/game/version_manifest_v2.json"


def make_response(status=200, body=None, headers=None, raw=None):
    response = requests.Response()
    response.status_code = status
    response.encoding = "utf-8"
    if raw is not None:
        response._content = raw.encode("utf-8")
    else:
        response._content = json.dumps(body if body is not None else {}).encode("utf-8")
    if headers:
        response.headers.update(headers)
    return response


class FakeHttp:
    """Stands in for ResilientHttpClient.get_json with canned payloads per URL.

    A route value may be a payload, an exception instance to raise, or a
    callable taking the query params.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get_json(self, url, headers=None, params=None, **kwargs):
        self.calls.append({"url": url, "headers": headers, "params": params})
        if url not in self.routes:
            raise NotFoundError(f"404 Not Found: {url}", 404)
        value = self.routes[url]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(params or {})
        return value

    def urls(self):
        return [c["url"] for c in self.calls]


def modrinth_version(version_id, number, game_versions, loaders=("fabric",), dependencies=(), date="2025-01-01T00:00:00Z"):
    return {
        "id": version_id,
        "version_number": number,
        "game_versions": list(game_versions),
        "loaders": list(loaders),
        "date_published": date,
        "dependencies": list(dependencies),
        "files": [
            {"url": f"https://cdn.modrinth.com/data/AAAA/versions/{version_id}/extra.jar", "primary": False},
            {"url": f"https://cdn.modrinth.com/data/AAAA/versions/{version_id}/mod-{number}.jar", "primary": True},
        ],
    }


def modrinth_routes(slug, versions, title=None):
    return {
        f"{MODRINTH}/v2/project/{slug}": {"id": f"id-{slug}", "slug": slug, "title": title or slug},
        f"{MODRINTH}/v2/project/{slug}/version": versions,
    }


def make_cache(tmp, offline=False):
    return ResponseCache(Path(tmp), use_cached_responses=offline)


def make_registry(http, cache, api_key=None):
    return {
        ProviderKind.MODRINTH: ModrinthProvider(http, cache, MODRINTH),
        ProviderKind.CURSEFORGE: CurseForgeProvider(http, cache, api_key, CURSEFORGE),
        ProviderKind.FABRIC: FabricLoaderProvider(http, cache, FABRIC),
        ProviderKind.MOJANG: MojangServerProvider(http, cache, MANIFEST),
    }
