from typing import Dict, Optional

from ..cache import ResponseCache
from ..config import ResolverContext
from ..http import ResilientHttpClient
from .base import HOST_ALIASES, ProviderKind, VersionProvider
from .curseforge import CurseForgeProvider
from .fabric import FabricLoaderProvider
from .modrinth import ModrinthProvider
from .mojang import MojangServerProvider

Registry = Dict[ProviderKind, VersionProvider]


def build_registry(
    context: ResolverContext,
    http: Optional[ResilientHttpClient] = None,
    cache: Optional[ResponseCache] = None,
) -> Registry:
    http = http or ResilientHttpClient.from_context(context)
    cache = cache or ResponseCache.from_context(context)
    return {
        ProviderKind.MODRINTH: ModrinthProvider(http, cache, context.modrinth_base_url),
        ProviderKind.CURSEFORGE: CurseForgeProvider(
            http, cache, context.curseforge_api_key, context.curseforge_base_url
        ),
        ProviderKind.FABRIC: FabricLoaderProvider(http, cache, context.fabric_meta_url),
        ProviderKind.MOJANG: MojangServerProvider(http, cache, context.mojang_manifest_url),
    }


__all__ = [
    "HOST_ALIASES",
    "ProviderKind",
    "VersionProvider",
    "ModrinthProvider",
    "CurseForgeProvider",
    "FabricLoaderProvider",
    "MojangServerProvider",
    "Registry",
    "build_registry",
]
