import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .exceptions import ConfigError

DEFAULT_USER_AGENT = "modtiers/0.1 (+https://github.com/MrPlayerYork/MinecraftModChecker)"

MODRINTH_BASE_URL = "https://api.modrinth.com"
CURSEFORGE_BASE_URL = "https://api.curseforge.com"
FABRIC_META_URL = "https://meta.fabricmc.net"
MOJANG_MANIFEST_URL = "https://piston-meta.mojang.com/mc/game/version_manifest_v2.json"

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ResolverContext:
    """Everything a resolution run needs, passed explicitly to every component."""

    cache_root: Path = Path("modtiers_cache")
    use_cached_responses: bool = False
    curseforge_api_key: Optional[str] = None
    timeout: float = 30.0
    max_retries: int = 3
    initial_delay: float = 1.0
    workers: int = 4
    user_agent: str = DEFAULT_USER_AGENT
    modrinth_base_url: str = MODRINTH_BASE_URL
    curseforge_base_url: str = CURSEFORGE_BASE_URL
    fabric_meta_url: str = FABRIC_META_URL
    mojang_manifest_url: str = MOJANG_MANIFEST_URL

    def __post_init__(self):
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")
        if self.max_retries < 0:
            raise ConfigError(f"max_retries must not be negative, got {self.max_retries}")
        if self.initial_delay < 0:
            raise ConfigError(f"initial_delay must not be negative, got {self.initial_delay}")
        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.workers}")
        if not isinstance(self.cache_root, Path):
            object.__setattr__(self, "cache_root", Path(self.cache_root))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ResolverContext":
        """Build a context from MODTIERS_* variables; keyword overrides win."""
        env = os.environ if environ is None else environ
        values = {}
        if env.get("MODTIERS_CACHE_ROOT"):
            values["cache_root"] = Path(env["MODTIERS_CACHE_ROOT"]).expanduser()
        if env.get("MODTIERS_USE_CACHED_RESPONSES"):
            values["use_cached_responses"] = env["MODTIERS_USE_CACHED_RESPONSES"].strip().lower() in _TRUE
        if env.get("CURSEFORGE_API_KEY"):
            values["curseforge_api_key"] = env["CURSEFORGE_API_KEY"]
        for key, name, cast in (
            ("timeout", "MODTIERS_TIMEOUT", float),
            ("max_retries", "MODTIERS_MAX_RETRIES", int),
            ("initial_delay", "MODTIERS_INITIAL_DELAY", float),
            ("workers", "MODTIERS_WORKERS", int),
        ):
            raw = env.get(name)
            if raw is None or raw == "":
                continue
            try:
                values[key] = cast(raw)
            except ValueError as exc:
                raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
