import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from .config import ResolverContext
from .exceptions import CacheMissError, ConfigError
from .utils import safe_filename

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str]


class ResponseCache:
    """Filesystem cache of raw upstream JSON, one directory per provider.

    Entries never expire; clearing them is up to the caller. Writes for the
    same (provider, id, query_type) key are serialized, reads take no lock.
    """

    def __init__(self, root: Path, use_cached_responses: bool = False) -> None:
        self.root = Path(root)
        self.use_cached_responses = use_cached_responses
        if use_cached_responses:
            if not self.root.is_dir():
                raise ConfigError(f"Cache root {self.root} does not exist; cannot run from cached responses")
        else:
            try:
                self.root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ConfigError(f"Cache root {self.root} is not usable: {exc}") from exc
        if not os.access(self.root, os.R_OK):
            raise ConfigError(f"Cache root {self.root} is not readable")
        self._locks: Dict[CacheKey, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_context(cls, context: ResolverContext) -> "ResponseCache":
        return cls(context.cache_root, context.use_cached_responses)

    def _lock_for(self, key: CacheKey) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def path_for(self, provider: str, mod_id: str, query_type: str = "") -> Path:
        name = safe_filename(str(mod_id))
        if query_type:
            name = f"{name}-{safe_filename(query_type)}"
        return self.root / provider / f"{name}.json"

    def get(self, provider: str, mod_id: str, query_type: str = "") -> Tuple[Optional[Any], bool]:
        cache_file = self.path_for(provider, mod_id, query_type)
        if not cache_file.exists():
            return None, False
        try:
            entry = json.loads(cache_file.read_text(encoding="utf-8"))
            return entry["data"], True
        except (json.JSONDecodeError, KeyError, TypeError, OSError) as exc:
            logger.warning("Ignoring unreadable cache entry %s: %s", cache_file, exc)
            return None, False

    def put(self, provider: str, mod_id: str, query_type: str, payload: Any) -> None:
        cache_file = self.path_for(provider, mod_id, query_type)
        tmp = cache_file.with_name(f"{cache_file.name}.{threading.get_ident()}.tmp")
        entry = {"cached_at": time.time(), "data": payload}
        with self._lock_for((provider, str(mod_id), query_type)):
            cache_file.parent.mkdir(parents=True, exist_ok=True)
            try:
                with open(tmp, "w", encoding="utf-8") as f:
                    json.dump(entry, f, separators=(",", ":"))
                os.replace(tmp, cache_file)
            finally:
                if tmp.exists():
                    tmp.unlink()

    def fetch(self, provider: str, mod_id: str, query_type: str, loader: Callable[[], Any]) -> Any:
        """Return the cached payload, or call ``loader`` and cache what it returns."""
        payload, hit = self.get(provider, mod_id, query_type)
        if hit:
            logger.debug("Cache hit %s/%s %s", provider, mod_id, query_type)
            return payload
        if self.use_cached_responses:
            raise CacheMissError(
                f"No cached {provider} response for {mod_id} ({query_type or 'default'})",
                context={"provider": provider, "id": mod_id, "query_type": query_type},
            )
        logger.debug("Cache miss %s/%s %s; fetching", provider, mod_id, query_type)
        payload = loader()
        self.put(provider, mod_id, query_type, payload)
        return payload

    def clear(self, provider: Optional[str] = None) -> int:
        """Delete cached entries (all providers, or one). Returns the count removed."""
        base = self.root / provider if provider else self.root
        if not base.exists():
            return 0
        removed = 0
        for cache_file in base.rglob("*.json"):
            cache_file.unlink()
            removed += 1
        return removed
