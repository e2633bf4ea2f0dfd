import logging
import os
import re
from typing import Iterable, List, Optional
from urllib.parse import unquote, urlparse

from packaging import version
from rich.console import Console
from rich.logging import RichHandler

console = Console()

UNKNOWN = "unknown"

GAME_VERSION_RE = re.compile(r"^\d+\.\d+(?:\.\d+)?$")
_DIGITS_RE = re.compile(r"\d+")


def setup_logging(level: Optional[str] = None) -> None:
    """Route log records through rich. MODTIERS_DEBUG=1 turns on DEBUG."""
    if level is None:
        level = "DEBUG" if os.environ.get("MODTIERS_DEBUG", "0") == "1" else "INFO"
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=level == "DEBUG")
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root.addHandler(handler)
    root.setLevel(level)


def is_game_version(ver: Optional[str]) -> bool:
    """True for release-shaped tokens like ``1.21`` or ``1.21.5``."""
    return bool(ver) and GAME_VERSION_RE.match(ver.strip()) is not None


def parse_minecraft_version(ver: str) -> version.Version:
    """Parse a Minecraft version string into a comparable version object.

    ``1.21`` and ``1.21.0`` compare equal. Snapshots and other oddities sort
    as ``0.0.0``.
    """
    try:
        return version.parse(ver)
    except version.InvalidVersion:
        return version.parse("0.0.0")


def highest_game_version(versions: Iterable[str]) -> Optional[str]:
    tokens = [v for v in versions if is_game_version(v)]
    if not tokens:
        return None
    return max(tokens, key=parse_minecraft_version)


def increment_patch(ver: str) -> str:
    """``1.21.5`` -> ``1.21.6``; a missing patch counts as 0 (``1.21`` -> ``1.21.1``)."""
    if not is_game_version(ver):
        raise ValueError(f"not a game version: {ver!r}")
    parts = [int(p) for p in ver.strip().split(".")]
    if len(parts) == 2:
        parts.append(0)
    parts[2] += 1
    return ".".join(str(p) for p in parts)


def release_version_key(ver: Optional[str]) -> version.Version:
    """Ordering key for release numbers such as ``0.128.1+1.21.6`` or ``mc1.21-2.3``.

    Falls back to its numeric groups when the string is not PEP 440.
    """
    if not ver:
        return version.parse("0")
    try:
        return version.parse(ver)
    except version.InvalidVersion:
        digits = _DIGITS_RE.findall(ver)
        if not digits:
            return version.parse("0")
        return version.parse(".".join(str(int(d)) for d in digits))


def url_game_version_tokens(url: Optional[str]) -> List[str]:
    """Path segments of ``url`` that are themselves game-version tokens."""
    if not url or url == UNKNOWN:
        return []
    path = unquote(urlparse(url).path)
    return [segment for segment in path.split("/") if is_game_version(segment)]


def safe_filename(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._+-]", "_", name)
