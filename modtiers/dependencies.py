"""
Dependency normalization and the compact string encoding stored per record.

Internally dependencies are always ``Dependency`` objects; the string form
only exists at the storage edge. An empty list encodes to ``""``, and both
``""`` and ``"[]"`` decode back to an empty list.
"""

import json
from typing import Any, Dict, Iterable, List, Optional

from .exceptions import ParseError
from .models import Dependency, DependencyType

# Upstream spellings, lowercased with separators removed. CurseForge sends
# integer relation types.
_TYPE_ALIASES: Dict[str, DependencyType] = {
    "required": DependencyType.REQUIRED,
    "requireddependency": DependencyType.REQUIRED,
    "3": DependencyType.REQUIRED,
    "optional": DependencyType.OPTIONAL,
    "optionaldependency": DependencyType.OPTIONAL,
    "tool": DependencyType.OPTIONAL,
    "2": DependencyType.OPTIONAL,
    "4": DependencyType.OPTIONAL,
    "incompatible": DependencyType.INCOMPATIBLE,
    "5": DependencyType.INCOMPATIBLE,
    "embedded": DependencyType.EMBEDDED,
    "embeddedlibrary": DependencyType.EMBEDDED,
    "include": DependencyType.EMBEDDED,
    "1": DependencyType.EMBEDDED,
    "6": DependencyType.EMBEDDED,
}


def normalize_dependency_type(value: Any) -> DependencyType:
    if isinstance(value, DependencyType):
        return value
    key = str(value).strip().lower().replace("_", "").replace("-", "").replace(" ", "")
    try:
        return _TYPE_ALIASES[key]
    except KeyError:
        raise ParseError(f"Unknown dependency type {value!r}") from None


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def from_upstream(raw: Optional[Iterable[Any]]) -> List[Dependency]:
    """Normalize Modrinth / CurseForge dependency objects (or ``Dependency``s)."""
    dependencies: List[Dependency] = []
    for item in raw or []:
        if isinstance(item, Dependency):
            dependencies.append(item)
            continue
        if not isinstance(item, dict):
            raise ParseError(f"Dependency entry is not an object: {item!r}")
        project_id = item.get("project_id", item.get("modId"))
        kind = item.get("dependency_type", item.get("relationType"))
        # Modrinth may pin a dependency by version or file name only.
        if kind is None or (project_id is None and not item.get("version_id") and not item.get("file_name")):
            raise ParseError(f"Dependency entry lacks a project or type: {item!r}")
        dependencies.append(
            Dependency(
                project_id="" if project_id is None else str(project_id),
                dependency_type=normalize_dependency_type(kind),
                version_id=_optional_str(item.get("version_id")),
                version_range=_optional_str(item.get("version_range")),
            )
        )
    return dependencies


def encode(dependencies: Iterable[Dependency]) -> str:
    items = [
        {
            "project_id": dep.project_id,
            "dependency_type": dep.dependency_type.value,
            "version_id": dep.version_id,
            "version_range": dep.version_range,
        }
        for dep in dependencies
    ]
    if not items:
        return ""
    return json.dumps(items, separators=(",", ":"))


def decode(encoded: Optional[str]) -> List[Dependency]:
    if encoded is None or not encoded.strip():
        return []
    try:
        raw = json.loads(encoded)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Malformed dependency encoding: {exc}") from exc
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ParseError("Dependency encoding must be a list")
    return from_upstream(raw)


def extract(raw: Optional[Iterable[Any]]) -> str:
    """Upstream dependency objects -> compact encoding."""
    return encode(from_upstream(raw))


def required(dependencies: Iterable[Dependency]) -> List[Dependency]:
    return [d for d in dependencies if d.dependency_type is DependencyType.REQUIRED]


def optional(dependencies: Iterable[Dependency]) -> List[Dependency]:
    return [d for d in dependencies if d.dependency_type is DependencyType.OPTIONAL]


def encoded_views(dependencies: Iterable[Dependency]) -> Dict[str, str]:
    """Combined, required-only and optional-only encodings in one pass."""
    deps = list(dependencies)
    return {
        "all": encode(deps),
        "required": encode(required(deps)),
        "optional": encode(optional(deps)),
    }
