from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from .utils import UNKNOWN


class DependencyType(Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    INCOMPATIBLE = "incompatible"
    EMBEDDED = "embedded"


@dataclass(frozen=True)
class Dependency:
    project_id: str
    dependency_type: DependencyType
    version_id: Optional[str] = None
    version_range: Optional[str] = None


@dataclass(frozen=True)
class VersionDescriptor:
    """One upstream release, normalized across providers."""

    version_id: str
    version_number: str
    game_versions: FrozenSet[str] = frozenset()
    loaders: FrozenSet[str] = frozenset()
    download_url: str = ""
    dependencies: List[Dependency] = field(default_factory=list, hash=False, compare=False)
    published_at: str = ""

    def supports_loader(self, loader: Optional[str]) -> bool:
        # Descriptors without loader data (server jars) match any loader.
        if not loader or not self.loaders:
            return True
        return loader.lower() in self.loaders


@dataclass(frozen=True)
class ProjectInfo:
    project_id: str
    slug: str
    title: str
    provider: str


class TierName(Enum):
    CURRENT = "current"
    NEXT = "next"
    LATEST = "latest"


@dataclass(frozen=True)
class Tier:
    version: str = UNKNOWN
    game_version: str = UNKNOWN
    version_url: str = UNKNOWN

    @classmethod
    def unknown(cls) -> "Tier":
        return cls(UNKNOWN, UNKNOWN, UNKNOWN)

    @classmethod
    def from_descriptor(cls, descriptor: VersionDescriptor, game_version: str) -> "Tier":
        return cls(
            version=descriptor.version_number or UNKNOWN,
            game_version=game_version,
            version_url=descriptor.download_url or UNKNOWN,
        )

    @property
    def is_unknown(self) -> bool:
        return self.game_version == UNKNOWN


@dataclass
class ModRecord:
    """One catalog entry. Tiers are replaced whole, never field by field."""

    id: str
    name: str = ""
    loader: str = ""
    host: str = ""
    group: str = ""
    type: str = "mod"
    current: Tier = field(default_factory=Tier.unknown)
    next: Tier = field(default_factory=Tier.unknown)
    latest: Tier = field(default_factory=Tier.unknown)
    current_dependencies: List[Dependency] = field(default_factory=list)
    latest_dependencies: List[Dependency] = field(default_factory=list)
    extra: Dict[str, str] = field(default_factory=dict)

    def tier(self, name: TierName) -> Tier:
        return getattr(self, name.value)


@dataclass
class ResolutionResult:
    exists: bool
    version_number: Optional[str] = None
    download_url: Optional[str] = None
    dependencies: List[Dependency] = field(default_factory=list)
    substituted_from: Optional[str] = None
    error: Optional[Exception] = None
    descriptor: Optional[VersionDescriptor] = None
