from .config import ResolverContext
from .engine import BatchReport, OutcomeStatus, RecordOutcome, UpdateEngine
from .models import Dependency, DependencyType, ModRecord, Tier, TierName, VersionDescriptor
from .resolver import VersionResolver, choose_substitute

__all__ = [
    "ResolverContext",
    "BatchReport",
    "OutcomeStatus",
    "RecordOutcome",
    "UpdateEngine",
    "Dependency",
    "DependencyType",
    "ModRecord",
    "Tier",
    "TierName",
    "VersionDescriptor",
    "VersionResolver",
    "choose_substitute",
]
