import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, List, Optional

from .calculator import VersionCalculator
from .config import ResolverContext
from .exceptions import (
    ConfigError,
    InvariantViolationError,
    ModTiersError,
    ProviderUnavailableError,
)
from .models import ModRecord, Tier, TierName
from .providers import Registry, build_registry
from .records import apply_tier_updates
from .resolver import VersionResolver
from .utils import UNKNOWN, highest_game_version, is_game_version

logger = logging.getLogger(__name__)


class OutcomeStatus(Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    UNRESOLVED = "unresolved"
    REJECTED = "rejected"
    ABORTED = "aborted"


@dataclass
class RecordOutcome:
    record: ModRecord
    status: OutcomeStatus
    reason: str = ""
    substituted_from: Optional[str] = None
    error: Optional[ModTiersError] = None


@dataclass
class BatchReport:
    outcomes: List[RecordOutcome] = field(default_factory=list)

    @property
    def records(self) -> List[ModRecord]:
        return [o.record for o in self.outcomes]

    def with_status(self, status: OutcomeStatus) -> List[RecordOutcome]:
        return [o for o in self.outcomes if o.status is status]

    def counts(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in OutcomeStatus}
        for outcome in self.outcomes:
            counts[outcome.status.value] += 1
        return counts

    @property
    def updates_available(self) -> List[ModRecord]:
        return [
            r
            for r in self.records
            if not r.latest.is_unknown and r.latest.version != r.current.version
        ]

    @property
    def substitutions(self) -> List[RecordOutcome]:
        return [o for o in self.outcomes if o.substituted_from is not None]


class UpdateEngine:
    """Resolves Current, Next and Latest tiers for a batch of records."""

    def __init__(self, context: ResolverContext, registry: Optional[Registry] = None) -> None:
        self.context = context
        self.registry = registry if registry is not None else build_registry(context)
        self.resolver = VersionResolver(self.registry)
        self.calculator = VersionCalculator(self.resolver)

    def _current_tier(self, record: ModRecord, result) -> Tier:
        # The record's game version survives only if the resolved release supports it.
        supported = result.descriptor.game_versions
        game_version = record.current.game_version
        if not is_game_version(game_version) or (supported and game_version not in supported):
            game_version = highest_game_version(supported) or UNKNOWN
        return Tier(
            version=result.version_number or UNKNOWN,
            game_version=game_version,
            version_url=result.download_url or UNKNOWN,
        )

    def _with_project_name(self, record: ModRecord) -> ModRecord:
        try:
            info = self.resolver.provider_for(record).project_info(record.id)
        except ConfigError:
            raise
        except ModTiersError as exc:
            logger.warning("%s: could not look up project name: %s", record.id, exc)
            return record
        return replace(record, name=info.title)

    def _update(self, record: ModRecord) -> RecordOutcome:
        result = self.resolver.resolve_record(record)
        if not result.exists:
            raise result.error

        current = self._current_tier(record, result)
        # Next is derived from the resolved current game version.
        next_found = self.calculator.next_release(replace(record, current=current))
        latest_found = self.calculator.latest_release(record)
        updates = {
            TierName.CURRENT: current,
            TierName.NEXT: Tier.from_descriptor(*next_found) if next_found else Tier.unknown(),
            TierName.LATEST: Tier.from_descriptor(*latest_found) if latest_found else Tier.unknown(),
        }
        updated = apply_tier_updates(
            record,
            updates,
            current_dependencies=result.dependencies,
            latest_dependencies=latest_found[0].dependencies if latest_found else [],
        )
        if not updated.name:
            updated = self._with_project_name(updated)

        reason = ""
        if result.substituted_from is not None:
            reason = f"version {result.substituted_from} not found upstream, using {result.version_number}"
        status = OutcomeStatus.UPDATED if updated != record else OutcomeStatus.UNCHANGED
        return RecordOutcome(updated, status, reason, result.substituted_from)

    def update_record(self, record: ModRecord) -> RecordOutcome:
        """Resolve one record. Only configuration errors escape."""
        try:
            outcome = self._update(record)
        except ConfigError:
            raise
        except ProviderUnavailableError as exc:
            outcome = RecordOutcome(record, OutcomeStatus.SKIPPED, str(exc), error=exc)
        except InvariantViolationError as exc:
            logger.warning("%s", exc)
            outcome = RecordOutcome(record, OutcomeStatus.REJECTED, str(exc), error=exc)
        except ModTiersError as exc:
            outcome = RecordOutcome(record, OutcomeStatus.UNRESOLVED, str(exc), error=exc)
        logger.info("%s: %s%s", record.id, outcome.status.value, f" ({outcome.reason})" if outcome.reason else "")
        return outcome

    def update_all(
        self,
        records: List[ModRecord],
        abort: Optional[threading.Event] = None,
        on_outcome: Optional[Callable[[RecordOutcome], None]] = None,
    ) -> BatchReport:
        """Resolve every record on a bounded thread pool; outcomes keep input order.

        Setting ``abort`` stops records that have not started yet; those come
        back unchanged with status ``aborted``.
        """

        def work(record: ModRecord) -> RecordOutcome:
            if abort is not None and abort.is_set():
                outcome = RecordOutcome(record, OutcomeStatus.ABORTED, "run aborted")
            else:
                outcome = self.update_record(record)
            if on_outcome is not None:
                on_outcome(outcome)
            return outcome

        with ThreadPoolExecutor(max_workers=self.context.workers) as pool:
            futures = [pool.submit(work, record) for record in records]
            return BatchReport([future.result() for future in futures])
