"""Repair pipeline: scan, decode, evaluate policy, re-encode and write back.

Records are processed strictly one at a time in the order the store yields them.
Any decode, encode or write failure aborts the run; the deadline is checked
between records, never inside one.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from contextlib import closing
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from pvreset.codec import EnvelopeCodec
from pvreset.config import RepairConfig
from pvreset.errors import DeadlineExceededError, PvResetError, RoundTripMismatchError
from pvreset.policy import MutationPolicy, TerminatingPolicy
from pvreset.schema import SchemaDescriptor, persistent_volume_descriptor
from pvreset.store import KineStore, Record, open_store

logger = logging.getLogger(__name__)


class RecordOutcome(str, Enum):
    SKIPPED = "skipped"
    REPAIRED = "repaired"
    FAILED = "failed"


@dataclass
class RecordResult:
    key: str
    outcome: RecordOutcome
    detail: str | None = None


@dataclass
class RepairReport:
    """Ordered per-record outcomes of one run."""

    selector: str
    dry_run: bool = False
    results: list[RecordResult] = field(default_factory=list)

    def _keys(self, outcome: RecordOutcome) -> list[str]:
        return [r.key for r in self.results if r.outcome is outcome]

    @property
    def repaired(self) -> list[str]:
        return self._keys(RecordOutcome.REPAIRED)

    @property
    def skipped(self) -> list[str]:
        return self._keys(RecordOutcome.SKIPPED)

    @property
    def failed(self) -> list[str]:
        return self._keys(RecordOutcome.FAILED)

    @property
    def scanned(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "selector": self.selector,
            "dry_run": self.dry_run,
            "scanned": self.scanned,
            "repaired": self.repaired,
            "skipped": self.skipped,
            "failed": self.failed,
            "results": [
                {"key": r.key, "outcome": r.outcome.value, "detail": r.detail}
                for r in self.results
            ],
        }


@dataclass(frozen=True)
class Deadline:
    """Wall-clock bound for a run, established before the scan starts."""

    expires_at: float
    timeout_s: float
    clock: Callable[[], float] = time.monotonic

    @classmethod
    def after(cls, seconds: float, clock: Callable[[], float] = time.monotonic) -> Deadline:
        return cls(expires_at=clock() + seconds, timeout_s=seconds, clock=clock)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self.clock())

    def expired(self) -> bool:
        return self.clock() >= self.expires_at


class RepairPipeline:
    """Composes store, codec and policy into a single sequential repair pass."""

    def __init__(
        self,
        store: KineStore,
        descriptor: SchemaDescriptor,
        config: RepairConfig | None = None,
        *,
        policy: MutationPolicy | None = None,
        codec: EnvelopeCodec | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.descriptor = descriptor
        self.config = (config or RepairConfig()).validate()
        self.policy = policy or TerminatingPolicy()
        self.codec = codec or EnvelopeCodec(descriptor)
        self._clock = clock

    def run(self) -> RepairReport:
        """Process every record matching the configured selector.

        Raises:
            MalformedEnvelopeError, SchemaMismatchError, RoundTripMismatchError:
                a stored value could not be decoded or would not re-encode stably.
            EncodingError: a repaired object could not be serialized.
            StoreWriteError: a repaired value could not be committed.
            DeadlineExceededError: the timeout expired with records still pending.

        Every raised PvResetError carries the partial report as ``report``.
        """
        config = self.config
        report = RepairReport(selector=config.selector, dry_run=config.dry_run)
        deadline = Deadline.after(config.timeout_s, clock=self._clock)
        started = time.perf_counter()
        logger.info(
            "Scanning '%s' for %s (policy=%s, timeout=%gs%s)",
            config.selector,
            self.descriptor.full_name,
            self.policy.name,
            config.timeout_s,
            ", dry run" if config.dry_run else "",
        )

        key: str | None = None
        try:
            with closing(self.store.scan(config.selector)) as records:
                for record in records:
                    if deadline.expired():
                        raise DeadlineExceededError(config.timeout_s, report.scanned)
                    key = record.key
                    report.results.append(self._process(record))
                    key = None
        except PvResetError as e:
            if key is not None:
                e.key = key
                report.results.append(RecordResult(key, RecordOutcome.FAILED, str(e)))
            e.report = report
            logger.error("Aborting run: %s", e)
            raise

        logger.info(
            "Done in %.3fs (%.3fs of the deadline left): %d scanned, %d repaired, %d skipped",
            time.perf_counter() - started,
            deadline.remaining(),
            report.scanned,
            len(report.repaired),
            len(report.skipped),
        )
        return report

    def _process(self, record: Record) -> RecordResult:
        decoded = self.codec.decode(record.value)
        if self.config.verify_round_trip:
            encoded = self.codec.encode(decoded)
            if encoded != record.value:
                raise RoundTripMismatchError(len(record.value), len(encoded))

        name = decoded.obj.metadata.name or record.key
        if not self.policy.needs_repair(decoded.obj):
            logger.info("Skipped: %s [%s] is not in terminating status", self._kind, name)
            return RecordResult(record.key, RecordOutcome.SKIPPED)

        repaired = dataclasses.replace(decoded, obj=self.policy.repair(decoded.obj))
        value = self.codec.encode(repaired)
        if self.config.dry_run:
            logger.info("Would reset %s [%s]", self._kind, name)
            return RecordResult(record.key, RecordOutcome.REPAIRED, "dry run")

        logger.info("Resetting %s [%s]", self._kind, name)
        self.store.update(record.key, value)
        return RecordResult(record.key, RecordOutcome.REPAIRED)

    @property
    def _kind(self) -> str:
        return self.descriptor.gvk.kind


def reset_terminating(db_path: str, config: RepairConfig | None = None) -> RepairReport:
    """Open ``db_path``, reset every Terminating PersistentVolume and close the store."""
    config = config or RepairConfig()
    store = open_store(db_path, table=config.table)
    try:
        return RepairPipeline(store, persistent_volume_descriptor(), config).run()
    finally:
        store.close()
