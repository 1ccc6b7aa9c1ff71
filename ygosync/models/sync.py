"""Sync run states and per-phase results."""

from dataclasses import dataclass, field
from enum import Enum

from ygosync.errors import RecordFailure


class SyncState(str, Enum):
    """States of a single sync run."""

    IDLE = "idle"
    CHECKING_FINGERPRINT = "checking_fingerprint"
    UP_TO_DATE = "up_to_date"
    INGESTING = "ingesting"
    REMAPPING = "remapping"
    COMMITTING = "committing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class IngestResult:
    """Outcome of writing a snapshot into ygo_cards."""

    inserted: int = 0
    # Rows whose cid already existed; expected on every run after the first
    skipped: int = 0
    failures: list[RecordFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.inserted + self.skipped + len(self.failures)


@dataclass
class RemapResult:
    """Outcome of applying an id changelog."""

    applied: int = 0
    rows_updated: int = 0
    malformed_keys: list[str] = field(default_factory=list)


@dataclass
class SyncReport:
    """
    Summary of one sync run.

    Attributes:
        state: Terminal state (UP_TO_DATE or COMPLETED)
        remote_checksum: Fingerprint fetched at the start of the run
        local_checksum: Watermark checksum before the run, None on first run
        ingest: Ingestion totals, None when no update was needed
        remap: Remap totals, None when no update was needed
    """

    state: SyncState
    remote_checksum: str
    local_checksum: str | None = None
    ingest: IngestResult | None = None
    remap: RemapResult | None = None

    @property
    def updated(self) -> bool:
        return self.state is SyncState.COMPLETED
