"""
Sync failure taxonomy.

Every exception here is fatal for the current run: it aborts before the
watermark is written, so the next run retries the whole update.

Duplicate keys on insert and non-numeric remap keys are expected outcomes,
not errors. They are reported on IngestResult and RemapResult instead.
"""

from dataclasses import dataclass


class SyncError(Exception):
    """Base exception for all sync failures."""

    pass


class TransportError(SyncError):
    """Raised when fetching a remote resource fails."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class DecodeError(SyncError):
    """Raised when a remote payload cannot be decoded."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to decode {source}: {reason}")


class ChecksumNotFoundError(SyncError):
    """Raised when the checksum response holds no 32-character hex token."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__("MD5 checksum not found in response")


class StorageError(SyncError):
    """Raised when a database operation fails."""

    pass


@dataclass(frozen=True, slots=True)
class RecordFailure:
    """A single card that could not be written during ingestion."""

    cid: int
    error: str


class IngestError(StorageError):
    """Raised by strict ingestion when one or more records failed."""

    def __init__(self, failures: list[RecordFailure]) -> None:
        self.failures = failures
        sample = ", ".join(str(f.cid) for f in failures[:5])
        more = f" (+{len(failures) - 5} more)" if len(failures) > 5 else ""
        super().__init__(f"{len(failures)} card(s) failed to insert: {sample}{more}")
