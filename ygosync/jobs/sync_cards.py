"""
Sync the card table with ygocdb.com.

Compares the remote snapshot checksum with the last recorded watermark.
When they differ, ingests the snapshot, applies the id changelog, then
records the new watermark. Nothing is recorded unless every step succeeds,
so a failed or interrupted run is retried in full by the next one.

Usage:
    python -m ygosync.jobs.sync_cards [--init-db] [--force]
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Callable
from datetime import UTC, datetime

import httpx
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ygosync.config import Settings, get_settings
from ygosync.db.database import create_engine, create_session_factory, init_db
from ygosync.db.operations import (
    append_watermark,
    apply_id_changelog,
    get_latest_watermark,
    ingest_cards,
)
from ygosync.errors import StorageError, SyncError
from ygosync.models.sync import SyncReport, SyncState
from ygosync.services.ygocdb import (
    create_client,
    download_cards_archive,
    extract_cards,
    fetch_checksum,
    fetch_id_changelog,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CardSync:
    """
    A single sync run.

    Tracks the run state so failures can be reported against the step
    that raised them.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        client: httpx.AsyncClient,
        settings: Settings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.session_factory = session_factory
        self.client = client
        self.settings = settings
        self.clock = clock
        self.state = SyncState.IDLE

    def _enter(self, state: SyncState) -> None:
        logger.info("Sync state: %s -> %s", self.state.value, state.value)
        self.state = state

    async def _local_checksum(self) -> str | None:
        try:
            async with self.session_factory() as session:
                watermark = await get_latest_watermark(session)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read sync watermark: {e}") from e
        return watermark.checksum if watermark else None

    async def _commit_watermark(self, checksum: str) -> None:
        try:
            async with self.session_factory() as session, session.begin():
                await append_watermark(session, checksum, self.clock())
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to record sync watermark: {e}") from e

    async def run(self, *, force: bool = False) -> SyncReport:
        """
        Run the sync to completion.

        Args:
            force: Ingest and remap even if the checksum is unchanged

        Returns:
            Report with terminal state UP_TO_DATE or COMPLETED.

        Raises:
            SyncError: On any failure. The watermark is left untouched.
        """
        try:
            return await self._run(force=force)
        except Exception:
            self._enter(SyncState.FAILED)
            raise

    async def _run(self, *, force: bool) -> SyncReport:
        self._enter(SyncState.CHECKING_FINGERPRINT)
        remote = await fetch_checksum(self.client, self.settings.checksum_url)
        local = await self._local_checksum()
        logger.info("Remote checksum %s, local checksum %s", remote, local or "<none>")

        report = SyncReport(state=self.state, remote_checksum=remote, local_checksum=local)

        if local == remote and not force:
            self._enter(SyncState.UP_TO_DATE)
            report.state = self.state
            return report

        archive = await download_cards_archive(self.client, self.settings.cards_archive_url)
        cards = extract_cards(archive)
        changelog = await fetch_id_changelog(self.client, self.settings.id_changelog_url)

        # Remap must follow ingestion so new rows are renumbered in this pass
        self._enter(SyncState.INGESTING)
        report.ingest = await ingest_cards(
            self.session_factory,
            cards.values(),
            concurrency=self.settings.ingest_concurrency,
            strict=self.settings.ingest_strict,
        )

        self._enter(SyncState.REMAPPING)
        report.remap = await apply_id_changelog(self.session_factory, changelog)

        self._enter(SyncState.COMMITTING)
        await self._commit_watermark(remote)

        self._enter(SyncState.COMPLETED)
        report.state = self.state
        return report


async def run_sync(
    session_factory: async_sessionmaker[AsyncSession],
    client: httpx.AsyncClient,
    settings: Settings,
    *,
    force: bool = False,
) -> SyncReport:
    """Run one sync against an existing session factory and HTTP client."""
    return await CardSync(session_factory, client, settings).run(force=force)


async def run_card_sync(*, force: bool = False, create_tables: bool = False) -> SyncReport:
    """Run one sync using the configured database and ygocdb endpoints."""
    settings = get_settings()
    engine = create_engine(settings)
    try:
        if create_tables:
            await init_db(engine)
        async with create_client(settings.http_timeout) as client:
            return await run_sync(create_session_factory(engine), client, settings, force=force)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Sync Yu-Gi-Oh! cards from ygocdb.com")
    parser.add_argument(
        "--init-db", action="store_true", help="Create missing tables before syncing"
    )
    parser.add_argument(
        "--force", action="store_true", help="Update even if the checksum is unchanged"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        report = asyncio.run(run_card_sync(force=args.force, create_tables=args.init_db))
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)
    except SyncError as e:
        logger.error("Sync failed: %s", e)
        sys.exit(1)

    print("Update completed." if report.updated else "No update needed")


if __name__ == "__main__":
    main()
