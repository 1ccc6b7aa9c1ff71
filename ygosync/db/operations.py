"""
Database operations for card sync.

Watermarks:
    get_latest_watermark / append_watermark on an open session.

Cards:
    ingest_cards inserts a snapshot with insert-or-ignore on cid, one
    transaction per card. apply_id_changelog rewrites card ids, one
    transaction per changelog entry.
"""

import asyncio
import logging
import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.dml import Insert

from ygosync.errors import IngestError, RecordFailure, StorageError
from ygosync.models.card import ID_MAX, ID_MIN, YGOCard
from ygosync.models.db import CardDB, SyncWatermarkDB
from ygosync.models.sync import IngestResult, RemapResult

logger = logging.getLogger(__name__)

# Signed decimal literal: no whitespace, no underscores
_IDENTIFIER_RE = re.compile(r"[+-]?[0-9]+")

# --- Watermark Operations ---


async def get_latest_watermark(session: AsyncSession) -> SyncWatermarkDB | None:
    """
    Get the most recently completed sync.

    Returns None if no sync has completed yet.
    """
    result = await session.execute(
        select(SyncWatermarkDB)
        .order_by(SyncWatermarkDB.completed_at.desc(), SyncWatermarkDB.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def append_watermark(
    session: AsyncSession, checksum: str, completed_at: datetime
) -> SyncWatermarkDB:
    """Record a completed sync. Never updates or deletes existing rows."""
    watermark = SyncWatermarkDB(checksum=checksum, completed_at=completed_at)
    session.add(watermark)
    await session.flush()
    return watermark


# --- Card Operations ---


def card_to_row(card: YGOCard) -> dict[str, Any]:
    """Flatten a card into ygo_cards column values, keyed by column name."""
    data = card.data
    return {
        "cid": card.cid,
        "id": card.id,
        "cn_name": card.cn_name,
        "sc_name": card.sc_name,
        "md_name": card.md_name,
        "nwbbs_n": card.nwbbs_n,
        "cnocg_n": card.cnocg_n,
        "jp_ruby": card.jp_ruby,
        "jp_name": card.jp_name,
        "en_name": card.en_name,
        "types": card.text.types,
        "pdesc": card.text.pdesc,
        "desc": card.text.desc,
        "ot": data.ot if data else None,
        "setcode": data.setcode if data else None,
        "type": data.type_ if data else None,
        "atk": data.atk if data else None,
        "def": data.def_ if data else None,
        "level": data.level if data else None,
        "race": data.race if data else None,
        "attribute": data.attribute if data else None,
        "is_extra": card.is_extra,
    }


def _insert_ignore_conflict(dialect_name: str, row: dict[str, Any]) -> Insert:
    """Build INSERT ... ON CONFLICT (cid) DO NOTHING for the active dialect."""
    table = CardDB.__table__
    if dialect_name == "postgresql":
        return (
            postgresql.insert(table).values(row).on_conflict_do_nothing(index_elements=["cid"])
        )
    if dialect_name == "sqlite":
        return sqlite.insert(table).values(row).on_conflict_do_nothing(index_elements=["cid"])
    raise StorageError(f"Unsupported database dialect: {dialect_name}")


async def insert_card(session: AsyncSession, card: YGOCard) -> bool:
    """
    Insert a card unless its cid already exists.

    Returns:
        True if a row was written, False if the cid was already present.
    """
    dialect_name = session.get_bind().dialect.name
    result = await session.execute(_insert_ignore_conflict(dialect_name, card_to_row(card)))
    # rowcount is available on INSERT results; type stubs incomplete for async
    return int(result.rowcount) == 1  # type: ignore[attr-defined]


async def get_card(session: AsyncSession, cid: int) -> CardDB | None:
    """Get a card by cid."""
    result = await session.execute(select(CardDB).where(CardDB.cid == cid))
    return result.scalar_one_or_none()


async def get_cards_by_id(session: AsyncSession, card_id: int) -> list[CardDB]:
    """Get all cards currently holding a display id."""
    result = await session.execute(
        select(CardDB).where(CardDB.id == card_id).order_by(CardDB.cid)
    )
    return list(result.scalars().all())


async def ingest_cards(
    session_factory: async_sessionmaker[AsyncSession],
    cards: Iterable[YGOCard],
    *,
    concurrency: int = 8,
    strict: bool = True,
) -> IngestResult:
    """
    Write a snapshot into ygo_cards.

    Each card is inserted in its own transaction, so a card is either fully
    present or absent. Existing cids are skipped, which makes re-ingesting
    the same snapshot a no-op. Up to `concurrency` inserts run at once.

    Args:
        session_factory: Factory for per-card sessions
        cards: Cards to insert, in any order
        concurrency: Max concurrent inserts
        strict: Raise IngestError if any card failed

    Returns:
        Counts of inserted and skipped cards plus per-card failures.

    Raises:
        IngestError: If strict and one or more cards failed. All other
            cards have been attempted by then.
        Exception: Any non-database error from an insert, re-raised once
            every insert has finished.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    semaphore = asyncio.Semaphore(concurrency)

    async def insert_one(card: YGOCard) -> bool | RecordFailure:
        async with semaphore:
            try:
                async with session_factory() as session, session.begin():
                    return await insert_card(session, card)
            except SQLAlchemyError as e:
                logger.warning("Failed to insert card cid=%d: %s", card.cid, e)
                return RecordFailure(cid=card.cid, error=str(e))

    # Let every insert finish before surfacing an unexpected error
    outcomes = await asyncio.gather(
        *(insert_one(card) for card in cards), return_exceptions=True
    )
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome

    result = IngestResult()
    for outcome in outcomes:
        if isinstance(outcome, RecordFailure):
            result.failures.append(outcome)
        elif outcome:
            result.inserted += 1
        else:
            result.skipped += 1

    logger.info(
        "Ingested %d cards: %d inserted, %d already present, %d failed",
        result.total,
        result.inserted,
        result.skipped,
        len(result.failures),
    )

    if strict and result.failures:
        raise IngestError(result.failures)
    return result


def parse_identifier(text: str) -> int | None:
    """Parse a changelog key as an integer id, or None if malformed or out of 64-bit range."""
    if not _IDENTIFIER_RE.fullmatch(text):
        return None
    value = int(text)
    if not ID_MIN <= value <= ID_MAX:
        return None
    return value


async def update_card_id(session: AsyncSession, old_id: int, new_id: int) -> int:
    """
    Set id = new_id on every card whose id is old_id.

    Returns the number of rows updated.
    """
    result = await session.execute(
        update(CardDB)
        .where(CardDB.id == old_id)
        .values(id=new_id)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount)  # type: ignore[attr-defined]


async def apply_id_changelog(
    session_factory: async_sessionmaker[AsyncSession],
    changelog: Mapping[str, int],
) -> RemapResult:
    """
    Apply an id changelog to ygo_cards.

    Keys are old ids as decimal text, values are new ids. Keys that are not
    integers are skipped. Each entry is applied in its own transaction.

    Raises:
        StorageError: If an update fails. Entries applied before the failure
            stay applied.
    """
    result = RemapResult()

    try:
        async with session_factory() as session:
            for old_key, new_id in changelog.items():
                old_id = parse_identifier(old_key)
                if old_id is None:
                    logger.warning("Skipping malformed id changelog key: %r", old_key)
                    result.malformed_keys.append(old_key)
                    continue

                async with session.begin():
                    result.rows_updated += await update_card_id(session, old_id, new_id)
                result.applied += 1
    except SQLAlchemyError as e:
        raise StorageError(f"Failed to apply id changelog: {e}") from e

    logger.info(
        "Applied %d id changes (%d rows updated, %d malformed keys skipped)",
        result.applied,
        result.rows_updated,
        len(result.malformed_keys),
    )
    return result
