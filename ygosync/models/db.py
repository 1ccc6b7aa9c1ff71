"""
SQLAlchemy ORM models for persistent storage.

ygo_cards holds one row per card, keyed by cid. sync_watermarks is an
append-only log of completed syncs; the newest row is authoritative.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CardDB(Base):
    """
    A card stored in the database.

    Only `id` changes after insert (via the id changelog). `is_extra` is
    computed once from the category tags at ingestion time.
    """

    __tablename__ = "ygo_cards"

    cid: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    id: Mapped[int] = mapped_column(BigInteger, index=True)

    cn_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    sc_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    md_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    nwbbs_n: Mapped[str | None] = mapped_column(Text, nullable=True)
    cnocg_n: Mapped[str | None] = mapped_column(Text, nullable=True)
    jp_ruby: Mapped[str | None] = mapped_column(Text, nullable=True)
    jp_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    en_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    types: Mapped[str] = mapped_column(Text)
    pdesc: Mapped[str] = mapped_column(Text)
    desc: Mapped[str] = mapped_column(Text)

    # Monster stats, NULL for cards without a data block
    ot: Mapped[int | None] = mapped_column(Integer, nullable=True)
    setcode: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    type: Mapped[int | None] = mapped_column(Integer, nullable=True)
    atk: Mapped[int | None] = mapped_column(Integer, nullable=True)
    def_: Mapped[int | None] = mapped_column("def", Integer, nullable=True)
    level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    race: Mapped[int | None] = mapped_column(Integer, nullable=True)
    attribute: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_extra: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<CardDB(cid={self.cid}, id={self.id}, name={self.cn_name})>"


class SyncWatermarkDB(Base):
    """
    A completed sync.

    Rows are only ever appended. Identical checksums may repeat.
    """

    __tablename__ = "sync_watermarks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    checksum: Mapped[str] = mapped_column(String(64))
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    def __repr__(self) -> str:
        return f"<SyncWatermarkDB(checksum={self.checksum}, completed_at={self.completed_at})>"
