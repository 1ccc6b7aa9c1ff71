import io
import json
import zipfile
from collections.abc import AsyncIterator, Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ygosync.config import Settings, get_settings
from ygosync.db.database import drop_db, init_db


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """Settings are cached per process; reset between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def blue_eyes() -> dict[str, Any]:
    """A normal monster record as published by ygocdb."""
    return {
        "cid": 4007,
        "id": 89631139,
        "cn_name": "青眼白龙",
        "sc_name": "青眼白龙",
        "md_name": "青眼白龙",
        "nwbbs_n": "青眼白龙",
        "cnocg_n": "青眼白龙",
        "jp_ruby": "ブルーアイズ・ホワイト・ドラゴン",
        "jp_name": "青眼の白龍",
        "en_name": "Blue-Eyes White Dragon",
        "text": {
            "types": "[怪兽|通常] 龙/光\n[★8] 3000/2500",
            "pdesc": "",
            "desc": "以高攻击力著称的传说之龙。任何对手都能粉碎，其破坏力不可估量。",
        },
        "data": {
            "ot": 11,
            "setcode": 221,
            "type": 17,
            "atk": 3000,
            "def": 2500,
            "level": 8,
            "race": 8192,
            "attribute": 16,
        },
    }


@pytest.fixture
def ultimate_dragon() -> dict[str, Any]:
    """A fusion monster record."""
    return {
        "cid": 4051,
        "id": 23995346,
        "cn_name": "青眼究极龙",
        "jp_name": "青眼の究極竜",
        "en_name": "Blue-Eyes Ultimate Dragon",
        "text": {
            "types": "[怪兽|融合] 龙/光\n[★12] 4500/3800",
            "pdesc": "",
            "desc": "「青眼白龙」＋「青眼白龙」＋「青眼白龙」",
        },
        "data": {
            "ot": 3,
            "setcode": 221,
            "type": 65,
            "atk": 4500,
            "def": 3800,
            "level": 12,
            "race": 8192,
            "attribute": 16,
        },
    }


@pytest.fixture
def pot_of_greed() -> dict[str, Any]:
    """A spell record without a data block."""
    return {
        "cid": 4844,
        "id": 55144522,
        "cn_name": "强欲之壶",
        "en_name": "Pot of Greed",
        "text": {
            "types": "[魔法|通常]",
            "pdesc": "",
            "desc": "从卡组抽2张卡。",
        },
    }


@pytest.fixture
def snapshot(blue_eyes: dict[str, Any], ultimate_dragon: dict[str, Any]) -> dict[str, Any]:
    """Decoded cards.json content with two cards."""
    return {"89631139": blue_eyes, "23995346": ultimate_dragon}


@pytest.fixture
def make_archive() -> Callable[..., bytes]:
    """Build a zip archive from {member name: JSON-serializable content or raw bytes}."""

    def _make(members: dict[str, Any]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            for name, content in members.items():
                if not isinstance(content, bytes):
                    content = json.dumps(content, ensure_ascii=False).encode("utf-8")
                zf.writestr(name, content)
        return buffer.getvalue()

    return _make


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """File-backed SQLite so concurrent sessions share one database."""
    return f"sqlite+aiosqlite:///{tmp_path / 'cards.db'}"


@pytest.fixture
async def async_engine(database_url: str) -> AsyncIterator[AsyncEngine]:
    """Create a SQLite engine with all tables for testing."""
    engine = create_async_engine(database_url, echo=False)
    await init_db(engine)
    yield engine
    await drop_db(engine)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings(database_url: str) -> Settings:
    return Settings(
        database_url=database_url,
        checksum_url="https://ygocdb.test/api/v0/cards.zip.md5?callback=gu",
        cards_archive_url="https://ygocdb.test/api/v0/cards.zip",
        id_changelog_url="https://ygocdb.test/api/v0/idChangelog.jsonp",
        ingest_concurrency=4,
    )
