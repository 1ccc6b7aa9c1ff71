"""
ygocdb.com client.

Fetches the snapshot checksum, the zipped card snapshot and the id
changelog, and decodes them into card models.

Endpoints: https://ygocdb.com/api/v0/
"""

import io
import json
import logging
import re
import zipfile
from typing import Any

import httpx
from pydantic import ValidationError

from ygosync.errors import ChecksumNotFoundError, DecodeError, TransportError
from ygosync.models.card import ID_MAX, ID_MIN, YGOCard

logger = logging.getLogger(__name__)

USER_AGENT = "ygosync/0.1"

_CHECKSUM_RE = re.compile(r"[a-fA-F0-9]{32}")


def create_client(timeout: float = 60.0) -> httpx.AsyncClient:
    """HTTP client with the headers and timeout used for all ygocdb requests."""
    return httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        timeout=timeout,
    )


async def _get(client: httpx.AsyncClient, url: str) -> httpx.Response:
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise TransportError(url, f"HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise TransportError(url, str(e) or type(e).__name__) from e
    return response


def extract_checksum(body: str) -> str | None:
    """Return the first 32-character hex token in body, if any."""
    match = _CHECKSUM_RE.search(body)
    return match.group(0) if match else None


async def fetch_checksum(client: httpx.AsyncClient, url: str) -> str:
    """
    Fetch the fingerprint of the current remote snapshot.

    The endpoint answers with a JSONP callback wrapping the MD5, e.g.
    `gu("bd6f1e3351eb85b16ec2fc2ac86b6be2")`. Only the hex token matters.

    Raises:
        TransportError: If the request fails
        ChecksumNotFoundError: If the body holds no 32-character hex token
    """
    response = await _get(client, url)
    checksum = extract_checksum(response.text)
    if checksum is None:
        raise ChecksumNotFoundError(url)
    return checksum


async def download_cards_archive(client: httpx.AsyncClient, url: str) -> bytes:
    """
    Download the zipped card snapshot.

    Raises:
        TransportError: If the request fails
    """
    response = await _get(client, url)
    logger.info("Downloaded card archive (%d bytes)", len(response.content))
    return response.content


def parse_cards(payload: Any, source: str = "cards.json") -> dict[str, YGOCard]:
    """
    Validate a decoded snapshot into cards.

    Args:
        payload: JSON object mapping arbitrary keys to card records
        source: Name used in error messages

    Raises:
        DecodeError: If payload is not an object or any record is invalid
    """
    if not isinstance(payload, dict):
        raise DecodeError(source, f"expected a JSON object, got {type(payload).__name__}")

    cards: dict[str, YGOCard] = {}
    for key, record in payload.items():
        try:
            cards[key] = YGOCard.model_validate(record)
        except ValidationError as e:
            raise DecodeError(source, f"invalid card record {key!r}: {e}") from e
    return cards


def extract_cards(archive: bytes) -> dict[str, YGOCard]:
    """
    Decode the card snapshot from a zip archive.

    The first member ending in .json is used; any others are ignored.

    Raises:
        DecodeError: If the archive is not a zip, holds no JSON member,
            or the JSON is malformed
    """
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            member = next((name for name in zf.namelist() if name.endswith(".json")), None)
            if member is None:
                raise DecodeError("card archive", "no .json file in archive")
            content = zf.read(member)
    except zipfile.BadZipFile as e:
        raise DecodeError("card archive", str(e)) from e

    try:
        payload = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(member, str(e)) from e

    cards = parse_cards(payload, source=member)
    logger.info("Decoded %d cards from %s", len(cards), member)
    return cards


def parse_id_changelog(payload: Any, source: str = "id changelog") -> dict[str, int]:
    """
    Validate a decoded id changelog.

    Keys are kept as text; malformed keys are dealt with when applying.
    Values must be integers.

    Raises:
        DecodeError: If payload is not an object of integer values
    """
    if not isinstance(payload, dict):
        raise DecodeError(source, f"expected a JSON object, got {type(payload).__name__}")

    changelog: dict[str, int] = {}
    for old_id, new_id in payload.items():
        # bool is an int subclass; true/false are not ids
        if not isinstance(new_id, int) or isinstance(new_id, bool):
            raise DecodeError(source, f"new id for {old_id!r} is not an integer: {new_id!r}")
        if not ID_MIN <= new_id <= ID_MAX:
            raise DecodeError(source, f"new id for {old_id!r} is out of range: {new_id}")
        changelog[old_id] = new_id
    return changelog


async def fetch_id_changelog(client: httpx.AsyncClient, url: str) -> dict[str, int]:
    """
    Fetch the id changelog: old id (decimal text) -> new id.

    Raises:
        TransportError: If the request fails
        DecodeError: If the body is not a JSON object of integer values
    """
    response = await _get(client, url)
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(url, f"Failed to parse id changelog: {e}") from e

    changelog = parse_id_changelog(payload, source=url)
    logger.info("Fetched %d id changelog entries", len(changelog))
    return changelog
