"""
ygosync services.

Remote data access for ygocdb.com.
"""

from ygosync.services.ygocdb import (
    create_client,
    download_cards_archive,
    extract_cards,
    extract_checksum,
    fetch_checksum,
    fetch_id_changelog,
    parse_cards,
    parse_id_changelog,
)

__all__ = [
    "create_client",
    "download_cards_archive",
    "extract_cards",
    "extract_checksum",
    "fetch_checksum",
    "fetch_id_changelog",
    "parse_cards",
    "parse_id_changelog",
]
