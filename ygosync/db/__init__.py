from ygosync.db.database import (
    create_engine,
    create_session_factory,
    drop_db,
    init_db,
)
from ygosync.db.operations import (
    append_watermark,
    apply_id_changelog,
    card_to_row,
    get_card,
    get_cards_by_id,
    get_latest_watermark,
    ingest_cards,
    insert_card,
    parse_identifier,
    update_card_id,
)

__all__ = [
    "append_watermark",
    "apply_id_changelog",
    "card_to_row",
    "create_engine",
    "create_session_factory",
    "drop_db",
    "get_card",
    "get_cards_by_id",
    "get_latest_watermark",
    "ingest_cards",
    "init_db",
    "insert_card",
    "parse_identifier",
    "update_card_id",
]
