from ygosync.models.card import EXTRA_DECK_MARKERS, CardData, CardText, YGOCard, is_extra_deck
from ygosync.models.db import Base, CardDB, SyncWatermarkDB
from ygosync.models.sync import IngestResult, RemapResult, SyncReport, SyncState

__all__ = [
    "EXTRA_DECK_MARKERS",
    "Base",
    "CardDB",
    "CardData",
    "CardText",
    "IngestResult",
    "RemapResult",
    "SyncReport",
    "SyncState",
    "SyncWatermarkDB",
    "YGOCard",
    "is_extra_deck",
]
