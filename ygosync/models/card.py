"""
Card records as published by ygocdb.com.

The snapshot archive is a JSON object keyed by an arbitrary string, each
value being one card in the shape modelled below.
"""

from pydantic import BaseModel, ConfigDict, Field

# Category tags marking Fusion, Synchro, Xyz and Link monsters
EXTRA_DECK_MARKERS = ("融合", "同调", "超量", "连接")

# Ids are stored as signed 64-bit integers
ID_MIN = -(2**63)
ID_MAX = 2**63 - 1


class CardText(BaseModel):
    """Description block of a card."""

    types: str
    pdesc: str
    desc: str


class CardData(BaseModel):
    """Numeric attribute block, present for monster-like cards."""

    model_config = ConfigDict(populate_by_name=True)

    ot: int
    setcode: int = Field(ge=ID_MIN, le=ID_MAX)
    type_: int = Field(alias="type")
    atk: int
    def_: int = Field(alias="def")
    level: int
    race: int
    attribute: int


class YGOCard(BaseModel):
    """
    One card from the remote snapshot.

    Attributes:
        cid: Stable database key, never changes
        id: Display/passcode identifier, may be renumbered by the id changelog
        text: Category tags and effect text
        data: Monster stats, absent for some cards
    """

    cid: int = Field(ge=ID_MIN, le=ID_MAX)
    id: int = Field(ge=ID_MIN, le=ID_MAX)
    cn_name: str | None = None
    sc_name: str | None = None
    md_name: str | None = None
    nwbbs_n: str | None = None
    cnocg_n: str | None = None
    jp_ruby: str | None = None
    jp_name: str | None = None
    en_name: str | None = None
    text: CardText
    data: CardData | None = None

    @property
    def is_extra(self) -> bool:
        return is_extra_deck(self.text.types)


def is_extra_deck(types: str) -> bool:
    """True if the category tags contain any extra-deck marker."""
    return any(marker in types for marker in EXTRA_DECK_MARKERS)
