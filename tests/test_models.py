"""Tests for card models and extra-deck derivation."""

from typing import Any

import pytest
from pydantic import ValidationError

from ygosync.errors import RecordFailure
from ygosync.models.card import EXTRA_DECK_MARKERS, YGOCard, is_extra_deck
from ygosync.models.sync import IngestResult, SyncReport, SyncState


class TestYGOCard:
    def test_parses_full_record(self, blue_eyes: dict[str, Any]) -> None:
        """All fields of a published record are read."""
        card = YGOCard.model_validate(blue_eyes)

        assert card.cid == 4007
        assert card.id == 89631139
        assert card.en_name == "Blue-Eyes White Dragon"
        assert card.jp_ruby == "ブルーアイズ・ホワイト・ドラゴン"
        assert card.text.types.startswith("[怪兽|通常]")
        assert card.data is not None

    def test_reserved_word_fields_use_aliases(self, blue_eyes: dict[str, Any]) -> None:
        """`type` and `def` in the feed map to type_ and def_."""
        card = YGOCard.model_validate(blue_eyes)

        assert card.data is not None
        assert card.data.type_ == 17
        assert card.data.def_ == 2500

    def test_data_block_is_optional(self, pot_of_greed: dict[str, Any]) -> None:
        card = YGOCard.model_validate(pot_of_greed)

        assert card.data is None
        assert card.md_name is None

    def test_missing_text_is_rejected(self, pot_of_greed: dict[str, Any]) -> None:
        del pot_of_greed["text"]

        with pytest.raises(ValidationError):
            YGOCard.model_validate(pot_of_greed)

    def test_missing_description_field_is_rejected(self, pot_of_greed: dict[str, Any]) -> None:
        del pot_of_greed["text"]["desc"]

        with pytest.raises(ValidationError):
            YGOCard.model_validate(pot_of_greed)

    def test_oversized_id_is_rejected(self, blue_eyes: dict[str, Any]) -> None:
        blue_eyes["id"] = 2**63

        with pytest.raises(ValidationError):
            YGOCard.model_validate(blue_eyes)

    def test_missing_cid_is_rejected(self, blue_eyes: dict[str, Any]) -> None:
        del blue_eyes["cid"]

        with pytest.raises(ValidationError):
            YGOCard.model_validate(blue_eyes)


class TestExtraDeck:
    def test_fusion_is_extra(self) -> None:
        assert is_extra_deck("融合") is True

    def test_normal_is_not_extra(self) -> None:
        assert is_extra_deck("通常") is False

    @pytest.mark.parametrize("marker", EXTRA_DECK_MARKERS)
    def test_every_marker_flags_extra(self, marker: str) -> None:
        assert is_extra_deck(f"[怪兽|效果|{marker}] 龙/暗") is True

    def test_empty_tags_are_not_extra(self) -> None:
        assert is_extra_deck("") is False

    def test_card_property(
        self, blue_eyes: dict[str, Any], ultimate_dragon: dict[str, Any]
    ) -> None:
        assert YGOCard.model_validate(blue_eyes).is_extra is False
        assert YGOCard.model_validate(ultimate_dragon).is_extra is True


class TestSyncModels:
    def test_ingest_total_counts_every_outcome(self) -> None:
        result = IngestResult(
            inserted=2, skipped=3, failures=[RecordFailure(cid=1, error="boom")]
        )

        assert result.total == 6

    def test_report_updated_only_when_completed(self) -> None:
        assert SyncReport(state=SyncState.COMPLETED, remote_checksum="a" * 32).updated
        assert not SyncReport(state=SyncState.UP_TO_DATE, remote_checksum="a" * 32).updated
