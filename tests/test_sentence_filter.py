"""
Unit tests for sentence_filter.py (deletion mode and fact repair)
"""

import pytest

from tagline.checkers.sentence_filter import (
    BuildingFacts,
    SentenceFilter,
    append_facts_if_missing,
    review,
    split_sentences_ja,
)
from tagline.facts import STRUCTURE_SRC, FactField, Facts

MIXED_TEXT = "駅近の立地です。専有面積は75.2㎡です。日本一の眺望です。緑に囲まれた環境です。ぜひご覧ください"

FACTS = {
    "units": 120,
    "structure": "RC",
    "built": "1984年10月築",
    "management": "管理会社に全部委託・巡回",
}


class TestSplitSentences:
    """Test Japanese sentence splitting"""

    def test_split_on_terminal_marks(self):
        assert split_sentences_ja("A。B！C？D") == ["A。", "B！", "C？", "D"]

    def test_whitespace_between_sentences(self):
        assert split_sentences_ja(" 一文目です。  二文目です。 ") == ["一文目です。", "二文目です。"]

    def test_empty(self):
        assert split_sentences_ja("") == []
        assert split_sentences_ja(None) == []


class TestSentenceFilter:
    """Test whole-sentence deletion"""

    def test_unit_scenario_building_scope(self):
        result = SentenceFilter("building").filter("専有面積は75.2㎡の角部屋です。")
        assert result.kept == []
        assert len(result.deletions) == 1
        reason_ids = {r.id for r in result.deletions[0].reasons}
        assert {"unit-m2", "unit-facing", "unit-size-m2", "unit-terms-0"} <= reason_ids

    def test_unit_scenario_unit_scope(self):
        result = SentenceFilter("unit").filter("専有面積は75.2㎡の角部屋です。")
        assert result.kept == ["専有面積は75.2㎡の角部屋です。"]
        assert result.deletions == []

    def test_wholeness(self):
        sentences = split_sentences_ja(MIXED_TEXT)
        result = SentenceFilter().filter(MIXED_TEXT)
        assert all(s in sentences for s in result.kept)
        assert len(result.kept) + len(result.deletions) == len(sentences)
        assert result.kept == ["駅近の立地です。", "緑に囲まれた環境です。"]
        assert result.text == "駅近の立地です。緑に囲まれた環境です。"

    def test_deletion_reasons(self):
        result = SentenceFilter().filter(MIXED_TEXT)
        reasons = {d.sentence: {r.id for r in d.reasons} for d in result.deletions}
        assert "unit-m2" in reasons["専有面積は75.2㎡です。"]
        assert {"hype", "yuii-0"} <= reasons["日本一の眺望です。"]
        assert "solicit" in reasons["ぜひご覧ください"]

    def test_policy_rules_can_be_disabled(self):
        result = SentenceFilter(include_policy_rules=False).filter("抜群の眺望です。")
        assert result.kept == ["抜群の眺望です。"]

    @pytest.mark.parametrize("sentence, reason", [
        ("2026年に大規模修繕予定です。", "future-renov"),
        ("お問い合わせは03-1234-5678まで。", "phone"),
        ("詳しくは https://example.com をご覧ください。", "url"),
        ("人気の3LDKです。", "unit-plan"),
        ("床暖房を備えています。", "unit-features"),
    ])
    def test_ng_catalog(self, sentence, reason):
        result = SentenceFilter().filter(sentence)
        assert reason in {r.id for r in result.deletions[0].reasons}

    def test_warn_rules_not_deleted(self):
        result = SentenceFilter().filter("敷地は傾斜地のため擁壁があります。緑豊かです。")
        assert result.kept == ["敷地は傾斜地のため擁壁があります。", "緑豊かです。"]
        assert result.deletions == []

    def test_unverified_fact_sentence_dropped(self):
        result = SentenceFilter(unverified_fields=[FactField.UNIT_COUNT]).filter("総戸数は50戸です。緑豊かです。")
        assert result.kept == ["緑豊かです。"]
        assert result.deletions[0].reasons[0].id == "unverified-unit-count"


class TestAppendFacts:
    """Test additive repair of missing basic facts"""

    def test_appends_missing(self):
        result = append_facts_if_missing("緑豊かな環境です。", FACTS)
        assert result == (
            "緑豊かな環境です。総戸数は120戸です。建物は鉄筋コンクリート造です。"
            "1984年10月築の建物です。管理会社に全部委託・巡回の管理体制です。"
        )

    def test_idempotent(self):
        once = append_facts_if_missing("緑豊かな環境です。", FACTS)
        assert append_facts_if_missing(once, FACTS) == once

    def test_present_facts_not_duplicated(self):
        text = "総戸数120戸、鉄筋コンクリート造の邸宅です。"
        result = append_facts_if_missing(text, {"units": 120, "structure": "RC"})
        assert result == text

    def test_empty_text(self):
        assert append_facts_if_missing("", {"units": "３０"}) == "総戸数は30戸です。"

    def test_maint_fee_note_once(self):
        facts = BuildingFacts(maint_fee_note="管理費等は別途ご確認ください")
        once = append_facts_if_missing("静かな住宅街です。", facts)
        assert once == "静かな住宅街です。管理費等は別途ご確認ください。"
        assert append_facts_if_missing(once, facts) == once

    def test_extracted_facts(self):
        facts = Facts(unit_count=120, structure=STRUCTURE_SRC)
        result = append_facts_if_missing("緑豊かな環境です。", facts)
        assert result == "緑豊かな環境です。総戸数は120戸です。建物は鉄骨鉄筋コンクリート造です。"

    def test_no_facts(self):
        assert append_facts_if_missing("静かな住宅街です。", None) == "静かな住宅街です。"


class TestReview:
    """Test the deletion-mode review"""

    def test_review_deletes_and_repairs(self):
        result = review("日本一の眺望です。緑豊かな環境です。", {"units": 50})
        assert result.original == "日本一の眺望です。緑豊かな環境です。"
        assert result.improved == "緑豊かな環境です。総戸数は50戸です。"
        assert [d.sentence for d in result.deletions] == ["日本一の眺望です。"]

    def test_review_normalizes_walk(self):
        result = review("駅から徒歩5分の住宅街です。", scope="unit")
        assert result.improved == "駅から徒歩約5分の住宅街です。"
