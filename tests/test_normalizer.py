"""
Unit tests for normalizer.py and sanitize.py
"""

import pytest

from tagline.normalizer import fold_digits, normalize, normalize_walk, normalize_with_offsets
from tagline.sanitize import micro_clean, parse_must_words, strip_price_and_spaces, strip_words

SAMPLES = [
    "",
    "ＡＢＣ　１２３！",
    "  日本　 一の  立地  ",
    "3,000万円→2,800万円",
    "東急東横線「武蔵小杉」駅　徒歩５分",
    "スーパー・コンビニ･ドラッグストア",
    "\t改行\nあり\r\n",
]


class TestNormalize:
    """Test character folding and whitespace collapsing"""

    def test_fullwidth_ascii_folded(self):
        assert normalize("ＡＢＣ　１２３！") == "ABC 123!"

    def test_dash_dot_arrow_variants(self):
        assert normalize("日本—一") == "日本-一"
        assert normalize("A･B•C") == "A・B・C"
        assert normalize("3000万円→2800万円") == "3000万円⇒2800万円"

    def test_whitespace_collapsed_and_trimmed(self):
        assert normalize("  a \t\n b  ") == "a b"

    def test_none_is_empty(self):
        assert normalize(None) == ""

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        once = normalize(text)
        assert normalize(once) == once

    def test_offsets_point_to_raw_characters(self):
        norm, offsets = normalize_with_offsets("ａ　　ｂ")
        assert norm == "a b"
        assert offsets == [0, 1, 3]

    @pytest.mark.parametrize("text", SAMPLES)
    def test_offsets_length_matches(self, text):
        norm, offsets = normalize_with_offsets(text)
        assert len(norm) == len(offsets)
        assert offsets == sorted(offsets)
        assert all(0 <= i < len(text) for i in offsets)


class TestDigitsAndWalk:
    """Test digit folding and walk-time notation"""

    def test_fold_digits_only(self):
        assert fold_digits("１２３ＡＢＣ") == "123ＡＢＣ"

    def test_walk_adds_approx(self):
        assert normalize_walk("駅から徒歩5分") == "駅から徒歩約5分"

    def test_walk_collapses_repeats(self):
        assert normalize_walk("徒歩約 徒歩約3分") == "徒歩約3分"

    def test_walk_removes_space_after_station(self):
        assert normalize_walk("駅から 徒歩約5分") == "駅から徒歩約5分"

    def test_walk_already_normalized(self):
        assert normalize_walk("徒歩約5分") == "徒歩約5分"


class TestSanitize:
    """Test post-generation cleanup helpers"""

    def test_strip_price(self):
        assert strip_price_and_spaces("価格は3,000万円です。") == "はです。"

    def test_strip_words_longest_first(self):
        # 「最高級」を「最高」で部分的に消して「級」が残らないこと
        assert strip_words("最高級の住まい", ["最高", "最高級"]) == "の住まい"

    def test_micro_clean_punctuation(self):
        assert micro_clean("静かです。。便利です、、また") == "静かです。便利です、また"
        assert micro_clean("緑が多い，公園も近い．") == "緑が多い、公園も近い。"

    def test_micro_clean_keeps_masumasu_adverb(self):
        assert micro_clean("ますます便利になります。") == "ますます便利になります。"

    def test_micro_clean_heading_debris(self):
        assert micro_clean("立地：駅に近い住まいです。") == "駅に近い住まいです。"

    def test_parse_must_words(self):
        assert parse_must_words("駅近、南向き / 公園") == ["駅近", "南向き", "公園"]
        assert parse_must_words(["眺望", "緑"]) == ["眺望", "緑"]
        assert parse_must_words(None) == []
