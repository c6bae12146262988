"""
Unit tests for pipeline.py (generate / check / polish) with mocked collaborators
"""

from unittest.mock import Mock

import pytest

from tagline.checkers.base import Category
from tagline.config import Settings
from tagline.facts import Facts
from tagline.fetcher import FetchError
from tagline.pipeline import (
    GenerateRequest,
    ValidationError,
    check,
    generate,
    generate_batch,
    polish,
    validate_char_range,
    validate_generate_request,
)

EXPECTED_BODY = "東急東横線「武蔵小杉」駅から徒歩約5分の立地です。" + "緑豊かな環境で落ち着いた暮らしが叶います。" * 10


class TestValidation:
    """Test input validation"""

    def test_swap_inverted_range(self):
        assert validate_char_range(600, 400) == (400, 600)

    def test_clamp_range(self):
        assert validate_char_range(50, 5000) == (200, 2000)

    def test_non_numeric_uses_defaults(self):
        assert validate_char_range("abc", None) == (450, 550)

    def test_name_and_url_required(self):
        with pytest.raises(ValidationError, match="必須"):
            validate_generate_request("", "https://example.com")

    def test_url_scheme(self):
        with pytest.raises(ValidationError):
            validate_generate_request("物件", "ftp://example.com")

    def test_request_from_dict(self):
        req = GenerateRequest.from_dict({"name": " 物件 ", "url": "https://example.com", "minChars": 300})
        assert req.name == "物件"
        assert req.min_chars == 300
        assert req.max_chars == 550


class TestGenerate:
    """Test the generate operation"""

    def test_generate_forces_extracted_facts(self, mock_rewriter, mock_fetch, full_facts):
        result = generate(
            "パークハウス武蔵小杉",
            "https://example.com/property",
            min_chars=200,
            max_chars=600,
            rewriter=mock_rewriter,
            fetch=mock_fetch,
            settings=Settings(),
        )

        assert result.ok is True
        assert result.error is None
        assert result.text == EXPECTED_BODY
        assert "徒歩7分" not in result.text
        assert result.facts == full_facts
        mock_fetch.assert_called_once_with("https://example.com/property")
        assert mock_rewriter.call_count == 2

    def test_generate_invalid_input(self, mock_rewriter, mock_fetch):
        result = generate("", "https://example.com", rewriter=mock_rewriter, fetch=mock_fetch, settings=Settings())
        assert result.ok is False
        assert "必須" in result.error
        mock_fetch.assert_not_called()

    def test_generate_fetch_error_continues_without_facts(self, mock_rewriter):
        fetch = Mock(side_effect=FetchError("URL取得失敗 (404)", status_code=404))
        result = generate("物件", "https://example.com", min_chars=200, max_chars=600,
                          rewriter=mock_rewriter, fetch=fetch, settings=Settings())

        assert result.ok is True
        assert result.facts == Facts()
        # 確認できない徒歩分数の文は削除される
        assert result.text == "緑豊かな環境で落ち着いた暮らしが叶います。" * 10
        assert mock_rewriter.call_count == 2

    def test_generate_without_api_key(self, mock_fetch):
        result = generate("物件", "https://example.com", fetch=mock_fetch, settings=Settings(api_key=None))
        assert result.ok is False
        assert result.error == "APIキーが設定されていません"
        assert result.facts.unit_count == 120

    def test_generate_all_rewrites_fail(self, failing_rewriter, mock_fetch):
        result = generate("物件", "https://example.com", rewriter=failing_rewriter, fetch=mock_fetch, settings=Settings())
        assert result.ok is False
        assert result.error == "紹介文を生成できませんでした"

    def test_generate_batch_keeps_order(self, mock_rewriter, mock_fetch):
        results = generate_batch(
            [
                {"name": "A", "url": "https://example.com/a"},
                GenerateRequest(name="B", url="ftp://example.com/b"),
                {"name": "C", "url": "https://example.com/c", "min_chars": 200, "max_chars": 600},
            ],
            rewriter=mock_rewriter,
            fetch=mock_fetch,
            settings=Settings(),
            max_workers=3,
        )

        assert [r.name for r in results] == ["A", "B", "C"]
        assert [r.ok for r in results] == [True, False, True]
        assert results[2].text == EXPECTED_BODY

    def test_to_dict(self, mock_rewriter, mock_fetch):
        result = generate("物件", "https://example.com", min_chars=200, max_chars=600,
                          rewriter=mock_rewriter, fetch=mock_fetch, settings=Settings())
        data = result.to_dict()
        assert data["ok"] is True
        assert data["facts"]["unit_count"] == 120
        assert data["facts"]["station_walk"]["station"] == "武蔵小杉"


class TestCheck:
    """Test the check operation"""

    def test_empty_text(self):
        response = check("")
        assert response.ok is False
        assert response.error == "text は必須です"

    def test_annotate_mode(self):
        response = check("日本一の立地です。", mode="annotate")
        assert response.ok is True
        assert response.improved == "日本一の立地です。"
        hit = next(i for i in response.issues if i.id == "yuii-0")
        assert hit.category is Category.BANNED
        assert response.deletions == []

    def test_delete_mode(self):
        response = check("日本一の眺望です。緑豊かな環境です。", {"units": 50})
        assert response.ok is True
        assert response.mode == "delete"
        assert response.improved == "緑豊かな環境です。総戸数は50戸です。"
        assert [d.sentence for d in response.deletions] == ["日本一の眺望です。"]

    def test_delete_mode_keeps_disclosure(self):
        text = "敷地は傾斜地のため擁壁があります。緑豊かです。"
        response = check(text)
        assert response.improved == text
        assert response.deletions == []
        issues = check(text, mode="annotate").issues
        assert any(i.id.startswith("omission-") for i in issues)

    def test_delete_mode_with_extracted_facts(self):
        response = check("緑豊かな環境です。", Facts(unit_count=120))
        assert response.improved == "緑豊かな環境です。総戸数は120戸です。"

    def test_unknown_mode(self):
        response = check("緑豊かな環境です。", mode="rewrite")
        assert response.ok is False

    def test_to_dict(self):
        data = check("日本一の眺望です。", mode="delete").to_dict()
        assert data["deletions"][0]["sentence"] == "日本一の眺望です。"
        assert {"id", "label"} <= set(data["deletions"][0]["reasons"][0])
        data = check("日本一の眺望です。", mode="annotate").to_dict()
        assert data["issues"][0]["category"] == "禁止用語"


class TestPolish:
    """Test the polish operation"""

    def test_tone_dictionary(self):
        result = polish("便利です。安心して暮らせます", "上品・落ち着いた")
        assert result.ok is True
        assert result.text == "利便性があります。落ち着いて暮らせます。"
        assert result.changed is True

    def test_no_filler_added(self):
        result = polish("緑豊かです。", min_chars=450, max_chars=550)
        assert result.text == "緑豊かです。"
        assert result.changed is False

    def test_empty_text(self):
        result = polish("")
        assert result.ok is False
        assert result.error == "text は必須です"

    def test_failing_rewriter_falls_back(self, failing_rewriter):
        result = polish("緑豊かです。", rewriter=failing_rewriter)
        assert result.ok is True
        assert result.text == "緑豊かです。"
        assert any("失敗" in n for n in result.notes)

    def test_facts_forced(self):
        result = polish("総戸数は100戸の邸宅です。", facts=Facts(unit_count=120))
        assert result.text == "総戸数120戸の邸宅です。"
        assert result.changed is True
