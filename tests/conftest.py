"""
Pytest configuration and shared fixtures for tagline tests
"""

import os
import sys
from unittest.mock import Mock

import pytest

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT_DIR not in sys.path:
    sys.path.append(ROOT_DIR)

from tagline.facts import STRUCTURE_SRC, Facts, StationWalk  # noqa: E402

# 物件ページのサンプル
SAMPLE_HTML = """
<html>
<head>
<style>.price { color: red; }</style>
<script>var dummy = "総戸数999戸";</script>
</head>
<body>
<h1>パークハウス武蔵小杉</h1>
<p>東急東横線「武蔵小杉」駅から徒歩５分</p>
<table>
<tr><th>総戸数</th><td>120戸</td></tr>
<tr><th>構造</th><td>鉄骨鉄筋コンクリート造 地上15階建</td></tr>
<tr><th>築年月</th><td>2005年3月築</td></tr>
<tr><td>分譲会社：三菱地所レジデンス株式会社</td></tr>
<tr><td>施工会社：大成建設</td></tr>
<tr><td>管理会社：三菱地所コミュニティ</td></tr>
</table>
</body>
</html>
"""

# 書き換え担当が返す本文（徒歩分数はわざと誤り）
SAMPLE_BODY = "東急東横線「武蔵小杉」駅から徒歩7分の立地です。" + "緑豊かな環境で落ち着いた暮らしが叶います。" * 10


@pytest.fixture
def sample_html():
    """Provide sample property page HTML"""
    return SAMPLE_HTML


@pytest.fixture
def sample_body():
    """Provide sample rewritten body text"""
    return SAMPLE_BODY


@pytest.fixture
def full_facts():
    """Facts matching SAMPLE_HTML"""
    return Facts(
        station_walk=StationWalk(station="武蔵小杉", line="東急東横", minutes=5),
        unit_count=120,
        structure=STRUCTURE_SRC,
        floor_count=15,
        built_date="2005年3月築",
        developer="三菱地所レジデンス株式会社",
        builder="大成建設",
        manager="三菱地所コミュニティ",
    )


@pytest.fixture
def mock_rewriter():
    """Rewriter that always returns SAMPLE_BODY"""
    return Mock(return_value=SAMPLE_BODY)


@pytest.fixture
def failing_rewriter():
    """Rewriter that always fails"""
    return Mock(side_effect=RuntimeError("rewriter unavailable"))


@pytest.fixture
def mock_fetch():
    """Fetcher that returns SAMPLE_HTML"""
    return Mock(return_value=SAMPLE_HTML)
