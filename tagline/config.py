"""
設定の読み込み（環境変数 / .env）
"""
import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .ai_rewriter import DEFAULT_MODEL
from .fetcher import DEFAULT_FETCH_TIMEOUT, DEFAULT_MAX_SOURCE_CHARS
from .locks import DEFAULT_WALK_FALLBACK_MINUTES

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 60.0


@dataclass(frozen=True)
class Settings:
    api_key: str | None = None
    model_name: str = DEFAULT_MODEL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    max_source_chars: int = DEFAULT_MAX_SOURCE_CHARS
    walk_fallback_minutes: int | None = DEFAULT_WALK_FALLBACK_MINUTES


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("%s の値が不正です（%r）。既定値 %s を使います", name, raw, default)
        return default
    return value if value > 0 else default


def _env_int(name: str, default: int | None, allow_empty: bool = False) -> int | None:
    raw = os.getenv(name)
    if raw is None:
        return default
    if not raw.strip():
        # 空文字は「指定なし」
        return None if allow_empty else default
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning("%s の値が不正です（%r）。既定値 %s を使います", name, raw, default)
        return default


def load_settings(dotenv: bool = True) -> Settings:
    """
    環境変数から設定を読み込む。dotenv=True なら先に .env を読み込む（既存の環境変数は上書きしない）。

    - GEMINI_API_KEY（なければ GOOGLE_API_KEY）
    - GEMINI_MODEL
    - TAGLINE_REQUEST_TIMEOUT / TAGLINE_FETCH_TIMEOUT（秒）
    - TAGLINE_MAX_SOURCE_CHARS
    - TAGLINE_WALK_FALLBACK_MINUTES（空にすると分数不明の駅徒歩は固定しない）
    """
    if dotenv:
        load_dotenv()
    api_key = (os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or "").strip() or None
    return Settings(
        api_key=api_key,
        model_name=(os.getenv("GEMINI_MODEL") or "").strip() or DEFAULT_MODEL,
        request_timeout=_env_float("TAGLINE_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        fetch_timeout=_env_float("TAGLINE_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT),
        max_source_chars=_env_int("TAGLINE_MAX_SOURCE_CHARS", DEFAULT_MAX_SOURCE_CHARS) or DEFAULT_MAX_SOURCE_CHARS,
        walk_fallback_minutes=_env_int(
            "TAGLINE_WALK_FALLBACK_MINUTES", DEFAULT_WALK_FALLBACK_MINUTES, allow_empty=True
        ),
    )
