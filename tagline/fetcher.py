"""
物件ページの取得
HTMLはテキスト化し、PDFは PyMuPDF でテキストを取り出す。
"""
import logging
from urllib.parse import urlparse

import requests

from .facts import html_to_text
from .pdf_reader import pdf_to_text

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0"
DEFAULT_FETCH_TIMEOUT = 20.0
DEFAULT_MAX_SOURCE_CHARS = 40000


class FetchError(Exception):
    """物件ページを取得できなかった場合の例外"""
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def is_http_url(url: str | None) -> bool:
    parsed = urlparse((url or "").strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _is_pdf(resp: requests.Response, url: str) -> bool:
    content_type = resp.headers.get("content-type", "").lower()
    return "application/pdf" in content_type or urlparse(url).path.lower().endswith(".pdf")


def fetch_document(
    url: str,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    max_chars: int = DEFAULT_MAX_SOURCE_CHARS,
) -> str:
    """
    URLの内容を取得してテキストとして返す。

    Args:
        url: 物件ページ（HTML）または物件資料（PDF）のURL
        timeout: タイムアウト（秒）
        max_chars: 返すテキストの最大文字数

    Returns:
        テキスト化した本文（max_chars 文字まで）

    Raises:
        FetchError: URLが不正な場合、通信に失敗した場合、ステータスが200番台でない場合
    """
    if not is_http_url(url):
        raise FetchError(f"URLが不正です: {url}")
    try:
        resp = requests.get(url, headers={"user-agent": USER_AGENT}, timeout=timeout)
    except requests.exceptions.Timeout as e:
        raise FetchError(f"URL取得がタイムアウトしました: {url}") from e
    except requests.RequestException as e:
        raise FetchError(f"URL取得失敗: {e}") from e
    if not resp.ok:
        raise FetchError(f"URL取得失敗 ({resp.status_code})", status_code=resp.status_code)

    if _is_pdf(resp, url):
        try:
            text = pdf_to_text(resp.content)
        except Exception as e:
            raise FetchError(f"PDFを読み込めませんでした: {e}") from e
    else:
        # 文字コード未指定のページ（Shift_JIS など）の文字化けを避ける
        if not resp.encoding or resp.encoding.lower() == "iso-8859-1":
            resp.encoding = resp.apparent_encoding
        text = html_to_text(resp.text)

    logger.info("fetched %s (%d chars)", url, len(text))
    return text[:max_chars]
