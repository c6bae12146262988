"""
紹介文の生成・チェック・仕上げ
画面（app.py）やバッチから呼ばれる入口。例外は送出せず、結果の ok / error で失敗を返す。
"""
import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from .ai_rewriter import DEFAULT_TONE, GeminiRewriter, Rewriter, draft_prompt, polish_prompt
from .checkers.base import Issue, Scope, coerce_scope
from .checkers.policy_checker import check_text
from .checkers.sentence_filter import BuildingFacts, SentenceDeletion, review
from .config import Settings, load_settings
from .facts import Facts, extract_facts
from .fetcher import FetchError, fetch_document, is_http_url
from .length import clean_draft, count_ja, ensure_length, hard_cap_ja
from .locks import DEFAULT_WALK_FALLBACK_MINUTES, build_tokens, force_facts, has_placeholders, mask, unmask
from .normalizer import normalize_walk
from .polish import PolishResult, coerce_tone, polish_text
from .sanitize import micro_clean, parse_must_words

logger = logging.getLogger(__name__)

DEFAULT_MIN_CHARS = 450
DEFAULT_MAX_CHARS = 550
CHAR_LIMIT_LOW = 200
CHAR_LIMIT_HIGH = 2000

MODE_DELETE = "delete"
MODE_ANNOTATE = "annotate"


class ValidationError(ValueError):
    """入力が不正な場合の例外"""
    pass


@dataclass
class GenerateRequest:
    name: str
    url: str
    tone: str = DEFAULT_TONE
    min_chars: int = DEFAULT_MIN_CHARS
    max_chars: int = DEFAULT_MAX_CHARS
    must_words: Any = None
    scope: str = Scope.BUILDING.value

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerateRequest":
        return cls(
            name=str(data.get("name") or "").strip(),
            url=str(data.get("url") or "").strip(),
            tone=data.get("tone") or DEFAULT_TONE,
            min_chars=data.get("min_chars", data.get("minChars", DEFAULT_MIN_CHARS)),
            max_chars=data.get("max_chars", data.get("maxChars", DEFAULT_MAX_CHARS)),
            must_words=data.get("must_words", data.get("mustWords")),
            scope=data.get("scope") or Scope.BUILDING.value,
        )


@dataclass
class GenerateResult:
    ok: bool
    name: str = ""
    url: str = ""
    text: str = ""
    facts: Facts | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "name": self.name,
            "url": self.url,
            "text": self.text,
            "facts": self.facts.to_dict() if self.facts is not None else None,
            "error": self.error,
        }


@dataclass
class CheckResponse:
    ok: bool
    original: str = ""
    improved: str = ""
    deletions: list[SentenceDeletion] = field(default_factory=list)
    issues: list[Issue] = field(default_factory=list)
    error: str | None = None
    mode: str = MODE_DELETE

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "mode": self.mode,
            "original": self.original,
            "improved": self.improved,
            "deletions": [d.to_dict() for d in self.deletions],
            "issues": [i.to_dict() for i in self.issues],
            "error": self.error,
        }


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def validate_char_range(min_chars: Any, max_chars: Any) -> tuple[int, int]:
    """
    文字数の範囲を整える。数値でなければ既定値、逆転していれば入れ替え、
    200〜2000 の範囲に収める。
    """
    lo = _to_int(min_chars, DEFAULT_MIN_CHARS) or DEFAULT_MIN_CHARS
    hi = _to_int(max_chars, DEFAULT_MAX_CHARS) or DEFAULT_MAX_CHARS
    if lo > hi:
        lo, hi = hi, lo
    lo = min(max(lo, CHAR_LIMIT_LOW), CHAR_LIMIT_HIGH)
    hi = min(max(hi, CHAR_LIMIT_LOW), CHAR_LIMIT_HIGH)
    return lo, hi


def validate_generate_request(name: str | None, url: str | None) -> None:
    if not (name or "").strip() or not (url or "").strip():
        raise ValidationError("name / url は必須です")
    if not is_http_url(url):
        raise ValidationError("URLは http:// または https:// で始まる形式で入力してください")


def _default_rewriter(settings: Settings) -> Rewriter | None:
    if not settings.api_key:
        return None
    return GeminiRewriter(settings.api_key, settings.model_name, timeout=settings.request_timeout)


def _rewrite_polish(
    text: str,
    tone: str,
    rewriter: Rewriter,
    facts: Facts | None,
    walk_fallback_minutes: int | None,
    scope: Scope,
) -> str | None:
    """書き換え担当による校正。失敗した場合は None を返す。"""
    masked, tokens = mask(text, facts, walk_fallback_minutes)
    try:
        out = rewriter(polish_prompt(tone), masked, {})
    except Exception as e:
        logger.warning("校正の書き換えに失敗しました: %s", e)
        return None
    if not (out or "").strip():
        return None
    restored = unmask(out, tokens)
    if has_placeholders(restored):
        logger.warning("校正結果に不明なプレースホルダが残りました")
        return None
    unverified = facts.missing_fields() if facts is not None else ()
    return force_facts(clean_draft(restored, scope, unverified), facts, walk_fallback_minutes)


def generate(
    name: str,
    url: str,
    *,
    tone: str = DEFAULT_TONE,
    min_chars: Any = DEFAULT_MIN_CHARS,
    max_chars: Any = DEFAULT_MAX_CHARS,
    must_words: Any = None,
    scope: Scope | str | None = Scope.BUILDING,
    rewriter: Rewriter | None = None,
    fetch: Callable[[str], str] | None = None,
    settings: Settings | None = None,
) -> GenerateResult:
    """
    物件ページから紹介文を生成する。

    1. ページを取得してファクトを抽出
    2. 初稿を生成し、サニタイズしてファクトを固定
    3. 文字数を調整（最大3回）
    4. 校正し、最終クリーンと上限カット

    Returns:
        GenerateResult。入力不正・書き換え担当なし・本文が残らなかった場合は ok=False。
        ページを取得できない場合は空の資料として続行する（ファクトはすべて未確認）。
    """
    try:
        validate_generate_request(name, url)
    except ValidationError as e:
        return GenerateResult(ok=False, name=name or "", url=url or "", error=str(e))

    settings = settings or load_settings()
    tone = coerce_tone(tone)
    scope = coerce_scope(scope)
    lo, hi = validate_char_range(min_chars, max_chars)
    wf = settings.walk_fallback_minutes
    fetch = fetch or partial(fetch_document, timeout=settings.fetch_timeout, max_chars=settings.max_source_chars)

    try:
        source = fetch(url)
    except FetchError as e:
        # 取得できなくても空の資料として続行する（ファクトはすべて未確認になる）
        logger.warning("物件ページを取得できませんでした。空の資料として続行します: %s", e)
        source = ""
    source = (source or "")[:settings.max_source_chars]

    facts = extract_facts(source)
    rewriter = rewriter or _default_rewriter(settings)
    if rewriter is None:
        return GenerateResult(ok=False, name=name, url=url, facts=facts, error="APIキーが設定されていません")

    # ① 初稿
    tokens = build_tokens(facts, wf)
    constraints = {
        "name": name,
        "url": url,
        "tone": tone,
        "extracted_text": source,
        "must_words": parse_must_words(must_words),
        "char_range": {"min": lo, "max": hi},
        "locked_facts": {t.field.value: t.literal for t in tokens.values()},
    }
    try:
        draft = rewriter(draft_prompt(tone, lo, hi), "", constraints)
    except Exception as e:
        logger.warning("初稿の生成に失敗しました: %s", e)
        draft = ""

    # ② サニタイズとファクト固定
    unverified = facts.missing_fields()
    text = force_facts(clean_draft(draft, scope, unverified), facts, wf)
    logger.info("draft ready: %s (%d chars, %d facts)", name, count_ja(text), len(tokens))

    # ③ 文字数調整
    text = ensure_length(
        text, lo, hi, rewriter,
        context=source, tone=tone, facts=facts, scope=scope, walk_fallback_minutes=wf,
    )

    # ④ 校正
    polished = _rewrite_polish(text, tone, rewriter, facts, wf, scope)
    if polished:
        text = polished

    # ⑤ 最終クリーン＆上限カット
    text = force_facts(micro_clean(normalize_walk(polish_text(text, tone).text)), facts, wf)
    if count_ja(text) > hi:
        text = hard_cap_ja(text, hi)

    if not text:
        return GenerateResult(ok=False, name=name, url=url, facts=facts, error="紹介文を生成できませんでした")
    logger.info("generated: %s (%d chars)", name, count_ja(text))
    return GenerateResult(ok=True, name=name, url=url, text=text, facts=facts)


def _generate_one(request: GenerateRequest | dict, **kwargs: Any) -> GenerateResult:
    if isinstance(request, dict):
        request = GenerateRequest.from_dict(request)
    try:
        return generate(
            request.name,
            request.url,
            tone=request.tone,
            min_chars=request.min_chars,
            max_chars=request.max_chars,
            must_words=request.must_words,
            scope=request.scope,
            **kwargs,
        )
    except Exception as e:
        logger.exception("生成中にエラーが発生しました: %s", request.name)
        return GenerateResult(ok=False, name=request.name, url=request.url, error=str(e))


def generate_batch(
    requests: Iterable[GenerateRequest | dict],
    *,
    rewriter: Rewriter | None = None,
    fetch: Callable[[str], str] | None = None,
    settings: Settings | None = None,
    max_workers: int = 4,
) -> list[GenerateResult]:
    """複数物件を並行して生成する。結果は入力と同じ順で返し、1件の失敗は他に影響しない。"""
    settings = settings or load_settings()
    rewriter = rewriter or _default_rewriter(settings)
    worker = partial(_generate_one, rewriter=rewriter, fetch=fetch, settings=settings)
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        return list(pool.map(worker, list(requests)))


def check(
    text: str | None,
    facts: BuildingFacts | Facts | dict | None = None,
    *,
    mode: str = MODE_DELETE,
    scope: Scope | str | None = Scope.BUILDING,
) -> CheckResponse:
    """
    紹介文をチェックする。

    - delete: NG文を丸ごと削除し、不足している基本情報を補足した本文を返す
    - annotate: 本文は変えず、表記ルールの指摘一覧を返す
    """
    mode = (mode or MODE_DELETE).strip().lower()
    original = (text or "").strip()
    if not original:
        return CheckResponse(ok=False, error="text は必須です", mode=mode)
    if mode not in (MODE_DELETE, MODE_ANNOTATE):
        return CheckResponse(ok=False, original=original, error=f"mode が不正です: {mode}", mode=mode)

    try:
        if mode == MODE_ANNOTATE:
            issues = check_text(original, scope)
            return CheckResponse(ok=True, original=original, improved=original, issues=issues, mode=mode)
        result = review(original, facts, scope)
        return CheckResponse(
            ok=True,
            original=result.original,
            improved=result.improved,
            deletions=result.deletions,
            mode=mode,
        )
    except Exception as e:
        logger.exception("チェック中にエラーが発生しました")
        return CheckResponse(ok=False, original=original, error=str(e) or "server error", mode=mode)


def polish(
    text: str | None,
    tone: str | None = DEFAULT_TONE,
    min_chars: Any = DEFAULT_MIN_CHARS,
    max_chars: Any = DEFAULT_MAX_CHARS,
    *,
    rewriter: Rewriter | None = None,
    facts: Facts | None = None,
    scope: Scope | str | None = Scope.BUILDING,
    walk_fallback_minutes: int | None = DEFAULT_WALK_FALLBACK_MINUTES,
) -> PolishResult:
    """
    トーンに合わせて本文を仕上げる。書き換え担当があれば先に校正を依頼し、
    失敗しても辞書による仕上げだけで結果を返す。内容の付け足しはしない。
    """
    original = text or ""
    if not original.strip():
        return PolishResult(ok=False, text="", error="text は必須です")
    tone = coerce_tone(tone)
    _, hi = validate_char_range(min_chars, max_chars)

    notes: list[str] = []
    body = original
    if rewriter is not None:
        polished = _rewrite_polish(body, tone, rewriter, facts, walk_fallback_minutes, coerce_scope(scope))
        if polished:
            body = polished
            notes.append("AIによる校正")
        else:
            notes.append("AI校正に失敗したため辞書による仕上げのみ行いました")

    result = polish_text(body, tone, hi)
    out = result.text
    if facts is not None:
        out = force_facts(out, facts, walk_fallback_minutes)
        if count_ja(out) > hi:
            out = hard_cap_ja(out, hi)
    return PolishResult(ok=True, text=out, changed=out != original, notes=notes + result.notes)
