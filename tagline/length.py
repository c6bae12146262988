"""
文字数の調整
- 範囲外なら書き換え担当に増量／圧縮を依頼する（最大 max_attempts 回）
- 依頼の前後でファクトを固定し、結果は毎回サニタイズする
- 上限を超える場合は句点優先で切り詰める
"""
import logging
from collections.abc import Iterable

from .ai_rewriter import DEFAULT_TONE, Rewriter, length_prompt
from .checkers.base import Scope
from .checkers.sentence_filter import drop_ng_sentences
from .facts import FactField, Facts
from .locks import DEFAULT_WALK_FALLBACK_MINUTES, force_facts, has_placeholders, mask, unmask
from .normalizer import normalize_walk
from .sanitize import micro_clean, strip_price_and_spaces, strip_words

logger = logging.getLogger(__name__)

_SENTENCE_ENDERS = ("。", "！", "？", ".")


def count_ja(text: str | None) -> int:
    """文字数（コードポイント数）"""
    return len(text or "")


def hard_cap_ja(text: str | None, max_chars: int) -> str:
    """
    max_chars 文字以内に切り詰める。範囲内の最後の文末（。！？.）で切り、
    文末が無ければ max_chars 文字で切る。
    """
    s = text or ""
    if len(s) <= max_chars:
        return s
    window = s[:max(max_chars, 0)]
    cut = max(window.rfind(e) for e in _SENTENCE_ENDERS)
    if cut >= 0:
        window = window[:cut + 1]
    return window.rstrip()


def clean_draft(
    text: str | None,
    scope: Scope | str | None = Scope.BUILDING,
    unverified_fields: Iterable[FactField] = (),
) -> str:
    """価格・禁止語の削除、徒歩表記の統一、NG文の削除、体裁の修正を順に行う"""
    t = strip_price_and_spaces(text)
    t = strip_words(t)
    t = normalize_walk(t)
    t = drop_ng_sentences(t, scope, unverified_fields)
    return micro_clean(t)


def ensure_length(
    draft: str | None,
    min_chars: int,
    max_chars: int,
    rewriter: Rewriter,
    *,
    context: str = "",
    tone: str = DEFAULT_TONE,
    facts: Facts | None = None,
    scope: Scope | str | None = Scope.BUILDING,
    walk_fallback_minutes: int | None = DEFAULT_WALK_FALLBACK_MINUTES,
    max_attempts: int = 3,
) -> str:
    """
    本文を min_chars〜max_chars に収める。

    書き換え担当が失敗した回、サニタイズで本文が空になった回、範囲から遠ざかった回は
    直前の本文を保持して次の回へ進む。
    max_attempts 回で収まらなければ、その時点の本文を返す。
    """
    out = draft or ""
    unverified = facts.missing_fields() if facts is not None else ()
    for attempt in range(1, max_attempts + 1):
        length = count_ja(out)
        if min_chars <= length <= max_chars:
            return out

        need = "expand" if length < min_chars else "condense"
        logger.debug("ensure_length attempt=%d len=%d need=%s", attempt, length, need)
        masked, tokens = mask(out, facts, walk_fallback_minutes)
        try:
            rewritten = rewriter(
                length_prompt(tone, min_chars, max_chars, need),
                masked,
                {
                    "extracted_text": context,
                    "action": need,
                    "char_range": {"min": min_chars, "max": max_chars},
                },
            )
        except Exception as e:
            logger.warning("文字数調整の書き換えに失敗しました（%d回目）: %s", attempt, e)
            continue
        if not (rewritten or "").strip():
            logger.warning("文字数調整の書き換え結果が空でした（%d回目）", attempt)
            continue

        restored = unmask(rewritten, tokens)
        if has_placeholders(restored):
            logger.warning("文字数調整の書き換え結果に不明なプレースホルダが残りました（%d回目）", attempt)
            continue
        candidate = clean_draft(restored, scope, unverified)
        candidate = force_facts(candidate, facts, walk_fallback_minutes)
        if count_ja(candidate) > max_chars:
            candidate = hard_cap_ja(candidate, max_chars)
        # サニタイズで空になった結果や、範囲から遠ざかった結果は採用しない
        if not candidate.strip() or _distance(candidate, min_chars, max_chars) > _distance(out, min_chars, max_chars):
            logger.warning("文字数調整の書き換え結果を採用しませんでした（%d回目, %d文字）", attempt, count_ja(candidate))
            continue
        out = candidate
    return out


def _distance(text: str, min_chars: int, max_chars: int) -> int:
    """文字数が min_chars〜max_chars からどれだけ外れているか（範囲内なら 0）"""
    length = count_ja(text)
    if length < min_chars:
        return min_chars - length
    if length > max_chars:
        return length - max_chars
    return 0
