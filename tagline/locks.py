"""
ファクトの固定（ロック）
ファクトをプレースホルダに置き換えて外部の書き換えから守り、書き換え後に正式表記へ戻す。

本文中の値が何であっても、項目の「形」に一致した箇所はすべて抽出済みファクトの表記に
揃える（本文より抽出ファクトを正とする）。
"""
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import NamedTuple

from .facts import (
    BUILT_DATE_RE,
    COMPANY_FIELDS,
    COMPANY_LABELS,
    FLOOR_COUNT_RE,
    STATION_WALK_RE,
    STRUCTURE_SHAPE_RE,
    UNIT_COUNT_RE,
    Facts,
    FactField,
    company_patterns,
)
from .normalizer import normalize_walk

# 分数が不明な場合に補う徒歩分数
DEFAULT_WALK_FALLBACK_MINUTES = 10

_PLACEHOLDER_RE = re.compile(r"\[\[LOCK_([A-Z_]+)\]\]")


@dataclass(frozen=True)
class LockToken:
    """1項目分の固定表記"""
    field: FactField
    literal: str

    @property
    def placeholder(self) -> str:
        return f"[[LOCK_{self.field.name}]]"

    @property
    def unmasked(self) -> str:
        # 会社系は「ラベル：値」の形に戻す
        if self.field in COMPANY_FIELDS:
            return f"：{self.literal}"
        return self.literal


class MaskResult(NamedTuple):
    masked: str
    tokens: dict[FactField, LockToken]


def _render_station_walk(facts: Facts, fallback_minutes: int | None) -> str | None:
    sw = facts.station_walk
    if sw is None or not sw.station:
        return None
    minutes = sw.minutes if sw.minutes is not None else fallback_minutes
    if minutes is None:
        return None
    line = f"{sw.line}線" if sw.line else ""
    return f"{line}「{sw.station}」駅から徒歩約{minutes}分"


_RENDERERS: dict[FactField, Callable[[Facts], str | None]] = {
    FactField.UNIT_COUNT: lambda f: f"総戸数{f.unit_count}戸" if f.unit_count is not None else None,
    FactField.STRUCTURE: lambda f: f.structure or None,
    FactField.FLOOR_COUNT: lambda f: f"地上{f.floor_count}階" if f.floor_count is not None else None,
    FactField.BUILT_DATE: lambda f: f.built_date or None,
    FactField.DEVELOPER: lambda f: f.developer or None,
    FactField.BUILDER: lambda f: f.builder or None,
    FactField.MANAGER: lambda f: f.manager or None,
}

# 項目ごとの「形」の検出パターン（上から順に適用）
_DETECTORS: dict[FactField, tuple[re.Pattern, ...]] = {
    FactField.STATION_WALK: (STATION_WALK_RE,),
    FactField.UNIT_COUNT: (UNIT_COUNT_RE,),
    FactField.STRUCTURE: (STRUCTURE_SHAPE_RE,),
    FactField.FLOOR_COUNT: (FLOOR_COUNT_RE,),
    FactField.BUILT_DATE: (BUILT_DATE_RE,),
    **{field: company_patterns(field) for field in COMPANY_FIELDS},
}


def build_tokens(
    facts: Facts | None,
    walk_fallback_minutes: int | None = DEFAULT_WALK_FALLBACK_MINUTES,
) -> dict[FactField, LockToken]:
    """ファクトから項目ごとの固定表記を作る。値のない項目はトークンを作らない。"""
    if facts is None:
        return {}
    tokens: dict[FactField, LockToken] = {}
    for field in FactField:
        if field is FactField.STATION_WALK:
            literal = _render_station_walk(facts, walk_fallback_minutes)
        else:
            literal = _RENDERERS[field](facts)
        if literal:
            tokens[field] = LockToken(field=field, literal=str(literal))
    return tokens


def _mask_field(text: str, token: LockToken) -> str:
    placeholder = token.placeholder
    if token.field in COMPANY_FIELDS:
        # ラベルは本文に残し、コロン以降の値だけを置き換える
        label = COMPANY_LABELS[token.field]
        exact = re.compile(rf"(?P<label>{label})\s*[:：]?\s*{re.escape(token.literal)}")
        text = exact.sub(lambda m: m.group("label") + placeholder, text)
        for pattern in _DETECTORS[token.field]:
            text = pattern.sub(lambda m: m.group("label") + placeholder, text)
        return text
    if token.field is FactField.STATION_WALK:
        # 直前の地の文を路線名として取り込まないよう、正式表記そのものを先に置き換える
        text = text.replace(token.literal, placeholder)
    for pattern in _DETECTORS[token.field]:
        text = pattern.sub(placeholder, text)
    return text


def mask(
    text: str | None,
    facts: Facts | None,
    walk_fallback_minutes: int | None = DEFAULT_WALK_FALLBACK_MINUTES,
) -> MaskResult:
    """
    ファクトに該当する箇所をプレースホルダに置き換える。

    Args:
        text: 対象テキスト
        facts: 正とするファクト
        walk_fallback_minutes: 駅徒歩の分数が不明なときに使う分数。None なら駅徒歩は固定しない

    Returns:
        (置換後テキスト, 項目→トークン)
    """
    tokens = build_tokens(facts, walk_fallback_minutes)
    masked = text or ""
    for token in tokens.values():
        masked = _mask_field(masked, token)
    return MaskResult(masked, tokens)


def unmask(masked: str | None, tokens: dict[FactField, LockToken] | None) -> str:
    """プレースホルダを固定表記に戻す。対応するトークンがないものはそのまま残す。"""
    by_name = {token.field.name: token for token in (tokens or {}).values()}

    def _restore(m: re.Match) -> str:
        token = by_name.get(m.group(1))
        return token.unmasked if token else m.group(0)

    return normalize_walk(_PLACEHOLDER_RE.sub(_restore, masked or ""))


def force_facts(
    text: str | None,
    facts: Facts | None,
    walk_fallback_minutes: int | None = DEFAULT_WALK_FALLBACK_MINUTES,
) -> str:
    """本文中のファクト該当箇所をすべて正式表記に揃える。何度適用しても結果は同じ。"""
    return unmask(*mask(text, facts, walk_fallback_minutes))


def has_placeholders(text: str | None) -> bool:
    return bool(_PLACEHOLDER_RE.search(text or ""))
