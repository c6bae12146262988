"""
トーンに合わせた仕上げ（辞書による言い換え）
書き換え担当を使わずに、語尾の重複・禁止語・トーン別の言い回しだけを整える。
文や情報を付け足すことはしない。
"""
import re
from dataclasses import dataclass, field

from .ai_rewriter import DEFAULT_TONE, TONES
from .checkers.sentence_filter import split_sentences_ja
from .length import count_ja, hard_cap_ja

_JA_END_RE = re.compile(r"[。！？]$")

POLISH_BANNED_RE = re.compile(
    r"完全|完ぺき|絶対|万全|100％|日本一|業界一|最高級|極|特級|至近|至便|破格|激安|特選|厳選"
    r"|ぜひ一度ご覧|内見|見学予約|お問い合わせ|お問合せ|お気軽に|ご連絡ください|お待ちしております|ご検討ください"
)

TONE_MAP: dict[str, list[tuple[re.Pattern, str]]] = {
    "上品・落ち着いた": [
        (re.compile(r"便利です"), "利便性があります"),
        (re.compile(r"便利な立地"), "利便性の高い立地"),
        (re.compile(r"安心して暮らせ(?:ます|る)"), "落ち着いて暮らせます"),
        (re.compile(r"魅力です"), "魅力の一つです"),
    ],
    "一般的": [
        (re.compile(r"利便性が高い"), "使い勝手のよい"),
        (re.compile(r"落ち着いて暮らせます"), "安心して暮らせます"),
        (re.compile(r"魅力の一つです"), "特徴です"),
    ],
    "親しみやすい": [
        (re.compile(r"利便性が高い"), "使いやすい場所です"),
        (re.compile(r"落ち着いて暮らせます"), "安心して過ごせます"),
        (re.compile(r"魅力の一つです"), "うれしいポイントです"),
    ],
}

NOTE_BANNED = "禁止語・勧誘表現の削除"
NOTE_ENDINGS = "語尾・リズム調整"
NOTE_TONE = "トーンに合わせた言い換え"
NOTE_CAP = "上限文字数での切り詰め"


@dataclass
class PolishResult:
    ok: bool = True
    text: str = ""
    changed: bool = False
    notes: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        return {"ok": self.ok, "text": self.text, "changed": self.changed, "notes": self.notes, "error": self.error}


def coerce_tone(tone: str | None) -> str:
    return tone if tone in TONES else DEFAULT_TONE


def _end_with_period(s: str) -> str:
    return s if _JA_END_RE.search(s) else s + "。"


def polish_text(text: str | None, tone: str | None = DEFAULT_TONE, max_chars: int | None = None) -> PolishResult:
    """
    辞書ベースで本文を仕上げる。

    文字数が足りなくても補筆はしない。max_chars を超える場合だけ文末で切り詰める。
    """
    original = text or ""
    notes: list[str] = []

    body = POLISH_BANNED_RE.sub("", original)
    if body != original:
        notes.append(NOTE_BANNED)

    sentences = [
        _end_with_period(re.sub(r"\s{2,}", " ", s).replace("ですです。", "です。").replace("ますます。", "ます。"))
        for s in split_sentences_ja(body)
    ]
    joined = re.sub(r"\s{2,}", " ", "".join(sentences)).strip()
    if joined != body.strip():
        notes.append(NOTE_ENDINGS)
    body = joined

    toned = body
    for pattern, replacement in TONE_MAP[coerce_tone(tone)]:
        toned = pattern.sub(replacement, toned)
    if toned != body:
        notes.append(NOTE_TONE)
    body = toned

    if max_chars is not None and count_ja(body) > max_chars:
        body = hard_cap_ja(body, max_chars)
        notes.append(NOTE_CAP)

    body = body.strip()
    return PolishResult(ok=True, text=body, changed=body != original, notes=notes)
