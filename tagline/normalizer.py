"""
表記ゆれの正規化
- 全角英数記号→半角、ダッシュ・中黒・矢印の統一、空白の圧縮
- ルール照合用に、正規化後の各文字が元テキストの何文字目かを保持する
"""
import re

_DASHES = frozenset("‐‑‒–—―ー−")
_DOTS = frozenset("・･∙•")
_ARROWS = frozenset("⇒→➡➔➜➙➛➝➞➟➠")
_FULLWIDTH_DIGITS = str.maketrans("０１２３４５６７８９", "0123456789")


def _fold_char(ch: str) -> str:
    if "！" <= ch <= "～":
        return chr(ord(ch) - 0xFEE0)
    if ch in _DASHES:
        return "-"
    if ch in _DOTS:
        return "・"
    if ch in _ARROWS:
        return "⇒"
    if ch == "　":
        return " "
    return ch


def normalize_with_offsets(text: str | None) -> tuple[str, list[int]]:
    """
    正規化した文字列と、各文字の元テキスト上の位置を返す。

    置換はすべて1文字→1文字なので、位置がずれるのは空白の圧縮と前後の trim のみ。
    圧縮された空白は、連続の先頭文字の位置に対応付ける。
    """
    chars: list[str] = []
    offsets: list[int] = []
    for i, ch in enumerate(text or ""):
        ch = _fold_char(ch)
        if ch.isspace():
            # 先頭の空白と連続空白は捨てる
            if not chars or chars[-1] == " ":
                continue
            ch = " "
        chars.append(ch)
        offsets.append(i)
    if chars and chars[-1] == " ":
        chars.pop()
        offsets.pop()
    return "".join(chars), offsets


def normalize(text: str | None) -> str:
    """照合用の正規化。何度適用しても結果は変わらない。"""
    return normalize_with_offsets(text)[0]


def fold_digits(text: str | None) -> str:
    """全角数字だけを半角にする（他の文字はそのまま）"""
    return (text or "").translate(_FULLWIDTH_DIGITS)


def normalize_walk(text: str | None) -> str:
    """徒歩表記を「徒歩約N分」に統一する。見つかった表現だけを直し、数値は作らない。"""
    t = text or ""
    t = re.sub(r"徒歩\s*([0-9０-９]+)\s*分", r"徒歩約\1分", t)
    t = re.sub(r"(徒歩約)\s*(?:徒歩約\s*)+", r"\1", t)
    t = re.sub(r"駅から\s+徒歩約", "駅から徒歩約", t)
    return t
