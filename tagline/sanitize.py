"""
生成文の後処理（保険の削除・体裁の応急修正）
"""
import re
from collections.abc import Iterable

# 誇張・うたい文句。生成後に語ごと削除する
BANNED_WORDS: tuple[str, ...] = (
    "完全", "完ぺき", "絶対", "万全", "100％", "フルリフォーム", "理想", "日本一", "日本初", "業界一",
    "超", "当社だけ", "他に類を見ない", "抜群", "一流", "秀逸", "羨望", "屈指", "特選", "厳選",
    "正統", "由緒正しい", "地域でナンバーワン", "最高", "最高級", "極", "特級", "最新", "最適", "至便",
    "至近", "一級", "絶好", "買得", "掘出", "土地値", "格安", "投売り", "破格", "特安",
    "激安", "安値", "バーゲンセール", "ディズニー", "ユニバーサルスタジオ",
    "歴史ある", "歴史的", "歴史的建造物", "由緒ある",
)

_PRICE_RE = re.compile(r"(価格|金額|[一二三四五六七八九十百千万億兆\d０-９,，\.]+(?:億|万)?円)")

_HEADINGS = "立地|建物|設備|周辺|アクセス|特徴|概要|ポイント"


def strip_price_and_spaces(text: str | None) -> str:
    """価格・金額表現を除去し、余分な空白を整理する"""
    t = _PRICE_RE.sub("", text or "")
    return re.sub(r"\s{2,}", " ", t).strip()


def strip_words(text: str | None, words: Iterable[str] = BANNED_WORDS) -> str:
    """指定語を削除する。長い語を先に当てて部分一致の取り残しを防ぐ。"""
    terms = sorted({w for w in words if w}, key=len, reverse=True)
    if not terms:
        return text or ""
    pattern = re.compile("|".join(re.escape(w) for w in terms))
    return pattern.sub("", text or "")


def micro_clean(text: str | None) -> str:
    """見出しの残骸や句読点の重複など、生成文の体裁を応急修正する"""
    t = text or ""

    # 見出し残骸（「立地：」「設備・」など）
    t = re.sub(
        rf"(^|\n)({_HEADINGS})\s*(?:[・:：\-、。]\s*)?(?=\n|$)",
        r"\1",
        t,
    )
    t = re.sub(
        rf"(^|(?<=[。！？?]))\s*({_HEADINGS})\s*[・:：\-、。]\s*",
        r"\1",
        t,
    )

    t = re.sub(r"(です|ます)(?=交通|共用|また|さらに)", r"\1。", t)
    # 「ますます」などの副詞は残し、文末の重複だけを直す
    t = re.sub(r"(です|ます)(です|ます)(?=[。！？]|$)", r"\1。", t)
    t = re.sub(r"、、+", "、", t)
    t = re.sub(r"。。+", "。", t)
    t = re.sub(r"。\s*です。", "です。", t)
    t = t.replace("くださいです。", "ください。")
    t = t.replace("，", "、").replace("．", "。")
    t = re.sub(r"\s+」", "」", t)
    t = re.sub(r"「\s+", "「", t)
    t = re.sub(r"\s+駅", "駅", t)
    t = re.sub(r"[ \t]{2,}", " ", t)
    t = re.sub(r"\n{2,}", "\n", t)
    return t.strip()


def parse_must_words(src: object) -> list[str]:
    """配列・文字列・その他を語リストに正規化する（空白/カンマ/読点/改行/スラッシュ区切り）"""
    if isinstance(src, (list, tuple)):
        s = " ".join(str(x) for x in src)
    elif src is None:
        s = ""
    else:
        s = str(src)
    return [w.strip() for w in re.split(r"[ ,、\s/]+", s) if w.strip()]
