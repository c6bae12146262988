"""
物件ページからの基本情報（ファクト）抽出
- 駅・徒歩分数、総戸数、構造、階数、築年月、分譲/施工/管理会社
- パターンに一致した値だけを採用し、推測で補完しない
"""
import logging
import re
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from bs4 import BeautifulSoup

from .normalizer import fold_digits

logger = logging.getLogger(__name__)

STRUCTURE_RC = "鉄筋コンクリート造"
STRUCTURE_SRC = "鉄骨鉄筋コンクリート造"


class FactField(str, Enum):
    """ファクトの項目名"""
    STATION_WALK = "station_walk"
    UNIT_COUNT = "unit_count"
    STRUCTURE = "structure"
    FLOOR_COUNT = "floor_count"
    BUILT_DATE = "built_date"
    DEVELOPER = "developer"
    BUILDER = "builder"
    MANAGER = "manager"


COMPANY_FIELDS = (FactField.DEVELOPER, FactField.BUILDER, FactField.MANAGER)


@dataclass(frozen=True)
class StationWalk:
    """最寄駅と徒歩分数。路線名・分数は欠けることがある。"""
    station: str
    line: str | None = None
    minutes: int | None = None


@dataclass(frozen=True)
class Facts:
    """1物件分のファクト。抽出後は読み取り専用で、部分更新しない。"""
    station_walk: StationWalk | None = None
    unit_count: int | None = None
    structure: str | None = None
    floor_count: int | None = None
    built_date: str | None = None
    developer: str | None = None
    builder: str | None = None
    manager: str | None = None

    def get(self, field: FactField) -> Any:
        return getattr(self, field.value)

    def present_fields(self) -> list[FactField]:
        return [f for f in FactField if self.get(f) not in (None, "")]

    def missing_fields(self) -> list[FactField]:
        return [f for f in FactField if self.get(f) in (None, "")]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Facts":
        """外部から渡された辞書を Facts に変換する。解釈できない値は None として扱う。"""
        data = data or {}
        sw = data.get("station_walk")
        station_walk = None
        if isinstance(sw, StationWalk):
            station_walk = sw
        elif isinstance(sw, dict) and sw.get("station"):
            station_walk = StationWalk(
                station=str(sw["station"]),
                line=str(sw["line"]) if sw.get("line") else None,
                minutes=_to_int(sw.get("minutes")),
            )
        return cls(
            station_walk=station_walk,
            unit_count=_to_int(data.get("unit_count")),
            structure=canonical_structure(data.get("structure")),
            floor_count=_to_int(data.get("floor_count")),
            built_date=_to_str(data.get("built_date")),
            developer=_to_str(data.get("developer")),
            builder=_to_str(data.get("builder")),
            manager=_to_str(data.get("manager")),
        )


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    digits = re.sub(r"[^0-9]", "", fold_digits(str(value)))
    return int(digits) if digits else None


def _to_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


# ---------- 項目ごとの検出パターン（抽出とロックで共用） ----------

# 路線名は漢字・カタカナ・英字の連続（ひらがなを含む地の文を取り込まないため）
_LINE_CHARS = r"A-Za-zＡ-Ｚａ-ｚ一-龥々〆ァ-ヶー・"
# 事業者名・主な路線名。路線名はここから始め、直前の名詞（「住宅街」など）を含めない
_LINE_PREFIXES = "|".join([
    "JR", "ＪＲ", "東急", "京王", "小田急", "京急", "京成", "東武", "西武", "相鉄", "東京メトロ", "都営",
    "横浜市営", "つくばエクスプレス", "りんかい", "阪急", "阪神", "京阪", "近鉄", "南海", "名鉄", "西鉄",
    "山手", "中央", "総武", "京浜東北", "埼京", "湘南新宿", "東海道", "横須賀", "常磐", "京葉", "武蔵野",
    "南武", "日比谷", "銀座", "丸ノ内", "半蔵門", "有楽町", "千代田", "東西", "副都心", "南北", "大江戸",
    "浅草", "三田",
])
STATION_WALK_RE = re.compile(
    rf"(?:(?P<line>(?:{_LINE_PREFIXES})[{_LINE_CHARS}]{{0,10}}?"
    rf"|(?<![{_LINE_CHARS}])(?:(?!{_LINE_PREFIXES})[{_LINE_CHARS}]){{1,8}}?)線\s*)?"
    r"[「『](?P<station>[^」』「『\s]{1,20})[」』]\s*駅?\s*(?:から|より)?\s*"
    r"徒歩\s*約?\s*(?P<minutes>[0-9０-９]{1,2})\s*分"
)
UNIT_COUNT_RE = re.compile(r"総戸数[^0-9０-９。\n]{0,6}?(?P<units>[0-9０-９]{1,4})\s*戸")
FLOOR_COUNT_RE = re.compile(r"地上\s*(?P<floors>[0-9０-９]{1,3})\s*階")
BUILT_DATE_RE = re.compile(
    r"(?:[1１][9９][5-9５-９]|[2２][0０][0-4０-４])[0-9０-９]\s*年"
    r"\s*(?:[0-9０-９]{1,2}\s*月)?\s*(?:新築|建築|築)"
)
# 鉄骨鉄筋 → 鉄筋 の順に並べ、長い表記を優先させる
STRUCTURE_SHAPE_RE = re.compile(
    r"鉄骨鉄筋コンクリート(?:造)?|鉄筋コンクリート(?:造)?|(?<![A-Za-z])S?RC(?:造)?(?![A-Za-z])"
)
_SRC_RE = re.compile(r"鉄骨鉄筋コンクリート|(?<![A-Za-z])SRC(?![A-Za-z])")
_RC_RE = re.compile(r"鉄筋コンクリート|(?<![A-Za-z])RC(?![A-Za-z])")

COMPANY_LABELS = {
    FactField.DEVELOPER: "分譲会社",
    FactField.BUILDER: "施工会社",
    FactField.MANAGER: "管理会社",
}
# 会社名は空白・句読点・「です」等の直前まで。後ろに付く「株式会社」等は含める。
# プレースホルダ（[[LOCK_...]]）の直前では止めない（2回目の固定で一致が増えないように）
_CORP_SUFFIX = r"(?:\s*(?:株式会社|\(株\)|（株）))?"
_COMPANY_VALUE = (
    r"(?P<value>[^\s、。,，:：\[\]]+?(?=[\s、。,，]|です|が|は|を|$)"
    rf"{_CORP_SUFFIX})"
)
# ラベルのみの場合は、ひらがなを含まない2文字以上を会社名とみなす（「管理会社 まで」などを除く）
_LOOSE_COMPANY_VALUE = (
    r"(?P<value>(?:株式会社|\(株\)|（株）)?[A-Za-zＡ-Ｚａ-ｚ0-9０-９一-龥々ァ-ヶー・&＆]{2,}?"
    rf"(?=[\s、。,，ぁ-ん]|$){_CORP_SUFFIX})"
)


def company_patterns(field: FactField) -> tuple[re.Pattern, re.Pattern]:
    """会社系項目の（ラベル＋コロン, ラベルのみ）パターン。label グループはラベル部分。"""
    label = COMPANY_LABELS[field]
    strict = re.compile(rf"(?P<label>{label})\s*[:：]\s*{_COMPANY_VALUE}")
    loose = re.compile(rf"(?P<label>{label})\s+{_LOOSE_COMPANY_VALUE}")
    return strict, loose


def canonical_structure(value: Any) -> str | None:
    """構造表記（"RC" / "SRC" や正式名称）を2種類の正式表記のどちらかにする"""
    if value is None:
        return None
    s = str(value).strip().upper().replace("ＳＲＣ", "SRC").replace("ＲＣ", "RC")
    if not s:
        return None
    if _SRC_RE.search(s):
        return STRUCTURE_SRC
    if _RC_RE.search(s):
        return STRUCTURE_RC
    return str(value).strip()


# ---------- HTML → テキスト ----------

def html_to_text(html: str | None) -> str:
    """script/style を除いてタグを外し、実体参照を戻して空白を圧縮する"""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = soup.get_text(" ")
    return re.sub(r"\s+", " ", text).strip()


# ---------- 抽出 ----------

def _extract_station_walk(text: str) -> StationWalk | None:
    m = STATION_WALK_RE.search(text)
    if not m:
        return None
    return StationWalk(
        station=m.group("station"),
        line=m.group("line") or None,
        minutes=int(m.group("minutes")),
    )


def _extract_unit_count(text: str) -> int | None:
    m = UNIT_COUNT_RE.search(text)
    return int(m.group("units")) if m else None


def _extract_structure(text: str) -> str | None:
    upper = text.upper()
    if _SRC_RE.search(upper):
        return STRUCTURE_SRC
    if _RC_RE.search(upper):
        return STRUCTURE_RC
    return None


def _extract_floor_count(text: str) -> int | None:
    m = FLOOR_COUNT_RE.search(text)
    return int(m.group("floors")) if m else None


def _extract_built_date(text: str) -> str | None:
    m = BUILT_DATE_RE.search(text)
    return re.sub(r"\s+", "", m.group(0)) if m else None


def _extract_company(text: str, field: FactField) -> str | None:
    for pattern in company_patterns(field):
        m = pattern.search(text)
        if m:
            return m.group("value").strip()
    return None


def extract_facts(source: str | None) -> Facts:
    """
    物件ページ（HTMLまたはプレーンテキスト）からファクトを抽出する。

    各項目は最初に一致したものを採用する。一致しない項目は None のままで、
    既定値で埋めることはしない。

    Args:
        source: 物件ページのHTML、またはテキスト

    Returns:
        抽出したファクト
    """
    text = fold_digits(html_to_text(source))
    if not text:
        return Facts()

    facts = Facts(
        station_walk=_extract_station_walk(text),
        unit_count=_extract_unit_count(text),
        structure=_extract_structure(text),
        floor_count=_extract_floor_count(text),
        built_date=_extract_built_date(text),
        developer=_extract_company(text, FactField.DEVELOPER),
        builder=_extract_company(text, FactField.BUILDER),
        manager=_extract_company(text, FactField.MANAGER),
    )
    logger.info("ファクト抽出: %d/%d 項目", len(facts.present_fields()), len(FactField))
    return facts
