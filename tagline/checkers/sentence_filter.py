"""
文単位のNGフィルタ（削除モード）
- NGに該当した文は丸ごと削除し、理由とともに記録する
- 本文に無い基本情報（総戸数・構造・築年・管理）は末尾に短文で補足する
"""
import re
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import Any

from ..facts import (
    FLOOR_COUNT_RE,
    STRUCTURE_SHAPE_RE,
    UNIT_COUNT_RE,
    FactField,
    Facts,
    canonical_structure,
)
from ..normalizer import fold_digits, normalize_walk
from ..sanitize import micro_clean
from .base import RuleScope, Scope, Severity, coerce_scope
from .policy_checker import find_issues
from .rules import rules_for

DIGIT = "[0-9０-９]"
# 英数字の境界（日本語の文字は境界として扱う）
_NB = r"(?<![A-Za-z0-9])"
_NA = r"(?![A-Za-z0-9])"

_SENTENCE_END_RE = re.compile(r"(?<=[。！？?])")


@dataclass(frozen=True)
class NgCheck:
    id: str
    label: str
    pattern: re.Pattern
    scope: RuleScope = RuleScope.ALL


NG_CHECKS: tuple[NgCheck, ...] = (
    # 住戸特定（室内数値・方位など）
    NgCheck("unit-m2", "面積（㎡/平米）", re.compile(rf"約?\s*{DIGIT}{{1,3}}(?:[.．]{DIGIT}+)?\s*(?:㎡|m²|m2|平米)"), RuleScope.BUILDING_ONLY),
    NgCheck("unit-tatami", "帖/畳", re.compile(rf"約?\s*{DIGIT}{{1,3}}(?:[.．]{DIGIT}+)?\s*(?:帖|畳|Ｊ|J|jo)"), RuleScope.BUILDING_ONLY),
    NgCheck("unit-plan", "間取り", re.compile(rf"{_NB}(?:[1-5]\s*LDK|[12]\s*DK|[1-3]\s*K|[1-3]\s*R){_NA}"), RuleScope.BUILDING_ONLY),
    NgCheck(
        "unit-facing",
        "方位・角部屋",
        re.compile(r"角部屋|角住戸|最上階|高層階|低層階|南東向き|南西向き|北東向き|北西向き|南向き|東向き|西向き|北向き"),
        RuleScope.BUILDING_ONLY,
    ),
    NgCheck("unit-floorpart", "階部分", re.compile(rf"{DIGIT}+\s*階部分"), RuleScope.BUILDING_ONLY),
    NgCheck(
        "unit-features",
        "住戸専用設備名",
        re.compile(
            r"ウォークインクローゼット|WIC|ウォークインCL|床暖房|浴室乾燥機|食洗機|食器洗(?:い)?乾燥機"
            r"|ディスポーザー|カウンターキッチン|追い焚き|シューズインクローゼット|SIC"
        ),
        RuleScope.BUILDING_ONLY,
    ),
    # 将来予定・断定（リフォーム/修繕）
    NgCheck(
        "future-renov",
        "リフォーム/修繕の予定・断定",
        re.compile("|".join([
            rf"(?:20{DIGIT}{{2}}年(?:{DIGIT}{{1,2}}月)?に?(?:リフォーム|リノベーション|大規模修繕)(?:予定|完了予定|実施予定)?)",
            r"(?:リフォーム(?:を|が)?(?:行われ|おこなわ|行なわ|実施さ)れる?予定)",
            r"(?:リフォーム(?:が)?予定され(?:ている|ており|ています|ておりました)?)",
            r"(?:リノベーション(?:を|が)?予定|リノベーションが予定され(?:ている|ており|ています)?)",
            r"(?:大規模修繕(?:工事)?(?:を|が)?(?:予定|実施予定|計画され))",
        ])),
    ),
    # 価格・連絡先・URL
    NgCheck("price", "価格/金額", re.compile(r"[一二三四五六七八九十百千万億兆\d０-９,，.]+(?:億|万)?円")),
    NgCheck("phone", "電話番号", re.compile(r"0\d{1,4}-\d{1,4}-\d{3,4}|（0\d{1,4}）\d{1,4}-\d{3,4}")),
    NgCheck("url", "外部URL", re.compile(r"(?:https?://|www\.)\S+")),
    # 勧誘・呼びかけ
    NgCheck(
        "solicit",
        "勧誘・呼びかけ",
        re.compile(r"ぜひ一度ご覧|ぜひご覧|内見|見学予約|お問い合わせ|お問合せ|お気軽に|ご連絡ください|お待ちしております|ご検討ください"),
    ),
    # 誇張表現
    NgCheck(
        "hype",
        "誇張表現",
        re.compile(r"完全|完ぺき|絶対|万全|100％|100%|日本一|業界一|最高級|極|特級|至近|至便|破格|激安|特選|厳選"),
    ),
)

# 確認できていない数値ファクトの断定（捏造防止のため、その文を削除する）
UNVERIFIED_FACT_CHECKS: dict[FactField, NgCheck] = {
    FactField.STATION_WALK: NgCheck(
        "unverified-station-walk", "駅徒歩分数（未確認）", re.compile(rf"徒歩\s*約?\s*{DIGIT}{{1,2}}\s*分")
    ),
    FactField.UNIT_COUNT: NgCheck("unverified-unit-count", "総戸数（未確認）", UNIT_COUNT_RE),
    FactField.STRUCTURE: NgCheck("unverified-structure", "構造（未確認）", STRUCTURE_SHAPE_RE),
    FactField.FLOOR_COUNT: NgCheck(
        "unverified-floor-count", "階数（未確認）", re.compile(rf"{FLOOR_COUNT_RE.pattern}|地下\s*{DIGIT}{{1,3}}\s*階")
    ),
    FactField.BUILT_DATE: NgCheck(
        "unverified-built-date", "築年（未確認）", re.compile(rf"築\s*{DIGIT}{{1,4}}\s*年|(?:19[5-9][0-9]|20[0-4][0-9])年")
    ),
}


@dataclass(frozen=True)
class Reason:
    id: str
    label: str


@dataclass
class SentenceDeletion:
    """削除した文と、その理由"""
    sentence: str
    reasons: list[Reason]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FilterResult:
    kept: list[str] = field(default_factory=list)
    deletions: list[SentenceDeletion] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(self.kept)


def split_sentences_ja(text: str | None) -> list[str]:
    """句点（。！？?）の直後で文に分割する。末尾の句点なしの断片も1文として返す。"""
    t = (text or "").strip()
    if not t:
        return []
    return [s.strip() for s in _SENTENCE_END_RE.split(t) if s.strip()]


class SentenceFilter:
    """
    NGに該当する文を丸ごと削除するフィルタ。

    Args:
        scope: 棟紹介（building）なら住戸特定のチェックも行う
        include_policy_rules: 表記ルール（禁止用語・不当表示・商標）のうち error のものも文ごとに評価する
        unverified_fields: 値を確認できていないファクト項目。その数値を断定する文を削除する
    """

    def __init__(
        self,
        scope: Scope | str | None = Scope.BUILDING,
        include_policy_rules: bool = True,
        unverified_fields: Iterable[FactField] = (),
    ):
        self.scope = coerce_scope(scope)
        self.checks = [c for c in NG_CHECKS if c.scope.applies_to(self.scope)]
        self.checks += [UNVERIFIED_FACT_CHECKS[f] for f in unverified_fields if f in UNVERIFIED_FACT_CHECKS]
        # warn（要確認）の表現は人の判断に任せ、削除の対象にしない
        self.rules = (
            tuple(r for r in rules_for(self.scope) if r.severity is Severity.ERROR) if include_policy_rules else ()
        )

    @property
    def name(self) -> str:
        return "文単位NGフィルタ"

    def reasons_for(self, sentence: str) -> list[Reason]:
        reasons: list[Reason] = []
        for check in self.checks:
            if check.pattern.search(sentence):
                reasons.append(Reason(check.id, check.label))
        for issue in find_issues(sentence, self.rules):
            reasons.append(Reason(issue.id, issue.label))
        # 同じ理由は1回だけ
        return list(dict.fromkeys(reasons))

    def filter(self, text: str | None) -> FilterResult:
        result = FilterResult()
        for sentence in split_sentences_ja(text):
            reasons = self.reasons_for(sentence)
            if reasons:
                result.deletions.append(SentenceDeletion(sentence=sentence, reasons=reasons))
            else:
                result.kept.append(sentence)
        return result


def drop_ng_sentences(
    text: str | None,
    scope: Scope | str | None = Scope.BUILDING,
    unverified_fields: Iterable[FactField] = (),
) -> str:
    """NG文を削除した本文だけを返す"""
    return SentenceFilter(scope, unverified_fields=unverified_fields).filter(text).text


# ---------- 基本情報の補足 ----------

@dataclass(frozen=True)
class BuildingFacts:
    """チェック時に外部から渡される棟の基本情報"""
    units: int | str | None = None
    structure: str | None = None        # "鉄筋コンクリート造" / "RC" など
    built: str | None = None            # 例: "1984年10月築"
    management: str | None = None       # 例: "管理会社に全部委託・巡回"
    maint_fee_note: str | None = None   # 任意の管理注記

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "BuildingFacts":
        data = data or {}
        return cls(
            units=data.get("units"),
            structure=data.get("structure") or None,
            built=data.get("built") or None,
            management=data.get("management") or None,
            maint_fee_note=data.get("maint_fee_note") or data.get("maintFeeNote") or None,
        )

    @classmethod
    def from_facts(cls, facts: Facts) -> "BuildingFacts":
        return cls(
            units=facts.unit_count,
            structure=facts.structure,
            built=facts.built_date,
            management=facts.manager,
        )


_UNITS_PRESENT_RE = re.compile(r"総戸数[^。]*?[0-9０-９]{1,4}\s*戸")
_STRUCT_PRESENT_RE = re.compile(r"鉄筋コンクリート造|鉄骨鉄筋コンクリート造|RC造|SRC造|RC|SRC")
_BUILT_PRESENT_RE = re.compile(r"築|19[5-9][0-9]年|20[0-4][0-9]年")
_MGMT_PRESENT_RE = re.compile(r"管理会社|管理形態|管理方式|管理体制|日勤|常駐|巡回")


def append_facts_if_missing(text: str | None, facts: BuildingFacts | Facts | dict | None) -> str:
    """
    本文に無い基本情報だけを末尾に短文で補足する。既存の文は変更しない。
    facts には物件ページから抽出した Facts も渡せる。

    補足した文は存在チェックに一致するため、2回目以降の適用では何も追加しない。
    """
    text = text or ""
    if facts is None:
        return text
    if isinstance(facts, dict):
        facts = BuildingFacts.from_dict(facts)
    elif isinstance(facts, Facts):
        facts = BuildingFacts.from_facts(facts)

    tails: list[str] = []
    if facts.units is not None and not _UNITS_PRESENT_RE.search(text):
        units = re.sub(r"[^0-9]", "", fold_digits(str(facts.units)))
        if units:
            tails.append(f"総戸数は{units}戸です。")
    if facts.structure and not _STRUCT_PRESENT_RE.search(text):
        tails.append(f"建物は{canonical_structure(facts.structure)}です。")
    if facts.built and facts.built not in text and not _BUILT_PRESENT_RE.search(text):
        tails.append(f"{facts.built}の建物です。")
    if facts.management and facts.management not in text and not _MGMT_PRESENT_RE.search(text):
        tails.append(f"{facts.management}の管理体制です。")
    if facts.maint_fee_note:
        note = re.sub(r"。?$", "。", facts.maint_fee_note.strip(), count=1)
        if note not in text:
            tails.append(note)

    if not tails:
        return text
    sep = "" if not text or text.endswith(("。", "！", "？")) else "。"
    return micro_clean(text + sep + "".join(tails))


# ---------- レビュー本体（削除のみ） ----------

@dataclass
class ReviewResult:
    original: str
    improved: str
    deletions: list[SentenceDeletion]


def review(
    text: str | None,
    facts: BuildingFacts | Facts | dict | None = None,
    scope: Scope | str | None = Scope.BUILDING,
    include_policy_rules: bool = True,
) -> ReviewResult:
    """徒歩表記を整え、NG文を削除し、不足している基本情報を補足する"""
    original = (text or "").strip()
    result = SentenceFilter(scope, include_policy_rules=include_policy_rules).filter(normalize_walk(original))
    improved = micro_clean(result.text)
    improved = append_facts_if_missing(improved, facts)
    return ReviewResult(original=original, improved=improved, deletions=result.deletions)
