"""
不動産広告の表記ルール一覧
- 禁止用語／不当表示／商標／二重価格
- 住戸特定（棟紹介でのみ適用）

ルールはすべて正規化済みテキストに対して評価する。
"""
import re
from dataclasses import dataclass, field
from enum import Enum

from ..normalizer import normalize
from .base import Category, RuleScope, Scope, Severity

# 文字間に挟まってもよい区切り（空白・中黒・ダッシュ類）
_LOOSE_SEP = r"[\s・\-‐-‒–—―]*"


class RuleKind(str, Enum):
    """ルールの照合方法"""
    TERM = "term"            # 語のルーズ一致（全件）
    PATTERN = "pattern"      # 正規表現（全件）
    PREDICATE = "predicate"  # 正規表現（最初の1件のみ）


@dataclass(frozen=True)
class Rule:
    id: str
    label: str
    category: Category
    severity: Severity
    kind: RuleKind
    pattern: re.Pattern
    message: str
    scope: RuleScope = RuleScope.ALL
    term: str = field(default="", compare=False)

    def find(self, norm: str) -> list[tuple[int, int]]:
        """正規化済みテキスト上の一致範囲を返す"""
        if self.kind is RuleKind.PREDICATE:
            m = self.pattern.search(norm)
            return [m.span()] if m and m.end() > m.start() else []
        return [m.span() for m in self.pattern.finditer(norm) if m.end() > m.start()]


def loose(term: str) -> re.Pattern:
    """文字間の空白・中黒・ダッシュを許容する正規表現を作る（"日本 一" も「日本一」に一致）"""
    chars = normalize(term)
    return re.compile(_LOOSE_SEP.join(re.escape(c) for c in chars), re.IGNORECASE)


def list_rules(
    prefix: str,
    label: str,
    category: Category,
    severity: Severity,
    terms: list[str],
    message: str,
    scope: RuleScope = RuleScope.ALL,
) -> tuple[Rule, ...]:
    return tuple(
        Rule(
            id=f"{prefix}-{i}",
            label=label,
            category=category,
            severity=severity,
            kind=RuleKind.TERM,
            pattern=loose(t),
            message=f"{message}（該当語:「{t}」）",
            scope=scope,
            term=t,
        )
        for i, t in enumerate(terms)
    )


# ===================== 禁止用語 =====================
NG_KANZEN = ["完全", "完ぺき", "絶対", "万全", "100%", "フルリフォーム", "理想な", "理想的"]
NG_YUII = ["日本一", "日本初", "業界一", "超", "当社だけ", "他に類を見ない", "抜群", "一流"]
NG_SENBETSU = ["特選", "厳選", "正統", "由緒正しい", "地域でナンバーワン"]
NG_SAIJOU = ["最高", "最高級", "特級", "最新", "最適", "至便", "至近", "一級", "絶好"]
NG_WARIYASU = ["買得", "掘り出し物", "土地値", "格安", "破格", "特安", "激安", "バーゲンセール"]
NG_OTHERS = ["心理的瑕疵あり", "告知事項あり", "契約不適合責任免責", "引渡し猶予", "価格応談"]

# ===================== 不当表示 =====================
NF_YUURYOU_GONIN = [
    "稀少物件", "逸品", "とっておき", "人気の", "新築同様", "新品同様",
    "資産価値ある", "値上がりが期待できる", "将来性あり",
]
NF_YUURI_GONIN = ["自己資金0円", "価格応談", "今だけ", "今しかない", "今がチャンス", "高利回り", "空室の心配なし"]
NF_KYOUCHOU = [
    "売主につき手数料不要",
    "建築確認費用は価格に含む",
    "国土交通大臣免許だから安心です",
    "検査済証取得物件",
]
NF_HYOJI_OMISSION = ["傾斜地", "路地状敷地", "高圧電線下"]

# ===================== 商標 =====================
TM_LIST = ["ディズニーランド", "ユニバーサルスタジオジャパン", "東京ドーム"]

# ===================== 住戸特定 =====================
UNIT_TERMS = [
    "角部屋", "角住戸", "最上階", "高層階", "低層階",
    "南向き", "東向き", "西向き", "北向き",
    "南東向き", "南西向き", "北東向き", "北西向き",
]

DOUBLE_PRICE_RULE = Rule(
    id="double-price",
    label="不当な二重価格表示",
    category=Category.MISLEADING,
    severity=Severity.ERROR,
    kind=RuleKind.PREDICATE,
    pattern=re.compile(
        r"(?:[0-9]{1,3}(?:,[0-9]{3})+|[0-9]+)\s*万?円?\s*⇒\s*(?:[0-9]{1,3}(?:,[0-9]{3})+|[0-9]+)\s*万?円?"
    ),
    message="不当な二重価格表示は不可です（比較根拠のない値引き表現）。",
)

HUNDRED_PERCENT_RULE = Rule(
    id="hundred-percent",
    label="完全表現",
    category=Category.BANNED,
    severity=Severity.ERROR,
    kind=RuleKind.PREDICATE,
    pattern=re.compile(r"(?<![0-9.])100\s*%"),
    message="完全を示唆する「100%」表現は使用できません。",
)

INVESTMENT_UPSIDE_RULE = Rule(
    id="investment-upside",
    label="資産価値の上昇示唆",
    category=Category.MISLEADING,
    severity=Severity.ERROR,
    kind=RuleKind.PREDICATE,
    pattern=re.compile(
        r"(?:資産価値|物件価値|地価|価格|価値)の?(?:上昇|向上|値上がり|アップ)(?:が|も)?(?:期待|見込|確実|間違いな)"
        r"|値上がり(?:が|も)?(?:期待|見込|確実|間違いな)"
    ),
    message="将来の値上がり・資産価値の上昇を示唆する表現は不可です。",
)

BASE_RULES: tuple[Rule, ...] = (
    *list_rules("kanzen", "完全表現", Category.BANNED, Severity.ERROR, NG_KANZEN, "完全/断定的な表現は使用できません。"),
    HUNDRED_PERCENT_RULE,
    *list_rules("yuii", "優位表現", Category.BANNED, Severity.ERROR, NG_YUII, "市場/他社に対する優位性の断定は不可です。"),
    *list_rules("senbetsu", "選別表現", Category.BANNED, Severity.ERROR, NG_SENBETSU, "出所不明の選別/格付け表現は不可です。"),
    *list_rules("saijou", "最上級表現", Category.BANNED, Severity.ERROR, NG_SAIJOU, "最上級・至上の断定は不可です。"),
    *list_rules("wariyasu", "割安表現", Category.BANNED, Severity.ERROR, NG_WARIYASU, "価格の有利さを断定する表現は不可です。"),
    *list_rules("others", "その他（取引条件）", Category.BANNED, Severity.ERROR, NG_OTHERS, "重要事項/取引条件の断定的記載は不可です。"),
    *list_rules("yuuryou", "優良誤認のおそれ", Category.MISLEADING, Severity.ERROR, NF_YUURYOU_GONIN, "品質/希少性/価値向上を断定する表現は不可です。"),
    *list_rules("yuuri", "有利誤認のおそれ", Category.MISLEADING, Severity.ERROR, NF_YUURI_GONIN, "購入・投資上の有利さを断定する表現は不可です。"),
    *list_rules("kyouchou", "不当な強調表示", Category.MISLEADING, Severity.WARN, NF_KYOUCHOU, "誤認を招く可能性がある強調表現です。必要性を再確認してください。"),
    *list_rules("omission", "表示漏れ/隠蔽示唆", Category.MISLEADING, Severity.WARN, NF_HYOJI_OMISSION, "不利益事項の隠蔽・表示漏れに該当しないか確認してください。"),
    DOUBLE_PRICE_RULE,
    INVESTMENT_UPSIDE_RULE,
    *list_rules("tm", "商標名の無断使用", Category.TRADEMARK, Severity.ERROR, TM_LIST, "登録商標/著名施設名の無断使用は避けてください。"),
)

UNIT_RULES: tuple[Rule, ...] = (
    *list_rules(
        "unit-terms",
        "住戸特定ワード",
        Category.MISLEADING,
        Severity.ERROR,
        UNIT_TERMS,
        "棟紹介では住戸を特定し得る表現（向き・角部屋・階数等）は不可です。",
        scope=RuleScope.BUILDING_ONLY,
    ),
    Rule(
        id="unit-size-tatami",
        label="住戸の広さ（帖/畳）",
        category=Category.MISLEADING,
        severity=Severity.ERROR,
        kind=RuleKind.PATTERN,
        pattern=re.compile(r"約?\s*[0-9]{1,3}(?:\.[0-9]+)?\s*(?:帖|畳|J|jo)", re.IGNORECASE),
        message="棟紹介では帖/畳など住戸の広さは記載不可です。",
        scope=RuleScope.BUILDING_ONLY,
    ),
    Rule(
        id="unit-size-m2",
        label="住戸の広さ（㎡/平米）",
        category=Category.MISLEADING,
        severity=Severity.ERROR,
        kind=RuleKind.PATTERN,
        pattern=re.compile(r"約?\s*[0-9]{1,3}(?:\.[0-9]+)?\s*(?:㎡|m²|m2|平米)", re.IGNORECASE),
        message="棟紹介では㎡/平米など住戸の広さは記載不可です。",
        scope=RuleScope.BUILDING_ONLY,
    ),
    Rule(
        id="unit-ldk-size",
        label="帖数付きLDK表現",
        category=Category.MISLEADING,
        severity=Severity.ERROR,
        kind=RuleKind.PATTERN,
        pattern=re.compile(r"約?\s*[0-9]{1,3}(?:\.[0-9]+)?\s*(?:帖|畳)\s*の?\s*[1-5]?(?:LDK|DK|K|L|S)", re.IGNORECASE),
        message="棟紹介では帖数付きのLDK表現は記載不可です。",
        scope=RuleScope.BUILDING_ONLY,
    ),
    Rule(
        id="unit-floor-part",
        label="階数の特定表現",
        category=Category.MISLEADING,
        severity=Severity.ERROR,
        kind=RuleKind.PATTERN,
        pattern=re.compile(r"[0-9]+\s*階部分"),
        message="棟紹介では「◯階部分」など住戸階数の示唆は記載不可です。",
        scope=RuleScope.BUILDING_ONLY,
    ),
)

ALL_RULES: tuple[Rule, ...] = BASE_RULES + UNIT_RULES


def rules_for(scope: Scope) -> tuple[Rule, ...]:
    """scope に適用されるルールを返す"""
    return tuple(r for r in ALL_RULES if r.scope.applies_to(scope))
