"""
チェッカーの基底クラスと結果型
"""
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Protocol


class Severity(str, Enum):
    """指摘の重要度"""
    ERROR = "error"  # 表記違反（削除・修正が必要）
    WARN = "warn"    # 要確認（注記モードでは自動削除しない）


class Category(str, Enum):
    """ルールの分類"""
    BANNED = "禁止用語"
    MISLEADING = "不当表示"
    TRADEMARK = "商標"


class Scope(str, Enum):
    """紹介文の対象範囲"""
    BUILDING = "building"  # 棟紹介（住戸を特定する表現は不可）
    UNIT = "unit"          # 住戸紹介


class RuleScope(str, Enum):
    """ルールの適用範囲"""
    ALL = "all"
    BUILDING_ONLY = "building_only"

    def applies_to(self, scope: Scope) -> bool:
        return self is RuleScope.ALL or scope is Scope.BUILDING


@dataclass
class Issue:
    """ルール違反1件。start/end は検査したテキスト上の位置。"""
    id: str
    label: str
    category: Category
    severity: Severity
    start: int
    end: int
    excerpt: str
    message: str

    def to_dict(self) -> dict:
        d = asdict(self)
        d["category"] = self.category.value
        d["severity"] = self.severity.value
        return d


def coerce_scope(scope: "Scope | str | None") -> Scope:
    """文字列の scope を Scope に変換する。不明な値は棟紹介として扱う。"""
    if isinstance(scope, Scope):
        return scope
    try:
        return Scope(str(scope or Scope.BUILDING.value).strip().lower())
    except ValueError:
        return Scope.BUILDING


class BaseChecker(Protocol):
    """紹介文チェッカーの共通インターフェース"""

    @property
    def name(self) -> str:
        """チェッカー名（表示用）"""
        ...

    def run(self, text: str) -> list[Issue]:
        """テキストに対してチェックを実行し、指摘のリストを返す"""
        ...
