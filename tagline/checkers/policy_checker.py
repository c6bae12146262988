"""
表記ルールチェック（注記モード）
- 禁止用語・不当表示・商標・二重価格の検出
- 棟紹介では住戸特定表現も検出
"""
from ..normalizer import normalize_with_offsets
from .base import BaseChecker, Issue, Scope, coerce_scope
from .overlap import merge_overlaps
from .rules import Rule, rules_for


def _to_issue(rule: Rule, raw: str, offsets: list[int], start: int, end: int) -> Issue:
    # 正規化後の範囲を元テキストの範囲に戻す
    raw_start = offsets[start]
    raw_end = min(len(raw), offsets[end - 1] + 1)
    return Issue(
        id=rule.id,
        label=rule.label,
        category=rule.category,
        severity=rule.severity,
        start=raw_start,
        end=raw_end,
        excerpt=raw[raw_start:raw_end],
        message=rule.message,
    )


def find_issues(text: str | None, rules: tuple[Rule, ...]) -> list[Issue]:
    """ルールを評価し、まとめる前の指摘を返す"""
    raw = text or ""
    norm, offsets = normalize_with_offsets(raw)
    if not norm:
        return []
    issues: list[Issue] = []
    for rule in rules:
        for start, end in rule.find(norm):
            issues.append(_to_issue(rule, raw, offsets, start, end))
    return issues


def check_text(text: str | None, scope: Scope | str | None = Scope.BUILDING) -> list[Issue]:
    """
    テキストを表記ルールで検査し、重なりをまとめた指摘のリストを返す。

    Args:
        text: 検査するテキスト
        scope: "building"（棟紹介。住戸特定ルールも適用）または "unit"（住戸紹介）

    Returns:
        指摘のリスト。順序は保証しない（表示側で並べ替える）。
    """
    return merge_overlaps(find_issues(text, rules_for(coerce_scope(scope))))


class PolicyChecker(BaseChecker):
    """不動産広告の表記ルールチェック"""

    def __init__(self, scope: Scope | str | None = Scope.BUILDING):
        self.scope = coerce_scope(scope)

    @property
    def name(self) -> str:
        return "表記ルールチェック"

    def run(self, text: str) -> list[Issue]:
        return check_text(text, self.scope)
