"""
重なった指摘のまとめ
"""
from dataclasses import replace

from .base import Issue


def merge_overlaps(issues: list[Issue]) -> list[Issue]:
    """
    範囲が重なる（または接する）指摘のうち、メッセージが同一のものを1件にまとめる。

    開始位置の昇順・終了位置の降順に並べ、直前の指摘と重なりかつ同じメッセージなら
    終了位置を広げて抜粋を " / " で連結する。メッセージが異なる指摘は別々に残す。
    """
    ordered = sorted(issues, key=lambda i: (i.start, -i.end))
    merged: list[Issue] = []
    for cur in ordered:
        last = merged[-1] if merged else None
        if last is not None and cur.start <= last.end and cur.message == last.message:
            merged[-1] = replace(
                last,
                end=max(last.end, cur.end),
                excerpt=f"{last.excerpt} / {cur.excerpt}",
            )
        else:
            merged.append(replace(cur))
    return merged
