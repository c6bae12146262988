from .base import BaseChecker, Category, Issue, Scope, Severity
from .overlap import merge_overlaps
from .policy_checker import PolicyChecker, check_text
from .sentence_filter import BuildingFacts, FilterResult, SentenceFilter, split_sentences_ja

__all__ = [
    "BaseChecker",
    "BuildingFacts",
    "Category",
    "FilterResult",
    "Issue",
    "PolicyChecker",
    "Scope",
    "SentenceFilter",
    "Severity",
    "check_text",
    "merge_overlaps",
    "split_sentences_ja",
]
