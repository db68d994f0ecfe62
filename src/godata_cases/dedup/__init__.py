"""Deduplication of lab rows against existing cases."""

from godata_cases.dedup.base import Matcher
from godata_cases.dedup.exact import ExactMatcher
from godata_cases.dedup.guard import DedupGuard, DedupResult
from godata_cases.dedup.registry import MatcherRegistry

__all__ = ["DedupGuard", "DedupResult", "ExactMatcher", "Matcher", "MatcherRegistry"]
