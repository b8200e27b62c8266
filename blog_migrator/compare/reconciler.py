# File: blog_migrator/compare/reconciler.py
"""blog_migrator.compare.reconciler: fuzzy matching of old-site and new-site post titles.

Titles get edited during a migration ("10 Tips for X" → "Ten tips for X!"),
so equality is not enough. Two titles are considered the same post when one
of these rules fires, checked in order:

1. ``exact match``     : equal ignoring case, or equal word for word once
   case and punctuation are dropped;
2. ``4 words in a row``: both titles carry the same four consecutive words
   starting at the same position;
3. ``N word threshold``: both titles have the same number of words, at least
   8, and enough of the first title's words occur in the second
   (8+ words: 6 shared, 11+: 9 shared, 16+: 12 shared).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

__all__: Sequence[str] = (
    "MatchRule",
    "SimilarityVerdict",
    "MatchedPair",
    "ReconciliationResult",
    "tokenize",
    "similarity",
    "reconcile",
)

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WINDOW = 4
#: (minimum words in both titles, minimum shared words)
_THRESHOLDS: Tuple[Tuple[int, int], ...] = ((8, 6), (11, 9), (16, 12))


class MatchRule(str, Enum):
    EXACT = "exact match"
    FOUR_IN_A_ROW = "4 words in a row"
    THRESHOLD = "word threshold"


@dataclass(frozen=True, slots=True)
class SimilarityVerdict:
    """Outcome of comparing two titles; ``rule is None`` means no match."""

    rule: Optional[MatchRule] = None
    shared: int = 0

    @property
    def matched(self) -> bool:
        return self.rule is not None

    @property
    def reason(self) -> Optional[str]:
        if self.rule is None:
            return None
        if self.rule is MatchRule.THRESHOLD:
            return f"{self.shared} {self.rule.value}"
        return self.rule.value

    def __bool__(self) -> bool:
        return self.matched


NO_MATCH = SimilarityVerdict()


@dataclass(frozen=True, slots=True)
class MatchedPair:
    old_title: str
    new_title: str
    reason: str


@dataclass(slots=True)
class ReconciliationResult:
    """Old titles split into matched / to-migrate, plus new titles nobody matched."""

    matched: List[MatchedPair] = field(default_factory=list)
    migrate: List[str] = field(default_factory=list)
    new_only: List[str] = field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return {"matched": len(self.matched), "migrate": len(self.migrate), "new_only": len(self.new_only)}


def tokenize(title: str) -> List[str]:
    """Lower-case, drop punctuation, split on whitespace."""
    return _NON_WORD_RE.sub("", title.lower()).split()


def _four_in_a_row(words_a: List[str], words_b: List[str]) -> bool:
    # windows are compared at the same index only, not slid against each other
    if len(words_a) < _WINDOW:
        return False
    return any(
        words_a[i:i + _WINDOW] == words_b[i:i + _WINDOW]
        for i in range(len(words_a) - _WINDOW + 1)
    )


def similarity(a: str, b: str) -> SimilarityVerdict:
    """Compare title *a* (old site) against *b* (new site).

    Not symmetric: the threshold rule counts every word of *a* found in *b*.
    """
    words_a, words_b = tokenize(a), tokenize(b)

    if a.lower() == b.lower() or (words_a and words_a == words_b):
        return SimilarityVerdict(MatchRule.EXACT)

    if _four_in_a_row(words_a, words_b):
        return SimilarityVerdict(MatchRule.FOUR_IN_A_ROW)

    if len(words_a) == len(words_b):
        vocabulary = set(words_b)
        shared = sum(1 for word in words_a if word in vocabulary)
        length = len(words_a)
        if any(length >= min_len and shared >= min_shared for min_len, min_shared in _THRESHOLDS):
            return SimilarityVerdict(MatchRule.THRESHOLD, shared)

    return NO_MATCH


def reconcile(old_titles: Iterable[str], new_titles: Iterable[str]) -> ReconciliationResult:
    """Partition *old_titles* into matched and to-migrate, and find new-only titles.

    Each old title takes the first new title (in the given order) that matches,
    not the best one. New-only titles are computed separately with the old
    title always passed first to :func:`similarity`.
    """
    old = list(old_titles)
    new = list(new_titles)
    result = ReconciliationResult()

    for old_title in old:
        for new_title in new:
            verdict = similarity(old_title, new_title)
            if verdict:
                result.matched.append(MatchedPair(old_title, new_title, verdict.reason or ""))
                break
        else:
            result.migrate.append(old_title)

    result.new_only = [
        new_title for new_title in new if not any(similarity(o, new_title) for o in old)
    ]
    return result
