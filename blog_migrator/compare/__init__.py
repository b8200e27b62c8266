"""Old site vs. new site title reconciliation."""
from blog_migrator.compare.reconciler import (
    MatchRule,
    ReconciliationResult,
    SimilarityVerdict,
    reconcile,
    similarity,
    tokenize,
)

__all__ = ["MatchRule", "ReconciliationResult", "SimilarityVerdict", "reconcile", "similarity", "tokenize"]
