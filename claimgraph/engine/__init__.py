"""Deterministic assessment of a case: rules, scores and eligibility."""

from claimgraph.engine.confidence import calculate_confidence
from claimgraph.engine.eligibility import EligibilityVerdict, check_eligibility, is_quick_eligible
from claimgraph.engine.graph_scoring import GraphScoreResult, StrengthScore, score_flat_claim, score_graph
from claimgraph.engine.rules import RulesOutput, evaluate_rules

__all__ = [
    "evaluate_rules",
    "RulesOutput",
    "score_graph",
    "score_flat_claim",
    "GraphScoreResult",
    "StrengthScore",
    "calculate_confidence",
    "check_eligibility",
    "is_quick_eligible",
    "EligibilityVerdict",
]
