"""Graph-based scoring. This is the canonical scorer.

Scores (each 0-100):
- readiness: can this claim be filed?
- evidence coverage: how well are events and demands supported?
- timeline consistency: is the timeline coherent?
- legal completeness: how many rules fire?

The flat-record scorer in ``confidence`` remains for callers that have not
moved to the graph; ``score_flat_claim`` routes those callers here instead.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Optional

from claimgraph.config_loader import Settings, default_settings
from claimgraph.engine.rules import evaluate_rules
from claimgraph.graph import queries as q
from claimgraph.graph.builder import build_graph_from_claim
from claimgraph.graph.dates import chronological_key
from claimgraph.graph.ids import IdGenerator, uuid_ids
from claimgraph.graph.models import CaseGraph
from claimgraph.graph.queries import round_half_up
from claimgraph.schema import LegacyClaim

logger = logging.getLogger(__name__)


class StrengthScore(str, Enum):
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


# Upper bound of each breakdown component
BREAKDOWN_CAPS = {
    "plaintiff_data": 20,
    "defendant_data": 10,
    "claim_substance": 15,
    "narrative": 15,
    "evidence_score": 20,
    "procedural": 10,
    "legal_basis": 10,
}


@dataclass
class GraphScoreBreakdown:
    """Readiness points per area.

    Attributes:
        plaintiff_data: Plaintiff details complete (max 20)
        defendant_data: Defendant details complete (max 10)
        claim_substance: Amount and demands (max 15)
        narrative: Timeline and events (max 15)
        evidence_score: Evidence count and linking (max 20)
        procedural: Prior notice and communication (max 10)
        legal_basis: Demands citing a legal basis (max 10)
    """

    plaintiff_data: int = 0
    defendant_data: int = 0
    claim_substance: int = 0
    narrative: int = 0
    evidence_score: int = 0
    procedural: int = 0
    legal_basis: int = 0

    @property
    def total(self) -> int:
        return sum(asdict(self).values())

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class GraphScoreResult:
    readiness_score: int
    evidence_coverage: int
    timeline_consistency: int
    legal_completeness: int
    strength_score: StrengthScore
    breakdown: GraphScoreBreakdown

    def to_dict(self) -> dict[str, Any]:
        return {
            "readinessScore": self.readiness_score,
            "evidenceCoverage": self.evidence_coverage,
            "timelineConsistency": self.timeline_consistency,
            "legalCompleteness": self.legal_completeness,
            "strengthScore": self.strength_score.value,
            "breakdown": self.breakdown.as_dict(),
        }


def score_graph(graph: CaseGraph, settings: Optional[Settings] = None) -> GraphScoreResult:
    """Score a case graph.

    Args:
        graph: Case graph to score
        settings: Settings for the ceiling, penalties and strength thresholds

    Returns:
        GraphScoreResult with the four metrics, strength and breakdown
    """
    settings = settings or default_settings()

    breakdown = calculate_breakdown(graph, settings)
    readiness = min(100, breakdown.total)
    coverage = calculate_evidence_coverage(graph)
    timeline = calculate_timeline_consistency(graph)
    legal = calculate_legal_completeness(graph, settings)
    strength = determine_strength(readiness, coverage, timeline, settings)

    logger.debug(
        f"Scored claim {graph.claim_id}: readiness={readiness} coverage={coverage} "
        f"timeline={timeline} legal={legal} strength={strength.value}"
    )
    return GraphScoreResult(
        readiness_score=readiness,
        evidence_coverage=coverage,
        timeline_consistency=timeline,
        legal_completeness=legal,
        strength_score=strength,
        breakdown=breakdown,
    )


def score_flat_claim(
    claim: LegacyClaim | dict[str, Any],
    *,
    ids: IdGenerator = uuid_ids,
    settings: Optional[Settings] = None,
) -> GraphScoreResult:
    """Score a flat legacy record by migrating it to a graph first."""
    graph = build_graph_from_claim(claim, ids=ids, settings=settings)
    return score_graph(graph, settings)


# ========== Breakdown ==========


def _filled(value: Optional[str]) -> bool:
    return bool((value or "").strip())


def calculate_breakdown(graph: CaseGraph, settings: Settings) -> GraphScoreBreakdown:
    """Readiness points per area; the components sum to at most 100."""
    b = GraphScoreBreakdown()

    plaintiff = q.get_plaintiff(graph)
    if plaintiff is not None:
        b.plaintiff_data += 6 if _filled(plaintiff.full_name) else 0
        b.plaintiff_data += 5 if _filled(plaintiff.id_number) else 0
        b.plaintiff_data += 4 if _filled(plaintiff.phone) else 0
        b.plaintiff_data += 5 if _filled(plaintiff.address) else 0

    defendants = q.get_defendants(graph)
    if defendants:
        first = defendants[0]
        b.defendant_data += 6 if _filled(first.full_name) else 0
        b.defendant_data += 4 if _filled(first.address) else 0

    amount = q.get_total_amount(graph)
    demands = q.get_demands(graph)
    if amount > 0:
        b.claim_substance += 5
        if amount <= settings.legal.max_claim_amount:
            b.claim_substance += 3
    if len(demands) >= 1:
        b.claim_substance += 4
    if len(demands) >= 2:
        b.claim_substance += 3

    events = q.get_events(graph)
    for tier in (1, 3):
        if len(events) >= tier:
            b.narrative += 4
    if len(events) >= 5:
        b.narrative += 3
    if sum(1 for e in events if len(e.description or "") > 20) >= 2:
        b.narrative += 4

    evidence = q.get_evidence(graph)
    for tier in (1, 3):
        if len(evidence) >= tier:
            b.evidence_score += 5
    if len(evidence) >= 5:
        b.evidence_score += 3
    linked = len(evidence) - len(q.get_unlinked_evidence(graph))
    if linked >= 1:
        b.evidence_score += 3
    if linked >= 3:
        b.evidence_score += 4

    if q.has_prior_notice(graph):
        b.procedural += 7
    if len(q.get_communications(graph)) >= 2:
        b.procedural += 3

    substantiated = [d for d in demands if _filled(d.legal_basis)]
    if substantiated:
        b.legal_basis += 5
        if len(substantiated) == len(demands):
            b.legal_basis += 5

    return b


# ========== Sub-scores ==========


def calculate_evidence_coverage(graph: CaseGraph) -> int:
    """Percentage of events and demands with supporting evidence."""
    evidence = q.get_evidence(graph)
    if not evidence:
        return 0

    events = q.get_events(graph)
    demands = q.get_demands(graph)
    total = len(events) + len(demands)
    if total == 0:
        # Evidence exists but there is nothing to link it to
        return 50

    covered = len(q.get_covered_events(graph)) + len(q.get_covered_demands(graph))
    return round_half_up(covered / total * 100)


def calculate_timeline_consistency(graph: CaseGraph) -> int:
    """Coherence of the narrated timeline.

    30 for having several events, up to 30 for the share of dated events,
    up to 20 for the share of described events and 20 more when at least
    two dated events sort into non-decreasing chronological order. Dated but
    unparseable text counts as dated and sorts after the parsed dates.
    """
    events = q.get_events_sorted(graph)
    if not events:
        return 0
    if len(events) == 1:
        return 40

    score = 30

    dated = [e for e in events if _filled(e.date)]
    score += min(30, round_half_up(len(dated) / len(events) * 30))

    described = [e for e in events if len(e.description or "") > 10]
    score += min(20, round_half_up(len(described) / len(events) * 20))

    keys = [chronological_key(e.date) for e in dated]
    if len(keys) >= 2 and all(a <= b for a, b in zip(keys, keys[1:])):
        score += 20

    return min(100, score)


def calculate_legal_completeness(graph: CaseGraph, settings: Settings) -> int:
    """100 minus a fixed penalty per blocker and per warning, floored at 0."""
    rules = evaluate_rules(graph, settings)
    penalty = (
        len(rules.blockers) * settings.scoring.blocker_penalty
        + len(rules.warnings) * settings.scoring.warning_penalty
    )
    return max(0, 100 - penalty)


def determine_strength(
    readiness: float, coverage: float, timeline: float, settings: Optional[Settings] = None
) -> StrengthScore:
    """Classify the average of readiness, coverage and timeline."""
    scoring = (settings or default_settings()).scoring
    average = (readiness + coverage + timeline) / 3
    if average >= scoring.strong_threshold:
        return StrengthScore.STRONG
    if average >= scoring.medium_threshold:
        return StrengthScore.MEDIUM
    return StrengthScore.WEAK
