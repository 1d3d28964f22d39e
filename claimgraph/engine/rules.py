"""Deterministic rules for a small-claims filing.

Each rule inspects the case graph and returns at most one finding:

- blockers: must be fixed before the claim can be filed
- warnings: should be fixed, the claim is weaker without them
- infos: positive or neutral observations

Rules are evaluated in a fixed order, never consult each other and never
call an external service.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from claimgraph.config.legal import format_amount
from claimgraph.config_loader import Settings, default_settings
from claimgraph.graph import queries as q
from claimgraph.graph.models import CaseGraph

logger = logging.getLogger(__name__)


class RuleSeverity(str, Enum):
    BLOCKER = "blocker"
    WARNING = "warning"
    INFO = "info"


@dataclass
class RuleResult:
    """One finding of one rule.

    Attributes:
        rule_id: Stable identifier, used to pick next actions
        severity: blocker, warning or info
        title: Short headline for the user
        description: What is wrong and how to fix it
        icon: Display icon
        related_node_ids: Nodes the finding is about (for linking in the UI)
    """

    rule_id: str
    severity: RuleSeverity
    title: str
    description: str
    icon: str
    related_node_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


@dataclass
class NextAction:
    """A recommended step. Lower priority is more urgent."""

    id: str
    title: str
    description: str
    icon: str
    priority: int
    screen: Optional[str] = None     # Screen the UI should open

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RulesOutput:
    blockers: list[RuleResult]
    warnings: list[RuleResult]
    infos: list[RuleResult]
    next_actions: list[NextAction]

    @property
    def can_file(self) -> bool:
        """The claim can be filed when no blocker fired."""
        return not self.blockers

    def to_dict(self) -> dict[str, Any]:
        return {
            "blockers": [r.to_dict() for r in self.blockers],
            "warnings": [r.to_dict() for r in self.warnings],
            "infos": [r.to_dict() for r in self.infos],
            "nextActions": [a.to_dict() for a in self.next_actions],
            "canFile": self.can_file,
        }


RuleFn = Callable[[CaseGraph, Settings], Optional[RuleResult]]


def _blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


# ========== Blockers ==========


def rule_no_plaintiff(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    plaintiff = q.get_plaintiff(graph)
    if plaintiff is not None and not _blank(plaintiff.full_name):
        return None
    return RuleResult(
        rule_id="no_plaintiff",
        severity=RuleSeverity.BLOCKER,
        title="Plaintiff details are missing",
        description="Fill in the plaintiff's full name, ID number, phone and address.",
        icon="🚫",
    )


def rule_no_defendant(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    if q.get_defendants(graph):
        return None
    return RuleResult(
        rule_id="no_defendant",
        severity=RuleSeverity.BLOCKER,
        title="No defendant",
        description="Every claim needs at least one defendant with a name and address.",
        icon="🚫",
    )


def rule_no_amount(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    if q.get_total_amount(graph) > 0:
        return None
    return RuleResult(
        rule_id="no_amount",
        severity=RuleSeverity.BLOCKER,
        title="No claim amount",
        description="State the amount you are claiming.",
        icon="💰",
    )


def rule_amount_exceeds_limit(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    amount = q.get_total_amount(graph)
    ceiling = settings.legal.max_claim_amount
    if amount <= 0 or amount <= ceiling:
        return None
    return RuleResult(
        rule_id="amount_exceeds_limit",
        severity=RuleSeverity.BLOCKER,
        title="Amount exceeds the small claims limit",
        description=(
            f"The amount ({format_amount(amount, settings.legal)}) is above the ceiling "
            f"({format_amount(ceiling, settings.legal)}). Reduce the amount or file with the "
            f"Magistrate Court."
        ),
        icon="⚠️",
    )


def rule_no_facts_summary(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    events = q.get_events(graph)
    if len(events) >= 2:
        return None
    # One event plus one demand is enough narrative
    if events and q.get_demands(graph):
        return None
    return RuleResult(
        rule_id="no_facts_summary",
        severity=RuleSeverity.BLOCKER,
        title="The events are not described",
        description="Describe what happened that led to the claim. Complete the interview.",
        icon="📝",
    )


def rule_plaintiff_missing_id(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    plaintiff = q.get_plaintiff(graph)
    if plaintiff is None or not _blank(plaintiff.id_number):
        return None
    return RuleResult(
        rule_id="plaintiff_missing_id",
        severity=RuleSeverity.BLOCKER,
        title="Plaintiff ID number is missing",
        description="The ID number is a required field on the statement of claim.",
        icon="🪪",
        related_node_ids=[plaintiff.id],
    )


def rule_plaintiff_missing_address(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    plaintiff = q.get_plaintiff(graph)
    if plaintiff is None or not _blank(plaintiff.address):
        return None
    return RuleResult(
        rule_id="plaintiff_missing_address",
        severity=RuleSeverity.BLOCKER,
        title="Plaintiff address is missing",
        description="A home address is required on the statement of claim.",
        icon="📍",
        related_node_ids=[plaintiff.id],
    )


# ========== Warnings ==========


def rule_no_prior_notice(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    if q.has_prior_notice(graph):
        return None
    return RuleResult(
        rule_id="no_prior_notice",
        severity=RuleSeverity.WARNING,
        title="No prior notice was sent",
        description=(
            "The court expects you to have tried to settle the dispute before filing. "
            "Sending a warning letter is recommended."
        ),
        icon="✉️",
    )


def rule_no_evidence(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    if q.get_evidence(graph):
        return None
    return RuleResult(
        rule_id="no_evidence",
        severity=RuleSeverity.WARNING,
        title="No evidence attached",
        description="A claim without evidence may be dismissed. Attach receipts, contracts, messages or photos.",
        icon="📎",
    )


def rule_uncovered_events(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    uncovered = q.get_uncovered_events(graph)
    if not uncovered:
        return None
    return RuleResult(
        rule_id="uncovered_events",
        severity=RuleSeverity.WARNING,
        title=f"{len(uncovered)} events without supporting evidence",
        description="Some timeline events are not linked to evidence. Link evidence to strengthen the claim.",
        icon="🔗",
        related_node_ids=[e.id for e in uncovered],
    )


def rule_unlinked_evidence(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    unlinked = q.get_unlinked_evidence(graph)
    if not unlinked:
        return None
    return RuleResult(
        rule_id="unlinked_evidence",
        severity=RuleSeverity.WARNING,
        title=f"{len(unlinked)} evidence items are not linked",
        description="Some evidence is not linked to an event or demand. Link it so it counts.",
        icon="📌",
        related_node_ids=[e.id for e in unlinked],
    )


def rule_no_timeline(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    if q.get_events(graph):
        return None
    return RuleResult(
        rule_id="no_timeline",
        severity=RuleSeverity.WARNING,
        title="No timeline",
        description="A clear timeline of events helps the judge understand the case.",
        icon="📅",
    )


def rule_vague_summary(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    events = q.get_events(graph)
    # No events at all is reported by no_facts_summary
    if not events:
        return None
    total_length = sum(len(e.description or "") for e in events)
    if total_length >= settings.rules.min_narrative_chars:
        return None
    return RuleResult(
        rule_id="vague_summary",
        severity=RuleSeverity.WARNING,
        title="The description is too short",
        description="A more detailed description of the events improves the claim's chances.",
        icon="📋",
    )


def rule_no_written_agreement(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    tags = set(settings.rules.contract_evidence_tags)
    if any(e.tag in tags for e in q.get_evidence(graph)):
        return None

    terms = settings.rules.contract_terms
    mentions_contract = any(
        term in (event.description or "").lower()
        for event in q.get_events(graph)
        for term in terms
    )
    if not mentions_contract:
        return None
    return RuleResult(
        rule_id="no_written_agreement",
        severity=RuleSeverity.WARNING,
        title="No written agreement attached",
        description="A contract claim is stronger with the written agreement attached.",
        icon="📝",
    )


def rule_no_legal_basis(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    unsubstantiated = [d for d in q.get_demands(graph) if _blank(d.legal_basis)]
    if not unsubstantiated:
        return None
    return RuleResult(
        rule_id="no_legal_basis",
        severity=RuleSeverity.WARNING,
        title="Demands without a legal basis",
        description="Citing the relevant statute for each demand improves the chances of winning.",
        icon="⚖️",
        related_node_ids=[d.id for d in unsubstantiated],
    )


# ========== Info ==========


def rule_strong_case(graph: CaseGraph, settings: Settings) -> Optional[RuleResult]:
    demands = q.get_demands(graph)
    if (
        len(q.get_evidence(graph)) >= 3
        and len(q.get_events(graph)) >= 3
        and demands
        and len(q.get_covered_demands(graph)) == len(demands)
        and q.has_prior_notice(graph)
    ):
        return RuleResult(
            rule_id="strong_case",
            severity=RuleSeverity.INFO,
            title="The case is strong and well supported",
            description=(
                "There is evidence, a timeline and a prior notice, and every demand is "
                "supported. Moving on to filing is recommended."
            ),
            icon="💪",
        )
    return None


RULES: tuple[RuleFn, ...] = (
    # Blockers
    rule_no_plaintiff,
    rule_no_defendant,
    rule_no_amount,
    rule_amount_exceeds_limit,
    rule_no_facts_summary,
    rule_plaintiff_missing_id,
    rule_plaintiff_missing_address,
    # Warnings
    rule_no_prior_notice,
    rule_no_evidence,
    rule_uncovered_events,
    rule_unlinked_evidence,
    rule_no_timeline,
    rule_vague_summary,
    rule_no_written_agreement,
    rule_no_legal_basis,
    # Info
    rule_strong_case,
)


# ========== Next actions ==========

# (trigger rule ids, action); an action is added when any trigger fired
_ACTION_CATALOGUE: tuple[tuple[frozenset[str], NextAction], ...] = (
    (
        frozenset({"no_plaintiff", "plaintiff_missing_id", "plaintiff_missing_address"}),
        NextAction("complete_plaintiff", "Complete plaintiff details",
                   "Fill in full name, ID number, phone and address.", "👤", 1, "PlaintiffForm"),
    ),
    (
        frozenset({"no_defendant"}),
        NextAction("add_defendant", "Add a defendant",
                   "Fill in the defendant's name and address.", "🏢", 2, "DefendantForm"),
    ),
    (
        frozenset({"no_amount"}),
        NextAction("set_amount", "Set the claim amount",
                   "State the amount you are claiming.", "💰", 3, "DemandForm"),
    ),
    (
        frozenset({"amount_exceeds_limit"}),
        NextAction("reduce_amount", "Reduce the claim amount",
                   "Lower the total to the small claims ceiling or choose another court.", "⚠️", 3,
                   "DemandForm"),
    ),
    (
        frozenset({"no_facts_summary"}),
        NextAction("complete_interview", "Complete the interview",
                   "Answer the interview questions to build the description of events.", "🤖", 4,
                   "ClaimChat"),
    ),
    (
        frozenset({"no_evidence"}),
        NextAction("add_evidence", "Add evidence",
                   "Photograph or upload supporting documents.", "📷", 5, "EvidenceLinking"),
    ),
    (
        frozenset({"no_prior_notice"}),
        NextAction("send_notice", "Send a warning letter",
                   "Create and send a warning letter to the defendant.", "✉️", 6, "WarningLetter"),
    ),
    (
        frozenset({"uncovered_events", "unlinked_evidence"}),
        NextAction("link_evidence", "Link evidence to events",
                   "Strengthen the case by linking evidence to events.", "🔗", 7, "EvidenceLinking"),
    ),
)

# Added once nothing blocks filing
_READY_ACTIONS: tuple[NextAction, ...] = (
    NextAction("generate_filing", "Create the statement of claim",
               "Produce a document ready for filing.", "📄", 10, "ClaimDetail"),
    NextAction("mock_hearing", "Practice a mock hearing",
               "Rehearse with a simulated judge before the hearing.", "⚖️", 11, "MockTrial"),
)


def generate_next_actions(blockers: list[RuleResult], warnings: list[RuleResult]) -> list[NextAction]:
    """Map fired rules to remediation actions, most urgent first."""
    fired = {r.rule_id for r in blockers} | {r.rule_id for r in warnings}
    actions = [
        NextAction(**asdict(action))
        for triggers, action in _ACTION_CATALOGUE
        if triggers & fired
    ]
    if not blockers:
        actions.extend(NextAction(**asdict(action)) for action in _READY_ACTIONS)
    return sorted(actions, key=lambda a: a.priority)


def evaluate_rules(graph: CaseGraph, settings: Optional[Settings] = None) -> RulesOutput:
    """Run every rule against the graph.

    Args:
        graph: Case graph to check
        settings: Settings for the ceiling and thresholds (defaults if None)

    Returns:
        RulesOutput with findings grouped by severity and the next actions
    """
    settings = settings or default_settings()
    buckets: dict[RuleSeverity, list[RuleResult]] = {s: [] for s in RuleSeverity}

    for rule in RULES:
        result = rule(graph, settings)
        if result is not None:
            buckets[result.severity].append(result)

    blockers = buckets[RuleSeverity.BLOCKER]
    warnings = buckets[RuleSeverity.WARNING]
    output = RulesOutput(
        blockers=blockers,
        warnings=warnings,
        infos=buckets[RuleSeverity.INFO],
        next_actions=generate_next_actions(blockers, warnings),
    )
    logger.debug(
        f"Rules for claim {graph.claim_id}: {len(blockers)} blockers, "
        f"{len(warnings)} warnings, {len(output.infos)} infos"
    )
    return output
