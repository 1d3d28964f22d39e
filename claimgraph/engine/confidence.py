"""Legacy confidence scoring over a flat claim record.

Produces a filing readiness score, an evidence strength estimate, missing
fields, risk flags and improvement suggestions. New callers should use
``graph_scoring.score_graph`` (or ``score_flat_claim``); this module stays
for screens that still read the flat record.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal, Optional

from claimgraph.config.legal import format_amount
from claimgraph.config_loader import Settings, default_settings
from claimgraph.engine.graph_scoring import StrengthScore
from claimgraph.schema import ClaimForScoring

Priority = Literal["high", "medium", "low"]

_PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


@dataclass
class RiskFlag:
    id: str
    severity: Priority
    title: str
    description: str
    icon: str


@dataclass
class MissingField:
    field: str
    label: str
    importance: Literal["required", "recommended"]


@dataclass
class Suggestion:
    id: str
    title: str
    description: str
    priority: Priority
    icon: str


@dataclass
class ScoreBreakdown:
    required_fields: int = 0    # max 40
    valid_amount: int = 0       # max 10
    demands: int = 0            # max 10
    timeline: int = 0           # max 10
    evidence: int = 0           # max 15
    signature: int = 0          # max 15

    @property
    def total(self) -> int:
        return sum(asdict(self).values())


@dataclass
class ConfidenceResult:
    readiness_score: int
    strength_score: StrengthScore
    missing_fields: list[MissingField]
    risk_flags: list[RiskFlag]
    suggestions: list[Suggestion]
    breakdown: ScoreBreakdown

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["strength_score"] = self.strength_score.value
        return data


def calculate_confidence(
    claim: ClaimForScoring | dict[str, Any], settings: Optional[Settings] = None
) -> ConfidenceResult:
    """Score a flat claim record."""
    if not isinstance(claim, ClaimForScoring):
        claim = ClaimForScoring.model_validate(claim)
    settings = settings or default_settings()

    breakdown = calculate_breakdown(claim, settings)
    missing = find_missing_fields(claim)
    risks = find_risk_flags(claim, settings)
    return ConfidenceResult(
        readiness_score=min(100, breakdown.total),
        strength_score=calculate_strength(claim),
        missing_fields=missing,
        risk_flags=risks,
        suggestions=generate_suggestions(claim, missing, risks),
        breakdown=breakdown,
    )


def _filled(value: Optional[str]) -> bool:
    return bool((value or "").strip())


def calculate_breakdown(claim: ClaimForScoring, settings: Settings) -> ScoreBreakdown:
    """40 + 10 + 10 + 10 + 15 + 15 = 100."""
    b = ScoreBreakdown()

    weighted_fields = (
        (claim.plaintiff_name, 8),
        (claim.plaintiff_id, 4),
        (claim.plaintiff_phone, 4),
        (claim.plaintiff_address, 4),
        (claim.defendant, 8),
        (claim.defendant_address, 4),
        (claim.summary_text, 8),
    )
    b.required_fields = sum(weight for value, weight in weighted_fields if _filled(value))

    amount = claim.amount or 0
    if amount > 0:
        b.valid_amount = 10 if amount <= settings.legal.max_claim_amount else 5

    if claim.demands:
        b.demands = min(10, len(claim.demands) * 5)
    elif amount > 0:
        # An amount with no explicit demand still earns partial credit
        b.demands = 5

    if claim.timeline:
        b.timeline = min(10, len(claim.timeline) * 3)
    elif claim.incident_date:
        b.timeline = 4

    if claim.evidence_count > 0:
        b.evidence = min(15, claim.evidence_count * 5)

    b.signature = 15 if claim.has_signature else 0
    return b


def calculate_strength(claim: ClaimForScoring) -> StrengthScore:
    """Heuristic strength from evidence, timeline, documents and narrative."""
    score = 0

    if claim.evidence_count <= 0:
        score -= 2
    elif claim.evidence_count >= 3:
        score += 3
    else:
        score += 1

    if not claim.timeline:
        if not claim.incident_date:
            score -= 1
    elif len(claim.timeline) >= 3:
        score += 2
    else:
        score += 1

    if claim.has_written_agreement:
        score += 2
    if claim.has_prior_notice:
        score += 1
    if claim.has_proof_of_payment:
        score += 1

    summary_length = len(claim.summary_text)
    if summary_length > 200:
        score += 2
    elif summary_length > 50:
        score += 1

    if len(claim.demands) >= 2:
        score += 1

    if score >= 6:
        return StrengthScore.STRONG
    if score >= 2:
        return StrengthScore.MEDIUM
    return StrengthScore.WEAK


def find_missing_fields(claim: ClaimForScoring) -> list[MissingField]:
    checks = (
        ("plaintiffName", "Plaintiff full name", "required", _filled(claim.plaintiff_name)),
        ("plaintiffId", "ID number", "required", _filled(claim.plaintiff_id)),
        ("plaintiffPhone", "Phone number", "required", _filled(claim.plaintiff_phone)),
        ("plaintiffAddress", "Home address", "required", _filled(claim.plaintiff_address)),
        ("defendant", "Defendant / business name", "required", _filled(claim.defendant)),
        ("defendantAddress", "Defendant address", "recommended", _filled(claim.defendant_address)),
        ("amount", "Claim amount", "required", (claim.amount or 0) > 0),
        ("summary", "Description of the incident", "required", _filled(claim.summary_text)),
        ("demands", "Demands / relief sought", "recommended", bool(claim.demands)),
        ("timeline", "Timeline of events", "recommended", bool(claim.timeline)),
        ("signature", "Digital signature", "recommended", claim.has_signature),
        ("evidence", "Evidence (photos / documents)", "recommended", claim.evidence_count > 0),
    )
    return [
        MissingField(field=name, label=label, importance=importance)
        for name, label, importance, present in checks
        if not present
    ]


def find_risk_flags(claim: ClaimForScoring, settings: Optional[Settings] = None) -> list[RiskFlag]:
    legal = (settings or default_settings()).legal
    amount = claim.amount or 0
    flags: list[RiskFlag] = []

    if not claim.has_written_agreement and claim.claim_type == "contract":
        flags.append(RiskFlag(
            "no_written_agreement", "high", "No written agreement",
            "A breach of contract claim without a written document can be hard to prove. "
            "Look for any record of the agreement (messages, emails and the like).",
            "📝",
        ))

    if not claim.has_prior_notice:
        flags.append(RiskFlag(
            "no_prior_notice", "medium", "No prior notice was sent",
            "The court expects you to have tried to resolve the problem before filing. "
            "Send the defendant a warning letter.",
            "✉️",
        ))

    if not claim.has_proof_of_payment and amount > 0:
        flags.append(RiskFlag(
            "no_proof_of_payment", "medium", "No proof of payment",
            "If you paid for a service or product, show a receipt, bank transfer or statement.",
            "💳",
        ))

    if amount > legal.max_claim_amount:
        flags.append(RiskFlag(
            "amount_exceeds_limit", "high", "Amount exceeds the limit",
            f"The claim amount ({format_amount(amount, legal)}) exceeds the small claims limit "
            f"({format_amount(legal.max_claim_amount, legal)}). The claim will be rejected or "
            f"you will have to waive the difference.",
            "⚠️",
        ))

    if claim.evidence_count <= 0:
        flags.append(RiskFlag(
            "no_evidence", "high", "No evidence attached",
            "A claim without supporting evidence may be dismissed. Add photos, receipts, "
            "contracts or correspondence.",
            "📎",
        ))

    if len(claim.summary_text) < 50:
        flags.append(RiskFlag(
            "vague_description", "medium", "The description is not detailed enough",
            "A description that is too short may not make your case clear. Complete the "
            "interview to add detail.",
            "📋",
        ))

    return flags


def generate_suggestions(
    claim: ClaimForScoring,
    missing: list[MissingField],
    risks: list[RiskFlag],
) -> list[Suggestion]:
    """Improvement suggestions, high priority first."""
    suggestions: list[Suggestion] = []

    required_missing = [m for m in missing if m.importance == "required"]
    if required_missing:
        suggestions.append(Suggestion(
            "complete_required_fields", "Complete required fields",
            f"{len(required_missing)} required fields are missing: "
            f"{', '.join(m.label for m in required_missing)}",
            "high", "✏️",
        ))

    if claim.evidence_count <= 0:
        suggestions.append(Suggestion(
            "add_evidence", "Add evidence",
            "Photograph receipts, contracts, correspondence or any document that supports "
            "your claims. More evidence means a better chance of winning.",
            "high", "📷",
        ))
    elif claim.evidence_count < 3:
        suggestions.append(Suggestion(
            "more_evidence", "Add more evidence",
            "The more supporting evidence you have, the stronger your case.",
            "medium", "📎",
        ))

    if not claim.has_prior_notice:
        suggestions.append(Suggestion(
            "send_notice", "Send a warning letter",
            "Before filing, send the defendant a warning letter. It shows the court you tried "
            "to resolve the problem.",
            "high", "✉️",
        ))

    if not claim.has_signature:
        suggestions.append(Suggestion(
            "add_signature", "Add a signature",
            "The statement of claim must be signed. Add a digital signature.",
            "medium", "✍️",
        ))

    if not claim.timeline:
        suggestions.append(Suggestion(
            "add_timeline", "Add a timeline",
            "A clear timeline of the events helps the judge understand your case.",
            "medium", "📅",
        ))

    if claim.evidence_count > 0 and claim.summary_text:
        suggestions.append(Suggestion(
            "mock_hearing", "Practice a mock hearing",
            "Rehearsing with a simulated judge prepares you for hard questions at the hearing.",
            "low", "⚖️",
        ))

    return sorted(suggestions, key=lambda s: _PRIORITY_ORDER[s.priority])


# ========== Labels ==========


def get_readiness_label(score: float) -> str:
    if score >= 80:
        return "Ready to file"
    if score >= 60:
        return "Almost ready"
    if score >= 40:
        return "In progress"
    if score >= 20:
        return "Getting started"
    return "Initial"


def get_strength_label(strength: StrengthScore | str) -> str:
    return {
        StrengthScore.STRONG: "Strong",
        StrengthScore.MEDIUM: "Medium",
        StrengthScore.WEAK: "Weak",
    }[StrengthScore(strength)]
