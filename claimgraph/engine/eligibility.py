"""Pre-interview gate: can this dispute be filed as a small claim at all?

Runs before the interview so the user learns about a blocking condition
before spending time on it. Works on a short summary, not on the graph.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional

from claimgraph.config.legal import find_blocked_plaintiff_type, format_amount, is_valid_plaintiff_type
from claimgraph.config_loader import LegalConfig, Settings, default_settings
from claimgraph.schema import EligibilityInput


class EligibilityVerdict(str, Enum):
    ELIGIBLE = "eligible"
    INELIGIBLE = "ineligible"
    NEEDS_REVIEW = "needs_review"


VERDICT_TEXT = {
    EligibilityVerdict.ELIGIBLE: "The claim can be filed as a small claim ✅",
    EligibilityVerdict.INELIGIBLE: "The claim cannot be filed as a small claim",
    EligibilityVerdict.NEEDS_REVIEW: "It may be possible; further review is needed",
}


@dataclass
class EligibilityBlocker:
    id: str
    title: str
    description: str
    icon: str
    fixable: bool                    # The user can resolve it (e.g. lower the amount)
    suggestion: Optional[str] = None


@dataclass
class EligibilityResult:
    verdict: EligibilityVerdict
    blockers: list[EligibilityBlocker] = field(default_factory=list)
    verdict_text: str = ""
    alternative_court: Optional[str] = None   # Only set when ineligible

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "verdict": self.verdict.value,
            "blockers": [asdict(b) for b in self.blockers],
            "verdictText": self.verdict_text,
        }
        if self.alternative_court is not None:
            data["alternativeCourt"] = self.alternative_court
        return data


def check_eligibility(
    data: EligibilityInput | dict[str, Any], settings: Optional[Settings] = None
) -> EligibilityResult:
    """Screen a dispute against the small-claims admission conditions.

    Args:
        data: Plaintiff type, estimated amount (0 if unknown), category and flags
        settings: Settings for the ceiling and alternative courts

    Returns:
        ``ineligible`` if any unfixable blocker fired, ``needs_review`` if only
        fixable ones did, ``eligible`` otherwise
    """
    if not isinstance(data, EligibilityInput):
        data = EligibilityInput.model_validate(data)
    legal = (settings or default_settings()).legal
    blockers: list[EligibilityBlocker] = []

    blocked = find_blocked_plaintiff_type(data.plaintiff_type)
    if blocked is not None:
        blockers.append(EligibilityBlocker(
            id="blocked_plaintiff_type",
            title=f"{blocked.label} may not sue",
            description=blocked.reason,
            icon="🚫",
            fixable=False,
        ))

    if data.estimated_amount > legal.max_claim_amount:
        blockers.append(EligibilityBlocker(
            id="amount_too_high",
            title="Amount exceeds the limit",
            description=(
                f"The small claims ceiling is {format_amount(legal.max_claim_amount, legal)}. "
                f"The amount you gave ({format_amount(data.estimated_amount, legal)}) is above it."
            ),
            icon="💰",
            fixable=True,
            suggestion=(
                "You can reduce the claim to the ceiling and waive the difference, or file "
                "with the Magistrate Court."
            ),
        ))

    if data.is_government_defendant:
        blockers.append(EligibilityBlocker(
            id="government_defendant",
            title="Claim against a government body",
            description=(
                "Claims against the state or public authorities follow special rules and "
                "often cannot be filed as small claims."
            ),
            icon="🏛️",
            fixable=False,
            suggestion="Consult a lawyer. You may need to apply to the administrative court.",
        ))

    if data.is_class_action:
        blockers.append(EligibilityBlocker(
            id="class_action",
            title="Class action",
            description="A class action is not heard in the small claims court.",
            icon="👥",
            fixable=False,
            suggestion="Class actions are filed with the District Court. Consult a lawyer.",
        ))

    if data.is_statute_expired:
        blockers.append(EligibilityBlocker(
            id="statute_expired",
            title="Possible limitation period",
            description=(
                "If more than 3 years have passed since the incident (7 for a contract), the "
                "claim may be dismissed as time-barred."
            ),
            icon="⏰",
            fixable=False,
            suggestion="Check the exact date. The limitation period depends on the type of claim.",
        ))

    if data.is_real_estate_ownership:
        blockers.append(EligibilityBlocker(
            id="real_estate",
            title="Real estate ownership dispute",
            description="Disputes over ownership of real estate are not heard as small claims.",
            icon="🏗️",
            fixable=False,
            suggestion="Apply to the Magistrate or District Court, depending on the property value.",
        ))

    if data.is_defamation:
        blockers.append(EligibilityBlocker(
            id="defamation",
            title="Defamation claim",
            description=(
                "A defamation claim can be filed as a small claim only up to the ceiling, "
                "and publication must be proven."
            ),
            icon="🗣️",
            fixable=True,
            suggestion="Make sure the amount is within the ceiling and that you can prove publication.",
        ))

    if any(not b.fixable for b in blockers):
        verdict = EligibilityVerdict.INELIGIBLE
    elif blockers:
        verdict = EligibilityVerdict.NEEDS_REVIEW
    else:
        verdict = EligibilityVerdict.ELIGIBLE

    return EligibilityResult(
        verdict=verdict,
        blockers=blockers,
        verdict_text=VERDICT_TEXT[verdict],
        alternative_court=(
            determine_alternative_court(blockers, legal)
            if verdict == EligibilityVerdict.INELIGIBLE
            else None
        ),
    )


# Checked in order; first fired blocker wins
_COURT_PRIORITY = ("class_action", "government_defendant", "real_estate", "amount_too_high")


def determine_alternative_court(blockers: list[EligibilityBlocker], legal: LegalConfig) -> str:
    """Suggest the forum to apply to instead."""
    fired = {b.id for b in blockers}
    courts = legal.alternative_courts
    for blocker_id in _COURT_PRIORITY:
        if blocker_id in fired and blocker_id in courts:
            return courts[blocker_id]
    return courts.get("default", "Magistrate Court")


def is_quick_eligible(plaintiff_type: str, amount: float, settings: Optional[Settings] = None) -> bool:
    """Cheap check for UI badges: allowed plaintiff type and amount unknown or within the ceiling."""
    legal = (settings or default_settings()).legal
    return is_valid_plaintiff_type(plaintiff_type) and (amount <= 0 or amount <= legal.max_claim_amount)
