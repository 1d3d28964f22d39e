"""Structured data extracted from the claim interview.

The AI collaborator returns a JSON document (sometimes wrapped in a
markdown code fence). This module parses it into ``StructuredClaimData``
and folds it into the flat legacy claim record.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Union

from pydantic import ValidationError

from claimgraph.errors import AIError, AIErrorCode
from claimgraph.schema import ClaimForScoring, LegacyClaim, StructuredClaimData

logger = logging.getLogger(__name__)

_NUMERIC = (int, float)


def strip_code_fence(raw_text: str) -> str:
    """Remove a surrounding ```json ... ``` or ``` ... ``` fence."""
    cleaned = raw_text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def parse_extraction_payload(raw_text: str) -> StructuredClaimData:
    """Parse the extraction response into structured claim data.

    Missing or malformed lists become empty, timeline entries accept either
    ``event`` or ``description`` and ``amount`` is kept only when numeric.

    Raises:
        AIError: INVALID_RESPONSE (retryable) if the text is not a JSON object
    """
    cleaned = strip_code_fence(raw_text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse structured data: {e}")
        raise AIError(AIErrorCode.INVALID_RESPONSE, e) from e
    if not isinstance(parsed, dict):
        raise AIError(AIErrorCode.INVALID_RESPONSE, "Extraction payload is not a JSON object")

    timeline = [
        {
            "date": str(t.get("date") or ""),
            "description": t.get("event") or t.get("description") or "",
        }
        for t in _as_list(parsed.get("timeline"))
        if isinstance(t, dict)
    ]
    amount = parsed.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, _NUMERIC):
        amount = None

    try:
        return StructuredClaimData(
            facts_summary=parsed.get("factsSummary") or "",
            timeline=timeline,
            demands=[str(d) for d in _as_list(parsed.get("demands"))],
            missing_fields=[str(f) for f in _as_list(parsed.get("missingFields"))],
            evidence_needed=[str(f) for f in _as_list(parsed.get("evidenceNeeded"))],
            defendant=parsed.get("defendant") or None,
            amount=amount,
            has_written_agreement=bool(parsed.get("hasWrittenAgreement")),
            has_prior_notice=bool(parsed.get("hasPriorNotice")),
            has_proof_of_payment=bool(parsed.get("hasProofOfPayment")),
        )
    except ValidationError as e:
        raise AIError(AIErrorCode.INVALID_RESPONSE, e) from e


def apply_extraction(claim: LegacyClaim, data: StructuredClaimData) -> LegacyClaim:
    """Return a copy of ``claim`` updated with the extracted facts.

    The defendant is filled in only when the claim has none yet, and the
    amount only when the extraction found a positive one.
    """
    update: dict[str, Any] = {
        "facts_summary": data.facts_summary,
        "timeline": [entry.model_copy() for entry in data.timeline],
        "demands": list(data.demands),
        "has_written_agreement": data.has_written_agreement,
        "has_prior_notice": data.has_prior_notice,
        "has_proof_of_payment": data.has_proof_of_payment,
    }
    if data.defendant and not claim.defendant and not claim.defendants:
        update["defendant"] = data.defendant
    if data.amount is not None and data.amount > 0:
        update["amount_claimed_nis"] = data.amount
        update["amount"] = data.amount

    logger.debug(
        f"Applied extraction to claim {claim.id}: {len(data.timeline)} events, "
        f"{len(data.demands)} demands"
    )
    return claim.model_copy(update=update, deep=True)


def claim_for_scoring(claim: Union[LegacyClaim, dict[str, Any]], has_signature: bool = False) -> ClaimForScoring:
    """Flatten a legacy claim into the legacy confidence scorer's input."""
    if not isinstance(claim, LegacyClaim):
        claim = LegacyClaim.model_validate(claim)
    plaintiff = claim.plaintiff
    first_defendant = claim.defendants[0] if claim.defendants else None

    return ClaimForScoring(
        plaintiff_name=claim.plaintiff_name or (plaintiff.full_name if plaintiff else None),
        plaintiff_id=claim.plaintiff_id or (plaintiff.id_number if plaintiff else None),
        plaintiff_phone=claim.plaintiff_phone or (plaintiff.phone if plaintiff else None),
        plaintiff_address=claim.plaintiff_address or (plaintiff.address if plaintiff else None),
        defendant=claim.defendant or (first_defendant.name if first_defendant else None),
        defendant_address=claim.defendant_address or (first_defendant.address if first_defendant else None),
        amount=claim.claimed_amount or None,
        facts_summary=claim.facts_text or None,
        claim_type=claim.claim_type,
        timeline=[entry.model_copy() for entry in claim.timeline],
        demands=list(claim.demands),
        evidence_count=len(claim.evidence),
        incident_date=claim.incident_date,
        has_signature=has_signature or claim.has_signature,
        has_written_agreement=bool(claim.has_written_agreement),
        has_prior_notice=bool(claim.has_prior_notice),
        has_proof_of_payment=bool(claim.has_proof_of_payment),
    )
