"""Tests for parsing and applying the interview extraction payload."""

import json

import pytest

from claimgraph.engine.extraction import (
    apply_extraction,
    claim_for_scoring,
    parse_extraction_payload,
    strip_code_fence,
)
from claimgraph.errors import AIError, AIErrorCode
from claimgraph.schema import LegacyClaim, StructuredClaimData

PAYLOAD = {
    "factsSummary": "The landlord kept the 6,000 deposit after I moved out.",
    "timeline": [
        {"date": "2024-03-01", "event": "Signed the lease and paid the deposit"},
        {"date": "2025-02-28", "description": "Moved out and returned the keys"},
        "not an entry",
    ],
    "demands": ["Return of the deposit"],
    "missingFields": ["defendantAddress"],
    "evidenceNeeded": ["Lease", "Bank transfer"],
    "defendant": "Moshe Cohen",
    "amount": 6000,
    "hasWrittenAgreement": True,
    "hasPriorNotice": False,
}


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


def test_parse_fenced_payload():
    data = parse_extraction_payload(f"```json\n{json.dumps(PAYLOAD)}\n```")

    assert data.facts_summary.startswith("The landlord")
    assert [t.text for t in data.timeline] == [
        "Signed the lease and paid the deposit", "Moved out and returned the keys",
    ]
    assert data.demands == ["Return of the deposit"]
    assert data.evidence_needed == ["Lease", "Bank transfer"]
    assert data.amount == 6000
    assert data.has_written_agreement is True
    assert data.has_proof_of_payment is False


def test_parse_tolerates_missing_lists():
    data = parse_extraction_payload('{"factsSummary": "x", "timeline": null, "demands": "oops"}')
    assert data.timeline == []
    assert data.demands == []
    assert data.defendant is None


@pytest.mark.parametrize("amount", ["6000", True, None])
def test_parse_drops_non_numeric_amount(amount):
    data = parse_extraction_payload(json.dumps({"amount": amount}))
    assert data.amount is None


@pytest.mark.parametrize("raw", ["not json at all", "[1, 2, 3]", "```json\n{broken\n```"])
def test_parse_garbage_raises_retryable(raw):
    with pytest.raises(AIError) as exc_info:
        parse_extraction_payload(raw)

    assert exc_info.value.code == AIErrorCode.INVALID_RESPONSE
    assert exc_info.value.retryable


def test_apply_extraction_returns_copy():
    claim = LegacyClaim(id="c1", plaintiff_name="Dana")
    updated = apply_extraction(claim, parse_extraction_payload(json.dumps(PAYLOAD)))

    assert claim.facts_summary is None
    assert claim.timeline == []
    assert updated.facts_summary.startswith("The landlord")
    assert len(updated.timeline) == 2
    assert updated.defendant == "Moshe Cohen"
    assert updated.amount_claimed_nis == 6000
    assert updated.amount == 6000
    assert updated.has_written_agreement is True
    assert updated.plaintiff_name == "Dana"


def test_apply_extraction_keeps_existing_defendant():
    claim = LegacyClaim.model_validate({"id": "c1", "defendants": [{"name": "Existing Ltd"}]})
    updated = apply_extraction(claim, StructuredClaimData(defendant="Someone Else"))

    assert updated.defendant is None
    assert updated.defendants[0].name == "Existing Ltd"


def test_apply_extraction_ignores_zero_amount():
    claim = LegacyClaim(id="c1", amount_claimed_nis=1500)
    updated = apply_extraction(claim, StructuredClaimData(amount=0))
    assert updated.amount_claimed_nis == 1500


def test_claim_for_scoring_flattens_nested_parties():
    claim = {
        "id": "c2",
        "plaintiff": {"fullName": "Noa Bar", "idNumber": "1", "phone": "2", "address": "3"},
        "defendants": [{"name": "Gym Ltd", "address": "4"}],
        "amount": 900,
        "summary": "Charged after cancelling",
        "evidence": [{"id": "e"}],
        "signatureUrl": "https://files.example/sig.png",
    }
    flat = claim_for_scoring(claim)

    assert flat.plaintiff_name == "Noa Bar"
    assert flat.defendant == "Gym Ltd"
    assert flat.defendant_address == "4"
    assert flat.amount == 900
    assert flat.summary_text == "Charged after cancelling"
    assert flat.evidence_count == 1
    assert flat.has_signature


def test_claim_for_scoring_empty_amount_is_none():
    assert claim_for_scoring(LegacyClaim(id="c3")).amount is None
