"""Jurisdiction constants for the small claims court.

Based on the Small Claims Court Act limits in force for 2025-2026. The
numeric limits can be overridden through ``Settings.legal``; the module-level
constants are the defaults.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from claimgraph.config_loader import LegalConfig, default_settings

SMALL_CLAIMS_MAX_AMOUNT = 39900
COURT_FEE_PERCENT = 0.01
COURT_FEE_MIN = 50


@dataclass(frozen=True)
class PlaintiffTypeInfo:
    """A plaintiff type with display label and, when blocked, the reason."""

    id: str
    label: str
    description: str = ""
    reason: str = ""


VALID_PLAINTIFF_TYPES: tuple[PlaintiffTypeInfo, ...] = (
    PlaintiffTypeInfo("individual", "Individual", "A private person"),
    PlaintiffTypeInfo("sole_proprietor", "Sole proprietor", "Self-employed / licensed dealer"),
)

# Cannot file small claims
BLOCKED_PLAINTIFF_TYPES: tuple[PlaintiffTypeInfo, ...] = (
    PlaintiffTypeInfo("company", "Companies", reason="A limited company may not sue in small claims court"),
    PlaintiffTypeInfo("ngo", "Non-profit associations", reason="A non-profit association may not sue in small claims court"),
    PlaintiffTypeInfo("partnership", "Partnerships", reason="A partnership may not sue in small claims court"),
)


@dataclass(frozen=True)
class ClaimCategory:
    id: str
    label: str
    sub: str


CLAIM_CATEGORIES: tuple[ClaimCategory, ...] = (
    ClaimCategory("consumer", "Consumer", "Defective product, poor service, non-delivery"),
    ClaimCategory("landlord", "Rental", "Deposit, damage to the apartment, repairs"),
    ClaimCategory("employer", "Employment", "Wages, severance, rights"),
    ClaimCategory("neighbor", "Neighbors", "Damage, noise nuisance"),
    ClaimCategory("contract", "Contract", "Breach of agreement, financial loss"),
    ClaimCategory("other", "Other", "Another reason"),
)


@dataclass(frozen=True)
class AmountValidation:
    valid: bool
    message: Optional[str] = None


def _legal(config: Optional[LegalConfig]) -> LegalConfig:
    return config if config is not None else default_settings().legal


def calculate_court_fee(amount: float, config: Optional[LegalConfig] = None) -> int:
    """Filing fee: a percentage of the amount, never below the minimum fee."""
    legal = _legal(config)
    fee = math.floor(amount * legal.court_fee_percent + 0.5)
    return int(max(fee, legal.court_fee_min))


def validate_claim_amount(amount: float, config: Optional[LegalConfig] = None) -> AmountValidation:
    """Check that a claim amount is positive and within the ceiling."""
    legal = _legal(config)
    if amount <= 0:
        return AmountValidation(False, "The claim amount must be positive")
    if amount > legal.max_claim_amount:
        return AmountValidation(
            False,
            f"The claim amount exceeds the small claims limit "
            f"({format_amount(legal.max_claim_amount, legal)}). File with the Magistrate Court instead.",
        )
    return AmountValidation(True)


def is_valid_plaintiff_type(plaintiff_type: str) -> bool:
    return any(t.id == plaintiff_type for t in VALID_PLAINTIFF_TYPES)


def find_blocked_plaintiff_type(plaintiff_type: str) -> Optional[PlaintiffTypeInfo]:
    for info in BLOCKED_PLAINTIFF_TYPES:
        if info.id == plaintiff_type:
            return info
    return None


def format_amount(amount: float, config: Optional[LegalConfig] = None) -> str:
    """Format an amount with the jurisdiction currency and thousands separators."""
    legal = _legal(config)
    if float(amount).is_integer():
        return f"{legal.currency_symbol}{int(amount):,}"
    return f"{legal.currency_symbol}{amount:,.2f}"
