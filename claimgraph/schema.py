"""Schemas for the records exchanged with the engine's collaborators.

- LegacyClaim: the flat case record stored before the case graph existed
- StructuredClaimData: the loosely-typed payload the AI interview extracts
- EligibilityInput: the summary screened before a case is opened

Wire names are camelCase; Python attributes are snake_case. Both are
accepted on input.
"""

from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Plaintiff(WireModel):
    full_name: str = ""
    type: str = "individual"
    id_number: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class Defendant(WireModel):
    name: str = ""
    address: Optional[str] = None
    phone: Optional[str] = None
    type: Optional[str] = None       # person, business, etc.


class LegacyTimelineEntry(WireModel):
    """One narrated event; older records used ``event`` instead of ``description``."""

    date: str = ""
    description: Optional[str] = None
    event: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @property
    def text(self) -> str:
        return self.description or self.event or ""


class LegacyEvidence(WireModel):
    id: str
    uri: str = ""
    local_uri: Optional[str] = None
    type: str = "image"
    name: str = ""
    tag: Optional[str] = None
    include_in_export: Optional[bool] = None
    uploaded_at: Optional[int] = None


class LegacyRiskFlag(WireModel):
    id: str = ""
    severity: Literal["high", "medium", "low"] = "medium"
    title: str = ""
    description: str = ""
    icon: str = ""


class LegacyClaim(WireModel):
    """Flat case record (pre-graph). Every field except ``id`` is optional."""

    id: str
    user_id: Optional[str] = None
    status: Optional[str] = None
    claim_type: Optional[str] = None
    evidence: list[LegacyEvidence] = Field(default_factory=list)

    # Amount
    amount_claimed_nis: Optional[float] = None
    amount: Optional[float] = None     # Older alias

    # Plaintiff
    plaintiff: Optional[Plaintiff] = None
    plaintiff_name: Optional[str] = None
    plaintiff_id: Optional[str] = None
    plaintiff_phone: Optional[str] = None
    plaintiff_address: Optional[str] = None

    # Defendant(s)
    defendants: list[Defendant] = Field(default_factory=list)
    defendant: Optional[str] = None
    defendant_address: Optional[str] = None

    # Extracted by the AI interview
    facts_summary: Optional[str] = None
    summary: Optional[str] = None      # Older alias
    timeline: list[LegacyTimelineEntry] = Field(default_factory=list)
    demands: list[str] = Field(default_factory=list)
    incident_date: Optional[str] = None
    legal_basis: Optional[str] = None
    risk_flags: list[LegacyRiskFlag] = Field(default_factory=list)

    has_written_agreement: Optional[bool] = None
    has_prior_notice: Optional[bool] = None
    has_proof_of_payment: Optional[bool] = None

    signature_uri: Optional[str] = None
    signature_url: Optional[str] = None

    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    @field_validator("timeline", "demands", "evidence", "defendants", "risk_flags", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Treat null lists as empty."""
        return [] if v is None else v

    @property
    def claimed_amount(self) -> float:
        """Flat amount; the older ``amount`` field wins when both are set."""
        return self.amount or self.amount_claimed_nis or 0

    @property
    def facts_text(self) -> str:
        return self.facts_summary or self.summary or ""

    @property
    def has_signature(self) -> bool:
        return bool(self.signature_uri or self.signature_url)


class StructuredClaimData(WireModel):
    """Structured data extracted from the interview by the AI service."""

    facts_summary: str = ""
    timeline: list[LegacyTimelineEntry] = Field(default_factory=list)
    demands: list[str] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)
    evidence_needed: list[str] = Field(default_factory=list)
    defendant: Optional[str] = None
    amount: Optional[float] = None
    has_written_agreement: Optional[bool] = None
    has_prior_notice: Optional[bool] = None
    has_proof_of_payment: Optional[bool] = None


class ClaimForScoring(WireModel):
    """Flat view of a claim consumed by the legacy confidence scorer."""

    plaintiff_name: Optional[str] = None
    plaintiff_id: Optional[str] = None
    plaintiff_phone: Optional[str] = None
    plaintiff_address: Optional[str] = None
    defendant: Optional[str] = None
    defendant_address: Optional[str] = None
    amount: Optional[float] = None
    summary: Optional[str] = None
    facts_summary: Optional[str] = None
    claim_type: Optional[str] = None
    timeline: list[LegacyTimelineEntry] = Field(default_factory=list)
    demands: list[str] = Field(default_factory=list)
    evidence_count: int = 0
    incident_date: Optional[str] = None
    has_signature: bool = False
    has_written_agreement: bool = False
    has_prior_notice: bool = False
    has_proof_of_payment: bool = False

    @field_validator("timeline", "demands", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def summary_text(self) -> str:
        return self.summary or self.facts_summary or ""


class EligibilityInput(WireModel):
    """Pre-interview summary screened by the eligibility checker."""

    plaintiff_type: str
    estimated_amount: float = Field(
        default=0,
        validation_alias=AliasChoices(
            "estimated_amount", "estimatedAmount", "estimatedAmountNis", "amount"
        ),
    )
    claim_category: str = Field(
        default="other",
        validation_alias=AliasChoices("claim_category", "claimCategory", "claimType"),
    )
    is_government_defendant: bool = False
    is_class_action: bool = False
    is_statute_expired: bool = False
    is_real_estate_ownership: bool = False
    is_defamation: bool = False

    @field_validator("estimated_amount", mode="before")
    @classmethod
    def unknown_amount_is_zero(cls, v: Any) -> Any:
        """0 means the amount is not known yet."""
        return 0 if v is None else v
