"""Case graph data model: typed nodes, typed edges and the graph document."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, TypeVar

GRAPH_VERSION = 1

E = TypeVar("E", bound=Enum)


def now_ms() -> int:
    """Current wall clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def coerce_enum(enum_cls: type[E], value: Any, default: E) -> E:
    """Convert a raw value to ``enum_cls``, falling back to ``default``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return default


class NodeKind(str, Enum):
    """Discriminant of a graph node."""
    EVENT = "event"
    DEMAND = "demand"
    EVIDENCE = "evidence"
    COMMUNICATION = "communication"
    PARTY = "party"
    RISK = "risk"


class EdgeKind(str, Enum):
    """Types of directed edges between nodes."""
    CAUSED_BY = "caused_by"          # Event -> Event (causal chain)
    FOLLOWED_BY = "followed_by"      # Event -> Event (temporal sequence)
    SUPPORTS = "supports"            # Evidence -> Event | Demand
    UNDERMINES = "undermines"        # Evidence / Risk -> Event | Demand
    ADDRESSES = "addresses"          # Communication -> Event
    FILED_BY = "filed_by"            # Demand -> Party (plaintiff)
    FILED_AGAINST = "filed_against"  # Demand -> Party (defendant)
    RELATES_TO = "relates_to"


class EventCategory(str, Enum):
    PURCHASE = "purchase"
    INCIDENT = "incident"
    COMPLAINT = "complaint"
    DEMAND_SENT = "demand_sent"
    RESPONSE_RECEIVED = "response_received"
    ESCALATION = "escalation"
    FILING = "filing"
    HEARING = "hearing"
    OTHER = "other"


class EvidenceType(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"
    VIDEO = "video"
    AUDIO = "audio"
    TEXT = "text"


class CommunicationDirection(str, Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"


class CommunicationMedium(str, Enum):
    EMAIL = "email"
    LETTER = "letter"
    PHONE = "phone"
    SMS = "sms"
    WHATSAPP = "whatsapp"
    IN_PERSON = "in_person"
    OTHER = "other"


class PartyRole(str, Enum):
    PLAINTIFF = "plaintiff"
    DEFENDANT = "defendant"
    WITNESS = "witness"


class PartyType(str, Enum):
    INDIVIDUAL = "individual"
    BUSINESS = "business"
    SOLE_PROPRIETOR = "sole_proprietor"


class RiskSeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def _put(data: dict[str, Any], key: str, value: Any) -> None:
    """Set ``key`` unless the value is absent."""
    if value is None:
        return
    data[key] = value.value if isinstance(value, Enum) else value


# ========== Nodes ==========


@dataclass
class GraphNode:
    """Fields every node shares. Use one of the concrete subclasses."""

    kind: ClassVar[NodeKind]

    id: str
    label: str = ""
    created_at: int = field(default_factory=now_ms)
    updated_at: int = field(default_factory=now_ms)
    meta: dict[str, Any] = field(default_factory=dict)

    # Fields that never change once the node exists
    IMMUTABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"id", "kind"})

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted document shape."""
        data: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "label": self.label,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        data.update(self._payload())
        if self.meta:
            data["meta"] = dict(self.meta)
        return data

    def _payload(self) -> dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def _base_kwargs(cls, data: dict[str, Any]) -> dict[str, Any]:
        created = data.get("createdAt") or now_ms()
        return {
            "id": data["id"],
            "label": data.get("label", ""),
            "created_at": created,
            "updated_at": data.get("updatedAt") or created,
            "meta": dict(data.get("meta") or {}),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GraphNode":
        raise NotImplementedError


@dataclass
class EventNode(GraphNode):
    """A point in time: purchase, incident, complaint, filing, etc."""

    kind: ClassVar[NodeKind] = NodeKind.EVENT

    date: Optional[str] = None       # ISO date or free text
    description: str = ""
    category: EventCategory = EventCategory.OTHER

    def _payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {"description": self.description}
        _put(data, "date", self.date)
        _put(data, "category", self.category)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EventNode":
        return cls(
            **cls._base_kwargs(data),
            date=data.get("date"),
            description=data.get("description", ""),
            category=coerce_enum(EventCategory, data.get("category"), EventCategory.OTHER),
        )


@dataclass
class DemandNode(GraphNode):
    """A specific relief the plaintiff requests."""

    kind: ClassVar[NodeKind] = NodeKind.DEMAND

    amount: Optional[float] = None
    description: str = ""
    legal_basis: Optional[str] = None   # Statutory ground, e.g. "Consumer Protection Law s.31"

    def _payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {"description": self.description}
        _put(data, "amountNis", self.amount)
        _put(data, "legalBasis", self.legal_basis)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DemandNode":
        return cls(
            **cls._base_kwargs(data),
            amount=data.get("amountNis"),
            description=data.get("description", ""),
            legal_basis=data.get("legalBasis"),
        )


@dataclass
class EvidenceNode(GraphNode):
    """A reference to an uploaded file (photo, document, recording)."""

    kind: ClassVar[NodeKind] = NodeKind.EVIDENCE

    evidence_id: str = ""            # Key of the uploaded file record
    uri: Optional[str] = None
    evidence_type: EvidenceType = EvidenceType.IMAGE
    tag: Optional[str] = None        # "receipt", "contract", "correspondence"
    description: Optional[str] = None

    def _payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "evidenceId": self.evidence_id,
            "evidenceType": self.evidence_type.value,
        }
        _put(data, "uri", self.uri)
        _put(data, "tag", self.tag)
        _put(data, "description", self.description)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EvidenceNode":
        return cls(
            **cls._base_kwargs(data),
            evidence_id=data.get("evidenceId", ""),
            uri=data.get("uri"),
            evidence_type=coerce_enum(EvidenceType, data.get("evidenceType"), EvidenceType.IMAGE),
            tag=data.get("tag"),
            description=data.get("description"),
        )


@dataclass
class CommunicationNode(GraphNode):
    """An interaction between the parties (email, letter, call, message)."""

    kind: ClassVar[NodeKind] = NodeKind.COMMUNICATION

    date: Optional[str] = None
    direction: CommunicationDirection = CommunicationDirection.OUTGOING
    medium: CommunicationMedium = CommunicationMedium.OTHER
    summary: str = ""
    is_prior_notice: bool = False

    def _payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "direction": self.direction.value,
            "medium": self.medium.value,
            "summary": self.summary,
            "isPriorNotice": self.is_prior_notice,
        }
        _put(data, "date", self.date)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommunicationNode":
        return cls(
            **cls._base_kwargs(data),
            date=data.get("date"),
            direction=coerce_enum(
                CommunicationDirection, data.get("direction"), CommunicationDirection.OUTGOING
            ),
            medium=coerce_enum(CommunicationMedium, data.get("medium"), CommunicationMedium.OTHER),
            summary=data.get("summary", ""),
            is_prior_notice=bool(data.get("isPriorNotice", False)),
        )


@dataclass
class PartyNode(GraphNode):
    """A party to the case."""

    kind: ClassVar[NodeKind] = NodeKind.PARTY

    role: PartyRole = PartyRole.WITNESS
    full_name: str = ""
    id_number: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    party_type: Optional[PartyType] = None

    def _payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {"role": self.role.value, "fullName": self.full_name}
        _put(data, "idNumber", self.id_number)
        _put(data, "phone", self.phone)
        _put(data, "address", self.address)
        _put(data, "partyType", self.party_type)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PartyNode":
        party_type = data.get("partyType")
        return cls(
            **cls._base_kwargs(data),
            role=coerce_enum(PartyRole, data.get("role"), PartyRole.WITNESS),
            full_name=data.get("fullName", ""),
            id_number=data.get("idNumber"),
            phone=data.get("phone"),
            address=data.get("address"),
            party_type=coerce_enum(PartyType, party_type, PartyType.INDIVIDUAL) if party_type else None,
        )


@dataclass
class RiskNode(GraphNode):
    """A weakness identified in the case."""

    kind: ClassVar[NodeKind] = NodeKind.RISK

    severity: RiskSeverity = RiskSeverity.MEDIUM
    description: str = ""
    mitigation: Optional[str] = None

    def _payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {"severity": self.severity.value, "description": self.description}
        _put(data, "mitigation", self.mitigation)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RiskNode":
        return cls(
            **cls._base_kwargs(data),
            severity=coerce_enum(RiskSeverity, data.get("severity"), RiskSeverity.MEDIUM),
            description=data.get("description", ""),
            mitigation=data.get("mitigation"),
        )


NODE_CLASSES: dict[NodeKind, type[GraphNode]] = {
    NodeKind.EVENT: EventNode,
    NodeKind.DEMAND: DemandNode,
    NodeKind.EVIDENCE: EvidenceNode,
    NodeKind.COMMUNICATION: CommunicationNode,
    NodeKind.PARTY: PartyNode,
    NodeKind.RISK: RiskNode,
}


def node_from_dict(data: dict[str, Any]) -> GraphNode:
    """Create the node variant selected by ``data["kind"]``.

    Raises:
        ValueError: If the kind is missing or unknown
    """
    try:
        kind = NodeKind(data.get("kind"))
    except ValueError:
        raise ValueError(f"Unknown node kind: {data.get('kind')!r}") from None
    return NODE_CLASSES[kind].from_dict(data)


# ========== Edges ==========


@dataclass
class GraphEdge:
    """A directed, typed edge between two nodes."""

    id: str
    kind: EdgeKind
    source: str
    target: str
    label: Optional[str] = None
    weight: Optional[float] = None   # 0-1, strength of connection
    meta: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate kind and weight after initialization."""
        self.kind = EdgeKind(self.kind)
        if self.weight is not None and not 0.0 <= self.weight <= 1.0:
            raise ValueError("Edge weight must be between 0.0 and 1.0")

    @property
    def key(self) -> tuple[str, str, EdgeKind]:
        """Identity used for de-duplication."""
        return (self.source, self.target, self.kind)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "source": self.source,
            "target": self.target,
        }
        _put(data, "label", self.label)
        _put(data, "weight", self.weight)
        if self.meta:
            data["meta"] = dict(self.meta)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GraphEdge":
        return cls(
            id=data["id"],
            kind=EdgeKind(data["kind"]),
            source=data["source"],
            target=data["target"],
            label=data.get("label"),
            weight=data.get("weight"),
            meta=dict(data.get("meta") or {}),
        )


# ========== Graph ==========


@dataclass
class CaseGraph:
    """All facts of one claim as typed nodes connected by directed edges.

    Nodes and edges keep insertion order. Every rules, scoring and
    presentation component reads from this structure.
    """

    claim_id: str
    version: int = GRAPH_VERSION
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    created_at: int = field(default_factory=now_ms)
    updated_at: int = field(default_factory=now_ms)

    def touch(self) -> int:
        """Advance ``updated_at``; strictly increasing even within one millisecond."""
        self.updated_at = max(now_ms(), self.updated_at + 1)
        return self.updated_at

    def has_node(self, node_id: str) -> bool:
        return any(n.id == node_id for n in self.nodes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted document shape."""
        return {
            "claimId": self.claim_id,
            "version": self.version,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CaseGraph":
        """Create from a persisted document."""
        created = data.get("createdAt") or now_ms()
        return cls(
            claim_id=data["claimId"],
            version=data.get("version", GRAPH_VERSION),
            nodes=[node_from_dict(n) for n in data.get("nodes", [])],
            edges=[GraphEdge.from_dict(e) for e in data.get("edges", [])],
            created_at=created,
            updated_at=data.get("updatedAt") or created,
        )


@dataclass
class GraphSummary:
    """Counts for quick display."""

    total_nodes: int
    event_count: int
    demand_count: int
    evidence_count: int
    communication_count: int
    party_count: int
    risk_count: int
    total_edges: int
    linked_evidence_count: int        # Evidence supporting at least one node
    substantiated_demand_count: int   # Demands with a legal basis
    has_prior_notice: bool
    total_amount: float
