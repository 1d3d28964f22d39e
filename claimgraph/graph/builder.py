"""Case graph construction and in-place mutation helpers.

Builds a CaseGraph from a legacy flat claim record (one-time migration) and
provides the add / update / remove operations the UI-facing code uses.
Every structural change advances ``graph.updated_at``.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Optional

from claimgraph.config.legal import format_amount
from claimgraph.config_loader import Settings, default_settings
from claimgraph.graph import queries
from claimgraph.graph.ids import IdGenerator, uuid_ids
from claimgraph.graph.models import (
    CaseGraph,
    CommunicationDirection,
    CommunicationMedium,
    CommunicationNode,
    DemandNode,
    EdgeKind,
    EventCategory,
    EventNode,
    EvidenceNode,
    EvidenceType,
    GraphEdge,
    GraphNode,
    GraphSummary,
    PartyNode,
    PartyRole,
    PartyType,
    RiskNode,
    RiskSeverity,
    coerce_enum,
    now_ms,
)
from claimgraph.schema import LegacyClaim, LegacyEvidence, LegacyTimelineEntry

logger = logging.getLogger(__name__)

# Enum-typed node fields, so updates may pass raw strings
_ENUM_FIELDS = {
    "category": EventCategory,
    "evidence_type": EvidenceType,
    "direction": CommunicationDirection,
    "medium": CommunicationMedium,
    "role": PartyRole,
    "party_type": PartyType,
    "severity": RiskSeverity,
}


def _truncate(text: str, settings: Optional[Settings] = None) -> str:
    limit = (settings or default_settings()).graph.label_max_length
    return text[:limit]


# ========== Create ==========


def create_empty_graph(claim_id: str, settings: Optional[Settings] = None) -> CaseGraph:
    """Create a graph with no nodes or edges for a new case."""
    settings = settings or default_settings()
    now = now_ms()
    return CaseGraph(
        claim_id=claim_id,
        version=settings.graph.version,
        nodes=[],
        edges=[],
        created_at=now,
        updated_at=now,
    )


# ========== Node operations ==========


def add_node(graph: CaseGraph, node: GraphNode) -> GraphNode:
    """Append a node.

    Raises:
        ValueError: If a node with the same id is already present
    """
    if graph.has_node(node.id):
        raise ValueError(f"Duplicate node id: {node.id}")
    graph.nodes.append(node)
    graph.touch()
    return node


def update_node(graph: CaseGraph, node_id: str, **changes: Any) -> Optional[GraphNode]:
    """Replace fields on a node. ``id`` and ``kind`` can never change.

    Args:
        graph: Graph to modify
        node_id: Node to update
        **changes: Field values keyed by attribute name (e.g. ``address="..."``)

    Returns:
        The updated node, or None if no node has ``node_id``

    Raises:
        ValueError: If a field does not exist on this node variant
    """
    index = next((i for i, n in enumerate(graph.nodes) if n.id == node_id), None)
    if index is None:
        return None

    node = graph.nodes[index]
    valid = {f.name for f in dataclasses.fields(node)}
    applied: dict[str, Any] = {}
    for name, value in changes.items():
        if name in GraphNode.IMMUTABLE_FIELDS or name in ("created_at", "updated_at"):
            continue
        if name not in valid:
            raise ValueError(f"{type(node).__name__} has no field '{name}'")
        enum_cls = _ENUM_FIELDS.get(name)
        if enum_cls is not None and value is not None:
            value = enum_cls(value)
        applied[name] = value

    ts = graph.touch()
    updated = dataclasses.replace(node, **applied, updated_at=ts)
    graph.nodes[index] = updated
    return updated


def remove_node(graph: CaseGraph, node_id: str) -> None:
    """Remove a node and every edge that touches it."""
    graph.nodes = [n for n in graph.nodes if n.id != node_id]
    graph.edges = [e for e in graph.edges if e.source != node_id and e.target != node_id]
    graph.touch()


# ========== Edge operations ==========


def add_edge(graph: CaseGraph, edge: GraphEdge) -> GraphEdge:
    """Add an edge unless the same (source, target, kind) already exists.

    Returns:
        The stored edge (the existing one for a duplicate)

    Raises:
        ValueError: If either endpoint is not a node of this graph
    """
    for endpoint in (edge.source, edge.target):
        if not graph.has_node(endpoint):
            raise ValueError(f"Edge {edge.id} references unknown node {endpoint}")

    for existing in graph.edges:
        if existing.key == edge.key:
            return existing

    graph.edges.append(edge)
    graph.touch()
    return edge


def connect(
    graph: CaseGraph,
    kind: EdgeKind | str,
    source: str,
    target: str,
    *,
    weight: Optional[float] = None,
    label: Optional[str] = None,
    ids: IdGenerator = uuid_ids,
) -> GraphEdge:
    """Create and add an edge, returning the existing one for a duplicate.

    No id is drawn for a duplicate.
    """
    kind = EdgeKind(kind)
    for existing in graph.edges:
        if existing.key == (source, target, kind):
            return existing
    return add_edge(
        graph,
        GraphEdge(id=ids("edge"), kind=kind, source=source, target=target,
                  weight=weight, label=label),
    )


def remove_edge(graph: CaseGraph, edge_id: str) -> None:
    graph.edges = [e for e in graph.edges if e.id != edge_id]
    graph.touch()


# ========== Quick add helpers ==========


def add_event(
    graph: CaseGraph,
    date: Optional[str],
    description: str,
    category: EventCategory | str = EventCategory.OTHER,
    *,
    ids: IdGenerator = uuid_ids,
) -> EventNode:
    """Add an event node labelled with the start of its description."""
    node = EventNode(
        id=ids("event"),
        label=_truncate(description),
        date=date,
        description=description,
        category=coerce_enum(EventCategory, category, EventCategory.OTHER),
    )
    add_node(graph, node)
    return node


def add_demand(
    graph: CaseGraph,
    description: str,
    amount: Optional[float] = None,
    legal_basis: Optional[str] = None,
    *,
    ids: IdGenerator = uuid_ids,
) -> DemandNode:
    """Add a demand node."""
    node = DemandNode(
        id=ids("demand"),
        label=_truncate(description),
        description=description,
        amount=amount,
        legal_basis=legal_basis,
    )
    add_node(graph, node)
    return node


def link_evidence_to_event(
    graph: CaseGraph, evidence_node_id: str, event_node_id: str, *, ids: IdGenerator = uuid_ids
) -> GraphEdge:
    """Evidence supports an event (weight 1)."""
    return connect(graph, EdgeKind.SUPPORTS, evidence_node_id, event_node_id, weight=1.0, ids=ids)


def link_evidence_to_demand(
    graph: CaseGraph, evidence_node_id: str, demand_node_id: str, *, ids: IdGenerator = uuid_ids
) -> GraphEdge:
    """Evidence supports a demand (weight 1)."""
    return connect(graph, EdgeKind.SUPPORTS, evidence_node_id, demand_node_id, weight=1.0, ids=ids)


# ========== Migration from legacy claim ==========


def build_graph_from_claim(
    claim: LegacyClaim | dict[str, Any],
    *,
    ids: IdGenerator = uuid_ids,
    settings: Optional[Settings] = None,
) -> CaseGraph:
    """Migrate a flat legacy claim record into a CaseGraph.

    Called once, when no graph exists yet for a claim. The same input always
    yields the same node and edge counts; ids and timestamps differ per call
    unless ``ids`` is deterministic.

    Args:
        claim: Legacy claim record (model or raw dict)
        ids: Id generator for the new nodes and edges
        settings: Settings for label length

    Returns:
        New graph for ``claim.id``
    """
    if not isinstance(claim, LegacyClaim):
        claim = LegacyClaim.model_validate(claim)
    settings = settings or default_settings()

    graph = create_empty_graph(claim.id, settings)

    # 1-2. Parties
    plaintiff = _add_plaintiff_node(graph, claim, ids)
    defendants = _add_defendant_nodes(graph, claim, ids)

    # 3. Timeline -> events
    events = _add_timeline_events(graph, claim.timeline, ids, settings)

    # 4. Demands
    demands = _add_demands_from_claim(graph, claim, ids, settings)

    # 5. Evidence
    _add_evidence_nodes(graph, claim.evidence, ids)

    # 6. Prior notice inferred from the flag
    if claim.has_prior_notice:
        add_node(graph, CommunicationNode(
            id=ids("comm"),
            label="Prior notice",
            direction=CommunicationDirection.OUTGOING,
            medium=CommunicationMedium.LETTER,
            summary="A prior notice was sent to the defendant before filing the claim",
            is_prior_notice=True,
        ))

    # 7. Risks
    for flag in claim.risk_flags:
        add_node(graph, RiskNode(
            id=ids("risk"),
            label=flag.title,
            severity=RiskSeverity(flag.severity),
            description=flag.description,
        ))

    # 8. Edges
    for demand in demands:
        if plaintiff is not None:
            connect(graph, EdgeKind.FILED_BY, demand.id, plaintiff.id, ids=ids)
        if defendants:
            connect(graph, EdgeKind.FILED_AGAINST, demand.id, defendants[0].id, ids=ids)

    for earlier, later in zip(events, events[1:]):
        connect(graph, EdgeKind.FOLLOWED_BY, earlier.id, later.id, ids=ids)

    graph.touch()
    logger.info(
        f"Migrated claim {claim.id} to case graph: "
        f"{len(graph.nodes)} nodes, {len(graph.edges)} edges"
    )
    return graph


def _add_plaintiff_node(graph: CaseGraph, claim: LegacyClaim, ids: IdGenerator) -> Optional[PartyNode]:
    structured = claim.plaintiff
    name = claim.plaintiff_name or (structured.full_name if structured else "")
    if not name:
        return None

    node = PartyNode(
        id=ids("party"),
        label=name,
        role=PartyRole.PLAINTIFF,
        full_name=name,
        id_number=claim.plaintiff_id or (structured.id_number if structured else None),
        phone=claim.plaintiff_phone or (structured.phone if structured else None),
        address=claim.plaintiff_address or (structured.address if structured else None),
        party_type=coerce_enum(PartyType, structured.type if structured else None, PartyType.INDIVIDUAL),
    )
    add_node(graph, node)
    return node


def _add_defendant_nodes(graph: CaseGraph, claim: LegacyClaim, ids: IdGenerator) -> list[PartyNode]:
    nodes: list[PartyNode] = []

    if claim.defendants:
        for d in claim.defendants:
            node = PartyNode(
                id=ids("party"),
                label=d.name,
                role=PartyRole.DEFENDANT,
                full_name=d.name,
                phone=d.phone,
                address=d.address,
                party_type=coerce_enum(PartyType, d.type, PartyType.INDIVIDUAL),
            )
            add_node(graph, node)
            nodes.append(node)
    elif claim.defendant:
        # Legacy single-defendant fields
        node = PartyNode(
            id=ids("party"),
            label=claim.defendant,
            role=PartyRole.DEFENDANT,
            full_name=claim.defendant,
            address=claim.defendant_address,
            party_type=PartyType.INDIVIDUAL,
        )
        add_node(graph, node)
        nodes.append(node)

    return nodes


def _add_timeline_events(
    graph: CaseGraph,
    timeline: list[LegacyTimelineEntry],
    ids: IdGenerator,
    settings: Settings,
) -> list[EventNode]:
    nodes = []
    for entry in timeline:
        text = entry.text
        node = EventNode(
            id=ids("event"),
            label=_truncate(text, settings),
            date=entry.date or None,
            description=text,
            category=EventCategory.OTHER,
        )
        add_node(graph, node)
        nodes.append(node)
    return nodes


def _add_demands_from_claim(
    graph: CaseGraph,
    claim: LegacyClaim,
    ids: IdGenerator,
    settings: Settings,
) -> list[DemandNode]:
    nodes: list[DemandNode] = []
    amount = claim.claimed_amount

    if claim.demands:
        for text in claim.demands:
            node = DemandNode(
                id=ids("demand"),
                label=_truncate(text, settings),
                description=text,
                legal_basis=claim.legal_basis,
            )
            # The flat amount goes on the first demand (best guess)
            if not nodes and amount:
                node.amount = amount
            add_node(graph, node)
            nodes.append(node)
    elif amount > 0:
        node = DemandNode(
            id=ids("demand"),
            label=f"Monetary compensation: {format_amount(amount, settings.legal)}",
            description=claim.facts_text or "Monetary compensation",
            amount=amount,
            legal_basis=claim.legal_basis,
        )
        add_node(graph, node)
        nodes.append(node)

    return nodes


def _add_evidence_nodes(graph: CaseGraph, evidence: list[LegacyEvidence], ids: IdGenerator) -> list[EvidenceNode]:
    nodes = []
    for item in evidence:
        node = EvidenceNode(
            id=ids("evid"),
            label=item.name or "Evidence",
            evidence_id=item.id,
            uri=item.uri or None,
            evidence_type=EvidenceType.DOCUMENT if item.type == "document" else EvidenceType.IMAGE,
            tag=item.tag,
        )
        if item.uploaded_at:
            node.created_at = item.uploaded_at
        add_node(graph, node)
        nodes.append(node)
    return nodes


# ========== Summary ==========


def summarize_graph(graph: CaseGraph) -> GraphSummary:
    """Counts for quick UI display."""
    demands = queries.get_demands(graph)
    evidence = queries.get_evidence(graph)
    linked = len(evidence) - len(queries.get_unlinked_evidence(graph))

    return GraphSummary(
        total_nodes=len(graph.nodes),
        event_count=len(queries.get_events(graph)),
        demand_count=len(demands),
        evidence_count=len(evidence),
        communication_count=len(queries.get_communications(graph)),
        party_count=len(queries.get_parties(graph)),
        risk_count=len(queries.get_risks(graph)),
        total_edges=len(graph.edges),
        linked_evidence_count=linked,
        substantiated_demand_count=sum(1 for d in demands if (d.legal_basis or "").strip()),
        has_prior_notice=queries.has_prior_notice(graph),
        total_amount=queries.get_total_amount(graph),
    )
