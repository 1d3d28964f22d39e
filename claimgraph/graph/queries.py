"""Read-only traversal utilities for the case graph.

Used by the rules engine, the scorers and any presentation code. Nothing
here modifies the graph.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, TypeVar, cast

from claimgraph.graph.dates import chronological_key
from claimgraph.graph.models import (
    CaseGraph,
    CommunicationNode,
    DemandNode,
    EdgeKind,
    EventNode,
    EvidenceNode,
    GraphEdge,
    GraphNode,
    NodeKind,
    PartyNode,
    PartyRole,
    RiskNode,
)

N = TypeVar("N", bound=GraphNode)

# Edges followed when walking a causal / temporal chain
CHAIN_EDGE_KINDS = frozenset({EdgeKind.FOLLOWED_BY, EdgeKind.CAUSED_BY})


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (``round`` would go to even)."""
    return int(math.floor(value + 0.5))


# ========== Node queries ==========


def get_node(graph: CaseGraph, node_id: str) -> Optional[GraphNode]:
    """Get a single node by ID."""
    return next((n for n in graph.nodes if n.id == node_id), None)


def get_nodes_by_kind(graph: CaseGraph, kind: NodeKind) -> list[GraphNode]:
    """All nodes of one kind, in insertion order."""
    return [n for n in graph.nodes if n.kind == kind]


def _of_kind(graph: CaseGraph, kind: NodeKind, cls: type[N]) -> list[N]:
    return cast(list[N], get_nodes_by_kind(graph, kind))


def get_events(graph: CaseGraph) -> list[EventNode]:
    return _of_kind(graph, NodeKind.EVENT, EventNode)


def get_demands(graph: CaseGraph) -> list[DemandNode]:
    return _of_kind(graph, NodeKind.DEMAND, DemandNode)


def get_evidence(graph: CaseGraph) -> list[EvidenceNode]:
    return _of_kind(graph, NodeKind.EVIDENCE, EvidenceNode)


def get_communications(graph: CaseGraph) -> list[CommunicationNode]:
    return _of_kind(graph, NodeKind.COMMUNICATION, CommunicationNode)


def get_parties(graph: CaseGraph) -> list[PartyNode]:
    return _of_kind(graph, NodeKind.PARTY, PartyNode)


def get_risks(graph: CaseGraph) -> list[RiskNode]:
    return _of_kind(graph, NodeKind.RISK, RiskNode)


def get_plaintiff(graph: CaseGraph) -> Optional[PartyNode]:
    """The first party with the plaintiff role."""
    return next((p for p in get_parties(graph) if p.role == PartyRole.PLAINTIFF), None)


def get_defendants(graph: CaseGraph) -> list[PartyNode]:
    return [p for p in get_parties(graph) if p.role == PartyRole.DEFENDANT]


def get_events_sorted(graph: CaseGraph) -> list[EventNode]:
    """Events in chronological order (best effort; dates may be free text).

    Parseable dates first, then unparseable date text, then undated events.
    The sort is stable, so equal keys keep insertion order.
    """
    return sorted(get_events(graph), key=lambda e: chronological_key(e.date))


# ========== Edge queries ==========


def get_edges_by_kind(graph: CaseGraph, kind: EdgeKind) -> list[GraphEdge]:
    return [e for e in graph.edges if e.kind == kind]


def get_out_edges(graph: CaseGraph, node_id: str) -> list[GraphEdge]:
    """Edges leaving a node."""
    return [e for e in graph.edges if e.source == node_id]


def get_in_edges(graph: CaseGraph, node_id: str) -> list[GraphEdge]:
    """Edges arriving at a node."""
    return [e for e in graph.edges if e.target == node_id]


def get_neighbors(graph: CaseGraph, node_id: str, kind: Optional[NodeKind] = None) -> list[GraphNode]:
    """Nodes adjacent to ``node_id`` in either direction, each once.

    Args:
        graph: Graph to search
        node_id: Centre node
        kind: Optional node kind filter

    Returns:
        Neighbor nodes in graph insertion order
    """
    neighbor_ids: set[str] = set()
    for e in graph.edges:
        if e.source == node_id:
            neighbor_ids.add(e.target)
        if e.target == node_id:
            neighbor_ids.add(e.source)
    return [
        n for n in graph.nodes
        if n.id in neighbor_ids and (kind is None or n.kind == kind)
    ]


def get_neighbor_ids(graph: CaseGraph, node_id: str) -> list[str]:
    """Ids of adjacent nodes, each once, in order of first appearance on an edge."""
    seen: dict[str, None] = {}
    for e in graph.edges:
        if e.source == node_id:
            seen.setdefault(e.target, None)
        if e.target == node_id:
            seen.setdefault(e.source, None)
    return list(seen)


# ========== Evidence coverage ==========


def _supported_ids(graph: CaseGraph) -> set[str]:
    return {e.target for e in graph.edges if e.kind == EdgeKind.SUPPORTS}


def get_covered_events(graph: CaseGraph) -> list[EventNode]:
    """Events with at least one supporting edge."""
    supported = _supported_ids(graph)
    return [ev for ev in get_events(graph) if ev.id in supported]


def get_uncovered_events(graph: CaseGraph) -> list[EventNode]:
    """Events with no supporting edge."""
    supported = _supported_ids(graph)
    return [ev for ev in get_events(graph) if ev.id not in supported]


def get_covered_demands(graph: CaseGraph) -> list[DemandNode]:
    supported = _supported_ids(graph)
    return [d for d in get_demands(graph) if d.id in supported]


def get_uncovered_demands(graph: CaseGraph) -> list[DemandNode]:
    supported = _supported_ids(graph)
    return [d for d in get_demands(graph) if d.id not in supported]


def get_evidence_for(graph: CaseGraph, node_id: str) -> list[EvidenceNode]:
    """Evidence nodes that support ``node_id``."""
    sources = {e.source for e in graph.edges if e.kind == EdgeKind.SUPPORTS and e.target == node_id}
    return [n for n in get_evidence(graph) if n.id in sources]


def get_unlinked_evidence(graph: CaseGraph) -> list[EvidenceNode]:
    """Evidence that is not the source of any supporting edge."""
    linked = {e.source for e in graph.edges if e.kind == EdgeKind.SUPPORTS}
    return [n for n in get_evidence(graph) if n.id not in linked]


# ========== Prior notice / amounts ==========


def has_prior_notice(graph: CaseGraph) -> bool:
    return any(c.is_prior_notice for c in get_communications(graph))


def get_prior_notices(graph: CaseGraph) -> list[CommunicationNode]:
    return [c for c in get_communications(graph) if c.is_prior_notice]


def get_total_amount(graph: CaseGraph) -> float:
    """Sum of demand amounts (unset amounts count as 0)."""
    return sum(d.amount or 0 for d in get_demands(graph))


# ========== Causal chain ==========


def get_event_chain(graph: CaseGraph, start_event_id: str) -> list[EventNode]:
    """Depth-first walk along followed_by / caused_by edges from an event.

    Each node is visited at most once, so a cyclic edge set still
    terminates. Non-event nodes end the walk on that branch.
    """
    nodes = {n.id: n for n in graph.nodes}
    forward: dict[str, list[str]] = {}
    for e in graph.edges:
        if e.kind in CHAIN_EDGE_KINDS:
            forward.setdefault(e.source, []).append(e.target)

    visited: set[str] = set()
    chain: list[EventNode] = []
    stack = [start_event_id]
    while stack:
        node_id = stack.pop()
        if node_id in visited:
            continue
        visited.add(node_id)
        node = nodes.get(node_id)
        if node is None or node.kind != NodeKind.EVENT:
            continue
        chain.append(cast(EventNode, node))
        # Reversed so the first edge is explored first, as a recursive walk would
        stack.extend(reversed(forward.get(node_id, [])))
    return chain


# ========== Health ==========


@dataclass
class GraphHealthReport:
    """Lightweight summary of structural gaps in the graph.

    ``health_score`` is a quick 0-100 indicator; the canonical readiness
    score comes from the graph scorer.
    """

    uncovered_events: list[EventNode]
    unlinked_evidence: list[EvidenceNode]
    unsubstantiated_demands: list[DemandNode]
    has_plaintiff: bool
    has_defendant: bool
    has_prior_notice: bool
    health_score: int


def get_graph_health(graph: CaseGraph) -> GraphHealthReport:
    """Compute the health report.

    Points: parties 20, events 15, demands 15, evidence plus coverage 25,
    prior notice 10, legal basis ratio 15.
    """
    events = get_events(graph)
    demands = get_demands(graph)
    evidence = get_evidence(graph)
    uncovered = get_uncovered_events(graph)
    unsubstantiated = [d for d in demands if not (d.legal_basis or "").strip()]
    plaintiff = get_plaintiff(graph)
    defendants = get_defendants(graph)
    notice = has_prior_notice(graph)

    score = 0

    # Parties (20)
    if plaintiff is not None:
        score += 10
    if defendants:
        score += 10

    # Events (15)
    if len(events) >= 3:
        score += 15
    elif events:
        score += 8

    # Demands (15)
    if demands:
        score += 10
    if any((d.amount or 0) > 0 for d in demands):
        score += 5

    # Evidence and coverage (25)
    if len(evidence) >= 3:
        score += 15
    elif evidence:
        score += 8
    if events:
        coverage_ratio = (len(events) - len(uncovered)) / len(events)
        score += round_half_up(coverage_ratio * 10)

    # Prior notice (10)
    if notice:
        score += 10

    # Legal basis (15)
    if demands:
        ratio = (len(demands) - len(unsubstantiated)) / len(demands)
        score += round_half_up(ratio * 15)

    return GraphHealthReport(
        uncovered_events=uncovered,
        unlinked_evidence=get_unlinked_evidence(graph),
        unsubstantiated_demands=unsubstantiated,
        has_plaintiff=plaintiff is not None,
        has_defendant=bool(defendants),
        has_prior_notice=notice,
        health_score=min(100, score),
    )
