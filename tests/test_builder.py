"""Tests for graph construction, mutation helpers and legacy migration."""

import pytest

from claimgraph.config_loader import GraphConfig, Settings
from claimgraph.graph import builder, queries
from claimgraph.graph.ids import SequentialIds
from claimgraph.graph.models import (
    CaseGraph,
    CommunicationMedium,
    EdgeKind,
    EventCategory,
    EvidenceNode,
    EvidenceType,
    GraphEdge,
    NodeKind,
    PartyNode,
    PartyRole,
    PartyType,
    RiskSeverity,
)
from claimgraph.schema import LegacyClaim


def _kinds(graph: CaseGraph, kind: NodeKind) -> int:
    return len(queries.get_nodes_by_kind(graph, kind))


def test_create_empty_graph():
    graph = builder.create_empty_graph("claim_1")
    assert graph.claim_id == "claim_1"
    assert graph.version == 1
    assert graph.nodes == [] and graph.edges == []
    assert graph.updated_at == graph.created_at


def test_create_empty_graph_uses_configured_version():
    settings = Settings(graph=GraphConfig(version=2))
    assert builder.create_empty_graph("claim_1", settings).version == 2


def test_add_node_advances_updated_at(empty_graph: CaseGraph, ids):
    before = empty_graph.updated_at
    builder.add_event(empty_graph, "2024-01-01", "Something happened", ids=ids)
    assert empty_graph.updated_at > before


def test_add_node_rejects_duplicate_id(empty_graph: CaseGraph):
    builder.add_node(empty_graph, PartyNode(id="party_1", role=PartyRole.PLAINTIFF))
    with pytest.raises(ValueError, match="Duplicate node id"):
        builder.add_node(empty_graph, PartyNode(id="party_1", role=PartyRole.DEFENDANT))


def test_add_event_truncates_label(empty_graph: CaseGraph, ids):
    description = "x" * 100
    event = builder.add_event(empty_graph, None, description, "incident", ids=ids)
    assert len(event.label) == 60
    assert event.description == description
    assert event.category == EventCategory.INCIDENT


def test_update_node_changes_fields(empty_graph: CaseGraph, ids):
    party = builder.add_node(empty_graph, PartyNode(id=ids("party"), role=PartyRole.PLAINTIFF))
    updated = builder.update_node(empty_graph, party.id, address="1 Main St", party_type="sole_proprietor")

    assert updated.address == "1 Main St"
    assert updated.party_type == PartyType.SOLE_PROPRIETOR
    assert queries.get_node(empty_graph, party.id).address == "1 Main St"
    assert updated.updated_at == empty_graph.updated_at


def test_update_node_never_changes_id_or_kind(empty_graph: CaseGraph, ids):
    event = builder.add_event(empty_graph, None, "Event", ids=ids)
    updated = builder.update_node(empty_graph, event.id, id="hijacked", kind="party", description="New")

    assert updated.id == event.id
    assert updated.kind == NodeKind.EVENT
    assert updated.description == "New"


def test_update_node_unknown_field(empty_graph: CaseGraph, ids):
    event = builder.add_event(empty_graph, None, "Event", ids=ids)
    with pytest.raises(ValueError, match="has no field 'amount'"):
        builder.update_node(empty_graph, event.id, amount=5)


def test_update_unknown_node_is_noop(empty_graph: CaseGraph):
    assert builder.update_node(empty_graph, "missing", label="x") is None


def test_remove_node_cascades_edges(strong_graph: CaseGraph):
    """No edge references a removed node."""
    event = queries.get_events(strong_graph)[0]
    builder.remove_node(strong_graph, event.id)

    assert queries.get_node(strong_graph, event.id) is None
    assert all(e.source != event.id and e.target != event.id for e in strong_graph.edges)


def test_remove_unknown_ids_do_not_raise(empty_graph: CaseGraph):
    builder.remove_node(empty_graph, "missing")
    builder.remove_edge(empty_graph, "missing")
    assert empty_graph.nodes == []


def test_add_edge_is_idempotent(empty_graph: CaseGraph, ids):
    """Adding the same (source, target, kind) twice keeps one edge."""
    a = builder.add_event(empty_graph, None, "A", ids=ids)
    b = builder.add_event(empty_graph, None, "B", ids=ids)

    first = builder.connect(empty_graph, EdgeKind.FOLLOWED_BY, a.id, b.id, ids=ids)
    second = builder.connect(empty_graph, EdgeKind.FOLLOWED_BY, a.id, b.id, ids=ids)

    assert len(empty_graph.edges) == 1
    assert second is first


def test_duplicate_connect_draws_no_id(empty_graph: CaseGraph):
    """Sequential edge ids stay gapless across duplicate connects."""
    ids = SequentialIds()
    a = builder.add_event(empty_graph, None, "A", ids=ids)
    b = builder.add_event(empty_graph, None, "B", ids=ids)

    first = builder.connect(empty_graph, EdgeKind.FOLLOWED_BY, a.id, b.id, ids=ids)
    builder.connect(empty_graph, EdgeKind.FOLLOWED_BY, a.id, b.id, ids=ids)
    other = builder.connect(empty_graph, EdgeKind.CAUSED_BY, a.id, b.id, ids=ids)

    assert (first.id, other.id) == ("edge_3", "edge_4")


def test_same_endpoints_different_kind_are_distinct(empty_graph: CaseGraph, ids):
    a = builder.add_event(empty_graph, None, "A", ids=ids)
    b = builder.add_event(empty_graph, None, "B", ids=ids)
    builder.connect(empty_graph, EdgeKind.FOLLOWED_BY, a.id, b.id, ids=ids)
    builder.connect(empty_graph, EdgeKind.CAUSED_BY, a.id, b.id, ids=ids)
    assert len(empty_graph.edges) == 2


def test_add_edge_rejects_dangling_endpoint(empty_graph: CaseGraph, ids):
    a = builder.add_event(empty_graph, None, "A", ids=ids)
    with pytest.raises(ValueError, match="unknown node"):
        builder.add_edge(empty_graph, GraphEdge(id="e", kind=EdgeKind.SUPPORTS, source="ghost", target=a.id))


def test_link_evidence_creates_supports_edge(empty_graph: CaseGraph, ids):
    event = builder.add_event(empty_graph, None, "A", ids=ids)
    evidence = builder.add_node(empty_graph, EvidenceNode(id=ids("evid"), evidence_id="f1"))
    edge = builder.link_evidence_to_event(empty_graph, evidence.id, event.id, ids=ids)

    assert edge.kind == EdgeKind.SUPPORTS
    assert edge.weight == 1.0
    assert queries.get_evidence_for(empty_graph, event.id) == [evidence]


# ========== Migration ==========


def test_build_graph_from_claim_counts(legacy_claim: dict):
    graph = builder.build_graph_from_claim(legacy_claim, ids=SequentialIds())

    assert graph.claim_id == "claim_legacy"
    assert len(queries.get_parties(graph)) == 2
    assert _kinds(graph, NodeKind.EVENT) == 3
    assert _kinds(graph, NodeKind.DEMAND) == 2
    assert _kinds(graph, NodeKind.EVIDENCE) == 2
    assert _kinds(graph, NodeKind.COMMUNICATION) == 1
    assert _kinds(graph, NodeKind.RISK) == 1
    # 2 demands x (filed_by + filed_against) + 2 followed_by
    assert len(graph.edges) == 6
    assert len(queries.get_edges_by_kind(graph, EdgeKind.FOLLOWED_BY)) == 2


def test_build_graph_from_claim_is_deterministic(legacy_claim: dict):
    """Same input, same ids: same structure."""
    first = builder.build_graph_from_claim(legacy_claim, ids=SequentialIds())
    second = builder.build_graph_from_claim(legacy_claim, ids=SequentialIds())

    assert [n.id for n in first.nodes] == [n.id for n in second.nodes]
    assert [e.key for e in first.edges] == [e.key for e in second.edges]


def test_migration_details(legacy_claim: dict):
    graph = builder.build_graph_from_claim(legacy_claim, ids=SequentialIds())

    plaintiff = queries.get_plaintiff(graph)
    assert plaintiff.full_name == "Dana Levi"
    assert plaintiff.id_number == "123456782"
    assert plaintiff.party_type == PartyType.INDIVIDUAL

    demands = queries.get_demands(graph)
    assert demands[0].amount == 5000
    assert demands[1].amount is None
    assert all(d.legal_basis == "Consumer Protection Law s.31" for d in demands)

    events = queries.get_events(graph)
    assert events[1].description == "The machine broke down"
    assert events[2].date is None

    evidence = queries.get_evidence(graph)
    assert evidence[0].evidence_type == EvidenceType.IMAGE
    assert evidence[0].created_at == 1700000000000
    assert evidence[1].evidence_type == EvidenceType.DOCUMENT

    notice = queries.get_prior_notices(graph)[0]
    assert notice.medium == CommunicationMedium.LETTER

    assert queries.get_risks(graph)[0].severity == RiskSeverity.MEDIUM

    for demand in demands:
        targets = {e.kind: e.target for e in queries.get_out_edges(graph, demand.id)}
        assert targets[EdgeKind.FILED_BY] == plaintiff.id
        assert targets[EdgeKind.FILED_AGAINST] == queries.get_defendants(graph)[0].id


def test_migration_structured_plaintiff_and_synthesized_demand():
    """Without demands, a positive amount becomes one compensation demand."""
    claim = LegacyClaim.model_validate({
        "id": "c2",
        "plaintiff": {"fullName": "Noa Cohen", "type": "sole_proprietor", "address": "Tel Aviv"},
        "defendants": [{"name": "Landlord", "address": "Haifa"}, {"name": "Agent"}],
        "amount": 12000,
        "summary": "Deposit was not returned",
    })
    graph = builder.build_graph_from_claim(claim, ids=SequentialIds())

    plaintiff = queries.get_plaintiff(graph)
    assert plaintiff.full_name == "Noa Cohen"
    assert plaintiff.address == "Tel Aviv"
    assert plaintiff.party_type == PartyType.SOLE_PROPRIETOR

    assert len(queries.get_defendants(graph)) == 2

    [demand] = queries.get_demands(graph)
    assert demand.amount == 12000
    assert demand.label == "Monetary compensation: ₪12,000"
    assert demand.description == "Deposit was not returned"
    # Demand is filed against the first defendant only
    assert len(queries.get_edges_by_kind(graph, EdgeKind.FILED_AGAINST)) == 1


def test_migration_of_empty_claim():
    graph = builder.build_graph_from_claim({"id": "bare"}, ids=SequentialIds())
    assert graph.nodes == []
    assert graph.edges == []


def test_summarize_graph(strong_graph: CaseGraph):
    summary = builder.summarize_graph(strong_graph)

    assert summary.party_count == 2
    assert summary.event_count == 3
    assert summary.evidence_count == 3
    assert summary.linked_evidence_count == 3
    assert summary.substantiated_demand_count == 1
    assert summary.has_prior_notice
    assert summary.total_amount == 5000
    assert summary.total_nodes == len(strong_graph.nodes)
