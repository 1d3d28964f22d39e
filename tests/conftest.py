"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from claimgraph.graph import builder
from claimgraph.graph.ids import SequentialIds
from claimgraph.graph.models import (
    CaseGraph,
    CommunicationMedium,
    CommunicationNode,
    EvidenceNode,
    EvidenceType,
    PartyNode,
    PartyRole,
)

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def project_root() -> Path:
    """Return project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def config_path(project_root: Path) -> Path:
    """Return path to config.yaml."""
    return project_root / "config" / "config.yaml"


@pytest.fixture
def ids() -> SequentialIds:
    """Deterministic id generator."""
    return SequentialIds()


@pytest.fixture
def empty_graph() -> CaseGraph:
    return builder.create_empty_graph("claim_empty")


@pytest.fixture
def strong_graph(ids: SequentialIds) -> CaseGraph:
    """Complete case: both parties, one 5,000 demand with a legal basis,
    three described events, three linked evidence items and a prior notice."""
    graph = builder.create_empty_graph("claim_strong")

    builder.add_node(graph, PartyNode(
        id=ids("party"), label="Dana Levi", role=PartyRole.PLAINTIFF, full_name="Dana Levi",
        id_number="123456782", phone="050-1234567", address="12 Herzl St, Haifa",
    ))
    builder.add_node(graph, PartyNode(
        id=ids("party"), label="Appliance Store Ltd", role=PartyRole.DEFENDANT,
        full_name="Appliance Store Ltd", address="3 Jaffa Rd, Jerusalem",
    ))

    demand = builder.add_demand(
        graph, "Refund of the price of the washing machine", 5000,
        "Consumer Protection Law s.31", ids=ids,
    )
    events = [
        builder.add_event(graph, "2024-01-10", "Bought a washing machine from the store for 5,000", ids=ids),
        builder.add_event(graph, "2024-01-24", "The washing machine broke down after two weeks of use", ids=ids),
        builder.add_event(graph, "2024-02-01", "The store refused to repair or replace the machine", ids=ids),
    ]

    for n, event in enumerate(events, 1):
        evidence = builder.add_node(graph, EvidenceNode(
            id=ids("evid"), label=f"Evidence {n}", evidence_id=f"file_{n}",
            evidence_type=EvidenceType.DOCUMENT,
        ))
        builder.link_evidence_to_event(graph, evidence.id, event.id, ids=ids)
        if n == 1:
            builder.link_evidence_to_demand(graph, evidence.id, demand.id, ids=ids)

    builder.add_node(graph, CommunicationNode(
        id=ids("comm"), label="Warning letter", date="2024-02-05",
        medium=CommunicationMedium.LETTER, summary="Demanded a refund within 14 days",
        is_prior_notice=True,
    ))
    return graph


@pytest.fixture
def legacy_claim() -> dict:
    """Legacy flat claim record as stored before the graph existed."""
    return {
        "id": "claim_legacy",
        "userId": "user_1",
        "status": "draft",
        "claimType": "consumer",
        "plaintiffName": "Dana Levi",
        "plaintiffId": "123456782",
        "plaintiffPhone": "050-1234567",
        "plaintiffAddress": "12 Herzl St, Haifa",
        "defendant": "Appliance Store Ltd",
        "defendantAddress": "3 Jaffa Rd, Jerusalem",
        "amountClaimedNis": 5000,
        "factsSummary": "The washing machine I bought broke after two weeks and the store refused a refund.",
        "timeline": [
            {"date": "2024-01-10", "description": "Bought a washing machine"},
            {"date": "2024-01-24", "event": "The machine broke down"},
            {"date": None, "description": "Store refused to refund"},
        ],
        "demands": ["Refund of 5,000", "Compensation for inconvenience"],
        "legalBasis": "Consumer Protection Law s.31",
        "evidence": [
            {"id": "ev_1", "uri": "https://files.example/receipt.jpg", "type": "image",
             "name": "Receipt", "tag": "receipt", "uploadedAt": 1700000000000},
            {"id": "ev_2", "uri": "https://files.example/warranty.pdf", "type": "document",
             "name": "Warranty"},
        ],
        "riskFlags": [
            {"id": "no_proof_of_payment", "severity": "medium", "title": "No proof of payment",
             "description": "Attach a bank statement", "icon": "💳"},
        ],
        "hasPriorNotice": True,
        "hasWrittenAgreement": False,
    }
