"""Case graph: typed nodes and edges describing one small-claims case."""

from claimgraph.graph.builder import build_graph_from_claim, create_empty_graph, summarize_graph
from claimgraph.graph.ids import IdGenerator, SequentialIds, uuid_ids
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
    RiskNode,
)
from claimgraph.graph.mutations import apply_mutations
from claimgraph.graph.storage import GraphStore

__all__ = [
    "CaseGraph",
    "GraphNode",
    "GraphEdge",
    "NodeKind",
    "EdgeKind",
    "EventNode",
    "DemandNode",
    "EvidenceNode",
    "CommunicationNode",
    "PartyNode",
    "RiskNode",
    "IdGenerator",
    "SequentialIds",
    "uuid_ids",
    "build_graph_from_claim",
    "create_empty_graph",
    "summarize_graph",
    "apply_mutations",
    "GraphStore",
]
