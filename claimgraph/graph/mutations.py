"""Apply a batch of edits to a copy of a graph.

The in-place helpers in ``builder`` mutate a shared value; this module
wraps them so a caller can describe an edit as data, apply it to a private
copy and detect a concurrent edit through ``expected_updated_at``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

from claimgraph.errors import GraphConflictError
from claimgraph.graph import builder
from claimgraph.graph.models import CaseGraph, GraphEdge, GraphNode


@dataclass(frozen=True)
class AddNode:
    node: GraphNode


@dataclass(frozen=True)
class UpdateNode:
    node_id: str
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoveNode:
    node_id: str


@dataclass(frozen=True)
class AddEdge:
    edge: GraphEdge


@dataclass(frozen=True)
class RemoveEdge:
    edge_id: str


Mutation = Union[AddNode, UpdateNode, RemoveNode, AddEdge, RemoveEdge]


def apply_mutation(graph: CaseGraph, mutation: Mutation) -> None:
    """Apply one mutation in place."""
    if isinstance(mutation, AddNode):
        builder.add_node(graph, copy.deepcopy(mutation.node))
    elif isinstance(mutation, UpdateNode):
        builder.update_node(graph, mutation.node_id, **mutation.changes)
    elif isinstance(mutation, RemoveNode):
        builder.remove_node(graph, mutation.node_id)
    elif isinstance(mutation, AddEdge):
        builder.add_edge(graph, copy.deepcopy(mutation.edge))
    elif isinstance(mutation, RemoveEdge):
        builder.remove_edge(graph, mutation.edge_id)
    else:
        raise TypeError(f"Unsupported mutation: {type(mutation).__name__}")


def apply_mutations(
    graph: CaseGraph,
    mutations: Sequence[Mutation],
    expected_updated_at: Optional[int] = None,
) -> CaseGraph:
    """Return a new graph with ``mutations`` applied in order.

    The input graph is left untouched. If any mutation fails the exception
    propagates and no partially edited graph escapes.

    Args:
        graph: Graph as loaded by the caller
        mutations: Ordered edits
        expected_updated_at: ``updated_at`` the caller based its edit on

    Raises:
        GraphConflictError: If ``expected_updated_at`` is stale
        ValueError: If a mutation is invalid (unknown field, dangling edge)
    """
    if expected_updated_at is not None and expected_updated_at != graph.updated_at:
        raise GraphConflictError(graph.claim_id, expected_updated_at, graph.updated_at)

    result = copy.deepcopy(graph)
    for mutation in mutations:
        apply_mutation(result, mutation)
    return result
