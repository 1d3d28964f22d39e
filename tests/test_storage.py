"""Tests for the JSON graph document store."""

import json
from pathlib import Path

import pytest

from claimgraph.config_loader import GraphConfig, Settings, StorageConfig
from claimgraph.errors import GraphConflictError, GraphStoreError
from claimgraph.graph import builder, queries
from claimgraph.graph.ids import SequentialIds
from claimgraph.graph.models import CaseGraph
from claimgraph.graph.storage import GraphStore


def test_save_and_load(tmp_path: Path, strong_graph: CaseGraph):
    store = GraphStore(tmp_path)
    path = store.save_graph(strong_graph)

    assert path.exists()
    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["claimId"] == "claim_strong"
    assert document["version"] == 1

    loaded = store.load_graph("claim_strong")
    assert loaded.nodes == strong_graph.nodes
    assert loaded.edges == strong_graph.edges


def test_load_missing_returns_none(tmp_path: Path):
    assert GraphStore(tmp_path).load_graph("nope") is None


def test_unsafe_claim_ids_get_distinct_files(tmp_path: Path):
    store = GraphStore(tmp_path)
    store.create_graph("a/b")
    store.create_graph("a_b")

    assert len(list(tmp_path.glob("*.json"))) == 2
    assert sorted(store.list_claim_ids()) == ["a/b", "a_b"]


def test_get_or_create_migrates_once(tmp_path: Path, legacy_claim: dict):
    store = GraphStore(tmp_path)
    created = store.get_or_create_graph(legacy_claim, ids=SequentialIds())
    assert len(queries.get_events(created)) == 3

    # A second call loads the stored document instead of migrating again
    builder.add_event(created, None, "Added later", ids=SequentialIds(start=100))
    store.save_graph(created)
    again = store.get_or_create_graph(legacy_claim, ids=SequentialIds())
    assert len(queries.get_events(again)) == 4


def test_save_with_matching_expected_updated_at(tmp_path: Path, strong_graph: CaseGraph):
    store = GraphStore(tmp_path)
    store.save_graph(strong_graph)

    loaded = store.load_graph(strong_graph.claim_id)
    base = loaded.updated_at
    builder.update_node(loaded, queries.get_plaintiff(loaded).id, phone="052-1111111")
    store.save_graph(loaded, expected_updated_at=base)

    assert queries.get_plaintiff(store.load_graph(strong_graph.claim_id)).phone == "052-1111111"


def test_concurrent_save_conflicts(tmp_path: Path, strong_graph: CaseGraph):
    """Two writers from the same base: the second save is rejected."""
    store = GraphStore(tmp_path)
    store.save_graph(strong_graph)

    first = store.load_graph(strong_graph.claim_id)
    second = store.load_graph(strong_graph.claim_id)
    base = first.updated_at

    builder.update_node(first, queries.get_plaintiff(first).id, phone="1")
    store.save_graph(first, expected_updated_at=base)

    builder.update_node(second, queries.get_plaintiff(second).id, phone="2")
    with pytest.raises(GraphConflictError):
        store.save_graph(second, expected_updated_at=base)

    assert queries.get_plaintiff(store.load_graph(strong_graph.claim_id)).phone == "1"


def test_save_after_delete_conflicts(tmp_path: Path, strong_graph: CaseGraph):
    """A document deleted since it was loaded is not silently recreated."""
    store = GraphStore(tmp_path)
    store.save_graph(strong_graph)

    loaded = store.load_graph(strong_graph.claim_id)
    base = loaded.updated_at
    store.delete_graph(strong_graph.claim_id)

    builder.update_node(loaded, queries.get_plaintiff(loaded).id, phone="1")
    with pytest.raises(GraphConflictError) as exc_info:
        store.save_graph(loaded, expected_updated_at=base)
    assert exc_info.value.actual_updated_at is None
    assert store.load_graph(strong_graph.claim_id) is None


def test_corrupt_document_raises(tmp_path: Path):
    store = GraphStore(tmp_path)
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(GraphStoreError) as exc_info:
        store.load_graph("broken")
    assert not exc_info.value.retryable


def test_malformed_document_raises(tmp_path: Path):
    store = GraphStore(tmp_path)
    (tmp_path / "odd.json").write_text(
        json.dumps({"claimId": "odd", "nodes": [{"id": "x", "kind": "alien"}]}), encoding="utf-8"
    )
    with pytest.raises(GraphStoreError, match="Malformed"):
        store.load_graph("odd")


def test_list_skips_unreadable(tmp_path: Path):
    store = GraphStore(tmp_path)
    store.create_graph("good")
    (tmp_path / "bad.json").write_text("garbage", encoding="utf-8")
    assert store.list_claim_ids() == ["good"]


def test_delete_graph(tmp_path: Path):
    store = GraphStore(tmp_path)
    store.create_graph("gone")
    store.delete_graph("gone")
    store.delete_graph("gone")
    assert store.load_graph("gone") is None


def test_default_directory_from_settings(tmp_path: Path):
    graph_dir = tmp_path / "configured" / "graphs"
    settings = Settings(storage=StorageConfig(graph_dir=str(graph_dir)))

    store = GraphStore(settings=settings)
    path = store.save_graph(builder.create_empty_graph("c1"))

    assert store.base_path == graph_dir
    assert path.parent == graph_dir


def test_created_graphs_use_configured_version(tmp_path: Path):
    store = GraphStore(tmp_path, settings=Settings(graph=GraphConfig(version=3)))
    assert store.create_graph("c1").version == 3
    assert store.load_graph("c1").version == 3
