"""JSON document store for case graphs.

One document per claim, read and written wholesale. This is a local,
single-process adapter; a hosted document database plugs in at the same
seam.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Optional

from claimgraph.config_loader import Settings, default_settings
from claimgraph.errors import GraphConflictError, GraphStoreError
from claimgraph.graph.builder import build_graph_from_claim, create_empty_graph
from claimgraph.graph.ids import IdGenerator, uuid_ids
from claimgraph.graph.models import CaseGraph
from claimgraph.schema import LegacyClaim

logger = logging.getLogger(__name__)


class GraphStore:
    """Stores each claim's graph as ``<base_path>/<claim>.json``."""

    def __init__(self, base_path: str | Path | None = None, settings: Optional[Settings] = None):
        self.settings = settings or default_settings()
        self.base_path = Path(base_path or self.settings.storage.graph_dir)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _sanitize_filename(self, claim_id: str) -> str:
        """Convert claim_id to a safe, unique filename stem."""
        safe_name = "".join(c if c.isalnum() or c in "._-" else "_" for c in claim_id)
        if safe_name == claim_id:
            return safe_name
        id_hash = hashlib.md5(claim_id.encode()).hexdigest()[:8]
        return f"{safe_name}_{id_hash}"

    def _path(self, claim_id: str) -> Path:
        return self.base_path / f"{self._sanitize_filename(claim_id)}.json"

    def _read(self, path: Path) -> dict[str, Any]:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise GraphStoreError(f"Cannot read graph document {path}: {exc}") from exc

    # ------------------------------------------------------------------#
    # Documents
    # ------------------------------------------------------------------#
    def load_graph(self, claim_id: str) -> Optional[CaseGraph]:
        """Load the graph for a claim. Returns None if there is none."""
        path = self._path(claim_id)
        if not path.exists():
            return None
        data = self._read(path)
        try:
            return CaseGraph.from_dict(data)
        except (KeyError, ValueError, TypeError) as exc:
            raise GraphStoreError(f"Malformed graph document {path}: {exc}") from exc

    def save_graph(self, graph: CaseGraph, expected_updated_at: Optional[int] = None) -> Path:
        """Write the whole graph document.

        Args:
            graph: Graph to persist
            expected_updated_at: ``updatedAt`` of the stored document the
                caller loaded. When given, a different stored value means
                someone else saved in between.

        Raises:
            GraphConflictError: If the stored document changed or was deleted
        """
        path = self._path(graph.claim_id)
        if expected_updated_at is not None:
            # A document deleted since it was loaded is a conflict too
            stored = self._read(path).get("updatedAt") if path.exists() else None
            if stored != expected_updated_at:
                raise GraphConflictError(graph.claim_id, expected_updated_at, stored)

        payload = graph.to_dict()
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            raise GraphStoreError(f"Cannot write graph document {path}: {exc}") from exc

        logger.debug(
            f"Saved case graph {graph.claim_id}: {len(graph.nodes)} nodes, {len(graph.edges)} edges"
        )
        return path

    def get_or_create_graph(self, claim: LegacyClaim | dict, ids: IdGenerator = uuid_ids) -> CaseGraph:
        """Load the claim's graph, migrating the legacy record if none exists yet."""
        if not isinstance(claim, LegacyClaim):
            claim = LegacyClaim.model_validate(claim)
        existing = self.load_graph(claim.id)
        if existing is not None:
            return existing

        graph = build_graph_from_claim(claim, ids=ids, settings=self.settings)
        self.save_graph(graph)
        return graph

    def create_graph(self, claim_id: str) -> CaseGraph:
        """Create and persist an empty graph for a new claim."""
        graph = create_empty_graph(claim_id, self.settings)
        self.save_graph(graph)
        return graph

    def delete_graph(self, claim_id: str) -> None:
        path = self._path(claim_id)
        if path.exists():
            path.unlink()
            logger.info(f"Deleted case graph {claim_id}")

    def list_claim_ids(self) -> list[str]:
        """Claim ids of all stored graphs."""
        claim_ids = []
        for path in sorted(self.base_path.glob("*.json")):
            try:
                claim_ids.append(self._read(path)["claimId"])
            except (GraphStoreError, KeyError) as e:
                logger.warning(f"Skipping unreadable graph document {path}: {e}")
        return claim_ids
