"""CLI utility to assess a case file: rules, scores and next actions.

The input is a JSON file holding either a persisted graph document
(``claimId`` + ``nodes``) or a legacy flat claim record (``id``).
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from claimgraph.config.legal import format_amount
from claimgraph.config_loader import Settings, get_settings
from claimgraph.engine.graph_scoring import GraphScoreResult, score_graph
from claimgraph.engine.rules import RulesOutput, evaluate_rules
from claimgraph.graph.builder import build_graph_from_claim, summarize_graph
from claimgraph.graph.models import CaseGraph

logger = logging.getLogger(__name__)


def load_case(path: Path, settings: Settings) -> CaseGraph:
    """Load a graph document, or migrate a legacy claim record."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if "claimId" in data and "nodes" in data:
        return CaseGraph.from_dict(data)
    logger.info(f"{path.name} is a legacy claim record, building graph")
    return build_graph_from_claim(data, settings=settings)


def format_report(graph: CaseGraph, rules: RulesOutput, score: GraphScoreResult, settings: Settings) -> str:
    """Format the assessment for display.

    Args:
        graph: Assessed graph
        rules: Rules output
        score: Graph score
        settings: Settings (for currency formatting)

    Returns:
        Formatted string
    """
    summary = summarize_graph(graph)
    lines = [
        "=" * 60,
        f"Claim {graph.claim_id}",
        "=" * 60,
        f"Nodes: {summary.total_nodes} | Edges: {summary.total_edges} | "
        f"Amount: {format_amount(summary.total_amount, settings.legal)}",
        "",
        f"Readiness:            {score.readiness_score}",
        f"Evidence coverage:    {score.evidence_coverage}",
        f"Timeline consistency: {score.timeline_consistency}",
        f"Legal completeness:   {score.legal_completeness}",
        f"Strength:             {score.strength_score.value}",
        "",
        f"Can file: {'yes' if rules.can_file else 'no'}",
    ]

    for heading, results in (("Blockers", rules.blockers), ("Warnings", rules.warnings), ("Info", rules.infos)):
        if results:
            lines.append(f"\n{heading}:")
            lines.extend(f"  - [{r.rule_id}] {r.title}" for r in results)

    if rules.next_actions:
        lines.append("\nNext actions:")
        lines.extend(f"  {a.priority:>2}. {a.title} ({a.id})" for a in rules.next_actions)

    return "\n".join(lines)


def main():
    """Main entry point for assess CLI."""
    parser = argparse.ArgumentParser(
        description="Assess a small-claims case file - rules, scores and next actions"
    )
    parser.add_argument(
        "case_file",
        type=Path,
        help="Graph document or legacy claim record (JSON)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.yaml (default: config/config.yaml)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON",
    )

    args = parser.parse_args()

    settings = get_settings(args.config)
    logging.basicConfig(level=settings.logging.level, format=settings.logging.format)

    try:
        graph = load_case(args.case_file, settings)
    except (OSError, json.JSONDecodeError, ValidationError, KeyError, ValueError) as e:
        print(f"Error: cannot read {args.case_file}: {e}", file=sys.stderr)
        sys.exit(1)

    rules = evaluate_rules(graph, settings)
    score = score_graph(graph, settings)

    if args.json:
        print(json.dumps(
            {"claimId": graph.claim_id, "rules": rules.to_dict(), "score": score.to_dict()},
            indent=2,
            ensure_ascii=False,
        ))
    else:
        print(format_report(graph, rules, score, settings))

    sys.exit(0 if rules.can_file else 2)


if __name__ == "__main__":
    main()
