"""Tests for the rules engine."""

from claimgraph.config_loader import LegalConfig, Settings
from claimgraph.engine.rules import RuleSeverity, evaluate_rules
from claimgraph.graph import builder, queries
from claimgraph.graph.models import CaseGraph, EvidenceNode, PartyNode, PartyRole


def _ids(results) -> list[str]:
    return [r.rule_id for r in results]


def test_empty_graph_cannot_file(empty_graph: CaseGraph):
    """Empty graph: the basic blockers fire and filing is not possible."""
    output = evaluate_rules(empty_graph)

    assert {"no_plaintiff", "no_defendant", "no_amount"} <= set(_ids(output.blockers))
    assert not output.can_file
    assert _ids(output.blockers) == ["no_plaintiff", "no_defendant", "no_amount", "no_facts_summary"]
    assert _ids(output.warnings) == ["no_prior_notice", "no_evidence", "no_timeline"]
    assert output.infos == []


def test_empty_graph_next_actions(empty_graph: CaseGraph):
    actions = [a.id for a in evaluate_rules(empty_graph).next_actions]
    assert actions == [
        "complete_plaintiff", "add_defendant", "set_amount", "complete_interview",
        "add_evidence", "send_notice",
    ]


def test_strong_graph_can_file(strong_graph: CaseGraph):
    output = evaluate_rules(strong_graph)

    assert output.blockers == []
    assert output.warnings == []
    assert output.can_file
    assert _ids(output.infos) == ["strong_case"]
    assert [a.id for a in output.next_actions] == ["generate_filing", "mock_hearing"]


def test_can_file_iff_no_blockers(strong_graph: CaseGraph, empty_graph: CaseGraph):
    for graph in (strong_graph, empty_graph):
        output = evaluate_rules(graph)
        assert output.can_file == (len(output.blockers) == 0)
        assert output.to_dict()["canFile"] == output.can_file


def test_next_actions_sorted_by_priority(empty_graph: CaseGraph, ids):
    builder.add_node(empty_graph, EvidenceNode(id=ids("evid"), evidence_id="f"))
    builder.add_event(empty_graph, None, "Something", ids=ids)
    priorities = [a.priority for a in evaluate_rules(empty_graph).next_actions]
    assert priorities == sorted(priorities)
    assert 7 in priorities


def test_plaintiff_missing_details(empty_graph: CaseGraph):
    builder.add_node(empty_graph, PartyNode(id="p", role=PartyRole.PLAINTIFF, full_name="Dana"))
    output = evaluate_rules(empty_graph)

    blockers = _ids(output.blockers)
    assert "no_plaintiff" not in blockers
    assert "plaintiff_missing_id" in blockers
    assert "plaintiff_missing_address" in blockers
    assert output.blockers[blockers.index("plaintiff_missing_id")].related_node_ids == ["p"]
    assert output.next_actions[0].id == "complete_plaintiff"


def test_blank_plaintiff_name_is_missing(empty_graph: CaseGraph):
    builder.add_node(empty_graph, PartyNode(id="p", role=PartyRole.PLAINTIFF, full_name="   "))
    assert "no_plaintiff" in _ids(evaluate_rules(empty_graph).blockers)


def test_amount_exceeds_limit(strong_graph: CaseGraph):
    demand = queries.get_demands(strong_graph)[0]
    builder.update_node(strong_graph, demand.id, amount=50000)
    output = evaluate_rules(strong_graph)

    assert _ids(output.blockers) == ["amount_exceeds_limit"]
    assert "₪39,900" in output.blockers[0].description
    assert [a.id for a in output.next_actions] == ["reduce_amount"]


def test_amount_ceiling_from_settings(strong_graph: CaseGraph):
    settings = Settings(legal=LegalConfig(max_claim_amount=1000))
    assert "amount_exceeds_limit" in _ids(evaluate_rules(strong_graph, settings).blockers)


def test_one_event_and_demand_is_enough_narrative(empty_graph: CaseGraph, ids):
    builder.add_event(empty_graph, None, "Paid for a course that was cancelled", ids=ids)
    assert "no_facts_summary" in _ids(evaluate_rules(empty_graph).blockers)

    builder.add_demand(empty_graph, "Refund", 800, ids=ids)
    assert "no_facts_summary" not in _ids(evaluate_rules(empty_graph).blockers)


def test_uncovered_and_unlinked(strong_graph: CaseGraph, ids):
    event = builder.add_event(strong_graph, "2024-02-10", "Sent another complaint by email", ids=ids)
    evidence = builder.add_node(strong_graph, EvidenceNode(id=ids("evid"), evidence_id="x"))
    output = evaluate_rules(strong_graph)

    by_id = {r.rule_id: r for r in output.warnings}
    assert by_id["uncovered_events"].related_node_ids == [event.id]
    assert by_id["unlinked_evidence"].related_node_ids == [evidence.id]
    assert by_id["uncovered_events"].severity == RuleSeverity.WARNING
    assert "link_evidence" in [a.id for a in output.next_actions]


def test_vague_summary(empty_graph: CaseGraph, ids):
    builder.add_event(empty_graph, None, "Bad service", ids=ids)
    assert "vague_summary" in _ids(evaluate_rules(empty_graph).warnings)


def test_vague_summary_needs_events(empty_graph: CaseGraph):
    assert "vague_summary" not in _ids(evaluate_rules(empty_graph).warnings)


def test_no_written_agreement(empty_graph: CaseGraph, ids):
    builder.add_event(empty_graph, None, "We signed a contract for the renovation", ids=ids)
    assert "no_written_agreement" in _ids(evaluate_rules(empty_graph).warnings)

    builder.add_node(empty_graph, EvidenceNode(id=ids("evid"), evidence_id="c", tag="contract"))
    assert "no_written_agreement" not in _ids(evaluate_rules(empty_graph).warnings)


def test_no_written_agreement_hebrew_term(empty_graph: CaseGraph, ids):
    builder.add_event(empty_graph, None, "חתמנו על הסכם שכירות", ids=ids)
    assert "no_written_agreement" in _ids(evaluate_rules(empty_graph).warnings)


def test_no_legal_basis(strong_graph: CaseGraph, ids):
    extra = builder.add_demand(strong_graph, "Compensation for distress", 1000, ids=ids)
    [warning] = [r for r in evaluate_rules(strong_graph).warnings if r.rule_id == "no_legal_basis"]
    assert warning.related_node_ids == [extra.id]


def test_strong_case_requires_prior_notice(strong_graph: CaseGraph):
    notice = queries.get_prior_notices(strong_graph)[0]
    builder.remove_node(strong_graph, notice.id)
    output = evaluate_rules(strong_graph)

    assert output.infos == []
    assert _ids(output.warnings) == ["no_prior_notice"]
    assert output.can_file
