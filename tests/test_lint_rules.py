"""Golden tests for all lint rules."""

from movegraph.models import Classification, Finding, Move, Relationship
from movegraph.style.graph import GraphBuilder, MoveGraph
from movegraph.style.rules import RULE_EXPLANATIONS, DatasetRules, sort_findings
from movegraph.style.schemes import SchemeRegistry


def _rules_for(*moves: Move, schemes: SchemeRegistry | None = None) -> DatasetRules:
    graph = GraphBuilder().build(moves)
    return DatasetRules(graph, schemes or SchemeRegistry.defaults())


def test_sample_dataset_is_clean(sample_graph: MoveGraph):
    assert DatasetRules(sample_graph, SchemeRegistry.defaults()).run_all() == []


def test_weight_out_of_range():
    rules = _rules_for(
        Move(id="a", name="A", relationships=(Relationship("B", weight=1.5),)),
        Move(id="b", name="B", relationships=(Relationship("A", weight=-0.1, type="leads_to"),)),
    )
    results = rules.check_weights()
    assert [r.rule for r in results] == ["weight-out-of-range", "weight-out-of-range"]
    assert all(r.level == "warning" for r in results)
    assert "1.5" in results[0].message


def test_prerequisite_harder():
    rules = _rules_for(
        Move(id="easy", name="Easy", tier=1, relationships=(Relationship("Hard", type="prerequisite"),)),
        Move(id="hard", name="Hard", tier=3),
    )
    results = rules.check_prerequisite_tiers()
    assert len(results) == 1
    assert results[0].rule == "prerequisite-harder"
    assert results[0].level == "warning"
    assert results[0].move == "Easy"


def test_prerequisite_same_tier_is_fine():
    rules = _rules_for(
        Move(id="a", name="A", tier=2, relationships=(Relationship("B", type="prerequisite"),)),
        Move(id="b", name="B", tier=2),
    )
    assert rules.check_prerequisite_tiers() == []


def test_leads_to_much_simpler():
    rules = _rules_for(
        Move(
            id="adv",
            name="Advanced",
            tier=4,
            relationships=(Relationship("Basic", type="leads_to"), Relationship("Mid", type="leads_to")),
        ),
        Move(id="basic", name="Basic", tier=1),
        Move(id="mid", name="Mid", tier=3),
    )
    results = rules.check_leads_to_tiers()
    assert len(results) == 1
    assert results[0].rule == "leads-to-simpler"
    assert results[0].level == "info"
    assert "Basic" in results[0].message


def test_unmapped_classification_in_scheme():
    schemes = SchemeRegistry.from_dict(
        {
            "partial": {
                "label": "Partial",
                "nodeKey": "positionFrame",
                "groups": {"open": {"position": 0.5, "color": {"base": "#000", "light": "#fff"}, "label": "Open"}},
            }
        }
    )
    rules = _rules_for(Move(id="f", name="Frame"), schemes=schemes)

    coverage = rules.check_scheme_coverage()
    assert {f.details["value"] for f in coverage} == {"closed", "tandem", "side_by_side", "solo"}
    assert all(f.move is None for f in coverage)

    nodes = rules.check_unmapped_nodes()
    assert len(nodes) == 1
    assert nodes[0].move == "Frame"
    assert nodes[0].rule == "unmapped-classification"
    assert "closed" in nodes[0].message


def test_default_schemes_cover_every_classifier_value():
    assert SchemeRegistry.defaults().check_coverage() == []


def test_classification_drift():
    stored = Classification(family="charleston", movement_family="fundamentals", position_frame="")
    rules = _rules_for(Move(id="rs", name="Rock Step", declared_classification=stored))
    results = rules.check_classification_drift()
    assert len(results) == 1
    assert results[0].rule == "classification-drift"
    assert results[0].level == "info"
    assert "family='charleston'" in results[0].message


def test_prerequisite_cycle():
    rules = _rules_for(
        Move(id="a", name="A", relationships=(Relationship("B", type="prerequisite"),)),
        Move(id="b", name="B", relationships=(Relationship("C", type="prerequisite"),)),
        Move(id="c", name="C", relationships=(Relationship("A", type="prerequisite"),)),
    )
    results = rules.check_prerequisite_cycles()
    assert len(results) == 1
    assert results[0].rule == "prerequisite-cycle"
    assert results[0].level == "warning"
    assert "cycle" in results[0].message.lower()


def test_run_all_includes_builder_findings_sorted_by_level():
    rules = _rules_for(
        Move(id="a", name="A", relationships=(Relationship("Ghost"), Relationship("B"))),
        Move(id="b", name="B", relationships=(Relationship("A"),)),
    )
    results = rules.run_all()
    assert [r.rule for r in results] == ["dangling-relationship", "duplicate-edge"]
    assert [r.level for r in results] == ["warning", "info"]


def test_sort_findings_orders_errors_first():
    findings = [
        Finding(level="info", rule="x", move="B", message=""),
        Finding(level="error", rule="y", move="A", message=""),
        Finding(level="warning", rule="z", move="C", message=""),
    ]
    assert [f.level for f in sort_findings(findings)] == ["error", "warning", "info"]


def test_every_emitted_rule_is_explained():
    emitted = {
        "invalid-move", "duplicate-move", "invalid-tier", "dangling-relationship",
        "self-relationship", "unknown-relation-type", "duplicate-edge", "alias-resolved",
        "multiple-variation-parents", "weight-out-of-range", "prerequisite-harder",
        "leads-to-simpler", "unmapped-classification", "classification-drift", "prerequisite-cycle",
    }
    assert emitted <= set(RULE_EXPLANATIONS)


def test_finding_str():
    finding = Finding(level="warning", rule="dangling-relationship", move="Swingout", message="gone")
    assert str(finding) == "WARNING: [dangling-relationship] Swingout - gone"
    assert finding.to_dict()["rule"] == "dangling-relationship"
