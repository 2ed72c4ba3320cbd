"""Lint rules for move datasets.

Findings are collected, never raised: the graph still builds and lays out
with the affected item dropped or defaulted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..models import Finding, clamp_weight

if TYPE_CHECKING:
    from .graph import MoveGraph
    from .schemes import SchemeRegistry


LEVEL_ORDER = {"error": 0, "warning": 1, "info": 2}

RULE_EXPLANATIONS = {
    "invalid-move": "A move entry has no name or is not a mapping; it is dropped.",
    "duplicate-move": "Move names are unique per dataset (case-insensitive); later duplicates are dropped.",
    "invalid-tier": "Tiers are difficulty bands 1-4; other values are clamped for layout, non-numbers become tier 1.",
    "invalid-category": "Categories are solo or partnered; anything else is treated as partnered.",
    "invalid-relationship": "A relationship entry has no target name or is not a mapping; it is dropped.",
    "dangling-relationship": "A relationship names a move that does not exist; the relationship is dropped.",
    "self-relationship": "A relationship points back at the declaring move; it is dropped.",
    "unknown-relation-type": "Relationship types are prerequisite, variation, leads_to and related; others become related.",
    "duplicate-edge": "Only the first relationship between two moves becomes an edge.",
    "alias-resolved": "A relationship target matched an alias rather than a move name.",
    "multiple-variation-parents": "A move is a variation of at most one parent; the first declaration wins.",
    "weight-out-of-range": "Relationship weights are expected in [0, 1]; layout clamps them, non-numbers become 1.0.",
    "prerequisite-harder": "A prerequisite sits in a higher tier than the move that requires it.",
    "leads-to-simpler": "A move leads to a move more than one tier below it.",
    "unmapped-classification": "A classification value has no group in a scheme; it renders in the middle band.",
    "classification-drift": "A stored classification differs from what the classifier computes.",
    "prerequisite-cycle": "Prerequisite edges form a cycle, so no learning order exists.",
}


def sort_findings(findings: list[Finding]) -> list[Finding]:
    return sorted(findings, key=lambda f: (LEVEL_ORDER.get(f.level, 99), f.move or "", f.rule))


class DatasetRules:
    """Collection of lint rules over a built move graph."""

    def __init__(self, graph: "MoveGraph", schemes: "SchemeRegistry"):
        self.graph = graph
        self.schemes = schemes

    def run_all(self) -> list[Finding]:
        """Builder findings plus every dataset check, errors first."""
        results = list(self.graph.findings)
        results.extend(self.check_weights())
        results.extend(self.check_prerequisite_tiers())
        results.extend(self.check_leads_to_tiers())
        results.extend(self.check_scheme_coverage())
        results.extend(self.check_unmapped_nodes())
        results.extend(self.check_classification_drift())
        results.extend(self.check_prerequisite_cycles())
        return sort_findings(results)

    def check_weights(self) -> list[Finding]:
        results = []
        for move in self.graph.moves.values():
            for rel in move.relationships:
                if clamp_weight(rel.weight) != rel.weight:
                    results.append(
                        Finding(
                            level="warning",
                            rule="weight-out-of-range",
                            move=move.name,
                            message=f"Relationship to '{rel.target}': weight {rel.weight} out of range [0, 1]",
                        )
                    )
        return results

    def check_prerequisite_tiers(self) -> list[Finding]:
        """The move declaring a prerequisite should be at least as hard as it."""
        results = []
        for move in self.graph.moves.values():
            node = self.graph.node(move.id)
            for rel in move.relationships:
                if rel.type != "prerequisite":
                    continue
                target = self.graph.find(rel.target)
                if node is None or target is None or target.id == node.id:
                    continue
                if node.tier < target.tier:
                    results.append(
                        Finding(
                            level="warning",
                            rule="prerequisite-harder",
                            move=move.name,
                            message=(
                                f"(tier {node.tier}) declares prerequisite '{target.name}' (tier {target.tier})"
                                " - prerequisite is harder than the move itself"
                            ),
                        )
                    )
        return results

    def check_leads_to_tiers(self) -> list[Finding]:
        results = []
        for move in self.graph.moves.values():
            node = self.graph.node(move.id)
            for rel in move.relationships:
                if rel.type != "leads_to":
                    continue
                target = self.graph.find(rel.target)
                if node is None or target is None:
                    continue
                if target.tier < node.tier - 1:
                    results.append(
                        Finding(
                            level="info",
                            rule="leads-to-simpler",
                            move=move.name,
                            message=f"(tier {node.tier}) leads to '{target.name}' (tier {target.tier}) - a much simpler move",
                        )
                    )
        return results

    def check_scheme_coverage(self) -> list[Finding]:
        return self.schemes.check_coverage()

    def check_unmapped_nodes(self) -> list[Finding]:
        return self.schemes.check_nodes(self.graph.nodes)

    def check_classification_drift(self) -> list[Finding]:
        results = []
        for move in self.graph.moves.values():
            stored = move.declared_classification
            node = self.graph.node(move.id)
            if stored is None or node is None:
                continue
            computed = node.classification.as_dict()
            for field_name, value in stored.as_dict().items():
                if value and value != computed[field_name]:
                    results.append(
                        Finding(
                            level="info",
                            rule="classification-drift",
                            move=move.name,
                            message=f"Stored {field_name}='{value}' but classifier gives '{computed[field_name]}'",
                        )
                    )
        return results

    def check_prerequisite_cycles(self) -> list[Finding]:
        results = []
        for cycle in self.graph.find_cycles(("prerequisite",)):
            names = [self.graph.node(nid).name for nid in cycle]
            results.append(
                Finding(
                    level="warning",
                    rule="prerequisite-cycle",
                    move=names[0],
                    message=f"Prerequisite cycle detected: {' → '.join(names + names[:1])}",
                )
            )
        return results
