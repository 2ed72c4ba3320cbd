"""Relationship graph construction and analysis.

Moves declare relationships from their own point of view. `prerequisite` and
`variation` are declared child -> parent ("I require X", "I am a variant of
X"); `leads_to` and `related` are declared source -> target. The builder
normalizes everything so that edges read parent/simpler -> child/advanced,
keeps at most one edge per unordered pair of moves, and records each
variation's parent for layout.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ..models import (
    CHILD_DECLARED_TYPES,
    RELATION_TYPES,
    Classification,
    Edge,
    Finding,
    Move,
    Node,
    Relationship,
    clamp_tier,
    name_key,
)
from .classifier import classify

logger = logging.getLogger(__name__)


class GraphBuildError(ValueError):
    """Raised when a dataset cannot produce a graph at all."""


@dataclass(frozen=True)
class DeclaredRelationship:
    """A resolved relationship, still oriented the way it was declared."""

    type: str
    declared_source: str  # node id of the declaring move
    declared_target: str  # node id of the named move
    weight: float


def normalize_direction(rel: DeclaredRelationship) -> tuple[str, str]:
    """Return (source, target) for display: parent/simpler -> child/advanced."""
    if rel.type in CHILD_DECLARED_TYPES:
        return rel.declared_target, rel.declared_source
    return rel.declared_source, rel.declared_target


@dataclass
class MoveGraph:
    """Deduplicated node/edge set plus the findings collected while building it."""

    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    moves: dict[str, Move] = field(default_factory=dict)  # node id -> Move
    _by_id: dict[str, Node] = field(default_factory=dict, repr=False)
    _by_key: dict[str, str] = field(default_factory=dict, repr=False)  # name/alias key -> id

    def __post_init__(self):
        self._build_lookups()

    def _build_lookups(self):
        self._by_id = {node.id: node for node in self.nodes}
        self._by_key = {}
        for node in self.nodes:
            self._by_key[name_key(node.name)] = node.id
        for node in self.nodes:
            for alias in node.aliases:
                self._by_key.setdefault(name_key(alias), node.id)

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, node_id: str) -> Node | None:
        return self._by_id.get(node_id)

    def find(self, name: str) -> Node | None:
        """Get node by name or alias (case-insensitive)."""
        node_id = self._by_key.get(name_key(name))
        return self._by_id.get(node_id) if node_id else None

    def edges_of_type(self, rel_type: str) -> list[Edge]:
        return [e for e in self.edges if e.type == rel_type]

    def outgoing(self, node_id: str, rel_type: str | None = None) -> list[Edge]:
        return [e for e in self.edges if e.source == node_id and (rel_type is None or e.type == rel_type)]

    def incoming(self, node_id: str, rel_type: str | None = None) -> list[Edge]:
        return [e for e in self.edges if e.target == node_id and (rel_type is None or e.type == rel_type)]

    def variations_of(self, node_id: str) -> list[Node]:
        return [n for n in self.nodes if n.parent_id == node_id]

    def _adjacency(self, types: Iterable[str]) -> dict[str, set[str]]:
        wanted = set(types)
        adjacency: dict[str, set[str]] = defaultdict(set)
        for edge in self.edges:
            if edge.type in wanted:
                adjacency[edge.source].add(edge.target)
        return adjacency

    def find_cycles(self, types: Iterable[str] = ("prerequisite",)) -> list[list[str]]:
        """Find cycles among edges of the given types.

        Uses Tarjan's strongly connected components; only components with
        more than one node are returned (node ids, in discovery order).
        """
        adjacency = self._adjacency(types)
        index_counter = [0]
        stack: list[str] = []
        lowlinks: dict[str, int] = {}
        index: dict[str, int] = {}
        on_stack: dict[str, bool] = {}
        sccs: list[list[str]] = []

        def strongconnect(node: str) -> None:
            index[node] = index_counter[0]
            lowlinks[node] = index_counter[0]
            index_counter[0] += 1
            stack.append(node)
            on_stack[node] = True

            for nxt in sorted(adjacency.get(node, set())):
                if nxt not in index:
                    strongconnect(nxt)
                    lowlinks[node] = min(lowlinks[node], lowlinks[nxt])
                elif on_stack.get(nxt, False):
                    lowlinks[node] = min(lowlinks[node], index[nxt])

            if lowlinks[node] == index[node]:
                scc = []
                while True:
                    w = stack.pop()
                    on_stack[w] = False
                    scc.append(w)
                    if w == node:
                        break
                if len(scc) > 1:
                    sccs.append(list(reversed(scc)))

        for node in self.nodes:
            if node.id not in index:
                strongconnect(node.id)

        return sccs

    def prerequisites_for(self, name: str) -> list[Node]:
        """All transitive prerequisites of a move, prerequisites first.

        Uses Kahn's algorithm over the prerequisite closure. Moves caught in a
        prerequisite cycle are appended at the end in node order.
        """
        start = self.find(name)
        if start is None:
            return []

        # prerequisite edges point prerequisite -> advanced move
        requires: dict[str, set[str]] = defaultdict(set)
        for edge in self.edges_of_type("prerequisite"):
            requires[edge.target].add(edge.source)

        closure: set[str] = set()
        stack = list(requires.get(start.id, set()))
        while stack:
            current = stack.pop()
            if current in closure or current == start.id:
                continue
            closure.add(current)
            stack.extend(requires.get(current, set()) - closure)

        order = [n.id for n in self.nodes if n.id in closure]
        in_degree = {nid: len(requires.get(nid, set()) & closure) for nid in order}
        queue = [nid for nid in order if in_degree[nid] == 0]
        result: list[str] = []
        while queue:
            current = queue.pop(0)
            result.append(current)
            for nid in order:
                if current in requires.get(nid, set()) and in_degree[nid] > 0:
                    in_degree[nid] -= 1
                    if in_degree[nid] == 0:
                        queue.append(nid)

        result.extend(nid for nid in order if nid not in result)
        return [self._by_id[nid] for nid in result]

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "findings": [f.to_dict() for f in self.findings],
        }


class GraphBuilder:
    """Builds a MoveGraph from raw moves.

    Data problems never abort the build: the offending move or relationship
    is dropped (or defaulted) and a Finding is recorded instead.
    """

    def __init__(self, classifier: Callable[[str, str], Classification] = classify):
        self.classifier = classifier

    def build(self, moves: Iterable[Move], findings: Iterable[Finding] = ()) -> MoveGraph:
        """Build the graph. `findings` carries problems already found while loading."""
        moves = list(moves)
        if not moves:
            raise GraphBuildError("No moves to build a graph from")

        findings = list(findings)
        nodes, kept = self._build_nodes(moves, findings)
        if not nodes:
            raise GraphBuildError("No usable moves in dataset (every move was rejected)")

        by_key = {name_key(node.name): node.id for node in nodes}
        aliases: dict[str, str] = {}
        for node in nodes:
            for alias in node.aliases:
                key = name_key(alias)
                if key and key not in by_key:
                    aliases.setdefault(key, node.id)

        edges: list[Edge] = []
        seen_pairs: set[frozenset[str]] = set()
        parents: dict[str, str] = {}

        for move in kept:
            for rel in move.relationships:
                declared = self._resolve(move, rel, by_key, aliases, findings)
                if declared is None:
                    continue

                if declared.type == "variation":
                    if move.id not in parents:
                        parents[move.id] = declared.declared_target
                    elif parents[move.id] != declared.declared_target:
                        findings.append(
                            Finding(
                                level="info",
                                rule="multiple-variation-parents",
                                move=move.name,
                                message=f"Already a variation of another move; ignoring parent '{rel.target}'",
                            )
                        )

                source, target = normalize_direction(declared)
                pair = frozenset((source, target))
                if pair in seen_pairs:
                    logger.debug("Dropping duplicate edge %s -> %s (%s)", source, target, declared.type)
                    findings.append(
                        Finding(
                            level="info",
                            rule="duplicate-edge",
                            move=move.name,
                            message=f"Relationship to '{rel.target}' duplicates an existing edge between the same moves",
                        )
                    )
                    continue
                seen_pairs.add(pair)
                edges.append(Edge(source=source, target=target, weight=declared.weight, type=declared.type))

        for node in nodes:
            parent_id = parents.get(node.id)
            if parent_id is not None:
                node.is_variation = True
                node.parent_id = parent_id

        logger.info(
            "Built move graph: %d nodes, %d edges, %d findings",
            len(nodes),
            len(edges),
            len(findings),
        )
        return MoveGraph(
            nodes=nodes,
            edges=edges,
            findings=findings,
            moves={move.id: move for move in kept},
        )

    def _build_nodes(self, moves: list[Move], findings: list[Finding]) -> tuple[list[Node], list[Move]]:
        nodes: list[Node] = []
        kept: list[Move] = []
        seen_keys: set[str] = set()
        seen_ids: set[str] = set()

        for move in moves:
            key = move.key
            if not key:
                findings.append(
                    Finding(level="warning", rule="invalid-move", move=None, message="Move without a name dropped")
                )
                continue
            if key in seen_keys or move.id in seen_ids:
                logger.debug("Dropping duplicate move %r", move.name)
                findings.append(
                    Finding(
                        level="warning",
                        rule="duplicate-move",
                        move=move.name,
                        message="Duplicate move name (or id); only the first occurrence is kept",
                    )
                )
                continue
            seen_keys.add(key)
            seen_ids.add(move.id)

            tier = clamp_tier(move.tier)
            if tier != move.tier:
                findings.append(
                    Finding(
                        level="warning",
                        rule="invalid-tier",
                        move=move.name,
                        message=f"Tier {move.tier} outside 1-4; using tier {tier}",
                    )
                )

            nodes.append(
                Node(
                    id=move.id,
                    name=move.name,
                    tier=tier,
                    category=move.category,
                    classification=self.classifier(move.name, move.category),
                    description=move.description,
                    aliases=move.aliases,
                )
            )
            kept.append(move)

        return nodes, kept

    def _resolve(
        self,
        move: Move,
        rel: Relationship,
        by_key: dict[str, str],
        aliases: dict[str, str],
        findings: list[Finding],
    ) -> DeclaredRelationship | None:
        key = name_key(rel.target)
        target_id = by_key.get(key)
        if target_id is None and key in aliases:
            target_id = aliases[key]
            findings.append(
                Finding(
                    level="info",
                    rule="alias-resolved",
                    move=move.name,
                    message=f"Relationship target '{rel.target}' resolved through an alias",
                )
            )
        if target_id is None:
            logger.debug("Dropping dangling relationship %r -> %r", move.name, rel.target)
            findings.append(
                Finding(
                    level="warning",
                    rule="dangling-relationship",
                    move=move.name,
                    message=f"Relationship target '{rel.target}' does not exist",
                )
            )
            return None

        if target_id == move.id:
            findings.append(
                Finding(
                    level="warning",
                    rule="self-relationship",
                    move=move.name,
                    message=f"'{rel.type}' relationship points to itself",
                )
            )
            return None

        rel_type = rel.type
        if rel_type not in RELATION_TYPES:
            findings.append(
                Finding(
                    level="warning",
                    rule="unknown-relation-type",
                    move=move.name,
                    message=f"Relationship to '{rel.target}' has unknown type '{rel_type}'; treated as 'related'",
                )
            )
            rel_type = "related"

        return DeclaredRelationship(
            type=rel_type,
            declared_source=move.id,
            declared_target=target_id,
            weight=rel.weight,
        )
