"""Layout forces.

Each force is a pure function of the current node positions, a ForceContext
and the simulation energy (alpha); it returns velocity deltas and never
touches node state. `compute_forces` sums them and `engine.integrate`
applies the result, so a tick reads one consistent snapshot of positions.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Sequence

from ..models import MAX_TIER, RELATION_TYPES, Edge, Node, clamp_tier
from ..style.schemes import Scheme, tier_x
from .params import ForceParams

RELATION_FILTERS = ("all",) + RELATION_TYPES


class Deltas:
    """Per-node velocity deltas, indexed like the node list."""

    __slots__ = ("vx", "vy")

    def __init__(self, size: int):
        self.vx = [0.0] * size
        self.vy = [0.0] * size

    def __len__(self) -> int:
        return len(self.vx)

    def add(self, i: int, dx: float, dy: float) -> None:
        self.vx[i] += dx
        self.vy[i] += dy

    def merge(self, other: "Deltas") -> None:
        for i in range(len(self.vx)):
            self.vx[i] += other.vx[i]
            self.vy[i] += other.vy[i]


@dataclass(frozen=True)
class LinkSpec:
    source: int
    target: int
    strength: float
    bias: float  # share of the correction applied to the target


@dataclass(frozen=True)
class ForceContext:
    """Everything forces need besides positions; rebuilt only on reconfiguration."""

    params: ForceParams
    target_x: tuple[float, ...]
    x_strength: tuple[float, ...]
    target_y: tuple[float, ...]
    y_strength: float
    parent_index: tuple[int | None, ...]  # variation parent, when present
    links: tuple[LinkSpec, ...]
    filtered: bool
    sibling_groups: tuple[tuple[int, ...], ...]  # children sharing a filtered-edge source
    child_sources: tuple[tuple[int, int], ...]  # (child, source) under the filter


def layout_tier(node: Node, parent: Node | None) -> int:
    """Tier used for horizontal placement; variations sit right of their parent."""
    tier = clamp_tier(node.tier)
    if node.is_variation and parent is not None:
        tier = min(MAX_TIER, max(tier, clamp_tier(parent.tier) + 1))
    return tier


def target_x_for(node: Node, parent: Node | None, params: ForceParams) -> float:
    x = tier_x(layout_tier(node, parent), params.width, params.margin_ratio)
    return x + (params.variation_offset if node.is_variation else 0.0)


def active_edges(edges: Sequence[Edge], relation_filter: str) -> list[Edge]:
    if relation_filter not in RELATION_FILTERS:
        raise ValueError(f"Unknown relationship filter '{relation_filter}' (expected one of {', '.join(RELATION_FILTERS)})")
    if relation_filter == "all":
        return list(edges)
    return [e for e in edges if e.type == relation_filter]


def build_context(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    scheme: Scheme,
    params: ForceParams,
    relation_filter: str = "all",
) -> ForceContext:
    index = {node.id: i for i, node in enumerate(nodes)}
    filtered = relation_filter != "all"
    edges = [e for e in active_edges(edges, relation_filter) if e.source in index and e.target in index]

    parent_index: list[int | None] = []
    target_x: list[float] = []
    x_strength: list[float] = []
    target_y: list[float] = []
    for node in nodes:
        p = index.get(node.parent_id) if node.parent_id else None
        parent = nodes[p] if p is not None else None
        parent_index.append(p)
        target_x.append(target_x_for(node, parent, params))
        x_strength.append(params.variation_strength if node.is_variation else params.tier_strength)
        target_y.append(scheme.band(node.classification) * params.height)

    degree: dict[int, int] = defaultdict(int)
    for e in edges:
        degree[index[e.source]] += 1
        degree[index[e.target]] += 1

    influence = params.link_weight_influence
    links = []
    for e in edges:
        s, t = index[e.source], index[e.target]
        strength = params.link_strength * ((1 - influence) + influence * e.clamped_weight)
        links.append(LinkSpec(source=s, target=t, strength=strength, bias=degree[s] / (degree[s] + degree[t])))

    sibling_groups: list[tuple[int, ...]] = []
    child_sources: list[tuple[int, int]] = []
    if filtered:
        children: dict[int, list[int]] = defaultdict(list)
        for e in edges:
            children[index[e.source]].append(index[e.target])
            child_sources.append((index[e.target], index[e.source]))
        sibling_groups = [tuple(group) for group in children.values() if len(group) > 1]

    y_strength = params.group_strength * (params.filtered_group_scale if filtered else 1.0)

    return ForceContext(
        params=params,
        target_x=tuple(target_x),
        x_strength=tuple(x_strength),
        target_y=tuple(target_y),
        y_strength=y_strength,
        parent_index=tuple(parent_index),
        links=tuple(links),
        filtered=filtered,
        sibling_groups=tuple(sibling_groups),
        child_sources=tuple(child_sources),
    )


# --- Forces ---


def tier_force(nodes: Sequence[Node], ctx: ForceContext, alpha: float) -> Deltas:
    """Pull each node toward its tier's x position."""
    deltas = Deltas(len(nodes))
    for i, node in enumerate(nodes):
        deltas.vx[i] = (ctx.target_x[i] - node.x) * ctx.x_strength[i] * alpha
    return deltas


def group_force(nodes: Sequence[Node], ctx: ForceContext, alpha: float) -> Deltas:
    """Pull each node toward its scheme group's band."""
    deltas = Deltas(len(nodes))
    for i, node in enumerate(nodes):
        deltas.vy[i] = (ctx.target_y[i] - node.y) * ctx.y_strength * alpha
    return deltas


def charge_force(nodes: Sequence[Node], ctx: ForceContext, alpha: float) -> Deltas:
    """Pairwise many-body force; negative strength repels."""
    deltas = Deltas(len(nodes))
    strength = ctx.params.charge_strength
    if strength == 0:
        return deltas
    min_sq = ctx.params.distance_min ** 2
    for i in range(len(nodes)):
        a = nodes[i]
        for j in range(i + 1, len(nodes)):
            b = nodes[j]
            dx = b.x - a.x
            dy = b.y - a.y
            dist_sq = max(dx * dx + dy * dy, min_sq)
            w = strength * alpha / dist_sq
            deltas.add(i, dx * w, dy * w)
            deltas.add(j, -dx * w, -dy * w)
    return deltas


def link_force(nodes: Sequence[Node], ctx: ForceContext, alpha: float) -> Deltas:
    """Spring every active edge toward the rest distance."""
    deltas = Deltas(len(nodes))
    distance = ctx.params.link_distance
    for link in ctx.links:
        s, t = nodes[link.source], nodes[link.target]
        dx = (t.x + t.vx) - (s.x + s.vx)
        dy = (t.y + t.vy) - (s.y + s.vy)
        length = math.hypot(dx, dy)
        if length == 0:
            continue
        k = (length - distance) / length * alpha * link.strength
        dx *= k
        dy *= k
        deltas.add(link.target, -dx * link.bias, -dy * link.bias)
        deltas.add(link.source, dx * (1 - link.bias), dy * (1 - link.bias))
    return deltas


def variation_right_force(nodes: Sequence[Node], ctx: ForceContext, alpha: float) -> Deltas:
    """Nudge variations right until they clear their parent by the minimum offset.

    One-sided: it never pulls left, and it is not scaled by alpha.
    """
    deltas = Deltas(len(nodes))
    min_offset = ctx.params.variation_min_offset
    for i, node in enumerate(nodes):
        p = ctx.parent_index[i]
        if p is None:
            continue
        if node.x < nodes[p].x + min_offset:
            deltas.vx[i] += ctx.params.variation_push
    return deltas


def sibling_spread_force(nodes: Sequence[Node], ctx: ForceContext, alpha: float) -> Deltas:
    """Filtered mode: push apart vertically children of one source that crowd each other."""
    deltas = Deltas(len(nodes))
    if not ctx.filtered:
        return deltas
    gap_min = ctx.params.sibling_min_gap
    strength = ctx.params.sibling_strength
    for group in ctx.sibling_groups:
        ordered = sorted(group, key=lambda i: (nodes[i].y, i))
        for upper, lower in zip(ordered, ordered[1:]):
            gap = nodes[lower].y - nodes[upper].y
            if gap >= gap_min:
                continue
            push = (gap_min - gap) / 2 * strength * alpha
            deltas.vy[upper] -= push
            deltas.vy[lower] += push
    return deltas


def parent_y_force(nodes: Sequence[Node], ctx: ForceContext, alpha: float) -> Deltas:
    """Filtered mode: pull children toward their edge source's y to straighten lines."""
    deltas = Deltas(len(nodes))
    if not ctx.filtered:
        return deltas
    strength = ctx.params.parent_y_strength
    for child, source in ctx.child_sources:
        deltas.vy[child] += (nodes[source].y - nodes[child].y) * strength * alpha
    return deltas


Force = Callable[[Sequence[Node], ForceContext, float], Deltas]

FORCES: tuple[tuple[str, Force], ...] = (
    ("tier", tier_force),
    ("charge", charge_force),
    ("group", group_force),
    ("link", link_force),
    ("variation_right", variation_right_force),
    ("sibling_spread", sibling_spread_force),
    ("parent_y", parent_y_force),
)


def compute_forces(
    nodes: Sequence[Node],
    ctx: ForceContext,
    alpha: float,
    forces: Sequence[tuple[str, Force]] = FORCES,
) -> Deltas:
    """Sum every force's velocity deltas for one tick."""
    total = Deltas(len(nodes))
    for _name, force in forces:
        total.merge(force(nodes, ctx, alpha))
    return total
