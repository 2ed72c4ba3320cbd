"""Tick-driven layout simulation.

The engine owns node position/velocity state for the whole simulation.
Callers advance it one tick at a time (or hand it to any driver that calls
`tick`), may read positions between ticks, and may only write through `pin`.

States:
    UNINITIALIZED -> RUNNING -> SETTLED | CANCELLED

Changing the scheme, the relationship filter or the force parameters
rebuilds the force context for the next tick and reheats the simulation
(alpha back to 1) without touching positions. Only `load` and `restart`
re-seed positions.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator, Sequence

from ..models import Edge, Node
from ..progress import merge_learned
from ..style.graph import MoveGraph
from ..style.schemes import Legend, Scheme, SchemeRegistry, build_legend
from .forces import FORCES, Deltas, Force, ForceContext, active_edges, build_context, compute_forces, target_x_for
from .params import DEFAULT_FORCE_PARAMS, ForceParams

logger = logging.getLogger(__name__)

DEFAULT_MAX_TICKS = 1000


class SimulationState(str, Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    SETTLED = "settled"
    CANCELLED = "cancelled"


def integrate(nodes: Sequence[Node], deltas: Deltas, velocity_decay: float) -> None:
    """Apply velocity deltas, damp, and move. Pinned axes stay put."""
    keep = 1 - velocity_decay
    for i, node in enumerate(nodes):
        if node.fx is not None:
            node.x = node.fx
            node.vx = 0.0
        else:
            node.vx = (node.vx + deltas.vx[i]) * keep
            node.x += node.vx

        if node.fy is not None:
            node.y = node.fy
            node.vy = 0.0
        else:
            node.vy = (node.vy + deltas.vy[i]) * keep
            node.y += node.vy


@dataclass
class LayoutSnapshot:
    """Pure-data view of the layout for a renderer."""

    tick: int
    alpha: float
    state: str
    scheme: str
    relation_filter: str
    nodes: list[dict] = field(default_factory=list)
    edges: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "tick": self.tick,
            "alpha": self.alpha,
            "state": self.state,
            "scheme": self.scheme,
            "relation_filter": self.relation_filter,
            "nodes": self.nodes,
            "edges": self.edges,
        }


class LayoutEngine:
    """Multi-force layout simulation over a move graph."""

    def __init__(
        self,
        schemes: SchemeRegistry,
        *,
        scheme: str | None = None,
        params: ForceParams = DEFAULT_FORCE_PARAMS,
        relation_filter: str = "all",
        seed: int | None = None,
        forces: Sequence[tuple[str, Force]] = FORCES,
    ):
        self.schemes = schemes
        self._scheme: Scheme = schemes.get(scheme)
        self._params = params
        active_edges((), relation_filter)  # validates the filter
        self._relation_filter = relation_filter
        self._forces = tuple(forces)
        self._rng = random.Random(seed)

        self._nodes: list[Node] = []
        self._edges: list[Edge] = []
        self._index: dict[str, int] = {}
        self._ctx: ForceContext | None = None
        self._listeners: list[Callable[["LayoutEngine"], None]] = []

        self.state = SimulationState.UNINITIALIZED
        self.alpha = 1.0
        self.tick_count = 0
        self.reheat_count = 0

    # --- Read access ---

    @property
    def nodes(self) -> Sequence[Node]:
        """Current nodes. Read-only for callers; use `pin` to fix a position."""
        return tuple(self._nodes)

    @property
    def edges(self) -> Sequence[Edge]:
        return tuple(self._edges)

    @property
    def scheme(self) -> Scheme:
        return self._scheme

    @property
    def params(self) -> ForceParams:
        return self._params

    @property
    def relation_filter(self) -> str:
        return self._relation_filter

    @property
    def running(self) -> bool:
        return self.state == SimulationState.RUNNING

    def node(self, node_id: str) -> Node:
        i = self._index.get(node_id)
        if i is None:
            raise KeyError(f"Unknown node id: {node_id}")
        return self._nodes[i]

    def total_speed(self) -> float:
        """Sum of per-node speeds; near zero once the layout has settled."""
        return sum(math.hypot(n.vx, n.vy) for n in self._nodes)

    # --- Lifecycle ---

    def load(self, graph: MoveGraph) -> None:
        """Full reload: copy nodes from the graph and seed fresh positions."""
        self.load_nodes(graph.nodes, graph.edges)

    def load_nodes(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> None:
        self._nodes = [dataclasses.replace(n) for n in nodes]
        self._edges = list(edges)
        self._index = {n.id: i for i, n in enumerate(self._nodes)}
        self._ctx = None
        self.tick_count = 0
        self._seed_positions()
        self._start()

    def restart(self) -> None:
        """Re-seed positions and start over (pins are kept)."""
        if self.state == SimulationState.UNINITIALIZED:
            return
        self._ctx = None
        self.tick_count = 0
        self._seed_positions()
        self._start()

    def stop(self) -> None:
        if self.state != SimulationState.CANCELLED:
            logger.debug("Layout cancelled at tick %d", self.tick_count)
        self.state = SimulationState.CANCELLED

    def reheat(self) -> None:
        """Re-energize the simulation without moving any node."""
        if self.state in (SimulationState.UNINITIALIZED, SimulationState.CANCELLED):
            return
        self.alpha = 1.0
        self.reheat_count += 1
        self._set_state(SimulationState.RUNNING if self._nodes else SimulationState.SETTLED)

    def _start(self) -> None:
        self.alpha = 1.0
        self._set_state(SimulationState.RUNNING if self._nodes else SimulationState.SETTLED)

    def _set_state(self, state: SimulationState) -> None:
        if state != self.state:
            logger.debug("Layout state %s -> %s", self.state.value, state.value)
        self.state = state

    def _seed_positions(self) -> None:
        p = self._params
        for node in self._nodes:
            parent = self._parent(node)
            node.x = target_x_for(node, parent, p) + (self._rng.random() - 0.5) * p.jitter_x
            band = self._scheme.band(node.classification) * p.height
            node.y = band + (self._rng.random() - 0.5) * p.height * p.jitter_y_ratio
            node.vx = 0.0
            node.vy = 0.0
            if node.fx is not None:
                node.x = node.fx
            if node.fy is not None:
                node.y = node.fy

    def _parent(self, node: Node) -> Node | None:
        if not node.parent_id:
            return None
        i = self._index.get(node.parent_id)
        return self._nodes[i] if i is not None else None

    # --- Reconfiguration ---

    def set_scheme(self, name: str) -> None:
        self._scheme = self.schemes.get(name)
        self._reconfigure()

    def set_relation_filter(self, relation_filter: str) -> None:
        active_edges((), relation_filter)
        self._relation_filter = relation_filter
        self._reconfigure()

    def set_params(self, params: ForceParams | None = None, **changes: float) -> None:
        base = params if params is not None else self._params
        self._params = base.replace(**changes) if changes else base
        self._reconfigure()

    def _reconfigure(self) -> None:
        self._ctx = None
        self.reheat()

    def pin(self, node_id: str, x: float | None = None, y: float | None = None) -> None:
        """Fix a node's position (e.g. while dragged); forces no longer move it."""
        node = self.node(node_id)
        node.fx = node.x if x is None else float(x)
        node.fy = node.y if y is None else float(y)
        node.x, node.y = node.fx, node.fy
        node.vx = node.vy = 0.0

    def unpin(self, node_id: str) -> None:
        node = self.node(node_id)
        node.fx = None
        node.fy = None

    def merge_learned(self, names: Iterable[str]) -> list[str]:
        """Merge learned flags by name; layout is unaffected."""
        return merge_learned(self._nodes, names)

    def on_tick(self, callback: Callable[["LayoutEngine"], None]) -> None:
        self._listeners.append(callback)

    # --- Simulation ---

    def context(self) -> ForceContext:
        if self._ctx is None:
            self._ctx = build_context(
                self._nodes, self._edges, self._scheme, self._params, self._relation_filter
            )
        return self._ctx

    def tick(self) -> bool:
        """Advance one tick. Returns False when there was nothing to do."""
        if self.state != SimulationState.RUNNING:
            return False

        p = self._params
        self.alpha += (p.alpha_target - self.alpha) * p.alpha_decay
        deltas = compute_forces(self._nodes, self.context(), self.alpha, self._forces)
        integrate(self._nodes, deltas, p.velocity_decay)
        self.tick_count += 1

        if self.alpha < p.alpha_min:
            self._set_state(SimulationState.SETTLED)

        for callback in self._listeners:
            callback(self)
        return True

    def ticks(self, max_ticks: int | None = None) -> Iterator[float]:
        """Cooperative driver: yields alpha after every tick until settled."""
        done = 0
        while (max_ticks is None or done < max_ticks) and self.tick():
            done += 1
            yield self.alpha

    def run(self, max_ticks: int = DEFAULT_MAX_TICKS) -> int:
        """Tick until settled, cancelled, or `max_ticks`; returns ticks run."""
        return sum(1 for _ in self.ticks(max_ticks))

    # --- Output ---

    def snapshot(self) -> LayoutSnapshot:
        nodes = []
        for node in self._nodes:
            data = node.to_dict()
            data["group"] = node.group(self._scheme.node_key)
            data["color"] = self._scheme.color_for(node.classification, node.learned)
            nodes.append(data)
        edges = [e.to_dict() for e in active_edges(self._edges, self._relation_filter)]
        return LayoutSnapshot(
            tick=self.tick_count,
            alpha=self.alpha,
            state=self.state.value,
            scheme=self._scheme.key,
            relation_filter=self._relation_filter,
            nodes=nodes,
            edges=edges,
        )

    def legend(self) -> Legend:
        p = self._params
        return build_legend(
            self._scheme,
            width=p.width,
            height=p.height,
            margin_ratio=p.margin_ratio,
            nodes=self._nodes,
        )
