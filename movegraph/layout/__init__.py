"""Multi-force layout simulation."""

from .engine import LayoutEngine, LayoutSnapshot, SimulationState, integrate
from .forces import RELATION_FILTERS, build_context, compute_forces
from .params import DEFAULT_FORCE_PARAMS, ForceParams, load_force_params

__all__ = [
    "LayoutEngine",
    "LayoutSnapshot",
    "SimulationState",
    "integrate",
    "RELATION_FILTERS",
    "build_context",
    "compute_forces",
    "DEFAULT_FORCE_PARAMS",
    "ForceParams",
    "load_force_params",
]
