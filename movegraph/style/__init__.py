"""Move classification, schemes and relationship graph construction."""

from .classifier import classify, explain
from .graph import GraphBuilder, GraphBuildError, MoveGraph, normalize_direction
from .loader import DatasetError, StyleData, list_styles, load_style
from .rules import DatasetRules
from .schemes import Scheme, SchemeRegistry, UnknownSchemeError, build_legend

__all__ = [
    "classify",
    "explain",
    "GraphBuilder",
    "GraphBuildError",
    "MoveGraph",
    "normalize_direction",
    "DatasetError",
    "StyleData",
    "list_styles",
    "load_style",
    "DatasetRules",
    "Scheme",
    "SchemeRegistry",
    "UnknownSchemeError",
    "build_legend",
]
