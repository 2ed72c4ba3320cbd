"""movegraph - classify dance moves, graph their relationships, and lay them out."""

__version__ = "0.1.0"
