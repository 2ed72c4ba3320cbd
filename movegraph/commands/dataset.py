"""Shared dataset loading for commands."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console

from ..style.graph import GraphBuilder, GraphBuildError, MoveGraph
from ..style.loader import DatasetError, StyleData, load_style


def open_dataset(dataset_path: Path, console: Console) -> tuple[StyleData, MoveGraph]:
    """Load a dataset and build its graph.

    Structural failures become ClickExceptions; an empty dataset is reported
    separately from one that could not be read.
    """
    console.print(f"Loading dataset from {dataset_path}...", style="dim")
    try:
        style = load_style(dataset_path)
    except DatasetError as e:
        raise click.ClickException(f"Could not load dataset: {e}") from e

    if not style.moves:
        raise click.ClickException(f"Dataset is empty: {dataset_path} has no moves")

    try:
        graph = GraphBuilder().build(style.moves, style.findings)
    except GraphBuildError as e:
        raise click.ClickException(f"Could not build graph: {e}") from e

    return style, graph
