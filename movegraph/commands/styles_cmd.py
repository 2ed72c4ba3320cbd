"""Styles command - list dataset files in a data directory."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..style.loader import DatasetError, list_styles


def run_styles(data_dir: Path, *, output_json: bool = False) -> int:
    try:
        styles = list_styles(data_dir)
    except DatasetError as e:
        raise click.ClickException(f"Could not load dataset: {e}") from e

    if output_json:
        print(json.dumps([s.to_dict() for s in styles], indent=2))
        return 0

    console = Console()
    if not styles:
        console.print(f"No style files in {data_dir}", style="dim")
        return 0

    table = Table(title=f"Styles in {data_dir}", show_header=True, header_style="bold")
    table.add_column("Slug", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Moves", justify="right")
    table.add_column("Description", style="dim")
    for s in styles:
        table.add_row(escape(s.slug), escape(s.name), str(s.move_count), escape(s.description))
    console.print(table)
    return 0
