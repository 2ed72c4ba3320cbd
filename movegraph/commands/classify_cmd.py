"""Classify commands - show the labels the rule tables give a move."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..models import CLASSIFICATION_VALUES
from ..style.classifier import RULESET_VERSION, classify, distribution, explain
from .dataset import open_dataset


def run_classify(name: str, category: str = "partnered", *, output_json: bool = False) -> int:
    """Classify a single move name and show the deciding rule for each field."""
    deciding = explain(name, category)
    result = classify(name, category)

    if output_json:
        payload = {
            "name": name,
            "category": category,
            "ruleset_version": RULESET_VERSION,
            **result.as_dict(),
            "rules": {field_name: rule.description for field_name, rule in deciding.items()},
        }
        print(json.dumps(payload, indent=2))
        return 0

    console = Console()
    table = Table(title=f"{escape(name)} ({category})", show_header=True, header_style="bold")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Label", style="bold")
    table.add_column("Rule", style="dim")
    for field_name, rule in deciding.items():
        table.add_row(field_name, rule.label, rule.description)
    console.print(table)
    return 0


def run_classify_all(
    dataset_path: Path,
    *,
    fmt: str = "rich",
    show_distribution: bool = False,
) -> int:
    """Classify every move in a dataset."""
    console = Console(stderr=True)

    _style, graph = open_dataset(dataset_path, console)

    counts = distribution(node.classification for node in graph.nodes)

    if fmt == "json":
        payload = {
            "ruleset_version": RULESET_VERSION,
            "moves": [
                {"id": n.id, "name": n.name, "category": n.category, **n.classification.as_dict()}
                for n in graph.nodes
            ],
            "distribution": {field_name: dict(counter) for field_name, counter in counts.items()},
        }
        print(json.dumps(payload, indent=2))
        return 0

    out = Console()
    if show_distribution:
        for field_name, counter in counts.items():
            table = Table(title=field_name, show_header=True, header_style="bold")
            table.add_column("Label", style="cyan", no_wrap=True)
            table.add_column("Moves", justify="right")
            for label in CLASSIFICATION_VALUES[field_name]:
                table.add_row(label, str(counter.get(label, 0)))
            out.print(table)
            out.print()
        return 0

    table = Table(title=f"Classifications ({len(graph.nodes)} moves)", show_header=True, header_style="bold")
    table.add_column("Move", style="cyan", no_wrap=True)
    table.add_column("Tier", justify="right")
    for field_name in CLASSIFICATION_VALUES:
        table.add_column(field_name)
    for node in graph.nodes:
        values = node.classification.as_dict()
        table.add_row(escape(node.name), str(node.tier), *(values[f] for f in CLASSIFICATION_VALUES))
    out.print(table)
    return 0
