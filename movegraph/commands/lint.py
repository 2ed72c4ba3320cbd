"""Lint command implementation."""

import json
from collections import defaultdict
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..models import Finding
from ..style.graph import MoveGraph
from ..style.rules import RULE_EXPLANATIONS, DatasetRules
from ..style.loader import StyleData
from .dataset import open_dataset

LEVEL_PREFIX = {
    "error": ("ERROR", "bold red"),
    "warning": ("WARN", "yellow"),
    "info": ("INFO", "dim"),
}


def run_lint(
    dataset_path: Path,
    fail_on: str = "error",
    output_json: bool = False,
    explain: bool = False,
) -> int:
    """Run lint checks on a dataset.

    Args:
        dataset_path: Style file or move-notes directory
        fail_on: Exit with error if this level or higher found ("error" or "warning")
        output_json: Output results as JSON instead of human-readable
        explain: Print what each reported rule checks

    Returns:
        Exit code (0 = clean, 1 = failures found at or above fail_on)
    """
    console = Console(stderr=True)

    style, graph = open_dataset(dataset_path, console)

    results = DatasetRules(graph, style.schemes).run_all()

    counts = {"error": 0, "warning": 0, "info": 0}
    for r in results:
        counts[r.level] = counts.get(r.level, 0) + 1

    if output_json:
        _output_json(results, counts, style, graph)
    else:
        _print_human_output(console, results, counts, graph, explain=explain)

    if fail_on == "warning":
        if counts["error"] > 0 or counts["warning"] > 0:
            return 1
    else:
        if counts["error"] > 0:
            return 1

    return 0


def _output_json(results: list[Finding], counts: dict[str, int], style: StyleData, graph: MoveGraph) -> None:
    output = {
        "errors": [r.to_dict() for r in results if r.level == "error"],
        "warnings": [r.to_dict() for r in results if r.level == "warning"],
        "info": [r.to_dict() for r in results if r.level == "info"],
        "summary": {
            "style": style.style.name,
            "moves": len(style.moves),
            "nodes": len(graph.nodes),
            "edges": len(graph.edges),
            "errors": counts["error"],
            "warnings": counts["warning"],
            "info": counts["info"],
        },
    }
    print(json.dumps(output, indent=2, default=str))


def _print_human_output(
    console: Console,
    results: list[Finding],
    counts: dict[str, int],
    graph: MoveGraph,
    *,
    explain: bool = False,
) -> None:
    if counts["error"] > 0:
        status, status_style = "✗", "bold red"
    elif counts["warning"] > 0:
        status, status_style = "⚠", "yellow"
    else:
        status, status_style = "✓", "bold green"

    console.print()
    console.print(f"{status} {len(graph.nodes)} moves, {len(graph.edges)} edges", style=status_style)
    console.print(
        f"  {counts['error']} error(s), {counts['warning']} warning(s), {counts['info']} info(s)",
        style="dim",
    )

    if not results:
        console.print("  ✓ All rules passing", style="dim green")
        return

    by_rule: dict[str, list[Finding]] = defaultdict(list)
    for r in results:
        by_rule[r.rule].append(r)

    for rule_id, rule_results in sorted(by_rule.items()):
        console.print(f"\n  Rule: {rule_id}", style="bold")
        if explain and rule_id in RULE_EXPLANATIONS:
            console.print(f"  {RULE_EXPLANATIONS[rule_id]}", style="dim italic")
        for r in rule_results:
            prefix, prefix_style = LEVEL_PREFIX.get(r.level, ("INFO", "dim"))
            subject = r.move or "(dataset)"
            console.print(f"    {prefix}: {escape(subject)} - {escape(r.message)}", style=prefix_style)
