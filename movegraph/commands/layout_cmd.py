"""Layout commands - run the force simulation and describe its axes."""

from __future__ import annotations

import json
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..layout.engine import DEFAULT_MAX_TICKS, LayoutEngine
from ..layout.params import DEFAULT_FORCE_PARAMS, ForceParams, load_force_params, parse_assignment
from ..models import Finding
from ..progress import load_learned
from ..style.schemes import SchemeRegistry, UnknownSchemeError, build_legend
from .dataset import open_dataset


def _resolve_params(forces_path: Path | None, overrides: tuple[str, ...]) -> ForceParams:
    params = DEFAULT_FORCE_PARAMS
    try:
        if forces_path is not None:
            params = load_force_params(forces_path, params)
        changes = dict(parse_assignment(text) for text in overrides)
        if changes:
            params = params.replace(**changes)
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Invalid force parameters: {e}") from e
    return params


def _report_findings(findings: list[Finding], console: Console) -> None:
    warnings = sum(1 for f in findings if f.level in ("error", "warning"))
    if warnings:
        console.print(
            f"⚠ {warnings} warning(s) while building the graph; run `movegraph lint` for details",
            style="yellow",
        )


def run_layout(
    dataset_path: Path,
    *,
    scheme: str | None = None,
    relation_filter: str = "all",
    forces_path: Path | None = None,
    overrides: tuple[str, ...] = (),
    learned_path: Path | None = None,
    seed: int | None = None,
    max_ticks: int = DEFAULT_MAX_TICKS,
    fmt: str = "rich",
    out: Path | None = None,
) -> int:
    """Lay out a dataset and output node positions plus the legend."""
    console = Console(stderr=True)

    style, graph = open_dataset(dataset_path, console)

    params = _resolve_params(forces_path, overrides)

    try:
        engine = LayoutEngine(
            style.schemes,
            scheme=scheme,
            params=params,
            relation_filter=relation_filter,
            seed=seed,
        )
    except (UnknownSchemeError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    engine.load(graph)

    if learned_path is not None:
        try:
            learned = load_learned(learned_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise click.ClickException(f"Could not read learned moves: {e}") from e
        unmatched = engine.merge_learned(learned)
        for name in unmatched:
            console.print(f"⚠ Learned move not in dataset: {escape(str(name))}", style="yellow")

    ticks = engine.run(max_ticks)
    console.print(
        f"Ran {ticks} tick(s), state={engine.state.value}, alpha={engine.alpha:.4f}",
        style="dim",
    )

    _report_findings(graph.findings, console)

    snapshot = engine.snapshot()
    legend = engine.legend()
    payload = {
        "style": style.style.to_dict(),
        "layout": snapshot.to_dict(),
        "legend": legend.to_dict(),
        "params": params.to_dict(),
        "findings": [f.to_dict() for f in graph.findings],
    }

    if fmt == "rich":
        if out:
            rich_console = Console(record=True)
            _print_rich(payload, console=rich_console)
            out.write_text(rich_console.export_text(), encoding="utf-8")
            console.print(f"Wrote layout to {out}", style="green")
        else:
            _print_rich(payload, console=Console())
        return 0

    if fmt == "json":
        text = json.dumps(payload, indent=2) + "\n"
    else:
        text = _to_markdown(payload)

    if out:
        out.write_text(text, encoding="utf-8")
        console.print(f"Wrote layout to {out}", style="green")
    else:
        print(text, end="" if text.endswith("\n") else "\n")
    return 0


def _print_rich(payload: dict, *, console: Console) -> None:
    layout = payload["layout"]
    console.print(f"[bold]{escape(payload['style']['name'])}[/bold] - scheme {escape(layout['scheme'])}, filter {layout['relation_filter']}")
    console.print(f"Nodes: {len(layout['nodes'])}  Edges: {len(layout['edges'])}  Ticks: {layout['tick']}")
    console.print()

    t = Table(title="Positions", show_header=True, header_style="bold")
    t.add_column("Move", style="cyan", no_wrap=True)
    t.add_column("Tier", justify="right")
    t.add_column("Group")
    t.add_column("X", justify="right")
    t.add_column("Y", justify="right")
    t.add_column("Flags", style="dim")
    for node in sorted(layout["nodes"], key=lambda n: (n["x"], n["y"])):
        flags = [
            flag
            for flag, on in (("variation", node["is_variation"]), ("learned", node["learned"]), ("pinned", node["pinned"]))
            if on
        ]
        t.add_row(escape(node["name"]), str(node["tier"]), escape(node["group"]), f"{node['x']:.1f}", f"{node['y']:.1f}", ", ".join(flags))
    console.print(t)
    console.print()
    _print_legend_table(payload["legend"], console=console)


def _print_legend_table(legend: dict, *, console: Console) -> None:
    t = Table(title=f"{legend['label']} ({legend['node_key']})", show_header=True, header_style="bold")
    t.add_column("Group", style="cyan", no_wrap=True)
    t.add_column("Label")
    t.add_column("Y", justify="right")
    t.add_column("Color")
    t.add_column("Moves", justify="right")
    for band in legend["groups"]:
        t.add_row(escape(band["key"]), escape(band["label"]), f"{band['y']:.1f}", f"[{band['color']}]{band['color']}[/]", str(band["count"]))
    console.print(t)

    tiers = Table(title="Tiers", show_header=True, header_style="bold")
    tiers.add_column("Tier", justify="right")
    tiers.add_column("Label")
    tiers.add_column("X", justify="right")
    for band in legend["tiers"]:
        tiers.add_row(str(band["tier"]), escape(band["label"]), f"{band['x']:.1f}")
    console.print(tiers)


def _to_markdown(payload: dict) -> str:
    layout = payload["layout"]
    lines = [
        f"# Layout: {payload['style']['name']}",
        "",
        f"- Scheme: `{layout['scheme']}`",
        f"- Filter: `{layout['relation_filter']}`",
        f"- Ticks: {layout['tick']} ({layout['state']})",
        f"- Nodes: {len(layout['nodes'])}",
        f"- Edges: {len(layout['edges'])}",
        "",
        "## Positions",
        "",
        "| Move | Tier | Group | X | Y |",
        "|---|---:|---|---:|---:|",
    ]
    for node in sorted(layout["nodes"], key=lambda n: (n["x"], n["y"])):
        lines.append(f"| {node['name']} | {node['tier']} | {node['group']} | {node['x']:.1f} | {node['y']:.1f} |")
    lines.extend(["", "## Legend", ""])
    lines.extend(_legend_markdown(payload["legend"]))
    if payload["findings"]:
        lines.extend(["", "## Findings", ""])
        for finding in payload["findings"]:
            lines.append(f"- {finding['level'].upper()}: [{finding['rule']}] {finding['move'] or '(dataset)'} - {finding['message']}")
    return "\n".join(lines) + "\n"


def _legend_markdown(legend: dict) -> list[str]:
    lines = [
        f"Scheme `{legend['scheme']}` groups by `{legend['node_key']}`. {legend['description']}".rstrip(),
        "",
        "| Group | Label | Y | Color |",
        "|---|---|---:|---|",
    ]
    for band in legend["groups"]:
        lines.append(f"| {band['key']} | {band['label']} | {band['y']:.1f} | {band['color']} |")
    lines.extend(["", "| Tier | Label | X |", "|---:|---|---:|"])
    for band in legend["tiers"]:
        lines.append(f"| {band['tier']} | {band['label']} | {band['x']:.1f} |")
    return lines


def run_legend(
    dataset_path: Path | None,
    *,
    scheme: str | None = None,
    fmt: str = "rich",
    width: float = DEFAULT_FORCE_PARAMS.width,
    height: float = DEFAULT_FORCE_PARAMS.height,
) -> int:
    """Print axis bands for a scheme, with move counts when a dataset is given."""
    console = Console(stderr=True)

    schemes = SchemeRegistry.defaults()
    nodes = ()
    if dataset_path is not None:
        style, graph = open_dataset(dataset_path, console)
        schemes = style.schemes
        nodes = graph.nodes

    try:
        selected = schemes.get(scheme)
    except UnknownSchemeError as e:
        raise click.ClickException(str(e)) from e

    legend = build_legend(
        selected,
        width=width,
        height=height,
        margin_ratio=DEFAULT_FORCE_PARAMS.margin_ratio,
        nodes=nodes,
    )

    if fmt == "json":
        print(json.dumps(legend.to_dict(), indent=2))
    elif fmt == "md":
        print("\n".join(_legend_markdown(legend.to_dict())))
    else:
        _print_legend_table(legend.to_dict(), console=Console())
    return 0


def run_prereqs(dataset_path: Path, move: str, *, output_json: bool = False) -> int:
    """Print a learning order for every prerequisite of a move."""
    console = Console(stderr=True)

    _style, graph = open_dataset(dataset_path, console)

    target = graph.find(move)
    if target is None:
        console.print(f"✗ Move not found: {escape(move)}", style="bold red")
        return 1

    order = graph.prerequisites_for(move)

    if output_json:
        print(json.dumps({"move": target.name, "prerequisites": [n.name for n in order]}, indent=2))
        return 0

    out = Console()
    if not order:
        out.print(f"{escape(target.name)} has no prerequisites.")
        return 0
    out.print(f"[bold]Learning order for {escape(target.name)}[/bold]")
    for i, node in enumerate(order, 1):
        out.print(f"  {i}. {escape(node.name)} [dim](tier {node.tier})[/dim]")
    return 0
