"""CLI entrypoint for movegraph."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .layout.engine import DEFAULT_MAX_TICKS
from .layout.forces import RELATION_FILTERS


def _require_dataset(ctx: click.Context) -> Path:
    dataset = ctx.obj.get("dataset")
    if dataset is None:
        raise click.UsageError("No dataset given. Pass --dataset PATH or set MOVEGRAPH_DATASET.")
    return dataset


@click.group()
@click.version_option(__version__, prog_name="movegraph")
@click.option(
    "--dataset",
    "-d",
    type=click.Path(exists=False, file_okay=True, dir_okay=True, path_type=Path),
    envvar="MOVEGRAPH_DATASET",
    default=None,
    help="Style file (JSON/YAML) or directory of move notes [env: MOVEGRAPH_DATASET]",
)
@click.option("--verbose", is_flag=True, help="Log graph building and simulation details")
@click.pass_context
def cli(ctx: click.Context, dataset: Path | None, verbose: bool) -> None:
    """movegraph - Classify dance moves and lay out their relationship graph.

    Build a move graph from a style dataset, lint it, and run the force
    layout that places moves by difficulty tier and classification group.
    """
    ctx.ensure_object(dict)
    if verbose:
        from rich.logging import RichHandler

        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(show_path=False)],
        )
    ctx.obj["dataset"] = dataset.resolve() if dataset is not None else None


@cli.command()
@click.argument("name")
@click.option(
    "--category",
    type=click.Choice(["solo", "partnered"]),
    default="partnered",
    help="Move category",
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def classify(name: str, category: str, output_json: bool) -> None:
    """Classify one move name and show the deciding rule per field."""
    from .commands.classify_cmd import run_classify

    exit_code = run_classify(name, category, output_json=output_json)
    sys.exit(exit_code)


@cli.command("classify-all")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.option("--distribution", "show_distribution", is_flag=True, help="Show label counts per field")
@click.pass_context
def classify_all(ctx: click.Context, output_json: bool, show_distribution: bool) -> None:
    """Classify every move in the dataset."""
    from .commands.classify_cmd import run_classify_all

    exit_code = run_classify_all(
        _require_dataset(ctx),
        fmt="json" if output_json else "rich",
        show_distribution=show_distribution,
    )
    sys.exit(exit_code)


@cli.command()
@click.option(
    "--fail-on",
    type=click.Choice(["error", "warning"]),
    default="error",
    help="Exit with error if this level or higher found",
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.option("--explain", is_flag=True, help="Describe each reported rule")
@click.pass_context
def lint(ctx: click.Context, fail_on: str, output_json: bool, explain: bool) -> None:
    """Check the dataset for integrity problems.

    Dangling, duplicate and self relationships, weight and tier ranges,
    scheme coverage, classification drift and prerequisite cycles.
    """
    from .commands.lint import run_lint

    exit_code = run_lint(_require_dataset(ctx), fail_on, output_json, explain)
    sys.exit(exit_code)


@cli.command()
@click.option("--scheme", "-s", type=str, default=None, help="Grouping scheme (default: first in dataset)")
@click.option(
    "--filter",
    "relation_filter",
    type=click.Choice(list(RELATION_FILTERS)),
    default="all",
    help="Only use edges of this relationship type",
)
@click.option(
    "--forces",
    "forces_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="TOML file with a [forces] table",
)
@click.option(
    "--set",
    "overrides",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override one force parameter (repeatable)",
)
@click.option(
    "--learned",
    "learned_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="File listing learned move names (txt, JSON or YAML)",
)
@click.option("--seed", type=int, default=None, help="Seed for initial placement jitter")
@click.option("--max-ticks", type=click.IntRange(min=0), default=DEFAULT_MAX_TICKS, help="Tick cap")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "md", "json"]),
    default="rich",
    help="Output format",
)
@click.option(
    "--out",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write output to a file instead of stdout",
)
@click.pass_context
def layout(
    ctx: click.Context,
    scheme: str | None,
    relation_filter: str,
    forces_path: Path | None,
    overrides: tuple[str, ...],
    learned_path: Path | None,
    seed: int | None,
    max_ticks: int,
    fmt: str,
    out: Path | None,
) -> None:
    """Run the force layout and output positioned moves with the legend."""
    from .commands.layout_cmd import run_layout

    exit_code = run_layout(
        _require_dataset(ctx),
        scheme=scheme,
        relation_filter=relation_filter,
        forces_path=forces_path,
        overrides=overrides,
        learned_path=learned_path,
        seed=seed,
        max_ticks=max_ticks,
        fmt=fmt,
        out=out,
    )
    sys.exit(exit_code)


@cli.command()
@click.option("--scheme", "-s", type=str, default=None, help="Grouping scheme")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "md", "json"]),
    default="rich",
    help="Output format",
)
@click.pass_context
def legend(ctx: click.Context, scheme: str | None, fmt: str) -> None:
    """Show group bands and tier columns for a scheme.

    Uses the dataset's schemes (with move counts) when a dataset is given,
    otherwise the built-in schemes.
    """
    from .commands.layout_cmd import run_legend

    exit_code = run_legend(ctx.obj.get("dataset"), scheme=scheme, fmt=fmt)
    sys.exit(exit_code)


@cli.command()
@click.argument("name")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def prereqs(ctx: click.Context, name: str, output_json: bool) -> None:
    """List every prerequisite of a move in learning order."""
    from .commands.layout_cmd import run_prereqs

    exit_code = run_prereqs(_require_dataset(ctx), name, output_json=output_json)
    sys.exit(exit_code)


@cli.command()
@click.argument(
    "data_dir",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def styles(data_dir: Path, output_json: bool) -> None:
    """List style files in a data directory."""
    from .commands.styles_cmd import run_styles

    exit_code = run_styles(data_dir, output_json=output_json)
    sys.exit(exit_code)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
