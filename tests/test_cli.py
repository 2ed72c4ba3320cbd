"""CLI tests via click's CliRunner and the run_* command functions."""

import json
from pathlib import Path

from click.testing import CliRunner

from movegraph.cli import cli
from movegraph.commands.classify_cmd import run_classify_all
from movegraph.commands.layout_cmd import run_layout, run_prereqs
from movegraph.commands.lint import run_lint


def _invoke(*args: str, env: dict | None = None):
    return CliRunner().invoke(cli, list(args), env=env)


def test_version():
    result = _invoke("--version")
    assert result.exit_code == 0
    assert "movegraph" in result.output


def test_classify_json():
    result = _invoke("classify", "Tuck Turn", "--json")
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["family"] == "core_lindy"
    assert payload["movement_family"] == "swingout"
    assert payload["position_frame"] == "open"


def test_classify_table():
    result = _invoke("classify", "Suzie Q", "--category", "solo")
    assert result.exit_code == 0
    assert "jazz_styling" in result.output


def test_dataset_is_required():
    result = _invoke("lint", env={"MOVEGRAPH_DATASET": ""})
    assert result.exit_code == 2
    assert "MOVEGRAPH_DATASET" in result.output


def test_lint_clean_dataset(dataset_path: Path):
    result = _invoke("--dataset", str(dataset_path), "lint", "--fail-on", "warning")
    assert result.exit_code == 0
    assert "8 moves, 6 edges" in result.output


def test_lint_reads_dataset_from_environment(dataset_path: Path):
    result = _invoke("lint", env={"MOVEGRAPH_DATASET": str(dataset_path)})
    assert result.exit_code == 0


def test_lint_fail_on_warning(write_dataset):
    path = write_dataset({"moves": [{"name": "A", "relationships": [{"name": "Ghost"}]}, {"name": "B"}]})

    result = _invoke("--dataset", str(path), "lint")
    assert result.exit_code == 0
    assert "dangling-relationship" in result.output

    result = _invoke("--dataset", str(path), "lint", "--fail-on", "warning")
    assert result.exit_code == 1


def test_lint_json(write_dataset, capsys):
    path = write_dataset({"moves": [{"name": "A", "tier": 9}, {"name": "a"}]})
    exit_code = run_lint(path, fail_on="error", output_json=True)
    assert exit_code == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["summary"]["nodes"] == 1
    assert payload["summary"]["warnings"] == 2
    assert {w["rule"] for w in payload["warnings"]} == {"invalid-tier", "duplicate-move"}


def test_empty_dataset_is_reported(write_dataset):
    path = write_dataset({"moves": []})
    result = _invoke("--dataset", str(path), "lint")
    assert result.exit_code == 1
    assert "Dataset is empty" in result.output


def test_malformed_dataset_is_reported(tmp_path: Path):
    path = tmp_path / "broken.yaml"
    path.write_text("moves: [unclosed\n", encoding="utf-8")
    result = _invoke("--dataset", str(path), "lint")
    assert result.exit_code == 1
    assert "Could not load dataset" in result.output


def test_unbuildable_dataset_is_reported(write_dataset):
    path = write_dataset({"moves": [{"name": ""}]})
    result = _invoke("--dataset", str(path), "lint")
    assert result.exit_code == 1
    assert "Could not build graph" in result.output


def test_classify_all_json(dataset_path: Path, capsys):
    assert run_classify_all(dataset_path, fmt="json") == 0
    payload = json.loads(capsys.readouterr().out)
    assert len(payload["moves"]) == 8
    assert payload["distribution"]["family"]["core_lindy"] == 5


def test_classify_all_distribution(dataset_path: Path):
    result = _invoke("--dataset", str(dataset_path), "classify-all", "--distribution")
    assert result.exit_code == 0
    assert "movement_family" in result.output


def test_layout_json_to_file(dataset_path: Path, tmp_path: Path):
    out = tmp_path / "layout.json"
    result = _invoke(
        "--dataset", str(dataset_path),
        "layout", "--seed", "1", "--max-ticks", "40", "--format", "json", "--out", str(out),
        "--scheme", "movement", "--set", "chargeStrength=-40",
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["layout"]["tick"] == 40
    assert payload["layout"]["scheme"] == "movement"
    assert payload["params"]["charge_strength"] == -40.0
    assert len(payload["layout"]["nodes"]) == 8
    assert payload["legend"]["node_key"] == "movement_family"


def test_layout_with_forces_file_and_learned(dataset_path: Path, tmp_path: Path, capsys):
    forces = tmp_path / "forces.toml"
    forces.write_text("[forces]\ntierStrength = 0.5\n", encoding="utf-8")
    learned = tmp_path / "learned.txt"
    learned.write_text("Swingout\nMystery\n", encoding="utf-8")

    exit_code = run_layout(
        dataset_path,
        relation_filter="variation",
        forces_path=forces,
        learned_path=learned,
        seed=2,
        max_ticks=10,
        fmt="json",
    )
    assert exit_code == 0
    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert payload["params"]["tier_strength"] == 0.5
    assert {e["type"] for e in payload["layout"]["edges"]} == {"variation"}
    learned_ids = {n["id"] for n in payload["layout"]["nodes"] if n["learned"]}
    assert learned_ids == {"swingout"}
    assert "Mystery" in captured.err


def test_layout_markdown(dataset_path: Path):
    result = _invoke("--dataset", str(dataset_path), "layout", "--seed", "1", "--max-ticks", "5", "--format", "md")
    assert result.exit_code == 0
    assert "# Layout: Lindy Hop" in result.output
    assert "| Swingout |" in result.output


def test_layout_bad_override(dataset_path: Path):
    result = _invoke("--dataset", str(dataset_path), "layout", "--set", "tier_strength=strong")
    assert result.exit_code == 1
    assert "Invalid force parameters" in result.output


def test_layout_unknown_scheme(dataset_path: Path):
    result = _invoke("--dataset", str(dataset_path), "layout", "--scheme", "bogus")
    assert result.exit_code == 1
    assert "Unknown scheme" in result.output


def test_legend_without_dataset():
    result = _invoke("legend", "--scheme", "position", "--format", "json", env={"MOVEGRAPH_DATASET": ""})
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["node_key"] == "position_frame"
    assert [t["label"] for t in payload["tiers"]][0] == "Tier 1: Fundamentals"


def test_prereqs(dataset_path: Path, capsys):
    assert run_prereqs(dataset_path, "swingout", output_json=True) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == {"move": "Swingout", "prerequisites": ["Rock Step", "Triple Step"]}


def test_prereqs_unknown_move(dataset_path: Path):
    result = _invoke("--dataset", str(dataset_path), "prereqs", "Moonwalk")
    assert result.exit_code == 1
    assert "Move not found" in result.output


def test_styles(write_dataset, sample_style: dict):
    path = write_dataset(sample_style, "lindy-hop.json")
    result = _invoke("styles", str(path.parent), "--json")
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload == [{"name": "Lindy Hop", "slug": "lindy-hop", "description": "Test subset", "move_count": 8}]


def _troubled_dataset(write_dataset) -> Path:
    return write_dataset(
        {
            "moves": [
                {"name": "Rock Step", "tier": 1},
                {"name": "rock step", "tier": 2},
                {
                    "name": "Swingout",
                    "tier": 2,
                    "relationships": [
                        {"name": "Rock Step", "type": "prerequisite"},
                        {"name": "Ghost Move", "type": "prerequisite"},
                    ],
                },
            ]
        }
    )


def test_layout_json_reports_findings(write_dataset, capsys):
    path = _troubled_dataset(write_dataset)
    assert run_layout(path, seed=1, max_ticks=5, fmt="json") == 0

    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert {f["rule"] for f in payload["findings"]} == {"duplicate-move", "dangling-relationship"}
    assert "Ghost Move" in json.dumps(payload["findings"])
    assert "2 warning(s)" in captured.err


def test_layout_markdown_lists_findings(write_dataset):
    path = _troubled_dataset(write_dataset)
    result = _invoke("--dataset", str(path), "layout", "--seed", "1", "--max-ticks", "5", "--format", "md")
    assert result.exit_code == 0
    assert "## Findings" in result.output
    assert "[dangling-relationship] Swingout" in result.output


def test_layout_clean_dataset_has_no_warnings(dataset_path: Path, capsys):
    assert run_layout(dataset_path, seed=1, max_ticks=5, fmt="json") == 0
    captured = capsys.readouterr()
    assert all(f["level"] == "info" for f in json.loads(captured.out)["findings"])
    assert "warning(s)" not in captured.err


def test_layout_loads_dataset_with_bad_fields(write_dataset, capsys):
    path = write_dataset(
        {
            "moves": [
                {"name": "Rock Step", "tier": "basic"},
                {
                    "name": "Swingout",
                    "tier": 2,
                    "relationships": [{"type": "prerequisite"}, {"name": "Rock Step", "weight": "lots"}],
                },
            ]
        }
    )
    assert run_layout(path, seed=1, max_ticks=5, fmt="json") == 0
    payload = json.loads(capsys.readouterr().out)
    assert len(payload["layout"]["nodes"]) == 2
    assert len(payload["layout"]["edges"]) == 1
    assert {"invalid-tier", "invalid-relationship", "weight-out-of-range"} <= {f["rule"] for f in payload["findings"]}


def test_rich_output_keeps_brackets_in_names(write_dataset, capsys):
    path = write_dataset(
        {
            "style": {"name": "Swing [bold]Club"},
            "moves": [{"name": "Swingout [bold]Savoy", "tier": 2}, {"name": "Rock Step", "tier": 1}],
        }
    )
    assert run_layout(path, seed=1, max_ticks=5, fmt="rich") == 0
    out = capsys.readouterr().out
    assert "Swingout [bold]Savoy" in out
    assert "Swing [bold]Club" in out
