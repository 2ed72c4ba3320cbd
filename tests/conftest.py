"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from typing import Callable

import pytest
import yaml

from movegraph.models import Move
from movegraph.style.graph import GraphBuilder, MoveGraph
from movegraph.style.loader import parse_move


@pytest.fixture
def sample_style() -> dict:
    """A small, lint-clean Lindy Hop dataset as it appears on disk."""
    return {
        "style": {"name": "Lindy Hop", "slug": "lindy-hop", "description": "Test subset"},
        "moves": [
            {"name": "Rock Step", "tier": 1, "category": "partnered"},
            {"name": "Triple Step", "tier": 1, "category": "partnered"},
            {
                "name": "Swingout",
                "tier": 2,
                "category": "partnered",
                "aliases": ["Lindy Turn"],
                "relationships": [
                    {"name": "Rock Step", "type": "prerequisite", "weight": 0.9},
                    {"name": "Triple Step", "type": "prerequisite", "weight": 0.9},
                    {"name": "Tuck Turn", "type": "leads_to", "weight": 0.6},
                ],
            },
            {
                "name": "Swingout from Closed",
                "tier": 2,
                "category": "partnered",
                "relationships": [{"name": "Swingout", "type": "variation", "weight": 0.8}],
            },
            {"name": "Tuck Turn", "tier": 2, "category": "partnered"},
            {
                "name": "Charleston Basic",
                "tier": 2,
                "category": "partnered",
                "relationships": [{"name": "Rock Step", "type": "related", "weight": 0.4}],
            },
            {
                "name": "Tandem Charleston",
                "tier": 3,
                "category": "partnered",
                "relationships": [{"name": "Charleston Basic", "type": "variation"}],
            },
            {"name": "Suzie Q", "tier": 1, "category": "solo"},
        ],
    }


@pytest.fixture
def sample_moves(sample_style: dict) -> list[Move]:
    return [parse_move(raw) for raw in sample_style["moves"]]


@pytest.fixture
def sample_graph(sample_moves: list[Move]) -> MoveGraph:
    return GraphBuilder().build(sample_moves)


@pytest.fixture
def write_dataset(tmp_path: Path) -> Callable[..., Path]:
    """Write a dataset mapping to tmp_path as JSON or YAML and return its path."""

    def _write(data: dict, name: str = "style.json") -> Path:
        path = tmp_path / name
        if path.suffix == ".json":
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def dataset_path(write_dataset: Callable[..., Path], sample_style: dict) -> Path:
    return write_dataset(sample_style, "lindy-hop.json")
