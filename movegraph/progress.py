"""Merge "learned" progress into graph nodes.

Progress comes from an external tracker as a list of move names. It only
sets the `learned` rendering hint and never affects layout forces.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

import yaml

from .models import Node, name_key


def merge_learned(nodes: Iterable[Node], learned_names: Iterable[str]) -> list[str]:
    """Set `learned` on nodes by case-insensitive name (or alias) match.

    Nodes not named are reset to not learned. Returns the names that matched
    no node.
    """
    wanted = {name_key(str(n)): n for n in learned_names if str(n).strip()}
    matched: set[str] = set()

    for node in nodes:
        keys = {name_key(node.name), *(name_key(a) for a in node.aliases)}
        hit = keys & wanted.keys()
        node.learned = bool(hit)
        matched |= hit

    return [original for key, original in wanted.items() if key not in matched]


def load_learned(path: Path) -> list[str]:
    """Read learned move names from a text, JSON or YAML file."""
    text = path.read_text(encoding="utf-8")

    if path.suffix == ".json":
        data = json.loads(text)
    elif path.suffix in (".yml", ".yaml"):
        data = yaml.safe_load(text)
    else:
        return [
            line.strip()
            for line in text.splitlines()
            if line.strip() and not line.lstrip().startswith("#")
        ]

    if isinstance(data, dict):
        data = data.get("moves", data.get("learned", []))
    names = []
    for item in data or []:
        if isinstance(item, dict):
            item = item.get("name", "")
        if str(item).strip():
            names.append(str(item).strip())
    return names
