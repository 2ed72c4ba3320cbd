"""Dataset loading: style files and directories of move notes."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import frontmatter
import yaml

from ..models import CATEGORIES, Classification, Finding, Move, Relationship, name_key
from .schemes import SchemeRegistry, UnknownSchemeError

STYLE_SUFFIXES = (".json", ".yml", ".yaml")
STYLE_META_FILES = ("style.yml", "style.yaml", "style.json")


class DatasetError(ValueError):
    """Raised when a dataset file cannot be read or has the wrong shape."""


@dataclass
class StyleMeta:
    name: str
    slug: str
    description: str = ""
    move_count: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "move_count": self.move_count,
        }


@dataclass
class StyleData:
    """Container for one loaded dance style."""

    path: Path
    style: StyleMeta
    schemes: SchemeRegistry
    moves: list[Move] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)  # problems defaulted or dropped while parsing


def _read_mapping(path: Path) -> dict:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DatasetError(f"Cannot read {path}: {e}") from e

    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise DatasetError(f"Malformed {path.name}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DatasetError(f"{path.name}: expected a mapping at top level")
    return data


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _invalid(findings: list[Finding], rule: str, move_name: str, message: str) -> None:
    findings.append(Finding(level="warning", rule=rule, move=move_name or None, message=message))


def parse_relationship(raw: Any, move_name: str, findings: list[Finding] | None = None) -> Relationship | None:
    """Build a Relationship; returns None (with a finding) when the entry is unusable."""
    if findings is None:
        findings = []
    if isinstance(raw, str):
        return Relationship(target=raw)
    if not isinstance(raw, dict):
        _invalid(findings, "invalid-relationship", move_name, f"Relationship must be a mapping, got {type(raw).__name__}; dropped")
        return None

    target = raw.get("name", raw.get("target"))
    if not target or not str(target).strip():
        _invalid(findings, "invalid-relationship", move_name, "Relationship without a target name dropped")
        return None

    raw_weight = raw.get("weight", 1.0)
    try:
        weight = float(raw_weight)
    except (TypeError, ValueError):
        _invalid(
            findings,
            "weight-out-of-range",
            move_name,
            f"Relationship to '{target}': weight {raw_weight!r} is not a number; using 1.0",
        )
        weight = 1.0

    rel_type = str(raw.get("type", raw.get("relationType", "related")) or "related").strip()
    return Relationship(target=str(target), weight=weight, type=rel_type)


def parse_classification(raw: Any) -> Classification | None:
    if not isinstance(raw, dict) or not raw:
        return None
    return Classification(
        family=str(raw.get("family", "")),
        movement_family=str(raw.get("movementFamily", raw.get("movement_family", ""))),
        position_frame=str(raw.get("positionFrame", raw.get("position_frame", ""))),
    )


def parse_move(raw: Any, *, description: str | None = None, findings: list[Finding] | None = None) -> Move:
    """Build a Move from a dataset mapping.

    Bad fields are defaulted and bad relationships dropped; each problem is
    appended to `findings` when given.
    """
    if not isinstance(raw, dict):
        raise DatasetError(f"Move entry must be a mapping, got {type(raw).__name__}")
    if findings is None:
        findings = []

    name = str(raw.get("name") or "").strip()
    raw_tier = raw.get("tier", 1)
    try:
        tier = int(raw_tier)
    except (TypeError, ValueError):
        _invalid(findings, "invalid-tier", name, f"Tier {raw_tier!r} is not an integer; using tier 1")
        tier = 1

    category = str(raw.get("category") or "partnered").strip().lower()
    if category not in CATEGORIES:
        _invalid(findings, "invalid-category", name, f"Category '{category}' is not solo or partnered; using partnered")
        category = "partnered"

    relationships = []
    for entry in _as_list(raw.get("relationships", raw.get("relatedMoves"))):
        rel = parse_relationship(entry, name, findings)
        if rel is not None:
            relationships.append(rel)

    return Move(
        id=str(raw.get("id") or name_key(name)),
        name=name,
        description=str(description if description is not None else raw.get("description") or ""),
        tier=tier,
        category=category,
        aliases=tuple(str(a) for a in _as_list(raw.get("aliases"))),
        relationships=tuple(relationships),
        declared_classification=parse_classification(raw.get("classifications")),
    )


def _parse_meta(raw: Any, fallback: str) -> StyleMeta:
    raw = raw if isinstance(raw, dict) else {}
    name = str(raw.get("name") or fallback)
    return StyleMeta(
        name=name,
        slug=str(raw.get("slug") or fallback),
        description=str(raw.get("description") or ""),
    )


def _parse_schemes(raw: Any, source: Path) -> SchemeRegistry:
    if not raw:
        return SchemeRegistry.defaults()
    if not isinstance(raw, dict):
        raise DatasetError(f"{source.name}: 'schemes' must be a mapping")
    try:
        return SchemeRegistry.from_dict(raw)
    except (UnknownSchemeError, TypeError, ValueError) as e:
        raise DatasetError(f"{source.name}: {e}") from e


def parse_style(data: dict, source: Path) -> StyleData:
    """Build StyleData from an already-deserialized `{style, schemes, moves}` mapping."""
    if "moves" not in data:
        raise DatasetError(f"{source.name}: missing 'moves' list")
    raw_moves = data.get("moves")
    if not isinstance(raw_moves, list):
        raise DatasetError(f"{source.name}: 'moves' must be a list")

    style = _parse_meta(data.get("style"), source.stem)
    findings: list[Finding] = []
    moves = []
    for i, raw in enumerate(raw_moves):
        if not isinstance(raw, dict):
            _invalid(findings, "invalid-move", "", f"Entry {i} in 'moves' is not a mapping; dropped")
            continue
        moves.append(parse_move(raw, findings=findings))
    style.move_count = len(moves)

    return StyleData(
        path=source,
        style=style,
        schemes=_parse_schemes(data.get("schemes"), source),
        moves=moves,
        findings=findings,
    )


def _note_title(content: str) -> str | None:
    for line in content.split("\n"):
        if line.startswith("# "):
            return line[2:].strip()
    return None


def _note_body(content: str) -> str:
    lines = [line for line in content.split("\n") if not line.startswith("# ")]
    return "\n".join(lines).strip()


def load_move_note(path: Path, findings: list[Finding] | None = None) -> Move:
    """Load a markdown move note: frontmatter carries the fields, the body is the description."""
    post = frontmatter.load(path)
    fm = dict(post.metadata)
    fm.setdefault("name", _note_title(post.content) or path.stem)
    return parse_move(fm, description=fm.get("description") or _note_body(post.content), findings=findings)


def load_style_dir(style_dir: Path) -> StyleData:
    """Load a directory of move notes plus optional style.yml metadata."""
    meta: dict = {}
    for candidate in STYLE_META_FILES:
        meta_path = style_dir / candidate
        if meta_path.exists():
            meta = _read_mapping(meta_path)
            break

    moves: list[Move] = []
    findings: list[Finding] = []
    for md_file in sorted(style_dir.rglob("*.md")):
        rel_parts = md_file.relative_to(style_dir).parts
        if any(part.startswith(".") for part in rel_parts):
            continue
        try:
            moves.append(load_move_note(md_file, findings))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise DatasetError(f"Failed to load {md_file}: {e}") from e

    style = _parse_meta(meta.get("style"), style_dir.name)
    style.move_count = len(moves)
    return StyleData(
        path=style_dir,
        style=style,
        schemes=_parse_schemes(meta.get("schemes"), style_dir),
        moves=moves,
        findings=findings,
    )


def load_style(path: Path) -> StyleData:
    """Load a style from a JSON/YAML file or a directory of move notes."""
    if path.is_dir():
        return load_style_dir(path)
    if not path.exists():
        raise DatasetError(f"Dataset not found: {path}")
    if path.suffix not in STYLE_SUFFIXES:
        raise DatasetError(f"Unsupported dataset format: {path.suffix or path.name}")
    return parse_style(_read_mapping(path), path)


def list_styles(data_dir: Path) -> list[StyleMeta]:
    """List style files in a data directory."""
    if not data_dir.is_dir():
        return []
    styles = []
    for path in sorted(data_dir.iterdir()):
        if path.is_file() and path.suffix in STYLE_SUFFIXES:
            data = load_style(path)
            styles.append(data.style)
    return styles
