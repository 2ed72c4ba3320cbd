"""Classification schemes: interchangeable taxonomy lenses over one node set.

A scheme names the classification field it reads and, for each group of that
field, the vertical band the group occupies (a fraction of the canvas height),
its colors and its display label.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Iterable, Iterator

from ..models import CLASSIFICATION_VALUES, NODE_KEY_ALIASES, Classification, Finding, Node

# Fallback band for values a scheme does not map
DEFAULT_BAND = 0.5

TIER_LABELS = {
    1: "Tier 1: Fundamentals",
    2: "Tier 2: Basics",
    3: "Tier 3: Intermediate",
    4: "Tier 4: Advanced",
}


class UnknownSchemeError(ValueError):
    """Raised when a scheme cannot be resolved."""


@dataclass(frozen=True)
class GroupColor:
    base: str
    light: str


@dataclass(frozen=True)
class SchemeGroup:
    key: str
    position: float  # 0 = top, 1 = bottom
    color: GroupColor
    label: str

    def to_dict(self) -> dict:
        return {
            "position": self.position,
            "color": {"base": self.color.base, "light": self.color.light},
            "label": self.label,
        }


@dataclass(frozen=True)
class Scheme:
    key: str
    label: str
    description: str
    node_key: str  # classification field name
    groups: dict[str, SchemeGroup] = field(default_factory=dict)

    def group_for(self, classification: Classification) -> SchemeGroup | None:
        return self.groups.get(classification.get(self.node_key))

    def band(self, classification: Classification) -> float:
        """Vertical band (0..1) for a classification, DEFAULT_BAND when unmapped."""
        group = self.group_for(classification)
        return group.position if group else DEFAULT_BAND

    def color_for(self, classification: Classification, learned: bool = False) -> str:
        group = self.group_for(classification)
        if group is None:
            if not self.groups:
                return "#9ca3af"
            group = next(iter(self.groups.values()))
        return group.color.base if learned else group.color.light

    def unmapped_values(self) -> list[str]:
        """Classifier values for this scheme's field that have no group."""
        return [v for v in CLASSIFICATION_VALUES[self.node_key] if v not in self.groups]

    @classmethod
    def from_dict(cls, key: str, data: dict) -> "Scheme":
        raw_key = str(data.get("nodeKey", data.get("node_key", ""))).strip()
        node_key = NODE_KEY_ALIASES.get(raw_key)
        if node_key is None:
            raise UnknownSchemeError(
                f"Scheme '{key}' reads unknown classification field {raw_key!r}"
            )

        groups: dict[str, SchemeGroup] = {}
        for group_key, raw in (data.get("groups") or {}).items():
            raw = raw if isinstance(raw, dict) else {}
            color = raw.get("color") or {}
            base = str(color.get("base", "#9ca3af"))
            groups[str(group_key)] = SchemeGroup(
                key=str(group_key),
                position=float(raw.get("position", DEFAULT_BAND)),
                color=GroupColor(base=base, light=str(color.get("light", base))),
                label=str(raw.get("label", group_key)),
            )

        return cls(
            key=key,
            label=str(data.get("label", key)),
            description=str(data.get("description", "")),
            node_key=node_key,
            groups=groups,
        )

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "description": self.description,
            "node_key": self.node_key,
            "groups": {k: g.to_dict() for k, g in self.groups.items()},
        }


def _group(position: float, base: str, light: str, label: str) -> dict:
    return {"position": position, "color": {"base": base, "light": light}, "label": label}


DEFAULT_SCHEME_DATA: dict[str, dict] = {
    "hybrid": {
        "label": "Hybrid",
        "description": "4 practical groups",
        "node_key": "family",
        "groups": {
            "jazz_styling": _group(0.15, "#f59e0b", "#fcd34d", "Jazz/Styling"),
            "charleston": _group(0.4, "#10b981", "#6ee7b7", "Charleston"),
            "core_lindy": _group(0.65, "#3b82f6", "#93c5fd", "Core Lindy"),
            "aerials_specials": _group(0.9, "#8b5cf6", "#c4b5fd", "Aerials/Specials"),
        },
    },
    "movement": {
        "label": "Movement Family",
        "description": "5 mechanic groups",
        "node_key": "movement_family",
        "groups": {
            "fundamentals": _group(0.1, "#ef4444", "#fca5a5", "Fundamentals"),
            "swingout": _group(0.3, "#3b82f6", "#93c5fd", "Swingout"),
            "turns": _group(0.5, "#8b5cf6", "#c4b5fd", "Turns"),
            "charleston": _group(0.7, "#10b981", "#6ee7b7", "Charleston"),
            "jazz_styling": _group(0.9, "#f59e0b", "#fcd34d", "Jazz/Styling"),
        },
    },
    "position": {
        "label": "Position/Frame",
        "description": "5 position groups",
        "node_key": "position_frame",
        "groups": {
            "closed": _group(0.1, "#ef4444", "#fca5a5", "Closed"),
            "open": _group(0.3, "#3b82f6", "#93c5fd", "Open"),
            "tandem": _group(0.5, "#10b981", "#6ee7b7", "Tandem/Shadow"),
            "side_by_side": _group(0.7, "#f59e0b", "#fcd34d", "Side-by-Side"),
            "solo": _group(0.9, "#8b5cf6", "#c4b5fd", "Solo"),
        },
    },
}


class SchemeRegistry:
    """Named schemes, in declaration order. The first is the default."""

    def __init__(self, schemes: Iterable[Scheme]):
        self._schemes: dict[str, Scheme] = {}
        for scheme in schemes:
            self._schemes[scheme.key] = scheme

    @classmethod
    def from_dict(cls, data: dict) -> "SchemeRegistry":
        return cls(Scheme.from_dict(str(k), v or {}) for k, v in data.items())

    @classmethod
    def defaults(cls) -> "SchemeRegistry":
        return cls.from_dict(DEFAULT_SCHEME_DATA)

    def __contains__(self, name: object) -> bool:
        return name in self._schemes

    def __iter__(self) -> Iterator[Scheme]:
        return iter(self._schemes.values())

    def __len__(self) -> int:
        return len(self._schemes)

    @property
    def names(self) -> list[str]:
        return list(self._schemes)

    @property
    def default_name(self) -> str:
        if not self._schemes:
            raise UnknownSchemeError("No schemes defined")
        return next(iter(self._schemes))

    def get(self, name: str | None = None) -> Scheme:
        """Resolve a scheme by name (default scheme when name is None)."""
        if name is None:
            name = self.default_name
        scheme = self._schemes.get(name)
        if scheme is None:
            available = ", ".join(self._schemes) or "none"
            raise UnknownSchemeError(f"Unknown scheme '{name}' (available: {available})")
        return scheme

    def check_coverage(self) -> list[Finding]:
        """Report classifier values that a scheme has no group for."""
        findings = []
        for scheme in self:
            for value in scheme.unmapped_values():
                findings.append(
                    Finding(
                        level="warning",
                        rule="unmapped-classification",
                        move=None,
                        message=f"Scheme '{scheme.key}' has no group for {scheme.node_key}='{value}'",
                        details={"scheme": scheme.key, "value": value},
                    )
                )
        return findings

    def check_nodes(self, nodes: Iterable[Node]) -> list[Finding]:
        """Report nodes whose classification value is missing from a scheme."""
        findings = []
        for node in nodes:
            for scheme in self:
                value = node.group(scheme.node_key)
                if value not in scheme.groups:
                    valid = ", ".join(scheme.groups)
                    findings.append(
                        Finding(
                            level="warning",
                            rule="unmapped-classification",
                            move=node.name,
                            message=f"{scheme.node_key}='{value}' not in {scheme.key} groups [{valid}]",
                            details={"scheme": scheme.key, "value": value},
                        )
                    )
        return findings

    def to_dict(self) -> dict:
        return {name: scheme.to_dict() for name, scheme in self._schemes.items()}


# --- Legend / axis description ---


def tier_x(tier: int, width: float, margin_ratio: float = 0.1) -> float:
    """Horizontal position of a tier: tier 1 leftmost, tier 4 rightmost."""
    margin = width * margin_ratio
    usable = width * (1 - 2 * margin_ratio)
    return margin + (max(1, min(4, tier)) - 1) / 3 * usable


@dataclass(frozen=True)
class LegendBand:
    key: str
    label: str
    color: str
    light: str
    position: float
    y: float
    count: int


@dataclass(frozen=True)
class TierBand:
    tier: int
    label: str
    x: float


@dataclass(frozen=True)
class Legend:
    scheme: str
    label: str
    description: str
    node_key: str
    groups: tuple[LegendBand, ...]
    tiers: tuple[TierBand, ...]

    def to_dict(self) -> dict:
        return {
            "scheme": self.scheme,
            "label": self.label,
            "description": self.description,
            "node_key": self.node_key,
            "groups": [asdict(band) for band in self.groups],
            "tiers": [asdict(band) for band in self.tiers],
        }


def build_legend(
    scheme: Scheme,
    *,
    width: float,
    height: float,
    margin_ratio: float = 0.1,
    nodes: Iterable[Node] = (),
) -> Legend:
    """Describe axis bands for a renderer without re-deriving them from moves."""
    counts = Counter(node.group(scheme.node_key) for node in nodes)
    groups = tuple(
        LegendBand(
            key=key,
            label=group.label,
            color=group.color.base,
            light=group.color.light,
            position=group.position,
            y=group.position * height,
            count=counts.get(key, 0),
        )
        for key, group in scheme.groups.items()
    )
    tiers = tuple(
        TierBand(tier=tier, label=label, x=tier_x(tier, width, margin_ratio))
        for tier, label in TIER_LABELS.items()
    )
    return Legend(
        scheme=scheme.key,
        label=scheme.label,
        description=scheme.description,
        node_key=scheme.node_key,
        groups=groups,
        tiers=tiers,
    )
