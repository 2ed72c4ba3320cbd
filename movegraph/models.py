"""Data models for moves, classifications, graph edges and layout nodes."""

from dataclasses import dataclass, field
from typing import Literal

Category = Literal["solo", "partnered"]

RelationType = Literal["prerequisite", "variation", "leads_to", "related"]

# Coarse taxonomy
Family = Literal["core_lindy", "charleston", "jazz_styling", "aerials_specials"]

# Mechanics taxonomy
MovementFamily = Literal["swingout", "charleston", "turns", "jazz_styling", "fundamentals"]

# Partner-frame taxonomy
PositionFrame = Literal["closed", "open", "tandem", "side_by_side", "solo"]

# Classification field a scheme reads
NodeKey = Literal["family", "movement_family", "position_frame"]

Level = Literal["error", "warning", "info"]

CATEGORIES = ("solo", "partnered")

RELATION_TYPES = ("prerequisite", "variation", "leads_to", "related")

# Types declared from the child's side ("I require X", "I am a variant of X")
CHILD_DECLARED_TYPES = frozenset({"prerequisite", "variation"})

CLASSIFICATION_VALUES: dict[str, tuple[str, ...]] = {
    "family": ("core_lindy", "charleston", "jazz_styling", "aerials_specials"),
    "movement_family": ("fundamentals", "swingout", "turns", "charleston", "jazz_styling"),
    "position_frame": ("closed", "open", "tandem", "side_by_side", "solo"),
}

# Dataset spelling -> field name
NODE_KEY_ALIASES = {
    "family": "family",
    "movementFamily": "movement_family",
    "movement_family": "movement_family",
    "positionFrame": "position_frame",
    "position_frame": "position_frame",
}

MIN_TIER = 1
MAX_TIER = 4


def clamp_tier(tier: int) -> int:
    """Clamp a tier into the 1..4 difficulty bands."""
    return max(MIN_TIER, min(MAX_TIER, int(tier)))


def clamp_weight(weight: float) -> float:
    """Clamp a relationship weight into [0, 1]."""
    try:
        value = float(weight)
    except (TypeError, ValueError):
        return 0.0
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, value))


def name_key(name: str) -> str:
    """Case-insensitive lookup key for a move name."""
    return name.strip().lower()


@dataclass(frozen=True)
class Classification:
    """The three taxonomy labels of a move."""

    family: str
    movement_family: str
    position_frame: str

    def get(self, node_key: str) -> str:
        field_name = NODE_KEY_ALIASES.get(node_key)
        if field_name is None:
            raise KeyError(f"Unknown classification field: {node_key!r}")
        return getattr(self, field_name)

    def as_dict(self) -> dict[str, str]:
        return {
            "family": self.family,
            "movement_family": self.movement_family,
            "position_frame": self.position_frame,
        }


@dataclass(frozen=True)
class Relationship:
    """A relationship as declared by one move, before graph normalization."""

    target: str  # target move name, as written in the dataset
    weight: float = 1.0
    type: str = "related"


@dataclass(frozen=True)
class Move:
    """A named dance figure."""

    id: str
    name: str
    description: str = ""
    tier: int = 1
    category: str = "partnered"
    aliases: tuple[str, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    # Labels stored alongside the move in the dataset, if any; never used for layout
    declared_classification: Classification | None = None

    @property
    def key(self) -> str:
        return name_key(self.name)


@dataclass(frozen=True)
class Edge:
    """A normalized, directed graph edge (parent/simpler -> child/advanced)."""

    source: str  # node id
    target: str  # node id
    weight: float
    type: str

    @property
    def pair(self) -> frozenset[str]:
        return frozenset((self.source, self.target))

    @property
    def clamped_weight(self) -> float:
        return clamp_weight(self.weight)

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "target": self.target,
            "weight": self.weight,
            "type": self.type,
        }


@dataclass
class Node:
    """A move plus its classification plus mutable simulation state."""

    id: str
    name: str
    tier: int
    category: str
    classification: Classification
    description: str = ""
    aliases: tuple[str, ...] = ()
    learned: bool = False  # rendering hint only
    is_variation: bool = False
    parent_id: str | None = None
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None  # pinned x
    fy: float | None = None  # pinned y

    @property
    def pinned(self) -> bool:
        return self.fx is not None or self.fy is not None

    def group(self, node_key: str) -> str:
        return self.classification.get(node_key)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "tier": self.tier,
            "category": self.category,
            "description": self.description,
            **self.classification.as_dict(),
            "learned": self.learned,
            "is_variation": self.is_variation,
            "parent_id": self.parent_id,
            "x": self.x,
            "y": self.y,
            "vx": self.vx,
            "vy": self.vy,
            "pinned": self.pinned,
        }


@dataclass
class Finding:
    """A single data integrity finding."""

    level: Level
    rule: str
    move: str | None
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        loc = self.move or "<dataset>"
        return f"{self.level.upper()}: [{self.rule}] {loc} - {self.message}"

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "rule": self.rule,
            "move": self.move,
            "message": self.message,
            "details": self.details,
        }
