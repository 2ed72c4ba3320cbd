"""Force coefficients for the layout simulation."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

# camelCase names accepted from force files and --set
CAMEL_ALIASES = {
    "tierStrength": "tier_strength",
    "variationStrength": "variation_strength",
    "chargeStrength": "charge_strength",
    "familyStrength": "group_strength",
    "family_strength": "group_strength",
    "linkDistance": "link_distance",
    "linkStrength": "link_strength",
    "velocityDecay": "velocity_decay",
    "alphaDecay": "alpha_decay",
    "alphaMin": "alpha_min",
}


@dataclass(frozen=True)
class ForceParams:
    """Tunable simulation coefficients. Immutable; use `replace` to override."""

    # Forces
    tier_strength: float = 0.3
    variation_strength: float = 0.5
    charge_strength: float = -80.0
    group_strength: float = 0.15
    link_distance: float = 50.0
    link_strength: float = 0.3
    link_weight_influence: float = 0.0  # 0 = uniform links, 1 = scaled by edge weight
    distance_min: float = 1.0

    # Variation placement
    variation_offset: float = 30.0
    variation_min_offset: float = 40.0
    variation_push: float = 3.0

    # Filtered-mode extras
    sibling_min_gap: float = 30.0
    sibling_strength: float = 0.5
    parent_y_strength: float = 0.1
    filtered_group_scale: float = 0.25

    # Simulation energy
    velocity_decay: float = 0.4
    alpha_decay: float = 1 - 0.001 ** (1 / 300)
    alpha_min: float = 0.001
    alpha_target: float = 0.0

    # Canvas and initial placement
    width: float = 800.0
    height: float = 600.0
    margin_ratio: float = 0.1
    jitter_x: float = 40.0
    jitter_y_ratio: float = 0.15

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, (int, float)) or value != value:
                raise ValueError(f"{f.name} must be a number, got {value!r}")
        if not 0 < self.velocity_decay <= 1:
            raise ValueError("velocity_decay must be in (0, 1]")
        if not 0 < self.alpha_decay < 1:
            raise ValueError("alpha_decay must be in (0, 1)")
        if self.alpha_min < 0 or not 0 <= self.alpha_target < 1:
            raise ValueError("alpha_min must be >= 0 and alpha_target in [0, 1)")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("canvas width and height must be positive")
        if not 0 <= self.margin_ratio < 0.5:
            raise ValueError("margin_ratio must be in [0, 0.5)")
        if self.distance_min <= 0:
            raise ValueError("distance_min must be positive")
        if not 0 <= self.link_weight_influence <= 1:
            raise ValueError("link_weight_influence must be in [0, 1]")
        for name in ("link_distance", "sibling_min_gap", "variation_min_offset", "jitter_x", "jitter_y_ratio"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")

    def replace(self, **changes: Any) -> "ForceParams":
        """Return a copy with some coefficients overridden."""
        known = {f.name for f in fields(self)}
        normalized = {}
        for key, value in changes.items():
            name = CAMEL_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown force parameter: {key}")
            normalized[name] = float(value)
        return dataclasses.replace(self, **normalized)

    def to_dict(self) -> dict[str, float]:
        return dataclasses.asdict(self)


DEFAULT_FORCE_PARAMS = ForceParams()


def parse_assignment(text: str) -> tuple[str, float]:
    """Parse a `key=value` override (CLI `--set`)."""
    key, sep, value = text.partition("=")
    if not sep or not key.strip():
        raise ValueError(f"Expected key=value, got {text!r}")
    try:
        return key.strip(), float(value)
    except ValueError as e:
        raise ValueError(f"Value for {key.strip()} is not a number: {value!r}") from e


def load_force_params(path: Path, base: ForceParams = DEFAULT_FORCE_PARAMS) -> ForceParams:
    """
    Load force overrides from TOML.

    Values live under a `[forces]` table; a file with only top-level keys is
    accepted too.
    """
    import tomllib

    data = tomllib.loads(path.read_text(encoding="utf-8"))
    table = data.get("forces", data)
    if not isinstance(table, dict):
        raise ValueError("[forces] must be a table")
    return base.replace(**table)
