"""Tests for schemes, the registry and the legend."""

import pytest

from movegraph.models import Classification
from movegraph.style.graph import MoveGraph
from movegraph.style.schemes import (
    DEFAULT_BAND,
    Scheme,
    SchemeRegistry,
    UnknownSchemeError,
    build_legend,
    tier_x,
)

CORE = Classification("core_lindy", "swingout", "open")


def test_default_registry():
    schemes = SchemeRegistry.defaults()
    assert schemes.names == ["hybrid", "movement", "position"]
    assert schemes.default_name == "hybrid"
    assert len(schemes) == 3
    assert "movement" in schemes
    assert schemes.get().key == "hybrid"
    assert schemes.get("position").node_key == "position_frame"


def test_unknown_scheme_raises():
    with pytest.raises(UnknownSchemeError, match="bogus"):
        SchemeRegistry.defaults().get("bogus")
    assert issubclass(UnknownSchemeError, ValueError)


def test_empty_registry_has_no_default():
    with pytest.raises(UnknownSchemeError):
        SchemeRegistry([]).get()


def test_scheme_from_dict_accepts_camel_case_node_key():
    scheme = Scheme.from_dict(
        "moves",
        {
            "label": "Moves",
            "nodeKey": "movementFamily",
            "groups": {"turns": {"position": 0.2, "color": {"base": "#111111"}, "label": "Turns"}},
        },
    )
    assert scheme.node_key == "movement_family"
    group = scheme.groups["turns"]
    assert group.position == 0.2
    # light color falls back to base
    assert group.color.light == "#111111"


def test_scheme_with_unknown_node_key_is_rejected():
    with pytest.raises(UnknownSchemeError):
        Scheme.from_dict("broken", {"nodeKey": "difficulty", "groups": {}})


def test_band_for_mapped_and_unmapped_values():
    hybrid = SchemeRegistry.defaults().get("hybrid")
    assert hybrid.band(CORE) == 0.65
    odd = Classification("unheard_of", "swingout", "open")
    assert hybrid.band(odd) == DEFAULT_BAND


def test_band_depends_on_scheme():
    schemes = SchemeRegistry.defaults()
    assert schemes.get("movement").band(CORE) == 0.3
    assert schemes.get("position").band(CORE) == 0.3


def test_color_for_learned_and_unlearned():
    hybrid = SchemeRegistry.defaults().get("hybrid")
    assert hybrid.color_for(CORE, learned=True) == "#3b82f6"
    assert hybrid.color_for(CORE, learned=False) == "#93c5fd"


def test_color_for_unmapped_falls_back_to_first_group():
    hybrid = SchemeRegistry.defaults().get("hybrid")
    odd = Classification("unheard_of", "swingout", "open")
    assert hybrid.color_for(odd, learned=True) == "#f59e0b"


def test_registry_round_trips_through_dict():
    schemes = SchemeRegistry.defaults()
    again = SchemeRegistry.from_dict(schemes.to_dict())
    assert again.names == schemes.names
    assert again.get("movement").groups == schemes.get("movement").groups


@pytest.mark.parametrize("tier,x", [(1, 80.0), (2, 80 + 640 / 3), (4, 720.0), (9, 720.0), (0, 80.0)])
def test_tier_x(tier: int, x: float):
    assert tier_x(tier, 800, 0.1) == pytest.approx(x)


def test_legend_bands_and_counts(sample_graph: MoveGraph):
    scheme = SchemeRegistry.defaults().get("hybrid")
    legend = build_legend(scheme, width=800, height=600, nodes=sample_graph.nodes)

    bands = {band.key: band for band in legend.groups}
    assert set(bands) == {"jazz_styling", "charleston", "core_lindy", "aerials_specials"}
    assert bands["core_lindy"].y == pytest.approx(0.65 * 600)
    assert bands["core_lindy"].count == 5
    assert bands["charleston"].count == 2
    assert bands["jazz_styling"].count == 1
    assert bands["aerials_specials"].count == 0

    assert [t.label for t in legend.tiers] == [
        "Tier 1: Fundamentals",
        "Tier 2: Basics",
        "Tier 3: Intermediate",
        "Tier 4: Advanced",
    ]
    assert legend.tiers[0].x == pytest.approx(80.0)


def test_legend_to_dict():
    legend = build_legend(SchemeRegistry.defaults().get("position"), width=800, height=600)
    data = legend.to_dict()
    assert data["scheme"] == "position"
    assert data["node_key"] == "position_frame"
    assert data["groups"][0]["key"] == "closed"
    assert data["groups"][0]["count"] == 0
    assert len(data["tiers"]) == 4
