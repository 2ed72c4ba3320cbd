"""
Rule-based move classifier.

Every taxonomy field is an ordered rule table. Rules are evaluated top to
bottom and the first match decides the label; the last rule of each table
always matches, so classification is total. Order is load-bearing: a name
that hits several vocabularies takes the label of the earliest rule, not the
most specific one ("Charleston Aerial Drop" is an aerial).

Matching is case-insensitive substring containment, except where a rule is
built with `equals_any`, which requires the whole name to match (so that
"Rock Step Variation" is not a fundamental).

Bump RULESET_VERSION whenever a table's order or vocabulary changes.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Callable, Iterable

from ..models import CLASSIFICATION_VALUES, Classification, Move

RULESET_VERSION = 1

# (lowered name, lowered category) -> match
Predicate = Callable[[str, str], bool]


@dataclass(frozen=True)
class Rule:
    """One (predicate, label) row of a rule table."""

    label: str
    predicate: Predicate
    description: str

    def matches(self, name: str, category: str) -> bool:
        return self.predicate(name, category)


def contains_any(*words: str) -> Predicate:
    def predicate(name: str, category: str) -> bool:
        return any(word in name for word in words)

    return predicate


def equals_any(*names: str) -> Predicate:
    exact = frozenset(names)

    def predicate(name: str, category: str) -> bool:
        return name in exact

    return predicate


def category_is(expected: str) -> Predicate:
    def predicate(name: str, category: str) -> bool:
        return category == expected

    return predicate


def either(*predicates: Predicate) -> Predicate:
    def predicate(name: str, category: str) -> bool:
        return any(p(name, category) for p in predicates)

    return predicate


def both(*predicates: Predicate) -> Predicate:
    def predicate(name: str, category: str) -> bool:
        return all(p(name, category) for p in predicates)

    return predicate


def negate(inner: Predicate) -> Predicate:
    def predicate(name: str, category: str) -> bool:
        return not inner(name, category)

    return predicate


def always(name: str, category: str) -> bool:
    return True


# --- Vocabularies ---

AERIAL_WORDS = (
    "aerial", "air step", "dip", "drop", "kip", "side car", "frankie throw", "lift",
)

FAMILY_CHARLESTON_WORDS = ("charleston", "tandem", "side-by-side", "hand-to-hand")

JAZZ_STEPS = (
    "suzie q", "truckin", "shorty george", "boogie", "tacky annie",
    "shim sham", "big apple", "tranky doo", "jitterbug stroll", "first stops",
    "fall off the log", "apple jacks", "knee slaps", "crazy legs", "rubber legs",
    "break-a-leg", "fishtail", "rusty dusty", "peckin", "spank the baby",
    "gaze afar", "freeze", "snake hips", "mess around", "itch", "scratch",
    "shout", "praise allah", "lock turn", "flying home", "grinds",
    "crossovers", "johnny's drop", "heel rock", "ba dum", "jazz walk",
    "strut", "camel walk", "pimp walk", "savoy kicks", "eagle slide",
    "scarecrow", "tick tock", "skip up", "bells", "scissors",
)

FUNDAMENTAL_STEPS = (
    "rock step", "triple step", "pulse", "connection", "frame",
    "closed position", "open position", "6-count basic", "8-count basic",
    "bounce", "kick ball change",
)

SWINGOUT_WORDS = (
    "swingout", "swing out", "lindy circle", "send out", "bring in", "pass by",
    "tuck turn", "underarm turn", "sugar push", "basket whip", "cuddle",
    "promenade", "pecks", "frankie 6", "hammerlock", "texas tommy",
    "sliding door", "revolving door", "trebuchet", "cross-body", "toss across",
    "liquid", "lift and slide", "cross and lunge", "foot sweep", "kick away",
    "stop on 5", "swingout kate", "california routine",
)

SWINGOUT_NAMES = ("savoy swingout", "hollywood swingout")

MOVEMENT_CHARLESTON_WORDS = (
    "charleston", "tandem", "side-by-side", "hand-to-hand", "jockey",
    "skip up", "flip flop", "airplane",
)

TURN_WORDS = ("turn", "spin", "loop", "free spin", "swivel", "switch")

MOVEMENT_AERIAL_WORDS = ("aerial", "dip", "drop", "kip", "side car", "frankie throw")

TANDEM_WORDS = ("tandem", "airplane", "shadow", "cuddle", "promenade")

SIDE_BY_SIDE_WORDS = ("side-by-side", "hand-to-hand", "jockey")

CLOSED_WORDS = (
    "closed", "lindy circle", "swingout from closed", "basket whip", "pecks",
    "liquid", "stop on 5",
)

CLOSED_NAMES = ("frame", "connection", "pulse")


# --- Rule tables (first match wins) ---

FAMILY_RULES: tuple[Rule, ...] = (
    Rule("aerials_specials", contains_any(*AERIAL_WORDS), "aerial, lift, dip, drop, kip or throw vocabulary"),
    Rule("charleston", contains_any(*FAMILY_CHARLESTON_WORDS), "charleston, tandem or partnered side-by-side vocabulary"),
    Rule(
        "jazz_styling",
        either(
            contains_any(*JAZZ_STEPS),
            both(category_is("solo"), negate(contains_any("charleston"))),
        ),
        "named solo jazz step, or a solo move that is not a charleston",
    ),
    Rule("core_lindy", always, "default"),
)

MOVEMENT_FAMILY_RULES: tuple[Rule, ...] = (
    Rule("fundamentals", equals_any(*FUNDAMENTAL_STEPS), "exact name of a foundational step"),
    Rule(
        "swingout",
        either(contains_any(*SWINGOUT_WORDS), equals_any(*SWINGOUT_NAMES)),
        "swingout family, turns out of the swingout, named historical variants",
    ),
    Rule("charleston", contains_any(*MOVEMENT_CHARLESTON_WORDS), "charleston vocabulary"),
    Rule("turns", contains_any(*TURN_WORDS), "turn, spin or swivel vocabulary"),
    Rule("jazz_styling", category_is("solo"), "solo move"),
    Rule("swingout", contains_any(*MOVEMENT_AERIAL_WORDS), "aerial, dip or drop vocabulary"),
    # Partnered moves with no keyword hit land here too
    Rule("swingout", always, "default"),
)

POSITION_FRAME_RULES: tuple[Rule, ...] = (
    Rule("solo", category_is("solo"), "solo move"),
    Rule("tandem", contains_any(*TANDEM_WORDS), "tandem, airplane, shadow, cuddle or promenade"),
    Rule("side_by_side", contains_any(*SIDE_BY_SIDE_WORDS), "side-by-side, hand-to-hand or jockey"),
    Rule(
        "closed",
        either(contains_any(*CLOSED_WORDS), equals_any(*CLOSED_NAMES)),
        "closed position vocabulary and named closed patterns",
    ),
    Rule("open", always, "default"),
)

RULE_TABLES: dict[str, tuple[Rule, ...]] = {
    "family": FAMILY_RULES,
    "movement_family": MOVEMENT_FAMILY_RULES,
    "position_frame": POSITION_FRAME_RULES,
}


def _normalize(name: str, category: str) -> tuple[str, str]:
    return str(name or "").strip().lower(), str(category or "").strip().lower()


def first_match(rules: Iterable[Rule], name: str, category: str) -> Rule:
    """Return the first rule matching an already-lowered name/category."""
    for rule in rules:
        if rule.matches(name, category):
            return rule
    raise ValueError("Rule table has no catch-all rule")


def classify(name: str, category: str) -> Classification:
    """Classify a move by name and category.

    Pure and total: every input yields exactly one label per field.
    """
    n, c = _normalize(name, category)
    return Classification(
        family=first_match(FAMILY_RULES, n, c).label,
        movement_family=first_match(MOVEMENT_FAMILY_RULES, n, c).label,
        position_frame=first_match(POSITION_FRAME_RULES, n, c).label,
    )


def classify_move(move: Move) -> Classification:
    return classify(move.name, move.category)


def explain(name: str, category: str) -> dict[str, Rule]:
    """Return the deciding rule for each field."""
    n, c = _normalize(name, category)
    return {field_name: first_match(rules, n, c) for field_name, rules in RULE_TABLES.items()}


def distribution(classifications: Iterable[Classification]) -> dict[str, Counter]:
    """Count labels per classification field."""
    counts: dict[str, Counter] = {field_name: Counter() for field_name in CLASSIFICATION_VALUES}
    for classification in classifications:
        for field_name, value in classification.as_dict().items():
            counts[field_name][value] += 1
    return counts
