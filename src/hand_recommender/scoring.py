"""Additive, explainable scoring terms for candidate actions."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from hand_recommender.catalog import adjacent_schools
from hand_recommender.constants import (
    NOVELTY_BONUS,
    NOVELTY_PENALTY,
    WEIGHT_ACTION_SCHOOL_MATCH,
    WEIGHT_ADJACENCY_SCHOOL_MATCH,
    WEIGHT_PLAYER_PREFERENCE,
)
from hand_recommender.hints import DEFAULT_HINT_RULES, HintRule, resolve_hint_school
from hand_recommender.models import ActionDef, ActionRecSnapshot, BasisTag, PlayerStats, School
from hand_recommender.pools import round_half_up, seeded_sort


@dataclass(frozen=True, slots=True)
class ScoredAction:
    action: ActionDef
    score: float
    basis: BasisTag
    note: str


def preferred_school_from_player(stats: PlayerStats | None) -> School | None:
    """Most-picked school; the first one seen wins a tie."""
    if stats is None or not stats.school_pick_counts:
        return None
    best: School | None = None
    best_count = 0
    for school, count in stats.school_pick_counts.items():
        if best is None or count > best_count:
            best, best_count = school, count
    return best


def parse_progress_hint_to_school(
    snapshot: ActionRecSnapshot,
    rules: Iterable[HintRule] = DEFAULT_HINT_RULES,
) -> School | None:
    return resolve_hint_school(snapshot.latest_run_progress, rules)


def score_for_school_match(action: ActionDef, desired: School | None) -> float:
    if desired is None:
        return 0.0
    return WEIGHT_ACTION_SCHOOL_MATCH if action.school == desired else 0.0


def score_for_adjacency(action: ActionDef, snapshot: ActionRecSnapshot) -> float:
    return WEIGHT_ADJACENCY_SCHOOL_MATCH if action.school in adjacent_schools(snapshot.last_school) else 0.0


def score_player_preference(action: ActionDef, stats: PlayerStats | None) -> float:
    preferred = preferred_school_from_player(stats)
    if preferred is None:
        return 0.0
    return WEIGHT_PLAYER_PREFERENCE if action.school == preferred else 0.0


def score_novelty(action: ActionDef, recent_action_ids: Sequence[str]) -> float:
    return NOVELTY_PENALTY if action.id in recent_action_ids else NOVELTY_BONUS


def pick_best_action(
    candidates: Sequence[ActionDef],
    seed_key: str,
    score_fn: Callable[[ActionDef], ScoredAction],
) -> ScoredAction | None:
    """Highest-scoring candidate; equal scores fall back to a seeded, reproducible order."""
    if not candidates:
        return None

    scored = seeded_sort(
        [score_fn(action) for action in candidates],
        seed_key,
        lambda entry: f"{entry.action.id}:{round_half_up(entry.score * 1000)}",
    )
    scored.sort(key=lambda entry: entry.score, reverse=True)
    return scored[0]
