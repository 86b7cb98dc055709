"""Thin index over the static action catalog plus eligibility and adjacency helpers."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from hand_recommender.constants import ADJACENCY_NEXT, DEFAULT_FP_SEQUENCE, MILESTONE_FIELD_TO_FP_ACTION
from hand_recommender.models import ActionDef, ActionRecMode, GameStateForRecs, MilestoneField, School


@dataclass(frozen=True, slots=True)
class ActionCatalogIndex:
    by_id: dict[str, ActionDef] = field(default_factory=dict)
    by_school: dict[School, tuple[ActionDef, ...]] = field(default_factory=dict)
    all: tuple[ActionDef, ...] = ()

    def get(self, action_id: str) -> ActionDef | None:
        return self.by_id.get(action_id)


def index_action_catalog(actions: Iterable[ActionDef]) -> ActionCatalogIndex:
    ordered = sorted(actions, key=lambda action: action.id)
    by_id: dict[str, ActionDef] = {}
    grouped: dict[School, list[ActionDef]] = {}
    for action in ordered:
        by_id[action.id] = action
        grouped.setdefault(action.school, []).append(action)

    return ActionCatalogIndex(
        by_id=by_id,
        by_school={school: tuple(bucket) for school, bucket in grouped.items()},
        all=tuple(ordered),
    )


def adjacent_schools(last_school: School | None) -> tuple[School, ...]:
    if last_school is None:
        return ()
    return ADJACENCY_NEXT.get(last_school, ())


def has_school_evidence(state: GameStateForRecs, school: School) -> bool:
    """True when any run, or any collectible a run produced, is tagged with ``school``."""
    for run in reversed(state.runs):
        if run.school == school:
            return True
        for collectible in run.collectibles:
            if collectible.produced_by_school == school:
                return True
    return False


def has_abstraction_evidence(state: GameStateForRecs) -> bool:
    return has_school_evidence(state, School.ABSTRACTION)


def default_fp_sequence() -> tuple[str, ...]:
    """Milestone creation flow: goal, scope fence, tripwires, done receipt."""
    return DEFAULT_FP_SEQUENCE


def fp_actions_for_missing_fields(missing_fields: Iterable[MilestoneField]) -> list[str]:
    sequence = default_fp_sequence()
    action_ids: list[str] = []
    for milestone_field in missing_fields:
        action_id = MILESTONE_FIELD_TO_FP_ACTION.get(milestone_field)
        if action_id and action_id not in action_ids:
            action_ids.append(action_id)
    return sorted(action_ids, key=lambda action_id: sequence.index(action_id))


def eligible_actions_for_mode(
    *,
    state: GameStateForRecs,
    catalog: ActionCatalogIndex,
    mode: ActionRecMode,
    missing_fp_action_ids: Sequence[str] = (),
) -> list[ActionDef]:
    available = [action for action in catalog.all if action.id not in state.unavailable_action_ids]

    if mode == ActionRecMode.FP_START:
        return [action for action in available if action.school == School.PLANNING]
    if mode == ActionRecMode.ENRICH:
        return available

    allowed_fp = set(missing_fp_action_ids)
    return [action for action in available if action.school != School.PLANNING or action.id in allowed_fp]
