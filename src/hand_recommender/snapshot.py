"""Reduces raw game state into the small snapshots the hand generators score against."""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping

from hand_recommender.constants import (
    MILESTONE_FIELD_CONF_THRESHOLD,
    MILESTONE_FIELD_ORDER,
    RECENCY_RUN_WINDOW_TARGETS,
)
from hand_recommender.models import (
    ActionDef,
    ActionRecMode,
    ActionRecSnapshot,
    ActiveMilestoneSignals,
    Collectible,
    GameStateForRecs,
    MilestoneField,
    RunProgress,
    RunRecord,
    TargetsRecSnapshot,
)
from hand_recommender.pools import unique_by

ACTION_SNAPSHOT_PREFIX = "AHS"
TARGETS_SNAPSHOT_PREFIX = "THS"

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return sign + "".join(reversed(digits))


def now_in_ms() -> int:
    return int(time.time() * 1000)


def make_snapshot_id(prefix: str, now_ms: int) -> str:
    """Short stable id so callers and logs can refer to the same hand."""
    return f"{prefix}:{_to_base36(int(now_ms))}"


def infer_missing_fields(
    field_confidence: Mapping[MilestoneField, float] | None,
    explicit_missing: Iterable[MilestoneField] | None = None,
) -> tuple[MilestoneField, ...]:
    explicit = list(explicit_missing or ())
    if explicit:
        return tuple(unique_by(explicit, lambda milestone_field: milestone_field))
    if not field_confidence:
        return ()
    return tuple(
        milestone_field
        for milestone_field in MILESTONE_FIELD_ORDER
        if field_confidence.get(milestone_field, 0.0) < MILESTONE_FIELD_CONF_THRESHOLD
    )


def infer_mode(
    active: ActiveMilestoneSignals | None,
    missing_fields: tuple[MilestoneField, ...],
) -> ActionRecMode:
    if active is None:
        return ActionRecMode.FP_START
    if active.is_fully_enriched is not None:
        fully_enriched = active.is_fully_enriched
    else:
        fully_enriched = not missing_fields
    return ActionRecMode.CHASE if fully_enriched else ActionRecMode.ENRICH


def last_run(runs: tuple[RunRecord, ...]) -> RunRecord | None:
    return runs[-1] if runs else None


def latest_run_progress(runs: tuple[RunRecord, ...]) -> RunProgress | None:
    for run in reversed(runs):
        if isinstance(run.progress, RunProgress):
            return run.progress
    return None


def build_action_rec_snapshot(state: GameStateForRecs, now_ms: int) -> ActionRecSnapshot:
    active = state.active_milestone
    if active is not None:
        missing = infer_missing_fields(active.field_confidence, active.missing_fields)
    else:
        missing = ()
    newest = last_run(state.runs)

    return ActionRecSnapshot(
        snapshot_id=make_snapshot_id(ACTION_SNAPSHOT_PREFIX, now_ms),
        generated_at_ms=now_ms,
        mode=infer_mode(active, missing),
        missing_milestone_fields=missing,
        active_milestone_id=active.id if active is not None else None,
        last_action_id=newest.action_id if newest is not None else None,
        last_school=newest.school if newest is not None else None,
        latest_run_progress=latest_run_progress(state.runs),
        player_stats=state.player_stats,
    )


def recent_collectibles(runs: tuple[RunRecord, ...], window: int = RECENCY_RUN_WINDOW_TARGETS) -> tuple[Collectible, ...]:
    """Collectibles of the last ``window`` runs, newest run first."""
    recent_runs = runs[-window:] if window > 0 else ()
    flattened: list[Collectible] = []
    for run in reversed(recent_runs):
        flattened.extend(run.collectibles)
    return tuple(flattened)


def build_targets_rec_snapshot(
    state: GameStateForRecs,
    selected_action: ActionDef,
    milestone_composition_ids: Iterable[str],
    now_ms: int,
) -> TargetsRecSnapshot:
    active = state.active_milestone
    return TargetsRecSnapshot(
        snapshot_id=make_snapshot_id(TARGETS_SNAPSHOT_PREFIX, now_ms),
        generated_at_ms=now_ms,
        selected_action=selected_action,
        recent_collectibles=recent_collectibles(state.runs),
        milestone_composition_ids=tuple(unique_by(milestone_composition_ids, lambda item_id: item_id)),
        active_milestone_id=active.id if active is not None else None,
        player_stats=state.player_stats,
    )
