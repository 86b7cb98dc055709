"""Action hand generation: fixed milestone flow, enrichment prefix, dynamic slots, guardrails."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace

from hand_recommender.catalog import (
    ActionCatalogIndex,
    default_fp_sequence,
    eligible_actions_for_mode,
    fp_actions_for_missing_fields,
    has_abstraction_evidence,
    index_action_catalog,
)
from hand_recommender.constants import (
    BACKFILL_SCORE,
    DEFAULT_ACTION_HAND_SIZE,
    DIVERSITY_FIX_BONUS,
    ENRICHMENT_SCORE,
    FP_START_HAND_SIZE,
    FP_START_SCORE,
    FS_REQUIRES_FA,
    MAX_ENRICHMENT_SLOTS,
    MIN_HAND_SIZE,
    RECENCY_RUN_WINDOW_ACTIONS,
    SYNTHESIS_FALLBACK_BONUS,
    WEIGHT_DIVERSITY_PENALTY,
)
from hand_recommender.hints import DEFAULT_HINT_RULES, HintRule
from hand_recommender.models import (
    ActionDef,
    ActionHand,
    ActionRecMode,
    ActionRecSnapshot,
    BasisTag,
    GameStateForRecs,
    HandItem,
    School,
)
from hand_recommender.pools import sort_hand_items_desc, unique_by
from hand_recommender.scoring import (
    ScoredAction,
    parse_progress_hint_to_school,
    pick_best_action,
    preferred_school_from_player,
    score_for_adjacency,
    score_for_school_match,
    score_novelty,
    score_player_preference,
)
from hand_recommender.snapshot import build_action_rec_snapshot, now_in_ms

logger = logging.getLogger("hand_recommender.planning.action_hand")

ActionItem = HandItem[ActionDef]

_DEFAULT_STABILITY_SCHOOL = School.ABSTRACTION
_DRIFT_STABILITY_SCHOOL = School.UNDERSTANDING
_DRIFT_LABELS = frozenset({"DRIFT", "STALLED"})


def recent_action_ids(state: GameStateForRecs, limit: int = RECENCY_RUN_WINDOW_ACTIONS) -> list[str]:
    """Action ids of the last ``limit`` runs, newest first."""
    return [run.action_id for run in reversed(state.runs[-limit:])] if limit > 0 else []


def note_for_basis(basis: BasisTag, snapshot: ActionRecSnapshot) -> str:
    if basis == BasisTag.PROGRESS_PROXY:
        return "Based on latest progress signal." if snapshot.latest_run_progress else "Based on recent posture."
    if basis == BasisTag.ADJACENCY:
        return "Natural next move in the flow."
    if basis == BasisTag.STABILITY:
        return "Stability move to reduce drift later."
    if basis == BasisTag.VARIETY:
        return "A plausible alternate path."
    if basis == BasisTag.PLAYER_STYLE:
        return "Matches your usual style."
    if basis == BasisTag.MILESTONE_LINKED:
        return "Completes milestone enrichment."
    return "Suggested."


def _to_item(scored: ScoredAction) -> ActionItem:
    return HandItem(item=scored.action, basis_tag=scored.basis, basis_note=scored.note, score=scored.score)


def _without_chosen(candidates: Iterable[ActionDef], chosen: Sequence[ActionItem]) -> list[ActionDef]:
    chosen_ids = {entry.item.id for entry in chosen}
    return [action for action in candidates if action.id not in chosen_ids]


def _scored(action: ActionDef, score: float, basis: BasisTag, snapshot: ActionRecSnapshot) -> ScoredAction:
    return ScoredAction(action=action, score=score, basis=basis, note=note_for_basis(basis, snapshot))


def _score_progress_slot(
    action: ActionDef, snapshot: ActionRecSnapshot, desired: School | None, recent_ids: Sequence[str]
) -> ScoredAction:
    score = (
        score_for_school_match(action, desired)
        + score_for_adjacency(action, snapshot) * 0.5
        + score_player_preference(action, snapshot.player_stats) * 0.25
        + score_novelty(action, recent_ids)
    )
    return _scored(action, score, BasisTag.PROGRESS_PROXY, snapshot)


def _score_adjacency_slot(action: ActionDef, snapshot: ActionRecSnapshot, recent_ids: Sequence[str]) -> ScoredAction:
    score = (
        score_for_adjacency(action, snapshot)
        + score_player_preference(action, snapshot.player_stats) * 0.25
        + score_novelty(action, recent_ids)
    )
    return _scored(action, score, BasisTag.ADJACENCY, snapshot)


def _score_stability_slot(
    action: ActionDef, snapshot: ActionRecSnapshot, stability_school: School, recent_ids: Sequence[str]
) -> ScoredAction:
    score = (
        score_for_school_match(action, stability_school) * 0.9
        + score_for_adjacency(action, snapshot) * 0.25
        + score_player_preference(action, snapshot.player_stats) * 0.25
        + score_novelty(action, recent_ids)
    )
    return _scored(action, score, BasisTag.STABILITY, snapshot)


def _score_variety_slot(
    action: ActionDef, snapshot: ActionRecSnapshot, used_schools: set[School], recent_ids: Sequence[str]
) -> ScoredAction:
    variety = WEIGHT_DIVERSITY_PENALTY if action.school in used_schools else 0.75
    score = (
        variety
        + score_for_adjacency(action, snapshot) * 0.15
        + score_player_preference(action, snapshot.player_stats) * 0.35
        + score_novelty(action, recent_ids)
    )
    return _scored(action, score, BasisTag.VARIETY, snapshot)


def _score_player_slot(
    action: ActionDef, snapshot: ActionRecSnapshot, preferred: School | None, recent_ids: Sequence[str]
) -> ScoredAction:
    score = score_for_school_match(action, preferred) + score_novelty(action, recent_ids) * 0.5
    return _scored(action, score, BasisTag.PLAYER_STYLE, snapshot)


def stability_school_for(snapshot: ActionRecSnapshot) -> School:
    progress = snapshot.latest_run_progress
    if progress is not None and progress.progress_label in _DRIFT_LABELS:
        return _DRIFT_STABILITY_SCHOOL
    return _DEFAULT_STABILITY_SCHOOL


def _fp_start_hand(state: GameStateForRecs, catalog: ActionCatalogIndex) -> list[ActionItem]:
    hand: list[ActionItem] = []
    for action_id in default_fp_sequence():
        action = catalog.get(action_id)
        if action is None or action.id in state.unavailable_action_ids:
            continue
        hand.append(
            HandItem(
                item=action,
                basis_tag=BasisTag.MILESTONE_LINKED,
                basis_note="Milestone creation flow.",
                score=FP_START_SCORE,
            )
        )
    return unique_by(hand, lambda entry: entry.item.id)[:FP_START_HAND_SIZE]


def _enrichment_prefix(
    catalog: ActionCatalogIndex, eligible: Sequence[ActionDef], missing_fp_actions: Sequence[str]
) -> list[ActionItem]:
    eligible_ids = {action.id for action in eligible}
    prefix: list[ActionItem] = []
    for action_id in missing_fp_actions[:MAX_ENRICHMENT_SLOTS]:
        action = catalog.get(action_id)
        if action is None or action.id not in eligible_ids:
            continue
        prefix.append(
            HandItem(
                item=action,
                basis_tag=BasisTag.MILESTONE_LINKED,
                basis_note="Completes milestone enrichment.",
                score=ENRICHMENT_SCORE,
            )
        )
    return prefix


def _fill_dynamic_slots(
    hand: list[ActionItem],
    *,
    snapshot: ActionRecSnapshot,
    eligible: Sequence[ActionDef],
    recent_ids: Sequence[str],
    target_size: int,
    hint_rules: Iterable[HintRule],
) -> None:
    seed = snapshot.snapshot_id
    desired = parse_progress_hint_to_school(snapshot, hint_rules)
    stability_school = stability_school_for(snapshot)

    def pick(slot: str, score_fn: Callable[[ActionDef], ScoredAction]) -> None:
        best = pick_best_action(_without_chosen(eligible, hand), f"{seed}:{slot}", score_fn)
        if best is not None:
            hand.append(_to_item(best))

    pick("slot1", lambda action: _score_progress_slot(action, snapshot, desired, recent_ids))
    pick("slot2", lambda action: _score_adjacency_slot(action, snapshot, recent_ids))
    pick("slot3", lambda action: _score_stability_slot(action, snapshot, stability_school, recent_ids))

    used_schools = {entry.item.school for entry in hand}
    pick("slot4", lambda action: _score_variety_slot(action, snapshot, used_schools, recent_ids))

    if len(hand) < target_size:
        preferred = preferred_school_from_player(snapshot.player_stats)
        pick("slot5", lambda action: _score_player_slot(action, snapshot, preferred, recent_ids))


def _keep_best_of_school(hand: list[ActionItem], school: School) -> list[ActionItem]:
    of_school = [entry for entry in hand if entry.item.school == school]
    if len(of_school) <= 1:
        return hand
    keep_id = sort_hand_items_desc(of_school)[0].item.id
    return [entry for entry in hand if entry.item.school != school or entry.item.id == keep_id]


def _apply_guardrails(
    hand: list[ActionItem],
    *,
    state: GameStateForRecs,
    snapshot: ActionRecSnapshot,
    eligible: Sequence[ActionDef],
    recent_ids: Sequence[str],
    target_size: int,
    hard_constraints: list[str],
) -> list[ActionItem]:
    final = unique_by(hand, lambda entry: entry.item.id)

    if snapshot.mode == ActionRecMode.CHASE:
        final = _keep_best_of_school(final, School.SYNTHESIS)
        final = _keep_best_of_school(final, School.PLANNING)

    synthesis_allowed = has_abstraction_evidence(state)
    if not synthesis_allowed:
        eligible = [action for action in eligible if action.school != School.SYNTHESIS]

    synthesis_in_hand = any(entry.item.school == School.SYNTHESIS for entry in final)
    if synthesis_in_hand and not synthesis_allowed:
        final = [entry for entry in final if entry.item.school != School.SYNTHESIS]
        fallback = pick_best_action(
            [a for a in eligible if a.school in (School.ABSTRACTION, School.UNDERSTANDING)],
            f"{snapshot.snapshot_id}:fs_fallback",
            lambda action: ScoredAction(
                action=action,
                score=SYNTHESIS_FALLBACK_BONUS + score_novelty(action, recent_ids),
                basis=BasisTag.STABILITY,
                note="Avoided FS (no abstractions yet).",
            ),
        )
        logger.debug(
            "synthesis_replaced",
            extra={"snapshot_id": snapshot.snapshot_id, "fallback": fallback.action.id if fallback else None},
        )
        if fallback is not None:
            final.append(_to_item(fallback))

    if snapshot.mode == ActionRecMode.CHASE and len({entry.item.school for entry in final}) < 2:
        anchor_school = final[0].item.school if final else None
        extra = pick_best_action(
            [a for a in eligible if a.school != anchor_school],
            f"{snapshot.snapshot_id}:diversity_fix",
            lambda action: ScoredAction(
                action=action,
                score=DIVERSITY_FIX_BONUS + score_novelty(action, recent_ids),
                basis=BasisTag.VARIETY,
                note="Added variety for momentum.",
            ),
        )
        if extra is not None:
            final.append(_to_item(extra))

    final = sort_hand_items_desc(unique_by(final, lambda entry: entry.item.id))[:target_size]

    if len(final) < MIN_HAND_SIZE:
        for action in _without_chosen(eligible, final):
            if len(final) >= MIN_HAND_SIZE:
                break
            final.append(
                HandItem(
                    item=action,
                    basis_tag=BasisTag.VARIETY,
                    basis_note="Fallback candidate.",
                    score=BACKFILL_SCORE,
                )
            )

    if any(entry.item.school == School.SYNTHESIS for entry in final):
        hard_constraints.append(FS_REQUIRES_FA)

    return [
        entry if entry.basis_note.strip() else replace(entry, basis_note=note_for_basis(BasisTag.VARIETY, snapshot))
        for entry in final
    ]


def generate_action_hand(
    state: GameStateForRecs,
    actions: Iterable[ActionDef] | ActionCatalogIndex,
    now_ms: int | None = None,
    *,
    hint_rules: Iterable[HintRule] = DEFAULT_HINT_RULES,
) -> ActionHand:
    """Build the action shortlist for ``state``.

    Deterministic for a fixed ``(state, actions, now_ms)``. Thin catalogs
    produce smaller hands instead of errors.
    """
    snapshot = build_action_rec_snapshot(state, now_in_ms() if now_ms is None else now_ms)
    catalog = actions if isinstance(actions, ActionCatalogIndex) else index_action_catalog(actions)

    missing_fp_actions = fp_actions_for_missing_fields(snapshot.missing_milestone_fields)
    eligible = eligible_actions_for_mode(
        state=state,
        catalog=catalog,
        mode=snapshot.mode,
        missing_fp_action_ids=missing_fp_actions,
    )
    hard_constraints: list[str] = []

    if snapshot.mode == ActionRecMode.FP_START:
        return ActionHand(
            mode=snapshot.mode,
            snapshot_id=snapshot.snapshot_id,
            generated_at_ms=snapshot.generated_at_ms,
            actions=tuple(_fp_start_hand(state, catalog)),
            hard_constraints=(),
        )

    recent_ids = recent_action_ids(state)
    target_size = DEFAULT_ACTION_HAND_SIZE

    hand: list[ActionItem] = []
    if snapshot.mode == ActionRecMode.ENRICH and missing_fp_actions:
        hand.extend(_enrichment_prefix(catalog, eligible, missing_fp_actions))

    _fill_dynamic_slots(
        hand,
        snapshot=snapshot,
        eligible=eligible,
        recent_ids=recent_ids,
        target_size=target_size,
        hint_rules=hint_rules,
    )
    final = _apply_guardrails(
        hand,
        state=state,
        snapshot=snapshot,
        eligible=eligible,
        recent_ids=recent_ids,
        target_size=target_size,
        hard_constraints=hard_constraints,
    )

    return ActionHand(
        mode=snapshot.mode,
        snapshot_id=snapshot.snapshot_id,
        generated_at_ms=snapshot.generated_at_ms,
        actions=tuple(final),
        hard_constraints=tuple(hard_constraints),
    )
