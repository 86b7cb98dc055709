"""Targets hand generation for a chosen action.

Candidates come from up to four pools over the recent collectibles:

* A, recent output scored by positional recency decay,
* B, collectibles that compose the active milestone,
* C, one older keystone as a foundation wildcard,
* D, abstraction keystones reserved for synthesis actions.

Synthesis without any abstraction evidence fails closed with an empty hand.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from enum import Enum

from hand_recommender.catalog import has_abstraction_evidence
from hand_recommender.constants import (
    COMPATIBLE_SCHOOL_PAIRS,
    DEFAULT_TARGETS_HAND_SIZE,
    FS_REQUIRED_FA_BONUS,
    FS_REQUIRES_FA,
    KEYSTONE_TYPE_BONUS,
    KEYSTONE_TYPES,
    MAX_FS_RESERVED_TARGETS,
    MAX_TARGETS_HAND_SIZE,
    MAX_TARGETS_PER_BUCKET,
    MIN_HAND_SIZE,
    NO_FA_TARGETS,
    OBJECT_FACET_TYPE_BONUS,
    OBJECT_LIKE_FACET_TYPES,
    STATUS_FACET_TYPES,
    WEIGHT_ACTION_SCHOOL_MATCH,
    WEIGHT_ADJACENCY_SCHOOL_MATCH,
    WEIGHT_MILESTONE_LINKED,
    WEIGHT_PLAYER_PREFERENCE,
    WEIGHT_RECENCY,
    WILDCARD_BONUS,
)
from hand_recommender.models import (
    ActionDef,
    BasisTag,
    Collectible,
    GameStateForRecs,
    HandItem,
    School,
    TargetsHand,
    TargetsRecSnapshot,
)
from hand_recommender.pools import clamp, diversify_by, score_recency, sort_hand_items_desc, unique_by
from hand_recommender.snapshot import build_targets_rec_snapshot, now_in_ms

logger = logging.getLogger("hand_recommender.planning.targets_hand")

TargetItem = HandItem[Collectible]


class TargetPool(str, Enum):
    RECENT = "A_recent"
    MILESTONE = "B_milestone"
    WILDCARD = "C_wildcard"
    FS_REQUIRED_FA = "FS_required_fa"


_POOL_BASIS = {
    TargetPool.RECENT: (BasisTag.RECENT_OUTPUT, "Recent output."),
    TargetPool.MILESTONE: (BasisTag.MILESTONE_LINKED, "Milestone-linked."),
    TargetPool.WILDCARD: (BasisTag.FOUNDATION, "Foundation pick."),
    TargetPool.FS_REQUIRED_FA: (BasisTag.FS_REQUIRES_FA, "Needed for synthesis (from abstraction)."),
}


def is_targetable_type(collectible_type: str) -> bool:
    if collectible_type in KEYSTONE_TYPES or collectible_type in OBJECT_LIKE_FACET_TYPES:
        return True
    if collectible_type in STATUS_FACET_TYPES:
        return False
    # unknown types fail closed
    return False


def is_keystone(collectible: Collectible) -> bool:
    return collectible.type in KEYSTONE_TYPES


def is_abstraction_keystone(collectible: Collectible) -> bool:
    return collectible.produced_by_school == School.ABSTRACTION and is_keystone(collectible)


def school_compatibility_score(action_school: School, collectible: Collectible) -> float:
    produced = collectible.produced_by_school
    if produced is None:
        return 0.0
    if produced == action_school:
        return WEIGHT_ACTION_SCHOOL_MATCH
    for left, right in COMPATIBLE_SCHOOL_PAIRS:
        if {produced, action_school} == {left, right}:
            return WEIGHT_ADJACENCY_SCHOOL_MATCH
    return 0.0


def collect_player_favorite_ids(snapshot: TargetsRecSnapshot) -> frozenset[str]:
    """Hook for player favourites; nothing is tracked yet."""
    return frozenset()


def score_collectible(
    collectible: Collectible,
    pool: TargetPool,
    action: ActionDef,
    *,
    recency_index: int = 0,
    favorite_ids: frozenset[str] = frozenset(),
) -> TargetItem:
    score = 0.0
    if pool == TargetPool.MILESTONE:
        score += WEIGHT_MILESTONE_LINKED
    elif pool == TargetPool.RECENT:
        score += WEIGHT_RECENCY * score_recency(recency_index)
    elif pool == TargetPool.WILDCARD:
        score += WILDCARD_BONUS
    elif pool == TargetPool.FS_REQUIRED_FA:
        score += FS_REQUIRED_FA_BONUS

    score += school_compatibility_score(action.school, collectible)

    if collectible.id in favorite_ids:
        score += WEIGHT_PLAYER_PREFERENCE

    if collectible.type in KEYSTONE_TYPES:
        score += KEYSTONE_TYPE_BONUS
    elif collectible.type in OBJECT_LIKE_FACET_TYPES:
        score += OBJECT_FACET_TYPE_BONUS

    basis_tag, basis_note = _POOL_BASIS[pool]
    return HandItem(item=collectible, basis_tag=basis_tag, basis_note=basis_note, score=score)


def _milestone_pool(candidates: Sequence[Collectible], snapshot: TargetsRecSnapshot) -> list[Collectible]:
    if snapshot.active_milestone_id is None:
        return []
    by_id = {collectible.id: collectible for collectible in candidates}
    return [by_id[item_id] for item_id in snapshot.milestone_composition_ids if item_id in by_id]


def _wildcard_pool(candidates: Sequence[Collectible], milestone_pool: Sequence[Collectible]) -> list[Collectible]:
    milestone_ids = {collectible.id for collectible in milestone_pool}
    for collectible in reversed(candidates):
        if is_keystone(collectible) and collectible.id not in milestone_ids:
            return [collectible]
    return []


def generate_targets_hand(
    state: GameStateForRecs,
    selected_action: ActionDef,
    milestone_composition_ids: Iterable[str] = (),
    now_ms: int | None = None,
    *,
    hand_size: int = DEFAULT_TARGETS_HAND_SIZE,
) -> TargetsHand:
    """Build the target shortlist for ``selected_action``.

    An empty ``targets`` tuple means the action cannot proceed; the reason is
    in ``hard_constraints``.
    """
    snapshot = build_targets_rec_snapshot(
        state,
        selected_action,
        milestone_composition_ids,
        now_in_ms() if now_ms is None else now_ms,
    )
    is_synthesis = selected_action.school == School.SYNTHESIS
    hard_constraints: list[str] = [FS_REQUIRES_FA] if is_synthesis else []

    if is_synthesis and not has_abstraction_evidence(state):
        logger.debug("synthesis_targets_blocked", extra={"snapshot_id": snapshot.snapshot_id})
        return TargetsHand(
            snapshot_id=snapshot.snapshot_id,
            generated_at_ms=snapshot.generated_at_ms,
            targets=(),
            hard_constraints=(*hard_constraints, NO_FA_TARGETS),
        )

    targetable = [collectible for collectible in snapshot.recent_collectibles if is_targetable_type(collectible.type)]
    fa_keystones = [collectible for collectible in targetable if is_abstraction_keystone(collectible)] if is_synthesis else []
    milestone_pool = _milestone_pool(targetable, snapshot)
    wildcard_pool = _wildcard_pool(targetable, milestone_pool)
    favorites = collect_player_favorite_ids(snapshot)

    scored: list[TargetItem] = []
    for collectible in fa_keystones[:MAX_FS_RESERVED_TARGETS]:
        scored.append(score_collectible(collectible, TargetPool.FS_REQUIRED_FA, selected_action, favorite_ids=favorites))
    for collectible in milestone_pool:
        scored.append(score_collectible(collectible, TargetPool.MILESTONE, selected_action, favorite_ids=favorites))
    for index, collectible in enumerate(targetable):
        scored.append(
            score_collectible(
                collectible, TargetPool.RECENT, selected_action, recency_index=index, favorite_ids=favorites
            )
        )
    for collectible in wildcard_pool:
        scored.append(score_collectible(collectible, TargetPool.WILDCARD, selected_action, favorite_ids=favorites))

    merged = sort_hand_items_desc(unique_by(scored, lambda entry: entry.item.id))

    limit = hand_size + 2
    diversified = diversify_by(merged, MAX_TARGETS_PER_BUCKET, lambda entry: entry.item.run_id, limit)
    diversified = diversify_by(diversified, MAX_TARGETS_PER_BUCKET, lambda entry: entry.item.type, limit)

    final = diversified[: clamp(hand_size, MIN_HAND_SIZE, MAX_TARGETS_HAND_SIZE)]
    if len(final) < MIN_HAND_SIZE:
        chosen_ids = {entry.item.id for entry in final}
        for entry in merged:
            if len(final) >= MIN_HAND_SIZE:
                break
            if entry.item.id not in chosen_ids:
                final.append(entry)
                chosen_ids.add(entry.item.id)

    final = sort_hand_items_desc(unique_by(final, lambda entry: entry.item.id))[:MAX_TARGETS_HAND_SIZE]

    if is_synthesis and fa_keystones and not any(is_abstraction_keystone(entry.item) for entry in final):
        if final:
            final.pop()
        final.append(score_collectible(fa_keystones[0], TargetPool.FS_REQUIRED_FA, selected_action, favorite_ids=favorites))
        final = unique_by(sort_hand_items_desc(final), lambda entry: entry.item.id)

    return TargetsHand(
        snapshot_id=snapshot.snapshot_id,
        generated_at_ms=snapshot.generated_at_ms,
        targets=tuple(final),
        hard_constraints=tuple(hard_constraints),
    )
