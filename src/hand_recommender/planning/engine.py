"""Engine boundary used by callers that hold a catalog across turns."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

from hand_recommender.catalog import ActionCatalogIndex, index_action_catalog
from hand_recommender.constants import DEFAULT_TARGETS_HAND_SIZE
from hand_recommender.models import ActionDef, ActionHand, GameStateForRecs, TargetsHand

from .action_hand import generate_action_hand
from .targets_hand import generate_targets_hand


class UnknownActionError(KeyError):
    """Raised when a selected action id is not in the catalog."""


class HandEngine(Protocol):
    """Turns a game-state snapshot into action and target hands."""

    def action_hand(self, state: GameStateForRecs, now_ms: int | None = None) -> ActionHand:
        """Return the action shortlist for the current state."""

    def targets_hand(
        self,
        state: GameStateForRecs,
        action_id: str,
        milestone_composition_ids: Iterable[str] = (),
        now_ms: int | None = None,
    ) -> TargetsHand:
        """Return the target shortlist for the chosen action."""


class DeterministicHandEngine:
    """Indexes the catalog once and delegates to the pure hand generators."""

    def __init__(
        self,
        actions: Iterable[ActionDef],
        *,
        targets_hand_size: int = DEFAULT_TARGETS_HAND_SIZE,
        logger: logging.Logger | None = None,
    ) -> None:
        self._catalog = index_action_catalog(actions)
        self._targets_hand_size = targets_hand_size
        self._logger = logger or logging.getLogger("hand_recommender.planning.engine")

    @property
    def catalog(self) -> ActionCatalogIndex:
        return self._catalog

    def get_action(self, action_id: str) -> ActionDef:
        action = self._catalog.get(action_id)
        if action is None:
            raise UnknownActionError(f"Unknown action id: {action_id}")
        return action

    def action_hand(self, state: GameStateForRecs, now_ms: int | None = None) -> ActionHand:
        hand = generate_action_hand(state, self._catalog, now_ms)
        self._logger.info(
            "action_hand_generated",
            extra={
                "snapshot_id": hand.snapshot_id,
                "mode": hand.mode.value,
                "action_ids": [entry.item.id for entry in hand.actions],
                "hard_constraints": list(hand.hard_constraints),
            },
        )
        return hand

    def targets_hand(
        self,
        state: GameStateForRecs,
        action_id: str,
        milestone_composition_ids: Iterable[str] = (),
        now_ms: int | None = None,
    ) -> TargetsHand:
        action = self.get_action(action_id)
        hand = generate_targets_hand(
            state,
            action,
            milestone_composition_ids,
            now_ms,
            hand_size=self._targets_hand_size,
        )
        self._logger.info(
            "targets_hand_generated",
            extra={
                "snapshot_id": hand.snapshot_id,
                "action_id": action.id,
                "target_ids": [entry.item.id for entry in hand.targets],
                "hard_constraints": list(hand.hard_constraints),
            },
        )
        return hand
