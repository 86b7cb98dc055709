"""Deterministic action and target hand recommendations."""

from .models import (
    ActionDef,
    ActionHand,
    ActionRecMode,
    ActiveMilestoneSignals,
    BasisTag,
    Collectible,
    GameStateForRecs,
    HandItem,
    MilestoneProgress,
    PlayerStats,
    RunProgress,
    RunRecord,
    School,
    TargetsHand,
)
from .planning import DeterministicHandEngine, HandEngine, generate_action_hand, generate_targets_hand

__all__ = [
    "ActionDef",
    "ActionHand",
    "ActionRecMode",
    "ActiveMilestoneSignals",
    "BasisTag",
    "Collectible",
    "DeterministicHandEngine",
    "GameStateForRecs",
    "HandEngine",
    "HandItem",
    "MilestoneProgress",
    "PlayerStats",
    "RunProgress",
    "RunRecord",
    "School",
    "TargetsHand",
    "generate_action_hand",
    "generate_targets_hand",
]
