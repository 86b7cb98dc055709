"""Tunables for hand generation. Weights can change without touching selection logic."""

from __future__ import annotations

from types import MappingProxyType

from hand_recommender.models import CollectibleType, MilestoneField, School

DEFAULT_ACTION_HAND_SIZE = 5
FP_START_HAND_SIZE = 4
MIN_HAND_SIZE = 4

DEFAULT_TARGETS_HAND_SIZE = 5
MAX_TARGETS_HAND_SIZE = 6

RECENCY_RUN_WINDOW_ACTIONS = 10
RECENCY_RUN_WINDOW_TARGETS = 5

MILESTONE_FIELD_CONF_THRESHOLD = 0.7

MILESTONE_FIELD_ORDER: tuple[MilestoneField, ...] = (
    MilestoneField.NORTH_STAR,
    MilestoneField.DONE_RECEIPT,
    MilestoneField.SCOPE_FENCE,
    MilestoneField.TRIPWIRES,
)

ADJACENCY_NEXT = MappingProxyType(
    {
        School.PLANNING: (School.INTRODUCTION,),
        School.INTRODUCTION: (School.UNDERSTANDING,),
        School.UNDERSTANDING: (School.PRESENTATION, School.ABSTRACTION),
        School.PRESENTATION: (School.ABSTRACTION, School.SYNTHESIS),
        School.ABSTRACTION: (School.SYNTHESIS,),
        School.SYNTHESIS: (School.INTRODUCTION, School.UNDERSTANDING),
    }
)

# Undirected "close neighbour" pairs used when matching collectibles to an action.
COMPATIBLE_SCHOOL_PAIRS: tuple[tuple[School, School], ...] = (
    (School.INTRODUCTION, School.UNDERSTANDING),
    (School.UNDERSTANDING, School.PRESENTATION),
    (School.PRESENTATION, School.ABSTRACTION),
    (School.ABSTRACTION, School.SYNTHESIS),
    (School.SYNTHESIS, School.INTRODUCTION),
)

DEFAULT_FP_SEQUENCE: tuple[str, ...] = ("FP-01", "FP-02", "FP-08", "FP-10")

MILESTONE_FIELD_TO_FP_ACTION = MappingProxyType(
    {
        MilestoneField.NORTH_STAR: "FP-01",
        MilestoneField.SCOPE_FENCE: "FP-02",
        MilestoneField.TRIPWIRES: "FP-08",
        MilestoneField.DONE_RECEIPT: "FP-10",
    }
)

KEYSTONE_TYPES = frozenset(
    {
        CollectibleType.K1_DECISION.value,
        CollectibleType.K2_PLAN.value,
        CollectibleType.K3_SPEC.value,
        CollectibleType.K4_RATIONALE.value,
        CollectibleType.K_CODE_PATCH.value,
        CollectibleType.K_MILESTONE_NORTH_STAR.value,
        CollectibleType.K_MILESTONE_DONE_RECEIPT.value,
        CollectibleType.K_MILESTONE_SCOPE_FENCE.value,
        CollectibleType.K_MILESTONE_TRIPWIRES.value,
    }
)
OBJECT_LIKE_FACET_TYPES = frozenset({CollectibleType.F1_ANCHOR.value, CollectibleType.F2_PROOF.value})
STATUS_FACET_TYPES = frozenset(
    {CollectibleType.P1_PROGRESS.value, CollectibleType.P_MILESTONE_PROGRESS.value}
)

WEIGHT_MILESTONE_LINKED = 4.0
WEIGHT_ACTION_SCHOOL_MATCH = 3.0
WEIGHT_ADJACENCY_SCHOOL_MATCH = 1.5
WEIGHT_RECENCY = 2.0
WEIGHT_PLAYER_PREFERENCE = 1.0
WEIGHT_DIVERSITY_PENALTY = -1.25

NOVELTY_BONUS = 0.5
NOVELTY_PENALTY = -1.0

FP_START_SCORE = 10.0
ENRICHMENT_SCORE = 12.0
MAX_ENRICHMENT_SLOTS = 2
SYNTHESIS_FALLBACK_BONUS = 9.0
DIVERSITY_FIX_BONUS = 8.0
BACKFILL_SCORE = 1.0

FS_REQUIRED_FA_BONUS = 5.0
WILDCARD_BONUS = 0.75
KEYSTONE_TYPE_BONUS = 0.35
OBJECT_FACET_TYPE_BONUS = 0.1
MAX_FS_RESERVED_TARGETS = 2
MAX_TARGETS_PER_BUCKET = 3

FS_REQUIRES_FA = "FS requires FA-derived targets (abstractions)."
NO_FA_TARGETS = "No abstraction (FA) targets exist yet. Run an Abstraction action first."
