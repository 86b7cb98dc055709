from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Literal, TypeVar, Union

T = TypeVar("T")


class School(str, Enum):
    """Thematic category shared by actions and the collectibles they produce."""

    PLANNING = "FP"
    INTRODUCTION = "FI"
    UNDERSTANDING = "FU"
    PRESENTATION = "FPR"
    ABSTRACTION = "FA"
    SYNTHESIS = "FS"


class WriteEffect(str, Enum):
    NONE = "NONE"
    ISSUES = "ISSUES"
    CODEBASE = "CODEBASE"
    BOTH = "BOTH"


class MilestoneField(str, Enum):
    NORTH_STAR = "NORTH_STAR"
    DONE_RECEIPT = "DONE_RECEIPT"
    SCOPE_FENCE = "SCOPE_FENCE"
    TRIPWIRES = "TRIPWIRES"


class ActionRecMode(str, Enum):
    """How the action hand is assembled for the current game state."""

    FP_START = "FP_START"
    ENRICH = "ENRICH"
    CHASE = "CHASE"


class BasisTag(str, Enum):
    """Why an item made it into a hand."""

    PROGRESS_PROXY = "progress_proxy"
    ADJACENCY = "adjacency"
    STABILITY = "stability"
    VARIETY = "variety"
    PLAYER_STYLE = "player_style"
    MILESTONE_LINKED = "milestone_linked"
    RECENT_OUTPUT = "recent_output"
    FOUNDATION = "foundation"
    FS_REQUIRES_FA = "fs_requires_fa"


class CollectibleType(str, Enum):
    K1_DECISION = "K1_DECISION"
    K2_PLAN = "K2_PLAN"
    K3_SPEC = "K3_SPEC"
    K4_RATIONALE = "K4_RATIONALE"
    K_CODE_PATCH = "K_CODE_PATCH"
    K_MILESTONE_NORTH_STAR = "K_MILESTONE_NORTH_STAR"
    K_MILESTONE_DONE_RECEIPT = "K_MILESTONE_DONE_RECEIPT"
    K_MILESTONE_SCOPE_FENCE = "K_MILESTONE_SCOPE_FENCE"
    K_MILESTONE_TRIPWIRES = "K_MILESTONE_TRIPWIRES"
    F1_ANCHOR = "F1_ANCHOR"
    F2_PROOF = "F2_PROOF"
    P1_PROGRESS = "P1_PROGRESS"
    P_MILESTONE_PROGRESS = "P_MILESTONE_PROGRESS"


RunProgressLabel = Literal["ADVANCED", "PARTIAL", "STALLED", "DRIFT"]
MilestoneProgressLabel = Literal["READY", "SOFT_GAP", "THIN", "CONFLICTED"]


@dataclass(frozen=True, slots=True)
class ActionDef:
    """Static catalog entry for a move the player can take."""

    id: str
    title: str
    school: School
    write_effect: WriteEffect = WriteEffect.NONE
    fp_no_code: bool = False
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Collectible:
    """Artifact produced by a past run.

    ``type`` is kept as a raw string so that unknown types survive loading and
    are rejected by target eligibility instead of at parse time.
    """

    id: str
    type: str
    title: str
    body: str
    run_id: str
    produced_by_action_id: str | None = None
    produced_by_school: School | None = None
    milestone_id: str | None = None
    source_chunk_ids: tuple[str, ...] = ()
    created_at_ms: int | None = None


@dataclass(frozen=True, slots=True)
class RunProgress:
    """Per-run progress signal."""

    progress_label: RunProgressLabel
    progress_score: float = 0.0
    in_scope: bool = True
    next_best_move_hint: str = ""
    type: Literal["P1_PROGRESS"] = "P1_PROGRESS"


@dataclass(frozen=True, slots=True)
class MilestoneProgress:
    """Per-milestone progress signal."""

    progress_label: MilestoneProgressLabel
    progress_score: float = 0.0
    missing_fields: tuple[MilestoneField, ...] = ()
    weak_fields: tuple[MilestoneField, ...] = ()
    enrichment_hint: str = ""
    type: Literal["P_MILESTONE_PROGRESS"] = "P_MILESTONE_PROGRESS"


ProgressSignal = Union[RunProgress, MilestoneProgress]


@dataclass(frozen=True, slots=True)
class RunRecord:
    run_id: str
    action_id: str
    school: School
    milestone_id: str | None = None
    collectibles: tuple[Collectible, ...] = ()
    progress: ProgressSignal | None = None
    created_at_ms: int | None = None


@dataclass(frozen=True, slots=True)
class ActiveMilestoneSignals:
    """Pursuit state of the active milestone.

    ``missing_fields`` and ``is_fully_enriched`` take precedence over values
    inferred from ``field_confidence`` when they are provided.
    """

    id: str
    field_confidence: dict[MilestoneField, float] = field(default_factory=dict)
    missing_fields: tuple[MilestoneField, ...] | None = None
    is_fully_enriched: bool | None = None


@dataclass(frozen=True, slots=True)
class PlayerStats:
    school_pick_counts: dict[School, int] = field(default_factory=dict)
    recently_picked_actions: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class GameStateForRecs:
    """Everything the recommenders are allowed to look at."""

    runs: tuple[RunRecord, ...] = ()
    active_milestone: ActiveMilestoneSignals | None = None
    completed_milestones: tuple[str, ...] = ()
    player_stats: PlayerStats | None = None
    unavailable_action_ids: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class HandItem(Generic[T]):
    """A chosen item plus the reason it was chosen. ``score`` is for ordering only."""

    item: T
    basis_tag: BasisTag
    basis_note: str
    score: float


@dataclass(frozen=True, slots=True)
class ActionHand:
    mode: ActionRecMode
    snapshot_id: str
    generated_at_ms: int
    actions: tuple[HandItem[ActionDef], ...]
    hard_constraints: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TargetsHand:
    snapshot_id: str
    generated_at_ms: int
    targets: tuple[HandItem[Collectible], ...]
    hard_constraints: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ActionRecSnapshot:
    snapshot_id: str
    generated_at_ms: int
    mode: ActionRecMode
    missing_milestone_fields: tuple[MilestoneField, ...] = ()
    active_milestone_id: str | None = None
    last_action_id: str | None = None
    last_school: School | None = None
    latest_run_progress: RunProgress | None = None
    player_stats: PlayerStats | None = None


@dataclass(frozen=True, slots=True)
class TargetsRecSnapshot:
    snapshot_id: str
    generated_at_ms: int
    selected_action: ActionDef
    recent_collectibles: tuple[Collectible, ...] = ()
    milestone_composition_ids: tuple[str, ...] = ()
    active_milestone_id: str | None = None
    player_stats: PlayerStats | None = None
