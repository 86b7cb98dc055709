"""Small demo catalog and game state for the CLI and for sanity checks."""

from __future__ import annotations

from hand_recommender.models import (
    ActionDef,
    ActiveMilestoneSignals,
    Collectible,
    GameStateForRecs,
    MilestoneField,
    PlayerStats,
    RunProgress,
    RunRecord,
    School,
)


def demo_actions() -> list[ActionDef]:
    return [
        ActionDef(id="FP-01", title="North Star", school=School.PLANNING, fp_no_code=True),
        ActionDef(id="FP-02", title="Scope Fence", school=School.PLANNING, fp_no_code=True),
        ActionDef(id="FP-08", title="Tripwires", school=School.PLANNING, fp_no_code=True),
        ActionDef(id="FP-10", title="Done Receipt", school=School.PLANNING, fp_no_code=True),
        ActionDef(id="FI-01", title="Introduce Feature", school=School.INTRODUCTION),
        ActionDef(id="FU-03", title="Understand Current Flow", school=School.UNDERSTANDING),
        ActionDef(id="FPR-02", title="Present Current Behavior", school=School.PRESENTATION),
        ActionDef(id="FA-02", title="Abstract Interfaces", school=School.ABSTRACTION),
        ActionDef(id="FS-01", title="Synthesize Plan", school=School.SYNTHESIS),
    ]


def _collectible(collectible_id: str, collectible_type: str, run_id: str, school: School | None) -> Collectible:
    return Collectible(
        id=collectible_id,
        type=collectible_type,
        title=f"{collectible_type} {collectible_id}",
        body=f"Body for {collectible_id}",
        run_id=run_id,
        produced_by_school=school,
    )


def demo_state() -> GameStateForRecs:
    runs = (
        RunRecord(
            run_id="r1",
            action_id="FP-01",
            school=School.PLANNING,
            milestone_id="m1",
            collectibles=(_collectible("k1", "K_MILESTONE_NORTH_STAR", "r1", School.PLANNING),),
        ),
        RunRecord(
            run_id="r2",
            action_id="FI-01",
            school=School.INTRODUCTION,
            milestone_id="m1",
            collectibles=(
                _collectible("k2", "K1_DECISION", "r2", School.INTRODUCTION),
                _collectible("a1", "F1_ANCHOR", "r2", School.INTRODUCTION),
            ),
            progress=RunProgress(
                progress_label="PARTIAL",
                progress_score=0.55,
                in_scope=True,
                next_best_move_hint="[FU] clarify the moving parts",
            ),
        ),
        RunRecord(
            run_id="r3",
            action_id="FA-02",
            school=School.ABSTRACTION,
            milestone_id="m1",
            collectibles=(
                _collectible("k3", "K3_SPEC", "r3", School.ABSTRACTION),
                _collectible("k4", "K2_PLAN", "r3", School.ABSTRACTION),
            ),
        ),
    )
    return GameStateForRecs(
        runs=runs,
        active_milestone=ActiveMilestoneSignals(
            id="m1",
            field_confidence={
                MilestoneField.NORTH_STAR: 0.9,
                MilestoneField.SCOPE_FENCE: 0.5,
                MilestoneField.TRIPWIRES: 0.4,
                MilestoneField.DONE_RECEIPT: 0.6,
            },
        ),
        completed_milestones=("m0",),
        player_stats=PlayerStats(
            school_pick_counts={School.INTRODUCTION: 3, School.UNDERSTANDING: 4, School.ABSTRACTION: 2},
            recently_picked_actions=("FI-01", "FU-03"),
        ),
    )
