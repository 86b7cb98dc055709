from __future__ import annotations

from dataclasses import replace

from hand_recommender.constants import FS_REQUIRES_FA
from hand_recommender.fixtures import demo_actions, demo_state
from hand_recommender.models import (
    ActionDef,
    ActionRecMode,
    ActiveMilestoneSignals,
    BasisTag,
    GameStateForRecs,
    MilestoneField,
    PlayerStats,
    RunProgress,
    RunRecord,
    School,
)
from hand_recommender.planning import generate_action_hand

NOW_MS = 1234567890


def _chase_state(**overrides) -> GameStateForRecs:
    return replace(demo_state(), active_milestone=ActiveMilestoneSignals(id="m1", is_fully_enriched=True), **overrides)


def _ids(hand) -> list[str]:
    return [entry.item.id for entry in hand.actions]


def test_no_milestone_returns_creation_flow() -> None:
    hand = generate_action_hand(GameStateForRecs(), demo_actions(), NOW_MS)

    assert hand.mode == ActionRecMode.FP_START
    assert hand.snapshot_id == "AHS:kf12oi"
    assert hand.generated_at_ms == NOW_MS
    assert _ids(hand) == ["FP-01", "FP-02", "FP-08", "FP-10"]
    assert {entry.basis_tag for entry in hand.actions} == {BasisTag.MILESTONE_LINKED}
    assert hand.hard_constraints == ()


def test_creation_flow_skips_missing_and_unavailable_actions() -> None:
    actions = [action for action in demo_actions() if action.id != "FP-08"]
    state = GameStateForRecs(unavailable_action_ids=frozenset({"FP-01"}))

    hand = generate_action_hand(state, actions, NOW_MS)

    assert _ids(hand) == ["FP-02", "FP-10"]


def test_enrich_mode_leads_with_missing_field_actions() -> None:
    hand = generate_action_hand(demo_state(), demo_actions(), NOW_MS)

    assert hand.mode == ActionRecMode.ENRICH
    assert _ids(hand)[:2] == ["FP-02", "FP-08"]
    assert [entry.basis_tag for entry in hand.actions[:2]] == [BasisTag.MILESTONE_LINKED] * 2
    assert 4 <= len(hand.actions) <= 5


def test_single_missing_field_puts_its_action_first() -> None:
    state = replace(
        demo_state(),
        active_milestone=ActiveMilestoneSignals(id="m1", missing_fields=(MilestoneField.TRIPWIRES,)),
    )

    hand = generate_action_hand(state, demo_actions(), NOW_MS)

    first = hand.actions[0]
    assert hand.mode == ActionRecMode.ENRICH
    assert first.item.id == "FP-08"
    assert first.basis_tag == BasisTag.MILESTONE_LINKED
    assert first.basis_note == "Completes milestone enrichment."


def test_chase_mode_excludes_planning_and_flags_synthesis() -> None:
    hand = generate_action_hand(_chase_state(), demo_actions(), NOW_MS)

    schools = [entry.item.school for entry in hand.actions]
    assert hand.mode == ActionRecMode.CHASE
    assert School.PLANNING not in schools
    assert len(set(schools)) >= 2
    assert sorted(_ids(hand)) == ["FA-02", "FI-01", "FPR-02", "FS-01", "FU-03"]
    assert hand.hard_constraints == (FS_REQUIRES_FA,)


def test_chase_mode_keeps_at_most_one_synthesis_action() -> None:
    actions = demo_actions() + [
        ActionDef(id="FS-02", title="Synthesize Roadmap", school=School.SYNTHESIS),
        ActionDef(id="FS-03", title="Synthesize Release", school=School.SYNTHESIS),
    ]

    hand = generate_action_hand(_chase_state(), actions, NOW_MS)

    assert sum(entry.item.school == School.SYNTHESIS for entry in hand.actions) <= 1


def test_synthesis_is_withheld_without_abstraction_evidence() -> None:
    runs = (
        RunRecord(run_id="r1", action_id="FI-01", school=School.INTRODUCTION),
        RunRecord(run_id="r2", action_id="FU-03", school=School.UNDERSTANDING),
    )
    actions = demo_actions() + [ActionDef(id="FS-02", title="Synthesize Roadmap", school=School.SYNTHESIS)]

    hand = generate_action_hand(_chase_state(runs=runs), actions, NOW_MS)

    assert all(entry.item.school != School.SYNTHESIS for entry in hand.actions)
    assert FS_REQUIRES_FA not in hand.hard_constraints
    assert sorted(_ids(hand)) == ["FA-02", "FI-01", "FPR-02", "FU-03"]


def test_progress_hint_drives_first_slot() -> None:
    runs = (
        RunRecord(
            run_id="r1",
            action_id="FI-01",
            school=School.INTRODUCTION,
            progress=RunProgress(progress_label="ADVANCED", next_best_move_hint="[FPR] show what works"),
        ),
    )

    hand = generate_action_hand(_chase_state(runs=runs, player_stats=None), demo_actions(), NOW_MS)

    progress_picks = [entry for entry in hand.actions if entry.basis_tag == BasisTag.PROGRESS_PROXY]
    assert [entry.item.id for entry in progress_picks] == ["FPR-02"]
    assert progress_picks[0].basis_note == "Based on latest progress signal."


def test_thin_catalog_returns_short_hand() -> None:
    actions = [
        ActionDef(id="FI-01", title="Introduce", school=School.INTRODUCTION),
        ActionDef(id="FU-03", title="Understand", school=School.UNDERSTANDING),
        ActionDef(id="FA-02", title="Abstract", school=School.ABSTRACTION),
    ]

    hand = generate_action_hand(_chase_state(), actions, NOW_MS)

    assert sorted(_ids(hand)) == ["FA-02", "FI-01", "FU-03"]
    assert generate_action_hand(_chase_state(), [], NOW_MS).actions == ()


def test_hand_is_deterministic_and_well_formed() -> None:
    first = generate_action_hand(demo_state(), demo_actions(), NOW_MS)
    second = generate_action_hand(demo_state(), list(reversed(demo_actions())), NOW_MS)

    assert first == second
    assert len(_ids(first)) == len(set(_ids(first)))
    assert all(entry.basis_note.strip() for entry in first.actions)
    assert [entry.score for entry in first.actions] == sorted((entry.score for entry in first.actions), reverse=True)


def test_unavailable_actions_never_appear() -> None:
    state = _chase_state(unavailable_action_ids=frozenset({"FA-02", "FU-03"}))

    hand = generate_action_hand(state, demo_actions(), NOW_MS)

    assert not {"FA-02", "FU-03"} & set(_ids(hand))


def _action(action_id: str, school: School) -> ActionDef:
    return ActionDef(id=action_id, title=action_id, school=school)


def _enriched(milestone_id: str = "m1") -> ActiveMilestoneSignals:
    return ActiveMilestoneSignals(
        id=milestone_id,
        field_confidence={
            MilestoneField.NORTH_STAR: 0.7,
            MilestoneField.DONE_RECEIPT: 0.8,
            MilestoneField.SCOPE_FENCE: 0.9,
            MilestoneField.TRIPWIRES: 0.75,
        },
    )


def test_confident_milestone_switches_to_chase() -> None:
    hand = generate_action_hand(replace(demo_state(), active_milestone=_enriched()), demo_actions(), NOW_MS)

    assert hand.mode == ActionRecMode.CHASE
    assert all(entry.item.school != School.PLANNING for entry in hand.actions)
    assert 4 <= len(hand.actions) <= 5


def test_synthesis_is_swapped_for_understanding_fallback() -> None:
    state = GameStateForRecs(
        runs=(
            RunRecord(run_id="r0", action_id="FU-03", school=School.UNDERSTANDING),
            RunRecord(run_id="r1", action_id="FP-01", school=School.PLANNING),
        ),
        active_milestone=ActiveMilestoneSignals(
            id="m1",
            missing_fields=(MilestoneField.NORTH_STAR, MilestoneField.SCOPE_FENCE),
        ),
        player_stats=PlayerStats(school_pick_counts={School.SYNTHESIS: 5}),
    )
    actions = [
        _action("FP-01", School.PLANNING),
        _action("FP-02", School.PLANNING),
        _action("FS-01", School.SYNTHESIS),
        _action("FS-02", School.SYNTHESIS),
        _action("FS-03", School.SYNTHESIS),
        _action("FI-01", School.INTRODUCTION),
        _action("FU-03", School.UNDERSTANDING),
        _action("FPR-02", School.PRESENTATION),
    ]

    hand = generate_action_hand(state, actions, NOW_MS)

    by_id = {entry.item.id: entry for entry in hand.actions}
    assert hand.mode == ActionRecMode.ENRICH
    assert sorted(by_id) == ["FI-01", "FP-01", "FP-02", "FPR-02", "FU-03"]
    assert by_id["FU-03"].basis_tag == BasisTag.STABILITY
    assert by_id["FU-03"].basis_note == "Avoided FS (no abstractions yet)."
    assert by_id["FU-03"].score == 8.0
    assert hand.hard_constraints == ()


def test_single_school_chase_hand_gets_variety_fix() -> None:
    state = GameStateForRecs(
        runs=(
            RunRecord(run_id="r0", action_id="FPR-02", school=School.PRESENTATION),
            RunRecord(run_id="r1", action_id="FI-01", school=School.INTRODUCTION),
        ),
        active_milestone=_enriched(),
        player_stats=PlayerStats(school_pick_counts={School.UNDERSTANDING: 4}),
    )
    actions = [_action(f"FU-0{index}", School.UNDERSTANDING) for index in range(1, 6)]
    actions.append(_action("FPR-02", School.PRESENTATION))

    hand = generate_action_hand(state, actions, NOW_MS)

    first = hand.actions[0]
    assert hand.mode == ActionRecMode.CHASE
    assert len(hand.actions) == 5
    assert first.item.id == "FPR-02"
    assert first.basis_tag == BasisTag.VARIETY
    assert first.basis_note == "Added variety for momentum."
    assert first.score == 7.0
    assert [entry.item.school for entry in hand.actions[1:]] == [School.UNDERSTANDING] * 4


def test_synthesis_notice_follows_the_final_hand() -> None:
    state = GameStateForRecs(
        runs=(
            RunRecord(run_id="r0", action_id="FA-02", school=School.ABSTRACTION),
            RunRecord(run_id="r1", action_id="FS-01", school=School.SYNTHESIS),
            RunRecord(run_id="r2", action_id="FP-08", school=School.PLANNING),
        ),
        active_milestone=ActiveMilestoneSignals(
            id="m1",
            missing_fields=(MilestoneField.NORTH_STAR, MilestoneField.SCOPE_FENCE),
        ),
        player_stats=PlayerStats(school_pick_counts={School.INTRODUCTION: 3}),
    )
    actions = [
        _action("FP-01", School.PLANNING),
        _action("FP-02", School.PLANNING),
        _action("FI-01", School.INTRODUCTION),
        _action("FU-03", School.UNDERSTANDING),
        _action("FA-02", School.ABSTRACTION),
        _action("FS-01", School.SYNTHESIS),
    ]

    hand = generate_action_hand(state, actions, NOW_MS)

    assert sorted(_ids(hand)) == ["FA-02", "FI-01", "FP-01", "FP-02", "FU-03"]
    assert hand.hard_constraints == ()
