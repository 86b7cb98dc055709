from __future__ import annotations

import json

import pytest

from hand_recommender.loader import CatalogLoadError, load_catalog, load_game_state, parse_catalog, parse_game_state
from hand_recommender.models import (
    ActionRecMode,
    MilestoneField,
    MilestoneProgress,
    RunProgress,
    School,
    WriteEffect,
)
from hand_recommender.snapshot import build_action_rec_snapshot

STATE_PAYLOAD = {
    "runs": [
        {
            "run_id": "r1",
            "action_id": "FA-02",
            "school": "FA",
            "collectibles": [
                {"id": "k3", "type": "K3_SPEC", "title": "Spec", "body": "", "run_id": "r1", "produced_by_school": "FA"},
                {"id": "x1", "type": "BRAND_NEW_TYPE", "title": "?", "body": "", "run_id": "r1"},
            ],
            "progress": {"progress_label": "STALLED", "next_best_move_hint": "[FU] slow down"},
        },
        {
            "run_id": "r2",
            "action_id": "FP-02",
            "school": "FP",
            "progress": {"type": "P_MILESTONE_PROGRESS", "progress_label": "SOFT_GAP"},
        },
    ],
    "active_milestone": {"id": "m1", "field_confidence": {"NORTH_STAR": 0.8, "TRIPWIRES": 0.2}},
    "player_stats": {"school_pick_counts": {"FA": 2}},
    "unavailable_action_ids": ["FS-01"],
}


def test_parse_catalog_accepts_list_or_wrapped_object() -> None:
    raw = [
        {"id": "FI-01", "title": "Introduce", "school": "FI"},
        {"id": "FA-02", "title": "Abstract", "school": "FA", "write_effect": "CODEBASE", "tags": ["core"]},
    ]

    listed = parse_catalog(raw)
    wrapped = parse_catalog({"actions": raw})

    assert listed == wrapped
    assert listed[1].school == School.ABSTRACTION
    assert listed[1].write_effect == WriteEffect.CODEBASE
    assert listed[1].tags == ("core",)


def test_parse_catalog_rejects_bad_school_and_duplicates() -> None:
    with pytest.raises(CatalogLoadError, match="Invalid action catalog"):
        parse_catalog([{"id": "X-01", "title": "?", "school": "FX"}])

    with pytest.raises(CatalogLoadError, match="FI-01"):
        parse_catalog(
            [
                {"id": "FI-01", "title": "a", "school": "FI"},
                {"id": "FI-01", "title": "b", "school": "FI"},
            ]
        )


def test_parse_game_state_builds_typed_records() -> None:
    state = parse_game_state(STATE_PAYLOAD)

    assert isinstance(state.runs[0].progress, RunProgress)
    assert isinstance(state.runs[1].progress, MilestoneProgress)
    assert state.runs[0].collectibles[1].type == "BRAND_NEW_TYPE"
    assert state.active_milestone.field_confidence[MilestoneField.TRIPWIRES] == 0.2
    assert state.player_stats.school_pick_counts == {School.ABSTRACTION: 2}
    assert state.unavailable_action_ids == frozenset({"FS-01"})

    snapshot = build_action_rec_snapshot(state, 1)
    assert snapshot.mode == ActionRecMode.ENRICH
    assert snapshot.latest_run_progress.progress_label == "STALLED"


def test_parse_game_state_rejects_bad_payload() -> None:
    with pytest.raises(CatalogLoadError, match="Invalid game state"):
        parse_game_state({"runs": [{"run_id": "r1"}]})


def test_load_from_files(tmp_path) -> None:
    catalog_path = tmp_path / "catalog.json"
    state_path = tmp_path / "state.json"
    catalog_path.write_text(json.dumps({"actions": [{"id": "FI-01", "title": "Introduce", "school": "FI"}]}))
    state_path.write_text(json.dumps(STATE_PAYLOAD))

    assert [action.id for action in load_catalog(catalog_path)] == ["FI-01"]
    assert load_game_state(state_path).runs[0].run_id == "r1"


def test_load_reports_missing_and_malformed_files(tmp_path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")

    with pytest.raises(CatalogLoadError, match="File not found"):
        load_catalog(tmp_path / "missing.json")
    with pytest.raises(CatalogLoadError, match="Malformed JSON"):
        load_game_state(broken)
