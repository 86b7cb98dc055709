"""CLI entrypoint for the hand recommender."""

from __future__ import annotations

from typing import List, Optional

import typer
from rich import print

from hand_recommender.config import settings
from hand_recommender.fixtures import demo_actions, demo_state
from hand_recommender.loader import CatalogLoadError, load_catalog, load_game_state
from hand_recommender.models import ActionDef, ActionHand, Collectible, HandItem, TargetsHand
from hand_recommender.planning import DeterministicHandEngine, UnknownActionError
from hand_recommender.telemetry import configure_logging

app = typer.Typer(help="Deterministic action and target hands for the card workshop")


@app.callback()
def _setup(log_level: str = typer.Option(None, help="Override HAND_RECOMMENDER_LOG_LEVEL")) -> None:
    configure_logging(log_level or settings.log_level)


def _action_payload(entry: HandItem[ActionDef]) -> dict:
    return {
        "id": entry.item.id,
        "title": entry.item.title,
        "school": entry.item.school.value,
        "basis": entry.basis_tag.value,
        "note": entry.basis_note,
        "score": round(entry.score, 3),
    }


def _target_payload(entry: HandItem[Collectible]) -> dict:
    return {
        "id": entry.item.id,
        "type": entry.item.type,
        "title": entry.item.title,
        "run_id": entry.item.run_id,
        "basis": entry.basis_tag.value,
        "note": entry.basis_note,
        "score": round(entry.score, 3),
    }


def _action_hand_payload(hand: ActionHand) -> dict:
    return {
        "mode": hand.mode.value,
        "snapshot_id": hand.snapshot_id,
        "actions": [_action_payload(entry) for entry in hand.actions],
        "hard_constraints": list(hand.hard_constraints),
    }


def _targets_hand_payload(hand: TargetsHand) -> dict:
    return {
        "snapshot_id": hand.snapshot_id,
        "targets": [_target_payload(entry) for entry in hand.targets],
        "hard_constraints": list(hand.hard_constraints),
    }


def _load_actions(catalog: str | None) -> list[ActionDef]:
    path = catalog or settings.catalog_path
    if not path:
        raise typer.BadParameter("Provide --catalog or set HAND_RECOMMENDER_CATALOG_PATH")
    try:
        return load_catalog(path)
    except CatalogLoadError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)


def _build_engine(actions: list[ActionDef], hand_size: int | None = None) -> DeterministicHandEngine:
    return DeterministicHandEngine(actions, targets_hand_size=hand_size or settings.targets_hand_size)


def _now(now_ms: int | None) -> int | None:
    return now_ms if now_ms is not None else settings.default_now_ms


@app.command("settings")
def show_settings() -> None:
    """Show effective runtime settings."""
    print(settings.model_dump())


@app.command("catalog")
def list_catalog(catalog: str = typer.Option(None, help="Path to a JSON action catalog")) -> None:
    """List catalog actions grouped by school."""
    engine = _build_engine(_load_actions(catalog))
    print(
        {
            school.value: [action.id for action in actions]
            for school, actions in sorted(engine.catalog.by_school.items(), key=lambda item: item[0].value)
        }
    )


@app.command("action-hand")
def action_hand(
    state: str = typer.Option(..., help="Path to a JSON game-state snapshot"),
    catalog: str = typer.Option(None, help="Path to a JSON action catalog"),
    now_ms: int = typer.Option(None, help="Clock in epoch milliseconds for the snapshot id"),
) -> None:
    """Recommend the next action hand."""
    engine = _build_engine(_load_actions(catalog))
    try:
        game_state = load_game_state(state)
    except CatalogLoadError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    print(_action_hand_payload(engine.action_hand(game_state, _now(now_ms))))


@app.command("targets-hand")
def targets_hand(
    state: str = typer.Option(..., help="Path to a JSON game-state snapshot"),
    action_id: str = typer.Option(..., help="Id of the chosen action"),
    catalog: str = typer.Option(None, help="Path to a JSON action catalog"),
    composition_id: Optional[List[str]] = typer.Option(None, help="Milestone composition collectible id (repeatable)"),
    now_ms: int = typer.Option(None, help="Clock in epoch milliseconds for the snapshot id"),
    hand_size: int = typer.Option(None, min=4, max=6, help="Preferred number of targets"),
) -> None:
    """Recommend targets for a chosen action."""
    engine = _build_engine(_load_actions(catalog), hand_size)
    try:
        game_state = load_game_state(state)
        hand = engine.targets_hand(game_state, action_id, composition_id or (), _now(now_ms))
    except (CatalogLoadError, UnknownActionError) as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    print(_targets_hand_payload(hand))


@app.command()
def demo(now_ms: int = typer.Option(1234567890, help="Clock in epoch milliseconds for the snapshot id")) -> None:
    """Run both hands over the bundled demo catalog and state."""
    engine = _build_engine(demo_actions())
    state = demo_state()

    hand = engine.action_hand(state, now_ms)
    picked = hand.actions[0].item.id if hand.actions else "FI-01"
    targets = engine.targets_hand(state, picked, ("k1",), now_ms)

    print({"action_hand": _action_hand_payload(hand), "picked": picked, "targets_hand": _targets_hand_payload(targets)})


if __name__ == "__main__":
    app()
