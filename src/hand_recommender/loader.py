"""JSON loading for action catalogs and game-state snapshots.

Files use the snake_case field names of the dataclasses in
:mod:`hand_recommender.models`. A catalog file is either a list of actions or
an object with an ``actions`` list.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from hand_recommender.models import ActionDef, GameStateForRecs

logger = logging.getLogger("hand_recommender.loader")

_CATALOG_ADAPTER = TypeAdapter(list[ActionDef])
_STATE_ADAPTER = TypeAdapter(GameStateForRecs)


class CatalogLoadError(ValueError):
    """Raised when a catalog or state payload cannot be read or validated."""


def parse_catalog(payload: Any) -> list[ActionDef]:
    if isinstance(payload, dict):
        payload = payload.get("actions", [])
    try:
        actions = _CATALOG_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise CatalogLoadError(f"Invalid action catalog: {exc}") from exc

    seen: set[str] = set()
    duplicates: set[str] = set()
    for action in actions:
        if action.id in seen:
            duplicates.add(action.id)
        seen.add(action.id)
    if duplicates:
        raise CatalogLoadError(f"Duplicate action ids in catalog: {', '.join(sorted(duplicates))}")
    return actions


def parse_game_state(payload: Any) -> GameStateForRecs:
    try:
        return _STATE_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise CatalogLoadError(f"Invalid game state: {exc}") from exc


def _read_json(path: str | Path) -> Any:
    file_path = Path(path).expanduser()
    if not file_path.exists():
        raise CatalogLoadError(f"File not found: {file_path}")
    try:
        return json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CatalogLoadError(f"Malformed JSON in {file_path}: {exc}") from exc


def load_catalog(path: str | Path) -> list[ActionDef]:
    actions = parse_catalog(_read_json(path))
    logger.info("catalog_loaded", extra={"path": str(path), "action_count": len(actions)})
    return actions


def load_game_state(path: str | Path) -> GameStateForRecs:
    state = parse_game_state(_read_json(path))
    logger.info("game_state_loaded", extra={"path": str(path), "run_count": len(state.runs)})
    return state
