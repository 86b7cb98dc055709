"""Hand generation: action shortlist, target shortlist and the engine boundary."""

from .action_hand import generate_action_hand
from .engine import DeterministicHandEngine, HandEngine, UnknownActionError
from .targets_hand import generate_targets_hand

__all__ = [
    "DeterministicHandEngine",
    "HandEngine",
    "UnknownActionError",
    "generate_action_hand",
    "generate_targets_hand",
]
