"""Maps the latest progress signal to a preferred school.

Rules are tried in order and the first one that returns a school wins, so the
vocabulary can be extended or replaced without touching scoring.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Protocol

from hand_recommender.models import RunProgress, School


class HintRule(Protocol):
    def match(self, progress: RunProgress) -> School | None:
        """Return the school this rule reads from ``progress``, if any."""


class PatternHintRule:
    """Matches ``next_best_move_hint`` against a regex whose first group is looked up in ``vocabulary``."""

    def __init__(self, pattern: re.Pattern[str], vocabulary: Mapping[str, School]) -> None:
        self._pattern = pattern
        self._vocabulary = {word.upper(): school for word, school in vocabulary.items()}

    def match(self, progress: RunProgress) -> School | None:
        found = self._pattern.match((progress.next_best_move_hint or "").strip())
        if not found:
            return None
        return self._vocabulary.get(found.group(1).upper())


class ProgressLabelRule:
    """Coarse fallback on the progress label when the hint text is not parseable."""

    def __init__(self, labels: Mapping[str, School | None]) -> None:
        self._labels = dict(labels)

    def match(self, progress: RunProgress) -> School | None:
        return self._labels.get(progress.progress_label)


BRACKET_TAG_RULE = PatternHintRule(
    re.compile(r"^\[(FI|FU|FPR|FA|FS|ENRICH)\]", re.IGNORECASE),
    {
        "FI": School.INTRODUCTION,
        "FU": School.UNDERSTANDING,
        "FPR": School.PRESENTATION,
        "FA": School.ABSTRACTION,
        "FS": School.SYNTHESIS,
        "ENRICH": School.PLANNING,
    },
)

INTENT_WORD_RULE = PatternHintRule(
    re.compile(r"^Next move:\s*(INTRODUCE|UNDERSTAND|PRESENT|ABSTRACT|SYNTHESIZE|PATCH|ENRICH)\b", re.IGNORECASE),
    {
        "INTRODUCE": School.INTRODUCTION,
        "UNDERSTAND": School.UNDERSTANDING,
        "PRESENT": School.PRESENTATION,
        "ABSTRACT": School.ABSTRACTION,
        "SYNTHESIZE": School.SYNTHESIS,
        "PATCH": School.INTRODUCTION,
        "ENRICH": School.PLANNING,
    },
)

PROGRESS_LABEL_RULE = ProgressLabelRule(
    {
        "DRIFT": School.UNDERSTANDING,
        "STALLED": School.UNDERSTANDING,
        "PARTIAL": School.PRESENTATION,
        "ADVANCED": None,
    }
)

DEFAULT_HINT_RULES: tuple[HintRule, ...] = (BRACKET_TAG_RULE, INTENT_WORD_RULE, PROGRESS_LABEL_RULE)


def resolve_hint_school(progress: RunProgress | None, rules: Iterable[HintRule] = DEFAULT_HINT_RULES) -> School | None:
    if progress is None:
        return None
    for rule in rules:
        school = rule.match(progress)
        if school is not None:
            return school
    return None
