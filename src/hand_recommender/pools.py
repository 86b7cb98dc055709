"""Deterministic ordering and small pool helpers.

Hands must look varied between turns without ever using randomness, so ties
are broken with a seeded FNV-1a hash: the same seed always produces the same
order, while different seeds (one per slot) scatter candidates differently.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Hashable, Iterable, Sequence
from typing import TypeVar

from hand_recommender.models import HandItem

T = TypeVar("T")

_FNV_OFFSET_BASIS = 2166136261
_FNV_PRIME = 16777619
_UINT32_MASK = 0xFFFFFFFF


def _utf16_code_units(text: str) -> Iterable[int]:
    raw = text.encode("utf-16-le", errors="surrogatepass")
    for index in range(0, len(raw), 2):
        yield raw[index] | (raw[index + 1] << 8)


def stable_hash(text: str) -> int:
    """Return the unsigned 32-bit FNV-1a hash of ``text`` (over UTF-16 code units)."""
    value = _FNV_OFFSET_BASIS
    for unit in _utf16_code_units(text):
        value ^= unit
        value = (value * _FNV_PRIME) & _UINT32_MASK
    return value


def _as_int32(value: int) -> int:
    value &= _UINT32_MASK
    return value - 0x1_0000_0000 if value & 0x8000_0000 else value


def seeded_sort(items: Iterable[T], seed_key: str, key_fn: Callable[[T], str]) -> list[T]:
    """Stable-sort ``items`` by ``hash(key_fn(item)) ^ hash(seed_key)``.

    The XOR result is compared as a signed 32-bit integer so orderings match
    hands produced by other implementations of the engine.
    """
    seed = stable_hash(seed_key)
    return sorted(items, key=lambda item: _as_int32(stable_hash(key_fn(item)) ^ seed))


def unique_by(items: Iterable[T], key_fn: Callable[[T], Hashable]) -> list[T]:
    seen: set[Hashable] = set()
    out: list[T] = []
    for item in items:
        key = key_fn(item)
        if key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out


def diversify_by(
    items: Iterable[T],
    max_same_bucket: int,
    bucket_key: Callable[[T], Hashable],
    limit: int,
) -> list[T]:
    """Keep relative order, allow at most ``max_same_bucket`` per bucket, stop at ``limit``."""
    counts: dict[Hashable, int] = {}
    out: list[T] = []
    for item in items:
        if len(out) >= limit:
            break
        key = bucket_key(item)
        count = counts.get(key, 0)
        if count >= max_same_bucket:
            continue
        counts[key] = count + 1
        out.append(item)
    return out


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def score_recency(age_index: int) -> float:
    # 0 is newest
    return 1.0 / (1.0 + age_index)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def sort_hand_items_desc(items: Sequence[HandItem[T]]) -> list[HandItem[T]]:
    return sorted(items, key=lambda hand_item: hand_item.score, reverse=True)
