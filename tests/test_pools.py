from __future__ import annotations

from hand_recommender.models import BasisTag, HandItem
from hand_recommender.pools import (
    clamp,
    diversify_by,
    round_half_up,
    score_recency,
    seeded_sort,
    sort_hand_items_desc,
    stable_hash,
    unique_by,
)


def test_stable_hash_matches_fnv1a_vectors() -> None:
    assert stable_hash("") == 2166136261
    assert stable_hash("a") == 0xE40C292C
    assert stable_hash("foobar") == 0xBF9CF968


def test_stable_hash_is_unsigned_32_bit() -> None:
    for text in ("FI-01:3500", "AHS:kf12oi:slot1", "ünïcode ✓", "🂡 ace"):
        value = stable_hash(text)
        assert 0 <= value <= 0xFFFFFFFF
        assert stable_hash(text) == value


def test_seeded_sort_is_a_reproducible_permutation() -> None:
    items = [f"FA-{index:02d}" for index in range(12)]

    first = seeded_sort(items, "AHS:abc:slot1", lambda item: item)
    second = seeded_sort(list(reversed(items)), "AHS:abc:slot1", lambda item: item)

    assert sorted(first) == sorted(items)
    assert first == second


def test_seeded_sort_keeps_input_order_for_equal_keys() -> None:
    items = [("a", 1), ("a", 2), ("a", 3)]

    ordered = seeded_sort(items, "seed", lambda item: item[0])

    assert ordered == items


def test_unique_by_keeps_first_occurrence() -> None:
    assert unique_by(["x1", "y1", "x2"], lambda item: item[0]) == ["x1", "y1"]


def test_diversify_by_caps_buckets_and_limit() -> None:
    items = ["r1-a", "r1-b", "r1-c", "r1-d", "r2-a", "r2-b", "r3-a"]

    capped = diversify_by(items, 2, lambda item: item.split("-")[0], limit=4)

    assert capped == ["r1-a", "r1-b", "r2-a", "r2-b"]


def test_small_helpers() -> None:
    assert clamp(9, 4, 6) == 6
    assert clamp(2, 4, 6) == 4
    assert score_recency(0) == 1.0
    assert score_recency(3) == 0.25
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.5) == 0


def test_sort_hand_items_desc_is_stable() -> None:
    items = [
        HandItem(item="a", basis_tag=BasisTag.VARIETY, basis_note="", score=1.0),
        HandItem(item="b", basis_tag=BasisTag.VARIETY, basis_note="", score=2.0),
        HandItem(item="c", basis_tag=BasisTag.VARIETY, basis_note="", score=1.0),
    ]

    assert [entry.item for entry in sort_hand_items_desc(items)] == ["b", "a", "c"]
