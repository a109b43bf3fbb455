from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from portfolio.services.image_ordering import (
    compare_images,
    get_random_images,
    plan_move,
    sort_images,
    upload_timestamp,
)

T1 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
T2 = T1 + timedelta(days=2)


def rec(name, sort_order=None, uploaded_at=None):
    return SimpleNamespace(id=name, sort_order=sort_order, uploaded_at=uploaded_at)


def ids(records):
    return [r.id for r in records]


def test_mixed_ordering_puts_ranked_first_then_newest():
    a = rec("A", sort_order=2, uploaded_at=T1)
    b = rec("B", sort_order=1, uploaded_at=T1)
    c = rec("C", uploaded_at=T1)
    d = rec("D", uploaded_at=T2)

    assert ids(sort_images([a, b, c, d])) == ["B", "A", "D", "C"]
    assert ids(sort_images([c, d, a, b])) == ["B", "A", "D", "C"]


def test_ranked_record_beats_newer_unranked_record():
    old_ranked = rec("old", sort_order=999999, uploaded_at=T1)
    new_unranked = rec("new", uploaded_at=T2)

    assert compare_images(old_ranked, new_unranked) < 0
    assert compare_images(new_unranked, old_ranked) > 0


def test_sort_order_zero_counts_as_present():
    zero = rec("zero", sort_order=0)
    none = rec("none", uploaded_at=T2)

    assert ids(sort_images([none, zero])) == ["zero", "none"]


@pytest.mark.parametrize("bad_timestamp", [None, "not a date", object()])
def test_missing_or_unparsable_timestamp_sorts_last(bad_timestamp):
    broken = rec("broken", uploaded_at=bad_timestamp)
    old = rec("old", uploaded_at=datetime(1999, 1, 1, tzinfo=timezone.utc))

    assert ids(sort_images([broken, old])) == ["old", "broken"]
    assert upload_timestamp(broken) == 0.0


def test_documents_with_camel_case_and_mixed_timestamp_types():
    docs = [
        {"id": "iso", "uploadedAt": "2024-03-01T12:00:00Z"},
        {"id": "millis", "uploadedAt": int(T2.timestamp() * 1000)},
        {"id": "ranked", "sortOrder": 5, "uploadedAt": None},
        {"id": "naive", "uploaded_at": datetime(2024, 3, 2)},
    ]

    assert [d["id"] for d in sort_images(docs)] == ["ranked", "millis", "naive", "iso"]


def test_sorting_is_idempotent():
    records = [rec(str(i), sort_order=(i % 3) or None, uploaded_at=T1 + timedelta(hours=i)) for i in range(10)]

    once = sort_images(records)
    assert ids(sort_images(once)) == ids(once)
    assert ids(sort_images(list(reversed(records)))) == ids(once)
    assert ids(once) == ["7", "4", "1", "8", "5", "2", "9", "6", "3", "0"]


def test_equal_sort_orders_fall_back_to_recency_then_id():
    older = rec("older", sort_order=3, uploaded_at=T1)
    newer = rec("newer", sort_order=3, uploaded_at=T2)
    twin = rec("twin", sort_order=3, uploaded_at=T2)

    assert ids(sort_images([older, twin, newer])) == ["newer", "twin", "older"]
    assert ids(sort_images([newer, older, twin])) == ["newer", "twin", "older"]


def test_plan_move_swaps_existing_sort_orders():
    images = [rec("a", 10), rec("b", 20), rec("c", 30)]

    assert plan_move(images, 1, "up") == (1, 10, 0, 20)
    assert plan_move(images, 1, "down") == (1, 30, 2, 20)


def test_plan_move_synthesises_missing_sort_order_from_index():
    images = [rec("a", 10), rec("b", uploaded_at=T2), rec("c", uploaded_at=T1)]

    assert plan_move(images, 1, "down") == (1, 2, 2, 1)
    assert plan_move(images, 2, "up") == (2, 1, 1, 2)


def test_move_up_then_down_restores_sort_orders():
    images = [rec("a", 4), rec("b", 9), rec("c", 15)]

    index, order, neighbour, neighbour_order = plan_move(images, 2, "up")
    images[index].sort_order = order
    images[neighbour].sort_order = neighbour_order
    images = sort_images(images)
    assert ids(images) == ["a", "c", "b"]

    index, order, neighbour, neighbour_order = plan_move(images, 1, "down")
    images[index].sort_order = order
    images[neighbour].sort_order = neighbour_order
    images = sort_images(images)

    assert [(r.id, r.sort_order) for r in images] == [("a", 4), ("b", 9), ("c", 15)]


def test_plan_move_at_the_edges_is_a_no_op():
    images = [rec("a", 1), rec("b", 2)]

    assert plan_move(images, 0, "up") is None
    assert plan_move(images, 1, "down") is None


def test_plan_move_rejects_bad_arguments():
    images = [rec("a", 1)]

    with pytest.raises(ValueError):
        plan_move(images, 0, "sideways")
    with pytest.raises(IndexError):
        plan_move(images, 3, "up")


def test_random_images_are_distinct_and_clamped():
    images = [rec(str(i)) for i in range(5)]

    picked = get_random_images(images, 3)
    assert len(picked) == 3
    assert len(set(ids(picked))) == 3
    assert set(ids(get_random_images(images, 50))) == set(ids(images))
    assert get_random_images([], 2) == []
    assert get_random_images(images, 0) == []
