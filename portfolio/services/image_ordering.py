"""
Display ordering for image records.

Every view that lists images (public grids, the CMS, the orphan finder)
orders them with compare_images, so the rules live here and nowhere else:

1. records that carry a sort_order come first, ascending;
2. the rest follow, newest uploaded_at first;
3. a missing or unparsable uploaded_at counts as the epoch, so it sorts last.

Equal sort_orders fall back to upload time, and equal upload times to id,
so the order never depends on how the records were fetched.
"""
import functools
import logging
import random
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Accept ORM rows, Pydantic models and raw documents alike.
_FIELD_NAMES = {
    "sort_order": ("sort_order", "sortOrder"),
    "uploaded_at": ("uploaded_at", "uploadedAt"),
    "id": ("id",),
}


def _field(record: Any, name: str) -> Any:
    for key in _FIELD_NAMES[name]:
        if isinstance(record, dict):
            if key in record:
                return record[key]
        elif hasattr(record, key):
            return getattr(record, key)
    return None


def _sort_order(record: Any) -> Optional[float]:
    value = _field(record, "sort_order")
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def upload_timestamp(record: Any) -> float:
    """
    Upload time of a record as POSIX seconds, 0.0 when missing or unparsable.
    """
    value = _field(record, "uploaded_at")
    if value is None:
        return 0.0
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Millisecond epoch, as JavaScript clients send it
        return float(value) / 1000.0
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return 0.0
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.timestamp()
    return 0.0


def compare_images(a: Any, b: Any) -> int:
    """Comparator implementing the display order described above."""
    order_a = _sort_order(a)
    order_b = _sort_order(b)

    if (order_a is None) != (order_b is None):
        return -1 if order_a is not None else 1
    if order_a is not None and order_a != order_b:
        return (order_a > order_b) - (order_a < order_b)

    time_a = upload_timestamp(a)
    time_b = upload_timestamp(b)
    if time_a != time_b:
        return (time_a < time_b) - (time_a > time_b)

    id_a = str(_field(a, "id") or "")
    id_b = str(_field(b, "id") or "")
    return (id_a > id_b) - (id_a < id_b)


def sort_images(records: Sequence[T]) -> List[T]:
    """Return a new list in display order."""
    return sorted(records, key=functools.cmp_to_key(compare_images))


def get_random_images(images: Sequence[T], count: int) -> List[T]:
    """Random sample without replacement, count clamped to the list size."""
    if count <= 0 or not images:
        return []
    return random.sample(list(images), min(count, len(images)))


def plan_move(images: Sequence[Any], index: int, direction: str) -> Optional[Tuple[int, int, int, int]]:
    """
    Work out the sort_order swap for moving images[index] one slot.

    ``images`` must already be in display order. Returns
    ``(index, new_order, neighbour_index, neighbour_new_order)`` or None when
    the move would fall off either end. A record without a sort_order is
    given its display index before the swap.
    """
    if direction not in ("up", "down"):
        raise ValueError(f"Unknown direction: {direction}")
    if index < 0 or index >= len(images):
        raise IndexError(f"Index {index} out of range for {len(images)} images")

    neighbour = index - 1 if direction == "up" else index + 1
    if neighbour < 0 or neighbour >= len(images):
        return None

    current_order = _field(images[index], "sort_order")
    neighbour_order = _field(images[neighbour], "sort_order")
    if current_order is None:
        current_order = index
    if neighbour_order is None:
        neighbour_order = neighbour

    return index, int(neighbour_order), neighbour, int(current_order)
