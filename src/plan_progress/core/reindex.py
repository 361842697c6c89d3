"""
Reindex reconciliation for position-based pointers.

Progress pointers are positions, but positions drift when days or cycle
items are inserted, removed or reordered underneath them.  Before such a
mutation the identity of the entry under the pointer is captured; after
it (and after re-densifying positions) the pointer is re-resolved to that
identity's new position, or clamped into range when the entry is gone.

Typical use:
    anchor = capture_day_anchor(plan.days, progress.current_day_index)
    plan.days.remove(some_day)
    reindex_days(plan.days)
    new_index = resolve_day_pointer(plan.days, anchor, progress.current_day_index)
"""

import logging
from typing import Sequence

from .config import FIRST_CYCLE_INDEX, FIRST_DAY_INDEX
from .models import CycleItem, PlanDay

logger = logging.getLogger(__name__)


def reindex_days(days: list[PlanDay]) -> bool:
    """
    Re-densify day positions to 1..N, keeping their current order.

    Returns:
        True if any position changed
    """
    changed = False
    for offset, day in enumerate(sorted(days, key=lambda d: d.position)):
        position = offset + FIRST_DAY_INDEX
        if day.position != position:
            day.position = position
            changed = True
    return changed


def reindex_items(items: list[CycleItem]) -> bool:
    """Re-densify cycle item orders to 0..N-1, keeping their current order."""
    changed = False
    for offset, item in enumerate(sorted(items, key=lambda i: i.order)):
        order = offset + FIRST_CYCLE_INDEX
        if item.order != order:
            item.order = order
            changed = True
    return changed


def resolve_pointer(
    ids: Sequence[str],
    anchor_id: str | None,
    old_index: int,
    base: int,
) -> int | None:
    """
    Re-resolve a pointer against an ordered list of identities.

    Args:
        ids: Identities in their new order
        anchor_id: Identity the pointer referred to before the mutation
        old_index: The pointer value before the mutation
        base: 1 for day pointers, 0 for item/cycle-day pointers

    Returns:
        The anchor's new index when it still exists, otherwise ``old_index``
        clamped into ``[base, len(ids) - 1 + base]``; None for an empty list
    """
    if not ids:
        return None
    if anchor_id is not None and anchor_id in ids:
        return list(ids).index(anchor_id) + base
    return max(base, min(old_index, len(ids) - 1 + base))


def capture_day_anchor(days: list[PlanDay], current_day_index: int) -> str | None:
    """Identity of the day at position ``current_day_index``, or None."""
    for day in days:
        if day.position == current_day_index:
            return day.id
    return None


def resolve_day_pointer(days: list[PlanDay], anchor_id: str | None, old_index: int) -> int | None:
    """New 1-indexed day pointer after the plan's days were mutated."""
    ordered = sorted(days, key=lambda d: d.position)
    new_index = resolve_pointer([d.id for d in ordered], anchor_id, old_index, FIRST_DAY_INDEX)
    if new_index is not None and new_index != old_index:
        logger.debug("day pointer %d -> %d (anchor %s)", old_index, new_index, anchor_id)
    return new_index


def capture_item_anchor(items: list[CycleItem], current_item_index: int) -> str | None:
    """
    Identity of the cycle item whose stored order equals the 0-indexed pointer.

    Reads the stored order, not the offset in the sorted list, so a gap left
    by an item removed before reindexing does not shift the anchor.
    """
    for item in items:
        if item.order == current_item_index:
            return item.id
    return None


def resolve_item_pointer(
    items: list[CycleItem], anchor_id: str | None, old_index: int
) -> int | None:
    """New 0-indexed item pointer after the cycle's items were mutated."""
    ordered = sorted(items, key=lambda i: i.order)
    new_index = resolve_pointer([i.id for i in ordered], anchor_id, old_index, FIRST_CYCLE_INDEX)
    if new_index is not None and new_index != old_index:
        logger.debug("item pointer %d -> %d (anchor %s)", old_index, new_index, anchor_id)
    return new_index


def capture_cycle_day_anchor(days: list[PlanDay], current_day_index: int) -> str | None:
    """Identity of the day stored at position ``current_day_index + 1``, or None."""
    return capture_day_anchor(days, current_day_index + FIRST_DAY_INDEX)


def resolve_cycle_day_pointer(
    days: list[PlanDay], anchor_id: str | None, old_index: int
) -> int | None:
    """New 0-indexed cycle day pointer after the plan's days were mutated."""
    ordered = sorted(days, key=lambda d: d.position)
    return resolve_pointer([d.id for d in ordered], anchor_id, old_index, FIRST_CYCLE_INDEX)
