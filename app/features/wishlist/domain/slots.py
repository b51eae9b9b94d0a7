"""
Slot lifecycle rules.

A slot is FILLED when an entry occupies it, LOCKED while its availability
timestamp lies in the future, and AVAILABLE otherwise. A slot without an
availability record has never been held back and is therefore open.
"""

import calendar
from collections.abc import Mapping
from datetime import datetime, timedelta

from .countdown import remaining
from .models import (
    Contact,
    LockReason,
    SlotAvailability,
    SlotStatus,
    SlotView,
    WishlistEntry,
)


def add_months(moment: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping to the last day of shorter months."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def slot_status(
    entry: WishlistEntry | None, availability: SlotAvailability | None, now: datetime
) -> SlotStatus:
    if entry is not None:
        return SlotStatus.FILLED
    if availability is not None and availability.available_at > now:
        return SlotStatus.LOCKED
    return SlotStatus.AVAILABLE


def can_fill(
    entry: WishlistEntry | None, availability: SlotAvailability | None, now: datetime
) -> bool:
    return slot_status(entry, availability, now) is SlotStatus.AVAILABLE


def is_valid_slot(slot_number: int, slot_count: int) -> bool:
    return 1 <= slot_number <= slot_count


def initial_availability(
    created_at: datetime, slot_count: int, stagger_days: int = 0
) -> list[SlotAvailability]:
    """Availability rows seeded at sign-up; slot k opens (k - 1) * stagger_days later."""
    return [
        SlotAvailability(
            slot_number=slot,
            available_at=created_at + timedelta(days=(slot - 1) * stagger_days),
            reason=LockReason.INITIAL,
        )
        for slot in range(1, slot_count + 1)
    ]


def _display_order(view: SlotView) -> tuple:
    if view.status is SlotStatus.LOCKED:
        return (1, view.available_at, view.slot_number)
    return (0, view.slot_number)


def build_slot_views(
    slot_count: int,
    entries: Mapping[int, WishlistEntry],
    availability: Mapping[int, SlotAvailability],
    contacts: Mapping[str, Contact],
    matched_contact_ids: set[str],
    now: datetime,
) -> list[SlotView]:
    """
    Assemble every slot for display.

    Open and filled slots come first by slot number, then locked slots by
    soonest unlock.
    """
    views = []
    for slot in range(1, slot_count + 1):
        entry = entries.get(slot)
        held = availability.get(slot)
        status = slot_status(entry, held, now)

        view = SlotView(slot_number=slot, status=status)
        if held is not None:
            view.available_at = held.available_at
        if status is SlotStatus.FILLED:
            view.contact = contacts.get(entry.contact_id)
            view.is_matched = entry.contact_id in matched_contact_ids
        elif status is SlotStatus.LOCKED:
            view.lock_reason = held.reason
            view.remaining = remaining(held.available_at, now)
        views.append(view)

    return sorted(views, key=_display_order)
