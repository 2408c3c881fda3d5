"""Pure predicates shared by the resolver, the lease engine and the reports.

Every place that asks "is this shift active" or "does this date range
cover that date" goes through here, so expense resolution and both lease
views agree on the answer.
"""

from datetime import date
from typing import Iterable, Optional

from taxiledger.domain.entities import CabShift, DriverShift, DriverShiftStatus, ShiftStatus


def is_shift_active(shift: Optional[CabShift]) -> bool:
    """A cab shift is active when its status is ACTIVE."""
    return shift is not None and shift.status == ShiftStatus.ACTIVE


def is_cab_active(cab_shifts: Iterable[CabShift]) -> bool:
    """A cab is active when at least one of its shifts is active."""
    return any(is_shift_active(s) for s in cab_shifts)


def is_cab_shift_active(shift: Optional[CabShift], cab_shifts: Iterable[CabShift]) -> bool:
    """Both the shift and the cab it belongs to are active."""
    return is_shift_active(shift) and is_cab_active(cab_shifts)


def is_completed(driver_shift: DriverShift) -> bool:
    return driver_shift.status == DriverShiftStatus.COMPLETED


def is_effective_on(start: date, end: Optional[date], on: date) -> bool:
    """Inclusive range check; end None is open-ended."""
    if on < start:
        return False
    return end is None or on <= end


def overlaps(start: date, end: Optional[date], range_from: date, range_to: date) -> bool:
    """True when [start, end] shares at least one day with [range_from, range_to]."""
    if end is not None and end < range_from:
        return False
    return start <= range_to


def intersect(
    start: date, end: Optional[date], range_from: date, range_to: date
) -> Optional[tuple[date, date]]:
    """Intersection of an open-ended effective range with a query range.

    Returns:
        (first_day, last_day) inclusive, or None when they do not overlap
    """
    first = max(start, range_from)
    last = range_to if end is None else min(end, range_to)
    if first > last:
        return None
    return first, last
