"""Availability Calculator

Answers how many rooms of the fixed pool are occupied or free on a day or
across a range of days. Stays are half-open intervals ``[check_in,
check_out)``: the departure day is free for a new arrival the same night.
Only active reservations (pending or confirmed) are counted.
"""
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple, Union
from uuid import UUID

from pydantic import BaseModel

from domain.entities import Reservation
from domain.enums import OccupancyLevel
from domain.exceptions import CapacityExceeded, InvalidDateRange

DayOrRange = Union[date, Tuple[date, date]]


class DayAvailability(BaseModel):
    """Occupancy of the room pool on a single day"""
    day: date
    capacity: int
    occupied: int
    free: int
    is_full: bool
    level: OccupancyLevel
    reservation_ids: List[UUID] = []

    class Config:
        frozen = True


class RangeAvailability(BaseModel):
    """Per-day occupancy over an inclusive range plus its worst day"""
    start: date
    end: date
    capacity: int
    days: List[DayAvailability]
    max_occupied: int

    class Config:
        frozen = True

    @property
    def is_bookable(self) -> bool:
        """True when no day in the range has reached capacity"""
        return self.max_occupied < self.capacity

    @property
    def full_days(self) -> List[DayAvailability]:
        return [d for d in self.days if d.is_full]


def occupies(reservation: Reservation, day: date) -> bool:
    """Check if an active reservation holds a room on the given night"""
    return reservation.is_active() and reservation.date_range.contains(day)


def _validate_capacity(capacity: int) -> None:
    if capacity < 0:
        raise ValueError("Capacity cannot be negative")


def ensure_span(start: date, end: date, max_days: int) -> None:
    """Refuse inclusive ranges longer than ``max_days``"""
    if (end - start).days + 1 > max_days:
        raise InvalidDateRange(f"Date range cannot exceed {max_days} days")


def _day_availability(
    reservations: List[Reservation],
    day: date,
    capacity: int
) -> DayAvailability:
    overlapping = [r for r in reservations if occupies(r, day)]
    occupied = len(overlapping)
    is_full = occupied >= capacity

    if is_full:
        level = OccupancyLevel.FULLY_BOOKED
    elif occupied > 0:
        level = OccupancyLevel.PARTIALLY_BOOKED
    else:
        level = OccupancyLevel.AVAILABLE

    return DayAvailability(
        day=day,
        capacity=capacity,
        occupied=occupied,
        free=max(0, capacity - occupied),
        is_full=is_full,
        level=level,
        reservation_ids=[r.reservation_id for r in overlapping],
    )


def _range_availability(
    reservations: List[Reservation],
    start: date,
    end: date,
    capacity: int
) -> RangeAvailability:
    if end < start:
        raise InvalidDateRange("Range end must not be before range start")

    days = []
    current = start
    while current <= end:
        days.append(_day_availability(reservations, current, capacity))
        current += timedelta(days=1)

    return RangeAvailability(
        start=start,
        end=end,
        capacity=capacity,
        days=days,
        max_occupied=max(d.occupied for d in days),
    )


def compute_availability(
    reservations: Iterable[Reservation],
    target: DayOrRange,
    capacity: int
) -> Union[DayAvailability, RangeAvailability]:
    """Occupancy for a single day, or for an inclusive (start, end) range"""
    _validate_capacity(capacity)
    reservations = list(reservations)

    if isinstance(target, tuple):
        start, end = target
        return _range_availability(reservations, start, end, capacity)
    return _day_availability(reservations, target, capacity)


def stay_availability(
    reservations: Iterable[Reservation],
    check_in: date,
    check_out: date,
    capacity: int,
    exclude_id: Optional[UUID] = None
) -> RangeAvailability:
    """Occupancy over every night of a prospective stay"""
    if check_out <= check_in:
        raise InvalidDateRange("Check-out must be after check-in")

    others = [r for r in reservations if r.reservation_id != exclude_id]
    return compute_availability(
        others, (check_in, check_out - timedelta(days=1)), capacity
    )


def ensure_capacity(
    reservations: Iterable[Reservation],
    check_in: date,
    check_out: date,
    capacity: int,
    exclude_id: Optional[UUID] = None
) -> RangeAvailability:
    """Raise CapacityExceeded if any night of the stay has no free room"""
    availability = stay_availability(
        reservations, check_in, check_out, capacity, exclude_id=exclude_id
    )
    if not availability.is_bookable:
        raise CapacityExceeded(
            [(d.day, d.occupied) for d in availability.full_days],
            capacity
        )
    return availability


def rolling_window(
    reservations: Iterable[Reservation],
    start: date,
    days: int,
    capacity: int
) -> RangeAvailability:
    """Availability for ``days`` consecutive days beginning at ``start``"""
    if days < 1:
        raise InvalidDateRange("Window must cover at least one day")
    return compute_availability(
        reservations, (start, start + timedelta(days=days - 1)), capacity
    )
