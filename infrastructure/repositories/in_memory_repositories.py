"""In-Memory Repository Implementations"""
import asyncio
import logging
from collections import Counter
from datetime import date, timedelta
from typing import Optional, List, Dict
from uuid import UUID

from domain.repositories import ReservationRepository
from domain.entities import Reservation
from domain.enums import ReservationStatus
from domain.exceptions import CapacityExceeded

logger = logging.getLogger("guesthouse.repositories")


def _nights_held(reservation: Reservation) -> List[date]:
    """Nights a reservation takes from the pool; none when inactive"""
    if not reservation.is_active():
        return []
    nights = []
    current = reservation.check_in
    while current < reservation.check_out:
        nights.append(current)
        current += timedelta(days=1)
    return nights


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository

    Keeps a per-night counter of rooms taken. Writes check and move those
    counters under one lock, so two concurrent bookings cannot both claim the
    last room on a night.
    """

    def __init__(self):
        self._storage: Dict[UUID, Reservation] = {}
        self._rooms_taken: Counter = Counter()
        self._lock = asyncio.Lock()

    async def save_if_available(self, reservation: Reservation, capacity: int) -> Reservation:
        """Save reservation if every night it needs still has a free room"""
        async with self._lock:
            if reservation.reservation_id in self._storage:
                raise ValueError("Reservation already exists")

            self._acquire(_nights_held(reservation), capacity)
            self._storage[reservation.reservation_id] = reservation.model_copy(deep=True)
            return reservation

    async def update(self, reservation: Reservation, capacity: int) -> Reservation:
        """Update reservation, moving its nights if dates or status changed"""
        async with self._lock:
            current = self._storage.get(reservation.reservation_id)
            if current is None:
                raise ValueError("Reservation not found")

            old_nights = _nights_held(current)
            new_nights = _nights_held(reservation)

            if old_nights != new_nights:
                self._release(old_nights)
                try:
                    self._acquire(new_nights, capacity)
                except CapacityExceeded:
                    self._rooms_taken.update(old_nights)
                    raise

            self._storage[reservation.reservation_id] = reservation.model_copy(deep=True)
            return reservation

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        reservation = self._storage.get(reservation_id)
        return reservation.model_copy(deep=True) if reservation else None

    async def find_by_confirmation_code(self, code: str) -> Optional[Reservation]:
        """Find reservation by confirmation code"""
        for reservation in self._storage.values():
            if reservation.confirmation_code == code.upper():
                return reservation.model_copy(deep=True)
        return None

    async def find_all(
        self,
        status: Optional[ReservationStatus] = None,
        search: Optional[str] = None
    ) -> List[Reservation]:
        """Find all reservations, ordered by check-in"""
        reservations = [
            r.model_copy(deep=True) for r in self._storage.values()
            if (status is None or r.status == status)
            and (not search or r.matches_search(search))
        ]
        return sorted(reservations, key=lambda r: (r.check_in, r.created_at))

    async def find_active(self) -> List[Reservation]:
        """Find reservations holding rooms"""
        return [r for r in await self.find_all() if r.is_active()]

    def rooms_taken(self, night: date) -> int:
        """Rooms currently held on a night"""
        return self._rooms_taken[night]

    # ==================== PRIVATE METHODS ====================
    def _acquire(self, nights: List[date], capacity: int) -> None:
        full = [(night, self._rooms_taken[night]) for night in nights
                if self._rooms_taken[night] >= capacity]
        if full:
            logger.warning(
                "Refused write: %d night(s) already at capacity %d", len(full), capacity
            )
            raise CapacityExceeded(full, capacity)
        self._rooms_taken.update(nights)

    def _release(self, nights: List[date]) -> None:
        self._rooms_taken.subtract(nights)
        for night in nights:
            if self._rooms_taken[night] <= 0:
                del self._rooms_taken[night]
