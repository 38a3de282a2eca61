"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List
from uuid import UUID

from domain.entities import Reservation
from domain.enums import ReservationStatus


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def save_if_available(self, reservation: Reservation, capacity: int) -> Reservation:
        """Store a new reservation only if every night still has a free room"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation, capacity: int) -> Reservation:
        """Store changes, re-acquiring nights if dates or status changed"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_by_confirmation_code(self, code: str) -> Optional[Reservation]:
        """Find reservation by confirmation code"""
        pass

    @abstractmethod
    async def find_all(
        self,
        status: Optional[ReservationStatus] = None,
        search: Optional[str] = None
    ) -> List[Reservation]:
        """Find all reservations, optionally filtered by status and a search term"""
        pass

    @abstractmethod
    async def find_active(self) -> List[Reservation]:
        """Find reservations that consume room inventory"""
        pass
