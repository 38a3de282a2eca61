"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional

from domain.enums import RoomCategory


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class GuestBookingRequest(BaseModel):
    """Guest booking form DTO

    Field rules are enforced by booking intake, not here.
    """
    guest_name: str
    email: str
    phone: str
    room_category: str
    check_in: str
    check_out: str
    guests_count: int = 1
    special_requests: Optional[str] = None


class StaffBookingRequest(GuestBookingRequest):
    """Admin booking form DTO"""
    status: str = "pending"
    initial_payment: Decimal = Decimal("0")
    final_payment: Decimal = Decimal("0")


class CancelReservationRequest(BaseModel):
    """Cancel reservation request DTO"""
    reason: Optional[str] = None


class RecordPaymentsRequest(BaseModel):
    """Payment update DTO; omitted amounts are left unchanged"""
    initial_payment: Optional[Decimal] = None
    final_payment: Optional[Decimal] = None


class RescheduleRequest(BaseModel):
    """Date change DTO"""
    check_in: date
    check_out: date


class LedgerPreviewRequest(BaseModel):
    """Quote request DTO"""
    room_category: RoomCategory
    check_in: date
    check_out: date
    initial_payment: Optional[Decimal] = None
    final_payment: Optional[Decimal] = None


class LedgerResponse(BaseModel):
    """Ledger response DTO"""
    nights: int
    room_rate: Decimal
    total_amount: Decimal
    initial_payment: Decimal
    final_payment: Decimal
    total_paid: Decimal
    balance_due: Decimal
    overpaid_amount: Decimal
    is_overpaid: bool
    payment_state: str
    currency: str


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    confirmation_code: str
    guest_name: str
    email: str
    phone: str
    guests_count: int
    special_requests: Optional[str] = None
    room_category: str
    check_in: date
    check_out: date
    status: str
    cancellation_reason: Optional[str] = None
    ledger: LedgerResponse
    created_at: datetime
    modified_at: datetime
    created_by: str
    version: int


class BookingResponse(BaseModel):
    """Intake outcome DTO"""
    intake_state: str
    reservation: ReservationResponse


# ============================================================================
# AVAILABILITY SCHEMAS
# ============================================================================

class DayAvailabilityResponse(BaseModel):
    """Single day availability DTO"""
    day: date
    capacity: int
    occupied: int
    free: int
    is_full: bool
    level: str
    reservation_ids: List[UUID] = []


class RangeAvailabilityResponse(BaseModel):
    """Range availability DTO"""
    start: date
    end: date
    capacity: int
    max_occupied: int
    is_bookable: bool
    days: List[DayAvailabilityResponse]


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class StaffUserResponse(BaseModel):
    """Staff user response DTO"""
    user_id: UUID
    username: str
    full_name: Optional[str] = None
