"""Booking Intake - proposed -> validated -> persisted, or proposed -> rejected"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, Field, ValidationError

from domain.availability import ensure_capacity
from domain.entities import Reservation
from domain.enums import (
    IntakeChannel, IntakeState, OverpaymentPolicy, RejectionReason,
    ReservationStatus, RoomCategory
)
from domain.exceptions import BookingError, FieldValidationError, InvalidDateRange
from domain.ledger import count_nights
from domain.value_objects import DateRange, GuestDetails

DATE_FIELDS = {"check_in", "check_out"}
STAFF_ONLY_FIELDS = {"status", "initial_payment", "final_payment"}


class BookingRequest(BaseModel):
    """Raw stay request as collected by a booking form"""
    guest_name: str = Field(min_length=2, max_length=100)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    phone: str = Field(min_length=10, max_length=20)
    room_category: RoomCategory
    check_in: date
    check_out: date
    guests_count: int = Field(ge=1, le=4)
    special_requests: Optional[str] = Field(default=None, max_length=500)
    status: ReservationStatus = ReservationStatus.PENDING
    # Sign is checked by the ledger so negatives surface as payment errors
    initial_payment: Decimal = Decimal("0")
    final_payment: Decimal = Decimal("0")

    def guest_details(self) -> GuestDetails:
        return GuestDetails(
            guest_name=self.guest_name,
            email=self.email,
            phone=self.phone,
            guests_count=self.guests_count,
            special_requests=self.special_requests or None
        )


class BookingIntake(BaseModel):
    """State machine a booking candidate passes through before storage"""
    channel: IntakeChannel
    raw: Dict[str, Any]
    state: IntakeState = IntakeState.PROPOSED
    request: Optional[BookingRequest] = None
    reservation: Optional[Reservation] = None
    rejection_reason: Optional[RejectionReason] = None
    rejection_message: Optional[str] = None

    @classmethod
    def propose(cls, raw: Dict[str, Any], channel: IntakeChannel = IntakeChannel.GUEST) -> "BookingIntake":
        return cls(channel=channel, raw=dict(raw))

    def validate_against(
        self,
        existing: Iterable[Reservation],
        capacity: int,
        today: date,
        overpayment_policy: OverpaymentPolicy = OverpaymentPolicy.FLAG,
        created_by: str = "SYSTEM",
        max_nights: Optional[int] = None
    ) -> Reservation:
        """Run every intake check; reject and re-raise on the first failure"""
        if self.state != IntakeState.PROPOSED:
            raise ValueError(f"Cannot validate intake in state {self.state.value}")

        try:
            request = self._parse()
            self._check_dates(request, today, max_nights)

            reservation = Reservation.create(
                guest=request.guest_details(),
                room_category=request.room_category,
                date_range=DateRange(check_in=request.check_in, check_out=request.check_out),
                status=request.status,
                initial_payment=request.initial_payment,
                final_payment=request.final_payment,
                overpayment_policy=overpayment_policy,
                created_by=created_by
            )

            if reservation.is_active():
                ensure_capacity(existing, reservation.check_in, reservation.check_out, capacity)
        except BookingError as e:
            self.reject(e)
            raise

        self.request = request
        self.reservation = reservation
        self.state = IntakeState.VALIDATED
        return reservation

    def mark_persisted(self) -> None:
        if self.state != IntakeState.VALIDATED:
            raise ValueError(f"Cannot persist intake in state {self.state.value}")
        self.state = IntakeState.PERSISTED

    def reject(self, error: BookingError) -> None:
        """Record why the candidate was turned away"""
        if self.state not in (IntakeState.PROPOSED, IntakeState.VALIDATED):
            raise ValueError(f"Cannot reject intake in state {self.state.value}")
        self.state = IntakeState.REJECTED
        self.rejection_reason = error.reason
        self.rejection_message = str(error)

    @property
    def is_rejected(self) -> bool:
        return self.state == IntakeState.REJECTED

    # ==================== PRIVATE METHODS ====================
    def _parse(self) -> BookingRequest:
        data = dict(self.raw)
        if self.channel == IntakeChannel.GUEST:
            # Guests cannot pick a status or record payments
            for key in STAFF_ONLY_FIELDS:
                data.pop(key, None)

        try:
            return BookingRequest(**data)
        except ValidationError as e:
            errors = e.errors(include_url=False, include_context=False)
            if any(error["loc"] and error["loc"][0] in DATE_FIELDS for error in errors):
                raise InvalidDateRange("Check-in and check-out must be valid dates")
            raise FieldValidationError(errors)

    def _check_dates(self, request: BookingRequest, today: date, max_nights: Optional[int]) -> None:
        if request.check_out <= request.check_in:
            raise InvalidDateRange("Check-out must be after check-in")

        if max_nights is not None and count_nights(request.check_in, request.check_out) > max_nights:
            raise InvalidDateRange(f"Stay cannot exceed {max_nights} nights")

        # Staff may back-enter past stays; guests may not
        if self.channel == IntakeChannel.GUEST and request.check_in < today:
            raise InvalidDateRange("Check-in date must be today or later")
