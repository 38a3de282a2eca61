"""Application Services - Business use cases"""
import logging
from uuid import UUID
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from domain.availability import (
    DayAvailability, RangeAvailability, compute_availability, ensure_capacity, ensure_span,
    rolling_window, stay_availability
)
from domain.entities import Reservation
from domain.enums import (
    IntakeChannel, OverpaymentPolicy, PaymentState, ReservationStatus, RoomCategory
)
from domain.exceptions import BookingError, InvalidDateRange
from domain.intake import BookingIntake
from domain.ledger import Amount, LedgerResult, compute_ledger
from domain.repositories import ReservationRepository
from domain.value_objects import DateRange
from infrastructure.config import Settings

logger = logging.getLogger("guesthouse.services")


class ReservationService:
    """Service for Reservation business use cases"""

    def __init__(self, repository: ReservationRepository, settings: Settings):
        self.repository = repository
        self.settings = settings

    async def submit_booking(
        self,
        raw: Dict[str, Any],
        channel: IntakeChannel = IntakeChannel.GUEST,
        created_by: str = "GUEST",
        today: Optional[date] = None
    ) -> BookingIntake:
        """Run a booking candidate through intake and persist it"""
        intake = BookingIntake.propose(raw, channel)
        existing = await self.repository.find_active()

        try:
            reservation = intake.validate_against(
                existing,
                capacity=self.settings.room_capacity,
                today=today or date.today(),
                overpayment_policy=self.settings.overpayment_policy,
                created_by=created_by,
                max_nights=self.settings.max_stay_nights
            )
            await self.repository.save_if_available(reservation, self.settings.room_capacity)
        except BookingError as e:
            if not intake.is_rejected:
                # Lost a race for the last room between the check and the write
                intake.reject(e)
            logger.info("Booking rejected (%s): %s", intake.rejection_reason.value, e)
            raise

        intake.mark_persisted()
        self._warn_if_overpaid(reservation, reservation.ledger())
        logger.info(
            "Booking %s persisted via %s channel for %s to %s",
            reservation.confirmation_code, channel.value,
            reservation.check_in, reservation.check_out
        )
        return intake

    async def get_reservation(self, reservation_id: UUID) -> Optional[Reservation]:
        """Get reservation by ID"""
        return await self.repository.find_by_id(reservation_id)

    async def get_reservation_by_confirmation_code(self, code: str) -> Optional[Reservation]:
        """Get reservation by confirmation code"""
        return await self.repository.find_by_confirmation_code(code)

    async def get_all_reservations(
        self,
        status: Optional[ReservationStatus] = None,
        search: Optional[str] = None
    ) -> List[Reservation]:
        """Get all reservations, optionally filtered by status and a search term"""
        return await self.repository.find_all(status, search)

    async def confirm_reservation(self, reservation_id: UUID) -> Optional[Reservation]:
        """Confirm a pending reservation"""
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            return None

        try:
            reservation.confirm()
        except ValueError as e:
            raise ValueError(f"Cannot confirm reservation: {str(e)}")

        logger.info("Reservation %s confirmed", reservation.confirmation_code)
        return await self.repository.update(reservation, self.settings.room_capacity)

    async def cancel_reservation(
        self,
        reservation_id: UUID,
        reason: Optional[str] = None
    ) -> Optional[Reservation]:
        """Cancel reservation, freeing its nights"""
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            return None

        try:
            reservation.cancel(reason)
        except ValueError as e:
            raise ValueError(f"Cannot cancel reservation: {str(e)}")

        logger.info("Reservation %s cancelled", reservation.confirmation_code)
        return await self.repository.update(reservation, self.settings.room_capacity)

    async def reinstate_reservation(self, reservation_id: UUID) -> Optional[Reservation]:
        """Bring a cancelled reservation back if its nights are still free"""
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            return None

        try:
            reservation.reinstate()
        except ValueError as e:
            raise ValueError(f"Cannot reinstate reservation: {str(e)}")

        ensure_capacity(
            await self.repository.find_active(),
            reservation.check_in,
            reservation.check_out,
            self.settings.room_capacity,
            exclude_id=reservation.reservation_id
        )
        logger.info("Reservation %s reinstated", reservation.confirmation_code)
        return await self.repository.update(reservation, self.settings.room_capacity)

    async def record_payments(
        self,
        reservation_id: UUID,
        initial_payment: Optional[Amount] = None,
        final_payment: Optional[Amount] = None
    ) -> Optional[Reservation]:
        """Overwrite payment amounts and re-derive the ledger"""
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            return None

        ledger = reservation.record_payments(
            initial_payment=initial_payment,
            final_payment=final_payment,
            overpayment_policy=self.settings.overpayment_policy
        )
        self._warn_if_overpaid(reservation, ledger)
        logger.info(
            "Payments on %s updated: paid %s of %s (%s)",
            reservation.confirmation_code, ledger.total_paid,
            ledger.total_amount, ledger.payment_state.value
        )
        return await self.repository.update(reservation, self.settings.room_capacity)

    async def reschedule_reservation(
        self,
        reservation_id: UUID,
        check_in: date,
        check_out: date
    ) -> Optional[Reservation]:
        """Move a reservation to new dates if every new night has a room"""
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            return None

        try:
            new_range = DateRange(check_in=check_in, check_out=check_out)
        except ValidationError:
            raise InvalidDateRange("Check-out must be after check-in")
        if new_range.nights() > self.settings.max_stay_nights:
            raise InvalidDateRange(f"Stay cannot exceed {self.settings.max_stay_nights} nights")

        try:
            reservation.reschedule(new_range)
        except ValueError as e:
            raise ValueError(f"Cannot reschedule reservation: {str(e)}")

        ensure_capacity(
            await self.repository.find_active(),
            check_in,
            check_out,
            self.settings.room_capacity,
            exclude_id=reservation.reservation_id
        )
        logger.info(
            "Reservation %s moved to %s - %s",
            reservation.confirmation_code, check_in, check_out
        )
        return await self.repository.update(reservation, self.settings.room_capacity)

    def quote(
        self,
        room_category: RoomCategory,
        check_in: date,
        check_out: date,
        initial_payment: Optional[Amount] = None,
        final_payment: Optional[Amount] = None
    ) -> LedgerResult:
        """Ledger preview for a stay before it is booked"""
        return compute_ledger(
            room_category.nightly_rate, check_in, check_out, initial_payment, final_payment
        )

    def _warn_if_overpaid(self, reservation: Reservation, ledger: LedgerResult) -> None:
        if ledger.is_overpaid and self.settings.overpayment_policy == OverpaymentPolicy.FLAG:
            logger.warning(
                "Reservation %s overpaid by %s",
                reservation.confirmation_code, ledger.overpaid_amount
            )


class AvailabilityService:
    """Service for Availability queries over the current reservations"""

    def __init__(self, repository: ReservationRepository, settings: Settings):
        self.repository = repository
        self.settings = settings

    async def get_day(self, day: date) -> DayAvailability:
        """Availability on a single day"""
        reservations = await self.repository.find_active()
        return compute_availability(reservations, day, self.settings.room_capacity)

    async def get_range(self, start_date: date, end_date: date) -> RangeAvailability:
        """Availability for each day of an inclusive range"""
        ensure_span(start_date, end_date, self.settings.max_range_days)
        reservations = await self.repository.find_active()
        return compute_availability(
            reservations, (start_date, end_date), self.settings.room_capacity
        )

    async def get_window(self, start_date: date, days: Optional[int] = None) -> RangeAvailability:
        """Rolling availability window for calendars and dashboards"""
        days = days or self.settings.reporting_window_days
        ensure_span(start_date, start_date + timedelta(days=days - 1), self.settings.max_range_days)
        reservations = await self.repository.find_active()
        return rolling_window(reservations, start_date, days, self.settings.room_capacity)

    async def check_stay(self, check_in: date, check_out: date) -> RangeAvailability:
        """Availability over the nights of a prospective stay"""
        ensure_span(check_in, check_out - timedelta(days=1), self.settings.max_range_days)
        reservations = await self.repository.find_active()
        return stay_availability(reservations, check_in, check_out, self.settings.room_capacity)


class BookingStatistics(BaseModel):
    """Dashboard counters over all reservations"""
    total: int
    pending: int
    confirmed: int
    cancelled: int
    total_guests: int
    total_revenue: Decimal
    outstanding_balance: Decimal
    unpaid_bookings: int
    partially_paid_bookings: int
    upcoming_check_ins: int
    bookings_this_month: int
    today: DayAvailability


class ReportingService:
    """Service for staff dashboard figures"""

    def __init__(self, repository: ReservationRepository, settings: Settings):
        self.repository = repository
        self.settings = settings

    async def booking_statistics(self, today: Optional[date] = None) -> BookingStatistics:
        today = today or date.today()
        reservations = await self.repository.find_all()
        horizon = today + timedelta(days=self.settings.reporting_window_days)
        month_start = today.replace(day=1)

        not_cancelled = [r for r in reservations if r.status != ReservationStatus.CANCELLED]
        ledgers = {r.reservation_id: r.ledger() for r in reservations}

        def count(status: ReservationStatus) -> int:
            return sum(1 for r in reservations if r.status == status)

        return BookingStatistics(
            total=len(reservations),
            pending=count(ReservationStatus.PENDING),
            confirmed=count(ReservationStatus.CONFIRMED),
            cancelled=count(ReservationStatus.CANCELLED),
            total_guests=sum(r.guest.guests_count for r in reservations),
            total_revenue=sum((ledgers[r.reservation_id].total_paid for r in reservations), Decimal("0")),
            outstanding_balance=sum(
                (ledgers[r.reservation_id].balance_due for r in not_cancelled), Decimal("0")
            ),
            unpaid_bookings=sum(
                1 for r in not_cancelled
                if ledgers[r.reservation_id].payment_state == PaymentState.UNPAID
            ),
            partially_paid_bookings=sum(
                1 for r in reservations
                if ledgers[r.reservation_id].payment_state == PaymentState.PARTIALLY_PAID
            ),
            upcoming_check_ins=sum(
                1 for r in reservations
                if r.status == ReservationStatus.CONFIRMED and today <= r.check_in <= horizon
            ),
            bookings_this_month=sum(
                1 for r in not_cancelled if r.created_at.date() >= month_start
            ),
            today=compute_availability(
                [r for r in reservations if r.is_active()], today, self.settings.room_capacity
            ),
        )
