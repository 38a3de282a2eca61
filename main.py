import logging
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.responses import Response
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Bookings
    GuestBookingRequest, StaffBookingRequest, BookingResponse, ReservationResponse,
    CancelReservationRequest, RecordPaymentsRequest, RescheduleRequest,
    LedgerPreviewRequest, LedgerResponse,
    # Availability
    DayAvailabilityResponse, RangeAvailabilityResponse,
    # Auth
    Token, StaffUserResponse
)
from api.dependencies import authenticate_staff, get_current_staff
from application.services import (
    ReservationService, AvailabilityService, ReportingService, BookingStatistics
)
from domain.auth import StaffUser
from domain.availability import DayAvailability, RangeAvailability
from domain.entities import Reservation
from domain.enums import IntakeChannel, PaymentState, ReservationStatus, RoomCategory
from domain.exceptions import BookingError, CapacityExceeded
from domain.intake import BookingIntake
from domain.ledger import LedgerResult
from infrastructure.config import get_settings
from infrastructure.export import export_reservations_csv
from infrastructure.repositories.in_memory_repositories import InMemoryReservationRepository
from infrastructure.security import create_access_token

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

app = FastAPI(
    title="Guest House Booking API",
    description="Room availability and booking ledger for a guest house with one shared room pool",
    version="1.0.0"
)

# Initialize repositories
reservation_repo = InMemoryReservationRepository()


# Dependency injection
def get_reservation_service() -> ReservationService:
    return ReservationService(reservation_repo, settings)


def get_availability_service() -> AvailabilityService:
    return AvailabilityService(reservation_repo, settings)


def get_reporting_service() -> ReportingService:
    return ReportingService(reservation_repo, settings)


# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "room_capacity": settings.room_capacity}


@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus values"""
    return {
        "values": [item.value for item in ReservationStatus],
        "active": [item.value for item in ReservationStatus if item.is_active]
    }


@app.get("/api/enums/payment-state", tags=["Enum Reference"])
async def get_payment_states():
    """Get all PaymentState values"""
    return {"values": [item.value for item in PaymentState]}


@app.get("/api/enums/room-category", tags=["Enum Reference"])
async def get_room_categories():
    """Get room categories with their nightly rates"""
    return {
        "values": [
            {"value": item.value, "label": item.label, "nightly_rate": item.nightly_rate}
            for item in RoomCategory
        ],
        "currency": settings.currency
    }


# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = authenticate_staff(form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"access_token": create_access_token(user.username), "token_type": "bearer"}


@app.get("/users/me", response_model=StaffUserResponse, tags=["Auth"])
async def read_users_me(current_user: StaffUser = Depends(get_current_staff)):
    return current_user


# ============================================================================
# BOOKING INTAKE ENDPOINTS
# ============================================================================

@app.post("/api/bookings", response_model=BookingResponse, status_code=201, tags=["Bookings"])
async def submit_guest_booking(
    request: GuestBookingRequest,
    service: ReservationService = Depends(get_reservation_service)
):
    """Public booking form; always creates a pending, unpaid reservation"""
    try:
        intake = await service.submit_booking(
            request.model_dump(), channel=IntakeChannel.GUEST, created_by="GUEST"
        )
        return _intake_to_response(intake)
    except ValueError as e:
        raise _to_http_error(e)


@app.post("/api/reservations", response_model=BookingResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: StaffBookingRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: StaffUser = Depends(get_current_staff)
):
    """Staff booking form; may set status, payments and past dates"""
    try:
        intake = await service.submit_booking(
            request.model_dump(), channel=IntakeChannel.ADMIN, created_by=current_user.username
        )
        return _intake_to_response(intake)
    except ValueError as e:
        raise _to_http_error(e)


# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_all_reservations(
    status: Optional[ReservationStatus] = None,
    search: Optional[str] = None,
    service: ReservationService = Depends(get_reservation_service),
    current_user: StaffUser = Depends(get_current_staff)
):
    """Get all reservations, optionally filtered by status and search term"""
    reservations = await service.get_all_reservations(status, search)
    return [_reservation_to_response(r) for r in reservations]


@app.get("/api/reservations/export", tags=["Reservations"])
async def export_reservations(
    status: Optional[ReservationStatus] = None,
    search: Optional[str] = None,
    service: ReservationService = Depends(get_reservation_service),
    current_user: StaffUser = Depends(get_current_staff)
):
    """Download the filtered reservations as CSV"""
    reservations = await service.get_all_reservations(status, search)
    filename = f"bookings-export-{datetime.utcnow().strftime('%Y-%m-%d-%H%M%S')}.csv"
    return Response(
        content=export_reservations_csv(reservations),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@app.get("/api/reservations/code/{confirmation_code}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation_by_code(
    confirmation_code: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: StaffUser = Depends(get_current_staff)
):
    """Get reservation by confirmation code"""
    reservation = await service.get_reservation_by_confirmation_code(confirmation_code)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)


@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: StaffUser = Depends(get_current_staff)
):
    """Get reservation by ID"""
    reservation = await service.get_reservation(reservation_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)


@app.post("/api/reservations/{reservation_id}/confirm", response_model=ReservationResponse, tags=["Reservations"])
async def confirm_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: StaffUser = Depends(get_current_staff)
):
    """Confirm a pending reservation"""
    try:
        reservation = await service.confirm_reservation(reservation_id)
    except ValueError as e:
        raise _to_http_error(e)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)


@app.post("/api/reservations/{reservation_id}/cancel", response_model=ReservationResponse, tags=["Reservations"])
async def cancel_reservation(
    reservation_id: UUID,
    request: CancelReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: StaffUser = Depends(get_current_staff)
):
    """Cancel reservation"""
    try:
        reservation = await service.cancel_reservation(reservation_id, reason=request.reason)
    except ValueError as e:
        raise _to_http_error(e)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)


@app.post("/api/reservations/{reservation_id}/reinstate", response_model=ReservationResponse, tags=["Reservations"])
async def reinstate_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: StaffUser = Depends(get_current_staff)
):
    """Return a cancelled reservation to pending"""
    try:
        reservation = await service.reinstate_reservation(reservation_id)
    except ValueError as e:
        raise _to_http_error(e)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)


@app.put("/api/reservations/{reservation_id}/payments", response_model=ReservationResponse, tags=["Reservations"])
async def record_payments(
    reservation_id: UUID,
    request: RecordPaymentsRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: StaffUser = Depends(get_current_staff)
):
    """Record initial and/or final payment amounts"""
    try:
        reservation = await service.record_payments(
            reservation_id,
            initial_payment=request.initial_payment,
            final_payment=request.final_payment
        )
    except ValueError as e:
        raise _to_http_error(e)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)


@app.put("/api/reservations/{reservation_id}/dates", response_model=ReservationResponse, tags=["Reservations"])
async def reschedule_reservation(
    reservation_id: UUID,
    request: RescheduleRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: StaffUser = Depends(get_current_staff)
):
    """Move reservation to new dates"""
    try:
        reservation = await service.reschedule_reservation(
            reservation_id, check_in=request.check_in, check_out=request.check_out
        )
    except ValueError as e:
        raise _to_http_error(e)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)


# ============================================================================
# LEDGER ENDPOINTS
# ============================================================================

@app.post("/api/ledger/preview", response_model=LedgerResponse, tags=["Ledger"])
async def preview_ledger(
    request: LedgerPreviewRequest,
    service: ReservationService = Depends(get_reservation_service)
):
    """Quote the ledger of a stay before booking"""
    try:
        ledger = service.quote(
            request.room_category,
            request.check_in,
            request.check_out,
            initial_payment=request.initial_payment,
            final_payment=request.final_payment
        )
    except ValueError as e:
        raise _to_http_error(e)
    return _ledger_to_response(ledger)


# ============================================================================
# AVAILABILITY ENDPOINTS
# ============================================================================

@app.get("/api/availability", response_model=RangeAvailabilityResponse, tags=["Availability"])
async def get_availability_range(
    start: date,
    end: date,
    service: AvailabilityService = Depends(get_availability_service)
):
    """Availability for each day of an inclusive range"""
    try:
        availability = await service.get_range(start, end)
    except ValueError as e:
        raise _to_http_error(e)
    return _range_to_response(availability)


@app.get("/api/availability/window", response_model=RangeAvailabilityResponse, tags=["Availability"])
async def get_availability_window(
    days: Optional[int] = Query(None, ge=1, le=366),
    start: Optional[date] = None,
    service: AvailabilityService = Depends(get_availability_service)
):
    """Rolling availability window, starting today by default"""
    availability = await service.get_window(start or date.today(), days)
    return _range_to_response(availability)


@app.get("/api/availability/stay", response_model=RangeAvailabilityResponse, tags=["Availability"])
async def check_stay_availability(
    check_in: date,
    check_out: date,
    service: AvailabilityService = Depends(get_availability_service)
):
    """Availability over the nights of a prospective stay"""
    try:
        availability = await service.check_stay(check_in, check_out)
    except ValueError as e:
        raise _to_http_error(e)
    return _range_to_response(availability)


@app.get("/api/availability/{day}", response_model=DayAvailabilityResponse, tags=["Availability"])
async def get_day_availability(
    day: date,
    service: AvailabilityService = Depends(get_availability_service)
):
    """Availability on a single day"""
    return _day_to_response(await service.get_day(day))


# ============================================================================
# REPORTING ENDPOINTS
# ============================================================================

@app.get("/api/statistics", response_model=BookingStatistics, tags=["Reporting"])
async def get_statistics(
    service: ReportingService = Depends(get_reporting_service),
    current_user: StaffUser = Depends(get_current_staff)
):
    """Dashboard counters"""
    return await service.booking_statistics()


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _to_http_error(e: ValueError) -> HTTPException:
    """Map a rejected operation to an HTTP error the caller can display"""
    if isinstance(e, CapacityExceeded):
        return HTTPException(status_code=409, detail={
            "message": str(e),
            "reason": e.reason.value,
            "capacity": e.capacity,
            "full_days": [
                {"day": day.isoformat(), "occupied": occupied}
                for day, occupied in e.full_days
            ]
        })
    if isinstance(e, BookingError):
        return HTTPException(status_code=400, detail={
            "message": str(e),
            "reason": e.reason.value if e.reason else None
        })
    return HTTPException(status_code=400, detail=str(e))


def _ledger_to_response(ledger: LedgerResult) -> LedgerResponse:
    return LedgerResponse(
        nights=ledger.nights,
        room_rate=ledger.room_rate,
        total_amount=ledger.total_amount,
        initial_payment=ledger.initial_payment,
        final_payment=ledger.final_payment,
        total_paid=ledger.total_paid,
        balance_due=ledger.balance_due,
        overpaid_amount=ledger.overpaid_amount,
        is_overpaid=ledger.is_overpaid,
        payment_state=ledger.payment_state.value,
        currency=settings.currency
    )


def _reservation_to_response(reservation: Reservation) -> ReservationResponse:
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        confirmation_code=reservation.confirmation_code,
        guest_name=reservation.guest.guest_name,
        email=reservation.guest.email,
        phone=reservation.guest.phone,
        guests_count=reservation.guest.guests_count,
        special_requests=reservation.guest.special_requests,
        room_category=reservation.room_category.value,
        check_in=reservation.check_in,
        check_out=reservation.check_out,
        status=reservation.status.value,
        cancellation_reason=reservation.cancellation_reason,
        ledger=_ledger_to_response(reservation.ledger()),
        created_at=reservation.created_at,
        modified_at=reservation.modified_at,
        created_by=reservation.created_by,
        version=reservation.version
    )


def _intake_to_response(intake: BookingIntake) -> BookingResponse:
    return BookingResponse(
        intake_state=intake.state.value,
        reservation=_reservation_to_response(intake.reservation)
    )


def _day_to_response(day: DayAvailability) -> DayAvailabilityResponse:
    return DayAvailabilityResponse(
        day=day.day,
        capacity=day.capacity,
        occupied=day.occupied,
        free=day.free,
        is_full=day.is_full,
        level=day.level.value,
        reservation_ids=day.reservation_ids
    )


def _range_to_response(availability: RangeAvailability) -> RangeAvailabilityResponse:
    return RangeAvailabilityResponse(
        start=availability.start,
        end=availability.end,
        capacity=availability.capacity,
        max_occupied=availability.max_occupied,
        is_bookable=availability.is_bookable,
        days=[_day_to_response(d) for d in availability.days]
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
