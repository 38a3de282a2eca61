"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, date
from typing import Optional
from decimal import Decimal

from domain.enums import ReservationStatus, RoomCategory, PaymentState, OverpaymentPolicy
from domain.exceptions import OverpaymentDetected
from domain.ledger import LedgerResult, compute_ledger, Amount
from domain.value_objects import DateRange, GuestDetails


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity

    Ledger figures (nights, totals, balance, payment state) are never stored
    on the aggregate; they are recomputed from rate, dates and payments each
    time they are read.
    """

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)
    confirmation_code: str

    # Value Objects
    guest: GuestDetails
    date_range: DateRange

    # Pricing inputs
    room_category: RoomCategory
    room_rate: Decimal = Field(ge=0)
    initial_payment: Decimal = Field(ge=0, default=Decimal("0"))
    final_payment: Decimal = Field(ge=0, default=Decimal("0"))

    # Enums/Status
    status: ReservationStatus = ReservationStatus.PENDING
    cancellation_reason: Optional[str] = None

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)
    created_by: str = "SYSTEM"
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        guest: GuestDetails,
        room_category: RoomCategory,
        date_range: DateRange,
        status: ReservationStatus = ReservationStatus.PENDING,
        initial_payment: Optional[Amount] = None,
        final_payment: Optional[Amount] = None,
        overpayment_policy: OverpaymentPolicy = OverpaymentPolicy.FLAG,
        created_by: str = "SYSTEM"
    ) -> "Reservation":
        """Create new reservation with the rate of its room category"""
        room_rate = room_category.nightly_rate

        # Validates amounts and stay length before anything is built
        ledger = compute_ledger(
            room_rate,
            date_range.check_in,
            date_range.check_out,
            initial_payment,
            final_payment
        )
        Reservation._apply_overpayment_policy(ledger, overpayment_policy)

        return Reservation(
            confirmation_code=Reservation._generate_confirmation_code(),
            guest=guest,
            date_range=date_range,
            room_category=room_category,
            room_rate=room_rate,
            initial_payment=ledger.initial_payment,
            final_payment=ledger.final_payment,
            status=status,
            created_by=created_by
        )

    # ==================== LEDGER VIEW ====================
    def ledger(self) -> LedgerResult:
        """Derive the ledger from the current rate, dates and payments"""
        return compute_ledger(
            self.room_rate,
            self.check_in,
            self.check_out,
            self.initial_payment,
            self.final_payment
        )

    @property
    def check_in(self) -> date:
        return self.date_range.check_in

    @property
    def check_out(self) -> date:
        return self.date_range.check_out

    @property
    def nights(self) -> int:
        return self.ledger().nights

    @property
    def total_amount(self) -> Decimal:
        return self.ledger().total_amount

    @property
    def total_paid(self) -> Decimal:
        return self.ledger().total_paid

    @property
    def balance_due(self) -> Decimal:
        return self.ledger().balance_due

    @property
    def payment_state(self) -> PaymentState:
        return self.ledger().payment_state

    # ==================== STATE TRANSITION METHODS ====================
    def confirm(self) -> None:
        """Confirm a pending reservation"""
        if self.status != ReservationStatus.PENDING:
            raise ValueError(
                f"Cannot confirm reservation with status {self.status.value}"
            )

        self.status = ReservationStatus.CONFIRMED
        self._touch()

    def cancel(self, reason: Optional[str] = None) -> None:
        """Cancel reservation, releasing its rooms"""
        if not self.is_active():
            raise ValueError(
                f"Cannot cancel reservation with status {self.status.value}"
            )

        self.status = ReservationStatus.CANCELLED
        self.cancellation_reason = reason
        self._touch()

    def reinstate(self) -> None:
        """Return a cancelled reservation to pending"""
        if self.status != ReservationStatus.CANCELLED:
            raise ValueError(
                f"Cannot reinstate reservation with status {self.status.value}"
            )

        self.status = ReservationStatus.PENDING
        self.cancellation_reason = None
        self._touch()

    # ==================== MODIFICATION METHODS ====================
    def record_payments(
        self,
        initial_payment: Optional[Amount] = None,
        final_payment: Optional[Amount] = None,
        overpayment_policy: OverpaymentPolicy = OverpaymentPolicy.FLAG
    ) -> LedgerResult:
        """Overwrite either payment field and return the new ledger"""
        new_initial = self.initial_payment if initial_payment is None else initial_payment
        new_final = self.final_payment if final_payment is None else final_payment

        ledger = compute_ledger(
            self.room_rate, self.check_in, self.check_out, new_initial, new_final
        )
        Reservation._apply_overpayment_policy(ledger, overpayment_policy)

        self.initial_payment = ledger.initial_payment
        self.final_payment = ledger.final_payment
        self._touch()
        return ledger

    def reschedule(self, new_date_range: DateRange) -> None:
        """Move an active reservation to new dates"""
        if not self.is_active():
            raise ValueError(
                f"Cannot reschedule reservation with status {self.status.value}"
            )

        self.date_range = new_date_range
        self._touch()

    # ==================== QUERY METHODS ====================
    def is_active(self) -> bool:
        """Check if reservation consumes room inventory"""
        return self.status.is_active

    def matches_search(self, query: str) -> bool:
        """Case-insensitive match on guest name, email and room category; phone as typed"""
        query = query.lower()
        return (
            query in self.guest.guest_name.lower()
            or query in self.guest.email.lower()
            or query in self.guest.phone
            or query in self.room_category.value.lower()
        )

    def to_record(self) -> dict:
        """Flatten into the persisted reservation shape, ledger included"""
        ledger = self.ledger()
        return {
            "id": str(self.reservation_id),
            "confirmation_code": self.confirmation_code,
            "guest_name": self.guest.guest_name,
            "email": self.guest.email,
            "phone": self.guest.phone,
            "guests_count": self.guest.guests_count,
            "special_requests": self.guest.special_requests,
            "room_type": self.room_category.value,
            "check_in_date": self.check_in.isoformat(),
            "check_out_date": self.check_out.isoformat(),
            "status": self.status.value,
            "room_rate": self.room_rate,
            "initial_payment": ledger.initial_payment,
            "final_payment": ledger.final_payment,
            "nights": ledger.nights,
            "total_amount": ledger.total_amount,
            "total_paid": ledger.total_paid,
            "balance_due": ledger.balance_due,
            "payment_status": ledger.payment_state.value,
            "created_at": self.created_at.isoformat(),
        }

    # ==================== PRIVATE METHODS ====================
    @staticmethod
    def _apply_overpayment_policy(ledger: LedgerResult, policy: OverpaymentPolicy) -> None:
        if ledger.is_overpaid and policy == OverpaymentPolicy.REJECT:
            raise OverpaymentDetected(ledger.total_amount, ledger.total_paid)

    @staticmethod
    def _generate_confirmation_code() -> str:
        """Generate unique confirmation code"""
        import random
        import string
        return ''.join(random.choices(string.ascii_uppercase + string.digits, k=8))

    def _touch(self) -> None:
        self.modified_at = datetime.utcnow()
        self.version += 1
