"""Domain Exceptions"""
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from domain.enums import RejectionReason


class BookingError(ValueError):
    """Base class for booking rule violations surfaced to the caller"""

    reason: Optional[RejectionReason] = None


class InvalidDateRange(BookingError):
    reason = RejectionReason.DATE_RANGE


class InvalidPaymentAmount(BookingError):
    reason = RejectionReason.PAYMENT


class OverpaymentDetected(BookingError):
    reason = RejectionReason.PAYMENT

    def __init__(self, total_amount: Decimal, total_paid: Decimal):
        self.total_amount = total_amount
        self.total_paid = total_paid
        super().__init__(
            f"Payments of {total_paid} exceed the total amount of {total_amount}"
        )


class FieldValidationError(BookingError):
    reason = RejectionReason.FIELD_VALIDATION

    def __init__(self, errors: List[dict]):
        self.errors = errors
        fields = ", ".join(
            ".".join(str(part) for part in error.get("loc", ())) or "input"
            for error in errors
        )
        super().__init__(f"Invalid booking details: {fields}")


class CapacityExceeded(BookingError):
    """A stay would need a room on a day with none free"""

    reason = RejectionReason.CAPACITY

    def __init__(self, full_days: List[Tuple[date, int]], capacity: int):
        self.full_days = full_days
        self.capacity = capacity
        self.max_occupied = max((occupied for _, occupied in full_days), default=0)
        super().__init__(
            f"No rooms available for selected dates. "
            f"{self.max_occupied} of {capacity} rooms are already booked."
        )

    @property
    def days(self) -> List[date]:
        return [day for day, _ in self.full_days]
