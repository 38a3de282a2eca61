"""Domain Enums"""
from decimal import Decimal
from enum import Enum


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        """Active reservations consume room inventory"""
        return self in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


class PaymentState(str, Enum):
    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    FULLY_PAID = "fully_paid"


class RoomCategory(str, Enum):
    STANDARD_ROOM_ONLY = "standard-room-only"
    STANDARD_WITH_BREAKFAST = "standard-with-breakfast"

    @property
    def nightly_rate(self) -> Decimal:
        """Rate per night fixed at booking time"""
        return ROOM_RATES[self]

    @property
    def label(self) -> str:
        return ROOM_LABELS[self]


ROOM_RATES = {
    RoomCategory.STANDARD_ROOM_ONLY: Decimal("250"),
    RoomCategory.STANDARD_WITH_BREAKFAST: Decimal("280"),
}

ROOM_LABELS = {
    RoomCategory.STANDARD_ROOM_ONLY: "Standard Room (Room Only)",
    RoomCategory.STANDARD_WITH_BREAKFAST: "Standard Room (With Breakfast)",
}


class OccupancyLevel(str, Enum):
    AVAILABLE = "available"
    PARTIALLY_BOOKED = "partially_booked"
    FULLY_BOOKED = "fully_booked"


class IntakeState(str, Enum):
    PROPOSED = "proposed"
    VALIDATED = "validated"
    PERSISTED = "persisted"
    REJECTED = "rejected"


class IntakeChannel(str, Enum):
    GUEST = "guest"
    ADMIN = "admin"


class RejectionReason(str, Enum):
    DATE_RANGE = "date_range"
    FIELD_VALIDATION = "field_validation"
    CAPACITY = "capacity"
    PAYMENT = "payment"


class OverpaymentPolicy(str, Enum):
    CLAMP = "clamp"
    FLAG = "flag"
    REJECT = "reject"
