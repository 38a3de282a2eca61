"""Payment Ledger Calculator

Derives the financial summary of a stay from its nightly rate, its dates and
the payments recorded against it. The result is a pure function of those
inputs: nothing here is stored or cached, so recomputing with the same
arguments always yields an equal ``LedgerResult``.
"""
import math
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel

from domain.enums import PaymentState
from domain.exceptions import InvalidDateRange, InvalidPaymentAmount

Amount = Union[Decimal, int, float, str]

ZERO = Decimal("0")


class LedgerResult(BaseModel):
    """Value Object for the derived ledger of a reservation"""
    nights: int
    room_rate: Decimal
    total_amount: Decimal
    initial_payment: Decimal
    final_payment: Decimal
    total_paid: Decimal
    balance_due: Decimal
    overpaid_amount: Decimal
    payment_state: PaymentState

    class Config:
        frozen = True

    @property
    def is_overpaid(self) -> bool:
        return self.overpaid_amount > 0


def to_amount(value: Optional[Amount], field: str = "amount") -> Decimal:
    """Normalise a currency input, treating unset values as zero"""
    if value is None:
        return ZERO
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if amount < 0:
        raise InvalidPaymentAmount(f"{field} cannot be negative")
    return amount


def count_nights(check_in: date, check_out: date) -> int:
    """Whole nights between two dates, rounding partial days up"""
    nights = math.ceil((check_out - check_in) / timedelta(days=1))
    if nights < 1:
        raise InvalidDateRange("Check-out must be after check-in")
    return nights


def classify_payment(total_paid: Decimal, balance_due: Decimal) -> PaymentState:
    if total_paid == 0:
        return PaymentState.UNPAID
    if balance_due == 0:
        return PaymentState.FULLY_PAID
    return PaymentState.PARTIALLY_PAID


def compute_ledger(
    rate: Amount,
    check_in: date,
    check_out: date,
    initial_payment: Optional[Amount] = None,
    final_payment: Optional[Amount] = None,
) -> LedgerResult:
    """Compute nights, totals, balance and payment state for a stay"""
    room_rate = to_amount(rate, "Room rate")
    initial = to_amount(initial_payment, "Initial payment")
    final = to_amount(final_payment, "Final payment")

    nights = count_nights(check_in, check_out)
    total_amount = nights * room_rate
    total_paid = initial + final

    # Overpayment never drives the balance negative
    balance_due = max(ZERO, total_amount - total_paid)
    overpaid_amount = max(ZERO, total_paid - total_amount)

    return LedgerResult(
        nights=nights,
        room_rate=room_rate,
        total_amount=total_amount,
        initial_payment=initial,
        final_payment=final,
        total_paid=total_paid,
        balance_due=balance_due,
        overpaid_amount=overpaid_amount,
        payment_state=classify_payment(total_paid, balance_due),
    )
