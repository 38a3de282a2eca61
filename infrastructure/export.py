"""CSV export of reservations for staff"""
import csv
import io
from typing import Iterable

from domain.entities import Reservation

CSV_HEADERS = [
    "ID",
    "Guest Name",
    "Email",
    "Phone",
    "Room Type",
    "Check-in Date",
    "Check-out Date",
    "Guests",
    "Status",
    "Payment Status",
    "Total Amount",
    "Total Paid",
    "Balance Due",
    "Special Requests",
    "Created At",
]


def export_reservations_csv(reservations: Iterable[Reservation]) -> str:
    """Render reservations as CSV, every cell quoted"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for reservation in reservations:
        ledger = reservation.ledger()
        writer.writerow([
            reservation.reservation_id,
            reservation.guest.guest_name,
            reservation.guest.email,
            reservation.guest.phone,
            reservation.room_category.label,
            reservation.check_in.isoformat(),
            reservation.check_out.isoformat(),
            reservation.guest.guests_count,
            reservation.status.value,
            ledger.payment_state.value,
            ledger.total_amount,
            ledger.total_paid,
            ledger.balance_due,
            reservation.guest.special_requests or "",
            reservation.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        ])

    return buffer.getvalue()
