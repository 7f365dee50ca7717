"""Booking directory backed by the CompletedBookings projection.

The projection is a local replica fed by BookingCompleted events from the
Bookings domain, so a lookup never leaves the Reviews database.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from reviews.bookings.port import COMPLETED, BookingDirectory, BookingParties
from reviews.projections.completed_bookings import CompletedBookings


class ProjectedBookingDirectory(BookingDirectory):
    def get_booking_parties(self, booking_id: str) -> BookingParties | None:
        repo = current_domain.repository_for(CompletedBookings)
        try:
            record = repo.get(str(booking_id))
        except ObjectNotFoundError:
            return None

        return BookingParties(
            booking_id=str(record.booking_id),
            client_id=str(record.client_id),
            supplier_id=str(record.supplier_id),
            status=COMPLETED,
            service_category=record.service_category,
            event_date=record.event_date,
            completed_at=record.completed_at,
        )
