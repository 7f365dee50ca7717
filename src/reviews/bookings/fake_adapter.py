"""In-memory booking directory for development and testing.

Bookings are registered directly with `add_booking()`. The directory can
be told to fail a number of upcoming lookups to exercise retry handling.
"""

from reviews.bookings.port import COMPLETED, BookingDirectory, BookingParties
from reviews.errors import DependencyError


class FakeBookingDirectory(BookingDirectory):
    """Configurable in-memory booking directory."""

    def __init__(self) -> None:
        self.bookings: dict[str, BookingParties] = {}
        self.failures_remaining: int = 0
        self.calls: list[str] = []

    def add_booking(
        self,
        booking_id,
        client_id,
        supplier_id,
        status=COMPLETED,
        service_category=None,
        event_date=None,
        completed_at=None,
    ) -> BookingParties:
        booking = BookingParties(
            booking_id=str(booking_id),
            client_id=str(client_id),
            supplier_id=str(supplier_id),
            status=status,
            service_category=service_category,
            event_date=event_date,
            completed_at=completed_at,
        )
        self.bookings[booking.booking_id] = booking
        return booking

    def fail_next(self, count: int = 1) -> None:
        """Make the next `count` lookups raise DependencyError."""
        self.failures_remaining = count

    def get_booking_parties(self, booking_id: str) -> BookingParties | None:
        self.calls.append(str(booking_id))

        if self.failures_remaining > 0:
            self.failures_remaining -= 1
            raise DependencyError({"booking_id": ["Booking service unavailable"]})

        return self.bookings.get(str(booking_id))
