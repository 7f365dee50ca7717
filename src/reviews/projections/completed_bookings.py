"""CompletedBookings — local replica of completed bookings and their parties.

Populated by BookingEventsHandler from Bookings domain events and read by
ProjectedBookingDirectory when validating review submissions.
"""

from protean.fields import Date, DateTime, Identifier, String

from reviews.domain import reviews


@reviews.projection
class CompletedBookings:
    booking_id = Identifier(identifier=True, required=True)
    client_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    service_category = String(max_length=100)
    event_date = Date()
    completed_at = DateTime()
