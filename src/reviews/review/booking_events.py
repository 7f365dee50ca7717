"""Inbound cross-domain event handler — Reviews reacts to Bookings events.

Listens for BookingCompleted events from the Bookings domain to populate
the CompletedBookings projection, which backs the booking directory used
by the SubmitReview handler.

Cross-domain events are imported from shared.events.bookings and registered
as external events via reviews.register_external_event().
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.bookings import BookingCompleted

from reviews.domain import reviews
from reviews.projections.completed_bookings import CompletedBookings
from reviews.review.review import Review

logger = structlog.get_logger(__name__)

# Register external event so Protean can deserialize it
reviews.register_external_event(BookingCompleted, "Bookings.BookingCompleted.v1")


@reviews.event_handler(part_of=Review, stream_category="bookings::booking")
class BookingEventsHandler:
    """Reacts to Bookings domain events to track completed bookings."""

    @handle(BookingCompleted)
    def on_booking_completed(self, event: BookingCompleted) -> None:
        if str(event.client_id) == str(event.supplier_id):
            logger.warning(
                "BookingCompleted has the same party on both sides, skipping",
                booking_id=str(event.booking_id),
            )
            return

        # Redelivery overwrites the same row
        current_domain.repository_for(CompletedBookings).add(
            CompletedBookings(
                booking_id=str(event.booking_id),
                client_id=str(event.client_id),
                supplier_id=str(event.supplier_id),
                service_category=event.service_category,
                event_date=event.event_date,
                completed_at=event.completed_at,
            )
        )
        logger.info("Recorded completed booking", booking_id=str(event.booking_id))
