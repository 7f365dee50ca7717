"""Cross-domain event contracts for Bookings domain events.

These classes define the event shape for consumption by other domains
(e.g., the Reviews domain to learn which bookings are completed and who
the two parties were). They are registered as external events via
domain.register_external_event() with matching __type__ strings so
Protean's stream deserialization works correctly.

The source-of-truth events live in the Bookings service.
"""

from protean.core.event import BaseEvent
from protean.fields import Date, DateTime, Identifier, String


class BookingCompleted(BaseEvent):
    """The service of a booking was delivered and the booking closed."""

    __version__ = 1

    booking_id = Identifier(required=True)
    client_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    service_category = String()
    event_date = Date()
    completed_at = DateTime(required=True)
