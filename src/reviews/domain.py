"""Reviews & Ratings bounded context — two-way booking reviews.

Clients review the suppliers they booked and suppliers review their
clients. Handles the review lifecycle (CQRS), moderation with disputes,
subject responses, and maintenance of each subject's aggregate rating.
Integrates with the Bookings domain through cross-domain events.
"""

from protean.domain import Domain

from reviews.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

reviews = Domain(name="reviews")
