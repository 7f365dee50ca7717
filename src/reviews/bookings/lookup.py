"""Booking lookup with bounded retries.

Dependency failures are transient by assumption: the lookup is retried
with exponential backoff and only the last failure reaches the caller.
"""

import time

from reviews.bookings import get_booking_directory
from reviews.bookings.port import BookingParties
from reviews.errors import DependencyError
from reviews.settings import get_settings
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


def lookup_booking(booking_id) -> BookingParties | None:
    settings = get_settings()
    directory = get_booking_directory()
    attempts = settings.booking_lookup_retries

    for attempt in range(1, attempts + 1):
        try:
            return directory.get_booking_parties(str(booking_id))
        except DependencyError:
            if attempt == attempts:
                logger.error("Booking lookup failed", booking_id=str(booking_id), attempts=attempts)
                raise
            delay = settings.booking_retry_backoff_seconds * (2 ** (attempt - 1))
            logger.warning(
                "Booking lookup failed, retrying",
                booking_id=str(booking_id),
                attempt=attempt,
                retry_in=delay,
            )
            time.sleep(delay)
