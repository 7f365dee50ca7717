"""Booking directory factory.

Provides get_booking_directory() / set_booking_directory() to swap
implementations:
- HttpBookingDirectory when REVIEWS_BOOKING_SERVICE_URL is configured
- ProjectedBookingDirectory (local replica of completed bookings) otherwise
- FakeBookingDirectory in tests, installed with set_booking_directory()
"""

from reviews.bookings.port import BookingDirectory
from reviews.settings import get_settings

_current_directory: BookingDirectory | None = None


def _default_directory() -> BookingDirectory:
    settings = get_settings()
    if settings.booking_service_url:
        from reviews.bookings.http_adapter import HttpBookingDirectory

        return HttpBookingDirectory(settings.booking_service_url, timeout=settings.booking_timeout_seconds)

    from reviews.bookings.projection_adapter import ProjectedBookingDirectory

    return ProjectedBookingDirectory()


def get_booking_directory() -> BookingDirectory:
    """Return the current booking directory, building the default on first use."""
    global _current_directory
    if _current_directory is None:
        _current_directory = _default_directory()
    return _current_directory


def set_booking_directory(directory: BookingDirectory) -> None:
    """Override the active booking directory (useful for tests)."""
    global _current_directory
    _current_directory = directory


def reset_booking_directory() -> None:
    """Reset to the default directory."""
    global _current_directory
    _current_directory = None
