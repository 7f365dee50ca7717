"""Booking directory backed by the Bookings service HTTP API.

Expects `GET {base_url}/bookings/{booking_id}` to answer with the booking
document (`clientId`, `supplierId`, `status`, optional `packageName`,
`eventDate`, `completedAt`). A 404 means the booking does not exist; any
other failure is a DependencyError.
"""

from datetime import date, datetime

import requests

from reviews.bookings.port import BookingDirectory, BookingParties
from reviews.errors import DependencyError
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


def _parse_date(value) -> date | None:
    if not value:
        return None
    return date.fromisoformat(str(value)[:10])


def _parse_datetime(value) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class HttpBookingDirectory(BookingDirectory):
    def __init__(self, base_url: str, timeout: float = 5.0, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_booking_parties(self, booking_id: str) -> BookingParties | None:
        url = f"{self.base_url}/bookings/{booking_id}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Booking service request failed", booking_id=str(booking_id), error=str(exc))
            raise DependencyError({"booking_id": ["Booking service unavailable"]}) from exc

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            logger.warning(
                "Booking service returned an error",
                booking_id=str(booking_id),
                status_code=response.status_code,
            )
            raise DependencyError({"booking_id": [f"Booking service answered {response.status_code}"]})

        try:
            payload = response.json()
            return BookingParties(
                booking_id=str(payload.get("id") or booking_id),
                client_id=str(payload["clientId"]),
                supplier_id=str(payload["supplierId"]),
                status=str(payload["status"]),
                service_category=payload.get("serviceCategory") or payload.get("packageName"),
                event_date=_parse_date(payload.get("eventDate")),
                completed_at=_parse_datetime(payload.get("completedAt")),
            )
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Unexpected booking payload", booking_id=str(booking_id), error=str(exc))
            raise DependencyError({"booking_id": ["Booking service returned an unexpected payload"]}) from exc
