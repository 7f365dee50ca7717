"""Booking directory port (abstract interface).

The Reviews domain does not own bookings. Before accepting a review it
asks the booking side who the two parties are and whether the booking is
completed. Adapters implement this contract for the remote Bookings
service, for the locally projected replica, and for tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime

COMPLETED = "completed"


@dataclass(frozen=True)
class BookingParties:
    """The two parties of a booking and where the booking stands."""

    booking_id: str
    client_id: str
    supplier_id: str
    status: str
    service_category: str | None = None
    event_date: date | None = None
    completed_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return (self.status or "").lower() == COMPLETED

    def role_of(self, party_id) -> str | None:
        """Return "Client" or "Supplier" for a party of this booking, else None."""
        if str(party_id) == str(self.client_id):
            return "Client"
        if str(party_id) == str(self.supplier_id):
            return "Supplier"
        return None

    def other_party(self, party_id) -> str | None:
        if str(party_id) == str(self.client_id):
            return str(self.supplier_id)
        if str(party_id) == str(self.supplier_id):
            return str(self.client_id)
        return None


class BookingDirectory(ABC):
    """Read-only view of bookings, as needed to validate reviews."""

    @abstractmethod
    def get_booking_parties(self, booking_id: str) -> BookingParties | None:
        """Return the booking's parties, or None if the booking does not exist.

        Raises DependencyError when the directory cannot answer.
        """
