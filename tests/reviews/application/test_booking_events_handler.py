"""Application tests for the cross-domain BookingCompleted event handler."""

from datetime import UTC, date, datetime

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError
from reviews.bookings import reset_booking_directory
from reviews.projections.completed_bookings import CompletedBookings
from reviews.review.booking_events import BookingEventsHandler
from reviews.review.review import Review
from reviews.review.submission import SubmitReview
from shared.events.bookings import BookingCompleted


def _completed(booking_id="bk-ev-001", client_id="client-ev", supplier_id="supplier-ev"):
    return BookingCompleted(
        booking_id=booking_id,
        client_id=client_id,
        supplier_id=supplier_id,
        service_category="Catering",
        event_date=date(2026, 8, 1),
        completed_at=datetime.now(UTC),
    )


class TestBookingCompletedHandler:
    def test_records_completed_booking(self):
        BookingEventsHandler().on_booking_completed(_completed())

        record = current_domain.repository_for(CompletedBookings).get("bk-ev-001")
        assert str(record.client_id) == "client-ev"
        assert str(record.supplier_id) == "supplier-ev"
        assert record.service_category == "Catering"

    def test_redelivery_keeps_one_record(self):
        handler = BookingEventsHandler()
        handler.on_booking_completed(_completed())
        handler.on_booking_completed(_completed())

        records = current_domain.repository_for(CompletedBookings)._dao.query.filter(booking_id="bk-ev-001").all()
        assert len(records.items) == 1

    def test_skips_booking_with_one_party(self):
        BookingEventsHandler().on_booking_completed(_completed(client_id="same", supplier_id="same"))
        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(CompletedBookings).get("bk-ev-001")


class TestProjectedBookingDirectory:
    def test_submission_validates_against_replica(self):
        reset_booking_directory()
        BookingEventsHandler().on_booking_completed(_completed())

        review_id = current_domain.process(
            SubmitReview(
                booking_id="bk-ev-001",
                reviewer_id="client-ev",
                reviewer_role="Client",
                subject_id="supplier-ev",
                subject_role="Supplier",
                rating=4.5,
            ),
            asynchronous=False,
        )
        review = current_domain.repository_for(Review).get(review_id)
        assert review.service_category == "Catering"
        assert review.service_date == date(2026, 8, 1)
