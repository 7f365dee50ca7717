"""Integration tests for ReviewRepository listing queries."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from reviews.review.moderation import ModerateReview
from reviews.review.review import Review
from reviews.review.submission import SubmitReview


def _submit(bookings, booking_id, client_id, supplier_id="supplier-P", rating=4, approve=True):
    bookings.add_booking(booking_id, client_id=client_id, supplier_id=supplier_id)
    review_id = current_domain.process(
        SubmitReview(
            booking_id=booking_id,
            reviewer_id=client_id,
            reviewer_role="Client",
            subject_id=supplier_id,
            subject_role="Supplier",
            rating=rating,
        ),
        asynchronous=False,
    )
    if approve:
        current_domain.process(
            ModerateReview(review_id=review_id, moderator_id="mod-001", action="Approve"),
            asynchronous=False,
        )
    return review_id


@pytest.fixture
def repo():
    return current_domain.repository_for(Review)


class TestForSubject:
    def test_lists_only_approved_reviews_by_default(self, bookings, repo):
        approved = _submit(bookings, "bk-1", "c-1")
        _submit(bookings, "bk-2", "c-2", approve=False)

        page = repo.for_subject("supplier-P", "Supplier")
        assert [r.id for r in page.items] == [approved]
        assert page.total == 1
        assert page.next_cursor is None

    def test_status_none_lists_every_status(self, bookings, repo):
        _submit(bookings, "bk-1", "c-1")
        _submit(bookings, "bk-2", "c-2", approve=False)

        page = repo.for_subject("supplier-P", "Supplier", status=None)
        assert page.total == 2

    def test_filters_by_status(self, bookings, repo):
        _submit(bookings, "bk-1", "c-1")
        pending = _submit(bookings, "bk-2", "c-2", approve=False)

        page = repo.for_subject("supplier-P", "Supplier", status="Pending")
        assert [r.id for r in page.items] == [pending]

    def test_subject_role_is_part_of_the_key(self, bookings, repo):
        _submit(bookings, "bk-1", "c-1")
        page = repo.for_subject("supplier-P", "Client")
        assert page.items == []

    def test_paginates_with_cursor(self, bookings, repo):
        ids = {_submit(bookings, f"bk-{n}", f"c-{n}") for n in range(5)}

        first = repo.for_subject("supplier-P", "Supplier", limit=2)
        assert len(first.items) == 2
        assert first.next_cursor == "2"

        second = repo.for_subject("supplier-P", "Supplier", cursor=first.next_cursor, limit=2)
        assert len(second.items) == 2
        assert second.next_cursor == "4"

        third = repo.for_subject("supplier-P", "Supplier", cursor=second.next_cursor, limit=2)
        assert len(third.items) == 1
        assert third.next_cursor is None

        seen = [r.id for r in first.items + second.items + third.items]
        assert set(seen) == ids
        assert len(seen) == len(ids)

    def test_newest_first(self, bookings, repo):
        for n in range(3):
            _submit(bookings, f"bk-{n}", f"c-{n}")
        page = repo.for_subject("supplier-P", "Supplier")
        created = [r.created_at for r in page.items]
        assert created == sorted(created, reverse=True)

    def test_invalid_cursor_is_rejected(self, repo):
        with pytest.raises(ValidationError) as exc:
            repo.for_subject("supplier-P", "Supplier", cursor="abc")
        assert "cursor" in exc.value.messages

    def test_negative_cursor_is_rejected(self, repo):
        with pytest.raises(ValidationError):
            repo.for_subject("supplier-P", "Supplier", cursor="-2")

    def test_limit_below_one_is_rejected(self, repo):
        with pytest.raises(ValidationError) as exc:
            repo.for_subject("supplier-P", "Supplier", limit=0)
        assert "limit" in exc.value.messages

    def test_limit_is_capped(self, bookings, repo, review_settings):
        review_settings(page_size=1, max_page_size=2)
        for n in range(3):
            _submit(bookings, f"bk-{n}", f"c-{n}")
        page = repo.for_subject("supplier-P", "Supplier", limit=50)
        assert len(page.items) == 2
        assert page.next_cursor == "2"


class TestByReviewer:
    def test_lists_every_status(self, bookings, repo):
        bookings.add_booking("bk-a", client_id="c-1", supplier_id="s-1")
        bookings.add_booking("bk-b", client_id="c-1", supplier_id="s-2")
        for booking_id, supplier in (("bk-a", "s-1"), ("bk-b", "s-2")):
            current_domain.process(
                SubmitReview(
                    booking_id=booking_id,
                    reviewer_id="c-1",
                    reviewer_role="Client",
                    subject_id=supplier,
                    subject_role="Supplier",
                    rating=3,
                ),
                asynchronous=False,
            )

        page = repo.by_reviewer("c-1", "Client")
        assert page.total == 2
        assert {r.status for r in page.items} == {"Pending"}

    def test_reviewer_role_is_respected(self, bookings, repo):
        _submit(bookings, "bk-1", "c-1")
        assert repo.by_reviewer("c-1", "Supplier").items == []


class TestBookingLookups:
    def test_for_booking_returns_both_directions(self, bookings, repo):
        bookings.add_booking("bk-both", client_id="c-1", supplier_id="s-1")
        current_domain.process(
            SubmitReview(
                booking_id="bk-both",
                reviewer_id="c-1",
                reviewer_role="Client",
                subject_id="s-1",
                subject_role="Supplier",
                rating=5,
            ),
            asynchronous=False,
        )
        current_domain.process(
            SubmitReview(
                booking_id="bk-both",
                reviewer_id="s-1",
                reviewer_role="Supplier",
                subject_id="c-1",
                subject_role="Client",
                rating=4,
            ),
            asynchronous=False,
        )
        reviews = repo.for_booking("bk-both")
        assert {r.reviewer_role for r in reviews} == {"Client", "Supplier"}

    def test_has_reviewed(self, bookings, repo):
        _submit(bookings, "bk-1", "c-1", approve=False)
        assert repo.has_reviewed("bk-1", "c-1") is True
        assert repo.has_reviewed("bk-1", "supplier-P") is False

    def test_find_for_missing_review(self, repo):
        assert repo.find_for("bk-none", "c-1") is None
