"""Application tests for SubmitReview command handler."""

import json
from datetime import UTC, date, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import TransactionError, ValidationError
from reviews.domain import reviews
from reviews.errors import ConflictError, DependencyError
from reviews.rating.subject_rating import rating_for
from reviews.review import submission
from reviews.review.moderation import ModerateReview
from reviews.review.review import Review, ReviewStatus, review_id_for
from reviews.review.submission import SubmitReview, process_submission


@pytest.fixture(autouse=True)
def booking(bookings):
    return bookings.add_booking(
        "bk-001",
        client_id="client-001",
        supplier_id="supplier-001",
        service_category="Fotografia",
        event_date=date(2026, 6, 20),
        completed_at=datetime.now(UTC) - timedelta(days=2),
    )


def _submit_review(**overrides):
    defaults = {
        "booking_id": "bk-001",
        "reviewer_id": "client-001",
        "reviewer_role": "Client",
        "subject_id": "supplier-001",
        "subject_role": "Supplier",
        "rating": 5,
    }
    defaults.update(overrides)
    return current_domain.process(SubmitReview(**defaults), asynchronous=False)


class TestSubmitReviewCommand:
    def test_submit_persists_pending_review(self):
        review_id = _submit_review(comment="Fotos lindas")
        review = current_domain.repository_for(Review).get(review_id)
        assert str(review.booking_id) == "bk-001"
        assert review.rating.score == 5.0
        assert review.comment == "Fotos lindas"
        assert review.status == ReviewStatus.PENDING.value

    def test_pending_review_does_not_touch_rating(self):
        _submit_review()
        rating = rating_for("supplier-001", "Supplier")
        assert rating.review_count == 0
        assert rating.average_rating == 5.0

    def test_submit_with_tags_and_photos(self):
        review_id = _submit_review(
            tags=json.dumps(["Pontual", "Criativo"]),
            photo_refs=json.dumps(["p/1.jpg", "p/2.jpg"]),
        )
        review = current_domain.repository_for(Review).get(review_id)
        assert review.tag_list == ["Pontual", "Criativo"]
        assert review.photo_refs == ["p/1.jpg", "p/2.jpg"]

    def test_malformed_tags_are_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _submit_review(tags="Pontual")
        assert "tags" in exc.value.messages

    def test_both_parties_can_review_the_same_booking(self):
        first = _submit_review()
        second = _submit_review(
            reviewer_id="supplier-001",
            reviewer_role="Supplier",
            subject_id="client-001",
            subject_role="Client",
        )
        assert first != second
        assert len(current_domain.repository_for(Review).for_booking("bk-001")) == 2


class TestOneReviewPerBookingAndReviewer:
    def test_second_submission_conflicts(self):
        review_id = _submit_review(rating=4)
        with pytest.raises(ConflictError) as exc:
            _submit_review(rating=1)
        assert exc.value.review_id == review_id

    def test_conflict_creates_nothing_and_keeps_rating(self):
        review_id = _submit_review(rating=5)
        current_domain.process(
            ModerateReview(review_id=review_id, moderator_id="mod-001", action="Approve"),
            asynchronous=False,
        )
        with pytest.raises(ConflictError):
            _submit_review(rating=1)

        assert len(current_domain.repository_for(Review).for_booking("bk-001")) == 1
        review = current_domain.repository_for(Review).get(review_id)
        assert review.rating.score == 5.0
        rating = rating_for("supplier-001", "Supplier")
        assert rating.review_count == 1
        assert rating.average_rating == 5.0


class TestBookingValidation:
    def test_unknown_booking(self):
        with pytest.raises(ValidationError) as exc:
            _submit_review(booking_id="bk-missing")
        assert "booking_id" in exc.value.messages

    def test_booking_not_completed(self, bookings):
        bookings.add_booking("bk-open", "client-001", "supplier-001", status="confirmed")
        with pytest.raises(ValidationError) as exc:
            _submit_review(booking_id="bk-open")
        assert "completed" in exc.value.messages["booking_id"][0]

    def test_reviewer_not_a_party(self):
        with pytest.raises(ValidationError):
            _submit_review(reviewer_id="client-999")

    def test_reviewer_claims_wrong_role(self):
        with pytest.raises(ValidationError):
            _submit_review(
                reviewer_id="client-001",
                reviewer_role="Supplier",
                subject_id="supplier-001",
                subject_role="Client",
            )

    def test_subject_must_be_other_party(self):
        with pytest.raises(ValidationError):
            _submit_review(subject_id="supplier-other")

    def test_invalid_rating_creates_nothing(self):
        with pytest.raises(ValidationError):
            _submit_review(rating=6)
        assert current_domain.repository_for(Review).for_booking("bk-001") == []


class TestServiceContext:
    def test_defaults_come_from_booking(self):
        review = current_domain.repository_for(Review).get(_submit_review())
        assert review.service_category == "Fotografia"
        assert review.service_date == date(2026, 6, 20)

    def test_explicit_values_win(self):
        review_id = _submit_review(service_category="Vídeo", service_date=date(2026, 6, 21))
        review = current_domain.repository_for(Review).get(review_id)
        assert review.service_category == "Vídeo"
        assert review.service_date == date(2026, 6, 21)

    def test_generic_category_when_booking_has_none(self, bookings):
        bookings.add_booking("bk-bare", "client-001", "supplier-001")
        review = current_domain.repository_for(Review).get(_submit_review(booking_id="bk-bare"))
        assert review.service_category == "Serviço"
        assert review.service_date is None

    def test_late_review_is_accepted(self, bookings):
        bookings.add_booking(
            "bk-old",
            "client-001",
            "supplier-001",
            completed_at=datetime.now(UTC) - timedelta(days=200),
        )
        review_id = _submit_review(booking_id="bk-old")
        assert current_domain.repository_for(Review).get(review_id).status == ReviewStatus.PENDING.value


class TestBookingServiceFailures:
    def test_transient_failures_are_retried(self, bookings, review_settings):
        review_settings(booking_retry_backoff_seconds=0)
        bookings.fail_next(2)
        review_id = _submit_review()
        assert review_id is not None
        assert bookings.calls == ["bk-001", "bk-001", "bk-001"]

    def test_persistent_failure_surfaces_and_creates_nothing(self, bookings, review_settings):
        review_settings(booking_retry_backoff_seconds=0, booking_lookup_retries=2)
        bookings.fail_next(5)
        with pytest.raises(DependencyError):
            _submit_review()
        assert len(bookings.calls) == 2
        assert current_domain.repository_for(Review).for_booking("bk-001") == []


class TestModerationModes:
    def test_immediate_mode_approves_on_submission(self, review_settings):
        review_settings(moderation_mode="immediate")
        review_id = _submit_review(rating=4)
        review = current_domain.repository_for(Review).get(review_id)
        assert review.status == ReviewStatus.APPROVED.value
        assert review.is_public is True
        rating = rating_for("supplier-001", "Supplier")
        assert rating.review_count == 1
        assert rating.average_rating == 4.0

    def test_delayed_mode_leaves_review_pending(self, review_settings):
        review_settings(moderation_mode="delayed")
        review = current_domain.repository_for(Review).get(_submit_review())
        assert review.status == ReviewStatus.PENDING.value


class TestConcurrentDuplicateSubmission:
    """A duplicate that lands between the uniqueness check and the write."""

    @pytest.fixture
    def racing_submission(self, monkeypatch):
        real_lookup = submission.lookup_booking
        raced = []
        started = []

        def lookup_after_duplicate(booking_id):
            if not started:
                started.append(booking_id)
                raced.append(_submit_review(rating=2))
            return real_lookup(booking_id)

        monkeypatch.setattr(submission, "lookup_booking", lookup_after_duplicate)
        return raced

    def test_losing_write_reports_conflict_with_review_id(self, racing_submission):
        with pytest.raises(ConflictError) as exc:
            _submit_review(rating=4)

        assert racing_submission == [review_id_for("bk-001", "client-001")]
        assert exc.value.review_id == review_id_for("bk-001", "client-001")
        assert "review" in exc.value.messages

    def test_process_submission_reports_conflict(self, racing_submission):
        command = SubmitReview(
            booking_id="bk-001",
            reviewer_id="client-001",
            reviewer_role="Client",
            subject_id="supplier-001",
            subject_role="Supplier",
            rating=4,
        )
        with pytest.raises(ConflictError) as exc:
            process_submission(command)
        assert exc.value.review_id == review_id_for("bk-001", "client-001")


class TestProcessSubmission:
    def _command(self, **overrides):
        values = {
            "booking_id": "bk-001",
            "reviewer_id": "client-001",
            "reviewer_role": "Client",
            "subject_id": "supplier-001",
            "subject_role": "Supplier",
            "rating": 5,
        }
        values.update(overrides)
        return SubmitReview(**values)

    def test_returns_review_id(self):
        assert process_submission(self._command()) == review_id_for("bk-001", "client-001")

    def test_integrity_error_at_commit_becomes_conflict(self, monkeypatch):
        def failing_commit(command, asynchronous=True):
            raise TransactionError(
                "Unit of Work commit failed: duplicate key",
                extra_info={"original_exception": "IntegrityError", "original_message": "duplicate key"},
            )

        monkeypatch.setattr(reviews, "process", failing_commit)
        with pytest.raises(ConflictError) as exc:
            process_submission(self._command())
        assert exc.value.review_id == review_id_for("bk-001", "client-001")

    def test_other_commit_failures_propagate(self, monkeypatch):
        def failing_commit(command, asynchronous=True):
            raise TransactionError(
                "Unit of Work commit failed: connection reset",
                extra_info={"original_exception": "OperationalError"},
            )

        monkeypatch.setattr(reviews, "process", failing_commit)
        with pytest.raises(TransactionError):
            process_submission(self._command())

    def test_validation_errors_on_other_fields_propagate(self):
        with pytest.raises(ValidationError):
            process_submission(self._command(rating=9))
