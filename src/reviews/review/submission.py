"""SubmitReview — one party reviews the other party of a completed booking.

Enforces one review per (booking, reviewer) at handler level and checks
the booking through the booking directory before anything is written.
Under the `immediate` moderation mode the review is approved as part of
the same unit of work.
"""

import json
from datetime import UTC, datetime, timedelta

from protean.exceptions import TransactionError, ValidationError
from protean.fields import Date, Float, Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.bookings.lookup import lookup_booking
from reviews.domain import reviews
from reviews.errors import ConflictError
from reviews.review.review import Review, parse_role, review_id_for
from reviews.settings import ModerationMode, get_settings
from reviews.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SERVICE_CATEGORY = "Serviço"
SYSTEM_MODERATOR = "system"


@reviews.command(part_of="Review")
class SubmitReview:
    booking_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    reviewer_role = String(required=True)  # "Client" or "Supplier"
    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    rating = Float(required=True)
    comment = Text()
    tags = Text()  # JSON array of strings
    photo_refs = Text()  # JSON array of media references
    service_category = String(max_length=100)
    service_date = Date()


def parse_json_list(value, field):
    if not value:
        return []
    try:
        items = json.loads(value)
    except ValueError:
        raise ValidationError({field: ["Must be a JSON array"]}) from None
    if not isinstance(items, list):
        raise ValidationError({field: ["Must be a JSON array"]})
    return items


def _check_booking(booking, command, reviewer_role):
    if booking is None:
        raise ValidationError({"booking_id": ["Booking not found"]})
    if not booking.is_completed:
        raise ValidationError({"booking_id": ["Only completed bookings can be reviewed"]})

    role = booking.role_of(command.reviewer_id)
    if role is None:
        raise ValidationError({"booking_id": ["Reviewer is not a party to this booking"]})
    if role != reviewer_role.value:
        raise ValidationError({"booking_id": [f"Reviewer is the {role} of this booking"]})
    if booking.other_party(command.reviewer_id) != str(command.subject_id):
        raise ValidationError({"booking_id": ["Subject must be the other party of this booking"]})


def _lost_identity_race(exc) -> bool:
    """Whether a failed write collided with a review stored by a concurrent submission.

    The collision surfaces as a uniqueness error on `id` when the other
    submission committed first, or as a commit-time integrity error on SQL
    stores when both writes were in flight together.
    """
    if isinstance(exc, ValidationError):
        return "id" in (exc.messages or {})
    if isinstance(exc, TransactionError):
        return (exc.extra_info or {}).get("original_exception") == "IntegrityError"
    return False


def _duplicate(review_id) -> ConflictError:
    return ConflictError({"review": ["You have already reviewed this booking"]}, review_id=str(review_id))


def _warn_if_late(booking):
    if booking.completed_at is None:
        return
    completed_at = booking.completed_at
    if completed_at.tzinfo is None:
        completed_at = completed_at.replace(tzinfo=UTC)

    window = timedelta(days=get_settings().review_window_days)
    if datetime.now(UTC) - completed_at > window:
        logger.warning(
            "Late review for booking",
            booking_id=booking.booking_id,
            completed_at=completed_at.isoformat(),
        )


@reviews.command_handler(part_of=Review)
class SubmitReviewHandler:
    @handle(SubmitReview)
    def submit_review(self, command):
        reviewer_role = parse_role(command.reviewer_role, "reviewer_role")
        repo = current_domain.repository_for(Review)

        # One review per booking and reviewer
        existing = repo.find_for(command.booking_id, command.reviewer_id)
        if existing is not None:
            raise _duplicate(existing.id)

        booking = lookup_booking(command.booking_id)
        _check_booking(booking, command, reviewer_role)
        _warn_if_late(booking)

        review = Review.submit(
            booking_id=command.booking_id,
            reviewer_id=command.reviewer_id,
            reviewer_role=reviewer_role.value,
            subject_id=command.subject_id,
            subject_role=command.subject_role,
            rating=command.rating,
            service_category=command.service_category or booking.service_category or DEFAULT_SERVICE_CATEGORY,
            service_date=command.service_date or booking.event_date,
            comment=command.comment,
            tags=parse_json_list(command.tags, "tags"),
            photo_refs=parse_json_list(command.photo_refs, "photo_refs"),
        )

        if get_settings().moderation_mode == ModerationMode.IMMEDIATE:
            review.approve(moderator_id=SYSTEM_MODERATOR, notes="Approved on submission")

        try:
            repo.add(review)
        except ValidationError as exc:
            if not _lost_identity_race(exc):
                raise
            logger.info("Concurrent duplicate review", review_id=str(review.id))
            raise _duplicate(review.id) from exc

        logger.info(
            "Review submitted",
            review_id=str(review.id),
            booking_id=str(command.booking_id),
            subject_id=str(command.subject_id),
            status=review.status,
        )
        return str(review.id)


def process_submission(command: SubmitReview) -> str:
    """Process a SubmitReview and return the review id.

    A duplicate that is only detected when the unit of work commits is
    reported like any other duplicate, as a ConflictError carrying the
    id of the review that won.
    """
    try:
        return current_domain.process(command, asynchronous=False)
    except (ValidationError, TransactionError) as exc:
        if not _lost_identity_race(exc):
            raise
        raise _duplicate(review_id_for(command.booking_id, command.reviewer_id)) from exc
