"""RatingMaintainer — keeps each party's SubjectRating in step with its reviews.

Reacts to every Review event that can move a review into or out of the
rating. Rather than trusting the event alone, it reads the review's
current state and includes or excludes it accordingly, so duplicate or
late deliveries settle on the same result. A concurrent writer to the same
SubjectRating surfaces as ExpectedVersionError, or as a duplicate key when
both raced to create it, and the losing side re-reads and tries again.
"""

from protean.exceptions import (
    ExpectedVersionError,
    ObjectNotFoundError,
    TransactionError,
    ValidationError,
)
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.rating.subject_rating import SubjectRating, subject_key
from reviews.review.events import (
    ReviewApproved,
    ReviewDeleted,
    ReviewEdited,
    ReviewFlagged,
    ReviewRejected,
)
from reviews.review.review import Review
from reviews.settings import get_settings
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


def _current_review(review_id) -> Review | None:
    try:
        return current_domain.repository_for(Review).get(review_id)
    except ObjectNotFoundError:
        return None


def _lost_write_race(exc) -> bool:
    if isinstance(exc, ExpectedVersionError):
        return True
    # Another writer created the rating first
    if isinstance(exc, ValidationError):
        return "subject_key" in (exc.messages or {})
    if isinstance(exc, TransactionError):
        return (exc.extra_info or {}).get("original_exception") == "IntegrityError"
    return False


def reconcile(review_id, subject_id, subject_role) -> bool:
    """Bring the subject's rating in line with the review's current state.

    Returns True if the rating changed.
    """
    repo = current_domain.repository_for(SubjectRating)
    key = subject_key(subject_id, subject_role)
    attempts = get_settings().rating_update_retries

    for attempt in range(1, attempts + 1):
        try:
            rating = repo.get(key)
        except ObjectNotFoundError:
            rating = SubjectRating.open(subject_id, subject_role)

        review = _current_review(review_id)
        if review is not None and review.counts_toward_rating:
            changed = rating.include(review_id, review.rating.score)
        else:
            changed = rating.exclude(review_id)

        if not changed:
            return False

        try:
            repo.add(rating)
        except (ExpectedVersionError, ValidationError, TransactionError) as exc:
            if not _lost_write_race(exc):
                raise
            if attempt == attempts:
                logger.error("Rating update conflict, giving up", subject_key=key, review_id=str(review_id))
                raise
            logger.warning("Rating update conflict, retrying", subject_key=key, attempt=attempt)
            continue

        logger.info(
            "Subject rating recalculated",
            subject_key=key,
            review_id=str(review_id),
            average_rating=rating.average_rating,
            review_count=rating.review_count,
        )
        return True

    return False


@reviews.event_handler(part_of=Review)
class RatingMaintainer:
    @handle(ReviewApproved)
    def on_review_approved(self, event: ReviewApproved) -> None:
        reconcile(event.review_id, event.subject_id, event.subject_role)

    @handle(ReviewRejected)
    def on_review_rejected(self, event: ReviewRejected) -> None:
        reconcile(event.review_id, event.subject_id, event.subject_role)

    @handle(ReviewFlagged)
    def on_review_flagged(self, event: ReviewFlagged) -> None:
        reconcile(event.review_id, event.subject_id, event.subject_role)

    @handle(ReviewEdited)
    def on_review_edited(self, event: ReviewEdited) -> None:
        reconcile(event.review_id, event.subject_id, event.subject_role)

    @handle(ReviewDeleted)
    def on_review_deleted(self, event: ReviewDeleted) -> None:
        reconcile(event.review_id, event.subject_id, event.subject_role)
