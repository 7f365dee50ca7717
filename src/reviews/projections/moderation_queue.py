"""ModerationQueue — pending and disputed reviews awaiting moderator action."""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from reviews.domain import reviews
from reviews.review.events import (
    ReviewApproved,
    ReviewDeleted,
    ReviewEdited,
    ReviewFlagged,
    ReviewRejected,
    ReviewSubmitted,
)
from reviews.review.review import Review, ReviewStatus


@reviews.projection
class ModerationQueue:
    review_id = Identifier(identifier=True, required=True)
    booking_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    rating = Float(required=True)
    comment = Text()
    status = String(required=True)  # "Pending" or "Disputed"
    flag_reason = String()
    flagged_by = Identifier()
    submitted_at = DateTime()
    queued_at = DateTime(required=True)  # Oldest first


def _drop(review_id):
    repo = current_domain.repository_for(ModerationQueue)
    try:
        entry = repo.get(review_id)
    except ObjectNotFoundError:
        return
    repo._dao.delete(entry)


@reviews.projector(projector_for=ModerationQueue, aggregates=[Review])
class ModerationQueueProjector:
    @on(ReviewSubmitted)
    def on_review_submitted(self, event):
        current_domain.repository_for(ModerationQueue).add(
            ModerationQueue(
                review_id=event.review_id,
                booking_id=event.booking_id,
                reviewer_id=event.reviewer_id,
                subject_id=event.subject_id,
                subject_role=event.subject_role,
                rating=event.rating,
                comment=event.comment,
                status=ReviewStatus.PENDING.value,
                submitted_at=event.submitted_at,
                queued_at=event.submitted_at,
            )
        )

    @on(ReviewEdited)
    def on_review_edited(self, event):
        repo = current_domain.repository_for(ModerationQueue)
        try:
            entry = repo.get(event.review_id)
        except ObjectNotFoundError:
            return  # Published reviews are not queued
        entry.rating = event.rating
        entry.comment = event.comment
        repo.add(entry)

    @on(ReviewApproved)
    def on_review_approved(self, event):
        _drop(event.review_id)

    @on(ReviewRejected)
    def on_review_rejected(self, event):
        _drop(event.review_id)

    @on(ReviewDeleted)
    def on_review_deleted(self, event):
        _drop(event.review_id)

    @on(ReviewFlagged)
    def on_review_flagged(self, event):
        # The review left the queue when it was approved; it comes back as a dispute
        review = current_domain.repository_for(Review).get(event.review_id)
        current_domain.repository_for(ModerationQueue).add(
            ModerationQueue(
                review_id=event.review_id,
                booking_id=str(review.booking_id),
                reviewer_id=str(review.reviewer_id),
                subject_id=event.subject_id,
                subject_role=event.subject_role,
                rating=review.rating.score,
                comment=review.comment,
                status=ReviewStatus.DISPUTED.value,
                flag_reason=event.reason,
                flagged_by=event.flagged_by,
                submitted_at=review.created_at,
                queued_at=event.flagged_at,
            )
        )


def moderation_queue(status=None, limit=None):
    """Entries awaiting a moderator, oldest first."""
    query = current_domain.repository_for(ModerationQueue)._dao.query
    if status is not None:
        query = query.filter(status=status)
    query = query.order_by("queued_at")
    if limit is not None:
        query = query.limit(limit)
    return list(query.all().items)
