"""Domain events for the Review aggregate.

All events are versioned, immutable facts representing state changes.
Events are used for:
- Updating projections via projectors
- Maintaining the subject's aggregate rating (RatingMaintainer)
- Notifying the other party through the notifications stream
"""

from protean.fields import Boolean, Date, DateTime, Float, Identifier, Integer, String, Text

from reviews.domain import reviews


@reviews.event(part_of="Review")
class ReviewSubmitted:
    """A party submitted a review for a completed booking."""

    __version__ = 1

    review_id = Identifier(required=True)
    booking_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    reviewer_role = String(required=True)
    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    rating = Float(required=True)
    comment = Text()
    tags = Text()  # JSON array of strings
    photo_count = Integer(default=0)
    service_category = String()
    service_date = Date()
    submitted_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewEdited:
    """The reviewer changed the content of their review."""

    __version__ = 1

    review_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    status = String(required=True)
    rating = Float(required=True)
    previous_rating = Float(required=True)
    comment = Text()
    tags = Text()
    edited_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewApproved:
    """A moderator (or the auto-approval policy) published the review."""

    __version__ = 1

    review_id = Identifier(required=True)
    booking_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    rating = Float(required=True)
    moderator_id = Identifier(required=True)
    after_dispute = Boolean(default=False)
    approved_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewRejected:
    """A moderator rejected the review. Rejection is final."""

    __version__ = 1

    review_id = Identifier(required=True)
    booking_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    moderator_id = Identifier(required=True)
    reason = String(required=True)
    previous_status = String(required=True)
    rejected_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewFlagged:
    """A published review was flagged and is now disputed."""

    __version__ = 1

    review_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    flagged_by = Identifier(required=True)
    reason = String(required=True)
    flagged_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewDisputeResolved:
    """A moderator settled a dispute."""

    __version__ = 1

    review_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    moderator_id = Identifier(required=True)
    outcome = String(required=True)
    resolved_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewResponded:
    """The reviewed party wrote or replaced their response."""

    __version__ = 1

    review_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    response = Text(required=True)
    responded_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewResponseRemoved:
    """The reviewed party withdrew their response."""

    __version__ = 1

    review_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    removed_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewDeleted:
    """The reviewer deleted their review."""

    __version__ = 1

    review_id = Identifier(required=True)
    booking_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    status = String(required=True)
    rating = Float(required=True)
    deleted_at = DateTime(required=True)
