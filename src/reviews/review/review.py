"""Review aggregate (CQRS) — the core of the Reviews & Ratings domain.

A Review is one party's verdict on the other party of a completed booking:
clients review suppliers and suppliers review clients. The two directions
are independent records that only share the booking id.

CQRS (not event sourced) — reviews are write-once-mostly with simple state
transitions and no temporal query needs.

State Machine (5 states):
    PENDING  → APPROVED | REJECTED
    APPROVED → DISPUTED              (flag)
    DISPUTED → APPROVED | REJECTED   (dispute resolution)
    REJECTED → (terminal)
    RESOLVED → (terminal, written by earlier clients; counts like APPROVED)
"""

import json
import math
import uuid
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from reviews.domain import reviews
from reviews.errors import AuthorizationError, StateError
from reviews.review.events import (
    ReviewApproved,
    ReviewDeleted,
    ReviewDisputeResolved,
    ReviewEdited,
    ReviewFlagged,
    ReviewRejected,
    ReviewResponded,
    ReviewResponseRemoved,
    ReviewSubmitted,
)
from reviews.review.tags import normalize_tags, unknown_tags
from reviews.settings import get_settings

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()

MIN_RATING = 1.0
MAX_RATING = 5.0

_REVIEW_NAMESPACE = uuid.UUID("5b0d6c52-6f1e-4f55-9d7a-3c2f0b8a4e11")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ReviewStatus(Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    DISPUTED = "Disputed"
    RESOLVED = "Resolved"


class PartyRole(Enum):
    CLIENT = "Client"
    SUPPLIER = "Supplier"


class ModerationAction(Enum):
    APPROVE = "Approve"
    REJECT = "Reject"


class DisputeOutcome(Enum):
    UPHELD = "Upheld"
    REMOVED = "Removed"


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
_VALID_TRANSITIONS = {
    ReviewStatus.PENDING: {ReviewStatus.APPROVED, ReviewStatus.REJECTED},
    ReviewStatus.APPROVED: {ReviewStatus.DISPUTED},
    ReviewStatus.DISPUTED: {ReviewStatus.APPROVED, ReviewStatus.REJECTED},
    ReviewStatus.REJECTED: set(),  # Terminal state
    ReviewStatus.RESOLVED: set(),  # Terminal state
}

MUTABLE_STATUSES = frozenset({ReviewStatus.PENDING, ReviewStatus.APPROVED})
RESPONSE_STATUSES = frozenset({ReviewStatus.APPROVED, ReviewStatus.DISPUTED, ReviewStatus.RESOLVED})


def counts_toward_rating(status) -> bool:
    """Whether a review in this status is part of the subject's aggregate rating."""
    status = ReviewStatus(status)
    if status in (ReviewStatus.APPROVED, ReviewStatus.RESOLVED):
        return True
    if status == ReviewStatus.DISPUTED:
        return not get_settings().exclude_disputed_from_rating
    return False


def parse_role(value, field="role") -> PartyRole:
    try:
        return PartyRole(value)
    except ValueError:
        choices = ", ".join(r.value for r in PartyRole)
        raise ValidationError({field: [f"Role must be one of: {choices}"]}) from None


def opposite_role(role) -> PartyRole:
    return PartyRole.SUPPLIER if parse_role(role) == PartyRole.CLIENT else PartyRole.CLIENT


def review_id_for(booking_id, reviewer_id) -> str:
    """Deterministic review identity: one review per (booking, reviewer).

    Using the pair as the primary key turns a duplicate submission into a
    key collision in the store instead of a second record.
    """
    return str(uuid.uuid5(_REVIEW_NAMESPACE, f"{booking_id}:{reviewer_id}"))


def normalize_rating(value) -> float:
    """Validate a raw rating and round it to the nearest half star."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValidationError({"rating": ["Rating must be a number"]}) from None

    if math.isnan(value) or value < MIN_RATING or value > MAX_RATING:
        raise ValidationError({"rating": ["Rating must be between 1 and 5"]})

    return math.floor(value * 2 + 0.5) / 2


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@reviews.value_object(part_of="Review")
class Rating:
    """A star rating from 1.0 to 5.0 in half-star steps."""

    score = Float(required=True)

    @invariant.post
    def score_must_be_in_range(self):
        if self.score is not None and (self.score < MIN_RATING or self.score > MAX_RATING):
            raise ValidationError({"score": ["Rating must be between 1 and 5"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@reviews.entity(part_of="Review")
class ReviewPhoto:
    """An opaque media reference attached to a review."""

    ref = String(required=True, max_length=500)
    display_order = Integer(default=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@reviews.aggregate
class Review:
    """One party's review of the other party of a completed booking."""

    # References
    booking_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    reviewer_role = String(choices=PartyRole, required=True)
    subject_id = Identifier(required=True)
    subject_role = String(choices=PartyRole, required=True)

    # Content
    rating = ValueObject(Rating, required=True)
    comment = Text()
    tags = Text()  # JSON array of strings
    photos = HasMany(ReviewPhoto)

    # Context
    service_category = String(max_length=100)
    service_date = Date()

    # Moderation
    status = String(choices=ReviewStatus, default=ReviewStatus.PENDING.value)
    is_public = Boolean(default=False)
    is_flagged = Boolean(default=False)
    flag_reason = String(max_length=500)
    flagged_by = Identifier()
    moderation_notes = Text()
    dispute_outcome = String(choices=DisputeOutcome)

    # Subject's response
    response = Text()
    responded_at = DateTime()

    # Editing
    is_edited = Boolean(default=False)
    edited_at = DateTime()

    # Timestamps
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def parties_must_have_opposite_roles(self):
        if self.reviewer_role and self.reviewer_role == self.subject_role:
            raise ValidationError({"subject_role": ["Subject must have the opposite role of the reviewer"]})

    @invariant.post
    def cannot_review_yourself(self):
        if self.reviewer_id and str(self.reviewer_id) == str(self.subject_id):
            raise ValidationError({"subject_id": ["Reviewer and subject must be different parties"]})

    @invariant.post
    def photos_cannot_exceed_maximum(self):
        limit = get_settings().max_photos
        if len(self.photos) > limit:
            raise ValidationError({"photos": [f"Cannot attach more than {limit} photos to a review"]})

    @invariant.post
    def comment_within_limit(self):
        limit = get_settings().max_comment_length
        if self.comment and len(self.comment) > limit:
            raise ValidationError({"comment": [f"Comment cannot exceed {limit} characters"]})

    @invariant.post
    def tags_from_subject_vocabulary(self):
        unknown = unknown_tags(self.tag_list, self.subject_role)
        if unknown:
            raise ValidationError({"tags": [f"Unknown tags for {self.subject_role}: {', '.join(unknown)}"]})

    @invariant.post
    def response_and_timestamp_go_together(self):
        if bool(self.response) != bool(self.responded_at):
            raise ValidationError({"response": ["Response and response time must be set together"]})

    @invariant.post
    def response_within_limit(self):
        limit = get_settings().max_response_length
        if self.response and len(self.response) > limit:
            raise ValidationError({"response": [f"Response cannot exceed {limit} characters"]})

    # -------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------
    @property
    def tag_list(self) -> list[str]:
        return json.loads(self.tags) if self.tags else []

    @property
    def photo_refs(self) -> list[str]:
        return [photo.ref for photo in sorted(self.photos, key=lambda p: p.display_order)]

    @property
    def counts_toward_rating(self) -> bool:
        return counts_toward_rating(self.status)

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def submit(
        cls,
        booking_id,
        reviewer_id,
        reviewer_role,
        subject_id,
        subject_role,
        rating,
        service_category=None,
        service_date=None,
        comment=None,
        tags=None,
        photo_refs=None,
    ):
        """Submit a new review. Reviews start out pending moderation."""
        reviewer_role = parse_role(reviewer_role, "reviewer_role")
        subject_role = parse_role(subject_role, "subject_role")
        if subject_role != opposite_role(reviewer_role):
            raise ValidationError({"subject_role": ["Subject must have the opposite role of the reviewer"]})

        now = datetime.now(UTC)
        score = normalize_rating(rating)
        tag_values = normalize_tags(tags)

        review = cls(
            id=review_id_for(booking_id, reviewer_id),
            booking_id=booking_id,
            reviewer_id=reviewer_id,
            reviewer_role=reviewer_role.value,
            subject_id=subject_id,
            subject_role=subject_role.value,
            rating=Rating(score=score),
            comment=comment or None,
            tags=json.dumps(tag_values),
            service_category=service_category,
            service_date=service_date,
            status=ReviewStatus.PENDING.value,
            is_public=False,
            is_flagged=False,
            is_edited=False,
            created_at=now,
            updated_at=now,
        )

        review._attach_photos(photo_refs)

        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                booking_id=str(booking_id),
                reviewer_id=str(reviewer_id),
                reviewer_role=review.reviewer_role,
                subject_id=str(subject_id),
                subject_role=review.subject_role,
                rating=score,
                comment=review.comment,
                tags=review.tags,
                photo_count=len(review.photos),
                service_category=service_category,
                service_date=service_date,
                submitted_at=now,
            )
        )

        return review

    def _attach_photos(self, photo_refs):
        refs = list(photo_refs or [])
        limit = get_settings().max_photos
        if len(refs) > limit:
            raise ValidationError({"photos": [f"Cannot attach more than {limit} photos to a review"]})
        for i, ref in enumerate(refs):
            self.add_photos(ReviewPhoto(ref=ref, display_order=i))

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate state machine transition."""
        current = ReviewStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise StateError(
                {"status": [f"Cannot transition from {current.value} to {target_status.value}"]},
                current_status=current.value,
            )

    def _assert_reviewer(self, actor_id, action):
        if str(actor_id) == str(self.reviewer_id):
            return
        if str(actor_id) == str(self.subject_id):
            raise AuthorizationError(
                {"reviewer_id": [f"The reviewed party can only respond to a review, not {action} it"]}
            )
        raise AuthorizationError({"reviewer_id": [f"Only the review author can {action} this review"]})

    def _assert_mutable(self, action):
        current = ReviewStatus(self.status)
        if current not in MUTABLE_STATUSES:
            raise StateError(
                {"status": [f"Cannot {action} a review in {current.value} status"]},
                current_status=current.value,
            )

    # -------------------------------------------------------------------
    # Edit
    # -------------------------------------------------------------------
    def edit(self, editor_id, rating=_UNSET, comment=_UNSET, tags=_UNSET, photo_refs=_UNSET):
        """Edit review content. Only the reviewer, only while Pending or Approved."""
        self._assert_reviewer(editor_id, "edit")
        self._assert_mutable("edit")
        if all(value is _UNSET for value in (rating, comment, tags, photo_refs)):
            raise ValidationError({"review": ["Provide at least one of rating, comment, tags or photos to edit"]})
        # Validate up front so a rejected edit leaves the review untouched
        settings = get_settings()
        if photo_refs is not _UNSET and len(photo_refs or []) > settings.max_photos:
            raise ValidationError({"photos": [f"Cannot attach more than {settings.max_photos} photos to a review"]})
        if comment is not _UNSET and comment and len(comment) > settings.max_comment_length:
            raise ValidationError({"comment": [f"Comment cannot exceed {settings.max_comment_length} characters"]})
        if tags is not _UNSET:
            unknown = unknown_tags(normalize_tags(tags), self.subject_role)
            if unknown:
                raise ValidationError({"tags": [f"Unknown tags for {self.subject_role}: {', '.join(unknown)}"]})

        now = datetime.now(UTC)
        previous_rating = self.rating.score
        new_rating = normalize_rating(rating) if rating is not _UNSET else previous_rating

        with atomic_change(self):
            if rating is not _UNSET:
                self.rating = Rating(score=new_rating)
            if comment is not _UNSET:
                self.comment = comment or None
            if tags is not _UNSET:
                self.tags = json.dumps(normalize_tags(tags))
            if photo_refs is not _UNSET:
                for photo in list(self.photos):
                    self.remove_photos(photo)
                self._attach_photos(photo_refs)

            self.is_edited = True
            self.edited_at = now
            self.updated_at = now

        self.raise_(
            ReviewEdited(
                review_id=str(self.id),
                subject_id=str(self.subject_id),
                subject_role=self.subject_role,
                status=self.status,
                rating=new_rating,
                previous_rating=previous_rating,
                comment=self.comment,
                tags=self.tags,
                edited_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Moderation
    # -------------------------------------------------------------------
    def approve(self, moderator_id, notes=None):
        """Publish the review. From Pending, or from Disputed to uphold it."""
        self._assert_can_transition(ReviewStatus.APPROVED)

        now = datetime.now(UTC)
        after_dispute = ReviewStatus(self.status) == ReviewStatus.DISPUTED

        with atomic_change(self):
            self.status = ReviewStatus.APPROVED.value
            self.is_public = True
            self.is_flagged = False
            if notes is not None:
                self.moderation_notes = notes
            if after_dispute:
                self.dispute_outcome = DisputeOutcome.UPHELD.value
            self.updated_at = now

        self.raise_(
            ReviewApproved(
                review_id=str(self.id),
                booking_id=str(self.booking_id),
                reviewer_id=str(self.reviewer_id),
                subject_id=str(self.subject_id),
                subject_role=self.subject_role,
                rating=self.rating.score,
                moderator_id=str(moderator_id),
                after_dispute=after_dispute,
                approved_at=now,
            )
        )

    def reject(self, moderator_id, reason):
        """Reject the review. Rejection is terminal."""
        if not reason:
            raise ValidationError({"reason": ["Reason is required when rejecting a review"]})
        self._assert_can_transition(ReviewStatus.REJECTED)

        now = datetime.now(UTC)
        previous = ReviewStatus(self.status)

        with atomic_change(self):
            self.status = ReviewStatus.REJECTED.value
            self.is_public = False
            self.moderation_notes = reason
            if previous == ReviewStatus.DISPUTED:
                self.dispute_outcome = DisputeOutcome.REMOVED.value
            self.updated_at = now

        self.raise_(
            ReviewRejected(
                review_id=str(self.id),
                booking_id=str(self.booking_id),
                reviewer_id=str(self.reviewer_id),
                subject_id=str(self.subject_id),
                subject_role=self.subject_role,
                moderator_id=str(moderator_id),
                reason=reason,
                previous_status=previous.value,
                rejected_at=now,
            )
        )

    def flag(self, flagged_by, reason):
        """Flag a published review, opening a dispute."""
        if not reason:
            raise ValidationError({"reason": ["A reason is required to flag a review"]})
        if str(flagged_by) == str(self.reviewer_id):
            raise AuthorizationError({"flagged_by": ["Cannot flag your own review"]})
        self._assert_can_transition(ReviewStatus.DISPUTED)

        now = datetime.now(UTC)

        with atomic_change(self):
            self.status = ReviewStatus.DISPUTED.value
            self.is_flagged = True
            self.flag_reason = reason
            self.flagged_by = flagged_by
            self.updated_at = now

        self.raise_(
            ReviewFlagged(
                review_id=str(self.id),
                reviewer_id=str(self.reviewer_id),
                subject_id=str(self.subject_id),
                subject_role=self.subject_role,
                flagged_by=str(flagged_by),
                reason=reason,
                flagged_at=now,
            )
        )

    def resolve(self, moderator_id, outcome, notes=None):
        """Settle a dispute by upholding (approve) or removing (reject) the review."""
        current = ReviewStatus(self.status)
        if current != ReviewStatus.DISPUTED:
            raise StateError(
                {"status": [f"Only disputed reviews can be resolved, review is {current.value}"]},
                current_status=current.value,
            )

        action = ModerationAction(outcome)
        if action == ModerationAction.APPROVE:
            self.approve(moderator_id=moderator_id, notes=notes)
        else:
            self.reject(moderator_id=moderator_id, reason=notes)

        self.raise_(
            ReviewDisputeResolved(
                review_id=str(self.id),
                subject_id=str(self.subject_id),
                subject_role=self.subject_role,
                moderator_id=str(moderator_id),
                outcome=self.dispute_outcome,
                resolved_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Subject's response
    # -------------------------------------------------------------------
    def _assert_subject(self, actor_id):
        if str(actor_id) != str(self.subject_id):
            raise AuthorizationError({"subject_id": ["Only the reviewed party can respond to this review"]})

    def respond(self, responder_id, body):
        """Write or replace the subject's response."""
        self._assert_subject(responder_id)
        if not body or not body.strip():
            raise ValidationError({"response": ["Response cannot be empty"]})
        limit = get_settings().max_response_length
        if len(body) > limit:
            raise ValidationError({"response": [f"Response cannot exceed {limit} characters"]})

        current = ReviewStatus(self.status)
        if current not in RESPONSE_STATUSES:
            raise StateError(
                {"status": [f"Cannot respond to a review in {current.value} status"]},
                current_status=current.value,
            )

        now = datetime.now(UTC)

        with atomic_change(self):
            self.response = body
            if self.responded_at is None:
                self.responded_at = now
            self.updated_at = now

        self.raise_(
            ReviewResponded(
                review_id=str(self.id),
                reviewer_id=str(self.reviewer_id),
                subject_id=str(self.subject_id),
                response=body,
                responded_at=self.responded_at,
            )
        )

    def remove_response(self, responder_id):
        """Withdraw the subject's response."""
        self._assert_subject(responder_id)
        if not self.response:
            raise ValidationError({"response": ["There is no response to remove"]})

        now = datetime.now(UTC)

        with atomic_change(self):
            self.response = None
            self.responded_at = None
            self.updated_at = now

        self.raise_(
            ReviewResponseRemoved(
                review_id=str(self.id),
                subject_id=str(self.subject_id),
                removed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------
    def mark_deleted(self, requested_by):
        """Record the reviewer's deletion. The repository removes the record."""
        self._assert_reviewer(requested_by, "delete")
        self._assert_mutable("delete")

        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            ReviewDeleted(
                review_id=str(self.id),
                booking_id=str(self.booking_id),
                reviewer_id=str(self.reviewer_id),
                subject_id=str(self.subject_id),
                subject_role=self.subject_role,
                status=self.status,
                rating=self.rating.score,
                deleted_at=now,
            )
        )
