"""Cross-domain event contracts for Reviews domain events.

These classes define the event shape for consumption by other domains
(e.g., the Profiles domain to show a party's rating, or the Notifications
domain to tell a party they were reviewed). They are registered as
external events via domain.register_external_event() with matching
__type__ strings so Protean's stream deserialization works correctly.

The source-of-truth events are in src/reviews/review/events.py and
src/reviews/rating/events.py.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Float, Identifier, Integer, String


class ReviewSubmitted(BaseEvent):
    """A party submitted a review of the other party of a booking."""

    __version__ = 1

    review_id = Identifier(required=True)
    booking_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    reviewer_role = String(required=True)
    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    rating = Float(required=True)
    submitted_at = DateTime(required=True)


class ReviewApproved(BaseEvent):
    """A review was published."""

    __version__ = 1

    review_id = Identifier(required=True)
    booking_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    rating = Float(required=True)
    approved_at = DateTime(required=True)


class ReviewResponded(BaseEvent):
    """The reviewed party answered a review."""

    __version__ = 1

    review_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    responded_at = DateTime(required=True)


class SubjectRatingRecalculated(BaseEvent):
    """A party's aggregate rating changed."""

    __version__ = 1

    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    review_count = Integer(required=True)
    average_rating = Float(required=True)
    display_rating = Float(required=True)
    recalculated_at = DateTime(required=True)
