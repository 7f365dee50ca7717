"""Domain events for the SubjectRating aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from reviews.domain import reviews


@reviews.event(part_of="SubjectRating")
class SubjectRatingRecalculated:
    """A party's aggregate rating changed because a review entered or left it."""

    __version__ = 1

    subject_key = Identifier(required=True)
    subject_id = Identifier(required=True)
    subject_role = String(required=True)
    review_id = Identifier(required=True)  # The review that caused the change
    change = String(required=True)  # "included", "updated" or "excluded"
    sum_ratings = Float(required=True)
    review_count = Integer(required=True)
    average_rating = Float(required=True)
    display_rating = Float(required=True)
    rating_distribution = Text()  # JSON: {"1": 0, ..., "5": 0}
    recalculated_at = DateTime(required=True)
