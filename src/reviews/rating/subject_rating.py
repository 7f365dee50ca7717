"""SubjectRating aggregate — a party's average rating and review count.

One record per (role, party). The counters are maintained by delta
application: a review entering the rating adds its score, one leaving it
subtracts it. The record also remembers which reviews it currently
includes, which makes every delta idempotent: including an already
included review (with the same score) or excluding an absent one is a
no-op, so redelivered events never double count.

A party nobody has rated yet shows the default rating (5.0) with a
count of zero.
"""

import json
import math
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from protean import atomic_change, invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from reviews.domain import reviews
from reviews.rating.events import SubjectRatingRecalculated
from reviews.review.review import PartyRole, parse_role
from reviews.settings import get_settings


def subject_key(subject_id, subject_role) -> str:
    return f"{parse_role(subject_role, 'subject_role').value}:{subject_id}"


def star_bucket(rating) -> str:
    """Distribution bucket for a rating: nearest whole star, halves round up."""
    return str(int(math.floor(float(rating) + 0.5)))


def display_value(average) -> float:
    return float(Decimal(str(average)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _empty_distribution():
    return {str(star): 0 for star in range(1, 6)}


@reviews.aggregate
class SubjectRating:
    subject_key = Identifier(identifier=True)  # "Supplier:<id>" or "Client:<id>"
    subject_id = Identifier(required=True)
    subject_role = String(choices=PartyRole, required=True)

    sum_ratings = Float(default=0.0)
    review_count = Integer(default=0)
    average_rating = Float(default=5.0)  # Exact mean, default when unrated
    display_rating = Float(default=5.0)  # Mean rounded to one decimal
    rating_distribution = Text()  # JSON: {"1": 0, ..., "5": 0}
    included_reviews = Text()  # JSON: {review_id: rating}

    updated_at = DateTime()

    @invariant.post
    def count_matches_included_reviews(self):
        if self.review_count != len(self.included):
            raise ValidationError({"review_count": ["Review count is out of step with the included reviews"]})

    @invariant.post
    def count_cannot_be_negative(self):
        if self.review_count is not None and self.review_count < 0:
            raise ValidationError({"review_count": ["Review count cannot be negative"]})

    @classmethod
    def open(cls, subject_id, subject_role):
        """A fresh, unrated record for a party."""
        role = parse_role(subject_role, "subject_role")
        default = get_settings().default_rating
        return cls(
            subject_key=subject_key(subject_id, role.value),
            subject_id=str(subject_id),
            subject_role=role.value,
            sum_ratings=0.0,
            review_count=0,
            average_rating=default,
            display_rating=display_value(default),
            rating_distribution=json.dumps(_empty_distribution()),
            included_reviews=json.dumps({}),
        )

    @property
    def included(self) -> dict:
        return json.loads(self.included_reviews) if self.included_reviews else {}

    @property
    def distribution(self) -> dict:
        return json.loads(self.rating_distribution) if self.rating_distribution else _empty_distribution()

    def includes(self, review_id) -> bool:
        return str(review_id) in self.included

    def include(self, review_id, rating) -> bool:
        """Count a review's rating, or replace its previous score. Returns False if nothing changed."""
        review_id = str(review_id)
        rating = float(rating)
        included = self.included
        previous = included.get(review_id)
        if previous is not None and previous == rating:
            return False

        distribution = self.distribution
        if previous is not None:
            distribution[star_bucket(previous)] -= 1
            sum_ratings = self.sum_ratings - previous + rating
            change = "updated"
        else:
            sum_ratings = self.sum_ratings + rating
            change = "included"
        distribution[star_bucket(rating)] += 1
        included[review_id] = rating

        self._apply(included, distribution, sum_ratings, review_id, change)
        return True

    def exclude(self, review_id) -> bool:
        """Stop counting a review. Returns False if it was not counted."""
        review_id = str(review_id)
        included = self.included
        if review_id not in included:
            return False

        rating = included.pop(review_id)
        distribution = self.distribution
        distribution[star_bucket(rating)] -= 1

        self._apply(included, distribution, self.sum_ratings - rating, review_id, "excluded")
        return True

    def _apply(self, included, distribution, sum_ratings, review_id, change):
        now = datetime.now(UTC)
        count = len(included)
        if count == 0:
            # Reset instead of carrying float residue
            sum_ratings = 0.0
            average = get_settings().default_rating
        else:
            average = sum_ratings / count

        with atomic_change(self):
            self.included_reviews = json.dumps(included)
            self.rating_distribution = json.dumps(distribution)
            self.sum_ratings = sum_ratings
            self.review_count = count
            self.average_rating = average
            self.display_rating = display_value(average)
            self.updated_at = now

        self.raise_(
            SubjectRatingRecalculated(
                subject_key=self.subject_key,
                subject_id=str(self.subject_id),
                subject_role=self.subject_role,
                review_id=review_id,
                change=change,
                sum_ratings=self.sum_ratings,
                review_count=self.review_count,
                average_rating=self.average_rating,
                display_rating=self.display_rating,
                rating_distribution=self.rating_distribution,
                recalculated_at=now,
            )
        )


def rating_for(subject_id, subject_role) -> SubjectRating:
    """The party's current rating, or the unrated default if none is stored."""
    repo = current_domain.repository_for(SubjectRating)
    try:
        return repo.get(subject_key(subject_id, subject_role))
    except ObjectNotFoundError:
        return SubjectRating.open(subject_id, subject_role)
