"""Repository for the Review aggregate.

Adds the listing queries the API needs on top of the standard CRUD
operations. Listings are ordered newest first and paginated with an
opaque cursor (the offset of the next page).
"""

from dataclasses import dataclass, field

from protean.exceptions import ValidationError

from reviews.domain import reviews
from reviews.review.review import Review, ReviewStatus
from reviews.settings import get_settings


@dataclass
class ReviewPage:
    """One page of reviews plus the cursor of the next page, if any."""

    items: list = field(default_factory=list)
    total: int = 0
    next_cursor: str | None = None


def _decode_cursor(cursor) -> int:
    if cursor in (None, ""):
        return 0
    try:
        offset = int(cursor)
    except (TypeError, ValueError):
        raise ValidationError({"cursor": ["Invalid cursor"]}) from None
    if offset < 0:
        raise ValidationError({"cursor": ["Invalid cursor"]})
    return offset


def _page_size(limit) -> int:
    settings = get_settings()
    if limit is None:
        return settings.page_size
    if limit < 1:
        raise ValidationError({"limit": ["Limit must be at least 1"]})
    return min(limit, settings.max_page_size)


@reviews.repository(part_of=Review)
class ReviewRepository:
    def _page(self, filters: dict, cursor=None, limit=None) -> ReviewPage:
        offset = _decode_cursor(cursor)
        size = _page_size(limit)

        # One extra row tells whether another page exists
        results = self._dao.query.filter(**filters).order_by("-created_at").offset(offset).limit(size + 1).all()
        items = list(results.items)

        next_cursor = str(offset + size) if len(items) > size else None
        return ReviewPage(items=items[:size], total=results.total, next_cursor=next_cursor)

    def for_subject(self, subject_id, subject_role, status=ReviewStatus.APPROVED.value, cursor=None, limit=None):
        """Reviews about a party, newest first. Public listings pass the default status."""
        filters = {"subject_id": str(subject_id), "subject_role": subject_role}
        if status is not None:
            filters["status"] = status
        return self._page(filters, cursor=cursor, limit=limit)

    def by_reviewer(self, reviewer_id, reviewer_role, cursor=None, limit=None):
        """Reviews written by a party, in every status, newest first."""
        filters = {"reviewer_id": str(reviewer_id), "reviewer_role": reviewer_role}
        return self._page(filters, cursor=cursor, limit=limit)

    def for_booking(self, booking_id) -> list[Review]:
        """Both directions of a booking's reviews (at most two)."""
        return list(self._dao.query.filter(booking_id=str(booking_id)).all().items)

    def find_for(self, booking_id, reviewer_id) -> Review | None:
        results = self._dao.query.filter(booking_id=str(booking_id), reviewer_id=str(reviewer_id)).all()
        return results.items[0] if results.items else None

    def has_reviewed(self, booking_id, reviewer_id) -> bool:
        return self.find_for(booking_id, reviewer_id) is not None

    def due_for_approval(self, submitted_before) -> list[Review]:
        """Pending reviews submitted before the cutoff, oldest first."""
        return list(
            self._dao.query.filter(status=ReviewStatus.PENDING.value, created_at__lt=submitted_before)
            .order_by("created_at")
            .all()
            .items
        )
