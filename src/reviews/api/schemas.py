"""Pydantic request/response schemas for the Reviews API.

These are separate from Protean commands (anti-corruption pattern).
The API layer is the external contract; commands are internal domain concepts.
Ratings and roles are checked by the domain so that a bad value comes
back as the same 400 ValidationError whichever door it came through.
"""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class SubmitReviewRequest(BaseModel):
    booking_id: str
    reviewer_id: str
    reviewer_role: str  # "Client" or "Supplier"
    subject_id: str
    subject_role: str
    rating: float
    comment: str | None = None
    tags: list[str] | None = None
    photo_refs: list[str] | None = None
    service_category: str | None = Field(default=None, max_length=100)
    service_date: date | None = None


class EditReviewRequest(BaseModel):
    reviewer_id: str
    rating: float | None = None
    comment: str | None = None
    tags: list[str] | None = None
    photo_refs: list[str] | None = None


class ModerateReviewRequest(BaseModel):
    moderator_id: str
    action: str  # "Approve" or "Reject"
    reason: str | None = None


class FlagReviewRequest(BaseModel):
    flagged_by: str
    reason: str


class ResolveDisputeRequest(BaseModel):
    moderator_id: str
    outcome: str  # "Approve" or "Reject"
    notes: str | None = None


class RespondToReviewRequest(BaseModel):
    subject_id: str
    response: str


class RecordCompletedBookingRequest(BaseModel):
    booking_id: str
    client_id: str
    supplier_id: str
    service_category: str | None = None
    event_date: date | None = None
    completed_at: datetime | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class ReviewIdResponse(BaseModel):
    review_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class ReviewResponse(BaseModel):
    review_id: str
    booking_id: str
    reviewer_id: str
    reviewer_role: str
    subject_id: str
    subject_role: str
    rating: float
    comment: str | None = None
    tags: list[str] = []
    photo_refs: list[str] = []
    service_category: str | None = None
    service_date: date | None = None
    status: str
    is_public: bool = False
    flag_reason: str | None = None
    dispute_outcome: str | None = None
    response: str | None = None
    responded_at: datetime | None = None
    is_edited: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReviewListResponse(BaseModel):
    items: list[ReviewResponse]
    total: int
    next_cursor: str | None = None


class BookingReviewsResponse(BaseModel):
    booking_id: str
    items: list[ReviewResponse]


class HasReviewedResponse(BaseModel):
    booking_id: str
    reviewer_id: str
    has_reviewed: bool
    review_id: str | None = None


class SubjectRatingResponse(BaseModel):
    subject_id: str
    subject_role: str
    average_rating: float
    display_rating: float
    review_count: int
    sum_ratings: float
    rating_distribution: dict[str, int]


class ModerationQueueEntryResponse(BaseModel):
    review_id: str
    booking_id: str
    reviewer_id: str
    subject_id: str
    subject_role: str
    rating: float
    comment: str | None = None
    status: str
    flag_reason: str | None = None
    queued_at: datetime


class ModerationQueueResponse(BaseModel):
    items: list[ModerationQueueEntryResponse]
