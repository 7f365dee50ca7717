"""FastAPI routes for the Reviews & Ratings bounded context.

Each route translates between Pydantic schemas (external contract) and
Protean commands (internal domain concepts). Reads go straight to the
repositories and read models.
"""

import json
import os
from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from reviews.api.schemas import (
    BookingReviewsResponse,
    EditReviewRequest,
    FlagReviewRequest,
    HasReviewedResponse,
    ModerateReviewRequest,
    ModerationQueueEntryResponse,
    ModerationQueueResponse,
    RecordCompletedBookingRequest,
    ResolveDisputeRequest,
    RespondToReviewRequest,
    ReviewIdResponse,
    ReviewListResponse,
    ReviewResponse,
    StatusResponse,
    SubjectRatingResponse,
    SubmitReviewRequest,
)
from reviews.projections.completed_bookings import CompletedBookings
from reviews.projections.moderation_queue import moderation_queue
from reviews.rating.subject_rating import rating_for
from reviews.review.editing import EditReview
from reviews.review.moderation import FlagReview, ModerateReview, ResolveDispute
from reviews.review.removal import DeleteReview
from reviews.review.response import RemoveResponse, RespondToReview
from reviews.review.review import Review, ReviewStatus, parse_role
from reviews.review.submission import SubmitReview, process_submission

review_router = APIRouter(prefix="/reviews", tags=["reviews"])

ANY_STATUS = "any"


def _review_out(review) -> ReviewResponse:
    return ReviewResponse(
        review_id=str(review.id),
        booking_id=str(review.booking_id),
        reviewer_id=str(review.reviewer_id),
        reviewer_role=review.reviewer_role,
        subject_id=str(review.subject_id),
        subject_role=review.subject_role,
        rating=review.rating.score,
        comment=review.comment,
        tags=review.tag_list,
        photo_refs=review.photo_refs,
        service_category=review.service_category,
        service_date=review.service_date,
        status=review.status,
        is_public=review.is_public,
        flag_reason=review.flag_reason,
        dispute_outcome=review.dispute_outcome,
        response=review.response,
        responded_at=review.responded_at,
        is_edited=review.is_edited,
        created_at=review.created_at,
        updated_at=review.updated_at,
    )


def _page_out(page) -> ReviewListResponse:
    return ReviewListResponse(
        items=[_review_out(review) for review in page.items],
        total=page.total,
        next_cursor=page.next_cursor,
    )


def _role(value: str, field: str) -> str:
    return parse_role(value.capitalize(), field).value


def _status(value: str) -> str | None:
    if value.lower() == ANY_STATUS:
        return None
    try:
        return ReviewStatus(value.capitalize()).value
    except ValueError:
        choices = ", ".join([ANY_STATUS] + [s.value for s in ReviewStatus])
        raise ValidationError({"status": [f"Status must be one of: {choices}"]}) from None


# ---------------------------------------------------------------------------
# Queries (static paths first so they are not taken for review ids)
# ---------------------------------------------------------------------------
@review_router.get("/moderation-queue", response_model=ModerationQueueResponse)
async def get_moderation_queue(status: str | None = None, limit: int | None = None) -> ModerationQueueResponse:
    """Reviews awaiting a moderator, oldest first."""
    entries = moderation_queue(status=status, limit=limit)
    return ModerationQueueResponse(
        items=[
            ModerationQueueEntryResponse(
                review_id=str(entry.review_id),
                booking_id=str(entry.booking_id),
                reviewer_id=str(entry.reviewer_id),
                subject_id=str(entry.subject_id),
                subject_role=entry.subject_role,
                rating=entry.rating,
                comment=entry.comment,
                status=entry.status,
                flag_reason=entry.flag_reason,
                queued_at=entry.queued_at,
            )
            for entry in entries
        ]
    )


@review_router.get("/bookings/{booking_id}", response_model=BookingReviewsResponse)
async def list_booking_reviews(booking_id: str) -> BookingReviewsResponse:
    """Both directions of a booking's reviews."""
    items = current_domain.repository_for(Review).for_booking(booking_id)
    return BookingReviewsResponse(booking_id=booking_id, items=[_review_out(review) for review in items])


@review_router.get("/bookings/{booking_id}/reviewers/{reviewer_id}", response_model=HasReviewedResponse)
async def has_reviewed(booking_id: str, reviewer_id: str) -> HasReviewedResponse:
    review = current_domain.repository_for(Review).find_for(booking_id, reviewer_id)
    return HasReviewedResponse(
        booking_id=booking_id,
        reviewer_id=reviewer_id,
        has_reviewed=review is not None,
        review_id=str(review.id) if review is not None else None,
    )


@review_router.get("/subjects/{role}/{subject_id}", response_model=ReviewListResponse)
async def list_subject_reviews(
    role: str,
    subject_id: str,
    status: str = "Approved",
    cursor: str | None = None,
    limit: int | None = None,
) -> ReviewListResponse:
    """Reviews about a party, newest first. Pass status=any for every status."""
    page = current_domain.repository_for(Review).for_subject(
        subject_id,
        _role(role, "subject_role"),
        status=_status(status),
        cursor=cursor,
        limit=limit,
    )
    return _page_out(page)


@review_router.get("/subjects/{role}/{subject_id}/rating", response_model=SubjectRatingResponse)
async def get_subject_rating(role: str, subject_id: str) -> SubjectRatingResponse:
    rating = rating_for(subject_id, _role(role, "subject_role"))
    return SubjectRatingResponse(
        subject_id=str(rating.subject_id),
        subject_role=rating.subject_role,
        average_rating=rating.average_rating,
        display_rating=rating.display_rating,
        review_count=rating.review_count,
        sum_ratings=rating.sum_ratings,
        rating_distribution=rating.distribution,
    )


@review_router.get("/reviewers/{role}/{reviewer_id}", response_model=ReviewListResponse)
async def list_reviewer_reviews(
    role: str,
    reviewer_id: str,
    cursor: str | None = None,
    limit: int | None = None,
) -> ReviewListResponse:
    """Reviews written by a party, newest first."""
    page = current_domain.repository_for(Review).by_reviewer(
        reviewer_id,
        _role(role, "reviewer_role"),
        cursor=cursor,
        limit=limit,
    )
    return _page_out(page)


@review_router.get("/{review_id}", response_model=ReviewResponse)
async def get_review(review_id: str) -> ReviewResponse:
    review = current_domain.repository_for(Review).get(review_id)
    return _review_out(review)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@review_router.post("", status_code=201, response_model=ReviewIdResponse)
async def submit_review(body: SubmitReviewRequest) -> ReviewIdResponse:
    """Submit a review for a completed booking."""
    command = SubmitReview(
        booking_id=body.booking_id,
        reviewer_id=body.reviewer_id,
        reviewer_role=body.reviewer_role,
        subject_id=body.subject_id,
        subject_role=body.subject_role,
        rating=body.rating,
        comment=body.comment,
        tags=json.dumps(body.tags) if body.tags else None,
        photo_refs=json.dumps(body.photo_refs) if body.photo_refs else None,
        service_category=body.service_category,
        service_date=body.service_date,
    )
    review_id = process_submission(command)
    return ReviewIdResponse(review_id=review_id)


@review_router.put("/{review_id}", response_model=StatusResponse)
async def edit_review(review_id: str, body: EditReviewRequest) -> StatusResponse:
    """Edit an existing review."""
    command = EditReview(
        review_id=review_id,
        reviewer_id=body.reviewer_id,
        rating=body.rating,
        comment=body.comment,
        tags=json.dumps(body.tags) if body.tags is not None else None,
        photo_refs=json.dumps(body.photo_refs) if body.photo_refs is not None else None,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@review_router.delete("/{review_id}", response_model=StatusResponse)
async def delete_review(review_id: str, reviewer_id: str) -> StatusResponse:
    """Delete a review. Only its author may, while it is pending or approved."""
    current_domain.process(DeleteReview(review_id=review_id, reviewer_id=reviewer_id), asynchronous=False)
    return StatusResponse()


@review_router.put("/{review_id}/moderate", response_model=StatusResponse)
async def moderate_review(review_id: str, body: ModerateReviewRequest) -> StatusResponse:
    """Approve or reject a review."""
    command = ModerateReview(
        review_id=review_id,
        moderator_id=body.moderator_id,
        action=body.action,
        reason=body.reason,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@review_router.post("/{review_id}/flag", response_model=StatusResponse)
async def flag_review(review_id: str, body: FlagReviewRequest) -> StatusResponse:
    """Flag a published review, opening a dispute."""
    command = FlagReview(
        review_id=review_id,
        flagged_by=body.flagged_by,
        reason=body.reason,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@review_router.put("/{review_id}/resolve", response_model=StatusResponse)
async def resolve_dispute(review_id: str, body: ResolveDisputeRequest) -> StatusResponse:
    """Uphold or remove a disputed review."""
    command = ResolveDispute(
        review_id=review_id,
        moderator_id=body.moderator_id,
        outcome=body.outcome,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@review_router.put("/{review_id}/response", response_model=StatusResponse)
async def respond_to_review(review_id: str, body: RespondToReviewRequest) -> StatusResponse:
    """Write or replace the reviewed party's response."""
    command = RespondToReview(
        review_id=review_id,
        subject_id=body.subject_id,
        response=body.response,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@review_router.delete("/{review_id}/response", response_model=StatusResponse)
async def remove_response(review_id: str, subject_id: str) -> StatusResponse:
    """Withdraw the reviewed party's response."""
    current_domain.process(RemoveResponse(review_id=review_id, subject_id=subject_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Development helpers
# ---------------------------------------------------------------------------
@review_router.post("/dev/bookings", status_code=201, response_model=StatusResponse)
async def record_completed_booking(body: RecordCompletedBookingRequest) -> StatusResponse:
    """Record a completed booking in the local replica (non-production only).

    Stands in for the Bookings domain's BookingCompleted event so reviews
    can be exercised by hand and by load tests.
    """
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Booking seeding not available in production")

    current_domain.repository_for(CompletedBookings).add(
        CompletedBookings(
            booking_id=body.booking_id,
            client_id=body.client_id,
            supplier_id=body.supplier_id,
            service_category=body.service_category,
            event_date=body.event_date,
            completed_at=body.completed_at or datetime.now(UTC),
        )
    )
    return StatusResponse(status="recorded")
