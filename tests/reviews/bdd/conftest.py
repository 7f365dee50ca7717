"""Shared BDD fixtures and step definitions for the Reviews domain."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then
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
from reviews.review.review import Review

_REVIEW_EVENT_CLASSES = {
    "ReviewSubmitted": ReviewSubmitted,
    "ReviewEdited": ReviewEdited,
    "ReviewApproved": ReviewApproved,
    "ReviewRejected": ReviewRejected,
    "ReviewFlagged": ReviewFlagged,
    "ReviewDisputeResolved": ReviewDisputeResolved,
    "ReviewResponded": ReviewResponded,
    "ReviewResponseRemoved": ReviewResponseRemoved,
    "ReviewDeleted": ReviewDeleted,
}


@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


def _client_review(rating=4, client_id="client-bdd"):
    review = Review.submit(
        booking_id="bk-bdd",
        reviewer_id=client_id,
        reviewer_role="Client",
        subject_id="supplier-bdd",
        subject_role="Supplier",
        rating=rating,
        comment="Decoração impecável e equipa muito simpática",
        tags=["Profissional"],
    )
    review._events.clear()
    return review


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a pending review", target_fixture="review")
def pending_review():
    return _client_review()


@given(parsers.cfparse("a pending review rated {rating:g}"), target_fixture="review")
def pending_review_rated(rating):
    return _client_review(rating=rating)


@given("a published review", target_fixture="review")
def published_review():
    review = _client_review()
    review.approve(moderator_id="mod-001")
    review._events.clear()
    return review


@given("a disputed review", target_fixture="review")
def disputed_review():
    review = _client_review()
    review.approve(moderator_id="mod-001")
    review.flag(flagged_by="supplier-bdd", reason="Nunca prestei este serviço")
    review._events.clear()
    return review


@given("a rejected review", target_fixture="review")
def rejected_review():
    review = _client_review()
    review.reject(moderator_id="mod-001", reason="Linguagem ofensiva")
    review._events.clear()
    return review


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the review status is "{status}"'))
def review_status_is(review, status):
    assert review.status == status


@then("the review action fails with a validation error")
def review_action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then("the review action is not permitted")
def review_action_not_permitted(error):
    assert error["exc"] is not None, "Expected an authorization error but none was raised"
    assert isinstance(error["exc"], AuthorizationError)


@then("the review action fails because of its status")
def review_action_invalid_state(error):
    assert error["exc"] is not None, "Expected a state error but none was raised"
    assert isinstance(error["exc"], StateError)


@then(parsers.cfparse("a {event_type} event is raised"))
def review_event_raised(review, event_type):
    event_cls = _REVIEW_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in review._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in review._events]}"


@then(parsers.cfparse("the review rating is {rating:g}"))
def review_rating_is(review, rating):
    assert review.rating.score == rating


@then("the review is publicly visible")
def review_is_public(review):
    assert review.is_public is True


@then("the review is not publicly visible")
def review_is_not_public(review):
    assert review.is_public is False
