"""BDD tests for review moderation and disputes."""

from protean.exceptions import InvalidOperationError, ValidationError
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/review_moderation.feature")


@when(
    parsers.cfparse('the review is approved by moderator "{moderator_id}"'),
    target_fixture="review",
)
def approve_review(review, moderator_id, error):
    try:
        review.approve(moderator_id=moderator_id)
    except InvalidOperationError as exc:
        error["exc"] = exc
    return review


@when(
    parsers.cfparse('the review is rejected by moderator "{moderator_id}" with reason "{reason}"'),
    target_fixture="review",
)
def reject_review(review, moderator_id, reason):
    review.reject(moderator_id=moderator_id, reason=reason)
    return review


@when(
    parsers.cfparse('the review is rejected by moderator "{moderator_id}" without a reason'),
    target_fixture="review",
)
def reject_without_reason(review, moderator_id, error):
    try:
        review.reject(moderator_id=moderator_id, reason=None)
    except ValidationError as exc:
        error["exc"] = exc
    return review


@when(
    parsers.cfparse('the review is flagged by "{party_id}" because "{reason}"'),
    target_fixture="review",
)
def flag_review(review, party_id, reason, error):
    try:
        review.flag(flagged_by=party_id, reason=reason)
    except InvalidOperationError as exc:
        error["exc"] = exc
    return review


@when(
    parsers.cfparse('the dispute is resolved by moderator "{moderator_id}" with outcome "{outcome}"'),
    target_fixture="review",
)
def resolve_dispute(review, moderator_id, outcome):
    review.resolve(moderator_id=moderator_id, outcome=outcome)
    return review


@when(
    parsers.cfparse(
        'the dispute is resolved by moderator "{moderator_id}" with outcome "{outcome}" and notes "{notes}"'
    ),
    target_fixture="review",
)
def resolve_dispute_with_notes(review, moderator_id, outcome, notes):
    review.resolve(moderator_id=moderator_id, outcome=outcome, notes=notes)
    return review


@then(parsers.cfparse('the dispute outcome is "{outcome}"'))
def dispute_outcome_is(review, outcome):
    assert review.dispute_outcome == outcome
