"""Moderation commands — approve, reject, flag and resolve disputes.

Moderators approve pending reviews for publication or reject them with a
required reason. Any party other than the author can flag a published
review, which opens a dispute that a moderator later resolves.
"""

from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.review.review import ModerationAction, Review
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


def _parse_action(value, field) -> ModerationAction:
    try:
        return ModerationAction(value)
    except ValueError:
        raise ValidationError({field: ["Must be one of: Approve, Reject"]}) from None


@reviews.command(part_of="Review")
class ModerateReview:
    review_id = Identifier(required=True)
    moderator_id = Identifier(required=True)
    action = String(required=True)  # "Approve" or "Reject"
    reason = String(max_length=500)  # Required for rejection


@reviews.command(part_of="Review")
class FlagReview:
    review_id = Identifier(required=True)
    flagged_by = Identifier(required=True)
    reason = String(required=True, max_length=500)


@reviews.command(part_of="Review")
class ResolveDispute:
    review_id = Identifier(required=True)
    moderator_id = Identifier(required=True)
    outcome = String(required=True)  # "Approve" upholds, "Reject" removes
    notes = Text()  # Required when removing


@reviews.command_handler(part_of=Review)
class ModerationHandler:
    @handle(ModerateReview)
    def moderate_review(self, command):
        action = _parse_action(command.action, "action")

        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        if action == ModerationAction.APPROVE:
            review.approve(moderator_id=command.moderator_id, notes=command.reason)
        else:
            review.reject(moderator_id=command.moderator_id, reason=command.reason)

        repo.add(review)
        logger.info(
            "Review moderated",
            review_id=str(review.id),
            action=action.value,
            status=review.status,
        )

    @handle(FlagReview)
    def flag_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        review.flag(flagged_by=command.flagged_by, reason=command.reason)

        repo.add(review)
        logger.info("Review flagged", review_id=str(review.id), flagged_by=str(command.flagged_by))

    @handle(ResolveDispute)
    def resolve_dispute(self, command):
        outcome = _parse_action(command.outcome, "outcome")
        if outcome == ModerationAction.REJECT and not command.notes:
            raise ValidationError({"notes": ["Notes are required when removing a disputed review"]})

        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        review.resolve(moderator_id=command.moderator_id, outcome=outcome.value, notes=command.notes)

        repo.add(review)
        logger.info(
            "Dispute resolved",
            review_id=str(review.id),
            outcome=review.dispute_outcome,
            status=review.status,
        )
