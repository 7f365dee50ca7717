"""Subject responses — the reviewed party answers a review.

The subject is the only party that can write, replace or remove the
response, and only once the review has been published.
"""

from protean.fields import Identifier, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.review.review import Review
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


@reviews.command(part_of="Review")
class RespondToReview:
    review_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    response = Text(required=True)


@reviews.command(part_of="Review")
class RemoveResponse:
    review_id = Identifier(required=True)
    subject_id = Identifier(required=True)


@reviews.command_handler(part_of=Review)
class ResponseHandler:
    @handle(RespondToReview)
    def respond_to_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        review.respond(responder_id=command.subject_id, body=command.response)

        repo.add(review)
        logger.info("Review responded", review_id=str(review.id))

    @handle(RemoveResponse)
    def remove_response(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        review.remove_response(responder_id=command.subject_id)

        repo.add(review)
        logger.info("Review response removed", review_id=str(review.id))
