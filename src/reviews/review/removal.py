"""DeleteReview — the reviewer withdraws their review.

Only the reviewer can delete, only while the review is Pending or Approved.
The record is removed from the store; the ReviewDeleted event lets the
rating maintainer drop an approved review from the subject's rating.
"""

from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.review.review import Review
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


@reviews.command(part_of="Review")
class DeleteReview:
    review_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)


@reviews.command_handler(part_of=Review)
class DeleteReviewHandler:
    @handle(DeleteReview)
    def delete_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        review.mark_deleted(requested_by=command.reviewer_id)
        for photo in list(review.photos):
            review.remove_photos(photo)

        # add() registers the aggregate so its events are published on commit
        repo.add(review)
        repo._dao.delete(review)
        logger.info("Review deleted", review_id=str(review.id), status=review.status)
