"""EditReview — the reviewer changes the content of their review.

Only the reviewer can edit, only while the review is Pending or Approved.
Editing an approved review keeps it approved; the rating maintainer picks
up the new score from the ReviewEdited event.
"""

from protean.fields import Float, Identifier, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.review.review import Review
from reviews.review.submission import parse_json_list
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


@reviews.command(part_of="Review")
class EditReview:
    review_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)  # Must match original author
    rating = Float()
    comment = Text()
    tags = Text()  # JSON array of strings
    photo_refs = Text()  # JSON array of media references


@reviews.command_handler(part_of=Review)
class EditReviewHandler:
    @handle(EditReview)
    def edit_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        # Only pass what was provided
        kwargs = {}
        if command.rating is not None:
            kwargs["rating"] = command.rating
        if command.comment is not None:
            kwargs["comment"] = command.comment
        if command.tags is not None:
            kwargs["tags"] = parse_json_list(command.tags, "tags")
        if command.photo_refs is not None:
            kwargs["photo_refs"] = parse_json_list(command.photo_refs, "photo_refs")

        review.edit(editor_id=command.reviewer_id, **kwargs)
        repo.add(review)
        logger.info("Review edited", review_id=str(review.id), fields=sorted(kwargs))
