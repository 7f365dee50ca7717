"""ApproveDueReviews — sweep for the `delayed` moderation mode.

Approves every pending review submitted more than
`auto_approve_after_hours` ago. Does nothing under any other mode, so
switching policy never changes when reviews reach the rating by accident.
"""

from datetime import UTC, datetime, timedelta

from protean.fields import DateTime
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.review.review import Review
from reviews.review.submission import SYSTEM_MODERATOR
from reviews.settings import ModerationMode, get_settings
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


@reviews.command(part_of="Review")
class ApproveDueReviews:
    as_of = DateTime()  # Defaults to now


@reviews.command_handler(part_of=Review)
class AutoApprovalHandler:
    @handle(ApproveDueReviews)
    def approve_due_reviews(self, command):
        settings = get_settings()
        if settings.moderation_mode != ModerationMode.DELAYED:
            logger.info("Auto-approval skipped", moderation_mode=settings.moderation_mode.value)
            return 0

        as_of = command.as_of or datetime.now(UTC)
        if as_of.tzinfo is None:
            as_of = as_of.replace(tzinfo=UTC)
        cutoff = as_of - timedelta(hours=settings.auto_approve_after_hours)

        repo = current_domain.repository_for(Review)
        due = repo.due_for_approval(cutoff)
        for review in due:
            review.approve(moderator_id=SYSTEM_MODERATOR, notes="Approved after moderation delay")
            repo.add(review)

        logger.info("Auto-approved pending reviews", count=len(due), cutoff=cutoff.isoformat())
        return len(due)
