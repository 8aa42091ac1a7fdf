"""RatingAggregator: recompute a user's derived rating from their approved reviews.

Invariants:
    - Reads only approved reviews; the summary replaces the stored rating wholesale
    - Failures propagate to the caller (a stale rating must be loud, not silent)
"""

import logging

from app.core.domain_types import UserId
from app.core.rating_summary import RatingSummary, compute_rating_summary
from app.core.repository_protocols import ReviewRepository, UserDirectory

logger = logging.getLogger(__name__)


class RatingAggregator:

    def __init__(self, reviews: ReviewRepository, users: UserDirectory):
        self.reviews = reviews
        self.users = users

    async def recompute(self, user_id: UserId) -> RatingSummary:
        approved = await self.reviews.list_approved_for_reviewee(user_id)
        summary = compute_rating_summary(approved)
        await self.users.update_rating(user_id, summary)
        logger.info(
            f"Rating recomputed: average={summary.average} over {summary.total_reviews}",
            extra={"user_id": str(user_id)},
        )
        return summary
