"""NearbyMatcher: resolve helpers near a new job and fan out job_posted notices.

Invariants:
    - Eligible = account_type in {helper, both}, active, located, not the job creator,
      haversine distance <= radius_km
    - Result ordered by distance, capped at max_results
    - notify_nearby_helpers never raises: matching is best-effort

Design Decisions:
    - Directory does a bounding-box prefilter; exact distance is computed here
      so the rule holds regardless of the backing store
"""

import logging

from app.core.domain_types import HELPER_ACCOUNT_TYPES, AccountType
from app.core.geo import GeoPoint, bounding_box, haversine_km
from app.core.notifications import job_posted
from app.core.repository_protocols import (
    JobLike,
    NotificationSink,
    UserDirectory,
    UserLike,
)

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_KM = 80.47
DEFAULT_MAX_RESULTS = 50


class NearbyMatcher:

    def __init__(
        self,
        users: UserDirectory,
        notifications: NotificationSink,
        radius_km: float = DEFAULT_RADIUS_KM,
        max_results: int = DEFAULT_MAX_RESULTS,
    ):
        self.users = users
        self.notifications = notifications
        self.radius_km = radius_km
        self.max_results = max_results

    async def find_eligible_helpers(self, job: JobLike) -> list[UserLike]:
        center = GeoPoint(job.latitude, job.longitude)
        candidates = await self.users.find_by_geo_radius(
            bounding_box(center, self.radius_km), HELPER_ACCOUNT_TYPES,
        )

        ranked = []
        for user in candidates:
            if user.id == job.creator_id or not user.is_active:
                continue
            if AccountType(user.account_type) not in HELPER_ACCOUNT_TYPES:
                continue
            if user.latitude is None or user.longitude is None:
                continue
            distance = haversine_km(center, GeoPoint(user.latitude, user.longitude))
            if distance <= self.radius_km:
                ranked.append((distance, user))

        ranked.sort(key=lambda pair: pair[0])
        return [user for _, user in ranked[:self.max_results]]

    async def notify_nearby_helpers(self, job: JobLike) -> int:
        """Return the number of helpers notified; 0 when matching fails."""
        try:
            helpers = await self.find_eligible_helpers(job)
            await self.notifications.notify_many(
                [job_posted(helper.id, job) for helper in helpers],
            )
        except Exception:
            logger.warning(
                "Nearby helper fan-out failed", extra={"job_id": str(job.id)}, exc_info=True,
            )
            return 0
        logger.info(
            f"Notified {len(helpers)} nearby helpers", extra={"job_id": str(job.id)},
        )
        return len(helpers)
