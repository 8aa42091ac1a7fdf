"""User Routes: read-through of the last rating aggregation."""

from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.dependencies import Services, get_services
from app.core.errors import NotFoundError
from app.schemas.review import RatingResponse

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/{user_id}/rating", response_model=RatingResponse)
async def get_user_rating(user_id: UUID, services: Services = Depends(get_services)):
    user = await services.users.find_by_id(user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return RatingResponse(
        user_id=user.id,
        average=user.rating_average,
        total_reviews=user.rating_total_reviews,
        distribution=user.rating_distribution,
        categories=user.rating_categories,
    )
