"""Rating Summary: aggregate reputation computed from a user's approved reviews.

Invariants:
    - average == round_half_up(mean(ratings), 1); 0.0 with no reviews
    - sum(distribution.values()) == total_reviews; keys are exactly 1..5
    - category averages use the same rounding, 0.0 with no reviews
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from app.core.domain_types import ReviewCategory
from app.core.repository_protocols import ReviewLike

RATING_VALUES = (1, 2, 3, 4, 5)


def round_half_up(value: float, places: int = 1) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def empty_distribution() -> dict[int, int]:
    return {r: 0 for r in RATING_VALUES}


@dataclass(frozen=True)
class RatingSummary:
    average: float = 0.0
    total_reviews: int = 0
    distribution: dict[int, int] = field(default_factory=empty_distribution)
    categories: dict[str, float] = field(
        default_factory=lambda: {c.value: 0.0 for c in ReviewCategory},
    )


def compute_rating_summary(reviews: Iterable[ReviewLike]) -> RatingSummary:
    """Aggregate the given reviews; caller is responsible for the approved-only filter."""
    reviews = list(reviews)
    if not reviews:
        return RatingSummary()

    distribution = empty_distribution()
    for review in reviews:
        distribution[review.rating] += 1

    categories = {}
    for category in ReviewCategory:
        scores = [
            (review.categories or {}).get(category.value, review.rating)
            for review in reviews
        ]
        categories[category.value] = round_half_up(sum(scores) / len(scores))

    return RatingSummary(
        average=round_half_up(sum(r.rating for r in reviews) / len(reviews)),
        total_reviews=len(reviews),
        distribution=distribution,
        categories=categories,
    )
