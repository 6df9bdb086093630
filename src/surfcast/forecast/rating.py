"""Qualitative surf rating from wave height and swell period."""

from typing import Optional

from surfcast.cache.models import Rating

DEFAULT_RATING = Rating.FAIR

# (min height ft, min period s, rating), checked top to bottom
RATING_THRESHOLDS = [
    (6, 12, Rating.EPIC),
    (4, 10, Rating.GOOD),
    (2, 8, Rating.FAIR),
]


def classify(height_ft: float, period_sec: float) -> Rating:
    """Classify surf quality.

    Both thresholds of a tier must be met; the first matching tier wins,
    so 6 ft at 9 s misses epic and good on period and lands on fair.

    Args:
        height_ft: Wave height in feet
        period_sec: Swell period in seconds

    Returns:
        Rating enum value

    Example:
        >>> classify(6, 12)
        <Rating.EPIC: 'epic'>
    """
    for min_height, min_period, rating in RATING_THRESHOLDS:
        if height_ft >= min_height and period_sec >= min_period:
            return rating
    return Rating.POOR


def resolve_rating(
    rating: Optional[Rating],
    height_ft: Optional[float],
    period_sec: Optional[float],
) -> Rating:
    """Pick the rating for a record.

    A provider-supplied rating is kept as-is. Otherwise the classifier is
    used when both inputs are known, and DEFAULT_RATING when they are not.
    """
    if rating is not None:
        return Rating(rating)
    if height_ft is None or period_sec is None:
        return DEFAULT_RATING
    return classify(height_ft, period_sec)
