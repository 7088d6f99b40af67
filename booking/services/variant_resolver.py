import logging
from typing import List, Optional

from booking.schemas.catalog import DistanceTier

logger = logging.getLogger(__name__)


def is_distance_in_range(distance_km: float, range_min: int, range_max: int) -> bool:
    return range_min <= distance_km <= range_max


def resolve_tier(tiers: List[DistanceTier], distance_km: Optional[float]) -> Optional[DistanceTier]:
    """
    Pick the price tier for a trip distance.

    Tiers are scanned in the order given; the caller is expected to pass them
    ascending. A missing or non-positive distance returns the first tier, and a
    distance beyond every bracket returns the tier with the largest upper bound.
    """
    if not tiers:
        return None

    if not distance_km or distance_km <= 0:
        logger.debug(f"No usable distance ({distance_km}), using first tier {tiers[0].label!r}")
        return tiers[0]

    for tier in tiers:
        if is_distance_in_range(distance_km, tier.range_min, tier.range_max):
            return tier

    # max() keeps the first of equal keys
    top = max(tiers, key=lambda t: t.range_max)
    logger.warning(
        f"Distance {distance_km} km exceeds all tiers, using top tier "
        f"{top.label!r} ({top.range_max} km)"
    )
    return top


def sort_tiers_by_range(tiers: List[DistanceTier]) -> List[DistanceTier]:
    return sorted(tiers, key=lambda t: t.range_min)


def format_tier_range(tier: DistanceTier) -> str:
    return f"{tier.range_min}-{tier.range_max} km"
