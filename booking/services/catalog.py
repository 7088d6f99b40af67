"""Normalise Shopify Storefront product nodes into VehicleOption records.

Products carry their booking metadata as metafields and their prices as
variants. Variant titles follow a text convention understood by the
storefront team:

- "0-50 km", "51-100 km" ... distance brackets for transfers
- "Half Day - Daily Rental", "Full Day - Daily Rental" for rentals

Everything here is a pure transform. Missing or malformed data falls back
to a default and never raises.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from booking.core.enums import TierKind
from booking.schemas.catalog import DEFAULT_AMENITIES, DistanceTier, VehicleOption

logger = logging.getLogger(__name__)

TAXI_DETAILS = "taxi_details"
FEATURES = "features"

METAFIELD_KEYS = {
    "vehicle_type": TAXI_DETAILS,
    "passengers": TAXI_DETAILS,
    "luggage": TAXI_DETAILS,
    "rating": TAXI_DETAILS,
    "reviews": TAXI_DETAILS,
    "base_fare": TAXI_DETAILS,
    "per_km_rate": TAXI_DETAILS,
    "estimated_arrival": TAXI_DETAILS,
    "popular": TAXI_DETAILS,
    "features_list": FEATURES,
}

DEFAULT_TIER_RANGE = (0, 50)
FALLBACK_BASE_FARE = 25.0
DEFAULT_CURRENCY = "AED"

_RANGE_RE = re.compile(r"(\d+)-(\d+)")


def parse_numeric_id(gid: Optional[str]) -> int:
    """Trailing numeric segment of a GID like "gid://shopify/Product/123"."""
    if not gid:
        return 0
    try:
        return int(str(gid).split("/")[-1])
    except ValueError:
        return 0


def parse_tier_range(title: Optional[str]) -> Tuple[int, int]:
    match = _RANGE_RE.search(title or "")
    if not match:
        logger.debug(f"No km range in variant title {title!r}, using default")
        return DEFAULT_TIER_RANGE
    return int(match.group(1)), int(match.group(2))


def classify_tier(title: Optional[str]) -> TierKind:
    t = (title or "").lower()
    if "daily rental" not in t:
        return TierKind.DISTANCE
    if "half day" in t or "half-day" in t:
        return TierKind.HALF_DAY
    if "full day" in t or "full-day" in t:
        return TierKind.FULL_DAY
    return TierKind.DISTANCE


def _coerce(raw: Any, mf_type: str, default: Any) -> Any:
    try:
        if mf_type == "number_integer":
            return int(raw)
        if mf_type == "number_decimal":
            return float(raw)
    except (TypeError, ValueError):
        return default

    if mf_type == "boolean":
        return str(raw) == "true"

    if mf_type == "json" or mf_type.startswith("list."):
        try:
            value = json.loads(raw)
        except (TypeError, ValueError):
            return default
        if isinstance(default, list) and not isinstance(value, list):
            return default
        return value

    return raw


def get_metafield_value(
    metafields: List[Optional[Dict[str, Any]]],
    namespace: str,
    key: str,
    default: Any = None,
) -> Any:
    # The Storefront API returns null for identifiers the product doesn't define
    for mf in metafields or []:
        if not mf:
            continue
        if mf.get("namespace") == namespace and mf.get("key") == key:
            raw = mf.get("value")
            if raw is None:
                return default
            return _coerce(raw, mf.get("type") or "", default)
    return default


def _edges(connection: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if not connection:
        return []
    return [edge.get("node") or {} for edge in connection.get("edges") or []]


def _price(variant: Dict[str, Any]) -> float:
    price = variant.get("price")
    if isinstance(price, dict):
        price = price.get("amount")
    try:
        return float(price)
    except (TypeError, ValueError):
        return 0.0


def parse_tiers(variants: List[Dict[str, Any]]) -> List[DistanceTier]:
    tiers = []
    for variant in variants:
        title = variant.get("title") or ""
        range_min, range_max = parse_tier_range(title)
        tiers.append(
            DistanceTier(
                tier_id=variant.get("id") or "",
                label=title,
                unit_price=_price(variant),
                range_min=range_min,
                range_max=range_max,
                kind=classify_tier(title),
            )
        )
    return tiers


def normalize_product(product: Dict[str, Any]) -> VehicleOption:
    metafields = product.get("metafields") or []
    variants = _edges(product.get("variants"))
    images = _edges(product.get("images"))
    first_variant = variants[0] if variants else None

    def meta(key: str, default: Any) -> Any:
        value = get_metafield_value(metafields, METAFIELD_KEYS[key], key, default)
        # text-typed metafields still have to fit the model's field types
        if isinstance(default, bool):
            return value if isinstance(value, bool) else str(value) == "true"
        if isinstance(default, (int, float)):
            try:
                return type(default)(value)
            except (TypeError, ValueError):
                return default
        if isinstance(default, str) and not isinstance(value, str):
            return default
        return value

    base_fare_default = _price(first_variant) if first_variant else FALLBACK_BASE_FARE
    currency = DEFAULT_CURRENCY
    if first_variant and isinstance(first_variant.get("price"), dict):
        currency = first_variant["price"].get("currencyCode") or DEFAULT_CURRENCY

    amenities = meta("features_list", list(DEFAULT_AMENITIES))
    if not isinstance(amenities, list):
        amenities = list(DEFAULT_AMENITIES)

    product_gid = product.get("id") or ""

    return VehicleOption(
        id=parse_numeric_id(product_gid),
        catalog_ref=product_gid,
        catalog_product_ref=(first_variant or {}).get("id") or product_gid,
        name=product.get("title") or "",
        description=product.get("description"),
        image=images[0].get("url") if images else None,
        category=meta("vehicle_type", "Standard"),
        capacity=meta("passengers", 4),
        luggage_capacity=meta("luggage", 2),
        rating_value=meta("rating", 4.5),
        rating_count=meta("reviews", 0),
        base_fare=meta("base_fare", base_fare_default),
        per_distance_rate=meta("per_km_rate", 2.0),
        estimated_arrival=meta("estimated_arrival", "5-7 mins"),
        is_featured=meta("popular", False),
        amenities=[str(a) for a in amenities],
        currency_code=currency,
        price_tiers=parse_tiers(variants),
    )


def normalize_catalog(products: List[Dict[str, Any]]) -> List[VehicleOption]:
    return [normalize_product(p) for p in products]
