"""Shopify Storefront GraphQL gateway: catalog query and cart creation"""
import logging
import time
from typing import Any, Dict, List, Optional, Type

import httpx

from booking.core.config import settings
from booking.core.exceptions import CatalogFetchError, CheckoutError
from booking.core.metrics import catalog_fetches, checkout_submissions, gateway_duration
from booking.schemas.catalog import VehicleOption
from booking.schemas.checkout import Attribute, BuyerIdentity, CheckoutLineItem
from booking.services.catalog import METAFIELD_KEYS, normalize_catalog, normalize_product

logger = logging.getLogger(__name__)

PRODUCT_GID_PREFIX = "gid://shopify/Product/"


def _metafield_identifiers() -> str:
    return "\n".join(
        f'{{ namespace: "{namespace}", key: "{key}" }}'
        for key, namespace in METAFIELD_KEYS.items()
    )


PRODUCT_FIELDS = f"""
    id
    title
    description
    productType
    tags
    variants(first: 20) {{
      edges {{
        node {{
          id
          title
          price {{
            amount
            currencyCode
          }}
        }}
      }}
    }}
    images(first: 1) {{
      edges {{
        node {{
          url
          altText
        }}
      }}
    }}
    metafields(identifiers: [
      {_metafield_identifiers()}
    ]) {{
      namespace
      key
      value
      type
    }}
"""

PRODUCTS_QUERY = f"""
query GetProducts($first: Int!) {{
  products(first: $first) {{
    edges {{
      node {{
        {PRODUCT_FIELDS}
      }}
    }}
  }}
}}
"""

PRODUCT_QUERY = f"""
query GetProduct($id: ID!) {{
  product(id: $id) {{
    {PRODUCT_FIELDS}
  }}
}}
"""

CART_CREATE_MUTATION = """
mutation cartCreate($input: CartInput!) {
  cartCreate(input: $input) {
    cart {
      id
      checkoutUrl
      totalQuantity
      cost {
        totalAmount {
          amount
          currencyCode
        }
      }
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""


def _headers() -> Dict[str, str]:
    return {
        "Content-Type": "application/json",
        "X-Shopify-Storefront-Access-Token": settings.SHOPIFY_STOREFRONT_TOKEN,
    }


def _first_message(errors: List[Dict[str, Any]], fallback: str) -> str:
    for err in errors:
        message = (err or {}).get("message")
        if message:
            return str(message)
    return fallback


async def _execute(
    query: str,
    variables: Dict[str, Any],
    *,
    operation: str,
    error_cls: Type[RuntimeError],
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    payload = {"query": query, "variables": variables}
    start_time = time.time()
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as own_client:
                response = await own_client.post(
                    settings.shopify_graphql_url, json=payload, headers=_headers()
                )
        else:
            response = await client.post(settings.shopify_graphql_url, json=payload, headers=_headers())
    except httpx.HTTPError as e:
        logger.error(f"Shopify {operation} request failed: {e}")
        raise error_cls(f"Could not reach the booking backend: {e}") from e
    finally:
        gateway_duration.labels(operation=operation).observe(time.time() - start_time)

    if not 200 <= response.status_code < 300:
        logger.error(f"Shopify {operation} returned status {response.status_code}")
        raise error_cls(f"Booking backend returned status {response.status_code}")

    try:
        body = response.json()
    except ValueError as e:
        raise error_cls("Booking backend returned an invalid response") from e

    errors = body.get("errors") or []
    if errors:
        logger.error(f"Shopify {operation} GraphQL errors: {errors}")
        raise error_cls(_first_message(errors, f"{operation} failed"))

    return body.get("data") or {}


async def fetch_catalog(
    client: Optional[httpx.AsyncClient] = None,
    *,
    limit: Optional[int] = None,
) -> List[VehicleOption]:
    first = limit or settings.CATALOG_PAGE_SIZE
    try:
        data = await _execute(
            PRODUCTS_QUERY,
            {"first": first},
            operation="catalog",
            error_cls=CatalogFetchError,
            client=client,
        )
    except CatalogFetchError:
        catalog_fetches.labels(status="error").inc()
        raise

    edges = (data.get("products") or {}).get("edges") or []
    vehicles = normalize_catalog([edge.get("node") or {} for edge in edges])
    catalog_fetches.labels(status="success").inc()
    logger.info(f"Fetched {len(vehicles)} vehicles from catalog")
    return vehicles


async def fetch_vehicle(
    product_id: str,
    client: Optional[httpx.AsyncClient] = None,
) -> VehicleOption:
    gid = product_id if str(product_id).startswith("gid://") else f"{PRODUCT_GID_PREFIX}{product_id}"
    data = await _execute(
        PRODUCT_QUERY,
        {"id": gid},
        operation="product",
        error_cls=CatalogFetchError,
        client=client,
    )
    product = data.get("product")
    if not product:
        raise CatalogFetchError(f"Vehicle {product_id} not found")
    return normalize_product(product)


def build_cart_input(
    lines: List[CheckoutLineItem],
    cart_attributes: List[Attribute],
    note: str,
    buyer: Optional[BuyerIdentity] = None,
) -> Dict[str, Any]:
    cart_input: Dict[str, Any] = {
        "lines": [
            {
                "merchandiseId": line.unit_ref,
                "quantity": line.quantity,
                "attributes": [a.model_dump() for a in line.attributes],
            }
            for line in lines
        ],
        "attributes": [a.model_dump() for a in cart_attributes],
        "note": note,
    }
    if buyer is not None:
        cart_input["buyerIdentity"] = {"email": buyer.email, "countryCode": buyer.country_code}
    return cart_input


async def submit_checkout(
    lines: List[CheckoutLineItem],
    cart_attributes: List[Attribute],
    note: str,
    buyer_email: Optional[str] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Create a remote cart and return its checkout URL.

    Each call creates a new cart, so failures are surfaced to the caller
    and never retried here.
    """
    buyer = None
    if buyer_email:
        buyer = BuyerIdentity(email=buyer_email, country_code=settings.CHECKOUT_COUNTRY_CODE)
    booking_type = next(
        (a.value for a in cart_attributes if a.key == "booking_type"), "unknown"
    )

    try:
        data = await _execute(
            CART_CREATE_MUTATION,
            {"input": build_cart_input(lines, cart_attributes, note, buyer)},
            operation="checkout",
            error_cls=CheckoutError,
            client=client,
        )
        result = data.get("cartCreate") or {}
        user_errors = result.get("userErrors") or []
        if user_errors:
            logger.warning(f"Shopify cartCreate user errors: {user_errors}")
            raise CheckoutError(_first_message(user_errors, "Checkout was rejected"))

        checkout_url = (result.get("cart") or {}).get("checkoutUrl")
        if not checkout_url:
            raise CheckoutError("No checkout URL returned from the booking backend")
    except CheckoutError:
        checkout_submissions.labels(booking_type=booking_type, status="error").inc()
        raise

    checkout_submissions.labels(booking_type=booking_type, status="success").inc()
    logger.info(f"Created checkout with {len(lines)} line(s)")
    return checkout_url
