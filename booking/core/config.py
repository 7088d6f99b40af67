from typing import Dict, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    SHOPIFY_DOMAIN: str = "example.myshopify.com"
    SHOPIFY_STOREFRONT_TOKEN: str = ""
    SHOPIFY_API_VERSION: str = "2024-10"

    CATALOG_PAGE_SIZE: int = 50
    CHECKOUT_COUNTRY_CODE: str = "AE"
    CURRENCY_CODE: str = "AED"
    HTTP_TIMEOUT: float = 15.0

    # vehicle category -> parking fee variant GID
    ANCILLARY_FEE_UNITS: Dict[str, str] = {}
    ANCILLARY_FEE_AIRPORT_ONLY: bool = False

    REDIS_URL: Optional[str] = None
    IDEMPOTENCY_TTL: int = 300  # 5 minutes
    PRICE_CACHE_TTL: int = 60   # 60 seconds

    WEBHOOK_URL: Optional[str] = None
    WEBHOOK_TIMEOUT: int = 10
    WEBHOOK_RETRIES: int = 3

    API_TITLE: str = "Vehicle Booking Service"
    API_DESCRIPTION: str = "Fare resolution and checkout composition for transfers and daily rentals"
    API_VERSION: str = "1.0.0"

    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    @property
    def shopify_graphql_url(self) -> str:
        return f"https://{self.SHOPIFY_DOMAIN}/api/{self.SHOPIFY_API_VERSION}/graphql.json"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
