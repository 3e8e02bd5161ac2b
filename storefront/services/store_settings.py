from decimal import Decimal

from storefront.domain.schemas import StoreSettings
from storefront.utils import settings


def load_store_settings() -> StoreSettings:
    threshold = settings.STORE_FREE_DELIVERY_THRESHOLD
    return StoreSettings(
        home_delivery_fee=settings.STORE_HOME_DELIVERY_FEE,
        free_delivery_threshold=Decimal(threshold) if threshold else None,
        pickup_address=settings.STORE_PICKUP_ADDRESS,
        store_country=settings.STORE_COUNTRY,
    )
