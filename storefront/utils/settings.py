# storefront/utils/settings.py
import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
REDIS_URL = os.getenv("REDIS_URL", "")
CART_COUNT_TTL_SECONDS = int(os.getenv("CART_COUNT_TTL_SECONDS", 30))

AUTH_SERVICE_URL = os.getenv("AUTH_SERVICE_URL", "http://auth-service:8000")
AUTH_TIMEOUT_SECONDS = int(os.getenv("AUTH_TIMEOUT_SECONDS", 2))

TOSS_CLIENT_KEY = os.getenv("TOSS_CLIENT_KEY", "")
PAYMENT_SUCCESS_URL = os.getenv("PAYMENT_SUCCESS_URL", "http://localhost:3000/payment/success")
PAYMENT_FAIL_URL = os.getenv("PAYMENT_FAIL_URL", "http://localhost:3000/payment/fail")

SHIPPING_FEE = Decimal(os.getenv("SHIPPING_FEE", "0"))
AMOUNT_TOLERANCE = Decimal(os.getenv("AMOUNT_TOLERANCE", "0.01"))
ORDER_DEDUCTS_STOCK = _flag("ORDER_DEDUCTS_STOCK", "true")

POPULAR_PRODUCTS_LIMIT = int(os.getenv("POPULAR_PRODUCTS_LIMIT", 8))
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", 12))
SEED_DEMO_DATA = _flag("SEED_DEMO_DATA", "false")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
