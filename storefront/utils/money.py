# storefront/utils/money.py
from decimal import Decimal, InvalidOperation

from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0")


def to_price(value, product_id=None) -> Decimal:
    """
    Coerce a stored price into a Decimal.

    The database driver may hand prices back as Decimal, float, int or text.
    Anything that cannot be parsed becomes 0 and is logged, a single bad row
    never breaks a listing.
    """
    if isinstance(value, Decimal):
        return value
    if value is None:
        logger.warning(f"Missing price for product {product_id}, using 0")
        return ZERO
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        logger.warning(f"Unparseable price {value!r} for product {product_id}, using 0")
        return ZERO
    if not price.is_finite():
        logger.warning(f"Non-finite price {value!r} for product {product_id}, using 0")
        return ZERO
    return price
