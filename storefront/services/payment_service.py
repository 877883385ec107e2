# storefront/services/payment_service.py
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import OrderNotFoundError, OrderStateError, PaymentUnavailableError
from storefront.domain.results import action
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import require_user
from storefront.utils.money import to_price
from storefront.utils.settings import TOSS_CLIENT_KEY, PAYMENT_SUCCESS_URL, PAYMENT_FAIL_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def build_order_name(items: List[OrderItemModel]) -> str:
    """'<first product>' or '<first product> 외 N건', N = quantity of the other lines"""
    if not items:
        return "주문"

    first = items[0]
    if len(items) == 1:
        return first.product_name

    total_count = sum(i.quantity for i in items)
    return f"{first.product_name} 외 {total_count - first.quantity}건"


class PaymentService:
    """
    Prepares the payment widget call for a pending order.

    Payment success/failure is handled by the provider callback, not here.
    """

    def __init__(self, db: Session, client_key: str | None = None):
        self.repo = OrderRepo(db)
        self.client_key = TOSS_CLIENT_KEY if client_key is None else client_key

    @action("결제창을 여는 중 오류가 발생했습니다.")
    def request_payment(self, user_id: str | None, order_id: str) -> Dict[str, Any]:
        require_user(user_id)

        if not self.client_key:
            logger.error("Payment client key is not configured")
            raise PaymentUnavailableError()

        order = self.repo.get_order(order_id)
        if not order or order.user_id != user_id:
            raise OrderNotFoundError()

        if order.status != "pending":
            raise OrderStateError()

        address = order.shipping_address or {}
        payload = {
            "client_key": self.client_key,
            "order_id": order.id,
            "order_name": build_order_name(order.items),
            "amount": to_price(order.total_amount),
            "customer_name": address.get("recipientName", ""),
            "success_url": PAYMENT_SUCCESS_URL,
            "fail_url": PAYMENT_FAIL_URL,
        }
        logger.info(f"Payment request prepared for order {order.id}, amount {payload['amount']}")
        return payload
