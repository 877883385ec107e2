# storefront/services/order_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import (
    StoreError,
    InvalidInputError,
    EmptyCartError,
    AmountMismatchError,
    OrderNotFoundError,
    OrderStorageError,
    OrderItemsStorageError,
    OrderCreationError,
    StockLimitError,
)
from storefront.domain.results import ActionResult, action
from storefront.domain.schemas import OrderCreate
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import CartService, require_user
from storefront.services.count_cache import CartCountCache
from storefront.utils.money import to_price
from storefront.utils.settings import AMOUNT_TOLERANCE, ORDER_DEDUCTS_STOCK
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def serialize_order(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "status": order.status,
        "total_amount": to_price(order.total_amount),
        "shipping_address": order.shipping_address,
        "order_note": order.order_note,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "product_name": i.product_name,
                "quantity": i.quantity,
                "price": to_price(i.price, i.product_id),
                "created_at": i.created_at,
            }
            for i in order.items
        ],
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


class OrderService:
    """
    Turns the current cart into a pending order.

    The server-side cart total is the only amount ever persisted; the client
    figure is used solely to detect a stale checkout page.
    """

    def __init__(self, db: Session, count_cache: CartCountCache | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart = CartService(db, count_cache=count_cache)
        self.count_cache = count_cache

    def create_order(self, user_id: str | None, payload: OrderCreate) -> ActionResult:
        """
        Use case: place an order from the cart.

        1. require a logged-in user
        2. require a shipping address and a positive expected total
        3. snapshot the cart, refuse an empty one
        4. recompute the summary server-side
        5. reject when |server total - expected total| > tolerance
        6-8. header, lines (and stock deduction) and cart clear in one transaction
        9. return the new order id
        """
        try:
            logger.info(f"Order creation started for {user_id or 'anonymous'}")

            require_user(user_id)

            if payload.shipping_address is None:
                raise InvalidInputError("배송지 정보를 입력해주세요.")

            expected = payload.expected_total_amount
            if expected is None or not expected.is_finite() or expected <= 0:
                logger.error(f"Invalid expected total: {expected}")
                raise InvalidInputError("주문 금액 정보가 유효하지 않습니다.")

            items = self.cart.load_items(user_id)
            logger.info(f"Cart snapshot for {user_id}: {len(items)} items")
            if not items:
                raise EmptyCartError()

            summary = self.cart.compute_summary(user_id)
            grand_total = summary["grand_total"]
            logger.info(f"Recomputed total {grand_total}, client expected {expected}")

            if abs(grand_total - expected) > AMOUNT_TOLERANCE:
                logger.error(f"Amount mismatch: server {grand_total} vs client {expected}")
                raise AmountMismatchError()

            # the snapshot must agree with the summary, otherwise the cart
            # moved between the two reads and the lines would not add up
            snapshot_total = self._lines_total(items) + summary["shipping_fee"]
            if snapshot_total != grand_total:
                logger.error(f"Cart changed during checkout: {snapshot_total} vs {grand_total}")
                raise AmountMismatchError()

            order_id = self._persist(user_id, payload, items, grand_total)

            if self.count_cache:
                self.count_cache.invalidate(user_id)

            logger.info(f"Order {order_id} created for {user_id}, total {grand_total}")
            return ActionResult.ok({"order_id": order_id})

        except StoreError as e:
            logger.info(f"Order creation rejected: {e.message}")
            return ActionResult.fail(e)
        except Exception:
            logger.exception("Unexpected error while creating order")
            return ActionResult.fail(OrderCreationError())

    @action("주문 조회 중 오류가 발생했습니다.")
    def get_order(self, user_id: str | None, order_id: str) -> Dict[str, Any]:
        require_user(user_id)

        order = self.repo.get_order(order_id)
        #someone else's order is reported as missing
        if not order or order.user_id != user_id:
            raise OrderNotFoundError()

        return serialize_order(order)

    #helpers
    @staticmethod
    def _lines_total(items: List[CartItemModel]) -> Decimal:
        return sum(
            (to_price(i.product.price, i.product_id) * i.quantity for i in items), Decimal("0")
        )

    def _persist(
        self,
        user_id: str,
        payload: OrderCreate,
        items: List[CartItemModel],
        grand_total: Decimal,
    ) -> str:
        address = payload.shipping_address
        order = OrderModel(
            user_id=user_id,
            status="pending",
            total_amount=grand_total,
            shipping_address={
                "recipientName": address.recipient_name,
                "phone": address.phone,
                "address": address.address,
            },
            order_note=payload.order_note or None,
        )

        try:
            try:
                self.repo.create_order(order)
            except SQLAlchemyError as e:
                logger.error(f"Saving order header failed: {e}")
                raise OrderStorageError() from e

            lines = [
                OrderItemModel(
                    order_id=order.id,
                    line_no=n,
                    product_id=i.product_id,
                    product_name=i.product.name,
                    quantity=i.quantity,
                    price=to_price(i.product.price, i.product_id),
                )
                for n, i in enumerate(items)
            ]

            try:
                self.repo.create_order_items(lines)
            except SQLAlchemyError as e:
                logger.error(f"Saving order items for {order.id} failed: {e}")
                raise OrderItemsStorageError() from e

            if ORDER_DEDUCTS_STOCK:
                self._deduct_stock(items)

            self.cart.repo.clear_cart(user_id)
            self.repo.commit()
        except Exception:
            # nothing of header, lines or cart clear survives a failure
            self.repo.rollback()
            raise

        return order.id

    def _deduct_stock(self, items: List[CartItemModel]):
        for i in items:
            rowcount = self.cart.products.decrement_stock(i.product_id, i.quantity)
            if rowcount == 0:
                stock = i.product.stock_quantity or 0
                logger.error(f"Stock of {i.product_id} below ordered {i.quantity}")
                raise StockLimitError(stock, i.quantity, product_name=i.product.name)
