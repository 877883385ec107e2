from decimal import Decimal
from typing import Dict, Any, List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductModel
from storefront.domain.errors import (
    AuthenticationError,
    InvalidInputError,
    ProductNotFoundError,
    OutOfStockError,
    StockLimitError,
    CartItemNotFoundError,
    ProductInactiveError,
)
from storefront.domain.results import action
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.count_cache import CartCountCache
from storefront.services.product_service import serialize_product
from storefront.utils.settings import SHIPPING_FEE
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def serialize_cart_item(item: CartItemModel, with_product: bool = True) -> Dict[str, Any]:
    data = {
        "id": item.id,
        "user_id": item.user_id,
        "product_id": item.product_id,
        "quantity": item.quantity,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }
    if with_product and item.product is not None:
        data["product"] = serialize_product(item.product)
    return data


def require_user(user_id: str | None) -> str:
    if not user_id:
        raise AuthenticationError()
    return user_id


class CartService:
    """
    use cases for the cart
    commands (add, update, remove, clear) change state and drop the cached badge count
    queries (items, summary, count) only read, always from live product rows
    """

    def __init__(self, db: Session, count_cache: CartCountCache | None = None):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.count_cache = count_cache

    #query - building blocks shared with the order workflow, these raise
    def load_items(self, user_id: str) -> List[CartItemModel]:
        return self.repo.get_cart_items(user_id)

    def compute_summary(self, user_id: str) -> Dict[str, Decimal | int]:
        items = [serialize_cart_item(i) for i in self.load_items(user_id)]

        total_items = sum(i["quantity"] for i in items)
        total_amount = sum(
            (i["product"]["price"] * i["quantity"] for i in items), Decimal("0")
        )
        shipping_fee = SHIPPING_FEE  # flat, currently free

        return {
            "total_items": total_items,
            "total_amount": total_amount,
            "shipping_fee": shipping_fee,
            "grand_total": total_amount + shipping_fee,
        }

    #query - public
    @action("장바구니 조회 중 오류가 발생했습니다.")
    def get_items(self, user_id: str | None) -> List[Dict[str, Any]]:
        require_user(user_id)
        return [serialize_cart_item(i) for i in self.load_items(user_id)]

    @action("장바구니 요약 조회 중 오류가 발생했습니다.")
    def get_summary(self, user_id: str | None) -> Dict[str, Any]:
        require_user(user_id)
        return self.compute_summary(user_id)

    @action("장바구니 개수 조회 중 오류가 발생했습니다.")
    def get_count(self, user_id: str | None) -> int:
        """distinct products in the cart, not summed quantity (badge)"""
        require_user(user_id)

        if self.count_cache:
            cached = self.count_cache.get(user_id)
            if cached is not None:
                return cached

        count = self.repo.count_cart_items(user_id)

        if self.count_cache:
            self.count_cache.set(user_id, count)
        return count

    #commands
    @action("장바구니 추가 중 오류가 발생했습니다.")
    def add_item(self, user_id: str | None, product_id: str, quantity: int = 1) -> Dict[str, Any]:
        require_user(user_id)

        if not product_id or not str(product_id).strip():
            raise InvalidInputError("상품 ID가 필요합니다.")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidInputError("수량은 1 이상의 정수여야 합니다.")

        product = self.products.get_active(product_id)
        if not product:
            raise ProductNotFoundError()

        stock = product.stock_quantity or 0
        if stock <= 0:
            raise OutOfStockError()

        try:
            existing = self.repo.get_cart_item_for_product(user_id, product_id)

            if existing:
                item = self._merge(existing, product, quantity)
            else:
                if quantity > stock:
                    raise StockLimitError(stock, quantity)

                logger.info(f"Adding product {product_id} x{quantity} to cart of {user_id}")
                try:
                    item = self.repo.add_cart_item(
                        CartItemModel(user_id=user_id, product_id=product_id, quantity=quantity)
                    )
                except IntegrityError:
                    # another request inserted the same product first
                    self.repo.rollback()
                    existing = self.repo.get_cart_item_for_product(user_id, product_id)
                    if not existing:
                        raise
                    item = self._merge(existing, product, quantity)

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        self._invalidate_count(user_id)
        return serialize_cart_item(self.repo.refresh(item), with_product=False)

    @action("수량 변경 중 오류가 발생했습니다.")
    def update_item(self, user_id: str | None, cart_item_id: str, quantity: int) -> Dict[str, Any]:
        require_user(user_id)

        if not cart_item_id or not str(cart_item_id).strip():
            raise InvalidInputError("장바구니 아이템 ID가 필요합니다.")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidInputError("수량은 1개 이상이어야 합니다.")

        item = self.repo.get_cart_item(cart_item_id)
        if not item or item.user_id != user_id:
            raise CartItemNotFoundError()

        product = item.product
        if product is None or not product.is_active:
            raise ProductInactiveError()

        stock = product.stock_quantity or 0
        if quantity > stock:
            raise StockLimitError(stock, quantity)

        try:
            rowcount = self.repo.set_quantity(item.id, product.id, quantity)
            if rowcount == 0:
                # stock dropped between the check and the write
                self.repo.rollback()
                current = self.products.get_active(product.id)
                raise StockLimitError(current.stock_quantity if current else 0, quantity)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart item {cart_item_id} quantity set to {quantity}")
        self._invalidate_count(user_id)
        return serialize_cart_item(self.repo.refresh(item), with_product=False)

    @action("장바구니 아이템 삭제 중 오류가 발생했습니다.")
    def remove_item(self, user_id: str | None, cart_item_id: str) -> None:
        require_user(user_id)

        if not cart_item_id or not str(cart_item_id).strip():
            raise InvalidInputError("장바구니 아이템 ID가 필요합니다.")

        rowcount = self.repo.delete_cart_item(cart_item_id, user_id)
        if rowcount == 0:
            self.repo.rollback()
            raise CartItemNotFoundError()

        self.repo.commit()
        logger.info(f"Cart item {cart_item_id} removed for {user_id}")
        self._invalidate_count(user_id)

    @action("장바구니 비우기 중 오류가 발생했습니다.")
    def clear(self, user_id: str | None) -> None:
        require_user(user_id)

        removed = self.repo.clear_cart(user_id)
        self.repo.commit()

        logger.info(f"Cleared {removed} cart items for {user_id}")
        self._invalidate_count(user_id)

    #helpers
    def _merge(self, existing: CartItemModel, product: ProductModel, quantity: int) -> CartItemModel:
        stock = product.stock_quantity or 0
        requested = existing.quantity + quantity

        if requested > stock:
            raise StockLimitError(stock, requested)

        logger.info(
            f"Product {product.id} already in cart, raising quantity "
            f"from {existing.quantity} to {requested}"
        )

        rowcount = self.repo.merge_quantity(existing.id, product.id, quantity)

        # conditional write lost against a concurrent change
        # UPDATE cart_items SET quantity = quantity + q WHERE id = :id AND quantity + q <= stock
        if rowcount == 0:
            self.repo.rollback()
            current_item = self.repo.get_cart_item(existing.id)
            current_product = self.products.get_active(product.id)
            raise StockLimitError(
                current_product.stock_quantity if current_product else 0,
                (current_item.quantity if current_item else 0) + quantity,
            )

        return existing

    def _invalidate_count(self, user_id: str):
        if self.count_cache:
            self.count_cache.invalidate(user_id)
