# storefront/domain/errors.py
"""
Error taxonomy of the storefront.

Every error carries a short user-facing message (shown as-is to the shopper)
and the HTTP status the routers answer with. Repositories and services raise
these; the public service boundary turns them into ActionResult failures.
"""


class StoreError(Exception):
    status_code = 400
    message = "요청을 처리하지 못했습니다."

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


# (a) authentication
class AuthenticationError(StoreError):
    status_code = 401
    message = "로그인이 필요합니다."


# (b) validation
class InvalidInputError(StoreError):
    status_code = 400


# (e) not found
class ProductNotFoundError(StoreError):
    status_code = 404
    message = "상품을 찾을 수 없습니다."


class CartItemNotFoundError(StoreError):
    status_code = 404
    message = "장바구니 아이템을 찾을 수 없습니다."


class OrderNotFoundError(StoreError):
    status_code = 404
    message = "주문을 찾을 수 없습니다."


# (c) business rules
class OutOfStockError(StoreError):
    status_code = 409
    message = "품절된 상품입니다."


class ProductInactiveError(StoreError):
    status_code = 409
    message = "상품이 비활성화되었습니다."


class StockLimitError(StoreError):
    status_code = 409

    def __init__(self, stock: int, requested: int, product_name: str | None = None):
        self.stock = stock
        self.requested = requested
        prefix = f"{product_name} " if product_name else ""
        super().__init__(
            f"재고가 부족합니다. ({prefix}현재 재고: {stock}개, 요청 수량: {requested}개)"
        )


class EmptyCartError(StoreError):
    status_code = 400
    message = "장바구니가 비어있습니다."


class AmountMismatchError(StoreError):
    status_code = 409
    message = "주문 금액이 변경되었습니다. 페이지를 새로고침 후 다시 시도해주세요."


class OrderStateError(StoreError):
    status_code = 409
    message = "이미 처리된 주문입니다."


# (d) storage
class StorageError(StoreError):
    status_code = 500
    message = "저장 중 오류가 발생했습니다."


class OrderStorageError(StorageError):
    message = "주문 저장 중 오류가 발생했습니다."


class OrderItemsStorageError(StorageError):
    message = "주문 아이템 저장 중 오류가 발생했습니다."


class OrderCreationError(StorageError):
    message = "주문 생성 중 오류가 발생했습니다."


class PaymentUnavailableError(StoreError):
    status_code = 503
    message = "결제 준비 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."
