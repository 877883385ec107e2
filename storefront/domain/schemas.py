# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal, Optional
from decimal import Decimal
from datetime import datetime


Category = Literal["electronics", "clothing", "books", "food", "sports", "beauty", "home"]
CategoryFilter = Literal[
    "all", "uncategorized", "electronics", "clothing", "books", "food", "sports", "beauty", "home"
]
SortOption = Literal["latest", "price-asc", "price-desc", "popular"]
OrderStatus = Literal["pending", "confirmed", "shipped", "delivered", "cancelled"]

PHONE_PATTERN = r"^01[0-9]-?[0-9]{3,4}-?[0-9]{4}$|^01[0-9]{9}$"


class ProductOut(BaseModel):
    """Schema for an active product (response)."""

    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    category: Optional[Category] = None
    stock_quantity: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductPageOut(BaseModel):
    """Schema for a page of products (response)."""

    products: List[ProductOut]
    total_count: int
    current_page: int
    total_pages: int


class CartItemIn(BaseModel):
    """Schema for adding a product to the cart."""

    product_id: str = Field(..., min_length=1, description="Product ID")
    quantity: int = Field(1, description="Quantity to add (merged with an existing line)")


class CartItemQuantityIn(BaseModel):
    """Schema for changing a cart line quantity."""

    quantity: int = Field(..., description="New quantity (1..stock)")


class CartItemOut(BaseModel):
    """Schema for a cart line joined with its current product (response)."""

    id: str
    user_id: str
    product_id: str
    quantity: int
    created_at: datetime
    updated_at: datetime
    product: Optional[ProductOut] = None


class CartSummaryOut(BaseModel):
    """Schema for the cart totals (response)."""

    total_items: int
    total_amount: Decimal
    shipping_fee: Decimal
    grand_total: Decimal


class CartCountOut(BaseModel):
    count: int


class ShippingAddressIn(BaseModel):
    """Schema for the shipping address entered on checkout."""

    recipient_name: str = Field(..., min_length=2, max_length=50, description="Recipient name")
    phone: str = Field(..., min_length=1, pattern=PHONE_PATTERN, description="e.g. 010-1234-5678")
    address: str = Field(..., min_length=10, max_length=200, description="Free-text address")

    model_config = ConfigDict(str_strip_whitespace=True)


class OrderCreate(BaseModel):
    """Schema for placing an order from the current cart."""

    shipping_address: Optional[ShippingAddressIn] = None
    order_note: Optional[str] = Field(None, max_length=500, description="Order note")
    expected_total_amount: Optional[Decimal] = Field(
        None, description="Grand total the client displayed, used for reconciliation"
    )


class OrderCreatedOut(BaseModel):
    order_id: str


class OrderItemOut(BaseModel):
    """Schema for an order line (response)."""

    id: str
    product_id: str
    product_name: str
    quantity: int
    price: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema for an order with its lines (response)."""

    id: str
    user_id: str
    status: OrderStatus
    total_amount: Decimal
    shipping_address: Optional[dict] = None
    order_note: Optional[str] = None
    items: List[OrderItemOut]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentRequestIn(BaseModel):
    order_id: str = Field(..., min_length=1)


class PaymentRequestOut(BaseModel):
    """Parameters the client hands to the payment widget."""

    client_key: str
    order_id: str
    order_name: str
    amount: Decimal
    customer_name: str
    success_url: str
    fail_url: str
