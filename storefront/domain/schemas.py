# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime

from storefront.domain.order_status import OrderStatus, PaymentStatus


class UserCreate(BaseModel):
    """Schema for self-registration; every registered user gets the USER role."""

    id: int = Field(..., gt=0, description="User id (must be > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")


class UserRead(BaseModel):
    id: int
    name: str
    role: str

    model_config = ConfigDict(from_attributes=True)


class ItemIn(BaseModel):
    """Schema for adding a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product id (must be > 0)")
    quantity: int = Field(..., gt=0, description="Quantity (must be > 0)")


class ItemUpdateIn(BaseModel):
    quantity: int = Field(..., gt=0, description="New quantity (must be > 0)")


class CartItemOut(BaseModel):
    item_id: int
    product_id: int
    product_name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    version: int
    items: List[CartItemOut]
    total: Decimal


class PlaceOrderIn(BaseModel):
    """Schema for placing an order from the current cart."""

    note: str | None = Field(None, max_length=1000)


class ConfirmPaymentIn(BaseModel):
    payment_reference: str = Field(..., min_length=1, max_length=200)


class UpdateOrderStatusIn(BaseModel):
    status: OrderStatus
    note: str | None = Field(None, max_length=500)


class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    price: Decimal
    line_total: Decimal


class OrderOut(BaseModel):
    """Order projection returned by every order command."""

    order_id: int
    order_number: str
    user_id: int
    status: OrderStatus
    payment_status: PaymentStatus
    total_amount: Decimal
    note: str | None = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemOut]


class OrderPage(BaseModel):
    items: List[OrderOut]
    page: int
    size: int
    total: int
    pages: int


class StatusHistoryOut(BaseModel):
    status: OrderStatus
    timestamp: datetime
    note: str | None = None


class OrderTrackingOut(BaseModel):
    order_id: int
    order_number: str
    current_status: OrderStatus
    payment_status: PaymentStatus
    total_amount: Decimal
    created_at: datetime
    next_statuses: List[OrderStatus]
    timeline: List[StatusHistoryOut]
