# storefront/data/models/order.py
"""
Order aggregate: the order row plus its items and status history.

Items and history rows only keep ``order_id``; the order owns both
collections (created together, deleted together). The total and every
item price are copied at creation and never recomputed from the catalog.
"""
import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Enum
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.order_status_history import OrderStatusHistoryModel
from storefront.domain.errors import EmptyCart
from storefront.domain.order_status import OrderStatus, PaymentStatus, INITIAL_STATUS

CREATED_NOTE = "Order created from cart"


def _now():
    return datetime.now(timezone.utc)


def generate_order_number() -> str:
    # ORD-{epoch millis}-{8 hex chars}
    return f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8].upper()}"


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(50), nullable=False, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(Enum(OrderStatus, native_enum=False, length=30), nullable=False, index=True)
    payment_status = Column(
        Enum(PaymentStatus, native_enum=False, length=20),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    total_amount = Column(Numeric(12, 2), nullable=False)
    note = Column(String(1000), nullable=True)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship(
        OrderItemModel,
        cascade="all, delete-orphan",
        order_by=OrderItemModel.id,
        lazy="selectin",
    )
    status_history = relationship(
        OrderStatusHistoryModel,
        cascade="all, delete-orphan",
        order_by=[OrderStatusHistoryModel.timestamp, OrderStatusHistoryModel.id],
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    @classmethod
    def create(cls, user_id: int, lines, note: str | None = None) -> "OrderModel":
        """
        Build a new order from ``lines`` (objects with ``product`` and
        ``quantity``), freezing each product's current price.
        """
        if not lines:
            raise EmptyCart()

        order = cls(
            order_number=generate_order_number(),
            user_id=user_id,
            status=INITIAL_STATUS,
            payment_status=PaymentStatus.PENDING,
            note=note,
            items=[],
            status_history=[],
        )

        total = Decimal("0.00")
        for line in lines:
            product = line.product
            price = Decimal(str(product.price))
            order.items.append(
                OrderItemModel(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=line.quantity,
                    price=price,
                )
            )
            total += price * line.quantity

        order.total_amount = total
        order.append_status(INITIAL_STATUS, CREATED_NOTE)
        return order

    def append_status(self, new_status: OrderStatus, note: str | None = None) -> OrderStatusHistoryModel:
        """Set the current status and record it; legality is the caller's job."""
        entry = OrderStatusHistoryModel(status=OrderStatus(new_status), note=note, timestamp=_now())
        self.status = OrderStatus(new_status)
        self.updated_at = entry.timestamp
        self.status_history.append(entry)
        return entry

    def is_owned_by(self, user_id: int) -> bool:
        return self.user_id == user_id
