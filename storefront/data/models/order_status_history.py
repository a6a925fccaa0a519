from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Enum

from storefront.data.database import Base
from storefront.domain.order_status import OrderStatus


class OrderStatusHistoryModel(Base):
    """Append-only; rows are never updated or deleted on their own."""

    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(Enum(OrderStatus, native_enum=False, length=30), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    note = Column(String(500), nullable=True)
